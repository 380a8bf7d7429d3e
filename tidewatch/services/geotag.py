# tidewatch/services/geotag.py
"""
Crowd-report geotag validation.

A report is trusted only if the photo's embedded GPS position lies within the
trust radius of the reporter's live device position. The radius absorbs GPS
and EXIF quantization error while still rejecting stock/reused photos and
spoofed locations.
"""
from __future__ import annotations

import io
import logging
import math
from typing import Any, Dict, Mapping, Optional

import piexif
from PIL import Image, UnidentifiedImageError

from tidewatch.core.contracts import Coordinate, GeotagVerdict
from tidewatch.core.geo import dms_to_decimal, haversine_km, is_valid_coordinate
from tidewatch.core.settings import settings

logger = logging.getLogger(__name__)

REASON_MISSING_METADATA = "Image must contain location metadata."
REASON_LOCATION_MISMATCH = "Image location does not match your current location."

DEFAULT_TRUST_RADIUS_KM = 1.0


def compare_geo_tags(
    live: Coordinate,
    raw_exif: Optional[Mapping[str, Any]],
    *,
    trust_radius_km: float = DEFAULT_TRUST_RADIUS_KM,
) -> GeotagVerdict:
    exif = raw_exif or {}
    lat = dms_to_decimal(exif.get("GPSLatitude"), exif.get("GPSLatitudeRef"))
    lng = dms_to_decimal(exif.get("GPSLongitude"), exif.get("GPSLongitudeRef"))

    if lat is None or lng is None or not math.isfinite(lat) or not math.isfinite(lng):
        return GeotagVerdict(ok=False, reason=REASON_MISSING_METADATA)
    if not is_valid_coordinate(lat, lng):
        return GeotagVerdict(ok=False, reason=REASON_MISSING_METADATA)

    exif_coord = Coordinate(lat=lat, lng=lng)
    distance = haversine_km(live, exif_coord)
    if distance > trust_radius_km:
        return GeotagVerdict(
            ok=False,
            exif_coordinate=exif_coord,
            distance_km=distance,
            reason=REASON_LOCATION_MISMATCH,
        )
    return GeotagVerdict(ok=True, exif_coordinate=exif_coord, distance_km=distance)


def read_location_tags(image_bytes: bytes) -> Optional[Dict[str, Any]]:
    """
    Pull the four GPS tags out of an image's EXIF block.

    Values are returned as piexif leaves them: DMS triples of
    ``(numerator, denominator)`` pairs and bytes hemisphere refs.
    None when the image has no (readable) GPS block.
    """
    if not image_bytes:
        return None
    try:
        img = Image.open(io.BytesIO(image_bytes))
        exif_bytes = img.info.get("exif")
    except (UnidentifiedImageError, OSError) as e:
        logger.info("[geotag] unreadable image: %s", e)
        return None
    if not exif_bytes:
        return None

    try:
        ex = piexif.load(exif_bytes)
    except Exception as e:
        logger.info("[geotag] malformed EXIF block: %s", e)
        return None

    gps_ifd = ex.get("GPS") or {}
    if not gps_ifd:
        return None

    tags = {
        "GPSLatitude": gps_ifd.get(piexif.GPSIFD.GPSLatitude),
        "GPSLatitudeRef": gps_ifd.get(piexif.GPSIFD.GPSLatitudeRef),
        "GPSLongitude": gps_ifd.get(piexif.GPSIFD.GPSLongitude),
        "GPSLongitudeRef": gps_ifd.get(piexif.GPSIFD.GPSLongitudeRef),
    }
    if all(v is None for v in tags.values()):
        return None
    return tags


class GeotagValidator:
    def __init__(self, *, trust_radius_km: float | None = None):
        self.trust_radius_km = float(
            trust_radius_km if trust_radius_km is not None else settings.geotag_trust_radius_km
        )

    def compare(self, live: Coordinate, raw_exif: Optional[Mapping[str, Any]]) -> GeotagVerdict:
        return compare_geo_tags(live, raw_exif, trust_radius_km=self.trust_radius_km)

    def validate_image(self, live: Coordinate, image_bytes: bytes) -> GeotagVerdict:
        return self.compare(live, read_location_tags(image_bytes))
