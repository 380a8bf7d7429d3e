# tidewatch/core/geo.py
"""
Geospatial primitives shared by the feed geofence and report validation.

Coordinates are WGS84 degrees. Distances are great-circle kilometres on a
sphere of mean Earth radius; good to ~0.5% which is well inside both the
feed radius and the geotag trust radius.
"""
from __future__ import annotations

import math
from typing import Any, Optional, Sequence

from tidewatch.core.contracts import Coordinate

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    x = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    c = 2 * math.atan2(math.sqrt(x), math.sqrt(1 - x))
    return EARTH_RADIUS_KM * c


def to_number(value: Any) -> float:
    """
    Coerce an EXIF-ish numeric into a float; NaN when it can't be read.

    Accepts plain numbers, numeric strings, ``(numerator, denominator)``
    pairs (piexif) and rational objects exposing ``numerator``/``denominator``
    (Pillow's IFDRational, fractions.Fraction).
    """
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, (tuple, list)) and len(value) == 2:
        num, den = value
        if isinstance(num, (int, float)) and isinstance(den, (int, float)) and den != 0:
            return float(num) / float(den)
        return math.nan
    num = getattr(value, "numerator", None)
    den = getattr(value, "denominator", None)
    if isinstance(num, (int, float)) and isinstance(den, (int, float)):
        return float(num) / float(den) if den != 0 else math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _ref_text(ref: Any) -> str:
    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="ignore")
    return str(ref or "").strip().rstrip("\x00").upper()


def dms_to_decimal(dms: Optional[Sequence[Any]], ref: Any) -> Optional[float]:
    """
    Degrees/minutes/seconds + hemisphere ref → signed decimal degrees.

    Returns None when the triple is short, the ref is missing, or any
    component is not a finite number.
    """
    if dms is None or isinstance(dms, (str, bytes)):
        return None
    try:
        parts = list(dms)
    except TypeError:
        return None
    if len(parts) < 3:
        return None
    hemi = _ref_text(ref)
    if not hemi:
        return None

    d = to_number(parts[0])
    m = to_number(parts[1])
    s = to_number(parts[2])
    if not all(math.isfinite(v) for v in (d, m, s)):
        return None

    dec = d + m / 60.0 + s / 3600.0
    if hemi in ("S", "W"):
        dec = -dec
    return dec


def is_valid_coordinate(lat: Optional[float], lng: Optional[float]) -> bool:
    if lat is None or lng is None:
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def bbox_center(bbox: Optional[Sequence[Any]]) -> Optional[Coordinate]:
    """Centre of a ``[minLng, minLat, maxLng, maxLat]`` box (Twitter place geo)."""
    if not bbox or len(bbox) != 4:
        return None
    vals = [to_number(v) for v in bbox]
    if not all(math.isfinite(v) for v in vals):
        return None
    lng = (vals[0] + vals[2]) / 2.0
    lat = (vals[1] + vals[3]) / 2.0
    if not is_valid_coordinate(lat, lng):
        return None
    return Coordinate(lat=lat, lng=lng)


def clamp_coordinate(lat: float, lng: float) -> Coordinate:
    return Coordinate(lat=max(-90.0, min(90.0, lat)), lng=max(-180.0, min(180.0, lng)))
