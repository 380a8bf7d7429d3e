from __future__ import annotations

import pytest

from tidewatch.core.contracts import Coordinate
from tidewatch.services.geotag import (
    REASON_LOCATION_MISMATCH,
    REASON_MISSING_METADATA,
    GeotagValidator,
    compare_geo_tags,
    read_location_tags,
)
from tests.conftest import CHENNAI, _to_dms_rational, make_jpeg


def _exif(lat: float, lng: float) -> dict:
    return {
        "GPSLatitude": _to_dms_rational(lat),
        "GPSLatitudeRef": "N" if lat >= 0 else "S",
        "GPSLongitude": _to_dms_rational(lng),
        "GPSLongitudeRef": "E" if lng >= 0 else "W",
    }


def test_same_point_is_accepted():
    v = compare_geo_tags(CHENNAI, _exif(13.0827, 80.2707))
    assert v.ok
    assert v.reason is None
    assert v.exif_coordinate.lat == pytest.approx(13.0827, abs=1e-6)
    assert v.exif_coordinate.lng == pytest.approx(80.2707, abs=1e-6)
    assert v.distance_km == pytest.approx(0, abs=1e-3)


def test_far_point_is_rejected_with_mismatch():
    v = compare_geo_tags(CHENNAI, _exif(13.20, 80.40))
    assert not v.ok
    assert v.reason == REASON_LOCATION_MISMATCH
    assert v.exif_coordinate is not None
    assert v.distance_km > 15


def test_within_trust_radius_is_accepted():
    # ~0.5 km north
    v = compare_geo_tags(CHENNAI, _exif(13.0872, 80.2707))
    assert v.ok
    assert 0.4 < v.distance_km < 0.6


def test_trust_radius_is_configurable():
    strict = GeotagValidator(trust_radius_km=0.1)
    v = strict.compare(CHENNAI, _exif(13.0872, 80.2707))
    assert not v.ok
    assert v.reason == REASON_LOCATION_MISMATCH


def test_southern_western_hemispheres():
    live = Coordinate(lat=-33.8688, lng=-70.6693)
    v = compare_geo_tags(live, _exif(-33.8688, -70.6693))
    assert v.ok


@pytest.mark.parametrize(
    "raw",
    [
        None,
        {},
        {"GPSLatitude": (13, 4, 57), "GPSLatitudeRef": "N"},
        {"GPSLatitude": (13, 4), "GPSLatitudeRef": "N", "GPSLongitude": (80, 16, 14), "GPSLongitudeRef": "E"},
        {"GPSLatitude": (13, 4, 57), "GPSLongitude": (80, 16, 14), "GPSLongitudeRef": "E"},
        {"GPSLatitude": ("a", 4, 57), "GPSLatitudeRef": "N", "GPSLongitude": (80, 16, 14), "GPSLongitudeRef": "E"},
        {"GPSLatitude": (95, 0, 0), "GPSLatitudeRef": "N", "GPSLongitude": (80, 16, 14), "GPSLongitudeRef": "E"},
    ],
)
@pytest.mark.parametrize("live", [CHENNAI, Coordinate(lat=0, lng=0)])
def test_missing_or_malformed_metadata(raw, live):
    v = compare_geo_tags(live, raw)
    assert not v.ok
    assert v.reason == REASON_MISSING_METADATA
    assert v.exif_coordinate is None
    assert v.distance_km is None


def test_read_location_tags_from_jpeg():
    tags = read_location_tags(make_jpeg(13.0827, 80.2707))
    assert tags is not None
    assert tags["GPSLatitudeRef"] == b"N"
    assert tags["GPSLongitudeRef"] == b"E"
    v = compare_geo_tags(CHENNAI, tags)
    assert v.ok


def test_read_location_tags_without_gps():
    assert read_location_tags(make_jpeg()) is None


def test_read_location_tags_not_an_image():
    assert read_location_tags(b"definitely not a jpeg") is None
    assert read_location_tags(b"") is None


def test_validate_image_end_to_end():
    validator = GeotagValidator(trust_radius_km=1.0)
    assert validator.validate_image(CHENNAI, make_jpeg(13.0827, 80.2707)).ok
    far = validator.validate_image(CHENNAI, make_jpeg(13.20, 80.40))
    assert far.reason == REASON_LOCATION_MISMATCH
    bare = validator.validate_image(CHENNAI, make_jpeg())
    assert bare.reason == REASON_MISSING_METADATA
