from __future__ import annotations

import math
from fractions import Fraction

import pytest

from tidewatch.core.contracts import Coordinate
from tidewatch.core.geo import bbox_center, dms_to_decimal, haversine_km, is_valid_coordinate, to_number


POINTS = [
    Coordinate(lat=13.0827, lng=80.2707),
    Coordinate(lat=-33.8688, lng=151.2093),
    Coordinate(lat=51.5074, lng=-0.1278),
    Coordinate(lat=90.0, lng=0.0),
    Coordinate(lat=-12.5, lng=-179.9),
]


@pytest.mark.parametrize("a", POINTS)
def test_haversine_zero_for_same_point(a):
    assert haversine_km(a, a) == 0


@pytest.mark.parametrize("a", POINTS)
@pytest.mark.parametrize("b", POINTS)
def test_haversine_symmetric(a, b):
    assert haversine_km(a, b) == pytest.approx(haversine_km(b, a))


def test_haversine_known_distance():
    # Chennai → 13.20,80.40 is roughly 19 km
    d = haversine_km(Coordinate(lat=13.0827, lng=80.2707), Coordinate(lat=13.20, lng=80.40))
    assert 17 < d < 22


def test_haversine_one_degree_latitude():
    d = haversine_km(Coordinate(lat=0, lng=0), Coordinate(lat=1, lng=0))
    assert d == pytest.approx(111.19, abs=0.01)


def test_dms_north_and_south():
    assert dms_to_decimal((13, 30, 0), "N") == 13.5
    assert dms_to_decimal((13, 30, 0), "S") == -13.5


def test_dms_west_is_negative_and_ref_case_insensitive():
    assert dms_to_decimal([80, 15, 36], "w") == pytest.approx(-80.26)
    assert dms_to_decimal([80, 15, 36], "E") == pytest.approx(80.26)


def test_dms_accepts_rationals_and_bytes_ref():
    dms = ((13, 1), (4, 1), (5772, 100))
    assert dms_to_decimal(dms, b"N") == pytest.approx(13 + 4 / 60 + 57.72 / 3600)
    assert dms_to_decimal([Fraction(27, 2), 0, 0], "N") == 13.5


@pytest.mark.parametrize(
    "dms, ref",
    [
        ((13, 30), "N"),
        ((13, 30, 0), None),
        ((13, 30, 0), ""),
        ((13, "x", 0), "N"),
        ((13, float("nan"), 0), "N"),
        ((13, float("inf"), 0), "N"),
        ((13, (1, 0), 0), "N"),
        (None, "N"),
        ("13,30,0", "N"),
    ],
)
def test_dms_invalid_inputs(dms, ref):
    assert dms_to_decimal(dms, ref) is None


def test_to_number_variants():
    assert to_number(3) == 3.0
    assert to_number("2.5") == 2.5
    assert to_number((1, 4)) == 0.25
    assert math.isnan(to_number(None))
    assert math.isnan(to_number(True))


def test_bbox_center():
    c = bbox_center([80.0, 13.0, 80.4, 13.2])
    assert c.lat == pytest.approx(13.1)
    assert c.lng == pytest.approx(80.2)
    assert bbox_center([1, 2, 3]) is None
    assert bbox_center(None) is None


def test_is_valid_coordinate():
    assert is_valid_coordinate(90, 180)
    assert not is_valid_coordinate(90.1, 0)
    assert not is_valid_coordinate(0, -180.5)
    assert not is_valid_coordinate(None, 0)
    assert not is_valid_coordinate(float("nan"), 0)
