from __future__ import annotations

import math
from typing import Optional

from fastapi import APIRouter, Depends, Query

from tidewatch.core.contracts import Coordinate, FeedResponse
from tidewatch.core.errors import InputError, bad_request
from tidewatch.core.geo import is_valid_coordinate, to_number
from tidewatch.core.settings import settings
from tidewatch.services.feed import ALL_PLATFORMS, Feed

router = APIRouter()


def get_feed_service() -> Feed:
    raise RuntimeError("Feed must be provided by app dependency override")


def _parse_float(raw: Optional[str]) -> Optional[float]:
    if raw is None or not str(raw).strip():
        return None
    v = to_number(raw.strip())
    return v if math.isfinite(v) else None


@router.get("/feed", response_model=FeedResponse)
async def feed(
    lat: Optional[str] = Query(default=None),
    lng: Optional[str] = Query(default=None),
    radius_km: Optional[str] = Query(default=None, alias="radiusKm"),
    platform: str = Query(default=ALL_PLATFORMS),
    svc: Feed = Depends(get_feed_service),
) -> FeedResponse:
    if lat is None or lng is None:
        bad_request("missing_location", "Latitude and longitude are required")

    latitude = _parse_float(lat)
    longitude = _parse_float(lng)
    if latitude is None or longitude is None:
        bad_request("invalid_location", "Invalid latitude or longitude")
    if not is_valid_coordinate(latitude, longitude):
        bad_request(
            "location_out_of_range",
            "Latitude must be between -90 and 90, longitude between -180 and 180",
        )

    radius = settings.feed_default_radius_km
    if radius_km is not None:
        parsed = _parse_float(radius_km)
        if parsed is None or parsed <= 0:
            bad_request("invalid_radius", "radiusKm must be a positive number")
        radius = parsed

    center = Coordinate(lat=latitude, lng=longitude)
    try:
        result = await svc.get_feed(center, radius_km=radius, platform=platform)
    except InputError as e:
        bad_request("invalid_feed_request", str(e))

    return FeedResponse(
        success=True,
        signals=result.signals,
        location=center,
        radius_km=radius,
        platform=(platform or ALL_PLATFORMS).lower(),
        fallback=result.fallback,
        count=len(result.signals),
        warnings=result.warnings,
    )
