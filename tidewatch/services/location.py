# tidewatch/services/location.py
"""
Best-effort live position with tiered fallback.

The position itself comes from an external capability (a device/browser
geolocation bridge); this module owns only the policy:

  1. high accuracy, watch-style read, 15s, no cached fix
  2. high accuracy, single read,     15s, no cached fix
  3. low accuracy,  single read,     20s, cached fix up to 60s old

Tiers run strictly in order, one outstanding call at a time. The first fix
wins. If every tier fails, the last tier's error code decides the message.

Client-side policy component: the service itself never asks for a position,
so nothing in main.py wires this up. Clients embed it next to their own
geolocation bridge and post the resulting fix with a report.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, runtime_checkable

from tidewatch.core.contracts import Coordinate
from tidewatch.core.errors import (
    LOCATION_PERMISSION_DENIED,
    LOCATION_TIMEOUT,
    LOCATION_UNAVAILABLE,
    LOCATION_UNKNOWN,
    LocationError,
)
from tidewatch.core.settings import settings

logger = logging.getLogger(__name__)

# W3C Geolocation error codes
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3

MSG_BLOCKED = (
    "Location is blocked for this site. Click the lock icon → Site settings → "
    "Location → Allow, then reload."
)
MSG_PERMISSION = "Please allow the location prompt to continue."
MSG_UNAVAILABLE = (
    "Location unavailable. Ensure device location is ON, disable VPN, and connect "
    "to Wi-Fi for better accuracy."
)
MSG_TIMEOUT = "Location request timed out. Move to an open area and retry."
MSG_REQUIRED = "Location access is required to submit a report."


@dataclass(frozen=True)
class PositionOptions:
    high_accuracy: bool
    timeout_ms: int
    max_cache_age_ms: int = 0
    watch: bool = False


class PositionError(Exception):
    def __init__(self, code: int, message: str = ""):
        super().__init__(message or f"position error {code}")
        self.code = code


@runtime_checkable
class PositionSource(Protocol):
    async def get_position(self, options: PositionOptions) -> Coordinate: ...


def default_tiers() -> List[PositionOptions]:
    hi = int(settings.location_high_accuracy_timeout_ms)
    return [
        PositionOptions(high_accuracy=True, timeout_ms=hi, max_cache_age_ms=0, watch=True),
        PositionOptions(high_accuracy=True, timeout_ms=hi, max_cache_age_ms=0, watch=False),
        PositionOptions(
            high_accuracy=False,
            timeout_ms=int(settings.location_low_accuracy_timeout_ms),
            max_cache_age_ms=int(settings.location_low_accuracy_max_age_ms),
            watch=False,
        ),
    ]


def classify_position_error(err: Optional[BaseException]) -> LocationError:
    code = getattr(err, "code", None)
    if code == POSITION_UNAVAILABLE:
        return LocationError(LOCATION_UNAVAILABLE, MSG_UNAVAILABLE)
    if code == TIMEOUT:
        return LocationError(LOCATION_TIMEOUT, MSG_TIMEOUT)
    if code == PERMISSION_DENIED:
        return LocationError(LOCATION_PERMISSION_DENIED, MSG_PERMISSION)
    return LocationError(LOCATION_UNKNOWN, MSG_REQUIRED)


class LocationAcquisition:
    def __init__(
        self,
        source: Optional[PositionSource],
        *,
        tiers: Optional[List[PositionOptions]] = None,
        probe_permission: bool = True,
        grace_ms: Optional[int] = None,
    ):
        self.source = source
        self.tiers = list(tiers) if tiers is not None else default_tiers()
        self.probe_permission = probe_permission
        self.grace_s = float(grace_ms if grace_ms is not None else settings.location_grace_ms) / 1000.0

    async def _permission_denied(self) -> bool:
        probe = getattr(self.source, "permission_state", None)
        if not self.probe_permission or probe is None:
            return False
        try:
            state = await probe()
        except Exception as e:
            # Probe is advisory only; fall through to the tiers
            logger.debug("[location] permission probe failed: %s", e)
            return False
        return str(state or "").lower() == "denied"

    async def _attempt(self, options: PositionOptions) -> Coordinate:
        # Bound the call ourselves too: a capability that never honours its own
        # timeout must not hold up the next tier. wait_for cancels the call.
        limit = options.timeout_ms / 1000.0 + self.grace_s
        try:
            return await asyncio.wait_for(self.source.get_position(options), timeout=limit)
        except asyncio.TimeoutError:
            raise PositionError(TIMEOUT, "position request timed out")

    async def acquire(self) -> Coordinate:
        if self.source is None:
            raise LocationError(LOCATION_UNKNOWN, MSG_REQUIRED)

        if await self._permission_denied():
            raise LocationError(LOCATION_PERMISSION_DENIED, MSG_BLOCKED)

        last_err: Optional[BaseException] = None
        for i, options in enumerate(self.tiers, start=1):
            try:
                coord = await self._attempt(options)
            except PositionError as e:
                logger.debug("[location] tier %d failed (code=%s): %s", i, e.code, e)
                last_err = e
                continue
            except Exception as e:
                logger.debug("[location] tier %d failed: %s", i, e)
                last_err = e
                continue
            logger.debug("[location] tier %d succeeded", i)
            return coord

        raise classify_position_error(last_err)
