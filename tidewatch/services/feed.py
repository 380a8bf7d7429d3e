# tidewatch/services/feed.py
"""
Ocean hazard signal feed: one engine over a pluggable adapter set.

Pipeline per request:
  select adapters (platform filter)
  → fetch all concurrently, wait for every one to settle
  → merge in adapter order (synthetic backfill if nothing came back)
  → keep hazard-relevant text inside the geofence (no coordinate = keep)
  → dedup by signal id → newest first (stable) → cap

All state is request-scoped; adapters and the vocabulary are read-only.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

import httpx

from tidewatch.core.contracts import PROVIDER_IDS, Coordinate, Signal
from tidewatch.core.errors import InputError
from tidewatch.core.geo import haversine_km
from tidewatch.core.keywords import is_hazard_relevant
from tidewatch.core.settings import settings
from tidewatch.services.providers import ProviderAdapter
from tidewatch.services.synthetic import SyntheticSignalGenerator

logger = logging.getLogger(__name__)

ALL_PLATFORMS = "all"


@dataclass
class FeedResult:
    signals: List[Signal] = field(default_factory=list)
    fallback: bool = False
    warnings: List[str] = field(default_factory=list)


def parse_platform_filter(platform: Optional[str]) -> Optional[frozenset[str]]:
    """
    "all" / empty → None (every adapter); otherwise a set of provider ids.
    Accepts a single id or a comma-separated list.
    """
    p = (platform or ALL_PLATFORMS).strip().lower()
    if p == ALL_PLATFORMS:
        return None
    wanted = frozenset(x.strip() for x in p.split(",") if x.strip())
    if not wanted:
        return None
    unknown = sorted(wanted - set(PROVIDER_IDS))
    if unknown:
        raise InputError(f"Unsupported platform: {', '.join(unknown)}")
    return wanted


def within_geofence(center: Coordinate, signal: Signal, radius_km: float) -> bool:
    # Most providers omit location: absence can't exclude
    if signal.coordinate is None:
        return True
    return haversine_km(center, signal.coordinate) <= radius_km


def filter_signals(signals: Iterable[Signal], center: Coordinate, radius_km: float) -> List[Signal]:
    return [
        s for s in signals
        if is_hazard_relevant(s.text) and within_geofence(center, s, radius_km)
    ]


def dedup_signals(signals: Iterable[Signal]) -> List[Signal]:
    seen: set[str] = set()
    out: List[Signal] = []
    for s in signals:
        if s.id in seen:
            continue
        seen.add(s.id)
        out.append(s)
    return out


def rank_signals(signals: Sequence[Signal]) -> List[Signal]:
    # sorted() is stable: equal timestamps keep adapter order
    return sorted(signals, key=lambda s: s.created_at, reverse=True)


class Feed:
    def __init__(
        self,
        *,
        adapters: Sequence[ProviderAdapter],
        generator: Optional[SyntheticSignalGenerator] = None,
        max_items: int | None = None,
        timeout_s: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.adapters = tuple(adapters)
        self.generator = generator
        self.max_items = int(max_items or settings.feed_max_items)
        self.timeout_s = float(timeout_s or settings.providers_timeout_s)
        self.transport = transport

    def select_adapters(self, wanted: Optional[frozenset[str]]) -> List[ProviderAdapter]:
        if wanted is None:
            return list(self.adapters)
        return [a for a in self.adapters if a.provider_id in wanted]

    async def _fetch_all(
        self,
        adapters: Sequence[ProviderAdapter],
        center: Coordinate,
        radius_km: float,
    ) -> List[List[Signal]]:
        transport = self.transport or httpx.AsyncHTTPTransport(retries=1)
        async with httpx.AsyncClient(timeout=self.timeout_s, follow_redirects=True, transport=transport) as client:
            results = await asyncio.gather(
                *(a.fetch_signals(center, radius_km, client=client) for a in adapters),
                return_exceptions=True,
            )

        out: List[List[Signal]] = []
        for adapter, res in zip(adapters, results):
            if isinstance(res, BaseException):
                # Adapters shouldn't raise, but one that does is still just empty
                logger.warning("[feed] adapter %s raised: %s", adapter.provider_id, res)
                out.append([])
            else:
                out.append(list(res))
        return out

    async def get_feed(
        self,
        center: Coordinate,
        radius_km: float | None = None,
        platform: Optional[str] = ALL_PLATFORMS,
    ) -> FeedResult:
        radius = float(radius_km if radius_km is not None else settings.feed_default_radius_km)
        if not radius > 0:
            raise InputError("radiusKm must be a positive number")
        wanted = parse_platform_filter(platform)
        selected = self.select_adapters(wanted)

        result = FeedResult()
        batches: List[List[Signal]] = []
        if selected:
            # Shielded: if the caller goes away, in-flight provider calls finish
            # and their results are dropped rather than aborted mid-request.
            batches = await asyncio.shield(self._fetch_all(selected, center, radius))

        merged: List[Signal] = []
        for adapter, batch in zip(selected, batches):
            if not batch:
                result.warnings.append(f"{adapter.provider_id}: no results")
            merged.extend(batch)

        if not merged and self.generator is not None:
            merged = self.generator.generate(center)
            result.fallback = True
            logger.info("[feed] no provider data near %.4f,%.4f; using synthetic fallback", center.lat, center.lng)

        kept = rank_signals(dedup_signals(filter_signals(merged, center, radius)))
        result.signals = kept[: self.max_items]

        logger.debug(
            "[feed] merged=%d kept=%d returned=%d fallback=%s",
            len(merged), len(kept), len(result.signals), result.fallback,
        )
        return result
