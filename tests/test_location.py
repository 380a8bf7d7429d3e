from __future__ import annotations

import asyncio
from typing import List

import pytest

from tidewatch.core.contracts import Coordinate
from tidewatch.core.errors import (
    LOCATION_PERMISSION_DENIED,
    LOCATION_TIMEOUT,
    LOCATION_UNAVAILABLE,
    LOCATION_UNKNOWN,
    LocationError,
)
from tidewatch.services.location import (
    MSG_BLOCKED,
    PERMISSION_DENIED,
    POSITION_UNAVAILABLE,
    TIMEOUT,
    LocationAcquisition,
    PositionError,
    PositionOptions,
    default_tiers,
)

HANG = object()

FAST_TIERS = [
    PositionOptions(high_accuracy=True, timeout_ms=20, watch=True),
    PositionOptions(high_accuracy=True, timeout_ms=20),
    PositionOptions(high_accuracy=False, timeout_ms=20, max_cache_age_ms=60000),
]


class ScriptedSource:
    """Plays back one outcome per get_position call."""

    def __init__(self, outcomes: List[object], permission: str | None = None):
        self.outcomes = list(outcomes)
        self.permission = permission
        self.calls: List[PositionOptions] = []
        self.cancelled = 0

    async def get_position(self, options: PositionOptions) -> Coordinate:
        self.calls.append(options)
        outcome = self.outcomes.pop(0)
        if outcome is HANG:
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                self.cancelled += 1
                raise
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome  # type: ignore[return-value]

    async def permission_state(self) -> str:
        if self.permission is None:
            raise RuntimeError("permissions API unavailable")
        return self.permission


def _acq(source, **kw) -> LocationAcquisition:
    kw.setdefault("tiers", FAST_TIERS)
    kw.setdefault("grace_ms", 0)
    return LocationAcquisition(source, **kw)


async def test_first_tier_success_short_circuits():
    src = ScriptedSource([Coordinate(lat=1, lng=2)])
    assert await _acq(src).acquire() == Coordinate(lat=1, lng=2)
    assert len(src.calls) == 1
    assert src.calls[0].watch is True


async def test_timeouts_then_third_tier_success():
    third = Coordinate(lat=13.08, lng=80.27)
    src = ScriptedSource([PositionError(TIMEOUT), PositionError(TIMEOUT), third])
    assert await _acq(src).acquire() == third
    assert [c.high_accuracy for c in src.calls] == [True, True, False]


async def test_hung_tier_is_cancelled_and_next_tier_runs():
    third = Coordinate(lat=-5, lng=5)
    src = ScriptedSource([HANG, PositionError(TIMEOUT), third])
    assert await _acq(src).acquire() == third
    assert src.cancelled == 1
    assert len(src.calls) == 3


@pytest.mark.parametrize(
    "code, kind",
    [
        (PERMISSION_DENIED, LOCATION_PERMISSION_DENIED),
        (POSITION_UNAVAILABLE, LOCATION_UNAVAILABLE),
        (TIMEOUT, LOCATION_TIMEOUT),
        (99, LOCATION_UNKNOWN),
    ],
)
async def test_all_tiers_fail_classified_by_last_error(code, kind):
    src = ScriptedSource([PositionError(TIMEOUT), PositionError(TIMEOUT), PositionError(code)])
    with pytest.raises(LocationError) as ei:
        await _acq(src).acquire()
    assert ei.value.kind == kind
    assert ei.value.message


async def test_messages_are_distinct_per_kind():
    messages = set()
    for code in (PERMISSION_DENIED, POSITION_UNAVAILABLE, TIMEOUT, 99):
        src = ScriptedSource([PositionError(code)] * 3)
        with pytest.raises(LocationError) as ei:
            await _acq(src).acquire()
        messages.add(ei.value.message)
    assert len(messages) == 4


async def test_denied_permission_short_circuits_without_calls():
    src = ScriptedSource([], permission="denied")
    with pytest.raises(LocationError) as ei:
        await _acq(src).acquire()
    assert ei.value.kind == LOCATION_PERMISSION_DENIED
    assert ei.value.message == MSG_BLOCKED
    assert src.calls == []


async def test_probe_failure_is_ignored():
    src = ScriptedSource([Coordinate(lat=0, lng=0)], permission=None)
    assert await _acq(src).acquire() == Coordinate(lat=0, lng=0)


async def test_probe_can_be_disabled():
    src = ScriptedSource([Coordinate(lat=0, lng=0)], permission="denied")
    assert await _acq(src, probe_permission=False).acquire() == Coordinate(lat=0, lng=0)


async def test_no_source():
    with pytest.raises(LocationError) as ei:
        await LocationAcquisition(None).acquire()
    assert ei.value.kind == LOCATION_UNKNOWN


def test_default_tiers_policy():
    t1, t2, t3 = default_tiers()
    assert (t1.high_accuracy, t1.watch, t1.timeout_ms, t1.max_cache_age_ms) == (True, True, 15000, 0)
    assert (t2.high_accuracy, t2.watch, t2.timeout_ms, t2.max_cache_age_ms) == (True, False, 15000, 0)
    assert (t3.high_accuracy, t3.watch, t3.timeout_ms, t3.max_cache_age_ms) == (False, False, 20000, 60000)
