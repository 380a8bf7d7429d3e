from __future__ import annotations

import io
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

import piexif
import pytest
from PIL import Image

from tidewatch.core.contracts import Coordinate, HazardReport, MediaRef, Signal
from tidewatch.core.keying import signal_id
from tidewatch.core.settings import Settings

CHENNAI = Coordinate(lat=13.0827, lng=80.2707)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _to_dms_rational(value: float) -> Tuple[Tuple[int, int], Tuple[int, int], Tuple[int, int]]:
    v = abs(value)
    d = int(v)
    m_full = (v - d) * 60
    m = int(m_full)
    s = round((m_full - m) * 60 * 10000)
    return ((d, 1), (m, 1), (s, 10000))


def make_jpeg(lat: Optional[float] = None, lng: Optional[float] = None) -> bytes:
    """Tiny JPEG, with a GPS EXIF block when lat/lng are given."""
    img = Image.new("RGB", (8, 8), (0, 80, 160))
    buf = io.BytesIO()
    if lat is None or lng is None:
        img.save(buf, format="JPEG")
        return buf.getvalue()

    gps = {
        piexif.GPSIFD.GPSLatitudeRef: b"N" if lat >= 0 else b"S",
        piexif.GPSIFD.GPSLatitude: _to_dms_rational(lat),
        piexif.GPSIFD.GPSLongitudeRef: b"E" if lng >= 0 else b"W",
        piexif.GPSIFD.GPSLongitude: _to_dms_rational(lng),
    }
    exif_bytes = piexif.dump({"0th": {}, "Exif": {}, "GPS": gps, "1st": {}, "thumbnail": None})
    img.save(buf, format="JPEG", exif=exif_bytes)
    return buf.getvalue()


def make_signal(
    text: str,
    *,
    minutes_ago: float = 0,
    coordinate: Optional[Coordinate] = None,
    provider: str = "twitter",
    url: Optional[str] = None,
    media: Optional[MediaRef] = None,
) -> Signal:
    created = NOW - timedelta(minutes=minutes_ago)
    origin = url if url is not None else f"https://example.test/{provider}/{abs(hash((text, minutes_ago)))}"
    return Signal(
        id=signal_id(provider, origin, text=text, created_at=created.isoformat()),
        provider=provider,  # type: ignore
        author_handle="handle",
        author_display_name="Display",
        text=text,
        created_at=created,
        coordinate=coordinate,
        media=media,
        origin_url=origin,
    )


@pytest.fixture
def center() -> Coordinate:
    return CHENNAI


@pytest.fixture
def provider_settings() -> Settings:
    return Settings(
        TWITTER_BEARER_TOKEN="tw-token",
        META_ACCESS_TOKEN="meta-token",
        IG_BUSINESS_ACCOUNT_ID="1789",
        FB_PAGE_IDS="page1,page2",
        INSTAGRAM_MAX_PAGES=2,
    )


def signal_texts(signals: List[Signal]) -> List[str]:
    return [s.text for s in signals]


class MemoryStore:
    """In-process ReportStore for service and HTTP tests."""

    def __init__(self):
        self.reports: Dict[str, HazardReport] = {}
        self.images: Dict[str, Tuple[str, bytes]] = {}

    def save(self, report: HazardReport, image_bytes: bytes) -> None:
        self.reports[report.report_id] = report
        self.images[report.image_ref] = (report.content_type, image_bytes)

    def get(self, report_id: str) -> Optional[HazardReport]:
        return self.reports.get(report_id)

    def get_image(self, image_ref: str) -> Optional[Tuple[str, bytes]]:
        return self.images.get(image_ref)
