# tidewatch/services/synthetic.py
"""
Last-resort placeholder signals.

Used only when every provider came back empty, so the feed isn't silently
blank. The engine flags the response (``fallback: true``) so clients can
disclose that these are not real posts.
"""
from __future__ import annotations

import random
from datetime import timedelta
from typing import List, Optional, Tuple

from tidewatch.core.contracts import Coordinate, Engagement, MediaRef, Signal
from tidewatch.core.geo import clamp_coordinate
from tidewatch.core.keying import signal_id
from tidewatch.core.settings import settings
from tidewatch.core.time import utc_now

# (display name, handle, text, media kind, media url, jitter scale, likes base)
_TEMPLATES: Tuple[Tuple[str, str, str, Optional[str], Optional[str], float, int], ...] = (
    (
        "WeatherAlert_IN", "weatheralert_in",
        "🚨 #TsunamiAlert issued for coastal areas. Residents advised to move to higher "
        "ground immediately. #OceanHazard #EmergencyAlert",
        None, None, 0.5, 100,
    ),
    (
        "CoastalGuard", "coastalguard_official",
        "Major #StormSurge expected along the coast tonight. Fishing boats advised to "
        "return to harbor. #MarineHazard #SafetyAlert #Hurricane",
        "image", "https://images.unsplash.com/photo-1544551763-46a013bb70d5?w=800&h=600&fit=crop",
        0.75, 80,
    ),
    (
        "OceanWatch", "oceanwatch_news",
        "Breaking: #OilSpill reported offshore. Marine rescue teams deployed. "
        "#MarineDisaster #OceanPollution",
        "video", "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/BigBuckBunny.mp4",
        1.0, 200,
    ),
    (
        "LocalReporter", "localreporter_news",
        "Witnessing severe #CoastalErosion along the beachfront. Sea level rise damaging "
        "infrastructure. #SeaLevelRise",
        "image", "https://images.unsplash.com/photo-1573160813959-df05c1b3e94c?w=800&h=600&fit=crop",
        0.25, 60,
    ),
    (
        "EmergencyServices", "emergency_services",
        "⚠️ #FloodWarning: Abnormal high tide expected tonight. Coastal roads may be "
        "affected. #HighTide #TidalFlooding",
        None, None, 0.6, 150,
    ),
    (
        "WeatherWatcher", "weatherwatcher_local",
        "#Cyclone update: Wind speeds increasing. Coastal areas under evacuation "
        "advisory. #WeatherAlert #Typhoon",
        "image", "https://images.unsplash.com/photo-1506905925346-21bda4d32df4?w=800&h=600&fit=crop",
        0.9, 180,
    ),
)


class SyntheticSignalGenerator:
    def __init__(
        self,
        *,
        jitter_deg: float | None = None,
        max_age_hours: float | None = None,
        rng: random.Random | None = None,
    ):
        self.jitter_deg = float(jitter_deg if jitter_deg is not None else settings.synthetic_jitter_deg)
        self.max_age_hours = float(max_age_hours if max_age_hours is not None else settings.synthetic_max_age_hours)
        self.rng = rng or random.Random()

    def _around(self, scale: float) -> float:
        # uniform in ±(jitter * scale)/2
        return (self.rng.random() - 0.5) * self.jitter_deg * scale

    def generate(self, center: Coordinate) -> List[Signal]:
        now = utc_now()
        out: List[Signal] = []
        for i, (name, handle, text, kind, url, scale, likes_base) in enumerate(_TEMPLATES):
            # Spread ages across the window so ordering is plausible
            hours = self.rng.random() * self.max_age_hours * (i + 1) / len(_TEMPLATES)
            created = now - timedelta(hours=hours)
            coord = clamp_coordinate(center.lat + self._around(scale), center.lng + self._around(scale))
            # Not a real post: a scheme no client will try to open
            origin = f"synthetic://{handle}/{int(created.timestamp() * 1000)}{i}"
            out.append(
                Signal(
                    id=signal_id("synthetic", origin),
                    provider="synthetic",
                    author_handle=handle,
                    author_display_name=name,
                    text=text,
                    created_at=created,
                    coordinate=coord,
                    media=MediaRef(kind=kind, url=url) if kind and url else None,  # type: ignore
                    origin_url=origin,
                    engagement=Engagement(
                        likes=likes_base + self.rng.randint(0, 400),
                        shares=self.rng.randint(25, 250),
                        comments=self.rng.randint(10, 120),
                    ),
                )
            )
        return out
