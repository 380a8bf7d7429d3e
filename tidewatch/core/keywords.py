# tidewatch/core/keywords.py
"""
Ocean/coastal hazard vocabulary and relevance test.

A precision-biased substring filter, not a classifier: "storm surge pricing"
passes. Provider query builders draw from the same vocabulary so what we ask
for upstream is what we keep downstream.
"""
from __future__ import annotations

from typing import List, Optional

HAZARD_HASHTAGS: tuple[str, ...] = (
    "#Tsunami", "#TsunamiAlert", "#TsunamiWarning",
    "#Hurricane", "#Cyclone", "#Typhoon", "#StormSurge",
    "#CoastalFlooding", "#FloodWarning", "#FlashFlood",
    "#OceanHazard", "#MarineHazard", "#MarineDisaster",
    "#OilSpill", "#MarineOilSpill", "#OceanPollution",
    "#SeaLevelRise", "#CoastalErosion", "#BeachErosion",
    "#TidalWave", "#HighTide", "#KingTide", "#TidalFlooding",
    "#RogueWave", "#OceanWarning", "#WeatherAlert",
    "#EmergencyAlert", "#DisasterAlert", "#EvacuationOrder",
    "#SafetyAlert", "#WeatherEmergency", "#NaturalDisaster",
)

HAZARD_KEYWORDS: tuple[str, ...] = (
    "tsunami", "hurricane", "cyclone", "typhoon", "storm surge",
    "coastal flooding", "oil spill", "sea level rise", "sea-level rise",
    "coastal erosion", "marine disaster", "ocean hazard", "tidal wave",
    "rogue wave",
)

_VOCABULARY: tuple[str, ...] = tuple(
    dict.fromkeys(t.lower() for t in HAZARD_HASHTAGS + HAZARD_KEYWORDS)
)

# Narrower sets used to build upstream queries (providers cap query length)
_TWITTER_TAGS: tuple[str, ...] = (
    "#Tsunami", "#TsunamiAlert", "#Hurricane", "#Cyclone", "#Typhoon", "#StormSurge",
    "#CoastalFlooding", "#FloodWarning", "#OceanHazard", "#MarineHazard", "#OilSpill",
    "#SeaLevelRise", "#CoastalErosion", "#TidalWave", "#HighTide", "#TidalFlooding",
)
_TWITTER_WORDS: tuple[str, ...] = (
    "tsunami", "hurricane", "cyclone", "typhoon", "storm surge", "coastal flooding", "oil spill",
)
_INSTAGRAM_TAGS: tuple[str, ...] = (
    "tsunami", "cyclone", "hurricane", "stormsurge", "coastalflooding", "oilspill", "flood",
)


def is_hazard_relevant(text: Optional[str]) -> bool:
    if not text:
        return False
    lower = str(text).lower()
    return any(term in lower for term in _VOCABULARY)

def twitter_search_query(*, lang: str = "en") -> str:
    """`(#Tag) OR ("word") ... lang:en -is:retweet` for the v2 recent-search endpoint."""
    tag_part = " OR ".join(f"({t})" for t in _TWITTER_TAGS)
    word_part = " OR ".join(f'("{w}")' for w in _TWITTER_WORDS)
    q = f"({tag_part} OR {word_part})"
    if lang:
        q += f" lang:{lang}"
    return q + " -is:retweet"

def instagram_hashtags() -> List[str]:
    return list(_INSTAGRAM_TAGS)
