from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ──────────────────────────────────────────────────────────────
# Shared
# ──────────────────────────────────────────────────────────────

class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


# ──────────────────────────────────────────────────────────────
# Signals (normalized social posts)
# ──────────────────────────────────────────────────────────────

ProviderId = Literal["twitter", "instagram", "facebook", "synthetic"]
MediaKind = Literal["image", "video"]

PROVIDER_IDS: tuple[str, ...] = ("twitter", "instagram", "facebook")


class MediaRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: MediaKind
    url: str


class Engagement(BaseModel):
    model_config = ConfigDict(frozen=True)

    likes: int = Field(default=0, ge=0)
    shares: int = Field(default=0, ge=0)
    comments: int = Field(default=0, ge=0)


class Signal(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    provider: ProviderId
    author_handle: str
    author_display_name: str
    text: str = ""
    created_at: datetime
    coordinate: Optional[Coordinate] = None
    media: Optional[MediaRef] = None
    origin_url: str = ""
    engagement: Engagement = Field(default_factory=Engagement)

    @model_validator(mode="after")
    def _has_content(self) -> "Signal":
        if not self.text.strip() and self.media is None:
            raise ValueError("signal must carry text or media")
        return self


class FeedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    signals: List[Signal] = Field(default_factory=list)
    location: Coordinate
    radius_km: float = Field(..., serialization_alias="radiusKm")
    platform: str = "all"
    fallback: bool = False
    count: int = 0
    warnings: List[str] = Field(default_factory=list)


# ──────────────────────────────────────────────────────────────
# Crowd reports (geotag validation)
# ──────────────────────────────────────────────────────────────

class GeotagVerdict(BaseModel):
    ok: bool
    exif_coordinate: Optional[Coordinate] = None
    distance_km: Optional[float] = None
    reason: Optional[str] = None


ValidationOutcome = Literal["accepted", "rejected"]


class HazardReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    report_id: str
    submitter_id: Optional[str] = None
    image_ref: str
    image_name: Optional[str] = None
    content_type: str
    size_bytes: int = Field(..., ge=0)
    live_coordinate: Coordinate
    exif_coordinate: Optional[Coordinate] = None
    distance_km: Optional[float] = None
    validation_outcome: ValidationOutcome
    rejection_reason: Optional[str] = None
    submitted_at: datetime


class ReportAccepted(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    report_id: str = Field(..., serialization_alias="reportId")
    distance_km: Optional[float] = Field(default=None, serialization_alias="distanceKm")


class HealthResponse(BaseModel):
    status: str = "OK"
    service: str
    timestamp: str
