from __future__ import annotations

from fastapi import APIRouter

from tidewatch.core.contracts import HealthResponse
from tidewatch.core.settings import settings
from tidewatch.core.time import utc_now_iso

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="OK", service=settings.service_name, timestamp=utc_now_iso())
