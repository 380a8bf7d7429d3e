from __future__ import annotations

from fastapi import APIRouter

from .health import router as health_router
from .feed import router as feed_router
from .reports import router as reports_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(feed_router)
api_router.include_router(reports_router)
