# tidewatch/main.py
from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware

# Load <repo>/.env (main.py is <repo>/tidewatch/main.py)
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

from tidewatch.core.settings import settings
from tidewatch.core.storage import connect_sqlite, ensure_schema
from tidewatch.api import api_router

from tidewatch.services.feed import Feed
from tidewatch.services.geotag import GeotagValidator
from tidewatch.services.providers import build_default_adapters
from tidewatch.services.reports import Reports, SqliteReportStore
from tidewatch.services.synthetic import SyntheticSignalGenerator

logging.basicConfig(
    level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Tidewatch Backend", version="1.0.0")

# ── Compression (must be added before CORS) ──
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# ──────────────────────────────────────────────────────────────
# Shared, read-only after startup
# ──────────────────────────────────────────────────────────────

# Reports DB (rw): SQLite, local to the instance
_reports_conn = connect_sqlite(settings.reports_db_path)
ensure_schema(_reports_conn)

_adapters = build_default_adapters(settings)
_report_store = SqliteReportStore(_reports_conn)

_enabled = [a.provider_id for a in _adapters if a.enabled]
logger.info("[app] providers enabled: %s", ", ".join(_enabled) or "none (synthetic fallback only)")

# ──────────────────────────────────────────────────────────────
# Dependency providers
# ──────────────────────────────────────────────────────────────

def provide_feed_service() -> Feed:
    return Feed(
        adapters=_adapters,
        generator=SyntheticSignalGenerator() if settings.synthetic_enabled else None,
        max_items=settings.feed_max_items,
        timeout_s=settings.providers_timeout_s,
    )


def provide_reports_service() -> Reports:
    return Reports(
        validator=GeotagValidator(trust_radius_km=settings.geotag_trust_radius_km),
        store=_report_store,
    )


# ──────────────────────────────────────────────────────────────
# Dependency overrides
# ──────────────────────────────────────────────────────────────

from tidewatch.api import feed as feed_api
from tidewatch.api import reports as reports_api

app.dependency_overrides[feed_api.get_feed_service] = provide_feed_service
app.dependency_overrides[reports_api.get_reports_service] = provide_reports_service

# Routes
app.include_router(api_router)

# ──────────────────────────────────────────────────────────────
# Shutdown
# ──────────────────────────────────────────────────────────────

@app.on_event("shutdown")
def shutdown():
    logger.info("[app] Shutting down, closing connections")
    try:
        _reports_conn.close()
    except Exception as e:
        logger.warning("[app] Error closing reports DB: %s", e)
