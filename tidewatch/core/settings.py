from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    # Service
    service_name: str = Field(default="Tidewatch Ocean Hazard API", alias="SERVICE_NAME")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    cors_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000,http://localhost:5000",
        alias="CORS_ORIGINS",
    )

    # Paths
    reports_db_path: str = Field(default="tidewatch/data/tidewatch_reports.db", alias="REPORTS_DB_PATH")

    # ──────────────────────────────────────────────────────────────
    # Feed (aggregation engine)
    # ──────────────────────────────────────────────────────────────

    feed_default_radius_km: float = Field(default=100.0, alias="FEED_DEFAULT_RADIUS_KM")
    feed_max_items: int = Field(default=50, alias="FEED_MAX_ITEMS")
    providers_timeout_s: float = Field(default=10.0, alias="PROVIDERS_TIMEOUT_S")
    providers_max_results: int = Field(default=50, alias="PROVIDERS_MAX_RESULTS")

    # Synthetic fallback
    synthetic_enabled: bool = Field(default=True, alias="SYNTHETIC_ENABLED")
    synthetic_jitter_deg: float = Field(default=0.2, alias="SYNTHETIC_JITTER_DEG")
    synthetic_max_age_hours: float = Field(default=6.0, alias="SYNTHETIC_MAX_AGE_HOURS")

    # ──────────────────────────────────────────────────────────────
    # Twitter / X: recent search v2
    # Auth: Authorization: Bearer {token}
    # ──────────────────────────────────────────────────────────────

    twitter_enabled: bool = Field(default=True, alias="TWITTER_ENABLED")
    twitter_bearer_token: str = Field(default="", alias="TWITTER_BEARER_TOKEN")
    twitter_search_url: str = Field(
        default="https://api.twitter.com/2/tweets/search/recent",
        alias="TWITTER_SEARCH_URL",
    )
    # point_radius availability depends on the access level of the token
    twitter_use_point_radius: bool = Field(default=True, alias="TWITTER_USE_POINT_RADIUS")

    # ──────────────────────────────────────────────────────────────
    # Meta Graph API: Instagram hashtag search + Facebook page posts
    # ──────────────────────────────────────────────────────────────

    meta_access_token: str = Field(default="", alias="META_ACCESS_TOKEN")
    meta_graph_base_url: str = Field(default="https://graph.facebook.com", alias="META_GRAPH_BASE_URL")
    meta_graph_version: str = Field(default="v18.0", alias="META_GRAPH_VERSION")

    instagram_enabled: bool = Field(default=True, alias="INSTAGRAM_ENABLED")
    ig_business_account_id: str = Field(default="", alias="IG_BUSINESS_ACCOUNT_ID")
    instagram_page_limit: int = Field(default=25, alias="INSTAGRAM_PAGE_LIMIT")
    instagram_max_pages: int = Field(default=2, alias="INSTAGRAM_MAX_PAGES")

    facebook_enabled: bool = Field(default=True, alias="FACEBOOK_ENABLED")
    # Comma-separated page ids; public search is not available on Graph
    fb_page_ids: str = Field(default="", alias="FB_PAGE_IDS")
    facebook_page_limit: int = Field(default=25, alias="FACEBOOK_PAGE_LIMIT")

    # ──────────────────────────────────────────────────────────────
    # Crowd reports: geotag validation + uploads
    # ──────────────────────────────────────────────────────────────

    geotag_trust_radius_km: float = Field(default=1.0, alias="GEOTAG_TRUST_RADIUS_KM")
    upload_allowed_mime: str = Field(default="image/jpeg,image/jpg", alias="UPLOAD_ALLOWED_MIME")
    upload_max_mb: float = Field(default=10.0, alias="UPLOAD_MAX_MB")

    # ──────────────────────────────────────────────────────────────
    # Live location acquisition tiers (client capability)
    # ──────────────────────────────────────────────────────────────

    location_high_accuracy_timeout_ms: int = Field(default=15000, alias="LOCATION_HIGH_ACCURACY_TIMEOUT_MS")
    location_low_accuracy_timeout_ms: int = Field(default=20000, alias="LOCATION_LOW_ACCURACY_TIMEOUT_MS")
    location_low_accuracy_max_age_ms: int = Field(default=60000, alias="LOCATION_LOW_ACCURACY_MAX_AGE_MS")
    location_grace_ms: int = Field(default=500, alias="LOCATION_GRACE_MS")

    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in (self.cors_origins or "").split(",") if o.strip()]

    def fb_page_id_list(self) -> list[str]:
        return [p.strip() for p in (self.fb_page_ids or "").split(",") if p.strip()]

    def upload_allowed_mime_set(self) -> set[str]:
        return {m.strip().lower() for m in (self.upload_allowed_mime or "").split(",") if m.strip()}


settings = Settings()
