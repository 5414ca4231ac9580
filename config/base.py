from __future__ import annotations

from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """Settings shared by every environment. Per-mode classes override these."""

    APP_ENV: str = "local"
    SECRET_KEY: str | None = None
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Auth
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Rows returned by the backing store for a single request, at most.
    STORE_PAGE_SIZE: int = 1000

    # Scheduling / aggregation
    SERVICE_INTERVAL_DAYS: int = 30
    TREND_MONTHS: int = 6
    CATEGORY_SAMPLE_CEILING: int = 1000
    UPCOMING_MAX_ASSETS: int = 5000
    REPORT_MAX_RECORDS: int = 10000
    READ_CONCURRENCY: int = 8

    # Dashboard cache freshness window
    DASHBOARD_CACHE_TTL_SECONDS: int = 300
