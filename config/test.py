from __future__ import annotations

from pydantic_settings import SettingsConfigDict

from config.base import AppSettings


class TestSettings(AppSettings):
    # Tests build their own engine per case; this one only backs module import.
    DATABASE_URL: str = "sqlite+aiosqlite:///:memory:"
    APP_ENV: str = "test"
    SECRET_KEY: str | None = "test-secret-key"
    DEBUG: bool = False
    LOG_LEVEL: str = "WARNING"

    model_config = SettingsConfigDict(env_file=None)
