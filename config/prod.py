from __future__ import annotations

from pathlib import Path
from pydantic import model_validator
from pydantic_settings import SettingsConfigDict

from config.base import AppSettings

ROOT = Path(__file__).resolve().parents[1]
ENV_FILE = ROOT / "env" / ".env.production"


class ProdSettings(AppSettings):
    DATABASE_URL: str | None = None
    APP_ENV: str = "production"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
    )

    @model_validator(mode="after")
    def _require_deployment_values(self) -> "ProdSettings":
        # No fallbacks in production: fail at startup, not on the first request
        missing = [name for name in ("DATABASE_URL", "SECRET_KEY") if not getattr(self, name)]
        if missing:
            raise ValueError(f"Production settings missing: {', '.join(missing)}")
        return self
