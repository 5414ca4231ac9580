"""
Settings for the maintenance tracker, selected by deployment mode.

``MODE`` (or ``APP_ENV``) picks the settings class; each class reads its own
``env/.env.<mode>`` file when present. Tests set ``MODE=test`` before the
first import.
"""
from __future__ import annotations

import os

from .base import AppSettings
from .local import LocalSettings
from .stage import StageSettings
from .prod import ProdSettings
from .test import TestSettings


_MAPPING: dict[str, type[AppSettings]] = {
    "local": LocalSettings,
    "dev": LocalSettings,
    "stage": StageSettings,
    "staging": StageSettings,
    "prod": ProdSettings,
    "production": ProdSettings,
    "test": TestSettings,
}


def resolve_mode(environ=os.environ) -> str:
    return (environ.get("MODE") or environ.get("APP_ENV") or "local").lower()


def settings_class_for(mode: str) -> type[AppSettings]:
    try:
        return _MAPPING[mode]
    except KeyError:
        raise ValueError(
            f"Unknown MODE {mode!r}; expected one of {', '.join(sorted(_MAPPING))}"
        ) from None


MODE = resolve_mode()
SettingsClass = settings_class_for(MODE)
settings = SettingsClass()

__all__ = ["settings", "SettingsClass", "MODE", "AppSettings"]
