"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/ekerja.db"
    chat_encryption_key: str = ""
    resend_api_key: str = ""
    mail_from: str = "E-Kerja <noreply@ekerja.id>"
    app_url: str = "http://localhost:8000"
    log_level: str = "INFO"

    session_max_age_hours: int = 2
    review_edit_window_days: int = 7
    default_access_hours: int = 24
    max_access_hours: int = 168

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Build Settings with YAML values as defaults; env vars take precedence."""
    y = _load_yaml()
    flat: dict = {}
    for section in ("database", "chat", "mail", "auth", "reviews"):
        flat.update(y.get(section, {}) or {})
    flat.update({k: v for k, v in y.items() if not isinstance(v, dict)})
    if "url" in flat:
        flat.setdefault("database_url", flat.pop("url"))
    known = set(Settings.model_fields)
    defaults = {k: v for k, v in flat.items() if k in known}
    env_overrides = Settings().model_dump(exclude_unset=True)
    defaults.update(env_overrides)
    return Settings(**defaults)
