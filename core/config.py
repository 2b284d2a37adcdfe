"""Process-wide configuration.

Settings are read from the environment once, at startup, and passed around
as an immutable value. Nothing mutates them at runtime.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional, Tuple

from .providers.google_provider import DEFAULT_BASE_URL, DEFAULT_MODEL

# Value shipped in .env templates; treated exactly like a missing key.
PLACEHOLDER_API_KEY = "REPLACE_ME"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_MODEL
    gemini_base_url: str = DEFAULT_BASE_URL
    db_path: str = "consensus.db"
    cors_origins: Tuple[str, ...] = field(default=("http://localhost:3000",))
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.environ.get("CORS_ORIGINS", "http://localhost:3000")
        return cls(
            gemini_api_key=os.environ.get("GEMINI_API_KEY", "").strip(),
            gemini_model=os.environ.get("GEMINI_MODEL", DEFAULT_MODEL),
            gemini_base_url=os.environ.get("GEMINI_BASE_URL", DEFAULT_BASE_URL),
            db_path=os.environ.get("CONSENSUS_DB_PATH", "consensus.db"),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
        )

    @property
    def gemini_configured(self) -> bool:
        return bool(self.gemini_api_key) and self.gemini_api_key != PLACEHOLDER_API_KEY


@dataclass(frozen=True)
class ConfigurationStatus:
    configured: bool
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        out: dict = {"configured": self.configured}
        if self.reason:
            out["reason"] = self.reason
        return out


def configuration_status(settings: Settings) -> ConfigurationStatus:
    """Report whether a usable generation credential is present."""
    if not settings.gemini_configured:
        return ConfigurationStatus(
            configured=False,
            reason="GEMINI_API_KEY missing or not configured",
        )
    return ConfigurationStatus(configured=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for this process, loaded on first use."""
    return Settings.from_env()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
