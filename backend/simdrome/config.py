"""Runtime settings — read from the environment (and .env) once per process."""

from __future__ import annotations

import logging
import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_BACKEND_URL = "http://localhost:3000"
DEFAULT_STREAM_PATH = "/api/v1/simulate"
DEFAULT_CATALOG_PATH = "/api/v1/satellites"

# Upper bound on objects handed to the renderer at once
DEFAULT_MAX_VISIBLE = 5000


class Settings(BaseModel):
    backend_url: str = DEFAULT_BACKEND_URL
    stream_path: str = DEFAULT_STREAM_PATH
    catalog_path: str = DEFAULT_CATALOG_PATH
    max_visible: int = Field(default=DEFAULT_MAX_VISIBLE, ge=0)
    display_unit: Literal["m", "km"] = "m"
    connect_timeout: float = Field(default=30.0, gt=0)
    log_level: str = "INFO"

    @property
    def stream_url(self) -> str:
        return self.backend_url.rstrip("/") + self.stream_path

    @property
    def catalog_url(self) -> str:
        return self.backend_url.rstrip("/") + self.catalog_path


def load_settings() -> Settings:
    """Build settings from SIMDROME_* environment variables."""
    load_dotenv()
    env = {
        "backend_url": os.getenv("SIMDROME_BACKEND_URL"),
        "stream_path": os.getenv("SIMDROME_STREAM_PATH"),
        "catalog_path": os.getenv("SIMDROME_CATALOG_PATH"),
        "max_visible": os.getenv("SIMDROME_MAX_VISIBLE"),
        "display_unit": os.getenv("SIMDROME_DISPLAY_UNIT"),
        "connect_timeout": os.getenv("SIMDROME_CONNECT_TIMEOUT"),
        "log_level": os.getenv("SIMDROME_LOG_LEVEL"),
    }
    settings = Settings(**{k: v for k, v in env.items() if v is not None})
    logger.debug("Loaded settings: %s", settings.model_dump())
    return settings


# Singleton
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
