"""Centralized configuration using Pydantic Settings (v2).

This module exposes a single, cached `settings` instance that reads from:
- Real environment variables (highest precedence)
- `.env` files in the working directory: .env, .env.local, .env.dev/.env.test/.env.prod

It also provides `get_logger()`, the entry point for chanlog's *internal*
diagnostics. Channel output never travels through the standard `logging`
module; only the library's own bookkeeping (registry events, snapshot paths,
last-resort fallbacks) does.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Typed configuration loaded from env and `.env` files.

    Attributes
    ----------
    log_level : LogLevelName
        Level of the internal diagnostic logger; maps from `LOG_LEVEL`.
    verbose : bool
        When true, I/O failure diagnostics carry the exception detail.
        Maps from `CHANLOG_VERBOSE`.
    snapshot_dir : Path
        Default directory for snapshot files; maps from `CHANLOG_SNAPSHOT_DIR`.
    """

    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")
    verbose: bool = Field(default=False, alias="CHANLOG_VERBOSE")
    snapshot_dir: Path = Field(default=Path("logs"), alias="CHANLOG_SNAPSHOT_DIR")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.dev", ".env.test", ".env.prod"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)

    def describe_failure(self, exc: BaseException) -> str:
        """Return the detail suffix appended to I/O failure diagnostics.

        Empty unless `verbose` is enabled, in which case it is ``": <exc>"``.
        """
        return f": {exc}" if self.verbose else ""


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    We keep this behind an LRU cache so tests can force a rebuild via
    `load_settings.cache_clear()` after mutating `os.environ`.
    """
    return Settings()


# Ready-to-use instance (import-time read of env / .env files).
settings: Settings = load_settings()


def get_logger(name: str = "chanlog") -> logging.Logger:
    """Return a process-global logger configured to the current `LOG_LEVEL`."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger


__all__ = ["Settings", "get_logger", "load_settings", "settings"]
