"""Centralized dumpview configuration using Pydantic Settings (v2).

This module exposes a cached `load_settings()` loader that reads from:
- Real environment variables (highest precedence)
- `.env` files at the working directory: .env, .env.local, .env.dev/.env.test/.env.prod

The values here are *defaults* for :class:`dumpview.core.contracts.options.DumpOptions`;
every dump call may still override them explicitly.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Typed configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `DUMPVIEW_ENV`. In ``prod`` the
        :func:`dumpview.dump` helper becomes a no-op.
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`.
    max_depth, max_length, max_items : int
        Default describe bounds (`DUMPVIEW_MAX_DEPTH`, `DUMPVIEW_MAX_LENGTH`,
        `DUMPVIEW_MAX_ITEMS`). Bounds are always finite.
    editor : str
        Editor URI template with ``%file`` and ``%line`` placeholders; an empty
        string disables editor links. Maps from `DUMPVIEW_EDITOR`.
    keys_to_hide : str
        Comma-separated list of sensitive keys (`DUMPVIEW_KEYS_TO_HIDE`); read
        through :attr:`hidden_keys`.
    show_location : bool
        Whether `dump()` shows where it was called (`DUMPVIEW_SHOW_LOCATION`).
    """

    environment: EnvName = Field(default="dev", alias="DUMPVIEW_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")

    max_depth: int = Field(default=7, ge=1, alias="DUMPVIEW_MAX_DEPTH")
    max_length: int = Field(default=150, ge=1, alias="DUMPVIEW_MAX_LENGTH")
    max_items: int = Field(default=100, ge=1, alias="DUMPVIEW_MAX_ITEMS")
    editor: str = Field(
        default="editor://open/?file=%file&line=%line", alias="DUMPVIEW_EDITOR"
    )
    keys_to_hide: str = Field(default="", alias="DUMPVIEW_KEYS_TO_HIDE")
    show_location: bool = Field(default=False, alias="DUMPVIEW_SHOW_LOCATION")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.dev", ".env.test", ".env.prod"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def hidden_keys(self) -> list[str]:
        """Return `keys_to_hide` split on commas, blanks dropped."""
        return [k.strip() for k in self.keys_to_hide.split(",") if k.strip()]

    @property
    def is_dev(self) -> bool:
        """Return True if running in the development environment."""
        return self.environment == "dev"

    @property
    def is_prod(self) -> bool:
        """Return True if running in the production environment."""
        return self.environment == "prod"

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    Tests force a rebuild via `load_settings.cache_clear()` after mutating
    `os.environ`.
    """
    os.environ.setdefault("DUMPVIEW_ENV", "dev")
    return Settings()


def get_logger(name: str = "dumpview") -> logging.Logger:
    """Return a logger configured to the current `LOG_LEVEL`."""
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


__all__ = ["Settings", "load_settings", "get_logger"]
