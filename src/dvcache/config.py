"""
Configuration management using pydantic and pydantic-settings.

CacheOptions is the explicit configuration object a FileCache is built
from. Settings loads the same fields (plus logging) from environment
variables and .env files for the CLI and other callers.
"""

from __future__ import annotations

import os
import sys
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "dvcache"
DEFAULT_KEY_FILE_NAME = "keys"
DEFAULT_MAX_AGE: int | None = None
DEFAULT_WAIT_FOR_RESTORE = False


def default_cache_dir(app_name: str = APP_NAME) -> Path:
    """Return the platform's per-user application cache directory."""
    if sys.platform == "win32":
        base = os.environ.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
        return Path(base) / app_name / "Cache"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Caches" / app_name
    xdg = os.environ.get("XDG_CACHE_HOME")
    base_dir = Path(xdg) if xdg else Path.home() / ".cache"
    return base_dir / app_name


def _validate_key_file_name(v: str) -> str:
    if not v or v in (".", ".."):
        raise ValueError("key_file_name must be a non-empty file name")
    if "/" in v or "\\" in v:
        raise ValueError("key_file_name must not contain a path separator")
    return v


class CacheOptions(BaseModel):
    """Immutable configuration for a single FileCache.

    Attributes:
        cache_dir: Directory holding the index file and one file per item.
        max_age: Default time-to-live for new items, in milliseconds.
            None means items never expire.
        key_file_name: Name of the index file inside cache_dir.
        wait_for_restore: Defer operations until restore() has completed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    cache_dir: Path = Field(default_factory=default_cache_dir)
    max_age: int | None = Field(default=DEFAULT_MAX_AGE, ge=0)
    key_file_name: str = DEFAULT_KEY_FILE_NAME
    wait_for_restore: bool = DEFAULT_WAIT_FOR_RESTORE

    @field_validator("key_file_name")
    @classmethod
    def validate_key_file_name(cls, v: str) -> str:
        """Ensure the index file name stays inside cache_dir."""
        return _validate_key_file_name(v)

    @property
    def key_file_path(self) -> Path:
        """Full path of the index file."""
        return self.cache_dir / self.key_file_name

    def merge(self, partial: Mapping[str, Any] | None = None, **fields: Any) -> CacheOptions:
        """Return new options with the given fields laid over these ones.

        Raises:
            pydantic.ValidationError: If a merged value is invalid.
        """
        data = self.model_dump()
        if partial:
            data.update(partial)
        data.update(fields)
        return CacheOptions.model_validate(data)


class Settings(BaseSettings):
    """Settings loaded from DVCACHE_* environment variables.

    Optional:
        DVCACHE_CACHE_DIR: Cache directory (default: platform cache path)
        DVCACHE_MAX_AGE: Default item TTL in milliseconds
        DVCACHE_KEY_FILE_NAME: Index file name
        DVCACHE_WAIT_FOR_RESTORE: Queue operations until restore completes
        DVCACHE_LOG_LEVEL: Logging level
        DVCACHE_LOG_FILE: Optional JSON-lines log file
    """

    model_config = SettingsConfigDict(
        env_prefix="DVCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    CACHE_DIR: Path | None = Field(default=None, description="Cache directory")
    MAX_AGE: int | None = Field(
        default=DEFAULT_MAX_AGE, ge=0, description="Default item TTL in milliseconds"
    )
    KEY_FILE_NAME: str = Field(
        default=DEFAULT_KEY_FILE_NAME, description="Index file name"
    )
    WAIT_FOR_RESTORE: bool = Field(
        default=DEFAULT_WAIT_FOR_RESTORE,
        description="Queue operations until restore completes",
    )

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING", description="Logging level"
    )
    LOG_FILE: Path | None = Field(default=None, description="JSON-lines log file")

    @field_validator("KEY_FILE_NAME")
    @classmethod
    def validate_key_file_name(cls, v: str) -> str:
        """Ensure the index file name stays inside the cache directory."""
        return _validate_key_file_name(v)

    @property
    def cache_dir(self) -> Path:
        """Configured cache directory, or the platform default."""
        return self.CACHE_DIR if self.CACHE_DIR is not None else default_cache_dir()

    def cache_options(self, **overrides: Any) -> CacheOptions:
        """Build CacheOptions from these settings.

        Args:
            **overrides: Fields that take precedence over the environment.
                None values are ignored.
        """
        options = CacheOptions(
            cache_dir=self.cache_dir,
            max_age=self.MAX_AGE,
            key_file_name=self.KEY_FILE_NAME,
            wait_for_restore=self.WAIT_FOR_RESTORE,
        )
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return options.merge(overrides) if overrides else options

    def display(self) -> dict[str, str | int | bool | None]:
        """Return effective settings for display."""
        return {
            "CACHE_DIR": str(self.cache_dir),
            "MAX_AGE": self.MAX_AGE,
            "KEY_FILE_NAME": self.KEY_FILE_NAME,
            "WAIT_FOR_RESTORE": self.WAIT_FOR_RESTORE,
            "LOG_LEVEL": self.LOG_LEVEL,
            "LOG_FILE": str(self.LOG_FILE) if self.LOG_FILE else None,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
