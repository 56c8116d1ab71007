"""
Pytest configuration and fixtures for dvcache tests.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

from dvcache.cache.file_cache import FileCache
from dvcache.config import clear_settings_cache

SAMPLE_DATA = {
    "as-string": "some plain string content",
    "keep-in-memory": "a value that stays loaded",
    "multi-line": "first line\nsecond line\n\tindented third\n",
    "unicode": "naïve café ☕ 日本語",
    "empty": "",
    "key with spaces/and slashes": "keys are never used as file names",
}


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def cache_dir(temp_dir: Path) -> Path:
    """Cache directory inside the temp dir. Not created up front."""
    return temp_dir / "cache"


@pytest.fixture
def sample_data() -> dict[str, str]:
    """Canned key/value pairs."""
    return dict(SAMPLE_DATA)


@pytest.fixture
def cache(cache_dir: Path) -> FileCache:
    """A fresh cache over cache_dir."""
    return FileCache(cache_dir=cache_dir)


@pytest.fixture
async def filled_cache(cache: FileCache, sample_data: dict[str, str]) -> FileCache:
    """A cache holding the sample data in memory."""
    for key, value in sample_data.items():
        await cache.set(key, value)
    return cache


@pytest.fixture
async def saved_cache_dir(filled_cache: FileCache, cache_dir: Path) -> Path:
    """A cache directory the sample data has been saved to."""
    await filled_cache.save()
    return cache_dir


@pytest.fixture
def mock_env_vars(temp_dir: Path) -> Generator[dict[str, str], None, None]:
    """Provide DVCACHE_* environment variables for testing."""
    env_vars = {
        "DVCACHE_CACHE_DIR": str(temp_dir / "env-cache"),
        "DVCACHE_MAX_AGE": "60000",
        "DVCACHE_KEY_FILE_NAME": "index.json",
        "DVCACHE_WAIT_FOR_RESTORE": "true",
        "DVCACHE_LOG_LEVEL": "DEBUG",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        clear_settings_cache()
        yield env_vars


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
