"""
dvcache: a persistent, disk-backed key/value cache for string payloads.
"""

from dvcache.cache import CacheProtocol, FileCache, ReadinessGate
from dvcache.config import CacheOptions, Settings, get_settings
from dvcache.exceptions import (
    CacheError,
    DestroyError,
    InvalidKeyError,
    InvalidValueError,
    ReadItemDataError,
    RefreshError,
    RestoreError,
    SaveError,
    UnsetError,
)
from dvcache.types import CacheItem

__version__ = "0.1.0"

Cache = FileCache

__all__ = [
    "Cache",
    "CacheError",
    "CacheItem",
    "CacheOptions",
    "CacheProtocol",
    "DestroyError",
    "FileCache",
    "InvalidKeyError",
    "InvalidValueError",
    "ReadItemDataError",
    "ReadinessGate",
    "RefreshError",
    "RestoreError",
    "SaveError",
    "Settings",
    "UnsetError",
    "__version__",
    "get_settings",
]
