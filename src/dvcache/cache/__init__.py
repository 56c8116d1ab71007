"""
Cache package for data persistence.

- base.py: CacheProtocol, the abstract async cache interface
- gate.py: ReadinessGate, which defers operations until restore completes
- file_cache.py: FileCache, the disk-backed key/value cache
"""

from dvcache.cache.base import CacheProtocol
from dvcache.cache.file_cache import FileCache
from dvcache.cache.gate import ReadinessGate

__all__ = ["CacheProtocol", "FileCache", "ReadinessGate"]
