"""
Abstract interface shared by cache backends.

Reads and writes are coroutines; has() is a synchronous check against
the in-memory key set.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class CacheProtocol(ABC):
    """Abstract interface for cache implementations."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Get a value from the cache, or None on a miss."""
        ...

    @abstractmethod
    async def set(self, key: str, value: str, max_age: int | None = None) -> None:
        """Set a value in the cache."""
        ...

    @abstractmethod
    async def unset(self, key: str) -> None:
        """Remove a value from the cache. Missing keys are ignored."""
        ...

    @abstractmethod
    def has(self, key: str) -> bool:
        """Check if a key exists in the cache."""
        ...
