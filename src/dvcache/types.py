"""
Core types for the disk cache.

This module defines:
- CacheItem: a single cached entry (id, optional payload, optional expiry)
- Helper functions for ID generation and millisecond timestamps
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Mapping

from uuid6 import uuid7


def generate_id(prefix: str = "") -> str:
    """Generate a time-ordered unique ID using UUID7.

    Args:
        prefix: Optional prefix for the ID.

    Returns:
        A unique ID string, optionally prefixed.
    """
    uid = str(uuid7())
    return f"{prefix}_{uid}" if prefix else uid


def now_ms() -> int:
    """Get the current time as integer milliseconds since the epoch."""
    return int(time.time() * 1000)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class CacheItem:
    """A single cached entry.

    The data file for an item is named after its ``id``, never its key,
    so re-keying an item never requires renaming a file.
    """

    id: str = field(default_factory=generate_id)
    payload: str | None = None
    expiry: int | None = None  # epoch ms, None = never expires

    @classmethod
    def create(cls, payload: str, max_age: int | None = None) -> CacheItem:
        """Create a new item, computing its expiry from ``max_age`` (ms)."""
        expiry = now_ms() + max_age if max_age is not None else None
        return cls(payload=payload, expiry=expiry)

    @property
    def loaded(self) -> bool:
        """Whether the payload is held in memory."""
        return self.payload is not None

    def is_expired(self, now: int | None = None) -> bool:
        """Check whether the expiry has passed at ``now`` (defaults to current time)."""
        if self.expiry is None:
            return False
        if now is None:
            now = now_ms()
        return self.expiry < now

    def to_index_entry(self) -> dict[str, Any]:
        """Metadata written to the index file. The payload is never included."""
        entry: dict[str, Any] = {"id": self.id}
        if self.expiry is not None:
            entry["expiry"] = self.expiry
        return entry

    @classmethod
    def from_index_entry(cls, entry: Mapping[str, Any]) -> CacheItem:
        """Rebuild an item (without payload) from an index entry.

        Accepts both ``{"id", "expiry"}`` and the older
        ``{"uuid", "expiryTime"}`` field names.

        Raises:
            ValueError: If the entry is malformed.
        """
        if not isinstance(entry, Mapping):
            raise ValueError(f"index entry must be an object, got {type(entry).__name__}")

        item_id = entry.get("id", entry.get("uuid"))
        if not isinstance(item_id, str) or not item_id:
            raise ValueError("index entry is missing a string id")

        expiry = entry.get("expiry", entry.get("expiryTime"))
        if expiry is not None:
            if not _is_number(expiry):
                raise ValueError(f"index entry {item_id} has a non-numeric expiry")
            expiry = int(expiry)

        return cls(id=item_id, payload=None, expiry=expiry)
