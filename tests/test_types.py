"""
Tests for core types.
"""

from __future__ import annotations

import pytest

from dvcache.types import CacheItem, generate_id, now_ms


class TestHelpers:
    """Test ID and time helpers."""

    def test_generate_id_unique(self) -> None:
        """Test that generated IDs do not repeat."""
        ids = {generate_id() for _ in range(100)}
        assert len(ids) == 100

    def test_generate_id_prefix(self) -> None:
        """Test the optional prefix."""
        assert generate_id("item").startswith("item_")

    def test_now_ms(self) -> None:
        """Test that now_ms is integer milliseconds."""
        value = now_ms()
        assert isinstance(value, int)
        assert value > 1_600_000_000_000


class TestCacheItem:
    """Test CacheItem."""

    def test_create_without_ttl(self) -> None:
        """Test an item that never expires."""
        item = CacheItem.create("payload")
        assert item.payload == "payload"
        assert item.expiry is None
        assert item.loaded is True
        assert item.is_expired() is False

    def test_create_with_ttl(self) -> None:
        """Test expiry computed from max_age."""
        before = now_ms()
        item = CacheItem.create("payload", max_age=500)
        assert before + 500 <= item.expiry <= now_ms() + 500

    def test_fresh_ids(self) -> None:
        """Test that each item gets its own id."""
        assert CacheItem.create("a").id != CacheItem.create("a").id

    def test_is_expired_boundary(self) -> None:
        """Test that an item expires strictly after its expiry."""
        item = CacheItem(id="x", expiry=1000)
        assert item.is_expired(999) is False
        assert item.is_expired(1000) is False
        assert item.is_expired(1001) is True

    def test_to_index_entry(self) -> None:
        """Test that index entries never carry the payload."""
        assert CacheItem(id="x", payload="secret").to_index_entry() == {"id": "x"}
        assert CacheItem(id="y", payload="p", expiry=5).to_index_entry() == {
            "id": "y",
            "expiry": 5,
        }

    def test_from_index_entry(self) -> None:
        """Test rebuilding an item from its index entry."""
        item = CacheItem.from_index_entry({"id": "abc", "expiry": 42})
        assert item.id == "abc"
        assert item.expiry == 42
        assert item.loaded is False

    def test_from_legacy_index_entry(self) -> None:
        """Test the uuid/expiryTime field names."""
        item = CacheItem.from_index_entry({"uuid": "abc", "expiryTime": 42.0})
        assert item.id == "abc"
        assert item.expiry == 42

    def test_from_index_entry_ignores_payload(self) -> None:
        """Test that a stray payload field is not restored."""
        item = CacheItem.from_index_entry({"id": "abc", "data": "old payload"})
        assert item.payload is None

    @pytest.mark.parametrize(
        "entry",
        [
            "not-a-mapping",
            ["abc"],
            {},
            {"id": 5},
            {"id": ""},
            {"id": "abc", "expiry": "soon"},
            {"id": "abc", "expiry": True},
        ],
    )
    def test_from_index_entry_invalid(self, entry: object) -> None:
        """Test that malformed entries are rejected."""
        with pytest.raises(ValueError):
            CacheItem.from_index_entry(entry)  # type: ignore[arg-type]
