"""
Disk-backed key/value cache for string payloads.

Layout under the cache directory:
- <key_file_name>: JSON index mapping key -> {"id": ..., "expiry": ...}
- <id>: one file per item holding its raw UTF-8 payload

Items live in memory once set. Nothing touches the disk until save(),
and restore() loads only the index; payloads are read lazily by get().
Expired items are removed only when refresh() sweeps them.
"""

from __future__ import annotations

import asyncio
import functools
import shutil
from concurrent.futures import ThreadPoolExecutor
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Any, Callable, Mapping, TypeVar

import orjson

from dvcache.cache.base import CacheProtocol
from dvcache.cache.gate import ReadinessGate
from dvcache.config import CacheOptions
from dvcache.exceptions import (
    DestroyError,
    InvalidKeyError,
    InvalidValueError,
    ReadItemDataError,
    RefreshError,
    RestoreError,
    SaveError,
    UnsetError,
)
from dvcache.logging import get_logger, log_context
from dvcache.types import CacheItem, now_ms

logger = get_logger(__name__)

T = TypeVar("T")

# Thread pool for blocking filesystem calls
_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="dvcache-io")


async def _run_io(func: Callable[..., T], *args: Any) -> T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(_executor, functools.partial(func, *args))


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _write_text(path: Path, data: str) -> None:
    path.write_text(data, encoding="utf-8")


def _write_bytes(path: Path, data: bytes) -> None:
    path.write_bytes(data)


def _make_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def parse_index(raw: str | bytes) -> dict[str, CacheItem]:
    """Parse index file contents into items without payloads.

    Empty contents are an empty index.

    Raises:
        ValueError: If the contents are not a valid index (orjson's
            JSONDecodeError is a ValueError).
    """
    if not raw.strip():
        return {}
    data = orjson.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"index must be a JSON object, got {type(data).__name__}")
    return {key: CacheItem.from_index_entry(entry) for key, entry in data.items()}


def dump_index(items: Mapping[str, CacheItem]) -> bytes:
    """Serialize item metadata (never payloads) for the index file."""
    return orjson.dumps({key: item.to_index_entry() for key, item in items.items()})


class FileCache(CacheProtocol):
    """Persistent key/value cache backed by a directory of files.

    With ``wait_for_restore`` enabled, every operation other than has()
    and the introspection helpers is held back until restore() has
    completed, then released in the order it was issued.

    Example:
        cache = FileCache(cache_dir=Path("/tmp/my-cache"), wait_for_restore=True)
        await cache.restore()
        await cache.set("greeting", "hello", max_age=60_000)
        await cache.save()
    """

    def __init__(self, options: CacheOptions | None = None, **overrides: Any) -> None:
        """Initialize the cache.

        Args:
            options: Full configuration. Library defaults when omitted.
            **overrides: Individual CacheOptions fields laid over ``options``.
        """
        self._options = options if options is not None else CacheOptions()
        if overrides:
            self._options = self._options.merge(overrides)
        self._items: dict[str, CacheItem] = {}
        self._gate = ReadinessGate()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(cache_dir={str(self._options.cache_dir)!r}, "
            f"items={len(self._items)}, ready={self._gate.ready})"
        )

    def __len__(self) -> int:
        return len(self._items)

    # ------------------------------------------------------------------
    # Configuration and introspection
    # ------------------------------------------------------------------

    def configure(
        self,
        options: CacheOptions | Mapping[str, Any] | None = None,
        **partial: Any,
    ) -> FileCache:
        """Merge new options over the current ones.

        Fields not supplied keep their current value. A CacheOptions
        argument contributes only the fields it was explicitly built with.

        Returns:
            The cache itself, for chaining.

        Raises:
            pydantic.ValidationError: If a merged value is invalid.
        """
        if isinstance(options, CacheOptions):
            options = options.model_dump(exclude_unset=True)
        self._options = self._options.merge(options, **partial)
        return self

    def get_configurations(self) -> CacheOptions:
        """Return the current options snapshot."""
        return self._options

    @property
    def options(self) -> CacheOptions:
        """Current options."""
        return self._options

    @property
    def ready(self) -> bool:
        """Whether a restore has completed."""
        return self._gate.ready

    @property
    def pending(self) -> int:
        """Number of operations waiting for restore to complete."""
        return self._gate.pending_count

    def has(self, key: str) -> bool:
        """Check membership in memory, without waiting for restore."""
        return isinstance(key, str) and key in self._items

    def keys(self) -> list[str]:
        """Return the keys currently in memory."""
        return list(self._items)

    def item(self, key: str) -> CacheItem | None:
        """Return the item held for ``key``, if any."""
        return self._items.get(key) if isinstance(key, str) else None

    def _data_path(self, item: CacheItem) -> Path:
        return self._options.cache_dir / item.id

    def _context(self, operation: str) -> AbstractContextManager[None]:
        return log_context(cache_dir=self._options.cache_dir, operation=operation)

    async def _when_ready(self) -> None:
        await self._gate.wait(self._options.wait_for_restore)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def restore(self) -> int:
        """Load the index file into memory and open the readiness gate.

        A missing index file is an empty cache. Payloads are not loaded;
        get() reads them from disk on first access.

        Returns:
            Number of items restored.

        Raises:
            RestoreError: If the index file cannot be read or parsed.
                The in-memory items are left unchanged.
        """
        path = self._options.key_file_path
        with self._context("restore"):
            try:
                raw = await _run_io(_read_text, path)
            except FileNotFoundError:
                logger.debug("No index file, starting empty", path=str(path))
                raw = ""
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Failed to read index file", path=str(path), error=str(e))
                raise RestoreError(context={"path": str(path), "error": str(e)}) from e

            try:
                items = parse_index(raw)
            except ValueError as e:
                logger.warning("Index file is malformed", path=str(path), error=str(e))
                raise RestoreError(context={"path": str(path), "error": str(e)}) from e

            self._items = items
            logger.info("Cache restored", items=len(items))

        # Queued operations resume only after our caller yields
        released = self._gate.open()
        if released:
            logger.debug("Released queued operations", count=released)
        return len(items)

    async def save(self) -> int:
        """Write loaded payloads and the index file to the cache directory.

        Data files are written one at a time; a failed write is recorded
        and the save carries on. The save is not atomic.

        Returns:
            Number of data files written.

        Raises:
            SaveError: If any directory, data file or index write failed.
        """
        await self._when_ready()
        cache_dir = self._options.cache_dir
        failures: list[Exception] = []
        written = 0

        with self._context("save"):
            try:
                await _run_io(_make_dir, cache_dir)
            except OSError as e:
                logger.warning("Failed to create cache directory", error=str(e))
                failures.append(e)

            for key, item in list(self._items.items()):
                payload = item.payload
                if payload is None:
                    continue
                path = self._data_path(item)
                try:
                    await _run_io(_write_text, path, payload)
                except OSError as e:
                    logger.warning("Failed to write item data", key=key, path=str(path), error=str(e))
                    failures.append(e)
                    continue
                written += 1

            index_path = self._options.key_file_path
            try:
                await _run_io(_write_bytes, index_path, dump_index(self._items))
            except OSError as e:
                logger.warning("Failed to write index file", path=str(index_path), error=str(e))
                failures.append(e)

            if failures:
                raise SaveError(
                    context={"cache_dir": str(cache_dir), "written": written},
                    failures=failures,
                ) from failures[0]

            logger.info("Cache saved", items=len(self._items), written=written)
        return written

    # ------------------------------------------------------------------
    # Item operations
    # ------------------------------------------------------------------

    async def set(self, key: str, value: str, max_age: int | None = None) -> None:
        """Store ``value`` under ``key`` in memory.

        A TTL is only applied when the item is first created. Setting an
        existing key replaces its payload and keeps its expiry.

        Args:
            key: Cache key.
            value: String payload.
            max_age: TTL in milliseconds for a new item. Falls back to the
                configured default.

        Raises:
            InvalidKeyError: If key is not a string.
            InvalidValueError: If value is not a string.
        """
        await self._when_ready()
        if not isinstance(key, str):
            raise InvalidKeyError(context={"key_type": type(key).__name__})
        if not isinstance(value, str):
            raise InvalidValueError(context={"key": key, "value_type": type(value).__name__})

        item = self._items.get(key)
        if item is not None:
            item.payload = value
            return

        ttl = max_age if max_age is not None else self._options.max_age
        self._items[key] = CacheItem.create(value, ttl)
        logger.debug("Item created", key=key, max_age=ttl)

    async def get(self, key: str) -> str | None:
        """Return the value for ``key``, or None on a miss.

        Raises:
            InvalidKeyError: If key is not a string.
            ReadItemDataError: If the item's data file cannot be read.
        """
        await self._when_ready()
        if not isinstance(key, str):
            raise InvalidKeyError(context={"key_type": type(key).__name__})

        item = self._items.get(key)
        if item is None:
            return None
        if item.payload is not None:
            return item.payload

        path = self._data_path(item)
        with self._context("get"):
            try:
                data = await _run_io(_read_text, path)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Failed to read item data", key=key, path=str(path), error=str(e))
                raise ReadItemDataError(context={"key": key, "path": str(path)}) from e

        # A set() may have landed while the file was being read
        if item.payload is None:
            item.payload = data
        return item.payload

    async def unset(self, key: str) -> None:
        """Remove ``key`` and its data file. Missing keys are a no-op.

        Raises:
            UnsetError: If the data file exists but cannot be removed.
        """
        await self._when_ready()
        if not self.has(key):
            return
        with self._context("unset"):
            await self._remove(key, self._items[key])

    async def _remove(self, key: str, item: CacheItem) -> None:
        path = self._data_path(item)
        try:
            await _run_io(path.unlink)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to remove item data", key=key, path=str(path), error=str(e))
            raise UnsetError(context={"key": key, "path": str(path)}) from e

        if self._items.get(key) is item:
            del self._items[key]
        logger.debug("Item removed", key=key)

    async def refresh(self) -> list[str]:
        """Remove every item whose expiry has passed.

        Items are removed one at a time. A failed removal is recorded and
        the sweep continues through the remaining keys.

        Returns:
            The keys that were removed.

        Raises:
            RefreshError: If any expired item could not be removed.
        """
        await self._when_ready()
        now = now_ms()
        removed: list[str] = []
        failures: list[Exception] = []

        with self._context("refresh"):
            for key in list(self._items):
                item = self._items.get(key)
                if item is None or not item.is_expired(now):
                    continue
                try:
                    await self._remove(key, item)
                except UnsetError as e:
                    failures.append(e)
                    continue
                removed.append(key)

            if failures:
                raise RefreshError(context={"removed": len(removed)}, failures=failures)

            logger.info("Cache refreshed", removed=len(removed), remaining=len(self._items))
        return removed

    async def destroy(self) -> None:
        """Drop every item and remove the cache directory tree.

        The cache stays usable afterwards.

        Raises:
            DestroyError: If the directory cannot be removed.
        """
        await self._when_ready()
        cache_dir = self._options.cache_dir

        with self._context("destroy"):
            self._items.clear()
            try:
                await _run_io(shutil.rmtree, cache_dir)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("Failed to remove cache directory", error=str(e))
                raise DestroyError(context={"cache_dir": str(cache_dir)}) from e

            logger.info("Cache destroyed")
