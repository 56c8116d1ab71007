"""
Benchmark harness for the disk cache.

Times set/get/unset on a FileCache against a plain dict baseline so the
cost of the readiness gate and item bookkeeping is visible.
"""

from __future__ import annotations

import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable

from dvcache.cache.file_cache import FileCache

BENCH_KEY = "key"
BENCH_VALUE = "value"


@dataclass
class BenchResult:
    """Timing for a single benchmarked operation."""

    name: str
    iterations: int
    total_seconds: float

    @property
    def ops_per_second(self) -> float:
        """Operations per second, 0.0 if nothing was timed."""
        if self.total_seconds <= 0:
            return 0.0
        return self.iterations / self.total_seconds

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "name": self.name,
            "iterations": self.iterations,
            "total_seconds": self.total_seconds,
            "ops_per_second": self.ops_per_second,
        }


async def _time_async(
    name: str,
    iterations: int,
    fn: Callable[[], Awaitable[Any]],
    setup: Callable[[], Awaitable[Any]] | None = None,
) -> BenchResult:
    total = 0.0
    for _ in range(iterations):
        if setup is not None:
            await setup()
        start = time.perf_counter()
        await fn()
        total += time.perf_counter() - start
    return BenchResult(name=name, iterations=iterations, total_seconds=total)


def _time_sync(
    name: str,
    iterations: int,
    fn: Callable[[], Any],
    setup: Callable[[], Any] | None = None,
) -> BenchResult:
    total = 0.0
    for _ in range(iterations):
        if setup is not None:
            setup()
        start = time.perf_counter()
        fn()
        total += time.perf_counter() - start
    return BenchResult(name=name, iterations=iterations, total_seconds=total)


async def run_benchmarks(cache_dir: Path, iterations: int = 1000) -> list[BenchResult]:
    """Benchmark set, get and unset against a dict baseline.

    Args:
        cache_dir: Parent directory. The cache runs in a fresh
            subdirectory that is removed afterwards; nothing else under
            cache_dir is touched.
        iterations: Number of timed calls per operation.

    Returns:
        One result per operation, FileCache and dict interleaved.
    """
    if iterations < 1:
        raise ValueError("iterations must be at least 1")

    cache_dir = Path(cache_dir)
    cache_dir.mkdir(parents=True, exist_ok=True)
    scratch = Path(tempfile.mkdtemp(prefix="bench-", dir=cache_dir))

    cache = FileCache(cache_dir=scratch)
    baseline: dict[str, str] = {}
    results: list[BenchResult] = []

    results.append(
        await _time_async("FileCache.set", iterations, lambda: cache.set(BENCH_KEY, BENCH_VALUE))
    )
    results.append(
        _time_sync("dict.__setitem__", iterations, lambda: baseline.__setitem__(BENCH_KEY, BENCH_VALUE))
    )

    results.append(await _time_async("FileCache.get", iterations, lambda: cache.get(BENCH_KEY)))
    results.append(_time_sync("dict.get", iterations, lambda: baseline.get(BENCH_KEY)))

    results.append(
        await _time_async(
            "FileCache.unset",
            iterations,
            lambda: cache.unset(BENCH_KEY),
            setup=lambda: cache.set(BENCH_KEY, BENCH_VALUE),
        )
    )
    results.append(
        _time_sync(
            "dict.pop",
            iterations,
            lambda: baseline.pop(BENCH_KEY, None),
            setup=lambda: baseline.__setitem__(BENCH_KEY, BENCH_VALUE),
        )
    )

    await cache.destroy()
    return results
