"""
CLI for the disk cache.

Commands:
    dvcache set KEY VALUE - Store a value
    dvcache get KEY - Print a value
    dvcache unset KEY - Remove a value
    dvcache keys - List cached keys
    dvcache refresh - Remove expired items
    dvcache destroy - Remove the whole cache directory
    dvcache config - Show current configuration
    dvcache bench - Benchmark cache operations
    dvcache version - Print version
"""

from __future__ import annotations

import asyncio
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Any, Coroutine, Optional, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from dvcache import __version__
from dvcache.bench import run_benchmarks
from dvcache.cache.file_cache import FileCache
from dvcache.config import Settings, clear_settings_cache, get_settings
from dvcache.exceptions import CacheError
from dvcache.logging import setup_logging

T = TypeVar("T")

app = typer.Typer(
    name="dvcache",
    help="Persistent disk-backed key/value cache",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)

CacheDirOption = Annotated[
    Optional[Path],
    typer.Option("--cache-dir", "-d", help="Cache directory (default: DVCACHE_CACHE_DIR)"),
]


def _load_settings() -> Settings:
    """Load settings and configure logging, exiting on invalid configuration."""
    try:
        clear_settings_cache()
        settings = get_settings()
    except ValidationError as e:
        error_console.print(f"[red]Error:[/red] Configuration is invalid.\n{e}")
        raise typer.Exit(1)

    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    return settings


def _open_cache(cache_dir: Path | None) -> FileCache:
    settings = _load_settings()
    return FileCache(settings.cache_options(cache_dir=cache_dir))


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a cache coroutine, turning cache errors into exit status 1."""
    try:
        return asyncio.run(coro)
    except CacheError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        raise typer.Exit(1)


def _format_expiry(expiry: int | None) -> str:
    if expiry is None:
        return "never"
    return datetime.fromtimestamp(expiry / 1000, tz=timezone.utc).isoformat(timespec="seconds")


@app.command("set")
def set_value(
    key: Annotated[str, typer.Argument(help="Cache key")],
    value: Annotated[str, typer.Argument(help="Value to store")],
    max_age: Annotated[
        Optional[int],
        typer.Option("--max-age", "-t", min=0, help="TTL in milliseconds for a new key"),
    ] = None,
    cache_dir: CacheDirOption = None,
) -> None:
    """Store VALUE under KEY and save the cache."""
    cache = _open_cache(cache_dir)

    async def _set() -> None:
        await cache.restore()
        await cache.set(key, value, max_age=max_age)
        await cache.save()

    _run(_set())
    console.print(f"[green]Stored[/green] {escape(key)}", highlight=False)


@app.command()
def get(
    key: Annotated[str, typer.Argument(help="Cache key")],
    cache_dir: CacheDirOption = None,
) -> None:
    """Print the value stored under KEY. Exits 1 on a cache miss."""
    cache = _open_cache(cache_dir)

    async def _get() -> str | None:
        await cache.restore()
        return await cache.get(key)

    value = _run(_get())
    if value is None:
        error_console.print(f"[yellow]Miss:[/yellow] {escape(key)}", highlight=False)
        raise typer.Exit(1)
    console.print(value, markup=False, highlight=False, emoji=False, soft_wrap=True)


@app.command()
def unset(
    key: Annotated[str, typer.Argument(help="Cache key")],
    cache_dir: CacheDirOption = None,
) -> None:
    """Remove KEY and save the cache."""
    cache = _open_cache(cache_dir)

    async def _unset() -> None:
        await cache.restore()
        await cache.unset(key)
        await cache.save()

    _run(_unset())
    console.print(f"[green]Removed[/green] {escape(key)}", highlight=False)


@app.command()
def keys(cache_dir: CacheDirOption = None) -> None:
    """List cached keys with their item ids and expiry."""
    cache = _open_cache(cache_dir)
    _run(cache.restore())

    if not len(cache):
        console.print("[dim]Cache is empty.[/dim]")
        return

    table = Table(title=f"{len(cache)} keys", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Id", style="dim")
    table.add_column("Expires", style="green")

    for key in sorted(cache.keys()):
        item = cache.item(key)
        if item is None:
            continue
        table.add_row(escape(key), item.id, _format_expiry(item.expiry))

    console.print(table)


@app.command()
def refresh(cache_dir: CacheDirOption = None) -> None:
    """Remove expired items and save the cache."""
    cache = _open_cache(cache_dir)

    async def _refresh() -> list[str]:
        await cache.restore()
        removed = await cache.refresh()
        await cache.save()
        return removed

    removed = _run(_refresh())
    console.print(f"Removed {len(removed)} expired item(s), {len(cache)} remaining.")
    for key in removed:
        console.print(f"  [dim]-[/dim] {escape(key)}", highlight=False)


@app.command()
def destroy(
    cache_dir: CacheDirOption = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Do not ask for confirmation"),
    ] = False,
) -> None:
    """Remove every item and the cache directory."""
    cache = _open_cache(cache_dir)
    target = cache.options.cache_dir

    if not yes and not typer.confirm(f"Remove {target} and everything in it?"):
        raise typer.Abort()

    _run(cache.destroy())
    console.print(f"[green]Destroyed[/green] {escape(str(target))}", highlight=False)


@app.command()
def config() -> None:
    """Show current configuration."""
    settings = _load_settings()

    table = Table(title="Settings", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for key, value in settings.display().items():
        display_value = str(value) if value is not None else "[dim]not set[/dim]"
        table.add_row(key, display_value)

    console.print()
    console.print(table)
    console.print()


@app.command()
def bench(
    iterations: Annotated[
        int,
        typer.Option("--iterations", "-n", min=1, help="Timed calls per operation"),
    ] = 1000,
    scratch_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--scratch-dir",
            "-d",
            help="Parent directory for a throwaway benchmark cache (default: a temp dir)",
        ),
    ] = None,
) -> None:
    """Benchmark set/get/unset against a plain dict.

    The benchmark cache lives in a fresh subdirectory, so existing files
    under --scratch-dir are left alone.
    """
    _load_settings()

    with tempfile.TemporaryDirectory(prefix="dvcache-bench-") as scratch:
        target = scratch_dir if scratch_dir is not None else Path(scratch)
        results = _run(run_benchmarks(target, iterations))

    table = Table(title=f"Benchmark ({iterations} iterations)", show_header=True)
    table.add_column("Operation", style="cyan")
    table.add_column("Total (s)", justify="right")
    table.add_column("Ops/s", justify="right", style="green")

    for result in results:
        table.add_row(
            result.name,
            f"{result.total_seconds:.4f}",
            f"{result.ops_per_second:,.0f}",
        )

    console.print(Panel(table, border_style="cyan"))


@app.command()
def version() -> None:
    """Print the version number."""
    console.print(f"dvcache version {__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
