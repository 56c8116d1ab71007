"""
Tests for the command-line interface.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from dvcache import __version__
from dvcache.cli.main import app

runner = CliRunner()


@pytest.fixture
def cli_env(cache_dir: Path) -> dict[str, str]:
    """Environment pointing the CLI at a temporary cache."""
    return {
        "DVCACHE_CACHE_DIR": str(cache_dir),
        "DVCACHE_LOG_LEVEL": "ERROR",
    }


def _invoke(args: list[str], env: dict[str, str]):
    return runner.invoke(app, args, env=env)


class TestItemCommands:
    """Test set/get/unset/keys."""

    def test_set_then_get(self, cli_env: dict[str, str], cache_dir: Path) -> None:
        """Test that a value survives between invocations."""
        result = _invoke(["set", "greeting", "hello world"], cli_env)
        assert result.exit_code == 0, result.output
        assert (cache_dir / "keys").exists()

        result = _invoke(["get", "greeting"], cli_env)
        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == "hello world"

    def test_get_miss(self, cli_env: dict[str, str]) -> None:
        """Test that a miss exits with status 1."""
        result = _invoke(["get", "nope"], cli_env)
        assert result.exit_code == 1

    def test_unset(self, cli_env: dict[str, str]) -> None:
        """Test removing a key."""
        _invoke(["set", "key", "value"], cli_env)

        result = _invoke(["unset", "key"], cli_env)
        assert result.exit_code == 0, result.output
        assert _invoke(["get", "key"], cli_env).exit_code == 1

    def test_keys(self, cli_env: dict[str, str], cache_dir: Path) -> None:
        """Test listing keys."""
        _invoke(["set", "alpha", "1"], cli_env)
        _invoke(["set", "beta", "2", "--max-age", "60000"], cli_env)

        result = _invoke(["keys"], cli_env)
        assert result.exit_code == 0, result.output
        assert "alpha" in result.stdout
        assert "beta" in result.stdout
        assert "never" in result.stdout

        index = json.loads((cache_dir / "keys").read_text())
        assert "expiry" in index["beta"]
        assert "expiry" not in index["alpha"]

    def test_keys_empty(self, cli_env: dict[str, str]) -> None:
        """Test listing an empty cache."""
        result = _invoke(["keys"], cli_env)
        assert result.exit_code == 0
        assert "empty" in result.stdout

    def test_cache_dir_option(self, cli_env: dict[str, str], temp_dir: Path) -> None:
        """Test that --cache-dir overrides the environment."""
        other = temp_dir / "other"
        result = _invoke(["set", "key", "value", "--cache-dir", str(other)], cli_env)
        assert result.exit_code == 0, result.output
        assert (other / "keys").exists()

    def test_corrupt_index(self, cli_env: dict[str, str], cache_dir: Path) -> None:
        """Test that cache errors exit with status 1."""
        cache_dir.mkdir()
        (cache_dir / "keys").write_text("{ not json")

        result = _invoke(["get", "key"], cli_env)
        assert result.exit_code == 1


class TestMaintenanceCommands:
    """Test refresh/destroy."""

    def test_refresh(self, cli_env: dict[str, str], cache_dir: Path) -> None:
        """Test that refresh removes items already past their expiry."""
        _invoke(["set", "keep", "value"], cli_env)
        _invoke(["set", "old", "value", "--max-age", "0"], cli_env)
        index = json.loads((cache_dir / "keys").read_text())
        index["old"]["expiry"] = 1
        (cache_dir / "keys").write_text(json.dumps(index))

        result = _invoke(["refresh"], cli_env)
        assert result.exit_code == 0, result.output
        assert "Removed 1" in result.stdout

        index = json.loads((cache_dir / "keys").read_text())
        assert set(index) == {"keep"}

    def test_destroy(self, cli_env: dict[str, str], cache_dir: Path) -> None:
        """Test removing the cache directory."""
        _invoke(["set", "key", "value"], cli_env)

        result = _invoke(["destroy", "--yes"], cli_env)
        assert result.exit_code == 0, result.output
        assert not cache_dir.exists()

    def test_destroy_aborted(self, cli_env: dict[str, str], cache_dir: Path) -> None:
        """Test that declining the prompt keeps the cache."""
        _invoke(["set", "key", "value"], cli_env)

        result = runner.invoke(app, ["destroy"], env=cli_env, input="n\n")
        assert result.exit_code != 0
        assert cache_dir.exists()


class TestInfoCommands:
    """Test config/bench/version."""

    def test_config(self, cli_env: dict[str, str], cache_dir: Path) -> None:
        """Test that config shows the cache dir."""
        result = _invoke(["config"], cli_env)
        assert result.exit_code == 0, result.output
        assert "CACHE_DIR" in result.stdout

    def test_bench(self, cli_env: dict[str, str]) -> None:
        """Test a short benchmark run."""
        result = _invoke(["bench", "--iterations", "3"], cli_env)
        assert result.exit_code == 0, result.output
        assert "FileCache.set" in result.stdout

    def test_bench_keeps_existing_cache(self, cli_env: dict[str, str], cache_dir: Path) -> None:
        """Test that benchmarking into a cache dir does not wipe it."""
        assert _invoke(["set", "greeting", "hello"], cli_env).exit_code == 0
        (cache_dir / "unrelated.txt").write_text("mine", encoding="utf-8")

        result = _invoke(
            ["bench", "--iterations", "2", "--scratch-dir", str(cache_dir)], cli_env
        )
        assert result.exit_code == 0, result.output
        assert (cache_dir / "unrelated.txt").exists()

        result = _invoke(["get", "greeting"], cli_env)
        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == "hello"

    def test_version(self) -> None:
        """Test the version command."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout
