"""Shared pytest fixtures for primeguess tests."""

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Point configuration lookups away from any real config file.

    Yields:
        Path: Location of the (not yet existing) config file
    """
    config_file = tmp_path / "primeguess.toml"
    monkeypatch.setenv("PRIMEGUESS_CONFIG", str(config_file))
    monkeypatch.delenv("PRIMEGUESS_CACHE_FILE", raising=False)
    yield config_file


@pytest.fixture
def cache_file(tmp_path):
    """Path for a prime cache file inside a fresh directory."""
    return tmp_path / "cache" / "primes.parquet"


@pytest.fixture
def target_file(tmp_path):
    """Factory writing a number as big-endian bytes to a file.

    Returns:
        callable: number -> Path
    """
    def _write(number: int, name: str = "target.bin") -> Path:
        path = tmp_path / name
        path.write_bytes(number.to_bytes((number.bit_length() + 7) // 8, "big"))
        return path

    return _write


class CountingProgress:
    """Stand-in for a tqdm bar that only sums updates."""

    def __init__(self):
        self.n = 0
        self.calls = 0

    def update(self, n):
        self.n += n
        self.calls += 1


@pytest.fixture
def progress():
    return CountingProgress()
