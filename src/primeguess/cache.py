"""
Prime cache artifact: an ascending prime sequence persisted as parquet.

Layout:
- Column "p": the primes, ascending, UInt64
- Column "bound": the bound the sequence was generated for (same value on
  every row), so a cache produced for another bound is detected on load
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import polars as pl


CACHE_SCHEMA = {'p': pl.UInt64, 'bound': pl.UInt64}


class CacheReadError(Exception):
    """The cache file exists but could not be used."""


class StaleCacheError(CacheReadError):
    """The cache file holds primes generated for a different bound."""

    def __init__(self, path: Path, cached_bound: int, bound: int):
        super().__init__(f"{path} was generated for bound {cached_bound}, not {bound}")
        self.path = path
        self.cached_bound = cached_bound
        self.bound = bound


def save_primes(path, primes: List[int], bound: int) -> Path:
    """
    Write a prime sequence and its bound to a parquet cache file.

    The frame is written to a sibling temp file first and renamed into place.
    Raises OSError or a polars error when the file cannot be written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pl.DataFrame(
        {'p': primes, 'bound': [bound] * len(primes)},
        schema=CACHE_SCHEMA,
    )
    tmp_path = path.with_name(path.name + ".tmp")
    df.write_parquet(tmp_path)
    tmp_path.replace(path)
    return path


def cached_bound(path) -> int:
    """Return the bound stored in a cache file without loading the primes."""
    path = Path(path)
    try:
        stats = pl.scan_parquet(path).select([
            pl.col('bound').min().alias('lo'),
            pl.col('bound').max().alias('hi'),
            pl.len().alias('rows'),
        ]).collect()
    except (OSError, pl.exceptions.PolarsError) as e:
        raise CacheReadError(f"Could not read {path}: {e}") from e

    if stats['rows'].item() == 0 or stats['lo'].item() != stats['hi'].item():
        raise CacheReadError(f"{path} has no consistent bound")
    return int(stats['lo'].item())


def load_primes(path, bound: Optional[int] = None) -> Optional[List[int]]:
    """
    Load a cached prime sequence.

    Args:
        path: Cache file location
        bound: If given, the bound the caller expects; a mismatch raises
            StaleCacheError

    Returns:
        The primes, or None when the file does not exist
    """
    path = Path(path)
    if not path.exists():
        return None

    stored = cached_bound(path)
    if bound is not None and stored != bound:
        raise StaleCacheError(path, stored, bound)

    try:
        primes = pl.read_parquet(path, columns=['p'])['p']
    except (OSError, pl.exceptions.PolarsError) as e:
        raise CacheReadError(f"Could not read {path}: {e}") from e

    if (primes.null_count() > 0 or not primes.is_sorted()
            or primes.n_unique() != primes.len()):
        raise CacheReadError(f"{path} does not hold a strictly ascending prime sequence")
    return [int(p) for p in primes.to_list()]
