"""
Prime candidate generation up to a bound, with an optional parquet cache.

Candidates are found by trial division: a number is accepted iff no smaller
accepted prime up to its square root divides it. The numbers are tested in
segments [lo, hi) with hi <= lo^2, so every divisor a segment needs is already
known when the segment is filtered and the whole segment is tested at once.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

import numpy as np
import polars as pl

from .cache import CacheReadError, StaleCacheError, load_primes, save_primes


U64_MAX = 2**64 - 1
SEGMENT_SIZE = 1 << 18


class BoundOverflowError(ValueError):
    """The square root of the target does not fit the unsigned 64-bit range."""


def bound_from_target(target: int) -> int:
    """Return isqrt(target), checked against the unsigned 64-bit range."""
    if target < 0:
        raise ValueError(f"Target must be non-negative, got {target}")
    bound = math.isqrt(target)
    if bound > U64_MAX:
        raise BoundOverflowError(
            f"Prime bound {bound} exceeds the 64-bit limit ({bound.bit_length()} bits)"
        )
    return bound


def generate_primes_up_to(n: int) -> List[int]:
    """
    Generate the ascending primes <= n.

    The sequence always starts with 2, even for n < 2.

    Args:
        n: Integer bound (inclusive)

    Returns:
        List of primes
    """
    primes = [2]
    lo = 3
    while lo <= n:
        hi = min(n + 1, lo * lo, lo + SEGMENT_SIZE)
        segment = np.arange(lo, hi, dtype=np.uint64)
        limit = math.isqrt(hi - 1)
        keep = np.ones(segment.shape[0], dtype=bool)

        for p in primes:
            if p > limit:
                break
            keep &= (segment % np.uint64(p)) != 0

        primes.extend(int(x) for x in segment[keep])
        lo = hi
    return primes


class PrimeCandidateGenerator:
    """Produces candidate primes for a bound, going through the cache file when set."""

    def __init__(self, cache_file=None, logger: Optional[logging.Logger] = None):
        self.cache_file = Path(cache_file) if cache_file else None
        self.logger = logger or logging.getLogger(__name__)
        self._writer: Optional[ThreadPoolExecutor] = None
        self._pending: Optional[Future] = None

    def candidates(self, bound: int) -> List[int]:
        """
        Return the ascending primes <= bound.

        A cache hit for the same bound is returned verbatim. Anything else
        (no file, unreadable file, file made for another bound) falls back to
        generation, and the fresh sequence is written back in the background.
        """
        if self.cache_file is not None:
            primes = self._load(bound)
            if primes is not None:
                return primes

        primes = generate_primes_up_to(bound)
        self.logger.debug(f"Generated {len(primes)} primes up to {bound}")

        if self.cache_file is not None:
            if self._writer is None:
                self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="prime-cache")
            self._pending = self._writer.submit(self._save, tuple(primes), bound)
        return primes

    def wait(self) -> bool:
        """Block until a pending cache write is done. Returns False if it failed."""
        ok = True
        if self._pending is not None:
            ok = self._pending.result()
            self._pending = None
        if self._writer is not None:
            self._writer.shutdown(wait=True)
            self._writer = None
        return ok

    def _load(self, bound: int) -> Optional[List[int]]:
        try:
            primes = load_primes(self.cache_file, bound)
        except StaleCacheError as e:
            self.logger.warning(f"Ignoring stale prime cache: {e}")
            return None
        except CacheReadError as e:
            self.logger.warning(f"Prime cache unreadable, regenerating: {e}")
            return None

        if primes is None:
            self.logger.info(f"No prime cache at {self.cache_file}, generating")
        else:
            self.logger.info(f"Loaded {len(primes)} primes from {self.cache_file}")
        return primes

    def _save(self, primes, bound: int) -> bool:
        try:
            save_primes(self.cache_file, list(primes), bound)
        except (OSError, pl.exceptions.PolarsError) as e:
            self.logger.error(f"Could not write prime cache {self.cache_file}: {e}")
            return False
        self.logger.info(f"Saved {len(primes)} primes to {self.cache_file}")
        return True
