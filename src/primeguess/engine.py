"""
Guess search engine.

Runs a fixed number of trials across a thread pool. Every trial derives its
own guess from the shared all-zero snapshot, multiplies it out and compares
the product to the target:
- An exact hit sets the one-shot found flag and records the guess
- Anything else is offered to the shared best match, which only accepts a
  strictly smaller distance
- Once the flag is set, remaining trials return without doing any work

The found check and the best-match update are separate critical sections, so
a trial may still improve the best match just after the flag is set. The
final read prefers the found guess, which makes that late update harmless.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from itertools import batched
from threading import Lock
from typing import List, Optional, Sequence

import psutil

from .guess import GuessState, compute_product, distance, make_strategy


DEFAULT_TRIALS = 1_000_000
DEFAULT_BATCH_SIZE = 1000
DEFAULT_PROGRESS_INTERVAL = 1000


class EngineState(Enum):
    INITIALIZED = "initialized"
    RUNNING = "running"
    FOUND = "found"
    EXHAUSTED = "exhausted"


class FoundFlag:
    """One-shot signal carrying the exact guess. Never goes back to unset."""

    def __init__(self):
        self._lock = Lock()
        self._found = False
        self.guess: Optional[GuessState] = None

    def is_set(self) -> bool:
        with self._lock:
            return self._found

    def set(self, guess: GuessState) -> bool:
        """Mark found. Only the first caller's guess is kept; returns True for it."""
        with self._lock:
            if self._found:
                return False
            self._found = True
            self.guess = guess
            return True


class BestMatch:
    """Smallest distance seen so far and the guess that produced it, under one lock."""

    def __init__(self, initial: GuessState):
        self._lock = Lock()
        self.distance = math.inf
        self.guess = initial
        self.history: List[int] = []

    def offer(self, dist: int, guess: GuessState) -> bool:
        """Replace the pair iff dist is strictly smaller. Returns True on replace."""
        with self._lock:
            if dist < self.distance:
                self.distance = dist
                self.guess = guess
                self.history.append(dist)
                return True
            return False

    def snapshot(self):
        with self._lock:
            return self.distance, self.guess


@dataclass(frozen=True)
class SearchResult:
    exact: bool
    guess: GuessState
    distance: int
    product: int
    trials: int

    @property
    def factors(self):
        return self.guess.as_dict()


class SearchEngine:
    """Drives the parallel guess search for one target."""

    def __init__(self, target: int, primes: Sequence[int], trials: int = DEFAULT_TRIALS,
                 strategy=None, workers: Optional[int] = None,
                 batch_size: int = DEFAULT_BATCH_SIZE,
                 progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
                 logger: Optional[logging.Logger] = None, progress=None):
        """
        Args:
            target: Number to express as a product of prime powers
            primes: Ascending candidate primes
            trials: Number of trial indices to run
            strategy: Object with guess_for_trial(initial, index); defaults to
                the mixed-radix counter
            workers: Thread count (default: number of physical cores)
            batch_size: Trial indices per submitted task
            progress_interval: Emit a warning every this many trial indices
            logger: Logger for guesses and progress (default: module logger)
            progress: Optional reporter with update(n), e.g. a tqdm bar
        """
        if trials < 0:
            raise ValueError(f"trials must be non-negative, got {trials}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if progress_interval < 1:
            raise ValueError(f"progress_interval must be positive, got {progress_interval}")
        if workers is not None and workers < 1:
            raise ValueError(f"workers must be positive, got {workers}")

        self.target = target
        self.primes = tuple(primes)
        self.trials = trials
        self.strategy = strategy or make_strategy("counter", target, self.primes)
        self.workers = workers if workers is not None else (psutil.cpu_count(logical=False) or 1)
        self.batch_size = batch_size
        self.progress_interval = progress_interval
        self.logger = logger or logging.getLogger(__name__)
        self.progress = progress

        self.initial = GuessState.zeros(self.primes)
        self.found = FoundFlag()
        self.best = BestMatch(self.initial)
        self.state = EngineState.INITIALIZED

    def run_trial(self, index: int):
        """Evaluate one trial index against the target."""
        if not self.found.is_set():
            guess = self.strategy.guess_for_trial(self.initial, index)
            if guess is not None:
                self._evaluate(guess)

        if index % self.progress_interval == 0:
            self.logger.warning(f"Still running after {index} iterations")

    def _evaluate(self, guess: GuessState):
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"Current guess: {guess.describe()}")

        product = compute_product(guess)
        if product == self.target:
            if self.found.set(guess):
                self.logger.info(f"Found prime factors: {guess.describe()}")
            return

        self.best.offer(distance(product, self.target), guess)

    def run_batch(self, indices) -> int:
        """Worker task: run a batch of trial indices. Returns how many ran."""
        for index in indices:
            self.run_trial(index)
        return len(indices)

    def run(self) -> SearchResult:
        """Run every trial and return the exact or closest guess."""
        if self.state is not EngineState.INITIALIZED:
            raise RuntimeError(f"Search already {self.state.value}")
        self.state = EngineState.RUNNING

        self.logger.info(
            f"Searching {self.trials} trials over {len(self.primes)} candidates "
            f"with {self.workers} workers"
        )

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="guess") as pool:
            futures = [
                pool.submit(self.run_batch, batch)
                for batch in batched(range(self.trials), self.batch_size)
            ]
            for future in as_completed(futures):
                done = future.result()
                if self.progress is not None:
                    self.progress.update(done)

        return self._finish()

    def _finish(self) -> SearchResult:
        if self.found.is_set():
            self.state = EngineState.FOUND
            return SearchResult(
                exact=True,
                guess=self.found.guess,
                distance=0,
                product=self.target,
                trials=self.trials,
            )

        self.state = EngineState.EXHAUSTED
        best_distance, best_guess = self.best.snapshot()
        product = compute_product(best_guess)
        if best_distance == math.inf:
            # No trial evaluated a guess; report the untouched all-zero guess.
            best_distance = distance(product, self.target)
        return SearchResult(
            exact=False,
            guess=best_guess,
            distance=best_distance,
            product=product,
            trials=self.trials,
        )
