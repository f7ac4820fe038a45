"""
Guess model: exponent assignments over the candidate primes and the
strategies that turn a trial index into one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from sympy import integer_log


@dataclass(frozen=True)
class GuessState:
    """One hypothesis: every candidate prime mapped to a non-negative exponent."""

    primes: Tuple[int, ...]
    exponents: Tuple[int, ...]

    def __post_init__(self):
        if len(self.primes) != len(self.exponents):
            raise ValueError("primes and exponents must have the same length")
        if any(e < 0 for e in self.exponents):
            raise ValueError("exponents must be non-negative")

    @classmethod
    def zeros(cls, primes: Sequence[int]) -> "GuessState":
        primes = tuple(primes)
        return cls(primes, (0,) * len(primes))

    def with_exponent(self, idx: int, exponent: int) -> "GuessState":
        exponents = list(self.exponents)
        exponents[idx] = exponent
        return GuessState(self.primes, tuple(exponents))

    def increment(self, idx: int = 0) -> "GuessState":
        return self.with_exponent(idx, self.exponents[idx] + 1)

    def as_dict(self) -> Dict[int, int]:
        return dict(zip(self.primes, self.exponents))

    def nonzero(self) -> Dict[int, int]:
        return {p: e for p, e in zip(self.primes, self.exponents) if e}

    def describe(self) -> str:
        """Render as '2^2 * 3^1', skipping zero exponents."""
        terms = [f"{p}^{e}" for p, e in self.nonzero().items()]
        return " * ".join(terms) if terms else "1"


def compute_product(guess: GuessState) -> int:
    """Multiply out prime^exponent over the guess (1 for an all-zero guess)."""
    product = 1
    for prime, exponent in zip(guess.primes, guess.exponents):
        if exponent:
            product *= prime ** exponent
    return product


def distance(a: int, b: int) -> int:
    return abs(a - b)


def exponent_limits(target: int, primes: Sequence[int]) -> List[int]:
    """Largest useful exponent per prime: floor(log_p(target)), 0 when target < 2."""
    if target < 2:
        return [0] * len(primes)
    return [int(integer_log(target, p)[0]) for p in primes]


class MixedRadixCounter:
    """
    Enumerates every bounded exponent assignment exactly once.

    Trial i is i written in mixed radix, digit k ranging over
    [0, limits[k]], with the first (smallest) prime as the fastest digit.
    """

    name = "counter"

    def __init__(self, limits: Sequence[int]):
        self.radices = [limit + 1 for limit in limits]
        self.space = 1
        for radix in self.radices:
            self.space *= radix

    def guess_for_trial(self, initial: GuessState, index: int) -> Optional[GuessState]:
        if index >= self.space:
            return None
        exponents = []
        for radix in self.radices:
            index, digit = divmod(index, radix)
            exponents.append(digit)
        return GuessState(initial.primes, tuple(exponents))


class FirstPrimeIncrement:
    """
    Every trial bumps the first candidate's exponent once, starting from the
    all-zero guess. All trials therefore evaluate the same guess.
    """

    name = "legacy"

    def guess_for_trial(self, initial: GuessState, index: int) -> Optional[GuessState]:
        if not initial.primes:
            return None
        return initial.increment(0)


STRATEGIES = ("counter", "legacy")


def make_strategy(name: str, target: int, primes: Sequence[int]):
    if name == "counter":
        return MixedRadixCounter(exponent_limits(target, primes))
    if name == "legacy":
        return FirstPrimeIncrement()
    raise ValueError(f"Unknown guess strategy {name!r}, expected one of {STRATEGIES}")
