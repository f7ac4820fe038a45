"""Unit tests for primeguess.engine module."""

import logging
import math
import threading

import pytest

from primeguess.engine import BestMatch, EngineState, FoundFlag, SearchEngine
from primeguess.guess import FirstPrimeIncrement, GuessState, MixedRadixCounter, exponent_limits


class TestFoundFlag:
    """Tests for the one-shot found signal."""

    def test_initially_unset(self):
        flag = FoundFlag()
        assert flag.is_set() is False
        assert flag.guess is None

    def test_first_setter_wins(self):
        flag = FoundFlag()
        first = GuessState((2,), (1,))
        second = GuessState((2,), (2,))
        assert flag.set(first) is True
        assert flag.set(second) is False
        assert flag.is_set() is True
        assert flag.guess == first

    def test_concurrent_setters(self):
        """Test exactly one of many racing threads wins."""
        flag = FoundFlag()
        barrier = threading.Barrier(8)
        wins = []

        def racer(i):
            barrier.wait()
            wins.append(flag.set(GuessState((2,), (i,))))

        threads = [threading.Thread(target=racer, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert wins.count(True) == 1
        assert flag.guess is not None


class TestBestMatch:
    """Tests for the shared closest-guess cell."""

    def test_initial_state(self):
        initial = GuessState.zeros([2, 3])
        best = BestMatch(initial)
        assert best.snapshot() == (math.inf, initial)

    def test_only_strictly_smaller_replaces(self):
        best = BestMatch(GuessState.zeros([2]))
        a = GuessState((2,), (1,))
        b = GuessState((2,), (2,))
        assert best.offer(10, a) is True
        assert best.offer(10, b) is False
        assert best.offer(11, b) is False
        assert best.snapshot() == (10, a)
        assert best.offer(3, b) is True
        assert best.snapshot() == (3, b)

    def test_concurrent_offers_keep_minimum(self):
        """Test racing offers end at the global minimum with a non-increasing history."""
        best = BestMatch(GuessState.zeros([2]))

        def offerer(offset):
            for d in range(1000 + offset, offset, -7):
                best.offer(d, GuessState((2,), (d,)))

        threads = [threading.Thread(target=offerer, args=(i,)) for i in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        dist, guess = best.snapshot()
        assert dist == min(min(range(1000 + i, i, -7)) for i in range(6))
        assert guess.exponents == (dist,)
        assert all(a > b for a, b in zip(best.history, best.history[1:]))


class TestSearchEngine:
    """Tests for the parallel trial loop."""

    def test_exact_match(self):
        engine = SearchEngine(12, [2, 3], trials=100, workers=4, batch_size=7)
        result = engine.run()
        assert result.exact is True
        assert result.factors == {2: 2, 3: 1}
        assert result.distance == 0
        assert engine.state is EngineState.FOUND

    def test_state_transitions(self):
        engine = SearchEngine(12, [2, 3], trials=10, workers=1)
        assert engine.state is EngineState.INITIALIZED
        engine.run()
        with pytest.raises(RuntimeError):
            engine.run()

    def test_legacy_strategy_never_advances(self):
        """Test the one-step strategy only ever evaluates 2^1."""
        engine = SearchEngine(12, [2, 3], trials=500, strategy=FirstPrimeIncrement(), workers=4)
        result = engine.run()
        assert result.exact is False
        assert result.factors == {2: 1, 3: 0}
        assert result.distance == 10
        assert engine.best.history == [10]
        assert engine.state is EngineState.EXHAUSTED

    def test_exhausted_search_is_approximation(self):
        """Test a prime target ends with a best match, not a factorization."""
        engine = SearchEngine(101, [2, 3, 5, 7], trials=1000, workers=3, batch_size=50)
        result = engine.run()
        assert result.exact is False
        assert result.distance == 1
        assert result.product in (100, 102)
        assert result.trials == 1000

    def test_best_distance_non_increasing(self):
        engine = SearchEngine(1009, [2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31], trials=5000, workers=4)
        engine.run()
        history = engine.best.history
        assert history
        assert all(a > b for a, b in zip(history, history[1:]))

    def test_zero_trials(self):
        """Test an empty run reports the untouched all-zero guess."""
        engine = SearchEngine(12, [2, 3], trials=0, workers=2)
        result = engine.run()
        assert result.exact is False
        assert result.factors == {2: 0, 3: 0}
        assert result.distance == 11
        assert engine.state is EngineState.EXHAUSTED

    def test_target_one_found_by_empty_product(self):
        engine = SearchEngine(1, [2], trials=5, workers=1)
        result = engine.run()
        assert result.exact is True
        assert result.factors == {2: 0}

    def test_progress_reporter(self, progress):
        """Test the reporter sees every trial, once per batch."""
        engine = SearchEngine(101, [2, 3, 5, 7], trials=1050, workers=2, batch_size=100,
                              progress=progress)
        engine.run()
        assert progress.n == 1050
        assert progress.calls == 11

    def test_progress_warnings(self, caplog):
        """Test a warning is logged every progress interval, found or not."""
        engine = SearchEngine(12, [2, 3], trials=2500, workers=2, progress_interval=1000)
        with caplog.at_level(logging.WARNING, logger="primeguess.engine"):
            engine.run()
        messages = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
        assert sorted(messages) == [
            "Still running after 0 iterations",
            "Still running after 1000 iterations",
            "Still running after 2000 iterations",
        ]

    def test_injected_logger_gets_guesses(self, caplog):
        logger = logging.getLogger("test.engine")
        engine = SearchEngine(12, [2, 3], trials=3, workers=1, logger=logger)
        with caplog.at_level(logging.DEBUG, logger="test.engine"):
            engine.run()
        assert "Current guess: 2^1" in caplog.text

    @pytest.mark.parametrize("kwargs", [{"trials": -1}, {"batch_size": 0}, {"progress_interval": 0}])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            SearchEngine(12, [2, 3], **kwargs)


class CountingCounter(MixedRadixCounter):
    """Mixed-radix counter that records which trial indices asked for a guess."""

    def __init__(self, limits):
        super().__init__(limits)
        self.indices = []

    def guess_for_trial(self, initial, index):
        self.indices.append(index)
        return super().guess_for_trial(initial, index)


class TestFoundShortCircuit:
    """Tests for trials that run after an exact match."""

    def test_later_trials_do_no_work(self):
        """Test no guess is derived past the winning index and the best match is frozen."""
        strategy = CountingCounter(exponent_limits(12, [2, 3]))
        engine = SearchEngine(12, [2, 3], trials=100, strategy=strategy, workers=1, batch_size=100)
        result = engine.run()

        assert result.exact is True
        assert strategy.indices == list(range(7))
        # Distances of 1, 2, 4, 8, 3, 6 against 12 before 2^2 * 3^1 hits.
        assert engine.best.history == [11, 10, 8, 4]
        assert engine.best.snapshot()[1].as_dict() == {2: 3, 3: 0}


class TestWorkerCount:

    def test_zero_workers_rejected(self):
        with pytest.raises(ValueError):
            SearchEngine(12, [2, 3], workers=0)

    def test_explicit_workers_kept(self):
        assert SearchEngine(12, [2, 3], workers=3).workers == 3
