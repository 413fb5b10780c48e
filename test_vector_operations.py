"""
Tests for the batch kernels.

Tests verify:
1. Correctness: kernel results match scalar versions
2. Edge cases: empty batches, trivial divisors, primes in the batch
3. Integration: batches drawn by the search sampler
"""

import math

import numpy as np
import pytest

from period_search import next_survivor, trial_division_primes
from vector_operations import (
    draw_settled_batch,
    first_common_factor_index,
    first_divisor_index,
    settle_batch,
)


def as_primes(primes):
    return np.asarray(primes, dtype=np.int64)


# ============================================================================
# PART 1: SURVIVOR SETTLING TESTS
# ============================================================================

class TestSettleBatch:
    """Test the survivor settling kernel."""

    def test_settle_matches_scalar(self):
        """Every settled value equals the scalar walk."""
        primes = (2, 3, 5, 7, 11, 13, 17)
        bases = np.arange(0, 4000, dtype=np.int64)

        settled = settle_batch(bases.copy(), as_primes(primes))

        expected = [next_survivor(int(b), primes) for b in bases]
        assert settled.tolist() == expected

    def test_settle_excludes_every_trial_prime(self):
        primes = trial_division_primes(59)
        bases = np.arange(100, 20000, 3, dtype=np.int64)

        settled = settle_batch(bases, as_primes(primes))

        for b in settled.tolist():
            assert all(b % p for p in primes), f"{b} is a multiple of a trial prime"

    def test_settle_moves_primes_off_themselves(self):
        """A trial prime is a multiple of itself and must be stepped over."""
        primes = (2, 3, 5, 7)
        settled = settle_batch(np.array([5, 7], dtype=np.int64), as_primes(primes))
        assert settled.tolist() == [11, 11]

    def test_settle_in_place(self):
        bases = np.array([9, 10, 11], dtype=np.int64)
        result = settle_batch(bases, as_primes((2, 3, 5)))
        assert result.tolist() == [11, 11, 11]
        assert bases.tolist() == [11, 11, 11]

    def test_settle_empty(self):
        settled = settle_batch(np.array([], dtype=np.int64), as_primes((2, 3, 5)))
        assert settled.shape == (0,)


# ============================================================================
# PART 2: TARGET TEST KERNELS
# ============================================================================

class TestFirstDivisorIndex:
    """Test the semiprime fast path kernel."""

    def test_finds_first_divisor(self):
        bases = np.array([11, 13, 19, 31], dtype=np.int64)
        assert first_divisor_index(589, bases) == 2

    def test_no_divisor(self):
        bases = np.array([11, 13, 17, 23], dtype=np.int64)
        assert first_divisor_index(589, bases) == -1

    def test_trivial_divisors_ignored(self):
        bases = np.array([1, 589, 1178], dtype=np.int64)
        assert first_divisor_index(589, bases) == -1

    def test_empty_batch(self):
        assert first_divisor_index(589, np.array([], dtype=np.int64)) == -1


class TestFirstCommonFactorIndex:
    """Test the general path common-factor kernel."""

    def test_matches_math_gcd(self):
        n = 67 * 71
        rng = np.random.default_rng(3)
        bases = rng.integers(2, 10000, size=500, dtype=np.int64)

        index = first_common_factor_index(n, bases)

        expected = next(
            (i for i, b in enumerate(bases.tolist()) if math.gcd(n, b) not in (1, n)),
            -1,
        )
        assert index == expected

    def test_multiple_of_n_is_not_a_hit(self):
        n = 67 * 71
        bases = np.array([n, 2 * n, 71 * 2], dtype=np.int64)
        assert first_common_factor_index(n, bases) == 2

    def test_coprime_batch(self):
        bases = np.array([2, 3, 5, 7, 11], dtype=np.int64)
        assert first_common_factor_index(67 * 71, bases) == -1


# ============================================================================
# PART 3: BATCH DRAW TESTS
# ============================================================================

class TestDrawSettledBatch:
    """Test the combined draw and settle."""

    def test_draw_bounds(self):
        primes = trial_division_primes(59)
        rng = np.random.default_rng(42)

        batch = draw_settled_batch(rng, 1000, 5000, 4096, as_primes(primes))

        assert batch.dtype == np.int64
        assert batch.shape == (4096,)
        # settling only moves forward, at most past one survivor gap
        assert batch.min() >= 1000
        assert batch.max() < 5000 + 100
        for b in batch.tolist():
            assert all(b % p for p in primes)

    def test_draw_is_reproducible(self):
        primes = as_primes((2, 3, 5, 7))
        first = draw_settled_batch(np.random.default_rng(9), 9, 64, 256, primes)
        second = draw_settled_batch(np.random.default_rng(9), 9, 64, 256, primes)
        assert np.array_equal(first, second)

    @pytest.mark.parametrize("size", [1, 17, 1024])
    def test_draw_sizes(self, size):
        batch = draw_settled_batch(np.random.default_rng(0), 100, 200, size,
                                   as_primes((2, 3, 5)))
        assert len(batch) == size
