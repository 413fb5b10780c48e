"""
Batch kernels for the native-word search path.

Candidate bases that fit a machine word are handled a whole batch at a time:
NumPy draws the batch, and the Numba kernels below settle it onto survivors
of the trial division wheel and test it against the target. Every kernel is
compiled with ``nogil=True`` so the worker threads of a search run them
truly in parallel.

KERNELS:
1. settle_batch: move each candidate forward to the next value that no
   trial division prime divides
2. first_divisor_index: semiprime fast path, N mod base == 0
3. first_common_factor_index: general path common-factor test, gcd(N, base)
4. draw_settled_batch: NumPy draw + settle in one call
"""

from typing import List

import numpy as np
from numba import njit


# ============================================================================
# PART 1: SURVIVOR SETTLING
# ============================================================================

@njit(nogil=True)
def settle_batch(bases: np.ndarray, primes: np.ndarray) -> np.ndarray:
    """
    Move every base forward onto the next trial division survivor, in place.

    primes must be ascending and start with 2, 3. Bases are made odd and
    stepped off multiples of 3 first, then walk the 6k +/- 1 wheel until no
    prime in the table divides them. Settled bases can end up above the
    range they were drawn from.

    Args:
        bases: int64 array of candidate bases
        primes: int64 array of trial division primes (ascending)

    Returns:
        The same array, settled
    """
    num_primes = primes.shape[0]
    for i in range(bases.shape[0]):
        b = bases[i] | 1
        if b % 3 == 0:
            b += 2
        j = 2
        while j < num_primes:
            p = primes[j]
            if b % p == 0:
                if b % 6 == 1:
                    b += 4
                else:
                    b += 2
                j = 2
            else:
                j += 1
        bases[i] = b
    return bases


# ============================================================================
# PART 2: TARGET TESTS
# ============================================================================

@njit(nogil=True)
def first_divisor_index(n: int, bases: np.ndarray) -> int:
    """Index of the first base that divides n with a nontrivial cofactor, or -1."""
    for i in range(bases.shape[0]):
        b = bases[i]
        if b > 1 and b < n and n % b == 0:
            return i
    return -1


@njit(nogil=True)
def first_common_factor_index(n: int, bases: np.ndarray) -> int:
    """Index of the first base sharing a nontrivial factor with n, or -1."""
    for i in range(bases.shape[0]):
        a = n
        c = bases[i]
        while c != 0:
            t = a % c
            a = c
            c = t
        if a != 1 and a != n:
            return i
    return -1


# ============================================================================
# PART 3: BATCH DRAW
# ============================================================================

def draw_settled_batch(
    rng: np.random.Generator,
    low: int,
    high: int,
    size: int,
    primes: np.ndarray
) -> np.ndarray:
    """
    Draw size bases uniformly from [low, high) and settle them.

    Settling moves forward, so a base drawn near high may come back above it.

    Args:
        rng: Generator owned by the calling thread
        low: Inclusive lower bound
        high: Exclusive upper bound (> low)
        size: Batch size
        primes: int64 trial division primes

    Returns:
        int64 array of settled bases
    """
    bases = rng.integers(low, high, size=size, dtype=np.int64)
    return settle_batch(bases, primes)


__all__: List[str] = [
    'settle_batch',
    'first_divisor_index',
    'first_common_factor_index',
    'draw_settled_batch',
]
