"""
Benchmark suite for the period-guess factoring search.

Benchmarks:
1. Batch Kernels: survivor settling and target tests, JIT vs scalar
2. Sampling: native batch draws vs wide per-candidate draws
3. Period Guess: continued fraction estimate plus factor recovery
4. Complete Searches: semiprime and general mode, word and mpz backends
5. Thread Scaling: the same search with 1..cpu_count threads
"""

import sys
import statistics
import time
from multiprocessing import cpu_count
from typing import Callable, List

import numpy as np

from period_search import (
    CandidateSampler,
    ThreadRange,
    factor,
    guess_period,
    next_survivor,
    recover_factors,
    trial_division_primes,
)
from vector_operations import (
    first_common_factor_index,
    first_divisor_index,
    settle_batch,
)
from wide_int import select_arithmetic


# ============================================================================
# BENCHMARK UTILITIES
# ============================================================================

class BenchmarkResult:
    """Store benchmark results with statistics."""

    def __init__(self, name: str, times: List[float], operations: int = 1):
        self.name = name
        self.times = sorted(times)
        self.operations = operations

        self.min = min(times)
        self.max = max(times)
        self.mean = statistics.mean(times)
        self.median = statistics.median(times)
        self.stdev = statistics.stdev(times) if len(times) > 1 else 0

    @property
    def rate(self) -> float:
        """Operations per second at the median time."""
        return self.operations / self.median if self.median > 0 else float('inf')

    def __str__(self):
        return (f"{self.name:40} | "
                f"Median: {self.median*1000:9.3f}ms | "
                f"StdDev: {self.stdev*1000:8.3f}ms | "
                f"Min: {self.min*1000:9.3f}ms | "
                f"Rate: {self.rate:12.0f}/s")


def benchmark(func: Callable, *args, iterations: int = 5, operations: int = 1,
              **kwargs) -> BenchmarkResult:
    """
    Benchmark a function and return statistics.

    Args:
        func: Function to benchmark
        *args: Positional arguments to function
        iterations: Number of timed runs
        operations: Work items per run, for the rate column
        **kwargs: Keyword arguments to function

    Returns:
        BenchmarkResult with timing statistics
    """
    times = []

    # Warm up (also triggers JIT compilation)
    func(*args, **kwargs)

    for _ in range(iterations):
        start = time.perf_counter()
        func(*args, **kwargs)
        times.append(time.perf_counter() - start)

    return BenchmarkResult(func.__name__, times, operations)


def section(title: str):
    print("\n" + "="*100)
    print(title)
    print("="*100)


# ============================================================================
# 1. BATCH KERNEL BENCHMARKS
# ============================================================================

def benchmark_kernels():
    """Benchmark the Numba kernels against their scalar twins."""
    section("BATCH KERNEL BENCHMARKS")

    primes = trial_division_primes(59)
    primes_array = np.asarray(primes, dtype=np.int64)
    rng = np.random.default_rng(0)
    size = 1 << 16
    raw = rng.integers(1 << 20, 1 << 30, size=size, dtype=np.int64)

    result = benchmark(lambda: settle_batch(raw.copy(), primes_array),
                       iterations=10, operations=size)
    result.name = f"settle_batch JIT ({size} bases)"
    print(result)

    scalar = raw[:4096].tolist()
    result = benchmark(lambda: [next_survivor(b, primes) for b in scalar],
                       iterations=5, operations=len(scalar))
    result.name = f"next_survivor scalar ({len(scalar)} bases)"
    print(result)

    settled = settle_batch(raw.copy(), primes_array)
    n = 1000003 * 1000033
    result = benchmark(first_divisor_index, n, settled, iterations=10, operations=size)
    result.name = "first_divisor_index (no hit)"
    print(result)

    result = benchmark(first_common_factor_index, n, settled, iterations=10, operations=size)
    result.name = "first_common_factor_index (no hit)"
    print(result)


# ============================================================================
# 2. SAMPLING BENCHMARKS
# ============================================================================

def benchmark_sampling():
    """Benchmark candidate draws on both backends."""
    section("SAMPLING BENCHMARKS")

    primes = trial_division_primes(59)

    native = CandidateSampler(ThreadRange(0, 1 << 20, 1 << 30), primes,
                              select_arithmetic(30, 59), np.random.default_rng(1))
    result = benchmark(native.draw_batch, 1 << 16, iterations=10, operations=1 << 16)
    result.name = "Native batch draw (65536)"
    print(result)

    for bits in (64, 128, 256):
        low = 1 << (bits - 2)
        wide = CandidateSampler(ThreadRange(0, low, low << 2), primes,
                                select_arithmetic(bits, 59), np.random.default_rng(2))
        result = benchmark(lambda: [wide.draw() for _ in range(2048)],
                           iterations=5, operations=2048)
        result.name = f"Wide per-candidate draw ({bits} bits)"
        print(result)


# ============================================================================
# 3. PERIOD GUESS BENCHMARKS
# ============================================================================

def benchmark_period_guess():
    """Benchmark one period guess plus recovery per base."""
    section("PERIOD GUESS BENCHMARKS")

    cases = [
        (67 * 71, "13-bit target"),
        (1000003 * 1000033, "40-bit target"),
        ((2**61 - 1) * (2**31 - 1), "92-bit target"),
    ]

    for n, description in cases:
        bits = (n - 1).bit_length()
        arithmetic = select_arithmetic(bits, 59)
        n_wide = arithmetic(n)
        qubit_power = arithmetic(1) << bits
        rng = np.random.default_rng(3)
        bases = [arithmetic(b) for b in rng.integers(61, min(n, 1 << 30), size=512).tolist()]

        def run():
            for base in bases:
                r = guess_period(rng, base, n_wide, qubit_power, arithmetic.wrap)
                recover_factors(base, r, n_wide)

        result = benchmark(run, iterations=3, operations=len(bases))
        result.name = f"{description} ({arithmetic.name})"
        print(result)


# ============================================================================
# 4. COMPLETE SEARCH BENCHMARKS
# ============================================================================

def benchmark_complete_search():
    """Benchmark complete searches, seeded for repeatability."""
    section("COMPLETE SEARCH BENCHMARKS")

    cases = [
        (589, True, "Semiprime 19 * 31"),
        (1009 * 1013, True, "Semiprime 1009 * 1013"),
        (65537 * 65521, True, "Semiprime 65537 * 65521 (mpz)"),
        (67 * 71, False, "General 67 * 71"),
    ]

    for n, semiprime, description in cases:
        result = benchmark(factor, n, semiprime=semiprime, batch_size=4096,
                           seed=5, iterations=3)
        result.name = description
        print(result)


# ============================================================================
# 5. THREAD SCALING BENCHMARKS
# ============================================================================

def benchmark_thread_scaling():
    """Benchmark a fixed budget across thread counts."""
    section("THREAD SCALING BENCHMARKS (fixed batch budget, no factor reachable)")

    # 1000003 is prime, so every thread spends its whole budget
    n = 1000003
    threads = 1
    while threads <= cpu_count():
        result = benchmark(factor, n, semiprime=True, cpu_count=threads,
                           batch_size=1 << 14, max_batches=8, seed=6,
                           iterations=3, operations=threads * 8 * (1 << 14))
        result.name = f"{threads} thread(s)"
        print(result)
        threads <<= 1


# ============================================================================
# MAIN BENCHMARK SUITE
# ============================================================================

def run_all_benchmarks():
    """Run all benchmarks."""
    print("\n")
    print("╔" + "="*98 + "╗")
    print("║" + " "*25 + "PERIOD SEARCH BENCHMARK SUITE" + " "*44 + "║")
    print("║" + f" Hardware threads: {cpu_count():<4}" + " "*74 + "║")
    print("╚" + "="*98 + "╝")

    try:
        benchmark_kernels()
        benchmark_sampling()
        benchmark_period_guess()
        benchmark_complete_search()
        benchmark_thread_scaling()

        print("\n" + "="*100)
        print("BENCHMARK COMPLETE")
        print("="*100 + "\n")

    except KeyboardInterrupt:
        print("\nBenchmark interrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    run_all_benchmarks()
