"""
Monte Carlo period-guess integer factoring.

Shor's algorithm factors N by measuring the period of a^x mod N on a quantum
register. This module replaces the quantum measurement with a uniformly
random guess of its output, then runs the same classical recovery:
continued fractions, modular exponentiation and gcd. Most guesses fail; the
search relies on volume of independent trials spread over every hardware
thread and, optionally, over several independent nodes.

PIPELINE:
1. Trial division prefilter: pick a small-prime level from the bit length of
   N, try every prime up to it, and shrink the candidate count by the
   fraction of small-prime multiples.
2. Range partitioning: split the candidate count across nodes, then across
   threads, and map each share back onto candidate values.
3. Sampling: draw random bases per thread and settle them onto values that
   no trial division prime divides.
4. Recovery: semiprime mode tests N mod base directly; general mode tests
   gcd(N, base) and then runs the period guess.
5. Termination: the first thread to succeed claims a shared flag; everyone
   else leaves at the next batch boundary.

DISTRIBUTION:
- Nodes never talk to each other. Launch one process per node with the same
  N and node count and a distinct node id; the range split is deterministic.

DEPENDENCIES:
- NumPy: per-thread generators and batch draws
- Numba: GIL-free batch kernels (vector_operations)
- gmpy2: wide integer backend (wide_int)
"""
import argparse
import logging
import math
import sys
import threading
import time
from bisect import bisect_right
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from functools import lru_cache
from multiprocessing import cpu_count

import numpy as np

from vector_operations import (
    draw_settled_batch,
    first_common_factor_index,
    first_divisor_index,
)
from wide_int import Arithmetic, draw_chunked, qubit_count_of, select_arithmetic

logger = logging.getLogger(__name__)

# Candidates per batch; the termination flag is polled between batches
BASE_TRIALS = 1 << 16

# Trial division level fit for bit lengths above the tuned table
TD_INTERCEPT = 1.69
TD_SLOPE = 0.0971

# 2, 3 and 5 are always excluded by the sampler's wheel arithmetic
MIN_TRIAL_DIVISION_LEVEL = 5

# Fold loop cap in coalesce_factors
MAX_FOLD_ROUNDS = 64

_SMALL_PRIMES_COUNT = 1000
_SMALL_PRIMES_LIMIT = 7919  # the 1000th prime

# Empirically tuned (max bit length, level) pairs
_TRIAL_DIVISION_TABLE = (
    (58, 59),
    (60, 191),
    (62, 193),
    (64, 199),
    (66, 211),
    (68, 229),
    (70, 233),
)

# Known smaller-factor bounds of test semiprimes, keyed by factor bit length
KNOWN_FACTOR_RANGES = {
    16: (16411, 131071),
    28: (67108879, 536870909),
    32: (1073741827, 8589934583),
}


class ConfigurationError(ValueError):
    """Invalid search configuration, rejected before any thread starts."""


class FactorFoldError(ArithmeticError):
    """The factor fold loop did not settle within its round cap."""


# ============================================================================
# SMALL PRIME TABLE
# ============================================================================

@lru_cache(maxsize=1)
def get_small_primes() -> tuple[int, ...]:
    """First 1000 primes, ascending (memoized)."""
    limit = _SMALL_PRIMES_LIMIT
    sieve = np.ones(limit + 1, dtype=bool)
    sieve[:2] = False
    for i in range(2, math.isqrt(limit) + 1):
        if sieve[i]:
            sieve[i * i::i] = False
    primes = np.flatnonzero(sieve)[:_SMALL_PRIMES_COUNT]
    return tuple(int(p) for p in primes)


# ============================================================================
# TRIAL DIVISION PREFILTER
# ============================================================================

def pick_trial_division_level(qubit_count: int, override: int = 0) -> int:
    """
    Prime threshold for trial division, from the bit length of N.

    A higher level shrinks the random search by the product of (p - 1) / p
    over the excluded primes but costs more divisions per candidate. Up to 70
    bits the level comes from a tuned table, above that from an exponential
    fit that saturates at the largest table prime.

    Args:
        qubit_count: Bit length of N
        override: Fixed level to use instead (0 = automatic)

    Returns:
        Trial division level (prime threshold)
    """
    if override > 0:
        return int(override)
    for max_bits, level in _TRIAL_DIVISION_TABLE:
        if qubit_count <= max_bits:
            return level
    exponent = TD_INTERCEPT + TD_SLOPE * qubit_count
    # Past the prime table the level only needs to cover every table prime
    if exponent >= math.log(_SMALL_PRIMES_LIMIT):
        return _SMALL_PRIMES_LIMIT
    return int(math.exp(exponent) + 0.5)


def prime_index_for_level(level: int) -> int:
    """Index of the largest table prime <= level, clamped to the table."""
    primes = get_small_primes()
    index = bisect_right(primes, level) - 1
    return min(max(index, 0), len(primes) - 1)


def trial_division_primes(level: int) -> tuple[int, ...]:
    """Every table prime up to the level (always at least 2, 3, 5)."""
    level = max(level, MIN_TRIAL_DIVISION_LEVEL)
    return get_small_primes()[:prime_index_for_level(level) + 1]


def find_small_factor(n: int, level: int, start: int = 2) -> tuple[int, int] | None:
    """
    Try every prime in [start, level] as a divisor of n.

    Returns:
        (p, n // p) for the first prime that divides n with a nontrivial
        cofactor, or None
    """
    for p in get_small_primes():
        if p > level:
            break
        if p < start:
            continue
        if n % p == 0 and n // p > 1:
            return p, n // p
    return None


def shrink_range(count, primes) -> int:
    """
    Shrink a candidate count by the fraction of multiples of each prime.

    Applied prime by prime in ascending order, truncating at every step.
    """
    for p in primes:
        count = count * (p - 1) // p
    return count


def semiprime_factor_range(qubit_count: int) -> tuple[int, int]:
    """Bounds of the smaller factor of a balanced semiprime of this bit length."""
    prime_bits = (qubit_count + 1) >> 1
    if prime_bits in KNOWN_FACTOR_RANGES:
        return KNOWN_FACTOR_RANGES[prime_bits]
    low = (1 << max(prime_bits - 2, 0)) | 1
    high = (1 << (prime_bits + 1)) - 1
    return low, high


def semiprime_trial_division_level(level: int, full_min_base: int) -> int:
    """
    Cap the level below the smaller-factor range.

    Candidates are never multiples of trial division primes, so a prime
    inside the factor range would be unreachable by construction.
    """
    capped = MIN_TRIAL_DIVISION_LEVEL
    for p in get_small_primes():
        if p > level or p >= full_min_base:
            break
        capped = p
    return max(capped, MIN_TRIAL_DIVISION_LEVEL)


def general_factor_range(n: int, level: int) -> tuple[int, int]:
    """Bounds [next_prime, n // next_prime] for the general base search."""
    primes = get_small_primes()
    index = bisect_right(primes, level)
    next_prime = primes[index] if index < len(primes) else primes[-1]
    return next_prime, n // next_prime


# ============================================================================
# RANGE PARTITIONER
# ============================================================================

def expand_count(offset, primes):
    """
    Map a candidate count back onto the value axis.

    Inverse of shrink_range: each prime from the largest down scales the
    offset by p / (p - 1). 5, 3 and 2 use shift forms; the 2 and 3 steps are
    combined.
    """
    for p in reversed(primes[3:]):
        offset += offset // (p - 1)
    offset += offset >> 2
    return ((offset << 1) + offset) & ~1


def node_bounds(full_min_base, count, node_count: int, node_id: int):
    """
    Candidate positions [node_min, node_max) owned by one node.

    node_range is the ceiling share, so the last node may run past the end
    of the count by less than node_count positions; there are never gaps.
    """
    node_range = (count + node_count - 1) // node_count
    node_min = full_min_base + node_range * node_id
    return node_min, node_min + node_range


def thread_bounds(node_min, node_max, thread_count: int, thread_id: int):
    """Candidate positions [thread_min, thread_max) of one thread within a node."""
    thread_range = (node_max - node_min + thread_count - 1) // thread_count
    thread_min = node_min + thread_range * thread_id
    thread_max = min(thread_min + thread_range, node_max)
    return thread_min, thread_max


def align_thread_min(value, primes):
    """Round down by every trial division prime in ascending order, then step to an odd value."""
    for p in primes:
        value = (value // p) * p
    return (value | 1) + 2


@dataclass(frozen=True)
class ThreadRange:
    """Candidate values [min_value, max_value) sampled by one thread."""
    thread_id: int
    min_value: int
    max_value: int


@dataclass(frozen=True)
class RangePlan:
    """Deterministic split of the search space for one node."""
    full_min_base: int
    full_max_base: int
    candidate_count: int
    node_min: int
    node_max: int
    primes: tuple[int, ...]
    threads: tuple[ThreadRange, ...]

    def position_to_value(self, position):
        """Candidate value at a count position; the end of the count maps past full_max_base."""
        offset = position - self.full_min_base
        end = self.full_max_base + 1
        if offset >= self.candidate_count:
            return end
        return min(self.full_min_base + expand_count(offset, self.primes), end)


def plan_ranges(
    full_min_base: int,
    full_max_base: int,
    primes: tuple[int, ...],
    node_count: int = 1,
    node_id: int = 0,
    thread_count: int = 1
) -> RangePlan:
    """
    Split [full_min_base, full_max_base] for this node and its threads.

    The candidate count (range size shrunk by the trial division primes) is
    divided across nodes, then across threads. Each thread's share of the
    count is mapped back onto values with expand_count, and its lower value
    bound aligned by align_thread_min. Threads whose share is empty are
    left out.

    Args:
        full_min_base: Smallest candidate base
        full_max_base: Largest candidate base
        primes: Trial division primes (ascending, starting 2, 3, 5)
        node_count: Number of independent nodes
        node_id: This node's index
        thread_count: Worker threads on this node

    Returns:
        RangePlan for the node
    """
    full_range = full_max_base + 1 - full_min_base
    candidate_count = max(shrink_range(full_range, primes), 1) if full_range > 0 else 0

    node_min, node_max = node_bounds(full_min_base, candidate_count, node_count, node_id)
    plan = RangePlan(
        full_min_base=full_min_base,
        full_max_base=full_max_base,
        candidate_count=candidate_count,
        node_min=node_min,
        node_max=node_max,
        primes=tuple(primes),
        threads=(),
    )

    threads = []
    for thread_id in range(thread_count):
        low, high = thread_bounds(node_min, node_max, thread_count, thread_id)
        if low >= high:
            continue
        max_value = plan.position_to_value(high)
        min_value = align_thread_min(plan.position_to_value(low), primes)
        if min_value >= max_value:
            continue
        threads.append(ThreadRange(thread_id, min_value, max_value))

    return replace(plan, threads=tuple(threads))


# ============================================================================
# RANDOM BASE SAMPLER
# ============================================================================

def next_survivor(value, primes):
    """
    Smallest value >= the input that no trial division prime divides.

    Forces the value odd and off multiples of 3, then walks the 6k +/- 1
    wheel until none of primes[2:] divides it. Scalar twin of
    vector_operations.settle_batch.
    """
    value |= 1
    if value % 3 == 0:
        value += 2
    i = 2
    while i < len(primes):
        if value % primes[i] == 0:
            value += 4 if value % 6 == 1 else 2
            i = 2
        else:
            i += 1
    return value


class CandidateSampler:
    """
    Random candidate bases for one thread.

    Bases are drawn over the thread's value range and settled onto trial
    division survivors, so none is a multiple of a trial division prime.
    Settling only moves forward: a draw near max_value can land on a
    survivor past it, and past full_max_base for the last thread.
    Settling favours survivors that follow long gaps; the search accepts
    that residual unevenness.
    """

    def __init__(self, thread_range: ThreadRange, primes, arithmetic: Arithmetic,
                 rng: np.random.Generator):
        self.thread_range = thread_range
        self.primes = tuple(primes)
        self.arithmetic = arithmetic
        self.rng = rng
        self.low = arithmetic(thread_range.min_value)
        self.span = thread_range.max_value - thread_range.min_value - 1
        self._primes_array = np.asarray(self.primes, dtype=np.int64)

    def draw(self):
        """One settled base of the backend integer type (may exceed max_value)."""
        raw = draw_chunked(self.rng, self.span, self.arithmetic.wrap)
        return next_survivor(self.low + raw, self.primes)

    def draw_batch(self, size: int) -> np.ndarray:
        """size settled bases as an int64 array (native backend only, may exceed max_value)."""
        return draw_settled_batch(
            self.rng,
            self.thread_range.min_value,
            self.thread_range.max_value,
            size,
            self._primes_array,
        )


# ============================================================================
# PERIOD GUESS AND FACTOR RECOVERY
# ============================================================================

def gcd(a, b):
    """Euclid's algorithm, iterative. gcd(a, 0) == a."""
    while b:
        a, b = b, a % b
    return a


def int_log(base, arg) -> int:
    """floor(log_base(arg)) by repeated division; 0 for base < 2."""
    if base < 2:
        return 0
    result = 0
    while arg >= base:
        arg //= base
        result += 1
    return result


def continued_fraction_step(numerator, denominator):
    """
    Extract one continued fraction term.

    Returns:
        (term, next_numerator, next_denominator)
    """
    term = numerator // denominator
    return term, denominator, numerator - term * denominator


def convergent(terms):
    """
    Fold a continued fraction term list right to left.

    Returns:
        (approx_numerator, approx_denominator)
    """
    approx_numer, approx_denom = 1, terms[-1]
    for term in reversed(terms[1:]):
        approx_numer, approx_denom = approx_denom, term * approx_denom + approx_numer
    return approx_numer, approx_denom


def estimate_period(qubit_power, y, n):
    """
    Period candidate from a measured value y.

    Expands qubit_power / y (the measured fraction y / qubit_power is below
    one, so numerator and denominator start swapped) until the remainder
    vanishes or the convergent denominator reaches n. The last term
    overshoots and is dropped.

    Args:
        qubit_power: 2 ** bit length of n
        y: Guessed measurement (> 0)
        n: Number being factored

    Returns:
        Period candidate r
    """
    numerator, denominator = qubit_power, y
    terms = []
    while True:
        term, numerator, denominator = continued_fraction_step(numerator, denominator)
        terms.append(term)
        _, approx_denom = convergent(terms)
        if denominator == 0 or approx_denom >= n:
            break
    terms.pop()

    if not terms:
        return y
    return convergent(terms)[1]


def coalesce_factors(f1, f2, n, max_rounds: int = MAX_FOLD_ROUNDS):
    """
    Fold partial factors whose product properly divides n.

    While f1 * f2 is a nontrivial proper divisor of n, replace the pair with
    (f1 * f2, n // (f1 * f2)). The new pair multiplies to n, so one round
    always settles the loop; max_rounds bounds it regardless.

    Raises:
        FactorFoldError: the loop did not settle within max_rounds
    """
    product = f1 * f2
    rounds = 0
    while product != n and product > 1 and n % product == 0:
        if rounds >= max_rounds:
            raise FactorFoldError(f"fold did not settle after {max_rounds} rounds for n={n}")
        f1, f2 = product, n // product
        product = f1 * f2
        rounds += 1
    return f1, f2


def recover_factors(base, r, n):
    """
    Classical half of Shor's algorithm for a period candidate r.

    Returns:
        (f1, f2) if they multiply to n and are both > 1, else None
    """
    if r & 1:
        r <<= 1
    apowrhalf = pow(base, r >> 1, n)
    f1 = gcd(apowrhalf + 1, n)
    f2 = gcd((apowrhalf - 1) % n, n)
    f1, f2 = coalesce_factors(f1, f2, n)
    if f1 * f2 == n and f1 > 1 and f2 > 1:
        return f1, f2
    return None


def draw_measurement(rng: np.random.Generator, base, n, qubit_power, wrap=int):
    """
    Throw dice for the output of quantum period finding.

    The period of base^x mod n is at least log_base(n), and the measured
    value y sits near c * qubit_power / r. r and c are drawn independently
    over [min_r, qubit_power] and [1, qubit_power - min_r + 1].

    Returns:
        (r_guess, c, y)
    """
    min_r = max(int_log(base, n), 1)
    y_range = qubit_power - min_r
    r_guess = draw_chunked(rng, y_range, wrap) + min_r
    c = draw_chunked(rng, y_range, wrap) + 1
    return r_guess, c, (c * qubit_power) // r_guess


def guess_period(rng: np.random.Generator, base, n, qubit_power, wrap=int):
    """Period candidate from one random measurement."""
    _, _, y = draw_measurement(rng, base, n, qubit_power, wrap)
    return estimate_period(qubit_power, y, n)


# ============================================================================
# TERMINATION COORDINATOR
# ============================================================================

class TerminationFlag:
    """Write-once success flag shared by every worker of a run."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()

    def is_set(self) -> bool:
        return self._event.is_set()

    def set(self) -> None:
        self._event.set()

    def claim(self) -> bool:
        """Set the flag; True only for the caller that set it first."""
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            return True


# ============================================================================
# SEARCH ENGINE
# ============================================================================

@dataclass(frozen=True)
class SearchConfig:
    """Resolved parameters of one search run (see resolve_config)."""
    n: int
    bit_length: int
    node_count: int = 1
    node_id: int = 0
    semiprime: bool = False
    trial_division_level: int = 0
    cpu_count: int = 1
    batch_size: int = BASE_TRIALS
    max_batches: int = 0
    seed: int | None = None


@dataclass
class ThreadStats:
    thread_id: int
    batches: int = 0
    candidates: int = 0
    fold_failures: int = 0
    factors: tuple[int, int] | None = None


@dataclass
class SearchReport:
    """Outcome of a search run."""
    n: int
    factors: tuple[int, int] | None
    trial_division_level: int
    backend: str
    elapsed_ms: float
    plan: RangePlan | None = None
    threads: list[ThreadStats] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.factors is not None


def resolve_config(
    n: int,
    bit_length: int | None = None,
    node_count: int = 1,
    node_id: int = 0,
    semiprime: bool = False,
    trial_division_level: int = 0,
    cpu_count: int | None = None,
    batch_size: int = BASE_TRIALS,
    max_batches: int = 0,
    seed: int | None = None
) -> SearchConfig:
    """
    Validate search parameters.

    Raises:
        ConfigurationError: on any contract violation
    """
    n = int(n)
    if n < 2:
        raise ConfigurationError(f"number to factor must be >= 2, got {n}")
    if node_count < 1:
        raise ConfigurationError(f"node count must be >= 1, got {node_count}")
    if not 0 <= node_id < node_count:
        raise ConfigurationError(f"node id must be in [0, {node_count - 1}], got {node_id}")
    if cpu_count is None:
        cpu_count = _default_cpu_count()
    if cpu_count < 1:
        raise ConfigurationError(f"thread count must be >= 1, got {cpu_count}")
    if batch_size < 1:
        raise ConfigurationError(f"batch size must be >= 1, got {batch_size}")
    if max_batches < 0:
        raise ConfigurationError(f"batch budget must be >= 0, got {max_batches}")
    if trial_division_level < 0:
        raise ConfigurationError(f"trial division level must be >= 0, got {trial_division_level}")
    if bit_length is None:
        bit_length = qubit_count_of(n)
    if bit_length < 1:
        raise ConfigurationError(f"bit length must be >= 1, got {bit_length}")

    return SearchConfig(
        n=n,
        bit_length=int(bit_length),
        node_count=int(node_count),
        node_id=int(node_id),
        semiprime=bool(semiprime),
        trial_division_level=int(trial_division_level),
        cpu_count=int(cpu_count),
        batch_size=int(batch_size),
        max_batches=int(max_batches),
        seed=seed,
    )


def _default_cpu_count() -> int:
    try:
        return cpu_count()
    except NotImplementedError:
        return 1


class _SearchWorker:
    """Batch loop shared by every thread of a run."""

    def __init__(self, config: SearchConfig, plan: RangePlan, arithmetic: Arithmetic,
                 flag: TerminationFlag, started: float):
        self.config = config
        self.plan = plan
        self.arithmetic = arithmetic
        self.flag = flag
        self.started = started
        self.n = arithmetic(config.n)
        self.qubit_power = arithmetic(1) << config.bit_length

    def run(self, thread_range: ThreadRange, seed: np.random.SeedSequence) -> ThreadStats:
        stats = ThreadStats(thread_id=thread_range.thread_id)
        sampler = CandidateSampler(thread_range, self.plan.primes, self.arithmetic,
                                   np.random.default_rng(seed))
        max_batches = self.config.max_batches
        try:
            while not (max_batches and stats.batches >= max_batches):
                found = self._run_batch(sampler, stats)
                stats.batches += 1
                if found is not None:
                    if self.flag.claim():
                        stats.factors = (int(found[0]), int(found[1]))
                        logger.info(
                            "Found %d * %d = %d (thread %d, %.3f ms)",
                            stats.factors[0], stats.factors[1], self.config.n,
                            thread_range.thread_id, _elapsed_ms(self.started),
                        )
                    return stats
                if self.flag.is_set():
                    return stats
        except Exception:
            # Unblock the other workers before propagating
            self.flag.set()
            raise

        logger.debug(
            "Thread %d spent its budget: %d batches, %d candidates, %d fold failures",
            thread_range.thread_id, stats.batches, stats.candidates, stats.fold_failures,
        )
        return stats

    def _run_batch(self, sampler: CandidateSampler, stats: ThreadStats):
        size = self.config.batch_size
        if self.arithmetic.native:
            bases = sampler.draw_batch(size)
            stats.candidates += size
            if self.config.semiprime:
                index = first_divisor_index(self.config.n, bases)
                if index >= 0:
                    base = int(bases[index])
                    return base, self.config.n // base
                return None
            index = first_common_factor_index(self.config.n, bases)
            if index >= 0:
                common = gcd(self.config.n, int(bases[index]))
                return common, self.config.n // common
            for base in bases.tolist():
                found = self._try_period(sampler, base, stats)
                if found is not None:
                    return found
            return None

        n = self.n
        for _ in range(size):
            base = sampler.draw()
            stats.candidates += 1
            if self.config.semiprime:
                if 1 < base < n and n % base == 0:
                    return base, n // base
                continue
            common = gcd(n, base)
            if common != 1 and common != n:
                return common, n // common
            found = self._try_period(sampler, base, stats)
            if found is not None:
                return found
        return None

    def _try_period(self, sampler: CandidateSampler, base, stats: ThreadStats):
        n = self.n
        r = guess_period(sampler.rng, base, n, self.qubit_power, self.arithmetic.wrap)
        try:
            return recover_factors(base, r, n)
        except FactorFoldError as exc:
            stats.fold_failures += 1
            logger.warning("%s", exc)
            return None


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


def search(config: SearchConfig) -> SearchReport:
    """
    Run the factoring search described by config on this node.

    Returns:
        SearchReport; factors is None when the node's range was empty or
        every thread spent its batch budget
    """
    started = time.perf_counter()
    n = config.n
    flag = TerminationFlag()

    level = pick_trial_division_level(config.bit_length, config.trial_division_level)
    level = max(level, MIN_TRIAL_DIVISION_LEVEL)
    if config.semiprime:
        full_min_base, full_max_base = semiprime_factor_range(config.bit_length)
        level = semiprime_trial_division_level(level, full_min_base)
        # Only primes the cap could not keep out of the factor range
        small = find_small_factor(n, level, start=full_min_base)
    else:
        small = find_small_factor(n, level)
        full_min_base, full_max_base = general_factor_range(n, level)

    arithmetic = select_arithmetic(config.bit_length, level)
    logger.info(
        "Factoring %d: %d bits, trial division level %d, %s backend, node %d of %d",
        n, config.bit_length, level, arithmetic.name, config.node_id, config.node_count,
    )

    if small is not None:
        flag.set()
        logger.info("Factors: %d * %d = %d (trial division)", small[0], small[1], n)
        return SearchReport(n, small, level, arithmetic.name, _elapsed_ms(started))

    primes = trial_division_primes(level)
    plan = plan_ranges(full_min_base, full_max_base, primes,
                       config.node_count, config.node_id, config.cpu_count)
    logger.debug(
        "Plan: bases [%d, %d], %d candidates, node positions [%d, %d), %d threads",
        plan.full_min_base, plan.full_max_base, plan.candidate_count,
        plan.node_min, plan.node_max, len(plan.threads),
    )
    if not plan.threads:
        logger.warning("Nothing to search for %d on node %d", n, config.node_id)
        return SearchReport(n, None, level, arithmetic.name, _elapsed_ms(started), plan)

    worker = _SearchWorker(config, plan, arithmetic, flag, started)
    seeds = np.random.SeedSequence(config.seed).spawn(len(plan.threads))
    with ThreadPoolExecutor(max_workers=len(plan.threads),
                            thread_name_prefix="period-search") as pool:
        futures = [pool.submit(worker.run, thread_range, seed)
                   for thread_range, seed in zip(plan.threads, seeds)]
        try:
            stats = [future.result() for future in futures]
        except BaseException:
            flag.set()
            raise

    factors = next((s.factors for s in stats if s.factors is not None), None)
    report = SearchReport(n, factors, level, arithmetic.name, _elapsed_ms(started), plan, stats)
    if factors is None:
        logger.warning(
            "No factors of %d after %d candidates", n, sum(s.candidates for s in stats)
        )
    return report


def factor(
    n: int,
    bit_length: int | None = None,
    node_count: int = 1,
    node_id: int = 0,
    semiprime: bool = False,
    **options
) -> tuple[int, int] | None:
    """
    Search for a nontrivial factor pair of n.

    Args:
        n: Integer to factor (>= 2)
        bit_length: Bit length of n (default: computed)
        node_count: Number of independent nodes sharing the search
        node_id: This node's index in [0, node_count)
        semiprime: Test bases directly as divisors of a balanced semiprime
        **options: trial_division_level, cpu_count, batch_size,
                   max_batches, seed (see resolve_config)

    Returns:
        (f1, f2) with f1 * f2 == n, or None when the search range was
        exhausted or the batch budget spent. Without a budget the search
        runs until it succeeds, which may be never for a prime n.
    """
    config = resolve_config(n, bit_length, node_count, node_id, semiprime, **options)
    return search(config).factors


# ============================================================================
# COMMAND LINE
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Monte Carlo period-guess integer factoring"
    )
    parser.add_argument("n", type=int, help="number to factor")
    parser.add_argument("--nodes", type=int, default=1,
                        help="number of independent nodes splitting the search")
    parser.add_argument("--node-id", type=int, default=0,
                        help="index of this node (0 to nodes - 1)")
    parser.add_argument("--semiprime", action="store_true",
                        help="treat n as a semiprime with equal-width factors")
    parser.add_argument("--trial-division-level", type=int, default=0,
                        help="override the trial division prime threshold (0 = auto)")
    parser.add_argument("--threads", type=int, default=None,
                        help="worker threads (default: hardware threads)")
    parser.add_argument("--batch-size", type=int, default=BASE_TRIALS,
                        help="candidates per thread between termination checks")
    parser.add_argument("--max-batches", type=int, default=0,
                        help="batch budget per thread (0 = unbounded)")
    parser.add_argument("--seed", type=int, default=None,
                        help="seed for reproducible runs")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="debug logging")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(threadName)s: %(message)s",
    )

    try:
        config = resolve_config(
            args.n,
            node_count=args.nodes,
            node_id=args.node_id,
            semiprime=args.semiprime,
            trial_division_level=args.trial_division_level,
            cpu_count=args.threads,
            batch_size=args.batch_size,
            max_batches=args.max_batches,
            seed=args.seed,
        )
    except ConfigurationError as exc:
        parser.error(str(exc))

    report = search(config)
    if report.factors is None:
        print(f"No factors found for {config.n}")
        return 1
    f1, f2 = report.factors
    print(f"{f1} * {f2} = {config.n}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
