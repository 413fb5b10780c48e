"""
Wide unsigned integer backends for the period search.

The search only needs a handful of operations on its integers (add, sub,
mul, floor division, modulo, shifts, bitwise and/or, comparison and
bit_length). Two concrete types provide them:

- native word: plain Python ``int`` for scalars, with whole batches held in
  NumPy ``int64`` arrays and processed by the JIT kernels in
  ``vector_operations``. Selected when the working width fits a machine word.
- mpz: ``gmpy2.mpz`` for everything wider. GMP arithmetic is markedly faster
  than Python ints once the operands span several machine words.

The backend is chosen once per run from the bit length of the target and the
trial division level (see ``pick_integer_width``).
"""
from dataclasses import dataclass
from typing import Callable, Protocol

import gmpy2
import numpy as np

# Native random draws are bounded to one machine word
WORD_BITS = 64
WORD_MASK = (1 << WORD_BITS) - 1

# Batches live in int64 arrays, so the native backend stays below this width
NATIVE_WIDTH_LIMIT = 64


class WideUnsigned(Protocol):
    """Arithmetic capability every backend integer type provides."""

    def __add__(self, other): ...
    def __sub__(self, other): ...
    def __mul__(self, other): ...
    def __floordiv__(self, other): ...
    def __mod__(self, other): ...
    def __lshift__(self, other): ...
    def __rshift__(self, other): ...
    def __and__(self, other): ...
    def __or__(self, other): ...
    def __lt__(self, other) -> bool: ...
    def __le__(self, other) -> bool: ...
    def bit_length(self) -> int: ...


@dataclass(frozen=True)
class Arithmetic:
    """A selected integer backend."""
    name: str
    width: int
    wrap: Callable[[int], WideUnsigned]
    native: bool

    def __call__(self, value) -> WideUnsigned:
        return self.wrap(int(value))


def qubit_count_of(n: int) -> int:
    """
    Bit length used to size the search: ceil(log2(n)).

    Powers of two get exactly log2(n), everything else one more than floor(log2(n)).
    """
    if n < 1:
        return 0
    return (int(n) - 1).bit_length()


def pick_integer_width(qubit_count: int, trial_division_level: int) -> int:
    """
    Working width in bits for a run.

    The target is padded up to the next 32-bit boundary and given enough
    extra bits to hold a product with any trial division prime.
    """
    prime_factor_bits = max(int(trial_division_level), 1).bit_length()
    return prime_factor_bits + (((qubit_count >> 5) + 1) << 5)


def select_arithmetic(qubit_count: int, trial_division_level: int) -> Arithmetic:
    """Pick the concrete integer backend for a run."""
    width = pick_integer_width(qubit_count, trial_division_level)
    if width < NATIVE_WIDTH_LIMIT:
        return Arithmetic(name="word", width=width, wrap=int, native=True)
    return Arithmetic(name="mpz", width=width, wrap=gmpy2.mpz, native=False)


def word_chunks(bound: int) -> int:
    """Number of machine-word chunks needed to represent bound."""
    return max(1, (int(bound).bit_length() + WORD_BITS - 1) // WORD_BITS)


def draw_chunked(rng: np.random.Generator, bound, wrap: Callable = int):
    """
    Draw an integer in [0, bound] from machine-word sized random draws.

    Native distributions are bounded to a single word, so wide bounds are
    composed from one bounded draw for the most significant chunk and one
    full-word draw per lower chunk, concatenated most significant first. A
    value above bound is folded back with a single subtraction, which keeps
    the draw free of retries.

    Args:
        rng: NumPy generator owned by the calling thread
        bound: Inclusive upper bound (non-negative)
        wrap: Constructor of the backend integer type

    Returns:
        Integer of the backend type in [0, bound]
    """
    bound = int(bound)
    if bound <= 0:
        return wrap(0)

    chunks = word_chunks(bound)
    lower_bits = WORD_BITS * (chunks - 1)
    top = bound >> lower_bits

    value = wrap(int(rng.integers(0, top, endpoint=True, dtype=np.uint64)))
    for _ in range(chunks - 1):
        value = (value << WORD_BITS) | wrap(
            int(rng.integers(0, WORD_MASK, endpoint=True, dtype=np.uint64))
        )

    if value > bound:
        value -= bound + 1
    return value
