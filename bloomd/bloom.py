from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterator

import mmh3

from .errors import ConfigurationError
from .hashing import stable_bytes

# Fixed so that two filters built with the same (n, f) agree bit for bit.
DEFAULT_SECONDARY_KEY = 0

_LN2 = math.log(2)


def _check_n(n: int) -> None:
    if isinstance(n, bool) or not isinstance(n, int) or n < 1:
        raise ConfigurationError(f"expected element count must be a positive integer, got {n!r}")


def calc_m(n: int, f: float) -> int:
    """
    Bit-array size for `n` expected elements at false-positive rate `f`:
    -n*ln(f) / ln(2)^2, truncated to a whole number of bits.
    """
    _check_n(n)
    if isinstance(f, bool) or not isinstance(f, (int, float)) or not 0.0 < f < 1.0:
        raise ConfigurationError(f"false positive rate must be in (0, 1), got {f!r}")
    # https://en.wikipedia.org/wiki/Bloom_filter#Optimal_number_of_hash_functions
    return max(1, int(-n * math.log(f) / _LN2 ** 2))


def calc_k(n: int, m: int) -> int:
    """Hash function count m*ln(2)/n for an already materialized bit count `m`."""
    _check_n(n)
    if m < 1:
        raise ConfigurationError(f"bit array size must be positive, got {m!r}")
    # a filter with zero hash functions would report every item as present
    return max(1, int(m * _LN2 / n))


class BitStore:
    """Fixed-length packed bit array, LSB first within each byte."""

    __slots__ = ("_m", "_bytes")

    def __init__(self, m: int) -> None:
        if m < 1:
            raise ConfigurationError(f"bit array size must be positive, got {m!r}")
        self._m = m
        self._bytes = bytearray((m + 7) // 8)

    def __len__(self) -> int:
        return self._m

    @property
    def nbytes(self) -> int:
        return len(self._bytes)

    def get(self, index: int) -> bool:
        return bool(self._bytes[index >> 3] & (1 << (index & 7)))

    def set(self, index: int) -> None:
        self._bytes[index >> 3] |= 1 << (index & 7)

    def count(self) -> int:
        """Number of slots set to true."""
        return int.from_bytes(self._bytes, "little").bit_count()

    def to_bytes(self) -> bytes:
        return bytes(self._bytes)


class HashFamily:
    """
    k index functions over [0, m) built from one keyed MurmurHash3.

    Function i is murmur3-128 seeded with a 32-bit mix of (i, secondary_key);
    the unsigned digest is reduced mod m.
    """

    def __init__(self, k: int, m: int, secondary_key: int = DEFAULT_SECONDARY_KEY) -> None:
        self.k = k
        self.m = m
        self.secondary_key = secondary_key
        self._seeds = tuple(self._seed(i) for i in range(k))

    def _seed(self, i: int) -> int:
        # golden-ratio multiplier is odd, so distinct i give distinct seeds
        return (self.secondary_key ^ (i * 0x9E3779B1)) & 0xFFFFFFFF

    def index_of(self, key: bytes, i: int) -> int:
        return mmh3.hash128(key, self._seeds[i], signed=False) % self.m

    def index(self, item: Any, i: int) -> int:
        return self.index_of(stable_bytes(item), i)

    def indexes_of(self, key: bytes) -> Iterator[int]:
        for seed in self._seeds:
            yield mmh3.hash128(key, seed, signed=False) % self.m

    def indexes(self, item: Any) -> Iterator[int]:
        return self.indexes_of(stable_bytes(item))


@dataclass(frozen=True)
class FilterStats:
    n: int
    f: float
    m: int
    k: int
    size_bytes: int
    inserted: int
    fill_ratio: float
    estimated_false_positive_rate: float


class BloomFilter:
    """
    Space-efficient probabilistic set membership.

    `contains` may return a false positive but never a false negative.
    Items can be inserted but not removed, and the geometry is fixed at
    construction from the expected element count `n` and the target false
    positive rate `f`.

    Not thread safe on its own: share it through SharedBloomFilter.
    """

    def __init__(self, n: int, f: float, secondary_key: int = DEFAULT_SECONDARY_KEY) -> None:
        m = calc_m(n, f)
        k = calc_k(n, m)
        self._n = n
        self._f = float(f)
        self._bits = BitStore(m)
        self._hashes = HashFamily(k, m, secondary_key)
        self._inserted = 0

    @property
    def n(self) -> int:
        return self._n

    @property
    def f(self) -> float:
        return self._f

    @property
    def m(self) -> int:
        return len(self._bits)

    @property
    def k(self) -> int:
        return self._hashes.k

    @property
    def size(self) -> int:
        """Size in bytes of the packed bit array."""
        return self._bits.nbytes

    @property
    def inserted(self) -> int:
        return self._inserted

    @property
    def fill_ratio(self) -> float:
        return self._bits.count() / self.m

    @property
    def estimated_false_positive_rate(self) -> float:
        """Probability that a never-inserted item hits k set slots right now."""
        return self.fill_ratio ** self.k

    def insert(self, item: Any) -> None:
        """Set the k slots of `item`. Inserting twice changes nothing."""
        self.insert_encoded(stable_bytes(item))

    def insert_encoded(self, key: bytes) -> None:
        """Insert by an encoding already produced with stable_bytes()."""
        for b in self._hashes.indexes_of(key):
            self._bits.set(b)
        self._inserted += 1

    def contains(self, item: Any) -> bool:
        """False as soon as one of the k slots is unset, True otherwise."""
        return self.contains_encoded(stable_bytes(item))

    def contains_encoded(self, key: bytes) -> bool:
        for b in self._hashes.indexes_of(key):
            if not self._bits.get(b):
                return False
        return True

    def __contains__(self, item: Any) -> bool:
        return self.contains(item)

    def snapshot(self) -> bytes:
        """Copy of the packed bits."""
        return self._bits.to_bytes()

    def stats(self) -> FilterStats:
        return FilterStats(
            n=self.n,
            f=self.f,
            m=self.m,
            k=self.k,
            size_bytes=self.size,
            inserted=self.inserted,
            fill_ratio=self.fill_ratio,
            estimated_false_positive_rate=self.estimated_false_positive_rate,
        )

    def __repr__(self) -> str:
        return f"BloomFilter(n={self.n}, f={self.f}, m={self.m}, k={self.k})"
