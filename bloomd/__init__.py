"""
bloomd: a Bloom filter behind a concurrent HTTP service.

A Bloom filter is a space-efficient probabilistic set. contains() may report
an item that was never inserted (at roughly the configured false positive
rate) but never misses one that was. Items can be inserted, not removed.

    >>> from bloomd import BloomFilter
    >>> bloom = BloomFilter(100, 0.01)
    >>> bloom.insert("hi")
    >>> bloom.contains("hi")
    True
"""
from .bloom import BitStore, BloomFilter, FilterStats, HashFamily, calc_k, calc_m
from .errors import BloomdError, ConfigurationError, LockPoisonedError
from .hashing import stable_bytes
from .shared import SharedBloomFilter

__all__ = [
    "BitStore",
    "BloomFilter",
    "BloomdError",
    "ConfigurationError",
    "FilterStats",
    "HashFamily",
    "LockPoisonedError",
    "SharedBloomFilter",
    "calc_k",
    "calc_m",
    "stable_bytes",
]
