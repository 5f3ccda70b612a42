from __future__ import annotations

import logging
from typing import Any

from .bloom import BloomFilter, FilterStats
from .errors import LockPoisonedError
from .hashing import stable_bytes
from .rwlock import RWLock

logger = logging.getLogger("bloomd.shared")


class SharedBloomFilter:
    """
    The one filter instance the service mutates, behind a read/write lock.

    insert takes the lock exclusively, contains and stats share it. Items are
    encoded before the lock is taken, so an unsupported item type raises
    TypeError without touching (or poisoning) the shared state.
    """

    def __init__(self, bloom: BloomFilter) -> None:
        self._bloom = bloom
        self._lock = RWLock()

    @classmethod
    def create(cls, n: int, f: float) -> "SharedBloomFilter":
        return cls(BloomFilter(n, f))

    # geometry is immutable after construction; no lock needed
    @property
    def n(self) -> int:
        return self._bloom.n

    @property
    def f(self) -> float:
        return self._bloom.f

    @property
    def m(self) -> int:
        return self._bloom.m

    @property
    def k(self) -> int:
        return self._bloom.k

    @property
    def size(self) -> int:
        return self._bloom.size

    @property
    def poisoned(self) -> bool:
        return self._lock.poisoned

    def insert(self, item: Any) -> None:
        key = stable_bytes(item)
        try:
            with self._lock.write():
                self._bloom.insert_encoded(key)
        except LockPoisonedError:
            logger.error("insert rejected: filter lock is poisoned")
            raise

    def contains(self, item: Any) -> bool:
        key = stable_bytes(item)
        try:
            with self._lock.read():
                return self._bloom.contains_encoded(key)
        except LockPoisonedError:
            logger.error("contains rejected: filter lock is poisoned")
            raise

    def stats(self) -> FilterStats:
        try:
            with self._lock.read():
                return self._bloom.stats()
        except LockPoisonedError:
            logger.error("stats rejected: filter lock is poisoned")
            raise

    def __repr__(self) -> str:
        return f"SharedBloomFilter({self._bloom!r})"
