from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from .errors import LockPoisonedError


class RWLock:
    """
    Multiple readers / single writer lock.

    Waiting writers block new readers, so a steady stream of reads cannot
    starve inserts. An exception escaping a write section poisons the lock;
    from then on every acquisition raises LockPoisonedError.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0
        self._poisoned = False

    @property
    def poisoned(self) -> bool:
        return self._poisoned

    def _check(self) -> None:
        if self._poisoned:
            raise LockPoisonedError("lock poisoned by a failed writer")

    def acquire_read(self) -> None:
        with self._cond:
            self._check()
            while self._writer or self._writers_waiting:
                self._cond.wait()
                self._check()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._check()
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
                    self._check()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self, poison: bool = False) -> None:
        with self._cond:
            self._writer = False
            if poison:
                self._poisoned = True
            self._cond.notify_all()

    @contextmanager
    def read(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        except BaseException:
            self.release_write(poison=True)
            raise
        self.release_write()
