"""Spin locks owned by a thread and sleep locks owned by a process."""

from __future__ import annotations

import threading
from typing import Optional


class LockError(RuntimeError):
    """Raised on acquiring a lock already held, or releasing one not held."""


class SpinLock:
    """Mutual exclusion lock; the holder is the acquiring thread."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.locked = False
        self.cpu: Optional[int] = None
        self._lock = threading.Lock()

    def holding(self) -> bool:
        """Whether the calling thread holds the lock."""
        return self.locked and self.cpu == threading.get_ident()

    def acquire(self) -> None:
        if self.holding():
            raise LockError("acquire")
        self._lock.acquire()
        self.locked = True
        self.cpu = threading.get_ident()

    def release(self) -> None:
        if not self.holding():
            raise LockError("release")
        self.cpu = None
        self.locked = False
        self._lock.release()

    def __enter__(self) -> "SpinLock":
        self.acquire()
        return self

    def __exit__(self, *exc) -> None:
        self.release()


class SleepLock:
    """Long-term lock; waiters sleep until it is released."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.locked = False
        self.pid = 0
        self._cond = threading.Condition()

    def acquire(self, pid: int) -> None:
        with self._cond:
            while self.locked:
                self._cond.wait()
            self.locked = True
            self.pid = pid

    def release(self) -> None:
        with self._cond:
            self.locked = False
            self.pid = 0
            self._cond.notify_all()

    def holding(self) -> bool:
        """Whether anyone holds the lock."""
        with self._cond:
            return self.locked