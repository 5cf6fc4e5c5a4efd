"""A mutex that hands out ownership in arrival order."""

from __future__ import annotations

import threading


class FifoLock:
    """Non-reentrant lock whose waiters acquire it strictly first-come first-served.

    `threading.Lock` makes no ordering promise, so queued transcriptions could
    otherwise overtake each other.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._next_ticket = 0
        self._now_serving = 0

    def acquire(self) -> None:
        with self._cond:
            ticket = self._next_ticket
            self._next_ticket += 1
            while ticket != self._now_serving:
                self._cond.wait()

    def release(self) -> None:
        with self._cond:
            if self._now_serving >= self._next_ticket:
                raise RuntimeError("release of unlocked FifoLock")
            self._now_serving += 1
            self._cond.notify_all()

    def locked(self) -> bool:
        with self._cond:
            return self._now_serving < self._next_ticket

    @property
    def waiting(self) -> int:
        """Number of callers queued behind the current owner."""

        with self._cond:
            return max(0, self._next_ticket - self._now_serving - 1)

    def __enter__(self) -> "FifoLock":
        self.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()
