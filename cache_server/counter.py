from __future__ import annotations

import threading


class RequestCounter:
    """
    Process-wide monotonically increasing request counter.

    `next()` increments and returns the new value inside one critical section,
    so concurrent callers never observe the same value.
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError("start must be >= 0")
        self._value = int(start)
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def __repr__(self) -> str:
        return f"RequestCounter(value={self.value})"
