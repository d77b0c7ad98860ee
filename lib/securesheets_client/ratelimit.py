from __future__ import annotations

import threading
import time
from typing import Any, Callable

from .errors import RateLimitExceededError
from .timefmt import iso_timestamp

WINDOW_S = 60 * 60


class RateLimitWindow:
    """Fixed one-hour window with a request counter.

    ``acquire`` rejects instead of waiting; the counter only moves once the
    check has passed.
    """

    def __init__(self, max_requests: int, *, window_s: float = WINDOW_S, clock: Callable[[], float] = time.time):
        self.max_requests = max_requests
        self.window_s = window_s
        self._clock = clock
        self._count = 0
        self._window_start = clock()
        self._lock = threading.Lock()

    def acquire(self) -> int:
        with self._lock:
            now = self._clock()
            if now - self._window_start > self.window_s:
                self._count = 0
                self._window_start = now
            if self._count >= self.max_requests:
                raise RateLimitExceededError(
                    reset_at=self._window_start + self.window_s,
                    current=self._count,
                    maximum=self.max_requests,
                )
            self._count += 1
            return self._count

    def reset(self) -> None:
        with self._lock:
            self._count = 0
            self._window_start = self._clock()

    @property
    def count(self) -> int:
        return self._count

    def status(self) -> dict[str, Any]:
        with self._lock:
            now = self._clock()
            reset_at = self._window_start + self.window_s
            return {
                "current_requests": self._count,
                "max_requests": self.max_requests,
                "remaining": max(0, self.max_requests - self._count),
                "resets_at": iso_timestamp(reset_at),
                "resets_in": max(0.0, reset_at - now),
            }
