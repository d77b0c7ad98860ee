from __future__ import annotations

import threading
import time
from typing import Callable

from .signing import compute_hmac
from .timefmt import epoch_ms

CSRF_TTL_S = 30 * 60


def derive_csrf_token(secret: str, origin: str, now_s: float) -> str:
    """Token is ``<ms>:<hmac(secret, '<ms>:<origin>')>`` so the server can verify it statelessly."""
    ts = epoch_ms(now_s)
    return f"{ts}:{compute_hmac(f'{ts}:{origin}', secret)}"


class CsrfTokenCell:
    def __init__(self, *, ttl_s: float = CSRF_TTL_S, clock: Callable[[], float] = time.time):
        self.ttl_s = ttl_s
        self._clock = clock
        self._token: str | None = None
        self._expires_at: float | None = None
        self._lock = threading.Lock()

    def get(self, secret: str, origin: str) -> str:
        with self._lock:
            now = self._clock()
            if self._token and self._expires_at is not None and now < self._expires_at:
                return self._token
            self._token = derive_csrf_token(secret, origin, now)
            self._expires_at = now + self.ttl_s
            return self._token

    def clear(self) -> None:
        with self._lock:
            self._token = None
            self._expires_at = None

    @property
    def expires_at(self) -> float | None:
        return self._expires_at
