from __future__ import annotations

import secrets
import threading
import time
from collections import OrderedDict
from typing import Callable

from .errors import NonceExhaustedError

MAX_TRACKED = 1000
MAX_ATTEMPTS = 10

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(_ALPHABET[rem])
    return "".join(reversed(out))


def _random_suffix(length: int = 9) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def make_nonce(now_s: float, suffix: str) -> str:
    return _base36(int(now_s * 1000)) + suffix


class NonceTracker:
    """Generates nonces and remembers the most recent ``capacity`` of them.

    Eviction is FIFO by insertion order.
    """

    def __init__(
            self,
            *,
            capacity: int = MAX_TRACKED,
            max_attempts: int = MAX_ATTEMPTS,
            clock: Callable[[], float] = time.time,
            suffix_factory: Callable[[], str] = _random_suffix,
    ):
        self.capacity = capacity
        self.max_attempts = max_attempts
        self._clock = clock
        self._suffix = suffix_factory
        self._used: OrderedDict[str, int] = OrderedDict()
        self._seq = 0
        self._lock = threading.Lock()

    def generate(self) -> str:
        with self._lock:
            for _ in range(self.max_attempts):
                nonce = make_nonce(self._clock(), self._suffix())
                if nonce not in self._used:
                    break
            else:
                raise NonceExhaustedError(
                    f"Failed to generate a unique nonce after {self.max_attempts} attempts",
                )
            self._seq += 1
            self._used[nonce] = self._seq
            while len(self._used) > self.capacity:
                self._used.popitem(last=False)
            return nonce

    def seen(self, nonce: str) -> bool:
        with self._lock:
            return nonce in self._used

    def clear(self) -> None:
        with self._lock:
            self._used.clear()

    def __len__(self) -> int:
        return len(self._used)
