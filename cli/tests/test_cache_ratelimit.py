from __future__ import annotations

import pytest

from securesheets_client import RateLimitExceededError
from securesheets_client.cache import ResponseCache, cache_key
from securesheets_client.ratelimit import RateLimitWindow


class _Clock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_cache_key_is_order_independent() -> None:
    assert cache_key("getData", {"b": 1, "a": 2}) == cache_key("getData", {"a": 2, "b": 1})
    assert cache_key("getData", None) == "getData:{}"
    assert cache_key("getData", {"a": 1}) != cache_key("getRange", {"a": 1})


def test_expired_entry_is_evicted_on_lookup() -> None:
    clock = _Clock()
    cache = ResponseCache(10, clock=clock)
    cache.set("k", {"rows": []})
    assert cache.get("k") == {"rows": []}
    clock.now += 11
    assert cache.get("k") is None
    assert len(cache) == 0


def test_clear_single_key() -> None:
    cache = ResponseCache(10)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.clear("a")
    assert "a" not in cache
    assert "b" in cache


def test_window_rejects_at_ceiling_without_incrementing() -> None:
    clock = _Clock()
    window = RateLimitWindow(2, clock=clock)
    assert window.acquire() == 1
    assert window.acquire() == 2
    with pytest.raises(RateLimitExceededError) as exc:
        window.acquire()
    assert window.count == 2
    assert exc.value.details["reset_at"] == "2023-11-14T23:13:20.000Z"


def test_window_resets_after_an_hour() -> None:
    clock = _Clock()
    window = RateLimitWindow(1, clock=clock)
    window.acquire()
    clock.now += 3600
    with pytest.raises(RateLimitExceededError):
        window.acquire()
    clock.now += 1
    assert window.acquire() == 1
    status = window.status()
    assert status["remaining"] == 0
    assert status["resets_in"] == pytest.approx(3600)
