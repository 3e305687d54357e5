"""Unit tests for the fixed-window rate limiter."""

import pytest
import threading
from orchestrator.core.services.tools.rate_limit import RateLimiter
from orchestrator.core.services.tools.types import RateLimit


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock(1_000.0)


@pytest.fixture
def limiter(clock):
    return RateLimiter(clock=clock)


def test_first_call_opens_window(limiter):
    assert limiter.check("web_search", "user-1", RateLimit(max_calls=2, window_ms=1000)) is True
    assert limiter.usage("web_search", "user-1") == (1, 2_000.0)


def test_refuses_once_window_is_full(limiter):
    limit = RateLimit(max_calls=2, window_ms=1000)

    assert limiter.check("web_search", "user-1", limit) is True
    assert limiter.check("web_search", "user-1", limit) is True
    assert limiter.check("web_search", "user-1", limit) is False


def test_refused_calls_are_not_counted(limiter):
    limit = RateLimit(max_calls=1, window_ms=1000)
    limiter.check("web_search", "user-1", limit)

    for _ in range(3):
        assert limiter.check("web_search", "user-1", limit) is False

    assert limiter.usage("web_search", "user-1")[0] == 1


def test_window_is_replaced_after_reset_time(limiter, clock):
    limit = RateLimit(max_calls=1, window_ms=1000)
    limiter.check("web_search", "user-1", limit)

    # Exactly at reset_at the old window still applies
    clock.now = 2_000.0
    assert limiter.check("web_search", "user-1", limit) is False

    clock.now = 2_000.5
    assert limiter.check("web_search", "user-1", limit) is True
    assert limiter.usage("web_search", "user-1") == (1, 3_000.5)


def test_windows_are_per_tool_and_per_caller(limiter):
    limit = RateLimit(max_calls=1, window_ms=1000)

    assert limiter.check("web_search", "user-1", limit) is True
    assert limiter.check("web_search", "user-2", limit) is True
    assert limiter.check("fetch_url", "user-1", limit) is True
    assert limiter.check("web_search", "user-1", limit) is False


def test_anonymous_callers_share_a_window(limiter):
    limit = RateLimit(max_calls=1, window_ms=1000)

    assert limiter.check("check_api_health", None, limit) is True
    assert limiter.check("check_api_health", None, limit) is False


def test_concurrent_checks_never_exceed_limit(limiter):
    limit = RateLimit(max_calls=50, window_ms=60_000)
    accepted = []
    lock = threading.Lock()

    def worker():
        for _ in range(20):
            if limiter.check("send_email", "user-1", limit):
                with lock:
                    accepted.append(1)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(accepted) == 50


def test_reset_clears_windows(limiter):
    limit = RateLimit(max_calls=1, window_ms=1000)
    limiter.check("web_search", "user-1", limit)
    limiter.reset()

    assert limiter.usage("web_search", "user-1") is None
    assert limiter.check("web_search", "user-1", limit) is True


def test_expired_windows_are_swept(clock):
    limiter = RateLimiter(clock=clock, prune_interval_ms=500)
    limit = RateLimit(max_calls=1, window_ms=1000)
    limiter.check("web_search", "user-1", limit)
    limiter.check("web_search", "user-2", limit)

    clock.now = 2_500.0
    limiter.check("fetch_url", "user-3", limit)

    assert limiter.usage("web_search", "user-1") is None
    assert limiter.usage("web_search", "user-2") is None
    assert limiter.usage("fetch_url", "user-3") == (1, 3_500.0)


def test_live_windows_survive_a_sweep(clock):
    limiter = RateLimiter(clock=clock, prune_interval_ms=500)
    limiter.check("web_search", "user-1", RateLimit(max_calls=1, window_ms=10_000))

    clock.now = 2_000.0
    limiter.check("fetch_url", "user-3", RateLimit(max_calls=1, window_ms=1000))

    assert limiter.usage("web_search", "user-1") == (1, 11_000.0)
    assert limiter.check("web_search", "user-1", RateLimit(max_calls=1, window_ms=10_000)) is False
