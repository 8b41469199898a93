"""RateLimitMiddleware bucket bookkeeping."""

import collections

from synprod.main import RateLimitMiddleware


def _limiter(now):
    limiter = RateLimitMiddleware(app=None)
    limiter._last_sweep = now - RateLimitMiddleware.WINDOW_SECONDS - 1
    return limiter


def test_idle_buckets_are_dropped():
    now = 1000.0
    limiter = _limiter(now)
    limiter._windows["10.0.0.1:general"] = collections.deque([now - 300, now - 200])
    limiter._windows["10.0.0.2:general"] = collections.deque([now - 90, now - 5])
    limiter._sweep(now)
    assert list(limiter._windows) == ["10.0.0.2:general"]
    assert list(limiter._windows["10.0.0.2:general"]) == [now - 5]


def test_sweep_runs_at_most_once_per_window():
    now = 1000.0
    limiter = _limiter(now)
    limiter._sweep(now)
    limiter._windows["10.0.0.3:general"] = collections.deque([now - 500])
    limiter._sweep(now + 10)
    assert "10.0.0.3:general" in limiter._windows
    limiter._sweep(now + RateLimitMiddleware.WINDOW_SECONDS + 1)
    assert "10.0.0.3:general" not in limiter._windows


def test_limits_per_path():
    limiter = _limiter(0.0)
    assert limiter._get_limit("/api/auth/login") == 5
    assert limiter._get_limit("/api/recipes/2/export.pdf") == 10
    assert limiter._get_limit("/api/recipes/calculate") == 60
