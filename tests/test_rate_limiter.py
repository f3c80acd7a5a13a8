"""Tests for the fixed-window rate limiter."""

from devtoolbox.server.security import FixedWindowRateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestFixedWindowRateLimiter:
    def test_allows_up_to_limit(self):
        limiter = FixedWindowRateLimiter(3, clock=FakeClock())
        assert [limiter.hit("c") for _ in range(3)] == [None, None, None]
        assert limiter.hit("c") == 60

    def test_clients_counted_separately(self):
        limiter = FixedWindowRateLimiter(1, clock=FakeClock())
        assert limiter.hit("a") is None
        assert limiter.hit("b") is None
        assert limiter.hit("a") is not None

    def test_window_resets(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(1, clock=clock)
        limiter.hit("c")
        clock.now += 30
        assert limiter.hit("c") == 30

        clock.now += 30
        assert limiter.hit("c") is None

    def test_reset(self):
        limiter = FixedWindowRateLimiter(1, clock=FakeClock())
        limiter.hit("c")
        limiter.reset()
        assert limiter.hit("c") is None
