"""Unit tests for per-client rate limiting."""

import pytest

from tablebook.config import WidgetConfig
from tablebook.models import RateLimitGroup
from tablebook.services.rate_limiter import (
    DEFAULT_LIMIT,
    FALLBACK_ADDRESS,
    RateLimiter,
    client_address,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestRateLimiter:
    def test_allows_up_to_limit(self, clock: FakeClock) -> None:
        limiter = RateLimiter({RateLimitGroup.WRITE: 2}, clock=clock)

        results = [limiter.check("198.51.100.7", RateLimitGroup.WRITE) for _ in range(3)]

        assert results == [True, True, False]

    def test_window_resets(self, clock: FakeClock) -> None:
        limiter = RateLimiter({RateLimitGroup.WRITE: 1}, clock=clock)
        limiter.check("198.51.100.7", RateLimitGroup.WRITE)

        clock.now += 60

        assert limiter.check("198.51.100.7", RateLimitGroup.WRITE) is True

    def test_clients_and_groups_counted_separately(self, clock: FakeClock) -> None:
        limiter = RateLimiter({RateLimitGroup.WRITE: 1, RateLimitGroup.READ: 1}, clock=clock)
        limiter.check("198.51.100.7", RateLimitGroup.WRITE)

        assert limiter.check("198.51.100.8", RateLimitGroup.WRITE) is True
        assert limiter.check("198.51.100.7", RateLimitGroup.READ) is True
        assert limiter.check("198.51.100.7", RateLimitGroup.WRITE) is False

    def test_default_limit(self) -> None:
        assert RateLimiter({}).limit_for(RateLimitGroup.RESIDENT) == DEFAULT_LIMIT

    def test_from_config(self) -> None:
        limiter = RateLimiter.from_config(
            WidgetConfig(rate_limit_read=50, rate_limit_write=3, rate_limit_resident=7)
        )

        assert limiter.limit_for(RateLimitGroup.READ) == 50
        assert limiter.limit_for(RateLimitGroup.WRITE) == 3
        assert limiter.limit_for(RateLimitGroup.RESIDENT) == 7

    def test_reset(self, clock: FakeClock) -> None:
        limiter = RateLimiter({RateLimitGroup.WRITE: 1}, clock=clock)
        limiter.check("198.51.100.7", RateLimitGroup.WRITE)

        limiter.reset()

        assert limiter.check("198.51.100.7", RateLimitGroup.WRITE) is True


class TestClientAddress:
    def test_cloudflare_header_wins(self) -> None:
        headers = {"CF-Connecting-IP": "203.0.113.9", "X-Forwarded-For": "198.51.100.1"}

        assert client_address(headers, "10.0.0.1") == "203.0.113.9"

    def test_first_forwarded_address(self) -> None:
        headers = {"x-forwarded-for": "198.51.100.1, 10.0.0.2"}

        assert client_address(headers, "10.0.0.1") == "198.51.100.1"

    def test_invalid_header_skipped(self) -> None:
        headers = {"cf-connecting-ip": "not-an-ip", "x-real-ip": "2001:db8::1"}

        assert client_address(headers) == "2001:db8::1"

    def test_falls_back_to_peer(self) -> None:
        assert client_address({}, "192.0.2.4") == "192.0.2.4"

    def test_unknown_client(self) -> None:
        assert client_address({}, "testclient") == FALLBACK_ADDRESS
