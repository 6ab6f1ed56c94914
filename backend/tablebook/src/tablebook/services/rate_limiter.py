"""Per-client request rate limiting.

Fixed one-minute windows per (client address, endpoint group). State lives
in process memory, so limits apply per Lambda container.
"""

import ipaddress
import time
from collections.abc import Mapping
from typing import Callable

from tablebook.config import WidgetConfig
from tablebook.models import RateLimitGroup

DEFAULT_LIMIT = 30
FALLBACK_ADDRESS = "0.0.0.0"
MAX_TRACKED_KEYS = 10_000

# Checked in order; X-Forwarded-For may hold a list
CLIENT_ADDRESS_HEADERS = ("cf-connecting-ip", "x-forwarded-for", "x-real-ip")


def _valid_address(value: str | None) -> str | None:
    if not value:
        return None
    candidate = value.split(",")[0].strip()
    try:
        ipaddress.ip_address(candidate)
    except ValueError:
        return None
    return candidate


def client_address(headers: Mapping[str, str], peer: str | None = None) -> str:
    """Best guess at the client's address behind Cloudflare and proxies."""
    lowered = {k.lower(): v for k, v in headers.items()}
    for header in CLIENT_ADDRESS_HEADERS:
        address = _valid_address(lowered.get(header))
        if address:
            return address
    return _valid_address(peer) or FALLBACK_ADDRESS


class RateLimiter:
    """Counts requests per client and group within the current minute."""

    def __init__(
        self,
        limits: Mapping[RateLimitGroup, int],
        *,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limits = dict(limits)
        self._window = window_seconds
        self._clock = clock
        self._counters: dict[tuple[str, RateLimitGroup], tuple[float, int]] = {}

    @classmethod
    def from_config(cls, config: WidgetConfig) -> "RateLimiter":
        return cls(
            {
                RateLimitGroup.READ: config.rate_limit_read,
                RateLimitGroup.WRITE: config.rate_limit_write,
                RateLimitGroup.RESIDENT: config.rate_limit_resident,
            }
        )

    def limit_for(self, group: RateLimitGroup) -> int:
        return self._limits.get(group, DEFAULT_LIMIT)

    def check(self, address: str, group: RateLimitGroup) -> bool:
        """Count a request; False once the client's limit is reached."""
        now = self._clock()
        key = (address, group)
        started, count = self._counters.get(key, (now, 0))
        if now - started >= self._window:
            started, count = now, 0

        if count >= self.limit_for(group):
            return False

        self._counters[key] = (started, count + 1)
        if len(self._counters) > MAX_TRACKED_KEYS:
            self._evict(now)
        return True

    def _evict(self, now: float) -> None:
        expired = [k for k, (started, _) in self._counters.items() if now - started >= self._window]
        for key in expired:
            del self._counters[key]

    def reset(self) -> None:
        self._counters.clear()
