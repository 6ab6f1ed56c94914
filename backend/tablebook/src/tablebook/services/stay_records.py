"""Staying list source with a short-lived per-date cache."""

import datetime as dt
import logging
import time
from typing import Callable, Protocol

from tablebook.models import StayRecord, UpstreamError

logger = logging.getLogger(__name__)


class StayGateway(Protocol):
    """Property system operations the stay source needs."""

    async def list_staying(self, date: dt.date) -> list[StayRecord]: ...

    async def get_booking(self, booking_id: int) -> StayRecord | None: ...


class StayRecordSource:
    """Active stay records per date, cached for a few minutes.

    The cache is the only shared mutable state in the matching engine.
    Concurrent misses for the same date each fetch and the last write wins;
    entries are snapshots of the property system, never authoritative.
    Failed fetches are not cached.
    """

    def __init__(
        self,
        gateway: StayGateway,
        *,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the source.

        Args:
            gateway: Property system client
            ttl_seconds: How long a date's staying list is reused
            clock: Monotonic time source, replaceable in tests
        """
        self._gateway = gateway
        self._ttl = ttl_seconds
        self._clock = clock
        self._cache: dict[dt.date, tuple[float, list[StayRecord]]] = {}

    async def get_staying(self, date: dt.date) -> list[StayRecord] | None:
        """Active (non-cancelled) stay records for a date.

        Returns:
            The records in fetch order, or None if the property system could
            not be reached. An empty list means nobody is staying.
        """
        cached = self._cache.get(date)
        now = self._clock()
        if cached is not None and now - cached[0] < self._ttl:
            return cached[1]

        try:
            records = await self._gateway.list_staying(date)
        except UpstreamError as e:
            logger.warning("Staying list unavailable for %s: %s", date.isoformat(), e)
            return None

        active = [r for r in records if r.is_active]
        now = self._clock()
        self._evict(now)
        self._cache[date] = (now, active)
        return active

    def _evict(self, now: float) -> None:
        expired = [d for d, (fetched, _) in self._cache.items() if now - fetched >= self._ttl]
        for date in expired:
            del self._cache[date]

    async def prefetch(self, date: dt.date) -> None:
        """Warm the cache for a date; failures are ignored."""
        records = await self.get_staying(date)
        if records is None:
            logger.debug("Prefetch of staying list for %s failed", date.isoformat())

    async def fetch_by_id(self, booking_id: int) -> StayRecord | None:
        """Look up one stay directly, bypassing the cache.

        Raises:
            UpstreamError: If the property system could not be reached.
        """
        return await self._gateway.get_booking(booking_id)

    def invalidate(self, date: dt.date | None = None) -> None:
        """Drop one date's entry, or the whole cache."""
        if date is None:
            self._cache.clear()
        else:
            self._cache.pop(date, None)
