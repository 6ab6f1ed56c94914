"""Service periods and bookable times.

Opening hours come from the reservation system, annotated with the closing
markers staff put in period names. Residents see through closures: their
times are fetched with online-only restrictions lifted.
"""

import asyncio
import datetime as dt
import re
from collections.abc import Sequence
from typing import Any

from tablebook.config import WidgetConfig
from tablebook.models import DateAvailability, ServicePeriod, TimeSlots, UpstreamError
from tablebook.utils.logging import get_logger

from .closing_markers import parse_closing_markers
from .resos_client import ResosClient

logger = get_logger(__name__)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _period_entry(entries: list[dict[str, Any]], period_id: str) -> dict[str, Any] | None:
    """The times entry for a period, or the only entry if there is just one."""
    for entry in entries:
        if isinstance(entry, dict) and entry.get("_id") == period_id:
            return entry
    if len(entries) == 1 and isinstance(entries[0], dict):
        return entries[0]
    return None


class AvailabilityService:
    """Reads periods and times for the booking calendar and stay planner."""

    def __init__(self, reservations: ResosClient, config: WidgetConfig) -> None:
        self.reservations = reservations
        self.config = config

    def _to_period(self, raw: dict[str, Any]) -> ServicePeriod:
        markers = parse_closing_markers(
            str(raw.get("name") or ""), self.config.closeout_message()
        )
        return ServicePeriod(
            id=str(raw.get("_id") or ""),
            name=markers.clean_name,
            from_time=str(raw.get("from") or ""),
            to_time=str(raw.get("to") or ""),
            is_special=bool(raw.get("isSpecial")),
            resident_only=markers.resident_only,
            display_message=markers.display_message,
        )

    async def list_periods(self, date: dt.date) -> list[ServicePeriod]:
        """Service periods on a date.

        Raises:
            UpstreamError: If opening hours cannot be read.
        """
        hours = await self.reservations.get_opening_hours(date)
        return [self._to_period(h) for h in hours if isinstance(h, dict)]

    async def available_times(self, date: dt.date, people: int, period_id: str) -> TimeSlots:
        """Times for one period, without the pre-mapped custom fields.

        Raises:
            UpstreamError: If times cannot be read.
        """
        entries = await self.reservations.get_available_times(date, people, period_id)
        entry = _period_entry(entries, period_id)
        if entry is None:
            return TimeSlots()

        mapped = {self.config.hotel_guest_field_id, self.config.booking_ref_field_id} - {""}
        fields = [
            f for f in entry.get("activeCustomFields") or []
            if isinstance(f, dict) and f.get("_id", "") not in mapped
        ]
        return TimeSlots(
            times=[str(t) for t in entry.get("availableTimes") or []],
            active_custom_fields=fields,
        )

    async def _period_times(
        self,
        date: dt.date,
        people: int,
        period: ServicePeriod,
        resident: bool,
    ) -> list[str]:
        try:
            entries = await self.reservations.get_available_times(
                date, people, period.id, only_bookable_online=not resident
            )
        except UpstreamError as e:
            logger.warning("Times unavailable for %s %s: %s", date.isoformat(), period.id, e)
            return []
        entry = _period_entry(entries, period.id)
        return [str(t) for t in entry.get("availableTimes") or []] if entry else []

    async def _date_availability(
        self,
        date: dt.date,
        people: int,
        resident: bool,
    ) -> DateAvailability:
        try:
            periods = await self.list_periods(date)
        except UpstreamError as e:
            logger.warning("Opening hours unavailable for %s: %s", date.isoformat(), e)
            return DateAvailability(error=True)

        open_indexes = [
            i for i, p in enumerate(periods) if not p.is_closed_for(resident=resident)
        ]
        times = await asyncio.gather(
            *(self._period_times(date, people, periods[i], resident) for i in open_indexes)
        )
        for i, period_times in zip(open_indexes, times):
            periods[i] = periods[i].model_copy(update={"times": period_times})
        return DateAvailability(periods=periods)

    async def available_times_multi(
        self,
        dates: Sequence[str],
        people: int,
        resident_booking_id: int | None = None,
    ) -> dict[str, DateAvailability]:
        """Periods and times for several nights, keyed by date.

        Malformed dates are skipped and at most ``max_batch_nights`` dates
        are looked up. A night whose opening hours fail is flagged with
        ``error`` rather than failing the whole request.
        """
        parsed: list[dt.date] = []
        for raw in list(dates)[: self.config.max_batch_nights]:
            if not isinstance(raw, str) or not _ISO_DATE.match(raw):
                continue
            try:
                parsed.append(dt.date.fromisoformat(raw))
            except ValueError:
                continue

        resident = bool(resident_booking_id)
        results = await asyncio.gather(
            *(self._date_availability(d, people, resident) for d in parsed)
        )
        return {d.isoformat(): r for d, r in zip(parsed, results)}
