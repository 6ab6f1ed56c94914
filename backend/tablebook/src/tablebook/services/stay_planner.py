"""Multi-night stay planning and batch booking.

A verified resident can book a table for every night of their stay at once.
Each night is either given a table, marked as not needing one, or left
pending. Submission books the selected nights independently: one night
failing never undoes another. Nights marked "no table" are written back to
the property system as a courtesy note for staff.
"""

import asyncio
import datetime as dt
from collections.abc import Iterable, Sequence
from typing import Protocol

from tablebook.config import WidgetConfig
from tablebook.models import (
    ErrorCode,
    GuestIdentity,
    MatchResult,
    NightOutcome,
    NightPlan,
    NightStatus,
    NoTableOutcome,
    StaySubmissionResult,
    UpstreamError,
    WidgetError,
)
from tablebook.utils.logging import get_logger, log_booking_batch

from .bookings import BookingSubmitter

logger = get_logger(__name__)

NO_TABLE_PREFIX = "No table needed: "


class NoTableGateway(Protocol):
    async def set_custom_field(self, booking_id: int, name: str, value: str) -> None: ...


def no_table_value(dates: Iterable[dt.date]) -> str:
    """Property system field value listing the nights without a table."""
    return NO_TABLE_PREFIX + ", ".join(d.isoformat() for d in dates)


def upsell_nights(match: MatchResult, selected_date: dt.date) -> list[dt.date]:
    """Other nights of a matched stay the guest could also book."""
    if match.record is None:
        return []
    return [night for night in match.record.nights if night != selected_date]


class StayPlanner:
    """Per-night plan for one resident's stay.

    Nights already holding a table start as ``already_booked`` and cannot be
    changed; every other night starts ``pending``.
    """

    def __init__(
        self,
        nights: Sequence[dt.date],
        already_booked: Iterable[dt.date] = (),
    ) -> None:
        booked = set(already_booked)
        self._status: dict[dt.date, NightStatus] = {
            night: NightStatus.ALREADY_BOOKED if night in booked else NightStatus.PENDING
            for night in nights
        }
        self._plans: dict[dt.date, NightPlan] = {}

    def _editable(self, date: dt.date) -> None:
        status = self._status.get(date)
        if status is None:
            raise ValueError(f"{date.isoformat()} is not a night of this stay")
        if status == NightStatus.ALREADY_BOOKED:
            raise ValueError(f"{date.isoformat()} is already booked")

    def status(self, date: dt.date) -> NightStatus:
        return self._status[date]

    @property
    def statuses(self) -> dict[dt.date, NightStatus]:
        return dict(self._status)

    def select(self, plan: NightPlan) -> None:
        """Choose a period and time for a night."""
        self._editable(plan.date)
        self._plans[plan.date] = plan
        self._status[plan.date] = NightStatus.SELECTED

    def toggle_no_table(self, date: dt.date) -> NightStatus:
        """Mark a night as not needing a table, or put it back to pending."""
        self._editable(date)
        self._plans.pop(date, None)
        if self._status[date] == NightStatus.NO_TABLE:
            self._status[date] = NightStatus.PENDING
        else:
            self._status[date] = NightStatus.NO_TABLE
        return self._status[date]

    def clear(self, date: dt.date) -> None:
        """Return a night to pending."""
        self._editable(date)
        self._plans.pop(date, None)
        self._status[date] = NightStatus.PENDING

    @property
    def night_plans(self) -> list[NightPlan]:
        return [self._plans[d] for d, s in self._status.items() if s == NightStatus.SELECTED]

    @property
    def no_table_dates(self) -> list[dt.date]:
        return [d for d, s in self._status.items() if s == NightStatus.NO_TABLE]

    @property
    def pending_dates(self) -> list[dt.date]:
        return [d for d, s in self._status.items() if s == NightStatus.PENDING]

    @property
    def can_submit(self) -> bool:
        """At least one night has a table or is marked no table."""
        return any(
            s in (NightStatus.SELECTED, NightStatus.NO_TABLE) for s in self._status.values()
        )


class BatchBookingCoordinator:
    """Submits a stay plan as independent bookings."""

    def __init__(
        self,
        submitter: BookingSubmitter,
        stays: NoTableGateway,
        config: WidgetConfig,
    ) -> None:
        """Initialize the coordinator.

        Args:
            submitter: Creates one night's booking
            stays: Property system client for the no-table marker
            config: Widget configuration
        """
        self.submitter = submitter
        self.stays = stays
        self.config = config

    async def submit_batch(
        self,
        nights: Sequence[NightPlan],
        guest: GuestIdentity,
    ) -> list[NightOutcome]:
        """Create one booking per night, concurrently.

        Results come back in the order the nights were given, each recording
        its own date. At most ``max_batch_nights`` nights are submitted.
        """
        nights = list(nights)[: self.config.max_batch_nights]
        results = await asyncio.gather(
            *(self.submitter.submit(night, guest) for night in nights),
            return_exceptions=True,
        )

        outcomes: list[NightOutcome] = []
        for night, result in zip(nights, results):
            if isinstance(result, NightOutcome):
                outcomes.append(result)
                continue
            logger.error(
                "Unexpected error booking %s", night.date.isoformat(), exc_info=result
            )
            outcomes.append(NightOutcome(date=night.date, success=False, error=str(result)))
        return outcomes

    async def mark_no_table(self, stay_id: int, dates: Sequence[dt.date]) -> None:
        """Record nights without a table on the stay.

        Raises:
            UpstreamError: If the property system rejects the update.
        """
        await self.stays.set_custom_field(
            stay_id, self.config.no_table_field_name, no_table_value(dates)
        )

    async def plan_and_submit_stay(
        self,
        nights: Sequence[NightPlan],
        no_table_dates: Sequence[dt.date],
        guest: GuestIdentity,
    ) -> StaySubmissionResult:
        """Book the selected nights and mark the no-table nights.

        Partial success is a normal outcome. The no-table marker is best
        effort: its failure is logged and reported, never raised.

        Raises:
            WidgetError: ERR_NO_NIGHTS_SELECTED if there is nothing to submit.
        """
        if not nights and not no_table_dates:
            raise WidgetError(ErrorCode.NO_NIGHTS_SELECTED)

        batch = await self.submit_batch(nights, guest) if nights else []

        no_table = NoTableOutcome(dates=list(no_table_dates))
        if no_table_dates and guest.resident_stay_id is not None:
            try:
                await self.mark_no_table(guest.resident_stay_id, no_table_dates)
                no_table = NoTableOutcome(dates=list(no_table_dates), attempted=True, success=True)
            except UpstreamError as e:
                logger.warning("No-table marker failed for stay %s: %s", guest.resident_stay_id, e)
                no_table = NoTableOutcome(dates=list(no_table_dates), attempted=True)

        result = StaySubmissionResult(batch_results=batch, no_table=no_table)
        log_booking_batch(
            logger,
            date_count=len(batch),
            succeeded=len(result.succeeded),
            failed=len(result.failed),
            no_table=len(no_table_dates),
            stay_id=guest.resident_stay_id,
        )
        return result
