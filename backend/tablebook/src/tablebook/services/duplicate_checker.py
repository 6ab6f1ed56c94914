"""Duplicate booking detection on the read path."""

import datetime as dt
from typing import TYPE_CHECKING

from tablebook.models import DuplicateCheckResult, UpstreamError
from tablebook.utils.logging import get_logger

from .names import same_phone, same_text

if TYPE_CHECKING:
    from .group_coordinator import ReservationGateway

logger = get_logger(__name__)


class DuplicateChecker:
    """Finds an existing table booking for the same guest on a date.

    Independent of residency: any guest whose email or phone matches an
    existing booking is warned before booking again.
    """

    def __init__(self, reservations: "ReservationGateway") -> None:
        self.reservations = reservations

    async def check(self, date: dt.date, email: str, phone: str = "") -> DuplicateCheckResult:
        """Check the date's bookings for this guest.

        If the reservation system cannot be read the booking is allowed.
        """
        try:
            bookings = await self.reservations.get_bookings_for_date(date)
        except UpstreamError as e:
            logger.warning("Duplicate check skipped for %s: %s", date.isoformat(), e)
            return DuplicateCheckResult(duplicate=False)

        for booking in bookings:
            if same_text(booking.guest_email, email) or same_phone(phone, booking.guest_phone):
                logger.info("Duplicate booking found on %s", date.isoformat())
                return DuplicateCheckResult(
                    duplicate=True,
                    existing_time=booking.time,
                    existing_people=booking.people,
                )

        return DuplicateCheckResult(duplicate=False)
