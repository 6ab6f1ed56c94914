"""Direct link verification for residents.

Hotel confirmation emails link to the widget with the stay ID and a second
factor (guest ID, surname, email or phone). The stay is fetched by ID rather
than by scanning the staying list for a date.
"""

from typing import TYPE_CHECKING

from tablebook.models import (
    ErrorCode,
    GuestCandidate,
    LinkVerification,
    ResidentProfile,
    StayRecord,
    UpstreamError,
    WidgetError,
)
from tablebook.utils.logging import get_logger, log_resident_match

from .names import same_phone, same_text

if TYPE_CHECKING:
    from .stay_records import StayRecordSource

logger = get_logger(__name__)

LOOKUP_FAILED = "Could not verify your booking. You can continue as a regular guest."
BOOKING_NOT_FOUND = "Booking not found."
BOOKING_CANCELLED = "This booking has been cancelled."
IDENTITY_NOT_VERIFIED = "Could not verify your identity for this booking."


def _guest_satisfies(
    guest: GuestCandidate,
    *,
    guest_id: int | None,
    surname: str,
    email: str,
    phone: str,
) -> bool:
    if guest_id and guest.guest_id == guest_id:
        return True
    if surname and same_text(guest.last_name, surname):
        return True
    if email and same_text(guest.email, email):
        return True
    return bool(phone) and same_phone(guest.phone, phone)


def build_profile(record: StayRecord, guest: GuestCandidate | None) -> ResidentProfile:
    """Resident details for the widget from a stay and its verified guest."""
    guest = guest or record.primary_guest
    return ResidentProfile(
        booking_id=record.stay_id,
        guest_name=guest.full_name if guest else "",
        guest_email=guest.email if guest else "",
        guest_phone=guest.phone if guest else "",
        room=record.room_label,
        check_in=record.check_in,
        check_out=record.check_out,
        nights=record.nights,
        occupancy=record.occupancy,
        group_id=record.group_id,
    )


class ResidentLookup:
    """Verifies residents arriving from a direct link."""

    def __init__(self, stays: "StayRecordSource") -> None:
        self.stays = stays

    async def verify_from_link(
        self,
        booking_id: int,
        *,
        guest_id: int | None = None,
        surname: str = "",
        email: str = "",
        phone: str = "",
    ) -> LinkVerification:
        """Verify a stay ID against a second factor.

        Every guest on the stay is tried in order; the first one satisfying
        any supplied factor is the verified guest.

        Raises:
            WidgetError: ERR_INVALID_REQUEST if no second factor is given.
        """
        surname, email, phone = surname.strip(), email.strip(), phone.strip()
        if not (guest_id or surname or email or phone):
            raise WidgetError(
                ErrorCode.INVALID_REQUEST,
                details={"reason": "Verification factor required"},
            )

        try:
            record = await self.stays.fetch_by_id(booking_id)
        except UpstreamError as e:
            log_resident_match(logger, "verify_link", booking_id=booking_id, error=str(e))
            return LinkVerification(verified=False, error=LOOKUP_FAILED)

        if record is None:
            return LinkVerification(verified=False, error=BOOKING_NOT_FOUND)
        if not record.is_active:
            return LinkVerification(verified=False, error=BOOKING_CANCELLED)

        matched = next(
            (
                g for g in record.guests
                if _guest_satisfies(g, guest_id=guest_id, surname=surname, email=email, phone=phone)
            ),
            None,
        )
        if matched is None:
            log_resident_match(logger, "verify_link", booking_id=booking_id, verified=False)
            return LinkVerification(verified=False, error=IDENTITY_NOT_VERIFIED)

        log_resident_match(logger, "verify_link", booking_id=booking_id, verified=True)
        return LinkVerification(verified=True, profile=build_profile(record, matched))
