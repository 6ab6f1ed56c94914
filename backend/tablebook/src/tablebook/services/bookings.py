"""Restaurant booking creation.

Builds reservation system payloads from a night plan and the guest's
identity, and creates bookings one night at a time. Verified residents'
bookings carry two pre-mapped custom fields: "Hotel Guest" set to yes and
"Booking #" set to their stay ID.
"""

from typing import TYPE_CHECKING, Any, Protocol

from tablebook.config import WidgetConfig
from tablebook.models import (
    BookingCreated,
    CustomFieldValue,
    DuplicateCheckResult,
    ErrorCode,
    GuestIdentity,
    NightOutcome,
    NightPlan,
    UpstreamError,
    WidgetError,
)
from tablebook.utils.logging import get_logger

from .names import is_valid_email
from .resos_client import format_phone

if TYPE_CHECKING:
    from .duplicate_checker import DuplicateChecker

logger = get_logger(__name__)

MISSING_FIELDS = "Missing required fields"


class ReservationWriter(Protocol):
    async def create_booking(self, payload: dict[str, Any]) -> str: ...


def build_custom_fields(guest: GuestIdentity, config: WidgetConfig) -> list[dict[str, Any]]:
    """Custom fields for a booking: the guest's answers plus resident fields."""
    fields = [f.to_wire() for f in guest.custom_fields if f.field_id]

    if guest.resident_stay_id is not None:
        if config.hotel_guest_field_id and config.hotel_guest_yes_choice_id:
            fields.append(
                CustomFieldValue(
                    field_id=config.hotel_guest_field_id,
                    name="Hotel Guest",
                    value=config.hotel_guest_yes_choice_id,
                    multiple_choice_value_name="Yes",
                ).to_wire()
            )
        if config.booking_ref_field_id:
            fields.append(
                CustomFieldValue(
                    field_id=config.booking_ref_field_id,
                    name="Booking #",
                    value=str(guest.resident_stay_id),
                ).to_wire()
            )
    return fields


def build_reservation_payload(
    night: NightPlan,
    guest: GuestIdentity,
    config: WidgetConfig,
) -> dict[str, Any]:
    """Reservation system booking body for one night."""
    payload: dict[str, Any] = {
        "date": night.date.isoformat(),
        "time": night.time,
        "people": night.people,
        "guest": {
            "name": guest.name,
            "email": guest.email,
            "notificationEmail": True,
        },
        "sendNotification": True,
        "source": "website",
    }
    phone = format_phone(guest.phone)
    if phone:
        payload["guest"]["phone"] = phone
    if guest.notes:
        payload["notes"] = guest.notes
    custom_fields = build_custom_fields(guest, config)
    if custom_fields:
        payload["customFields"] = custom_fields
    return payload


class BookingSubmitter:
    """Creates one night's booking and reports its outcome."""

    def __init__(self, reservations: ReservationWriter, config: WidgetConfig) -> None:
        self.reservations = reservations
        self.config = config

    async def submit(self, night: NightPlan, guest: GuestIdentity) -> NightOutcome:
        """Create a booking for one night.

        Upstream failures become a failed outcome for this night only.
        """
        if not night.time or night.people <= 0:
            return NightOutcome(date=night.date, success=False, error=MISSING_FIELDS)

        payload = build_reservation_payload(night, guest, self.config)
        try:
            booking_id = await self.reservations.create_booking(payload)
        except UpstreamError as e:
            logger.warning("Booking for %s failed: %s", night.date.isoformat(), e)
            return NightOutcome(date=night.date, success=False, error=str(e))

        return NightOutcome(date=night.date, success=True, booking_id=booking_id)


class BookingService:
    """Single table booking with a duplicate guard."""

    def __init__(
        self,
        submitter: BookingSubmitter,
        duplicates: "DuplicateChecker",
    ) -> None:
        self.submitter = submitter
        self.duplicates = duplicates

    async def create_booking(
        self,
        night: NightPlan,
        guest: GuestIdentity,
        *,
        force_duplicate: bool = False,
    ) -> BookingCreated | DuplicateCheckResult:
        """Create a single booking unless the guest already has one that day.

        Args:
            night: Date, time and party size
            guest: Guest identity, notes and custom fields
            force_duplicate: Book even if a booking already exists

        Returns:
            BookingCreated, or the duplicate found (nothing is created)

        Raises:
            WidgetError: ERR_INVALID_EMAIL for a malformed email,
                ERR_BOOKING_FAILED if the reservation system rejects it.
        """
        if not is_valid_email(guest.email):
            raise WidgetError(ErrorCode.INVALID_EMAIL)

        if not force_duplicate:
            duplicate = await self.duplicates.check(night.date, guest.email, guest.phone)
            if duplicate.duplicate:
                return duplicate

        outcome = await self.submitter.submit(night, guest)
        if not outcome.success or not outcome.booking_id:
            raise WidgetError(
                ErrorCode.BOOKING_FAILED,
                details={"reason": outcome.error or "No booking ID returned"},
            )

        logger.info(
            "Booking created for %s (resident=%s)",
            night.date.isoformat(), guest.resident_stay_id is not None,
        )
        return BookingCreated(booking_id=outcome.booking_id)
