"""Hotel stay records as read from the property management system.

Stay records are read-only snapshots. The widget never mutates them; the
only write back to the property system is the no-table marker.
"""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .enums import StayStatus


class GuestCandidate(BaseModel):
    """A named guest on a stay record."""

    model_config = ConfigDict(strict=True, frozen=True)

    guest_id: int | None = Field(default=None, description="Property system guest ID")
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = Field(default="", description="Mobile if recorded, else landline")
    is_primary: bool = False

    @property
    def full_name(self) -> str:
        """First and last name joined, trimmed."""
        return f"{self.first_name.strip()} {self.last_name.strip()}".strip()


class StayRecord(BaseModel):
    """A property system booking spanning one or more nights."""

    model_config = ConfigDict(strict=True, frozen=True)

    stay_id: int = Field(..., description="Property system booking ID")
    guests: list[GuestCandidate] = Field(default_factory=list)
    check_in: dt.date
    check_out: dt.date = Field(..., description="Departure date (exclusive)")
    room_label: str = ""
    group_id: int | None = None
    status: StayStatus = StayStatus.ACTIVE
    reference_code: str | None = Field(
        default=None,
        description="External booking reference (travel agent / OTA)",
    )
    travel_agent_name: str | None = None
    occupancy: int = Field(default=0, ge=0, description="Adults + children + infants")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def nights(self) -> list[dt.date]:
        """Stay nights, check-in inclusive, check-out exclusive."""
        return [
            self.check_in + dt.timedelta(days=i)
            for i in range((self.check_out - self.check_in).days)
        ]

    @property
    def is_active(self) -> bool:
        return self.status == StayStatus.ACTIVE

    @property
    def is_agent_booking(self) -> bool:
        """Whether the stay came in through a travel agent or OTA."""
        return bool(self.travel_agent_name and self.travel_agent_name.strip())

    @property
    def primary_guest(self) -> GuestCandidate | None:
        """The guest flagged as primary, or the first guest if none is flagged."""
        for guest in self.guests:
            if guest.is_primary:
                return guest
        return self.guests[0] if self.guests else None


class StaySummary(BaseModel):
    """Public view of a stay, without guest contact details.

    This is what the widget API hands to the browser after a match; guest
    names, emails and phone numbers never leave the backend.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    booking_id: int
    booking_reference_id: str | None = None
    check_in: dt.date
    check_out: dt.date
    nights: list[dt.date] = Field(default_factory=list)
    room: str = ""
    occupancy: int = 0
    group_id: int | None = None

    @classmethod
    def from_record(cls, record: StayRecord) -> "StaySummary":
        return cls(
            booking_id=record.stay_id,
            booking_reference_id=record.reference_code,
            check_in=record.check_in,
            check_out=record.check_out,
            nights=record.nights,
            room=record.room_label,
            occupancy=record.occupancy,
            group_id=record.group_id,
        )

    def to_record(self) -> StayRecord:
        """Rebuild a guest-less stay record on the client side."""
        return StayRecord(
            stay_id=self.booking_id,
            check_in=self.check_in,
            check_out=self.check_out,
            room_label=self.room,
            group_id=self.group_id,
            reference_code=self.booking_reference_id,
            occupancy=self.occupancy,
        )
