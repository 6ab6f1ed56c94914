"""Restaurant booking models: guest identity, night plans and outcomes."""

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CustomFieldValue(BaseModel):
    """A reservation system custom field answer.

    Field names follow the reservation system's wire format via aliases.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    field_id: str = Field(..., alias="_id")
    name: str | None = None
    value: Any = None
    multiple_choice_value_name: str | None = Field(
        default=None, alias="multipleChoiceValueName"
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize using the reservation system's field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class GuestIdentity(BaseModel):
    """Who a booking is for, shared across every night of a batch."""

    model_config = ConfigDict(strict=True, frozen=True)

    name: str
    email: str
    phone: str = ""
    notes: str = ""
    custom_fields: list[CustomFieldValue] = Field(default_factory=list)
    resident_stay_id: int | None = Field(
        default=None,
        description="Verified stay booking ID; adds the hotel guest fields",
    )


class NightPlan(BaseModel):
    """One night the guest has chosen a table for."""

    model_config = ConfigDict(strict=True, frozen=True)

    date: dt.date
    period_id: str = ""
    period_name: str = ""
    time: str
    people: int = Field(..., ge=0)


class NightOutcome(BaseModel):
    """Result of creating one night's booking; independent of other nights."""

    model_config = ConfigDict(strict=True, frozen=True)

    date: dt.date
    success: bool
    booking_id: str | None = None
    error: str | None = None


class NoTableOutcome(BaseModel):
    """Result of the best-effort no-table marker."""

    model_config = ConfigDict(strict=True, frozen=True)

    dates: list[dt.date] = Field(default_factory=list)
    attempted: bool = False
    success: bool = False


class StaySubmissionResult(BaseModel):
    """Everything needed to render the per-night confirmation screen."""

    model_config = ConfigDict(strict=True, frozen=True)

    batch_results: list[NightOutcome] = Field(default_factory=list)
    no_table: NoTableOutcome = Field(default_factory=NoTableOutcome)

    @property
    def succeeded(self) -> list[NightOutcome]:
        return [r for r in self.batch_results if r.success]

    @property
    def failed(self) -> list[NightOutcome]:
        return [r for r in self.batch_results if not r.success]


class ReservationSummary(BaseModel):
    """The parts of an existing reservation system booking the widget reads."""

    model_config = ConfigDict(strict=True, frozen=True)

    reservation_id: str = ""
    time: str = ""
    people: int = 0
    guest_name: str = ""
    guest_email: str = ""
    guest_phone: str = ""
    custom_fields: dict[str, str] = Field(
        default_factory=dict,
        description="Custom field ID -> plain string value",
    )

    def custom_field(self, field_id: str) -> str | None:
        if not field_id:
            return None
        value = self.custom_fields.get(field_id, "").strip()
        return value or None


class DuplicateCheckResult(BaseModel):
    """Whether the guest already has a booking on the date."""

    model_config = ConfigDict(strict=True, frozen=True)

    duplicate: bool
    existing_time: str | None = None
    existing_people: int | None = None


class BookingCreated(BaseModel):
    """A single booking was created."""

    model_config = ConfigDict(strict=True, frozen=True)

    success: bool = True
    booking_id: str
