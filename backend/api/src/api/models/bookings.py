"""API models for booking endpoints.

Request bodies carry the guest fields flat, the way the widget form posts
them; ``guest_identity()`` turns them into the shared GuestIdentity.
"""

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tablebook.models.booking import (
    CustomFieldValue,
    GuestIdentity,
    NightOutcome,
)


class GuestFields(BaseModel):
    """Guest details common to every booking request."""

    model_config = ConfigDict(
        # Note: strict=False allows string-to-date coercion from JSON
        strict=False,
    )

    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=1, max_length=254)
    phone: str = Field(default="", max_length=40)
    notes: str = Field(default="", max_length=1000)
    custom_fields: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Reservation custom field answers; entries without an _id are dropped",
    )
    resident_booking_id: int | None = Field(
        default=None,
        description="Verified stay ID; adds the hotel guest fields to the booking",
    )
    turnstile_token: str | None = Field(default=None, description="Cloudflare Turnstile token")

    def guest_identity(self) -> GuestIdentity:
        fields = [
            CustomFieldValue.model_validate(f)
            for f in self.custom_fields
            if isinstance(f, dict) and f.get("_id")
        ]
        return GuestIdentity(
            name=self.name.strip(),
            email=self.email.strip(),
            phone=self.phone.strip(),
            notes=self.notes.strip(),
            custom_fields=fields,
            resident_stay_id=self.resident_booking_id,
        )


class CreateBookingRequest(GuestFields):
    """Request to book a single table."""

    model_config = ConfigDict(
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "date": "2025-07-15",
                    "time": "19:00",
                    "people": 2,
                    "name": "Jane Smith",
                    "email": "jane@example.com",
                    "phone": "0412 345 678",
                    "notes": "Window seat if possible",
                }
            ]
        },
    )

    date: dt.date
    time: str = Field(..., min_length=1, examples=["19:00"])
    people: int = Field(..., ge=1)
    opening_hour_id: str = ""
    opening_hour_name: str = ""
    force_duplicate: bool = Field(
        default=False,
        description="Book even if the guest already has a booking that day",
    )


class BatchEntry(BaseModel):
    """One night of a batch; missing time or people fails only that night."""

    model_config = ConfigDict(strict=False)

    date: dt.date
    time: str = ""
    people: int = Field(default=0, ge=0)
    period_id: str = ""
    period_name: str = ""


class CreateBookingsBatchRequest(GuestFields):
    """Request to book one table per night."""

    model_config = ConfigDict(strict=False)

    bookings: list[BatchEntry] = Field(..., min_length=1)


class BatchBookingResponse(BaseModel):
    """Per-night results in request order."""

    model_config = ConfigDict(strict=True)

    success: bool = Field(..., description="True if at least one night was booked")
    results: list[NightOutcome] = Field(default_factory=list)


class MarkNoTableRequest(BaseModel):
    """Nights a resident does not want a table."""

    model_config = ConfigDict(strict=False)

    booking_id: int = Field(..., ge=1, description="Stay booking ID")
    dates: list[dt.date] = Field(..., min_length=1)
    turnstile_token: str | None = None


class PlanStayRequest(GuestFields):
    """A resident's whole stay plan: tables for some nights, none for others."""

    model_config = ConfigDict(
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "nights": [
                        {"date": "2025-07-15", "time": "19:00", "people": 2},
                        {"date": "2025-07-17", "time": "18:30", "people": 2},
                    ],
                    "no_table_dates": ["2025-07-16"],
                    "already_booked": [],
                    "name": "Jane Smith",
                    "email": "jane@example.com",
                    "resident_booking_id": 12345,
                }
            ]
        },
    )

    nights: list[BatchEntry] = Field(default_factory=list)
    no_table_dates: list[dt.date] = Field(default_factory=list)
    already_booked: list[dt.date] = Field(
        default_factory=list,
        description="Nights that already have a table; they cannot be planned again",
    )
