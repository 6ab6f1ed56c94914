"""API models for resident matching, verification and group endpoints.

Stays are returned as StaySummary so no guest contact details leave the
API; the guest already knows their own.
"""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from tablebook.models.enums import GroupPrompt, MatchTier
from tablebook.models.group import ExistingTable
from tablebook.models.stay import StaySummary


class CheckResidentRequest(BaseModel):
    """Guest identity entered on the booking form."""

    model_config = ConfigDict(
        # Note: strict=False allows string-to-date coercion from JSON
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "date": "2025-07-15",
                    "name": "Jane Smith",
                    "email": "jane@example.com",
                    "phone": "",
                }
            ]
        },
    )

    date: dt.date = Field(..., description="Booking date (YYYY-MM-DD)")
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(default="", max_length=254)
    phone: str = Field(default="", max_length=40)


class ResidentMatchResponse(BaseModel):
    """Match tier for a guest identity."""

    model_config = ConfigDict(strict=True)

    match_tier: MatchTier = Field(
        ...,
        description="0 = staying list unavailable, 1 = confirmed, 2 = surname only, 3 = no match",
    )
    phone_on_file: bool = False
    message: str | None = None
    stay: StaySummary | None = None


class VerifyPhoneRequest(BaseModel):
    """Phone number confirming a surname-only match."""

    model_config = ConfigDict(strict=False)

    date: dt.date
    name: str = Field(..., min_length=1, max_length=200)
    phone: str = Field(..., min_length=1, max_length=40)


class VerifyPhoneResponse(BaseModel):
    model_config = ConfigDict(strict=True)

    verified: bool
    stay: StaySummary | None = None


class VerifyReferenceRequest(BaseModel):
    """Booking reference typed by the guest."""

    model_config = ConfigDict(strict=False)

    date: dt.date
    reference: str = Field(..., min_length=1, max_length=100)


class VerifyReferenceResponse(BaseModel):
    """Reference verification result.

    ``internal_booking_id`` is always our own stay ID, even when the guest
    typed a travel agent's reference.
    """

    model_config = ConfigDict(strict=True)

    verified: bool
    stay: StaySummary | None = None
    ota_match: bool = False
    travel_agent_name: str | None = None
    internal_booking_id: int | None = None


class VerifyResidentRequest(BaseModel):
    """Direct link verification: stay ID plus at least one second factor."""

    model_config = ConfigDict(
        strict=False,
        json_schema_extra={"examples": [{"bid": 12345, "surname": "Smith"}]},
    )

    bid: int = Field(..., ge=1, description="Stay booking ID from the link")
    gid: int | None = Field(default=None, description="Guest ID from the link")
    surname: str = Field(default="", max_length=200)
    email: str = Field(default="", max_length=254)
    phone: str = Field(default="", max_length=40)


class CheckGroupRequest(BaseModel):
    """Group lookup for a matched resident."""

    model_config = ConfigDict(strict=False)

    date: dt.date
    booking_id: int = Field(..., ge=1)
    group_id: int | None = None
    covers: int = Field(default=0, ge=0, description="Party size the guest selected")
    occupancy: int | None = Field(
        default=None,
        ge=0,
        description="Guest's own stay occupancy, if the widget already knows it",
    )


class CheckGroupResponse(BaseModel):
    """Group state plus the question the widget should ask, if any."""

    model_config = ConfigDict(strict=True)

    is_group: bool
    group_size: int = 0
    total_group_occupancy: int = 0
    this_guest_occupancy: int = 0
    existing_tables: list[ExistingTable] = Field(default_factory=list)
    prompt: GroupPrompt | None = None
    note: str | None = None
