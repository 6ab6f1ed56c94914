"""API models for opening hours and available times endpoints."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from tablebook.models.periods import DateAvailability, ServicePeriod


class OpeningHoursResponse(BaseModel):
    """Service periods for a date, annotated with closure markers."""

    model_config = ConfigDict(strict=True)

    date: dt.date
    periods: list[ServicePeriod] = Field(default_factory=list)


class AvailableTimesRequest(BaseModel):
    """Request for the bookable times of one service period."""

    model_config = ConfigDict(
        # Note: strict=False allows string-to-date coercion from JSON
        strict=False,
        json_schema_extra={
            "examples": [
                {"date": "2025-07-15", "people": 2, "opening_hour_id": "oh_dinner"}
            ]
        },
    )

    date: dt.date = Field(..., description="Booking date (YYYY-MM-DD)")
    people: int = Field(..., ge=1, description="Party size", examples=[2])
    opening_hour_id: str = Field(
        ...,
        min_length=1,
        description="Service period ID from /opening-hours",
        examples=["oh_dinner"],
    )


class AvailableTimesMultiRequest(BaseModel):
    """Request for periods and times across the nights of a stay."""

    model_config = ConfigDict(
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "dates": ["2025-07-15", "2025-07-16"],
                    "people": 2,
                    "resident_booking_id": 12345,
                }
            ]
        },
    )

    # Kept as strings: malformed entries are skipped rather than rejected
    dates: list[str] = Field(
        ...,
        min_length=1,
        description="Nights to look up (YYYY-MM-DD)",
    )
    people: int = Field(..., ge=1, description="Party size")
    resident_booking_id: int | None = Field(
        default=None,
        description="Verified stay ID; residents see resident-only periods",
    )


class AvailableTimesMultiResponse(BaseModel):
    """Per-night availability keyed by date."""

    model_config = ConfigDict(strict=True)

    dates: dict[str, DateAvailability] = Field(default_factory=dict)
