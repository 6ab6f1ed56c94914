"""Opening hours and available times endpoints.

Provides REST endpoints for:
- Listing the service periods of a date, with closure markers parsed
- Bookable times for one service period
- Periods and times across several nights of a stay

All dates are in YYYY-MM-DD format.
"""

import datetime as dt

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_availability_service, rate_limit
from api.models.periods import (
    AvailableTimesMultiRequest,
    AvailableTimesMultiResponse,
    AvailableTimesRequest,
    OpeningHoursResponse,
)
from tablebook.models.enums import RateLimitGroup
from tablebook.models.periods import TimeSlots
from tablebook.services.availability import AvailabilityService

router = APIRouter(
    tags=["periods"],
    dependencies=[Depends(rate_limit(RateLimitGroup.READ))],
)


@router.get(
    "/opening-hours",
    summary="List service periods",
    description="""
List the restaurant's service periods (lunch, dinner, specials) for a date.

Period names are cleaned of closure markers. A period marked resident-only,
or carrying a display message, is closed to the public; the widget shows
the message instead of times.

**Notes:**
- Dates are in YYYY-MM-DD format
- Special (date-specific) periods replace the weekly schedule
""",
    response_description="Service periods for the date",
    response_model=OpeningHoursResponse,
    responses={
        200: {
            "description": "Periods retrieved successfully",
            "content": {
                "application/json": {
                    "example": {
                        "date": "2025-07-15",
                        "periods": [
                            {
                                "id": "oh_dinner",
                                "name": "Dinner",
                                "from": "17:30",
                                "to": "21:00",
                                "is_special": False,
                                "resident_only": False,
                                "display_message": None,
                                "times": [],
                            }
                        ],
                    }
                }
            },
        },
        429: {"description": "Too many requests (rate limited)"},
        502: {"description": "Reservation system unavailable"},
    },
)
async def get_opening_hours(
    date: dt.date = Query(
        ...,
        description="Booking date (YYYY-MM-DD)",
        examples=["2025-07-15"],
    ),
    service: AvailabilityService = Depends(get_availability_service),
) -> OpeningHoursResponse:
    """List annotated service periods for a date."""
    periods = await service.list_periods(date)
    return OpeningHoursResponse(date=date, periods=periods)


@router.post(
    "/available-times",
    summary="Get available times",
    description="""
Bookable times for one service period and party size.

Also returns the custom fields the guest must fill in, minus the hotel
guest and booking number fields the widget fills automatically.
""",
    response_description="Times and active custom fields",
    response_model=TimeSlots,
    responses={
        200: {
            "description": "Times retrieved successfully",
            "content": {
                "application/json": {
                    "example": {
                        "times": ["18:00", "18:30", "19:00"],
                        "active_custom_fields": [],
                    }
                }
            },
        },
        429: {"description": "Too many requests (rate limited)"},
        502: {"description": "Reservation system unavailable"},
    },
)
async def available_times(
    body: AvailableTimesRequest,
    service: AvailabilityService = Depends(get_availability_service),
) -> TimeSlots:
    return await service.available_times(body.date, body.people, body.opening_hour_id)


@router.post(
    "/available-times-multi",
    summary="Get availability for several nights",
    description="""
Service periods and times for each night of a stay.

**Notes:**
- Malformed dates are skipped; at most one stay's worth of nights is looked up
- A night whose opening hours fail is returned with `error: true`
- Residents (with `resident_booking_id`) see resident-only periods
""",
    response_description="Per-night availability keyed by date",
    response_model=AvailableTimesMultiResponse,
    responses={
        200: {
            "description": "Availability retrieved",
            "content": {
                "application/json": {
                    "example": {
                        "dates": {
                            "2025-07-15": {"error": False, "periods": []},
                            "2025-07-16": {"error": True, "periods": []},
                        }
                    }
                }
            },
        },
        429: {"description": "Too many requests (rate limited)"},
    },
)
async def available_times_multi(
    body: AvailableTimesMultiRequest,
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailableTimesMultiResponse:
    dates = await service.available_times_multi(
        body.dates, body.people, body.resident_booking_id
    )
    return AvailableTimesMultiResponse(dates=dates)
