"""Booking endpoints.

Provides REST endpoints for:
- Booking a single table, guarded against duplicate bookings
- Booking one table per night of a stay
- Marking a resident's nights as not needing a table
- Submitting a resident's whole stay plan

Every endpoint here creates or changes bookings, so each is rate limited
as a write and, when a Turnstile secret is configured, requires a bot
check token.
"""

from fastapi import APIRouter, Depends
from starlette.status import HTTP_200_OK

from api.dependencies import (
    get_batch_coordinator,
    get_booking_service,
    get_client_address,
    get_config,
    get_turnstile_verifier,
    rate_limit,
)
from api.models.bookings import (
    BatchBookingResponse,
    BatchEntry,
    CreateBookingRequest,
    CreateBookingsBatchRequest,
    MarkNoTableRequest,
    PlanStayRequest,
)
from api.models.common import SuccessMessage
from api.validation import check_booking_date, check_email, check_party_size
from tablebook.config import WidgetConfig
from tablebook.models.booking import (
    BookingCreated,
    DuplicateCheckResult,
    NightPlan,
    StaySubmissionResult,
)
from tablebook.models.enums import RateLimitGroup
from tablebook.models.errors import ErrorCode, WidgetError
from tablebook.services.bookings import BookingService
from tablebook.services.stay_planner import BatchBookingCoordinator, StayPlanner
from tablebook.services.turnstile import TurnstileVerifier

router = APIRouter(
    tags=["bookings"],
    dependencies=[Depends(rate_limit(RateLimitGroup.WRITE))],
)


def _night_plan(entry: BatchEntry) -> NightPlan:
    return NightPlan(
        date=entry.date,
        period_id=entry.period_id,
        period_name=entry.period_name,
        time=entry.time.strip(),
        people=entry.people,
    )


@router.post(
    "/create-booking",
    summary="Book a table",
    description="""
Book a single table.

Unless `force_duplicate` is set, the booking is not created when the guest
already has a booking on the date (matched by email or phone); the existing
booking's time and party size are returned instead so the widget can ask.

Verified residents (`resident_booking_id`) get the hotel guest and booking
number fields filled automatically.
""",
    response_description="Created booking ID, or the duplicate found",
    response_model=BookingCreated | DuplicateCheckResult,
    status_code=HTTP_200_OK,
    responses={
        200: {
            "description": "Booking created, or duplicate found",
            "content": {
                "application/json": {
                    "examples": {
                        "created": {"value": {"success": True, "booking_id": "bk_123"}},
                        "duplicate": {
                            "value": {
                                "duplicate": True,
                                "existing_time": "19:00",
                                "existing_people": 2,
                            }
                        },
                    }
                }
            },
        },
        400: {"description": "Invalid email, party size or date; missing bot check"},
        403: {"description": "Bot check failed"},
        429: {"description": "Too many requests (rate limited)"},
        502: {"description": "Reservation system rejected the booking"},
    },
)
async def create_booking(
    body: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
    verifier: TurnstileVerifier = Depends(get_turnstile_verifier),
    config: WidgetConfig = Depends(get_config),
    address: str = Depends(get_client_address),
) -> BookingCreated | DuplicateCheckResult:
    """Create one booking after the duplicate guard."""
    await verifier.verify(body.turnstile_token, address)
    check_party_size(body.people, config)
    check_booking_date(body.date, config)

    night = NightPlan(
        date=body.date,
        period_id=body.opening_hour_id,
        period_name=body.opening_hour_name,
        time=body.time.strip(),
        people=body.people,
    )
    return await service.create_booking(
        night, body.guest_identity(), force_duplicate=body.force_duplicate
    )


@router.post(
    "/create-bookings-batch",
    summary="Book a table for several nights",
    description="""
Book one table per night. Each night is booked independently: a failure on
one night does not affect the others.

**Notes:**
- Results are returned in request order, each with its own date
- Nights missing a time or party size fail with "Missing required fields"
- Batches are capped at one stay's worth of nights
""",
    response_description="Per-night results",
    response_model=BatchBookingResponse,
    responses={
        200: {
            "description": "Batch processed (check per-night results)",
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "results": [
                            {"date": "2025-07-15", "success": True, "booking_id": "bk_1", "error": None},
                            {"date": "2025-07-16", "success": False, "booking_id": None, "error": "Missing required fields"},
                        ],
                    }
                }
            },
        },
        400: {"description": "Invalid email, party size or date; missing bot check"},
        403: {"description": "Bot check failed"},
        429: {"description": "Too many requests (rate limited)"},
    },
)
async def create_bookings_batch(
    body: CreateBookingsBatchRequest,
    coordinator: BatchBookingCoordinator = Depends(get_batch_coordinator),
    verifier: TurnstileVerifier = Depends(get_turnstile_verifier),
    config: WidgetConfig = Depends(get_config),
    address: str = Depends(get_client_address),
) -> BatchBookingResponse:
    await verifier.verify(body.turnstile_token, address)
    check_email(body.email.strip())
    for entry in body.bookings:
        check_booking_date(entry.date, config)
        check_party_size(entry.people, config)

    results = await coordinator.submit_batch(
        [_night_plan(entry) for entry in body.bookings], body.guest_identity()
    )
    return BatchBookingResponse(
        success=any(r.success for r in results),
        results=results,
    )


@router.post(
    "/mark-no-table",
    summary="Mark nights without a table",
    description="""
Record on the resident's stay which nights they do not need a table, so
staff know not to chase them.
""",
    response_description="Stay updated",
    response_model=SuccessMessage,
    responses={
        400: {"description": "Missing bot check"},
        403: {"description": "Bot check failed"},
        429: {"description": "Too many requests (rate limited)"},
        502: {"description": "Property system rejected the update"},
    },
)
async def mark_no_table(
    body: MarkNoTableRequest,
    coordinator: BatchBookingCoordinator = Depends(get_batch_coordinator),
    verifier: TurnstileVerifier = Depends(get_turnstile_verifier),
    address: str = Depends(get_client_address),
) -> SuccessMessage:
    await verifier.verify(body.turnstile_token, address)
    await coordinator.mark_no_table(body.booking_id, sorted(set(body.dates)))
    return SuccessMessage(message="Nights marked as not needing a table")


@router.post(
    "/plan-stay",
    summary="Submit a stay plan",
    description="""
Book the selected nights of a resident's stay and mark the rest as not
needing a table, in one request.

Partial success is normal: check each night's result. Marking no-table
nights is best effort and reported separately under `no_table`.

**Notes:**
- A night cannot be both booked and marked no table
- Nights in `already_booked` cannot be planned again
""",
    response_description="Per-night results and the no-table outcome",
    response_model=StaySubmissionResult,
    responses={
        200: {
            "description": "Plan submitted",
            "content": {
                "application/json": {
                    "example": {
                        "batch_results": [
                            {"date": "2025-07-15", "success": True, "booking_id": "bk_1", "error": None},
                            {"date": "2025-07-17", "success": True, "booking_id": "bk_2", "error": None},
                        ],
                        "no_table": {"dates": ["2025-07-16"], "attempted": True, "success": True},
                    }
                }
            },
        },
        400: {"description": "Invalid email or date, nothing selected, conflicting nights, or missing bot check"},
        403: {"description": "Bot check failed"},
        429: {"description": "Too many requests (rate limited)"},
    },
)
async def plan_stay(
    body: PlanStayRequest,
    coordinator: BatchBookingCoordinator = Depends(get_batch_coordinator),
    verifier: TurnstileVerifier = Depends(get_turnstile_verifier),
    config: WidgetConfig = Depends(get_config),
    address: str = Depends(get_client_address),
) -> StaySubmissionResult:
    """Validate the plan with a StayPlanner, then submit it."""
    await verifier.verify(body.turnstile_token, address)
    check_email(body.email.strip())
    for date in [entry.date for entry in body.nights] + body.no_table_dates:
        check_booking_date(date, config)

    selected = {entry.date for entry in body.nights}
    if selected & set(body.no_table_dates):
        raise WidgetError(
            ErrorCode.INVALID_REQUEST,
            details={"reason": "A night cannot be both booked and marked no table"},
        )

    stay_nights = sorted(selected | set(body.no_table_dates) | set(body.already_booked))
    planner = StayPlanner(stay_nights, already_booked=body.already_booked)
    try:
        for entry in body.nights:
            check_party_size(entry.people, config)
            planner.select(_night_plan(entry))
        for date in set(body.no_table_dates):
            planner.toggle_no_table(date)
    except ValueError as e:
        raise WidgetError(ErrorCode.INVALID_REQUEST, details={"reason": str(e)}) from e

    return await coordinator.plan_and_submit_stay(
        planner.night_plans, planner.no_table_dates, body.guest_identity()
    )
