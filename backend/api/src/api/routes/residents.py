"""Resident matching, verification and group endpoints.

Provides REST endpoints for:
- Matching a guest identity against the hotel's staying list
- Confirming a surname-only match by phone
- Confirming residency by booking reference (ours or a travel agent's)
- Verifying a resident arriving from a direct booking link
- Looking up group stays and the question to ask a group member

Failures to reach the property system never block a booking: matching
reports tier 0 and the guest continues as a regular diner.
"""

from fastapi import APIRouter, Depends

from api.dependencies import (
    get_config,
    get_group_coordinator,
    get_resident_lookup,
    get_resident_matcher,
    rate_limit,
)
from api.models.residents import (
    CheckGroupRequest,
    CheckGroupResponse,
    CheckResidentRequest,
    ResidentMatchResponse,
    VerifyPhoneRequest,
    VerifyPhoneResponse,
    VerifyReferenceRequest,
    VerifyReferenceResponse,
    VerifyResidentRequest,
)
from api.validation import check_booking_date
from tablebook.config import WidgetConfig
from tablebook.models.enums import RateLimitGroup
from tablebook.models.matching import LinkVerification
from tablebook.models.stay import StayRecord, StaySummary
from tablebook.services.group_coordinator import GroupCoordinator, choose_group_prompt
from tablebook.services.resident_lookup import ResidentLookup
from tablebook.services.resident_matcher import ResidentMatcher

router = APIRouter(tags=["residents"])

resident_limit = [Depends(rate_limit(RateLimitGroup.RESIDENT))]


def _summary(record: StayRecord | None) -> StaySummary | None:
    return StaySummary.from_record(record) if record is not None else None


@router.post(
    "/check-resident",
    summary="Match a guest against the staying list",
    description="""
Match the name and email entered on the booking form against guests staying
on the date.

**Match tiers:**
- 0: staying list unavailable (continue as a regular guest)
- 1: surname and email match a staying guest
- 2: surname matches but email does not (ask for phone)
- 3: no match
""",
    response_description="Match tier and the matched stay",
    response_model=ResidentMatchResponse,
    dependencies=resident_limit,
    responses={
        200: {
            "description": "Match completed",
            "content": {
                "application/json": {
                    "example": {
                        "match_tier": 1,
                        "phone_on_file": True,
                        "message": None,
                        "stay": {
                            "booking_id": 12345,
                            "booking_reference_id": "BDC-998877",
                            "check_in": "2025-07-14",
                            "check_out": "2025-07-17",
                            "nights": ["2025-07-14", "2025-07-15", "2025-07-16"],
                            "room": "12",
                            "occupancy": 2,
                            "group_id": None,
                        },
                    }
                }
            },
        },
        400: {"description": "Date outside the booking window"},
        429: {"description": "Too many requests (rate limited)"},
    },
)
async def check_resident(
    body: CheckResidentRequest,
    matcher: ResidentMatcher = Depends(get_resident_matcher),
    config: WidgetConfig = Depends(get_config),
) -> ResidentMatchResponse:
    check_booking_date(body.date, config)
    result = await matcher.match(body.date, body.name, body.email, body.phone)
    return ResidentMatchResponse(
        match_tier=result.tier,
        phone_on_file=result.phone_on_file,
        message=result.message,
        stay=_summary(result.record),
    )


@router.post(
    "/verify-resident-phone",
    summary="Confirm a surname match by phone",
    description="""
Confirm a tier 2 match using the phone number on the stay.

Phone numbers are compared on their last nine digits, so local and
international formats of the same number match.
""",
    response_description="Whether the phone confirmed a stay",
    response_model=VerifyPhoneResponse,
    dependencies=resident_limit,
    responses={
        400: {"description": "Date outside the booking window"},
        429: {"description": "Too many requests (rate limited)"},
    },
)
async def verify_resident_phone(
    body: VerifyPhoneRequest,
    matcher: ResidentMatcher = Depends(get_resident_matcher),
    config: WidgetConfig = Depends(get_config),
) -> VerifyPhoneResponse:
    check_booking_date(body.date, config)
    result = await matcher.verify_phone(body.date, body.name, body.phone)
    return VerifyPhoneResponse(verified=result.verified, stay=_summary(result.record))


@router.post(
    "/verify-resident-reference",
    summary="Confirm residency by booking reference",
    description="""
Confirm residency with a booking reference the guest typed.

The reference may be our own booking ID or a travel agent's reference.
A travel agent reference is flagged with `ota_match` and the agent's name;
`internal_booking_id` always carries our own booking ID.
""",
    response_description="Whether the reference matched a stay",
    response_model=VerifyReferenceResponse,
    dependencies=resident_limit,
    responses={
        400: {"description": "Date outside the booking window"},
        429: {"description": "Too many requests (rate limited)"},
    },
)
async def verify_resident_reference(
    body: VerifyReferenceRequest,
    matcher: ResidentMatcher = Depends(get_resident_matcher),
    config: WidgetConfig = Depends(get_config),
) -> VerifyReferenceResponse:
    check_booking_date(body.date, config)
    result = await matcher.verify_reference(body.date, body.reference)
    return VerifyReferenceResponse(
        verified=result.verified,
        stay=_summary(result.record),
        ota_match=result.is_agent_match,
        travel_agent_name=result.agent_name,
        internal_booking_id=result.internal_booking_id,
    )


@router.post(
    "/verify-resident",
    summary="Verify a resident from a booking link",
    description="""
Verify a resident arriving from a link in their stay confirmation.

The link carries the stay ID (`bid`) and at least one second factor:
guest ID (`gid`), surname, email or phone. Every guest on the stay is
checked, not only the primary guest.
""",
    response_description="Resident profile on success, error message otherwise",
    response_model=LinkVerification,
    dependencies=resident_limit,
    responses={
        200: {
            "description": "Verification completed",
            "content": {
                "application/json": {
                    "example": {
                        "verified": False,
                        "profile": None,
                        "error": "Booking not found.",
                    }
                }
            },
        },
        400: {"description": "No second factor supplied"},
        429: {"description": "Too many requests (rate limited)"},
    },
)
async def verify_resident(
    body: VerifyResidentRequest,
    lookup: ResidentLookup = Depends(get_resident_lookup),
) -> LinkVerification:
    return await lookup.verify_from_link(
        body.bid,
        guest_id=body.gid,
        surname=body.surname,
        email=body.email,
        phone=body.phone,
    )


@router.post(
    "/check-group",
    summary="Check a resident's group stay",
    description="""
Look up the other stays sharing the resident's group and any tables they
already hold on the date.

The response includes the question the widget should ask (`prompt`) and
the note added to the booking if the guest agrees. None of the prompts
block the booking.
""",
    response_description="Group state and prompt",
    response_model=CheckGroupResponse,
    dependencies=[Depends(rate_limit(RateLimitGroup.READ))],
    responses={
        200: {
            "description": "Group check completed",
            "content": {
                "application/json": {
                    "example": {
                        "is_group": True,
                        "group_size": 3,
                        "total_group_occupancy": 6,
                        "this_guest_occupancy": 2,
                        "existing_tables": [{"stay_id": "12346", "covers": 6}],
                        "prompt": "existing_group_table",
                        "note": "Part of group - other members may already have tables booked",
                    }
                }
            },
        },
        400: {"description": "Date outside the booking window"},
        429: {"description": "Too many requests (rate limited)"},
    },
)
async def check_group(
    body: CheckGroupRequest,
    coordinator: GroupCoordinator = Depends(get_group_coordinator),
    config: WidgetConfig = Depends(get_config),
) -> CheckGroupResponse:
    check_booking_date(body.date, config)
    result = await coordinator.check_group(
        body.date, body.booking_id, body.group_id, body.covers
    )
    decision = choose_group_prompt(result, body.covers, body.occupancy)
    return CheckGroupResponse(
        is_group=result.is_group,
        group_size=result.group_size,
        total_group_occupancy=result.total_group_occupancy,
        this_guest_occupancy=result.this_guest_occupancy,
        existing_tables=result.existing_tables,
        prompt=decision.prompt if decision else None,
        note=decision.note if decision else None,
    )
