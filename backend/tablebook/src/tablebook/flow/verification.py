"""Resident verification flow as an explicit state machine.

The booking form asks whether the guest is staying at the hotel while they
type their name and email. The flow silently checks the staying list once
the inputs settle, then layers phone and booking-reference verification on
top of a partial match:

    waiting -> checking -> auto_matched | phone_prompt | manual_entry | no_match
    phone_prompt -> phone_verifying -> phone_verified | manual_entry
    no_match | manual_entry -> ref_verifying -> ref_verified | ota_detected | unverified

``transition`` is pure: it takes the current state and an event and returns
the next state plus the effects the driver must carry out (schedule or
cancel the debounce timer, call the backend, report upward). The driver is
``tablebook.flow.session.VerificationSession``.

Stale results are recognised by generation: every identity edit bumps the
generation and only a completion carrying the current generation is applied.
"""

import datetime as dt
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from tablebook.models import (
    MatchResult,
    MatchTier,
    PhoneVerification,
    ReferenceVerification,
)
from tablebook.services.names import is_valid_email, is_valid_name

PHONE_MISMATCH = "Phone number did not match. You can enter your booking reference below."
PHONE_UNAVAILABLE = "Could not verify phone. You can enter your booking reference instead."
REFERENCE_NOT_FOUND = "We couldn't find a stay with that booking reference."


class VerificationStage(str, Enum):
    """Where the guest is in resident verification."""

    WAITING = "waiting"
    CHECKING = "checking"
    AUTO_MATCHED = "auto_matched"
    PHONE_PROMPT = "phone_prompt"
    PHONE_VERIFYING = "phone_verifying"
    PHONE_VERIFIED = "phone_verified"
    NO_MATCH = "no_match"
    MANUAL_ENTRY = "manual_entry"
    REF_VERIFYING = "ref_verifying"
    REF_VERIFIED = "ref_verified"
    OTA_DETECTED = "ota_detected"
    UNVERIFIED = "unverified"
    DECLINED = "declined"


# The guest is working through phone or reference verification; silent
# re-checks must not pull them out of it.
INTERACTIVE_STAGES = frozenset(
    {
        VerificationStage.PHONE_PROMPT,
        VerificationStage.PHONE_VERIFYING,
        VerificationStage.MANUAL_ENTRY,
        VerificationStage.REF_VERIFYING,
        VerificationStage.DECLINED,
    }
)

# Verification finished for one date. Name and email edits keep the outcome;
# a new date starts over, since the stay found belongs to the old one.
SETTLED_STAGES = frozenset(
    {
        VerificationStage.PHONE_VERIFIED,
        VerificationStage.REF_VERIFIED,
        VerificationStage.OTA_DETECTED,
        VerificationStage.UNVERIFIED,
    }
)


class VerificationState(BaseModel):
    """Snapshot of one guest form's verification flow."""

    model_config = ConfigDict(frozen=True)

    stage: VerificationStage = VerificationStage.WAITING
    date: dt.date | None = None
    name: str = ""
    email: str = ""
    phone: str = ""
    generation: int = 0
    last_checked_key: tuple[str, str, str] | None = Field(
        default=None, description="(name, email, date) of the last completed check"
    )
    last_match: MatchResult | None = None
    error: str | None = None
    reference: str | None = None
    agent_name: str | None = None
    internal_id: int | None = None
    reported_tiers: frozenset[MatchTier] = frozenset()

    @property
    def is_interactive(self) -> bool:
        return self.stage in INTERACTIVE_STAGES

    @property
    def check_key(self) -> tuple[str, str, str]:
        date = self.date.isoformat() if self.date else ""
        return (self.name.strip().lower(), self.email.strip().lower(), date)

    @property
    def inputs_complete(self) -> bool:
        return self.date is not None and is_valid_name(self.name) and is_valid_email(self.email)


# Events


@dataclass(frozen=True)
class IdentityChanged:
    name: str
    email: str
    date: dt.date | None
    phone: str = ""


@dataclass(frozen=True)
class CheckDue:
    generation: int


@dataclass(frozen=True)
class MatchCompleted:
    generation: int
    result: MatchResult


@dataclass(frozen=True)
class MatchFailed:
    generation: int


@dataclass(frozen=True)
class PhoneSubmitted:
    phone: str


@dataclass(frozen=True)
class PhoneResult:
    result: PhoneVerification


@dataclass(frozen=True)
class PhoneFailed:
    pass


@dataclass(frozen=True)
class ReferenceEntryRequested:
    pass


@dataclass(frozen=True)
class ReferenceSubmitted:
    reference: str


@dataclass(frozen=True)
class ReferenceResult:
    result: ReferenceVerification


@dataclass(frozen=True)
class ReferenceFailed:
    pass


@dataclass(frozen=True)
class ContinueUnverified:
    pass


@dataclass(frozen=True)
class ResidencyDeclined:
    pass


Event = (
    IdentityChanged | CheckDue | MatchCompleted | MatchFailed
    | PhoneSubmitted | PhoneResult | PhoneFailed
    | ReferenceEntryRequested | ReferenceSubmitted | ReferenceResult | ReferenceFailed
    | ContinueUnverified | ResidencyDeclined
)


# Effects


@dataclass(frozen=True)
class ScheduleCheck:
    generation: int


@dataclass(frozen=True)
class CancelCheck:
    pass


@dataclass(frozen=True)
class RunMatch:
    generation: int
    date: dt.date
    name: str
    email: str
    phone: str


@dataclass(frozen=True)
class VerifyPhone:
    date: dt.date
    name: str
    phone: str


@dataclass(frozen=True)
class VerifyReference:
    date: dt.date
    reference: str


@dataclass(frozen=True)
class ReportMatch:
    result: MatchResult


@dataclass(frozen=True)
class ReportError:
    message: str


Effect = (
    ScheduleCheck | CancelCheck | RunMatch | VerifyPhone | VerifyReference
    | ReportMatch | ReportError
)

Transition = tuple[VerificationState, list[Effect]]


def _report(state: VerificationState, result: MatchResult) -> Transition:
    """Report a match upward unless this tier was already reported."""
    if result.tier in state.reported_tiers:
        return state, []
    updated = state.model_copy(update={"reported_tiers": state.reported_tiers | {result.tier}})
    return updated, [ReportMatch(result)]


def _apply_match(state: VerificationState, result: MatchResult) -> Transition:
    if result.tier == MatchTier.CONFIRMED and result.record is not None:
        return _report(state.model_copy(update={"stage": VerificationStage.AUTO_MATCHED}), result)
    if result.tier == MatchTier.SURNAME_ONLY:
        stage = (
            VerificationStage.PHONE_PROMPT
            if result.phone_on_file
            else VerificationStage.MANUAL_ENTRY
        )
        return state.model_copy(update={"stage": stage}), []
    return state.model_copy(update={"stage": VerificationStage.NO_MATCH}), []


def _identity_changed(state: VerificationState, event: IdentityChanged) -> Transition:
    updated = state.model_copy(
        update={
            "name": event.name,
            "email": event.email,
            "phone": event.phone,
            "date": event.date,
            "generation": state.generation + 1,
        }
    )
    if state.stage in SETTLED_STAGES:
        if event.date == state.date:
            return updated, []
        updated = updated.model_copy(
            update={
                "last_checked_key": None,
                "last_match": None,
                "error": None,
                "reference": None,
                "agent_name": None,
                "internal_id": None,
                "reported_tiers": frozenset(),
            }
        )
    elif updated.is_interactive:
        return updated, []
    if not updated.inputs_complete:
        return updated.model_copy(update={"stage": VerificationStage.WAITING}), [CancelCheck()]
    return (
        updated.model_copy(update={"stage": VerificationStage.WAITING}),
        [ScheduleCheck(updated.generation)],
    )


def _check_due(state: VerificationState, event: CheckDue) -> Transition:
    if event.generation != state.generation or state.is_interactive:
        return state, []
    if state.stage != VerificationStage.WAITING or state.date is None:
        return state, []
    if not state.inputs_complete:
        return state, []
    if state.last_match is not None and state.last_checked_key == state.check_key:
        return _apply_match(state, state.last_match)
    return (
        state.model_copy(update={"stage": VerificationStage.CHECKING}),
        [RunMatch(state.generation, state.date, state.name, state.email, state.phone)],
    )


def _match_completed(state: VerificationState, event: MatchCompleted) -> Transition:
    if event.generation != state.generation or state.stage != VerificationStage.CHECKING:
        return state, []
    updated = state.model_copy(
        update={"last_checked_key": state.check_key, "last_match": event.result}
    )
    return _apply_match(updated, event.result)


def _phone_submitted(state: VerificationState, event: PhoneSubmitted) -> Transition:
    phone = event.phone.strip()
    if state.stage != VerificationStage.PHONE_PROMPT or not phone or state.date is None:
        return state, []
    return (
        state.model_copy(
            update={"stage": VerificationStage.PHONE_VERIFYING, "phone": phone, "error": None}
        ),
        [VerifyPhone(state.date, state.name, phone)],
    )


def _phone_outcome(state: VerificationState, result: PhoneVerification | None) -> Transition:
    if state.stage != VerificationStage.PHONE_VERIFYING:
        return state, []
    if result is not None and result.verified and result.record is not None:
        return _report(
            state.model_copy(update={"stage": VerificationStage.PHONE_VERIFIED}),
            MatchResult.confirmed(result.record),
        )
    message = PHONE_MISMATCH if result is not None else PHONE_UNAVAILABLE
    return (
        state.model_copy(update={"stage": VerificationStage.MANUAL_ENTRY, "error": message}),
        [ReportError(message)],
    )


def _reference_submitted(state: VerificationState, event: ReferenceSubmitted) -> Transition:
    reference = event.reference.strip()
    allowed = {
        VerificationStage.NO_MATCH,
        VerificationStage.MANUAL_ENTRY,
        VerificationStage.UNVERIFIED,
    }
    if state.stage not in allowed or not reference or state.date is None:
        return state, []
    return (
        state.model_copy(
            update={
                "stage": VerificationStage.REF_VERIFYING,
                "reference": reference,
                "error": None,
            }
        ),
        [VerifyReference(state.date, reference)],
    )


def _reference_outcome(
    state: VerificationState,
    result: ReferenceVerification | None,
) -> Transition:
    if state.stage != VerificationStage.REF_VERIFYING:
        return state, []
    if result is None or not result.verified or result.record is None:
        return (
            state.model_copy(
                update={"stage": VerificationStage.UNVERIFIED, "error": REFERENCE_NOT_FOUND}
            ),
            [],
        )

    match = MatchResult.confirmed(result.record)
    if result.is_agent_match:
        updated = state.model_copy(
            update={
                "stage": VerificationStage.OTA_DETECTED,
                "agent_name": result.agent_name or "your booking agent",
                "internal_id": result.internal_booking_id,
            }
        )
    else:
        updated = state.model_copy(
            update={
                "stage": VerificationStage.REF_VERIFIED,
                "internal_id": result.internal_booking_id,
            }
        )
    return _report(updated, match)


def transition(state: VerificationState, event: Event) -> Transition:
    """Apply an event to the flow.

    Events that do not apply in the current stage leave the state unchanged
    and produce no effects.

    Args:
        state: Current state
        event: What happened

    Returns:
        The next state and the effects to carry out, in order
    """
    match event:
        case IdentityChanged():
            return _identity_changed(state, event)
        case CheckDue():
            return _check_due(state, event)
        case MatchCompleted():
            return _match_completed(state, event)
        case MatchFailed(generation=generation):
            if generation != state.generation or state.stage != VerificationStage.CHECKING:
                return state, []
            return state.model_copy(update={"stage": VerificationStage.NO_MATCH}), []
        case PhoneSubmitted():
            return _phone_submitted(state, event)
        case PhoneResult(result=result):
            return _phone_outcome(state, result)
        case PhoneFailed():
            return _phone_outcome(state, None)
        case ReferenceEntryRequested():
            if state.stage not in {
                VerificationStage.NO_MATCH,
                VerificationStage.PHONE_PROMPT,
                VerificationStage.UNVERIFIED,
            }:
                return state, []
            return state.model_copy(update={"stage": VerificationStage.MANUAL_ENTRY}), []
        case ReferenceSubmitted():
            return _reference_submitted(state, event)
        case ReferenceResult(result=result):
            return _reference_outcome(state, result)
        case ReferenceFailed():
            return _reference_outcome(state, None)
        case ContinueUnverified():
            if state.stage != VerificationStage.UNVERIFIED:
                return state, []
            return _report(state, MatchResult.no_match(reference=state.reference))
        case ResidencyDeclined():
            return (
                state.model_copy(update={"stage": VerificationStage.DECLINED, "error": None}),
                [CancelCheck()],
            )
    return state, []
