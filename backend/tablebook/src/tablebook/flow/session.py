"""Asyncio driver for the resident verification flow.

Runs the effects produced by ``transition``: a cancellable debounce timer
for the silent check, and backend calls whose results are fed back in as
events. In-flight calls are never cancelled; a result that arrives after
the flow has moved on is discarded by the state machine.
"""

import asyncio
import datetime as dt
from typing import Callable, Protocol

from tablebook.models import (
    MatchResult,
    PhoneVerification,
    ReferenceVerification,
    UpstreamError,
)
from tablebook.utils.logging import get_logger

from .verification import (
    CancelCheck,
    CheckDue,
    ContinueUnverified,
    Effect,
    Event,
    IdentityChanged,
    MatchCompleted,
    MatchFailed,
    PhoneFailed,
    PhoneResult,
    PhoneSubmitted,
    ReferenceEntryRequested,
    ReferenceFailed,
    ReferenceResult,
    ReferenceSubmitted,
    ReportError,
    ReportMatch,
    ResidencyDeclined,
    RunMatch,
    ScheduleCheck,
    VerificationState,
    VerifyPhone,
    VerifyReference,
    transition,
)

logger = get_logger(__name__)


class VerificationGateway(Protocol):
    """Backend operations the flow calls.

    Satisfied by ``ResidentMatcher`` in-process and by ``ResidentApiClient``
    over HTTP.
    """

    async def match(
        self, date: dt.date, name: str, email: str, phone: str = ""
    ) -> MatchResult: ...

    async def verify_phone(
        self, date: dt.date, name: str, phone: str
    ) -> PhoneVerification: ...

    async def verify_reference(
        self, date: dt.date, reference: str
    ) -> ReferenceVerification: ...


class VerificationSession:
    """One guest form's verification flow.

    Must be used from within a running event loop.

    Usage:
        session = VerificationSession(matcher, on_matched=handle_match)
        session.update_identity("John Smith", "john@example.com", date)
        await session.settle()
    """

    def __init__(
        self,
        gateway: VerificationGateway,
        *,
        debounce_seconds: float = 0.8,
        on_matched: Callable[[MatchResult], None] | None = None,
        on_error: Callable[[str], None] | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            gateway: Backend matcher and verifiers
            debounce_seconds: Quiet period after the last edit before checking
            on_matched: Called at most once per match tier achieved
            on_error: Called with transient, user-facing error text
        """
        self._gateway = gateway
        self._debounce = debounce_seconds
        self._on_matched = on_matched
        self._on_error = on_error
        self._state = VerificationState()
        self._timer: asyncio.Task[None] | None = None
        self._calls: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> VerificationState:
        return self._state

    def dispatch(self, event: Event) -> None:
        """Apply an event and carry out the resulting effects."""
        self._state, effects = transition(self._state, event)
        for effect in effects:
            self._perform(effect)

    def _perform(self, effect: Effect) -> None:
        match effect:
            case ScheduleCheck(generation=generation):
                self._cancel_timer()
                self._timer = asyncio.create_task(self._check_after_debounce(generation))
            case CancelCheck():
                self._cancel_timer()
            case RunMatch():
                self._spawn(self._run_match(effect))
            case VerifyPhone():
                self._spawn(self._verify_phone(effect))
            case VerifyReference():
                self._spawn(self._verify_reference(effect))
            case ReportMatch(result=result):
                if self._on_matched is not None:
                    self._on_matched(result)
            case ReportError(message=message):
                if self._on_error is not None:
                    self._on_error(message)

    def _cancel_timer(self) -> None:
        if self._timer is not None and self._timer is not asyncio.current_task():
            self._timer.cancel()
        self._timer = None

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._calls.add(task)
        task.add_done_callback(self._calls.discard)

    async def _check_after_debounce(self, generation: int) -> None:
        await asyncio.sleep(self._debounce)
        if self._timer is asyncio.current_task():
            self._timer = None
        self.dispatch(CheckDue(generation))

    async def _run_match(self, effect: RunMatch) -> None:
        try:
            result = await self._gateway.match(
                effect.date, effect.name, effect.email, effect.phone
            )
        except UpstreamError as e:
            logger.warning("Resident check failed: %s", e)
            self.dispatch(MatchFailed(effect.generation))
            return
        except Exception:
            logger.exception("Unexpected error during resident check")
            self.dispatch(MatchFailed(effect.generation))
            return
        self.dispatch(MatchCompleted(effect.generation, result))

    async def _verify_phone(self, effect: VerifyPhone) -> None:
        try:
            result = await self._gateway.verify_phone(effect.date, effect.name, effect.phone)
        except UpstreamError as e:
            logger.warning("Phone verification failed: %s", e)
            self.dispatch(PhoneFailed())
            return
        except Exception:
            logger.exception("Unexpected error during phone verification")
            self.dispatch(PhoneFailed())
            return
        self.dispatch(PhoneResult(result))

    async def _verify_reference(self, effect: VerifyReference) -> None:
        try:
            result = await self._gateway.verify_reference(effect.date, effect.reference)
        except UpstreamError as e:
            logger.warning("Reference verification failed: %s", e)
            self.dispatch(ReferenceFailed())
            return
        except Exception:
            logger.exception("Unexpected error during reference verification")
            self.dispatch(ReferenceFailed())
            return
        self.dispatch(ReferenceResult(result))

    # Guest actions

    def update_identity(
        self,
        name: str,
        email: str,
        date: dt.date | None,
        phone: str = "",
    ) -> None:
        """The guest edited their name, email, phone or date."""
        self.dispatch(IdentityChanged(name=name, email=email, date=date, phone=phone))

    def submit_phone(self, phone: str) -> None:
        self.dispatch(PhoneSubmitted(phone))

    def request_reference_entry(self) -> None:
        self.dispatch(ReferenceEntryRequested())

    def submit_reference(self, reference: str) -> None:
        self.dispatch(ReferenceSubmitted(reference))

    def continue_unverified(self) -> None:
        self.dispatch(ContinueUnverified())

    def decline(self) -> None:
        """The guest says they are not staying at the hotel."""
        self.dispatch(ResidencyDeclined())

    async def settle(self) -> VerificationState:
        """Wait until no timer or backend call is pending."""
        while True:
            pending = set(self._calls)
            if self._timer is not None:
                pending.add(self._timer)
            if not pending:
                return self._state
            await asyncio.wait(pending)

    async def close(self) -> None:
        """Cancel the timer and any outstanding calls."""
        self._cancel_timer()
        calls = list(self._calls)
        for task in calls:
            task.cancel()
        await asyncio.gather(*calls, return_exceptions=True)
