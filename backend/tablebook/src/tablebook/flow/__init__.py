"""Client-side resident verification flow."""

from .api_client import ResidentApiClient
from .session import VerificationGateway, VerificationSession
from .verification import (
    INTERACTIVE_STAGES,
    SETTLED_STAGES,
    VerificationStage,
    VerificationState,
    transition,
)

__all__ = [
    "INTERACTIVE_STAGES",
    "ResidentApiClient",
    "SETTLED_STAGES",
    "VerificationGateway",
    "VerificationSession",
    "VerificationStage",
    "VerificationState",
    "transition",
]
