"""HTTP client for the widget API's resident endpoints.

Lets a ``VerificationSession`` run against a deployed widget API instead of
an in-process ``ResidentMatcher``. Stays come back as ``StaySummary`` and
are rebuilt as guest-less stay records.
"""

import datetime as dt
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from tablebook.models import (
    MatchResult,
    MatchTier,
    PhoneVerification,
    ReferenceVerification,
    StaySummary,
    UpstreamError,
)

SERVICE = "widget-api"


class _MatchBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    match_tier: MatchTier
    phone_on_file: bool = False
    message: str | None = None
    stay: StaySummary | None = None


class _PhoneBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    verified: bool
    stay: StaySummary | None = None


class _ReferenceBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    verified: bool
    stay: StaySummary | None = None
    ota_match: bool = False
    travel_agent_name: str | None = None


class ResidentApiClient:
    """Async client for ``/api/check-resident`` and the verify endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def _post(self, path: str, body: dict[str, Any], model: type[BaseModel]) -> Any:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(f"{self._base_url}{path}", json=body)
            except httpx.HTTPError as e:
                raise UpstreamError(f"Widget API request failed: {e}", service=SERVICE) from e

        if not response.is_success:
            raise UpstreamError(
                f"Widget API returned status {response.status_code}",
                service=SERVICE,
                status_code=response.status_code,
            )
        try:
            return model.model_validate_json(response.content)
        except ValidationError as e:
            raise UpstreamError("Unexpected widget API response", service=SERVICE) from e

    async def match(
        self,
        date: dt.date,
        name: str,
        email: str,
        phone: str = "",
    ) -> MatchResult:
        body: _MatchBody = await self._post(
            "/api/check-resident",
            {"date": date.isoformat(), "name": name, "email": email, "phone": phone},
            _MatchBody,
        )
        return MatchResult(
            tier=body.match_tier,
            record=body.stay.to_record() if body.stay else None,
            phone_on_file=body.phone_on_file,
            message=body.message,
        )

    async def verify_phone(self, date: dt.date, name: str, phone: str) -> PhoneVerification:
        body: _PhoneBody = await self._post(
            "/api/verify-resident-phone",
            {"date": date.isoformat(), "name": name, "phone": phone},
            _PhoneBody,
        )
        return PhoneVerification(
            verified=body.verified,
            record=body.stay.to_record() if body.stay else None,
        )

    async def verify_reference(self, date: dt.date, reference: str) -> ReferenceVerification:
        body: _ReferenceBody = await self._post(
            "/api/verify-resident-reference",
            {"date": date.isoformat(), "reference": reference},
            _ReferenceBody,
        )
        return ReferenceVerification(
            verified=body.verified,
            record=body.stay.to_record() if body.stay else None,
            is_agent_match=body.ota_match,
            agent_name=body.travel_agent_name,
        )
