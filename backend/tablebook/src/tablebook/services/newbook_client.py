"""NewBook property management system client.

Reads hotel stay records and writes the no-table custom field. Every call is
a JSON POST to ``{base_url}/{action}`` authenticated with HTTP Basic auth
plus ``region`` and ``api_key`` in the body. Credentials are read from SSM
Parameter Store.
"""

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from tablebook.config import WidgetConfig
from tablebook.models import GuestCandidate, StayRecord, StayStatus, UpstreamError

from .ssm_service import SSMService, SSMServiceError, get_ssm_service, parameter_path

logger = logging.getLogger(__name__)

SERVICE = "newbook"
CANCELLED_STATUSES = frozenset({"cancelled", "canceled"})


@dataclass(frozen=True)
class NewBookCredentials:
    username: str
    password: str
    api_key: str


def _contact(guest: dict[str, Any], kind: str) -> str:
    for contact in guest.get("contact_details") or []:
        if isinstance(contact, dict) and contact.get("type") == kind:
            return str(contact.get("content") or "")
    return ""


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def parse_guest(raw: dict[str, Any]) -> GuestCandidate:
    """Parse a NewBook guest entry."""
    guest_id = _as_int(raw.get("id")) or None
    return GuestCandidate(
        guest_id=guest_id,
        first_name=str(raw.get("firstname") or ""),
        last_name=str(raw.get("lastname") or ""),
        email=_contact(raw, "email"),
        phone=_contact(raw, "mobile") or _contact(raw, "phone"),
        is_primary=str(raw.get("primary_client") or "") == "1",
    )


def parse_stay_record(raw: dict[str, Any]) -> StayRecord:
    """Parse a NewBook booking into a StayRecord.

    Raises:
        ValueError: If the booking has no usable ID or stay dates.
    """
    check_in = dt.date.fromisoformat(str(raw.get("period_from") or "")[:10])
    check_out = dt.date.fromisoformat(str(raw.get("period_to") or "")[:10])
    stay_id = _as_int(raw.get("booking_id"))
    if not stay_id:
        raise ValueError("booking has no booking_id")

    status = str(raw.get("booking_status") or "").strip().lower()
    reference = str(raw.get("booking_reference_id") or "").strip()
    agent = str(raw.get("travel_agent_name") or "").strip()

    return StayRecord(
        stay_id=stay_id,
        guests=[parse_guest(g) for g in raw.get("guests") or [] if isinstance(g, dict)],
        check_in=check_in,
        check_out=max(check_out, check_in),
        room_label=str(raw.get("site_name") or ""),
        group_id=_as_int(raw.get("bookings_group_id")) or None,
        status=StayStatus.CANCELLED if status in CANCELLED_STATUSES else StayStatus.ACTIVE,
        reference_code=reference or None,
        travel_agent_name=agent or None,
        occupancy=sum(
            _as_int(raw.get(key))
            for key in ("booking_adults", "booking_children", "booking_infants")
        ),
    )


class NewBookClient:
    """Async client for the NewBook REST API.

    Usage:
        client = NewBookClient(config)
        records = await client.list_staying(dt.date(2025, 6, 1))
    """

    def __init__(
        self,
        config: WidgetConfig,
        *,
        ssm: SSMService | None = None,
        credentials: NewBookCredentials | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Widget configuration (region, base URL, timeout)
            ssm: SSM service for credentials (defaults to the shared instance)
            credentials: Explicit credentials, bypassing SSM
            transport: Optional httpx transport, used by tests
        """
        self._config = config
        self._ssm = ssm
        self._credentials = credentials
        self._transport = transport

    def _get_credentials(self) -> NewBookCredentials:
        """Get credentials from SSM (lazy initialization).

        Raises:
            UpstreamError: If credentials cannot be retrieved.
        """
        if self._credentials is None:
            ssm = self._ssm or get_ssm_service()
            env = self._config.environment
            names = [
                parameter_path(env, "newbook", key)
                for key in ("username", "password", "api_key")
            ]
            try:
                username, password, api_key = ssm.get_parameters(names)
            except SSMServiceError as e:
                raise UpstreamError(
                    f"NewBook credentials not configured: {e}", service=SERVICE
                ) from e
            self._credentials = NewBookCredentials(username, password, api_key)
        return self._credentials

    async def _request(self, action: str, data: dict[str, Any]) -> Any:
        """POST an action and unwrap the response envelope.

        Raises:
            UpstreamError: On transport failure, non-200 status, invalid JSON
                or a ``success: false`` envelope.
        """
        creds = self._get_credentials()
        body = {**data, "region": self._config.newbook_region, "api_key": creds.api_key}
        url = f"{self._config.newbook_base_url.rstrip('/')}/{action}"

        async with httpx.AsyncClient(
            timeout=self._config.newbook_timeout_seconds,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(
                    url, json=body, auth=(creds.username, creds.password)
                )
            except httpx.HTTPError as e:
                logger.warning("NewBook %s request failed: %s", action, e)
                raise UpstreamError(f"NewBook request failed: {e}", service=SERVICE) from e

        if response.status_code != 200:
            raise UpstreamError(
                f"NewBook API returned status {response.status_code}",
                service=SERVICE,
                status_code=response.status_code,
            )

        try:
            parsed = response.json()
        except ValueError as e:
            raise UpstreamError("Invalid JSON from NewBook API", service=SERVICE) from e

        if isinstance(parsed, dict):
            if parsed.get("success") is False:
                raise UpstreamError(
                    str(parsed.get("message") or "NewBook API returned an error"),
                    service=SERVICE,
                )
            if "data" in parsed:
                return parsed["data"]
        return parsed

    def _parse_records(self, raw: Any) -> list[StayRecord]:
        records: list[StayRecord] = []
        for item in raw if isinstance(raw, list) else []:
            if not isinstance(item, dict):
                continue
            try:
                records.append(parse_stay_record(item))
            except ValueError as e:
                logger.warning("Skipping unparseable NewBook booking: %s", e)
        return records

    async def list_staying(self, date: dt.date) -> list[StayRecord]:
        """List bookings staying on a date, cancelled ones included."""
        day = date.isoformat()
        raw = await self._request(
            "bookings_list",
            {
                "period_from": f"{day} 00:00:00",
                "period_to": f"{day} 23:59:59",
                "list_type": "staying",
            },
        )
        return self._parse_records(raw)

    async def get_booking(self, booking_id: int) -> StayRecord | None:
        """Fetch one booking by ID. Returns None if it does not exist."""
        raw = await self._request("bookings_get", {"booking_id": int(booking_id)})
        if isinstance(raw, list):
            raw = raw[0] if raw else None
        if not isinstance(raw, dict) or "booking_id" not in raw:
            return None
        try:
            return parse_stay_record(raw)
        except ValueError as e:
            logger.warning("Unparseable NewBook booking %s: %s", booking_id, e)
            return None

    async def set_custom_field(self, booking_id: int, name: str, value: str) -> None:
        """Set a custom field on a booking."""
        await self._request(
            "instance_custom_fields_set",
            {
                "instance_id": int(booking_id),
                "instance_type": "booking",
                "fields": [{"name": name, "value": value}],
            },
        )

    async def test_connection(self) -> bool:
        """Check the configured credentials against the API."""
        await self._request("sites_list", {})
        return True
