"""Cloudflare Turnstile bot check for write endpoints."""

import logging

import httpx

from tablebook.config import WidgetConfig
from tablebook.models import ErrorCode, WidgetError

from .ssm_service import SSMService, get_ssm_service, parameter_path

logger = logging.getLogger(__name__)

SITEVERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"


class TurnstileVerifier:
    """Verifies Turnstile tokens when a secret is configured.

    With no secret in SSM the check is switched off and every request passes.
    """

    def __init__(
        self,
        config: WidgetConfig,
        *,
        ssm: SSMService | None = None,
        secret: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._ssm = ssm
        self._secret = secret
        self._secret_loaded = secret is not None
        self._transport = transport

    def _get_secret(self) -> str | None:
        if not self._secret_loaded:
            ssm = self._ssm or get_ssm_service()
            self._secret = ssm.get_optional_parameter(
                parameter_path(self._config.environment, "turnstile", "secret")
            )
            self._secret_loaded = True
        return self._secret or None

    @property
    def enabled(self) -> bool:
        return self._get_secret() is not None

    async def verify(self, token: str | None, remote_ip: str) -> None:
        """Check a token.

        Raises:
            WidgetError: ERR_VERIFICATION_REQUIRED if the token is missing,
                ERR_VERIFICATION_FAILED if it is rejected or Cloudflare is
                unreachable.
        """
        secret = self._get_secret()
        if secret is None:
            return
        if not token:
            raise WidgetError(ErrorCode.VERIFICATION_REQUIRED)

        async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
            try:
                response = await client.post(
                    SITEVERIFY_URL,
                    data={"secret": secret, "response": token, "remoteip": remote_ip},
                )
                body = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("Turnstile verification unavailable: %s", e)
                raise WidgetError(ErrorCode.VERIFICATION_FAILED) from e

        if not isinstance(body, dict) or not body.get("success"):
            raise WidgetError(ErrorCode.VERIFICATION_FAILED)
