"""Unit tests for the Cloudflare Turnstile bot check."""

from collections.abc import Callable
from unittest.mock import MagicMock
from urllib.parse import parse_qs

import httpx
import pytest

from tablebook.config import WidgetConfig
from tablebook.models import ErrorCode, WidgetError
from tablebook.services.turnstile import SITEVERIFY_URL, TurnstileVerifier


def make_verifier(
    handler: Callable[[httpx.Request], httpx.Response],
    secret: str | None = "ts_secret",
) -> TurnstileVerifier:
    return TurnstileVerifier(
        WidgetConfig(), secret=secret, transport=httpx.MockTransport(handler)
    )


def never_called(request: httpx.Request) -> httpx.Response:
    raise AssertionError("Cloudflare should not be called")


class TestTurnstileVerifier:
    @pytest.mark.asyncio
    async def test_disabled_without_secret(self) -> None:
        verifier = make_verifier(never_called, secret="")

        assert verifier.enabled is False
        await verifier.verify(None, "203.0.113.9")

    @pytest.mark.asyncio
    async def test_secret_loaded_from_ssm(self) -> None:
        """A missing SSM parameter switches the check off."""
        ssm = MagicMock()
        ssm.get_optional_parameter.return_value = None
        verifier = TurnstileVerifier(WidgetConfig(environment="prod"), ssm=ssm)

        assert verifier.enabled is False
        ssm.get_optional_parameter.assert_called_once_with("/tablebook/prod/turnstile/secret")

    @pytest.mark.asyncio
    async def test_missing_token(self) -> None:
        with pytest.raises(WidgetError) as exc_info:
            await make_verifier(never_called).verify("", "203.0.113.9")

        assert exc_info.value.code == ErrorCode.VERIFICATION_REQUIRED

    @pytest.mark.asyncio
    async def test_valid_token(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"success": True})

        await make_verifier(handler).verify("tok", "203.0.113.9")

        assert str(seen[0].url) == SITEVERIFY_URL
        form = parse_qs(seen[0].content.decode())
        assert form == {
            "secret": ["ts_secret"],
            "response": ["tok"],
            "remoteip": ["203.0.113.9"],
        }

    @pytest.mark.asyncio
    async def test_rejected_token(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": False, "error-codes": ["invalid-input-response"]})

        with pytest.raises(WidgetError) as exc_info:
            await make_verifier(handler).verify("tok", "203.0.113.9")

        assert exc_info.value.code == ErrorCode.VERIFICATION_FAILED

    @pytest.mark.asyncio
    async def test_cloudflare_unreachable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(WidgetError) as exc_info:
            await make_verifier(handler).verify("tok", "203.0.113.9")

        assert exc_info.value.code == ErrorCode.VERIFICATION_FAILED
