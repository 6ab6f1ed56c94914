"""SSM Parameter Store service for API credentials.

Holds the property system and reservation system credentials and the bot
check secret, under ``/tablebook/{environment}/...``:

    /tablebook/{env}/newbook/username
    /tablebook/{env}/newbook/password
    /tablebook/{env}/newbook/api_key
    /tablebook/{env}/resos/api_key
    /tablebook/{env}/turnstile/secret     (optional; bot check off if absent)
"""

import logging
from collections.abc import Sequence
from functools import lru_cache
from typing import ClassVar

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

NOT_FOUND = "ParameterNotFound"


class SSMServiceError(Exception):
    """Raised when SSM parameter retrieval fails.

    ``code`` is the AWS error code, or ``ParameterNotFound`` for names
    reported invalid by a batch read.
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


def parameter_path(environment: str, *parts: str) -> str:
    """Build a parameter name such as ``/tablebook/dev/newbook/api_key``."""
    return "/".join(["", "tablebook", environment, *parts])


def _client_error(name: str, e: ClientError) -> SSMServiceError:
    code = e.response.get("Error", {}).get("Code", "Unknown")
    if code == NOT_FOUND:
        return SSMServiceError(f"SSM parameter not found: {name}", code)
    if code == "AccessDeniedException":
        return SSMServiceError(
            f"Access denied to SSM parameter: {name}. "
            "Check IAM permissions for ssm:GetParameter(s).",
            code,
        )
    return SSMServiceError(f"Failed to retrieve SSM parameter {name}: {e}", code)


class SSMService:
    """Reads decrypted SecureString parameters, cached per Lambda container.

    Usage:
        ssm = get_ssm_service()
        key = ssm.get_parameter(parameter_path("dev", "resos", "api_key"))
        user, password, key = ssm.get_parameters([...])
    """

    _instance: ClassVar["SSMService | None"] = None
    _cache: ClassVar[dict[str, str]] = {}

    def __init__(self) -> None:
        self._client = boto3.client("ssm")

    @classmethod
    def get_instance(cls) -> "SSMService":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def get_parameter(self, name: str, *, use_cache: bool = True) -> str:
        """Retrieve one decrypted parameter value.

        Raises:
            SSMServiceError: If the parameter cannot be retrieved.
        """
        if use_cache and name in self._cache:
            return self._cache[name]

        logger.info("Fetching SSM parameter: %s", name)
        try:
            response = self._client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            raise _client_error(name, e) from e

        value = response["Parameter"]["Value"]
        self._cache[name] = value
        return value

    def get_parameters(self, names: Sequence[str]) -> list[str]:
        """Retrieve several parameters in one call, in the order given.

        Only names missing from the cache are requested.

        Raises:
            SSMServiceError: If any parameter is missing or the call fails.
        """
        missing = [n for n in dict.fromkeys(names) if n not in self._cache]
        if missing:
            logger.info("Fetching %d SSM parameters", len(missing))
            try:
                response = self._client.get_parameters(Names=missing, WithDecryption=True)
            except ClientError as e:
                raise _client_error(", ".join(missing), e) from e

            invalid = response.get("InvalidParameters") or []
            if invalid:
                raise SSMServiceError(
                    f"SSM parameter not found: {', '.join(sorted(invalid))}", NOT_FOUND
                )
            for parameter in response.get("Parameters", []):
                self._cache[parameter["Name"]] = parameter["Value"]

        return [self._cache[n] for n in names]

    def get_optional_parameter(self, name: str) -> str | None:
        """Retrieve a parameter, or None when it does not exist.

        Used for settings that switch a feature off when absent, such as the
        bot check secret. Other failures still raise.
        """
        try:
            return self.get_parameter(name)
        except SSMServiceError as e:
            if e.code == NOT_FOUND:
                return None
            raise

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("SSM parameter cache cleared")


@lru_cache(maxsize=1)
def get_ssm_service() -> SSMService:
    """Get the shared SSMService instance."""
    return SSMService.get_instance()


def reset_ssm_service() -> None:
    """Drop the shared instance and its parameter cache.

    Used by tests so each mock_aws context gets a fresh boto3 client.
    """
    SSMService._cache.clear()
    SSMService._instance = None
    get_ssm_service.cache_clear()
