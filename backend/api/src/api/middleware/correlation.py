"""Request IDs for the booking widget.

The widget sends ``X-Correlation-ID`` once per form session, so the resident
check, the verification calls and the final booking share one ID in the
logs. IDs that could break a log line are replaced with a fresh one.
"""

import logging
import re
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from tablebook.utils.logging import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
SAFE_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def accepted_id(value: str | None) -> str | None:
    """The client's ID if it is safe to log, else None."""
    if value and SAFE_ID.match(value):
        return value
    return None


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tags each widget request with an ID and logs its outcome."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = set_correlation_id(
            accepted_id(request.headers.get(CORRELATION_ID_HEADER))
        )
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            logger.info(
                "%s %s -> %d in %.0fms",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )
            return response
        finally:
            clear_correlation_id()
