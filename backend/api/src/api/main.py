"""FastAPI application for the restaurant booking widget API.

This package provides REST endpoints for:
- Health checks
- Service periods and available times
- Resident matching and verification
- Single, batch and stay plan bookings

The widget is embedded on the restaurant's website; requests from the
configured origins are allowed through CORS.
"""

import logging
import os
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from api.exceptions import register_exception_handlers
from api.middleware.correlation import CORRELATION_ID_HEADER, CorrelationIdMiddleware
from api.routes.bookings import router as bookings_router
from api.routes.periods import router as periods_router
from api.routes.residents import router as residents_router
from tablebook import __version__
from tablebook.utils.logging import configure_logging

logger = logging.getLogger(__name__)
configure_logging()

DEFAULT_ALLOWED_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"

app = FastAPI(
    title="Table Booking Widget API",
    description="REST API for restaurant table bookings with hotel resident recognition",
    version=__version__,
)

# Comma-separated list, e.g. the restaurant's website origins
allowed_origins = [
    origin.strip()
    for origin in os.environ.get("TABLEBOOK_ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS).split(",")
    if origin.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    expose_headers=[CORRELATION_ID_HEADER],
)
app.add_middleware(CorrelationIdMiddleware)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

# Include routers under /api prefix
# This matches CloudFront routing: /api/* → API Gateway
app.include_router(periods_router, prefix="/api")
app.include_router(residents_router, prefix="/api")
app.include_router(bookings_router, prefix="/api")


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Root health check endpoint at /api/ping."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "tablebook-api",
    }


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run(
            "api.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["backend/api/src", "backend/tablebook/src"],
        )
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
