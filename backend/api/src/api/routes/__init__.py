"""API routes package.

This package contains FastAPI routers for all REST API endpoints.
Routers are organized by domain:

- periods: Opening hours and available times
- residents: Resident matching, verification and group lookup
- bookings: Single, batch and stay plan bookings

All routers are registered in main.py with /api prefix.
"""

from api.routes.bookings import router as bookings_router
from api.routes.periods import router as periods_router
from api.routes.residents import router as residents_router

__all__ = [
    "bookings_router",
    "periods_router",
    "residents_router",
]
