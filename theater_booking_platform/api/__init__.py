"""API endpoints for the Theater Booking Platform."""

from fastapi import APIRouter
from .shows import router as shows_router
from .bookings import router as bookings_router
from .admin import router as admin_router
from .admin_shows import router as admin_shows_router

# Create main API router
api_router = APIRouter(prefix="/api/v1")

# Include all routers
api_router.include_router(shows_router)
api_router.include_router(bookings_router)
api_router.include_router(admin_router)
api_router.include_router(admin_shows_router)

__all__ = ["api_router"]
