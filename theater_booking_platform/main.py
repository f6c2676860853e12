"""FastAPI application setup and configuration."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from theater_booking_platform.config import settings
from theater_booking_platform.api import api_router
from theater_booking_platform.database import init_database, close_database
from theater_booking_platform.middleware import (
    ErrorHandlerMiddleware,
    RateLimiterMiddleware,
    LoggingMiddleware,
    register_exception_handlers
)
from theater_booking_platform.utils.logging_config import setup_logging

# Set up logging
setup_logging(
    log_level="DEBUG" if settings.debug else settings.log_level,
    log_file="logs/theater.log" if settings.environment == "production" else None,
    enable_json_logging=settings.enable_json_logging or settings.environment == "production"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    logger.info("Starting Theater Booking Platform")
    await init_database()
    logger.info("Database initialized successfully")
    yield
    # Shutdown
    logger.info("Shutting down Theater Booking Platform")
    await close_database()
    logger.info("Database connections closed")

app = FastAPI(
    title="Theater Booking Platform API",
    description="""
    ## Theater Booking Platform

    Free seat reservations for a small amateur theater.

    ### Key Features

    * **Seat Map**: Booked seats per show, with the two structurally blocked seats never offered
    * **Booking**: Up to five seats per booking, one active booking per email and show
    * **Changes**: Visitors change or cancel their booking with its id and email
    * **Door Check-in**: Staff check bookings in and out at the door
    * **Retention**: Booking data of past shows is purged after two weeks
    * **Notifications**: Confirmation emails and a staff chat feed of seat updates

    ### Admin Authentication

    Staff log in with the shared admin password. The returned token is set as an
    httpOnly cookie and is also accepted as `Authorization: Bearer <token>`.

    ### Error Handling

    The API returns structured error responses:

    ```json
    {
      "error": {
        "error_code": "SEAT_CONFLICT",
        "message": "Seats already booked: 14, 15",
        "details": {"conflicting_seats": [14, 15]},
        "suggestions": ["Choose different seats", "Refresh the seat map"]
      },
      "error_id": "...",
      "timestamp": "...",
      "conflictingSeats": [14, 15]
    }
    ```

    ### Concurrency Safety

    Every booking write holds the show's row lock for its whole transaction, and a
    unique constraint on (show, seat) rejects any seat assigned twice.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "shows",
            "description": "Show listing and seat maps"
        },
        {
            "name": "bookings",
            "description": "Visitor bookings: create, view, change seats, cancel"
        },
        {
            "name": "admin",
            "description": "Staff session, door check-in, booking and show administration"
        },
        {
            "name": "health",
            "description": "System health and monitoring endpoints"
        }
    ],
    lifespan=lifespan,
)

# Add middleware stack (order matters!)

# 1. Logging middleware
app.add_middleware(
    LoggingMiddleware,
    log_requests=settings.enable_request_logging,
    log_responses=settings.enable_request_logging
)

# 2. Error handling middleware (catch all errors)
app.add_middleware(
    ErrorHandlerMiddleware,
    debug=settings.debug
)

# 3. Rate limiting middleware
if settings.enable_rate_limiting:
    app.add_middleware(
        RateLimiterMiddleware,
        default_limit=settings.default_rate_limit,
        default_window=settings.default_rate_window,
        burst_limit=settings.burst_rate_limit,
        burst_window=settings.burst_rate_window
    )

# 4. CORS middleware (last in the middleware stack)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
    expose_headers=settings.cors_expose_headers
)

register_exception_handlers(app)

# Include API routes
app.include_router(api_router)


@app.get("/", tags=["health"])
async def root():
    """Root endpoint for API information."""
    return {
        "message": "Theater Booking Platform API",
        "theater": settings.theater_name,
        "version": "1.0.0",
        "docs_url": "/docs",
        "status": "operational"
    }


@app.get("/health", tags=["health"])
async def health_check():
    """
    Basic health check endpoint.

    Use this endpoint for simple uptime monitoring.
    """
    return {"status": "healthy", "service": "theater-booking-platform"}


@app.get("/health/detailed", tags=["health"])
async def detailed_health_check():
    """
    Detailed health check with service dependencies.

    Reports the database, the Redis cache and, when notifications are
    enabled, the Celery workers.
    """
    from theater_booking_platform.utils.health_check import get_health_status
    return await get_health_status()
