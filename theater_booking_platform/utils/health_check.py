"""
Health check utilities for monitoring service dependencies.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from redis.exceptions import RedisError

from ..database import get_db_session
from ..cache import get_cache
from ..config import get_settings

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class HealthCheckResult:
    """Result of a health check."""

    def __init__(
        self,
        service: str,
        healthy: bool,
        response_time: float,
        details: Optional[Dict[str, Any]] = None,
        required: bool = True
    ):
        self.service = service
        self.healthy = healthy
        self.response_time = response_time
        self.details = details or {}
        self.required = required
        self.timestamp = _now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service": self.service,
            "healthy": self.healthy,
            "required": self.required,
            "response_time": self.response_time,
            "details": self.details,
            "timestamp": self.timestamp
        }


async def check_database_health() -> HealthCheckResult:
    """Check database connectivity."""
    start_time = time.time()

    try:
        async with get_db_session() as db:
            result = await db.execute(text("SELECT 1"))
            healthy = result.scalar() == 1
        return HealthCheckResult(
            service="database",
            healthy=healthy,
            response_time=time.time() - start_time,
            details={"query": "SELECT 1", "result": "success" if healthy else "unexpected"}
        )
    except (SQLAlchemyError, RuntimeError, OSError) as e:
        logger.error(f"Database health check failed: {e}")
        return HealthCheckResult(
            service="database",
            healthy=False,
            response_time=time.time() - start_time,
            details={"error": str(e), "error_type": type(e).__name__}
        )


async def check_redis_health() -> HealthCheckResult:
    """
    Check Redis connectivity.

    Redis only backs the listing cache and the rate limiter, so a missing
    Redis degrades the service without making it unhealthy.
    """
    start_time = time.time()
    cache = get_cache()

    if not cache.available:
        enabled = get_settings().enable_cache
        return HealthCheckResult(
            service="redis",
            healthy=not enabled,
            response_time=0.0,
            details={"status": "unavailable" if enabled else "disabled"},
            required=False
        )

    try:
        await cache.client.ping()
        return HealthCheckResult(
            service="redis",
            healthy=True,
            response_time=time.time() - start_time,
            details={"operations": ["ping"], "result": "success"},
            required=False
        )
    except (RedisError, OSError) as e:
        logger.warning(f"Redis health check failed: {e}")
        return HealthCheckResult(
            service="redis",
            healthy=False,
            response_time=time.time() - start_time,
            details={"error": str(e), "error_type": type(e).__name__},
            required=False
        )


async def check_celery_health() -> HealthCheckResult:
    """Check Celery worker connectivity."""
    start_time = time.time()

    try:
        from ..tasks.celery_app import celery_app

        # inspect() blocks on the broker round trip
        stats = await asyncio.to_thread(lambda: celery_app.control.inspect(timeout=1.0).stats())
        response_time = time.time() - start_time

        if stats:
            return HealthCheckResult(
                service="celery",
                healthy=True,
                response_time=response_time,
                details={"active_workers": len(stats), "workers": list(stats.keys())},
                required=False
            )
        return HealthCheckResult(
            service="celery",
            healthy=False,
            response_time=response_time,
            details={"error": "No active Celery workers found"},
            required=False
        )

    except Exception as e:
        logger.warning(f"Celery health check failed: {e}")
        return HealthCheckResult(
            service="celery",
            healthy=False,
            response_time=time.time() - start_time,
            details={"error": str(e), "error_type": type(e).__name__},
            required=False
        )


async def get_health_status() -> Dict[str, Any]:
    """Get health status of the store and the optional dependencies."""
    start_time = time.time()
    settings = get_settings()

    checks = [check_database_health(), check_redis_health()]
    if settings.enable_notifications:
        checks.append(check_celery_health())

    results = await asyncio.gather(*checks)

    healthy = all(r.healthy for r in results if r.required)
    degraded = healthy and not all(r.healthy for r in results)

    return {
        "status": "degraded" if degraded else ("healthy" if healthy else "unhealthy"),
        "service": "theater-booking-platform",
        "timestamp": _now(),
        "total_check_time": time.time() - start_time,
        "services": [r.to_dict() for r in results],
        "summary": {
            "total_services": len(results),
            "healthy_services": sum(1 for r in results if r.healthy),
            "unhealthy_services": sum(1 for r in results if not r.healthy)
        }
    }
