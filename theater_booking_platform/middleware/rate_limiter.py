"""
Rate limiting middleware with Redis backend.
"""

import logging
import time
from typing import Dict, Tuple
from uuid import uuid4

from fastapi import Request
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from ..utils.exceptions import RateLimitError
from ..utils.logging_config import log_security_event
from ..cache import get_cache, CacheKeyBuilder

logger = logging.getLogger(__name__)


class RateLimiterMiddleware(BaseHTTPMiddleware):
    """Rate limiting middleware using a sliding window per client and endpoint.

    Without a Redis connection every request is allowed.
    """

    def __init__(
        self,
        app,
        default_limit: int = 100,
        default_window: int = 60,
        burst_limit: int = 20,
        burst_window: int = 1
    ):
        super().__init__(app)
        self.default_limit = default_limit
        self.default_window = default_window
        self.burst_limit = burst_limit
        self.burst_window = burst_window
        self.cache = get_cache()

        # (method, path prefix) -> limit
        self.endpoint_limits: Dict[Tuple[str, str], Dict[str, int]] = {
            ("POST", "/api/v1/bookings"): {"limit": 10, "window": 60},
            ("PATCH", "/api/v1/bookings"): {"limit": 10, "window": 60},
            ("DELETE", "/api/v1/bookings"): {"limit": 10, "window": 60},
            ("POST", "/api/v1/admin/login"): {"limit": 5, "window": 300},
        }

    async def dispatch(self, request: Request, call_next):
        """Apply rate limiting based on client IP and endpoint."""
        if request.url.path in ["/health", "/", "/docs", "/redoc", "/openapi.json"]:
            return await call_next(request)

        client_ip = self._get_client_ip(request)

        exceeded, retry_after = await self._check_window(
            CacheKeyBuilder.rate_limit(client_ip, "burst"),
            self.burst_limit,
            self.burst_window
        )
        if exceeded:
            return self._create_rate_limit_response(client_ip, self.burst_limit, self.burst_window, retry_after)

        endpoint, limit_config = self._get_endpoint_limit(request)
        exceeded, retry_after = await self._check_window(
            CacheKeyBuilder.rate_limit(client_ip, endpoint),
            limit_config["limit"],
            limit_config["window"]
        )
        if exceeded:
            return self._create_rate_limit_response(
                client_ip, limit_config["limit"], limit_config["window"], retry_after
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit_config["limit"])
        response.headers["X-RateLimit-Window"] = str(limit_config["window"])
        return response

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP address from request."""
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

        return request.client.host if request.client else "unknown"

    def _get_endpoint_limit(self, request: Request) -> Tuple[str, Dict[str, int]]:
        """Map a request to its rate limit bucket."""
        for (method, prefix), config in self.endpoint_limits.items():
            if request.method == method and request.url.path.startswith(prefix):
                return f"{method}:{prefix}", config

        return "default", {"limit": self.default_limit, "window": self.default_window}

    async def _check_window(self, key: str, limit: int, window: int) -> Tuple[bool, int]:
        """
        Count the request in a sliding window and decide whether it is allowed.

        Returns:
            Tuple of (limit exceeded, seconds until a slot frees up)
        """
        pipe = self.cache.pipeline()
        if pipe is None:
            return False, 0

        now = time.time()
        try:
            pipe.zremrangebyscore(key, 0, now - window)
            pipe.zcard(key)
            pipe.zadd(key, {f"{now}:{uuid4().hex}": now})
            pipe.expire(key, window * 2)
            pipe.zrange(key, 0, 0, withscores=True)
            results = await pipe.execute()
        except (RedisError, OSError) as e:
            # Fail open - allow request if Redis is down
            logger.error(f"Error checking rate limit: {e}")
            return False, 0

        current_count = results[1]
        if current_count < limit:
            return False, 0

        oldest = results[4]
        oldest_time = oldest[0][1] if oldest else now
        return True, max(1, int(oldest_time + window - now))

    def _create_rate_limit_response(self, client_ip: str, limit: int, window: int, retry_after: int) -> JSONResponse:
        """Create rate limit exceeded response."""
        log_security_event("rate_limit_exceeded", {"client_ip": client_ip, "limit": limit, "window": window})
        error = RateLimitError(limit, window, retry_after)

        return JSONResponse(
            status_code=429,
            content={"error": error.to_dict()},
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Window": str(window)
            }
        )
