"""
Rate limiting middleware using a Redis fixed window counter
"""

import hashlib
import logging
from typing import Optional, Dict, Tuple
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from prizewheel.core.config import settings

# Configure logging
logger = logging.getLogger(__name__)


class RateLimitConfig:
    """Rate limiting configuration for different endpoint types"""

    SPIN_LIMITS = {
        "requests": 10,  # 10 spins per window
        "window": 60,    # 60 seconds
    }

    TOKEN_SPIN_LIMITS = {
        "requests": 5,
        "window": 60,
    }

    PAYMENT_VERIFY_LIMITS = {
        "requests": 10,
        "window": 300,   # 5 minutes
    }

    @classmethod
    def get_limits_for_endpoint(cls, endpoint_type: str) -> Dict[str, int]:
        """Get rate limits for specific endpoint type"""
        limits_map = {
            "spin": cls.SPIN_LIMITS,
            "spin_token": cls.TOKEN_SPIN_LIMITS,
            "payment_verify": cls.PAYMENT_VERIFY_LIMITS,
        }
        return limits_map.get(endpoint_type, {
            "requests": settings.rate_limit_requests,
            "window": settings.rate_limit_window_seconds,
        })


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limiting middleware using Redis counters"""

    def __init__(self, app, redis_client=None):
        super().__init__(app)
        self.redis_client = redis_client

    async def dispatch(self, request: Request, call_next):
        """Process request with rate limiting"""

        # Skip rate limiting if Redis is not available
        if not self.redis_client:
            return await call_next(request)

        endpoint_type, rate_limit_key = self._get_rate_limit_key(request)
        if not rate_limit_key:
            return await call_next(request)

        limits = RateLimitConfig.get_limits_for_endpoint(endpoint_type)
        is_allowed, retry_after = await self._check_rate_limit(rate_limit_key, limits)

        if not is_allowed:
            logger.warning(f"Rate limit exceeded for key: {rate_limit_key}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "error": "Rate limit exceeded",
                    "retry_after": retry_after
                },
                headers={"Retry-After": str(retry_after)}
            )

        response = await call_next(request)
        await self._record_request(rate_limit_key, limits)
        return response

    def _client_identity(self, request: Request) -> str:
        """Bearer token digest when present, client IP otherwise."""
        auth = request.headers.get("authorization", "")
        if auth.lower().startswith("bearer "):
            return hashlib.sha256(auth[7:].encode()).hexdigest()[:32]
        return request.client.host if request.client else "unknown"

    def _get_rate_limit_key(self, request: Request) -> Tuple[Optional[str], Optional[str]]:
        """Get endpoint type and rate limit key based on request path and caller"""
        path = request.url.path.rstrip("/")
        prefix = settings.api_v1_prefix

        if request.method != "POST":
            return None, None

        if path == f"{prefix}/spin":
            return "spin", f"rate_limit:spin:{self._client_identity(request)}"

        if path == f"{prefix}/spin/token":
            client_ip = request.client.host if request.client else "unknown"
            return "spin_token", f"rate_limit:spin_token:{client_ip}"

        if path == f"{prefix}/payments/verify":
            client_ip = request.client.host if request.client else "unknown"
            return "payment_verify", f"rate_limit:payment_verify:{client_ip}"

        # No rate limiting for other endpoints
        return None, None

    async def _check_rate_limit(self, key: str, limits: Dict[str, int]) -> Tuple[bool, int]:
        """Check if request is within rate limit"""
        try:
            request_count = await self.redis_client.get(key)
            request_count = int(request_count) if request_count else 0

            if request_count >= limits["requests"]:
                ttl = await self.redis_client.ttl(key)
                retry_after = max(1, ttl) if ttl > 0 else limits["window"]
                return False, retry_after

            return True, 0

        except Exception as e:
            logger.error(f"Error checking rate limit for key {key}: {e}")
            # Allow request if rate limiting fails
            return True, 0

    async def _record_request(self, key: str, limits: Dict[str, int]):
        """Record a request for rate limiting"""
        try:
            pipe = self.redis_client.pipeline()
            pipe.incr(key)
            pipe.expire(key, limits["window"], nx=True)
            await pipe.execute()

        except Exception as e:
            logger.error(f"Error recording request for key {key}: {e}")
