"""
Shared Redis client
"""

import os
from typing import Optional

import redis.asyncio as redis
from prizewheel.core.config import settings

REDIS_URL = os.environ.get("REDIS_URL", settings.redis_url)


def create_redis_client(url: Optional[str] = None) -> redis.Redis:
    """Build a client; no connection is opened until the first command."""
    return redis.from_url(url or REDIS_URL, decode_responses=True)


def get_rate_limit_redis() -> Optional[redis.Redis]:
    """Redis client for the rate limiter, or None when rate limiting is off."""
    if not settings.rate_limit_enabled:
        return None
    return create_redis_client()
