"""
Unit tests for the rate limiting middleware
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from prizewheel.middleware.rate_limit import RateLimitConfig, RateLimitMiddleware


class FakePipeline:
    def __init__(self, store):
        self.store = store
        self.ops = []

    def incr(self, key):
        self.ops.append(key)

    def expire(self, key, seconds, nx=False):
        pass

    async def execute(self):
        for key in self.ops:
            self.store[key] = self.store.get(key, 0) + 1


class FakeRedis:
    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def ttl(self, key):
        return 42

    def pipeline(self):
        return FakePipeline(self.store)


def build_app(redis_client):
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, redis_client=redis_client)

    @app.post("/api/v1/spin")
    async def spin():
        return {"ok": True}

    @app.get("/api/v1/pricing")
    async def pricing():
        return {"ok": True}

    return app


@pytest.mark.asyncio
async def test_spins_are_limited_per_caller():
    redis_client = FakeRedis()
    limit = RateLimitConfig.SPIN_LIMITS["requests"]
    headers = {"Authorization": "Bearer player-one"}

    async with AsyncClient(transport=ASGITransport(app=build_app(redis_client)), base_url="http://test") as client:
        for _ in range(limit):
            assert (await client.post("/api/v1/spin", headers=headers)).status_code == 200
        blocked = await client.post("/api/v1/spin", headers=headers)
        other = await client.post("/api/v1/spin", headers={"Authorization": "Bearer player-two"})

    assert blocked.status_code == 429
    assert blocked.headers["Retry-After"] == "42"
    assert blocked.json() == {"error": "Rate limit exceeded", "retry_after": 42}
    assert other.status_code == 200


@pytest.mark.asyncio
async def test_reads_are_not_limited():
    redis_client = FakeRedis()

    async with AsyncClient(transport=ASGITransport(app=build_app(redis_client)), base_url="http://test") as client:
        for _ in range(20):
            assert (await client.get("/api/v1/pricing")).status_code == 200

    assert redis_client.store == {}


@pytest.mark.asyncio
async def test_without_redis_everything_passes():
    async with AsyncClient(transport=ASGITransport(app=build_app(None)), base_url="http://test") as client:
        for _ in range(RateLimitConfig.SPIN_LIMITS["requests"] + 1):
            assert (await client.post("/api/v1/spin")).status_code == 200
