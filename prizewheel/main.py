"""
PrizeWheel FastAPI Application
Main entry point for the application
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import JSONResponse, Response
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.exception_handlers import request_validation_exception_handler
import logging
import time
import os
import asyncio
import subprocess

from prizewheel.core.config import settings

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Sentry integration
if os.getenv("SENTRY_DSN"):
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
    from sentry_sdk.integrations.redis import RedisIntegration

    sentry_sdk.init(
        dsn=os.getenv("SENTRY_DSN"),
        integrations=[
            FastApiIntegration(),
            SqlalchemyIntegration(),
            RedisIntegration(),
        ],
        traces_sample_rate=0.1,
        environment=settings.app_env,
    )

from prizewheel.api.health import router as health_router
from prizewheel.api.v1.spin import router as spin_router
from prizewheel.api.v1.wallet import router as wallet_router
from prizewheel.api.v1.payments import router as payments_router
from prizewheel.api.v1.pricing import router as pricing_router
from prizewheel.api.v1.admin import router as admin_router
from prizewheel.core.errors import SpinError
from prizewheel.core.redis_client import get_rate_limit_redis
from prizewheel.middleware.rate_limit import RateLimitMiddleware

# Prometheus metrics
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])
ACTIVE_CONNECTIONS = Gauge('http_active_connections', 'Number of active HTTP connections')

# Create FastAPI app instance
app = FastAPI(
    title="PrizeWheel API",
    description="Tiered prize wheel with wallet payments and prize delivery",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)


def _run_migrations() -> None:
    result = subprocess.run(
        ["alembic", "upgrade", "head"],
        capture_output=True,
        text=True,
        timeout=60
    )
    if result.returncode == 0:
        logger.info("Database migrations completed successfully")
    else:
        logger.warning(f"Migration warning: {result.stderr}")


# Run database migrations on startup
@app.on_event("startup")
async def startup_event():
    """Run database migrations on startup when enabled"""
    if not settings.run_migrations_on_startup:
        return
    logger.info("Running database migrations...")
    try:
        await asyncio.to_thread(_run_migrations)
    except (OSError, subprocess.SubprocessError) as e:
        logger.error(f"Migration error (continuing anyway): {e}")


@app.exception_handler(SpinError)
async def spin_error_handler(request: Request, exc: SpinError):
    """Spin rejections use the {error, balance?, required?} body"""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Unparseable spin bodies get the same {error} shape as other spin rejections"""
    if request.url.path.startswith("/api/v1/spin"):
        return JSONResponse(status_code=400, content={"error": "Invalid request"})
    return await request_validation_exception_handler(request, exc)


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiting middleware
app.add_middleware(RateLimitMiddleware, redis_client=get_rate_limit_redis())


# Add metrics middleware
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start_time = time.time()
    ACTIVE_CONNECTIONS.inc()
    response = None

    try:
        response = await call_next(request)
        return response
    finally:
        duration = time.time() - start_time
        ACTIVE_CONNECTIONS.dec()

        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=request.url.path,
            status=response.status_code if response else 500
        ).inc()

        REQUEST_DURATION.labels(
            method=request.method,
            endpoint=request.url.path
        ).observe(duration)


# Add metrics endpoint
@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Include routers
app.include_router(health_router, prefix=settings.api_v1_prefix, tags=["health"])

# Include v1 API routers
app.include_router(spin_router, prefix=f"{settings.api_v1_prefix}/spin", tags=["spin"])
app.include_router(wallet_router, prefix=f"{settings.api_v1_prefix}/wallet", tags=["wallet"])
app.include_router(payments_router, prefix=f"{settings.api_v1_prefix}/payments", tags=["payments"])
app.include_router(pricing_router, prefix=f"{settings.api_v1_prefix}/pricing", tags=["pricing"])
app.include_router(admin_router, prefix=settings.api_v1_prefix, tags=["admin"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
