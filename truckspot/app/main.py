"""
FastAPI Application Entry Point.

This is the main application file for the TruckSpot Location Service.
"""

from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from truckspot.app.core.config import settings
from truckspot.app.api.v1.router import router as api_v1_router
from truckspot.app.core.observability import ObservabilityMiddleware, configure_logging
from truckspot.app.core.redis_client import get_redis, ping_redis
from truckspot.app.core.reliability import persistence_circuit_breaker
from truckspot.app.services.broadcast import broadcast_gateway
from truckspot.app.db.session import engine, Base
from truckspot.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from truckspot.app.models.user import User  # noqa: F401
from truckspot.app.models.food_truck import FoodTruck  # noqa: F401
from truckspot.app.models.tracking_session import LiveTrackingSession  # noqa: F401
from truckspot.app.models.audit_log import AuditLog  # noqa: F401

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Creates database tables on startup.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Multi-source food truck location tracking and reconciliation",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check(redis=Depends(get_redis)):
    """
    Health check endpoint.

    Degraded when Redis is unreachable (token revocation cannot be checked)
    or when the persistence circuit is open (location writes answer 503).
    """
    redis_ok = await ping_redis(redis)
    persistence = persistence_circuit_breaker.state
    return {
        "status": "healthy" if redis_ok and persistence != "OPEN" else "degraded",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "ok" if redis_ok else "unreachable",
        "persistence": persistence.lower(),
        "broadcast": broadcast_gateway.stats(),
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to the TruckSpot Location Service API",
        "docs": "/docs",
        "health": "/health",
    }
