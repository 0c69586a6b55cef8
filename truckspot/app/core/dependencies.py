"""
FastAPI dependencies.

Authentication (JWT bearer tokens issued by the account service) and
providers for the location store and services.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from truckspot.app.core.config import settings
from truckspot.app.core.jwt import decode_access_token
from truckspot.app.core.token_revocation import is_token_revoked, are_user_tokens_revoked
from truckspot.app.db.session import get_db
from truckspot.app.domain.location.repository import InMemoryLocationRepository, SqlLocationRepository
from truckspot.app.domain.location.store import TruckLocationStore
from truckspot.app.models.user import User
from truckspot.app.services.broadcast import BroadcastGateway, get_broadcast_gateway
from truckspot.app.services.live_tracking import LiveTrackingService
from truckspot.app.services.location_ingest import LocationIngestService

# HTTP Bearer security scheme
security = HTTPBearer()

# Shared state for LOCATION_STORE_BACKEND=memory
memory_location_repository = InMemoryLocationRepository()


async def authenticate_token(token: str, db: AsyncSession) -> dict:
    """
    Validate a bearer token and return its payload.

    Checks:
    1. Validates JWT token signature and expiry
    2. Checks if token has been explicitly revoked
    3. Checks if all user tokens have been revoked (user blocked)
    4. Verifies user is still active in database (real-time check)

    Raises:
        HTTPException: 401 if authentication fails, 403 if the user is inactive
    """
    # 1. Decode and validate JWT
    payload = decode_access_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 2. Check if this specific token has been revoked
    if await is_token_revoked(token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 3. Check if all user tokens have been revoked (user was blocked)
    if await are_user_tokens_revoked(user_id):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User access has been revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 4. Real-time database check: Verify user is still active
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    # Role comes from the database so a stale token cannot keep an old role
    payload["role"] = user.role.value
    return payload


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """FastAPI dependency for JWT authentication."""
    return await authenticate_token(credentials.credentials, db)


def get_location_store(db: AsyncSession = Depends(get_db)) -> TruckLocationStore:
    """Location store bound to the configured backend."""
    if settings.location_store_backend == "memory":
        return TruckLocationStore(memory_location_repository)
    return TruckLocationStore(SqlLocationRepository(db))


def get_live_tracking_service(
    db: AsyncSession = Depends(get_db),
    gateway: BroadcastGateway = Depends(get_broadcast_gateway),
) -> LiveTrackingService:
    return LiveTrackingService(db, gateway)


def get_ingest_service(
    db: AsyncSession = Depends(get_db),
    store: TruckLocationStore = Depends(get_location_store),
    gateway: BroadcastGateway = Depends(get_broadcast_gateway),
) -> LocationIngestService:
    return LocationIngestService(db, store, gateway)
