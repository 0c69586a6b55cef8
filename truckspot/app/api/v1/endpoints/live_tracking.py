"""
Live Tracking API Endpoints.

Owners start and stop live GPS tracking sessions; anyone can ask whether
a truck is currently live.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from truckspot.app.db.session import get_db
from truckspot.app.models.enums import UserRole
from truckspot.app.schemas.tracking import (
    StopTrackingResponse,
    TrackingSessionResponse,
    TrackingStatusResponse,
)
from truckspot.app.core.dependencies import get_live_tracking_service
from truckspot.app.core.guards import require_role, TruckOwnershipGuard
from truckspot.app.services.live_tracking import LiveTrackingService
from truckspot.app.services.trucks import get_truck

router = APIRouter(prefix="/trucks", tags=["Live Tracking"])
ownership_guard = TruckOwnershipGuard()


@router.post("/{truck_id}/start-tracking", response_model=TrackingSessionResponse)
async def start_tracking(
    truck_id: int = Path(..., description="Food truck ID"),
    current_user: dict = Depends(require_role([UserRole.OWNER])),
    db: AsyncSession = Depends(get_db),
    tracking: LiveTrackingService = Depends(get_live_tracking_service),
):
    """
    Start a live tracking session (Owner only).

    Returns 409 if a session is already active for this truck.
    """
    truck = await get_truck(db, truck_id)
    ownership_guard.enforce(truck, current_user)

    session = await tracking.start(truck, current_user)
    return TrackingSessionResponse.model_validate(session)


@router.post("/{truck_id}/stop-tracking", response_model=StopTrackingResponse)
async def stop_tracking(
    truck_id: int = Path(..., description="Food truck ID"),
    current_user: dict = Depends(require_role([UserRole.OWNER, UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db),
    tracking: LiveTrackingService = Depends(get_live_tracking_service),
):
    """
    Stop the active live tracking session (Owner or Admin).

    Stopping a truck with no active session is a no-op (``stopped`` false).
    """
    truck = await get_truck(db, truck_id)
    ownership_guard.enforce(truck, current_user)

    session = await tracking.stop(truck, current_user)
    return StopTrackingResponse(
        truck_id=truck_id,
        stopped=session is not None,
        session=TrackingSessionResponse.model_validate(session) if session else None,
    )


@router.get("/{truck_id}/tracking", response_model=TrackingStatusResponse)
async def get_tracking_status(
    truck_id: int = Path(..., description="Food truck ID"),
    db: AsyncSession = Depends(get_db),
    tracking: LiveTrackingService = Depends(get_live_tracking_service),
):
    """Whether the truck is live right now, with the active session if so."""
    await get_truck(db, truck_id)

    session = await tracking.get_active(truck_id)
    return TrackingStatusResponse(
        truck_id=truck_id,
        is_tracking=session is not None,
        session=TrackingSessionResponse.model_validate(session) if session else None,
    )
