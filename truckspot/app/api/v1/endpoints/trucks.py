"""
Truck Status API Endpoints.

Open/closed flag and tracking preferences, managed by the truck owner.
"""

import logging

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from truckspot.app.db.session import get_db
from truckspot.app.models.enums import UserRole
from truckspot.app.schemas.tracking import (
    TrackingPreferencesResponse,
    TrackingPreferencesUpdate,
    TruckStatusResponse,
    TruckStatusUpdate,
)
from truckspot.app.core.guards import require_role, TruckOwnershipGuard
from truckspot.app.services.audit import AuditAction, log_event
from truckspot.app.services.broadcast import BroadcastGateway, get_broadcast_gateway
from truckspot.app.services.trucks import get_truck

logger = logging.getLogger("truckspot.trucks")

router = APIRouter(prefix="/trucks", tags=["Truck Status"])
ownership_guard = TruckOwnershipGuard()


@router.put("/{truck_id}/status", response_model=TruckStatusResponse)
async def update_truck_status(
    update: TruckStatusUpdate,
    truck_id: int = Path(..., description="Food truck ID"),
    current_user: dict = Depends(require_role([UserRole.OWNER, UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db),
    gateway: BroadcastGateway = Depends(get_broadcast_gateway),
):
    """
    Open or close the truck (Owner or Admin).

    Broadcasts status_updated to customers. Independent of location.
    """
    truck = await get_truck(db, truck_id)
    ownership_guard.enforce(truck, current_user)

    truck.is_active = update.is_active
    truck_name = truck.display_name
    await db.commit()

    gateway.publish_status_updated(truck_id, truck_name, update.is_active)
    logger.info("Truck %s is now %s", truck_id, "active" if update.is_active else "inactive")

    await log_event(
        db,
        action=AuditAction.TRUCK_STATUS_CHANGED,
        actor=current_user,
        truck_id=truck_id,
        metadata={"is_active": update.is_active},
    )
    return TruckStatusResponse(truck_id=truck_id, is_active=update.is_active)


@router.put("/{truck_id}/tracking-preferences", response_model=TrackingPreferencesResponse)
async def update_tracking_preferences(
    update: TrackingPreferencesUpdate,
    truck_id: int = Path(..., description="Food truck ID"),
    current_user: dict = Depends(require_role([UserRole.OWNER, UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db),
):
    """
    Update customer-report and social posting preferences (Owner or Admin).

    Omitted fields are left unchanged.
    """
    truck = await get_truck(db, truck_id)
    ownership_guard.enforce(truck, current_user)

    changes = update.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(truck, field, value)

    response = TrackingPreferencesResponse(
        truck_id=truck_id,
        allow_customer_reports=truck.allow_customer_reports,
        require_location_verification=truck.require_location_verification,
        auto_post_to_social=truck.auto_post_to_social,
    )
    await db.commit()

    if changes:
        await log_event(
            db,
            action=AuditAction.TRACKING_PREFERENCES_CHANGED,
            actor=current_user,
            truck_id=truck_id,
            metadata=changes,
        )
    return response
