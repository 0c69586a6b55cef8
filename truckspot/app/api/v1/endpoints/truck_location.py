"""
Truck Location API Endpoints.

Owner check-ins, live GPS pings, customer sightings and the public
location reads used by the customer map.
"""

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from truckspot.app.db.session import get_db
from truckspot.app.models.enums import UserRole
from truckspot.app.schemas.location import (
    CurrentLocationResponse,
    CustomerLocationReport,
    LiveLocationUpdate,
    LocationHistoryResponse,
    LocationUpdateResponse,
    OwnerLocationUpdate,
)
from truckspot.app.core.dependencies import get_current_user, get_ingest_service, get_location_store
from truckspot.app.core.guards import require_role, TruckOwnershipGuard
from truckspot.app.domain.location.store import TruckLocationStore
from truckspot.app.services.location_ingest import IngestResult, LocationIngestService
from truckspot.app.services.trucks import get_truck

router = APIRouter(prefix="/trucks", tags=["Truck Location"])
ownership_guard = TruckOwnershipGuard()


def _update_response(truck_id: int, result: IngestResult) -> LocationUpdateResponse:
    return LocationUpdateResponse(
        truck_id=truck_id,
        outcome=result.outcome.value,
        message=result.message,
        location=result.report.to_document(),
    )


@router.put("/{truck_id}/location", response_model=LocationUpdateResponse)
async def update_location(
    update: OwnerLocationUpdate,
    truck_id: int = Path(..., description="Food truck ID"),
    current_user: dict = Depends(require_role([UserRole.OWNER])),
    db: AsyncSession = Depends(get_db),
    ingest: LocationIngestService = Depends(get_ingest_service),
):
    """
    Owner check-in (Owner only).

    Always replaces the current location and marks the truck as open.
    """
    truck = await get_truck(db, truck_id)
    ownership_guard.enforce(truck, current_user)

    result = await ingest.owner_check_in(truck, update, current_user)
    return _update_response(truck_id, result)


@router.put("/{truck_id}/live-location", response_model=LocationUpdateResponse)
async def update_live_location(
    update: LiveLocationUpdate,
    truck_id: int = Path(..., description="Food truck ID"),
    current_user: dict = Depends(require_role([UserRole.OWNER])),
    db: AsyncSession = Depends(get_db),
    ingest: LocationIngestService = Depends(get_ingest_service),
):
    """
    Live GPS ping from the owner's device (Owner only).

    Confidence is derived from the reported accuracy radius.
    """
    truck = await get_truck(db, truck_id)
    ownership_guard.enforce(truck, current_user)

    result = await ingest.live_gps_ping(truck, update, current_user)
    return _update_response(truck_id, result)


@router.post("/{truck_id}/report-location", response_model=LocationUpdateResponse)
async def report_location(
    report: CustomerLocationReport,
    response: Response,
    truck_id: int = Path(..., description="Food truck ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    ingest: LocationIngestService = Depends(get_ingest_service),
):
    """
    Customer sighting (any authenticated user).

    Returns 202 with outcome ``pending_verification`` when the truck
    requires owner verification of customer reports.
    """
    truck = await get_truck(db, truck_id)

    result = await ingest.customer_report(truck, report, current_user)
    if not result.accepted:
        response.status_code = status.HTTP_202_ACCEPTED
    return _update_response(truck_id, result)


@router.get("/{truck_id}/location", response_model=CurrentLocationResponse)
async def get_current_location(
    truck_id: int = Path(..., description="Food truck ID"),
    db: AsyncSession = Depends(get_db),
    store: TruckLocationStore = Depends(get_location_store),
):
    """Current accepted location, or null if the truck has never reported one."""
    await get_truck(db, truck_id)

    current = await store.get_current(truck_id)
    return CurrentLocationResponse(
        truck_id=truck_id,
        location=current.to_document() if current else None,
    )


@router.get("/{truck_id}/location-history", response_model=LocationHistoryResponse)
async def get_location_history(
    truck_id: int = Path(..., description="Food truck ID"),
    limit: int = Query(10, ge=1, le=100, description="Maximum history entries"),
    db: AsyncSession = Depends(get_db),
    store: TruckLocationStore = Depends(get_location_store),
):
    """Current location plus the most recent history entries, newest first."""
    await get_truck(db, truck_id)

    state = await store.get_state(truck_id)
    if state is None:
        return LocationHistoryResponse(current_location=None, history=[])

    return LocationHistoryResponse(
        current_location=state.current_document(),
        history=[entry.to_document() for entry in state.recent_history(limit)],
    )
