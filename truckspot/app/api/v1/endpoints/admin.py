"""
Admin API Endpoints.

Administrative location corrections and the per-truck audit trail.
"""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from truckspot.app.db.session import get_db
from truckspot.app.schemas.admin import AuditLogResponse, AuditTrailResponse
from truckspot.app.schemas.location import AdminLocationOverride, LocationUpdateResponse
from truckspot.app.core.dependencies import get_ingest_service
from truckspot.app.core.guards import require_admin
from truckspot.app.services.audit import get_truck_audit_trail
from truckspot.app.services.location_ingest import LocationIngestService
from truckspot.app.services.trucks import get_truck

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.put("/trucks/{truck_id}/location", response_model=LocationUpdateResponse)
async def override_truck_location(
    update: AdminLocationOverride,
    truck_id: int = Path(..., description="Food truck ID"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    ingest: LocationIngestService = Depends(get_ingest_service),
):
    """
    Override a truck's location (admin-only).

    Always accepted regardless of the truck's preferences. Audited.
    """
    truck = await get_truck(db, truck_id)

    result = await ingest.admin_override(truck, update, admin)
    return LocationUpdateResponse(
        truck_id=truck_id,
        outcome=result.outcome.value,
        message=result.message,
        location=result.report.to_document(),
    )


@router.get("/trucks/{truck_id}/audit-trail", response_model=AuditTrailResponse)
async def get_truck_audit(
    truck_id: int = Path(..., description="Food truck ID"),
    action: str = Query(None, description="Filter by action type"),
    limit: int = Query(100, ge=1, le=500, description="Maximum records"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Audit trail for one truck, most recent first (admin-only)."""
    logs = await get_truck_audit_trail(db, truck_id=truck_id, action=action, limit=limit)
    return AuditTrailResponse(
        truck_id=truck_id,
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs),
    )
