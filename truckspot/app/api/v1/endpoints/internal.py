"""
Internal API Endpoints.

Called by the social media tracking job, not by end users. Exposed without
authentication; deployments keep the /internal prefix off the public edge.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from truckspot.app.db.session import get_db
from truckspot.app.schemas.location import LocationUpdateResponse, SocialLocationUpdate
from truckspot.app.core.dependencies import get_ingest_service
from truckspot.app.services.location_ingest import LocationIngestService
from truckspot.app.services.trucks import get_truck

router = APIRouter(prefix="/internal", tags=["Internal"])


@router.post("/trucks/{truck_id}/social-location", response_model=LocationUpdateResponse)
async def social_location_update(
    update: SocialLocationUpdate,
    truck_id: int = Path(..., description="Food truck ID"),
    db: AsyncSession = Depends(get_db),
    ingest: LocationIngestService = Depends(get_ingest_service),
):
    """Location found in a post on the truck's Instagram, Facebook or Twitter account."""
    truck = await get_truck(db, truck_id)

    result = await ingest.social_media_update(truck, update)
    return LocationUpdateResponse(
        truck_id=truck_id,
        outcome=result.outcome.value,
        message=result.message,
        location=result.report.to_document(),
    )
