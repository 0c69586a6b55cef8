"""
Food truck lookups shared by the location endpoints.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from truckspot.app.core.exceptions import ResourceNotFoundError
from truckspot.app.domain.location.report import TrackingPreferences
from truckspot.app.models.food_truck import FoodTruck


async def get_truck(db: AsyncSession, truck_id: int) -> FoodTruck:
    """Load a truck or raise ResourceNotFoundError."""
    result = await db.execute(select(FoodTruck).where(FoodTruck.id == truck_id))
    truck = result.scalar_one_or_none()
    if truck is None:
        raise ResourceNotFoundError("Food truck", truck_id)
    return truck


def preferences_for(truck: FoodTruck) -> TrackingPreferences:
    return TrackingPreferences(
        allow_customer_reports=truck.allow_customer_reports,
        require_location_verification=truck.require_location_verification,
        auto_post_to_social=truck.auto_post_to_social,
    )
