"""
Live tracking session and truck status schemas.
"""

from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional


class TrackingSessionResponse(BaseModel):
    """A live tracking session."""
    model_config = ConfigDict(from_attributes=True)

    truck_id: int
    session_id: str
    is_active: bool
    start_time: datetime
    end_time: Optional[datetime] = None


class TrackingStatusResponse(BaseModel):
    """Whether a truck is currently streaming live GPS."""
    truck_id: int
    is_tracking: bool
    session: Optional[TrackingSessionResponse] = None


class StopTrackingResponse(BaseModel):
    truck_id: int
    stopped: bool
    session: Optional[TrackingSessionResponse] = None


class TruckStatusUpdate(BaseModel):
    is_active: bool


class TruckStatusResponse(BaseModel):
    truck_id: int
    is_active: bool


class TrackingPreferencesUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""
    allow_customer_reports: Optional[bool] = None
    require_location_verification: Optional[bool] = None
    auto_post_to_social: Optional[bool] = None


class TrackingPreferencesResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    truck_id: int
    allow_customer_reports: bool
    require_location_verification: bool
    auto_post_to_social: bool
