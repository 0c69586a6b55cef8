"""
Location ingest and read schemas.

Coordinates are optional at the schema level so a missing pair reaches the
location store and is reported as ERR_LOCATION_INVALID; ranges are still
checked here.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional

from truckspot.app.models.location_enums import Confidence, LocationSource


class OwnerLocationUpdate(BaseModel):
    """Owner manual check-in."""
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class LiveLocationUpdate(BaseModel):
    """High-frequency GPS ping from the owner's device."""
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    accuracy: Optional[float] = Field(None, ge=0, description="Accuracy radius in meters")
    heading: Optional[float] = Field(None, ge=0, lt=360)
    speed: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=1000)


class CustomerLocationReport(BaseModel):
    """Crowd-sourced sighting from a customer."""
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class AdminLocationOverride(BaseModel):
    """Administrative correction. Source defaults to admin."""
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)
    source: LocationSource = LocationSource.ADMIN
    confidence: Optional[Confidence] = None


class SocialLocationUpdate(BaseModel):
    """Location extracted from a post on one of the truck's social accounts."""
    platform: Literal["instagram", "facebook", "twitter"]
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    post_text: Optional[str] = Field(None, max_length=2000)
    confidence: Optional[Confidence] = None


class LocationUpdateResponse(BaseModel):
    """Response after submitting a location."""
    truck_id: int
    outcome: str  # accepted | pending_verification
    message: str
    location: Dict[str, Any]


class CurrentLocationResponse(BaseModel):
    truck_id: int
    location: Optional[Dict[str, Any]] = None


class LocationHistoryResponse(BaseModel):
    """Outbound history shape: current location plus most recent entries."""
    model_config = ConfigDict(populate_by_name=True)

    current_location: Optional[Dict[str, Any]] = Field(None, alias="currentLocation")
    history: List[Dict[str, Any]] = Field(default_factory=list)
