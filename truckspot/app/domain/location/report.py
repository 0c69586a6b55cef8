"""
Location report value types.

A LocationReport is a single observation of a truck's position from one
channel. TruckLocationState is the per-truck aggregate: the accepted
``current`` report plus a capped, most-recent-first audit history.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from truckspot.app.core.config import settings
from truckspot.app.core.exceptions import LocationValidationError
from truckspot.app.models.location_enums import Confidence, LocationSource


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LocationReport(BaseModel):
    """An incoming observation of a truck's position."""

    model_config = ConfigDict(frozen=True)

    source: LocationSource
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    confidence: Confidence = Confidence.MEDIUM
    notes: Optional[str] = None
    reported_by: Optional[int] = None

    # Live GPS extras
    accuracy_meters: Optional[float] = Field(default=None, ge=0)
    heading: Optional[float] = None
    speed: Optional[float] = None

    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator("timestamp")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        """(longitude, latitude), or None when either half is missing."""
        if self.latitude is None or self.longitude is None:
            return None
        return (self.longitude, self.latitude)

    @property
    def has_valid_coordinates(self) -> bool:
        coords = self.coordinates
        return coords is not None and coords != (0, 0)

    def to_document(self) -> Dict[str, Any]:
        """Persisted and broadcast representation (GeoJSON point + metadata)."""
        return {
            "type": "Point",
            "coordinates": list(self.coordinates) if self.coordinates else None,
            "address": self.address or "",
            "city": self.city or "",
            "state": self.state or "",
            "source": self.source.value,
            "confidence": self.confidence.value,
            "notes": self.notes or "",
            "reportedBy": self.reported_by,
            "accuracyMeters": self.accuracy_meters,
            "heading": self.heading,
            "speed": self.speed,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "LocationReport":
        coordinates = document.get("coordinates") or [None, None]
        return cls(
            source=document.get("source") or LocationSource.MANUAL,
            longitude=coordinates[0],
            latitude=coordinates[1],
            address=document.get("address") or None,
            city=document.get("city") or None,
            state=document.get("state") or None,
            confidence=document.get("confidence") or Confidence.MEDIUM,
            notes=document.get("notes") or None,
            reported_by=document.get("reportedBy"),
            accuracy_meters=document.get("accuracyMeters"),
            heading=document.get("heading"),
            speed=document.get("speed"),
            timestamp=document.get("timestamp") or utcnow(),
        )


class TrackingPreferences(BaseModel):
    """Per-truck settings gating customer reports."""

    model_config = ConfigDict(frozen=True)

    allow_customer_reports: bool = True
    require_location_verification: bool = False
    auto_post_to_social: bool = False


class TruckLocationState(BaseModel):
    """Current accepted location and capped audit history for one truck."""

    current: Optional[LocationReport] = None
    history: List[LocationReport] = Field(default_factory=list)

    def record(self, report: LocationReport, accepted: bool, cap: int) -> None:
        """
        Append ``report`` to history and, when accepted, make it current.

        The outgoing current (if it has real coordinates) is pushed to
        history as well. History stays most-recent-first and never exceeds
        ``cap`` entries; the oldest are evicted.
        """
        entries = [report]
        if accepted:
            if self.current is not None and self.current.has_valid_coordinates:
                entries.append(self.current)
            self.current = report
        self.history = (entries + self.history)[:cap]

    def recent_history(self, limit: int) -> List[LocationReport]:
        return self.history[:max(limit, 0)]

    @classmethod
    def from_documents(
        cls,
        current: Optional[Dict[str, Any]],
        history: Optional[List[Dict[str, Any]]],
    ) -> "TruckLocationState":
        return cls(
            current=LocationReport.from_document(current) if current else None,
            history=[LocationReport.from_document(doc) for doc in history or []],
        )

    def current_document(self) -> Optional[Dict[str, Any]]:
        return self.current.to_document() if self.current else None

    def history_documents(self) -> List[Dict[str, Any]]:
        return [entry.to_document() for entry in self.history]


def validate_report(report: LocationReport) -> None:
    """Reject reports whose coordinates are missing or the (0, 0) sentinel."""
    if report.coordinates is None:
        raise LocationValidationError(
            "Latitude and longitude are required",
            details={"latitude": report.latitude, "longitude": report.longitude},
        )
    if report.coordinates == (0, 0):
        raise LocationValidationError(
            "Coordinates (0, 0) are not a valid truck location",
            details={"latitude": 0, "longitude": 0},
        )


def derive_confidence(
    source: LocationSource,
    accuracy_meters: Optional[float] = None,
    supplied: Optional[Confidence] = None,
) -> Confidence:
    """
    Derive a report's confidence from its channel.

    owner -> high; live GPS by accuracy radius (<10 high, <50 medium,
    otherwise low; unknown accuracy -> medium); customer -> medium;
    admin, social and manual -> caller-supplied, defaulting to medium.
    """
    if source == LocationSource.OWNER:
        return Confidence.HIGH
    if source == LocationSource.LIVE_GPS:
        if accuracy_meters is None:
            return Confidence.MEDIUM
        if accuracy_meters < settings.gps_high_accuracy_meters:
            return Confidence.HIGH
        if accuracy_meters < settings.gps_medium_accuracy_meters:
            return Confidence.MEDIUM
        return Confidence.LOW
    if source == LocationSource.CUSTOMER:
        return Confidence.MEDIUM
    return supplied or Confidence.MEDIUM
