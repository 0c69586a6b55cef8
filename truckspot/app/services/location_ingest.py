"""
Location ingest service.

One entry point per channel. Each builds a LocationReport with the
channel's source and confidence, submits it to the location store and,
when it was accepted, publishes a single location_updated event.

The publish call follows the store's return with no await in between, so
events for a truck leave in the order the store applied them.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from truckspot.app.core.config import settings
from truckspot.app.core.exceptions import (
    CustomerReportsDisabledError,
    TrackingSessionRequiredError,
)
from truckspot.app.domain.location.report import LocationReport, TrackingPreferences, derive_confidence
from truckspot.app.domain.location.store import SubmissionResult, TruckLocationStore
from truckspot.app.models.food_truck import FoodTruck
from truckspot.app.models.location_enums import LocationSource
from truckspot.app.schemas.location import (
    AdminLocationOverride,
    CustomerLocationReport,
    LiveLocationUpdate,
    OwnerLocationUpdate,
    SocialLocationUpdate,
)
from truckspot.app.services.audit import AuditAction, log_event
from truckspot.app.services.broadcast import BroadcastGateway
from truckspot.app.services.live_tracking import LiveTrackingService
from truckspot.app.services.trucks import preferences_for

logger = logging.getLogger("truckspot.location.ingest")


class IngestOutcome(str, enum.Enum):
    ACCEPTED = "accepted"
    PENDING_VERIFICATION = "pending_verification"


@dataclass(frozen=True)
class IngestResult:
    outcome: IngestOutcome
    report: LocationReport

    @property
    def accepted(self) -> bool:
        return self.outcome is IngestOutcome.ACCEPTED

    @property
    def message(self) -> str:
        if self.accepted:
            return "Location updated"
        return "Location report submitted for verification"


class LocationIngestService:
    """Turns channel-specific updates into store submissions and broadcasts."""

    def __init__(self, db: AsyncSession, store: TruckLocationStore, gateway: BroadcastGateway):
        self.db = db
        self.store = store
        self.gateway = gateway

    async def owner_check_in(self, truck: FoodTruck, update: OwnerLocationUpdate, user: dict) -> IngestResult:
        """Manual check-in by the owner. Also marks the truck as open."""
        report = LocationReport(
            source=LocationSource.OWNER,
            latitude=update.latitude,
            longitude=update.longitude,
            address=update.address,
            city=update.city,
            state=update.state,
            notes=update.notes,
            confidence=derive_confidence(LocationSource.OWNER),
            reported_by=user.get("user_id"),
        )
        result = await self._submit_and_publish(truck, report)

        if not truck.is_active:
            truck.is_active = True
            await self.db.commit()
            logger.info("Truck %s marked active by owner check-in", truck.id)
            self.gateway.publish_status_updated(truck.id, truck.display_name, True)

        return result

    async def live_gps_ping(self, truck: FoodTruck, update: LiveLocationUpdate, user: dict) -> IngestResult:
        """
        High-frequency GPS update from the owner's device.

        Confidence comes from the reported accuracy radius. When
        ``require_active_tracking_session`` is enabled a session must be open.
        """
        if settings.require_active_tracking_session:
            active = await LiveTrackingService(self.db, self.gateway).get_active(truck.id)
            if active is None:
                raise TrackingSessionRequiredError(truck.id)

        notes = update.notes
        if notes is None and update.accuracy is not None:
            notes = f"GPS accuracy: {update.accuracy:g}m"

        report = LocationReport(
            source=LocationSource.LIVE_GPS,
            latitude=update.latitude,
            longitude=update.longitude,
            accuracy_meters=update.accuracy,
            heading=update.heading,
            speed=update.speed,
            notes=notes,
            confidence=derive_confidence(LocationSource.LIVE_GPS, accuracy_meters=update.accuracy),
            reported_by=user.get("user_id"),
        )
        return await self._submit_and_publish(truck, report)

    async def customer_report(self, truck: FoodTruck, update: CustomerLocationReport, user: dict) -> IngestResult:
        """
        Crowd-sourced sighting.

        Refused outright when the truck disallows customer reports, even if
        the truck has no location yet.
        """
        preferences = preferences_for(truck)
        if not preferences.allow_customer_reports:
            raise CustomerReportsDisabledError(truck.id)

        report = LocationReport(
            source=LocationSource.CUSTOMER,
            latitude=update.latitude,
            longitude=update.longitude,
            address=update.address,
            city=update.city,
            state=update.state,
            notes=update.notes,
            confidence=derive_confidence(LocationSource.CUSTOMER),
            reported_by=user.get("user_id"),
        )
        return await self._submit_and_publish(truck, report, preferences)

    async def admin_override(self, truck: FoodTruck, update: AdminLocationOverride, admin: dict) -> IngestResult:
        """
        Administrative correction; always wins and is audited.

        The supplied source is kept as a display label only. It never routes
        the report through another channel's rules.
        """
        report = LocationReport(
            source=update.source,
            latitude=update.latitude,
            longitude=update.longitude,
            address=update.address,
            city=update.city,
            state=update.state,
            notes=update.notes,
            confidence=derive_confidence(LocationSource.ADMIN, supplied=update.confidence),
            reported_by=admin.get("user_id"),
        )
        truck_id = truck.id
        result = await self._submit_and_publish(truck, report, override=True)

        await log_event(
            self.db,
            action=AuditAction.LOCATION_OVERRIDDEN,
            actor=admin,
            truck_id=truck_id,
            metadata={
                "source": report.source.value,
                "coordinates": list(report.coordinates),
                "outcome": result.outcome.value,
            },
        )
        return result

    async def social_media_update(self, truck: FoodTruck, update: SocialLocationUpdate) -> IngestResult:
        """Location lifted from a post on the truck's own social account."""
        source = LocationSource(update.platform)

        report = LocationReport(
            source=source,
            latitude=update.latitude,
            longitude=update.longitude,
            address=update.address,
            city=update.city,
            state=update.state,
            notes=update.post_text,
            confidence=derive_confidence(source, supplied=update.confidence),
        )
        return await self._submit_and_publish(truck, report)

    async def _submit_and_publish(
        self, truck: FoodTruck, report: LocationReport,
        preferences: Optional[TrackingPreferences] = None,
        override: bool = False,
    ) -> IngestResult:
        truck_id = truck.id
        truck_name = truck.display_name
        submission: SubmissionResult = await self.store.submit(
            truck_id, report, preferences or preferences_for(truck), override=override
        )
        if submission.accepted:
            self.gateway.publish_location_updated(truck_id, truck_name, report)
            return IngestResult(IngestOutcome.ACCEPTED, report)
        return IngestResult(IngestOutcome.PENDING_VERIFICATION, report)
