"""
Live tracking session manager.

A session marks that a truck is streaming GPS pings. It carries no
location data; pings go through the location store like every other
report. At most one session per truck is active at a time.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from truckspot.app.core.exceptions import TrackingSessionConflictError
from truckspot.app.models.food_truck import FoodTruck
from truckspot.app.models.tracking_session import LiveTrackingSession
from truckspot.app.services.audit import AuditAction, log_event
from truckspot.app.services.broadcast import BroadcastGateway

logger = logging.getLogger("truckspot.live_tracking")


class LiveTrackingService:
    """Starts and stops live tracking sessions for a truck."""

    def __init__(self, db: AsyncSession, gateway: BroadcastGateway):
        self.db = db
        self.gateway = gateway

    async def get_active(self, truck_id: int) -> Optional[LiveTrackingSession]:
        result = await self.db.execute(
            select(LiveTrackingSession).where(
                LiveTrackingSession.truck_id == truck_id,
                LiveTrackingSession.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def start(self, truck: FoodTruck, actor: Optional[dict] = None) -> LiveTrackingSession:
        """
        Open a new session for ``truck``.

        Raises:
            TrackingSessionConflictError: a session is already active
        """
        truck_id = truck.id
        active = await self.get_active(truck_id)
        if active is not None:
            raise TrackingSessionConflictError(truck_id, active.session_id)

        session = LiveTrackingSession(
            truck_id=truck_id,
            session_id=uuid.uuid4().hex,
            is_active=True,
            start_time=datetime.now(timezone.utc),
        )
        self.db.add(session)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent start; the partial unique index kept one
            await self.db.rollback()
            active = await self.get_active(truck_id)
            raise TrackingSessionConflictError(truck_id, active.session_id if active else None)

        await self._audit(AuditAction.TRACKING_STARTED, truck, session, actor)
        logger.info("Live tracking started for truck %s (session %s)", truck.id, session.session_id)

        self.gateway.publish_tracking_started(truck.id, truck.display_name, session.session_id)
        return session

    async def stop(self, truck: FoodTruck, actor: Optional[dict] = None) -> Optional[LiveTrackingSession]:
        """End the active session. Returns None (and broadcasts nothing) if there is none."""
        session = await self.get_active(truck.id)
        if session is None:
            return None

        session.is_active = False
        session.end_time = datetime.now(timezone.utc)
        await self.db.commit()

        await self._audit(AuditAction.TRACKING_STOPPED, truck, session, actor)
        logger.info("Live tracking stopped for truck %s (session %s)", truck.id, session.session_id)

        self.gateway.publish_tracking_stopped(truck.id, truck.display_name, session.session_id)
        return session

    async def _audit(self, action: str, truck: FoodTruck, session: LiveTrackingSession, actor: Optional[dict]):
        await log_event(
            self.db,
            action=action,
            actor=actor,
            truck_id=truck.id,
            metadata={"session_id": session.session_id},
        )
