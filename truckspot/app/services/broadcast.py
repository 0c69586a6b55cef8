"""
Broadcast Gateway.

In-process publish/subscribe for realtime truck events. Each subscriber
owns a bounded outbox queue; publishing is a synchronous put_nowait fan-out
so callers never wait on delivery. Delivery is at-most-once: a slow or
disconnected subscriber simply misses events and re-syncs by pulling the
current location and history.
"""

import asyncio
import enum
import logging
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional, Set

from pydantic import BaseModel, Field

from truckspot.app.core.config import settings
from truckspot.app.domain.location.report import LocationReport

logger = logging.getLogger("truckspot.broadcast")

CUSTOMERS_CHANNEL = "customers"


def truck_channel(truck_id: int) -> str:
    """Owner-directed channel for one truck."""
    return f"truck_{truck_id}"


class EventType(str, enum.Enum):
    LOCATION_UPDATED = "location_updated"
    TRACKING_STARTED = "tracking_started"
    TRACKING_STOPPED = "tracking_stopped"
    STATUS_UPDATED = "status_updated"


class BroadcastEvent(BaseModel):
    type: EventType
    channel: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_message(self) -> Dict[str, Any]:
        return {
            "event": self.type.value,
            "channel": self.channel,
            "data": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }


class Subscription:
    """A single subscriber's view of one channel."""

    def __init__(self, gateway: "BroadcastGateway", channel: str, maxsize: int):
        self.gateway = gateway
        self.channel = channel
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0
        self.closed = False

    def offer(self, event: BroadcastEvent) -> bool:
        try:
            self.queue.put_nowait(event)
            return True
        except asyncio.QueueFull:
            self.dropped += 1
            return False

    async def get(self) -> BroadcastEvent:
        return await self.queue.get()

    def get_nowait(self) -> Optional[BroadcastEvent]:
        try:
            return self.queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def close(self) -> None:
        self.gateway.unsubscribe(self)

    async def __aiter__(self) -> AsyncIterator[BroadcastEvent]:
        while not self.closed:
            yield await self.queue.get()


class BroadcastGateway:
    """Channel-based fan-out of location and session events."""

    def __init__(self, queue_size: Optional[int] = None):
        self._queue_size = queue_size or settings.broadcast_queue_size
        self._channels: Dict[str, Set[Subscription]] = {}

    def subscribe(self, channel: str) -> Subscription:
        subscription = Subscription(self, channel, self._queue_size)
        self._channels.setdefault(channel, set()).add(subscription)
        logger.debug("Subscriber joined %s (%d total)", channel, self.subscriber_count(channel))
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.closed = True
        subscribers = self._channels.get(subscription.channel)
        if not subscribers:
            return
        subscribers.discard(subscription)
        if not subscribers:
            self._channels.pop(subscription.channel, None)

    def subscriber_count(self, channel: str) -> int:
        return len(self._channels.get(channel, ()))

    def stats(self) -> Dict[str, int]:
        return {
            "channels": len(self._channels),
            "subscribers": sum(len(subs) for subs in self._channels.values()),
        }

    def publish(self, event: BroadcastEvent) -> int:
        """
        Deliver ``event`` to every subscriber of its channel.

        Never blocks and never raises: full outboxes drop the event and
        unexpected failures are logged. Returns the number of subscribers
        the event was queued for.
        """
        delivered = 0
        try:
            for subscription in list(self._channels.get(event.channel, ())):
                if subscription.offer(event):
                    delivered += 1
                else:
                    logger.warning(
                        "Dropped %s for slow subscriber on %s (%d dropped so far)",
                        event.type.value, event.channel, subscription.dropped,
                    )
        except Exception:
            logger.exception("Broadcast of %s on %s failed", event.type.value, event.channel)
        return delivered

    # Event helpers

    def publish_location_updated(self, truck_id: int, truck_name: str, report: LocationReport) -> int:
        return self.publish(BroadcastEvent(
            type=EventType.LOCATION_UPDATED,
            channel=CUSTOMERS_CHANNEL,
            payload={
                "truckId": truck_id,
                "truckName": truck_name,
                "location": report.to_document(),
                "timestamp": report.timestamp.isoformat(),
                "source": report.source.value,
            },
        ))

    def publish_tracking_started(self, truck_id: int, truck_name: str, session_id: str) -> int:
        return self._publish_session_event(EventType.TRACKING_STARTED, truck_id, truck_name, session_id)

    def publish_tracking_stopped(self, truck_id: int, truck_name: str, session_id: str) -> int:
        return self._publish_session_event(EventType.TRACKING_STOPPED, truck_id, truck_name, session_id)

    def _publish_session_event(self, event_type: EventType, truck_id: int, truck_name: str, session_id: str) -> int:
        # Customers see the truck go live; the owner channel confirms to other owner devices
        payload = {"truckId": truck_id, "truckName": truck_name, "sessionId": session_id}
        return sum(
            self.publish(BroadcastEvent(type=event_type, channel=channel, payload=payload))
            for channel in (CUSTOMERS_CHANNEL, truck_channel(truck_id))
        )

    def publish_status_updated(self, truck_id: int, truck_name: str, is_active: bool) -> int:
        return self.publish(BroadcastEvent(
            type=EventType.STATUS_UPDATED,
            channel=CUSTOMERS_CHANNEL,
            payload={"truckId": truck_id, "truckName": truck_name, "isActive": is_active},
        ))


# Process-wide gateway used by the API
broadcast_gateway = BroadcastGateway()


def get_broadcast_gateway() -> BroadcastGateway:
    """FastAPI dependency for the broadcast gateway."""
    return broadcast_gateway
