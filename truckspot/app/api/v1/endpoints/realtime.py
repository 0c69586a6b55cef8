"""
Realtime WebSocket Endpoints.

/ws/customers streams location and status events for every truck.
/ws/trucks/{truck_id}?token=... streams owner-directed events for one
truck and requires the owner's (or an admin's) access token.

Each socket gets a ``subscribed`` acknowledgement followed by events as
JSON. Delivery is at-most-once with no replay; clients re-sync through the
location and history endpoints after reconnecting.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from truckspot.app.db.session import get_db
from truckspot.app.core.dependencies import authenticate_token
from truckspot.app.core.exceptions import AppException
from truckspot.app.core.guards import owns_truck
from truckspot.app.services.broadcast import (
    CUSTOMERS_CHANNEL,
    BroadcastGateway,
    Subscription,
    get_broadcast_gateway,
    truck_channel,
)
from truckspot.app.services.trucks import get_truck

logger = logging.getLogger("truckspot.realtime")

router = APIRouter(prefix="/ws", tags=["Realtime"])


async def _forward(websocket: WebSocket, subscription: Subscription):
    try:
        async for event in subscription:
            await websocket.send_json(event.to_message())
    except WebSocketDisconnect:
        pass


async def _stream(websocket: WebSocket, subscription: Subscription):
    """Pump events to the socket until the client goes away."""
    await websocket.send_json({"event": "subscribed", "channel": subscription.channel})
    sender = asyncio.create_task(_forward(websocket, subscription))
    try:
        # Inbound messages are ignored; receiving only detects the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Client left %s", subscription.channel)
    finally:
        subscription.close()
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)


@router.websocket("/customers")
async def customers_feed(
    websocket: WebSocket,
    gateway: BroadcastGateway = Depends(get_broadcast_gateway),
):
    await websocket.accept()
    subscription = gateway.subscribe(CUSTOMERS_CHANNEL)
    logger.info("Customer connected (%d on channel)", gateway.subscriber_count(CUSTOMERS_CHANNEL))
    await _stream(websocket, subscription)


@router.websocket("/trucks/{truck_id}")
async def owner_feed(
    websocket: WebSocket,
    truck_id: int,
    token: str = Query(...),
    db: AsyncSession = Depends(get_db),
    gateway: BroadcastGateway = Depends(get_broadcast_gateway),
):
    try:
        user = await authenticate_token(token, db)
        truck = await get_truck(db, truck_id)
        allowed = owns_truck(truck, user)
    except (HTTPException, AppException) as exc:
        logger.warning("Rejected owner socket for truck %s: %s", truck_id, getattr(exc, "detail", exc))
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    finally:
        # Release the connection; the stream itself never touches the database
        await db.close()

    if not allowed:
        logger.warning("User %s is not allowed to follow truck %s", user.get("user_id"), truck_id)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    subscription = gateway.subscribe(truck_channel(truck_id))
    logger.info("Owner %s connected to %s", user.get("user_id"), truck_channel(truck_id))
    await _stream(websocket, subscription)
