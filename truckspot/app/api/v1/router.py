"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from truckspot.app.api.v1.endpoints import (
    truck_location, live_tracking, trucks,
    admin, internal, realtime
)

router = APIRouter()

# Location ingest and reads
router.include_router(truck_location.router)

# Live tracking sessions
router.include_router(live_tracking.router)

# Truck status and tracking preferences
router.include_router(trucks.router)

# Admin overrides and audit trail
router.include_router(admin.router)

# Social media tracking job
router.include_router(internal.router)

# WebSocket feeds
router.include_router(realtime.router)
