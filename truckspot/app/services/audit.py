"""
Audit trail for privileged and state-changing truck actions.

Admin overrides, tracking session transitions, status toggles and
preference changes each leave one row. Rows carry the request's
correlation ID so they can be matched against request logs.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from truckspot.app.core.observability import current_correlation_id
from truckspot.app.models.audit_log import AuditLog


class AuditAction:
    LOCATION_OVERRIDDEN = "LOCATION_OVERRIDDEN"
    TRACKING_STARTED = "TRACKING_STARTED"
    TRACKING_STOPPED = "TRACKING_STOPPED"
    TRUCK_STATUS_CHANGED = "TRUCK_STATUS_CHANGED"
    TRACKING_PREFERENCES_CHANGED = "TRACKING_PREFERENCES_CHANGED"


async def log_event(
    db: AsyncSession,
    action: str,
    truck_id: int,
    actor: Optional[dict] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Record ``action`` against ``truck_id`` and commit.

    ``actor`` is the authenticated token payload; None for system jobs.
    """
    actor = actor or {}
    entry = AuditLog(
        actor_id=actor.get("user_id"),
        actor_username=actor.get("sub"),
        action=action,
        truck_id=truck_id,
        meta_data=metadata,
        correlation_id=current_correlation_id(),
    )
    db.add(entry)
    await db.commit()
    return entry


async def get_truck_audit_trail(
    db: AsyncSession,
    truck_id: int,
    action: Optional[str] = None,
    limit: int = 100,
) -> List[AuditLog]:
    """Most recent first, optionally narrowed to one action."""
    query = select(AuditLog).where(AuditLog.truck_id == truck_id)
    if action:
        query = query.where(AuditLog.action == action)

    result = await db.execute(query.order_by(desc(AuditLog.timestamp), desc(AuditLog.id)).limit(limit))
    return list(result.scalars().all())
