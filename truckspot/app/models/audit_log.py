"""
Audit Log Database Model.

Tracks privileged location changes and tracking session transitions.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func

from truckspot.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - LOCATION_OVERRIDDEN (admin override)
    - TRACKING_STARTED / TRACKING_STOPPED
    - TRUCK_STATUS_CHANGED
    - TRACKING_PREFERENCES_CHANGED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system jobs)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_username = Column(String(100), nullable=True)

    action = Column(String(100), nullable=False, index=True)

    # Truck the action applied to
    truck_id = Column(Integer, index=True, nullable=True)

    meta_data = Column(JSON, nullable=True)
    correlation_id = Column(String(64), nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_username}, truck={self.truck_id})>"
