"""
Live Tracking Session database model.

At most one active session per truck, enforced by a partial unique index.
"""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Index, text
from sqlalchemy.sql import func

from truckspot.app.db.session import Base


class LiveTrackingSession(Base):
    """
    Live Tracking Session model.

    Marks a truck as streaming high-frequency GPS pings. Holds no location
    data itself; started by the owner, ended by the owner.
    """
    __tablename__ = "live_tracking_sessions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    truck_id = Column(Integer, ForeignKey("food_trucks.id"), nullable=False, index=True)
    session_id = Column(String(64), unique=True, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    start_time = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index(
            "ix_live_tracking_sessions_active",
            "truck_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
    )

    def __repr__(self):
        return f"<LiveTrackingSession(truck_id={self.truck_id}, session_id='{self.session_id}', active={self.is_active})>"
