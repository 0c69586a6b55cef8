"""
Food Truck database model.

Only the fields the location subsystem reads or writes are mapped here:
ownership, display name, the active flag, tracking preferences and the
persisted location document (current location + capped history).
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func

from truckspot.app.db.session import Base


class FoodTruck(Base):
    """
    Food Truck model.

    current_location holds a single location document (or NULL before the
    first report). location_history holds location documents, most recent
    first, capped by the location store.
    """
    __tablename__ = "food_trucks"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    business_name = Column(String(200), nullable=True)
    cuisine_type = Column(String(100), default="American", nullable=True)

    # Open for business right now (independent of location)
    is_active = Column(Boolean, default=False, nullable=False)

    # Tracking preferences
    allow_customer_reports = Column(Boolean, default=True, nullable=False)
    require_location_verification = Column(Boolean, default=False, nullable=False)
    auto_post_to_social = Column(Boolean, default=False, nullable=False)

    # Location document
    current_location = Column(JSON, nullable=True)
    location_history = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def display_name(self) -> str:
        return self.business_name or self.name

    def __repr__(self):
        return f"<FoodTruck(id={self.id}, name='{self.name}', owner={self.owner_id})>"
