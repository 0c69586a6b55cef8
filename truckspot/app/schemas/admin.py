"""
Admin schemas for the truck audit trail.
"""

from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List, Optional


class AuditLogResponse(BaseModel):
    """Schema for audit log entry."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    actor_id: Optional[int]
    actor_username: Optional[str]
    action: str
    truck_id: Optional[int]
    meta_data: Optional[dict]
    correlation_id: Optional[str]
    timestamp: datetime


class AuditTrailResponse(BaseModel):
    """Schema for audit trail list."""
    truck_id: int
    logs: List[AuditLogResponse]
    total: int
