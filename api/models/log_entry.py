from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class EntityType(str, Enum):
    """Entities that carry an audit trail."""

    COMPANIES = "companies"
    DRIVER_APPLICATIONS = "driver_applications"
    DRIVERS = "drivers"


class LogEntry(BaseModel):
    """Immutable audit record appended to an entity's ``logs``."""

    id: str = Field(..., description="Unique identifier of the entry")
    action: str = Field(..., description="What happened", example="status_changed")
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    changes: Optional[Dict[str, Any]] = Field(
        None,
        description="Changed fields as {field: {from, to}}",
        example={"status": {"from": "New", "to": "Under Review"}}
    )
    metadata: Optional[Dict[str, Any]] = None
    success: bool = True
    error_message: Optional[str] = None
    created_at: datetime

    class Config:
        frozen = True


class StatusTransitionContext(BaseModel):
    """Who is acting, and from where; threaded into every audit entry."""

    user_id: Optional[str] = None
    user_email: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referer: Optional[str] = None
    device_info: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None

    @property
    def reason(self) -> Optional[str]:
        """Operator notes, stripped; None when blank."""
        if self.notes and self.notes.strip():
            return self.notes.strip()
        return None
