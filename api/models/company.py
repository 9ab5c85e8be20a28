from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.log_entry import LogEntry


class CompanyCreate(BaseModel):
    # Basic Information
    name: str
    slug: str = Field(..., pattern=r"^[a-z0-9-]+$", description="URL slug of the public application form")
    dot_number: Optional[int] = None
    mc_number: Optional[str] = None

    # Contact
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None


class Company(CompanyCreate):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    logs: List[LogEntry] = Field(default_factory=list)
