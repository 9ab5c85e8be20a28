from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from models.log_entry import LogEntry


class DriverStatus(str, Enum):
    ACTIVE = "active"
    OUT_OF_DUTY = "out_of_duty"
    NO_LONGER_EMPLOYED = "no_longer_employed"


class DriverCreate(BaseModel):
    # Identifiers
    company_id: Optional[str] = None
    application_id: str

    # Personal
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    dob: Optional[date] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    # Address
    current_address: Optional[str] = None
    current_city: Optional[str] = None
    current_state: Optional[str] = None
    current_zip: Optional[str] = None
    current_address_from_month: Optional[int] = None
    current_address_from_year: Optional[int] = None

    # License Info
    license_number: Optional[str] = None
    license_state: Optional[str] = None
    license_expiration_date: Optional[date] = None
    medical_card_expiration_date: Optional[date] = None
    license_photo: Optional[str] = None
    medical_card_photo: Optional[str] = None

    # Employment
    position: Optional[str] = None
    status: DriverStatus = DriverStatus.ACTIVE
    hire_date: datetime


class Driver(DriverCreate):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    logs: List[LogEntry] = Field(default_factory=list)
