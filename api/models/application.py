from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from models.interval import Address, Job
from models.log_entry import LogEntry


class ApplicationStatus(str, Enum):
    """Lifecycle status of a driver application."""

    DRAFT = "draft"
    NEW = "New"
    UNDER_REVIEW = "Under Review"
    ON_HOLD = "On Hold"
    MVR_CHECK = "MVR Check"
    DRUG_SCREENING = "Drug Screening"
    PSP_REVIEW = "PSP Review"
    BACKGROUND_COMPLETE = "Background Complete"
    APPROVED = "Approved"
    HIRED = "Hired"
    REJECTED = "Rejected"
    DISQUALIFIED = "Disqualified"
    EXPIRED = "Expired"


class ConsentKind(str, Enum):
    """Background-check disclosures an applicant must agree to and sign."""

    FAIR_CREDIT_REPORTING_ACT = "fair_credit_reporting_act"
    FMCSA_CLEARINGHOUSE = "fmcsa_clearinghouse"
    MOTOR_VEHICLE_RECORD = "motor_vehicle_record"
    DRUG_TEST = "drug_test"
    GENERAL = "general"


class BackgroundCheckStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class SignatureRecord(BaseModel):
    """Metadata of an uploaded signature image."""

    uploaded: bool = False
    path: Optional[str] = Field(None, description="Object storage path of the image")
    signed_at: Optional[datetime] = None
    ip_address: Optional[str] = None
    device_info: Optional[Dict[str, Any]] = None


class ConsentRecord(BaseModel):
    consent_given: bool = False
    signature: Optional[SignatureRecord] = None

    @property
    def is_signed(self) -> bool:
        return self.consent_given and self.signature is not None and self.signature.uploaded


class Violation(BaseModel):
    type: str
    date: str
    severity: str  # minor, major, serious


class Suspension(BaseModel):
    reason: str
    start_date: str
    end_date: str


class DrivingRecord(BaseModel):
    violations: List[Violation] = Field(default_factory=list)
    suspensions: List[Suspension] = Field(default_factory=list)
    overall_score: str  # excellent, good, fair, poor


class EmploymentVerification(BaseModel):
    verified: bool
    discrepancies: List[str] = Field(default_factory=list)


class DrugTest(BaseModel):
    status: str  # passed, failed, pending
    completed_at: Optional[str] = None


class BackgroundCheckResult(BaseModel):
    criminal_history: bool
    driving_record: DrivingRecord
    employment_verification: EmploymentVerification
    drug_test: DrugTest


class DriverApplicationBase(BaseModel):
    """Fields an applicant fills in on the multi-step form."""

    company_id: Optional[str] = None

    # Personal
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    dob: Optional[date] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    # Current address
    current_address: Optional[str] = None
    current_city: Optional[str] = None
    current_state: Optional[str] = None
    current_zip: Optional[str] = None
    current_address_from_month: Optional[int] = Field(None, ge=1, le=12)
    current_address_from_year: Optional[int] = Field(None, ge=1900)

    # License
    license_number: Optional[str] = None
    license_state: Optional[str] = None
    license_expiration_date: Optional[date] = None
    medical_card_expiration_date: Optional[date] = None
    position_applied_for: Optional[str] = None
    license_photo: Optional[str] = None
    medical_card_photo: Optional[str] = None

    # History
    addresses: List[Address] = Field(default_factory=list)
    jobs: List[Job] = Field(default_factory=list)
    employment_gaps_acknowledged: bool = False
    residency_gaps_acknowledged: bool = False

    # Consents
    consents: Dict[ConsentKind, ConsentRecord] = Field(default_factory=dict)

    def consent(self, kind: ConsentKind) -> ConsentRecord:
        return self.consents.get(kind) or ConsentRecord()


class DriverApplicationCreate(DriverApplicationBase):
    """Payload accepted when an applicant submits or saves a draft."""


class DriverApplicationUpdate(BaseModel):
    """Model for partial application edits from the back office"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    dob: Optional[date] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    current_address: Optional[str] = None
    current_city: Optional[str] = None
    current_state: Optional[str] = None
    current_zip: Optional[str] = None
    current_address_from_month: Optional[int] = Field(None, ge=1, le=12)
    current_address_from_year: Optional[int] = Field(None, ge=1900)
    license_number: Optional[str] = None
    license_state: Optional[str] = None
    license_expiration_date: Optional[date] = None
    medical_card_expiration_date: Optional[date] = None
    position_applied_for: Optional[str] = None
    addresses: Optional[List[Address]] = None
    jobs: Optional[List[Job]] = None
    consents: Optional[Dict[ConsentKind, ConsentRecord]] = None


class DriverApplication(DriverApplicationBase):
    """Stored application, the aggregate root of the hiring workflow."""

    id: str
    status: ApplicationStatus = ApplicationStatus.NEW
    background_check_status: BackgroundCheckStatus = BackgroundCheckStatus.PENDING
    background_check_results: Optional[BackgroundCheckResult] = None
    background_check_completed_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    logs: List[LogEntry] = Field(default_factory=list)
