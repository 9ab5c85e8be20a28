"""
Driver application API endpoints.

Covers submission (with the gap acknowledgment gate), back-office edits, the
status workflow, hiring, audit logs and the mocked background check.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from models.application import (
    ApplicationStatus,
    ConsentKind,
    DriverApplication,
    DriverApplicationBase,
    DriverApplicationCreate,
    DriverApplicationUpdate,
)
from models.interval import Address, GapDetectionResult, Job
from models.log_entry import EntityType
from repositories.application_repository import ApplicationRepository
from repositories.company_repository import CompanyRepository
from repositories.driver_repository import DriverRepository
from repositories.log_repository import LogRepository
from services.background_check_service import BackgroundCheckService
from services.gap_detector import check_employment_gaps, check_residency_gaps
from services.logging_service import LoggingService
from services.status_transitions import (
    HIRE_REQUIRES_APPROVAL,
    ApplicationStatusService,
    HireResult,
    StatusChangeResult,
    TransitionResult,
    get_available_transitions,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/applications",
    tags=["applications"],
    responses={404: {"description": "Application not found"}}
)
application_repo = ApplicationRepository()
company_repo = CompanyRepository()
driver_repo = DriverRepository()
log_repo = LogRepository()
background_check_service = BackgroundCheckService(application_repo)


class TransitionRequest(BaseModel):
    """Body for advancing the workflow; omit target_status for the automatic step"""
    target_status: Optional[ApplicationStatus] = None
    notes: Optional[str] = None


class StatusUpdate(BaseModel):
    """Body for a manual status change"""
    status: ApplicationStatus
    notes: Optional[str] = None


class HireRequest(BaseModel):
    notes: Optional[str] = None


class EmploymentGapCheck(BaseModel):
    jobs: List[Job] = Field(default_factory=list)
    today: Optional[date] = None


class ResidencyGapCheck(BaseModel):
    current_address_from_month: int = Field(..., ge=1, le=12)
    current_address_from_year: int = Field(..., ge=1900)
    addresses: List[Address] = Field(default_factory=list)
    today: Optional[date] = None


def _status_service(request: Request, notes: Optional[str] = None) -> ApplicationStatusService:
    context = LoggingService.extract_context(request, notes=notes)
    return ApplicationStatusService(context, application_repo, driver_repo, log_repo)


def _get_or_404(application_id: str) -> Dict:
    application = application_repo.get_by_id(application_id)
    if not application:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Application {application_id} not found"
        )
    return application


def _unacknowledged_gaps(application: DriverApplicationBase, today: date) -> Dict:
    """Gap results the applicant still has to confirm before submitting."""
    blocking = {}

    employment = check_employment_gaps(application.jobs, today)
    if employment.gap_detected and not application.employment_gaps_acknowledged:
        blocking["employment"] = employment.model_dump(mode="json", by_alias=True)

    if application.current_address_from_month and application.current_address_from_year:
        residency = check_residency_gaps(
            application.addresses,
            application.current_address_from_month,
            application.current_address_from_year,
            today,
        )
        if residency.gap_detected and not application.residency_gaps_acknowledged:
            blocking["residency"] = residency.model_dump(mode="json", by_alias=True)

    return blocking


def _raise_for_gaps(application: DriverApplicationBase):
    blocking = _unacknowledged_gaps(application, date.today())
    if blocking:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "History gaps must be acknowledged before submitting", **blocking}
        )


@router.post("/gaps/employment", response_model=GapDetectionResult, response_model_by_alias=True)
async def check_employment_history(body: EmploymentGapCheck):
    """Check employment history against the lookback window"""
    return check_employment_gaps(body.jobs, body.today)


@router.post("/gaps/residency", response_model=GapDetectionResult, response_model_by_alias=True)
async def check_residency_history(body: ResidencyGapCheck):
    """Check residency history against the lookback window"""
    return check_residency_gaps(
        body.addresses,
        body.current_address_from_month,
        body.current_address_from_year,
        body.today,
    )


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def submit_application(
    application: DriverApplicationCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    draft: bool = Query(False, description="Save as a draft instead of submitting")
):
    """Submit a driver application, or save it as a draft"""
    if application.company_id and not company_repo.exists(application.company_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Company {application.company_id} not found"
        )

    if not draft:
        _raise_for_gaps(application)

    initial_status = ApplicationStatus.DRAFT if draft else ApplicationStatus.NEW
    result = application_repo.create(application, initial_status)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create application"
        )

    LoggingService(LoggingService.extract_context(request), log_repo).log(
        EntityType.DRIVER_APPLICATIONS,
        result["id"],
        "draft_saved" if draft else "created",
        metadata={"status": initial_status.value, "company_id": application.company_id},
    )

    if not draft and application.consent(ConsentKind.FAIR_CREDIT_REPORTING_ACT).consent_given:
        background_tasks.add_task(background_check_service.initiate_background_check, result["id"])

    return application_repo.get_by_id(result["id"])


@router.post("/{application_id}/submit", response_model=StatusChangeResult)
async def submit_draft(application_id: str, request: Request, background_tasks: BackgroundTasks):
    """Submit a previously saved draft"""
    stored = DriverApplication(**_get_or_404(application_id))
    if stored.status == ApplicationStatus.DRAFT:
        _raise_for_gaps(stored)

    result = _status_service(request).submit_draft(application_id)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)

    if stored.consent(ConsentKind.FAIR_CREDIT_REPORTING_ACT).consent_given:
        background_tasks.add_task(background_check_service.initiate_background_check, application_id)
    return result


@router.get("/", response_model=List[Dict])
async def get_applications(
    skip: int = Query(0, ge=0, description="Number of items to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Number of items to return"),
    application_status: Optional[ApplicationStatus] = Query(None, alias="status", description="Filter by status"),
    company_id: Optional[str] = Query(None, description="Filter by company"),
    submitted_after: Optional[date] = Query(None, description="Submitted on or after"),
    submitted_before: Optional[date] = Query(None, description="Submitted on or before")
):
    """Get applications with pagination and filters"""
    filters = {}
    if application_status:
        filters['status'] = application_status.value
    if company_id:
        filters['company_id'] = company_id
    if submitted_after:
        filters['submitted_after'] = submitted_after
    if submitted_before:
        filters['submitted_before'] = submitted_before

    return application_repo.get_all(skip=skip, limit=limit, filters=filters)


@router.get("/{application_id}", response_model=Dict)
async def get_application(application_id: str):
    """Get an application by ID"""
    return _get_or_404(application_id)


@router.patch("/{application_id}", response_model=Dict)
async def update_application(application_id: str, updates: DriverApplicationUpdate, request: Request):
    """Edit applicant data from the back office"""
    _get_or_404(application_id)

    update_data = {
        k: v for k, v in updates.model_dump(mode="json", exclude_unset=True).items() if v is not None
    }
    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid updates provided"
        )

    result = application_repo.update(application_id, update_data)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update application"
        )

    LoggingService(LoggingService.extract_context(request), log_repo).log(
        EntityType.DRIVER_APPLICATIONS,
        application_id,
        "updated",
        metadata={"fields": sorted(update_data)},
    )
    return application_repo.get_by_id(application_id)


@router.get("/{application_id}/transitions", response_model=List[ApplicationStatus])
async def get_application_transitions(application_id: str):
    """Statuses the application can be moved to manually"""
    application = _get_or_404(application_id)
    return get_available_transitions(application["status"])


@router.post("/{application_id}/transition", response_model=TransitionResult)
async def transition_application(application_id: str, body: TransitionRequest, request: Request):
    """Advance the workflow, or apply an explicit target status"""
    _get_or_404(application_id)
    return _status_service(request, body.notes).process_status_transition(
        application_id, body.target_status
    )


@router.put("/{application_id}/status", response_model=StatusChangeResult)
async def set_application_status(application_id: str, body: StatusUpdate, request: Request):
    """Set a status manually"""
    _get_or_404(application_id)
    result = _status_service(request, body.notes).set_status(application_id, body.status)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.message)
    return result


@router.post("/{application_id}/hire", response_model=HireResult, status_code=status.HTTP_201_CREATED)
async def hire_driver(application_id: str, request: Request, body: Optional[HireRequest] = None):
    """Hire the applicant as a driver"""
    _get_or_404(application_id)
    result = _status_service(request, body.notes if body else None).hire_driver(application_id)
    if not result.success:
        code = (
            status.HTTP_400_BAD_REQUEST
            if result.message == HIRE_REQUIRES_APPROVAL
            else status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        raise HTTPException(status_code=code, detail=result.message)
    return result


@router.get("/{application_id}/logs", response_model=List[Dict])
async def get_application_logs(application_id: str):
    """Audit trail of an application, oldest first"""
    _get_or_404(application_id)
    return log_repo.get_logs(EntityType.DRIVER_APPLICATIONS, application_id)


@router.post("/{application_id}/background-check", status_code=status.HTTP_202_ACCEPTED)
async def start_background_check(application_id: str, background_tasks: BackgroundTasks):
    """Start the (mocked) background check"""
    _get_or_404(application_id)
    background_tasks.add_task(background_check_service.initiate_background_check, application_id)
    return {"application_id": application_id, "status": "accepted"}


@router.get("/{application_id}/background-check", response_model=Dict)
async def get_background_check(application_id: str):
    """Background check status and results"""
    result = background_check_service.get_background_check_status(application_id)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Application {application_id} not found"
        )
    return result
