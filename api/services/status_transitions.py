"""
Application status workflow.

Drives a driver application from submission through the background-check
stages to a hire or reject outcome. Automatic steps are gated by predicates
over the stored application; operators can override with any status. Every
change is written to the application's audit trail.

Public methods never raise. Failures come back as result objects with
``success=False`` so the back office can show a message and keep its state.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from pydantic import BaseModel

from config import settings
from models.application import ApplicationStatus, ConsentKind, DriverApplication
from models.driver import DriverCreate, DriverStatus
from models.log_entry import EntityType, StatusTransitionContext
from repositories.application_repository import ApplicationRepository
from repositories.driver_repository import DriverRepository
from repositories.log_repository import LogRepository
from services.logging_service import LoggingService

logger = logging.getLogger(__name__)

S = ApplicationStatus

# Statuses an operator may move an application to from each status
TRANSITIONS: Dict[ApplicationStatus, List[ApplicationStatus]] = {
    S.DRAFT: [S.NEW],
    S.NEW: [S.UNDER_REVIEW, S.ON_HOLD, S.REJECTED],
    S.UNDER_REVIEW: [S.MVR_CHECK, S.ON_HOLD, S.REJECTED],
    S.ON_HOLD: [S.UNDER_REVIEW, S.MVR_CHECK, S.REJECTED],
    S.MVR_CHECK: [S.DRUG_SCREENING, S.ON_HOLD, S.REJECTED],
    S.DRUG_SCREENING: [S.PSP_REVIEW, S.BACKGROUND_COMPLETE, S.ON_HOLD, S.REJECTED],
    S.PSP_REVIEW: [S.BACKGROUND_COMPLETE, S.ON_HOLD, S.REJECTED],
    S.BACKGROUND_COMPLETE: [S.APPROVED, S.ON_HOLD, S.REJECTED],
    S.APPROVED: [S.HIRED, S.REJECTED],
    S.HIRED: [],
    S.REJECTED: [],
    S.DISQUALIFIED: [],
    S.EXPIRED: [],
}

TERMINAL_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)

REQUIRED_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "dob",
    "current_address",
    "current_city",
    "current_state",
    "current_zip",
    "license_number",
    "license_state",
    "position_applied_for",
)

HIRE_REQUIRES_APPROVAL = "Application must be approved before hiring"


def is_submission_valid(application: DriverApplication) -> bool:
    """All required applicant fields present, plus at least one address and one job."""
    if not all(getattr(application, field) for field in REQUIRED_FIELDS):
        return False
    return bool(application.addresses) and bool(application.jobs)


def are_consents_signed(application: DriverApplication) -> bool:
    """Every consent given and its signature image uploaded."""
    return all(application.consent(kind).is_signed for kind in ConsentKind)


def is_psp_review_required(application: DriverApplication) -> bool:
    """Whether the Pre-employment Screening Program report must be reviewed."""
    return settings.psp_review_required


class AutomaticStep(NamedTuple):
    """Next status for an automatic transition.

    When ``guard`` is None the ``passed`` outcome always applies.
    """

    passed: Tuple[ApplicationStatus, str]
    guard: Optional[Callable[[DriverApplication], bool]] = None
    failed: Optional[Tuple[ApplicationStatus, str]] = None


AUTOMATIC_STEPS: Dict[ApplicationStatus, AutomaticStep] = {
    S.NEW: AutomaticStep(
        guard=is_submission_valid,
        passed=(S.UNDER_REVIEW, "Application validated, moved to review"),
        failed=(S.ON_HOLD, "Application incomplete, placed on hold"),
    ),
    S.UNDER_REVIEW: AutomaticStep(
        guard=are_consents_signed,
        passed=(S.MVR_CHECK, "All consents signed, proceeding to Motor Vehicle Record check"),
        failed=(S.ON_HOLD, "Consents pending, placed on hold"),
    ),
    S.MVR_CHECK: AutomaticStep(
        passed=(S.DRUG_SCREENING, "MVR check completed, proceeding to drug screening"),
    ),
    S.DRUG_SCREENING: AutomaticStep(
        guard=is_psp_review_required,
        passed=(S.PSP_REVIEW, "Drug screening completed, proceeding to PSP review"),
        failed=(S.BACKGROUND_COMPLETE, "Drug screening completed, background check process finished"),
    ),
    S.PSP_REVIEW: AutomaticStep(
        passed=(S.BACKGROUND_COMPLETE, "PSP review completed, background check process finished"),
    ),
    S.BACKGROUND_COMPLETE: AutomaticStep(
        passed=(S.APPROVED, "All background checks completed, application approved"),
    ),
}


def get_available_transitions(current_status: ApplicationStatus) -> List[ApplicationStatus]:
    """Statuses offered in the manual override selector."""
    return list(TRANSITIONS.get(ApplicationStatus(current_status), []))


def next_automatic_status(application: DriverApplication) -> Optional[Tuple[ApplicationStatus, str]]:
    """Resolve the automatic step for the application's status, or None."""
    step = AUTOMATIC_STEPS.get(application.status)
    if step is None:
        return None
    if step.guard is None or step.guard(application):
        return step.passed
    return step.failed


class ApplicationNotFoundError(LookupError):
    pass


class TransitionResult(BaseModel):
    success: bool
    new_status: ApplicationStatus
    message: str


class StatusChangeResult(BaseModel):
    success: bool
    message: str


class HireResult(BaseModel):
    success: bool
    driver_id: Optional[str] = None
    message: str


class ApplicationStatusService:
    """Status state machine over stored applications.

    Reads and writes go through the repositories without any locking: two
    concurrent transitions of one application end with the last write.
    """

    def __init__(
        self,
        context: Optional[StatusTransitionContext] = None,
        application_repo: Optional[ApplicationRepository] = None,
        driver_repo: Optional[DriverRepository] = None,
        log_repo: Optional[LogRepository] = None
    ):
        self.default_context = context or StatusTransitionContext()
        self.application_repo = application_repo or ApplicationRepository()
        self.driver_repo = driver_repo or DriverRepository()
        self.log_repo = log_repo or LogRepository()

    def _logging_service(self, context: Optional[StatusTransitionContext] = None) -> LoggingService:
        return LoggingService(context or self.default_context, self.log_repo)

    def _load(self, application_id: str) -> DriverApplication:
        data = self.application_repo.get_by_id(application_id)
        if not data:
            raise ApplicationNotFoundError("Application not found")
        return DriverApplication(**data)

    def _log_status_change(self, application_id: str, old: ApplicationStatus,
                           new: ApplicationStatus, reason: str,
                           context: Optional[StatusTransitionContext] = None):
        self._logging_service(context).log(
            EntityType.DRIVER_APPLICATIONS,
            application_id,
            "status_changed",
            changes={"status": {"from": old.value, "to": new.value}},
            metadata={"reason": reason},
        )

    def process_status_transition(
        self,
        application_id: str,
        target_status: Optional[ApplicationStatus] = None
    ) -> TransitionResult:
        """Move an application to its next status.

        Without a target the next status follows from the current one and the
        gating predicates. A target is applied as given; it is the operator
        override and skips every check.

        Args:
            application_id: Application to move
            target_status: Explicit status to apply

        Returns:
            TransitionResult; on any failure ``success`` is False and
            ``new_status`` is ``On Hold``
        """
        try:
            application = self._load(application_id)
            current = application.status

            if target_status is not None:
                new_status = ApplicationStatus(target_status)
                message = f"Status manually set to {new_status.value}"
            else:
                step = next_automatic_status(application)
                if step is None:
                    return TransitionResult(
                        success=False,
                        new_status=current,
                        message="No automatic transition available for current status",
                    )
                new_status, message = step

            if new_status != current:
                self.application_repo.update(application_id, {"status": new_status.value})
                self._log_status_change(application_id, current, new_status, message)
                logger.info(f"Application {application_id}: {current.value} -> {new_status.value}")

            return TransitionResult(success=True, new_status=new_status, message=message)

        except Exception as e:
            logger.error(f"Error processing status transition for {application_id}: {e}", exc_info=True)
            return TransitionResult(success=False, new_status=S.ON_HOLD, message=str(e) or "Unknown error")

    def set_status(
        self,
        application_id: str,
        status: ApplicationStatus,
        context: Optional[StatusTransitionContext] = None
    ) -> StatusChangeResult:
        """Set a status unconditionally.

        The change is always logged, also when the status does not change, so
        every operator action leaves a trace.
        """
        context = context or self.default_context
        try:
            application = self._load(application_id)
            old_status = application.status
            status = ApplicationStatus(status)

            self.application_repo.update(application_id, {"status": status.value})
            self._log_status_change(
                application_id, old_status, status,
                context.reason or "Manual status change",
                context,
            )

            return StatusChangeResult(
                success=True,
                message=f"Status changed from {old_status.value} to {status.value}",
            )
        except Exception as e:
            logger.error(f"Error setting status of application {application_id}: {e}", exc_info=True)
            return StatusChangeResult(success=False, message=str(e) or "Unknown error")

    def submit_draft(
        self,
        application_id: str,
        context: Optional[StatusTransitionContext] = None
    ) -> StatusChangeResult:
        """Turn a saved draft into a submitted application."""
        context = context or self.default_context
        try:
            application = self._load(application_id)
            if application.status != S.DRAFT:
                return StatusChangeResult(success=False, message="Only drafts can be submitted")

            submitted_at = datetime.now(timezone.utc)
            self.application_repo.update(application_id, {
                "status": S.NEW.value,
                "submitted_at": submitted_at,
            })
            self._logging_service(context).log(
                EntityType.DRIVER_APPLICATIONS,
                application_id,
                "submitted",
                changes={"status": {"from": S.DRAFT.value, "to": S.NEW.value}},
                metadata={"reason": "Draft submitted by applicant"},
            )
            return StatusChangeResult(success=True, message="Application submitted")
        except Exception as e:
            logger.error(f"Error submitting draft {application_id}: {e}", exc_info=True)
            return StatusChangeResult(success=False, message=str(e) or "Unknown error")

    def hire_driver(
        self,
        application_id: str,
        context: Optional[StatusTransitionContext] = None
    ) -> HireResult:
        """Create a Driver from an approved application and mark it Hired.

        Logs ``hired`` on the application and ``created`` on the new driver.
        Nothing is written when the application is not Approved.
        """
        context = context or self.default_context
        try:
            application = self._load(application_id)
            if application.status != S.APPROVED:
                return HireResult(success=False, message=HIRE_REQUIRES_APPROVAL)

            driver_data = DriverCreate(
                company_id=application.company_id,
                application_id=application.id,
                first_name=application.first_name,
                last_name=application.last_name,
                dob=application.dob,
                phone=application.phone,
                email=application.email,
                current_address=application.current_address,
                current_city=application.current_city,
                current_state=application.current_state,
                current_zip=application.current_zip,
                current_address_from_month=application.current_address_from_month,
                current_address_from_year=application.current_address_from_year,
                license_number=application.license_number,
                license_state=application.license_state,
                license_expiration_date=application.license_expiration_date,
                medical_card_expiration_date=application.medical_card_expiration_date,
                license_photo=application.license_photo,
                medical_card_photo=application.medical_card_photo,
                position=application.position_applied_for,
                status=DriverStatus.ACTIVE,
                hire_date=datetime.now(timezone.utc),
            )

            driver = self.driver_repo.create(driver_data)
            if not driver:
                raise RuntimeError("Failed to create driver")
            driver_id = driver["id"]

            self.application_repo.update(application_id, {"status": S.HIRED.value})

            logging_service = self._logging_service(context)
            logging_service.log(
                EntityType.DRIVER_APPLICATIONS,
                application_id,
                "hired",
                metadata={
                    "driver_id": driver_id,
                    "company_id": application.company_id,
                    "reason": context.reason or "Driver hired from application",
                },
            )
            logging_service.log(
                EntityType.DRIVERS,
                driver_id,
                "created",
                metadata={
                    "application_id": application_id,
                    "company_id": application.company_id,
                    "reason": "Created from approved application",
                },
            )

            logger.info(f"Hired driver {driver_id} from application {application_id}")
            return HireResult(
                success=True,
                driver_id=driver_id,
                message=f"Driver hired successfully. Driver ID: {driver_id}",
            )
        except Exception as e:
            logger.error(f"Error hiring driver from application {application_id}: {e}", exc_info=True)
            return HireResult(success=False, message=str(e) or "Unknown error")

    def get_available_transitions(self, current_status: ApplicationStatus) -> List[ApplicationStatus]:
        return get_available_transitions(current_status)
