"""
Mocked background check provider.

Stands in for a screening vendor: a check is marked in progress, completes
after a configurable delay, and stores a fixed result set on the application.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from config import settings
from models.application import BackgroundCheckResult, BackgroundCheckStatus
from repositories.application_repository import ApplicationRepository

logger = logging.getLogger(__name__)

MOCK_RESULTS = BackgroundCheckResult(
    criminal_history=False,
    driving_record={
        "violations": [{"type": "Speeding", "date": "2023-06-15", "severity": "minor"}],
        "suspensions": [],
        "overall_score": "good",
    },
    employment_verification={"verified": True, "discrepancies": []},
    drug_test={"status": "pending"},
)


class BackgroundCheckService:
    """Runs simulated background checks against stored applications."""

    def __init__(self, application_repo: Optional[ApplicationRepository] = None,
                 delay_seconds: Optional[float] = None):
        self.application_repo = application_repo or ApplicationRepository()
        self.delay_seconds = settings.background_check_delay_seconds if delay_seconds is None else delay_seconds

    async def initiate_background_check(self, application_id: str) -> None:
        """Start a check and wait for the simulated provider to finish it."""
        try:
            started = await asyncio.to_thread(
                self.application_repo.update,
                application_id,
                {"background_check_status": BackgroundCheckStatus.IN_PROGRESS.value},
            )
        except Exception as e:
            logger.error(f"Failed to initiate background check for {application_id}: {e}")
            await self._mark_failed(application_id)
            return

        if started is None:
            logger.warning(f"Background check skipped, application {application_id} not found")
            return
        logger.info(f"Background check started for application {application_id}")

        await asyncio.sleep(self.delay_seconds)
        await self.complete_background_check(application_id)

    async def complete_background_check(self, application_id: str) -> None:
        try:
            await asyncio.to_thread(
                self.application_repo.update,
                application_id,
                {
                    "background_check_status": BackgroundCheckStatus.COMPLETED.value,
                    "background_check_results": MOCK_RESULTS.model_dump(mode="json"),
                    "background_check_completed_at": datetime.now(timezone.utc),
                },
            )
            logger.info(f"Background check completed for application {application_id}")
        except Exception as e:
            logger.error(f"Failed to complete background check for {application_id}: {e}")
            await self._mark_failed(application_id)

    async def _mark_failed(self, application_id: str) -> None:
        try:
            await asyncio.to_thread(
                self.application_repo.update,
                application_id,
                {"background_check_status": BackgroundCheckStatus.FAILED.value},
            )
        except Exception as e:
            logger.error(f"Could not record failed background check for {application_id}: {e}")

    def get_background_check_status(self, application_id: str) -> Optional[Dict]:
        """Current check status and results, or None when the application is unknown."""
        application = self.application_repo.get_by_id(application_id)
        if not application:
            return None
        return {
            "status": application.get("background_check_status") or BackgroundCheckStatus.PENDING.value,
            "results": application.get("background_check_results"),
            "completed_at": application.get("background_check_completed_at"),
        }
