"""
Audit trail writer.

Builds LogEntry records from the acting user's context and appends them to the
``logs`` array of the entity the action concerns.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Request

from models.log_entry import EntityType, StatusTransitionContext
from repositories.log_repository import LogRepository

logger = logging.getLogger(__name__)


class LoggingService:
    """Appends audit entries on behalf of one caller."""

    def __init__(self, context: Optional[StatusTransitionContext] = None,
                 log_repo: Optional[LogRepository] = None):
        self.context = context or StatusTransitionContext()
        self.log_repo = log_repo or LogRepository()

    @staticmethod
    def extract_context(request: Request, notes: Optional[str] = None,
                        device_info: Optional[Dict[str, Any]] = None) -> StatusTransitionContext:
        """Build the caller context from an incoming request.

        The back office forwards the signed-in user in ``X-User-Id`` and
        ``X-User-Email``; the first hop of ``X-Forwarded-For`` wins over the
        socket address.
        """
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            ip_address = forwarded.split(",")[0].strip()
        elif request.headers.get("x-real-ip"):
            ip_address = request.headers["x-real-ip"]
        elif request.client:
            ip_address = request.client.host
        else:
            ip_address = "unknown"

        return StatusTransitionContext(
            user_id=request.headers.get("x-user-id"),
            user_email=request.headers.get("x-user-email"),
            ip_address=ip_address,
            user_agent=request.headers.get("user-agent", "unknown"),
            referer=request.headers.get("referer", "unknown"),
            device_info=device_info,
            notes=notes,
        )

    def log(
        self,
        entity_type: EntityType,
        entity_id: str,
        action: str,
        changes: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        success: bool = True,
        error_message: Optional[str] = None
    ) -> Dict:
        """Append one audit entry to an entity.

        Args:
            entity_type: Kind of entity the action concerns
            entity_id: ID of that entity
            action: Short action name such as ``status_changed`` or ``hired``
            changes: Changed fields as ``{field: {"from": old, "to": new}}``
            metadata: Extra details; request context is merged in
            success: Whether the action succeeded
            error_message: Failure description when ``success`` is False

        Returns:
            dict: The stored entry
        """
        entry = {
            "action": action,
            "user_id": self.context.user_id,
            "user_email": self.context.user_email,
            "changes": changes,
            "metadata": {
                **(metadata or {}),
                "ip_address": self.context.ip_address,
                "user_agent": self.context.user_agent,
                "referer": self.context.referer,
                "device_info": self.context.device_info,
            },
            "success": success,
            "error_message": error_message,
        }

        stored = self.log_repo.append(EntityType(entity_type), entity_id, entry)
        logger.info(f"Logged '{action}' on {EntityType(entity_type).value}:{entity_id}")
        return stored
