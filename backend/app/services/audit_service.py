"""
Audit service recording security events and the activity feed.
"""
import logging
from typing import Optional, Dict, Any
from uuid import UUID

from app.models.log import SecurityLogType, Severity, ActivityLogType
from app.schemas.logs import (
    SecurityLogCreate,
    SecurityLogResponse,
    ActivityLogCreate,
    ActivityLogResponse,
)
from app.storage.base import Storage


logger = logging.getLogger(__name__)


class AuditService:
    """Service writing security and activity log entries."""

    def __init__(self, storage: Storage):
        self.storage = storage

    async def security_event(
        self,
        log_type: SecurityLogType,
        severity: Severity,
        description: str,
        device_id: Optional[str] = None,
        voter_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> SecurityLogResponse:
        """Persist a security event and mirror it to the application log."""
        log = await self.storage.create_security_log(SecurityLogCreate(
            type=log_type,
            severity=severity,
            device_id=device_id,
            voter_id=voter_id,
            description=description,
            details=details,
        ))
        logger.warning(
            "Security event %s (%s): %s",
            log_type.value,
            severity.value,
            description,
        )
        return log

    async def activity(
        self,
        log_type: ActivityLogType,
        description: str,
        user_id: Optional[UUID] = None,
        device_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> ActivityLogResponse:
        """Append an entry to the activity feed."""
        log = await self.storage.create_activity_log(ActivityLogCreate(
            type=log_type,
            description=description,
            user_id=user_id,
            device_id=device_id,
            details=details,
        ))
        logger.info("Activity %s: %s", log_type.value, description)
        return log

    async def resolve(self, log_id: UUID) -> Optional[SecurityLogResponse]:
        """Mark a security event resolved. Resolving twice is a no-op."""
        log = await self.storage.resolve_security_log(log_id)
        if log is not None:
            logger.info("Security event %s resolved", log_id)
        return log
