"""
Security and activity log Pydantic schemas.

Metadata is an opaque string-keyed map. Conventions per type:

- duplicate_attempt / unregistered_fingerprint / low_confidence:
  ``deviceId``, ``confidence``, ``signalStrength`` as reported by the device.
- login_attempt: ``username``.
- vote_cast: ``maskedVoterId``, ``candidateId``; never the full voter id.
- voter_registered: ``voterId`` (single) or ``count`` (bulk).
- device_sync: ``deviceId`` plus raw telemetry for health reports.
- user_login / user_logout: ``username``.
"""
from typing import Optional, Dict, Any
from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.models.log import SecurityLogType, Severity, ActivityLogType
from app.schemas.base import CamelModel


class SecurityLogCreate(CamelModel):
    type: SecurityLogType
    severity: Severity = Severity.MEDIUM
    device_id: Optional[str] = None
    voter_id: Optional[str] = None
    description: str
    details: Optional[Dict[str, Any]] = None


class SecurityLogResponse(CamelModel):
    """Security event."""

    id: UUID
    type: SecurityLogType
    severity: Severity
    device_id: Optional[str] = None
    voter_id: Optional[str] = None
    description: str
    details: Optional[Dict[str, Any]] = Field(default=None, serialization_alias="metadata")
    resolved: bool = False
    timestamp: datetime


class ActivityLogCreate(CamelModel):
    type: ActivityLogType
    description: str
    user_id: Optional[UUID] = None
    device_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class ActivityLogResponse(CamelModel):
    """Activity feed entry."""

    id: UUID
    type: ActivityLogType
    description: str
    user_id: Optional[UUID] = None
    device_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = Field(default=None, serialization_alias="metadata")
    timestamp: datetime


class SuccessResponse(CamelModel):
    success: bool = True
