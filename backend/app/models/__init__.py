"""
SQLAlchemy database models.
"""
from app.models.election import Voter, Candidate, Device, DeviceStatus, Vote
from app.models.log import (
    SecurityLog,
    SecurityLogType,
    Severity,
    ActivityLog,
    ActivityLogType,
)
from app.models.user import User, UserRole, UserSession

__all__ = [
    "Voter",
    "Candidate",
    "Device",
    "DeviceStatus",
    "Vote",
    "SecurityLog",
    "SecurityLogType",
    "Severity",
    "ActivityLog",
    "ActivityLogType",
    "User",
    "UserRole",
    "UserSession",
]
