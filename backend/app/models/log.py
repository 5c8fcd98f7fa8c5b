"""
Security and activity log database models.
"""
import uuid
import enum

from sqlalchemy import Column, String, DateTime, Boolean, Text, Enum, JSON

from app.core.clock import utcnow
from app.core.database import Base, GUID


class SecurityLogType(str, enum.Enum):
    """Security event types."""
    DUPLICATE_ATTEMPT = "duplicate_attempt"
    UNREGISTERED_FINGERPRINT = "unregistered_fingerprint"
    DEVICE_TAMPERING = "device_tampering"
    LOGIN_ATTEMPT = "login_attempt"
    LOW_CONFIDENCE = "low_confidence"


class Severity(str, enum.Enum):
    """Security event severity."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ActivityLogType(str, enum.Enum):
    """Activity feed entry types."""
    VOTE_CAST = "vote_cast"
    VOTER_REGISTERED = "voter_registered"
    DEVICE_SYNC = "device_sync"
    USER_LOGIN = "user_login"
    USER_LOGOUT = "user_logout"


class SecurityLog(Base):
    """
    Security event raised by the vote pipeline or the login flow.
    Only the resolved flag ever changes after insert.
    """

    __tablename__ = "security_logs"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    type = Column(Enum(SecurityLogType), nullable=False)
    severity = Column(Enum(Severity), default=Severity.MEDIUM, nullable=False)

    # External identifiers, not foreign keys
    device_id = Column(String(64), nullable=True)
    voter_id = Column(String(64), nullable=True)

    description = Column(Text, nullable=False)
    details = Column("metadata", JSON, nullable=True)
    resolved = Column(Boolean, default=False, nullable=False)
    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<SecurityLog(id={self.id}, type={self.type}, resolved={self.resolved})>"


class ActivityLog(Base):
    """Append-only activity feed entry."""

    __tablename__ = "activity_logs"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    type = Column(Enum(ActivityLogType), nullable=False)
    description = Column(Text, nullable=False)
    user_id = Column(GUID(), nullable=True)
    device_id = Column(String(64), nullable=True)
    details = Column("metadata", JSON, nullable=True)
    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<ActivityLog(id={self.id}, type={self.type})>"
