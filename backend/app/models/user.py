"""
User and session database models.
"""
import uuid
import enum

from sqlalchemy import Column, String, DateTime, Enum, ForeignKey, JSON

from app.core.clock import utcnow
from app.core.database import Base, GUID


class UserRole(str, enum.Enum):
    """User role enumeration."""
    SUPER_ADMIN = "super_admin"
    ELECTION_OFFICER = "election_officer"
    OBSERVER = "observer"


class User(Base):
    """Dashboard operator account."""

    __tablename__ = "users"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), default=UserRole.OBSERVER, nullable=False)
    full_name = Column(String(200), nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role={self.role})>"


class UserSession(Base):
    """
    Server-side session keyed by the id carried in the signed cookie.
    The cached user projection never contains the password hash.
    """

    __tablename__ = "user_sessions"

    id = Column(String(64), primary_key=True)
    user_id = Column(
        GUID(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<UserSession(user_id={self.user_id}, expires_at={self.expires_at})>"
