"""
Authentication and session Pydantic schemas.
"""
from typing import Optional, Dict, Any
from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.models.user import UserRole
from app.schemas.base import CamelModel


class LoginRequest(CamelModel):
    """Username/password login."""

    username: str = Field(..., min_length=1, max_length=100, description="Username")
    password: str = Field(..., min_length=1, description="Plaintext password")


class UserCreate(CamelModel):
    """User to insert; the password is already hashed."""

    username: str = Field(..., min_length=1, max_length=100)
    password_hash: str = Field(..., description="Encoded salted key derivation")
    role: UserRole = Field(default=UserRole.OBSERVER)
    full_name: str = Field(..., min_length=1, max_length=200)


class UserRecord(CamelModel):
    """Stored user including the password hash. Never returned by the API."""

    id: UUID
    username: str
    password_hash: str
    role: UserRole
    full_name: str
    created_at: datetime


class UserResponse(CamelModel):
    """Password-stripped user projection."""

    id: UUID = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    role: UserRole = Field(..., description="User role")
    full_name: str = Field(..., description="Display name")
    created_at: datetime = Field(..., description="Account creation time")

    @classmethod
    def from_record(cls, user: UserRecord) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            role=user.role,
            full_name=user.full_name,
            created_at=user.created_at,
        )


class SessionResponse(CamelModel):
    """Authenticated session payload."""

    user: UserResponse


class SessionRecord(CamelModel):
    """Server-side session."""

    id: str
    user_id: UUID
    user: Optional[Dict[str, Any]] = None
    created_at: datetime
    expires_at: datetime
