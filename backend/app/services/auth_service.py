"""
Authentication service handling password login and server-side sessions.
"""
import logging
from datetime import timedelta
from typing import Optional

from app.core.clock import utcnow
from app.core.config import Settings
from app.core.security import (
    verify_password,
    dummy_verify,
    generate_session_id,
    create_session_token,
    decode_session_token,
)
from app.models.log import SecurityLogType, Severity, ActivityLogType
from app.schemas.auth import UserRecord, UserResponse
from app.services.audit_service import AuditService
from app.storage.base import Storage, StorageError


logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, storage: Storage, settings: Settings):
        self.storage = storage
        self.settings = settings
        self.audit = AuditService(storage)

    async def authenticate(
        self,
        username: str,
        password: str
    ) -> Optional[UserRecord]:
        """
        Check a username/password pair.

        Unknown usernames and wrong passwords fail the same way and both
        leave a login_attempt security event.
        """
        user = await self.storage.get_user_by_username(username)

        if user is None:
            dummy_verify()
            verified = False
        else:
            verified = verify_password(password, user.password_hash)

        if not verified:
            await self.audit.security_event(
                SecurityLogType.LOGIN_ATTEMPT,
                Severity.MEDIUM,
                f"Failed login attempt for username {username}",
                details={"username": username},
            )
            return None

        return user

    async def login(
        self,
        user: UserRecord,
        previous_token: Optional[str] = None
    ) -> str:
        """
        Open a new session for an authenticated user.

        Any session named by the previous cookie is destroyed first so a
        planted session id never survives authentication.

        Returns:
            Signed cookie value carrying the new session id
        """
        if previous_token:
            previous_id = decode_session_token(previous_token, self.settings)
            if previous_id:
                await self.storage.delete_session(previous_id)

        session_id = generate_session_id()
        projection = UserResponse.from_record(user)
        await self.storage.create_session(
            session_id=session_id,
            user_id=user.id,
            user=projection.model_dump(mode="json"),
            expires_at=utcnow() + timedelta(seconds=self.settings.SESSION_MAX_AGE_SECONDS),
        )

        await self.audit.activity(
            ActivityLogType.USER_LOGIN,
            f"User {user.full_name} logged in",
            user_id=user.id,
            details={"username": user.username},
        )

        return create_session_token(session_id, self.settings)

    async def restore_session(self, token: str) -> Optional[UserResponse]:
        """Resolve a cookie value to the authenticated user, if still valid."""
        session_id = decode_session_token(token, self.settings)
        if not session_id:
            return None

        session = await self.storage.get_session(session_id)
        if session is None:
            return None

        if session.expires_at <= utcnow():
            await self.storage.delete_session(session_id)
            return None

        if session.user:
            return UserResponse.model_validate(session.user)

        user = await self.storage.get_user(session.user_id)
        if user is None:
            await self.storage.delete_session(session_id)
            return None

        projection = UserResponse.from_record(user)
        await self.storage.update_session_user(session_id, projection.model_dump(mode="json"))
        return projection

    async def logout(self, token: Optional[str]) -> None:
        """Destroy the session behind a cookie value. Always succeeds."""
        if not token:
            return

        session_id = decode_session_token(token, self.settings)
        if not session_id:
            return

        session = await self.storage.get_session(session_id)
        await self.storage.delete_session(session_id)

        if session is None:
            return

        try:
            username = (session.user or {}).get("username", str(session.user_id))
            await self.audit.activity(
                ActivityLogType.USER_LOGOUT,
                f"User {username} logged out",
                user_id=session.user_id,
                details={"username": username},
            )
        except StorageError:
            logger.warning("Could not record logout activity", exc_info=True)
