"""
API dependencies for storage access, authentication and authorization.
"""
import secrets
from typing import List, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader

from app.core.config import Settings
from app.models.user import UserRole
from app.schemas.auth import UserResponse
from app.services.auth_service import AuthService
from app.storage.base import Storage


device_key_header = APIKeyHeader(name="X-Device-Key", auto_error=False)


def get_storage(request: Request) -> Storage:
    """Store handle owned by the running application."""
    return request.app.state.storage


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_token(
    request: Request,
    settings: Settings = Depends(get_settings)
) -> Optional[str]:
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_current_user(
    token: Optional[str] = Depends(get_session_token),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings)
) -> Optional[UserResponse]:
    """
    Get the user behind the session cookie.
    Returns None if no valid session is attached.
    """
    if not token:
        return None

    auth_service = AuthService(storage, settings)
    return await auth_service.restore_session(token)


async def require_authentication(
    current_user: Optional[UserResponse] = Depends(get_current_user)
) -> UserResponse:
    """
    Require a valid session.
    Raises 401 if not authenticated.
    """
    if not current_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return current_user


def require_role(allowed_roles: List[UserRole]):
    """
    Factory function to create a dependency that requires specific roles.
    """
    async def role_checker(
        current_user: UserResponse = Depends(require_authentication)
    ) -> UserResponse:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )
        return current_user

    return role_checker


require_operator = require_role([UserRole.SUPER_ADMIN, UserRole.ELECTION_OFFICER])


async def verify_device_key(
    device_key: Optional[str] = Depends(device_key_header),
    settings: Settings = Depends(get_settings)
) -> None:
    """
    Gate device-facing endpoints behind DEVICE_API_KEY when one is configured.
    """
    if not settings.DEVICE_API_KEY:
        return
    if not device_key or not secrets.compare_digest(device_key, settings.DEVICE_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid device key",
        )
