"""
Authentication API endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.api.v1.deps import (
    get_storage,
    get_settings,
    get_session_token,
    require_authentication,
)
from app.core.config import Settings
from app.schemas.auth import LoginRequest, SessionResponse, UserResponse
from app.schemas.logs import SuccessResponse
from app.services.auth_service import AuthService
from app.storage.base import Storage


router = APIRouter()


def _set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        httponly=True,
        secure=settings.is_production,
        samesite="strict" if settings.is_production else "lax",
        path="/",
    )


@router.post("/login", response_model=SessionResponse)
async def login(
    request: LoginRequest,
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings)
) -> SessionResponse:
    """
    Authenticate with username and password and open a session.

    Unknown usernames and wrong passwords get the same 401 response.
    """
    auth_service = AuthService(storage, settings)

    user = await auth_service.authenticate(request.username, request.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    session_token = await auth_service.login(user, previous_token=token)
    _set_session_cookie(response, session_token, settings)

    return SessionResponse(user=UserResponse.from_record(user))


@router.get("/session", response_model=SessionResponse)
async def get_session(
    current_user: UserResponse = Depends(require_authentication)
) -> SessionResponse:
    """
    Return the user behind the session cookie without re-prompting.
    """
    return SessionResponse(user=current_user)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings)
) -> SuccessResponse:
    """
    Destroy the server-side session and clear the cookie.
    """
    auth_service = AuthService(storage, settings)
    await auth_service.logout(token)

    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict" if settings.is_production else "lax",
    )
    return SuccessResponse(success=True)
