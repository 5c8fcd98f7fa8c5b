"""
Security and activity log API endpoints.
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.v1.deps import get_storage, require_authentication, require_operator
from app.schemas.auth import UserResponse
from app.schemas.logs import SecurityLogResponse, ActivityLogResponse, SuccessResponse
from app.services.audit_service import AuditService
from app.storage.base import Storage


security_router = APIRouter()
activity_router = APIRouter()


@security_router.get("", response_model=List[SecurityLogResponse])
async def list_security_logs(
    storage: Storage = Depends(get_storage),
    current_user: UserResponse = Depends(require_authentication)
) -> List[SecurityLogResponse]:
    """
    Get all security events, newest first.
    """
    return await storage.list_security_logs()


@security_router.post("/{log_id}/resolve", response_model=SuccessResponse)
async def resolve_security_log(
    log_id: UUID,
    storage: Storage = Depends(get_storage),
    current_user: UserResponse = Depends(require_operator)
) -> SuccessResponse:
    """
    Mark a security event as resolved. Resolving it again changes nothing.
    """
    audit_service = AuditService(storage)

    log = await audit_service.resolve(log_id)
    if not log:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Security log not found"
        )

    return SuccessResponse(success=True)


@activity_router.get("", response_model=List[ActivityLogResponse])
async def list_activity_logs(
    limit: int = Query(50, ge=1, le=1000),
    storage: Storage = Depends(get_storage),
    current_user: UserResponse = Depends(require_authentication)
) -> List[ActivityLogResponse]:
    """
    Get recent activity, newest first.
    """
    return await storage.list_activity_logs(limit=limit)
