"""
Device management API endpoints for dashboard operators.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.v1.deps import (
    get_storage,
    get_settings,
    require_authentication,
    require_operator,
)
from app.core.config import Settings
from app.schemas.auth import UserResponse
from app.schemas.election import DeviceCreate, DeviceResponse
from app.schemas.logs import SuccessResponse
from app.schemas.vote import VoteSubmitResponse
from app.services.device_service import DeviceService
from app.services.vote_service import VoteService, DEVICE_NOT_FOUND
from app.storage.base import Storage, DuplicateRecordError


router = APIRouter()


@router.get("", response_model=List[DeviceResponse])
async def list_devices(
    storage: Storage = Depends(get_storage),
    current_user: UserResponse = Depends(require_authentication)
) -> List[DeviceResponse]:
    """
    Get all voting devices.
    """
    return await storage.list_devices()


@router.post("", response_model=DeviceResponse, status_code=status.HTTP_201_CREATED)
async def register_device(
    request: DeviceCreate,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
    current_user: UserResponse = Depends(require_operator)
) -> DeviceResponse:
    """
    Register a voting device.
    """
    device_service = DeviceService(storage, settings)

    try:
        return await device_service.register_device(request)
    except DuplicateRecordError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Device {request.device_id} is already registered"
        )


@router.post("/{device_id}/sync", response_model=SuccessResponse)
async def sync_device(
    device_id: str,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
    current_user: UserResponse = Depends(require_operator)
) -> SuccessResponse:
    """
    Manually mark a device as synchronized.
    """
    device_service = DeviceService(storage, settings)

    device = await device_service.manual_sync(device_id, user_id=current_user.id)
    if not device:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Device not found"
        )

    return SuccessResponse(success=True)


@router.post("/{device_id}/test-vote", response_model=VoteSubmitResponse)
async def cast_test_vote(
    device_id: str,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
    current_user: UserResponse = Depends(require_operator)
) -> VoteSubmitResponse:
    """
    Push a synthetic vote through the intake pipeline for operational
    testing, using the first voter who has not voted yet.
    """
    vote_service = VoteService(storage, settings)

    vote, error = await vote_service.cast_test_vote(device_id)
    if error == DEVICE_NOT_FOUND:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error
        )
    if error:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error
        )

    return VoteSubmitResponse(success=True, vote_id=vote.id)
