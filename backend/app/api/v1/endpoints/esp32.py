"""
Device-facing API endpoints used by the ESP32 voting terminals.
This is the entry point of the vote intake pipeline.
"""
from typing import Any, List

from fastapi import APIRouter, Body, Depends, HTTPException, status

from app.api.v1.deps import get_storage, get_settings, verify_device_key
from app.core.config import Settings
from app.schemas.election import DeviceHealthReport, DeviceResponse, DeviceSyncSnapshot
from app.schemas.vote import VoteSubmitRequest, VoteSubmitResponse, OfflineSyncResponse
from app.services.device_service import DeviceService
from app.services.vote_service import VoteService
from app.storage.base import Storage


router = APIRouter(dependencies=[Depends(verify_device_key)])


@router.post("/vote", response_model=VoteSubmitResponse)
async def submit_vote(
    request: VoteSubmitRequest,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings)
) -> VoteSubmitResponse:
    """
    Submit a vote captured by a biometric terminal.

    The pipeline:
    1. Rejects unregistered voters
    2. Rejects voters who have already voted
    3. Rejects fingerprint hashes that do not match the enrolled one
    4. Rejects captures below the confidence threshold
    5. Resolves the candidate by id or by name
    6. Records the vote, flags the voter and bumps the device sync time

    Every rejection is logged as a security event and answered with 400
    and a structured reason.
    """
    vote_service = VoteService(storage, settings)

    vote, rejection = await vote_service.submit_vote(request.to_submission())

    if rejection:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"reason": rejection.value, "message": rejection.message}
        )

    return VoteSubmitResponse(success=True, vote_id=vote.id)


@router.post("/sync-offline-votes", response_model=OfflineSyncResponse)
async def sync_offline_votes(
    request: List[Any] = Body(...),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings)
) -> OfflineSyncResponse:
    """
    Replay votes buffered while the device was offline.

    Each vote is processed on its own and reported individually; the batch
    is not atomic and votes are not reordered by capture time. A malformed
    item is reported as invalid without failing its neighbours.
    """
    vote_service = VoteService(storage, settings)

    return await vote_service.sync_offline_votes(request)


@router.get("/sync/{device_id}", response_model=DeviceSyncSnapshot)
async def sync_device(
    device_id: str,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings)
) -> DeviceSyncSnapshot:
    """
    Get the voter roster and candidate names for local caching.
    """
    device_service = DeviceService(storage, settings)

    snapshot, error = await device_service.sync_snapshot(device_id)
    if error:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error
        )

    return snapshot


@router.post("/health/{device_id}", response_model=DeviceResponse)
async def report_health(
    device_id: str,
    request: DeviceHealthReport,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings)
) -> DeviceResponse:
    """
    Report battery and firmware telemetry. Status follows the battery
    reading immediately.
    """
    device_service = DeviceService(storage, settings)

    device = await device_service.report_health(device_id, request)
    if not device:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Device not found"
        )

    return device
