"""
Voter registration API endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.v1.deps import get_storage, require_authentication, require_operator
from app.schemas.auth import UserResponse
from app.schemas.election import VoterCreate, VoterBulkCreate, VoterResponse
from app.services.voter_service import VoterService
from app.storage.base import Storage, DuplicateRecordError


router = APIRouter()


@router.get("", response_model=List[VoterResponse])
async def list_voters(
    storage: Storage = Depends(get_storage),
    current_user: UserResponse = Depends(require_authentication)
) -> List[VoterResponse]:
    """
    Get all registered voters.
    """
    return await storage.list_voters()


@router.post("", response_model=VoterResponse, status_code=status.HTTP_201_CREATED)
async def register_voter(
    request: VoterCreate,
    storage: Storage = Depends(get_storage),
    current_user: UserResponse = Depends(require_operator)
) -> VoterResponse:
    """
    Register a voter with an enrolled fingerprint hash.
    """
    voter_service = VoterService(storage)

    try:
        return await voter_service.register_voter(request, user_id=current_user.id)
    except DuplicateRecordError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Voter {request.voter_id} is already registered"
        )


@router.post("/bulk", response_model=List[VoterResponse], status_code=status.HTTP_201_CREATED)
async def register_voters_bulk(
    request: VoterBulkCreate,
    storage: Storage = Depends(get_storage),
    current_user: UserResponse = Depends(require_operator)
) -> List[VoterResponse]:
    """
    Register many voters at once. Nothing is inserted if any voter id is
    already taken or repeated in the payload.
    """
    voter_service = VoterService(storage)

    try:
        return await voter_service.register_voters(request.voters, user_id=current_user.id)
    except DuplicateRecordError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="One or more voters are already registered"
        )
