"""
Candidate API endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, status

from app.api.v1.deps import get_storage, require_authentication, require_operator
from app.schemas.auth import UserResponse
from app.schemas.election import CandidateCreate, CandidateResponse
from app.storage.base import Storage


router = APIRouter()


@router.get("", response_model=List[CandidateResponse])
async def list_candidates(
    storage: Storage = Depends(get_storage),
    current_user: UserResponse = Depends(require_authentication)
) -> List[CandidateResponse]:
    """
    Get all candidates in ballot order.
    """
    return await storage.list_candidates()


@router.post("", response_model=CandidateResponse, status_code=status.HTTP_201_CREATED)
async def create_candidate(
    request: CandidateCreate,
    storage: Storage = Depends(get_storage),
    current_user: UserResponse = Depends(require_operator)
) -> CandidateResponse:
    """
    Add a candidate. Without a position it goes to the end of the ballot.
    """
    return await storage.create_candidate(request)
