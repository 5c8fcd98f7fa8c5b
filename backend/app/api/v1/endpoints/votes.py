"""
Vote results and monitoring API endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, Query

from app.api.v1.deps import get_storage, require_authentication
from app.schemas.auth import UserResponse
from app.schemas.tally import CandidateTally, VoteLogEntry, IntegrityReport
from app.services.tally_service import TallyService
from app.storage.base import Storage


router = APIRouter()


@router.get("/results", response_model=List[CandidateTally])
async def get_results(
    storage: Storage = Depends(get_storage),
    current_user: UserResponse = Depends(require_authentication)
) -> List[CandidateTally]:
    """
    Get vote counts per candidate.
    """
    tally_service = TallyService(storage)
    return await tally_service.votes_by_candidate()


@router.get("/logs", response_model=List[VoteLogEntry])
async def get_vote_logs(
    limit: int = Query(100, ge=1, le=1000),
    storage: Storage = Depends(get_storage),
    current_user: UserResponse = Depends(require_authentication)
) -> List[VoteLogEntry]:
    """
    Get the most recent votes with masked voter ids.
    """
    tally_service = TallyService(storage)
    return await tally_service.vote_logs(limit=limit)


@router.get("/integrity", response_model=IntegrityReport)
async def get_integrity_report(
    storage: Storage = Depends(get_storage),
    current_user: UserResponse = Depends(require_authentication)
) -> IntegrityReport:
    """
    Compare voter flags with recorded votes to surface partial commits.
    """
    tally_service = TallyService(storage)
    return await tally_service.integrity_report()
