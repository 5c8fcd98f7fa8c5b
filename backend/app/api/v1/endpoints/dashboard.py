"""
Dashboard API endpoints.
"""
from fastapi import APIRouter, Depends

from app.api.v1.deps import get_storage, require_authentication
from app.schemas.auth import UserResponse
from app.schemas.tally import DashboardStats
from app.services.tally_service import TallyService
from app.storage.base import Storage


router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    storage: Storage = Depends(get_storage),
    current_user: UserResponse = Depends(require_authentication)
) -> DashboardStats:
    """
    Get registered voters, votes cast, turnout and device availability.
    """
    tally_service = TallyService(storage)
    return await tally_service.dashboard_stats()
