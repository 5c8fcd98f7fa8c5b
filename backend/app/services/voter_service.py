"""
Voter registration service.
"""
from typing import List, Optional
from uuid import UUID

from app.core.security import mask_voter_id
from app.models.log import ActivityLogType
from app.schemas.election import VoterCreate, VoterResponse
from app.services.audit_service import AuditService
from app.storage.base import Storage


class VoterService:
    """Service for voter registration."""

    def __init__(self, storage: Storage):
        self.storage = storage
        self.audit = AuditService(storage)

    async def register_voter(
        self,
        data: VoterCreate,
        user_id: Optional[UUID] = None
    ) -> VoterResponse:
        """Register one voter. Raises DuplicateRecordError for a known voter id."""
        voter = await self.storage.create_voter(data)

        await self.audit.activity(
            ActivityLogType.VOTER_REGISTERED,
            f"New voter registered: {voter.full_name} ({mask_voter_id(voter.voter_id)})",
            user_id=user_id,
            details={"voterId": voter.voter_id},
        )
        return voter

    async def register_voters(
        self,
        data: List[VoterCreate],
        user_id: Optional[UUID] = None
    ) -> List[VoterResponse]:
        """Register a batch of voters; nothing is inserted if any id is taken."""
        voters = await self.storage.create_voters(data)

        await self.audit.activity(
            ActivityLogType.VOTER_REGISTERED,
            f"Bulk import of {len(voters)} voters completed",
            user_id=user_id,
            details={"count": len(voters)},
        )
        return voters
