"""
Domain store interface shared by the memory and relational backends.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from app.models.election import DeviceStatus
from app.schemas.auth import UserCreate, UserRecord, SessionRecord
from app.schemas.election import (
    VoterCreate,
    VoterResponse,
    CandidateCreate,
    CandidateResponse,
    DeviceCreate,
    DeviceResponse,
)
from app.schemas.logs import (
    SecurityLogCreate,
    SecurityLogResponse,
    ActivityLogCreate,
    ActivityLogResponse,
)
from app.schemas.vote import VoteCreate, VoteResponse


class StorageError(Exception):
    """Unexpected failure inside the store."""


class DuplicateRecordError(StorageError):
    """A uniqueness constraint rejected an insert."""


class DuplicateVoteError(DuplicateRecordError):
    """A vote for this voter id already exists."""

    def __init__(self, voter_id: str):
        super().__init__(f"Vote already recorded for voter {voter_id}")
        self.voter_id = voter_id


class Storage(ABC):
    """
    Persistence for users, sessions, voters, candidates, devices, votes and
    logs.

    Devices are always addressed by their external ``device_id``. Listing
    methods for logs and votes return newest first.
    """

    async def connect(self) -> None:
        """Prepare the store for use."""

    async def close(self) -> None:
        """Release resources held by the store."""

    # Users
    @abstractmethod
    async def get_user(self, user_id: UUID) -> Optional[UserRecord]: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def create_user(self, data: UserCreate) -> UserRecord: ...

    # Sessions
    @abstractmethod
    async def create_session(
        self,
        session_id: str,
        user_id: UUID,
        user: Optional[dict],
        expires_at: datetime,
    ) -> SessionRecord: ...

    @abstractmethod
    async def get_session(self, session_id: str) -> Optional[SessionRecord]: ...

    @abstractmethod
    async def update_session_user(self, session_id: str, user: dict) -> None: ...

    @abstractmethod
    async def delete_session(self, session_id: str) -> None: ...

    # Voters
    @abstractmethod
    async def list_voters(self) -> List[VoterResponse]: ...

    @abstractmethod
    async def get_voter_by_voter_id(self, voter_id: str) -> Optional[VoterResponse]: ...

    @abstractmethod
    async def create_voter(self, data: VoterCreate) -> VoterResponse: ...

    @abstractmethod
    async def create_voters(self, data: List[VoterCreate]) -> List[VoterResponse]:
        """Insert all voters or none."""

    @abstractmethod
    async def set_voter_has_voted(self, voter_id: str, has_voted: bool) -> None: ...

    @abstractmethod
    async def count_voters(self) -> int: ...

    # Candidates
    @abstractmethod
    async def list_candidates(self) -> List[CandidateResponse]:
        """All candidates ordered by position."""

    @abstractmethod
    async def get_candidate(self, candidate_id: UUID) -> Optional[CandidateResponse]: ...

    @abstractmethod
    async def get_active_candidate_by_name(self, name: str) -> Optional[CandidateResponse]: ...

    @abstractmethod
    async def create_candidate(self, data: CandidateCreate) -> CandidateResponse: ...

    # Devices
    @abstractmethod
    async def list_devices(self) -> List[DeviceResponse]: ...

    @abstractmethod
    async def get_device(self, device_id: str) -> Optional[DeviceResponse]: ...

    @abstractmethod
    async def create_device(self, data: DeviceCreate) -> DeviceResponse: ...

    @abstractmethod
    async def update_device_status(
        self,
        device_id: str,
        status: DeviceStatus,
        battery_level: Optional[int] = None,
        firmware_version: Optional[str] = None,
    ) -> Optional[DeviceResponse]: ...

    @abstractmethod
    async def touch_device_sync(self, device_id: str) -> Optional[DeviceResponse]:
        """Set last_sync to now. Unknown devices are ignored."""

    # Votes
    @abstractmethod
    async def create_vote(self, data: VoteCreate) -> VoteResponse:
        """Insert a vote; raises DuplicateVoteError if the voter already has one."""

    @abstractmethod
    async def list_votes(self, limit: Optional[int] = None) -> List[VoteResponse]: ...

    @abstractmethod
    async def count_votes(self) -> int: ...

    @abstractmethod
    async def count_votes_by_candidate(self) -> Dict[UUID, int]:
        """Vote counts keyed by candidate id; votes without a candidate are skipped."""

    # Security logs
    @abstractmethod
    async def list_security_logs(self) -> List[SecurityLogResponse]: ...

    @abstractmethod
    async def create_security_log(self, data: SecurityLogCreate) -> SecurityLogResponse: ...

    @abstractmethod
    async def resolve_security_log(self, log_id: UUID) -> Optional[SecurityLogResponse]:
        """Mark resolved; returns None for an unknown id."""

    # Activity logs
    @abstractmethod
    async def list_activity_logs(self, limit: int = 50) -> List[ActivityLogResponse]: ...

    @abstractmethod
    async def create_activity_log(self, data: ActivityLogCreate) -> ActivityLogResponse: ...
