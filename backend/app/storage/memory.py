"""
Process-local store backed by dictionaries.

Every mutation completes without awaiting, so each call is atomic with
respect to other coroutines on the event loop.
"""
import uuid
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from app.core.clock import utcnow
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
from app.storage.base import Storage, DuplicateRecordError, DuplicateVoteError


def _newest_first(records, key):
    # Reverse insertion order first so equal timestamps also list newest first
    return sorted(reversed(list(records)), key=key, reverse=True)


class MemoryStorage(Storage):
    """Dictionary-backed implementation of the domain store."""

    def __init__(self):
        self.users: Dict[UUID, UserRecord] = {}
        self.sessions: Dict[str, SessionRecord] = {}
        self.voters: Dict[str, VoterResponse] = {}
        self.candidates: Dict[UUID, CandidateResponse] = {}
        self.devices: Dict[str, DeviceResponse] = {}
        self.votes: Dict[UUID, VoteResponse] = {}
        self.security_logs: Dict[UUID, SecurityLogResponse] = {}
        self.activity_logs: List[ActivityLogResponse] = []

    # Users

    async def get_user(self, user_id: UUID) -> Optional[UserRecord]:
        return self.users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.username == username:
                return user
        return None

    async def create_user(self, data: UserCreate) -> UserRecord:
        if any(u.username == data.username for u in self.users.values()):
            raise DuplicateRecordError(f"Username {data.username} already exists")
        user = UserRecord(
            id=uuid.uuid4(),
            username=data.username,
            password_hash=data.password_hash,
            role=data.role,
            full_name=data.full_name,
            created_at=utcnow(),
        )
        self.users[user.id] = user
        return user

    # Sessions

    async def create_session(
        self,
        session_id: str,
        user_id: UUID,
        user: Optional[dict],
        expires_at: datetime,
    ) -> SessionRecord:
        session = SessionRecord(
            id=session_id,
            user_id=user_id,
            user=user,
            created_at=utcnow(),
            expires_at=expires_at,
        )
        self.sessions[session_id] = session
        return session

    async def get_session(self, session_id: str) -> Optional[SessionRecord]:
        return self.sessions.get(session_id)

    async def update_session_user(self, session_id: str, user: dict) -> None:
        session = self.sessions.get(session_id)
        if session:
            self.sessions[session_id] = session.model_copy(update={"user": user})

    async def delete_session(self, session_id: str) -> None:
        self.sessions.pop(session_id, None)

    # Voters

    async def list_voters(self) -> List[VoterResponse]:
        return list(self.voters.values())

    async def get_voter_by_voter_id(self, voter_id: str) -> Optional[VoterResponse]:
        return self.voters.get(voter_id)

    def _build_voter(self, data: VoterCreate) -> VoterResponse:
        return VoterResponse(
            id=uuid.uuid4(),
            voter_id=data.voter_id,
            full_name=data.full_name,
            fingerprint_hash=data.fingerprint_hash,
            has_voted=False,
            created_at=utcnow(),
        )

    async def create_voter(self, data: VoterCreate) -> VoterResponse:
        if data.voter_id in self.voters:
            raise DuplicateRecordError(f"Voter {data.voter_id} already registered")
        voter = self._build_voter(data)
        self.voters[voter.voter_id] = voter
        return voter

    async def create_voters(self, data: List[VoterCreate]) -> List[VoterResponse]:
        seen = set()
        for item in data:
            if item.voter_id in self.voters or item.voter_id in seen:
                raise DuplicateRecordError(f"Voter {item.voter_id} already registered")
            seen.add(item.voter_id)

        voters = [self._build_voter(item) for item in data]
        for voter in voters:
            self.voters[voter.voter_id] = voter
        return voters

    async def set_voter_has_voted(self, voter_id: str, has_voted: bool) -> None:
        voter = self.voters.get(voter_id)
        if voter:
            self.voters[voter_id] = voter.model_copy(update={"has_voted": has_voted})

    async def count_voters(self) -> int:
        return len(self.voters)

    # Candidates

    async def list_candidates(self) -> List[CandidateResponse]:
        return sorted(self.candidates.values(), key=lambda c: c.position)

    async def get_candidate(self, candidate_id: UUID) -> Optional[CandidateResponse]:
        return self.candidates.get(candidate_id)

    async def get_active_candidate_by_name(self, name: str) -> Optional[CandidateResponse]:
        for candidate in await self.list_candidates():
            if candidate.active and candidate.name == name:
                return candidate
        return None

    async def create_candidate(self, data: CandidateCreate) -> CandidateResponse:
        position = data.position
        if position is None:
            position = max((c.position for c in self.candidates.values()), default=0) + 1
        candidate = CandidateResponse(
            id=uuid.uuid4(),
            name=data.name,
            party=data.party,
            position=position,
            active=data.active,
        )
        self.candidates[candidate.id] = candidate
        return candidate

    # Devices

    async def list_devices(self) -> List[DeviceResponse]:
        return list(self.devices.values())

    async def get_device(self, device_id: str) -> Optional[DeviceResponse]:
        return self.devices.get(device_id)

    async def create_device(self, data: DeviceCreate) -> DeviceResponse:
        if data.device_id in self.devices:
            raise DuplicateRecordError(f"Device {data.device_id} already registered")
        device = DeviceResponse(
            id=uuid.uuid4(),
            device_id=data.device_id,
            name=data.name,
            status=data.status,
            battery_level=data.battery_level,
            last_sync=None,
            location=data.location,
            firmware_version=data.firmware_version,
        )
        self.devices[device.device_id] = device
        return device

    async def update_device_status(
        self,
        device_id: str,
        status: DeviceStatus,
        battery_level: Optional[int] = None,
        firmware_version: Optional[str] = None,
    ) -> Optional[DeviceResponse]:
        device = self.devices.get(device_id)
        if device is None:
            return None
        update = {"status": status}
        if battery_level is not None:
            update["battery_level"] = battery_level
        if firmware_version is not None:
            update["firmware_version"] = firmware_version
        device = device.model_copy(update=update)
        self.devices[device_id] = device
        return device

    async def touch_device_sync(self, device_id: str) -> Optional[DeviceResponse]:
        device = self.devices.get(device_id)
        if device is None:
            return None
        device = device.model_copy(update={"last_sync": utcnow()})
        self.devices[device_id] = device
        return device

    # Votes

    async def create_vote(self, data: VoteCreate) -> VoteResponse:
        if any(v.voter_id == data.voter_id for v in self.votes.values()):
            raise DuplicateVoteError(data.voter_id)
        vote = VoteResponse(
            id=uuid.uuid4(),
            voter_id=data.voter_id,
            candidate_id=data.candidate_id,
            device_id=data.device_id,
            fingerprint_hash=data.fingerprint_hash,
            timestamp=data.timestamp or utcnow(),
            verified=data.verified,
            confidence=data.confidence,
            signal_strength=data.signal_strength,
        )
        self.votes[vote.id] = vote
        return vote

    async def list_votes(self, limit: Optional[int] = None) -> List[VoteResponse]:
        votes = _newest_first(self.votes.values(), key=lambda v: v.timestamp)
        if limit is not None:
            votes = votes[:limit]
        return votes

    async def count_votes(self) -> int:
        return len(self.votes)

    async def count_votes_by_candidate(self) -> Dict[UUID, int]:
        return dict(Counter(
            v.candidate_id for v in self.votes.values() if v.candidate_id is not None
        ))

    # Security logs

    async def list_security_logs(self) -> List[SecurityLogResponse]:
        return _newest_first(self.security_logs.values(), key=lambda l: l.timestamp)

    async def create_security_log(self, data: SecurityLogCreate) -> SecurityLogResponse:
        log = SecurityLogResponse(
            id=uuid.uuid4(),
            type=data.type,
            severity=data.severity,
            device_id=data.device_id,
            voter_id=data.voter_id,
            description=data.description,
            details=data.details,
            resolved=False,
            timestamp=utcnow(),
        )
        self.security_logs[log.id] = log
        return log

    async def resolve_security_log(self, log_id: UUID) -> Optional[SecurityLogResponse]:
        log = self.security_logs.get(log_id)
        if log is None:
            return None
        if not log.resolved:
            log = log.model_copy(update={"resolved": True})
            self.security_logs[log_id] = log
        return log

    # Activity logs

    async def list_activity_logs(self, limit: int = 50) -> List[ActivityLogResponse]:
        return _newest_first(self.activity_logs, key=lambda l: l.timestamp)[:limit]

    async def create_activity_log(self, data: ActivityLogCreate) -> ActivityLogResponse:
        log = ActivityLogResponse(
            id=uuid.uuid4(),
            type=data.type,
            description=data.description,
            user_id=data.user_id,
            device_id=data.device_id,
            details=data.details,
            timestamp=utcnow(),
        )
        self.activity_logs.append(log)
        return log
