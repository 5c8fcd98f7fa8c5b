"""
Relational store on SQLAlchemy's asyncio engine.

Each operation runs in its own short session. SQLAlchemy failures are
re-raised as StorageError so callers never see driver exceptions.
"""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, func, update, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import utcnow
from app.core.database import Database
from app.models.election import Voter, Candidate, Device, DeviceStatus, Vote
from app.models.log import SecurityLog, ActivityLog
from app.models.user import User, UserSession
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
from app.storage.base import Storage, StorageError, DuplicateRecordError, DuplicateVoteError


class SqlStorage(Storage):
    """SQLAlchemy implementation of the domain store."""

    def __init__(self, database: Database):
        self.database = database

    async def connect(self) -> None:
        try:
            await self.database.create_all()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not initialise database: {e}") from e

    async def close(self) -> None:
        await self.database.close()

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with self.database.session() as db:
                yield db
        except IntegrityError as e:
            raise DuplicateRecordError(str(e.orig)) from e
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e

    # Users

    async def get_user(self, user_id: UUID) -> Optional[UserRecord]:
        async with self._session() as db:
            result = await db.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
            return UserRecord.model_validate(user) if user else None

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        async with self._session() as db:
            result = await db.execute(select(User).where(User.username == username))
            user = result.scalar_one_or_none()
            return UserRecord.model_validate(user) if user else None

    async def create_user(self, data: UserCreate) -> UserRecord:
        async with self._session() as db:
            user = User(
                username=data.username,
                password_hash=data.password_hash,
                role=data.role,
                full_name=data.full_name,
            )
            db.add(user)
            await db.commit()
            await db.refresh(user)
            return UserRecord.model_validate(user)

    # Sessions

    async def create_session(
        self,
        session_id: str,
        user_id: UUID,
        user: Optional[dict],
        expires_at: datetime,
    ) -> SessionRecord:
        async with self._session() as db:
            session = UserSession(
                id=session_id,
                user_id=user_id,
                user=user,
                expires_at=expires_at,
            )
            db.add(session)
            await db.commit()
            await db.refresh(session)
            return SessionRecord.model_validate(session)

    async def get_session(self, session_id: str) -> Optional[SessionRecord]:
        async with self._session() as db:
            result = await db.execute(
                select(UserSession).where(UserSession.id == session_id)
            )
            session = result.scalar_one_or_none()
            return SessionRecord.model_validate(session) if session else None

    async def update_session_user(self, session_id: str, user: dict) -> None:
        async with self._session() as db:
            await db.execute(
                update(UserSession)
                .where(UserSession.id == session_id)
                .values(user=user)
            )
            await db.commit()

    async def delete_session(self, session_id: str) -> None:
        async with self._session() as db:
            await db.execute(delete(UserSession).where(UserSession.id == session_id))
            await db.commit()

    # Voters

    async def list_voters(self) -> List[VoterResponse]:
        async with self._session() as db:
            result = await db.execute(select(Voter).order_by(Voter.created_at))
            return [VoterResponse.model_validate(v) for v in result.scalars().all()]

    async def get_voter_by_voter_id(self, voter_id: str) -> Optional[VoterResponse]:
        async with self._session() as db:
            result = await db.execute(select(Voter).where(Voter.voter_id == voter_id))
            voter = result.scalar_one_or_none()
            return VoterResponse.model_validate(voter) if voter else None

    async def create_voter(self, data: VoterCreate) -> VoterResponse:
        voters = await self.create_voters([data])
        return voters[0]

    async def create_voters(self, data: List[VoterCreate]) -> List[VoterResponse]:
        async with self._session() as db:
            voters = [
                Voter(
                    voter_id=item.voter_id,
                    full_name=item.full_name,
                    fingerprint_hash=item.fingerprint_hash,
                    has_voted=False,
                )
                for item in data
            ]
            db.add_all(voters)
            await db.commit()
            return [VoterResponse.model_validate(v) for v in voters]

    async def set_voter_has_voted(self, voter_id: str, has_voted: bool) -> None:
        async with self._session() as db:
            await db.execute(
                update(Voter)
                .where(Voter.voter_id == voter_id)
                .values(has_voted=has_voted)
            )
            await db.commit()

    async def count_voters(self) -> int:
        async with self._session() as db:
            result = await db.execute(select(func.count(Voter.id)))
            return result.scalar() or 0

    # Candidates

    async def list_candidates(self) -> List[CandidateResponse]:
        async with self._session() as db:
            result = await db.execute(select(Candidate).order_by(Candidate.position))
            return [CandidateResponse.model_validate(c) for c in result.scalars().all()]

    async def get_candidate(self, candidate_id: UUID) -> Optional[CandidateResponse]:
        async with self._session() as db:
            result = await db.execute(select(Candidate).where(Candidate.id == candidate_id))
            candidate = result.scalar_one_or_none()
            return CandidateResponse.model_validate(candidate) if candidate else None

    async def get_active_candidate_by_name(self, name: str) -> Optional[CandidateResponse]:
        async with self._session() as db:
            result = await db.execute(
                select(Candidate)
                .where(Candidate.name == name, Candidate.active.is_(True))
                .order_by(Candidate.position)
                .limit(1)
            )
            candidate = result.scalar_one_or_none()
            return CandidateResponse.model_validate(candidate) if candidate else None

    async def create_candidate(self, data: CandidateCreate) -> CandidateResponse:
        async with self._session() as db:
            position = data.position
            if position is None:
                result = await db.execute(select(func.max(Candidate.position)))
                position = (result.scalar() or 0) + 1
            candidate = Candidate(
                name=data.name,
                party=data.party,
                position=position,
                active=data.active,
            )
            db.add(candidate)
            await db.commit()
            await db.refresh(candidate)
            return CandidateResponse.model_validate(candidate)

    # Devices

    async def list_devices(self) -> List[DeviceResponse]:
        async with self._session() as db:
            result = await db.execute(select(Device).order_by(Device.device_id))
            return [DeviceResponse.model_validate(d) for d in result.scalars().all()]

    async def get_device(self, device_id: str) -> Optional[DeviceResponse]:
        async with self._session() as db:
            device = await self._find_device(db, device_id)
            return DeviceResponse.model_validate(device) if device else None

    async def _find_device(self, db: AsyncSession, device_id: str) -> Optional[Device]:
        result = await db.execute(select(Device).where(Device.device_id == device_id))
        return result.scalar_one_or_none()

    async def create_device(self, data: DeviceCreate) -> DeviceResponse:
        async with self._session() as db:
            device = Device(
                device_id=data.device_id,
                name=data.name,
                status=data.status,
                battery_level=data.battery_level,
                location=data.location,
                firmware_version=data.firmware_version,
            )
            db.add(device)
            await db.commit()
            await db.refresh(device)
            return DeviceResponse.model_validate(device)

    async def update_device_status(
        self,
        device_id: str,
        status: DeviceStatus,
        battery_level: Optional[int] = None,
        firmware_version: Optional[str] = None,
    ) -> Optional[DeviceResponse]:
        async with self._session() as db:
            device = await self._find_device(db, device_id)
            if device is None:
                return None
            device.status = status
            if battery_level is not None:
                device.battery_level = battery_level
            if firmware_version is not None:
                device.firmware_version = firmware_version
            await db.commit()
            await db.refresh(device)
            return DeviceResponse.model_validate(device)

    async def touch_device_sync(self, device_id: str) -> Optional[DeviceResponse]:
        async with self._session() as db:
            device = await self._find_device(db, device_id)
            if device is None:
                return None
            device.last_sync = utcnow()
            await db.commit()
            await db.refresh(device)
            return DeviceResponse.model_validate(device)

    # Votes

    async def create_vote(self, data: VoteCreate) -> VoteResponse:
        try:
            async with self._session() as db:
                vote = Vote(
                    voter_id=data.voter_id,
                    candidate_id=data.candidate_id,
                    device_id=data.device_id,
                    fingerprint_hash=data.fingerprint_hash,
                    timestamp=data.timestamp or utcnow(),
                    verified=data.verified,
                    confidence=data.confidence,
                    signal_strength=data.signal_strength,
                )
                db.add(vote)
                await db.commit()
                await db.refresh(vote)
                return VoteResponse.model_validate(vote)
        except DuplicateRecordError:
            if await self._vote_exists(data.voter_id):
                raise DuplicateVoteError(data.voter_id)
            raise

    async def _vote_exists(self, voter_id: str) -> bool:
        async with self._session() as db:
            result = await db.execute(
                select(func.count(Vote.id)).where(Vote.voter_id == voter_id)
            )
            return (result.scalar() or 0) > 0

    async def list_votes(self, limit: Optional[int] = None) -> List[VoteResponse]:
        async with self._session() as db:
            query = select(Vote).order_by(Vote.timestamp.desc())
            if limit is not None:
                query = query.limit(limit)
            result = await db.execute(query)
            return [VoteResponse.model_validate(v) for v in result.scalars().all()]

    async def count_votes(self) -> int:
        async with self._session() as db:
            result = await db.execute(select(func.count(Vote.id)))
            return result.scalar() or 0

    async def count_votes_by_candidate(self) -> Dict[UUID, int]:
        async with self._session() as db:
            result = await db.execute(
                select(Vote.candidate_id, func.count(Vote.id))
                .where(Vote.candidate_id.is_not(None))
                .group_by(Vote.candidate_id)
            )
            return {candidate_id: count for candidate_id, count in result.all()}

    # Security logs

    async def list_security_logs(self) -> List[SecurityLogResponse]:
        async with self._session() as db:
            result = await db.execute(
                select(SecurityLog).order_by(SecurityLog.timestamp.desc())
            )
            return [SecurityLogResponse.model_validate(l) for l in result.scalars().all()]

    async def create_security_log(self, data: SecurityLogCreate) -> SecurityLogResponse:
        async with self._session() as db:
            log = SecurityLog(
                type=data.type,
                severity=data.severity,
                device_id=data.device_id,
                voter_id=data.voter_id,
                description=data.description,
                details=data.details,
                resolved=False,
            )
            db.add(log)
            await db.commit()
            await db.refresh(log)
            return SecurityLogResponse.model_validate(log)

    async def resolve_security_log(self, log_id: UUID) -> Optional[SecurityLogResponse]:
        async with self._session() as db:
            result = await db.execute(select(SecurityLog).where(SecurityLog.id == log_id))
            log = result.scalar_one_or_none()
            if log is None:
                return None
            if not log.resolved:
                log.resolved = True
                await db.commit()
                await db.refresh(log)
            return SecurityLogResponse.model_validate(log)

    # Activity logs

    async def list_activity_logs(self, limit: int = 50) -> List[ActivityLogResponse]:
        async with self._session() as db:
            result = await db.execute(
                select(ActivityLog)
                .order_by(ActivityLog.timestamp.desc())
                .limit(limit)
            )
            return [ActivityLogResponse.model_validate(l) for l in result.scalars().all()]

    async def create_activity_log(self, data: ActivityLogCreate) -> ActivityLogResponse:
        async with self._session() as db:
            log = ActivityLog(
                type=data.type,
                description=data.description,
                user_id=data.user_id,
                device_id=data.device_id,
                details=data.details,
            )
            db.add(log)
            await db.commit()
            await db.refresh(log)
            return ActivityLogResponse.model_validate(log)
