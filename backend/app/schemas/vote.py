"""
Vote-related Pydantic schemas.
"""
import enum
from dataclasses import dataclass
from typing import Optional, List, Union
from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from app.core.clock import from_epoch_seconds
from app.schemas.base import CamelModel


@dataclass(frozen=True)
class CandidateById:
    """Candidate referenced by internal id."""
    id: UUID


@dataclass(frozen=True)
class CandidateByName:
    """Candidate referenced by display name."""
    name: str


CandidateRef = Union[CandidateById, CandidateByName]


def parse_candidate_ref(raw: Optional[str]) -> Optional[CandidateRef]:
    """
    Classify the device-supplied candidate reference.

    Devices send either a candidate id or the candidate name they cached
    from the sync snapshot.
    """
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    try:
        return CandidateById(UUID(raw))
    except ValueError:
        return CandidateByName(raw)


class VoteRejection(str, enum.Enum):
    """Reasons the intake pipeline refuses a vote."""
    VOTER_NOT_REGISTERED = "voter_not_registered"
    ALREADY_VOTED = "already_voted"
    FINGERPRINT_MISMATCH = "fingerprint_mismatch"
    LOW_CONFIDENCE = "low_confidence"

    @property
    def message(self) -> str:
        return REJECTION_MESSAGES[self]


REJECTION_MESSAGES = {
    VoteRejection.VOTER_NOT_REGISTERED: "Voter not registered",
    VoteRejection.ALREADY_VOTED: "Voter has already voted",
    VoteRejection.FINGERPRINT_MISMATCH: "Fingerprint verification failed",
    VoteRejection.LOW_CONFIDENCE: "Biometric confidence below threshold",
}


@dataclass(frozen=True)
class VoteSubmission:
    """A vote as handed to the intake pipeline."""
    voter_id: str
    fingerprint_hash: str
    candidate: Optional[CandidateRef] = None
    device_id: Optional[str] = None
    confidence: Optional[float] = None
    signal_strength: Optional[int] = None
    timestamp: Optional[datetime] = None


class VoteSubmitRequest(CamelModel):
    """Vote payload posted by a biometric device."""

    voter_id: str = Field(..., min_length=1, max_length=64, description="External voter identifier")
    fingerprint_hash: str = Field(..., min_length=1, max_length=255, description="Fingerprint hash read by the sensor")
    candidate_id: Optional[str] = Field(
        None,
        description="Candidate id, or the candidate name cached by the device"
    )
    device_id: Optional[str] = Field(None, max_length=64, description="External device identifier")
    confidence: Optional[float] = Field(None, ge=0, le=100, description="Sensor match confidence (0-100)")
    signal_strength: Optional[int] = Field(None, description="Wi-Fi RSSI in dBm")
    timestamp: Optional[float] = Field(None, ge=0, description="Capture time in seconds since epoch")

    @field_validator("voter_id", "fingerprint_hash")
    @classmethod
    def strip_identifiers(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("timestamp")
    @classmethod
    def check_timestamp_range(cls, v: Optional[float]) -> Optional[float]:
        if v is not None:
            from_epoch_seconds(v)
        return v

    def to_submission(self) -> VoteSubmission:
        return VoteSubmission(
            voter_id=self.voter_id,
            fingerprint_hash=self.fingerprint_hash,
            candidate=parse_candidate_ref(self.candidate_id),
            device_id=self.device_id,
            confidence=self.confidence,
            signal_strength=self.signal_strength,
            timestamp=from_epoch_seconds(self.timestamp) if self.timestamp is not None else None,
        )


class VoteCreate(CamelModel):
    """Vote row to insert."""

    voter_id: str
    fingerprint_hash: str
    candidate_id: Optional[UUID] = None
    device_id: Optional[UUID] = None
    confidence: Optional[float] = None
    signal_strength: Optional[int] = None
    timestamp: Optional[datetime] = None
    verified: bool = True


class VoteResponse(CamelModel):
    """Stored vote."""

    id: UUID
    voter_id: str
    candidate_id: Optional[UUID] = None
    device_id: Optional[UUID] = None
    fingerprint_hash: str
    timestamp: datetime
    verified: bool = True
    confidence: Optional[float] = None
    signal_strength: Optional[int] = None


class VoteSubmitResponse(CamelModel):
    """Accepted vote."""

    success: bool = Field(default=True)
    vote_id: UUID = Field(..., description="ID of the recorded vote")


class OfflineVoteResult(CamelModel):
    """Outcome of one replayed offline vote."""

    index: int
    voter_id: Optional[str] = None
    success: bool
    vote_id: Optional[UUID] = None
    reason: Optional[str] = None
    message: Optional[str] = None


class OfflineSyncResponse(CamelModel):
    """Per-item report for an offline batch replay."""

    total: int
    accepted: int
    rejected: int
    results: List[OfflineVoteResult]
