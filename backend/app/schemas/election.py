"""
Voter, candidate and device Pydantic schemas.
"""
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.election import DeviceStatus
from app.schemas.base import CamelModel


class VoterCreate(CamelModel):
    """Schema for registering a voter."""

    voter_id: str = Field(..., min_length=1, max_length=64, description="External voter identifier")
    full_name: str = Field(..., min_length=1, max_length=200, description="Voter full name")
    fingerprint_hash: str = Field(..., min_length=1, max_length=255, description="Enrolled fingerprint hash")


class VoterBulkCreate(CamelModel):
    """Schema for a bulk voter import."""

    voters: List[VoterCreate] = Field(..., min_length=1, description="Voters to register")


class VoterResponse(CamelModel):
    """Registered voter."""

    id: UUID
    voter_id: str
    full_name: str
    fingerprint_hash: str
    has_voted: bool = False
    created_at: datetime


class CandidateCreate(CamelModel):
    """Schema for creating a candidate."""

    name: str = Field(..., min_length=1, max_length=200, description="Candidate name")
    party: str = Field(..., min_length=1, max_length=200, description="Party affiliation")
    position: Optional[int] = Field(None, ge=0, description="Display position; appended when omitted")
    active: bool = Field(default=True)


class CandidateResponse(CamelModel):
    """Candidate."""

    id: UUID
    name: str
    party: str
    position: int
    active: bool = True


class DeviceCreate(CamelModel):
    """Schema for registering a voting device."""

    device_id: str = Field(..., min_length=1, max_length=64, description="External device identifier")
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    status: DeviceStatus = Field(default=DeviceStatus.OFFLINE)
    battery_level: Optional[int] = Field(None, ge=0, le=100)
    location: Optional[str] = Field(None, max_length=200)
    firmware_version: Optional[str] = Field(None, max_length=50)


class DeviceResponse(CamelModel):
    """Voting device."""

    id: UUID
    device_id: str
    name: str
    status: DeviceStatus
    battery_level: Optional[int] = None
    last_sync: Optional[datetime] = None
    location: Optional[str] = None
    firmware_version: Optional[str] = None


class DeviceHealthReport(CamelModel):
    """Telemetry a device reports about itself."""

    battery_level: Optional[int] = Field(None, ge=0, le=100, description="Battery percentage")
    firmware_version: Optional[str] = Field(None, max_length=50)
    signal_strength: Optional[int] = Field(None, description="Wi-Fi RSSI in dBm")


class SyncVoterEntry(BaseModel):
    """Roster entry cached by a device. Device payloads keep snake_case keys."""

    id: str = Field(..., description="External voter identifier")
    fingerprint_hash: str
    has_voted: bool


class DeviceSyncSnapshot(BaseModel):
    """Roster and ballot snapshot for offline caching on a device."""

    voters: List[SyncVoterEntry]
    candidates: List[str]
    synced_at: datetime
