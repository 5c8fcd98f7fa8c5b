"""
Dashboard and tally Pydantic schemas.
"""
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.schemas.base import CamelModel
from app.schemas.election import CandidateResponse


class DashboardStats(CamelModel):
    """Headline numbers for the dashboard."""

    registered_voters: int = Field(..., description="Number of registered voters")
    votes_cast: int = Field(..., description="Number of accepted votes")
    turnout_rate: float = Field(..., description="Votes cast as a percentage of registered voters")
    active_devices: int = Field(..., description="Devices currently online")
    total_devices: int = Field(..., description="All registered devices")


class CandidateTally(CamelModel):
    """Vote count for one candidate."""

    candidate_id: UUID
    count: int
    candidate: CandidateResponse


class VoteLogEntry(CamelModel):
    """Vote projection for the monitoring feed."""

    id: UUID
    voter_id: str = Field(..., description="Masked voter identifier")
    candidate_name: str
    candidate_party: Optional[str] = None
    device_name: Optional[str] = None
    device_location: Optional[str] = None
    timestamp: datetime
    verified: bool
    confidence: Optional[float] = None


class VoterFlagMismatch(CamelModel):
    """Voter whose has_voted flag disagrees with the vote table."""

    voter_id: str
    has_voted: bool
    vote_recorded: bool


class IntegrityReport(CamelModel):
    """Comparison of voter flags against recorded votes."""

    consistent: bool
    checked_voters: int
    votes_without_voter: List[str] = Field(default_factory=list)
    mismatches: List[VoterFlagMismatch] = Field(default_factory=list)
