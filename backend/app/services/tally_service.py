"""
Tally service computing dashboard statistics and per-candidate results.
"""
from typing import List

from app.core.security import mask_voter_id
from app.models.election import DeviceStatus
from app.schemas.tally import (
    DashboardStats,
    CandidateTally,
    VoteLogEntry,
    IntegrityReport,
    VoterFlagMismatch,
)
from app.storage.base import Storage


UNKNOWN_CANDIDATE = "Unknown Candidate"


class TallyService:
    """Service for read-side aggregation. Nothing here is cached."""

    def __init__(self, storage: Storage):
        self.storage = storage

    async def dashboard_stats(self) -> DashboardStats:
        """Headline numbers computed from current store state."""
        registered_voters = await self.storage.count_voters()
        votes_cast = await self.storage.count_votes()
        devices = await self.storage.list_devices()

        turnout_rate = (votes_cast / registered_voters * 100) if registered_voters > 0 else 0.0

        return DashboardStats(
            registered_voters=registered_voters,
            votes_cast=votes_cast,
            turnout_rate=turnout_rate,
            active_devices=sum(1 for d in devices if d.status == DeviceStatus.ONLINE),
            total_devices=len(devices),
        )

    async def votes_by_candidate(self) -> List[CandidateTally]:
        """
        Vote counts joined to candidates, in ballot order.
        Counts for candidate ids that no longer resolve are dropped.
        """
        counts = await self.storage.count_votes_by_candidate()
        candidates = await self.storage.list_candidates()

        return [
            CandidateTally(
                candidate_id=candidate.id,
                count=counts[candidate.id],
                candidate=candidate,
            )
            for candidate in candidates
            if candidate.id in counts
        ]

    async def vote_logs(self, limit: int = 100) -> List[VoteLogEntry]:
        """Newest votes with masked voter ids and resolved names."""
        votes = await self.storage.list_votes(limit=limit)
        candidates = {c.id: c for c in await self.storage.list_candidates()}
        devices = {d.id: d for d in await self.storage.list_devices()}

        entries = []
        for vote in votes:
            candidate = candidates.get(vote.candidate_id) if vote.candidate_id else None
            device = devices.get(vote.device_id) if vote.device_id else None
            entries.append(VoteLogEntry(
                id=vote.id,
                voter_id=mask_voter_id(vote.voter_id),
                candidate_name=candidate.name if candidate else UNKNOWN_CANDIDATE,
                candidate_party=candidate.party if candidate else None,
                device_name=device.name if device else None,
                device_location=device.location if device else None,
                timestamp=vote.timestamp,
                verified=vote.verified,
                confidence=vote.confidence,
            ))
        return entries

    async def integrity_report(self) -> IntegrityReport:
        """
        Compare every voter's has_voted flag with the vote table.

        A vote stored without its flag update is the one partial-commit
        state the pipeline can leave behind.
        """
        voters = await self.storage.list_voters()
        voted_ids = {v.voter_id for v in await self.storage.list_votes()}
        registered_ids = {v.voter_id for v in voters}

        mismatches = [
            VoterFlagMismatch(
                voter_id=voter.voter_id,
                has_voted=voter.has_voted,
                vote_recorded=voter.voter_id in voted_ids,
            )
            for voter in voters
            if voter.has_voted != (voter.voter_id in voted_ids)
        ]
        orphaned = sorted(voted_ids - registered_ids)

        return IntegrityReport(
            consistent=not mismatches and not orphaned,
            checked_voters=len(voters),
            votes_without_voter=orphaned,
            mismatches=mismatches,
        )
