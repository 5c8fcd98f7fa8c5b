"""
Vote service: the intake pipeline for votes submitted by biometric devices.
"""
import logging
from typing import Any, List, Optional, Tuple
from uuid import UUID

from pydantic import ValidationError

from app.core.config import Settings
from app.core.security import fingerprints_match, mask_voter_id
from app.models.log import SecurityLogType, Severity, ActivityLogType
from app.schemas.vote import (
    CandidateById,
    CandidateRef,
    VoteCreate,
    VoteRejection,
    VoteResponse,
    VoteSubmission,
    VoteSubmitRequest,
    OfflineVoteResult,
    OfflineSyncResponse,
)
from app.services.audit_service import AuditService
from app.storage.base import Storage, StorageError, DuplicateVoteError


logger = logging.getLogger(__name__)


DEVICE_NOT_FOUND = "Device not found"
NO_PENDING_VOTERS = "No pending voters available for a test vote"


class VoteService:
    """Service for vote operations."""

    def __init__(self, storage: Storage, settings: Settings):
        self.storage = storage
        self.settings = settings
        self.audit = AuditService(storage)

    async def submit_vote(
        self,
        submission: VoteSubmission,
        check_confidence: bool = True
    ) -> Tuple[Optional[VoteResponse], Optional[VoteRejection]]:
        """
        Validate and record one vote.

        Checks run in order and stop at the first failure: voter exists,
        voter has not voted, fingerprint matches, confidence is high enough.
        Every rejection leaves a security event. Storage failures propagate.

        Returns:
            Tuple of (vote, rejection); exactly one is set
        """
        voter_id = submission.voter_id
        telemetry = self._telemetry(submission)

        voter = await self.storage.get_voter_by_voter_id(voter_id)
        if voter is None:
            await self.audit.security_event(
                SecurityLogType.UNREGISTERED_FINGERPRINT,
                Severity.MEDIUM,
                f"Unregistered voter ID {voter_id} attempted to vote",
                device_id=submission.device_id,
                voter_id=voter_id,
                details=telemetry,
            )
            return None, VoteRejection.VOTER_NOT_REGISTERED

        if voter.has_voted:
            return None, await self._reject_duplicate(submission, telemetry)

        if not fingerprints_match(voter.fingerprint_hash, submission.fingerprint_hash):
            await self.audit.security_event(
                SecurityLogType.UNREGISTERED_FINGERPRINT,
                Severity.HIGH,
                f"Fingerprint mismatch for voter {voter_id}",
                device_id=submission.device_id,
                voter_id=voter_id,
                details=telemetry,
            )
            return None, VoteRejection.FINGERPRINT_MISMATCH

        # Sensor-level false accepts can still produce a matching hash
        if (
            check_confidence
            and submission.confidence is not None
            and submission.confidence < self.settings.CONFIDENCE_THRESHOLD
        ):
            await self.audit.security_event(
                SecurityLogType.LOW_CONFIDENCE,
                Severity.MEDIUM,
                f"Low biometric confidence ({submission.confidence:g}) for voter {voter_id}",
                device_id=submission.device_id,
                voter_id=voter_id,
                details=telemetry,
            )
            return None, VoteRejection.LOW_CONFIDENCE

        candidate_id = await self._resolve_candidate(submission.candidate)

        device = None
        if submission.device_id:
            device = await self.storage.get_device(submission.device_id)

        try:
            vote = await self.storage.create_vote(VoteCreate(
                voter_id=voter_id,
                fingerprint_hash=submission.fingerprint_hash,
                candidate_id=candidate_id,
                device_id=device.id if device else None,
                confidence=submission.confidence,
                signal_strength=submission.signal_strength,
                timestamp=submission.timestamp,
            ))
        except DuplicateVoteError:
            # Lost a race with a concurrent submission, or the flag was never set
            await self.storage.set_voter_has_voted(voter_id, True)
            return None, await self._reject_duplicate(submission, telemetry)

        masked = mask_voter_id(voter_id)
        try:
            await self.storage.set_voter_has_voted(voter_id, True)
        except StorageError:
            logger.error(
                "Vote %s stored but voter %s flag not updated; integrity report will flag it",
                vote.id,
                masked,
            )
            raise

        if device:
            await self.storage.touch_device_sync(device.device_id)

        await self.audit.activity(
            ActivityLogType.VOTE_CAST,
            f"Vote cast by voter {masked}",
            device_id=submission.device_id,
            details={
                "maskedVoterId": masked,
                "candidateId": str(candidate_id) if candidate_id else None,
            },
        )

        return vote, None

    async def _reject_duplicate(
        self,
        submission: VoteSubmission,
        telemetry: dict
    ) -> VoteRejection:
        await self.audit.security_event(
            SecurityLogType.DUPLICATE_ATTEMPT,
            Severity.HIGH,
            f"Duplicate vote attempt by voter {submission.voter_id}",
            device_id=submission.device_id,
            voter_id=submission.voter_id,
            details=telemetry,
        )
        return VoteRejection.ALREADY_VOTED

    async def _resolve_candidate(self, ref: Optional[CandidateRef]) -> Optional[UUID]:
        """
        Resolve a candidate reference to an internal id.
        Unknown references leave the vote without a candidate.
        """
        if ref is None:
            return None

        if isinstance(ref, CandidateById):
            candidate = await self.storage.get_candidate(ref.id)
            if candidate:
                return candidate.id
            name = str(ref.id)
        else:
            name = ref.name

        candidate = await self.storage.get_active_candidate_by_name(name)
        if candidate:
            return candidate.id

        logger.info("Candidate reference %r did not resolve; recording vote without candidate", name)
        return None

    def _telemetry(self, submission: VoteSubmission) -> dict:
        details = {}
        if submission.device_id:
            details["deviceId"] = submission.device_id
        if submission.confidence is not None:
            details["confidence"] = submission.confidence
        if submission.signal_strength is not None:
            details["signalStrength"] = submission.signal_strength
        return details

    async def sync_offline_votes(
        self,
        payloads: List[Any]
    ) -> OfflineSyncResponse:
        """
        Replay votes a device buffered while disconnected.

        Each raw item is validated on its own and then goes through the
        pipeline without the confidence gate. One failing item never stops
        the rest of the batch.
        """
        results = []

        for index, payload in enumerate(payloads):
            try:
                submission = VoteSubmitRequest.model_validate(payload).to_submission()
            except ValidationError as e:
                logger.info("Offline vote %d rejected as invalid: %s", index, e.error_count())
                results.append(OfflineVoteResult(
                    index=index,
                    voter_id=_raw_voter_id(payload),
                    success=False,
                    reason="invalid_payload",
                    message="Invalid vote payload",
                ))
                continue

            try:
                vote, rejection = await self.submit_vote(submission, check_confidence=False)
            except StorageError:
                logger.exception("Offline vote %d could not be stored", index)
                results.append(OfflineVoteResult(
                    index=index,
                    voter_id=submission.voter_id,
                    success=False,
                    reason="storage_error",
                    message="Failed to store vote",
                ))
                continue

            if rejection:
                results.append(OfflineVoteResult(
                    index=index,
                    voter_id=submission.voter_id,
                    success=False,
                    reason=rejection.value,
                    message=rejection.message,
                ))
            else:
                results.append(OfflineVoteResult(
                    index=index,
                    voter_id=submission.voter_id,
                    success=True,
                    vote_id=vote.id,
                ))

        accepted = sum(1 for r in results if r.success)
        return OfflineSyncResponse(
            total=len(results),
            accepted=accepted,
            rejected=len(results) - accepted,
            results=results,
        )

    async def cast_test_vote(
        self,
        device_id: str
    ) -> Tuple[Optional[VoteResponse], Optional[str]]:
        """
        Cast a synthetic vote from a device for the first voter who has not
        voted yet, using that voter's own fingerprint hash.

        Returns:
            Tuple of (vote, error)
        """
        device = await self.storage.get_device(device_id)
        if device is None:
            return None, DEVICE_NOT_FOUND

        voters = await self.storage.list_voters()
        pending = next((v for v in voters if not v.has_voted), None)
        if pending is None:
            return None, NO_PENDING_VOTERS

        candidates = await self.storage.list_candidates()
        candidate = next((c for c in candidates if c.active), None)

        vote, rejection = await self.submit_vote(VoteSubmission(
            voter_id=pending.voter_id,
            fingerprint_hash=pending.fingerprint_hash,
            candidate=CandidateById(candidate.id) if candidate else None,
            device_id=device.device_id,
            confidence=100.0,
        ))
        if rejection:
            return None, rejection.message

        return vote, None


def _raw_voter_id(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    voter_id = payload.get("voterId", payload.get("voter_id"))
    return voter_id if isinstance(voter_id, str) else None
