"""
Tests for the vote intake pipeline and device-facing vote endpoints.
"""
import asyncio
from typing import Optional

import pytest
from httpx import AsyncClient, ASGITransport

from app.main import create_application
from app.models.log import SecurityLogType, Severity, ActivityLogType
from app.schemas.election import CandidateCreate, VoterCreate, VoterResponse
from app.schemas.vote import (
    CandidateById,
    CandidateByName,
    VoteCreate,
    VoteRejection,
    VoteSubmission,
    parse_candidate_ref,
)
from app.services.tally_service import TallyService
from app.core.database import Database
from app.services.vote_service import VoteService, DEVICE_NOT_FOUND, NO_PENDING_VOTERS
from app.storage import MemoryStorage, SqlStorage, StorageError


def vote_payload(**overrides) -> dict:
    payload = {
        "voterId": "V001",
        "fingerprintHash": "hash123",
        "deviceId": "machine_01",
        "confidence": 92.5,
        "signalStrength": -61,
    }
    payload.update(overrides)
    return payload


class SlowLookupStorage(MemoryStorage):
    """Yields to the event loop after every voter lookup."""

    async def get_voter_by_voter_id(self, voter_id: str) -> Optional[VoterResponse]:
        voter = await super().get_voter_by_voter_id(voter_id)
        await asyncio.sleep(0)
        return voter


class SlowLookupSqlStorage(SqlStorage):
    """Yields to the event loop after every voter lookup."""

    async def get_voter_by_voter_id(self, voter_id: str) -> Optional[VoterResponse]:
        voter = await super().get_voter_by_voter_id(voter_id)
        await asyncio.sleep(0)
        return voter


class BrokenFlagStorage(MemoryStorage):
    """Fails the has_voted update that follows the vote insert."""

    async def set_voter_has_voted(self, voter_id: str, has_voted: bool) -> None:
        raise StorageError("connection lost")


class BrokenVoteStorage(MemoryStorage):
    """Fails every vote insert."""

    async def create_vote(self, data: VoteCreate):
        raise StorageError("disk full")


class TestCandidateReference:
    """Test cases for parsing device candidate references."""

    def test_uuid_is_id_reference(self):
        ref = parse_candidate_ref("0b7f8a5e-9a4c-4c43-8a1e-3f6d1c2b9e10")

        assert isinstance(ref, CandidateById)

    def test_other_text_is_name_reference(self):
        assert parse_candidate_ref(" Candidate A ") == CandidateByName("Candidate A")

    def test_missing_reference(self):
        assert parse_candidate_ref(None) is None
        assert parse_candidate_ref("   ") is None


class TestVoteEndpoint:
    """Test cases for POST /esp32/vote."""

    @pytest.mark.asyncio
    async def test_registered_voter_votes(
        self,
        client: AsyncClient,
        admin_client: AsyncClient,
        storage,
        test_candidate,
    ):
        """Register V001, vote once, and check the flag, the row and the audit entry."""
        response = await admin_client.post(
            "/api/voters",
            json={"voterId": "V001", "fullName": "Jane Doe", "fingerprintHash": "hash123"},
        )
        assert response.status_code == 201

        response = await client.post(
            "/api/esp32/vote",
            json=vote_payload(candidateId=str(test_candidate.id)),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert "voteId" in data

        voter = await storage.get_voter_by_voter_id("V001")
        assert voter.has_voted is True
        votes = await storage.list_votes()
        assert len(votes) == 1
        assert votes[0].candidate_id == test_candidate.id

        cast = [log for log in await storage.list_activity_logs() if log.type == ActivityLogType.VOTE_CAST]
        assert len(cast) == 1
        assert "V00***" in cast[0].description
        assert "V001" not in cast[0].description

    @pytest.mark.asyncio
    async def test_second_vote_rejected(
        self,
        client: AsyncClient,
        storage,
        test_voter,
        test_candidate,
    ):
        payload = vote_payload(candidateId=str(test_candidate.id))
        first = await client.post("/api/esp32/vote", json=payload)
        assert first.status_code == 200

        second = await client.post("/api/esp32/vote", json=payload)

        assert second.status_code == 400
        assert second.json()["detail"] == {
            "reason": "already_voted",
            "message": "Voter has already voted",
        }
        assert await storage.count_votes() == 1

        logs = await storage.list_security_logs()
        assert len(logs) == 1
        assert logs[0].type == SecurityLogType.DUPLICATE_ATTEMPT
        assert logs[0].severity == Severity.HIGH
        assert logs[0].voter_id == "V001"

    @pytest.mark.asyncio
    async def test_fingerprint_mismatch_rejected(
        self,
        client: AsyncClient,
        storage,
        test_voter,
        test_candidate,
    ):
        response = await client.post(
            "/api/esp32/vote",
            json=vote_payload(fingerprintHash="wronghash", candidateId=str(test_candidate.id)),
        )

        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "fingerprint_mismatch"
        assert response.json()["detail"]["message"] == "Fingerprint verification failed"
        assert await storage.count_votes() == 0

        voter = await storage.get_voter_by_voter_id("V001")
        assert voter.has_voted is False

        logs = await storage.list_security_logs()
        assert len(logs) == 1
        assert logs[0].type == SecurityLogType.UNREGISTERED_FINGERPRINT
        assert logs[0].severity == Severity.HIGH
        assert "mismatch" in logs[0].description.lower()

    @pytest.mark.asyncio
    async def test_unregistered_voter_rejected(self, client: AsyncClient, storage):
        response = await client.post("/api/esp32/vote", json=vote_payload(voterId="X999"))

        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "voter_not_registered"
        assert await storage.count_votes() == 0

        logs = await storage.list_security_logs()
        assert len(logs) == 1
        assert logs[0].type == SecurityLogType.UNREGISTERED_FINGERPRINT
        assert logs[0].severity == Severity.MEDIUM

    @pytest.mark.asyncio
    async def test_low_confidence_rejected(self, client: AsyncClient, storage, test_voter):
        response = await client.post("/api/esp32/vote", json=vote_payload(confidence=12))

        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "low_confidence"
        assert await storage.count_votes() == 0

        logs = await storage.list_security_logs()
        assert logs[0].type == SecurityLogType.LOW_CONFIDENCE
        assert logs[0].details["confidence"] == 12

    @pytest.mark.asyncio
    async def test_confidence_at_threshold_accepted(self, client: AsyncClient, test_voter):
        response = await client.post("/api/esp32/vote", json=vote_payload(confidence=50))

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_candidate_resolved_by_name(
        self,
        client: AsyncClient,
        storage,
        test_voter,
        test_candidates,
    ):
        response = await client.post(
            "/api/esp32/vote",
            json=vote_payload(candidateId="Candidate B"),
        )

        assert response.status_code == 200
        votes = await storage.list_votes()
        assert votes[0].candidate_id == test_candidates[1].id

    @pytest.mark.asyncio
    async def test_unresolved_candidate_still_records_vote(
        self,
        client: AsyncClient,
        storage,
        test_voter,
        test_candidates,
    ):
        await storage.create_candidate(CandidateCreate(name="Withdrawn", party="None", active=False))

        response = await client.post(
            "/api/esp32/vote",
            json=vote_payload(candidateId="Withdrawn"),
        )

        assert response.status_code == 200
        votes = await storage.list_votes()
        assert votes[0].candidate_id is None
        assert (await storage.get_voter_by_voter_id("V001")).has_voted is True

    @pytest.mark.asyncio
    async def test_vote_updates_device(
        self,
        client: AsyncClient,
        storage,
        test_voter,
        test_device,
    ):
        assert test_device.last_sync is None

        response = await client.post("/api/esp32/vote", json=vote_payload())

        assert response.status_code == 200
        votes = await storage.list_votes()
        assert votes[0].device_id == test_device.id
        device = await storage.get_device("machine_01")
        assert device.last_sync is not None

    @pytest.mark.asyncio
    async def test_snake_case_payload_accepted(self, client: AsyncClient, test_voter):
        response = await client.post(
            "/api/esp32/vote",
            json={"voter_id": "V001", "fingerprint_hash": "hash123"},
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_malformed_payload(self, client: AsyncClient):
        response = await client.post("/api/esp32/vote", json={"voterId": "V001"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_out_of_range_timestamp_rejected(self, client: AsyncClient, storage, test_voter):
        response = await client.post("/api/esp32/vote", json=vote_payload(timestamp=1e20))

        assert response.status_code == 422
        assert await storage.count_votes() == 0
        assert await storage.list_security_logs() == []
        assert (await storage.get_voter_by_voter_id("V001")).has_voted is False

    @pytest.mark.asyncio
    async def test_device_key_required_when_configured(self, settings, storage, test_voter):
        app = create_application(
            settings=settings.model_copy(update={"DEVICE_API_KEY": "device-secret"}),
            storage=storage,
        )

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
            missing = await client.post("/api/esp32/vote", json=vote_payload())
            wrong = await client.post(
                "/api/esp32/vote",
                json=vote_payload(),
                headers={"X-Device-Key": "guess"},
            )
            accepted = await client.post(
                "/api/esp32/vote",
                json=vote_payload(),
                headers={"X-Device-Key": "device-secret"},
            )

        assert missing.status_code == 401
        assert wrong.status_code == 401
        assert accepted.status_code == 200

    @pytest.mark.asyncio
    async def test_storage_failure_is_generic_500(self, settings):
        storage = BrokenVoteStorage()
        await storage.create_voter(VoterCreate(voter_id="V001", full_name="Jane Doe", fingerprint_hash="hash123"))
        app = create_application(settings=settings, storage=storage)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
            response = await client.post("/api/esp32/vote", json=vote_payload())

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}
        assert await storage.list_security_logs() == []


class TestOfflineSync:
    """Test cases for POST /esp32/sync-offline-votes."""

    @pytest.mark.asyncio
    async def test_batch_reports_each_item(
        self,
        client: AsyncClient,
        storage,
        test_voter,
        test_candidate,
    ):
        await storage.create_voter(VoterCreate(voter_id="V002", full_name="John Roe", fingerprint_hash="hash456"))

        response = await client.post(
            "/api/esp32/sync-offline-votes",
            json=[
                vote_payload(candidateId=str(test_candidate.id), timestamp=1700000000),
                vote_payload(candidateId=str(test_candidate.id)),
                vote_payload(voterId="X999"),
                vote_payload(voterId="V002", fingerprintHash="hash456", confidence=5),
            ],
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 4
        assert data["accepted"] == 2
        assert data["rejected"] == 2

        results = data["results"]
        assert [r["index"] for r in results] == [0, 1, 2, 3]
        assert results[0]["success"] is True
        assert results[1]["reason"] == "already_voted"
        assert results[2]["reason"] == "voter_not_registered"
        # The confidence gate does not apply to buffered votes
        assert results[3]["success"] is True

        assert await storage.count_votes() == 2

    @pytest.mark.asyncio
    async def test_batch_still_checks_fingerprint(self, client: AsyncClient, storage, test_voter):
        response = await client.post(
            "/api/esp32/sync-offline-votes",
            json=[vote_payload(fingerprintHash="wronghash")],
        )

        assert response.status_code == 200
        assert response.json()["results"][0]["reason"] == "fingerprint_mismatch"
        assert await storage.count_votes() == 0

    @pytest.mark.asyncio
    async def test_batch_keeps_capture_time(self, client: AsyncClient, storage, test_voter):
        response = await client.post(
            "/api/esp32/sync-offline-votes",
            json=[vote_payload(timestamp=1700000000)],
        )

        assert response.status_code == 200
        votes = await storage.list_votes()
        assert votes[0].timestamp.year == 2023

    @pytest.mark.asyncio
    async def test_invalid_item_does_not_fail_batch(self, client: AsyncClient, storage, test_voter):
        await storage.create_voter(VoterCreate(voter_id="V002", full_name="John Roe", fingerprint_hash="hash456"))

        response = await client.post(
            "/api/esp32/sync-offline-votes",
            json=[
                vote_payload(),
                vote_payload(voterId="V002", fingerprintHash="hash456", timestamp=1e20),
                {"deviceId": "machine_01"},
                "garbage",
            ],
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 4
        assert data["accepted"] == 1
        assert data["rejected"] == 3

        results = data["results"]
        assert results[0]["success"] is True
        assert results[1]["reason"] == "invalid_payload"
        assert results[1]["voterId"] == "V002"
        assert results[2]["reason"] == "invalid_payload"
        assert results[2]["voterId"] is None
        assert results[3]["reason"] == "invalid_payload"

        assert await storage.count_votes() == 1
        assert (await storage.get_voter_by_voter_id("V002")).has_voted is False

    @pytest.mark.asyncio
    async def test_batch_survives_storage_failure(self, settings):
        storage = BrokenVoteStorage()
        await storage.create_voter(VoterCreate(voter_id="V001", full_name="Jane Doe", fingerprint_hash="hash123"))
        service = VoteService(storage, settings)

        report = await service.sync_offline_votes([
            vote_payload(),
            vote_payload(voterId="X999", fingerprintHash="nope"),
        ])

        assert report.total == 2
        assert report.accepted == 0
        assert report.results[0].reason == "storage_error"
        assert report.results[1].reason == "voter_not_registered"


class TestTestVote:
    """Test cases for POST /devices/{deviceId}/test-vote."""

    @pytest.mark.asyncio
    async def test_cast_test_vote(
        self,
        admin_client: AsyncClient,
        storage,
        test_voter,
        test_candidate,
        test_device,
    ):
        response = await admin_client.post("/api/devices/machine_01/test-vote")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert (await storage.get_voter_by_voter_id("V001")).has_voted is True
        votes = await storage.list_votes()
        assert votes[0].candidate_id == test_candidate.id
        assert votes[0].device_id == test_device.id

    @pytest.mark.asyncio
    async def test_unknown_device(self, admin_client: AsyncClient, test_voter):
        response = await admin_client.post("/api/devices/missing/test-vote")

        assert response.status_code == 404
        assert response.json()["detail"] == DEVICE_NOT_FOUND

    @pytest.mark.asyncio
    async def test_no_pending_voters(self, admin_client: AsyncClient, test_device):
        response = await admin_client.post("/api/devices/machine_01/test-vote")

        assert response.status_code == 400
        assert response.json()["detail"] == NO_PENDING_VOTERS

    @pytest.mark.asyncio
    async def test_requires_operator(self, observer_client: AsyncClient, test_voter, test_device):
        response = await observer_client.post("/api/devices/machine_01/test-vote")

        assert response.status_code == 403


class TestVoteConsistency:
    """Test cases for concurrent submissions and partial commits."""

    @pytest.mark.asyncio
    async def test_concurrent_submissions_record_one_vote(self, settings):
        storage = SlowLookupStorage()
        await storage.create_voter(VoterCreate(voter_id="V001", full_name="Jane Doe", fingerprint_hash="hash123"))
        service = VoteService(storage, settings)
        submission = VoteSubmission(voter_id="V001", fingerprint_hash="hash123")

        results = await asyncio.gather(
            service.submit_vote(submission),
            service.submit_vote(submission),
        )

        rejections = [rejection for _, rejection in results]
        assert rejections.count(None) == 1
        assert rejections.count(VoteRejection.ALREADY_VOTED) == 1
        assert await storage.count_votes() == 1
        assert (await storage.get_voter_by_voter_id("V001")).has_voted is True

        logs = await storage.list_security_logs()
        assert [log.type for log in logs] == [SecurityLogType.DUPLICATE_ATTEMPT]

    @pytest.mark.asyncio
    async def test_concurrent_submissions_record_one_sql_vote(self, settings, tmp_path):
        storage = SlowLookupSqlStorage(Database(f"sqlite+aiosqlite:///{tmp_path / 'votes.db'}"))
        await storage.connect()
        try:
            await storage.create_voter(VoterCreate(voter_id="V001", full_name="Jane Doe", fingerprint_hash="hash123"))
            service = VoteService(storage, settings)
            submission = VoteSubmission(voter_id="V001", fingerprint_hash="hash123")

            results = await asyncio.gather(
                service.submit_vote(submission),
                service.submit_vote(submission),
            )

            rejections = [rejection for _, rejection in results]
            assert rejections.count(None) == 1
            assert rejections.count(VoteRejection.ALREADY_VOTED) == 1
            assert await storage.count_votes() == 1
            assert (await storage.get_voter_by_voter_id("V001")).has_voted is True

            logs = await storage.list_security_logs()
            assert [log.type for log in logs] == [SecurityLogType.DUPLICATE_ATTEMPT]
        finally:
            await storage.close()

    @pytest.mark.asyncio
    async def test_unflagged_vote_is_repaired(self, settings, storage, test_voter):
        # A vote stored without its flag update
        await storage.create_vote(VoteCreate(voter_id="V001", fingerprint_hash="hash123"))

        report = await TallyService(storage).integrity_report()
        assert report.consistent is False
        assert report.mismatches[0].voter_id == "V001"
        assert report.mismatches[0].vote_recorded is True

        vote, rejection = await VoteService(storage, settings).submit_vote(
            VoteSubmission(voter_id="V001", fingerprint_hash="hash123")
        )

        assert vote is None
        assert rejection == VoteRejection.ALREADY_VOTED
        assert await storage.count_votes() == 1
        assert (await storage.get_voter_by_voter_id("V001")).has_voted is True
        assert (await TallyService(storage).integrity_report()).consistent is True

        logs = await storage.list_security_logs()
        assert logs[0].type == SecurityLogType.DUPLICATE_ATTEMPT

    @pytest.mark.asyncio
    async def test_failed_flag_update_propagates(self, settings):
        storage = BrokenFlagStorage()
        await storage.create_voter(VoterCreate(voter_id="V001", full_name="Jane Doe", fingerprint_hash="hash123"))
        service = VoteService(storage, settings)

        with pytest.raises(StorageError):
            await service.submit_vote(VoteSubmission(voter_id="V001", fingerprint_hash="hash123"))

        assert await storage.count_votes() == 1
        report = await TallyService(storage).integrity_report()
        assert report.consistent is False
