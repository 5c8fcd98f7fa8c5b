"""
Tests for dashboard statistics, results, monitoring feeds and logs.
"""
import uuid

import pytest
from httpx import AsyncClient

from app.models.election import DeviceStatus
from app.models.log import SecurityLogType, Severity
from app.schemas.election import CandidateCreate, DeviceCreate, VoterCreate
from app.schemas.logs import SecurityLogCreate
from app.schemas.vote import VoteCreate
from app.services.tally_service import TallyService, UNKNOWN_CANDIDATE
from app.storage import MemoryStorage


class TestTallyService:
    """Test cases for aggregation edge cases."""

    @pytest.mark.asyncio
    async def test_turnout_zero_without_voters(self):
        storage = MemoryStorage()
        await storage.create_vote(VoteCreate(voter_id="GHOST", fingerprint_hash="h"))

        stats = await TallyService(storage).dashboard_stats()

        assert stats.registered_voters == 0
        assert stats.votes_cast == 1
        assert stats.turnout_rate == 0

    @pytest.mark.asyncio
    async def test_orphaned_candidates_dropped(self):
        storage = MemoryStorage()
        candidate = await storage.create_candidate(CandidateCreate(name="Candidate A", party="Party Alpha"))
        await storage.create_vote(VoteCreate(voter_id="V001", fingerprint_hash="h", candidate_id=candidate.id))
        await storage.create_vote(VoteCreate(voter_id="V002", fingerprint_hash="h", candidate_id=uuid.uuid4()))
        await storage.create_vote(VoteCreate(voter_id="V003", fingerprint_hash="h"))

        tallies = await TallyService(storage).votes_by_candidate()

        assert len(tallies) == 1
        assert tallies[0].candidate_id == candidate.id
        assert tallies[0].count == 1

    @pytest.mark.asyncio
    async def test_vote_log_sentinel_for_unknown_candidate(self):
        storage = MemoryStorage()
        await storage.create_vote(VoteCreate(voter_id="V001", fingerprint_hash="h", candidate_id=uuid.uuid4()))

        entries = await TallyService(storage).vote_logs()

        assert entries[0].candidate_name == UNKNOWN_CANDIDATE
        assert entries[0].candidate_party is None

    @pytest.mark.asyncio
    async def test_integrity_reports_votes_without_voter(self):
        storage = MemoryStorage()
        await storage.create_vote(VoteCreate(voter_id="GHOST", fingerprint_hash="h"))

        report = await TallyService(storage).integrity_report()

        assert report.consistent is False
        assert report.votes_without_voter == ["GHOST"]


class TestDashboardEndpoints:
    """Test cases for dashboard and results endpoints."""

    @pytest.mark.asyncio
    async def test_stats(self, admin_client: AsyncClient, client: AsyncClient, storage, test_voter, test_device):
        await storage.create_voter(VoterCreate(voter_id="V002", full_name="John Roe", fingerprint_hash="hash456"))
        await storage.create_device(DeviceCreate(device_id="machine_02", name="Device-02", status=DeviceStatus.WARNING))
        await client.post("/api/esp32/vote", json={"voterId": "V001", "fingerprintHash": "hash123"})

        response = await admin_client.get("/api/dashboard/stats")

        assert response.status_code == 200
        assert response.json() == {
            "registeredVoters": 2,
            "votesCast": 1,
            "turnoutRate": 50.0,
            "activeDevices": 1,
            "totalDevices": 2,
        }

    @pytest.mark.asyncio
    async def test_stats_empty(self, admin_client: AsyncClient):
        response = await admin_client.get("/api/dashboard/stats")

        assert response.status_code == 200
        assert response.json()["turnoutRate"] == 0

    @pytest.mark.asyncio
    async def test_results_in_ballot_order(
        self,
        admin_client: AsyncClient,
        client: AsyncClient,
        storage,
        test_candidates,
    ):
        for index, name in enumerate(["Candidate C", "Candidate A", "Candidate C"]):
            voter_id = f"V00{index}"
            await storage.create_voter(VoterCreate(voter_id=voter_id, full_name="Voter", fingerprint_hash="hash"))
            response = await client.post(
                "/api/esp32/vote",
                json={"voterId": voter_id, "fingerprintHash": "hash", "candidateId": name},
            )
            assert response.status_code == 200

        response = await admin_client.get("/api/votes/results")

        assert response.status_code == 200
        results = response.json()
        assert [(r["candidate"]["name"], r["count"]) for r in results] == [
            ("Candidate A", 1),
            ("Candidate C", 2),
        ]
        assert results[0]["candidateId"] == str(test_candidates[0].id)

    @pytest.mark.asyncio
    async def test_vote_logs_mask_voter_ids(
        self,
        admin_client: AsyncClient,
        client: AsyncClient,
        test_voter,
        test_candidate,
        test_device,
    ):
        await client.post(
            "/api/esp32/vote",
            json={"voterId": "V001", "fingerprintHash": "hash123", "candidateId": str(test_candidate.id), "deviceId": "machine_01"},
        )

        response = await admin_client.get("/api/votes/logs", params={"limit": 10})

        assert response.status_code == 200
        entry = response.json()[0]
        assert entry["voterId"] == "V00***"
        assert entry["candidateName"] == "Candidate A"
        assert entry["candidateParty"] == "Party Alpha"
        assert entry["deviceName"] == "Device-01"
        assert entry["deviceLocation"] == "Building A"

    @pytest.mark.asyncio
    async def test_vote_logs_limit(self, admin_client: AsyncClient, client: AsyncClient, storage):
        for index in range(3):
            await storage.create_voter(VoterCreate(voter_id=f"V10{index}", full_name="Voter", fingerprint_hash="hash"))
            await client.post("/api/esp32/vote", json={"voterId": f"V10{index}", "fingerprintHash": "hash"})

        response = await admin_client.get("/api/votes/logs", params={"limit": 2})

        assert response.status_code == 200
        assert len(response.json()) == 2

    @pytest.mark.asyncio
    async def test_integrity_endpoint(self, admin_client: AsyncClient, client: AsyncClient, test_voter):
        await client.post("/api/esp32/vote", json={"voterId": "V001", "fingerprintHash": "hash123"})

        response = await admin_client.get("/api/votes/integrity")

        assert response.status_code == 200
        assert response.json()["consistent"] is True
        assert response.json()["checkedVoters"] == 1


class TestSecurityLogs:
    """Test cases for security and activity log endpoints."""

    @pytest.mark.asyncio
    async def test_resolve_is_idempotent(self, admin_client: AsyncClient, storage):
        log = await storage.create_security_log(SecurityLogCreate(
            type=SecurityLogType.DEVICE_TAMPERING,
            severity=Severity.CRITICAL,
            device_id="machine_01",
            description="Enclosure opened",
        ))

        first = await admin_client.post(f"/api/security-logs/{log.id}/resolve")
        second = await admin_client.post(f"/api/security-logs/{log.id}/resolve")

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.json() == {"success": True}

        response = await admin_client.get("/api/security-logs")
        entries = response.json()
        assert len(entries) == 1
        assert entries[0]["id"] == str(log.id)
        assert entries[0]["resolved"] is True

    @pytest.mark.asyncio
    async def test_resolve_unknown_log(self, admin_client: AsyncClient):
        response = await admin_client.post(f"/api/security-logs/{uuid.uuid4()}/resolve")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_resolve_requires_operator(self, observer_client: AsyncClient, storage):
        log = await storage.create_security_log(SecurityLogCreate(
            type=SecurityLogType.LOGIN_ATTEMPT,
            description="Failed login attempt",
        ))

        response = await observer_client.post(f"/api/security-logs/{log.id}/resolve")

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_security_log_metadata_key(self, admin_client: AsyncClient, client: AsyncClient):
        await client.post(
            "/api/esp32/vote",
            json={"voterId": "X999", "fingerprintHash": "h", "deviceId": "machine_09", "confidence": 80},
        )

        response = await admin_client.get("/api/security-logs")

        entry = response.json()[0]
        assert entry["type"] == "unregistered_fingerprint"
        assert entry["severity"] == "medium"
        assert entry["metadata"]["deviceId"] == "machine_09"

    @pytest.mark.asyncio
    async def test_activity_logs_newest_first(self, admin_client: AsyncClient):
        for index in range(3):
            await admin_client.post(
                "/api/voters",
                json={"voterId": f"V20{index}", "fullName": f"Voter {index}", "fingerprintHash": "h"},
            )

        response = await admin_client.get("/api/activity-logs", params={"limit": 2})

        assert response.status_code == 200
        entries = response.json()
        assert len(entries) == 2
        assert entries[0]["type"] == "voter_registered"
        assert "V202" not in entries[0]["description"]
        assert entries[0]["metadata"]["voterId"] == "V202"
