"""
Pydantic schemas for request/response validation.
"""
from app.schemas.auth import (
    LoginRequest,
    UserCreate,
    UserRecord,
    UserResponse,
    SessionResponse,
    SessionRecord,
)
from app.schemas.election import (
    VoterCreate,
    VoterBulkCreate,
    VoterResponse,
    CandidateCreate,
    CandidateResponse,
    DeviceCreate,
    DeviceResponse,
    DeviceHealthReport,
    DeviceSyncSnapshot,
)
from app.schemas.vote import (
    CandidateById,
    CandidateByName,
    CandidateRef,
    VoteRejection,
    VoteSubmission,
    VoteSubmitRequest,
    VoteCreate,
    VoteResponse,
    VoteSubmitResponse,
    OfflineVoteResult,
    OfflineSyncResponse,
)
from app.schemas.tally import (
    DashboardStats,
    CandidateTally,
    VoteLogEntry,
    IntegrityReport,
)
from app.schemas.logs import (
    SecurityLogCreate,
    SecurityLogResponse,
    ActivityLogCreate,
    ActivityLogResponse,
    SuccessResponse,
)

__all__ = [
    # Auth
    "LoginRequest",
    "UserCreate",
    "UserRecord",
    "UserResponse",
    "SessionResponse",
    "SessionRecord",
    # Election
    "VoterCreate",
    "VoterBulkCreate",
    "VoterResponse",
    "CandidateCreate",
    "CandidateResponse",
    "DeviceCreate",
    "DeviceResponse",
    "DeviceHealthReport",
    "DeviceSyncSnapshot",
    # Vote
    "CandidateById",
    "CandidateByName",
    "CandidateRef",
    "VoteRejection",
    "VoteSubmission",
    "VoteSubmitRequest",
    "VoteCreate",
    "VoteResponse",
    "VoteSubmitResponse",
    "OfflineVoteResult",
    "OfflineSyncResponse",
    # Tally
    "DashboardStats",
    "CandidateTally",
    "VoteLogEntry",
    "IntegrityReport",
    # Logs
    "SecurityLogCreate",
    "SecurityLogResponse",
    "ActivityLogCreate",
    "ActivityLogResponse",
    "SuccessResponse",
]
