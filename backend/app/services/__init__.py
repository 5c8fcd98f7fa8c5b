"""
Business logic services.
"""
from app.services.audit_service import AuditService
from app.services.auth_service import AuthService
from app.services.device_service import DeviceService
from app.services.tally_service import TallyService
from app.services.vote_service import VoteService
from app.services.voter_service import VoterService

__all__ = [
    "AuditService",
    "AuthService",
    "DeviceService",
    "TallyService",
    "VoteService",
    "VoterService",
]
