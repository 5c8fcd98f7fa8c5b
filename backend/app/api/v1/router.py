"""
API router configuration.
"""
from fastapi import APIRouter

from app.api.v1.endpoints import (
    auth,
    dashboard,
    candidates,
    devices,
    voters,
    esp32,
    votes,
    logs,
)


api_router = APIRouter()

api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"]
)

api_router.include_router(
    dashboard.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

api_router.include_router(
    candidates.router,
    prefix="/candidates",
    tags=["Candidates"]
)

api_router.include_router(
    devices.router,
    prefix="/devices",
    tags=["Devices"]
)

api_router.include_router(
    voters.router,
    prefix="/voters",
    tags=["Voters"]
)

api_router.include_router(
    esp32.router,
    prefix="/esp32",
    tags=["Device Intake"]
)

api_router.include_router(
    votes.router,
    prefix="/votes",
    tags=["Votes"]
)

api_router.include_router(
    logs.security_router,
    prefix="/security-logs",
    tags=["Logs"]
)

api_router.include_router(
    logs.activity_router,
    prefix="/activity-logs",
    tags=["Logs"]
)
