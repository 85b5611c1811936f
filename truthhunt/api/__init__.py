"""
API Module - HTTP interface for quiz clients.

Exposes the session engine via a REST API. A client:
1. Creates a session
2. Starts a game with a team, a prediction and claims
3. Submits one verdict per round
4. Reads the debrief and sends reflections or achievement shares

Durable writes go through the sync queue; the API never waits on the
remote service.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    StartGameRequest,
    SubmitRoundRequest,
    ReflectionRequest,
    ClaimSubmissionRequest,
    ShareAchievementRequest,
    # Responses
    SessionResponse,
    RoundResponse,
    ResumeResponse,
    SavedGameResponse,
    QueueStatusResponse,
    SyncResponse,
    QueuedResponse,
    ErrorResponse,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "StartGameRequest",
    "SubmitRoundRequest",
    "ReflectionRequest",
    "ClaimSubmissionRequest",
    "ShareAchievementRequest",
    # Responses
    "SessionResponse",
    "RoundResponse",
    "ResumeResponse",
    "SavedGameResponse",
    "QueueStatusResponse",
    "SyncResponse",
    "QueuedResponse",
    "ErrorResponse",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
