"""
FastAPI Application - REST API for quiz clients.

Endpoints:
    GET    /health                               Health check
    POST   /api/v1/sessions                      Create (or re-host) a session
    GET    /api/v1/sessions                      List active sessions
    GET    /api/v1/sessions/{id}                 Get session state
    DELETE /api/v1/sessions/{id}                 End session
    POST   /api/v1/sessions/{id}/start           Start the game (setup -> playing)
    POST   /api/v1/sessions/{id}/rounds          Submit the current round
    POST   /api/v1/sessions/{id}/reset           Reset to setup
    POST   /api/v1/sessions/{id}/resume          Resume from the saved snapshot
    GET    /api/v1/sessions/{id}/saved-game      Saved-game summary
    GET    /api/v1/queue                         Pending durable writes
    POST   /api/v1/queue/sync                    Flush the queue now
    POST   /api/v1/reflections                   Queue a team reflection
    POST   /api/v1/claims                        Queue a student claim
    POST   /api/v1/achievements/share            Queue an achievement share
    GET    /api/v1/leaderboard                   Local leaderboard

All responses are JSON with explicit Pydantic schemas.

Run with:
    uvicorn truthhunt.api.app:create_app --factory
"""

from contextlib import asynccontextmanager
from typing import Annotated, Optional, Union

from .. import __version__
from ..config import ALLOWED_ORIGINS, TRUTHHUNT_DATA_DIR, TRUTHHUNT_ENV


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates a file-backed one if not provided)

    Returns:
        FastAPI application instance
    """
    from fastapi import FastAPI, Query
    from fastapi.exceptions import RequestValidationError
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse

    from ..errors import InsufficientContent, InvalidTransition, SessionNotFound
    from ..session import SessionManager
    from ..storage.kv import FileStore
    from ..sync.remote import InMemoryRemoteClient
    from .service import APIService
    from .schemas import (
        # Request models
        CreateSessionRequest,
        StartGameRequest,
        SubmitRoundRequest,
        ReflectionRequest,
        ClaimSubmissionRequest,
        ShareAchievementRequest,
        # Response models
        ErrorResponse,
        SessionResponse,
        RoundResponse,
        ResumeResponse,
        SavedGameResponse,
        QueueStatusResponse,
        SyncResponse,
        QueuedResponse,
        LeaderboardResponse,
        SessionListResponse,
        EndSessionResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )

    api_service = service or APIService(
        session_manager=SessionManager(
            store=FileStore(TRUTHHUNT_DATA_DIR),
            remote=InMemoryRemoteClient(),
        )
    )

    @asynccontextmanager
    async def lifespan(app):
        await api_service.startup()
        yield
        await api_service.shutdown()

    app = FastAPI(
        title="TruthHunt Session API",
        description="""
Round-based claim-evaluation quiz engine.

## Game Flow

1. `POST /sessions` creates a session in **setup**
2. `POST /sessions/{id}/start` moves it to **playing**
3. `POST /sessions/{id}/rounds` once per round; the last one moves to **debrief**
4. `POST /sessions/{id}/reset` returns to **setup**

Finished games are queued for the remote scoring service and flushed with
`POST /queue/sync` (at-least-once, 3 attempts per item).

## Error Codes

| Code | Description |
|------|-------------|
| `INSUFFICIENT_CONTENT` | Fewer claims than rounds requested |
| `INVALID_TRANSITION` | Operation not legal in the current phase |
| `SESSION_NOT_FOUND` | Session does not exist |
| `VALIDATION_ERROR` | Request body is invalid |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(SessionNotFound)
    async def session_not_found(request, exc: SessionNotFound):
        return make_error_response(
            ErrorCode.SESSION_NOT_FOUND, str(exc), status_code=404,
            details={"session_id": exc.session_id},
        )

    @app.exception_handler(InsufficientContent)
    async def insufficient_content(request, exc: InsufficientContent):
        return make_error_response(
            ErrorCode.INSUFFICIENT_CONTENT, str(exc), status_code=422,
            details={"required": exc.required, "available": exc.available},
        )

    @app.exception_handler(InvalidTransition)
    async def invalid_transition(request, exc: InvalidTransition):
        return make_error_response(
            ErrorCode.INVALID_TRANSITION, str(exc), status_code=409,
            details={"operation": exc.operation, "phase": exc.phase},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request, exc: RequestValidationError):
        return make_error_response(
            ErrorCode.VALIDATION_ERROR, "Invalid request", status_code=422,
            details={"errors": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")}
                for e in exc.errors()
            ]},
        )

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        tags=["Sessions"],
        summary="Create a new session",
    )
    async def create_session(body: Optional[CreateSessionRequest] = None) -> SessionResponse:
        """
        Create a session in the setup phase.

        Pass `session_id` to host a previous session again, then call
        `/resume` to pick up its saved game.
        """
        return api_service.create_session(body)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session state",
    )
    async def get_session(session_id: str) -> SessionResponse:
        return api_service.get_session(session_id)

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a session",
    )
    async def end_session(
        session_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> EndSessionResponse:
        """End a session. A saved game stays resumable."""
        success = api_service.end_session(session_id, reason)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Game Flow Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/start",
        response_model=SessionResponse,
        responses={
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Not in setup"},
            422: {"model": ErrorResponse, "description": "Not enough claims"},
        },
        tags=["Game Flow"],
        summary="Start the game",
    )
    async def start_game(session_id: str, body: StartGameRequest) -> SessionResponse:
        """
        Leave setup and play the first round.

        Without `claims`, rounds are drawn from the built-in sample deck.
        """
        return api_service.start_game(session_id, body)

    @app.post(
        "/api/v1/sessions/{session_id}/rounds",
        response_model=RoundResponse,
        responses={
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Not playing"},
        },
        tags=["Game Flow"],
        summary="Submit the current round",
    )
    async def submit_round(session_id: str, body: SubmitRoundRequest) -> RoundResponse:
        """
        Score the team's verdict for the current claim.

        The response carries `debrief` once the last round is scored.
        """
        return api_service.submit_round(session_id, body)

    @app.post(
        "/api/v1/sessions/{session_id}/reset",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Flow"],
        summary="Reset to setup",
    )
    async def reset_game(session_id: str) -> SessionResponse:
        return api_service.reset_game(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/resume",
        response_model=ResumeResponse,
        responses={
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Not in setup"},
        },
        tags=["Game Flow"],
        summary="Resume the saved game",
    )
    def resume_game(session_id: str) -> ResumeResponse:
        """Runs in the threadpool, since it waits for pending snapshot writes."""
        return api_service.resume_game(session_id)

    @app.get(
        "/api/v1/sessions/{session_id}/saved-game",
        response_model=SavedGameResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Flow"],
        summary="Describe the saved game",
    )
    async def saved_game(session_id: str) -> Union[SavedGameResponse, JSONResponse]:
        summary = api_service.saved_game(session_id)
        if summary is None:
            return make_error_response(
                ErrorCode.SESSION_NOT_FOUND,
                f"No saved game for session {session_id}",
                status_code=404,
            )
        return summary

    # =========================================================================
    # Sync Queue Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/queue",
        response_model=QueueStatusResponse,
        tags=["Sync"],
        summary="Pending durable writes",
    )
    async def queue_status() -> QueueStatusResponse:
        return api_service.queue_status()

    @app.post(
        "/api/v1/queue/sync",
        response_model=SyncResponse,
        tags=["Sync"],
        summary="Flush the queue to the remote service",
    )
    async def sync_queue() -> SyncResponse:
        return await api_service.sync_queue()

    @app.post(
        "/api/v1/reflections",
        response_model=QueuedResponse,
        tags=["Sync"],
        summary="Queue a team reflection",
    )
    async def submit_reflection(body: ReflectionRequest) -> QueuedResponse:
        return api_service.submit_reflection(body)

    @app.post(
        "/api/v1/claims",
        response_model=QueuedResponse,
        tags=["Sync"],
        summary="Queue a student-written claim",
    )
    async def submit_claim(body: ClaimSubmissionRequest) -> QueuedResponse:
        return api_service.submit_claim(body)

    @app.post(
        "/api/v1/achievements/share",
        response_model=QueuedResponse,
        responses={422: {"model": ErrorResponse}},
        tags=["Sync"],
        summary="Queue an achievement share",
    )
    async def share_achievement(body: ShareAchievementRequest) -> Union[QueuedResponse, JSONResponse]:
        try:
            return api_service.share_achievement(body)
        except ValueError as e:
            return make_error_response(ErrorCode.VALIDATION_ERROR, str(e), status_code=422)

    # =========================================================================
    # Leaderboard Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/leaderboard",
        response_model=LeaderboardResponse,
        tags=["Leaderboard"],
        summary="Local leaderboard of finished games",
    )
    async def leaderboard(
        limit: Annotated[int, Query(ge=1, le=100, description="Entries per list")] = 10,
    ) -> LeaderboardResponse:
        """Teams and players are ranked on the final score, calibration bonus included."""
        return api_service.leaderboard(limit)

    # =========================================================================
    # System Endpoints
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="truthhunt-engine",
            version=__version__,
            environment=TRUTHHUNT_ENV,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "TruthHunt Session API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app
