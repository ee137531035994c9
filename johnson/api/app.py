"""
FastAPI Application - REST API for a contract UI.

Endpoints:
    GET    /api/v1/health                             Health check
    POST   /api/v1/contracts/validate                 Validate contract rows
    POST   /api/v1/sessions                           Create contract session
    GET    /api/v1/sessions                           List active sessions
    GET    /api/v1/sessions/{id}                      Pools, availability, crew
    DELETE /api/v1/sessions/{id}                      End session
    POST   /api/v1/sessions/{id}/select               Select a node
    POST   /api/v1/sessions/{id}/deselect             Deselect a node (cascades)
    POST   /api/v1/sessions/{id}/runners              Hire a runner
    DELETE /api/v1/sessions/{id}/runners/{runner_id}  Unhire a runner
    POST   /api/v1/sessions/{id}/execute              Resolve the contract

Pools in session responses come in two tiers:
    pools            gross values, what the player sees while planning
    execution_pools  Damage/Risk after Grit/Veil prevention

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional, Union
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from .service import APIService
from .schemas import (
    # Request models
    CreateSessionRequest,
    ExecuteRequest,
    GenerateRunnersRequest,
    HireRequest,
    NodeRequest,
    ValidateContractRequest,
    # Response models
    DeselectResponse,
    EndSessionResponse,
    ErrorResponse,
    ExecuteResponse,
    HealthResponse,
    SessionListResponse,
    SessionResponse,
    ValidationResponse,
    # Enums
    ErrorCode,
)

# Environment configuration
JOHNSON_ENV = os.getenv("JOHNSON_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

# HTTP status per error code; anything else is a 400
_STATUS_CODES = {
    ErrorCode.SESSION_NOT_FOUND: 404,
    ErrorCode.RUNNER_NOT_FOUND: 404,
    ErrorCode.INVALID_CONTRACT: 422,
    ErrorCode.DAMAGE_TABLE_ERROR: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


def create_app(service: Optional[APIService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Johnson Contract Engine API",
        description="""
Contract engine - select nodes, hire runners, resolve damage.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `INVALID_CONTRACT` | Contract rows failed validation |
| `INVALID_SELECTION` | Node cannot be selected or deselected |
| `HIRING_REJECTED` | Runner cannot be hired or unhired |
| `RUNNER_NOT_FOUND` | Runner is not known to the session |
| `DAMAGE_TABLE_ERROR` | A damage roll had no table entry |
        """,
        version=__version__,
        docs_url=None if JOHNSON_ENV == "production" else "/api/docs",
        redoc_url=None if JOHNSON_ENV == "production" else "/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService()

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Turn a service error into a JSON response with a matching status."""
        return JSONResponse(
            status_code=_STATUS_CODES.get(error.error_code, 400),
            content=error.model_dump(mode="json"),
        )

    def respond(result):
        if isinstance(result, ErrorResponse):
            return make_error_response(result)
        return result

    # =========================================================================
    # System
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="johnson-engine",
            version=__version__,
        )

    # =========================================================================
    # Contracts
    # =========================================================================

    @app.post(
        "/api/v1/contracts/validate",
        response_model=ValidationResponse,
        tags=["Contracts"],
        summary="Validate contract rows",
    )
    async def validate_contract(request: ValidateContractRequest) -> ValidationResponse:
        """Check contract rows without creating a session."""
        return api_service.validate_contract(request)

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid balancing or damage table"},
            422: {"model": ErrorResponse, "description": "Invalid contract"},
        },
        tags=["Sessions"],
        summary="Create a new contract session",
    )
    async def create_session(request: CreateSessionRequest) -> Union[SessionResponse, JSONResponse]:
        """
        Create a session from contract rows.

        Rows use the contract sheet columns (`Node ID`, `Color`, `Type`,
        `Effect 1`, `Effect 2`, `Connections`, ...).
        """
        return respond(api_service.create_session(request))

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        """List all active session IDs."""
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        """Current pools, prevention, availability and crew."""
        return respond(api_service.get_session(session_id))

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a contract session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        """End a session and release resources."""
        success = api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Planning Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/select",
        response_model=SessionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Node not available"},
            404: {"model": ErrorResponse, "description": "Session not found"},
        },
        tags=["Planning"],
        summary="Select a node",
    )
    async def select_node(session_id: str, request: NodeRequest) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.select_node(session_id, request.node_id))

    @app.post(
        "/api/v1/sessions/{session_id}/deselect",
        response_model=DeselectResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Node not selected"},
            404: {"model": ErrorResponse, "description": "Session not found"},
        },
        tags=["Planning"],
        summary="Deselect a node",
    )
    async def deselect_node(session_id: str, request: NodeRequest) -> Union[DeselectResponse, JSONResponse]:
        """
        Deselect a node. Selected nodes that lose their path are
        deselected too and listed in `removed`.
        """
        return respond(api_service.deselect_node(session_id, request.node_id))

    @app.post(
        "/api/v1/sessions/{session_id}/runners",
        response_model=SessionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Hiring rejected"},
            404: {"model": ErrorResponse, "description": "Session or runner not found"},
        },
        tags=["Planning"],
        summary="Hire a runner",
    )
    async def hire_runner(session_id: str, request: HireRequest) -> Union[SessionResponse, JSONResponse]:
        """Hire a known runner by `runner_id`, or a new one given as `runner`."""
        return respond(api_service.hire_runner(session_id, request))

    @app.post(
        "/api/v1/sessions/{session_id}/runners/generate",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse, "description": "Session not found"}},
        tags=["Planning"],
        summary="Generate runners for hire",
    )
    async def generate_runners(
        session_id: str,
        request: Optional[GenerateRunnersRequest] = None,
    ) -> Union[SessionResponse, JSONResponse]:
        """Add `generatedRunnerBatchSize` new level-1 runners to the pool."""
        return respond(api_service.generate_runners(session_id, request or GenerateRunnersRequest()))

    @app.delete(
        "/api/v1/sessions/{session_id}/runners/{runner_id}",
        response_model=SessionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Runner not hired"},
            404: {"model": ErrorResponse, "description": "Session or runner not found"},
        },
        tags=["Planning"],
        summary="Unhire a runner",
    )
    async def unhire_runner(session_id: str, runner_id: str) -> Union[SessionResponse, JSONResponse]:
        """Release a runner; the hiring cost is refunded."""
        return respond(api_service.unhire_runner(session_id, runner_id))

    # =========================================================================
    # Execution
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/execute",
        response_model=ExecuteResponse,
        responses={
            404: {"model": ErrorResponse, "description": "Session not found"},
            500: {"model": ErrorResponse, "description": "Damage table does not cover a roll"},
        },
        tags=["Execution"],
        summary="Execute the contract",
    )
    async def execute_contract(
        session_id: str,
        request: Optional[ExecuteRequest] = None,
    ) -> Union[ExecuteResponse, JSONResponse]:
        """
        Roll damage, book reward and risk, release the crew.

        Pass a `seed` for reproducible rolls.
        """
        return respond(api_service.execute(session_id, request or ExecuteRequest()))

    return app


# For running directly: uvicorn johnson.api.app:app
app = create_app()
