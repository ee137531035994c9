"""
API Module - UI interface.

Exposes the engine via REST API. A client:
1. Validates contract rows
2. Creates a session around a contract
3. Hires runners and selects nodes, reading pools after each step
4. Executes the contract and reads the resolution report

All state is session-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    ExecuteRequest,
    GenerateRunnersRequest,
    HireRequest,
    NodeRequest,
    ValidateContractRequest,
    # Responses
    DeselectResponse,
    ErrorResponse,
    ExecuteResponse,
    SessionResponse,
    ValidationResponse,
    # Enums
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "ExecuteRequest",
    "GenerateRunnersRequest",
    "HireRequest",
    "NodeRequest",
    "ValidateContractRequest",
    # Responses
    "DeselectResponse",
    "ErrorResponse",
    "ExecuteResponse",
    "SessionResponse",
    "ValidationResponse",
    # Enums
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
