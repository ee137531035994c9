"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a UI client and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- INVALID_CONTRACT: Contract rows failed validation
- INVALID_SELECTION: Node cannot be selected or deselected
- HIRING_REJECTED: Runner cannot be hired or unhired
- RUNNER_NOT_FOUND: Runner id is not known to the session
- DAMAGE_TABLE_ERROR: A damage roll had no table entry
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..contract_schema.vocabulary import RunnerArchetype


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    PLANNING = "planning"
    RESOLVING = "resolving"
    ENDED = "ended"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_CONTRACT = "INVALID_CONTRACT"
    INVALID_SELECTION = "INVALID_SELECTION"
    HIRING_REJECTED = "HIRING_REJECTED"
    RUNNER_NOT_FOUND = "RUNNER_NOT_FOUND"
    DAMAGE_TABLE_ERROR = "DAMAGE_TABLE_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class PoolsInfo(BaseModel):
    """The five pools."""
    damage: float = 0
    risk: float = 0
    money: float = 0
    grit: float = 0
    veil: float = 0


class PreventionInfo(BaseModel):
    """How much Grit and Veil cancel."""
    damage_prevented: float = 0
    risk_prevented: float = 0
    grit_used: float = 0
    veil_used: float = 0
    final_damage: float = 0
    final_risk: float = 0

    model_config = {"from_attributes": True}


class RunnerInfo(BaseModel):
    """Runner information for display."""
    runner_id: str
    name: str
    archetype: RunnerArchetype
    face: int = 0
    muscle: int = 0
    hacker: int = 0
    ninja: int = 0
    runner_state: str = Field("Ready", description="Ready, Injured or Dead")
    hiring_state: str = Field("Unhired", description="Hired or Unhired")
    level: int = 1
    contracts_completed: int = 0
    times_hired: int = 0


class LedgerInfo(BaseModel):
    """The player's running totals."""
    money: float
    risk: float
    level: int
    contracts_completed: int

    model_config = {"from_attributes": True}


class RollInfo(BaseModel):
    """One damage roll."""
    roll_number: int
    raw_roll: int
    effect_kind: str
    description: str
    affected_runner_id: Optional[str] = None
    reward_after: int


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create a new contract session."""
    contract_id: str = Field("contract", description="Identifier for the contract")
    name: str = Field("", description="Display name for the contract")
    rows: list[dict[str, Any]] = Field(
        ..., description="Contract rows using the contract sheet column names"
    )
    balancing: dict[str, float] = Field(
        default_factory=dict,
        description="Balancing overrides, e.g. {'hiringCost': 100}"
    )
    damage_table: Optional[list[dict[str, str]]] = Field(
        None, description="Damage table rows; the shipped table if omitted"
    )
    runners: list[RunnerInfo] = Field(
        default_factory=list, description="Runners available for hire"
    )


class NodeRequest(BaseModel):
    """Select or deselect a node."""
    node_id: str


class HireRequest(BaseModel):
    """Hire a runner, either a known one by id or a new one."""
    runner_id: Optional[str] = None
    runner: Optional[RunnerInfo] = None


class GenerateRunnersRequest(BaseModel):
    """Generate a batch of recruits for hire."""
    seed: Optional[int] = Field(None, description="Seed for a reproducible batch")


class ExecuteRequest(BaseModel):
    """Execute the contract."""
    seed: Optional[int] = Field(None, description="Seed for reproducible rolls")


class ValidateContractRequest(BaseModel):
    """Validate contract rows without creating a session."""
    rows: list[dict[str, Any]]


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class SessionResponse(BaseModel):
    """Current state of a session."""
    session_id: str
    status: SessionStatus
    contract_id: str
    contract_name: str = ""
    selection: list[str] = Field(default_factory=list)
    available: list[str] = Field(default_factory=list)
    pools: PoolsInfo
    execution_pools: PoolsInfo
    prevention: PreventionInfo
    diagnostics: list[str] = Field(default_factory=list)
    hired_runners: list[RunnerInfo] = Field(default_factory=list)
    runners: list[RunnerInfo] = Field(default_factory=list)
    ledger: LedgerInfo
    created_at: float = 0.0
    api_version: str = "v1"


class DeselectResponse(BaseModel):
    """Response after deselecting a node."""
    removed: list[str]
    session: SessionResponse


class ExecuteResponse(BaseModel):
    """Resolution report of an executed contract."""
    session_id: str
    rolls: list[RollInfo] = Field(default_factory=list)
    starting_reward: float
    final_reward: int
    unprevented_damage: int
    risk_applied: int
    level_gained: int
    leveled_up: list[str] = Field(default_factory=list)
    injured: list[str] = Field(default_factory=list)
    killed: list[str] = Field(default_factory=list)
    ledger: LedgerInfo
    api_version: str = "v1"


class ValidationResponse(BaseModel):
    """Result of validating contract rows."""
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    api_version: str = "v1"


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
