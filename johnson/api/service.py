"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine calls
2. Manages sessions
3. Maps engine errors to structured error responses
4. Formats responses for the UI

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from .schemas import (
    # Requests
    CreateSessionRequest,
    ExecuteRequest,
    GenerateRunnersRequest,
    HireRequest,
    ValidateContractRequest,
    # Responses
    DeselectResponse,
    ErrorResponse,
    ExecuteResponse,
    SessionResponse,
    ValidationResponse,
    # Shared
    LedgerInfo,
    PoolsInfo,
    PreventionInfo,
    RollInfo,
    RunnerInfo,
    # Enums
    ErrorCode,
    SessionStatus,
)
from ..config import BalancingConfig
from ..contract_schema import (
    ContractValidationError,
    DamageTableError,
    check_damage_table,
    load_contract,
    parse_damage_table,
    validate_contract,
)
from ..engine_core.state import HiringState, PoolSet, Runner, RunnerState
from ..session import ContractSession, HiringError, SelectionError, SessionManager

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service for a contract UI.

    Usage:
        service = APIService()

        # Create session
        session_response = service.create_session(request)

        # Plan
        service.hire_runner(session_id, HireRequest(runner=...))
        service.select_node(session_id, "start")

        # Run
        report = service.execute(session_id, ExecuteRequest(seed=7))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    config: BalancingConfig = field(default_factory=BalancingConfig.from_env)

    def create_session(self, request: CreateSessionRequest) -> SessionResponse | ErrorResponse:
        """
        Create a new contract session.

        The contract rows are validated strictly; any error rejects them.
        """
        config = self.config.with_overrides(request.balancing)
        config_errors = config.validate()
        if config_errors:
            return _error("Invalid balancing configuration", ErrorCode.VALIDATION_ERROR,
                          {"errors": config_errors})

        try:
            contract = load_contract(request.rows, request.contract_id, request.name, strict=True)
        except ContractValidationError as e:
            return _error(str(e), ErrorCode.INVALID_CONTRACT, {"errors": e.errors})

        damage_table = None
        if request.damage_table is not None:
            try:
                damage_table = parse_damage_table(request.damage_table)
            except ValueError as e:
                return _error(str(e), ErrorCode.VALIDATION_ERROR)
            table_errors = check_damage_table(damage_table, config.max_damage_roll_value)
            if table_errors:
                return _error("Invalid damage table", ErrorCode.VALIDATION_ERROR,
                              {"errors": table_errors})

        try:
            runners = [_runner_from_info(info) for info in request.runners]
        except ValueError as e:
            return _error(str(e), ErrorCode.VALIDATION_ERROR)

        session = self.session_manager.create_session(
            contract,
            config=config,
            damage_table=damage_table,
            runners=runners,
        )
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        """
        Get session status.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found()
        return self._session_to_response(session)

    def select_node(self, session_id: str, node_id: str) -> SessionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found()
        try:
            session.select(node_id)
        except SelectionError as e:
            return _error(str(e), ErrorCode.INVALID_SELECTION, {"node_id": node_id})
        return self._session_to_response(session)

    def deselect_node(self, session_id: str, node_id: str) -> DeselectResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found()
        try:
            removed = session.deselect(node_id)
        except SelectionError as e:
            return _error(str(e), ErrorCode.INVALID_SELECTION, {"node_id": node_id})
        return DeselectResponse(removed=removed, session=self._session_to_response(session))

    def hire_runner(self, session_id: str, request: HireRequest) -> SessionResponse | ErrorResponse:
        """
        Hire a runner the session already knows (by id) or a new one.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found()

        if request.runner is not None:
            try:
                runner = _runner_from_info(request.runner)
            except ValueError as e:
                return _error(str(e), ErrorCode.VALIDATION_ERROR)
        elif request.runner_id is not None and request.runner_id in session.runners:
            runner = session.runners[request.runner_id]
        else:
            return _error("Runner not found", ErrorCode.RUNNER_NOT_FOUND,
                          {"runner_id": request.runner_id})

        try:
            session.hire(runner)
        except HiringError as e:
            return _error(str(e), ErrorCode.HIRING_REJECTED, {"runner_id": runner.runner_id})
        except SelectionError as e:
            return _error(str(e), ErrorCode.INVALID_SELECTION)
        return self._session_to_response(session)

    def generate_runners(
        self, session_id: str, request: GenerateRunnersRequest
    ) -> SessionResponse | ErrorResponse:
        """Add a batch of freshly generated runners to the hiring pool."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found()

        rng = random.Random(request.seed) if request.seed is not None else None
        session.generate_runners(rng=rng)
        return self._session_to_response(session)

    def unhire_runner(self, session_id: str, runner_id: str) -> SessionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found()
        if runner_id not in session.runners:
            return _error("Runner not found", ErrorCode.RUNNER_NOT_FOUND, {"runner_id": runner_id})
        try:
            session.unhire(runner_id)
        except HiringError as e:
            return _error(str(e), ErrorCode.HIRING_REJECTED, {"runner_id": runner_id})
        except SelectionError as e:
            return _error(str(e), ErrorCode.INVALID_SELECTION)
        return self._session_to_response(session)

    def execute(self, session_id: str, request: ExecuteRequest) -> ExecuteResponse | ErrorResponse:
        """
        Execute the contract. A seed makes the rolls reproducible.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found()

        rng = random.Random(request.seed) if request.seed is not None else None
        try:
            outcome = session.execute(rng=rng)
        except DamageTableError as e:
            logger.error("Session %s: %s", session_id, e)
            return _error(str(e), ErrorCode.DAMAGE_TABLE_ERROR)
        except SelectionError as e:
            return _error(str(e), ErrorCode.INVALID_SELECTION)

        report = outcome.report
        return ExecuteResponse(
            session_id=session_id,
            rolls=[
                RollInfo(
                    roll_number=r.roll_number,
                    raw_roll=r.raw_roll,
                    effect_kind=r.effect_kind.value,
                    description=r.description,
                    affected_runner_id=r.affected_runner_id,
                    reward_after=r.reward_after,
                )
                for r in report.rolls
            ],
            starting_reward=report.starting_reward,
            final_reward=report.final_reward,
            unprevented_damage=report.unprevented_damage,
            risk_applied=outcome.risk_applied,
            level_gained=outcome.level_gained,
            leveled_up=report.leveled_up,
            injured=report.injured,
            killed=report.killed,
            ledger=LedgerInfo.model_validate(session.ledger),
        )

    def validate_contract(self, request: ValidateContractRequest) -> ValidationResponse:
        result = validate_contract(request.rows)
        return ValidationResponse(
            valid=result.valid,
            errors=result.errors,
            warnings=result.warnings,
        )

    def end_session(self, session_id: str) -> bool:
        """
        End a session.
        """
        return self.session_manager.end_session(session_id)

    def list_sessions(self) -> list[str]:
        """
        List active sessions.
        """
        return self.session_manager.list_active_sessions()

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _session_to_response(self, session: ContractSession) -> SessionResponse:
        """Convert a session to its response model."""
        result = session.preview()
        return SessionResponse(
            session_id=session.session_id,
            status=SessionStatus(session.state.value),
            contract_id=session.contract.contract_id,
            contract_name=session.contract.name,
            selection=session.selection.as_list(),
            available=sorted(session.available()),
            pools=_pools_info(result.display_pools()),
            execution_pools=_pools_info(result.execution_pools()),
            prevention=PreventionInfo.model_validate(result.prevention),
            diagnostics=list(result.diagnostics),
            hired_runners=[_runner_info(r) for r in session.hired_runners],
            runners=[_runner_info(r) for r in session.runners.values()],
            ledger=LedgerInfo.model_validate(session.ledger),
            created_at=session.created_at,
        )


def _error(message: str, code: ErrorCode, details: dict | None = None) -> ErrorResponse:
    return ErrorResponse(error=message, error_code=code, details=details)


def _session_not_found() -> ErrorResponse:
    return _error("Session not found", ErrorCode.SESSION_NOT_FOUND)


def _pools_info(pools: PoolSet) -> PoolsInfo:
    return PoolsInfo(**pools.as_dict())


def _runner_info(runner: Runner) -> RunnerInfo:
    return RunnerInfo(
        runner_id=runner.runner_id,
        name=runner.name,
        archetype=runner.archetype,
        face=runner.face,
        muscle=runner.muscle,
        hacker=runner.hacker,
        ninja=runner.ninja,
        runner_state=runner.runner_state.value,
        hiring_state=runner.hiring_state.value,
        level=runner.level,
        contracts_completed=runner.contracts_completed,
        times_hired=runner.times_hired,
    )


def _runner_from_info(info: RunnerInfo) -> Runner:
    """Build a Runner; raises ValueError on unknown states."""
    return Runner(
        runner_id=info.runner_id,
        name=info.name,
        archetype=info.archetype,
        face=info.face,
        muscle=info.muscle,
        hacker=info.hacker,
        ninja=info.ninja,
        runner_state=RunnerState(info.runner_state),
        hiring_state=HiringState.UNHIRED,
        level=info.level,
        contracts_completed=info.contracts_completed,
        times_hired=info.times_hired,
    )
