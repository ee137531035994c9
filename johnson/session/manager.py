"""
Session Manager - Creates and manages contract sessions.

LIFECYCLE:
1. A contract is loaded and a session is created around it
2. Planning:
   - Player hires runners (costs money, refunded on unhire)
   - Player selects/deselects nodes; pools are recomputed each time
3. Execution:
   - Damage rolls are resolved against the hired crew
   - Reward, risk and level are booked on the player's ledger
   - The crew is released and the selection cleared
4. The session can plan and execute again, or be ended

PERSISTENCE RULES:
- Sessions are in-memory only
- Runners outlive a contract; dead runners are kept as records
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence
import logging
import random
import time
import uuid

from ..config import BalancingConfig, DEFAULT_DAMAGE_TABLE_ROWS
from ..contract_schema.contract import Contract
from ..contract_schema.damage_table import DamageTableEntry, parse_damage_table
from ..engine_core.state import HiringState, Runner, SelectionSet
from ..engine_core.reachability import compute_availability, is_available, predecessors
from ..engine_core.pool_engine import PoolResult, compute_pools
from ..engine_core.damage_resolver import DamageResolver, ResolutionReport, RollObserver
from ..engine_core.runners import generate_runner_batch

logger = logging.getLogger(__name__)


class SelectionError(ValueError):
    """Node cannot be selected or deselected."""


class HiringError(ValueError):
    """Runner cannot be hired or unhired."""


class SessionState(Enum):
    """State of a contract session."""
    PLANNING = "planning"  # Selecting nodes and hiring runners
    RESOLVING = "resolving"  # Damage rolls in progress
    ENDED = "ended"


@dataclass
class PlayerLedger:
    """The player's running totals across contracts."""
    money: float = 600.0
    risk: float = 0
    level: int = 1
    contracts_completed: int = 0


@dataclass
class ContractOutcome:
    """Result of executing a contract."""
    report: ResolutionReport
    pools: PoolResult
    risk_applied: int
    level_gained: int

    @property
    def final_reward(self) -> int:
        return self.report.final_reward


@dataclass
class ContractSession:
    """
    One player working one contract.

    Contains:
    - The contract graph and the damage table
    - The selection (ordered) and the runner roster
    - The player's ledger

    All operations are synchronous; callers serialise access per session.
    """
    session_id: str
    contract: Contract
    config: BalancingConfig = field(default_factory=BalancingConfig)
    damage_table: list[DamageTableEntry] = field(
        default_factory=lambda: parse_damage_table(DEFAULT_DAMAGE_TABLE_ROWS)
    )
    created_at: float = field(default_factory=time.time)

    state: SessionState = SessionState.PLANNING
    ledger: PlayerLedger | None = None
    selection: SelectionSet = field(default_factory=SelectionSet)

    # Every runner the player has dealt with, hired or not
    runners: dict[str, Runner] = field(default_factory=dict)
    hired_ids: list[str] = field(default_factory=list)

    history: list[ContractOutcome] = field(default_factory=list)

    def __post_init__(self):
        if self.ledger is None:
            self.ledger = PlayerLedger(money=self.config.player_starting_money)

    def is_active(self) -> bool:
        return self.state is not SessionState.ENDED

    @property
    def hired_runners(self) -> list[Runner]:
        return [self.runners[rid] for rid in self.hired_ids]

    # ==================================================================
    # Selection
    # ==================================================================

    def available(self) -> set[str]:
        """Node ids that can be selected right now."""
        return compute_availability(self.contract, self.selection, self.hired_runners)

    def select(self, node_id: str) -> PoolResult:
        """
        Select a node and return the recomputed pools.

        Raises:
            SelectionError: unknown, already selected or unreachable node
        """
        self._require_planning()
        if node_id not in self.contract:
            raise SelectionError(f"Unknown node: {node_id}")
        if node_id in self.selection:
            raise SelectionError(f"Node {node_id} is already selected")
        if node_id not in self.available():
            raise SelectionError(f"Node {node_id} is not available")

        self.selection.add(node_id)
        return self.preview()

    def deselect(self, node_id: str) -> list[str]:
        """
        Deselect a node, plus every selected node that loses its path.

        Returns:
            Ids removed, the requested node first
        """
        self._require_planning()
        if not self.selection.discard(node_id):
            raise SelectionError(f"Node {node_id} is not selected")

        removed = [node_id] + self._prune_unreachable()
        if len(removed) > 1:
            logger.info("Deselecting %s also removed %s", node_id, removed[1:])
        return removed

    def preview(self) -> PoolResult:
        """Pools for the current selection and crew (display tier)."""
        return compute_pools(self.selection, self.contract.nodes_by_id, self.hired_runners)

    def _prune_unreachable(self) -> list[str]:
        """
        Drop selected nodes no longer reachable from a root.

        Grows the kept set from nothing until stable, so selected cycles
        cut off from every root are dropped too.
        """
        nodes = self.contract.nodes_by_id
        incoming = predecessors(self.contract)
        roster = self.hired_runners
        kept: set[str] = set()

        changed = True
        while changed:
            changed = False
            for node_id in self.selection:
                if node_id in kept or node_id not in nodes:
                    continue
                if is_available(nodes[node_id], kept, incoming, roster):
                    kept.add(node_id)
                    changed = True

        dropped = [node_id for node_id in self.selection if node_id not in kept]
        for node_id in dropped:
            self.selection.discard(node_id)
        return dropped

    # ==================================================================
    # Hiring
    # ==================================================================

    def add_runner(self, runner: Runner):
        """Register a runner with the session without hiring it."""
        self.runners.setdefault(runner.runner_id, runner)

    def generate_runners(self, rng: random.Random | None = None) -> list[Runner]:
        """Generate a batch of level-1 recruits and register them for hire."""
        batch = generate_runner_batch(self.config, rng)
        for runner in batch:
            self.add_runner(runner)
        return batch

    def hire(self, runner: Runner) -> Runner:
        """
        Hire a runner for the current contract.

        Raises:
            HiringError: dead, already hired, no free slot or not enough money
        """
        self._require_planning()
        runner = self.runners.setdefault(runner.runner_id, runner)

        if not runner.is_alive:
            raise HiringError("Runner is dead")
        if runner.runner_id in self.hired_ids:
            raise HiringError("Already hired")
        if len(self.hired_ids) >= self.config.max_hired_runners:
            raise HiringError("All slots full")
        if self.ledger.money < self.config.hiring_cost:
            raise HiringError("Not enough money")

        self.ledger.money -= self.config.hiring_cost
        runner.hiring_state = HiringState.HIRED
        runner.times_hired += 1
        self.hired_ids.append(runner.runner_id)
        logger.info("Hired %s for $%s", runner.name, self.config.hiring_cost)
        return runner

    def unhire(self, runner_id: str) -> Runner:
        """Release a hired runner and refund the hiring cost."""
        self._require_planning()
        if runner_id not in self.hired_ids:
            raise HiringError("Runner not hired")

        runner = self.runners[runner_id]
        self.hired_ids.remove(runner_id)
        runner.hiring_state = HiringState.UNHIRED
        self.ledger.money += self.config.hiring_cost

        # Gates may have depended on this runner
        self._prune_unreachable()
        return runner

    # ==================================================================
    # Execution
    # ==================================================================

    def _resolver(self, rng: random.Random | None) -> DamageResolver:
        return DamageResolver(
            damage_table=self.damage_table,
            max_roll=self.config.max_damage_roll_value,
            rng=rng or random.Random(),
        )

    def execute(
        self,
        rng: random.Random | None = None,
        observer: RollObserver | None = None,
    ) -> ContractOutcome:
        """
        Run the contract with the current selection and crew.

        Raises:
            DamageTableError: a roll fell outside the damage table
        """
        self._require_planning()
        pools = self.preview()
        base_reward = self.config.contract_base_reward + pools.pools.money

        self.state = SessionState.RESOLVING
        try:
            report = self._resolver(rng).resolve(
                pools.unprevented_damage,
                self.hired_runners,
                base_reward,
                observer=observer,
            )
        finally:
            if self.state is SessionState.RESOLVING:
                self.state = SessionState.PLANNING

        return self._book(pools, report)

    async def execute_paced(
        self,
        rng: random.Random | None = None,
        observer: RollObserver | None = None,
    ) -> ContractOutcome:
        """execute() with the configured delay between damage rolls."""
        self._require_planning()
        pools = self.preview()
        base_reward = self.config.contract_base_reward + pools.pools.money

        self.state = SessionState.RESOLVING
        try:
            report = await self._resolver(rng).resolve_paced(
                pools.unprevented_damage,
                self.hired_runners,
                base_reward,
                delay_seconds=self.config.damage_roll_delay_seconds,
                observer=observer,
            )
        finally:
            if self.state is SessionState.RESOLVING:
                self.state = SessionState.PLANNING

        return self._book(pools, report)

    def _book(self, pools: PoolResult, report: ResolutionReport) -> ContractOutcome:
        # Ended mid-resolution: nothing is credited
        self._require_planning()
        outcome = ContractOutcome(
            report=report,
            pools=pools,
            risk_applied=pools.unprevented_risk,
            level_gained=self.config.player_level_per_contract,
        )

        self.ledger.money += report.final_reward
        self.ledger.risk += outcome.risk_applied
        self.ledger.level += outcome.level_gained
        self.ledger.contracts_completed += 1

        self.hired_ids.clear()
        self.selection.clear()
        self.history.append(outcome)

        logger.info(
            "Contract %s executed: reward $%d, risk +%d, %d rolls",
            self.contract.contract_id,
            report.final_reward,
            outcome.risk_applied,
            len(report.rolls),
        )
        return outcome

    def _require_planning(self):
        if self.state is not SessionState.PLANNING:
            raise SelectionError(f"Session is {self.state.value}")


class SessionManager:
    """
    Manages contract sessions.

    No persistence - sessions are in-memory only.
    """

    def __init__(self, config: BalancingConfig | None = None):
        self.config = config or BalancingConfig()
        self._sessions: dict[str, ContractSession] = {}

    def create_session(
        self,
        contract: Contract,
        config: BalancingConfig | None = None,
        damage_table: Sequence[DamageTableEntry] | None = None,
        runners: Iterable[Runner] = (),
    ) -> ContractSession:
        """
        Create a new session around a loaded contract.

        Args:
            contract: Validated contract graph
            config: Balancing overrides (manager default otherwise)
            damage_table: Parsed damage table (shipped default otherwise)
            runners: Runners available for hire
        """
        session = ContractSession(
            session_id=str(uuid.uuid4()),
            contract=contract,
            config=config or self.config,
        )
        if damage_table is not None:
            session.damage_table = list(damage_table)
        for runner in runners:
            session.add_runner(runner)

        self._sessions[session.session_id] = session
        logger.info("Created session %s for contract %s", session.session_id, contract.contract_id)
        return session

    def get_session(self, session_id: str) -> ContractSession | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """Remove a session from memory. Returns False if it did not exist."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.state = SessionState.ENDED
        session.selection.clear()
        session.hired_ids.clear()
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """End sessions older than max_age. Returns how many were ended."""
        now = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if now - session.created_at > max_age_seconds
        ]
        for session_id in stale:
            self.end_session(session_id)
        return len(stale)
