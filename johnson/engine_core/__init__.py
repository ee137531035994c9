"""
Engine Core - Pool calculation, reachability and damage resolution.

The engine is the runtime that:
1. Decides which nodes are selectable
2. Evaluates effect conditions into multipliers
3. Recomputes the five pools from the selection
4. Resolves damage rolls against the hired crew
"""

from .state import (
    HiringState,
    PoolSet,
    PreventionSnapshot,
    Runner,
    RunnerState,
    SelectionSet,
)
from .reachability import compute_availability, evaluate_gate_condition, predecessors
from .conditions import ConditionContext, ConditionEvaluator
from .pool_engine import PoolEngine, PoolResult, compute_pools
from .damage_resolver import (
    DamageResolver,
    ResolutionReport,
    RollObserver,
    RollRecord,
    resolve,
)
from .runners import generate_runner, generate_runner_batch, main_stat

__all__ = [
    "HiringState",
    "PoolSet",
    "PreventionSnapshot",
    "Runner",
    "RunnerState",
    "SelectionSet",
    "compute_availability",
    "evaluate_gate_condition",
    "predecessors",
    "ConditionContext",
    "ConditionEvaluator",
    "PoolEngine",
    "PoolResult",
    "compute_pools",
    "DamageResolver",
    "ResolutionReport",
    "RollObserver",
    "RollRecord",
    "resolve",
    "generate_runner",
    "generate_runner_batch",
    "main_stat",
]
