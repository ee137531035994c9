"""
Condition Evaluator - How many times does an effect fire?

Every effect condition evaluates to an integer multiplier >= 0:

    None             1
    RunnerType:T     number of crew with archetype T
    RunnerStat:...   floor(total / threshold) for >=, else 0/1
    NodeColor:C      selected non-Gate nodes of color C
    NodeColorCombo   complete sets of the listed colors
    PrevDam          damage prevented (preliminary snapshot)
    PrevRisk         risk prevented (preliminary snapshot)
    RiskDamPair      min(damage prevented, risk prevented)
    ColorForEach     distinct colors among selected non-Gate nodes

A multiplier of 0 means the effect does not apply.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Collection, Mapping, Sequence
import logging
import math

from ..contract_schema.contract import Node
from ..contract_schema.vocabulary import Comparator, NodeColor
from ..contract_schema.effect_dsl import (
    ColorForEachCondition,
    ConditionDescriptor,
    NoCondition,
    NodeColorComboCondition,
    NodeColorCondition,
    PrevDamCondition,
    PrevRiskCondition,
    RiskDamPairCondition,
    RunnerStatCondition,
    RunnerTypeCondition,
    UnknownCondition,
)
from .state import PreventionSnapshot, Runner

logger = logging.getLogger(__name__)


@dataclass
class ConditionContext:
    """
    Everything a condition may look at.

    `prevention` is None until the pool engine has computed the
    preliminary snapshot; prevention conditions read 0 before that.
    """
    selection: Collection[str]
    nodes_by_id: Mapping[str, Node]
    roster: Sequence[Runner] = ()
    prevention: PreventionSnapshot | None = None

    # Absorbed problems, reported alongside the pools
    diagnostics: list[str] = field(default_factory=list)

    def selected_nodes(self) -> list[Node]:
        """Selected non-Gate nodes. Gate nodes never count toward colors."""
        nodes = []
        for node_id in self.selection:
            node = self.nodes_by_id.get(node_id)
            if node is not None and not node.is_gate:
                nodes.append(node)
        return nodes

    def color_count(self, color: NodeColor) -> int:
        return sum(1 for node in self.selected_nodes() if node.color is color)

    def warn(self, message: str):
        logger.warning(message)
        self.diagnostics.append(message)


class ConditionEvaluator:
    """Evaluates condition descriptors against a context."""

    def evaluate(self, condition: ConditionDescriptor, context: ConditionContext) -> int:
        """
        Evaluate a condition.

        Returns:
            Integer multiplier >= 0
        """
        if isinstance(condition, NoCondition):
            return 1

        if isinstance(condition, RunnerTypeCondition):
            return sum(1 for r in context.roster if r.archetype is condition.archetype)

        if isinstance(condition, RunnerStatCondition):
            return self._runner_stat(condition, context)

        if isinstance(condition, NodeColorCondition):
            return context.color_count(condition.color)

        if isinstance(condition, NodeColorComboCondition):
            if not condition.colors:
                return 0
            return min(context.color_count(color) for color in condition.colors)

        if isinstance(condition, PrevDamCondition):
            if context.prevention is None:
                return 0
            return _whole(context.prevention.damage_prevented)

        if isinstance(condition, PrevRiskCondition):
            if context.prevention is None:
                return 0
            return _whole(context.prevention.risk_prevented)

        if isinstance(condition, RiskDamPairCondition):
            if context.prevention is None:
                return 0
            return _whole(min(
                context.prevention.damage_prevented,
                context.prevention.risk_prevented,
            ))

        if isinstance(condition, ColorForEachCondition):
            return len({node.color for node in context.selected_nodes()})

        if isinstance(condition, UnknownCondition):
            context.warn(f"Unknown condition type: {condition.raw!r}, applying once")
            return 1

        context.warn(f"Unsupported condition descriptor: {condition!r}, applying once")
        return 1

    def _runner_stat(self, condition: RunnerStatCondition, context: ConditionContext) -> int:
        if condition.threshold <= 0:
            context.warn(f"Invalid threshold in RunnerStat condition: {condition}")
            return 0

        total = sum(
            runner.stat(stat)
            for runner in context.roster
            for stat in condition.stats
        )

        # Only >= scales; content relies on floor(total / threshold)
        if condition.comparator is Comparator.GE:
            return total // condition.threshold

        return 1 if condition.comparator.compare(total, condition.threshold) else 0


def _whole(value: float) -> int:
    """Prevention amounts can be fractional when pools are; multipliers are not."""
    return max(0, math.floor(value))
