"""
Pool Engine - Multi-pass pool calculation.

Pools are recomputed from zero on every call. The pass order is the
contract that keeps the game balanced:

    Pass 1   standard operators (+ - * /), selection order, skipping
             effects with prevention conditions
    Pass 2   preliminary prevention snapshot from post-pass-1 pools
    Pass 2b  standard operators with prevention conditions, reading
             the pass-2 snapshot
    Pass 3   percentage operator (%), reading the pass-2 snapshot
    Pass 5   final prevention snapshot (display only)

Preview pools keep gross Damage and Risk. Prevention is only subtracted
when the contract is executed, see PoolResult.execution_pools().
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence
import logging
import math

from ..contract_schema.contract import Node
from ..contract_schema.vocabulary import Operator
from ..contract_schema.effect_dsl import EffectDescriptor, is_prevention_condition
from .conditions import ConditionContext, ConditionEvaluator
from .state import PoolSet, PreventionSnapshot, Runner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolResult:
    """
    Outcome of one pool computation.

    display_pools() is what the player sees while choosing nodes (gross);
    execution_pools() is what resolution uses (net).
    """
    pools: PoolSet
    prevention: PreventionSnapshot
    preliminary_prevention: PreventionSnapshot
    diagnostics: tuple[str, ...] = ()

    def display_pools(self) -> PoolSet:
        """Gross pools, prevention not subtracted."""
        return self.pools

    @property
    def unprevented_damage(self) -> int:
        return max(0, math.floor(self.pools.damage - math.floor(self.pools.grit / 2)))

    @property
    def unprevented_risk(self) -> int:
        return max(0, math.floor(self.pools.risk - math.floor(self.pools.veil / 2)))

    def execution_pools(self) -> PoolSet:
        """Pools with Grit/Veil prevention applied to Damage/Risk."""
        return PoolSet(
            damage=self.unprevented_damage,
            risk=self.unprevented_risk,
            money=self.pools.money,
            grit=self.pools.grit,
            veil=self.pools.veil,
        )


@dataclass
class PoolEngine:
    """
    Computes pools for a selection.

    Stateless between calls: every compute() starts from empty pools.
    """
    evaluator: ConditionEvaluator = field(default_factory=ConditionEvaluator)

    def compute(
        self,
        selection: Iterable[str],
        nodes_by_id: Mapping[str, Node],
        roster: Sequence[Runner] = (),
    ) -> PoolResult:
        selection = list(dict.fromkeys(selection))
        context = ConditionContext(
            selection=selection,
            nodes_by_id=nodes_by_id,
            roster=roster,
        )

        standard: list[EffectDescriptor] = []
        prevention_based: list[EffectDescriptor] = []
        percentage: list[EffectDescriptor] = []
        for node_id in selection:
            node = nodes_by_id.get(node_id)
            if node is None:
                context.warn(f"Selected node {node_id!r} is not part of the contract")
                continue
            if node.is_gate:
                continue
            for effect in node.effects:
                if effect.is_percentage:
                    percentage.append(effect)
                elif is_prevention_condition(effect.condition):
                    prevention_based.append(effect)
                else:
                    standard.append(effect)

        pools = PoolSet()

        # Pass 1
        for effect in standard:
            pools = self._apply(effect, pools, context)

        # Pass 2
        preliminary = PreventionSnapshot.from_pools(pools)
        context.prevention = preliminary
        if preliminary.damage_prevented > 0 or preliminary.risk_prevented > 0:
            logger.debug(
                "Preliminary prevention: %s damage, %s risk",
                preliminary.damage_prevented,
                preliminary.risk_prevented,
            )

        # Pass 2b
        for effect in prevention_based:
            pools = self._apply(effect, pools, context)

        # Pass 3
        for effect in percentage:
            pools = self._apply(effect, pools, context)

        # Pass 5
        final = PreventionSnapshot.from_pools(pools)

        return PoolResult(
            pools=pools,
            prevention=final,
            preliminary_prevention=preliminary,
            diagnostics=tuple(context.diagnostics),
        )

    def _apply(
        self,
        effect: EffectDescriptor,
        pools: PoolSet,
        context: ConditionContext,
    ) -> PoolSet:
        """
        Apply one effect. Problems make this effect a no-op; they never
        abort the computation.
        """
        multiplier = self.evaluator.evaluate(effect.condition, context)
        if multiplier == 0:
            return pools

        amount = effect.amount * multiplier
        current = pools.get(effect.stat)

        if effect.operator is Operator.ADD:
            new_value = current + amount
        elif effect.operator is Operator.SUBTRACT:
            new_value = current - amount
        elif effect.operator is Operator.MULTIPLY:
            new_value = current * amount
        elif effect.operator is Operator.DIVIDE:
            if amount == 0:
                context.warn(f"Division by zero in effect: {effect}")
                return pools
            new_value = current / amount
        elif effect.operator is Operator.PERCENT:
            new_value = current + current * (amount / 100)
        else:
            context.warn(f"Unknown operator in effect: {effect}")
            return pools

        if not math.isfinite(new_value):
            context.warn(f"Non-finite result in effect: {effect}")
            return pools

        if effect.stat.clamped:
            new_value = max(0, new_value)

        return pools.with_value(effect.stat, new_value)


_default_engine = PoolEngine()


def compute_pools(
    selection: Iterable[str],
    nodes_by_id: Mapping[str, Node],
    roster: Sequence[Runner] = (),
) -> PoolResult:
    """
    Compute pools for the selected nodes.

    Pure function of its arguments; calling it twice with the same inputs
    gives the same result.
    """
    return _default_engine.compute(selection, nodes_by_id, roster)
