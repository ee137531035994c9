"""
Tests for the condition evaluator.

Each condition variant turns into an integer multiplier.
"""

import pytest

from ..contract_schema import (
    ColorForEachCondition,
    Comparator,
    NoCondition,
    NodeColor,
    NodeColorComboCondition,
    NodeColorCondition,
    NodeType,
    PrevDamCondition,
    PrevRiskCondition,
    RiskDamPairCondition,
    RunnerArchetype,
    RunnerStat,
    RunnerStatCondition,
    RunnerTypeCondition,
    UnknownCondition,
)
from ..engine_core.conditions import ConditionContext, ConditionEvaluator
from ..engine_core.state import PoolSet, PreventionSnapshot, Runner


@pytest.fixture
def evaluator():
    return ConditionEvaluator()


@pytest.fixture
def colored_context(make_node):
    """Three Red, one Blue and one Grey Gate node selected."""
    nodes = [
        make_node("r1", NodeColor.RED),
        make_node("r2", NodeColor.RED),
        make_node("r3", NodeColor.RED),
        make_node("b1", NodeColor.BLUE),
        make_node("g1", NodeColor.GREY, node_type=NodeType.GATE),
    ]
    return ConditionContext(
        selection=[n.node_id for n in nodes],
        nodes_by_id={n.node_id: n for n in nodes},
    )


def _muscle_crew(*values):
    return [
        Runner(f"m{i}", f"Muscle {i}", RunnerArchetype.MUSCLE, muscle=v)
        for i, v in enumerate(values)
    ]


class TestSimpleConditions:
    """Conditions that only look at the selection."""

    def test_no_condition(self, evaluator, colored_context):
        assert evaluator.evaluate(NoCondition(), colored_context) == 1

    def test_node_color_counts(self, evaluator, colored_context):
        """NodeColor counts selected nodes of that color."""
        assert evaluator.evaluate(NodeColorCondition(NodeColor.RED), colored_context) == 3
        assert evaluator.evaluate(NodeColorCondition(NodeColor.GREEN), colored_context) == 0

    def test_gate_nodes_do_not_count(self, evaluator, colored_context):
        """Gate nodes are excluded from color counts."""
        assert evaluator.evaluate(NodeColorCondition(NodeColor.GREY), colored_context) == 0

    def test_color_combo_is_minimum(self, evaluator, colored_context):
        """Complete sets: min over the listed colors."""
        combo = NodeColorComboCondition((NodeColor.RED, NodeColor.BLUE))
        assert evaluator.evaluate(combo, colored_context) == 1

    def test_color_combo_missing_color(self, evaluator, colored_context):
        combo = NodeColorComboCondition((NodeColor.RED, NodeColor.PURPLE))
        assert evaluator.evaluate(combo, colored_context) == 0

    def test_color_for_each_counts_distinct(self, evaluator, colored_context):
        """3 Red + 1 Blue is two distinct colors, not four nodes."""
        assert evaluator.evaluate(ColorForEachCondition(), colored_context) == 2


class TestRunnerConditions:
    """Conditions that look at the hired roster."""

    def test_runner_type(self, evaluator, runners):
        context = ConditionContext(selection=[], nodes_by_id={}, roster=runners)
        condition = RunnerTypeCondition(RunnerArchetype.MUSCLE)
        assert evaluator.evaluate(condition, context) == 1

    def test_runner_type_empty_roster(self, evaluator):
        context = ConditionContext(selection=[], nodes_by_id={})
        assert evaluator.evaluate(RunnerTypeCondition(RunnerArchetype.NINJA), context) == 0

    def test_runner_stat_scales(self, evaluator):
        """Muscle 4+4+4 against >=3 gives floor(12/3) = 4."""
        context = ConditionContext(selection=[], nodes_by_id={}, roster=_muscle_crew(4, 4, 4))
        condition = RunnerStatCondition((RunnerStat.MUSCLE,), Comparator.GE, 3)
        assert evaluator.evaluate(condition, context) == 4

    def test_runner_stat_floors(self, evaluator):
        context = ConditionContext(selection=[], nodes_by_id={}, roster=_muscle_crew(5))
        condition = RunnerStatCondition((RunnerStat.MUSCLE,), Comparator.GE, 3)
        assert evaluator.evaluate(condition, context) == 1

    def test_runner_stat_sums_named_stats(self, evaluator, runners):
        """hacker+ninja over the fixture crew: 7 + 2 + 5 = 14."""
        context = ConditionContext(selection=[], nodes_by_id={}, roster=runners)
        condition = RunnerStatCondition((RunnerStat.HACKER, RunnerStat.NINJA), Comparator.GE, 7)
        assert evaluator.evaluate(condition, context) == 2

    @pytest.mark.parametrize("comparator, threshold, expected", [
        (Comparator.LE, 12, 1),
        (Comparator.LE, 11, 0),
        (Comparator.EQ, 12, 1),
        (Comparator.GT, 12, 0),
        (Comparator.LT, 13, 1),
    ])
    def test_runner_stat_other_comparators_switch(self, evaluator, comparator, threshold, expected):
        """Comparators other than >= give 0 or 1."""
        context = ConditionContext(selection=[], nodes_by_id={}, roster=_muscle_crew(4, 4, 4))
        condition = RunnerStatCondition((RunnerStat.MUSCLE,), comparator, threshold)
        assert evaluator.evaluate(condition, context) == expected

    def test_runner_stat_bad_threshold(self, evaluator):
        """Threshold <= 0 never applies and leaves a diagnostic."""
        context = ConditionContext(selection=[], nodes_by_id={}, roster=_muscle_crew(4))
        condition = RunnerStatCondition((RunnerStat.MUSCLE,), Comparator.GE, 0)

        assert evaluator.evaluate(condition, context) == 0
        assert len(context.diagnostics) == 1


class TestPreventionConditions:
    """Conditions that read the prevention snapshot."""

    def _context(self, **pools):
        snapshot = PreventionSnapshot.from_pools(PoolSet(**pools))
        return ConditionContext(selection=[], nodes_by_id={}, prevention=snapshot)

    def test_prev_dam(self, evaluator):
        """Grit 8, Damage 10: floor(8/2) = 4 prevented."""
        context = self._context(grit=8, damage=10)
        assert evaluator.evaluate(PrevDamCondition(), context) == 4

    def test_prev_dam_limited_by_damage(self, evaluator):
        context = self._context(grit=20, damage=3)
        assert evaluator.evaluate(PrevDamCondition(), context) == 3

    def test_prev_risk(self, evaluator):
        context = self._context(veil=5, risk=10)
        assert evaluator.evaluate(PrevRiskCondition(), context) == 2

    def test_risk_dam_pair(self, evaluator):
        """5 damage prevented, 3 risk prevented: 3 pairs."""
        context = self._context(grit=10, damage=10, veil=6, risk=10)
        assert evaluator.evaluate(RiskDamPairCondition(), context) == 3

    def test_no_snapshot_reads_zero(self, evaluator):
        context = ConditionContext(selection=[], nodes_by_id={})
        assert evaluator.evaluate(PrevDamCondition(), context) == 0
        assert evaluator.evaluate(RiskDamPairCondition(), context) == 0


class TestUnknownCondition:
    """The permissive fallback."""

    def test_applies_once_with_diagnostic(self, evaluator):
        context = ConditionContext(selection=[], nodes_by_id={})

        assert evaluator.evaluate(UnknownCondition("Moon:Full"), context) == 1
        assert any("Moon:Full" in d for d in context.diagnostics)
