"""
Tests for graph reachability.

Tests:
- Start, Synergy and orphan nodes are always available
- Successors open up when a predecessor is selected
- Gate nodes need a predecessor and an open gate
- Gate condition evaluation
"""

from ..contract_schema import (
    NodeGate,
    NodeType,
    RunnerArchetype,
    RunnerStat,
    RunnerStatGate,
    RunnerTypeGate,
)
from ..engine_core.reachability import (
    compute_availability,
    evaluate_gate_condition,
    predecessors,
)
from ..engine_core.state import Runner


class TestAvailability:
    """Tests for compute_availability."""

    def test_initial_availability(self, contract):
        """With nothing selected only Start and Synergy nodes are open."""
        assert compute_availability(contract, []) == {"start", "syn"}

    def test_successors_open(self, contract):
        """Selecting a node opens its successors."""
        assert compute_availability(contract, ["start"]) == {"a", "b", "syn"}

    def test_selected_nodes_not_available(self, contract):
        """A selected node cannot be selected again."""
        available = compute_availability(contract, ["start", "syn"])
        assert "start" not in available
        assert "syn" not in available

    def test_any_predecessor_suffices(self, make_node):
        """One selected predecessor is enough."""
        nodes = [
            make_node("s1", node_type=NodeType.START, connections=("x",)),
            make_node("s2", node_type=NodeType.START, connections=("x",)),
            make_node("x"),
        ]
        assert "x" in compute_availability(nodes, ["s2"])

    def test_orphan_always_available(self, make_node):
        """Nodes nothing connects to are available."""
        nodes = [make_node("lonely")]
        assert compute_availability(nodes, []) == {"lonely"}

    def test_layer_zero_is_start(self, make_node):
        """Legacy layer 0 nodes are start nodes even with predecessors."""
        nodes = [
            make_node("p", node_type=NodeType.START, connections=("q",)),
            make_node("q", layer=0),
        ]
        assert "q" in compute_availability(nodes, [])

    def test_synergy_with_predecessor_still_available(self, make_node):
        nodes = [
            make_node("p", node_type=NodeType.START, connections=("syn",)),
            make_node("syn", node_type=NodeType.SYNERGY),
        ]
        assert "syn" in compute_availability(nodes, [])

    def test_gate_needs_all_nodes(self, contract):
        """Node:a,b;0 opens only once both a and b are selected."""
        assert "gate" not in compute_availability(contract, ["start", "b"])
        assert "gate" in compute_availability(contract, ["start", "a", "b"])

    def test_gate_needs_predecessor(self, make_node, gate_node):
        """An open gate without a selected predecessor stays closed."""
        nodes = [
            make_node("s", node_type=NodeType.START, connections=("p",)),
            make_node("p", connections=("g",)),
            gate_node("g", NodeGate(node_ids=("s",), threshold=1)),
        ]
        assert "g" not in compute_availability(nodes, ["s"])
        assert "g" in compute_availability(nodes, ["s", "p"])

    def test_gate_without_condition_never_available(self, make_node, gate_node):
        nodes = [
            make_node("s", node_type=NodeType.START, connections=("g",)),
            gate_node("g", None),
        ]
        assert "g" not in compute_availability(nodes, ["s"])

    def test_orphan_gate_not_available(self, gate_node):
        """Orphan shortcut does not apply to gates."""
        nodes = [gate_node("g", NodeGate(node_ids=("x",), threshold=0))]
        assert compute_availability(nodes, ["x"]) == set()

    def test_end_node_reachable_through_gate(self, contract):
        assert "end" in compute_availability(contract, ["start", "a", "b", "gate"])

    def test_roster_changes_gate(self, make_node, gate_node):
        """Gate availability follows the hired roster."""
        nodes = [
            make_node("s", node_type=NodeType.START, connections=("g",)),
            gate_node("g", RunnerTypeGate(archetypes=(RunnerArchetype.NINJA,), threshold=1)),
        ]
        ninja = Runner("n", "Shade", RunnerArchetype.NINJA)
        assert "g" not in compute_availability(nodes, ["s"])
        assert "g" in compute_availability(nodes, ["s"], [ninja])


class TestGateConditions:
    """Tests for evaluate_gate_condition."""

    def test_node_gate_all(self):
        gate = NodeGate(node_ids=("a", "b", "c"), threshold=0)
        assert not evaluate_gate_condition(gate, {"a", "b"})
        assert evaluate_gate_condition(gate, {"a", "b", "c"})

    def test_node_gate_threshold(self):
        """Threshold t means at least t of the listed nodes."""
        gate = NodeGate(node_ids=("a", "b", "c"), threshold=2)
        assert not evaluate_gate_condition(gate, {"a"})
        assert evaluate_gate_condition(gate, {"a", "c"})

    def test_runner_type_gate(self, runners):
        gate = RunnerTypeGate(archetypes=(RunnerArchetype.HACKER, RunnerArchetype.FACE), threshold=2)
        assert evaluate_gate_condition(gate, set(), runners)
        assert not evaluate_gate_condition(gate, set(), runners[:1])

    def test_runner_stat_gate(self, runners):
        """Stats are summed over the roster."""
        gate = RunnerStatGate(stats=(RunnerStat.MUSCLE,), threshold=7)
        assert evaluate_gate_condition(gate, set(), runners)  # 0 + 6 + 1
        assert not evaluate_gate_condition(gate, set(), runners[:2])

    def test_runner_gate_with_empty_roster(self):
        gate = RunnerTypeGate(archetypes=(RunnerArchetype.NINJA,), threshold=1)
        assert not evaluate_gate_condition(gate, set(), [])


class TestPredecessors:
    """Tests for the reverse adjacency map."""

    def test_reverse_edges(self, contract):
        incoming = predecessors(contract)
        assert incoming["gate"] == {"b", "c"}
        assert incoming["start"] == set()

