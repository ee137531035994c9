"""
Graph Reachability - Which nodes the player may select next.

A node is available when any of these hold:
1. It is a Start node (type Start, or legacy layer 0)
2. It is a Synergy node
3. Nothing connects to it (orphan)
4. A node that connects to it is selected

Gate nodes ignore rules 1-3: they need a selected predecessor AND an
open gate condition. Selected nodes are never reported as available.

This is a pure function of (nodes, selection, roster).
"""

from __future__ import annotations
from typing import Collection, Iterable, Sequence
import logging

from ..contract_schema.contract import Node
from ..contract_schema.gate_dsl import GateCondition, NodeGate, RunnerStatGate, RunnerTypeGate
from .state import Runner

logger = logging.getLogger(__name__)


def predecessors(nodes: Iterable[Node]) -> dict[str, set[str]]:
    """Reverse adjacency: node id -> ids of nodes that connect to it."""
    nodes = list(nodes)
    incoming: dict[str, set[str]] = {node.node_id: set() for node in nodes}
    for node in nodes:
        for target in node.connections:
            incoming.setdefault(target, set()).add(node.node_id)
    return incoming


def evaluate_gate_condition(
    gate: GateCondition,
    selection: Collection[str],
    roster: Sequence[Runner] = (),
) -> bool:
    """
    Is the gate open?

    Binary threshold logic; not the counting multipliers effects use.
    """
    if isinstance(gate, NodeGate):
        selected_count = sum(1 for node_id in gate.node_ids if node_id in selection)
        if gate.threshold == 0:
            return selected_count == len(gate.node_ids)
        return selected_count >= gate.threshold

    if isinstance(gate, RunnerTypeGate):
        matching = sum(1 for runner in roster if runner.archetype in gate.archetypes)
        return matching >= gate.threshold

    if isinstance(gate, RunnerStatGate):
        total = sum(runner.stat(stat) for runner in roster for stat in gate.stats)
        return total >= gate.threshold

    logger.warning("Unknown gate condition type: %r", gate)
    return False


def is_available(
    node: Node,
    selection: Collection[str],
    incoming: dict[str, set[str]],
    roster: Sequence[Runner] = (),
) -> bool:
    """Availability of a single node, given a precomputed reverse adjacency."""
    if node.node_id in selection:
        return False

    parents = incoming.get(node.node_id, set())
    has_selected_parent = any(parent in selection for parent in parents)

    if node.is_gate:
        if node.gate_condition is None:
            logger.warning("Gate node %s has no gate condition", node.node_id)
            return False
        return has_selected_parent and evaluate_gate_condition(
            node.gate_condition, selection, roster
        )

    if node.is_start or node.is_synergy:
        return True

    if not parents:
        return True

    return has_selected_parent


def compute_availability(
    nodes: Iterable[Node],
    selection: Collection[str],
    roster: Sequence[Runner] = (),
) -> set[str]:
    """
    Compute the ids of every node the player can select right now.

    Args:
        nodes: All nodes of the contract
        selection: Currently selected node ids
        roster: Hired runners (only Gate conditions look at them)
    """
    nodes = list(nodes)
    incoming = predecessors(nodes)
    return {
        node.node_id
        for node in nodes
        if is_available(node, selection, incoming, roster)
    }
