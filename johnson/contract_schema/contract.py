"""
Contract definitions - the node graph a player works through.

A contract is built once when its data loads and never changes afterwards.
Which nodes are selected is session state, kept outside the nodes.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, Iterator
import re

from .vocabulary import NodeColor, NodeType
from .effect_dsl import EffectDescriptor
from .gate_dsl import GateCondition


def parse_connections(connections: str | Iterable[str] | None) -> tuple[str, ...]:
    """
    Parse a node's outgoing connections.

    Accepts both historical authoring formats, comma-separated (editor)
    and semicolon-separated (legacy CSV), and any mix of the two. A bare
    number from JSON is read as a single id.
    """
    if connections is None:
        return ()
    if not isinstance(connections, (str, list, tuple, set, frozenset)):
        connections = str(connections)
    if isinstance(connections, str):
        items = re.split(r"[,;]", connections)
    else:
        items = [str(c) for c in connections if c is not None]
    return tuple(c.strip() for c in items if c.strip())


@dataclass(frozen=True)
class Node:
    """
    A node of the contract tree.

    Gate nodes carry a gate condition and no effects that matter:
    any effects they declare are ignored by the pool engine.
    """
    node_id: str
    color: NodeColor
    node_type: NodeType = NodeType.NORMAL
    description: str = ""
    effect_description: str = ""
    effects: tuple[EffectDescriptor, ...] = ()
    connections: tuple[str, ...] = ()
    gate_condition: GateCondition | None = None

    # Legacy layout annotations, layer 0 doubles as a start marker
    layer: int | None = None
    slot: str = ""
    x: float | None = None
    y: float | None = None

    @property
    def is_gate(self) -> bool:
        return self.node_type is NodeType.GATE

    @property
    def is_start(self) -> bool:
        return self.node_type is NodeType.START or self.layer == 0

    @property
    def is_synergy(self) -> bool:
        return self.node_type is NodeType.SYNERGY


@dataclass
class Contract:
    """A loaded contract: its nodes, indexed by id."""
    contract_id: str
    nodes: tuple[Node, ...] = ()
    name: str = ""
    _by_id: dict[str, Node] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        self._by_id = {node.node_id: node for node in self.nodes}

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._by_id

    @property
    def nodes_by_id(self) -> dict[str, Node]:
        return dict(self._by_id)

    def get_node(self, node_id: str) -> Node | None:
        """Get a node by id."""
        return self._by_id.get(node_id)
