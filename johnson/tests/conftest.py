"""
Pytest fixtures for Johnson tests.
"""

import random

import pytest

from ..config import DEFAULT_DAMAGE_TABLE_ROWS
from ..contract_schema import (
    Contract,
    DamageEffectKind,
    DamageTableEntry,
    Node,
    NodeColor,
    NodeType,
    RunnerArchetype,
    load_contract,
    parse_damage_table,
    parse_effect,
)
from ..engine_core.state import Runner


def build_node(node_id, color=NodeColor.RED, effects=(), **kwargs) -> Node:
    """Node with effects given as effect strings."""
    return Node(
        node_id=node_id,
        color=color,
        effects=tuple(parse_effect(e) for e in effects),
        **kwargs,
    )


class FixedRolls(random.Random):
    """Random source that returns scripted rolls, first candidate on choice()."""

    def __init__(self, rolls):
        super().__init__(0)
        self.rolls = list(rolls)

    def randint(self, a, b):
        return self.rolls.pop(0)

    def choice(self, seq):
        return seq[0]


@pytest.fixture
def make_node():
    """Factory for nodes with effect strings."""
    return build_node


@pytest.fixture
def contract_rows() -> list[dict]:
    """
    A small contract:

        start -> a -> c -> gate -> end
              -> b ------^
        syn (Synergy, unconnected)

    gate opens when both a and b are selected.
    """
    return [
        {"Node ID": "start", "Color": "Red", "Type": "Start",
         "Effect 1": "None;+;3;Damage", "Connections": "a,b"},
        {"Node ID": "a", "Color": "Blue", "Type": "Normal",
         "Effect 1": "None;+;4;Grit", "Effect 2": "None;+;100;Money", "Connections": "c"},
        {"Node ID": "b", "Color": "Green", "Type": "Normal",
         "Effect 1": "None;+;2;Risk", "Connections": "gate"},
        {"Node ID": "c", "Color": "Yellow", "Type": "Normal",
         "Effect 1": "PrevDam;+;10;Money", "Connections": "gate"},
        {"Node ID": "gate", "Color": "Grey", "Type": "Gate",
         "GateCondition": "Node:a,b;0", "Connections": "end"},
        {"Node ID": "end", "Color": "Purple", "Type": "End",
         "Effect 1": "None;%;50;Money"},
        {"Node ID": "syn", "Color": "Purple", "Type": "Synergy",
         "Effect 1": "ColorForEach;+;1;Veil"},
    ]


@pytest.fixture
def contract(contract_rows) -> Contract:
    """The small contract, loaded strictly."""
    return load_contract(contract_rows, contract_id="test_contract", name="Test Job")


@pytest.fixture
def runners() -> list[Runner]:
    """Three fresh runners, one of each of three archetypes."""
    return [
        Runner("r1", "Vex", RunnerArchetype.HACKER, face=1, muscle=0, hacker=5, ninja=2),
        Runner("r2", "Bolt", RunnerArchetype.MUSCLE, face=0, muscle=6, hacker=1, ninja=1),
        Runner("r3", "Silk", RunnerArchetype.FACE, face=4, muscle=1, hacker=2, ninja=3),
    ]


@pytest.fixture
def damage_table() -> list[DamageTableEntry]:
    """The shipped damage table."""
    return parse_damage_table(DEFAULT_DAMAGE_TABLE_ROWS)


@pytest.fixture
def simple_table() -> list[DamageTableEntry]:
    """
    One kind of effect per decile, for scripted rolls:

        1-10 Injury, 11-20 Death, 21-30 Reduce 10, 31-40 Extra 10, 41-100 No Effect
    """
    return [
        DamageTableEntry(1, 10, DamageEffectKind.INJURY),
        DamageTableEntry(11, 20, DamageEffectKind.DEATH),
        DamageTableEntry(21, 30, DamageEffectKind.REDUCE, 10),
        DamageTableEntry(31, 40, DamageEffectKind.EXTRA, 10),
        DamageTableEntry(41, 100, DamageEffectKind.NO_EFFECT),
    ]


@pytest.fixture
def gate_node():
    """Gate node factory shortcut."""
    def _gate(node_id, gate_condition, connections=()):
        return Node(
            node_id=node_id,
            color=NodeColor.GREY,
            node_type=NodeType.GATE,
            gate_condition=gate_condition,
            connections=tuple(connections),
        )
    return _gate
