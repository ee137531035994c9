"""
Closed vocabularies shared by contract data and the engine.

Every enum here is fixed: contract authors pick from these values,
they cannot extend them. Parsing helpers are case-insensitive where
the authoring formats have historically been sloppy about case.
"""

from __future__ import annotations
from enum import Enum


def _lookup(enum_cls, text: str, kind: str):
    """Case-insensitive lookup by value, raising ValueError on a miss."""
    needle = text.strip().lower()
    for member in enum_cls:
        if member.value.lower() == needle:
            return member
    valid = ", ".join(m.value for m in enum_cls)
    raise ValueError(f"Invalid {kind} '{text}'. Valid values: {valid}")


class NodeColor(Enum):
    """Color tag carried by every node."""
    RED = "Red"
    YELLOW = "Yellow"
    GREEN = "Green"
    BLUE = "Blue"
    PURPLE = "Purple"
    GREY = "Grey"

    @classmethod
    def parse(cls, text: str) -> NodeColor:
        return _lookup(cls, text, "node color")


class NodeType(Enum):
    """Structural role of a node in the contract graph."""
    NORMAL = "Normal"
    SYNERGY = "Synergy"  # Always available
    START = "Start"  # Always available, entry point of the tree
    END = "End"
    GATE = "Gate"  # Needs a gate condition on top of reachability

    @classmethod
    def parse(cls, text: str) -> NodeType:
        return _lookup(cls, text, "node type")


class Operator(Enum):
    """Arithmetic operator of an effect."""
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    PERCENT = "%"

    @property
    def is_standard(self) -> bool:
        """Standard operators are applied before prevention is computed."""
        return self is not Operator.PERCENT

    @classmethod
    def parse(cls, text: str) -> Operator:
        try:
            return cls(text.strip())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(f"Invalid operator '{text}'. Must be one of: {valid}") from None


class PoolStat(Enum):
    """The five pools an effect can target."""
    DAMAGE = "damage"
    RISK = "risk"
    MONEY = "money"
    GRIT = "grit"
    VEIL = "veil"

    @property
    def clamped(self) -> bool:
        """Money is the only pool allowed to go negative."""
        return self is not PoolStat.MONEY

    @classmethod
    def parse(cls, text: str) -> PoolStat:
        return _lookup(cls, text, "stat")


class RunnerArchetype(Enum):
    """Runner archetypes."""
    FACE = "Face"
    MUSCLE = "Muscle"
    HACKER = "Hacker"
    NINJA = "Ninja"

    @classmethod
    def parse(cls, text: str) -> RunnerArchetype:
        return _lookup(cls, text, "runner type")


class RunnerStat(Enum):
    """The four integer stats every runner carries."""
    FACE = "face"
    MUSCLE = "muscle"
    HACKER = "hacker"
    NINJA = "ninja"

    @classmethod
    def parse(cls, text: str) -> RunnerStat:
        return _lookup(cls, text, "runner stat")


class Comparator(Enum):
    """Comparison operators accepted in RunnerStat conditions."""
    GE = ">="
    LE = "<="
    EQ = "=="
    GT = ">"
    LT = "<"

    def compare(self, left: float, right: float) -> bool:
        if self is Comparator.GE:
            return left >= right
        if self is Comparator.LE:
            return left <= right
        if self is Comparator.EQ:
            return left == right
        if self is Comparator.GT:
            return left > right
        return left < right
