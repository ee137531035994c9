"""
Gate conditions - extra requirements on Gate nodes.

Wire format: `Type:Params;Threshold`, e.g.

    Node:N01,N02;0        both N01 and N02 selected
    Node:N01,N02,N03;2    at least two of them selected
    RunnerType:Hacker,Ninja;1
    RunnerStat:muscle,ninja;8

Gates answer a yes/no question (open or closed). They deliberately do not
share code with effect conditions, which count how many times an effect fires.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Union
import re

from .vocabulary import RunnerArchetype, RunnerStat

NODE_ID_RE = re.compile(r"^[a-zA-Z0-9_-]+$")


class GateConditionParseError(ValueError):
    """Raised when a gate condition string is malformed."""


@dataclass(frozen=True)
class NodeGate:
    """
    Opens on selected nodes.

    threshold == 0 means every listed node must be selected.
    """
    node_ids: tuple[str, ...]
    threshold: int = 0

    def __str__(self) -> str:
        return f"Node:{','.join(self.node_ids)};{self.threshold}"


@dataclass(frozen=True)
class RunnerTypeGate:
    """Opens when enough crew members have one of the archetypes."""
    archetypes: tuple[RunnerArchetype, ...]
    threshold: int = 0

    def __str__(self) -> str:
        return f"RunnerType:{','.join(a.value for a in self.archetypes)};{self.threshold}"


@dataclass(frozen=True)
class RunnerStatGate:
    """Opens when the crew's summed stats reach the threshold."""
    stats: tuple[RunnerStat, ...]
    threshold: int = 0

    def __str__(self) -> str:
        return f"RunnerStat:{','.join(s.value for s in self.stats)};{self.threshold}"


GateCondition = Union[NodeGate, RunnerTypeGate, RunnerStatGate]


def parse_gate_condition(text: str) -> GateCondition:
    """Parse a gate condition string. Raises GateConditionParseError."""
    if not text or not text.strip():
        raise GateConditionParseError("Gate condition cannot be empty")

    parts = text.split(";")
    if len(parts) != 2:
        raise GateConditionParseError(
            "Gate condition must have exactly 2 parts separated by semicolon "
            "(Type:Params;Threshold)"
        )
    condition_part, threshold_text = (p.strip() for p in parts)

    try:
        threshold = int(threshold_text)
    except ValueError:
        threshold = -1
    if threshold < 0:
        raise GateConditionParseError(
            f"Gate condition threshold must be a non-negative integer, got '{threshold_text}'"
        )

    kind, sep, params = condition_part.partition(":")
    items = [p.strip() for p in params.split(",") if p.strip()]

    if not sep or kind not in ("Node", "RunnerType", "RunnerStat"):
        raise GateConditionParseError(
            "Gate condition must start with Node:, RunnerType:, or RunnerStat:"
        )

    if not items:
        raise GateConditionParseError(f"{kind} gate condition requires at least one parameter")

    if kind == "Node":
        bad = [i for i in items if not NODE_ID_RE.match(i)]
        if bad:
            raise GateConditionParseError(
                f"Invalid node ID '{bad[0]}' in gate condition. "
                "Must contain only letters, numbers, underscores, and hyphens"
            )
        return NodeGate(node_ids=tuple(items), threshold=threshold)

    try:
        if kind == "RunnerType":
            return RunnerTypeGate(
                archetypes=tuple(RunnerArchetype.parse(i) for i in items),
                threshold=threshold,
            )
        return RunnerStatGate(
            stats=tuple(RunnerStat.parse(i) for i in items),
            threshold=threshold,
        )
    except ValueError as e:
        raise GateConditionParseError(f"{e} in gate condition") from e
