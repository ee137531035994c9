"""
Effect DSL - Declarative per-node effects.

Each node carries one or two effect strings of the form:

    Condition;Operator;Amount;Stat

e.g. "NodeColor:Red;+;2;Damage" or "RunnerStat:face+ninja>=4;%;10;Money".

Effects are:
- Parsed once: strings become immutable descriptors at load time
- Closed: the condition vocabulary is a fixed set of variants
- Deterministic: given the same selection and roster, an effect always
  yields the same multiplier

Key design decisions:
- Conditions are a tagged union of small frozen dataclasses; the
  evaluator matches on the variant instead of re-parsing strings
- Unrecognised conditions are kept as an explicit UnknownCondition so
  the permissive "apply once" behaviour stays visible and testable
- Prevention conditions (PrevDam, PrevRisk, RiskDamPair) read a
  prevention snapshot produced by the pool engine between passes
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Union
import math
import re

from .vocabulary import (
    Comparator,
    NodeColor,
    Operator,
    PoolStat,
    RunnerArchetype,
    RunnerStat,
)


class EffectParseError(ValueError):
    """Raised when an effect or condition string is malformed."""


# ============================================================================
# Condition variants
# ============================================================================

@dataclass(frozen=True)
class NoCondition:
    """Always applies once."""

    def __str__(self) -> str:
        return "None"


@dataclass(frozen=True)
class RunnerTypeCondition:
    """One application per runner of the given archetype."""
    archetype: RunnerArchetype

    def __str__(self) -> str:
        return f"RunnerType:{self.archetype.value}"


@dataclass(frozen=True)
class RunnerStatCondition:
    """
    Compares the crew's summed stat(s) against a threshold.

    With `>=` the result scales: floor(total / threshold) applications.
    Other comparators behave as a 0/1 switch.
    """
    stats: tuple[RunnerStat, ...]
    comparator: Comparator
    threshold: int

    def __str__(self) -> str:
        names = "+".join(s.value for s in self.stats)
        return f"RunnerStat:{names}{self.comparator.value}{self.threshold}"


@dataclass(frozen=True)
class NodeColorCondition:
    """One application per selected node of the color."""
    color: NodeColor

    def __str__(self) -> str:
        return f"NodeColor:{self.color.value}"


@dataclass(frozen=True)
class NodeColorComboCondition:
    """One application per complete set of the listed colors."""
    colors: tuple[NodeColor, ...]

    def __str__(self) -> str:
        return "NodeColorCombo:" + ",".join(c.value for c in self.colors)


@dataclass(frozen=True)
class PrevDamCondition:
    """One application per point of damage prevented by Grit."""

    def __str__(self) -> str:
        return "PrevDam"


@dataclass(frozen=True)
class PrevRiskCondition:
    """One application per point of risk prevented by Veil."""

    def __str__(self) -> str:
        return "PrevRisk"


@dataclass(frozen=True)
class RiskDamPairCondition:
    """One application per matched pair of prevented damage and risk."""

    def __str__(self) -> str:
        return "RiskDamPair"


@dataclass(frozen=True)
class ColorForEachCondition:
    """One application per distinct color among selected nodes."""

    def __str__(self) -> str:
        return "ColorForEach"


@dataclass(frozen=True)
class UnknownCondition:
    """
    A condition string the parser does not recognise.

    Evaluates to a multiplier of 1 with a warning. Contract validation
    reports these as errors, so only unvalidated data reaches the engine.
    """
    raw: str

    def __str__(self) -> str:
        return self.raw


ConditionDescriptor = Union[
    NoCondition,
    RunnerTypeCondition,
    RunnerStatCondition,
    NodeColorCondition,
    NodeColorComboCondition,
    PrevDamCondition,
    PrevRiskCondition,
    RiskDamPairCondition,
    ColorForEachCondition,
    UnknownCondition,
]

PREVENTION_CONDITIONS = (PrevDamCondition, PrevRiskCondition, RiskDamPairCondition)


def is_prevention_condition(condition: ConditionDescriptor) -> bool:
    """True for conditions that read the prevention snapshot."""
    return isinstance(condition, PREVENTION_CONDITIONS)


# ============================================================================
# Effect descriptor
# ============================================================================

@dataclass(frozen=True)
class EffectDescriptor:
    """
    A single parsed effect.

    `amount` is multiplied by the condition multiplier before the
    operator is applied to the target pool.
    """
    condition: ConditionDescriptor
    operator: Operator
    amount: float
    stat: PoolStat

    @property
    def is_percentage(self) -> bool:
        return not self.operator.is_standard

    def __str__(self) -> str:
        amount = int(self.amount) if self.amount.is_integer() else self.amount
        return f"{self.condition};{self.operator.value};{amount};{self.stat.value.capitalize()}"


# ============================================================================
# Parsing
# ============================================================================

_SIMPLE_CONDITIONS = {
    "None": NoCondition(),
    "PrevDam": PrevDamCondition(),
    "PrevRisk": PrevRiskCondition(),
    "RiskDamPair": RiskDamPairCondition(),
    "ColorForEach": ColorForEachCondition(),
}

# Longest comparators first so ">=" is not read as ">"
_RUNNER_STAT_RE = re.compile(r"^\s*([A-Za-z+\s]+?)\s*(>=|<=|==|=|>|<)\s*(-?\d+)\s*$")


def parse_condition(text: str | None) -> ConditionDescriptor:
    """
    Parse the condition field of an effect string.

    Empty text means no condition. Known prefixes with malformed
    parameters raise EffectParseError; an unknown prefix yields
    UnknownCondition.
    """
    if text is None:
        return NoCondition()
    raw = text.strip()
    if not raw:
        return NoCondition()

    if raw in _SIMPLE_CONDITIONS:
        return _SIMPLE_CONDITIONS[raw]

    prefix, sep, params = raw.partition(":")
    if not sep:
        return UnknownCondition(raw)

    params = params.strip()
    try:
        if prefix == "RunnerType":
            if not params:
                raise ValueError("RunnerType condition must specify a runner type")
            return RunnerTypeCondition(RunnerArchetype.parse(params))

        if prefix == "RunnerStat":
            return _parse_runner_stat(params)

        if prefix == "NodeColor":
            if not params:
                raise ValueError("NodeColor condition must specify a color")
            return NodeColorCondition(NodeColor.parse(params))

        if prefix == "NodeColorCombo":
            names = [c.strip() for c in params.split(",") if c.strip()]
            if not names:
                raise ValueError("NodeColorCombo condition must specify colors")
            return NodeColorComboCondition(tuple(NodeColor.parse(c) for c in names))
    except ValueError as e:
        raise EffectParseError(f"Condition '{raw}': {e}") from e

    return UnknownCondition(raw)


def _parse_runner_stat(params: str) -> RunnerStatCondition:
    match = _RUNNER_STAT_RE.match(params)
    if not match:
        raise ValueError("RunnerStat condition must look like 'stat[+stat]<cmp><threshold>'")
    stat_names, cmp_text, threshold = match.groups()
    names = [s.strip() for s in stat_names.split("+") if s.strip()]
    if not names:
        raise ValueError("RunnerStat condition must specify a stat")
    comparator = Comparator.EQ if cmp_text == "=" else Comparator(cmp_text)
    return RunnerStatCondition(
        stats=tuple(RunnerStat.parse(n) for n in names),
        comparator=comparator,
        threshold=int(threshold),
    )


def parse_effect(text: str) -> EffectDescriptor:
    """
    Parse a full `Condition;Operator;Amount;Stat` effect string.

    Raises EffectParseError for anything but exactly four well-formed fields.
    """
    parts = text.split(";")
    if len(parts) != 4:
        raise EffectParseError(
            f"Effect must have exactly 4 parts separated by semicolons. "
            f"Got {len(parts)} parts: '{text}'"
        )
    condition_text, operator_text, amount_text, stat_text = parts

    condition = parse_condition(condition_text)
    try:
        operator = Operator.parse(operator_text)
        stat = PoolStat.parse(stat_text)
    except ValueError as e:
        raise EffectParseError(f"Effect '{text}': {e}") from e

    if not amount_text.strip():
        raise EffectParseError(f"Effect '{text}': amount cannot be empty")
    try:
        amount = float(amount_text)
    except ValueError:
        raise EffectParseError(
            f"Effect '{text}': amount must be a number, got '{amount_text}'"
        ) from None
    if not math.isfinite(amount):
        raise EffectParseError(f"Effect '{text}': amount must be finite")

    return EffectDescriptor(
        condition=condition,
        operator=operator,
        amount=amount,
        stat=stat,
    )


def parse_effects(*texts: str | None) -> tuple[EffectDescriptor, ...]:
    """Parse the non-empty effect columns of a node."""
    return tuple(parse_effect(t) for t in texts if t and t.strip())
