"""
Contract Validation - Load-time checks for contract data.

Validates that:
1. Required fields are present and node ids are unique
2. Effect strings and gate conditions are well-formed
3. Colors and node types come from the closed vocabularies
4. Connections reference existing nodes

The engine assumes it only ever sees data that passed these checks.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Iterable

from .vocabulary import NodeColor, NodeType, Operator
from .effect_dsl import (
    EffectParseError,
    RunnerStatCondition,
    UnknownCondition,
    parse_effect,
)
from .gate_dsl import NODE_ID_RE, GateConditionParseError, parse_gate_condition
from .contract import parse_connections

EFFECT_COLUMNS = {
    "Effect 1": ("Effect 1", "effect1", "effect_1"),
    "Effect 2": ("Effect 2", "effect2", "effect_2"),
}
MAX_NODE_ID_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 200
COORDINATE_LIMIT = 10000


class ContractValidationError(Exception):
    """Raised when contract validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Contract validation failed with {len(errors)} error(s)")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str]
    warnings: list[str]


def row_value(row: dict[str, Any], *keys: str) -> str:
    """First non-empty value among the given column names, as a string."""
    for key in keys:
        value = row.get(key)
        if value is not None and str(value).strip() != "":
            return str(value)
    return ""


def row_connections(row: dict[str, Any]) -> tuple[str, ...]:
    """Outgoing connections of a row, from a string or a list."""
    raw = row.get("Connections", row.get("connections"))
    return parse_connections(raw)


def validate_effect_string(effect_text: str) -> list[str]:
    """Validate a single effect string, returning error messages."""
    try:
        effect = parse_effect(effect_text)
    except EffectParseError as e:
        return [str(e)]

    errors = []
    if isinstance(effect.condition, UnknownCondition):
        errors.append(
            f"Invalid condition '{effect.condition.raw}'. Must be 'None', 'PrevDam', "
            "'PrevRisk', 'RiskDamPair', 'ColorForEach', or start with: "
            "RunnerType:, RunnerStat:, NodeColor:, NodeColorCombo:"
        )
    if isinstance(effect.condition, RunnerStatCondition) and effect.condition.threshold <= 0:
        errors.append(f"RunnerStat threshold must be positive in '{effect_text}'")
    if effect.operator is Operator.DIVIDE and effect.amount == 0:
        errors.append(f"Division by zero is not allowed: '{effect_text}'")
    return errors


def validate_gate_condition(text: str) -> list[str]:
    """Validate a gate condition string, returning error messages."""
    try:
        parse_gate_condition(text)
    except GateConditionParseError as e:
        return [str(e)]
    return []


def validate_contract(rows: Iterable[dict[str, Any]]) -> ValidationResult:
    """
    Validate contract rows (dicts keyed by the CSV column names).

    Returns ValidationResult with errors and warnings.
    """
    rows = list(rows)
    errors: list[str] = []
    warnings: list[str] = []

    if not rows:
        return ValidationResult(valid=False, errors=["No valid data rows found"], warnings=[])

    node_ids: set[str] = set()
    for index, row in enumerate(rows, start=1):
        node_id = row_value(row, "Node ID", "node_id", "id")
        if node_id:
            if node_id in node_ids:
                errors.append(f"Row {index}: Duplicate node ID '{node_id}' found")
            node_ids.add(node_id)

        errors.extend(f"Row {index}: {e}" for e in _validate_node(row))
        warnings.extend(f"Row {index}: {w}" for w in _node_warnings(row))

    errors.extend(_validate_connection_references(rows, node_ids))

    types = {row_value(r, "Type", "node_type", "type") for r in rows}
    layers = {row_value(r, "Layer", "layer") for r in rows}
    if NodeType.START.value not in types and "0" not in layers:
        warnings.append("No Start node defined - only orphan and Synergy nodes will be available")

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def _validate_node(row: dict[str, Any]) -> list[str]:
    """Validate a single node row."""
    errors = []

    node_id = row_value(row, "Node ID", "node_id", "id")
    if not node_id:
        errors.append("Node ID is required")
    elif len(node_id) > MAX_NODE_ID_LENGTH:
        errors.append(f"Node ID too long (max {MAX_NODE_ID_LENGTH} characters)")
    elif not NODE_ID_RE.match(node_id):
        errors.append(
            f"Invalid node ID '{node_id}'. Must contain only letters, numbers, "
            "underscores, and hyphens"
        )

    for axis in ("X", "Y"):
        raw = row_value(row, axis, axis.lower())
        if not raw:
            continue
        try:
            value = float(raw)
        except ValueError:
            errors.append(f"{axis} coordinate must be a valid number")
            continue
        if abs(value) > COORDINATE_LIMIT:
            errors.append(
                f"{axis} coordinate out of valid range (-{COORDINATE_LIMIT} to {COORDINATE_LIMIT})"
            )

    node_type = row_value(row, "Type", "node_type", "type")
    if node_type:
        try:
            NodeType(node_type)
        except ValueError:
            valid = ", ".join(t.value for t in NodeType)
            errors.append(f"Invalid node type '{node_type}'. Valid types: {valid}")

    color = row_value(row, "Color", "color")
    if not color:
        errors.append("Node color is required")
    else:
        try:
            NodeColor(color)
        except ValueError:
            valid = ", ".join(c.value for c in NodeColor)
            errors.append(f"Invalid node color '{color}'. Valid colors: {valid}")

    description = row_value(row, "Description", "description")
    if len(description) > MAX_DESCRIPTION_LENGTH:
        errors.append(f"Description too long (max {MAX_DESCRIPTION_LENGTH} characters)")

    if node_type == NodeType.GATE.value:
        gate = row_value(row, "GateCondition", "gate_condition")
        if not gate:
            errors.append("Gate nodes require a GateCondition")
        else:
            errors.extend(validate_gate_condition(gate))

    for column, keys in EFFECT_COLUMNS.items():
        effect_text = row_value(row, *keys)
        if effect_text:
            errors.extend(f"{column}: {e}" for e in validate_effect_string(effect_text))

    for target in row_connections(row):
        if not NODE_ID_RE.match(target):
            errors.append(
                f"Invalid connection ID '{target}'. Must contain only letters, numbers, "
                "underscores, and hyphens"
            )

    return errors


def _node_warnings(row: dict[str, Any]) -> list[str]:
    warnings = []
    is_gate = row_value(row, "Type", "node_type", "type") == NodeType.GATE.value
    if is_gate:
        for column, keys in EFFECT_COLUMNS.items():
            if row_value(row, *keys):
                warnings.append(f"Gate node has {column} defined but it will be ignored")
    elif row_value(row, "GateCondition", "gate_condition"):
        warnings.append("Non-gate node has GateCondition defined but it will be ignored")
    return warnings


def _validate_connection_references(rows: list[dict[str, Any]], node_ids: set[str]) -> list[str]:
    """Every connection must point at a node of the contract."""
    errors = []
    for index, row in enumerate(rows, start=1):
        for target in row_connections(row):
            if target not in node_ids:
                errors.append(f"Row {index}: Connection reference '{target}' not found in node IDs")
    return errors
