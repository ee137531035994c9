"""
Contract Loader - Build Contract objects from authored rows.

Rows are dicts keyed by the CSV column names used by the contract editor:

    Node ID, Description, Effect Desc, Effect 1, Effect 2, Type, Color,
    GateCondition, Connections, Layer, Slot, X, Y

snake_case keys (node_id, effect1, gate_condition, ...) are accepted too,
so JSON exports from either tool load the same way.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Iterable
import csv
import json
import logging

from .vocabulary import NodeColor, NodeType
from .effect_dsl import EffectParseError, parse_effect
from .gate_dsl import GateConditionParseError, parse_gate_condition
from .contract import Contract, Node
from .validation import (
    EFFECT_COLUMNS,
    ContractValidationError,
    row_connections,
    row_value,
    validate_contract,
)

logger = logging.getLogger(__name__)


def _optional_int(text: str) -> int | None:
    try:
        return int(float(text)) if text else None
    except ValueError:
        return None


def _optional_float(text: str) -> float | None:
    try:
        return float(text) if text else None
    except ValueError:
        return None


def node_from_row(row: dict[str, Any]) -> Node:
    """
    Build a Node from one row.

    Raises ValueError (or a subclass) on malformed fields. Use
    validate_contract first to collect every problem at once.
    """
    node_id = row_value(row, "Node ID", "node_id", "id").strip()
    if not node_id:
        raise ValueError("Node ID is required")

    type_text = row_value(row, "Type", "node_type", "type")
    node_type = NodeType.parse(type_text) if type_text else NodeType.NORMAL

    effects = []
    for keys in EFFECT_COLUMNS.values():
        text = row_value(row, *keys)
        if text:
            effects.append(parse_effect(text))

    gate_condition = None
    gate_text = row_value(row, "GateCondition", "gate_condition")
    if node_type is NodeType.GATE and gate_text:
        gate_condition = parse_gate_condition(gate_text)

    return Node(
        node_id=node_id,
        color=NodeColor.parse(row_value(row, "Color", "color")),
        node_type=node_type,
        description=row_value(row, "Description", "description"),
        effect_description=row_value(row, "Effect Desc", "effect_description"),
        effects=tuple(effects),
        connections=row_connections(row),
        gate_condition=gate_condition,
        layer=_optional_int(row_value(row, "Layer", "layer")),
        slot=row_value(row, "Slot", "slot"),
        x=_optional_float(row_value(row, "X", "x")),
        y=_optional_float(row_value(row, "Y", "y")),
    )


def _lenient_node(row: dict[str, Any]) -> Node | None:
    """Build a node, dropping broken effects/gates instead of failing."""
    node_id = row_value(row, "Node ID", "node_id", "id")
    try:
        return node_from_row(_without_broken_fields(row))
    except ValueError as e:
        logger.warning("Skipping unreadable node row %s: %s", node_id or row, e)
        return None


def _without_broken_fields(row: dict[str, Any]) -> dict[str, Any]:
    """Copy of the row with unparseable effect and gate columns blanked out."""
    cleaned = dict(row)
    for keys in EFFECT_COLUMNS.values():
        for key in keys:
            text = row_value(cleaned, key)
            if text:
                try:
                    parse_effect(text)
                except EffectParseError as e:
                    logger.warning("Dropping effect of node %s: %s",
                                   row_value(row, "Node ID", "node_id", "id"), e)
                    cleaned[key] = ""
    for key in ("GateCondition", "gate_condition"):
        text = row_value(cleaned, key)
        if text:
            try:
                parse_gate_condition(text)
            except GateConditionParseError as e:
                logger.warning("Dropping gate condition of node %s: %s",
                               row_value(row, "Node ID", "node_id", "id"), e)
                cleaned[key] = ""
    return cleaned


def load_contract(
    rows: Iterable[dict[str, Any]],
    contract_id: str = "contract",
    name: str = "",
    strict: bool = True,
) -> Contract:
    """
    Load a contract from rows.

    strict=True validates first and raises ContractValidationError on any
    error. strict=False loads what it can and logs what it dropped.
    """
    rows = list(rows)
    result = validate_contract(rows)
    for warning in result.warnings:
        logger.warning("Contract %s: %s", contract_id, warning)

    if strict:
        if not result.valid:
            raise ContractValidationError(result.errors)
        nodes = [node_from_row(row) for row in rows]
    else:
        nodes = [n for n in (_lenient_node(row) for row in rows) if n is not None]
        known = {n.node_id for n in nodes}
        for node in nodes:
            dangling = [c for c in node.connections if c not in known]
            if dangling:
                logger.warning("Node %s has dangling connections: %s", node.node_id, dangling)

    logger.debug("Loaded contract %s with %d nodes", contract_id, len(nodes))
    return Contract(contract_id=contract_id, nodes=tuple(nodes), name=name)


def read_rows(path: str | Path) -> list[dict[str, Any]]:
    """
    Read contract or table rows from a .json or .csv file.

    JSON files may hold a list of rows or an object with a "nodes" list.
    """
    path = Path(path)
    if path.suffix.lower() == ".csv":
        with open(path, "r", encoding="utf-8", newline="") as f:
            return [dict(row) for row in csv.DictReader(f)]

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("nodes", [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of rows")
    return data
