"""Contract schema - node graph, effect DSL, gate conditions, damage tables."""

from .vocabulary import (
    Comparator,
    NodeColor,
    NodeType,
    Operator,
    PoolStat,
    RunnerArchetype,
    RunnerStat,
)
from .effect_dsl import (
    ColorForEachCondition,
    ConditionDescriptor,
    EffectDescriptor,
    EffectParseError,
    NoCondition,
    NodeColorComboCondition,
    NodeColorCondition,
    PrevDamCondition,
    PrevRiskCondition,
    RiskDamPairCondition,
    RunnerStatCondition,
    RunnerTypeCondition,
    UnknownCondition,
    parse_condition,
    parse_effect,
)
from .gate_dsl import (
    GateCondition,
    GateConditionParseError,
    NodeGate,
    RunnerStatGate,
    RunnerTypeGate,
    parse_gate_condition,
)
from .contract import Contract, Node, parse_connections
from .damage_table import (
    DamageEffectKind,
    DamageTableEntry,
    DamageTableError,
    check_damage_table,
    parse_damage_table,
)
from .validation import ContractValidationError, ValidationResult, validate_contract
from .loader import load_contract, node_from_row, read_rows

__all__ = [
    "Comparator",
    "NodeColor",
    "NodeType",
    "Operator",
    "PoolStat",
    "RunnerArchetype",
    "RunnerStat",
    "ColorForEachCondition",
    "ConditionDescriptor",
    "EffectDescriptor",
    "EffectParseError",
    "NoCondition",
    "NodeColorComboCondition",
    "NodeColorCondition",
    "PrevDamCondition",
    "PrevRiskCondition",
    "RiskDamPairCondition",
    "RunnerStatCondition",
    "RunnerTypeCondition",
    "UnknownCondition",
    "parse_condition",
    "parse_effect",
    "GateCondition",
    "GateConditionParseError",
    "NodeGate",
    "RunnerStatGate",
    "RunnerTypeGate",
    "parse_gate_condition",
    "Contract",
    "Node",
    "parse_connections",
    "DamageEffectKind",
    "DamageTableEntry",
    "DamageTableError",
    "check_damage_table",
    "parse_damage_table",
    "ContractValidationError",
    "ValidationResult",
    "validate_contract",
    "load_contract",
    "node_from_row",
    "read_rows",
]
