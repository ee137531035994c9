"""
Balancing Configuration - Tunable numbers of the contract game.

Values come from three places, later ones winning:
1. Defaults on BalancingConfig
2. Parameter/Value rows (the balancing sheet, camelCase names)
3. JOHNSON_* environment variables (BalancingConfig.from_env)
"""

from __future__ import annotations
from dataclasses import dataclass, fields, replace
from typing import Any, Iterable, Mapping
import logging
import os
import re

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalancingConfig:
    generated_runner_batch_size: int = 5
    hiring_cost: float = 150.0
    contract_base_reward: float = 1000.0
    player_level_per_contract: int = 1
    runner_main_stat_allocation: int = 2
    runner_random_stat_allocation: int = 2
    damage_roll_delay: float = 200.0  # milliseconds
    max_damage_roll_value: int = 100
    player_starting_money: float = 600.0
    max_hired_runners: int = 3

    @property
    def damage_roll_delay_seconds(self) -> float:
        return self.damage_roll_delay / 1000

    def validate(self) -> list[str]:
        """Return a list of problems; empty means usable."""
        errors = []
        if not 1 <= self.generated_runner_batch_size <= 20:
            errors.append("generatedRunnerBatchSize must be between 1 and 20")
        if self.hiring_cost < 0:
            errors.append("hiringCost cannot be negative")
        if self.contract_base_reward < 0:
            errors.append("contractBaseReward cannot be negative")
        if self.damage_roll_delay < 0:
            errors.append("damageRollDelay cannot be negative")
        if self.max_damage_roll_value < 1:
            errors.append("maxDamageRollValue must be at least 1")
        if self.max_hired_runners < 1:
            errors.append("maxHiredRunners must be at least 1")
        return errors

    def with_overrides(self, overrides: Mapping[str, Any]) -> BalancingConfig:
        """
        Return a copy with some values replaced.

        Keys may be snake_case field names or the camelCase sheet names.
        Unknown keys and non-numeric values are skipped with a warning.
        """
        known = {f.name for f in fields(self)}
        changes = {}
        for key, raw in overrides.items():
            name = _snake_case(key)
            if name not in known:
                logger.warning("Unknown balancing parameter: %s", key)
                continue
            try:
                value = float(raw)
            except (TypeError, ValueError):
                logger.warning("Non-numeric value for %s: %r", key, raw)
                continue
            current = getattr(self, name)
            changes[name] = int(value) if isinstance(current, int) else value
        return replace(self, **changes)

    @classmethod
    def from_env(cls, base: BalancingConfig | None = None) -> BalancingConfig:
        """Apply JOHNSON_<FIELD> environment overrides, e.g. JOHNSON_HIRING_COST."""
        base = base or cls()
        overrides = {}
        for f in fields(cls):
            env_name = f"JOHNSON_{f.name.upper()}"
            if env_name in os.environ:
                overrides[f.name] = os.environ[env_name]
        return base.with_overrides(overrides)


def parse_balancing_rows(
    rows: Iterable[Mapping[str, Any]],
    base: BalancingConfig | None = None,
) -> BalancingConfig:
    """
    Build a config from balancing sheet rows.

    Each row is {"Parameter": "hiringCost", "Value": "150"}.
    """
    overrides = {}
    for row in rows:
        parameter = str(row.get("Parameter") or row.get("parameter") or "").strip()
        if not parameter:
            continue
        overrides[parameter] = row.get("Value", row.get("value"))
    return (base or BalancingConfig()).with_overrides(overrides)


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name.strip()).lower()


# Shipped damage table; covers 1..100
DEFAULT_DAMAGE_TABLE_ROWS: list[dict[str, str]] = [
    {"Roll Range": "1-5", "Effect": "Death"},
    {"Roll Range": "6-25", "Effect": "Injury"},
    {"Roll Range": "26-40", "Effect": "Reduce 15"},
    {"Roll Range": "41-55", "Effect": "Reduce 5"},
    {"Roll Range": "56-90", "Effect": "No Effect"},
    {"Roll Range": "91-100", "Effect": "Extra 5"},
]
