"""
Damage table - what each damage roll does.

Rows arrive as `{"Roll Range": "11-30", "Effect": "Reduce 15"}` and become
DamageTableEntry records covering a closed integer interval. Together the
entries must cover [1, max_roll] exactly once; a roll that lands in a hole
is a configuration bug and the resolver refuses to guess.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable


class DamageTableError(RuntimeError):
    """Raised when a roll has no matching entry in the damage table."""


class DamageEffectKind(Enum):
    """What a damage roll does."""
    INJURY = "Injury"
    DEATH = "Death"
    REDUCE = "Reduce"  # Reward reduced by effect_value percent
    EXTRA = "Extra"  # Reward increased by effect_value percent
    NO_EFFECT = "No Effect"


@dataclass(frozen=True)
class DamageTableEntry:
    """One row of the damage table."""
    min_roll: int
    max_roll: int
    effect_kind: DamageEffectKind
    effect_value: float = 0

    def covers(self, roll: int) -> bool:
        return self.min_roll <= roll <= self.max_roll


def parse_damage_effect(text: str) -> tuple[DamageEffectKind, float]:
    """Parse "Injury", "Reduce 15", "Extra 5", "No Effect" and friends."""
    raw = text.strip()
    head, _, tail = raw.partition(" ")
    if head in ("Reduce", "Extra"):
        try:
            value = float(tail)
        except ValueError:
            raise ValueError(f"Damage effect '{raw}' needs a numeric percentage") from None
        return DamageEffectKind(head), value
    if raw.replace(" ", "").lower() == "noeffect":
        return DamageEffectKind.NO_EFFECT, 0
    try:
        return DamageEffectKind(raw), 0
    except ValueError:
        valid = ", ".join(k.value for k in DamageEffectKind)
        raise ValueError(f"Unknown damage effect '{raw}'. Valid effects: {valid}") from None


def parse_roll_range(text: str) -> tuple[int, int]:
    """Parse "11-30" or a single "42"."""
    low, _, high = str(text).strip().partition("-")
    try:
        min_roll = int(low)
        max_roll = int(high) if high.strip() else min_roll
    except ValueError:
        raise ValueError(f"Invalid roll range '{text}'") from None
    if max_roll < min_roll:
        raise ValueError(f"Roll range '{text}' is reversed")
    return min_roll, max_roll


def parse_damage_table(rows: Iterable[dict[str, Any]]) -> list[DamageTableEntry]:
    """Turn damage table rows into entries, preserving row order."""
    entries = []
    for row in rows:
        range_text = row.get("Roll Range", row.get("roll_range"))
        effect_text = row.get("Effect", row.get("effect"))
        if range_text is None or effect_text is None:
            raise ValueError(f"Damage table row is missing 'Roll Range' or 'Effect': {row}")
        min_roll, max_roll = parse_roll_range(range_text)
        kind, value = parse_damage_effect(str(effect_text))
        entries.append(DamageTableEntry(min_roll, max_roll, kind, value))
    return entries


def check_damage_table(entries: list[DamageTableEntry], max_roll: int) -> list[str]:
    """
    Check that entries cover 1..max_roll with no gaps and no overlaps.

    Returns a list of error strings (empty when the table is sound).
    """
    errors = []
    if not entries:
        return ["Damage table is empty"]

    ordered = sorted(entries, key=lambda e: e.min_roll)
    expected = 1
    for entry in ordered:
        if entry.min_roll > expected:
            errors.append(f"Damage table gap: rolls {expected}-{entry.min_roll - 1} have no entry")
        elif entry.min_roll < expected:
            errors.append(
                f"Damage table overlap: {entry.min_roll}-{entry.max_roll} "
                f"overlaps a previous range"
            )
        expected = max(expected, entry.max_roll + 1)

    if expected <= max_roll:
        errors.append(f"Damage table gap: rolls {expected}-{max_roll} have no entry")
    if expected - 1 > max_roll:
        errors.append(f"Damage table covers rolls above the maximum roll {max_roll}")
    return errors
