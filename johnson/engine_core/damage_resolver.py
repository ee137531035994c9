"""
Damage Resolver - Table-driven outcome of a contract run.

For each point of unprevented damage the resolver rolls 1..max_roll, looks
the roll up in the damage table and applies the result:

- Injury: a Ready runner becomes Injured; if none, an Injured one dies
- Death:  an Injured runner dies; if none, a Ready one is injured
- Reduce: reward shrinks by N percent (never below 0)
- Extra:  reward grows by N percent
- No Effect

Rolls are strictly sequential: roll N's casualties are visible to roll N+1.
Afterwards surviving runners level up (stats do not change) and the whole
crew is released.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Sequence
import asyncio
import logging
import math
import random

from ..contract_schema.damage_table import (
    DamageEffectKind,
    DamageTableEntry,
    DamageTableError,
)
from .state import HiringState, Runner, RunnerState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RollRecord:
    """Log entry for one damage roll."""
    roll_number: int
    raw_roll: int
    effect_kind: DamageEffectKind
    description: str
    affected_runner_id: str | None
    reward_after: int


RollObserver = Callable[[RollRecord], None]


@dataclass
class ResolutionReport:
    """Everything that happened during one resolution."""
    starting_reward: float
    final_reward: int
    unprevented_damage: int
    rolls: list[RollRecord] = field(default_factory=list)
    leveled_up: list[str] = field(default_factory=list)
    injured: list[str] = field(default_factory=list)
    killed: list[str] = field(default_factory=list)


@dataclass
class DamageResolver:
    """
    Resolves damage rolls against a roster.

    The rng is injectable so resolutions can be replayed from a seed.
    """
    damage_table: Sequence[DamageTableEntry]
    max_roll: int | None = None
    rng: random.Random = field(default_factory=random.Random)

    def __post_init__(self):
        if self.max_roll is None:
            self.max_roll = max((e.max_roll for e in self.damage_table), default=1)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(
        self,
        unprevented_damage: int,
        roster: Sequence[Runner],
        base_reward: float,
        observer: RollObserver | None = None,
    ) -> ResolutionReport:
        """
        Run all damage rolls, then level up and release the crew.

        Mutates the runners in `roster`. Raises DamageTableError if a roll
        falls outside the table.
        """
        report = ResolutionReport(
            starting_reward=base_reward,
            final_reward=math.floor(base_reward),
            unprevented_damage=max(0, int(unprevented_damage)),
        )
        reward = float(base_reward)
        for roll_number in range(1, report.unprevented_damage + 1):
            reward = self._roll_once(roll_number, roster, reward, report, observer)
        return self._finish(roster, reward, report)

    async def resolve_paced(
        self,
        unprevented_damage: int,
        roster: Sequence[Runner],
        base_reward: float,
        delay_seconds: float = 0.2,
        observer: RollObserver | None = None,
    ) -> ResolutionReport:
        """
        Same as resolve(), pausing between rolls for a progressive reveal.

        If the task is cancelled, rolls already applied stay applied and
        the crew is neither leveled up nor released.
        """
        report = ResolutionReport(
            starting_reward=base_reward,
            final_reward=math.floor(base_reward),
            unprevented_damage=max(0, int(unprevented_damage)),
        )
        reward = float(base_reward)
        for roll_number in range(1, report.unprevented_damage + 1):
            if roll_number > 1 and delay_seconds > 0:
                await asyncio.sleep(delay_seconds)
            reward = self._roll_once(roll_number, roster, reward, report, observer)
        return self._finish(roster, reward, report)

    def lookup(self, roll: int) -> DamageTableEntry:
        """Find the table entry covering a roll."""
        for entry in self.damage_table:
            if entry.covers(roll):
                return entry
        raise DamageTableError(f"No damage table entry found for roll {roll}")

    # ------------------------------------------------------------------
    # Roll mechanics
    # ------------------------------------------------------------------

    def _roll_once(
        self,
        roll_number: int,
        roster: Sequence[Runner],
        reward: float,
        report: ResolutionReport,
        observer: RollObserver | None,
    ) -> float:
        raw_roll = self.rng.randint(1, self.max_roll)
        entry = self.lookup(raw_roll)
        kind = entry.effect_kind
        target: Runner | None = None

        if kind is DamageEffectKind.INJURY:
            description, target = self._injure(roster)
        elif kind is DamageEffectKind.DEATH:
            description, target = self._kill(roster)
        elif kind is DamageEffectKind.REDUCE:
            reward = max(0.0, reward - reward * (entry.effect_value / 100))
            description = (
                f"Rewards reduced by {_pct(entry.effect_value)}%, "
                f"New Total: ${math.floor(reward)}"
            )
        elif kind is DamageEffectKind.EXTRA:
            reward = reward + reward * (entry.effect_value / 100)
            description = (
                f"Rewards increased by {_pct(entry.effect_value)}%, "
                f"New Total: ${math.floor(reward)}"
            )
        else:
            description = "No effect"

        if target is not None:
            if target.runner_state is RunnerState.DEAD:
                report.killed.append(target.runner_id)
            else:
                report.injured.append(target.runner_id)

        record = RollRecord(
            roll_number=roll_number,
            raw_roll=raw_roll,
            effect_kind=kind,
            description=description,
            affected_runner_id=target.runner_id if target else None,
            reward_after=math.floor(reward),
        )
        report.rolls.append(record)
        logger.debug("Roll %d: %d -> %s (%s)", roll_number, raw_roll, kind.value, description)

        if observer is not None:
            observer(record)
        return reward

    def _pick(self, roster: Sequence[Runner], state: RunnerState) -> Runner | None:
        candidates = [r for r in roster if r.runner_state is state]
        if not candidates:
            return None
        return self.rng.choice(candidates)

    def _injure(self, roster: Sequence[Runner]) -> tuple[str, Runner | None]:
        target = self._pick(roster, RunnerState.READY)
        if target is not None:
            target.transition(RunnerState.INJURED)
            return f"{target.name} got injured", target

        target = self._pick(roster, RunnerState.INJURED)
        if target is not None:
            target.transition(RunnerState.DEAD)
            return f"{target.name} died (all runners were already injured)", target

        return "No effect (all runners dead)", None

    def _kill(self, roster: Sequence[Runner]) -> tuple[str, Runner | None]:
        target = self._pick(roster, RunnerState.INJURED)
        if target is not None:
            target.transition(RunnerState.DEAD)
            return f"{target.name} died", target

        target = self._pick(roster, RunnerState.READY)
        if target is not None:
            target.transition(RunnerState.INJURED)
            return f"{target.name} got injured (no runners were injured)", target

        return "No effect (all runners dead)", None

    def _finish(
        self,
        roster: Sequence[Runner],
        reward: float,
        report: ResolutionReport,
    ) -> ResolutionReport:
        # Level-ups do not raise stats
        for runner in roster:
            if runner.is_alive:
                runner.level += 1
                runner.contracts_completed += 1
                report.leveled_up.append(runner.runner_id)
            runner.hiring_state = HiringState.UNHIRED

        report.final_reward = math.floor(reward)
        return report


def _pct(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def resolve(
    unprevented_damage: int,
    roster: Sequence[Runner],
    base_reward: float,
    damage_table: Sequence[DamageTableEntry],
    rng: random.Random | None = None,
    max_roll: int | None = None,
    observer: RollObserver | None = None,
) -> ResolutionReport:
    """Resolve a contract run with a one-off DamageResolver."""
    resolver = DamageResolver(
        damage_table=damage_table,
        max_roll=max_roll,
        rng=rng or random.Random(),
    )
    return resolver.resolve(unprevented_damage, roster, base_reward, observer=observer)
