"""
Engine State - Value types the engine computes with.

Design principles:
- Pools and prevention snapshots are values: recomputed from scratch,
  never patched incrementally
- The runner roster is the one piece of mutable state, and only the
  damage resolver mutates it
- Selection lives here, not on the nodes
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Iterator
import math

from ..contract_schema.vocabulary import PoolStat, RunnerArchetype, RunnerStat


class RunnerState(Enum):
    """Health of a runner. Only ever moves forward: Ready -> Injured -> Dead."""
    READY = "Ready"
    INJURED = "Injured"
    DEAD = "Dead"


class HiringState(Enum):
    HIRED = "Hired"
    UNHIRED = "Unhired"


_STATE_ORDER = {RunnerState.READY: 0, RunnerState.INJURED: 1, RunnerState.DEAD: 2}


@dataclass
class Runner:
    """
    A hireable crew member.

    Dead runners are kept as historical records, never deleted.
    """
    runner_id: str
    name: str
    archetype: RunnerArchetype
    face: int = 0
    muscle: int = 0
    hacker: int = 0
    ninja: int = 0
    runner_state: RunnerState = RunnerState.READY
    hiring_state: HiringState = HiringState.UNHIRED
    level: int = 1
    contracts_completed: int = 0
    times_hired: int = 0

    def stat(self, stat: RunnerStat) -> int:
        """Value of one of the four stats."""
        return getattr(self, stat.value)

    @property
    def total_stats(self) -> int:
        return self.face + self.muscle + self.hacker + self.ninja

    @property
    def is_alive(self) -> bool:
        return self.runner_state is not RunnerState.DEAD

    def transition(self, new_state: RunnerState):
        """Move to a later health state. Moving backwards is a bug."""
        if _STATE_ORDER[new_state] < _STATE_ORDER[self.runner_state]:
            raise ValueError(
                f"Runner {self.runner_id} cannot go from "
                f"{self.runner_state.value} back to {new_state.value}"
            )
        self.runner_state = new_state


@dataclass(frozen=True)
class PoolSet:
    """The five pool accumulators."""
    damage: float = 0
    risk: float = 0
    money: float = 0
    grit: float = 0
    veil: float = 0

    def get(self, stat: PoolStat) -> float:
        return getattr(self, stat.value)

    def with_value(self, stat: PoolStat, value: float) -> PoolSet:
        """Return a new pool set with one pool replaced."""
        return replace(self, **{stat.value: value})

    def as_dict(self) -> dict[str, float]:
        return {stat.value: self.get(stat) for stat in PoolStat}


@dataclass(frozen=True)
class PreventionSnapshot:
    """
    How much Grit and Veil would cancel.

    Two Grit cancel one Damage; two Veil cancel one Risk. The snapshot is
    informational: preview pools keep the gross values.
    """
    damage_prevented: float = 0
    risk_prevented: float = 0
    grit_used: float = 0
    veil_used: float = 0
    original_damage: float = 0
    original_risk: float = 0
    original_grit: float = 0
    original_veil: float = 0
    final_damage: float = 0
    final_risk: float = 0

    @classmethod
    def from_pools(cls, pools: PoolSet) -> PreventionSnapshot:
        damage_prevented = max(0, min(math.floor(pools.grit / 2), pools.damage))
        risk_prevented = max(0, min(math.floor(pools.veil / 2), pools.risk))
        return cls(
            damage_prevented=damage_prevented,
            risk_prevented=risk_prevented,
            grit_used=damage_prevented * 2,
            veil_used=risk_prevented * 2,
            original_damage=pools.damage,
            original_risk=pools.risk,
            original_grit=pools.grit,
            original_veil=pools.veil,
            final_damage=max(0, pools.damage - damage_prevented),
            final_risk=max(0, pools.risk - risk_prevented),
        )


@dataclass
class SelectionSet:
    """
    Node ids the player has picked, in the order they were picked.

    Pools never depend on that order except as the documented tie-break
    inside a pass; availability depends on membership only.
    """
    _ids: dict[str, None] = field(default_factory=dict)

    @classmethod
    def of(cls, node_ids: Iterable[str]) -> SelectionSet:
        return cls(dict.fromkeys(node_ids))

    def add(self, node_id: str) -> bool:
        """Add a node id. Returns False if it was already selected."""
        if node_id in self._ids:
            return False
        self._ids[node_id] = None
        return True

    def discard(self, node_id: str) -> bool:
        """Remove a node id. Returns False if it was not selected."""
        if node_id not in self._ids:
            return False
        del self._ids[node_id]
        return True

    def clear(self):
        self._ids.clear()

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    def as_list(self) -> list[str]:
        return list(self._ids)
