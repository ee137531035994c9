"""
Tests for the damage resolver.

Tests:
- One roll per point of unprevented damage
- Injury and Death with their fallbacks
- Reward reduction and increase
- Level-up and release after the rolls
- Seeded reproducibility and missing table entries
"""

import asyncio
import random

import pytest

from ..contract_schema import DamageEffectKind, DamageTableEntry, DamageTableError, RunnerArchetype
from ..engine_core.damage_resolver import DamageResolver, resolve
from ..engine_core.state import HiringState, Runner, RunnerState
from .conftest import FixedRolls


def _resolver(table, rolls):
    return DamageResolver(damage_table=table, max_roll=100, rng=FixedRolls(rolls))


class TestRolls:
    """Tests for individual roll effects."""

    def test_roll_count(self, simple_table, runners):
        """Exactly one roll per point of damage."""
        report = _resolver(simple_table, [50, 60, 70]).resolve(3, runners, 1000)
        assert [r.roll_number for r in report.rolls] == [1, 2, 3]
        assert all(r.effect_kind is DamageEffectKind.NO_EFFECT for r in report.rolls)

    def test_no_damage_no_rolls(self, simple_table, runners):
        report = _resolver(simple_table, []).resolve(0, runners, 1000)
        assert report.rolls == []
        assert report.final_reward == 1000

    def test_injury_hits_ready_runner(self, simple_table, runners):
        report = _resolver(simple_table, [5]).resolve(1, runners, 1000)

        assert runners[0].runner_state is RunnerState.INJURED
        assert report.rolls[0].affected_runner_id == "r1"
        assert report.injured == ["r1"]

    def test_injury_falls_back_to_death(self, simple_table, runners):
        """With nobody Ready, an Injury kills an Injured runner."""
        for runner in runners:
            runner.runner_state = RunnerState.INJURED
        report = _resolver(simple_table, [5]).resolve(1, runners, 1000)

        assert runners[0].runner_state is RunnerState.DEAD
        assert report.killed == ["r1"]

    def test_death_kills_injured_runner(self, simple_table, runners):
        runners[1].runner_state = RunnerState.INJURED
        _resolver(simple_table, [15]).resolve(1, runners, 1000)

        assert runners[1].runner_state is RunnerState.DEAD
        assert runners[0].runner_state is RunnerState.READY

    def test_death_falls_back_to_injury(self, simple_table, runners):
        """With nobody Injured, a Death only injures a Ready runner."""
        report = _resolver(simple_table, [15]).resolve(1, runners, 1000)

        assert runners[0].runner_state is RunnerState.INJURED
        assert report.injured == ["r1"]
        assert report.killed == []

    def test_everyone_dead_is_no_op(self, simple_table, runners):
        for runner in runners:
            runner.runner_state = RunnerState.DEAD
        report = _resolver(simple_table, [5, 15]).resolve(2, runners, 1000)

        assert all(r.affected_runner_id is None for r in report.rolls)
        assert all("all runners dead" in r.description for r in report.rolls)

    def test_empty_roster(self, simple_table):
        report = _resolver(simple_table, [5]).resolve(1, [], 1000)
        assert report.rolls[0].affected_runner_id is None

    def test_reward_reduce_and_extra(self, simple_table, runners):
        """Reduce 10 then Extra 10: 1000 -> 900 -> 990."""
        report = _resolver(simple_table, [25, 35]).resolve(2, runners, 1000)

        assert [r.reward_after for r in report.rolls] == [900, 990]
        assert report.final_reward == 990

    def test_reward_is_floored(self, simple_table, runners):
        report = _resolver(simple_table, [25]).resolve(1, runners, 1005)
        assert report.rolls[0].reward_after == 904  # 904.5
        assert report.final_reward == 904

    def test_reward_never_negative(self, runners):
        table = [DamageTableEntry(1, 100, DamageEffectKind.REDUCE, 150)]
        report = _resolver(table, [1]).resolve(1, runners, 1000)
        assert report.final_reward == 0


class TestAfterRolls:
    """Level-up and release."""

    def test_survivors_level_up(self, simple_table, runners):
        """Living runners gain a level and a completed contract, stats unchanged."""
        runners[2].runner_state = RunnerState.INJURED
        muscle_before = [r.muscle for r in runners]
        report = _resolver(simple_table, [15]).resolve(1, runners, 1000)  # kills r3

        assert report.leveled_up == ["r1", "r2"]
        assert [r.level for r in runners] == [2, 2, 1]
        assert [r.contracts_completed for r in runners] == [1, 1, 0]
        assert [r.muscle for r in runners] == muscle_before

    def test_everyone_released(self, simple_table, runners):
        for runner in runners:
            runner.hiring_state = HiringState.HIRED
        _resolver(simple_table, [15]).resolve(1, runners, 1000)
        assert all(r.hiring_state is HiringState.UNHIRED for r in runners)


class TestStateMachine:
    """Runner health only moves forward."""

    def test_monotonic_over_many_rolls(self, damage_table, runners):
        """Across a long seeded resolution no runner ever recovers."""
        order = {RunnerState.READY: 0, RunnerState.INJURED: 1, RunnerState.DEAD: 2}
        seen = {r.runner_id: 0 for r in runners}

        def check(record):
            for runner in runners:
                rank = order[runner.runner_state]
                assert rank >= seen[runner.runner_id]
                seen[runner.runner_id] = rank

        resolver = DamageResolver(damage_table, 100, random.Random(1234))
        resolver.resolve(60, runners, 1000, observer=check)

    def test_transition_backwards_rejected(self, runners):
        runners[0].transition(RunnerState.DEAD)
        with pytest.raises(ValueError):
            runners[0].transition(RunnerState.READY)


class TestResolverContract:
    """Observers, seeds and configuration errors."""

    def test_observer_sees_each_roll(self, simple_table, runners):
        seen = []
        report = _resolver(simple_table, [5, 50]).resolve(2, runners, 1000, observer=seen.append)
        assert seen == report.rolls

    def test_records_are_frozen(self, simple_table, runners):
        report = _resolver(simple_table, [50]).resolve(1, runners, 1000)
        with pytest.raises(AttributeError):
            report.rolls[0].reward_after = 0

    def test_seed_reproducible(self, damage_table):
        """The same seed and crew give the same rolls and casualties."""
        def crew():
            return [Runner(f"r{i}", f"R{i}", RunnerArchetype.NINJA) for i in range(3)]

        first_crew, second_crew = crew(), crew()
        first = resolve(10, first_crew, 1000, damage_table, rng=random.Random(7))
        second = resolve(10, second_crew, 1000, damage_table, rng=random.Random(7))

        assert [r.raw_roll for r in first.rolls] == [r.raw_roll for r in second.rolls]
        assert first.final_reward == second.final_reward
        assert [r.runner_state for r in first_crew] == [r.runner_state for r in second_crew]

    def test_missing_entry_raises(self, runners):
        """A roll outside the table is a configuration error."""
        table = [DamageTableEntry(1, 50, DamageEffectKind.NO_EFFECT)]
        with pytest.raises(DamageTableError, match="roll 75"):
            _resolver(table, [75]).resolve(1, runners, 1000)

    def test_max_roll_defaults_to_table(self, simple_table):
        assert DamageResolver(simple_table).max_roll == 100

    def test_paced_resolution(self, simple_table, runners):
        """resolve_paced gives the same outcome as resolve."""
        resolver = _resolver(simple_table, [25, 35])
        report = asyncio.run(resolver.resolve_paced(2, runners, 1000, delay_seconds=0))
        assert report.final_reward == 990
        assert all(r.level == 2 for r in runners)
