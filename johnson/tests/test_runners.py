"""
Tests for runner generation.
"""

import random

from ..config import BalancingConfig
from ..contract_schema import RunnerArchetype, RunnerStat
from ..engine_core.runners import generate_runner, generate_runner_batch, main_stat
from ..engine_core.state import HiringState, RunnerState
from .conftest import FixedRolls


class TestGenerateRunner:
    """Tests for a single generated runner."""

    def test_main_stat_follows_archetype(self):
        assert main_stat(RunnerArchetype.HACKER) is RunnerStat.HACKER
        assert main_stat(RunnerArchetype.FACE) is RunnerStat.FACE

    def test_stat_allocation(self):
        """Main stat gets its allocation, random points land on picked stats."""
        # choice() always picks the first entry: Face, then face for every point
        runner = generate_runner(rng=FixedRolls([]))

        assert runner.archetype is RunnerArchetype.FACE
        assert runner.face == 4
        assert runner.muscle == runner.hacker == runner.ninja == 0

    def test_allocation_from_config(self):
        config = BalancingConfig(runner_main_stat_allocation=5, runner_random_stat_allocation=0)
        runner = generate_runner(rng=random.Random(8), config=config)

        assert runner.stat(main_stat(runner.archetype)) == 5
        assert runner.total_stats == 5

    def test_total_stats(self):
        """Every runner carries exactly main + random points."""
        config = BalancingConfig(runner_main_stat_allocation=3, runner_random_stat_allocation=4)
        rng = random.Random(21)

        for _ in range(20):
            runner = generate_runner(rng=rng, config=config)
            assert runner.total_stats == 7
            assert runner.stat(main_stat(runner.archetype)) >= 3

    def test_fresh_runner_state(self):
        runner = generate_runner(level=3, rng=random.Random(1), runner_id="runner_x")

        assert runner.runner_id == "runner_x"
        assert runner.level == 3
        assert runner.runner_state is RunnerState.READY
        assert runner.hiring_state is HiringState.UNHIRED
        assert runner.times_hired == 0
        assert runner.contracts_completed == 0


class TestGenerateBatch:
    """Tests for generate_runner_batch."""

    def test_batch_size_from_config(self):
        batch = generate_runner_batch(BalancingConfig(generated_runner_batch_size=7), random.Random(0))

        assert len(batch) == 7
        assert all(r.level == 1 for r in batch)
        assert len({r.runner_id for r in batch}) == 7

    def test_seed_reproduces_batch(self):
        first = generate_runner_batch(rng=random.Random(42))
        second = generate_runner_batch(rng=random.Random(42))

        assert first == second

    def test_archetypes_vary(self):
        """A large batch draws more than one archetype."""
        config = BalancingConfig(generated_runner_batch_size=20)
        batch = generate_runner_batch(config, random.Random(5))

        assert len({r.archetype for r in batch}) > 1
