"""
Runner Generation - Fresh recruits for the hiring pool.

A recruit gets a random archetype, a head start in that archetype's own
stat, and a few points scattered at random. All randomness comes from the
random.Random passed in, so a seed reproduces the whole batch.
"""

from __future__ import annotations
import logging
import random

from ..config import BalancingConfig
from ..contract_schema.vocabulary import RunnerArchetype, RunnerStat
from .state import Runner

logger = logging.getLogger(__name__)


def main_stat(archetype: RunnerArchetype) -> RunnerStat:
    """The stat an archetype specialises in (Hacker -> hacker)."""
    return RunnerStat(archetype.value.lower())


def generate_runner(
    level: int = 1,
    rng: random.Random | None = None,
    config: BalancingConfig | None = None,
    runner_id: str | None = None,
) -> Runner:
    """
    Create one unhired, ready runner.

    Stats start at zero. The main stat gets runner_main_stat_allocation
    points, then runner_random_stat_allocation single points go to stats
    picked at random (the main stat included).
    """
    rng = rng or random.Random()
    config = config or BalancingConfig()

    archetype = rng.choice(list(RunnerArchetype))
    if runner_id is None:
        runner_id = f"runner_{rng.getrandbits(32):08x}"

    runner = Runner(
        runner_id=runner_id,
        name=f"{archetype.value} {runner_id.rsplit('_', 1)[-1]}",
        archetype=archetype,
        level=level,
    )

    primary = main_stat(archetype)
    setattr(runner, primary.value, config.runner_main_stat_allocation)

    stats = list(RunnerStat)
    for _ in range(config.runner_random_stat_allocation):
        stat = rng.choice(stats)
        setattr(runner, stat.value, runner.stat(stat) + 1)

    return runner


def generate_runner_batch(
    config: BalancingConfig | None = None,
    rng: random.Random | None = None,
) -> list[Runner]:
    """generated_runner_batch_size level-1 runners."""
    config = config or BalancingConfig()
    rng = rng or random.Random()

    batch = [
        generate_runner(level=1, rng=rng, config=config)
        for _ in range(config.generated_runner_batch_size)
    ]
    logger.debug(
        "Generated %d runners: %s",
        len(batch),
        ", ".join(f"{r.name} ({r.total_stats})" for r in batch),
    )
    return batch
