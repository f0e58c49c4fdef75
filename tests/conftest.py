"""
Shared pytest fixtures for the blockevo test suite.
"""

import pytest

from blockevo.creatures.builder import CreatureBuilder
from blockevo.evolution.config import EvolutionConfig
from blockevo.evolution.fitness import FitnessMode
from blockevo.evolution.manager import EvolutionManager


def distance_results(population, distances):
    """Result dicts giving non-defending members ``distances`` in population order.

    Defending champions and members beyond the list score zero.
    """
    remaining = list(distances)
    results = []
    for creature in population:
        if creature.is_defending_champion or not remaining:
            distance = 0.0
        else:
            distance = remaining.pop(0)
        results.append({"distance": distance, "height": 0.0, "jump_height": 0.0, "tiles": []})
    return results


def zero_results(population):
    return distance_results(population, [])


@pytest.fixture
def builder():
    return CreatureBuilder()


@pytest.fixture
def distance_config():
    """Small deterministic run scored on distance only."""
    return EvolutionConfig(
        seed=7,
        fitness_mode=FitnessMode.DISTANCE,
        instances_per_block_config=1,
        num_configurations=3,
    )


@pytest.fixture
def manager(distance_config):
    return EvolutionManager(distance_config)


@pytest.fixture
def started_manager(manager):
    """Manager with generation 1 built and not yet evaluated."""
    manager.start_evolution()
    return manager
