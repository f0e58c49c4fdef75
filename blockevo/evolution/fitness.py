from __future__ import annotations

import random
from enum import Enum
from typing import Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict

from blockevo.creatures.models import Creature, RawMetrics

__all__ = [
    "FitnessMode",
    "CONCRETE_FITNESS_MODES",
    "MODE_DESCRIPTIONS",
    "RankedCreature",
    "calculate_fitness",
    "outcast_scores",
    "score_population",
    "rank_population",
    "pick_random_mode",
]

# normalisation floors keep an all-zero population from dividing by zero
OUTCAST_FLOORS = np.array([0.001, 0.001, 1.0, 0.001])
OUTCAST_SCALE = 100.0


class FitnessMode(str, Enum):
    DISTANCE = "distance"
    EFFICIENCY = "efficiency"
    JUMP = "jump"
    AREA = "area"
    OUTCAST = "outcast"
    SPARTAN = "spartan"
    RANDOM = "random"


CONCRETE_FITNESS_MODES: tuple[FitnessMode, ...] = (
    FitnessMode.DISTANCE,
    FitnessMode.EFFICIENCY,
    FitnessMode.JUMP,
    FitnessMode.AREA,
    FitnessMode.OUTCAST,
    FitnessMode.SPARTAN,
)

MODE_DESCRIPTIONS: dict[FitnessMode, str] = {
    FitnessMode.DISTANCE: "Distance - How far creatures travel from start",
    FitnessMode.EFFICIENCY: "Efficiency - Distance per tile (straight-line movers win)",
    FitnessMode.JUMP: "Jump Height - Max height after landing from spawn",
    FitnessMode.AREA: "Area Coverage - Total tiles lit up",
    FitnessMode.OUTCAST: "Outcast - Most different from the crowd wins",
    FitnessMode.SPARTAN: "Spartan - Best overall metrics (well-rounded athletes win)",
    FitnessMode.RANDOM: "Random - Mode changes each generation for variety",
}


class RankedCreature(BaseModel):
    """A population member's snapshot at ranking time."""

    creature: Creature
    index: int
    fitness: float

    model_config = ConfigDict(arbitrary_types_allowed=True)


def calculate_fitness(metrics: RawMetrics, mode: FitnessMode | str) -> float:
    """Score raw metrics under ``mode``.

    Outcast has no population here, so it falls back to a weighted composite.
    Random scores as distance. Unknown mode names raise ValueError.
    """
    d, h = metrics.distance, metrics.height
    tiles, j = metrics.tiles_lit, metrics.jump_height
    mode = FitnessMode(mode)

    if mode is FitnessMode.EFFICIENCY:
        return (d / tiles) * 100 + h * 0.2 if tiles > 0 else 0.0
    if mode is FitnessMode.JUMP:
        return j * 10.0 + d * 0.1
    if mode is FitnessMode.AREA:
        return tiles * 1.0 + d * 0.05
    if mode is FitnessMode.OUTCAST:
        return d + h * 2 + tiles * 0.5 + j * 5
    if mode is FitnessMode.SPARTAN:
        return d * 1.0 + h * 2.0 + tiles * 0.2 + j * 3.0
    return d * 2.0 + h * 0.5


def outcast_scores(metrics: Sequence[RawMetrics]) -> list[float]:
    """Population-relative novelty: how far each member sits from the mean."""
    if not metrics:
        return []
    table = np.array(
        [[m.distance, m.height, m.tiles_lit, m.jump_height] for m in metrics],
        dtype=float,
    )
    normalised = table / np.maximum(table.max(axis=0), OUTCAST_FLOORS)
    deviation = np.abs(normalised - normalised.mean(axis=0)).sum(axis=1)
    return (deviation * OUTCAST_SCALE).tolist()


def score_population(creatures: Sequence[Creature], mode: FitnessMode | str) -> list[float]:
    """Set and return every member's fitness under ``mode``."""
    mode = FitnessMode(mode)
    if mode is FitnessMode.OUTCAST:
        scores = outcast_scores([c.metrics for c in creatures])
    else:
        scores = [calculate_fitness(c.metrics, mode) for c in creatures]
    for creature, score in zip(creatures, scores):
        creature.fitness = score
    return scores


def rank_population(creatures: Sequence[Creature], mode: FitnessMode | str) -> list[RankedCreature]:
    """Score then order best-first; equal scores keep population order."""
    score_population(creatures, mode)
    ranked = [
        RankedCreature(creature=creature.clone(), index=index, fitness=creature.fitness)
        for index, creature in enumerate(creatures)
    ]
    return sorted(ranked, key=lambda r: r.fitness, reverse=True)


def pick_random_mode(current: FitnessMode | None, rng: random.Random) -> FitnessMode:
    candidates = [m for m in CONCRETE_FITNESS_MODES if m is not current]
    return rng.choice(candidates)

