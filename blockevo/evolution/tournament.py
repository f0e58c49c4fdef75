from __future__ import annotations

from typing import Any, Mapping, Sequence

from loguru import logger
from pydantic import BaseModel

from blockevo.creatures.models import Creature, SimulationResult
from blockevo.evolution.events import EventType
from blockevo.evolution.fitness import FitnessMode, score_population
from blockevo.evolution.manager import EvolutionManager, Target
from blockevo.evolution.tree import EvolutionTreeNode
from blockevo.exceptions import MetricsMismatch, TournamentError

__all__ = ["TournamentEntry", "Standing", "TournamentResult", "Tournament"]

DEFAULT_ENTRANTS = 10
MIN_ENTRANTS = 2


class TournamentEntry(BaseModel):
    node: EvolutionTreeNode
    creature: Creature


class Standing(BaseModel):
    node_id: int
    name: str
    generation: int
    fitness: float


class TournamentResult(BaseModel):
    """Outcome of a champion tournament, best first in ``standings``."""

    fitness_mode: FitnessMode
    winner_node_id: int
    winner_name: str
    winner_fitness: float
    standings: list[Standing]
    population_ready: bool


class Tournament:
    """Re-evaluates past champions side by side and restarts evolution from the winner.

    ``select`` hands back fresh copies of recent champions for the caller to
    simulate together; ``complete`` scores them under the manager's active
    mode and makes the winner the new champion.
    """

    def __init__(self, manager: EvolutionManager):
        self.manager = manager

    def select(self, count: int = DEFAULT_ENTRANTS) -> list[TournamentEntry]:
        nodes = self.manager.tree.champion_nodes()
        entries: list[TournamentEntry] = []
        for node in nodes:
            if len(entries) >= count:
                break
            if node.creature is None:
                logger.warning("[Tournament] Champion node {} has no creature, skipping", node.id)
                continue
            creature = node.creature.clone()
            creature.reset_fitness_tracking()
            creature.is_defending_champion = False
            entries.append(TournamentEntry(node=node.model_copy(deep=True), creature=creature))

        if len(entries) < MIN_ENTRANTS:
            raise TournamentError(
                f"A tournament needs at least {MIN_ENTRANTS} champions, found {len(entries)}"
            )
        logger.info(
            "[Tournament] Selected {} champions | generations={}",
            len(entries),
            [e.node.generation for e in entries],
        )
        return entries

    def complete(
        self,
        entries: Sequence[TournamentEntry],
        results: Sequence[SimulationResult | Mapping[str, Any]],
    ) -> TournamentResult:
        if len(results) != len(entries):
            raise MetricsMismatch(f"Got {len(results)} results for {len(entries)} entrants")
        if len(entries) < MIN_ENTRANTS:
            raise TournamentError(f"A tournament needs at least {MIN_ENTRANTS} entrants")

        manager = self.manager
        mode = manager.active_mode
        creatures = [entry.creature for entry in entries]
        for creature, result in zip(creatures, results):
            creature.apply_metrics(SimulationResult.model_validate(result))
        scores = score_population(creatures, mode)

        # first entrant wins ties
        winner_index = 0
        for index, score in enumerate(scores):
            if score > scores[winner_index]:
                winner_index = index
        winner = entries[winner_index]
        winner_fitness = scores[winner_index]

        standings = sorted(
            (
                Standing(
                    node_id=entry.node.id,
                    name=entry.node.name,
                    generation=entry.node.generation,
                    fitness=score,
                )
                for entry, score in zip(entries, scores)
            ),
            key=lambda s: s.fitness,
            reverse=True,
        )
        logger.info(
            "[Tournament] Winner {} (gen {}) | fitness={:.2f}, mode={}",
            winner.node.name,
            winner.node.generation,
            winner_fitness,
            mode.value,
        )

        champion = winner.creature
        if (
            manager.all_time_champion is None
            or winner_fitness > manager.all_time_champion.fitness
        ):
            manager.all_time_champion = champion.clone()

        ready = manager.restart_from(
            winner.node,
            champion,
            Target(fitness=winner_fitness, mode=mode, metrics=champion.metrics),
            EventType.TOURNAMENT_WINNER,
            {
                "winner_node_id": winner.node.id,
                "winner_name": winner.node.name,
                "winner_generation": winner.node.generation,
                "winner_fitness": winner_fitness,
                "fitness_mode": mode.value,
                "entrants": len(entries),
            },
        )
        return TournamentResult(
            fitness_mode=mode,
            winner_node_id=winner.node.id,
            winner_name=winner.node.name,
            winner_fitness=winner_fitness,
            standings=standings,
            population_ready=ready,
        )
