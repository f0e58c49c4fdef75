from __future__ import annotations

import random
from typing import Any, Mapping, NamedTuple, Sequence

import numpy as np
from loguru import logger
from pydantic import BaseModel, Field

from blockevo.creatures.builder import CreatureBuilder
from blockevo.creatures.models import Creature, RawMetrics, SimulationResult
from blockevo.evolution.config import EvolutionConfig
from blockevo.evolution.events import EventType, EvolutionEvent
from blockevo.evolution.fitness import (
    MODE_DESCRIPTIONS,
    FitnessMode,
    RankedCreature,
    calculate_fitness,
    pick_random_mode,
    rank_population,
)
from blockevo.evolution.history import GenerationHistory, GenerationHistoryEntry
from blockevo.evolution.metrics import EvolutionMetrics
from blockevo.evolution.population import DedupeRegistry, PopulationFactory
from blockevo.evolution.tree import (
    SPAWNABLE_STATUSES,
    EvolutionTree,
    EvolutionTreeNode,
    GenerationOutcomeKind,
    NodeStatus,
    TreeStats,
)
from blockevo.exceptions import (
    BacktrackExhausted,
    EvolutionError,
    InvalidSpawnSource,
    MetricsMismatch,
    NoAttachmentPoints,
)

__all__ = [
    "Target",
    "GenerationOutcome",
    "BacktrackResult",
    "SpawnResult",
    "LineageStep",
    "TreeSnapshot",
    "EvolutionManager",
]


class Target(BaseModel):
    """The champion performance a generation has to beat."""

    fitness: float = 0.0
    mode: FitnessMode | None = None
    metrics: RawMetrics = Field(default_factory=RawMetrics)


class GenerationOutcome(BaseModel):
    """What happened when a generation's results were processed."""

    generation: int
    kind: GenerationOutcomeKind
    fitness_mode: FitnessMode
    best_name: str | None
    best_fitness: float
    effective_target: float
    line_completed: bool = False
    backtracked: bool = False
    exhausted: bool = False
    next_generation: int
    population_ready: bool


class BacktrackResult(BaseModel):
    success: bool
    rank_tried: int | None = None
    to_generation: int | None = None


class SpawnResult(BaseModel):
    node_id: int
    source_name: str
    previous_generation: int
    generation: int
    population_ready: bool


class LineageStep(NamedTuple):
    node: EvolutionTreeNode
    creature: Creature | None


class TreeSnapshot(BaseModel):
    nodes: list[EvolutionTreeNode]
    events: list[EvolutionEvent]
    current_branch_id: int | None
    stats: TreeStats


class EvolutionManager:
    """Generation-by-generation driver of a creature evolution run.

    Responsibilities:
      * Build generation 1 and grow each later generation from the champion
      * Score simulator results under the active fitness mode and rank them
      * Decide progress vs dead end against the re-scored target
      * Backtrack through the generation history when a line stalls or completes
      * Record every ranked creature in the evolution tree and log events
      * Hand out deep copies only; tree nodes and creatures it holds never leak

    The manager is synchronous: ``start_evolution`` yields a population, the
    caller simulates it, and ``on_generation_evaluated`` consumes the results
    and prepares the next population.
    """

    def __init__(
        self,
        config: EvolutionConfig | None = None,
        builder: CreatureBuilder | None = None,
    ):
        self.config = config or EvolutionConfig()
        self.builder = builder or CreatureBuilder(self.config.sensors)
        self.rng = random.Random(self.config.seed)
        self.reset()

    def reset(self) -> None:
        """Drop every piece of run state."""
        self.rng.seed(self.config.seed)
        self.generation = 0
        self.population: list[Creature] = []
        self.champion: Creature | None = None
        self.all_time_champion: Creature | None = None
        self.target = Target()
        self.history = GenerationHistory()
        self.tree = EvolutionTree()
        self.events: list[EvolutionEvent] = []
        self.registry = DedupeRegistry()
        self.metrics = EvolutionMetrics()
        self.fitness_mode = self.config.fitness_mode
        self.active_mode = (
            FitnessMode.DISTANCE if self.fitness_mode is FitnessMode.RANDOM else self.fitness_mode
        )
        self.factory = PopulationFactory(self.builder, self.registry, self.rng)

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    @property
    def is_random_mode(self) -> bool:
        return self.fitness_mode is FitnessMode.RANDOM

    def set_fitness_mode(self, mode: FitnessMode | str) -> None:
        self.fitness_mode = FitnessMode(mode)
        if self.is_random_mode:
            self.active_mode = pick_random_mode(self.active_mode, self.rng)
        else:
            self.active_mode = self.fitness_mode
        logger.info(
            "[EvolutionManager] Fitness mode set | mode={}, active={}",
            self.fitness_mode.value,
            self.active_mode.value,
        )

    def fitness_mode_description(self) -> str:
        return MODE_DESCRIPTIONS.get(self.fitness_mode, MODE_DESCRIPTIONS[FitnessMode.DISTANCE])

    def _next_mode(self) -> None:
        if self.is_random_mode:
            self.active_mode = pick_random_mode(self.active_mode, self.rng)
            logger.debug("[EvolutionManager] Next generation mode: {}", self.active_mode.value)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_evolution(self) -> list[Creature]:
        """Reset everything and build generation 1."""
        self.reset()
        self.builder.sensors = self.config.sensors
        self.generation = 1
        if self.is_random_mode:
            self.active_mode = pick_random_mode(None, self.rng)

        logger.info(
            "[EvolutionManager] Starting evolution | configs={}, variants={}, blocks/gen={}, max_blocks={}, mode={}",
            self.config.num_configurations,
            self.config.instances_per_block_config,
            self.config.blocks_per_generation,
            self.config.max_blocks,
            self.active_mode.value,
        )
        self._log_event(
            EventType.START,
            {
                "instances_per_block_config": self.config.instances_per_block_config,
                "num_configurations": self.config.num_configurations,
                "blocks_per_generation": self.config.blocks_per_generation,
                "max_blocks": self.config.max_blocks,
                "fitness_mode": self.fitness_mode.value,
                "active_mode": self.active_mode.value,
            },
        )
        self.population = self.factory.genesis(self.config, self.generation)
        if not self.population:
            raise EvolutionError("Generation 1 could not be built")
        return self.get_population()

    def continue_evolution(self, config: EvolutionConfig | None = None) -> None:
        """Resume a loaded run, optionally with new growth settings."""
        if config is not None:
            self.config = config
            self.builder.sensors = config.sensors
        logger.info(
            "[EvolutionManager] Continuing | gen={}, population={}, champion={}, nodes={}",
            self.generation,
            len(self.population),
            self.champion.name if self.champion else None,
            len(self.tree),
        )
        self._log_event(
            EventType.CONTINUE,
            {
                "message": "Evolution resumed from saved state",
                "population_size": len(self.population),
                "champion_name": self.champion.name if self.champion else None,
                "fitness_mode": self.fitness_mode.value,
                "active_mode": self.active_mode.value,
            },
        )

    def has_existing_population(self) -> bool:
        return bool(self.population)

    def get_population(self) -> list[Creature]:
        return [creature.clone() for creature in self.population]

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def effective_target(self, mode: FitnessMode | None = None) -> float:
        """Current target re-scored under ``mode`` (default: the active mode)."""
        return calculate_fitness(self.target.metrics, mode or self.active_mode)

    def will_make_progress(self, best_fitness: float) -> bool:
        if self.generation <= 1 or self.active_mode is FitnessMode.OUTCAST:
            return True
        return best_fitness > self.effective_target()

    def on_generation_evaluated(
        self, results: Sequence[SimulationResult | Mapping[str, Any]]
    ) -> GenerationOutcome:
        """Score the evaluated population and prepare the next one."""
        if not self.population:
            raise EvolutionError("No population to evaluate; start or load a run first")
        if len(results) != len(self.population):
            raise MetricsMismatch(
                f"Got {len(results)} results for a population of {len(self.population)}"
            )

        for creature, result in zip(self.population, results):
            creature.apply_metrics(SimulationResult.model_validate(result))

        mode = self.active_mode
        ranked = rank_population(self.population, mode)
        best = ranked[0]
        effective = self.effective_target(mode)
        self.metrics.record_generation()

        logger.info(
            "[EvolutionManager] Generation {} evaluated | mode={}, best={:.2f} ({}), target={:.2f}",
            self.generation,
            mode.value,
            best.fitness,
            best.creature.name,
            effective,
        )

        if self.generation == 1:
            return self._handle_genesis(ranked)
        if mode is FitnessMode.OUTCAST or best.fitness > effective:
            return self._handle_progress(ranked, effective)
        return self._handle_dead_end(ranked, effective)

    def _handle_genesis(self, ranked: list[RankedCreature]) -> GenerationOutcome:
        evaluated = self.generation
        best = ranked[0]
        node_ids = self.tree.add_generation(
            ranked, evaluated, GenerationOutcomeKind.GENESIS, None, self.active_mode
        )
        self._save_history(ranked, node_ids)
        self._crown(best)
        self.all_time_champion = best.creature.clone()
        self._log_event(
            EventType.PROGRESS,
            {
                "message": "First champion established",
                **self._creature_details(best),
            },
        )
        logger.info(
            "[EvolutionManager] Genesis champion {} | blocks={}, fitness={:.2f}",
            best.creature.name,
            best.creature.block_count,
            best.fitness,
        )
        mode = self.active_mode
        ready = self._advance()
        return self._outcome(evaluated, GenerationOutcomeKind.GENESIS, mode, best, 0.0, ready)

    def _handle_progress(
        self, ranked: list[RankedCreature], effective: float
    ) -> GenerationOutcome:
        evaluated = self.generation
        mode = self.active_mode
        best = ranked[0]
        node_ids = self.tree.add_generation(
            ranked, evaluated, GenerationOutcomeKind.PROGRESS, self.tree.current_branch_id, mode
        )
        self._save_history(ranked, node_ids)
        outcast = mode is FitnessMode.OUTCAST
        self._log_event(
            EventType.PROGRESS,
            {
                "previous_target": effective,
                "improvement": None if outcast else best.fitness - effective,
                "is_outcast_win": outcast,
                **self._creature_details(best),
            },
        )
        self._crown(best)
        if self.all_time_champion is None or best.fitness > self.all_time_champion.fitness:
            self.all_time_champion = best.creature.clone()
        self.metrics.champion_defense_count = 0
        logger.info(
            "[EvolutionManager] Progress | gen={}, champion={}, blocks={}, fitness={:.2f}",
            evaluated,
            best.creature.name,
            best.creature.block_count,
            best.fitness,
        )

        if self.config.max_blocks > 0 and self.champion.block_count >= self.config.max_blocks:
            return self._complete_line(ranked, effective, f"reached {self.config.max_blocks} blocks")

        ready = self._advance()
        if ready:
            return self._outcome(
                evaluated, GenerationOutcomeKind.PROGRESS, mode, best, effective, ready
            )
        self.generation = evaluated
        self.active_mode = mode
        return self._complete_line(ranked, effective, "no room left to grow")

    def _handle_dead_end(
        self, ranked: list[RankedCreature], effective: float
    ) -> GenerationOutcome:
        evaluated = self.generation
        mode = self.active_mode
        best = ranked[0]
        defended = best.creature.is_defending_champion
        self.metrics.record_dead_end(defended)

        node_ids = self.tree.add_generation(
            ranked, evaluated, GenerationOutcomeKind.DEAD_END, self.tree.current_branch_id, mode
        )
        self._log_event(
            EventType.DEAD_END,
            {
                "best_creature_name": best.creature.name,
                "best_fitness": best.fitness,
                "target_fitness": effective,
                "shortfall": effective - best.fitness,
                "was_defending_champion": defended,
                "fitness_mode": mode.value,
            },
        )
        self._save_history(ranked, node_ids)
        logger.info(
            "[EvolutionManager] Dead end #{} | gen={}, best={:.2f}, target={:.2f}, defended={}",
            self.metrics.dead_end_count,
            evaluated,
            best.fitness,
            effective,
            defended,
        )

        try:
            self._backtrack(completed=False)
        except BacktrackExhausted as exc:
            logger.warning("[EvolutionManager] {} | continuing with {}", exc, self.champion.name)
            self.metrics.record_exhausted()
            self._log_event(
                EventType.EXHAUSTED,
                {
                    "target_fitness": effective,
                    "total_dead_ends": self.metrics.dead_end_count,
                    "total_backtracks": self.metrics.backtrack_count,
                },
            )
            ready = self._advance()
            outcome = self._outcome(
                evaluated, GenerationOutcomeKind.DEAD_END, mode, best, effective, ready
            )
            outcome.exhausted = True
            return outcome

        outcome = self._outcome(
            evaluated, GenerationOutcomeKind.DEAD_END, mode, best, effective, bool(self.population)
        )
        outcome.backtracked = True
        return outcome

    def _complete_line(
        self, ranked: list[RankedCreature], effective: float, reason: str
    ) -> GenerationOutcome:
        evaluated = self.generation
        mode = self.active_mode
        best = ranked[0]
        self.metrics.record_completed_line()
        logger.info(
            "[EvolutionManager] Line complete ({}) | champion={}, completed={}",
            reason,
            self.champion.name,
            self.metrics.completed_line_count,
        )
        self._log_event(
            EventType.COMPLETE,
            {
                "message": f"Genetic line complete: {reason}",
                "max_blocks": self.config.max_blocks,
                "total_completed": self.metrics.completed_line_count,
                **self._creature_details(best),
            },
        )

        try:
            self._backtrack(completed=True)
        except BacktrackExhausted as exc:
            logger.warning("[EvolutionManager] All evolutionary paths explored: {}", exc)
            self.metrics.record_exhausted()
            self.population = []
            self._log_event(
                EventType.COMPLETE,
                {
                    "message": "All evolutionary paths explored",
                    "total_completed": self.metrics.completed_line_count,
                    "total_dead_ends": self.metrics.dead_end_count,
                    "total_backtracks": self.metrics.backtrack_count,
                },
            )
            outcome = self._outcome(
                evaluated, GenerationOutcomeKind.PROGRESS, mode, best, effective, False
            )
            outcome.line_completed = True
            outcome.exhausted = True
            return outcome

        outcome = self._outcome(
            evaluated, GenerationOutcomeKind.PROGRESS, mode, best, effective, bool(self.population)
        )
        outcome.line_completed = True
        outcome.backtracked = True
        return outcome

    # ------------------------------------------------------------------
    # Backtracking
    # ------------------------------------------------------------------

    def _backtrack(self, completed: bool) -> BacktrackResult:
        """Regrow from the best untried alternative of an earlier generation.

        Raises BacktrackExhausted, with champion, target, generation and
        branch restored, when no generation offers a usable alternative.
        """
        self.metrics.record_backtrack()
        previous_effective = self.effective_target()
        if completed:
            self.tree.mark_complete(self.tree.current_branch_id)

        snapshot = (self.champion, self.target, self.generation, self.tree.current_branch_id)
        start_generation = self.generation

        for entry in self.history.older_than(start_generation):
            rank = GenerationHistory.find_next_untried(entry, self.config.max_blocks)
            if rank is None:
                logger.debug(
                    "[EvolutionManager] Gen {} has no untried alternative (tried={})",
                    entry.generation,
                    entry.tried_ranks,
                )
                continue

            alternative = entry.ranked[rank]
            self._branch_to(entry, rank, completed)
            entry.mark_tried(rank)
            self.generation = entry.generation + 1
            self.champion = alternative.creature.clone()
            self.target = Target(
                fitness=entry.champion_fitness,
                mode=entry.fitness_mode,
                metrics=entry.champion_metrics.model_copy(),
            )
            restored_effective = self.effective_target()
            self._log_event(
                EventType.BACKTRACK,
                {
                    "from_generation": start_generation,
                    "to_generation": entry.generation,
                    "depth": start_generation - entry.generation,
                    "alternative_name": alternative.creature.name,
                    "alternative_rank": rank + 1,
                    "alternative_blocks": alternative.creature.block_count,
                    "previous_target_fitness": previous_effective,
                    "restored_target_fitness": restored_effective,
                    "current_mode": self.active_mode.value,
                    "completed_line": completed,
                },
            )
            logger.info(
                "[EvolutionManager] Backtrack to gen {} | rank={}, base={}, target={:.2f}",
                entry.generation,
                rank,
                alternative.creature.name,
                restored_effective,
            )
            self.history.truncate_after(entry.generation)

            if self.create_next_generation(self.champion):
                return BacktrackResult(success=True, rank_tried=rank, to_generation=entry.generation)

            self.metrics.record_completed_line()
            logger.info(
                "[EvolutionManager] Alternative {} cannot grow, continuing search",
                alternative.creature.name,
            )

        self.champion, self.target, self.generation, self.tree.current_branch_id = snapshot
        raise BacktrackExhausted(
            f"No untried alternative in {len(self.history)} generation(s) of history"
        )

    def _branch_to(self, entry: GenerationHistoryEntry, rank: int, completed: bool) -> None:
        node = None
        if rank < len(entry.node_ids) and entry.node_ids[rank] in self.tree:
            candidate = self.tree.get(entry.node_ids[rank])
            if candidate.status is NodeStatus.COMPETITOR:
                node = candidate
        if node is None:
            node = self.tree.find_competitor(entry.generation, rank)

        if node is not None:
            self.tree.mark_branch_parent(node.id)
            return

        if not completed:
            self.tree.mark_backtrack_source(self.tree.current_branch_id)
        anchor = self.tree.find_generation_anchor(entry.generation, allow_complete=completed)
        if anchor is not None:
            self.tree.current_branch_id = anchor.id

    # ------------------------------------------------------------------
    # Population construction
    # ------------------------------------------------------------------

    def create_next_generation(self, champion: Creature) -> bool:
        """Replace the population with one grown from ``champion``."""
        if self.config.max_blocks > 0 and champion.block_count >= self.config.max_blocks:
            logger.info(
                "[EvolutionManager] {} already has {} blocks (max {}), not growing",
                champion.name,
                champion.block_count,
                self.config.max_blocks,
            )
            self.population = []
            return False
        try:
            population, duplicates = self.factory.next_generation(
                champion, self.config, self.generation
            )
        except NoAttachmentPoints as exc:
            logger.warning("[EvolutionManager] Cannot grow generation {}: {}", self.generation, exc)
            self.population = []
            return False

        self.metrics.record_duplicates(duplicates)
        self.population = population
        logger.info(
            "[EvolutionManager] Generation {} ready | creatures={}, duplicates_skipped={}",
            self.generation,
            len(population),
            duplicates,
        )
        return bool(population)

    def _advance(self) -> bool:
        self.generation += 1
        self._next_mode()
        return self.create_next_generation(self.champion)

    # ------------------------------------------------------------------
    # Tree navigation
    # ------------------------------------------------------------------

    def restart_from(
        self,
        node: EvolutionTreeNode,
        creature: Creature,
        target: Target,
        event_type: EventType,
        details: dict[str, Any],
    ) -> bool:
        """Make ``creature`` the champion of ``node``'s line and regrow from it."""
        self.champion = creature.clone()
        self.target = target
        self.tree.current_branch_id = node.id
        self.generation = node.generation + 1
        self.history.truncate_after(node.generation)
        self._log_event(event_type, details)
        self._next_mode()
        return self.create_next_generation(self.champion)

    def spawn_from_tree_node(self, node_id: int) -> SpawnResult:
        node = self.tree.get(node_id)
        if node.status not in SPAWNABLE_STATUSES:
            raise InvalidSpawnSource(f"Cannot spawn from {node.status.value} node {node_id}")
        creature = self._creature_for(node)
        if creature is None:
            raise InvalidSpawnSource(f"Node {node_id} ({node.name}) has no creature data")
        creature.reset_fitness_tracking()

        previous_generation = self.generation
        logger.info(
            "[EvolutionManager] Branching from node {} ({}, gen {}, {})",
            node.id,
            node.name,
            node.generation,
            node.status.value,
        )
        ready = self.restart_from(
            node,
            creature,
            Target(
                fitness=node.fitness,
                mode=node.fitness_mode or self.active_mode,
                metrics=node.metrics.model_copy(),
            ),
            EventType.TREE_BRANCH,
            {
                "source_node_id": node.id,
                "source_name": node.name,
                "source_generation": node.generation,
                "source_status": node.status.value,
                "source_fitness": node.fitness,
                "previous_generation": previous_generation,
                "new_generation": node.generation + 1,
            },
        )
        return SpawnResult(
            node_id=node.id,
            source_name=node.name,
            previous_generation=previous_generation,
            generation=self.generation,
            population_ready=ready,
        )

    def _creature_for(self, node: EvolutionTreeNode) -> Creature | None:
        if node.creature is not None:
            return node.creature.clone()
        entry = self.history.get(node.generation)
        if entry is not None:
            for ranked in entry.ranked:
                if ranked.creature.name == node.name:
                    return ranked.creature.clone()
        if self.champion is not None and self.champion.name == node.name:
            return self.champion.clone()
        return None

    def get_creature_from_node(self, node_id: int) -> Creature | None:
        creature = self._creature_for(self.tree.get(node_id))
        if creature is not None:
            creature.reset_fitness_tracking()
        return creature

    def get_lineage_to_root(self, node_id: int) -> list[LineageStep]:
        return [
            LineageStep(
                node.model_copy(deep=True),
                node.creature.clone() if node.creature else None,
            )
            for node in self.tree.lineage_to_root(node_id)
        ]

    def get_tree_node_info(self, node_id: int) -> dict[str, Any]:
        node = self.tree.get(node_id)
        return {
            "node": node.model_copy(deep=True),
            "can_spawn": node.can_spawn,
            "creature_available": node.creature is not None,
            "lineage_depth": len(self.tree.lineage_to_root(node_id)),
        }

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_evolution_tree_data(self) -> TreeSnapshot:
        return TreeSnapshot(
            nodes=[node.model_copy(deep=True) for node in self.tree.nodes],
            events=[event.model_copy(deep=True) for event in self.events],
            current_branch_id=self.tree.current_branch_id,
            stats=self.tree.stats(),
        )

    def get_evolution_lineage(self) -> list[EvolutionTreeNode]:
        return [node.model_copy(deep=True) for node in self.tree.lineage()]

    def get_champion_count(self) -> int:
        return self.tree.champion_count()

    def get_backtrack_stats(self) -> dict[str, Any]:
        return {
            "dead_end_count": self.metrics.dead_end_count,
            "backtrack_count": self.metrics.backtrack_count,
            "completed_line_count": self.metrics.completed_line_count,
            "champion_defense_count": self.metrics.champion_defense_count,
            "exhausted_count": self.metrics.exhausted_count,
            "history_depth": len(self.history),
            "target_fitness": self.target.fitness,
            "target_fitness_mode": self.target.mode.value if self.target.mode else None,
            "target_metrics": self.target.metrics.model_dump(),
            "effective_target": self.effective_target(),
            "current_mode": self.active_mode.value,
            "max_blocks": self.config.max_blocks,
        }

    def get_generation_stats(self) -> dict[str, float]:
        if not self.population:
            return {"average": 0.0, "max": 0.0, "min": 0.0}
        fitness = np.array([c.fitness for c in self.population], dtype=float)
        return {
            "average": float(fitness.mean()),
            "max": float(fitness.max()),
            "min": float(fitness.min()),
        }

    def get_dna_tracking_stats(self) -> dict:
        return self.registry.stats()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _crown(self, best: RankedCreature) -> None:
        self.champion = best.creature.clone()
        self.target = Target(
            fitness=best.fitness,
            mode=self.active_mode,
            metrics=best.creature.metrics,
        )

    def _save_history(self, ranked: list[RankedCreature], node_ids: list[int]) -> None:
        champion = ranked[0]
        self.history.save(
            GenerationHistoryEntry(
                generation=self.generation,
                ranked=ranked,
                champion_fitness=champion.fitness,
                champion_metrics=champion.creature.metrics,
                fitness_mode=self.active_mode,
                node_ids=node_ids,
            )
        )

    def _outcome(
        self,
        evaluated: int,
        kind: GenerationOutcomeKind,
        mode: FitnessMode,
        best: RankedCreature,
        effective: float,
        ready: bool,
    ) -> GenerationOutcome:
        return GenerationOutcome(
            generation=evaluated,
            kind=kind,
            fitness_mode=mode,
            best_name=best.creature.name,
            best_fitness=best.fitness,
            effective_target=effective,
            next_generation=self.generation,
            population_ready=ready,
        )

    def _creature_details(self, best: RankedCreature) -> dict[str, Any]:
        creature = best.creature
        return {
            "creature_name": creature.name,
            "fitness": best.fitness,
            "blocks": creature.block_count,
            "distance": creature.max_distance,
            "height": creature.max_height,
            "tiles_lit": creature.tile_count,
            "jump_height": creature.max_jump_height,
            "fitness_mode": self.active_mode.value,
        }

    def _log_event(self, event_type: EventType, details: dict[str, Any]) -> None:
        self.events.append(
            EvolutionEvent(type=event_type, generation=self.generation, details=details)
        )
