from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from blockevo.creatures.builder import CreatureBuilder
from blockevo.creatures.influence import InfluenceChannel
from blockevo.creatures.models import Creature, RawMetrics
from blockevo.evolution.config import EvolutionConfig
from blockevo.evolution.events import EvolutionEvent
from blockevo.evolution.fitness import FitnessMode, RankedCreature
from blockevo.evolution.history import GenerationHistoryEntry
from blockevo.evolution.manager import Target
from blockevo.evolution.metrics import EvolutionMetrics
from blockevo.evolution.tree import EvolutionTreeNode

__all__ = [
    "STATE_VERSION",
    "CreatureRecord",
    "RankedRecord",
    "HistoryRecord",
    "TreeNodeRecord",
    "StateDocument",
]

STATE_VERSION = 1


class CreatureRecord(BaseModel):
    """A creature as saved: its DNA plus identity and evaluation fields.

    Bodies and joint programs are not stored; they are regrown from ``dna``.
    """

    dna: str
    name: str | None = None
    parent_name: str | None = None
    is_defending_champion: bool = False
    config_index: int = -1
    variant_index: int = -1
    structure_seed: int | None = None
    movement_seed: int | None = None
    last_added_sensor: InfluenceChannel | None = None
    fitness: float = 0.0
    max_distance: float = 0.0
    max_height: float = 0.0
    max_jump_height: float = 0.0
    tiles_lit: list[str] = Field(default_factory=list)

    @classmethod
    def from_creature(cls, creature: Creature) -> CreatureRecord:
        return cls(
            dna=creature.dna,
            name=creature.name,
            parent_name=creature.parent_name,
            is_defending_champion=creature.is_defending_champion,
            config_index=creature.config_index,
            variant_index=creature.variant_index,
            structure_seed=creature.structure_seed,
            movement_seed=creature.movement_seed,
            last_added_sensor=creature.last_added_sensor,
            fitness=creature.fitness,
            max_distance=creature.max_distance,
            max_height=creature.max_height,
            max_jump_height=creature.max_jump_height,
            tiles_lit=list(creature.tiles_lit),
        )

    def to_creature(self, builder: CreatureBuilder) -> Creature:
        """Regrow the body from DNA and restore the saved fields."""
        creature = builder.grow_from_genome(self.dna)
        for field, value in self.model_dump(exclude={"dna"}).items():
            setattr(creature, field, value)
        return creature


class RankedRecord(BaseModel):
    creature: CreatureRecord
    index: int
    fitness: float

    @classmethod
    def from_ranked(cls, ranked: RankedCreature) -> RankedRecord:
        return cls(
            creature=CreatureRecord.from_creature(ranked.creature),
            index=ranked.index,
            fitness=ranked.fitness,
        )

    def to_ranked(self, builder: CreatureBuilder) -> RankedCreature:
        return RankedCreature(
            creature=self.creature.to_creature(builder), index=self.index, fitness=self.fitness
        )


class HistoryRecord(BaseModel):
    generation: int
    ranked: list[RankedRecord]
    tried_ranks: list[int] = Field(default_factory=lambda: [0])
    champion_fitness: float
    champion_metrics: RawMetrics
    fitness_mode: FitnessMode | None = None
    node_ids: list[int] = Field(default_factory=list)

    @classmethod
    def from_entry(cls, entry: GenerationHistoryEntry) -> HistoryRecord:
        return cls(
            generation=entry.generation,
            ranked=[RankedRecord.from_ranked(r) for r in entry.ranked],
            tried_ranks=list(entry.tried_ranks),
            champion_fitness=entry.champion_fitness,
            champion_metrics=entry.champion_metrics,
            fitness_mode=entry.fitness_mode,
            node_ids=list(entry.node_ids),
        )

    def to_entry(self, builder: CreatureBuilder) -> GenerationHistoryEntry:
        return GenerationHistoryEntry(
            generation=self.generation,
            ranked=[r.to_ranked(builder) for r in self.ranked],
            tried_ranks=list(self.tried_ranks),
            champion_fitness=self.champion_fitness,
            champion_metrics=self.champion_metrics,
            fitness_mode=self.fitness_mode,
            node_ids=list(self.node_ids),
        )


class TreeNodeRecord(BaseModel):
    """A tree node with its creature snapshot reduced to a record."""

    node: EvolutionTreeNode
    creature: CreatureRecord | None = None

    @classmethod
    def from_node(cls, node: EvolutionTreeNode) -> TreeNodeRecord:
        return cls(
            node=node.model_copy(update={"creature": None}),
            creature=CreatureRecord.from_creature(node.creature) if node.creature else None,
        )

    def to_node(self, builder: CreatureBuilder) -> EvolutionTreeNode:
        creature = self.creature.to_creature(builder) if self.creature else None
        return self.node.model_copy(update={"creature": creature}, deep=True)


class StateDocument(BaseModel):
    """Everything needed to resume a run.

    The manager's random generator is not included; a loaded run reseeds
    from ``settings.seed``.
    """

    version: int = STATE_VERSION
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    generation: int = 0
    settings: EvolutionConfig = Field(default_factory=EvolutionConfig)
    fitness_mode: FitnessMode = FitnessMode.RANDOM
    active_mode: FitnessMode = FitnessMode.DISTANCE
    champion: CreatureRecord | None = None
    all_time_champion: CreatureRecord | None = None
    population: list[CreatureRecord] = Field(default_factory=list)
    target: Target = Field(default_factory=Target)
    history: list[HistoryRecord] = Field(default_factory=list)
    tree_nodes: list[TreeNodeRecord] = Field(default_factory=list)
    next_node_id: int = 1
    current_branch_id: int | None = None
    events: list[EvolutionEvent] = Field(default_factory=list)
    counters: EvolutionMetrics = Field(default_factory=EvolutionMetrics)
    tried_fingerprints: list[tuple[str, int]] = Field(
        default_factory=list, description="Behavioural fingerprint and first generation"
    )
