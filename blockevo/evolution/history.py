from __future__ import annotations

from typing import Iterator

from pydantic import BaseModel, Field

from blockevo.creatures.models import RawMetrics
from blockevo.evolution.fitness import FitnessMode, RankedCreature

__all__ = ["GenerationHistoryEntry", "GenerationHistory"]


class GenerationHistoryEntry(BaseModel):
    """Ranked snapshot of one evaluated generation, used for backtracking."""

    generation: int
    ranked: list[RankedCreature]
    tried_ranks: list[int] = Field(default_factory=lambda: [0])
    champion_fitness: float
    champion_metrics: RawMetrics
    fitness_mode: FitnessMode | None = None
    node_ids: list[int] = Field(
        default_factory=list, description="Evolution tree node id per rank"
    )

    def is_tried(self, rank: int) -> bool:
        return rank in self.tried_ranks

    def mark_tried(self, rank: int) -> None:
        if rank not in self.tried_ranks:
            self.tried_ranks.append(rank)


class GenerationHistory:
    """Generation snapshots kept in generation order, one per generation."""

    def __init__(self, entries: list[GenerationHistoryEntry] | None = None):
        self._entries: list[GenerationHistoryEntry] = []
        for entry in entries or []:
            self.save(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[GenerationHistoryEntry]:
        return iter(self._entries)

    @property
    def entries(self) -> list[GenerationHistoryEntry]:
        return list(self._entries)

    def save(self, entry: GenerationHistoryEntry) -> None:
        """Store ``entry``, replacing any snapshot of the same generation."""
        for position, existing in enumerate(self._entries):
            if existing.generation == entry.generation:
                self._entries[position] = entry
                return
        self._entries.append(entry)
        self._entries.sort(key=lambda e: e.generation)

    def get(self, generation: int) -> GenerationHistoryEntry | None:
        for entry in self._entries:
            if entry.generation == generation:
                return entry
        return None

    def older_than(self, generation: int) -> list[GenerationHistoryEntry]:
        """Entries before ``generation``, newest first."""
        return [e for e in reversed(self._entries) if e.generation < generation]

    def truncate_after(self, generation: int) -> None:
        self._entries = [e for e in self._entries if e.generation <= generation]

    def clear(self) -> None:
        self._entries = []

    @staticmethod
    def find_next_untried(entry: GenerationHistoryEntry, max_blocks: int = 0) -> int | None:
        """Best-ranked alternative not yet tried.

        Defending champions and creatures already at ``max_blocks`` are passed
        over without being marked as tried.
        """
        for rank, ranked in enumerate(entry.ranked):
            if entry.is_tried(rank):
                continue
            creature = ranked.creature
            if creature.is_defending_champion:
                continue
            if max_blocks > 0 and creature.block_count >= max_blocks:
                continue
            return rank
        return None
