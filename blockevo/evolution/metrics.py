from __future__ import annotations

from pydantic import BaseModel, Field


class EvolutionMetrics(BaseModel):
    """Counters describing how a run has gone so far."""

    generations_evaluated: int = Field(
        default=0, description="Generations whose results were processed"
    )
    dead_end_count: int = Field(
        default=0, description="Generations that failed to beat their target"
    )
    backtrack_count: int = Field(
        default=0, description="Searches of the generation history for an alternative"
    )
    completed_line_count: int = Field(
        default=0, description="Lineages that reached the block cap or could not grow"
    )
    champion_defense_count: int = Field(
        default=0, description="Consecutive dead ends won by the defending champion"
    )
    exhausted_count: int = Field(
        default=0, description="Backtrack searches that found no untried alternative"
    )
    duplicates_skipped: int = Field(
        default=0, description="Variants discarded as behavioural duplicates"
    )

    def record_generation(self) -> None:
        """Record one processed generation."""
        self.generations_evaluated += 1

    def record_dead_end(self, champion_defended: bool) -> None:
        """Record a dead end and whether the defending champion won it."""
        self.dead_end_count += 1
        if champion_defended:
            self.champion_defense_count += 1

    def record_backtrack(self) -> None:
        self.backtrack_count += 1

    def record_completed_line(self) -> None:
        self.completed_line_count += 1

    def record_exhausted(self) -> None:
        self.exhausted_count += 1

    def record_duplicates(self, skipped: int) -> None:
        self.duplicates_skipped += skipped

    model_config = {"arbitrary_types_allowed": True, "extra": "allow"}
