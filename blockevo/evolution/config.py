from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from blockevo.creatures.influence import SensorConfig
from blockevo.evolution.fitness import FitnessMode

__all__ = ["EvolutionConfig"]

MIN_BLOCKS_PER_GENERATION = 1
MAX_BLOCKS_PER_GENERATION = 4


class EvolutionConfig(BaseModel):
    """Configuration options controlling EvolutionManager behaviour."""

    instances_per_block_config: int = Field(
        default=4, gt=0, description="Movement variants grown per attachment point"
    )
    num_configurations: int = Field(
        default=5, gt=0, description="Body configurations (attachment points) per generation"
    )
    blocks_per_generation: int = Field(
        default=1, description="Blocks added to the champion each generation (1-4)"
    )
    randomize_block_count: bool = Field(
        default=False, description="Draw 1..blocks_per_generation blocks per variant"
    )
    enable_limb_generation: bool = Field(
        default=False, description="Allow new blocks to chain onto each other"
    )
    max_blocks: int = Field(
        default=0, ge=0, description="Per-creature block cap (0 = unlimited)"
    )
    fitness_mode: FitnessMode = Field(default=FitnessMode.RANDOM)
    initial_block_count: int = Field(
        default=2, gt=0, description="Blocks grown for every generation-1 creature"
    )
    variant_retries: int = Field(
        default=5, ge=0, description="Regeneration attempts for a failed or duplicate variant"
    )
    genesis_retries: int = Field(
        default=20, ge=0, description="Fresh movement seeds tried for a duplicate generation-1 variant"
    )
    seed: int | None = Field(
        default=None, description="Master seed for every manager-level random draw"
    )
    sensors: SensorConfig = Field(default_factory=SensorConfig)

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("blocks_per_generation")
    @classmethod
    def clamp_blocks_per_generation(cls, v: int) -> int:
        return max(MIN_BLOCKS_PER_GENERATION, min(MAX_BLOCKS_PER_GENERATION, v))
