from __future__ import annotations

import random
from typing import Iterable

from loguru import logger

from blockevo.creatures.builder import CreatureBuilder
from blockevo.creatures.models import AttachmentPoint, Creature
from blockevo.evolution.config import EvolutionConfig
from blockevo.exceptions import NoAttachmentPoints
from blockevo.genome.codec import behavioral_fingerprint
from blockevo.genome.rng import SeededRandom

__all__ = ["DedupeRegistry", "PopulationFactory"]

SEED_SPACE = 1_000_000
VARIANT_SEED_SPACE = 2**32


class DedupeRegistry:
    """Behavioural fingerprints already admitted, with the generation that first used each."""

    def __init__(self, entries: Iterable[tuple[str, int]] = ()):
        self._seen: dict[str, int] = dict(entries)

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, fingerprint: str) -> bool:
        return fingerprint in self._seen

    def try_register(self, creature: Creature, generation: int) -> bool:
        """Register ``creature``; False when an equivalent genome was already tried."""
        fingerprint = behavioral_fingerprint(creature.genome)
        if fingerprint in self._seen:
            return False
        self._seen[fingerprint] = generation
        return True

    def items(self) -> list[tuple[str, int]]:
        return list(self._seen.items())

    def stats(self) -> dict:
        by_generation: dict[int, int] = {}
        for generation in self._seen.values():
            by_generation[generation] = by_generation.get(generation, 0) + 1
        return {"total_tried": len(self._seen), "by_generation": by_generation}

    def clear(self) -> None:
        self._seen.clear()


class PopulationFactory:
    """Builds generation-1 populations and grows later generations from a champion.

    Every random decision is drawn from the ``rng`` handed in by the manager,
    so a run seeded the same way builds the same populations.
    """

    def __init__(
        self,
        builder: CreatureBuilder,
        registry: DedupeRegistry,
        rng: random.Random,
    ):
        self.builder = builder
        self.registry = registry
        self.rng = rng

    # ------------------------------------------------------------------
    # Generation 1
    # ------------------------------------------------------------------

    def genesis(self, config: EvolutionConfig, generation: int = 1) -> list[Creature]:
        population: list[Creature] = []
        duplicates = 0

        for config_index in range(config.num_configurations):
            structure_seed = self.rng.randrange(SEED_SPACE)
            for variant_index in range(config.instances_per_block_config):
                for _ in range(config.genesis_retries + 1):
                    creature = self.builder.build_from_seed(
                        structure_seed, config.initial_block_count
                    )
                    self.builder.add_start_sensors(
                        creature, SeededRandom(structure_seed + variant_index)
                    )
                    self.builder.generate_movements_from_seed(
                        creature, self.rng.randrange(SEED_SPACE)
                    )
                    creature.name = creature.segment_name
                    creature.parent_name = None
                    creature.config_index = config_index
                    creature.variant_index = variant_index
                    if self.registry.try_register(creature, generation):
                        population.append(creature)
                        break
                    duplicates += 1
                else:
                    logger.warning(
                        "[PopulationFactory] Gave up on config {} variant {}: every movement seed was a duplicate",
                        config_index,
                        variant_index,
                    )

        logger.info(
            "[PopulationFactory] Genesis built | creatures={}, duplicates={}",
            len(population),
            duplicates,
        )
        return population

    # ------------------------------------------------------------------
    # Later generations
    # ------------------------------------------------------------------

    def next_generation(
        self, champion: Creature, config: EvolutionConfig, generation: int
    ) -> tuple[list[Creature], int]:
        """Defending champion plus grown variants.

        Returns the population and the number of duplicates discarded.
        Raises NoAttachmentPoints when the champion cannot grow at all.
        """
        all_points = champion.attachment_points()
        if not all_points:
            raise NoAttachmentPoints(f"Champion {champion.name} has no free face")

        population = [self._defending_clone(champion)]
        points = all_points
        if len(points) > config.num_configurations:
            points = self.rng.sample(points, config.num_configurations)

        logger.debug(
            "[PopulationFactory] Growing gen {} from {} | points={}/{}, variants={}",
            generation,
            champion.name,
            len(points),
            len(all_points),
            config.instances_per_block_config,
        )

        duplicates = 0
        for point_index, point in enumerate(points):
            for variant_index in range(config.instances_per_block_config):
                creature, skipped = self._grow_variant(
                    champion, point, point_index, variant_index, all_points, config, generation
                )
                duplicates += skipped
                if creature is not None:
                    population.append(creature)
        return population, duplicates

    def _grow_variant(
        self,
        champion: Creature,
        point: AttachmentPoint,
        point_index: int,
        variant_index: int,
        all_points: list[AttachmentPoint],
        config: EvolutionConfig,
        generation: int,
    ) -> tuple[Creature | None, int]:
        duplicates = 0
        for attempt in range(config.variant_retries + 1):
            if attempt > 0:
                point_index = self.rng.randrange(len(all_points))
                point = all_points[point_index]

            rng = SeededRandom(self.rng.randrange(VARIANT_SEED_SPACE))
            creature = champion.clone()
            creature.reset_fitness_tracking()
            creature.is_defending_champion = False

            count = self._blocks_to_add(champion, config, rng)
            if count <= 0:
                return None, duplicates
            added = self.builder.add_blocks(
                creature,
                point,
                count,
                rng,
                allow_chaining=config.enable_limb_generation,
                original_block_count=champion.block_count,
            )
            if added == 0:
                logger.debug(
                    "[PopulationFactory] No block fit at point {} (attempt {})", point_index, attempt
                )
                continue

            creature.name = creature.segment_name
            creature.parent_name = champion.name
            creature.config_index = point_index
            creature.variant_index = variant_index
            if self.registry.try_register(creature, generation):
                return creature, duplicates
            duplicates += 1
            logger.debug(
                "[PopulationFactory] Skipping duplicate {} (config {}, variant {})",
                creature.name,
                point_index,
                variant_index,
            )
        return None, duplicates

    @staticmethod
    def _blocks_to_add(champion: Creature, config: EvolutionConfig, rng: SeededRandom) -> int:
        count = config.blocks_per_generation
        if config.randomize_block_count and count > 1:
            count = rng.random_int(1, count + 1)
        if config.max_blocks > 0:
            count = min(count, config.max_blocks - champion.block_count)
        return count

    @staticmethod
    def _defending_clone(champion: Creature) -> Creature:
        clone = champion.clone()
        clone.reset_fitness_tracking()
        clone.config_index = -1
        clone.variant_index = 0
        clone.is_defending_champion = True
        clone.name = clone.segment_name
        clone.parent_name = champion.name
        return clone
