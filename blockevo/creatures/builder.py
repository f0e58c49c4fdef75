from __future__ import annotations

from loguru import logger

from blockevo.creatures.appearance import color_from_seed, material_from_seed
from blockevo.creatures.geometry import (
    ROOT_POSITION,
    Position,
    face_axis,
    offset,
    opposite_face,
    would_intersect,
)
from blockevo.creatures.influence import (
    InfluenceChannel,
    SensorConfig,
    channel_from_code,
    determine_block_influence,
)
from blockevo.creatures.models import (
    AttachmentPoint,
    Block,
    Creature,
    Joint,
    JointAction,
)
from blockevo.exceptions import ConstructionExhausted, MalformedGenome
from blockevo.genome.codec import BlockGene, Genome, decode, derive_subseed
from blockevo.genome.rng import SeededRandom

__all__ = ["CreatureBuilder"]

MAX_PLACEMENT_ATTEMPTS = 100
MAX_PARENT_SEARCH = 50
MAX_SENSOR_ATTEMPTS = 50
PLACEMENT_RETRIES = 5

INFLUENCE_SALT = "influence"
RESPONSE_PROBABILITY = 0.4
MIN_RESPONSE_WEIGHT = 0.1
MUTATION_PROBABILITY = 0.5
MUTATION_SPAN = 25


class CreatureBuilder:
    """Grows creatures from seeds and genomes and derives their joint programs.

    The builder is the only place that turns genomes into bodies:
      * ``build_from_seed`` grows a random body from a structure seed
      * ``grow_from_genome`` replays an existing genome exactly
      * ``add_block_at_face`` / ``add_blocks`` extend a body during evolution
      * ``mutate`` / ``generate_movements_from_seed`` rewrite movement variations

    After any genome change every joint program and influence weight is
    re-derived from the genome text, so two creatures with the same genome
    always behave identically.
    """

    def __init__(self, sensors: SensorConfig | None = None):
        self.sensors = sensors or SensorConfig()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def build_from_seed(self, seed: int, target_block_count: int) -> Creature:
        """Grow a random body of up to ``target_block_count`` blocks."""
        rng = SeededRandom(seed)
        root = BlockGene(
            block_id=0,
            color_seed=rng.random_int(0, 256),
            material_seed=rng.random_int(0, 256),
        )
        creature = Creature(
            genome=Genome(seed=seed, genes=(root,)),
            blocks=[self._make_block(root, ROOT_POSITION, None)],
            structure_seed=seed,
        )
        genes = [root]

        for index in range(1, target_block_count):
            try:
                gene = self._place_random_block(creature, index, rng)
            except ConstructionExhausted as exc:
                logger.debug("[CreatureBuilder] Growth stopped at {} blocks: {}", index, exc)
                break
            if gene is None:
                logger.debug(
                    "[CreatureBuilder] No overlap-free placement for block {} after {} attempts",
                    index,
                    MAX_PLACEMENT_ATTEMPTS,
                )
                break
            genes.append(gene)

        creature.genome = Genome(seed=seed, genes=tuple(genes))
        self.derive_programs(creature)
        return creature

    def _place_random_block(
        self, creature: Creature, index: int, rng: SeededRandom
    ) -> BlockGene | None:
        for _ in range(MAX_PLACEMENT_ATTEMPTS):
            color_seed = rng.random_int(0, 256)
            material_seed = rng.random_int(0, 256)
            variation = rng.random_int(0, 256)
            channel = determine_block_influence(
                (b.influence for b in creature.blocks), self.sensors, rng
            )
            parent_index, face = self._find_free_face(creature, rng)

            position = offset(creature.blocks[parent_index].position, face)
            if would_intersect(position, (b.position for b in creature.blocks)):
                continue

            gene = BlockGene(
                block_id=index,
                parent_id=parent_index,
                face=face,
                variation=variation,
                color_seed=color_seed,
                material_seed=material_seed,
                special_code=channel.code if channel else 0,
            )
            self._attach(creature, gene, position, channel)
            return gene
        return None

    @staticmethod
    def _find_free_face(creature: Creature, rng: SeededRandom) -> tuple[int, int]:
        for _ in range(MAX_PARENT_SEARCH):
            candidate = rng.random_int(0, len(creature.blocks))
            faces = creature.blocks[candidate].available_faces()
            if faces:
                return candidate, faces[rng.random_int(0, len(faces))]
        raise ConstructionExhausted(
            f"No block with a free face found in {MAX_PARENT_SEARCH} tries"
        )

    def grow_from_genome(self, genome: Genome | str) -> Creature:
        """Rebuild a creature exactly as its genome describes it."""
        if isinstance(genome, str):
            genome = decode(genome)

        root = genome.genes[0]
        creature = Creature(
            genome=genome,
            blocks=[self._make_block(root, ROOT_POSITION, channel_from_code(root.special_code))],
        )
        for gene in genome.genes[1:]:
            parent = creature.blocks[gene.parent_id]
            if not parent.is_face_free(gene.face):
                raise MalformedGenome(
                    f"Block {gene.block_id} reuses occupied face {gene.face} of block {gene.parent_id}"
                )
            position = offset(parent.position, gene.face)
            if would_intersect(position, (b.position for b in creature.blocks)):
                raise MalformedGenome(f"Block {gene.block_id} overlaps an existing block")
            self._attach(creature, gene, position, channel_from_code(gene.special_code))

        self.derive_programs(creature)
        return creature

    # ------------------------------------------------------------------
    # Growth during evolution
    # ------------------------------------------------------------------

    def add_block_at_face(
        self, creature: Creature, parent_index: int, face: int, rng: SeededRandom
    ) -> bool:
        channel = determine_block_influence(
            (b.influence for b in creature.blocks), self.sensors, rng
        )
        return self.add_block_with_channel(creature, parent_index, face, rng, channel)

    def add_block_with_channel(
        self,
        creature: Creature,
        parent_index: int,
        face: int,
        rng: SeededRandom,
        channel: InfluenceChannel | None,
    ) -> bool:
        """Attach one block at ``face`` of ``parent_index``; False if it cannot fit."""
        if not 0 <= parent_index < len(creature.blocks):
            return False
        parent = creature.blocks[parent_index]
        if face not in parent.available_faces():
            return False

        color_seed = rng.random_int(0, 256)
        material_seed = rng.random_int(0, 256)
        variation = rng.random_int(0, 256)

        position = offset(parent.position, face)
        if would_intersect(position, (b.position for b in creature.blocks)):
            return False

        gene = BlockGene(
            block_id=len(creature.blocks),
            parent_id=parent_index,
            face=face,
            variation=variation,
            color_seed=color_seed,
            material_seed=material_seed,
            special_code=channel.code if channel else 0,
        )
        self._attach(creature, gene, position, channel)
        creature.genome = creature.genome.append_gene(gene)
        if channel is not None:
            creature.last_added_sensor = channel
        self.derive_programs(creature)
        return True

    def add_blocks(
        self,
        creature: Creature,
        first_point: AttachmentPoint,
        count: int,
        rng: SeededRandom,
        allow_chaining: bool = False,
        original_block_count: int | None = None,
    ) -> int:
        """Add up to ``count`` blocks, the first at ``first_point``.

        Without chaining, extra blocks only attach to the original body; with
        chaining they prefer the most recently added block. Returns the number
        of blocks actually added.
        """
        if original_block_count is None:
            original_block_count = len(creature.blocks)

        added = 0
        last_added = -1
        if self.add_block_at_face(creature, first_point.parent_index, first_point.face, rng):
            added += 1
            last_added = len(creature.blocks) - 1

        while added < count:
            points = creature.attachment_points()
            if not allow_chaining:
                points = [p for p in points if p.parent_index < original_block_count]
            if not points:
                break

            point = None
            if allow_chaining and last_added >= 0:
                chain = [p for p in points if p.parent_index == last_added]
                if chain:
                    point = chain[rng.random_int(0, len(chain))]
            if point is None:
                point = points[rng.random_int(0, len(points))]

            placed = self.add_block_at_face(creature, point.parent_index, point.face, rng)
            retries = 0
            while not placed and retries < PLACEMENT_RETRIES:
                retry = points[rng.random_int(0, len(points))]
                placed = self.add_block_at_face(creature, retry.parent_index, retry.face, rng)
                retries += 1
            if not placed:
                break
            added += 1
            last_added = len(creature.blocks) - 1
        return added

    def add_start_sensors(self, creature: Creature, rng: SeededRandom) -> int:
        """Attach one block for every start-mode channel. Returns how many fit."""
        added = 0
        for channel in self.sensors.start_channels():
            attached = False
            for _ in range(MAX_SENSOR_ATTEMPTS):
                parent_index = rng.random_int(0, len(creature.blocks))
                faces = creature.blocks[parent_index].available_faces()
                if faces:
                    face = faces[rng.random_int(0, len(faces))]
                    attached = self.add_block_with_channel(
                        creature, parent_index, face, rng, channel
                    )
                if attached:
                    break
            if attached:
                added += 1
                logger.debug("[CreatureBuilder] Added {} sensor at start", channel.value)
            else:
                logger.warning(
                    "[CreatureBuilder] Could not attach {} sensor: no free face", channel.value
                )
        return added

    # ------------------------------------------------------------------
    # Movement variation
    # ------------------------------------------------------------------

    def generate_movements_from_seed(self, creature: Creature, seed: int) -> Creature:
        """Rewrite every non-root variation from ``seed`` and re-derive programs."""
        rng = SeededRandom(seed)
        variations = {index: rng.random_int(0, 256) for index in range(1, len(creature.blocks))}
        creature.genome = creature.genome.with_variations(variations)
        creature.movement_seed = seed
        self.derive_programs(creature)
        return creature

    def mutate(self, creature: Creature, rng: SeededRandom) -> Creature:
        """Copy with some movement variations nudged; structure is untouched."""
        mutated = creature.clone()
        variations: dict[int, int] = {}
        for gene in creature.genome.genes[1:]:
            if rng.random() < MUTATION_PROBABILITY:
                delta = rng.random_int(-MUTATION_SPAN, MUTATION_SPAN + 1)
                variations[gene.block_id] = max(0, min(255, gene.variation + delta))
        mutated.genome = creature.genome.with_variations(variations)
        self.derive_programs(mutated)
        return mutated

    # ------------------------------------------------------------------
    # Programs
    # ------------------------------------------------------------------

    def derive_programs(self, creature: Creature) -> None:
        """Recompute every joint's actions and influence weights from the genome."""
        dna = creature.dna
        channels = [c.value for c in creature.sensors]
        for joint in creature.joints:
            block_index = joint.block_index_b
            joint.actions = self._actions_for(dna, block_index)
            joint.influence_responses = self._responses_for(dna, block_index, channels)
            joint.reset()

    @staticmethod
    def _actions_for(dna: str, block_index: int) -> list[JointAction]:
        rng = SeededRandom(derive_subseed(dna, block_index))
        actions = []
        for _ in range(rng.random_int(2, 5)):
            duration = rng.random_int(10, 45)
            speed = rng.random_float(0.12, 0.35)
            roll = rng.random()
            if roll < 0.425:
                direction = 1
            elif roll < 0.85:
                direction = -1
            else:
                direction = 0
            actions.append(
                JointAction(duration=duration, rotation_speed=speed, direction=direction)
            )
        return actions

    @staticmethod
    def _responses_for(dna: str, block_index: int, channels: list[str]) -> dict[str, float]:
        if not channels:
            return {}
        rng = SeededRandom(derive_subseed(dna, block_index, INFLUENCE_SALT))
        responses: dict[str, float] = {}
        for channel in channels:
            if rng.random() < RESPONSE_PROBABILITY:
                weight = rng.random_float(-1, 1)
                if abs(weight) > MIN_RESPONSE_WEIGHT:
                    responses[channel] = weight
        return responses

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _make_block(
        gene: BlockGene, position: Position, channel: InfluenceChannel | None
    ) -> Block:
        return Block(
            block_id=gene.block_id,
            color=color_from_seed(gene.color_seed),
            material=material_from_seed(gene.material_seed),
            position=position,
            influence=channel,
        )

    def _attach(
        self,
        creature: Creature,
        gene: BlockGene,
        position: Position,
        channel: InfluenceChannel | None,
    ) -> None:
        parent = creature.blocks[gene.parent_id]
        child = self._make_block(gene, position, channel)
        back_face = opposite_face(gene.face)
        parent.mark_face_used(gene.face)
        child.mark_face_used(back_face)
        creature.blocks.append(child)
        creature.joints.append(
            Joint(
                block_index_a=gene.parent_id,
                block_index_b=gene.block_id,
                axis=face_axis(gene.face),
                face_a=gene.face,
                face_b=back_face,
            )
        )
