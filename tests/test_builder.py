"""
Tests for growing creatures from seeds and genomes.
"""

import pytest

from blockevo.creatures.builder import CreatureBuilder
from blockevo.creatures.influence import InfluenceChannel, SensorConfig, SensorMode
from blockevo.creatures.models import AttachmentPoint
from blockevo.exceptions import MalformedGenome
from blockevo.genome.codec import decode
from blockevo.genome.rng import SeededRandom

ROOT = "00000001-00B00S0V00C00M00X00"


def assert_well_formed(creature):
    positions = [b.position for b in creature.blocks]
    assert len(set(positions)) == len(positions)
    assert len(creature.joints) == len(creature.blocks) - 1
    assert len(creature.genome) == len(creature.blocks)
    for joint in creature.joints:
        assert 2 <= len(joint.actions) <= 4
        for action in joint.actions:
            assert 10 <= action.duration < 45
            assert 0.12 <= action.rotation_speed < 0.35
            assert action.direction in (-1, 0, 1)


class TestBuildFromSeed:
    """Random bodies from a structure seed."""

    def test_same_seed_same_creature(self, builder):
        a = builder.build_from_seed(4242, 6)
        b = builder.build_from_seed(4242, 6)
        assert a.dna == b.dna
        assert [j.actions for j in a.joints] == [j.actions for j in b.joints]

    @pytest.mark.parametrize("seed", [0, 1, 77, 5000, 999_999])
    def test_bodies_are_well_formed(self, builder, seed):
        creature = builder.build_from_seed(seed, 8)
        assert 1 <= creature.block_count <= 8
        assert creature.structure_seed == seed
        assert creature.genome.seed == seed
        assert_well_formed(creature)

    def test_single_block(self, builder):
        creature = builder.build_from_seed(5, 1)
        assert creature.block_count == 1
        assert creature.joints == []
        assert len(creature.attachment_points()) == 6


class TestGrowFromGenome:
    """Exact replay of a genome."""

    def test_replay_matches_original(self, builder):
        original = builder.build_from_seed(31337, 7)
        replayed = builder.grow_from_genome(original.dna)
        assert replayed.dna == original.dna
        assert [b.position for b in replayed.blocks] == [b.position for b in original.blocks]
        assert [b.color for b in replayed.blocks] == [b.color for b in original.blocks]
        assert [j.actions for j in replayed.joints] == [j.actions for j in original.joints]

    def test_occupied_face_is_rejected(self, builder):
        text = ROOT + "-01B00S0V00C00M00X00-02B00S0V00C00M00X00"
        with pytest.raises(MalformedGenome):
            builder.grow_from_genome(text)

    def test_overlap_is_rejected(self, builder):
        # +X, +Z, -X, -Z walks back onto the root
        text = (
            ROOT
            + "-01B00S0V00C00M00X00-02B01S4V00C00M00X00"
            + "-03B02S1V00C00M00X00-04B03S5V00C00M00X00"
        )
        with pytest.raises(MalformedGenome):
            builder.grow_from_genome(text)

    def test_special_code_becomes_sensor(self, builder):
        creature = builder.grow_from_genome(ROOT + "-01B00S2V10C00M00X05")
        assert creature.blocks[1].influence is InfluenceChannel.RHYTHM
        assert creature.sensors == [InfluenceChannel.RHYTHM]


class TestGrowth:
    """Blocks added during evolution."""

    def test_add_block_at_face(self, builder):
        creature = builder.grow_from_genome(ROOT)
        assert builder.add_block_at_face(creature, 0, 3, SeededRandom(1))
        assert creature.block_count == 2
        assert creature.genome.genes[1].face == 3
        assert creature.blocks[1].position == (0.0, -0.5, 0.0)
        assert_well_formed(creature)

    def test_add_block_rejects_bad_parent_and_used_face(self, builder):
        creature = builder.grow_from_genome(ROOT + "-01B00S0V00C00M00X00")
        dna = creature.dna
        assert not builder.add_block_at_face(creature, 5, 0, SeededRandom(1))
        assert not builder.add_block_at_face(creature, 0, 0, SeededRandom(1))
        assert not builder.add_block_at_face(creature, 1, 1, SeededRandom(1))
        assert creature.dna == dna

    def test_add_block_rejects_overlap(self, builder):
        text = ROOT + "-01B00S0V00C00M00X00-02B01S4V00C00M00X00-03B02S1V00C00M00X00"
        creature = builder.grow_from_genome(text)
        # -Z of block 3 is where the root sits
        assert not builder.add_block_at_face(creature, 3, 5, SeededRandom(2))
        assert creature.block_count == 4

    def test_add_blocks_without_chaining_stays_on_original_body(self, builder):
        creature = builder.build_from_seed(11, 3)
        original = creature.block_count
        added = builder.add_blocks(
            creature,
            creature.attachment_points()[0],
            3,
            SeededRandom(99),
            allow_chaining=False,
            original_block_count=original,
        )
        assert added == 3
        for gene in creature.genome.genes[original:]:
            assert gene.parent_id < original
        assert_well_formed(creature)

    def test_add_blocks_with_chaining(self, builder):
        creature = builder.grow_from_genome(ROOT)
        added = builder.add_blocks(
            creature, AttachmentPoint(0, 0), 3, SeededRandom(5), allow_chaining=True
        )
        assert added == 3
        assert creature.genome.genes[2].parent_id == 1
        assert creature.genome.genes[3].parent_id == 2


class TestSensors:
    """Influence channels on blocks."""

    def test_start_sensors_are_attached(self):
        builder = CreatureBuilder(
            SensorConfig(modes={InfluenceChannel.GRAVITY: SensorMode.START})
        )
        creature = builder.build_from_seed(100, 2)
        assert builder.add_start_sensors(creature, SeededRandom(100)) == 1
        assert creature.blocks[-1].influence is InfluenceChannel.GRAVITY
        assert creature.genome.genes[-1].special_code == 1
        assert creature.last_added_sensor is InfluenceChannel.GRAVITY

    def test_evolve_channel_is_added_once(self):
        builder = CreatureBuilder(SensorConfig(modes={InfluenceChannel.LIGHT: SensorMode.EVOLVE}))
        creature = builder.grow_from_genome(ROOT)
        assert builder.add_block_at_face(creature, 0, 0, SeededRandom(3))
        assert creature.blocks[1].influence is InfluenceChannel.LIGHT
        assert builder.add_block_at_face(creature, 0, 1, SeededRandom(3))
        assert creature.blocks[2].influence is None

    def test_responses_only_name_present_channels(self, builder):
        creature = builder.grow_from_genome(
            ROOT + "-01B00S0V10C00M00X01-02B00S1V20C00M00X02-03B00S2V30C00M00X04"
        )
        present = {c.value for c in creature.sensors}
        for joint in creature.joints:
            assert set(joint.influence_responses) <= present
            for weight in joint.influence_responses.values():
                assert 0.1 < abs(weight) <= 1.0


class TestMovementVariation:
    """Variation rewrites leave structure alone."""

    def test_generate_movements_from_seed(self, builder):
        creature = builder.build_from_seed(8, 5)
        structure = [(g.parent_id, g.face) for g in creature.genome.genes]
        root_variation = creature.genome.genes[0].variation
        builder.generate_movements_from_seed(creature, 1234)
        assert creature.movement_seed == 1234
        assert [(g.parent_id, g.face) for g in creature.genome.genes] == structure
        assert creature.genome.genes[0].variation == root_variation

        again = builder.build_from_seed(8, 5)
        builder.generate_movements_from_seed(again, 1234)
        assert again.dna == creature.dna

    def test_mutate_returns_a_copy(self, builder):
        creature = builder.build_from_seed(21, 6)
        dna = creature.dna
        mutated = builder.mutate(creature, SeededRandom(77))
        assert creature.dna == dna
        assert mutated is not creature
        assert [(g.parent_id, g.face) for g in mutated.genome.genes] == [
            (g.parent_id, g.face) for g in creature.genome.genes
        ]
        assert decode(mutated.dna) == mutated.genome
