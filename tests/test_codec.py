"""
Tests for the genome text codec and derived seeds.
"""

import pytest

from blockevo.exceptions import MalformedGenome
from blockevo.genome.codec import (
    BlockGene,
    Genome,
    behavioral_fingerprint,
    decode,
    derive_subseed,
    encode,
    last_segment,
    structural_fingerprint,
)

SAMPLE = "0000ABCD-00B00S0V00C1FM2AX00-01B00S2V7FC10M05X03"


class TestEncodeDecode:
    """Canonical text form."""

    def test_decode_sample(self):
        genome = decode(SAMPLE)
        assert genome.seed == 0xABCD
        assert len(genome) == 2
        child = genome.genes[1]
        assert (child.parent_id, child.face, child.variation) == (0, 2, 0x7F)
        assert (child.color_seed, child.material_seed, child.special_code) == (0x10, 0x05, 0x03)

    def test_encode_is_canonical_uppercase(self):
        assert encode(decode("0000abcd-00B00S0V00C1fM2aX00-01B00S2V7fC10M05X03")) == SAMPLE

    def test_round_trip_preserves_text(self):
        genes = (
            BlockGene(block_id=0, color_seed=255, material_seed=1),
            BlockGene(block_id=1, parent_id=0, face=5, variation=200, special_code=6),
            BlockGene(block_id=2, parent_id=1, face=1, variation=3, color_seed=9),
        )
        genome = Genome(seed=0xFFFFFFFF, genes=genes)
        text = encode(genome)
        assert text.startswith("FFFFFFFF-")
        assert decode(text) == genome

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "XYZ-00B00S0V00C00M00X00",
            "0000ABCD",
            "0000ABCD-00B00S6V00C00M00X00",
            "0000ABCD-00B00S0V00C00M00X00-02B00S0V00C00M00X00",
            "0000ABCD-00B00S0V00C00M00X00-01B01S0V00C00M00X00",
            "0000ABCD-00B00S0V00C00M00X00-garbage",
        ],
    )
    def test_malformed_text_is_rejected(self, text):
        with pytest.raises(MalformedGenome):
            decode(text)

    def test_malformed_token_is_reported(self):
        with pytest.raises(MalformedGenome) as info:
            decode("0000ABCD-00B00S0V00C00M00X00-garbage")
        assert info.value.token == "garbage"


class TestDerivedValues:
    """Sub-seeds, names and fingerprints."""

    def test_subseed_xors_hex_chunks(self):
        # hex digits "0000ABCD" "00B00000" "C1F2A00"
        expected = 0x0000ABCD ^ 0x00B00000 ^ 0x0C1F2A00
        assert derive_subseed(SAMPLE, 0) == expected

    def test_subseed_depends_on_prefix_only(self):
        longer = SAMPLE + "-02B01S4V11C22M33X00"
        assert derive_subseed(longer, 1) == derive_subseed(SAMPLE, 1)
        assert derive_subseed(longer, 2) != derive_subseed(SAMPLE, 1)

    def test_salt_changes_subseed(self):
        assert derive_subseed(SAMPLE, 1, "influence") != derive_subseed(SAMPLE, 1)

    def test_last_segment(self):
        assert last_segment(SAMPLE) == "01B00S2V7FC10M05X03"

    def test_behavioral_fingerprint_ignores_colour_and_seed(self):
        a = decode("0000ABCD-00B00S0V00C1FM2AX00-01B00S2V7FC10M05X03")
        b = decode("12345678-00B00S0V00CEEM2AX00-01B00S2V7FC99M05X03")
        assert behavioral_fingerprint(a) == behavioral_fingerprint(b)

    def test_behavioral_fingerprint_sees_variation(self):
        a = decode(SAMPLE)
        assert behavioral_fingerprint(a) != behavioral_fingerprint(a.with_variation(1, 0x80))

    def test_structural_fingerprint_tracks_topology_only(self):
        a = decode(SAMPLE)
        assert structural_fingerprint(a) == structural_fingerprint(a.with_variation(1, 1))
        moved = decode("0000ABCD-00B00S0V00C1FM2AX00-01B00S3V7FC10M05X03")
        assert structural_fingerprint(a) != structural_fingerprint(moved)
        assert len(structural_fingerprint(a)) == 12
