from __future__ import annotations

import hashlib
import re

from pydantic import BaseModel, ConfigDict, Field, model_validator

from blockevo.exceptions import MalformedGenome

__all__ = [
    "BlockGene",
    "Genome",
    "encode",
    "decode",
    "encode_gene",
    "decode_gene",
    "derive_subseed",
    "last_segment",
    "behavioral_fingerprint",
    "structural_fingerprint",
]

MAX_SEED = 0xFFFFFFFF
NUM_FACES = 6

_TOKEN_RE = re.compile(
    r"([0-9A-Fa-f]{2})B([0-9A-Fa-f]{2})S(\d)V([0-9A-Fa-f]{2})"
    r"C([0-9A-Fa-f]{2})M([0-9A-Fa-f]{2})X([0-9A-Fa-f]{2})"
)
_SEED_RE = re.compile(r"[0-9A-Fa-f]{8}")
_NON_HEX_RE = re.compile(r"[^0-9A-Fa-f]")


class BlockGene(BaseModel):
    """One block of a genome: where it attaches and the seeds describing it."""

    block_id: int = Field(ge=0, le=255)
    parent_id: int = Field(default=0, ge=0, le=255)
    face: int = Field(default=0, ge=0, lt=NUM_FACES)
    variation: int = Field(default=0, ge=0, le=255)
    color_seed: int = Field(default=0, ge=0, le=255)
    material_seed: int = Field(default=0, ge=0, le=255)
    special_code: int = Field(default=0, ge=0, le=255)

    model_config = ConfigDict(frozen=True)

    @property
    def is_root(self) -> bool:
        return self.block_id == 0


class Genome(BaseModel):
    """Immutable genome: a root seed plus an ordered tuple of block genes.

    Invariants:
      * ``genes[i].block_id == i``
      * every non-root gene references an earlier block as its parent
    """

    seed: int = Field(ge=0, le=MAX_SEED)
    genes: tuple[BlockGene, ...]

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_ordering(self) -> "Genome":
        if not self.genes:
            raise ValueError("Genome must contain at least the root block")
        for index, gene in enumerate(self.genes):
            if gene.block_id != index:
                raise ValueError(
                    f"Gene at position {index} has block id {gene.block_id}"
                )
            if index > 0 and gene.parent_id >= index:
                raise ValueError(
                    f"Gene {index} references parent {gene.parent_id} that does not precede it"
                )
        return self

    def __len__(self) -> int:
        return len(self.genes)

    def append_gene(self, gene: BlockGene) -> Genome:
        return Genome(seed=self.seed, genes=(*self.genes, gene))

    def with_variation(self, block_index: int, variation: int) -> Genome:
        genes = list(self.genes)
        genes[block_index] = genes[block_index].model_copy(
            update={"variation": variation}
        )
        return Genome(seed=self.seed, genes=tuple(genes))

    def with_variations(self, variations: dict[int, int]) -> Genome:
        genes = [
            gene.model_copy(update={"variation": variations[gene.block_id]})
            if gene.block_id in variations
            else gene
            for gene in self.genes
        ]
        return Genome(seed=self.seed, genes=tuple(genes))


# ------------------------------------------------------------------
# Text form
# ------------------------------------------------------------------


def encode_gene(gene: BlockGene) -> str:
    return (
        f"{gene.block_id:02X}B{gene.parent_id:02X}S{gene.face}"
        f"V{gene.variation:02X}C{gene.color_seed:02X}"
        f"M{gene.material_seed:02X}X{gene.special_code:02X}"
    )


def decode_gene(token: str) -> BlockGene:
    match = _TOKEN_RE.fullmatch(token)
    if match is None:
        raise MalformedGenome(f"Malformed block token: {token!r}", token=token)
    block_id, parent_id, face, variation, color, material, special = match.groups()
    if int(face) >= NUM_FACES:
        raise MalformedGenome(
            f"Face digit {face} out of range in token {token!r}", token=token
        )
    return BlockGene(
        block_id=int(block_id, 16),
        parent_id=int(parent_id, 16),
        face=int(face),
        variation=int(variation, 16),
        color_seed=int(color, 16),
        material_seed=int(material, 16),
        special_code=int(special, 16),
    )


def encode(genome: Genome) -> str:
    return "-".join([f"{genome.seed:08X}", *(encode_gene(g) for g in genome.genes)])


def decode(text: str) -> Genome:
    """Parse the canonical text form, rejecting anything that does not fully match."""
    if not isinstance(text, str) or not text:
        raise MalformedGenome("Genome text is empty")
    seed_part, *tokens = text.strip().split("-")
    if _SEED_RE.fullmatch(seed_part) is None:
        raise MalformedGenome(f"Malformed genome seed: {seed_part!r}", token=seed_part)
    if not tokens:
        raise MalformedGenome("Genome has no block tokens")

    genes = [decode_gene(token) for token in tokens]
    for index, (token, gene) in enumerate(zip(tokens, genes)):
        if gene.block_id != index:
            raise MalformedGenome(
                f"Block token {token!r} out of sequence (expected id {index:02X})",
                token=token,
            )
        if index > 0 and gene.parent_id >= index:
            raise MalformedGenome(
                f"Block token {token!r} references a parent that does not precede it",
                token=token,
            )
    return Genome(seed=int(seed_part, 16), genes=tuple(genes))


# ------------------------------------------------------------------
# Derived values
# ------------------------------------------------------------------


def derive_subseed(text: str, block_index: int, salt: str = "") -> int:
    """Fold the genome prefix up to ``block_index`` into a 32-bit seed.

    The seed and tokens ``0..block_index`` are joined, ``salt`` is appended,
    non-hex characters are dropped and each 8-digit chunk is XOR-ed in.
    """
    parts = text.split("-")
    prefix = "-".join(parts[: block_index + 2]) + salt
    hex_digits = _NON_HEX_RE.sub("", prefix).upper()
    seed = 0
    for start in range(0, len(hex_digits), 8):
        seed ^= int(hex_digits[start : start + 8], 16)
    return seed & MAX_SEED


def last_segment(text: str) -> str:
    return text.rsplit("-", 1)[-1]


def behavioral_fingerprint(genome: Genome) -> str:
    """Genome identity ignoring cosmetic colour seeds."""
    return "-".join(
        f"{g.block_id:02X}B{g.parent_id:02X}S{g.face}V{g.variation:02X}"
        f"M{g.material_seed:02X}X{g.special_code:02X}"
        for g in genome.genes
    )


def structural_fingerprint(genome: Genome) -> str:
    """Short species id derived from the attachment topology only."""
    topology = "|".join(f"{g.block_id}:{g.parent_id}:{g.face}" for g in genome.genes)
    return hashlib.sha1(topology.encode("utf-8")).hexdigest()[:12]
