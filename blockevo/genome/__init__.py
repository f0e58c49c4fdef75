from __future__ import annotations

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
from blockevo.genome.rng import SeededRandom
