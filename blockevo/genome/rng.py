from __future__ import annotations

import math
from typing import Sequence, TypeVar

__all__ = ["SeededRandom", "LCG_MODULUS"]

T = TypeVar("T")

LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280


class SeededRandom:
    """Small linear congruential generator.

    Every structural and behavioural decision about a creature is drawn from
    one of these, so a genome always replays into the same body and the same
    joint programs. Streams are bit-identical for identical seeds.
    """

    __slots__ = ("seed",)

    def __init__(self, seed: int):
        self.seed = int(seed)

    def random(self) -> float:
        self.seed = (self.seed * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self.seed / LCG_MODULUS

    def random_int(self, lo: int, hi: int) -> int:
        """Integer in ``[lo, hi)``."""
        return math.floor(self.random() * (hi - lo)) + lo

    def random_float(self, lo: float, hi: float) -> float:
        return self.random() * (hi - lo) + lo

    def choice(self, seq: Sequence[T]) -> T:
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[self.random_int(0, len(seq))]

    def __repr__(self) -> str:
        return f"SeededRandom(seed={self.seed})"
