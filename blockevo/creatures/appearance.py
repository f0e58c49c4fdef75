from __future__ import annotations

from enum import Enum

from blockevo.genome.rng import SeededRandom

__all__ = ["Material", "color_from_seed", "material_from_seed"]


class Material(str, Enum):
    PLASTIC = "plastic"
    METAL = "metal"
    CERAMIC = "ceramic"
    RUBBER = "rubber"
    WOOD = "wood"
    CRYSTAL = "crystal"
    GLASS = "glass"
    EMISSIVE = "emissive"


# cumulative roll thresholds; anything above the last one is emissive
_MATERIAL_THRESHOLDS: tuple[tuple[float, Material], ...] = (
    (0.25, Material.PLASTIC),
    (0.45, Material.METAL),
    (0.60, Material.CERAMIC),
    (0.72, Material.RUBBER),
    (0.82, Material.WOOD),
    (0.90, Material.CRYSTAL),
    (0.96, Material.GLASS),
)


def color_from_seed(seed: int) -> int:
    """24-bit RGB colour with every channel in the bright ``[100, 255)`` band."""
    rng = SeededRandom(seed)
    r = rng.random_int(100, 255)
    g = rng.random_int(100, 255)
    b = rng.random_int(100, 255)
    return (r << 16) | (g << 8) | b


def material_from_seed(seed: int) -> Material:
    roll = SeededRandom(seed).random()
    for threshold, material in _MATERIAL_THRESHOLDS:
        if roll < threshold:
            return material
    return Material.EMISSIVE
