from __future__ import annotations

from enum import Enum
from typing import Iterable

__all__ = [
    "Axis",
    "BLOCK_SIZE",
    "NUM_FACES",
    "ROOT_POSITION",
    "Position",
    "opposite_face",
    "face_axis",
    "offset",
    "would_intersect",
]

Position = tuple[float, float, float]

BLOCK_SIZE = 1.0
NUM_FACES = 6
ROOT_POSITION: Position = (0.0, BLOCK_SIZE / 2, 0.0)
INTERSECTION_THRESHOLD = BLOCK_SIZE - 0.1

# face -> unit direction, ordered +X, -X, +Y, -Y, +Z, -Z
FACE_DIRECTIONS: tuple[Position, ...] = (
    (1.0, 0.0, 0.0),
    (-1.0, 0.0, 0.0),
    (0.0, 1.0, 0.0),
    (0.0, -1.0, 0.0),
    (0.0, 0.0, 1.0),
    (0.0, 0.0, -1.0),
)


class Axis(str, Enum):
    X = "x"
    Y = "y"
    Z = "z"


def opposite_face(face: int) -> int:
    return face + 1 if face % 2 == 0 else face - 1


def face_axis(face: int) -> Axis:
    if face <= 1:
        return Axis.X
    if face <= 3:
        return Axis.Y
    return Axis.Z


def offset(position: Position, face: int) -> Position:
    dx, dy, dz = FACE_DIRECTIONS[face]
    x, y, z = position
    return (x + dx * BLOCK_SIZE, y + dy * BLOCK_SIZE, z + dz * BLOCK_SIZE)


def would_intersect(position: Position, occupied: Iterable[Position]) -> bool:
    """True when a cube at ``position`` overlaps any occupied cube."""
    px, py, pz = position
    for x, y, z in occupied:
        if (
            abs(px - x) < INTERSECTION_THRESHOLD
            and abs(py - y) < INTERSECTION_THRESHOLD
            and abs(pz - z) < INTERSECTION_THRESHOLD
        ):
            return True
    return False
