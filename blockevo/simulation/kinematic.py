from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from loguru import logger

from blockevo.creatures.geometry import BLOCK_SIZE, Axis
from blockevo.creatures.influence import InfluenceChannel, resolve_influences
from blockevo.creatures.models import Creature, SimulationResult

__all__ = ["KinematicSimulator"]

AXIS_UNITS: dict[Axis, np.ndarray] = {
    Axis.X: np.array([1.0, 0.0, 0.0]),
    Axis.Y: np.array([0.0, 1.0, 0.0]),
    Axis.Z: np.array([0.0, 0.0, 1.0]),
}

FRICTION = 0.9
THRUST_GAIN = 0.05
LIFT_GAIN = 0.08
GRAVITY = 0.02
CONTACT_DEPTH = BLOCK_SIZE / 2
RHYTHM_PERIOD = 60


class KinematicSimulator:
    """Deterministic stand-in for a physics engine.

    Joint programs run tick by tick. A joint whose moving block touches the
    ground pushes the body opposite to the block's swing and lifts it when
    the swing points upward; everything else is ignored. Creatures passed in
    are not modified.
    """

    def __init__(self, steps: int = 600, tile_size: float = 1.0):
        if steps <= 0:
            raise ValueError(f"steps must be positive, got {steps}")
        if tile_size <= 0:
            raise ValueError(f"tile_size must be positive, got {tile_size}")
        self.steps = steps
        self.tile_size = tile_size

    def evaluate(self, creatures: Sequence[Creature]) -> list[SimulationResult]:
        return [self.simulate(creature) for creature in creatures]

    def simulate(self, creature: Creature) -> SimulationResult:
        body = creature.model_copy(deep=True)
        for joint in body.joints:
            joint.reset()

        offsets = np.array([block.position for block in body.blocks], dtype=float)
        offsets[:, [0, 2]] -= offsets[:, [0, 2]].mean(axis=0)
        lowest = offsets[:, 1].min()
        grounded = offsets[:, 1] - lowest < CONTACT_DEPTH
        body_height = float(offsets[:, 1].max() - lowest) + BLOCK_SIZE

        position = np.zeros(2)
        velocity = np.zeros(2)
        lift = 0.0
        vertical = 0.0
        max_distance = max_height = max_jump = 0.0
        tiles = [self._tile(position)]

        for tick in range(self.steps):
            readings = self._readings(body, tick, lift, velocity)
            influences = resolve_influences(body, readings) if readings else None
            push = np.zeros(2)
            rise = 0.0

            for joint in body.joints:
                delta = joint.step(influences)
                child = joint.block_index_b
                arm = offsets[child] - offsets[joint.block_index_a]
                swing = delta * np.cross(AXIS_UNITS[joint.axis], arm)
                touching = bool(grounded[child]) and lift <= 0.0
                if touching:
                    push -= swing[[0, 2]]
                    rise += max(float(swing[1]), 0.0)
                joint.handle_feedback(touching and float(swing[1]) < 0.0)

            velocity = velocity * FRICTION + push * THRUST_GAIN
            position = position + velocity
            vertical += rise * LIFT_GAIN - GRAVITY
            lift = max(0.0, lift + vertical)
            if lift == 0.0:
                vertical = 0.0

            max_distance = max(max_distance, float(np.linalg.norm(position)))
            max_height = max(max_height, lift + body_height)
            max_jump = max(max_jump, lift)
            tile = self._tile(position)
            if tile != tiles[-1]:
                tiles.append(tile)

        logger.debug(
            "[KinematicSimulator] {} | distance={:.2f}, height={:.2f}, jump={:.2f}, tiles={}",
            creature.name,
            max_distance,
            max_height,
            max_jump,
            len(set(tiles)),
        )
        return SimulationResult(
            distance=max_distance, height=max_height, jump_height=max_jump, tiles=tiles
        )

    def _tile(self, position: np.ndarray) -> str:
        x, z = (int(math.floor(v / self.tile_size)) for v in position)
        return f"{x},{z}"

    @staticmethod
    def _readings(
        body: Creature, tick: int, lift: float, velocity: np.ndarray
    ) -> dict[int, float]:
        """Raw signal per sensor block index."""
        speed = float(np.linalg.norm(velocity))
        signals = {
            InfluenceChannel.GRAVITY: -1.0 if lift <= 0.0 else -math.exp(-lift),
            InfluenceChannel.LIGHT: math.cos(tick * 0.05),
            InfluenceChannel.VELOCITY: min(speed * 10.0, 1.0),
            InfluenceChannel.GROUND: 1.0 if lift <= 0.0 else 0.0,
            InfluenceChannel.RHYTHM: math.sin(2 * math.pi * tick / RHYTHM_PERIOD),
            InfluenceChannel.TILT: math.tanh(float(velocity[0] - velocity[1]) * 10.0),
        }
        return {
            index: signals[block.influence]
            for index, block in enumerate(body.blocks)
            if block.influence is not None
        }
