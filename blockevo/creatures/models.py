from __future__ import annotations

from typing import Any, Mapping, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from blockevo.creatures.appearance import Material
from blockevo.creatures.geometry import BLOCK_SIZE, NUM_FACES, Axis, Position
from blockevo.creatures.influence import (
    InfluenceChannel,
    ResponseWeight,
    apply_influence_modulation,
)
from blockevo.genome.codec import Genome, encode, last_segment

__all__ = [
    "AttachmentPoint",
    "JointAction",
    "Joint",
    "Block",
    "RawMetrics",
    "SimulationResult",
    "Creature",
]

FEEDBACK_DAMPING = 0.9
FEEDBACK_RECOVERY = 0.1
FEEDBACK_STUCK_THRESHOLD = 0.1
FEEDBACK_REVERSE = -0.5


class AttachmentPoint(NamedTuple):
    parent_index: int
    face: int


class JointAction(BaseModel):
    """One step of a joint's cyclic motion program."""

    duration: int = Field(gt=0, description="Ticks the action lasts")
    rotation_speed: float = Field(description="Radians per tick")
    direction: int = Field(description="1 clockwise, -1 counter-clockwise, 0 hold")

    @field_validator("direction")
    @classmethod
    def validate_direction(cls, v: int) -> int:
        if v not in (-1, 0, 1):
            raise ValueError("direction must be -1, 0 or 1")
        return v


class Joint(BaseModel):
    """Hinge between a parent block (A) and the child block (B) it carries."""

    block_index_a: int
    block_index_b: int
    axis: Axis
    face_a: int
    face_b: int
    actions: list[JointAction] = Field(default_factory=list)
    influence_responses: dict[str, ResponseWeight] = Field(default_factory=dict)

    # runtime program state
    current_action_index: int = 0
    action_timer: int = 0
    current_angle: float = 0.0
    feedback_multiplier: float = 1.0

    @property
    def current_action(self) -> JointAction | None:
        if not self.actions:
            return None
        return self.actions[self.current_action_index]

    def step(self, influences: Mapping[str, float] | None = None) -> float:
        """Advance one tick and return the rotation applied."""
        action = self.current_action
        if action is None:
            return 0.0

        self.action_timer += 1
        delta = action.rotation_speed * action.direction * self.feedback_multiplier
        if influences and self.influence_responses:
            delta = apply_influence_modulation(delta, influences, self.influence_responses)
        self.current_angle += delta

        if self.action_timer >= action.duration:
            self.action_timer = 0
            self.current_action_index = (self.current_action_index + 1) % len(
                self.actions
            )
        return delta

    def handle_feedback(self, colliding: bool) -> None:
        """Damp a blocked joint, reversing it once stuck; recover otherwise."""
        if colliding:
            self.feedback_multiplier *= FEEDBACK_DAMPING
            if self.feedback_multiplier < FEEDBACK_STUCK_THRESHOLD:
                self.feedback_multiplier = FEEDBACK_REVERSE
        else:
            self.feedback_multiplier += (
                1.0 - self.feedback_multiplier
            ) * FEEDBACK_RECOVERY

    def reset(self) -> None:
        self.current_action_index = 0
        self.action_timer = 0
        self.current_angle = 0.0
        self.feedback_multiplier = 1.0


class Block(BaseModel):
    block_id: int
    size: float = BLOCK_SIZE
    color: int
    material: Material
    position: Position
    face_mask: int = Field(default=0, description="Bit f set when face f is occupied")
    influence: InfluenceChannel | None = None

    def is_face_free(self, face: int) -> bool:
        return not (self.face_mask >> face) & 1

    def available_faces(self) -> list[int]:
        return [face for face in range(NUM_FACES) if self.is_face_free(face)]

    def mark_face_used(self, face: int) -> None:
        self.face_mask |= 1 << face


class RawMetrics(BaseModel):
    """The four physical measurements every fitness mode is computed from."""

    distance: float = 0.0
    height: float = 0.0
    tiles_lit: int = 0
    jump_height: float = 0.0


class SimulationResult(BaseModel):
    """What the external simulator reports for one creature."""

    distance: float = Field(default=0.0, ge=0)
    height: float = Field(default=0.0, ge=0)
    jump_height: float = Field(default=0.0, ge=0)
    tiles: list[str] = Field(default_factory=list, description="Visited tile ids")


class Creature(BaseModel):
    """Genome plus the phenotype derived from it and its evaluation record.

    ``blocks`` and ``joints`` are always a pure function of ``genome`` and are
    rebuilt by :class:`~blockevo.creatures.builder.CreatureBuilder` whenever the
    genome changes.
    """

    genome: Genome
    blocks: list[Block] = Field(default_factory=list)
    joints: list[Joint] = Field(default_factory=list)

    name: str | None = None
    parent_name: str | None = None
    is_defending_champion: bool = False
    config_index: int = -1
    variant_index: int = -1
    structure_seed: int | None = None
    movement_seed: int | None = None
    last_added_sensor: InfluenceChannel | None = None

    max_distance: float = 0.0
    max_height: float = 0.0
    max_jump_height: float = 0.0
    tiles_lit: list[str] = Field(default_factory=list)
    fitness: float = 0.0

    model_config = ConfigDict(extra="forbid")

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def dna(self) -> str:
        return encode(self.genome)

    @property
    def segment_name(self) -> str:
        return last_segment(self.dna)

    @property
    def block_count(self) -> int:
        return len(self.blocks)

    @property
    def sensors(self) -> list[InfluenceChannel]:
        """Distinct channels carried by the body, in block order."""
        seen: list[InfluenceChannel] = []
        for block in self.blocks:
            if block.influence is not None and block.influence not in seen:
                seen.append(block.influence)
        return seen

    # ------------------------------------------------------------------
    # Evaluation record
    # ------------------------------------------------------------------

    @property
    def tile_count(self) -> int:
        return len(self.tiles_lit)

    @property
    def metrics(self) -> RawMetrics:
        return RawMetrics(
            distance=self.max_distance,
            height=self.max_height,
            tiles_lit=self.tile_count,
            jump_height=self.max_jump_height,
        )

    def reset_fitness_tracking(self) -> None:
        self.max_distance = 0.0
        self.max_height = 0.0
        self.max_jump_height = 0.0
        self.tiles_lit = []
        self.fitness = 0.0
        for joint in self.joints:
            joint.reset()

    def apply_metrics(self, result: SimulationResult) -> None:
        self.max_distance = result.distance
        self.max_height = result.height
        self.max_jump_height = result.jump_height
        self.tiles_lit = list(dict.fromkeys(result.tiles))

    # ------------------------------------------------------------------
    # Body queries
    # ------------------------------------------------------------------

    def attachment_points(self) -> list[AttachmentPoint]:
        return [
            AttachmentPoint(index, face)
            for index, block in enumerate(self.blocks)
            for face in block.available_faces()
        ]

    def special_blocks(self) -> list[dict[str, Any]]:
        return [
            {"index": index, "type": block.influence.value, "block_id": block.block_id}
            for index, block in enumerate(self.blocks)
            if block.influence is not None
        ]

    def movement_summary(self) -> list[str]:
        lines = []
        for index, joint in enumerate(self.joints):
            steps = " -> ".join(
                f"{_direction_label(a.direction)}@{a.rotation_speed:.2f}({a.duration}steps)"
                for a in joint.actions
            )
            lines.append(f"Joint {index} ({joint.axis.value}-axis): {steps}")
        return lines

    def clone(self) -> Creature:
        return self.model_copy(deep=True)


def _direction_label(direction: int) -> str:
    if direction > 0:
        return "CW"
    if direction < 0:
        return "CCW"
    return "Static"
