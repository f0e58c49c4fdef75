from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Iterable, Mapping, Union

from pydantic import BaseModel, Field

from blockevo.genome.rng import SeededRandom

if TYPE_CHECKING:
    from blockevo.creatures.models import Creature

__all__ = [
    "InfluenceChannel",
    "InfluenceEffect",
    "CHANNEL_EFFECTS",
    "SensorMode",
    "SensorConfig",
    "ResponseWeight",
    "channel_from_code",
    "determine_block_influence",
    "apply_influence_modulation",
    "resolve_influences",
]

RESPONSE_SCALE = 0.5
SPEED_RANGE = (0.0, 2.0)
DIRECTION_RANGE = (-1.5, 1.5)


class InfluenceChannel(str, Enum):
    """Environmental signals a sensor block can pick up.

    Member order is the order sensor modes are listed and searched in.
    """

    GRAVITY = "gravity"
    LIGHT = "light"
    VELOCITY = "velocity"
    GROUND = "ground"
    RHYTHM = "rhythm"
    TILT = "tilt"

    @property
    def code(self) -> int:
        return _CHANNEL_CODES[self]


class InfluenceEffect(str, Enum):
    SPEED = "speed"
    DIRECTION = "direction"


_CHANNEL_CODES: dict[InfluenceChannel, int] = {
    channel: index for index, channel in enumerate(InfluenceChannel, start=1)
}
_CODE_CHANNELS: dict[int, InfluenceChannel] = {
    code: channel for channel, code in _CHANNEL_CODES.items()
}

CHANNEL_EFFECTS: dict[InfluenceChannel, tuple[InfluenceEffect, ...]] = {
    InfluenceChannel.GRAVITY: (InfluenceEffect.SPEED, InfluenceEffect.DIRECTION),
    InfluenceChannel.LIGHT: (InfluenceEffect.SPEED, InfluenceEffect.DIRECTION),
    InfluenceChannel.VELOCITY: (InfluenceEffect.SPEED,),
    InfluenceChannel.GROUND: (InfluenceEffect.SPEED, InfluenceEffect.DIRECTION),
    InfluenceChannel.RHYTHM: (InfluenceEffect.SPEED, InfluenceEffect.DIRECTION),
    InfluenceChannel.TILT: (InfluenceEffect.SPEED, InfluenceEffect.DIRECTION),
}

# A joint's response to a channel: a plain speed weight, or weights per effect.
ResponseWeight = Union[float, Mapping[str, float]]


def channel_from_code(code: int) -> InfluenceChannel | None:
    """Special code to channel; 0 and unassigned codes carry no sensor."""
    return _CODE_CHANNELS.get(code)


class SensorMode(str, Enum):
    OFF = "off"
    START = "start"
    EVOLVE = "evolve"


class SensorConfig(BaseModel):
    """Which influence channels appear on creatures, and when."""

    modes: dict[InfluenceChannel, SensorMode] = Field(
        default_factory=lambda: {channel: SensorMode.OFF for channel in InfluenceChannel},
        description="Per-channel mode: off, attach at start, or attach during growth",
    )

    def mode(self, channel: InfluenceChannel) -> SensorMode:
        return self.modes.get(channel, SensorMode.OFF)

    def start_channels(self) -> list[InfluenceChannel]:
        return [c for c in InfluenceChannel if self.mode(c) is SensorMode.START]

    def evolve_channels(self) -> list[InfluenceChannel]:
        return [c for c in InfluenceChannel if self.mode(c) is SensorMode.EVOLVE]

    def any_enabled(self) -> bool:
        return any(self.mode(c) is not SensorMode.OFF for c in InfluenceChannel)


def determine_block_influence(
    existing: Iterable[InfluenceChannel | None],
    sensors: SensorConfig,
    rng: SeededRandom,
) -> InfluenceChannel | None:
    """Pick an evolve-mode channel the creature does not have yet.

    No value is drawn from ``rng`` when nothing is available.
    """
    present = {channel for channel in existing if channel is not None}
    available = [c for c in sensors.evolve_channels() if c not in present]
    if not available:
        return None
    return available[rng.random_int(0, len(available))]


def apply_influence_modulation(
    base_rotation: float,
    influences: Mapping[str, float],
    responses: Mapping[str, ResponseWeight],
) -> float:
    speed_mod = 1.0
    direction_mod = 1.0

    for channel_name, response in responses.items():
        value = influences.get(channel_name)
        if value is None:
            continue
        if isinstance(response, Mapping):
            try:
                allowed = CHANNEL_EFFECTS[InfluenceChannel(channel_name)]
            except ValueError:
                continue
            for effect_name, weight in response.items():
                if effect_name == InfluenceEffect.SPEED.value and InfluenceEffect.SPEED in allowed:
                    speed_mod += value * weight * RESPONSE_SCALE
                elif (
                    effect_name == InfluenceEffect.DIRECTION.value
                    and InfluenceEffect.DIRECTION in allowed
                ):
                    direction_mod += value * weight * RESPONSE_SCALE
        else:
            speed_mod += value * response * RESPONSE_SCALE

    speed_mod = min(max(speed_mod, SPEED_RANGE[0]), SPEED_RANGE[1])
    direction_mod = min(max(direction_mod, DIRECTION_RANGE[0]), DIRECTION_RANGE[1])
    sign = 1.0 if direction_mod >= 0 else -1.0
    return base_rotation * speed_mod * sign


def resolve_influences(
    creature: Creature, readings: Mapping[int, float]
) -> dict[str, float]:
    """Turn per-block sensor readings into channel values for joint updates.

    A sensor mounted on an odd (negative-direction) face reports the inverted
    signal. When two blocks carry the same channel the later block wins.
    """
    values: dict[str, float] = {}
    for index, block in enumerate(creature.blocks):
        if block.influence is None or index not in readings:
            continue
        value = float(readings[index])
        if index > 0 and creature.joints[index - 1].face_b % 2 == 1:
            value = -value
        values[block.influence.value] = value
    return values
