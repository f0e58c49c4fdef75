from __future__ import annotations

from blockevo.creatures.builder import CreatureBuilder
from blockevo.creatures.influence import (
    InfluenceChannel,
    SensorConfig,
    SensorMode,
    apply_influence_modulation,
    resolve_influences,
)
from blockevo.creatures.models import (
    AttachmentPoint,
    Block,
    Creature,
    Joint,
    JointAction,
    RawMetrics,
    SimulationResult,
)
