from __future__ import annotations

from blockevo.evolution.config import EvolutionConfig
from blockevo.evolution.events import EventType, EvolutionEvent
from blockevo.evolution.fitness import (
    CONCRETE_FITNESS_MODES,
    MODE_DESCRIPTIONS,
    FitnessMode,
    RankedCreature,
    calculate_fitness,
    outcast_scores,
    rank_population,
    score_population,
)
from blockevo.evolution.history import GenerationHistory, GenerationHistoryEntry
from blockevo.evolution.manager import (
    BacktrackResult,
    EvolutionManager,
    GenerationOutcome,
    SpawnResult,
    Target,
)
from blockevo.evolution.metrics import EvolutionMetrics
from blockevo.evolution.population import DedupeRegistry, PopulationFactory
from blockevo.evolution.tournament import Tournament, TournamentEntry, TournamentResult
from blockevo.evolution.tree import EvolutionTree, EvolutionTreeNode, NodeStatus

__all__ = [
    "EvolutionConfig",
    "EventType",
    "EvolutionEvent",
    "CONCRETE_FITNESS_MODES",
    "MODE_DESCRIPTIONS",
    "FitnessMode",
    "RankedCreature",
    "calculate_fitness",
    "outcast_scores",
    "rank_population",
    "score_population",
    "GenerationHistory",
    "GenerationHistoryEntry",
    "BacktrackResult",
    "EvolutionManager",
    "GenerationOutcome",
    "SpawnResult",
    "Target",
    "EvolutionMetrics",
    "DedupeRegistry",
    "PopulationFactory",
    "Tournament",
    "TournamentEntry",
    "TournamentResult",
    "EvolutionTree",
    "EvolutionTreeNode",
    "NodeStatus",
]
