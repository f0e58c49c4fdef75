from __future__ import annotations

import json
import os
from typing import Any, Mapping

from loguru import logger
from pydantic import ValidationError

from blockevo.evolution.history import GenerationHistory
from blockevo.evolution.manager import EvolutionManager
from blockevo.evolution.population import DedupeRegistry, PopulationFactory
from blockevo.evolution.tree import EvolutionTree
from blockevo.exceptions import InvalidSaveVersion, InvalidStateDocument
from blockevo.persistence.document import (
    STATE_VERSION,
    CreatureRecord,
    HistoryRecord,
    StateDocument,
    TreeNodeRecord,
)

__all__ = [
    "export_state",
    "parse_state",
    "import_state",
    "save_state",
    "load_state",
    "state_summary",
]


def export_state(manager: EvolutionManager) -> StateDocument:
    """Snapshot a manager into a version-1 state document."""

    def record(creature):
        return CreatureRecord.from_creature(creature) if creature is not None else None

    return StateDocument(
        generation=manager.generation,
        settings=manager.config.model_copy(deep=True),
        fitness_mode=manager.fitness_mode,
        active_mode=manager.active_mode,
        champion=record(manager.champion),
        all_time_champion=record(manager.all_time_champion),
        population=[CreatureRecord.from_creature(c) for c in manager.population],
        target=manager.target.model_copy(deep=True),
        history=[HistoryRecord.from_entry(e) for e in manager.history],
        tree_nodes=[TreeNodeRecord.from_node(n) for n in manager.tree.nodes],
        next_node_id=manager.tree.next_node_id,
        current_branch_id=manager.tree.current_branch_id,
        events=[e.model_copy(deep=True) for e in manager.events],
        counters=manager.metrics.model_copy(),
        tried_fingerprints=manager.registry.items(),
    )


def parse_state(data: StateDocument | Mapping[str, Any]) -> StateDocument:
    """Validate raw data as a state document, checking the version first."""
    if isinstance(data, StateDocument):
        document = data
    else:
        if not isinstance(data, Mapping):
            raise InvalidStateDocument(f"Expected a JSON object, got {type(data).__name__}")
        if data.get("version") != STATE_VERSION:
            raise InvalidSaveVersion(
                f"Unsupported save version {data.get('version')!r} (expected {STATE_VERSION})"
            )
        try:
            document = StateDocument.model_validate(data)
        except ValidationError as exc:
            raise InvalidStateDocument(f"Malformed state document: {exc}") from exc
    if document.version != STATE_VERSION:
        raise InvalidSaveVersion(
            f"Unsupported save version {document.version!r} (expected {STATE_VERSION})"
        )
    return document


def import_state(manager: EvolutionManager, data: StateDocument | Mapping[str, Any]) -> None:
    """Replace the manager's run state with a saved one.

    Every creature is regrown from its DNA. Nothing on the manager changes
    unless the whole document loads.
    """
    document = parse_state(data)
    builder = manager.builder

    def creature(record):
        return record.to_creature(builder) if record is not None else None

    champion = creature(document.champion)
    all_time_champion = creature(document.all_time_champion)
    population = [r.to_creature(builder) for r in document.population]
    history = GenerationHistory([r.to_entry(builder) for r in document.history])
    tree = EvolutionTree(
        nodes=[r.to_node(builder) for r in document.tree_nodes],
        next_node_id=document.next_node_id,
        current_branch_id=document.current_branch_id,
    )

    builder.sensors = document.settings.sensors
    manager.config = document.settings
    manager.rng.seed(document.settings.seed)
    manager.generation = document.generation
    manager.fitness_mode = document.fitness_mode
    manager.active_mode = document.active_mode
    manager.champion = champion
    manager.all_time_champion = all_time_champion
    manager.population = population
    manager.target = document.target
    manager.history = history
    manager.tree = tree
    manager.events = list(document.events)
    manager.metrics = document.counters
    manager.registry = DedupeRegistry(document.tried_fingerprints)
    manager.factory = PopulationFactory(builder, manager.registry, manager.rng)

    logger.info(
        "[StateSerializer] Imported state | gen={}, population={}, nodes={}, history={}",
        manager.generation,
        len(population),
        len(tree),
        len(history),
    )


def save_state(manager: EvolutionManager, path: str) -> str:
    """Write the manager's state to ``path`` as JSON and return the path."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    document = export_state(manager)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
    logger.info(
        "[StateSerializer] Saved generation {} to {} | nodes={}",
        document.generation,
        path,
        len(document.tree_nodes),
    )
    return path


def load_state(manager: EvolutionManager, path: str) -> None:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise InvalidStateDocument(f"{path} is not valid JSON: {exc}") from exc
    import_state(manager, data)


def state_summary(data: StateDocument | Mapping[str, Any]) -> dict[str, Any]:
    """Headline facts about a saved state, without regrowing any creature."""
    try:
        document = parse_state(data)
    except (InvalidSaveVersion, InvalidStateDocument) as exc:
        return {"valid": False, "error": str(exc)}

    champion = document.champion
    return {
        "valid": True,
        "saved_at": document.saved_at.isoformat(),
        "generation": document.generation,
        "population_size": len(document.population),
        "tree_nodes": len(document.tree_nodes),
        "champion_name": champion.name if champion else None,
        "champion_blocks": len(champion.dna.split("-")) - 1 if champion else 0,
        "fitness_mode": document.fitness_mode.value,
        "dead_end_count": document.counters.dead_end_count,
        "backtrack_count": document.counters.backtrack_count,
    }
