from __future__ import annotations

from enum import Enum
from typing import Iterable, Sequence

from loguru import logger
from pydantic import BaseModel, Field

from blockevo.creatures.influence import InfluenceChannel
from blockevo.creatures.models import Creature, RawMetrics
from blockevo.evolution.fitness import FitnessMode, RankedCreature
from blockevo.exceptions import TreeNodeNotFound
from blockevo.genome.codec import behavioral_fingerprint, structural_fingerprint

__all__ = [
    "NodeStatus",
    "GenerationOutcomeKind",
    "SPAWNABLE_STATUSES",
    "CHAMPION_STATUSES",
    "VALID_TRANSITIONS",
    "is_valid_transition",
    "validate_transition",
    "EvolutionTreeNode",
    "TreeStats",
    "EvolutionTree",
]


class NodeStatus(str, Enum):
    CHAMPION = "champion"
    COMPETITOR = "competitor"
    DEAD_END = "dead_end"
    ELIMINATED = "eliminated"
    BACKTRACK_SOURCE = "backtrack_source"
    BRANCH_PARENT = "branch_parent"
    COMPLETE = "complete"


class GenerationOutcomeKind(str, Enum):
    GENESIS = "genesis"
    PROGRESS = "progress"
    DEAD_END = "dead_end"


SPAWNABLE_STATUSES = {
    NodeStatus.CHAMPION,
    NodeStatus.BACKTRACK_SOURCE,
    NodeStatus.DEAD_END,
    NodeStatus.BRANCH_PARENT,
    NodeStatus.COMPETITOR,
}

CHAMPION_STATUSES = {
    NodeStatus.CHAMPION,
    NodeStatus.BACKTRACK_SOURCE,
}

# statuses whose creature is kept on the node for later spawning
CLONE_STATUSES = {
    NodeStatus.CHAMPION,
    NodeStatus.COMPETITOR,
    NodeStatus.DEAD_END,
}

VALID_TRANSITIONS: dict[NodeStatus, set[NodeStatus]] = {
    NodeStatus.CHAMPION: {
        NodeStatus.BACKTRACK_SOURCE,
        NodeStatus.COMPLETE,
    },
    NodeStatus.COMPETITOR: {
        NodeStatus.BRANCH_PARENT,
        NodeStatus.COMPLETE,
    },
    NodeStatus.BRANCH_PARENT: {
        NodeStatus.COMPLETE,
    },
    NodeStatus.BACKTRACK_SOURCE: {
        NodeStatus.COMPLETE,
    },
    NodeStatus.DEAD_END: {
        NodeStatus.COMPLETE,
    },
    NodeStatus.ELIMINATED: set(),
    NodeStatus.COMPLETE: set(),
}


def is_valid_transition(current: NodeStatus, new: NodeStatus) -> bool:
    if current == new:
        return True
    return new in VALID_TRANSITIONS.get(current, set())


def validate_transition(current: NodeStatus, new: NodeStatus) -> None:
    if not is_valid_transition(current, new):
        valid_next = VALID_TRANSITIONS.get(current, set())
        raise ValueError(
            f"Invalid status transition: {current.value} -> {new.value}. "
            f"Valid transitions from {current.value}: {sorted(s.value for s in valid_next)}"
        )


class EvolutionTreeNode(BaseModel):
    """One ranked creature of one generation."""

    id: int
    name: str
    generation: int
    fitness: float
    blocks: int
    rank: int
    metrics: RawMetrics
    parent_id: int | None = None
    parent_name: str | None = None
    status: NodeStatus
    children: list[int] = Field(default_factory=list)
    fitness_mode: FitnessMode | None = None
    is_defending_champion: bool = False
    creature: Creature | None = Field(default=None, description="Snapshot used for spawning")
    species_id: str
    fingerprint: str
    config_index: int = -1
    variant_index: int = -1
    sensors: list[InfluenceChannel] = Field(default_factory=list)
    last_added_sensor: InfluenceChannel | None = None

    @property
    def can_spawn(self) -> bool:
        return self.status in SPAWNABLE_STATUSES and self.creature is not None


class TreeStats(BaseModel):
    total_nodes: int = 0
    champions: int = 0
    dead_ends: int = 0
    eliminated: int = 0
    competitors: int = 0
    branch_parents: int = 0
    backtrack_sources: int = 0
    complete: int = 0
    species: int = 0


class EvolutionTree:
    """Append-only arena of every ranked creature, linked by integer ids.

    Nodes are never removed. Only their status changes, and only along
    ``VALID_TRANSITIONS``.
    """

    def __init__(
        self,
        nodes: Iterable[EvolutionTreeNode] = (),
        next_node_id: int = 1,
        current_branch_id: int | None = None,
    ):
        self._nodes: dict[int, EvolutionTreeNode] = {}
        for node in nodes:
            self._nodes[node.id] = node
        self.next_node_id = max([next_node_id, *(n.id + 1 for n in self._nodes.values())])
        self.current_branch_id = current_branch_id

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: int) -> bool:
        return node_id in self._nodes

    @property
    def nodes(self) -> list[EvolutionTreeNode]:
        return list(self._nodes.values())

    def get(self, node_id: int) -> EvolutionTreeNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise TreeNodeNotFound(f"Evolution tree node {node_id} not found") from None

    # ------------------------------------------------------------------
    # Growth
    # ------------------------------------------------------------------

    def add_generation(
        self,
        ranked: Sequence[RankedCreature],
        generation: int,
        outcome: GenerationOutcomeKind,
        parent_id: int | None,
        fitness_mode: FitnessMode | None,
    ) -> list[int]:
        """Add one node per ranked creature; the rank-0 node of a progress becomes the branch."""
        parent = self._nodes.get(parent_id) if parent_id is not None else None
        node_ids: list[int] = []

        for rank, entry in enumerate(ranked):
            status = self._status_for(outcome, rank)
            creature = entry.creature
            node = EvolutionTreeNode(
                id=self.next_node_id,
                name=creature.name or f"G{generation}_Unknown",
                generation=generation,
                fitness=entry.fitness,
                blocks=creature.block_count,
                rank=rank,
                metrics=creature.metrics,
                parent_id=parent_id,
                parent_name=creature.parent_name,
                status=status,
                fitness_mode=fitness_mode,
                is_defending_champion=creature.is_defending_champion,
                creature=creature.clone() if status in CLONE_STATUSES else None,
                species_id=structural_fingerprint(creature.genome),
                fingerprint=behavioral_fingerprint(creature.genome),
                config_index=creature.config_index,
                variant_index=creature.variant_index,
                sensors=[b.influence for b in creature.blocks if b.influence is not None],
                last_added_sensor=creature.last_added_sensor,
            )
            self.next_node_id += 1
            self._nodes[node.id] = node
            node_ids.append(node.id)
            if parent is not None:
                parent.children.append(node.id)
            if status is NodeStatus.CHAMPION:
                self.current_branch_id = node.id

        if node_ids:
            logger.debug(
                "[EvolutionTree] Generation {} added as {} | nodes={}..{}",
                generation,
                outcome.value,
                node_ids[0],
                node_ids[-1],
            )
        return node_ids

    @staticmethod
    def _status_for(outcome: GenerationOutcomeKind, rank: int) -> NodeStatus:
        if outcome is GenerationOutcomeKind.DEAD_END:
            return NodeStatus.DEAD_END if rank == 0 else NodeStatus.ELIMINATED
        return NodeStatus.CHAMPION if rank == 0 else NodeStatus.COMPETITOR

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    def set_status(self, node_id: int, status: NodeStatus) -> EvolutionTreeNode:
        node = self.get(node_id)
        validate_transition(node.status, status)
        node.status = status
        return node

    def mark_branch_parent(self, node_id: int) -> EvolutionTreeNode:
        node = self.set_status(node_id, NodeStatus.BRANCH_PARENT)
        self.current_branch_id = node.id
        return node

    def mark_backtrack_source(self, node_id: int | None) -> None:
        """Flag a champion whose line was abandoned; other statuses are left alone."""
        if node_id is None or node_id not in self._nodes:
            return
        node = self._nodes[node_id]
        if node.status is NodeStatus.CHAMPION:
            node.status = NodeStatus.BACKTRACK_SOURCE

    def mark_complete(self, node_id: int | None) -> None:
        if node_id is None or node_id not in self._nodes:
            return
        node = self._nodes[node_id]
        if is_valid_transition(node.status, NodeStatus.COMPLETE):
            node.status = NodeStatus.COMPLETE
        else:
            logger.debug(
                "[EvolutionTree] Node {} stays {} (cannot complete)", node_id, node.status.value
            )

    def find_competitor(self, generation: int, rank: int) -> EvolutionTreeNode | None:
        """Most recent competitor node at ``generation`` / ``rank``."""
        for node in reversed(self._nodes.values()):
            if (
                node.generation == generation
                and node.rank == rank
                and node.status is NodeStatus.COMPETITOR
            ):
                return node
        return None

    def find_generation_anchor(
        self, generation: int, allow_complete: bool = False
    ) -> EvolutionTreeNode | None:
        """Most recent champion-like node of ``generation`` to hang a new branch on."""
        allowed = set(CHAMPION_STATUSES)
        if allow_complete:
            allowed.add(NodeStatus.COMPLETE)
        for node in reversed(self._nodes.values()):
            if node.generation == generation and node.status in allowed:
                return node
        return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def lineage_to_root(self, node_id: int) -> list[EvolutionTreeNode]:
        """Nodes from the root down to ``node_id``."""
        path: list[EvolutionTreeNode] = []
        seen: set[int] = set()
        current: int | None = node_id
        while current is not None and current not in seen:
            seen.add(current)
            node = self.get(current)
            path.append(node)
            current = node.parent_id
        path.reverse()
        return path

    def champion_nodes(self, limit: int | None = None) -> list[EvolutionTreeNode]:
        """Champion and backtrack-source nodes, newest generation then best fitness first."""
        nodes = [n for n in self._nodes.values() if n.status in CHAMPION_STATUSES]
        nodes.sort(key=lambda n: (-n.generation, -n.fitness))
        return nodes if limit is None else nodes[:limit]

    def champion_count(self) -> int:
        return sum(1 for n in self._nodes.values() if n.status in CHAMPION_STATUSES)

    def lineage(self) -> list[EvolutionTreeNode]:
        """Every champion-path node in generation order."""
        nodes = [n for n in self._nodes.values() if n.status in CHAMPION_STATUSES]
        return sorted(nodes, key=lambda n: n.generation)

    def stats(self) -> TreeStats:
        counts = {status: 0 for status in NodeStatus}
        for node in self._nodes.values():
            counts[node.status] += 1
        return TreeStats(
            total_nodes=len(self._nodes),
            champions=counts[NodeStatus.CHAMPION],
            dead_ends=counts[NodeStatus.DEAD_END],
            eliminated=counts[NodeStatus.ELIMINATED],
            competitors=counts[NodeStatus.COMPETITOR],
            branch_parents=counts[NodeStatus.BRANCH_PARENT],
            backtrack_sources=counts[NodeStatus.BACKTRACK_SOURCE],
            complete=counts[NodeStatus.COMPLETE],
            species=len({n.species_id for n in self._nodes.values()}),
        )
