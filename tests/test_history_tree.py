"""
Tests for the generation history and the evolution tree.
"""

import pytest

from blockevo.creatures.models import SimulationResult
from blockevo.evolution.fitness import FitnessMode, rank_population
from blockevo.evolution.history import GenerationHistory, GenerationHistoryEntry
from blockevo.evolution.tree import (
    EvolutionTree,
    GenerationOutcomeKind,
    NodeStatus,
    validate_transition,
)
from blockevo.exceptions import TreeNodeNotFound


def ranked_generation(builder, distances, defending=None, first_seed=1):
    population = []
    for offset, distance in enumerate(distances):
        creature = builder.build_from_seed(first_seed + offset, 2 + offset % 2)
        creature.name = f"s{first_seed + offset}"
        creature.is_defending_champion = offset == defending
        creature.apply_metrics(SimulationResult(distance=distance))
        population.append(creature)
    return rank_population(population, FitnessMode.DISTANCE)


def history_entry(generation, ranked):
    return GenerationHistoryEntry(
        generation=generation,
        ranked=ranked,
        champion_fitness=ranked[0].fitness,
        champion_metrics=ranked[0].creature.metrics,
        fitness_mode=FitnessMode.DISTANCE,
    )


class TestGenerationHistory:
    """Snapshots and the untried-alternative search."""

    def test_save_replaces_and_sorts(self, builder):
        history = GenerationHistory()
        ranked = ranked_generation(builder, [3.0, 2.0])
        history.save(history_entry(3, ranked))
        history.save(history_entry(1, ranked))
        history.save(history_entry(3, ranked_generation(builder, [9.0])))
        assert [e.generation for e in history] == [1, 3]
        assert history.get(3).champion_fitness == 18.0

    def test_older_than_is_newest_first(self, builder):
        ranked = ranked_generation(builder, [1.0])
        history = GenerationHistory([history_entry(g, ranked) for g in (1, 2, 3, 4)])
        assert [e.generation for e in history.older_than(4)] == [3, 2, 1]
        history.truncate_after(2)
        assert [e.generation for e in history] == [1, 2]

    def test_find_next_untried_skips_tried_and_defenders(self, builder):
        ranked = ranked_generation(builder, [5.0, 4.0, 3.0, 2.0], defending=1)
        entry = history_entry(2, ranked)
        assert entry.tried_ranks == [0]
        assert GenerationHistory.find_next_untried(entry) == 2
        entry.mark_tried(2)
        entry.mark_tried(2)
        assert entry.tried_ranks == [0, 2]
        assert GenerationHistory.find_next_untried(entry) == 3
        entry.mark_tried(3)
        assert GenerationHistory.find_next_untried(entry) is None

    def test_find_next_untried_respects_block_cap(self, builder):
        # the 4.0 creature is grown with three blocks, the others with two
        ranked = ranked_generation(builder, [5.0, 4.0, 3.0])
        entry = history_entry(1, ranked)
        assert ranked[1].creature.block_count == 3
        assert GenerationHistory.find_next_untried(entry) == 1
        assert GenerationHistory.find_next_untried(entry, max_blocks=3) == 2


class TestEvolutionTree:
    """Node creation, statuses and queries."""

    def test_genesis_then_progress(self, builder):
        tree = EvolutionTree()
        first = tree.add_generation(
            ranked_generation(builder, [3.0, 2.0]), 1, GenerationOutcomeKind.GENESIS, None, FitnessMode.DISTANCE
        )
        assert tree.get(first[0]).status is NodeStatus.CHAMPION
        assert tree.get(first[1]).status is NodeStatus.COMPETITOR
        assert tree.current_branch_id == first[0]
        assert tree.get(first[0]).creature is not None

        second = tree.add_generation(
            ranked_generation(builder, [5.0, 1.0], first_seed=10),
            2,
            GenerationOutcomeKind.PROGRESS,
            tree.current_branch_id,
            FitnessMode.DISTANCE,
        )
        assert tree.get(first[0]).children == second
        assert tree.current_branch_id == second[0]
        assert [n.id for n in tree.lineage_to_root(second[1])] == [first[0], second[1]]

    def test_dead_end_statuses(self, builder):
        tree = EvolutionTree()
        ids = tree.add_generation(
            ranked_generation(builder, [1.0, 0.5, 0.2]), 4, GenerationOutcomeKind.DEAD_END, None, None
        )
        statuses = [tree.get(i).status for i in ids]
        assert statuses == [NodeStatus.DEAD_END, NodeStatus.ELIMINATED, NodeStatus.ELIMINATED]
        assert tree.get(ids[1]).creature is None
        assert not tree.get(ids[1]).can_spawn
        assert tree.current_branch_id is None

    def test_status_transitions(self, builder):
        tree = EvolutionTree()
        ids = tree.add_generation(
            ranked_generation(builder, [3.0, 2.0]), 1, GenerationOutcomeKind.GENESIS, None, None
        )
        tree.mark_branch_parent(ids[1])
        assert tree.get(ids[1]).status is NodeStatus.BRANCH_PARENT
        assert tree.current_branch_id == ids[1]

        tree.mark_backtrack_source(ids[1])
        assert tree.get(ids[1]).status is NodeStatus.BRANCH_PARENT
        tree.mark_backtrack_source(ids[0])
        assert tree.get(ids[0]).status is NodeStatus.BACKTRACK_SOURCE

        tree.mark_complete(ids[0])
        assert tree.get(ids[0]).status is NodeStatus.COMPLETE
        with pytest.raises(ValueError):
            tree.set_status(ids[0], NodeStatus.CHAMPION)

    def test_eliminated_is_terminal(self):
        with pytest.raises(ValueError, match="Invalid status transition"):
            validate_transition(NodeStatus.ELIMINATED, NodeStatus.COMPLETE)

    def test_missing_node(self):
        with pytest.raises(TreeNodeNotFound):
            EvolutionTree().get(99)

    def test_queries_and_stats(self, builder):
        tree = EvolutionTree()
        first = tree.add_generation(
            ranked_generation(builder, [3.0, 2.0]), 1, GenerationOutcomeKind.GENESIS, None, None
        )
        second = tree.add_generation(
            ranked_generation(builder, [5.0, 1.0], first_seed=10),
            2,
            GenerationOutcomeKind.PROGRESS,
            first[0],
            None,
        )
        assert [n.id for n in tree.champion_nodes()] == [second[0], first[0]]
        assert tree.champion_count() == 2
        assert [n.generation for n in tree.lineage()] == [1, 2]
        assert tree.find_competitor(1, 1).id == first[1]
        assert tree.find_generation_anchor(2).id == second[0]

        stats = tree.stats()
        assert stats.total_nodes == 4
        assert stats.champions == 2
        assert stats.competitors == 2
        assert 1 <= stats.species <= 4

    def test_restored_tree_continues_numbering(self, builder):
        tree = EvolutionTree()
        ids = tree.add_generation(
            ranked_generation(builder, [3.0, 2.0]), 1, GenerationOutcomeKind.GENESIS, None, None
        )
        restored = EvolutionTree(nodes=tree.nodes, next_node_id=1)
        assert restored.next_node_id == ids[-1] + 1
