"""
Tests for champion tournaments.
"""

import pytest

from conftest import distance_results

from blockevo.evolution.events import EventType
from blockevo.evolution.tournament import Tournament
from blockevo.exceptions import MetricsMismatch, TournamentError


def two_champion_run(manager):
    manager.start_evolution()
    manager.on_generation_evaluated(distance_results(manager.population, [10.0, 5.0, 1.0]))
    manager.on_generation_evaluated(distance_results(manager.population, [15.0, 12.0, 11.0]))
    return manager


class TestTournament:
    """Selection and completion."""

    def test_needs_two_champions(self, started_manager):
        m = started_manager
        m.on_generation_evaluated(distance_results(m.population, [10.0, 5.0, 1.0]))
        with pytest.raises(TournamentError):
            Tournament(m).select()

    def test_select_newest_first(self, manager):
        m = two_champion_run(manager)
        entries = Tournament(m).select()
        assert [e.node.generation for e in entries] == [2, 1]
        for entry in entries:
            assert entry.creature.fitness == 0.0
            assert entry.creature.dna == entry.node.creature.dna

    def test_select_respects_count(self, manager):
        m = two_champion_run(manager)
        with pytest.raises(TournamentError):
            Tournament(m).select(count=1)

    def test_winner_becomes_champion(self, manager):
        m = two_champion_run(manager)
        tournament = Tournament(m)
        entries = tournament.select()
        older = entries[1].node

        result = tournament.complete(
            entries,
            [{"distance": 1.0}, {"distance": 40.0, "height": 2.0}],
        )

        assert result.winner_node_id == older.id
        assert result.winner_fitness == 81.0
        assert [s.node_id for s in result.standings] == [older.id, entries[0].node.id]
        assert result.population_ready
        assert m.champion.name == older.name
        assert m.target.fitness == 81.0
        assert m.generation == older.generation + 1
        assert m.tree.current_branch_id == older.id
        assert m.all_time_champion.fitness == 81.0
        assert m.events[-1].type is EventType.TOURNAMENT_WINNER

    def test_ties_go_to_first_entrant(self, manager):
        m = two_champion_run(manager)
        tournament = Tournament(m)
        entries = tournament.select()
        result = tournament.complete(entries, [{"distance": 3.0}, {"distance": 3.0}])
        assert result.winner_node_id == entries[0].node.id

    def test_result_count_must_match(self, manager):
        m = two_champion_run(manager)
        tournament = Tournament(m)
        entries = tournament.select()
        with pytest.raises(MetricsMismatch):
            tournament.complete(entries, [{"distance": 1.0}])

    def test_entries_do_not_share_tree_nodes(self, manager):
        m = two_champion_run(manager)
        entries = Tournament(m).select()
        node_id = entries[0].node.id
        original = m.tree.get(node_id).creature.dna

        entries[0].node.creature.genome = entries[1].node.creature.genome

        assert m.tree.get(node_id).creature.dna == original
        assert m.tree.get(node_id).generation == 2
        assert m.tree.get(node_id) is not entries[0].node
