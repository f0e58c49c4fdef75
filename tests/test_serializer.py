"""
Tests for saving and restoring run state.
"""

import json

import pytest

from conftest import distance_results, zero_results

from blockevo.evolution.manager import EvolutionManager
from blockevo.exceptions import InvalidSaveVersion, InvalidStateDocument, MalformedGenome
from blockevo.persistence.document import STATE_VERSION, CreatureRecord
from blockevo.persistence.serializer import (
    export_state,
    import_state,
    load_state,
    save_state,
    state_summary,
)


@pytest.fixture
def evolved(manager):
    """A run with a progress, a dead end and a backtrack behind it."""
    manager.start_evolution()
    manager.on_generation_evaluated(distance_results(manager.population, [10.0, 5.0, 1.0]))
    manager.on_generation_evaluated(distance_results(manager.population, [15.0, 12.0, 11.0]))
    manager.on_generation_evaluated(zero_results(manager.population))
    return manager


class TestRoundTrip:
    """Exported state restores an equivalent manager."""

    def test_save_and_load(self, evolved, distance_config, tmp_path):
        path = save_state(evolved, str(tmp_path / "runs" / "state.json"))
        restored = EvolutionManager(distance_config)
        load_state(restored, path)

        assert restored.generation == evolved.generation
        assert [c.dna for c in restored.population] == [c.dna for c in evolved.population]
        assert [c.name for c in restored.population] == [c.name for c in evolved.population]
        assert restored.champion.dna == evolved.champion.dna
        assert restored.all_time_champion.fitness == evolved.all_time_champion.fitness
        assert restored.target == evolved.target
        assert restored.metrics == evolved.metrics
        assert restored.active_mode is evolved.active_mode
        assert [e.tried_ranks for e in restored.history] == [e.tried_ranks for e in evolved.history]
        assert len(restored.tree) == len(evolved.tree)
        assert restored.tree.next_node_id == evolved.tree.next_node_id
        assert restored.tree.current_branch_id == evolved.tree.current_branch_id
        assert [n.status for n in restored.tree.nodes] == [n.status for n in evolved.tree.nodes]
        assert [e.type for e in restored.events] == [e.type for e in evolved.events]
        assert restored.registry.items() == evolved.registry.items()

    def test_programs_are_regrown_from_dna(self, evolved):
        restored = EvolutionManager(evolved.config)
        import_state(restored, json.loads(json.dumps(export_state(evolved).model_dump(mode="json"))))
        for original, copy in zip(evolved.population, restored.population):
            assert copy.movement_summary() == original.movement_summary()
            assert [b.position for b in copy.blocks] == [b.position for b in original.blocks]

    def test_restored_run_continues(self, evolved):
        restored = EvolutionManager(evolved.config)
        import_state(restored, export_state(evolved))
        restored.continue_evolution()
        outcome = restored.on_generation_evaluated(
            distance_results(restored.population, [30.0, 29.0, 28.0])
        )
        assert outcome.generation == evolved.generation
        assert outcome.kind.value == "progress"
        assert outcome.population_ready

    def test_record_keeps_only_identity(self, evolved):
        record = CreatureRecord.from_creature(evolved.champion).model_dump()
        assert "blocks" not in record and "joints" not in record
        assert record["dna"] == evolved.champion.dna


class TestRejection:
    """Bad documents never touch the manager."""

    def test_wrong_version(self, evolved, distance_config):
        manager = EvolutionManager(distance_config)
        data = export_state(evolved).model_dump(mode="json")
        data["version"] = STATE_VERSION + 1
        with pytest.raises(InvalidSaveVersion):
            import_state(manager, data)
        del data["version"]
        with pytest.raises(InvalidSaveVersion):
            import_state(manager, data)

    def test_structural_errors(self, manager):
        with pytest.raises(InvalidStateDocument):
            import_state(manager, {"version": STATE_VERSION, "generation": "many"})
        with pytest.raises(InvalidStateDocument):
            import_state(manager, ["not", "a", "document"])

    def test_bad_genome(self, evolved, distance_config):
        data = export_state(evolved).model_dump(mode="json")
        data["population"][0]["dna"] = "NOTADNA"
        target = EvolutionManager(distance_config)
        with pytest.raises(MalformedGenome):
            import_state(target, data)
        assert target.generation == 0
        assert target.population == []

    def test_invalid_json_file(self, manager, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(InvalidStateDocument):
            load_state(manager, str(path))


class TestSummary:
    """Headline facts about a save."""

    def test_summary(self, evolved):
        summary = state_summary(export_state(evolved).model_dump(mode="json"))
        assert summary["valid"]
        assert summary["generation"] == evolved.generation
        assert summary["population_size"] == len(evolved.population)
        assert summary["tree_nodes"] == len(evolved.tree)
        assert summary["champion_name"] == evolved.champion.name
        assert summary["champion_blocks"] == evolved.champion.block_count
        assert summary["fitness_mode"] == "distance"
        assert summary["dead_end_count"] == 1
        assert summary["backtrack_count"] == 1

    def test_summary_of_invalid_data(self):
        summary = state_summary({"version": 99})
        assert not summary["valid"]
        assert "99" in summary["error"]
