"""Tests for the JSON checkpoint store."""
import json

from german_verbs.checkpoint import CheckpointStore
from german_verbs.models import PROCESSING, ScrapeState


def _processing_state() -> ScrapeState:
    return (
        ScrapeState.fresh("2024-01-01T00:00:00+00:00")
        .with_page(["Flexion:gehen", "Flexion:sein"], None)
        .start_processing()
        .advanced_to(0)
    )


class TestCheckpointStore:
    def test_missing_file_loads_none(self, checkpoints):
        assert not checkpoints.exists()
        assert checkpoints.load() is None

    def test_save_then_load(self, checkpoints):
        state = _processing_state()
        checkpoints.save(state)
        assert checkpoints.exists()
        loaded = checkpoints.load()
        assert loaded == state
        assert loaded.phase == PROCESSING
        assert loaded.cursor == 0

    def test_document_is_readable_json(self, checkpoints):
        checkpoints.save(_processing_state())
        data = json.loads(checkpoints.path.read_text(encoding="utf-8"))
        assert data["phase"] == "processing"
        assert data["title_list"] == ["Flexion:gehen", "Flexion:sein"]
        assert data["continuation_token"] is None

    def test_no_temp_file_left_behind(self, checkpoints):
        checkpoints.save(_processing_state())
        leftovers = [p.name for p in checkpoints.path.parent.iterdir()]
        assert leftovers == [checkpoints.path.name]

    def test_save_replaces_previous_state(self, checkpoints):
        checkpoints.save(_processing_state())
        checkpoints.save(_processing_state().advanced_to(1))
        assert checkpoints.load().cursor == 1

    def test_save_creates_parent_directory(self, tmp_path):
        store = CheckpointStore(tmp_path / "nested" / "state.json")
        store.save(_processing_state())
        assert store.load() is not None

    def test_corrupt_json_loads_none(self, checkpoints, capsys):
        checkpoints.path.write_text("{not json", encoding="utf-8")
        assert checkpoints.load() is None
        out = capsys.readouterr().out
        assert "WARNING: Could not read state file" in out
        assert "Starting fresh" in out

    def test_invalid_state_loads_none(self, checkpoints, capsys):
        checkpoints.path.write_text(
            json.dumps(
                {
                    "phase": "processing",
                    "continuation_token": None,
                    "title_list": ["Flexion:gehen"],
                    "cursor": 5,
                }
            ),
            encoding="utf-8",
        )
        assert checkpoints.load() is None
        assert "WARNING: Invalid state file" in capsys.readouterr().out

    def test_clear(self, checkpoints):
        checkpoints.save(_processing_state())
        checkpoints.clear()
        assert not checkpoints.exists()
        checkpoints.clear()
