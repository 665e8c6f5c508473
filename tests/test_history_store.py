"""Tests for the JSONL history cache and its serializers."""

import json
import tempfile
from datetime import datetime
from pathlib import Path

import pytest

from rep_runner.core.models import CompletionSummary, HistoryEntry
from rep_runner.io.history_store import HistoryStore, get_default_history_path
from rep_runner.io.serializers import (
    ValidationError,
    dict_to_history_entry,
    dict_to_week_plan,
    summary_to_history_entry,
    summary_to_submission,
)


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def _entry(session_id: str, finished_at: str) -> HistoryEntry:
    return HistoryEntry(
        id=f"id-{finished_at}",
        session_id=session_id,
        finished_at=finished_at,
        duration_seconds=1200,
        total_sets=13,
        total_rounds=1,
        total_exercises=3,
    )


def _summary() -> CompletionSummary:
    return CompletionSummary(
        session_id="chest_triceps_circuit",
        session_name="Chest / triceps circuit",
        total_planned_sets=18,
        total_exercises=6,
        total_rounds=3,
        elapsed_seconds=1500,
        finished_at=datetime(2026, 2, 17, 19, 5, 0),
        plan_id="cm1234",
    )


class TestHistoryStore:
    def test_missing_file_is_empty_history(self, temp_dir):
        store = HistoryStore(temp_dir / "history.jsonl")
        assert not store.exists()
        assert store.load_history() == []

    def test_append_creates_file_and_dirs(self, temp_dir):
        store = HistoryStore(temp_dir / "nested" / "history.jsonl")
        store.append_entry(_entry("back_day", "2026-02-16T18:00:00"))
        assert store.exists()
        assert len(store.history_path.read_text().splitlines()) == 1

    def test_load_sorted_by_finish_time(self, temp_dir):
        store = HistoryStore(temp_dir / "history.jsonl")
        store.append_entry(_entry("leg_day", "2026-02-18T07:30:00"))
        store.append_entry(_entry("back_day", "2026-02-16T18:00:00"))

        entries = store.load_history()
        assert [e.session_id for e in entries] == ["back_day", "leg_day"]
        assert store.get_latest_entry().session_id == "leg_day"

    def test_delete_entry_at(self, temp_dir):
        store = HistoryStore(temp_dir / "history.jsonl")
        store.append_entry(_entry("a", "2026-02-16T18:00:00"))
        store.append_entry(_entry("b", "2026-02-17T18:00:00"))

        removed = store.delete_entry_at(0)
        assert removed.session_id == "a"
        assert [e.session_id for e in store.load_history()] == ["b"]

        with pytest.raises(IndexError):
            store.delete_entry_at(5)

    def test_bad_line_reports_line_number(self, temp_dir):
        path = temp_dir / "history.jsonl"
        path.write_text('{"session_id": "a", "finished_at": "2026-02-16T18:00:00"}\nnot json\n')
        with pytest.raises(ValidationError, match="line 2"):
            HistoryStore(path).load_history()

    def test_mixed_naive_and_offset_timestamps(self, temp_dir):
        path = temp_dir / "history.jsonl"
        path.write_text(
            '{"session_id": "b", "finished_at": "2026-02-18T07:30:00+00:00"}\n'
            '{"session_id": "a", "finished_at": "2026-02-16T18:00:00"}\n'
        )
        entries = HistoryStore(path).load_history()

        assert [e.session_id for e in entries] == ["a", "b"]
        assert entries[1].finished_dt.tzinfo is None

    def test_blank_lines_ignored(self, temp_dir):
        path = temp_dir / "history.jsonl"
        path.write_text('\n{"session_id": "a", "finished_at": "2026-02-16T18:00:00"}\n\n')
        assert len(HistoryStore(path).load_history()) == 1

    def test_clear_history(self, temp_dir):
        store = HistoryStore(temp_dir / "history.jsonl")
        store.append_entry(_entry("a", "2026-02-16T18:00:00"))
        store.clear_history()
        assert store.load_history() == []

    def test_default_path_follows_env(self, temp_dir, monkeypatch):
        monkeypatch.setenv("REP_RUNNER_HOME", str(temp_dir))
        assert get_default_history_path() == temp_dir / "history.jsonl"


class TestSerializers:
    def test_dict_defaults(self):
        entry = dict_to_history_entry({"session_id": "a", "finished_at": "2026-02-16T18:00:00"})
        assert entry.total_rounds == 1
        assert entry.duration_seconds == 0
        assert entry.id

    @pytest.mark.parametrize(
        "data",
        [
            {"finished_at": "2026-02-16T18:00:00"},
            {"session_id": "a", "finished_at": "yesterday"},
            {"session_id": "a", "finished_at": "2026-02-16T18:00:00", "duration_seconds": -1},
            {"session_id": "a", "finished_at": "2026-02-16T18:00:00", "total_sets": "many"},
        ],
    )
    def test_invalid_entries_rejected(self, data):
        with pytest.raises(ValidationError):
            dict_to_history_entry(data)

    def test_summary_to_history_entry(self):
        entry = summary_to_history_entry(_summary())
        assert entry.session_id == "chest_triceps_circuit"
        assert entry.finished_at == "2026-02-17T19:05:00"
        assert entry.total_sets == 18
        assert entry.total_rounds == 3
        assert entry.duration_seconds == 1500

    def test_submission_wire_shape(self):
        payload = summary_to_submission(_summary())
        assert set(payload) == {
            "sessionId", "elapsedSeconds", "totalSets", "totalExercises", "totalRounds", "finishedAt",
        }
        assert payload["sessionId"] == "cm1234"
        assert payload["totalSets"] == 18
        assert isinstance(payload["finishedAt"], int)
        json.dumps(payload)

    def test_week_plan(self):
        week = dict_to_week_plan({
            "id": "w",
            "name": "Week",
            "days": [
                {"day": "Monday", "session_id": "back_day", "warmup_minutes": 10},
                {"day": "sunday", "is_rest": True, "session_id": "back_day"},
                {"day": "saturday", "session_id": "-"},
            ],
        })
        assert week.day_plan("monday").session_id == "back_day"
        assert week.day_plan("sunday").session_id is None
        assert week.day_plan("saturday").session_id is None

    def test_week_plan_rejects_duplicate_days(self):
        with pytest.raises(ValidationError):
            dict_to_week_plan({"days": [{"day": "monday"}, {"day": "monday"}]})
