from __future__ import annotations

import json

import pytest

from exam_drill.store import (
    PROGRESS_KEY,
    WRONG_NOTE_KEY,
    KeyValueStorage,
    ProgressBySubject,
    ProgressStore,
    open_storage,
)


@pytest.fixture
def store(tmp_path) -> ProgressStore:
    storage = open_storage(tmp_path / "storage")
    assert storage is not None
    return ProgressStore(storage)


def test_add_wrong_note_is_idempotent_and_ordered(store):
    store.add_wrong_note("sw_design", "sw_design-2024-1-3")
    store.add_wrong_note("sw_design", "sw_design-2024-1-1")
    store.add_wrong_note("sw_design", "sw_design-2024-1-3")

    assert store.get_wrong_notes("sw_design") == [
        "sw_design-2024-1-3",
        "sw_design-2024-1-1",
    ]
    assert store.get_wrong_notes("db_engineering") == []


def test_remove_wrong_note(store):
    store.add_wrong_note("sw_design", "a")
    store.add_wrong_note("sw_design", "b")

    store.remove_wrong_note("sw_design", "missing")
    store.remove_wrong_note("sw_design", "a")

    assert store.get_wrong_notes("sw_design") == ["b"]


def test_clear_wrong_notes_only_touches_one_subject(store):
    store.add_wrong_note("sw_design", "a")
    store.add_wrong_note("is_management", "b")

    store.clear_wrong_notes("sw_design")

    assert store.get_wrong_notes("sw_design") == []
    assert store.get_wrong_notes("is_management") == ["b"]


def test_progress_counters_accumulate(store):
    store.record_practice_answer("sw_design", True)
    store.record_practice_answer("sw_design", False)
    store.record_exam_attempt("sw_design", 20, 15)
    store.record_exam_attempt("sw_design", 20, 17)

    progress = store.get_progress("sw_design")

    assert progress == ProgressBySubject(
        practice_answered=2,
        practice_correct=1,
        exam_attempts=2,
        exam_questions=40,
        exam_correct=32,
    )
    assert progress.practice_accuracy == 0.5
    assert progress.exam_accuracy == 0.8
    assert store.get_progress("pl_use") == ProgressBySubject()


def test_values_are_persisted_as_camel_case_json(store, tmp_path):
    store.record_practice_answer("sw_design", True)
    store.add_wrong_note("sw_design", "x")

    raw = json.loads(
        (tmp_path / "storage" / f"{PROGRESS_KEY}.json").read_text("utf-8")
    )
    notes = json.loads(
        (tmp_path / "storage" / f"{WRONG_NOTE_KEY}.json").read_text("utf-8")
    )

    assert raw == {
        "sw_design": {
            "practiceAnswered": 1,
            "practiceCorrect": 1,
            "examAttempts": 0,
            "examQuestions": 0,
            "examCorrect": 0,
        }
    }
    assert notes == {"sw_design": ["x"]}


def test_corrupt_data_reads_as_empty(store, tmp_path):
    storage_dir = tmp_path / "storage"
    (storage_dir / f"{WRONG_NOTE_KEY}.json").write_text("{oops", "utf-8")
    (storage_dir / f"{PROGRESS_KEY}.json").write_text(
        json.dumps({"sw_design": {"practiceAnswered": "many"}}), "utf-8"
    )

    assert store.get_wrong_notes("sw_design") == []
    assert store.get_progress("sw_design") == ProgressBySubject()

    store.add_wrong_note("sw_design", "fresh")
    assert store.get_wrong_notes("sw_design") == ["fresh"]


def test_clear_all_removes_everything(store):
    store.add_wrong_note("sw_design", "a")
    store.record_exam_attempt("sw_design", 5, 5)

    store.clear_all()

    assert store.get_wrong_notes("sw_design") == []
    assert store.get_progress("sw_design") == ProgressBySubject()


def test_unavailable_storage_is_a_no_op():
    store = ProgressStore(None)

    store.add_wrong_note("sw_design", "a")
    store.record_practice_answer("sw_design", True)
    store.clear_all()

    assert not store.available
    assert store.get_wrong_notes("sw_design") == []
    assert store.get_progress("sw_design") == ProgressBySubject()


def test_write_failures_are_swallowed(store, monkeypatch, caplog):
    def _fail(key, value):
        raise OSError("disk full")

    monkeypatch.setattr(store.storage, "set_item", _fail)

    with caplog.at_level("WARNING", logger="exam_drill.store"):
        store.add_wrong_note("sw_design", "a")

    assert store.get_wrong_notes("sw_design") == []
    assert "Failed to write local data" in caplog.text


def test_open_storage_rejects_files(tmp_path):
    target = tmp_path / "occupied"
    target.write_text("not a directory", encoding="utf-8")

    assert open_storage(target) is None
    assert open_storage(None) is None


def test_key_value_storage_round_trip(tmp_path):
    storage = KeyValueStorage(tmp_path)

    assert storage.get_item("missing") is None
    storage.set_item("alpha", "one")
    storage.set_item("alpha", "two")

    assert storage.get_item("alpha") == "two"
    assert storage.keys() == ["alpha"]
    storage.remove_item("alpha")
    storage.remove_item("alpha")
    assert storage.keys() == []


def test_key_value_storage_rejects_path_like_keys(tmp_path):
    storage = KeyValueStorage(tmp_path)

    with pytest.raises(ValueError):
        storage.set_item("../escape", "x")
