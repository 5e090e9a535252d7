# tests/test_task_store.py

from __future__ import annotations

import json
from pathlib import Path

from smart_tasks.tasks.task_models import AIAnalysisResult, Priority, TaskStatus
from smart_tasks.tasks.task_repo import TaskRepository
from smart_tasks.tasks.task_store import JsonTaskStore, migrate_record

from .fakes import FakeClock

KEY = "smart-tasks-data"


def _write(path: Path, doc: object) -> None:
    path.write_text(json.dumps(doc, ensure_ascii=False), "utf-8")


def test_legacy_record_is_migrated() -> None:
    rec = migrate_record({"id": "x", "title": "t", "isCompleted": True})

    assert rec["status"] == "completed"
    assert rec["isCompleted"] is True
    assert rec["priority"] == "medium"
    assert rec["subtasks"] == []
    assert rec["notes"] == ""


def test_legacy_incomplete_record_becomes_pending() -> None:
    rec = migrate_record({"id": "x", "title": "t", "isCompleted": False})
    assert rec["status"] == "pending"
    assert rec["isCompleted"] is False


def test_status_wins_over_stale_flag() -> None:
    rec = migrate_record({"id": "x", "title": "t", "status": "in_progress", "isCompleted": True})
    assert rec["status"] == "in_progress"
    assert rec["isCompleted"] is False

    rec2 = migrate_record({"id": "y", "title": "t", "status": "completed", "isCompleted": False})
    assert rec2["isCompleted"] is True


def test_locale_priority_labels_are_mapped() -> None:
    assert migrate_record({"id": "a", "title": "t", "priority": "גבוהה"})["priority"] == "high"
    assert migrate_record({"id": "b", "title": "t", "priority": "נמוכה"})["priority"] == "low"
    assert migrate_record({"id": "c", "title": "t", "priority": "weird"})["priority"] == "medium"


def test_falsy_due_date_is_dropped_and_subtasks_normalized() -> None:
    rec = migrate_record(
        {
            "id": "x",
            "title": "t",
            "dueDate": 0,
            "subtasks": [{"id": "s1", "title": "a"}, "junk", {"title": "no id", "isCompleted": 1}],
        }
    )
    assert "dueDate" not in rec
    assert rec["subtasks"][0] == {"id": "s1", "title": "a", "isCompleted": False}
    assert len(rec["subtasks"]) == 2
    assert rec["subtasks"][1]["id"]
    assert rec["subtasks"][1]["isCompleted"] is True


def test_migration_is_idempotent() -> None:
    samples = [
        {"id": "x", "title": "t", "isCompleted": True},
        {"id": "y", "title": "t", "priority": "בינונית", "dueDate": None, "subtasks": [{"id": "s", "title": "a"}]},
        {"id": "z", "title": "t", "status": "in_progress", "notes": "n", "dueDate": 1_800_000_000_000},
    ]
    for raw in samples:
        once = migrate_record(raw)
        assert migrate_record(once) == once


def test_load_missing_file_returns_empty(tmp_path: Path) -> None:
    assert JsonTaskStore(tmp_path / "nope.json").load() == []


def test_load_corrupt_document_returns_empty(tmp_path: Path) -> None:
    path = tmp_path / "storage.json"
    path.write_text("{not json", "utf-8")
    assert JsonTaskStore(path).load() == []


def test_load_non_list_value_returns_empty(tmp_path: Path) -> None:
    path = tmp_path / "storage.json"
    _write(path, {KEY: {"id": "x"}})
    assert JsonTaskStore(path).load() == []


def test_load_accepts_string_encoded_value(tmp_path: Path) -> None:
    path = tmp_path / "storage.json"
    _write(path, {KEY: json.dumps([{"id": "x", "title": "t", "isCompleted": True}])})

    tasks = JsonTaskStore(path).load()

    assert len(tasks) == 1
    assert tasks[0].status == TaskStatus.COMPLETED
    assert tasks[0].is_completed is True
    assert tasks[0].priority == Priority.MEDIUM


def test_load_skips_malformed_records(tmp_path: Path) -> None:
    path = tmp_path / "storage.json"
    _write(path, {KEY: [42, {"id": "ok", "title": "fine"}, "junk"]})

    tasks = JsonTaskStore(path).load()

    assert [t.id for t in tasks] == ["ok"]


def test_save_preserves_other_keys(tmp_path: Path) -> None:
    path = tmp_path / "storage.json"
    _write(path, {"other-app": {"theme": "dark"}})
    store = JsonTaskStore(path)

    repo = TaskRepository(store, clock=FakeClock())
    repo.create("buy milk")

    doc = json.loads(path.read_text("utf-8"))
    assert doc["other-app"] == {"theme": "dark"}
    assert doc[KEY][0]["title"] == "buy milk"


def test_save_then_load_round_trip(tmp_path: Path) -> None:
    store = JsonTaskStore(tmp_path / "storage.json")
    repo = TaskRepository(store, clock=FakeClock())

    plain = repo.create("buy milk", Priority.LOW, 1_800_000_000_000)
    rich = repo.create_from_ai_result(
        "plan trip",
        Priority.MEDIUM,
        None,
        AIAnalysisResult(
            subtasks=("book flight", "book hotel"),
            priority="high",
            estimated_time="2 hours",
            refined_description="Trip planning",
        ),
    )
    repo.toggle_subtask(rich.id, rich.subtasks[1].id)
    repo.set_notes(plain.id, "2 liters")
    repo.toggle_completion(plain.id)

    reloaded = TaskRepository.from_store(store)

    before = {t.id: t for t in repo.list_tasks()}
    after = {t.id: t for t in reloaded.list_tasks()}
    assert before == after
    assert [t.id for t in reloaded.list_tasks()] == [rich.id, plain.id]


def test_non_list_subtasks_become_empty() -> None:
    rec = migrate_record({"id": "x", "title": "t", "subtasks": 5})
    assert rec["subtasks"] == []


def test_duplicate_subtask_ids_are_reassigned() -> None:
    rec = migrate_record(
        {
            "id": "x",
            "title": "t",
            "subtasks": [{"id": "s", "title": "one"}, {"id": "s", "title": "two"}],
        }
    )

    ids = [st["id"] for st in rec["subtasks"]]
    assert ids[0] == "s"
    assert len(set(ids)) == 2
    assert migrate_record(rec) == rec


def test_load_reassigns_duplicate_task_ids(tmp_path: Path) -> None:
    path = tmp_path / "storage.json"
    _write(
        path,
        {
            KEY: [
                {"id": "a", "title": "one"},
                {"id": "a", "title": "two"},
                {"id": "b", "title": "three", "subtasks": "broken"},
            ]
        },
    )

    tasks = JsonTaskStore(path).load()

    assert [t.title for t in tasks] == ["one", "two", "three"]
    assert tasks[0].id == "a"
    assert len({t.id for t in tasks}) == 3
    assert tasks[2].subtasks == []
