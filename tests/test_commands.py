# tests/test_commands.py

from __future__ import annotations

from smart_tasks.cli.commands import CommandRegistry, registry
from smart_tasks.tasks.task_models import AIAnalysisResult, Priority, TaskFilter, TaskStatus


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b")

    assert reg.handle(state, "/a x") == "h2"
    assert reg.handle(state, "/b y", emit=lambda _: None) == "h3"
    assert called["h2"] == 1
    assert called["h3"] == 1


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")


def test_add_with_priority_and_due(state) -> None:
    reply = registry.handle(state, "/add !high @2030-01-02T09:30 buy milk")

    task = state.repo.list_tasks()[0]
    assert reply == "Added: buy milk"
    assert task.priority == Priority.HIGH
    assert task.due_date is not None


def test_add_uses_and_resets_draft_priority(state) -> None:
    registry.handle(state, "/draft")
    assert state.draft_priority == Priority.HIGH

    registry.handle(state, "/add water plants")

    assert state.repo.list_tasks()[0].priority == Priority.HIGH
    assert state.draft_priority == Priority.MEDIUM


def test_task_lifecycle_through_commands(state) -> None:
    registry.handle(state, "/add write report")
    task = state.repo.list_tasks()[0]

    registry.handle(state, "/sub 1 outline")
    assert task.status == TaskStatus.IN_PROGRESS

    registry.handle(state, "/subdone 1 1")
    assert task.subtasks[0].is_completed is True

    registry.handle(state, "/status 1 completed")
    assert task.is_completed is True

    registry.handle(state, "/done 1")
    assert task.status == TaskStatus.PENDING

    registry.handle(state, "/notes 1 ask Dana first")
    assert task.notes == "ask Dana first"

    registry.handle(state, "/prio 1")
    assert task.priority == Priority.HIGH

    registry.handle(state, "/due 1 none")
    assert task.due_date is None

    assert "Deleted" in registry.handle(state, "/del 1")
    assert len(state.repo) == 0


def test_smart_command_creates_enriched_task(state, analyzer) -> None:
    analyzer.result = AIAnalysisResult(
        subtasks=("a", "b", "c"),
        priority="low",
        estimated_time="30 minutes",
        refined_description="Quick one",
    )
    notes: list[str] = []

    reply = registry.handle(state, "/smart tidy desk", emit=notes.append)

    assert "3 subtasks" in reply
    assert notes
    assert state.repo.list_tasks()[0].priority == Priority.LOW


def test_list_filters_views(state) -> None:
    registry.handle(state, "/add open one")
    registry.handle(state, "/add closed one")
    registry.handle(state, "/done 1")

    out_pending = registry.handle(state, "/list pending")
    assert state.view == TaskFilter.PENDING
    assert "open one" in out_pending
    assert "closed one" not in out_pending
    assert out_pending.startswith("1 remaining")

    out_done = registry.handle(state, "/list completed")
    assert "closed one" in out_done
    assert "open one" not in out_done


def test_bad_references_are_reported(state) -> None:
    assert registry.handle(state, "/done 5").startswith("Usage")
    assert registry.handle(state, "/status").startswith("Usage")
    assert registry.handle(state, "/add   ").startswith("Usage")
