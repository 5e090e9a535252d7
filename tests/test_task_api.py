# tests/test_task_api.py

from __future__ import annotations

from smart_tasks.core.state import AppState
from smart_tasks.tasks.task_api import (
    NOTIFICATIONS_ENABLED_TITLE,
    set_notification_permission,
    smart_add,
    start_reminders,
)
from smart_tasks.tasks.task_models import AIAnalysisResult, NotificationPermission, Priority, TaskStatus


def test_smart_add_uses_analysis(state: AppState, analyzer) -> None:
    analyzer.result = AIAnalysisResult(
        subtasks=("book flight", "book hotel"),
        priority="high",
        estimated_time="2 hours",
        refined_description="Trip planning",
    )

    task = smart_add(state, "plan trip", Priority.MEDIUM)

    assert analyzer.calls == ["plan trip"]
    assert task.priority == Priority.HIGH
    assert len(task.subtasks) == 2
    assert task.description == "Trip planning"
    assert state.repo.list_tasks() == [task]


def test_smart_add_falls_back_to_plain_task(state: AppState, analyzer) -> None:
    analyzer.result = None

    task = smart_add(state, "buy milk", Priority.LOW, 1_800_000_000_000)

    assert task.status == TaskStatus.PENDING
    assert task.subtasks == []
    assert task.priority == Priority.LOW
    assert task.due_date == 1_800_000_000_000
    assert task.description is None
    assert task.estimated_time is None


def test_smart_add_survives_crashing_analyzer(state: AppState) -> None:
    class Boom:
        def analyze_task(self, title: str):
            raise RuntimeError("boom")

    state.analyzer = Boom()
    task = smart_add(state, "buy milk")

    assert task is not None
    assert task.subtasks == []
    assert not state.enrich_lock.locked()


def test_smart_add_allows_one_enrichment_in_flight(state: AppState, analyzer) -> None:
    state.enrich_lock.acquire()
    try:
        assert smart_add(state, "second request") is None
    finally:
        state.enrich_lock.release()

    assert analyzer.calls == []
    assert len(state.repo) == 0


def test_smart_add_ignores_blank_title(state: AppState, analyzer) -> None:
    assert smart_add(state, "  ") is None
    assert analyzer.calls == []


def test_reminders_do_not_start_without_permission(state: AppState) -> None:
    assert start_reminders(state) is False
    assert state.reminder_runner is None

    set_notification_permission(state, NotificationPermission.DENIED)
    assert state.notification_permission == NotificationPermission.DENIED
    assert state.reminder_runner is None
    assert state.notifier.sent == []


def test_granting_permission_starts_and_denying_stops_reminders(state: AppState) -> None:
    set_notification_permission(state, NotificationPermission.GRANTED)
    try:
        assert state.reminder_runner is not None
        assert state.reminder_runner.is_alive()
        assert state.notifier.sent[0].title == NOTIFICATIONS_ENABLED_TITLE
    finally:
        runner = state.reminder_runner
        set_notification_permission(state, NotificationPermission.DENIED)

    assert state.reminder_runner is None
    assert not runner.is_alive()


def test_enabled_notice_follows_locale(state: AppState) -> None:
    state.settings.locale = "he"
    set_notification_permission(state, NotificationPermission.GRANTED)
    try:
        assert state.notifier.sent[0].title == "התראות מופעלות!"
    finally:
        set_notification_permission(state, NotificationPermission.DENIED)
