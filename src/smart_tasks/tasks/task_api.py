# src/smart_tasks/tasks/task_api.py

from __future__ import annotations

import logging

from ..core.state import AppState
from .reminder_scheduler import start_reminders_in_background
from .task_models import NotificationPermission, Priority, Task, notice_text

logger = logging.getLogger(__name__)

NOTIFICATIONS_ENABLED_TITLE = notice_text("enabled_title")
NOTIFICATIONS_ENABLED_BODY = notice_text("enabled_body")


def smart_add(
    state: AppState,
    title: str,
    priority: Priority = Priority.MEDIUM,
    due_date: int | None = None,
) -> Task | None:
    """
    Create a task enriched by the AI analyzer.

    Only one enrichment runs at a time: a second call while one is in flight
    returns None and creates nothing. If the analyzer is unavailable the task
    is created exactly as a plain add would.
    """
    if not title or not title.strip():
        return None

    if not state.enrich_lock.acquire(blocking=False):
        logger.info("smart_add ignored: an enrichment is already in flight")
        return None

    try:
        try:
            result = state.analyzer.analyze_task(title)
        except Exception:
            logger.exception("Task analyzer crashed; falling back to plain add")
            result = None

        if result is None:
            logger.info("AI unavailable; creating plain task")
        return state.repo.create_from_ai_result(title, priority, due_date, result)
    finally:
        state.enrich_lock.release()


def start_reminders(state: AppState) -> bool:
    """Start the reminder scanner if permission is granted and it is not running yet."""
    if state.notification_permission != NotificationPermission.GRANTED:
        return False
    if state.reminder_runner is not None and state.reminder_runner.is_alive():
        return True
    state.reminder_runner = start_reminders_in_background(state.repo, state.notifier, state.settings)
    return state.reminder_runner is not None


def stop_reminders(state: AppState, *, timeout: float = 5.0) -> None:
    runner = state.reminder_runner
    if runner is None:
        return
    runner.stop()
    runner.join(timeout=timeout)
    state.reminder_runner = None


def set_notification_permission(state: AppState, permission: NotificationPermission) -> None:
    """
    Record the permission decision and start or stop the reminder scanner to match.

    A denial is only recorded; nothing asks again.
    """
    permission = NotificationPermission(permission)
    previous = state.notification_permission
    state.notification_permission = permission
    logger.info("Notification permission %s -> %s", previous.value, permission.value)

    if permission == NotificationPermission.GRANTED:
        if previous != NotificationPermission.GRANTED:
            try:
                locale = str(getattr(state.settings, "locale", "en") or "en")
                state.notifier.notify(notice_text("enabled_title", locale), notice_text("enabled_body", locale))
            except Exception:
                logger.exception("Failed to send notifications-enabled notice")
        start_reminders(state)
    else:
        stop_reminders(state)
