# src/smart_tasks/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..tasks.task_models import NotificationPermission, Priority, TaskFilter
from ..tasks.task_repo import TaskRepository
from .ports import Notifier, TaskAnalyzer

if TYPE_CHECKING:
    from ..tasks.reminder_scheduler import ReminderRunner


@dataclass
class AppState:
    """
    Everything the presentation layer needs, wired once in bootstrap.

    Presentation-only fields (draft priority, filter view) live here rather
    than on the repository: they are never persisted.
    """

    settings: Any
    repo: TaskRepository
    analyzer: TaskAnalyzer
    notifier: Notifier

    notification_permission: NotificationPermission = NotificationPermission.DEFAULT
    draft_priority: Priority = Priority.MEDIUM
    view: TaskFilter = TaskFilter.ALL

    reminder_runner: ReminderRunner | None = None

    # One AI enrichment in flight at a time.
    enrich_lock: threading.Lock = field(default_factory=threading.Lock)
