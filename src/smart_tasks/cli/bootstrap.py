# src/smart_tasks/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (store/repository/AI/notifier).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..connectors.console_connector import ConsoleNotifier
from ..core.ports import Notifier, TaskAnalyzer
from ..core.state import AppState
from ..llm.client import OpenRouterTaskAnalyzer
from ..llm.offline import OfflineTaskAnalyzer
from ..tasks.task_models import NotificationPermission
from ..tasks.task_repo import TaskRepository
from ..tasks.task_store import JsonTaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)


def _initial_permission(settings) -> NotificationPermission:
    raw = str(getattr(settings, "notifications", "default") or "default").strip().lower()
    try:
        return NotificationPermission(raw)
    except ValueError:
        logger.warning("Unknown notifications setting %r; using default", raw)
        return NotificationPermission.DEFAULT


def create_initial_state(*, settings=None, notifier: Notifier | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    If settings is None, falls back to get_settings(). Without AI credentials
    the offline analyzer is used and smart-add degrades to a plain add.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    analyzer: TaskAnalyzer
    try:
        analyzer = OpenRouterTaskAnalyzer(settings)
    except Exception as e:
        logger.info("AI analyzer disabled (%s); smart add will create plain tasks.", e)
        analyzer = OfflineTaskAnalyzer()

    store = JsonTaskStore(settings.tasks_path, storage_key=settings.storage_key)

    return AppState(
        settings=settings,
        repo=TaskRepository.from_store(store),
        analyzer=analyzer,
        notifier=notifier or ConsoleNotifier(),
        notification_permission=_initial_permission(settings),
    )
