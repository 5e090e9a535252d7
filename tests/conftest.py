# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from smart_tasks.core.state import AppState
from smart_tasks.tasks.task_repo import TaskRepository

from .fakes import FakeClock, FakeNotifier, FakeTaskAnalyzer, InMemoryTaskStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    A SimpleNamespace rather than the real config keeps unit tests isolated
    from the environment and any local .env.
    """
    return SimpleNamespace(
        app_name="smart-tasks-test",
        locale="en",
        data_dir=tmp_path,
        tasks_path=tmp_path / "storage.json",
        storage_key="smart-tasks-data",
        openrouter_api_key=None,
        openrouter_base_url="https://example.invalid/v1",
        llm_models=["model-a", "model-b"],
        extra_headers={},
        ai_timeout_seconds=1.0,
        ai_connect_timeout_seconds=1.0,
        notifications="default",
        reminder_interval_seconds=0.01,
        reminder_window_seconds=60.0,
        reminder_dedupe=False,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


@pytest.fixture()
def repo(store: InMemoryTaskStore, clock: FakeClock) -> TaskRepository:
    return TaskRepository(store, clock=clock)


@pytest.fixture()
def analyzer() -> FakeTaskAnalyzer:
    return FakeTaskAnalyzer()


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def state(settings: SimpleNamespace, repo: TaskRepository, analyzer, notifier) -> AppState:
    """AppState wired with deterministic fakes."""
    return AppState(settings=settings, repo=repo, analyzer=analyzer, notifier=notifier)
