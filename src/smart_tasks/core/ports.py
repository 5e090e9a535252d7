# src/smart_tasks/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The repository, reminder scanner and smart-add service depend on Protocols
instead of concrete implementations, so storage, AI providers and the
notification surface stay swappable and tests can use in-memory fakes.
"""

from collections.abc import Callable, Sequence
from typing import Protocol

from ..tasks.task_models import AIAnalysisResult, Task

Clock = Callable[[], int]
# Returns "now" as epoch milliseconds.


class TaskPersistence(Protocol):
    """Whole-collection load/save of the task document."""

    def load(self) -> list[Task]: ...
    def save(self, tasks: Sequence[Task]) -> None: ...


class TaskAnalyzer(Protocol):
    """
    AI enrichment adapter.

    Returns None when enrichment is unavailable (missing credential, network
    failure, timeout, malformed response). Must not raise.
    """

    def analyze_task(self, title: str) -> AIAnalysisResult | None: ...


class TaskSource(Protocol):
    """Read access used by the reminder scanner."""

    def snapshot(self) -> list[Task]: ...


class Notifier(Protocol):
    """Platform notification surface (desktop, console, ...)."""

    def notify(self, title: str, body: str) -> None: ...
