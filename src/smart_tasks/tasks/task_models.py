# src/smart_tasks/tasks/task_models.py

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class TaskStatus(StrEnum):
    """Task lifecycle status. Any state may move to any other state."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, raw: Any) -> TaskStatus | None:
        if not raw:
            return None
        try:
            return cls(str(raw))
        except ValueError:
            return None


_PRIORITY_LABELS: dict[str, dict[str, str]] = {
    "en": {"low": "Low", "medium": "Medium", "high": "High"},
    "he": {"low": "נמוכה", "medium": "בינונית", "high": "גבוהה"},
}

_NOTICE_TEXT: dict[str, dict[str, str]] = {
    "en": {
        "reminder_title": "Reminder: {title}",
        "reminder_body": "Time to get this task done!",
        "enabled_title": "Notifications enabled!",
        "enabled_body": "From now on you will get a reminder when a task is due.",
    },
    "he": {
        "reminder_title": "תזכורת: {title}",
        "reminder_body": "הגיע הזמן לבצע את המשימה!",
        "enabled_title": "התראות מופעלות!",
        "enabled_body": "מעכשיו תקבל תזכורת כשיגיע זמן המשימה.",
    },
}


def notice_text(key: str, locale: str = "en", **fields: str) -> str:
    """User-facing notification text; unknown locales fall back to English."""
    texts = _NOTICE_TEXT.get(locale) or _NOTICE_TEXT["en"]
    return texts[key].format(**fields)


class Priority(StrEnum):
    """
    Fixed, ordered priority set.

    Stored by canonical value. Older documents stored the Hebrew labels
    instead, so parse() accepts any known locale label too.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    def label(self, locale: str = "en") -> str:
        labels = _PRIORITY_LABELS.get(locale) or _PRIORITY_LABELS["en"]
        return labels[self.value]

    @classmethod
    def parse(cls, raw: Any) -> Priority | None:
        if raw is None:
            return None
        s = str(raw).strip()
        if not s:
            return None
        try:
            return cls(s.lower())
        except ValueError:
            pass
        for labels in _PRIORITY_LABELS.values():
            for value, label in labels.items():
                if s == label:
                    return cls(value)
        return None


PRIORITY_CYCLE: tuple[Priority, ...] = (Priority.LOW, Priority.MEDIUM, Priority.HIGH)


def next_priority(current: Priority) -> Priority:
    """low -> medium -> high -> low"""
    idx = PRIORITY_CYCLE.index(current)
    return PRIORITY_CYCLE[(idx + 1) % len(PRIORITY_CYCLE)]


class TaskFilter(StrEnum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"


class NotificationPermission(StrEnum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass(slots=True)
class SubTask:
    id: str
    title: str
    is_completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "isCompleted": self.is_completed}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> SubTask:
        return cls(
            id=str(raw["id"]),
            title=str(raw.get("title") or ""),
            is_completed=bool(raw.get("isCompleted", False)),
        )


@dataclass(slots=True)
class Task:
    id: str
    title: str
    status: TaskStatus
    is_completed: bool
    priority: Priority
    created_at: int

    subtasks: list[SubTask] = field(default_factory=list)
    notes: str = ""

    # AI enrichment only.
    description: str | None = None
    estimated_time: str | None = None

    # Epoch milliseconds.
    due_date: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Persisted (camelCase) shape. Absent optionals are omitted."""
        out: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "isCompleted": self.is_completed,
            "status": self.status.value,
            "priority": self.priority.value,
            "subtasks": [st.to_dict() for st in self.subtasks],
            "createdAt": self.created_at,
            "notes": self.notes,
        }
        if self.description is not None:
            out["description"] = self.description
        if self.estimated_time is not None:
            out["estimatedTime"] = self.estimated_time
        if self.due_date is not None:
            out["dueDate"] = self.due_date
        return out

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Task:
        """Build a Task from an already migrated record (see task_store.migrate_record)."""
        status = TaskStatus.parse(raw.get("status")) or TaskStatus.PENDING
        due = raw.get("dueDate")
        return cls(
            id=str(raw["id"]),
            title=str(raw.get("title") or ""),
            status=status,
            is_completed=status == TaskStatus.COMPLETED,
            priority=Priority.parse(raw.get("priority")) or Priority.MEDIUM,
            created_at=int(raw.get("createdAt") or 0),
            subtasks=[SubTask.from_dict(st) for st in raw.get("subtasks") or []],
            notes=str(raw.get("notes") or ""),
            description=raw.get("description"),
            estimated_time=raw.get("estimatedTime"),
            due_date=int(due) if due else None,
        )


@dataclass(slots=True, frozen=True)
class AIAnalysisResult:
    """Structured suggestion returned by a TaskAnalyzer."""

    subtasks: tuple[str, ...]
    priority: str
    estimated_time: str
    refined_description: str


# ---- derived, read-only views ----


def progress(task: Task) -> int:
    """
    Completion percentage for display.

    With subtasks: share of completed subtasks, rounded half-up.
    Without: a fixed value per status.
    """
    total = len(task.subtasks)
    if total == 0:
        if task.status == TaskStatus.COMPLETED:
            return 100
        if task.status == TaskStatus.IN_PROGRESS:
            return 50
        return 0
    done = sum(1 for st in task.subtasks if st.is_completed)
    return int(math.floor(100 * done / total + 0.5))


def is_overdue(task: Task, now_ms: int) -> bool:
    return task.due_date is not None and task.due_date < now_ms and task.status != TaskStatus.COMPLETED


def filter_tasks(tasks: Iterable[Task], view: TaskFilter) -> list[Task]:
    if view == TaskFilter.COMPLETED:
        return [t for t in tasks if t.status == TaskStatus.COMPLETED]
    if view == TaskFilter.PENDING:
        return [t for t in tasks if t.status != TaskStatus.COMPLETED]
    return list(tasks)


def pending_count(tasks: Iterable[Task]) -> int:
    return sum(1 for t in tasks if t.status != TaskStatus.COMPLETED)
