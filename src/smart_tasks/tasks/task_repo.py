# src/smart_tasks/tasks/task_repo.py

from __future__ import annotations

import copy
import logging
import threading
import time

from ..core.ports import Clock, TaskPersistence
from .ids import new_id
from .task_models import (
    AIAnalysisResult,
    Priority,
    SubTask,
    Task,
    TaskStatus,
    next_priority,
)
from .task_store import reassign_duplicate_ids

logger = logging.getLogger(__name__)

_PRIORITY_VALUES = frozenset(p.value for p in Priority)


def now_ms() -> int:
    return int(time.time() * 1000)


def cycle_draft_priority(current: Priority) -> Priority:
    """Priority picker for a task that has not been created yet."""
    return next_priority(current)


class TaskRepository:
    """
    In-memory ordered task collection (newest first).

    Owns every mutation and keeps `status`, `is_completed` and subtask state
    consistent:
    - is_completed == (status == completed) after every operation
    - subtask activity promotes pending -> in_progress, never demotes
    - task ids are unique; duplicates handed in are given fresh ids

    Invalid inputs (blank titles, unknown ids) are silent no-ops.

    Persistence is best-effort: after each effective mutation the whole
    collection is handed to the injected store; failures are logged only.

    Thread-safety:
    - one lock serializes mutations and snapshot() so a background reader
      always sees a consistent copy
    """

    def __init__(
        self,
        store: TaskPersistence | None = None,
        *,
        tasks: list[Task] | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._clock: Clock = clock or now_ms
        self._tasks: list[Task] = reassign_duplicate_ids(list(tasks or []))
        self._lock = threading.RLock()

    @classmethod
    def from_store(cls, store: TaskPersistence, *, clock: Clock | None = None) -> TaskRepository:
        return cls(store, tasks=store.load(), clock=clock)

    # ---- low-level helpers ----

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save(self._tasks)
        except Exception:
            logger.exception("Failed to save %d tasks", len(self._tasks))

    def _find(self, task_id: str) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        logger.debug("Task not found id=%s", task_id)
        return None

    @staticmethod
    def _promote_if_pending(task: Task) -> None:
        if task.status == TaskStatus.PENDING:
            task.status = TaskStatus.IN_PROGRESS
            task.is_completed = False
            logger.info("Task %s -> in_progress", task.id)

    def _new_task(self, title: str, priority: Priority, due_date: int | None) -> Task:
        return Task(
            id=new_id(),
            title=title,
            status=TaskStatus.PENDING,
            is_completed=False,
            priority=priority,
            created_at=self._clock(),
            subtasks=[],
            notes="",
            due_date=due_date,
        )

    # ---- reads ----

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, task_id: str) -> Task | None:
        with self._lock:
            return self._find(task_id)

    def list_tasks(self) -> list[Task]:
        with self._lock:
            return list(self._tasks)

    def snapshot(self) -> list[Task]:
        """Deep copy of the collection, safe to read from another thread."""
        with self._lock:
            return copy.deepcopy(self._tasks)

    def find(self, ref: str) -> Task | None:
        """
        Resolve a user reference: 1-based position in the list, or a unique id prefix.
        """
        ref = (ref or "").strip()
        if not ref:
            return None
        with self._lock:
            if ref.isdigit():
                idx = int(ref) - 1
                if 0 <= idx < len(self._tasks):
                    return self._tasks[idx]
            matches = [t for t in self._tasks if t.id.startswith(ref)]
            return matches[0] if len(matches) == 1 else None

    # ---- creation ----

    def create(
        self,
        title: str,
        priority: Priority = Priority.MEDIUM,
        due_date: int | None = None,
    ) -> Task | None:
        if not title or not title.strip():
            logger.debug("create ignored: blank title")
            return None
        with self._lock:
            task = self._new_task(title, priority, due_date)
            self._tasks.insert(0, task)
            self._persist()
        logger.info("Task created id=%s priority=%s", task.id, task.priority.value)
        return task

    def create_from_ai_result(
        self,
        title: str,
        priority: Priority = Priority.MEDIUM,
        due_date: int | None = None,
        ai_result: AIAnalysisResult | None = None,
    ) -> Task | None:
        """
        Create a task enriched with an AI suggestion.

        Without a suggestion this is exactly create(). The suggested priority
        wins when it is one of low/medium/high; otherwise the caller's
        priority is kept.
        """
        if ai_result is None:
            return self.create(title, priority, due_date)
        if not title or not title.strip():
            logger.debug("create_from_ai_result ignored: blank title")
            return None

        suggested = (ai_result.priority or "").strip().lower()
        resolved = Priority(suggested) if suggested in _PRIORITY_VALUES else priority

        with self._lock:
            task = self._new_task(title, resolved, due_date)
            task.description = ai_result.refined_description
            task.estimated_time = ai_result.estimated_time
            task.subtasks = [
                SubTask(id=new_id(), title=s.strip(), is_completed=False)
                for s in ai_result.subtasks
                if s and s.strip()
            ]
            self._tasks.insert(0, task)
            self._persist()
        logger.info(
            "Task created from AI id=%s priority=%s subtasks=%d",
            task.id,
            task.priority.value,
            len(task.subtasks),
        )
        return task

    # ---- lifecycle ----

    def toggle_completion(self, task_id: str) -> Task | None:
        """
        Flip completion. Un-completing always returns to pending, regardless
        of how many subtasks are already done.
        """
        with self._lock:
            task = self._find(task_id)
            if task is None:
                return None
            task.is_completed = not task.is_completed
            task.status = TaskStatus.COMPLETED if task.is_completed else TaskStatus.PENDING
            self._persist()
        logger.info("Task %s -> %s", task_id, task.status.value)
        return task

    def set_status(self, task_id: str, status: TaskStatus) -> Task | None:
        with self._lock:
            task = self._find(task_id)
            if task is None:
                return None
            task.status = TaskStatus(status)
            task.is_completed = task.status == TaskStatus.COMPLETED
            self._persist()
        logger.info("Task %s -> %s", task_id, task.status.value)
        return task

    # ---- field edits (no status side effects) ----

    def set_notes(self, task_id: str, text: str) -> Task | None:
        with self._lock:
            task = self._find(task_id)
            if task is None:
                return None
            task.notes = text or ""
            self._persist()
        return task

    def set_due_date(self, task_id: str, due_date: int | None) -> Task | None:
        with self._lock:
            task = self._find(task_id)
            if task is None:
                return None
            task.due_date = due_date
            self._persist()
        return task

    def set_priority(self, task_id: str, priority: Priority) -> Task | None:
        with self._lock:
            task = self._find(task_id)
            if task is None:
                return None
            task.priority = Priority(priority)
            self._persist()
        return task

    def cycle_priority(self, task_id: str) -> Task | None:
        with self._lock:
            task = self._find(task_id)
            if task is None:
                return None
            task.priority = next_priority(task.priority)
            self._persist()
        return task

    # ---- subtasks ----

    def toggle_subtask(self, task_id: str, subtask_id: str) -> Task | None:
        with self._lock:
            task = self._find(task_id)
            if task is None:
                return None
            sub = next((st for st in task.subtasks if st.id == subtask_id), None)
            if sub is None:
                logger.debug("Subtask not found task=%s subtask=%s", task_id, subtask_id)
                return None
            sub.is_completed = not sub.is_completed
            if any(st.is_completed for st in task.subtasks):
                self._promote_if_pending(task)
            self._persist()
        return task

    def add_subtask(self, task_id: str, title: str) -> SubTask | None:
        """Append a subtask; adding work to a pending task marks it in progress."""
        if not title or not title.strip():
            logger.debug("add_subtask ignored: blank title")
            return None
        with self._lock:
            task = self._find(task_id)
            if task is None:
                return None
            sub = SubTask(id=new_id(), title=title, is_completed=False)
            task.subtasks.append(sub)
            self._promote_if_pending(task)
            self._persist()
        return sub

    # ---- removal ----

    def remove(self, task_id: str) -> bool:
        with self._lock:
            before = len(self._tasks)
            self._tasks = [t for t in self._tasks if t.id != task_id]
            removed = len(self._tasks) != before
            if removed:
                self._persist()
        if removed:
            logger.info("Task removed id=%s", task_id)
        return removed
