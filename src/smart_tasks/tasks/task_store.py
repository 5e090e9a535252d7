# src/smart_tasks/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from .ids import new_id
from .task_models import Priority, Task, TaskStatus

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "smart-tasks-data"


def migrate_record(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Bring a stored task record up to the current shape.

    Older documents predate `status`, `priority`, `subtasks` and `notes`, and
    may store priority as a locale label. Applying this to an already migrated
    record returns an equal record.
    """
    rec = dict(raw)

    if not rec.get("id"):
        rec["id"] = new_id()
        logger.info("Task migration: assigned id=%s to record without id", rec["id"])

    status = TaskStatus.parse(rec.get("status"))
    if status is None:
        status = TaskStatus.COMPLETED if rec.get("isCompleted") else TaskStatus.PENDING
    rec["status"] = status.value

    rec["priority"] = (Priority.parse(rec.get("priority")) or Priority.MEDIUM).value

    raw_subtasks = rec.get("subtasks")
    if not isinstance(raw_subtasks, list):
        raw_subtasks = []

    subtasks: list[dict[str, Any]] = []
    seen: set[str] = set()
    for st in raw_subtasks:
        if not isinstance(st, dict):
            continue
        clean = dict(st)
        if not clean.get("id") or clean["id"] in seen:
            clean["id"] = new_id()
        seen.add(clean["id"])
        clean["title"] = str(clean.get("title") or "")
        clean["isCompleted"] = bool(clean.get("isCompleted", False))
        subtasks.append(clean)
    rec["subtasks"] = subtasks

    rec["notes"] = rec.get("notes") or ""
    rec["createdAt"] = rec.get("createdAt") or 0

    if not rec.get("dueDate"):
        rec.pop("dueDate", None)

    # Keep the legacy flag in lockstep with the resolved status.
    rec["isCompleted"] = status == TaskStatus.COMPLETED
    return rec


def reassign_duplicate_ids(tasks: list[Task]) -> list[Task]:
    """Give a fresh id to every task whose id was already taken earlier in the list."""
    seen: set[str] = set()
    for task in tasks:
        if task.id in seen:
            old = task.id
            task.id = new_id()
            logger.warning("Duplicate task id=%s; reassigned id=%s", old, task.id)
        seen.add(task.id)
    return tasks


class JsonTaskStore:
    """
    Local key-value store backed by a single JSON file.

    The file holds a JSON object; the task collection is the JSON array stored
    under `storage_key`. Every save overwrites the whole collection, other keys
    in the file are left untouched.
    """

    def __init__(self, path: str | Path, storage_key: str = DEFAULT_STORAGE_KEY) -> None:
        self._path = Path(path)
        self._key = storage_key

    def _read_document(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        data = json.loads(self._path.read_text("utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"storage document is not a JSON object: {type(data).__name__}")
        return data

    def load(self) -> list[Task]:
        """Load and migrate all tasks. Never raises: a broken document loads as empty."""
        try:
            doc = self._read_document()
        except Exception:
            logger.exception("Failed to read task storage %s; starting empty.", self._path)
            return []

        raw = doc.get(self._key)
        if raw is None:
            return []

        # Values may be stored as a JSON string (localStorage style) or inline.
        try:
            records = json.loads(raw) if isinstance(raw, str) else raw
        except ValueError:
            logger.exception("Failed to parse tasks under key=%s; starting empty.", self._key)
            return []

        if not isinstance(records, list):
            logger.error("Tasks under key=%s are not a list; starting empty.", self._key)
            return []

        tasks: list[Task] = []
        for rec in records:
            if not isinstance(rec, dict):
                logger.warning("Skipping malformed task record: %r", rec)
                continue
            try:
                tasks.append(Task.from_dict(migrate_record(rec)))
            except Exception:
                logger.exception("Skipping task record that failed to load: %r", rec)

        reassign_duplicate_ids(tasks)
        logger.info("Loaded %d tasks from %s", len(tasks), self._path)
        return tasks

    def save(self, tasks: Sequence[Task]) -> None:
        try:
            doc = self._read_document()
        except Exception:
            logger.warning("Task storage %s unreadable; rewriting it.", self._path)
            doc = {}

        doc[self._key] = [t.to_dict() for t in tasks]

        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(doc, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, self._path)
        with contextlib.suppress(Exception):
            os.chmod(self._path, 0o600)
        logger.debug("Saved %d tasks to %s", len(tasks), self._path)
