# src/smart_tasks/tasks/ids.py

from __future__ import annotations

import uuid


def new_id() -> str:
    """Collision-resistant opaque identifier for tasks and subtasks."""
    return uuid.uuid4().hex
