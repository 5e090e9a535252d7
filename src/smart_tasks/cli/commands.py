# src/smart_tasks/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Callable
from datetime import datetime
from typing import cast

from ..core.state import AppState
from ..tasks.task_api import set_notification_permission, smart_add
from ..tasks.task_models import (
    NotificationPermission,
    Priority,
    Task,
    TaskFilter,
    TaskStatus,
    filter_tasks,
    is_overdue,
    pending_count,
    progress,
)
from ..tasks.task_repo import cycle_draft_priority, now_ms

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting helpers ----


def _fmt_ms(ts_ms: int) -> str:
    return datetime.fromtimestamp(ts_ms / 1000).astimezone().strftime("%Y-%m-%d %H:%M")


def parse_due(text: str) -> int | None:
    """Local date/time ("2026-10-20 18:00", "2026-10-20T18:00", "2026-10-20") -> epoch ms."""
    dt = datetime.fromisoformat(text.strip())
    return int(dt.astimezone().timestamp() * 1000)


_STATUS_MARK = {
    TaskStatus.PENDING: " ",
    TaskStatus.IN_PROGRESS: "~",
    TaskStatus.COMPLETED: "x",
}


def format_task_line(state: AppState, index: int, task: Task, now: int) -> str:
    locale = str(getattr(state.settings, "locale", "en"))
    line = f"{index}. [{_STATUS_MARK[task.status]}] {task.title} ({task.priority.label(locale)})"
    if task.subtasks or task.status == TaskStatus.IN_PROGRESS:
        line += f" {progress(task)}%"
    if task.due_date is not None:
        line += f" due {_fmt_ms(task.due_date)}"
        if is_overdue(task, now):
            line += " OVERDUE"
    return line


def _resolve(state: AppState, args: list[str]) -> Task | None:
    if not args:
        return None
    return state.repo.find(args[0])


def _split_add_args(args: list[str]) -> tuple[Priority | None, int | None, str]:
    """/add [!priority] [@due] title words..."""
    priority: Priority | None = None
    due: int | None = None
    words: list[str] = []
    for a in args:
        if a.startswith("!") and priority is None and Priority.parse(a[1:]):
            priority = Priority.parse(a[1:])
        elif a.startswith("@") and due is None and len(a) > 1:
            due = parse_due(a[1:])
        else:
            words.append(a)
    return priority, due, " ".join(words)


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list                       -> current view
    /list all|pending|completed -> switch view
    """
    if args:
        try:
            state.view = TaskFilter(args[0].lower())
        except ValueError:
            return "Usage: /list [all|pending|completed]"

    tasks = state.repo.list_tasks()
    now = now_ms()
    header = f"{pending_count(tasks)} remaining (view: {state.view.value})"
    shown = {t.id for t in filter_tasks(tasks, state.view)}
    # Positions always refer to the full list so references stay stable across views.
    lines = [format_task_line(state, i, t, now) for i, t in enumerate(tasks, start=1) if t.id in shown]
    if not lines:
        lines = ["No completed tasks yet." if state.view == TaskFilter.COMPLETED else "No tasks yet."]
    return "\n".join([header, *lines])


def cmd_show(state: AppState, args: list[str]) -> str:
    task = _resolve(state, args)
    if task is None:
        return "Usage: /show <n|id>"
    locale = str(getattr(state.settings, "locale", "en"))
    lines = [
        f"{task.title}  [{task.status.value}]  id={task.id}",
        f"  Priority: {task.priority.label(locale)}   Progress: {progress(task)}%",
    ]
    if task.description:
        lines.append(f"  {task.description}")
    if task.estimated_time:
        lines.append(f"  Estimated time: {task.estimated_time}")
    if task.due_date is not None:
        lines.append(f"  Due: {_fmt_ms(task.due_date)}")
    if task.notes:
        lines.append(f"  Notes: {task.notes}")
    for i, st in enumerate(task.subtasks, start=1):
        lines.append(f"  {i}. [{'x' if st.is_completed else ' '}] {st.title}")
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add [!low|!medium|!high] [@YYYY-MM-DDTHH:MM] title
    """
    try:
        priority, due, title = _split_add_args(args)
    except ValueError:
        return "Bad due date. Use @YYYY-MM-DDTHH:MM."
    task = state.repo.create(title, priority or state.draft_priority, due)
    if task is None:
        return "Usage: /add [!priority] [@due] title"
    state.draft_priority = Priority.MEDIUM
    return f"Added: {task.title}"


def cmd_smart(
    state: AppState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    """
    /smart [!priority] [@due] title -> add with AI breakdown (falls back to a plain add)
    """
    try:
        priority, due, title = _split_add_args(args)
    except ValueError:
        return "Bad due date. Use @YYYY-MM-DDTHH:MM."
    if not title.strip():
        return "Usage: /smart [!priority] [@due] title"

    if emit:
        with contextlib.suppress(Exception):
            emit("[AI] Preparing a work plan...")

    task = smart_add(state, title, priority or state.draft_priority, due)
    if task is None:
        return "An AI request is already running. Try again in a moment."
    state.draft_priority = Priority.MEDIUM
    if task.subtasks:
        return f"Added: {task.title} ({len(task.subtasks)} subtasks, {task.estimated_time or '?'})"
    return f"Added: {task.title}"


def cmd_done(state: AppState, args: list[str]) -> str:
    task = _resolve(state, args)
    if task is None:
        return "Usage: /done <n|id>"
    state.repo.toggle_completion(task.id)
    return f"{task.title}: {task.status.value}"


def cmd_status(state: AppState, args: list[str]) -> str:
    """
    /status <n|id> pending|in_progress|completed
    """
    task = _resolve(state, args)
    if task is None or len(args) < 2:
        return "Usage: /status <n|id> pending|in_progress|completed"
    try:
        status = TaskStatus(args[1].lower())
    except ValueError:
        return "Usage: /status <n|id> pending|in_progress|completed"
    state.repo.set_status(task.id, status)
    return f"{task.title}: {task.status.value}"


def cmd_notes(state: AppState, args: list[str]) -> str:
    task = _resolve(state, args)
    if task is None:
        return "Usage: /notes <n|id> text"
    state.repo.set_notes(task.id, " ".join(args[1:]))
    return f"Notes updated: {task.title}"


def cmd_due(state: AppState, args: list[str]) -> str:
    """
    /due <n|id> YYYY-MM-DD HH:MM -> set due date
    /due <n|id> none            -> clear it
    """
    task = _resolve(state, args)
    if task is None or len(args) < 2:
        return "Usage: /due <n|id> YYYY-MM-DD HH:MM | none"
    raw = " ".join(args[1:])
    if raw.lower() in ("none", "-", "clear"):
        state.repo.set_due_date(task.id, None)
        return f"Due date cleared: {task.title}"
    try:
        due = parse_due(raw)
    except ValueError:
        return "Bad due date. Use YYYY-MM-DD HH:MM."
    state.repo.set_due_date(task.id, due)
    return f"Due {_fmt_ms(due)}: {task.title}"


def cmd_prio(state: AppState, args: list[str]) -> str:
    """
    /prio <n|id>          -> cycle low -> medium -> high
    /prio <n|id> <level>  -> set directly
    """
    task = _resolve(state, args)
    if task is None:
        return "Usage: /prio <n|id> [low|medium|high]"
    if len(args) > 1:
        level = Priority.parse(args[1])
        if level is None:
            return "Usage: /prio <n|id> [low|medium|high]"
        state.repo.set_priority(task.id, level)
    else:
        state.repo.cycle_priority(task.id)
    return f"{task.title}: {task.priority.label(str(getattr(state.settings, 'locale', 'en')))}"


def cmd_draft(state: AppState, args: list[str]) -> str:
    """Priority used by the next /add or /smart."""
    if args:
        level = Priority.parse(args[0])
        if level is None:
            return "Usage: /draft [low|medium|high]"
        state.draft_priority = level
    else:
        state.draft_priority = cycle_draft_priority(state.draft_priority)
    return f"Next task priority: {state.draft_priority.label(str(getattr(state.settings, 'locale', 'en')))}"


def cmd_sub(state: AppState, args: list[str]) -> str:
    task = _resolve(state, args)
    if task is None:
        return "Usage: /sub <n|id> title"
    sub = state.repo.add_subtask(task.id, " ".join(args[1:]))
    if sub is None:
        return "Usage: /sub <n|id> title"
    return f"Subtask added to {task.title}: {sub.title}"


def cmd_subdone(state: AppState, args: list[str]) -> str:
    task = _resolve(state, args)
    if task is None or len(args) < 2 or not args[1].isdigit():
        return "Usage: /subdone <n|id> <subtask n>"
    idx = int(args[1]) - 1
    if not 0 <= idx < len(task.subtasks):
        return f"{task.title} has no subtask {args[1]}."
    sub = task.subtasks[idx]
    state.repo.toggle_subtask(task.id, sub.id)
    return f"{sub.title}: {'done' if sub.is_completed else 'open'} ({progress(task)}%)"


def cmd_del(state: AppState, args: list[str]) -> str:
    task = _resolve(state, args)
    if task is None:
        return "Usage: /del <n|id>"
    state.repo.remove(task.id)
    return f"Deleted: {task.title}"


def cmd_notify(state: AppState, args: list[str]) -> str:
    """
    /notify      -> show permission
    /notify on   -> allow reminders
    /notify off  -> deny reminders
    """
    if not args:
        return f"Notifications: {state.notification_permission.value}. Use /notify on or /notify off."
    arg = args[0].lower()
    if arg in ("on", "1", "true", "yes"):
        set_notification_permission(state, NotificationPermission.GRANTED)
        return "Reminders enabled."
    if arg in ("off", "0", "false", "no"):
        set_notification_permission(state, NotificationPermission.DENIED)
        return "Reminders disabled."
    return "Usage: /notify on or /notify off."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="List tasks: /list [all|pending|completed].", aliases=["ls"])
registry.register("show", cmd_show, help_text="Task details: /show <n>.")
registry.register("add", cmd_add, help_text="Add a task: /add [!priority] [@due] title.")
registry.register("smart", cmd_smart, help_text="Add a task with an AI breakdown: /smart title.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <n>.")
registry.register("status", cmd_status, help_text="Set status: /status <n> pending|in_progress|completed.")
registry.register("notes", cmd_notes, help_text="Edit notes: /notes <n> text.")
registry.register("due", cmd_due, help_text="Set due date: /due <n> YYYY-MM-DD HH:MM | none.")
registry.register("prio", cmd_prio, help_text="Change priority: /prio <n> [low|medium|high].")
registry.register("draft", cmd_draft, help_text="Priority for the next new task: /draft [level].")
registry.register("sub", cmd_sub, help_text="Add a subtask: /sub <n> title.")
registry.register("subdone", cmd_subdone, help_text="Toggle a subtask: /subdone <n> <subtask n>.")
registry.register("del", cmd_del, help_text="Delete a task: /del <n>.", aliases=["rm"])
registry.register("notify", cmd_notify, help_text="Reminders: /notify on | /notify off.")
