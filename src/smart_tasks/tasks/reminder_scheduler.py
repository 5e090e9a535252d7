# src/smart_tasks/tasks/reminder_scheduler.py

from __future__ import annotations

"""
Reminder scanner.

A small polling loop that:
- takes a snapshot of the task collection,
- picks tasks whose due time was reached within the reminder window,
- emits one notification per such task through an injected notifier.

The scanner never mutates tasks. It keeps no "already notified" memory unless
dedupe is enabled, so a task can be announced on every tick that falls inside
its window.
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass

from ..core.ports import Clock, Notifier, TaskSource
from .task_models import Task, TaskStatus, notice_text
from .task_repo import now_ms

logger = logging.getLogger(__name__)

REMINDER_BODY = notice_text("reminder_body")


@dataclass(slots=True, frozen=True)
class Reminder:
    task_id: str
    title: str
    body: str


def build_reminder(task: Task, locale: str = "en") -> Reminder:
    return Reminder(
        task_id=task.id,
        title=notice_text("reminder_title", locale, title=task.title),
        body=notice_text("reminder_body", locale),
    )


def due_for_reminder(tasks: Iterable[Task], *, now: int, window_ms: int) -> list[Task]:
    """Open tasks whose due time is in [now - window, now]."""
    out: list[Task] = []
    for task in tasks:
        if task.status == TaskStatus.COMPLETED or task.due_date is None:
            continue
        elapsed = now - task.due_date
        if 0 <= elapsed < window_ms:
            out.append(task)
    return out


def scan_once(
    source: TaskSource,
    notifier: Notifier,
    *,
    now: int,
    window_ms: int,
    notified: set[tuple[str, int]] | None = None,
    locale: str = "en",
) -> list[Reminder]:
    """
    One scanner tick. Returns the reminders that were emitted.

    `notified`, when given, records (task id, due date) pairs and suppresses
    repeats for the same due time.
    """
    try:
        tasks = source.snapshot()
    except Exception:
        logger.exception("snapshot failed")
        return []

    sent: list[Reminder] = []
    for task in due_for_reminder(tasks, now=now, window_ms=window_ms):
        if notified is not None:
            key = (task.id, int(task.due_date or 0))
            if key in notified:
                continue
            notified.add(key)

        reminder = build_reminder(task, locale)
        try:
            notifier.notify(reminder.title, reminder.body)
        except Exception:
            logger.exception("notify failed task_id=%s", task.id)
            continue
        logger.info("Reminder emitted task_id=%s", task.id)
        sent.append(reminder)
    return sent


async def run_reminder_scanner(
        source: TaskSource,
        notifier: Notifier,
        *,
        interval_seconds: float = 10.0,
        window_seconds: float = 60.0,
        clock: Clock | None = None,
        dedupe: bool = False,
        locale: str = "en",
) -> None:
    """
    Simple polling loop.

    Every interval_seconds, emit a reminder for each open task whose
    due time falls within the last window_seconds.

    To stop the scanner, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))
    window_ms = int(float(window_seconds) * 1000)
    get_now = clock or now_ms
    notified: set[tuple[str, int]] | None = set() if dedupe else None

    logger.info(
        "Reminder scanner started (interval=%.1fs window=%.1fs dedupe=%s)",
        sleep_s,
        window_seconds,
        dedupe,
    )
    while True:
        scan_once(source, notifier, now=get_now(), window_ms=window_ms, notified=notified, locale=locale)
        await asyncio.sleep(sleep_s)


@dataclass
class ReminderRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal reminder stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)

    def is_alive(self) -> bool:
        return self.thread.is_alive()


async def _run_until_stopped(stop_event: asyncio.Event, **scanner_kwargs) -> None:
    scanner = asyncio.create_task(run_reminder_scanner(**scanner_kwargs))
    try:
        await stop_event.wait()
    finally:
        scanner.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await scanner
    logger.info("Reminder scanner stopped.")


def start_reminders_in_background(
    source: TaskSource,
    notifier: Notifier,
    settings,
    *,
    clock: Clock | None = None,
) -> ReminderRunner | None:
    """
    Run the reminder scanner on its own event loop in a daemon thread,
    so the blocking console REPL can run in parallel.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(
                _run_until_stopped(
                    stop_event,
                    source=source,
                    notifier=notifier,
                    interval_seconds=float(getattr(settings, "reminder_interval_seconds", 10.0)),
                    window_seconds=float(getattr(settings, "reminder_window_seconds", 60.0)),
                    clock=clock,
                    dedupe=bool(getattr(settings, "reminder_dedupe", False)),
                    locale=str(getattr(settings, "locale", "en") or "en"),
                )
            )
        finally:
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="reminder-scanner", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Reminder thread did not initialize properly.")
        return None

    logger.info("Reminder background thread started.")
    return ReminderRunner(thread=t, loop=loop, stop_event=stop_event)
