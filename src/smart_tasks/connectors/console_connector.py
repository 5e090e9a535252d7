# src/smart_tasks/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
import threading
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleNotifier:
    """Notifier that prints reminders to the terminal (called from the reminder thread)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def notify(self, title: str, body: str) -> None:
        with self._lock:
            # Start on a fresh line, the REPL prompt may be waiting for input.
            sys.stdout.write("\n")
            _print_ts(f"[!] {title} - {body}")


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (tasks=%d).", len(state.repo))
    _print_ts("[CONSOLE] Type a task to add it. Use /help for commands. Use /exit to quit.\n")
    _print_ts(command_registry.handle(state, "/list") or "")

    def emit(text: str) -> None:
        _print_ts(text)

    while True:
        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        # Plain text is a quick add with the draft priority.
        line = user_input if user_input.startswith("/") else f"/add {user_input}"

        try:
            response = command_registry.handle(state, line, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response:
            _print_ts(response)

    logger.info("Console connector finished.")
