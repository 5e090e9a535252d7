# src/smart_tasks/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (loading tasks from disk), starts the
reminder scanner when notifications are allowed, then runs the console REPL.
"""

from __future__ import annotations

import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..tasks.task_api import start_reminders, stop_reminders

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)

    if start_reminders(state):
        logger.info("Reminders active.")
    else:
        logger.info("Reminders off (notifications=%s). Use /notify on.", state.notification_permission.value)

    try:
        run_console_loop(state)
    finally:
        stop_reminders(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
