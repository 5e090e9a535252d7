# src/smart_tasks/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (the AI adapter is optional).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "SMART_TASKS"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    locale: str

    # ---- Local data ----
    data_dir: Path
    tasks_path: Path
    storage_key: str

    # ---- AI / OpenRouter ----
    openrouter_api_key: Optional[str]
    openrouter_base_url: str
    llm_models: List[str]
    extra_headers: Dict[str, str]
    ai_timeout_seconds: float
    ai_connect_timeout_seconds: float

    # ---- Reminders ----
    notifications: str  # default | granted | denied
    reminder_interval_seconds: float
    reminder_window_seconds: float
    reminder_dedupe: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "smart-tasks") or "smart-tasks"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        locale = _env(_k("LOCALE"), "en").strip().lower() or "en"

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/smart_tasks"))
        tasks_path = _env_path(_k("TASKS_PATH"), data_dir / "storage.json")
        storage_key = _env(_k("STORAGE_KEY"), "smart-tasks-data") or "smart-tasks-data"

        openrouter_api_key = _first_env(_k("OPENROUTER_API_KEY"), "OPENROUTER_API_KEY", default=None)
        openrouter_base_url = _env(_k("OPENROUTER_BASE_URL"), "https://openrouter.ai/api/v1")

        http_referer = _env(_k("HTTP_REFERER"), "https://example.com")
        title = _env(_k("APP_TITLE"), app_name)
        extra_headers = {
            "HTTP-Referer": http_referer,
            "X-Title": title,
        }

        llm_models = _env_list(
            _k("LLM_MODELS"),
            [
                "google/gemini-2.5-flash",
                "qwen/qwen-2.5-72b-instruct:free",
            ],
        )

        ai_timeout_seconds = _env_float(_k("AI_TIMEOUT_SECONDS"), 30.0)
        ai_connect_timeout_seconds = _env_float(_k("AI_CONNECT_TIMEOUT_SECONDS"), 5.0)

        notifications = _env(_k("NOTIFICATIONS"), "default").strip().lower() or "default"
        reminder_interval_seconds = _env_float(_k("REMINDER_INTERVAL_SECONDS"), 10.0)
        reminder_window_seconds = _env_float(_k("REMINDER_WINDOW_SECONDS"), 60.0)
        reminder_dedupe = _env_bool(_k("REMINDER_DEDUPE"), False)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            locale=locale,
            data_dir=data_dir,
            tasks_path=tasks_path,
            storage_key=storage_key,
            openrouter_api_key=openrouter_api_key,
            openrouter_base_url=openrouter_base_url,
            llm_models=llm_models,
            extra_headers=extra_headers,
            ai_timeout_seconds=ai_timeout_seconds,
            ai_connect_timeout_seconds=ai_connect_timeout_seconds,
            notifications=notifications,
            reminder_interval_seconds=reminder_interval_seconds,
            reminder_window_seconds=reminder_window_seconds,
            reminder_dedupe=reminder_dedupe,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
