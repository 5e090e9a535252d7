# src/smart_tasks/llm/client.py

from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, List, Optional

import httpx
import openai
from openai import OpenAI

from ..tasks.task_models import AIAnalysisResult

logger = logging.getLogger(__name__)

_BAD_MODELS: dict[str, float] = {}  # model -> retry_at (monotonic)

_LANGUAGES = {"en": "English", "he": "Hebrew"}

TASK_ANALYZER_SYSTEM_PROMPT = """
You are a productivity expert assistant helping a user organize their tasks.

Given a task title:
1. Break it down into 3-5 concrete, actionable subtasks.
2. Estimate the priority (low, medium, high) based on implied urgency or general complexity.
3. Estimate the time required (e.g. "30 minutes", "2 hours", "a few days").
4. Write a short, encouraging description.

Write subtasks, time estimate and description in {language}.

Output format:
Return STRICT JSON only. No extra text. No Markdown.
{{"subtasks": ["..."], "priority": "low|medium|high", "estimatedTime": "...", "refinedDescription": "..."}}
""".strip()


def _is_auth_error(exc: Exception) -> bool:
    return exc.__class__.__name__ in {
        "AuthenticationError",
        "PermissionDeniedError",
        "UnauthorizedError",
    }


def _is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    return exc.__class__.__name__ in {"RateLimitError", "TooManyRequestsError"}


def _is_connection_error(exc: Exception) -> bool:
    return exc.__class__.__name__ in {
        "APIConnectionError",
        "APITimeoutError",
        "Timeout",
        "ConnectTimeout",
        "ReadTimeout",
        "WriteTimeout",
    }


def _is_not_found_error(exc: Exception) -> bool:
    return exc.__class__.__name__ in {"NotFoundError"}


def _extract_json_object(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("{") and raw.endswith("}"):
        return raw
    first = raw.find("{")
    last = raw.rfind("}")
    if first != -1 and last != -1 and last > first:
        return raw[first : last + 1]
    return raw


def parse_analysis(raw: str | None) -> AIAnalysisResult | None:
    """
    Validate a model response against the analysis schema.

    Required: subtasks (list of strings), priority, estimatedTime,
    refinedDescription (strings). Anything else -> None.
    """
    if not raw or not raw.strip():
        return None
    try:
        data = json.loads(_extract_json_object(raw))
    except ValueError:
        logger.info("AI: response is not valid JSON")
        return None
    if not isinstance(data, dict):
        return None

    subtasks = data.get("subtasks")
    if not isinstance(subtasks, list) or not all(isinstance(s, str) for s in subtasks):
        logger.info("AI: response has no valid subtasks list")
        return None

    fields: dict[str, str] = {}
    for key in ("priority", "estimatedTime", "refinedDescription"):
        value = data.get(key)
        if not isinstance(value, str):
            logger.info("AI: response field %s missing or not a string", key)
            return None
        fields[key] = value.strip()

    return AIAnalysisResult(
        subtasks=tuple(s.strip() for s in subtasks if s.strip()),
        priority=fields["priority"].lower(),
        estimated_time=fields["estimatedTime"],
        refined_description=fields["refinedDescription"],
    )


class OpenRouterTaskAnalyzer:
    """
    Task analyzer backed by an OpenAI-compatible chat completion API (OpenRouter by default).

    - Models are tried in configured order; 404 models are parked for an hour.
    - Rate limits and network/timeout errors move on to the next model.
    - Auth errors stop immediately.
    - The client has retries disabled and a bounded timeout, so a call never
      blocks indefinitely.

    analyze_task() never raises: every failure means "unavailable" (None).
    """

    def __init__(self, settings: Any, *, client: Any | None = None) -> None:
        api_key = getattr(settings, "openrouter_api_key", None)
        base_url = getattr(settings, "openrouter_base_url", "") or ""

        self._models: List[str] = [m.strip() for m in (getattr(settings, "llm_models", []) or []) if m.strip()]
        self._headers: Dict[str, str] = dict(getattr(settings, "extra_headers", {}) or {})
        self._language = _LANGUAGES.get(str(getattr(settings, "locale", "en")), "English")

        read_s = float(getattr(settings, "ai_timeout_seconds", 30.0))
        connect_s = float(getattr(settings, "ai_connect_timeout_seconds", 5.0))
        self._timeout = httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s)

        if not self._models:
            raise RuntimeError("LLM model list is empty. Set SMART_TASKS_LLM_MODELS in your .env.")

        if client is not None:
            self._client = client
            return

        if not api_key or not str(api_key).strip():
            raise RuntimeError("LLM API key is not set. Set SMART_TASKS_OPENROUTER_API_KEY in your .env.")
        if not base_url.strip():
            raise RuntimeError("LLM base URL is not set. Set SMART_TASKS_OPENROUTER_BASE_URL in your .env.")

        self._client = OpenAI(
            base_url=str(base_url),
            api_key=str(api_key),
            timeout=self._timeout,
            max_retries=0,
        )

    def _complete(self, model: str, title: str) -> str | None:
        resp = self._client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": TASK_ANALYZER_SYSTEM_PROMPT.format(language=self._language)},
                {"role": "user", "content": f'Task title: "{title}"'},
            ],
            response_format={"type": "json_object"},
            extra_headers=self._headers or None,
            timeout=self._timeout,
        )
        try:
            return resp.choices[0].message.content
        except (AttributeError, IndexError):
            return None

    def analyze_task(self, title: str) -> AIAnalysisResult | None:
        title = (title or "").strip()
        if not title:
            return None

        now = time.monotonic()
        last_error: Optional[Exception] = None

        for model in self._models:
            retry_at = _BAD_MODELS.get(model)
            if retry_at is not None and retry_at > now:
                continue

            logger.info("AI: analyzing with model=%s", model)
            t0 = time.monotonic()
            try:
                raw = self._complete(model, title)
            except Exception as e:
                last_error = e

                if _is_auth_error(e):
                    logger.warning("AI: authentication failed; check SMART_TASKS_OPENROUTER_API_KEY")
                    return None

                if _is_not_found_error(e):
                    _BAD_MODELS[model] = time.monotonic() + 3600.0
                    logger.info("AI: model not available (404): %s", model)
                    continue

                if _is_rate_limit_error(e):
                    logger.info("AI: rate-limited on model=%s, trying next", model)
                    continue

                if _is_connection_error(e):
                    logger.info("AI: network/timeout error on model=%s, trying next", model)
                    continue

                logger.info("AI: error on model=%s (%s), trying next", model, e.__class__.__name__)
                continue

            result = parse_analysis(raw)
            if result is not None:
                logger.info(
                    "AI: model=%s returned %d subtasks (%.2fs)",
                    model,
                    len(result.subtasks),
                    time.monotonic() - t0,
                )
                return result

            logger.info("AI: malformed response from model=%s, trying next", model)

        if last_error is not None:
            logger.warning("AI: unavailable (%s)", last_error.__class__.__name__)
        else:
            logger.warning("AI: unavailable (no usable response)")
        return None
