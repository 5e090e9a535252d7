# src/smart_tasks/llm/offline.py

from __future__ import annotations

import logging

from ..tasks.task_models import AIAnalysisResult

logger = logging.getLogger(__name__)


class OfflineTaskAnalyzer:
    """
    Analyzer used when no external AI is configured.

    Always reports "unavailable", so smart-add behaves like a plain add.
    """

    def analyze_task(self, title: str) -> AIAnalysisResult | None:
        logger.debug("AI offline: no analysis for %r", title)
        return None
