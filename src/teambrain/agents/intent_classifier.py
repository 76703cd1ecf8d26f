"""
Intent classification

Maps raw user text to a task category plus the analysis hints the planner
uses. The default strategy is keyword membership over the lists held in
``ClassifierSettings``; any object with a matching ``classify`` method can
replace it.
"""

from typing import Iterable, Optional, Protocol, Tuple

import structlog

from ..config.settings import ClassifierSettings, get_settings
from ..models.data_models import AnalysisDepth, AnalysisHints, TaskCategory

logger = structlog.get_logger(__name__)


class IntentStrategy(Protocol):
    def classify(self, text: str) -> Tuple[TaskCategory, AnalysisHints]:
        ...


def _mentions(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword.lower() in text for keyword in keywords)


class KeywordIntentClassifier:
    """Keyword-membership intent classifier"""

    def __init__(self, settings: Optional[ClassifierSettings] = None):
        self.settings = settings or get_settings().classifier

    def classify(self, text: str) -> Tuple[TaskCategory, AnalysisHints]:
        lowered = (text or "").lower()
        category = self.classify_category(lowered)
        hints = self.analyze_hints(lowered)
        logger.debug(
            "Classified intent",
            category=category.value,
            depth=hints.analysis_depth.value,
            deep=hints.needs_deep_analysis,
            timeframe_days=hints.timeframe_days,
        )
        return category, hints

    def classify_category(self, lowered: str) -> TaskCategory:
        """First rule whose keywords appear wins; CHAT otherwise"""
        for name, keywords in self.settings.category_keywords.items():
            if not _mentions(lowered, keywords):
                continue
            try:
                return TaskCategory(name)
            except ValueError:
                logger.warning("Ignoring unknown category in keyword rules", category=name)
        return TaskCategory.CHAT

    def analyze_hints(self, lowered: str) -> AnalysisHints:
        if _mentions(lowered, self.settings.deep_analysis_keywords):
            depth = AnalysisDepth.COMPREHENSIVE
        elif _mentions(lowered, self.settings.basic_analysis_keywords):
            depth = AnalysisDepth.BASIC
        else:
            depth = AnalysisDepth.DEEP

        return AnalysisHints(
            needs_deep_analysis=(
                depth == AnalysisDepth.COMPREHENSIVE
                or _mentions(lowered, self.settings.analysis_trigger_keywords)
            ),
            analysis_depth=depth,
            task_related=_mentions(lowered, self.settings.task_keywords),
            sentiment_related=_mentions(lowered, self.settings.sentiment_keywords),
            meeting_related=_mentions(lowered, self.settings.meeting_keywords),
            timeframe_days=self.resolve_timeframe(lowered),
        )

    def resolve_timeframe(self, lowered: str) -> int:
        for keyword, days in self.settings.timeframe_keywords.items():
            if keyword.lower() in lowered:
                return days
        return self.settings.default_timeframe_days
