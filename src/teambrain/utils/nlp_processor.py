"""
Natural Language Processing pipeline for team conversations

This module coordinates the text-analytics cascade:
- Single-text analysis (language, sentiment, tasks, entities, time references, keyphrases)
- Deep analysis of a message stream with concurrent sub-analyses
- Sentiment, task extraction, meeting detection and team insights on demand
- One-line human readable summary of each deep analysis
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog

from ..config.settings import get_settings
from ..models.analysis_models import DeepAnalysisResult, ItemPriority, SentimentResult
from ..models.data_models import ChatMessage
from ..tools.analysis_tools import MeetingAnalyzer
from ..tools.task_tools import TaskExtractor
from .analytics_engine import TeamAnalyticsEngine
from .language_detector import LanguageDetector
from .sentiment_scorer import SentimentScorer

logger = structlog.get_logger(__name__)


@dataclass
class AnalysisOptions:
    """Which sub-analyses a deep analysis runs"""
    include_sentiment: bool = True
    include_tasks: bool = True
    include_meetings: bool = True
    include_team_insights: bool = True
    timeframe_days: int = 7

    @classmethod
    def from_params(cls, params: Dict[str, Any]) -> "AnalysisOptions":
        defaults = cls()
        return cls(
            include_sentiment=bool(params.get("include_sentiment", defaults.include_sentiment)),
            include_tasks=bool(params.get("include_tasks", defaults.include_tasks)),
            include_meetings=bool(params.get("include_meetings", defaults.include_meetings)),
            include_team_insights=bool(params.get("include_team_insights", defaults.include_team_insights)),
            timeframe_days=int(params.get("timeframe_days", defaults.timeframe_days)),
        )


def _format_summary(result: DeepAnalysisResult) -> str:
    parts = []
    if result.sentiment is not None:
        parts.append(f"sentiment: {result.sentiment.classification.value} ({result.sentiment.score:+.2f})")
    urgent = sum(1 for task in result.tasks if task.priority == ItemPriority.URGENT)
    parts.append(f"tasks: {len(result.tasks)} ({urgent} urgent)")
    parts.append(f"meetings: {len(result.meetings)} threads")
    if result.team_insights is not None:
        parts.append(f"collaboration score: {result.team_insights.collaboration_score:.0f}/100")
    return " | ".join(parts)


class NLPProcessor:
    """Main NLP processing class for team conversations"""

    def __init__(self):
        self.settings = get_settings()
        self._initialized = False
        self.detector: Optional[LanguageDetector] = None
        self.scorer: Optional[SentimentScorer] = None
        self.extractor: Optional[TaskExtractor] = None
        self.meeting_analyzer: Optional[MeetingAnalyzer] = None
        self.analytics_engine: Optional[TeamAnalyticsEngine] = None

    async def initialize(self):
        """Build the analyzers of the cascade"""
        if self._initialized:
            return

        logger.info("Initializing NLP processor")

        self.detector = LanguageDetector()
        self.scorer = SentimentScorer(detector=self.detector)
        self.extractor = TaskExtractor()
        self.meeting_analyzer = MeetingAnalyzer(extractor=self.extractor, scorer=self.scorer)
        self.analytics_engine = TeamAnalyticsEngine()

        self._initialized = True
        logger.info("NLP processor initialized successfully")

    async def analyze_text(self, text: str, reference_time: Optional[datetime] = None) -> Dict[str, Any]:
        """Perform comprehensive analysis of a single text"""
        if not self._initialized:
            await self.initialize()

        detection = self.detector.detect(text)
        sentiment = await self.scorer.analyze(text)
        tasks = self.extractor.deduplicate(self.extractor.extract_from_text(text, reference_time=reference_time))

        return {
            "language": detection.to_dict(),
            "segments": [segment.to_dict() for segment in self.detector.segment(text)],
            "sentiment": sentiment.to_dict(),
            "tasks": [task.to_dict() for task in tasks],
            "entities": [entity.to_dict() for entity in self.extractor.extract_entities(text)],
            "temporal_expressions": [
                expression.to_dict()
                for expression in self.extractor.extract_temporal_expressions(text, reference_time)
            ],
            "keyphrases": self.extractor.extract_keyphrases(text),
        }

    async def perform_deep_analysis(
        self,
        messages: List[ChatMessage],
        options: Optional[AnalysisOptions] = None,
    ) -> DeepAnalysisResult:
        """Run the enabled sub-analyses over a message stream concurrently"""
        if not self._initialized:
            await self.initialize()

        options = options or AnalysisOptions()
        started = time.perf_counter()

        sentiment, tasks, meetings, insights = await asyncio.gather(
            self._overall_sentiment(messages) if options.include_sentiment else _nothing(),
            self.extractor.extract_tasks(messages) if options.include_tasks else _nothing([]),
            self.meeting_analyzer.analyze_meetings(messages) if options.include_meetings else _nothing([]),
            self.analytics_engine.generate_team_insights(messages) if options.include_team_insights else _nothing(),
        )

        result = DeepAnalysisResult(
            message_count=len(messages),
            sentiment=sentiment,
            tasks=tasks,
            meetings=meetings,
            team_insights=insights,
        )
        result.summary = _format_summary(result)
        result.processing_time_ms = round((time.perf_counter() - started) * 1000, 2)

        logger.info(
            "Deep analysis complete",
            messages=len(messages),
            tasks=len(tasks),
            meetings=len(meetings),
            processing_time_ms=result.processing_time_ms,
        )
        return result

    async def _overall_sentiment(self, messages: List[ChatMessage]) -> Optional[SentimentResult]:
        texts = [message.text for message in messages if message.text.strip()]
        if not texts:
            return None
        return await self.scorer.analyze("\n".join(texts))


async def _nothing(value=None):
    return value


# Global NLP processor instance
_nlp_processor: Optional[NLPProcessor] = None


async def get_nlp_processor() -> NLPProcessor:
    """Get the global NLP processor instance"""
    global _nlp_processor
    if _nlp_processor is None:
        _nlp_processor = NLPProcessor()
        await _nlp_processor.initialize()
    return _nlp_processor
