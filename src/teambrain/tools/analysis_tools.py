"""
Meeting and Thread Analysis Tools

This module detects meeting-like discussions in a team message stream:
- Temporal clustering of messages separated by long gaps
- Meeting qualification by discussion keywords, participants and density
- Topic derivation from frequent terms
- Decision point and action item extraction
- Thread sentiment classification with conflict detection
"""

from typing import List, Optional

import structlog

from ..config.settings import get_settings
from ..models.analysis_models import (
    ActionItem,
    DecisionPoint,
    MeetingThread,
    SentimentLabel,
    ThreadSentiment,
)
from ..models.data_models import ChatMessage
from ..utils.lexicon import CONFLICT_WORDS, DECISION_WORDS, MEETING_INDICATORS, contains_any
from ..utils.sentiment_scorer import SentimentScorer, get_sentiment_scorer
from .task_tools import TaskExtractor, get_task_extractor

logger = structlog.get_logger(__name__)

DEFAULT_TOPIC = "team discussion"
TOPIC_SAMPLE_SIZE = 5
TOPIC_TERMS = 3
DECISION_CONFIDENCE = 0.8
DECISION_PREVIEW_LENGTH = 100


class MeetingAnalyzer:
    """Finds meeting threads, decisions and action items in message streams"""

    def __init__(
        self,
        extractor: Optional[TaskExtractor] = None,
        scorer: Optional[SentimentScorer] = None,
    ):
        self.settings = get_settings()
        self.extractor = extractor or get_task_extractor()
        self.scorer = scorer or get_sentiment_scorer()

    async def analyze_meetings(self, messages: List[ChatMessage]) -> List[MeetingThread]:
        """Detect meeting threads in a message stream"""
        threads = []
        for cluster in self.cluster_messages(messages):
            if self.is_meeting(cluster):
                threads.append(self._build_thread(cluster))

        logger.info("Meeting analysis complete", messages=len(messages), threads=len(threads))
        return threads

    def cluster_messages(self, messages: List[ChatMessage]) -> List[List[ChatMessage]]:
        """Split a time-sorted stream wherever consecutive messages are too far apart"""
        ordered = sorted(messages, key=lambda m: m.timestamp)
        gap_seconds = self.settings.analytics.meeting_gap_minutes * 60

        clusters: List[List[ChatMessage]] = []
        current: List[ChatMessage] = []
        for message in ordered:
            if current and (message.timestamp - current[-1].timestamp).total_seconds() > gap_seconds:
                clusters.append(current)
                current = []
            current.append(message)
        if current:
            clusters.append(current)
        return clusters

    def is_meeting(self, cluster: List[ChatMessage]) -> bool:
        if len(cluster) < 2:
            return False

        analytics = self.settings.analytics
        if not any(contains_any(message.text, MEETING_INDICATORS) for message in cluster):
            return False
        if len({message.author.id for message in cluster}) < analytics.meeting_min_participants:
            return False
        return self._density(cluster) > analytics.meeting_min_density_per_hour

    @staticmethod
    def _duration_minutes(cluster: List[ChatMessage]) -> float:
        return (cluster[-1].timestamp - cluster[0].timestamp).total_seconds() / 60

    def _density(self, cluster: List[ChatMessage]) -> float:
        """Messages per hour; spans under a minute count as one minute"""
        hours = max(self._duration_minutes(cluster), 1.0) / 60
        return len(cluster) / hours

    def _build_thread(self, cluster: List[ChatMessage]) -> MeetingThread:
        participants = list(dict.fromkeys(message.author.name for message in cluster))
        return MeetingThread(
            id=f"meeting-{cluster[0].id}",
            topic=self._derive_topic(cluster),
            participants=participants,
            start_time=cluster[0].timestamp,
            duration_minutes=round(self._duration_minutes(cluster), 2),
            message_count=len(cluster),
            decisions=self.extract_decisions(cluster),
            action_items=self._extract_action_items(cluster),
            sentiment=self._thread_sentiment(cluster),
        )

    def _derive_topic(self, cluster: List[ChatMessage]) -> str:
        sample = " ".join(message.text for message in cluster[:TOPIC_SAMPLE_SIZE])
        terms = self.extractor.extract_keyphrases(sample, max_keyphrases=TOPIC_TERMS)
        if not terms:
            return DEFAULT_TOPIC
        return ", ".join(term for term, _ in terms)

    def extract_decisions(self, messages: List[ChatMessage]) -> List[DecisionPoint]:
        decisions = []
        for message in messages:
            if not contains_any(message.text, DECISION_WORDS):
                continue
            text = message.text.strip()
            if len(text) > DECISION_PREVIEW_LENGTH:
                text = text[:DECISION_PREVIEW_LENGTH] + "..."
            decisions.append(DecisionPoint(
                description=text,
                decision_maker=message.author.name,
                timestamp=message.timestamp,
                confidence=DECISION_CONFIDENCE,
                message_id=message.id,
            ))
        return decisions

    def _extract_action_items(self, cluster: List[ChatMessage]) -> List[ActionItem]:
        found = []
        for message in cluster:
            found.extend(self.extractor.extract_from_message(message))
        return [
            ActionItem(
                description=task.description,
                priority=task.priority,
                assignee=task.assignee,
                deadline=task.deadline,
            )
            for task in self.extractor.deduplicate(found)
        ]

    def _thread_sentiment(self, cluster: List[ChatMessage]) -> ThreadSentiment:
        result = self.scorer.score(" ".join(message.text for message in cluster))

        conflicted = any(token in CONFLICT_WORDS for token in result.negative)
        if conflicted or result.classification == SentimentLabel.NEGATIVE:
            return ThreadSentiment.TENSE
        if result.classification == SentimentLabel.POSITIVE:
            return ThreadSentiment.PRODUCTIVE
        return ThreadSentiment.NEUTRAL
