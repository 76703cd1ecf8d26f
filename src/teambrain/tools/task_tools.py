"""
Task and Entity Extraction Tools

This module turns conversational messages into structured work items:
- Pattern-based action item extraction for English and Chinese
- Task type, complexity, stakeholder and assignee detection
- Point-based priority scoring and confidence estimation
- Deadline resolution from relative and explicit dates
- Near-duplicate merging by positional character similarity
- Entity, temporal expression and keyphrase extraction
"""

import hashlib
import re
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

import jieba
import structlog
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

from ..config.settings import get_settings
from ..models.analysis_models import (
    Complexity,
    Entity,
    ItemPriority,
    SourceMessageRef,
    TaskItem,
    TaskItemStatus,
    TaskKind,
    TemporalExpression,
)
from ..models.data_models import ChatMessage
from ..utils.lexicon import (
    ACTION_VERBS,
    CHINESE_DATE_PATTERN,
    CHINESE_OWNER_PATTERN,
    CHINESE_STOPWORDS,
    CHINESE_TASK_PATTERNS,
    COMPLEXITY_KEYWORDS,
    CRITICAL_URGENCY,
    DESCRIPTION_PUNCTUATION,
    ENGLISH_TASK_PATTERNS,
    ENTITY_PATTERNS,
    MENTION_PATTERN,
    NEXT_DAY_PATTERN,
    ORG_SUFFIX_PATTERN,
    ROLE_WORDS,
    SAME_DAY_PATTERN,
    SPECIFIC_DATE_PATTERN,
    TASK_TYPE_KEYWORDS,
    THIS_WEEK_PATTERN,
    TIME_PATTERNS,
    URGENCY_PATTERNS,
    count_pattern_hits,
    is_ideographic,
)

logger = structlog.get_logger(__name__)

MIN_DESCRIPTION_LENGTH = 5


@dataclass(frozen=True)
class PriorityThresholds:
    """Point values and tier cut-offs for action item priority"""
    baseline: int = 2
    critical_bonus: int = 2
    same_day_bonus: int = 2
    next_day_bonus: int = 1
    decision_bonus: int = 1
    urgent_at: int = 5
    high_at: int = 4
    medium_at: int = 2

    def tier(self, points: int) -> ItemPriority:
        if points >= self.urgent_at:
            return ItemPriority.URGENT
        if points >= self.high_at:
            return ItemPriority.HIGH
        if points >= self.medium_at:
            return ItemPriority.MEDIUM
        return ItemPriority.LOW


def keyword_in(text: str, keyword: str) -> bool:
    """Whole-word match for ASCII keywords, substring match otherwise"""
    if keyword.isascii():
        return re.search(rf"(?<![\w]){re.escape(keyword)}(?![\w])", text, re.IGNORECASE) is not None
    return keyword in text


def positional_similarity(first: str, second: str) -> float:
    """Share of positions holding the same character, over the longer length"""
    longest = max(len(first), len(second))
    if longest == 0:
        return 1.0
    matches = sum(1 for a, b in zip(first, second) if a == b)
    return matches / longest


class TaskExtractor:
    """Main engine for action item and entity extraction"""

    def __init__(self, thresholds: Optional[PriorityThresholds] = None, similarity_threshold: Optional[float] = None):
        self.settings = get_settings()
        self.thresholds = thresholds or PriorityThresholds()
        self.similarity_threshold = (
            similarity_threshold
            if similarity_threshold is not None
            else self.settings.analytics.dedup_similarity_threshold
        )
        self._task_patterns = list(ENGLISH_TASK_PATTERNS) + list(CHINESE_TASK_PATTERNS)

    async def extract_tasks(self, messages: List[ChatMessage]) -> List[TaskItem]:
        """Extract, deduplicate and rank action items across messages"""
        extracted: List[TaskItem] = []
        for message in messages:
            extracted.extend(self.extract_from_message(message))

        tasks = self.deduplicate(extracted)
        logger.info("Extracted tasks", messages=len(messages), raw=len(extracted), unique=len(tasks))
        return tasks

    def extract_from_message(self, message: ChatMessage) -> List[TaskItem]:
        source = SourceMessageRef(
            message_id=message.id,
            author=message.author.name,
            channel=message.channel.name,
            timestamp=message.timestamp,
        )
        return self.extract_from_text(message.text, source=source, author=message.author.name)

    def extract_from_text(
        self,
        text: str,
        source: Optional[SourceMessageRef] = None,
        author: Optional[str] = None,
        reference_time: Optional[datetime] = None,
    ) -> List[TaskItem]:
        """Run every extraction pattern over one message text"""
        if not text:
            return []

        reference = reference_time or (source.timestamp if source else datetime.now())

        # Signals scanned over the whole message, shared by all matches
        urgency = count_pattern_hits(text, URGENCY_PATTERNS)
        time_indicators = count_pattern_hits(text, TIME_PATTERNS)
        stakeholders = self._extract_stakeholders(text, author)
        assignee = self._extract_assignee(text)
        deadline = self._resolve_deadline(text, reference)

        tasks = []
        for pattern in self._task_patterns:
            for match in pattern.finditer(text):
                description = self.clean_description(match.group(1))
                if len(description) < MIN_DESCRIPTION_LENGTH:
                    continue

                task_type = self._classify_task_type(description)
                priority = self._score_priority(urgency, time_indicators, task_type)
                digest = hashlib.md5(description.encode("utf-8")).hexdigest()[:8]
                source_key = source.message_id if source else "text"

                tasks.append(TaskItem(
                    id=f"task-{source_key}-{digest}",
                    description=description,
                    priority=priority,
                    confidence=self._score_confidence(description, stakeholders, time_indicators, urgency),
                    task_type=task_type,
                    complexity=self._classify_complexity(description),
                    assignee=assignee,
                    deadline=deadline,
                    status=TaskItemStatus.ASSIGNED if assignee else TaskItemStatus.MENTIONED,
                    urgency_indicators=list(urgency),
                    time_indicators=list(time_indicators),
                    stakeholders=list(stakeholders),
                    source=source,
                ))

        return tasks

    @staticmethod
    def clean_description(raw: str) -> str:
        cleaned = DESCRIPTION_PUNCTUATION.sub(" ", raw)
        return re.sub(r"\s+", " ", cleaned).strip()

    def _classify_task_type(self, description: str) -> TaskKind:
        for kind, keywords in TASK_TYPE_KEYWORDS.items():
            if any(keyword_in(description, keyword) for keyword in keywords):
                return TaskKind(kind)
        return TaskKind.ACTION

    def _classify_complexity(self, description: str) -> Complexity:
        for tier in ("complex", "moderate", "simple"):
            if any(keyword_in(description, keyword) for keyword in COMPLEXITY_KEYWORDS[tier]):
                return Complexity(tier)

        token_count = len(self._word_tokens(description))
        if len(description) > 100 or token_count > 20:
            return Complexity.COMPLEX
        if len(description) > 50 or token_count > 10:
            return Complexity.MODERATE
        return Complexity.SIMPLE

    def _score_priority(self, urgency: List[str], time_indicators: List[str], task_type: TaskKind) -> ItemPriority:
        points = self.thresholds.baseline + len(urgency)
        if any(CRITICAL_URGENCY.search(indicator) for indicator in urgency):
            points += self.thresholds.critical_bonus
        if any(SAME_DAY_PATTERN.search(indicator) for indicator in time_indicators):
            points += self.thresholds.same_day_bonus
        elif any(NEXT_DAY_PATTERN.search(indicator) for indicator in time_indicators):
            points += self.thresholds.next_day_bonus
        if task_type == TaskKind.DECISION:
            points += self.thresholds.decision_bonus
        return self.thresholds.tier(points)

    def _score_confidence(
        self,
        description: str,
        stakeholders: List[str],
        time_indicators: List[str],
        urgency: List[str],
    ) -> float:
        confidence = 0.5
        if 10 < len(description) < 200:
            confidence += 0.2
        if any(keyword_in(description, verb) for verb in ACTION_VERBS):
            confidence += 0.2
        if stakeholders:
            confidence += 0.1
        if time_indicators:
            confidence += 0.1
        if urgency:
            confidence += 0.1
        return round(min(confidence, 0.95), 4)

    def _extract_stakeholders(self, text: str, author: Optional[str]) -> List[str]:
        stakeholders = [match.group(1) for match in MENTION_PATTERN.finditer(text)]
        if author:
            stakeholders.append(author)
        stakeholders.extend(role for role in ROLE_WORDS if keyword_in(text, role))
        return list(dict.fromkeys(stakeholders))

    def _extract_assignee(self, text: str) -> Optional[str]:
        mentions = list(dict.fromkeys(match.group(1) for match in MENTION_PATTERN.finditer(text)))
        if len(mentions) == 1:
            return mentions[0]
        owner = CHINESE_OWNER_PATTERN.search(text)
        if owner:
            return owner.group(1)
        return None

    def _resolve_deadline(self, text: str, reference: datetime) -> Optional[date]:
        explicit = SPECIFIC_DATE_PATTERN.search(text)
        if explicit:
            try:
                return date(int(explicit.group(1)), int(explicit.group(2)), int(explicit.group(3)))
            except ValueError:
                logger.debug("Ignoring invalid date", text=explicit.group(0))

        chinese = CHINESE_DATE_PATTERN.search(text)
        if chinese:
            try:
                return date(reference.year, int(chinese.group(1)), int(chinese.group(2)))
            except ValueError:
                logger.debug("Ignoring invalid date", text=chinese.group(0))

        return self._resolve_relative(text, reference)

    @staticmethod
    def _resolve_relative(text: str, reference: datetime) -> Optional[date]:
        today = reference.date()
        if re.search(r"今天|today|tonight|\beod\b|end of (?:the )?day", text, re.IGNORECASE):
            return today
        if NEXT_DAY_PATTERN.search(text):
            return today + timedelta(days=1)
        if "后天" in text:
            return today + timedelta(days=2)
        if THIS_WEEK_PATTERN.search(text):
            return today + timedelta(days=6 - today.weekday())
        return None

    def deduplicate(self, tasks: List[TaskItem]) -> List[TaskItem]:
        """Merge items whose descriptions are near-identical, then rank them"""
        survivors: List[TaskItem] = []
        for task in tasks:
            for index, kept in enumerate(survivors):
                if positional_similarity(task.description, kept.description) > self.similarity_threshold:
                    if task.confidence > kept.confidence:
                        survivors[index] = task
                    break
            else:
                survivors.append(task)

        return sorted(survivors, key=lambda t: (t.priority.rank, t.confidence), reverse=True)

    # Entities, temporal expressions and keyphrases

    def extract_entities(self, text: str) -> List[Entity]:
        """Extract contact details, mentions and organisations"""
        entities: List[Entity] = []
        taken: List[Tuple[int, int]] = []

        def overlaps(start: int, end: int) -> bool:
            return any(start < t_end and end > t_start for t_start, t_end in taken)

        for label, pattern, confidence in ENTITY_PATTERNS:
            for match in pattern.finditer(text):
                if overlaps(match.start(), match.end()):
                    continue
                entities.append(Entity(match.group(0), label, match.start(), match.end(), confidence))
                taken.append((match.start(), match.end()))

        for match in MENTION_PATTERN.finditer(text):
            if not overlaps(match.start(), match.end()):
                entities.append(Entity(match.group(1), "PERSON", match.start(), match.end(), 0.8))
                taken.append((match.start(), match.end()))

        for match in ORG_SUFFIX_PATTERN.finditer(text):
            if not overlaps(match.start(), match.end()):
                entities.append(Entity(match.group(0), "ORG", match.start(), match.end(), 0.7))

        return sorted(entities, key=lambda e: e.start)

    def extract_temporal_expressions(
        self, text: str, reference_time: Optional[datetime] = None
    ) -> List[TemporalExpression]:
        reference = reference_time or datetime.now()
        found: Dict[int, TemporalExpression] = {}
        for pattern in TIME_PATTERNS:
            for match in pattern.finditer(text):
                if match.start() in found:
                    continue
                phrase = match.group(0)
                found[match.start()] = TemporalExpression(
                    text=phrase,
                    start=match.start(),
                    end=match.end(),
                    resolved_date=self._resolve_deadline(phrase, reference),
                )
        return [found[start] for start in sorted(found)]

    def extract_keyphrases(self, text: str, max_keyphrases: int = 10) -> List[Tuple[str, float]]:
        """Rank content words by normalized frequency"""
        tokens = [
            token for token in self._word_tokens(text.lower())
            if token not in ENGLISH_STOP_WORDS and token not in CHINESE_STOPWORDS
            and (len(token) > 2 or (len(token) >= 2 and is_ideographic(token[0])))
        ]
        if not tokens:
            return []

        frequencies = Counter(tokens)
        top = frequencies.most_common(1)[0][1]
        return [(word, count / top) for word, count in frequencies.most_common(max_keyphrases)]

    @staticmethod
    def _word_tokens(text: str) -> List[str]:
        return [t for t in jieba.lcut(text) if t.strip() and any(c.isalnum() for c in t)]


# Global extractor instance
_task_extractor: Optional[TaskExtractor] = None


def get_task_extractor() -> TaskExtractor:
    """Get the global task extractor"""
    global _task_extractor
    if _task_extractor is None:
        _task_extractor = TaskExtractor()
    return _task_extractor
