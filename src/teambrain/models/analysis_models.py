"""
Result types produced by the text-analytics cascade.

These are plain dataclasses: each analysis call builds fresh instances and
never mutates them afterwards. ``to_dict`` renders them for provider
payloads.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class SentimentLabel(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class ItemPriority(str, Enum):
    """Priority tiers for extracted action items, lowest first."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    ItemPriority.LOW: 0,
    ItemPriority.MEDIUM: 1,
    ItemPriority.HIGH: 2,
    ItemPriority.URGENT: 3,
}


class TaskItemStatus(str, Enum):
    MENTIONED = "mentioned"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"


class TaskKind(str, Enum):
    ACTION = "action"
    DECISION = "decision"
    FOLLOW_UP = "follow_up"
    REMINDER = "reminder"
    QUESTION = "question"


class Complexity(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class ThreadSentiment(str, Enum):
    PRODUCTIVE = "productive"
    NEUTRAL = "neutral"
    TENSE = "tense"


class RiskType(str, Enum):
    STRESS = "stress"
    CONFUSION = "confusion"
    CONFLICT = "conflict"
    WORKLOAD = "workload"
    DEADLINE = "deadline"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecommendationType(str, Enum):
    PROCESS = "process"
    COMMUNICATION = "communication"
    MANAGEMENT = "management"
    TECHNICAL = "technical"


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value


class _Serializable:
    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))


@dataclass
class LanguageSegment(_Serializable):
    """A homogeneous-language span of a parent string."""
    text: str
    language: str
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass
class LanguageDetection(_Serializable):
    language: str  # 'zh', 'en' or 'mixed'
    confidence: float
    ideographic_ratio: float
    alphabetic_ratio: float
    statistical_guess: Optional[str] = None


@dataclass
class EmotionBreakdown(_Serializable):
    joy: float = 0.0
    anger: float = 0.0
    fear: float = 0.0
    sadness: float = 0.0
    surprise: float = 0.0


@dataclass
class ContextualFactors(_Serializable):
    has_negation: bool = False
    intensifiers: List[str] = field(default_factory=list)
    emoticons: List[str] = field(default_factory=list)


@dataclass
class SentimentResult(_Serializable):
    """Sentiment of one text, possibly blended across language segments."""
    score: float
    comparative: float
    positive: List[str]
    negative: List[str]
    classification: SentimentLabel
    confidence: float
    emotions: EmotionBreakdown = field(default_factory=EmotionBreakdown)
    context: ContextualFactors = field(default_factory=ContextualFactors)
    language: str = "en"
    token_count: int = 0


@dataclass
class SourceMessageRef(_Serializable):
    message_id: str
    author: str
    channel: str
    timestamp: datetime


@dataclass
class TaskItem(_Serializable):
    """An action item extracted from a message."""
    id: str
    description: str
    priority: ItemPriority
    confidence: float
    task_type: TaskKind = TaskKind.ACTION
    complexity: Complexity = Complexity.SIMPLE
    assignee: Optional[str] = None
    deadline: Optional[date] = None
    status: TaskItemStatus = TaskItemStatus.MENTIONED
    urgency_indicators: List[str] = field(default_factory=list)
    time_indicators: List[str] = field(default_factory=list)
    stakeholders: List[str] = field(default_factory=list)
    source: Optional[SourceMessageRef] = None


@dataclass
class Entity(_Serializable):
    text: str
    label: str
    start: int
    end: int
    confidence: float


@dataclass
class TemporalExpression(_Serializable):
    text: str
    start: int
    end: int
    resolved_date: Optional[date] = None


@dataclass
class DecisionPoint(_Serializable):
    description: str
    decision_maker: str
    timestamp: datetime
    confidence: float
    message_id: str


@dataclass
class ActionItem(_Serializable):
    description: str
    priority: ItemPriority
    assignee: Optional[str] = None
    deadline: Optional[date] = None


@dataclass
class MeetingThread(_Serializable):
    id: str
    topic: str
    participants: List[str]
    start_time: datetime
    duration_minutes: float
    message_count: int
    decisions: List[DecisionPoint] = field(default_factory=list)
    action_items: List[ActionItem] = field(default_factory=list)
    sentiment: ThreadSentiment = ThreadSentiment.NEUTRAL


@dataclass
class RiskFactor(_Serializable):
    type: RiskType
    severity: Severity
    description: str
    affected_users: List[str] = field(default_factory=list)
    evidence: List[str] = field(default_factory=list)


@dataclass
class Recommendation(_Serializable):
    type: RecommendationType
    priority: Severity
    title: str
    description: str
    action_steps: List[str] = field(default_factory=list)


@dataclass
class CommunicationPatterns(_Serializable):
    average_response_time_minutes: float = 0.0
    average_thread_depth: float = 0.0
    cross_channel_activity: int = 0
    messages_per_day: Dict[str, int] = field(default_factory=dict)
    peak_hours: List[int] = field(default_factory=list)
    most_active_channels: List[str] = field(default_factory=list)
    most_active_users: List[str] = field(default_factory=list)


@dataclass
class TeamInsights(_Serializable):
    collaboration_score: float
    communication: CommunicationPatterns
    participant_count: int = 0
    risk_factors: List[RiskFactor] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)


@dataclass
class DeepAnalysisResult(_Serializable):
    """Combined output of one pass of the analytics cascade."""
    message_count: int
    sentiment: Optional[SentimentResult] = None
    tasks: List[TaskItem] = field(default_factory=list)
    meetings: List[MeetingThread] = field(default_factory=list)
    team_insights: Optional[TeamInsights] = None
    summary: str = ""
    processing_time_ms: float = 0.0
    generated_at: datetime = field(default_factory=datetime.now)
