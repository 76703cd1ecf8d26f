"""
Models Package

Pydantic models for tasks, subtasks and messages, dataclass results of the
text-analytics cascade, and the unified response returned to callers.
"""

from .data_models import (
    TaskCategory,
    TaskPriority,
    TaskStatus,
    SubTaskStatus,
    ProviderKey,
    AnalysisDepth,
    AnalysisHints,
    SubTask,
    Task,
    MessageAuthor,
    MessageChannel,
    ChatMessage,
    MessageQuery,
    MessageBatch,
    MailItem,
    DocumentItem,
    IssueItem,
    generate_task_id,
)

from .analysis_models import (
    SentimentLabel,
    ItemPriority,
    TaskItemStatus,
    TaskKind,
    Complexity,
    ThreadSentiment,
    RiskType,
    Severity,
    RecommendationType,
    LanguageSegment,
    LanguageDetection,
    EmotionBreakdown,
    ContextualFactors,
    SentimentResult,
    SourceMessageRef,
    TaskItem,
    Entity,
    TemporalExpression,
    DecisionPoint,
    ActionItem,
    MeetingThread,
    RiskFactor,
    Recommendation,
    CommunicationPatterns,
    TeamInsights,
    DeepAnalysisResult,
)

from .response_models import (
    FollowUpTask,
    DeepAnalysisSummary,
    TaskResultData,
    UnifiedTaskResult,
    LegacyChatRequest,
    LegacyChatResponse,
)

__all__ = [
    # Orchestration models
    "TaskCategory",
    "TaskPriority",
    "TaskStatus",
    "SubTaskStatus",
    "ProviderKey",
    "AnalysisDepth",
    "AnalysisHints",
    "SubTask",
    "Task",
    "generate_task_id",

    # Message models
    "MessageAuthor",
    "MessageChannel",
    "ChatMessage",
    "MessageQuery",
    "MessageBatch",
    "MailItem",
    "DocumentItem",
    "IssueItem",

    # Analytics results
    "SentimentLabel",
    "ItemPriority",
    "TaskItemStatus",
    "TaskKind",
    "Complexity",
    "ThreadSentiment",
    "RiskType",
    "Severity",
    "RecommendationType",
    "LanguageSegment",
    "LanguageDetection",
    "EmotionBreakdown",
    "ContextualFactors",
    "SentimentResult",
    "SourceMessageRef",
    "TaskItem",
    "Entity",
    "TemporalExpression",
    "DecisionPoint",
    "ActionItem",
    "MeetingThread",
    "RiskFactor",
    "Recommendation",
    "CommunicationPatterns",
    "TeamInsights",
    "DeepAnalysisResult",

    # Responses
    "FollowUpTask",
    "DeepAnalysisSummary",
    "TaskResultData",
    "UnifiedTaskResult",
    "LegacyChatRequest",
    "LegacyChatResponse",
]
