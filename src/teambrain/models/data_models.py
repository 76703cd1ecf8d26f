"""
Data Models for the Team Brain orchestration server

This module defines Pydantic models for the orchestration core (tasks,
subtasks, intent hints) and for the conversational messages the
text-analytics cascade consumes.
"""

import random
import time
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class TaskCategory(str, Enum):
    """Kinds of user requests the orchestrator understands."""
    CHAT = "chat"
    SEARCH = "search"
    CREATE = "create"
    ANALYZE = "analyze"
    WORKFLOW = "workflow"
    NOTIFICATION = "notification"


class TaskPriority(str, Enum):
    """Priority of an incoming request."""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class TaskStatus(str, Enum):
    """Lifecycle of a task: PENDING -> PLANNING -> EXECUTING -> COMPLETED | FAILED."""
    PENDING = "pending"
    PLANNING = "planning"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


class SubTaskStatus(str, Enum):
    """Lifecycle of a subtask: PENDING -> EXECUTING -> COMPLETED | FAILED."""
    PENDING = "pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


class ProviderKey(str, Enum):
    """Registered capability provider keys."""
    MESSAGING = "messaging"
    MAIL = "mail"
    FILES = "files"
    ISSUES = "issues"
    CORE = "core"


class AnalysisDepth(str, Enum):
    BASIC = "basic"
    DEEP = "deep"
    COMPREHENSIVE = "comprehensive"


TERMINAL_TASK_STATES = (TaskStatus.COMPLETED, TaskStatus.FAILED)


def generate_task_id() -> str:
    """Build a task id of the form ``task-<epoch ms>-<random>``."""
    suffix = "".join(random.choices("abcdefghijklmnopqrstuvwxyz0123456789", k=9))
    return f"task-{int(time.time() * 1000)}-{suffix}"


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to UTC; naive values are taken as UTC wall time."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class AnalysisHints(BaseModel):
    """Hint bundle produced by intent classification."""
    needs_deep_analysis: bool = False
    analysis_depth: AnalysisDepth = AnalysisDepth.DEEP
    task_related: bool = False
    sentiment_related: bool = False
    meeting_related: bool = False
    timeframe_days: int = Field(default=7, ge=1)


class SubTask(BaseModel):
    """One unit of work bound to a capability provider action."""
    id: str
    parent_task_id: str
    provider: ProviderKey
    action: str
    params: Dict[str, Any] = Field(default_factory=dict)
    dependencies: List[str] = Field(default_factory=list)
    status: SubTaskStatus = SubTaskStatus.PENDING
    result: Optional[Any] = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        return self.status == SubTaskStatus.COMPLETED

    def mark_started(self) -> None:
        self.status = SubTaskStatus.EXECUTING
        self.started_at = datetime.now()

    def mark_completed(self, result: Any) -> None:
        self.status = SubTaskStatus.COMPLETED
        self.result = result
        self.completed_at = datetime.now()

    def mark_failed(self, error: str) -> None:
        self.status = SubTaskStatus.FAILED
        self.error = error
        self.completed_at = datetime.now()


class Task(BaseModel):
    """One user request carried from classification to a unified result."""
    id: str = Field(default_factory=generate_task_id)
    category: TaskCategory = TaskCategory.CHAT
    priority: TaskPriority = TaskPriority.NORMAL
    user_input: str
    context_id: str
    user_id: str
    hints: AnalysisHints = Field(default_factory=AnalysisHints)
    subtasks: List[SubTask] = Field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TASK_STATES

    def transition(self, status: TaskStatus) -> None:
        """Move the task to ``status`` and stamp the update time."""
        self.status = status
        self.updated_at = datetime.now()
        if status in TERMINAL_TASK_STATES:
            self.completed_at = self.updated_at

    def get_subtask(self, subtask_id: str) -> Optional[SubTask]:
        for subtask in self.subtasks:
            if subtask.id == subtask_id:
                return subtask
        return None


# Conversational message models
class MessageAuthor(BaseModel):
    id: str
    name: str


class MessageChannel(BaseModel):
    id: str
    name: str


class ChatMessage(BaseModel):
    """A single message from a team conversation source."""
    id: str
    text: str
    author: MessageAuthor
    channel: MessageChannel
    timestamp: datetime

    @field_validator("text", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return "" if v is None else str(v)

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v):
        return to_utc(v)


class MessageQuery(BaseModel):
    """Filters accepted by a message source."""
    limit: int = Field(default=1000, ge=1)
    offset: int = Field(default=0, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    channel: Optional[str] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_bounds(cls, v):
        return to_utc(v)


class MessageBatch(BaseModel):
    """Messages returned by a message source plus the unpaged total."""
    messages: List[ChatMessage] = Field(default_factory=list)
    total_count: int = 0


# Workspace records served by the mail, file and issue providers
class MailItem(BaseModel):
    id: str
    subject: str
    body: str = ""
    sender: str
    recipients: List[str] = Field(default_factory=list)
    timestamp: datetime
    is_draft: bool = False

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v):
        return to_utc(v)


class DocumentItem(BaseModel):
    id: str
    title: str
    content: str = ""
    owner: str
    modified_at: datetime


class IssueItem(BaseModel):
    key: str
    summary: str
    description: str = ""
    status: str = "open"
    priority: str = "medium"
    assignee: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
