"""
Response Models for the Team Brain orchestration server

This module defines the unified result returned to callers of the
orchestrator and the legacy single-call chat contract kept for
compatibility.
"""

from datetime import datetime
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field

from .data_models import TaskCategory, TaskPriority


class FollowUpTask(BaseModel):
    """A task the caller may want to issue next."""
    category: TaskCategory
    description: str
    priority: TaskPriority = TaskPriority.NORMAL
    payload: Dict[str, Any] = Field(default_factory=dict)


class DeepAnalysisSummary(BaseModel):
    """Cross-cutting signals lifted out of analytics payloads."""
    insights: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    key_metrics: Dict[str, float] = Field(default_factory=dict)


class TaskResultData(BaseModel):
    task_type: TaskCategory
    user_query: str
    basic_results: List[Any] = Field(default_factory=list)
    deep_analysis: Optional[DeepAnalysisSummary] = None
    content: Dict[str, Any] = Field(default_factory=dict)


class UnifiedTaskResult(BaseModel):
    """Result of one orchestrated task."""
    success: bool
    task_id: str
    data: TaskResultData
    summary: str
    recommendations: List[str] = Field(default_factory=list)
    follow_up_tasks: List[FollowUpTask] = Field(default_factory=list)
    subtask_count: int = 0
    failed_subtasks: List[str] = Field(default_factory=list)
    processing_time_ms: Optional[float] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class LegacyChatRequest(BaseModel):
    message: str
    context_id: str


class LegacyChatResponse(BaseModel):
    """Shape of the single-call chat path the orchestrator replaces."""
    success: bool
    response: str
    model: str
    timestamp: datetime = Field(default_factory=datetime.now)
    subtask_count: int = 0
    error: Optional[str] = None
