"""
Configuration Management for the Team Brain orchestration server

This module provides environment-driven configuration for every layer:
- Orchestrator execution limits (concurrency cap, per-call timeout, retries)
- Intent classification and planner routing keyword tables
- Text-analytics thresholds (meeting clustering, risk detection)
- Legacy compatibility routing flags
"""

from typing import Dict, List, Optional
from enum import Enum

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment types"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class OrchestratorSettings(BaseSettings):
    """Task execution settings"""

    max_concurrent_subtasks: int = Field(default=10, ge=1, le=100, description="Concurrent provider calls per level")
    invocation_timeout_seconds: float = Field(default=300.0, gt=0, description="Timeout for one provider call")
    retry_attempts: int = Field(default=3, ge=1, le=10, description="Attempts per provider call")
    retry_min_wait_seconds: float = Field(default=1.0, ge=0, description="Minimum backoff between attempts")
    retry_max_wait_seconds: float = Field(default=10.0, ge=0, description="Maximum backoff between attempts")

    enable_workflows: bool = Field(default=True, description="Allow multi-step workflow plans")
    enable_deep_analysis: bool = Field(default=True, description="Append messaging analytics subtasks")
    max_subtasks: int = Field(default=20, ge=1, le=20, description="Maximum subtasks per task")
    debug_mode: bool = Field(default=False, description="Log full subtask payloads")
    task_history_limit: int = Field(default=500, ge=1, description="Finished tasks kept for status lookups")


class ClassifierSettings(BaseSettings):
    """Keyword tables for intent classification and plan routing"""

    # Category rules, checked in this order; first hit wins
    category_keywords: Dict[str, List[str]] = Field(default={
        "search": ["搜索", "查找", "找一下", "search", "find", "look up"],
        "create": ["创建", "新建", "create", "new ticket", "draft"],
        "analyze": ["分析", "报告", "统计", "analyze", "analyse", "report", "statistics"],
        "workflow": ["自动", "批量", "workflow", "automate", "batch"],
    })

    deep_analysis_keywords: List[str] = Field(default=[
        "深度分析", "全面分析", "详细分析", "深入", "deep analysis", "comprehensive", "in-depth", "thorough",
    ])
    basic_analysis_keywords: List[str] = Field(default=[
        "简单", "快速", "大概", "simple", "quick", "brief", "summary",
    ])
    analysis_trigger_keywords: List[str] = Field(default=[
        "分析", "洞察", "情绪", "团队", "会议", "任务", "待办",
        "analyze", "analysis", "insight", "sentiment", "mood", "team", "meeting", "task", "todo",
    ])
    task_keywords: List[str] = Field(default=["任务", "待办", "工作项", "task", "todo", "action item"])
    sentiment_keywords: List[str] = Field(default=["情绪", "情感", "氛围", "心情", "sentiment", "mood", "morale"])
    meeting_keywords: List[str] = Field(default=["会议", "讨论", "同步", "meeting", "discussion", "standup"])

    # Relative time phrase -> window in days; first phrase found wins
    timeframe_keywords: Dict[str, int] = Field(default={
        "今天": 1, "today": 1,
        "昨天": 2, "yesterday": 2,
        "本周": 7, "这周": 7, "this week": 7,
        "上周": 14, "last week": 14,
        "本月": 30, "这个月": 30, "this month": 30,
    })
    default_timeframe_days: int = Field(default=7, ge=1, le=365)

    # Planner routing: data source -> trigger words
    search_source_keywords: Dict[str, List[str]] = Field(default={
        "messaging": ["slack", "消息", "讨论", "聊天", "message", "chat"],
        "mail": ["邮件", "email", "gmail", "mail"],
        "files": ["文件", "drive", "文档", "file", "document", "doc"],
        "issues": ["jira", "工单", "bug", "issue", "ticket"],
    })
    default_search_sources: List[str] = Field(default=["messaging", "mail", "files"])
    create_issue_keywords: List[str] = Field(default=["工单", "issue", "bug", "ticket"])
    create_email_keywords: List[str] = Field(default=["邮件", "email", "mail"])


class AnalyticsSettings(BaseSettings):
    """Text-analytics cascade thresholds"""

    meeting_gap_minutes: float = Field(default=30.0, gt=0, description="Gap that splits two message clusters")
    meeting_min_participants: int = Field(default=2, ge=1)
    meeting_min_density_per_hour: float = Field(default=10.0, ge=0)
    dedup_similarity_threshold: float = Field(default=0.8, gt=0, le=1)

    stress_ratio_threshold: float = Field(default=0.15, ge=0, le=1)
    stress_high_ratio: float = Field(default=0.30, ge=0, le=1)
    deadline_message_threshold: int = Field(default=3, ge=0)
    deadline_high_threshold: int = Field(default=8, ge=0)
    slow_response_minutes: float = Field(default=240.0, gt=0)

    default_timeframe_days: int = Field(default=7, ge=1, le=365)
    message_load_limit: int = Field(default=1000, ge=1, le=100000)


class CompatibilitySettings(BaseSettings):
    """Routing between the orchestrator and the legacy single-call chat path"""

    enable_orchestrator: bool = Field(default=True, description="Route requests through the orchestrator")
    fallback_to_legacy: bool = Field(default=True, description="Use the legacy chat path on orchestrator error")
    legacy_chat_url: Optional[str] = Field(default=None, description="Legacy chat endpoint")
    chat_endpoint_url: Optional[str] = Field(default=None, description="Chat backend used by the core provider")
    chat_timeout_seconds: float = Field(default=30.0, gt=0)


class Settings(BaseSettings):
    """Main application settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="forbid"
    )

    app_name: str = Field(default="team-brain-mcp", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Application environment")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    orchestrator: OrchestratorSettings = Field(default_factory=OrchestratorSettings)
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    compatibility: CompatibilitySettings = Field(default_factory=CompatibilitySettings)

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        """Validate and normalize environment setting"""
        if isinstance(v, str):
            v = v.lower()
            if v in ["dev", "develop"]:
                return Environment.DEVELOPMENT
            elif v in ["stage", "stag"]:
                return Environment.STAGING
            elif v in ["prod", "production"]:
                return Environment.PRODUCTION
        return v

    @model_validator(mode="after")
    def validate_debug_in_production(self):
        """Ensure debug is disabled in production"""
        if self.environment == Environment.PRODUCTION and (self.debug or self.orchestrator.debug_mode):
            raise ValueError("Debug mode cannot be enabled in production environment")
        return self


# Global settings instance
settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get application settings singleton"""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from configuration"""
    global settings
    settings = Settings()
    return settings
