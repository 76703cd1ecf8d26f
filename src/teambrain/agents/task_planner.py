"""
Task planning

Expands a classified task into subtasks bound to capability providers.
Each category has a fixed plan shape; dependencies always reference
subtasks of the same task.
"""

from typing import Any, Dict, List, Optional

import structlog

from ..config.settings import Settings, get_settings
from ..models.data_models import (
    AnalysisDepth, ProviderKey, SubTask, Task, TaskCategory,
)

logger = structlog.get_logger(__name__)

# Data source -> (provider, search action)
SEARCH_ACTIONS = {
    "messaging": (ProviderKey.MESSAGING, "search_messages"),
    "mail": (ProviderKey.MAIL, "search_mail"),
    "files": (ProviderKey.FILES, "search_files"),
    "issues": (ProviderKey.ISSUES, "search_issues"),
}


class TaskPlanner:
    """Builds the subtask graph for a task"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def plan(self, task: Task) -> List[SubTask]:
        """Populate ``task.subtasks`` and return them"""
        builders = {
            TaskCategory.SEARCH: self._plan_search,
            TaskCategory.CREATE: self._plan_create,
            TaskCategory.ANALYZE: self._plan_analyze,
            TaskCategory.WORKFLOW: self._plan_workflow,
            TaskCategory.NOTIFICATION: self._plan_notification,
            TaskCategory.CHAT: self._plan_chat,
        }

        category = task.category
        if category == TaskCategory.WORKFLOW and not self.settings.orchestrator.enable_workflows:
            logger.info("Workflows disabled, planning as chat", task_id=task.id)
            category = TaskCategory.CHAT

        subtasks = builders.get(category, self._plan_chat)(task)

        if task.hints.needs_deep_analysis and self.settings.orchestrator.enable_deep_analysis:
            subtasks.append(self._deep_analysis_subtask(task))

        task.subtasks = self._truncate(task, subtasks)
        logger.info(
            "Task planned",
            task_id=task.id,
            category=category.value,
            subtasks=[subtask.id for subtask in task.subtasks],
        )
        return task.subtasks

    def _subtask(
        self,
        task: Task,
        suffix: str,
        provider: ProviderKey,
        action: str,
        params: Optional[Dict[str, Any]] = None,
        dependencies: Optional[List[str]] = None,
    ) -> SubTask:
        base = {"context_id": task.context_id, "user_id": task.user_id}
        return SubTask(
            id=f"{task.id}-{suffix}",
            parent_task_id=task.id,
            provider=provider,
            action=action,
            params={**base, **(params or {})},
            dependencies=list(dependencies or []),
        )

    def _plan_search(self, task: Task) -> List[SubTask]:
        lowered = task.user_input.lower()
        keywords = self.settings.classifier.search_source_keywords

        sources = [
            source for source, words in keywords.items()
            if source in SEARCH_ACTIONS and any(word.lower() in lowered for word in words)
        ]
        if not sources:
            sources = [s for s in self.settings.classifier.default_search_sources if s in SEARCH_ACTIONS]

        searches = []
        for index, source in enumerate(sources):
            provider, action = SEARCH_ACTIONS[source]
            searches.append(self._subtask(task, f"search-{index}", provider, action, {"query": task.user_input}))

        aggregate = self._subtask(
            task, "aggregate", ProviderKey.CORE, "aggregate_search_results",
            {"query": task.user_input},
            dependencies=[subtask.id for subtask in searches],
        )
        return searches + [aggregate]

    def _plan_create(self, task: Task) -> List[SubTask]:
        lowered = task.user_input.lower()
        classifier = self.settings.classifier
        params = {"user_input": task.user_input}

        if any(word.lower() in lowered for word in classifier.create_issue_keywords):
            return [self._subtask(task, "create-issue", ProviderKey.ISSUES, "create_issue", params)]
        if any(word.lower() in lowered for word in classifier.create_email_keywords):
            return [self._subtask(task, "create-email", ProviderKey.MAIL, "create_email_draft", params)]
        return [self._subtask(task, "create-generic", ProviderKey.CORE, "create_task", params)]

    def _plan_analyze(self, task: Task) -> List[SubTask]:
        days = task.hints.timeframe_days
        collect_messages = self._subtask(
            task, "collect-messaging", ProviderKey.MESSAGING, "get_recent_messages", {"days": days},
        )
        collect_mail = self._subtask(
            task, "collect-mail", ProviderKey.MAIL, "get_recent_mail", {"days": days},
        )
        analyze = self._subtask(
            task, "analyze", ProviderKey.CORE, "analyze_collected_data",
            {"user_input": task.user_input, **self._analysis_params(task)},
            dependencies=[collect_messages.id, collect_mail.id],
        )
        return [collect_messages, collect_mail, analyze]

    def _plan_workflow(self, task: Task) -> List[SubTask]:
        create = self._subtask(
            task, "create-issue", ProviderKey.ISSUES, "create_issue", {"user_input": task.user_input},
        )
        notify = self._subtask(
            task, "notify", ProviderKey.MESSAGING, "send_notification",
            {"message": f"Created from workflow: {task.user_input}"},
            dependencies=[create.id],
        )
        return [create, notify]

    def _plan_notification(self, task: Task) -> List[SubTask]:
        return [self._subtask(
            task, "notify", ProviderKey.MESSAGING, "send_notification", {"message": task.user_input},
        )]

    def _plan_chat(self, task: Task) -> List[SubTask]:
        return [self._subtask(task, "chat", ProviderKey.CORE, "chat", {"message": task.user_input})]

    def _analysis_params(self, task: Task) -> Dict[str, Any]:
        hints = task.hints
        focused = hints.task_related or hints.sentiment_related or hints.meeting_related
        return {
            "timeframe_days": hints.timeframe_days,
            "analysis_depth": hints.analysis_depth.value,
            "include_sentiment": hints.sentiment_related or not focused,
            "include_tasks": hints.task_related or not focused,
            "include_meetings": hints.meeting_related or not focused,
            "include_team_insights": not focused or hints.analysis_depth == AnalysisDepth.COMPREHENSIVE,
        }

    def _deep_analysis_subtask(self, task: Task) -> SubTask:
        return self._subtask(
            task, "deep-analysis", ProviderKey.MESSAGING, "deep_analysis", self._analysis_params(task),
        )

    def _truncate(self, task: Task, subtasks: List[SubTask]) -> List[SubTask]:
        limit = self.settings.orchestrator.max_subtasks
        if len(subtasks) <= limit:
            return subtasks

        kept = subtasks[:limit]
        # Drop subtasks whose dependencies were cut until the set is closed
        while True:
            ids = {subtask.id for subtask in kept}
            closed = [subtask for subtask in kept if all(dep in ids for dep in subtask.dependencies)]
            if len(closed) == len(kept):
                break
            kept = closed

        logger.warning("Plan truncated", task_id=task.id, planned=len(subtasks), kept=len(kept))
        return kept
