"""
Task orchestration

The orchestrator carries one user request through classification,
planning, level-scheduled execution against the capability registry, and
aggregation into a unified result.

Subtask failures never escape: the registry turns them into unsuccessful
invocation results which are recorded on the subtask. Only scheduling
errors (cycles, unknown dependencies) and unexpected classification or
planning errors propagate to the caller.
"""

import time
from typing import Any, Dict, List, Optional

import structlog

from .aggregator import ResultAggregator
from .intent_classifier import IntentStrategy, KeywordIntentClassifier
from .scheduler import DependencyScheduler
from .task_planner import TaskPlanner
from ..config.settings import Settings, get_settings
from ..errors import SchedulingError
from ..integrations.client_manager import CapabilityRegistry
from ..models.data_models import SubTask, Task, TaskPriority, TaskStatus
from ..models.response_models import TaskResultData, UnifiedTaskResult

logger = structlog.get_logger(__name__)

CANCELLED_MESSAGE = "Task cancelled by user"


class TaskOrchestrator:
    """Coordinates classification, planning, scheduling and aggregation"""

    def __init__(
        self,
        registry: CapabilityRegistry,
        settings: Optional[Settings] = None,
        classifier: Optional[IntentStrategy] = None,
        planner: Optional[TaskPlanner] = None,
        aggregator: Optional[ResultAggregator] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry
        self.classifier = classifier or KeywordIntentClassifier(self.settings.classifier)
        self.planner = planner or TaskPlanner(self.settings)
        self.aggregator = aggregator or ResultAggregator()
        self.scheduler = DependencyScheduler(self.settings.orchestrator.max_concurrent_subtasks)
        self._tasks: Dict[str, Task] = {}

    async def process_request(
        self,
        user_input: str,
        context_id: str,
        user_id: str,
        priority: TaskPriority = TaskPriority.NORMAL,
    ) -> UnifiedTaskResult:
        """Run one request end to end"""
        started = time.perf_counter()

        category, hints = self.classifier.classify(user_input)
        task = Task(
            category=category,
            priority=priority,
            user_input=user_input,
            context_id=context_id,
            user_id=user_id,
            hints=hints,
        )
        self._tasks[task.id] = task
        logger.info("Processing request", task_id=task.id, category=category.value, context_id=context_id)

        try:
            task.transition(TaskStatus.PLANNING)
            self.planner.plan(task)

            task.transition(TaskStatus.EXECUTING)
            registry = await self.registry.scoped(context_id)
            await self.scheduler.execute(
                task.subtasks,
                lambda subtask: self._run_subtask(task, registry, subtask),
                should_continue=lambda: task.status == TaskStatus.EXECUTING,
            )
        except SchedulingError as e:
            task.error = str(e)
            task.transition(TaskStatus.FAILED)
            logger.error("Task aborted before execution", task_id=task.id, error=str(e))
            self._prune_history()
            raise

        processing_time_ms = round((time.perf_counter() - started) * 1000, 2)

        if task.status == TaskStatus.FAILED:
            # Cancelled while executing
            result = self._cancelled_result(task, processing_time_ms)
        else:
            result = self.aggregator.aggregate(task, processing_time_ms)
            if not result.success:
                task.error = result.summary
            task.transition(TaskStatus.COMPLETED if result.success else TaskStatus.FAILED)

        task.result = result.model_dump(mode="json")
        logger.info(
            "Task finished",
            task_id=task.id,
            status=task.status.value,
            success=result.success,
            processing_time_ms=processing_time_ms,
        )
        self._prune_history()
        return result

    def _prune_history(self):
        """Drop the oldest finished tasks beyond the history limit"""
        finished = [task_id for task_id, task in self._tasks.items() if task.is_terminal]
        excess = len(finished) - self.settings.orchestrator.task_history_limit
        for task_id in finished[:max(excess, 0)]:
            del self._tasks[task_id]
        if excess > 0:
            logger.debug("Pruned task history", evicted=excess, kept=len(self._tasks))

    async def _run_subtask(self, task: Task, registry: CapabilityRegistry, subtask: SubTask):
        params: Dict[str, Any] = dict(subtask.params)
        if subtask.dependencies:
            upstream = {}
            for dependency_id in subtask.dependencies:
                dependency = task.get_subtask(dependency_id)
                if dependency is not None and dependency.succeeded:
                    upstream[dependency_id] = dependency.result
            params["upstream"] = upstream

        subtask.mark_started()
        logger.info(
            "Executing subtask",
            task_id=task.id,
            subtask_id=subtask.id,
            provider=subtask.provider.value,
            action=subtask.action,
        )
        if self.settings.orchestrator.debug_mode:
            logger.debug("Subtask params", subtask_id=subtask.id, params=params)

        outcome = await registry.invoke(subtask.provider, subtask.action, params)
        if outcome.success:
            subtask.mark_completed(outcome.data)
            logger.info("Subtask completed", subtask_id=subtask.id, duration_ms=round(outcome.duration_ms, 2))
        else:
            subtask.mark_failed(outcome.error or "unknown error")
            logger.warning("Subtask failed", subtask_id=subtask.id, error=outcome.error, attempts=outcome.attempts)

    def _cancelled_result(self, task: Task, processing_time_ms: float) -> UnifiedTaskResult:
        succeeded = [subtask for subtask in task.subtasks if subtask.succeeded]
        return UnifiedTaskResult(
            success=False,
            task_id=task.id,
            data=TaskResultData(
                task_type=task.category,
                user_query=task.user_input,
                basic_results=[subtask.result for subtask in succeeded],
            ),
            summary=task.error or CANCELLED_MESSAGE,
            subtask_count=len(task.subtasks),
            failed_subtasks=[subtask.id for subtask in task.subtasks if not subtask.succeeded],
            processing_time_ms=processing_time_ms,
        )

    async def get_task_status(self, task_id: str) -> Optional[Task]:
        return self._tasks.get(task_id)

    async def cancel_task(self, task_id: str) -> bool:
        """
        Cooperatively cancel a task.

        In-flight provider calls are not interrupted; levels that have not
        started yet are skipped.
        """
        task = self._tasks.get(task_id)
        if task is None or task.is_terminal:
            return False

        task.error = CANCELLED_MESSAGE
        task.transition(TaskStatus.FAILED)
        logger.info("Task cancelled", task_id=task_id)
        return True

    def active_tasks(self) -> List[Task]:
        """Tasks that have not reached a terminal state"""
        return [task for task in self._tasks.values() if not task.is_terminal]
