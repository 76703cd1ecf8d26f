"""
Dependency scheduling

Groups the subtasks of one task into ordered levels of mutually independent
work and executes them level by level. Within a level every subtask runs
concurrently (bounded by a semaphore) and the level settles completely,
failures included, before the next one starts.
"""

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

import networkx as nx
import structlog

from ..errors import CycleDetectedError, InvalidDependencyError, SchedulingError
from ..models.data_models import SubTask, SubTaskStatus

logger = structlog.get_logger(__name__)

SubtaskRunner = Callable[[SubTask], Awaitable[None]]


def _find_cycle(subtasks: Sequence[SubTask]) -> List[str]:
    graph = nx.DiGraph()
    for subtask in subtasks:
        graph.add_node(subtask.id)
        for dependency in subtask.dependencies:
            graph.add_edge(dependency, subtask.id)
    try:
        edges = nx.find_cycle(graph)
    except nx.NetworkXNoCycle:
        return []
    return [source for source, _ in edges] + [edges[0][0]]


def build_levels(subtasks: Sequence[SubTask]) -> List[List[str]]:
    """
    Partition subtasks into dependency levels.

    Each pass collects every unprocessed subtask whose dependencies were all
    processed in earlier passes. A pass that collects nothing while subtasks
    remain means the graph has a cycle.

    Raises:
        InvalidDependencyError: a dependency names a subtask outside the set
        CycleDetectedError: the dependency graph is cyclic
    """
    ids = [subtask.id for subtask in subtasks]
    known = set(ids)
    if len(known) != len(ids):
        raise SchedulingError("Duplicate subtask ids in plan")

    for subtask in subtasks:
        missing = [dep for dep in subtask.dependencies if dep not in known]
        if missing:
            raise InvalidDependencyError(subtask.id, missing)

    processed = set()
    remaining = list(subtasks)
    levels: List[List[str]] = []

    while remaining:
        level = [
            subtask.id for subtask in remaining
            if all(dep in processed for dep in subtask.dependencies)
        ]
        if not level:
            error = CycleDetectedError([subtask.id for subtask in remaining], _find_cycle(remaining))
            logger.error("Circular dependency detected", stuck=error.stuck_ids, cycle=error.cycle)
            raise error

        processed.update(level)
        levels.append(level)
        remaining = [subtask for subtask in remaining if subtask.id not in processed]

    return levels


class DependencyScheduler:
    """Executes subtask levels in order with a concurrency cap"""

    def __init__(self, max_concurrency: int = 10):
        self.max_concurrency = max_concurrency

    async def execute(
        self,
        subtasks: Sequence[SubTask],
        run: SubtaskRunner,
        should_continue: Optional[Callable[[], bool]] = None,
    ) -> List[List[str]]:
        """
        Run every subtask through ``run``.

        Returns the levels that were computed. Levels after a point where
        ``should_continue`` returns False are skipped and their subtasks stay
        pending.
        """
        levels = build_levels(subtasks)
        by_id: Dict[str, SubTask] = {subtask.id: subtask for subtask in subtasks}
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def guarded(subtask: SubTask):
            async with semaphore:
                await run(subtask)

        for index, level in enumerate(levels):
            if should_continue is not None and not should_continue():
                logger.info("Stopping before level", level=index, skipped=sum(len(pending) for pending in levels[index:]))
                break

            logger.debug("Executing level", level=index, subtasks=level)
            outcomes = await asyncio.gather(
                *(guarded(by_id[subtask_id]) for subtask_id in level),
                return_exceptions=True,
            )

            for subtask_id, outcome in zip(level, outcomes):
                if not isinstance(outcome, BaseException):
                    continue
                subtask = by_id[subtask_id]
                logger.error("Subtask raised", subtask_id=subtask_id, error=repr(outcome))
                if subtask.status not in (SubTaskStatus.COMPLETED, SubTaskStatus.FAILED):
                    subtask.mark_failed(str(outcome) or outcome.__class__.__name__)

        return levels
