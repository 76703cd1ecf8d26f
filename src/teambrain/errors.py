"""
Exception hierarchy for the orchestration core.

Only ``CycleDetectedError``/``InvalidDependencyError`` and unexpected
classification or planning failures leave the orchestrator. Provider-side
errors are caught at the subtask boundary and recorded on the subtask.
"""

from typing import Iterable, List, Optional


class OrchestrationError(Exception):
    """Base class for orchestration errors"""


class SchedulingError(OrchestrationError):
    """The subtask graph cannot be executed"""


class CycleDetectedError(SchedulingError):
    """The dependency graph contains a cycle"""

    def __init__(self, stuck_ids: Iterable[str], cycle: Optional[List[str]] = None):
        self.stuck_ids = sorted(stuck_ids)
        self.cycle = cycle or []
        detail = f" (cycle: {' -> '.join(self.cycle)})" if self.cycle else ""
        super().__init__(f"Circular dependency among subtasks: {', '.join(self.stuck_ids)}{detail}")


class InvalidDependencyError(SchedulingError):
    """A subtask depends on an id that is not a sibling"""

    def __init__(self, subtask_id: str, missing: Iterable[str]):
        self.subtask_id = subtask_id
        self.missing = sorted(missing)
        super().__init__(f"Subtask {subtask_id} depends on unknown subtasks: {', '.join(self.missing)}")


class ProviderError(OrchestrationError):
    """Failure attributed to a capability provider"""


class ProviderNotRegisteredError(ProviderError):
    """No handler is registered for a provider key and action"""

    def __init__(self, provider: str, action: Optional[str] = None):
        self.provider = provider
        self.action = action
        target = f"{provider}.{action}" if action else provider
        super().__init__(f"No capability registered for {target}")


class ProviderUnavailableError(ProviderError):
    """Transient provider failure (network, auth, upstream outage); retried"""


class InvocationTimeoutError(ProviderError):
    """A provider call exceeded its time budget; retried"""
