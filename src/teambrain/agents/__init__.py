"""
Agents Package

The orchestration core: intent classification, task planning, dependency
scheduling, result aggregation and the legacy compatibility router.
"""

from .intent_classifier import IntentStrategy, KeywordIntentClassifier
from .task_planner import TaskPlanner
from .scheduler import DependencyScheduler, build_levels
from .aggregator import ResultAggregator
from .orchestrator import TaskOrchestrator
from .compatibility import CompatibilityRouter, to_legacy_response

__all__ = [
    "IntentStrategy",
    "KeywordIntentClassifier",
    "TaskPlanner",
    "DependencyScheduler",
    "build_levels",
    "ResultAggregator",
    "TaskOrchestrator",
    "CompatibilityRouter",
    "to_legacy_response",
]
