"""
Result aggregation

Merges the subtask outcomes of one task into a ``UnifiedTaskResult``.
The merge depends on the task category; any analytics payload produced
by the text-analytics cascade additionally contributes insights,
recommendations, key metrics and follow-up tasks.
"""

from typing import Any, Dict, List, Optional, Tuple

import structlog

from ..models.data_models import SubTask, SubTaskStatus, Task, TaskCategory, TaskPriority
from ..models.response_models import (
    DeepAnalysisSummary, FollowUpTask, TaskResultData, UnifiedTaskResult,
)

logger = structlog.get_logger(__name__)

SEARCH_SUGGESTIONS = [
    "Open a result to see the full item",
    "Narrow the search with more specific terms",
]

BuildResult = Tuple[Dict[str, Any], str, List[str]]


def _dedupe(items: List[str]) -> List[str]:
    seen = set()
    unique = []
    for item in items:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


def recommendation_text(recommendation: Any) -> Optional[str]:
    """Render a recommendation as ``[PRIORITY] description``"""
    if isinstance(recommendation, str):
        return recommendation
    if isinstance(recommendation, dict):
        body = recommendation.get("description") or recommendation.get("title")
        if not body:
            return None
        return f"[{str(recommendation.get('priority', 'medium')).upper()}] {body}"
    return None


def flatten_recommendations(value: Any) -> List[str]:
    """Flatten arbitrarily nested recommendation lists into strings"""
    if isinstance(value, (list, tuple)):
        flattened = []
        for item in value:
            flattened.extend(flatten_recommendations(item))
        return flattened
    text = recommendation_text(value)
    return [text] if text else []


class ResultAggregator:
    """Builds the unified result of a task from its subtasks"""

    def aggregate(self, task: Task, processing_time_ms: Optional[float] = None) -> UnifiedTaskResult:
        succeeded = [subtask for subtask in task.subtasks if subtask.succeeded]
        failed = [subtask.id for subtask in task.subtasks if subtask.status == SubTaskStatus.FAILED]

        builders = {
            TaskCategory.SEARCH: self._build_search,
            TaskCategory.ANALYZE: self._build_analysis,
            TaskCategory.CREATE: self._build_create,
        }
        content, summary, recommendations = builders.get(task.category, self._build_chat)(task, succeeded)

        analyses = self._analysis_payloads(succeeded)
        deep_analysis = None
        follow_ups: List[FollowUpTask] = []
        if analyses:
            deep_analysis = self.summarize_analyses(analyses)
            recommendations = _dedupe(recommendations + deep_analysis.recommendations)
            follow_ups = self.propose_follow_ups(analyses)

        success = bool(succeeded)
        if not success:
            summary = f"All {len(task.subtasks)} subtasks failed"

        logger.info(
            "Aggregated task result",
            task_id=task.id,
            success=success,
            succeeded=len(succeeded),
            failed=len(failed),
        )

        return UnifiedTaskResult(
            success=success,
            task_id=task.id,
            data=TaskResultData(
                task_type=task.category,
                user_query=task.user_input,
                basic_results=[subtask.result for subtask in succeeded],
                deep_analysis=deep_analysis,
                content=content,
            ),
            summary=summary,
            recommendations=recommendations,
            follow_up_tasks=follow_ups,
            subtask_count=len(task.subtasks),
            failed_subtasks=failed,
            processing_time_ms=processing_time_ms,
        )

    # Category builders
    def _build_search(self, task: Task, succeeded: List[SubTask]) -> BuildResult:
        aggregate = next((s for s in succeeded if s.action == "aggregate_search_results"), None)
        if aggregate is not None and isinstance(aggregate.result, dict):
            results = aggregate.result.get("sources", [])
        else:
            results = [s.result for s in succeeded if s.action != "aggregate_search_results"]

        content = {"query": task.user_input, "results": results, "total_sources": len(results)}
        return content, f"Found related information in {len(results)} data sources", list(SEARCH_SUGGESTIONS)

    def _build_analysis(self, task: Task, succeeded: List[SubTask]) -> BuildResult:
        analyze = next((s for s in succeeded if s.action == "analyze_collected_data"), None)
        payload = analyze.result if analyze is not None and isinstance(analyze.result, dict) else {}

        recommendations = _dedupe(flatten_recommendations(payload.get("recommendations", [])))
        analysis = payload.get("analysis")
        if isinstance(analysis, dict) and analysis.get("summary"):
            summary = f"Analysis complete: {analysis['summary']}"
        elif payload:
            summary = "Analysis complete"
        else:
            summary = "Analysis could not be completed"
        return payload, summary, recommendations

    def _build_create(self, task: Task, succeeded: List[SubTask]) -> BuildResult:
        created = succeeded[0].result if succeeded and isinstance(succeeded[0].result, dict) else {}
        kind = created.get("type", "item")
        return created, f"Created {kind}" if created else "Nothing was created", []

    def _build_chat(self, task: Task, succeeded: List[SubTask]) -> BuildResult:
        first = succeeded[0].result if succeeded else None
        content = first if isinstance(first, dict) else {"response": first}
        response = content.get("response")
        if response:
            summary = str(response)
        else:
            summary = f"Completed {len(succeeded)} of {len(task.subtasks)} subtasks"
        return content, summary, []

    # Analytics payloads
    @staticmethod
    def _analysis_payloads(succeeded: List[SubTask]) -> List[Dict[str, Any]]:
        payloads = []
        for subtask in succeeded:
            result = subtask.result
            if isinstance(result, dict) and isinstance(result.get("analysis"), dict):
                payloads.append(result["analysis"])
        return payloads

    def summarize_analyses(self, analyses: List[Dict[str, Any]]) -> DeepAnalysisSummary:
        insights: List[str] = []
        recommendations: List[str] = []
        metrics: Dict[str, float] = {}

        for analysis in analyses:
            insights.extend(self.extract_insights(analysis))
            team = analysis.get("team_insights") or {}
            recommendations.extend(flatten_recommendations(team.get("recommendations", [])))
            for key, value in self.extract_key_metrics(analysis).items():
                metrics.setdefault(key, value)

        return DeepAnalysisSummary(
            insights=_dedupe(insights),
            recommendations=_dedupe(recommendations),
            key_metrics=metrics,
        )

    @staticmethod
    def extract_insights(analysis: Dict[str, Any]) -> List[str]:
        insights = []

        sentiment = analysis.get("sentiment")
        if sentiment:
            insights.append(
                f"Overall sentiment is {sentiment.get('classification')} (score {sentiment.get('score', 0.0):.2f})"
            )

        tasks = analysis.get("tasks") or []
        if tasks:
            urgent = sum(1 for item in tasks if item.get("priority") == "urgent")
            insights.append(f"{len(tasks)} action items found, {urgent} urgent")

        meetings = analysis.get("meetings") or []
        if meetings:
            productive = sum(1 for thread in meetings if thread.get("sentiment") == "productive")
            insights.append(f"{productive} of {len(meetings)} discussion threads were productive")

        team = analysis.get("team_insights")
        if team:
            insights.append(f"Collaboration score is {team.get('collaboration_score', 0.0):.0f}/100")

        return insights

    @staticmethod
    def extract_key_metrics(analysis: Dict[str, Any]) -> Dict[str, float]:
        metrics: Dict[str, float] = {}

        sentiment = analysis.get("sentiment")
        if sentiment:
            metrics["sentiment_score"] = float(sentiment.get("score", 0.0))
            metrics["sentiment_confidence"] = float(sentiment.get("confidence", 0.0))

        tasks = analysis.get("tasks")
        if tasks is not None:
            metrics["total_tasks"] = float(len(tasks))
            metrics["urgent_tasks"] = float(sum(1 for item in tasks if item.get("priority") == "urgent"))
            metrics["high_priority_tasks"] = float(sum(1 for item in tasks if item.get("priority") == "high"))

        meetings = analysis.get("meetings")
        if meetings is not None:
            metrics["meeting_threads"] = float(len(meetings))

        team = analysis.get("team_insights")
        if team:
            metrics["collaboration_score"] = float(team.get("collaboration_score", 0.0))
            communication = team.get("communication") or {}
            metrics["average_response_time_minutes"] = float(
                communication.get("average_response_time_minutes", 0.0)
            )

        if "processing_time_ms" in analysis:
            metrics["processing_time_ms"] = float(analysis["processing_time_ms"])

        return metrics

    @staticmethod
    def propose_follow_ups(analyses: List[Dict[str, Any]]) -> List[FollowUpTask]:
        follow_ups = []
        for analysis in analyses:
            urgent = [item for item in analysis.get("tasks") or [] if item.get("priority") == "urgent"]
            if urgent:
                follow_ups.append(FollowUpTask(
                    category=TaskCategory.CREATE,
                    description=f"Create tracking issues for {len(urgent)} urgent action items",
                    priority=TaskPriority.HIGH,
                    payload={"tasks": [item.get("description") for item in urgent]},
                ))

            team = analysis.get("team_insights") or {}
            for risk in team.get("risk_factors") or []:
                if risk.get("severity") == "high":
                    follow_ups.append(FollowUpTask(
                        category=TaskCategory.NOTIFICATION,
                        description=f"Notify the team lead about {risk.get('type')} risk: {risk.get('description')}",
                        priority=TaskPriority.HIGH,
                        payload={"risk": risk},
                    ))

            for thread in analysis.get("meetings") or []:
                if thread.get("sentiment") == "tense":
                    follow_ups.append(FollowUpTask(
                        category=TaskCategory.ANALYZE,
                        description=f"Review the tense discussion about {thread.get('topic')}",
                        payload={"thread_id": thread.get("id")},
                    ))

        unique: Dict[str, FollowUpTask] = {}
        for follow_up in follow_ups:
            unique.setdefault(follow_up.description, follow_up)
        return list(unique.values())
