"""
Issue tracker provider
"""

from typing import Any, Dict

import structlog

from .base_client import CapabilityProvider, Handler
from .message_source import IssueStore, relevance_score
from ..models.data_models import IssueItem, ProviderKey

logger = structlog.get_logger(__name__)

ISSUE_PRIORITIES = ("low", "medium", "high", "urgent")


class IssueTrackerProvider(CapabilityProvider):
    """Issue search and creation"""

    key = ProviderKey.ISSUES

    def __init__(self, store: IssueStore, project_key: str = "TEAM"):
        self.store = store
        self.project_key = project_key

    def actions(self) -> Dict[str, Handler]:
        return {
            "search_issues": self.search_issues,
            "create_issue": self.create_issue,
        }

    async def search_issues(self, params: Dict[str, Any]) -> Dict[str, Any]:
        query = str(params.get("query", "")).strip()
        issues = await self.store.list_issues(params.get("context_id", "default"))

        scored = []
        for issue in issues:
            score = relevance_score(f"{issue.summary} {issue.description}", query) if query else 0.0
            if score > 0:
                scored.append((score, issue))
        scored.sort(key=lambda pair: pair[0], reverse=True)

        results = [
            {**issue.model_dump(mode="json"), "relevance": round(score, 3)}
            for score, issue in scored[:int(params.get("max_results", 20))]
        ]
        return {"source": self.key.value, "query": query, "results": results, "total": len(scored)}

    async def create_issue(self, params: Dict[str, Any]) -> Dict[str, Any]:
        context_id = params.get("context_id", "default")
        summary = (params.get("summary") or params.get("user_input") or "").strip()
        if not summary:
            raise ValueError("Issue summary is empty")

        priority = params.get("priority", "medium")
        if priority not in ISSUE_PRIORITIES:
            priority = "medium"

        existing = await self.store.list_issues(context_id)
        issue = IssueItem(
            key=f"{self.project_key}-{len(existing) + 1}",
            summary=summary[:120],
            description=params.get("description", summary),
            priority=priority,
            assignee=params.get("assignee"),
        )
        created = await self.store.create_issue(context_id, issue)
        logger.info("Issue created", issue_key=created.key, priority=created.priority)
        return {"type": "issue", "issue": created.model_dump(mode="json")}
