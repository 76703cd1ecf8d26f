"""
Workspace providers

Mail and document capabilities over the ``MailSource`` and
``DocumentSource`` protocols.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import structlog

from .base_client import CapabilityProvider, Handler
from .message_source import DocumentSource, MailSource, relevance_score
from ..config.settings import get_settings
from ..models.data_models import MailItem, ProviderKey

logger = structlog.get_logger(__name__)


def _rank(items: List[Any], query: str, text_of, limit: int) -> List[Dict[str, Any]]:
    scored = []
    for item in items:
        score = relevance_score(text_of(item), query)
        if score > 0:
            scored.append((score, item))
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [{**item.model_dump(mode="json"), "relevance": round(score, 3)} for score, item in scored[:limit]]


class MailProvider(CapabilityProvider):
    """Mailbox search, history and draft creation"""

    key = ProviderKey.MAIL

    def __init__(self, source: MailSource):
        self.settings = get_settings()
        self.source = source

    def actions(self) -> Dict[str, Handler]:
        return {
            "search_mail": self.search_mail,
            "get_recent_mail": self.get_recent_mail,
            "create_email_draft": self.create_email_draft,
        }

    async def search_mail(self, params: Dict[str, Any]) -> Dict[str, Any]:
        query = str(params.get("query", "")).strip()
        mail = await self.source.list_mail(params.get("context_id", "default"))
        results = _rank(
            [item for item in mail if not item.is_draft],
            query,
            lambda item: f"{item.subject} {item.body}",
            int(params.get("max_results", 20)),
        ) if query else []
        logger.info("Mail search complete", query=query, matches=len(results))
        return {"source": self.key.value, "query": query, "results": results, "total": len(results)}

    async def get_recent_mail(self, params: Dict[str, Any]) -> Dict[str, Any]:
        days = int(params.get("days") or self.settings.analytics.default_timeframe_days)
        since = datetime.now(timezone.utc) - timedelta(days=days)
        mail = await self.source.list_mail(params.get("context_id", "default"), since=since)
        received = [item for item in mail if not item.is_draft]
        return {
            "source": self.key.value,
            "messages": [item.model_dump(mode="json") for item in received],
            "total_count": len(received),
        }

    async def create_email_draft(self, params: Dict[str, Any]) -> Dict[str, Any]:
        content = params.get("body") or params.get("user_input", "")
        subject = params.get("subject") or content[:60] or "Draft"
        draft = MailItem(
            id=f"draft-{uuid.uuid4().hex[:12]}",
            subject=subject,
            body=content,
            sender=params.get("user_id", "me"),
            recipients=list(params.get("recipients", [])),
            timestamp=datetime.now(timezone.utc),
            is_draft=True,
        )
        saved = await self.source.save_draft(params.get("context_id", "default"), draft)
        logger.info("Email draft created", draft_id=saved.id)
        return {"type": "email_draft", "draft": saved.model_dump(mode="json")}


class FileProvider(CapabilityProvider):
    """Document search"""

    key = ProviderKey.FILES

    def __init__(self, source: DocumentSource):
        self.source = source

    def actions(self) -> Dict[str, Handler]:
        return {"search_files": self.search_files}

    async def search_files(self, params: Dict[str, Any]) -> Dict[str, Any]:
        query = str(params.get("query", "")).strip()
        documents = await self.source.list_documents(params.get("context_id", "default"))
        results = _rank(
            documents,
            query,
            lambda doc: f"{doc.title} {doc.content}",
            int(params.get("max_results", 20)),
        ) if query else []
        logger.info("File search complete", query=query, matches=len(results))
        return {"source": self.key.value, "query": query, "results": results, "total": len(results)}
