"""
Data source interfaces used by capability providers

Providers read team data through these small protocols; storage and the
real upstream APIs live outside this package. In-memory implementations
back the default server wiring and the test suite.
"""

import re
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol

import structlog
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

from ..models.data_models import (
    ChatMessage,
    DocumentItem,
    IssueItem,
    MailItem,
    MessageBatch,
    MessageQuery,
    to_utc,
)

logger = structlog.get_logger(__name__)


def query_terms(query: str) -> List[str]:
    """Word tokens of a search query, minus English stop words"""
    return [word for word in re.findall(r"\w+", query.lower()) if word not in ENGLISH_STOP_WORDS]


def relevance_score(text: str, query: str) -> float:
    """Sum over query terms of occurrences x term length / 10"""
    lowered = text.lower()
    score = 0.0
    for word in query_terms(query):
        occurrences = len(re.findall(re.escape(word), lowered))
        score += occurrences * len(word) / 10
    return score


class MessageSource(Protocol):
    async def load(self, context_id: str, query: MessageQuery) -> MessageBatch:
        ...


class MailSource(Protocol):
    async def list_mail(self, context_id: str, since: Optional[datetime] = None) -> List[MailItem]:
        ...

    async def save_draft(self, context_id: str, draft: MailItem) -> MailItem:
        ...


class DocumentSource(Protocol):
    async def list_documents(self, context_id: str) -> List[DocumentItem]:
        ...


class IssueStore(Protocol):
    async def list_issues(self, context_id: str) -> List[IssueItem]:
        ...

    async def create_issue(self, context_id: str, issue: IssueItem) -> IssueItem:
        ...


class InMemoryMessageSource:
    """Message source over messages held in memory, keyed by context id"""

    def __init__(self, messages: Optional[Dict[str, Iterable[ChatMessage]]] = None):
        self._messages: Dict[str, List[ChatMessage]] = {
            context_id: sorted(items, key=lambda m: m.timestamp)
            for context_id, items in (messages or {}).items()
        }

    def add(self, context_id: str, message: ChatMessage):
        bucket = self._messages.setdefault(context_id, [])
        bucket.append(message)
        bucket.sort(key=lambda m: m.timestamp)

    async def load(self, context_id: str, query: MessageQuery) -> MessageBatch:
        selected = [
            message for message in self._messages.get(context_id, [])
            if (query.start_date is None or message.timestamp >= query.start_date)
            and (query.end_date is None or message.timestamp <= query.end_date)
            and (query.channel is None or query.channel in (message.channel.id, message.channel.name))
        ]
        page = selected[query.offset:query.offset + query.limit]
        logger.debug("Loaded messages", context_id=context_id, returned=len(page), total=len(selected))
        return MessageBatch(messages=page, total_count=len(selected))


class InMemoryMailSource:
    def __init__(self, mail: Optional[Dict[str, Iterable[MailItem]]] = None):
        self._mail: Dict[str, List[MailItem]] = {k: list(v) for k, v in (mail or {}).items()}

    async def list_mail(self, context_id: str, since: Optional[datetime] = None) -> List[MailItem]:
        items = self._mail.get(context_id, [])
        since = to_utc(since)
        return [item for item in items if since is None or item.timestamp >= since]

    async def save_draft(self, context_id: str, draft: MailItem) -> MailItem:
        self._mail.setdefault(context_id, []).append(draft)
        return draft


class InMemoryDocumentSource:
    def __init__(self, documents: Optional[Dict[str, Iterable[DocumentItem]]] = None):
        self._documents: Dict[str, List[DocumentItem]] = {k: list(v) for k, v in (documents or {}).items()}

    async def list_documents(self, context_id: str) -> List[DocumentItem]:
        return list(self._documents.get(context_id, []))


class InMemoryIssueStore:
    def __init__(self, issues: Optional[Dict[str, Iterable[IssueItem]]] = None):
        self._issues: Dict[str, List[IssueItem]] = {k: list(v) for k, v in (issues or {}).items()}

    async def list_issues(self, context_id: str) -> List[IssueItem]:
        return list(self._issues.get(context_id, []))

    async def create_issue(self, context_id: str, issue: IssueItem) -> IssueItem:
        self._issues.setdefault(context_id, []).append(issue)
        return issue
