"""
Pytest configuration and shared fixtures for the Team Brain MCP Server

This module provides:
- Structured log capture for every test
- Test settings with zero-wait retry
- Conversation message factories and streams
- A capability registry wired to in-memory providers
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List

import pytest
import structlog
import structlog.testing

from teambrain.config.settings import Settings, Environment
from teambrain.integrations.base_client import RetryConfig
from teambrain.integrations.client_manager import CapabilityRegistry
from teambrain.integrations.core_provider import CoreProvider
from teambrain.integrations.issue_provider import IssueTrackerProvider
from teambrain.integrations.message_source import (
    InMemoryDocumentSource, InMemoryIssueStore, InMemoryMailSource, InMemoryMessageSource,
)
from teambrain.integrations.messaging_provider import MessagingProvider
from teambrain.integrations.workspace_provider import FileProvider, MailProvider
from teambrain.models.data_models import (
    ChatMessage, DocumentItem, MailItem, MessageAuthor, MessageChannel,
)
from teambrain.utils.nlp_processor import NLPProcessor


@pytest.fixture(name="log_output")
def fixture_log_output():
    """Captured structlog events for the current test."""
    return structlog.testing.LogCapture()


@pytest.fixture(autouse=True)
def fixture_configure_structlog(log_output):
    structlog.configure(processors=[log_output], cache_logger_on_first_use=False)
    yield
    structlog.reset_defaults()


@pytest.fixture(scope="function")
def test_settings():
    """Create test settings with fast retries."""
    return Settings(
        environment=Environment.DEVELOPMENT,
        debug=True,
        orchestrator={
            "retry_attempts": 3,
            "retry_min_wait_seconds": 0,
            "retry_max_wait_seconds": 0,
            "invocation_timeout_seconds": 5,
        },
    )


@pytest.fixture
def make_message() -> Callable[..., ChatMessage]:
    """Factory for chat messages."""
    counter = {"n": 0}

    def factory(
        text: str,
        author: str = "alice",
        channel: str = "general",
        timestamp: datetime = None,
        message_id: str = None,
    ) -> ChatMessage:
        counter["n"] += 1
        return ChatMessage(
            id=message_id or f"m{counter['n']}",
            text=text,
            author=MessageAuthor(id=f"u-{author}", name=author),
            channel=MessageChannel(id=f"c-{channel}", name=channel),
            timestamp=timestamp or datetime.now(timezone.utc),
        )

    return factory


@pytest.fixture
def meeting_messages(make_message) -> List[ChatMessage]:
    """12 messages from 3 participants within 20 minutes, with a discussion keyword."""
    start = datetime.now(timezone.utc) - timedelta(hours=2)
    authors = ["alice", "bob", "carol"]
    texts = [
        "Let's start the release meeting",
        "The release notes look good",
        "Deployment plan is ready",
        "We should check the rollback steps",
        "Rollback steps are documented",
        "Great, QA signed the release",
        "Monitoring dashboards are ready",
        "Agreed, we ship on Thursday",
        "I will update the changelog",
        "Thanks everyone, nice work",
        "Release checklist is complete",
        "See you at the retro",
    ]
    return [
        make_message(text, author=authors[i % 3], timestamp=start + timedelta(minutes=i * 1.5))
        for i, text in enumerate(texts)
    ]


@pytest.fixture
def team_messages(make_message) -> List[ChatMessage]:
    """A day of mixed team conversation."""
    start = datetime.now(timezone.utc) - timedelta(hours=6)
    return [
        make_message("need @bob to finish the report today", author="alice", timestamp=start),
        make_message("Sure, the report is almost done", author="bob", timestamp=start + timedelta(minutes=5)),
        make_message("This is urgent, the client asked ASAP", author="carol", channel="sales",
                     timestamp=start + timedelta(minutes=20)),
        make_message("明天需要完成设计评审文档的处理", author="dave", channel="design",
                     timestamp=start + timedelta(hours=1)),
        make_message("Great work on the demo everyone!", author="alice", timestamp=start + timedelta(hours=2)),
    ]


@pytest.fixture
def message_source(team_messages) -> InMemoryMessageSource:
    return InMemoryMessageSource({"ctx": team_messages})


@pytest.fixture
def mail_source() -> InMemoryMailSource:
    now = datetime.now(timezone.utc)
    return InMemoryMailSource({"ctx": [
        MailItem(id="mail-1", subject="Quarterly report", body="Please review the quarterly report draft",
                 sender="boss@example.com", recipients=["alice@example.com"], timestamp=now - timedelta(days=1)),
        MailItem(id="mail-2", subject="Lunch", body="Team lunch on Friday",
                 sender="carol@example.com", timestamp=now - timedelta(days=2)),
    ]})


@pytest.fixture
def document_source() -> InMemoryDocumentSource:
    return InMemoryDocumentSource({"ctx": [
        DocumentItem(id="doc-1", title="Report template", content="Sections of the report",
                     owner="alice", modified_at=datetime.now(timezone.utc)),
    ]})


@pytest.fixture
def nlp_processor() -> NLPProcessor:
    return NLPProcessor()


@pytest.fixture
def registry(test_settings, message_source, mail_source, document_source, nlp_processor) -> CapabilityRegistry:
    """Registry with every in-memory provider and zero-wait retry."""
    registry = CapabilityRegistry(
        test_settings,
        retry_config=RetryConfig(max_attempts=3, initial_wait=0, max_wait=0),
        timeout=5,
    )
    registry.register(MessagingProvider(message_source, processor=nlp_processor))
    registry.register(MailProvider(mail_source))
    registry.register(FileProvider(document_source))
    registry.register(IssueTrackerProvider(InMemoryIssueStore()))
    registry.register(CoreProvider(processor=nlp_processor))
    return registry


class TimedHandler:
    """Test double recording start/end times of each call."""

    def __init__(self, delay: float = 0.05, result: Any = None, error: Exception = None):
        self.delay = delay
        self.result = result if result is not None else {"ok": True}
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def __call__(self, params: Dict[str, Any]) -> Any:
        record = {"params": params, "start": asyncio.get_running_loop().time()}
        self.calls.append(record)
        await asyncio.sleep(self.delay)
        record["end"] = asyncio.get_running_loop().time()
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def timed_handler_factory():
    return TimedHandler
