"""
Unit tests for capability providers
"""

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from teambrain.errors import ProviderUnavailableError
from teambrain.integrations.core_provider import CoreProvider
from teambrain.integrations.issue_provider import IssueTrackerProvider
from teambrain.integrations.message_source import (
    InMemoryIssueStore, InMemoryMailSource, InMemoryMessageSource, relevance_score,
)
from teambrain.integrations.messaging_provider import MessagingProvider
from teambrain.integrations.workspace_provider import FileProvider, MailProvider
from teambrain.models.data_models import ChatMessage, MailItem


def test_relevance_score():
    assert relevance_score("The Report and the report", "report") == pytest.approx(1.2)
    assert relevance_score("nothing here", "report") == 0.0


def test_relevance_ignores_stop_words():
    assert relevance_score("Sure, the demo is done", "search slack for the report") == 0.0
    assert relevance_score("finish the report today", "search slack for the report") == pytest.approx(0.6)
    assert relevance_score("测试报告已完成", "报告") == pytest.approx(0.2)


@pytest.mark.asyncio
async def test_search_counts_only_content_matches(message_source):
    result = await MessagingProvider(message_source).search_messages(
        {"context_id": "ctx", "query": "search slack for the report"}
    )

    assert result["total"] == 2


class TestMessagingProvider:
    """Test messaging capabilities over an in-memory source"""

    @pytest.fixture
    def provider(self, message_source, nlp_processor):
        return MessagingProvider(message_source, processor=nlp_processor)

    @pytest.mark.asyncio
    async def test_search_ranks_matches(self, provider):
        result = await provider.search_messages({"context_id": "ctx", "query": "report"})

        assert result["source"] == "messaging"
        assert result["total"] == 2
        assert all(item["relevance"] > 0 for item in result["results"])
        assert "report" in result["results"][0]["text"]

    @pytest.mark.asyncio
    async def test_search_unknown_context_empty(self, provider):
        result = await provider.search_messages({"context_id": "other", "query": "report"})

        assert result["results"] == []
        assert result["total"] == 0

    @pytest.mark.asyncio
    async def test_recent_messages_summary(self, provider):
        result = await provider.get_recent_messages({"context_id": "ctx", "days": 7})

        assert result["total_count"] == 5
        assert result["summary"]["unique_users"] == 4
        assert result["summary"]["unique_channels"] == 3
        assert result["summary"]["avg_messages_per_day"] == pytest.approx(0.71)

    @pytest.mark.asyncio
    async def test_recent_messages_channel_filter(self, provider):
        result = await provider.get_recent_messages({"context_id": "ctx", "channel": "sales"})

        assert result["total_count"] == 1
        assert result["messages"][0]["author"]["name"] == "carol"

    @pytest.mark.asyncio
    async def test_send_notification(self, message_source):
        sent = []

        async def notifier(channel, text):
            sent.append((channel, text))

        provider = MessagingProvider(message_source, notifier=notifier)

        result = await provider.send_notification({"channel": "ops", "message": "deploy done"})

        assert result["sent"] is True
        assert sent == [("ops", "deploy done")]
        assert provider.outbox[0]["message"] == "deploy done"

    @pytest.mark.asyncio
    async def test_empty_notification_rejected(self, provider):
        with pytest.raises(ValueError):
            await provider.send_notification({"message": ""})

    @pytest.mark.asyncio
    async def test_deep_analysis(self, provider):
        result = await provider.deep_analysis({"context_id": "ctx", "include_meetings": False})

        analysis = result["analysis"]
        assert analysis["message_count"] == 5
        assert analysis["meetings"] == []
        assert analysis["tasks"]
        json.dumps(result)

    @pytest.mark.asyncio
    async def test_channel_activity(self, provider):
        result = await provider.get_channel_activity({"context_id": "ctx"})

        assert result["total_messages"] == 5
        assert result["most_active_channels"][0] == "general"
        assert sum(result["daily_breakdown"].values()) == 5

    @pytest.mark.asyncio
    async def test_find_key_discussions(self, meeting_messages, nlp_processor):
        provider = MessagingProvider(InMemoryMessageSource({"ctx": meeting_messages}), processor=nlp_processor)

        result = await provider.find_key_discussions({"context_id": "ctx"})

        assert result["total"] == 1
        assert result["discussions"][0]["participants"] == ["alice", "bob", "carol"]


class TestMailProvider:
    @pytest.fixture
    def provider(self, mail_source):
        return MailProvider(mail_source)

    @pytest.mark.asyncio
    async def test_search(self, provider):
        result = await provider.search_mail({"context_id": "ctx", "query": "quarterly"})

        assert [item["id"] for item in result["results"]] == ["mail-1"]

    @pytest.mark.asyncio
    async def test_recent_mail(self, provider):
        result = await provider.get_recent_mail({"context_id": "ctx"})

        assert result["source"] == "mail"
        assert result["total_count"] == 2

    @pytest.mark.asyncio
    async def test_drafts_hidden_from_reads(self, provider):
        created = await provider.create_email_draft({
            "context_id": "ctx", "user_id": "alice", "user_input": "Quarterly report follow-up",
        })

        assert created["type"] == "email_draft"
        assert created["draft"]["is_draft"] is True
        assert created["draft"]["subject"] == "Quarterly report follow-up"

        search = await provider.search_mail({"context_id": "ctx", "query": "quarterly"})
        recent = await provider.get_recent_mail({"context_id": "ctx"})
        assert [item["id"] for item in search["results"]] == ["mail-1"]
        assert recent["total_count"] == 2


class TestFileProvider:
    @pytest.mark.asyncio
    async def test_search(self, document_source):
        provider = FileProvider(document_source)

        result = await provider.search_files({"context_id": "ctx", "query": "report"})

        assert result["results"][0]["id"] == "doc-1"

    @pytest.mark.asyncio
    async def test_empty_query(self, document_source):
        result = await FileProvider(document_source).search_files({"context_id": "ctx", "query": ""})

        assert result["results"] == []


class TestIssueTrackerProvider:
    """Test issue creation and search"""

    @pytest.fixture
    def provider(self):
        return IssueTrackerProvider(InMemoryIssueStore())

    @pytest.mark.asyncio
    async def test_create_sequential_keys(self, provider):
        first = await provider.create_issue({"context_id": "ctx", "user_input": "Login page crashes"})
        second = await provider.create_issue({"context_id": "ctx", "summary": "Export times out", "priority": "high"})

        assert first["type"] == "issue"
        assert first["issue"]["key"] == "TEAM-1"
        assert second["issue"]["key"] == "TEAM-2"
        assert second["issue"]["priority"] == "high"

    @pytest.mark.asyncio
    async def test_invalid_priority_defaults(self, provider):
        result = await provider.create_issue({"context_id": "ctx", "summary": "x bug", "priority": "whenever"})

        assert result["issue"]["priority"] == "medium"

    @pytest.mark.asyncio
    async def test_empty_summary_rejected(self, provider):
        with pytest.raises(ValueError):
            await provider.create_issue({"context_id": "ctx", "summary": "  "})

    @pytest.mark.asyncio
    async def test_search(self, provider):
        await provider.create_issue({"context_id": "ctx", "summary": "Login page crashes"})
        await provider.create_issue({"context_id": "ctx", "summary": "Export times out"})

        result = await provider.search_issues({"context_id": "ctx", "query": "login"})

        assert [item["summary"] for item in result["results"]] == ["Login page crashes"]


class TestCoreProvider:
    @pytest.mark.asyncio
    async def test_chat_echo_without_backend(self):
        result = await CoreProvider().chat({"message": "hi"})

        assert result == {"response": "Received: hi", "model": "echo"}

    @pytest.mark.asyncio
    async def test_chat_backend(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"response": "hello back", "model": "remote"})

        provider = CoreProvider(chat_url="http://chat.test/api/chat", transport=httpx.MockTransport(handler))
        try:
            result = await provider.chat({"message": "hello", "context_id": "ctx"})
        finally:
            await provider.close()

        assert result == {"response": "hello back", "model": "remote"}
        assert seen == [{"message": "hello", "context_id": "ctx"}]

    @pytest.mark.asyncio
    async def test_chat_backend_error_is_transient(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        provider = CoreProvider(chat_url="http://chat.test/api/chat", transport=transport)

        with pytest.raises(ProviderUnavailableError):
            await provider.chat({"message": "hello"})
        await provider.close()

    @pytest.mark.asyncio
    async def test_aggregate_search_results(self):
        upstream = {
            "t-search-0": {"source": "messaging", "results": [{"id": "m1"}], "total": 1},
            "t-search-1": {"source": "files", "results": [{"id": "d1"}, {"id": "d2"}], "total": 2},
        }

        result = await CoreProvider().aggregate_search_results({"query": "roadmap", "upstream": upstream})

        assert result["sources_queried"] == 2
        assert result["total_results"] == 3
        assert [source["source"] for source in result["sources"]] == ["messaging", "files"]

    @pytest.mark.asyncio
    async def test_analyze_collected_data(self, message_source, mail_source, nlp_processor):
        messages = await MessagingProvider(message_source).get_recent_messages({"context_id": "ctx"})
        mail = await MailProvider(mail_source).get_recent_mail({"context_id": "ctx"})

        result = await CoreProvider(processor=nlp_processor).analyze_collected_data({
            "upstream": {"t-collect-messaging": messages, "t-collect-mail": mail},
        })

        assert result["collected"] == {"messaging": 5, "mail": 2}
        assert result["analysis"]["message_count"] == 7
        assert isinstance(result["recommendations"], list)

    @pytest.mark.asyncio
    async def test_create_task(self):
        provider = CoreProvider()

        result = await provider.create_task({"user_input": "create a reminder", "user_id": "u1"})

        assert result["type"] == "task"
        assert result["task"]["owner"] == "u1"
        assert provider.created_tasks == [result["task"]]


class TestTimezoneHandling:
    """Test that offset-aware and naive timestamps mix safely"""

    def zulu_messages(self, count=3):
        start = datetime.now(timezone.utc) - timedelta(hours=1)
        return [
            ChatMessage.model_validate({
                "id": f"z{i}",
                "text": f"status report {i}",
                "author": {"id": "u1", "name": "alice"},
                "channel": {"id": "c1", "name": "general"},
                "timestamp": (start + timedelta(minutes=i)).strftime("%Y-%m-%dT%H:%M:%SZ"),
            })
            for i in range(count)
        ]

    def test_timestamps_normalized_to_utc(self):
        naive = MailItem(id="m", subject="s", sender="a", timestamp=datetime(2024, 3, 12, 9, 0))
        shifted = ChatMessage.model_validate({
            "id": "x", "text": "hi", "author": {"id": "u", "name": "u"}, "channel": {"id": "c", "name": "c"},
            "timestamp": "2024-03-12T17:00:00+08:00",
        })

        assert naive.timestamp == datetime(2024, 3, 12, 9, 0, tzinfo=timezone.utc)
        assert shifted.timestamp == datetime(2024, 3, 12, 9, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_recent_messages_with_zulu_timestamps(self, nlp_processor):
        provider = MessagingProvider(InMemoryMessageSource({"ctx": self.zulu_messages()}), processor=nlp_processor)

        result = await provider.get_recent_messages({"context_id": "ctx", "days": 7})
        search = await provider.search_messages({"context_id": "ctx", "query": "report"})

        assert result["total_count"] == 3
        assert search["total"] == 3

    @pytest.mark.asyncio
    async def test_recent_mail_with_naive_timestamps(self):
        yesterday = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=1)
        source = InMemoryMailSource({"ctx": [MailItem(id="n1", subject="Naive", sender="a", timestamp=yesterday)]})

        result = await MailProvider(source).get_recent_mail({"context_id": "ctx"})

        assert result["total_count"] == 1

    @pytest.mark.asyncio
    async def test_analyze_mixes_naive_mail_and_zulu_messages(self, nlp_processor):
        messages = await MessagingProvider(InMemoryMessageSource({"ctx": self.zulu_messages()})).get_recent_messages(
            {"context_id": "ctx"}
        )
        mail = {
            "source": "mail",
            "messages": [{
                "id": "n1", "subject": "Naive", "body": "plain body", "sender": "a",
                "timestamp": (datetime.now() - timedelta(hours=2)).isoformat(),
            }],
        }

        result = await CoreProvider(processor=nlp_processor).analyze_collected_data({
            "upstream": {"t-collect-messaging": messages, "t-collect-mail": mail},
        })

        assert result["collected"] == {"messaging": 3, "mail": 1}
        assert result["analysis"]["message_count"] == 4
