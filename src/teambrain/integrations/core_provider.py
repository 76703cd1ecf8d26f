"""
Core provider

Generic capabilities that do not belong to a data source: chat, fan-in of
search results, analysis of data collected by upstream subtasks, and
generic task creation.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
import structlog

from .base_client import CapabilityProvider, Handler, HttpBackend
from ..config.settings import get_settings
from ..models.data_models import ChatMessage, MessageAuthor, MessageChannel, ProviderKey
from ..utils.nlp_processor import AnalysisOptions, NLPProcessor, get_nlp_processor

logger = structlog.get_logger(__name__)


def _upstream(params: Dict[str, Any]) -> Dict[str, Any]:
    return params.get("upstream") or {}


def _mail_to_message(item: Dict[str, Any]) -> ChatMessage:
    sender = item.get("sender", "unknown")
    return ChatMessage(
        id=str(item.get("id")),
        text=f"{item.get('subject', '')}\n{item.get('body', '')}".strip(),
        author=MessageAuthor(id=sender, name=sender),
        channel=MessageChannel(id="mail", name="mail"),
        timestamp=item.get("timestamp"),
    )


class CoreProvider(CapabilityProvider):
    """Chat, aggregation, collected-data analysis and task creation"""

    key = ProviderKey.CORE

    def __init__(
        self,
        processor: Optional[NLPProcessor] = None,
        chat_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = get_settings()
        self._processor = processor
        self.chat_url = chat_url or self.settings.compatibility.chat_endpoint_url
        self._transport = transport
        self._backend: Optional[HttpBackend] = None
        self.created_tasks: List[Dict[str, Any]] = []

    def actions(self) -> Dict[str, Handler]:
        return {
            "chat": self.chat,
            "aggregate_search_results": self.aggregate_search_results,
            "analyze_collected_data": self.analyze_collected_data,
            "create_task": self.create_task,
        }

    async def close(self):
        if self._backend is not None:
            await self._backend.close()
            self._backend = None

    async def chat(self, params: Dict[str, Any]) -> Dict[str, Any]:
        message = params.get("message") or params.get("user_input", "")

        if not self.chat_url:
            return {"response": f"Received: {message}", "model": "echo"}

        if self._backend is None:
            self._backend = HttpBackend(
                self.chat_url,
                timeout=self.settings.compatibility.chat_timeout_seconds,
                transport=self._transport,
            )
        data = await self._backend.post_json("", {
            "message": message,
            "context_id": params.get("context_id"),
        })
        return {
            "response": data.get("response") or data.get("message", ""),
            "model": data.get("model", "chat-backend"),
        }

    async def aggregate_search_results(self, params: Dict[str, Any]) -> Dict[str, Any]:
        sources = []
        for subtask_id, data in _upstream(params).items():
            if not isinstance(data, dict):
                continue
            sources.append({
                "subtask_id": subtask_id,
                "source": data.get("source", subtask_id),
                "results": data.get("results", []),
                "total": data.get("total", len(data.get("results", []))),
            })

        return {
            "query": params.get("query", ""),
            "sources": sources,
            "sources_queried": len(sources),
            "total_results": sum(source["total"] for source in sources),
        }

    async def analyze_collected_data(self, params: Dict[str, Any]) -> Dict[str, Any]:
        messages: List[ChatMessage] = []
        collected: Dict[str, int] = {}

        for data in _upstream(params).values():
            if not isinstance(data, dict):
                continue
            source = data.get("source", "unknown")
            items = data.get("messages", [])
            collected[source] = collected.get(source, 0) + len(items)
            if source == ProviderKey.MAIL.value:
                messages.extend(_mail_to_message(item) for item in items)
            else:
                messages.extend(ChatMessage.model_validate(item) for item in items)

        messages.sort(key=lambda m: m.timestamp)

        if self._processor is None:
            self._processor = await get_nlp_processor()
        result = await self._processor.perform_deep_analysis(messages, AnalysisOptions.from_params(params))

        recommendations = []
        if result.team_insights is not None:
            recommendations = [rec.to_dict() for rec in result.team_insights.recommendations]

        logger.info("Analyzed collected data", sources=collected, messages=len(messages))
        return {
            "collected": collected,
            "analysis": result.to_dict(),
            "recommendations": recommendations,
        }

    async def create_task(self, params: Dict[str, Any]) -> Dict[str, Any]:
        title = (params.get("title") or params.get("user_input") or "").strip()
        if not title:
            raise ValueError("Task title is empty")

        record = {
            "id": f"item-{uuid.uuid4().hex[:12]}",
            "title": title[:120],
            "owner": params.get("user_id"),
            "created_at": datetime.now().isoformat(),
        }
        self.created_tasks.append(record)
        logger.info("Task created", item_id=record["id"])
        return {"type": "task", "task": record}
