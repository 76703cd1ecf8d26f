"""
Messaging analytics provider

Capability provider over a team messaging source:
- Relevance-ranked message search
- Recent history with activity summary statistics
- Channel activity breakdowns
- Notifications
- Deep analysis through the text-analytics cascade
- Key discussion (meeting thread) discovery
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

import structlog

from .base_client import CapabilityProvider, Handler
from .message_source import MessageSource, relevance_score
from ..config.settings import get_settings
from ..models.data_models import ChatMessage, MessageQuery, ProviderKey
from ..utils.nlp_processor import AnalysisOptions, NLPProcessor, get_nlp_processor

logger = structlog.get_logger(__name__)

Notifier = Callable[[str, str], Awaitable[Any]]


class MessagingProvider(CapabilityProvider):
    """Team messaging capabilities"""

    key = ProviderKey.MESSAGING

    def __init__(
        self,
        source: MessageSource,
        processor: Optional[NLPProcessor] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.settings = get_settings()
        self.source = source
        self._processor = processor
        self._notifier = notifier
        self.outbox: List[Dict[str, Any]] = []

    def actions(self) -> Dict[str, Handler]:
        return {
            "search_messages": self.search_messages,
            "get_recent_messages": self.get_recent_messages,
            "send_notification": self.send_notification,
            "deep_analysis": self.deep_analysis,
            "get_channel_activity": self.get_channel_activity,
            "find_key_discussions": self.find_key_discussions,
        }

    async def _processor_instance(self) -> NLPProcessor:
        if self._processor is None:
            self._processor = await get_nlp_processor()
        await self._processor.initialize()
        return self._processor

    async def load_messages(self, params: Dict[str, Any]) -> List[ChatMessage]:
        days = int(params.get("days") or params.get("timeframe_days") or self.settings.analytics.default_timeframe_days)
        query = MessageQuery(
            limit=int(params.get("limit") or self.settings.analytics.message_load_limit),
            start_date=datetime.now(timezone.utc) - timedelta(days=days),
            channel=params.get("channel"),
        )
        batch = await self.source.load(params.get("context_id", "default"), query)
        return batch.messages

    async def search_messages(self, params: Dict[str, Any]) -> Dict[str, Any]:
        query = str(params.get("query", "")).strip()
        messages = await self.load_messages({**params, "days": params.get("days", 30)})

        scored = []
        for message in messages:
            score = relevance_score(message.text, query) if query else 0.0
            if score > 0:
                scored.append((score, message))
        scored.sort(key=lambda pair: pair[0], reverse=True)

        limit = int(params.get("max_results", 20))
        results = [
            {**message.model_dump(mode="json"), "relevance": round(score, 3)}
            for score, message in scored[:limit]
        ]
        logger.info("Message search complete", query=query, scanned=len(messages), matches=len(scored))
        return {"source": self.key.value, "query": query, "results": results, "total": len(scored)}

    async def get_recent_messages(self, params: Dict[str, Any]) -> Dict[str, Any]:
        messages = await self.load_messages(params)
        days = int(params.get("days") or self.settings.analytics.default_timeframe_days)
        return {
            "source": self.key.value,
            "messages": [message.model_dump(mode="json") for message in messages],
            "total_count": len(messages),
            "summary": {
                "unique_users": len({m.author.id for m in messages}),
                "unique_channels": len({m.channel.id for m in messages}),
                "avg_messages_per_day": round(len(messages) / max(days, 1), 2),
            },
        }

    async def send_notification(self, params: Dict[str, Any]) -> Dict[str, Any]:
        channel = params.get("channel", "general")
        text = params.get("message", "")
        if not text:
            raise ValueError("Notification message is empty")

        if self._notifier is not None:
            await self._notifier(channel, text)
        record = {"channel": channel, "message": text, "sent_at": datetime.now(timezone.utc).isoformat()}
        self.outbox.append(record)
        logger.info("Notification sent", channel=channel)
        return {"sent": True, **record}

    async def deep_analysis(self, params: Dict[str, Any]) -> Dict[str, Any]:
        options = AnalysisOptions.from_params(params)
        messages = await self.load_messages({**params, "days": options.timeframe_days})
        processor = await self._processor_instance()
        result = await processor.perform_deep_analysis(messages, options)
        return {"source": self.key.value, "analysis": result.to_dict()}

    async def get_channel_activity(self, params: Dict[str, Any]) -> Dict[str, Any]:
        messages = await self.load_messages(params)
        processor = await self._processor_instance()
        insights = await processor.analytics_engine.generate_team_insights(messages)
        communication = insights.communication
        return {
            "total_messages": len(messages),
            "daily_breakdown": communication.messages_per_day,
            "peak_hours": communication.peak_hours,
            "most_active_channels": communication.most_active_channels,
            "most_active_users": communication.most_active_users,
        }

    async def find_key_discussions(self, params: Dict[str, Any]) -> Dict[str, Any]:
        messages = await self.load_messages(params)
        processor = await self._processor_instance()
        threads = await processor.meeting_analyzer.analyze_meetings(messages)
        return {"discussions": [thread.to_dict() for thread in threads], "total": len(threads)}
