"""
Compatibility routing

Callers that still speak the single-call chat contract go through this
router. It sends requests to the orchestrator when enabled and to the
legacy chat backend otherwise, or when the orchestrator raises and
fallback is configured.
"""

from datetime import datetime
from typing import Awaitable, Callable, Optional

import httpx
import structlog

from .orchestrator import TaskOrchestrator
from ..config.settings import Settings, get_settings
from ..errors import ProviderUnavailableError
from ..integrations.base_client import HttpBackend
from ..models.response_models import LegacyChatRequest, LegacyChatResponse, UnifiedTaskResult

logger = structlog.get_logger(__name__)

LegacyHandler = Callable[[LegacyChatRequest], Awaitable[LegacyChatResponse]]

FALLBACK_RESPONSE = "The assistant is unavailable right now, please try again later."


def to_legacy_response(result: UnifiedTaskResult) -> LegacyChatResponse:
    """Convert an orchestrator result to the legacy chat response shape"""
    response = result.summary or result.data.content.get("response") or "Done"
    return LegacyChatResponse(
        success=result.success,
        response=str(response),
        model="master-agent",
        timestamp=datetime.now(),
        subtask_count=result.subtask_count,
    )


class CompatibilityRouter:
    """Routes legacy chat requests to the orchestrator or the legacy backend"""

    def __init__(
        self,
        orchestrator: TaskOrchestrator,
        settings: Optional[Settings] = None,
        legacy_handler: Optional[LegacyHandler] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.orchestrator = orchestrator
        self._legacy_handler = legacy_handler
        self._transport = transport

    async def handle(self, request: LegacyChatRequest, user_id: str = "anonymous") -> LegacyChatResponse:
        compatibility = self.settings.compatibility

        if not compatibility.enable_orchestrator:
            logger.info("Orchestrator disabled, using legacy chat", context_id=request.context_id)
            return await self.call_legacy(request)

        try:
            result = await self.orchestrator.process_request(request.message, request.context_id, user_id)
        except Exception as e:
            logger.error("Orchestrator failed", context_id=request.context_id, error=str(e))
            if compatibility.fallback_to_legacy:
                return await self.call_legacy(request)
            raise

        return to_legacy_response(result)

    async def call_legacy(self, request: LegacyChatRequest) -> LegacyChatResponse:
        if self._legacy_handler is not None:
            return await self._legacy_handler(request)

        url = self.settings.compatibility.legacy_chat_url
        if url:
            async with HttpBackend(
                url,
                timeout=self.settings.compatibility.chat_timeout_seconds,
                transport=self._transport,
            ) as backend:
                try:
                    data = await backend.post_json("", request.model_dump())
                except ProviderUnavailableError as e:
                    logger.warning("Legacy chat unavailable", error=str(e))
                else:
                    return LegacyChatResponse(
                        success=bool(data.get("success", True)),
                        response=str(data.get("response", "")),
                        model=data.get("model", "legacy"),
                    )

        return LegacyChatResponse(success=True, response=FALLBACK_RESPONSE, model="fallback")
