"""
Base classes for capability providers

This module provides the foundation every provider builds on:
- Uniform invocation contract (action name -> coroutine handler)
- Invocation result records consumed by the aggregator
- Retry configuration and per-provider call metrics
- An httpx-based backend for providers that talk HTTP
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
import structlog

from ..config.settings import OrchestratorSettings, get_settings
from ..errors import ProviderNotRegisteredError, ProviderUnavailableError
from ..models.data_models import ProviderKey

logger = structlog.get_logger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[Any]]


@dataclass
class RetryConfig:
    """Retry configuration"""
    max_attempts: int = 3
    initial_wait: float = 1.0
    max_wait: float = 10.0

    @classmethod
    def from_settings(cls, settings: OrchestratorSettings) -> "RetryConfig":
        return cls(
            max_attempts=settings.retry_attempts,
            initial_wait=settings.retry_min_wait_seconds,
            max_wait=settings.retry_max_wait_seconds,
        )


@dataclass
class InvocationResult:
    """Outcome of one capability invocation"""
    success: bool
    provider: str
    action: str
    data: Any = None
    error: Optional[str] = None
    duration_ms: float = 0.0
    attempts: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "data": self.data,
            "error": self.error,
            "metadata": {
                "provider": self.provider,
                "action": self.action,
                "duration_ms": self.duration_ms,
                "attempts": self.attempts,
            },
        }


@dataclass
class ProviderMetrics:
    """Call metrics for one provider"""
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    average_duration_ms: float = 0.0
    last_call_time: Optional[datetime] = None
    last_error: Optional[str] = None

    def record(self, success: bool, duration_ms: float, error: Optional[str] = None):
        self.total_calls += 1
        if success:
            self.successful_calls += 1
        else:
            self.failed_calls += 1
            self.last_error = error
        if self.average_duration_ms == 0:
            self.average_duration_ms = duration_ms
        else:
            # Exponential moving average
            self.average_duration_ms = 0.9 * self.average_duration_ms + 0.1 * duration_ms
        self.last_call_time = datetime.now()


class CapabilityProvider(ABC):
    """Base class for all capability providers"""

    key: ProviderKey

    @abstractmethod
    def actions(self) -> Dict[str, Handler]:
        """Map each supported action name to its handler"""

    async def invoke(self, action: str, params: Dict[str, Any]) -> Any:
        handler = self.actions().get(action)
        if handler is None:
            raise ProviderNotRegisteredError(self.key.value, action)
        return await handler(params)

    async def close(self):
        """Release provider resources"""


class HttpBackend:
    """Minimal JSON-over-HTTP client used by providers with a remote backend"""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.settings = get_settings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry"""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()

    async def _ensure_client(self):
        """Ensure HTTP client is initialized"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers=self._get_default_headers(),
                transport=self._transport,
            )

    async def close(self):
        """Close HTTP client and cleanup resources"""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_default_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": f"{self.settings.app_name}/{self.settings.app_version}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def post_json(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST a JSON payload; transport and server errors become ProviderUnavailableError"""
        await self._ensure_client()
        url = f"{self.base_url}/{endpoint.lstrip('/')}" if endpoint else self.base_url

        try:
            response = await self._client.post(url, json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error("Backend returned error status", url=url, status=e.response.status_code)
            raise ProviderUnavailableError(f"{url} returned {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error("Backend request failed", url=url, error=str(e))
            raise ProviderUnavailableError(f"{url} unreachable: {e}") from e
