"""
Capability Registry

This module provides the registry every orchestrator invocation is given:
- Registration of providers or individual (provider, action) handlers
- Resolution with configuration errors for unknown keys
- Invocation with a per-call timeout and bounded retry with backoff
- Per-provider call metrics and health reporting
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import structlog
from tenacity import (
    AsyncRetrying, stop_after_attempt, wait_exponential,
    retry_if_exception_type, before_sleep_log
)

from .base_client import CapabilityProvider, Handler, InvocationResult, ProviderMetrics, RetryConfig
from ..config.settings import Settings, get_settings
from ..errors import InvocationTimeoutError, ProviderNotRegisteredError, ProviderUnavailableError
from ..models.data_models import ProviderKey

logger = structlog.get_logger(__name__)
retry_logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (ProviderUnavailableError, InvocationTimeoutError)

ProviderFactory = Callable[[str], CapabilityProvider]


def _key(provider: Union[ProviderKey, str]) -> str:
    return provider.value if isinstance(provider, ProviderKey) else str(provider)


class CapabilityRegistry:
    """Maps (provider key, action) pairs to handlers and invokes them"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        retry_config: Optional[RetryConfig] = None,
        timeout: Optional[float] = None,
    ):
        self.settings = settings or get_settings()
        self.retry_config = retry_config or RetryConfig.from_settings(self.settings.orchestrator)
        self.timeout = timeout if timeout is not None else self.settings.orchestrator.invocation_timeout_seconds

        self._handlers: Dict[Tuple[str, str], Handler] = {}
        self._providers: Dict[str, CapabilityProvider] = {}
        self._metrics: Dict[str, ProviderMetrics] = {}

        # Context-scoped provider instances
        self._factories: Dict[str, ProviderFactory] = {}
        self._scopes: Dict[str, "CapabilityRegistry"] = {}
        self._scope_lock = asyncio.Lock()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def register(self, provider: CapabilityProvider) -> "CapabilityRegistry":
        """Register every action a provider exposes"""
        key = _key(provider.key)
        self._providers[key] = provider
        for action, handler in provider.actions().items():
            self._handlers[(key, action)] = handler
        logger.info("Registered provider", provider=key, actions=sorted(provider.actions()))
        return self

    def register_handler(self, provider: Union[ProviderKey, str], action: str, handler: Handler) -> "CapabilityRegistry":
        """Register a single handler, replacing any existing one"""
        self._handlers[(_key(provider), action)] = handler
        return self

    def register_factory(self, provider: Union[ProviderKey, str], factory: ProviderFactory) -> "CapabilityRegistry":
        """Register a per-context provider factory, used by scoped registries"""
        self._factories[_key(provider)] = factory
        return self

    async def scoped(self, context_id: str) -> "CapabilityRegistry":
        """
        Registry for one context id

        Shares this registry's handlers and metrics and adds providers built
        by the registered factories. Scopes are cached for the lifetime of
        this registry.
        """
        if not self._factories:
            return self

        async with self._scope_lock:
            scope = self._scopes.get(context_id)
            if scope is None:
                scope = CapabilityRegistry(self.settings, self.retry_config, self.timeout)
                scope._handlers.update(self._handlers)
                scope._metrics = self._metrics
                for key, factory in self._factories.items():
                    scope.register(factory(context_id))
                self._scopes[context_id] = scope
                logger.info("Created context scope", context_id=context_id, providers=sorted(self._factories))
            return scope

    def resolve(self, provider: Union[ProviderKey, str], action: str) -> Handler:
        handler = self._handlers.get((_key(provider), action))
        if handler is None:
            raise ProviderNotRegisteredError(_key(provider), action)
        return handler

    def has_capability(self, provider: Union[ProviderKey, str], action: str) -> bool:
        return (_key(provider), action) in self._handlers

    def capabilities(self) -> List[str]:
        return sorted(f"{provider}.{action}" for provider, action in self._handlers)

    async def invoke(
        self,
        provider: Union[ProviderKey, str],
        action: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> InvocationResult:
        """Invoke a capability; failures come back as unsuccessful results"""
        key = _key(provider)
        params = params or {}
        started = time.perf_counter()
        attempts = 0

        try:
            handler = self.resolve(key, action)
        except ProviderNotRegisteredError as e:
            logger.error("Capability not registered", provider=key, action=action)
            return InvocationResult(success=False, provider=key, action=action, error=str(e))

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.retry_config.max_attempts),
                wait=wait_exponential(
                    multiplier=self.retry_config.initial_wait,
                    min=self.retry_config.initial_wait,
                    max=self.retry_config.max_wait,
                ),
                retry=retry_if_exception_type(RETRYABLE_ERRORS),
                before_sleep=before_sleep_log(retry_logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    attempts += 1
                    data = await self._call_with_timeout(handler, params, key, action)
        except Exception as e:
            duration_ms = (time.perf_counter() - started) * 1000
            self._record(key, False, duration_ms, str(e))
            logger.error("Capability invocation failed", provider=key, action=action, attempts=attempts, error=str(e))
            return InvocationResult(
                success=False, provider=key, action=action,
                error=str(e) or e.__class__.__name__, duration_ms=duration_ms, attempts=attempts,
            )

        duration_ms = (time.perf_counter() - started) * 1000
        self._record(key, True, duration_ms)
        return InvocationResult(
            success=True, provider=key, action=action, data=data, duration_ms=duration_ms, attempts=attempts,
        )

    async def _call_with_timeout(self, handler: Handler, params: Dict[str, Any], key: str, action: str) -> Any:
        try:
            return await asyncio.wait_for(handler(params), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise InvocationTimeoutError(f"{key}.{action} timed out after {self.timeout}s") from e

    def _record(self, key: str, success: bool, duration_ms: float, error: Optional[str] = None):
        self._metrics.setdefault(key, ProviderMetrics()).record(success, duration_ms, error)

    def get_health(self) -> Dict[str, Any]:
        """Per-provider call statistics"""
        return {
            "providers": sorted(self._providers),
            "capabilities": self.capabilities(),
            "metrics": {
                key: {
                    "total_calls": metrics.total_calls,
                    "successful_calls": metrics.successful_calls,
                    "failed_calls": metrics.failed_calls,
                    "average_duration_ms": round(metrics.average_duration_ms, 2),
                    "last_error": metrics.last_error,
                }
                for key, metrics in self._metrics.items()
            },
        }

    async def close(self):
        """Close every registered provider and context scope"""
        for scope in self._scopes.values():
            await scope.close()
        self._scopes.clear()

        for key, provider in self._providers.items():
            try:
                await provider.close()
            except Exception as e:
                logger.error("Failed to close provider", provider=key, error=str(e))
