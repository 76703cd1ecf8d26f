"""
Capability Providers Package

This package provides the capability registry and the providers the
orchestrator invokes through it:
- Messaging analytics (search, history, notifications, deep analysis)
- Mail and document search, email drafts
- Issue tracker search and creation
- Core chat, search aggregation and collected-data analysis

Every invocation goes through the registry, which applies a per-call
timeout and bounded retry with exponential backoff.
"""

from .base_client import CapabilityProvider, HttpBackend, InvocationResult, RetryConfig
from .client_manager import CapabilityRegistry
from .message_source import (
    InMemoryDocumentSource,
    InMemoryIssueStore,
    InMemoryMailSource,
    InMemoryMessageSource,
    MessageSource,
    relevance_score,
)
from .messaging_provider import MessagingProvider
from .workspace_provider import FileProvider, MailProvider
from .issue_provider import IssueTrackerProvider
from .core_provider import CoreProvider

__all__ = [
    # Registry
    "CapabilityProvider",
    "CapabilityRegistry",
    "HttpBackend",
    "InvocationResult",
    "RetryConfig",

    # Data sources
    "MessageSource",
    "InMemoryMessageSource",
    "InMemoryMailSource",
    "InMemoryDocumentSource",
    "InMemoryIssueStore",
    "relevance_score",

    # Providers
    "MessagingProvider",
    "MailProvider",
    "FileProvider",
    "IssueTrackerProvider",
    "CoreProvider",
]
