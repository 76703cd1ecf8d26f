#!/usr/bin/env python3
"""
Team Brain MCP Server

This is the main entry point for the Team Brain MCP server.
It exposes the task orchestrator (classification, planning, parallel
execution against capability providers, aggregation) and the
text-analytics cascade for team conversations as MCP tools.
"""

import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional, Sequence

import structlog

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from .agents.compatibility import CompatibilityRouter
from .agents.orchestrator import TaskOrchestrator
from .config.settings import Settings, get_settings
from .integrations.client_manager import CapabilityRegistry
from .integrations.core_provider import CoreProvider
from .integrations.issue_provider import IssueTrackerProvider
from .integrations.message_source import (
    InMemoryDocumentSource, InMemoryIssueStore, InMemoryMailSource, InMemoryMessageSource,
)
from .integrations.messaging_provider import MessagingProvider
from .integrations.workspace_provider import FileProvider, MailProvider
from .models.data_models import ChatMessage, TaskPriority
from .models.response_models import LegacyChatRequest
from .utils.nlp_processor import AnalysisOptions, get_nlp_processor

logger = structlog.get_logger()

# Initialize MCP Server
server = Server("team-brain")

PRIORITY_VALUES = [priority.value for priority in TaskPriority]

# Tool definitions following MCP protocol
TOOL_DEFINITIONS = [
    Tool(
        name="process_request",
        description="Classify a free-form request, run it across the team's data sources and return one unified result",
        inputSchema={
            "type": "object",
            "properties": {
                "message": {
                    "type": "string",
                    "description": "The user's request"
                },
                "context_id": {
                    "type": "string",
                    "description": "Workspace or team context identifier"
                },
                "user_id": {
                    "type": "string",
                    "description": "Requesting user",
                    "default": "mcp-user"
                },
                "priority": {
                    "type": "string",
                    "enum": PRIORITY_VALUES,
                    "default": "normal"
                }
            },
            "required": ["message", "context_id"]
        }
    ),
    Tool(
        name="analyze_messages",
        description="Run sentiment, action item, meeting and team insight analysis over messages or a single text",
        inputSchema={
            "type": "object",
            "properties": {
                "text": {
                    "type": "string",
                    "description": "Single text to analyze (language, sentiment, tasks, entities)"
                },
                "messages": {
                    "type": "array",
                    "description": "Messages to analyze as one conversation",
                    "items": {
                        "type": "object",
                        "properties": {
                            "id": {"type": "string"},
                            "text": {"type": "string"},
                            "author": {
                                "type": "object",
                                "properties": {"id": {"type": "string"}, "name": {"type": "string"}}
                            },
                            "channel": {
                                "type": "object",
                                "properties": {"id": {"type": "string"}, "name": {"type": "string"}}
                            },
                            "timestamp": {"type": "string", "format": "date-time"}
                        },
                        "required": ["id", "text", "author", "channel", "timestamp"]
                    }
                },
                "include_sentiment": {"type": "boolean", "default": True},
                "include_tasks": {"type": "boolean", "default": True},
                "include_meetings": {"type": "boolean", "default": True},
                "include_team_insights": {"type": "boolean", "default": True}
            }
        }
    ),
    Tool(
        name="get_task_status",
        description="Get the status and subtasks of an orchestrated task",
        inputSchema={
            "type": "object",
            "properties": {
                "task_id": {"type": "string", "description": "Task identifier"}
            },
            "required": ["task_id"]
        }
    ),
    Tool(
        name="cancel_task",
        description="Cancel a running task; subtasks that have not started are skipped",
        inputSchema={
            "type": "object",
            "properties": {
                "task_id": {"type": "string", "description": "Task identifier"}
            },
            "required": ["task_id"]
        }
    ),
    Tool(
        name="chat",
        description="Single-call chat contract, routed to the orchestrator or the legacy chat backend",
        inputSchema={
            "type": "object",
            "properties": {
                "message": {"type": "string"},
                "context_id": {"type": "string"}
            },
            "required": ["message", "context_id"]
        }
    ),
]

_orchestrator: Optional[TaskOrchestrator] = None
_router: Optional[CompatibilityRouter] = None


def build_registry(settings: Optional[Settings] = None) -> CapabilityRegistry:
    """Registry wired to in-memory data sources"""
    registry = CapabilityRegistry(settings)
    registry.register(MessagingProvider(InMemoryMessageSource()))
    registry.register(MailProvider(InMemoryMailSource()))
    registry.register(FileProvider(InMemoryDocumentSource()))
    registry.register(IssueTrackerProvider(InMemoryIssueStore()))
    registry.register(CoreProvider())
    return registry


def get_orchestrator() -> TaskOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = TaskOrchestrator(build_registry())
    return _orchestrator


def get_router() -> CompatibilityRouter:
    global _router
    if _router is None:
        _router = CompatibilityRouter(get_orchestrator())
    return _router


def _text(payload: Any) -> List[TextContent]:
    return [TextContent(type="text", text=json.dumps(payload, ensure_ascii=False, indent=2, default=str))]


async def analyze_messages(arguments: Dict[str, Any]) -> Dict[str, Any]:
    processor = await get_nlp_processor()

    text = arguments.get("text")
    if text:
        return await processor.analyze_text(text)

    messages = [ChatMessage.model_validate(item) for item in arguments.get("messages", [])]
    if not messages:
        raise ValueError("Provide either 'text' or a non-empty 'messages' list")
    messages.sort(key=lambda m: m.timestamp)
    result = await processor.perform_deep_analysis(messages, AnalysisOptions.from_params(arguments))
    return result.to_dict()


@server.list_tools()
async def handle_list_tools() -> List[Tool]:
    """List all available tools."""
    logger.info("Listing available tools", tool_count=len(TOOL_DEFINITIONS))
    return TOOL_DEFINITIONS


@server.call_tool()
async def handle_call_tool(name: str, arguments: Dict[str, Any]) -> Sequence[TextContent]:
    """Handle tool calls with proper MCP protocol compliance."""
    logger.info("Tool called", tool_name=name)
    arguments = arguments or {}

    try:
        if name == "process_request":
            result = await get_orchestrator().process_request(
                arguments["message"],
                arguments["context_id"],
                arguments.get("user_id", "mcp-user"),
                TaskPriority(arguments.get("priority", "normal")),
            )
            return _text(result.model_dump(mode="json"))

        elif name == "analyze_messages":
            return _text(await analyze_messages(arguments))

        elif name == "get_task_status":
            task = await get_orchestrator().get_task_status(arguments["task_id"])
            if task is None:
                return [TextContent(type="text", text=f"Task not found: {arguments['task_id']}")]
            return _text(task.model_dump(mode="json"))

        elif name == "cancel_task":
            cancelled = await get_orchestrator().cancel_task(arguments["task_id"])
            return _text({"task_id": arguments["task_id"], "cancelled": cancelled})

        elif name == "chat":
            request = LegacyChatRequest(message=arguments["message"], context_id=arguments["context_id"])
            response = await get_router().handle(request)
            return _text(response.model_dump(mode="json"))

        else:
            logger.error("Unknown tool called", tool_name=name)
            return [TextContent(
                type="text",
                text=f"Unknown tool: {name}"
            )]

    except Exception as e:
        logger.error("Tool execution failed", tool_name=name, error=str(e))
        return [TextContent(
            type="text",
            text=f"Tool execution failed: {str(e)}"
        )]


def configure_logging(settings: Settings):
    """Configure structured logging; stdout carries the MCP transport"""
    logging.basicConfig(level=settings.log_level.value, stream=sys.stderr, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


async def main():
    """Main entry point for the MCP server."""
    settings = get_settings()
    configure_logging(settings)
    logger.info("Starting Team Brain MCP Server", environment=settings.environment.value)

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options()
            )
    except Exception as e:
        logger.error("Server failed to start", error=str(e))
        raise
    finally:
        if _orchestrator is not None:
            await _orchestrator.registry.close()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
