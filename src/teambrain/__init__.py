"""
Team Brain MCP Server

Orchestrates free-form team requests into dependency-scheduled provider
calls and turns team conversations into sentiment, action items, meeting
threads and collaboration insights.
"""

__version__ = "0.1.0"
__author__ = "Team Brain Developers"
__email__ = "noreply@example.com"
__description__ = "MCP server for team task orchestration and conversation analytics"
