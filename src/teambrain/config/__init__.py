"""
Configuration Package

Environment-driven settings for the orchestrator, the intent classifier,
the text-analytics cascade and the legacy compatibility path.
"""

from .settings import (
    Settings,
    Environment,
    LogLevel,
    OrchestratorSettings,
    ClassifierSettings,
    AnalyticsSettings,
    CompatibilitySettings,
    get_settings,
    reload_settings
)

__all__ = [
    "Settings",
    "Environment",
    "LogLevel",
    "OrchestratorSettings",
    "ClassifierSettings",
    "AnalyticsSettings",
    "CompatibilitySettings",
    "get_settings",
    "reload_settings"
]
