"""Shared models, settings and logging for the MCP tool console."""

from shared.models import (
    ArgumentSet,
    ArgumentValue,
    LogMessage,
    PropertyKind,
    SchemaProperty,
    ToolDefinition,
    ToolResult,
    ToolResultStatus,
)
from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "ArgumentSet",
    "ArgumentValue",
    "LogMessage",
    "PropertyKind",
    "SchemaProperty",
    "ToolDefinition",
    "ToolResult",
    "ToolResultStatus",
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
]
