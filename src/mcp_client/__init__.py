"""MCP Client - Tool discovery and execution.

Connects to a single MCP server over stdio or streamable HTTP, snapshots
its tools and executes tool calls. Reusable by the console and by tests.
"""

from mcp_client.base import LogHandler, ToolClient
from mcp_client.client import (
    MCPClient,
    MCPClientError,
    MCPConnectionError,
    ToolExecutionError,
)

__all__ = [
    "LogHandler",
    "ToolClient",
    "MCPClient",
    "MCPClientError",
    "MCPConnectionError",
    "ToolExecutionError",
]
