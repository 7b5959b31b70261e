"""MCP CLI - interactive console for calling MCP server tools.

Lists the server's tools, asks the operator for each tool's typed
arguments and dispatches the call through an MCP client.
"""

from mcp_cli.console import Console, TerminalConsole
from mcp_cli.session import InteractiveSession, LogSink, ignore_log

__all__ = [
    "Console",
    "TerminalConsole",
    "InteractiveSession",
    "LogSink",
    "ignore_log",
]
