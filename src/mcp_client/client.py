"""MCP Client for tool discovery and execution.

Wraps an MCP ``ClientSession`` over either the stdio transport (the target
is a command line that launches the server) or the streamable HTTP
transport (the target is an ``http(s)://`` URL).
"""

import inspect
import json
import shlex
import sys
import time
from contextlib import AsyncExitStack
from datetime import timedelta
from typing import Any, Optional

import httpx
from mcp import ClientSession, StdioServerParameters, types
from mcp.client.stdio import stdio_client
from mcp.client.streamable_http import streamablehttp_client
from mcp.shared.exceptions import McpError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from shared.config import ClientSettings
from shared.logging import get_logger, mcp_log_level
from shared.models import LogMessage, ToolDefinition, ToolResult, ToolResultStatus
from shared.schema import normalize_input_schema, validate_schema
from mcp_client.base import LogHandler

logger = get_logger(__name__)
server_logger = get_logger("mcp.server")

SUPPORTED_EVENTS = ("log",)


class MCPClientError(Exception):
    """Base exception for MCP Client errors."""
    pass


class MCPConnectionError(MCPClientError):
    """Connection to the MCP server failed."""
    pass


class ToolExecutionError(MCPClientError):
    """The server could not execute a tool call."""
    pass


def is_http_target(target: str) -> bool:
    """Check whether a target names a streamable HTTP endpoint."""
    return target.strip().lower().startswith(("http://", "https://"))


def build_server_parameters(
    target: str,
    env: Optional[dict[str, str]] = None
) -> StdioServerParameters:
    """
    Turn a command-line target into stdio server parameters.

    A bare ``.py`` path runs under the current interpreter and a bare
    ``.js`` path under ``node``; anything else is split shell-style into
    command and arguments.

    Raises:
        MCPClientError: If the target is empty
    """
    parts = shlex.split(target)
    if not parts:
        raise MCPClientError("Server target must not be empty")

    if len(parts) == 1 and parts[0].endswith(".py"):
        return StdioServerParameters(command=sys.executable, args=parts, env=env)
    if len(parts) == 1 and parts[0].endswith(".js"):
        return StdioServerParameters(command="node", args=parts, env=env)

    return StdioServerParameters(command=parts[0], args=parts[1:], env=env)


def render_content(block: Any) -> str:
    """Render one tool result content block as text."""
    kind = getattr(block, "type", None)

    if kind == "text":
        return block.text
    if kind in ("image", "audio"):
        return f"[{kind}: {block.mimeType}]"
    if kind == "resource":
        resource = block.resource
        text = getattr(resource, "text", None)
        return text if text is not None else f"[resource: {resource.uri}]"
    if kind == "resource_link":
        return f"[resource: {block.uri}]"

    if hasattr(block, "model_dump"):
        return json.dumps(block.model_dump(mode="json"), ensure_ascii=False)
    return str(block)


class MCPClient:
    """
    Client for interacting with a single MCP server.

    Provides methods for:
    - Connecting over stdio or streamable HTTP
    - Listing the tools advertised at connect time
    - Executing tool calls
    - Relaying server log notifications to registered handlers

    One instance serves one session; ``cleanup`` releases everything
    ``connect`` acquired and may be called at any point.
    """

    def __init__(self, settings: Optional[ClientSettings] = None) -> None:
        """
        Initialize MCP Client.

        Args:
            settings: Client settings; defaults are read from the environment
        """
        self.settings = settings or ClientSettings()
        self.target: Optional[str] = None
        self.server_info: Optional[types.Implementation] = None

        self._session: Optional[ClientSession] = None
        self._exit_stack: Optional[AsyncExitStack] = None
        self._tools: list[ToolDefinition] = []
        self._handlers: dict[str, list[LogHandler]] = {event: [] for event in SUPPORTED_EVENTS}

    @property
    def connected(self) -> bool:
        return self._session is not None

    async def __aenter__(self) -> "MCPClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.cleanup()

    def on(self, event: str, handler: LogHandler) -> None:
        """
        Register a handler for an out-of-band event.

        Args:
            event: Event name; only ``"log"`` is emitted
            handler: Callable (sync or async) receiving a LogMessage

        Raises:
            ValueError: For unknown events
        """
        if event not in self._handlers:
            raise ValueError(f"Unsupported event '{event}', expected one of {SUPPORTED_EVENTS}")
        self._handlers[event].append(handler)

    async def connect(self, target: str) -> None:
        """
        Connect to an MCP server and take the tool snapshot.

        Args:
            target: ``http(s)://`` URL or command line launching the server

        Raises:
            MCPClientError: If already connected or the target is empty
            MCPConnectionError: If the server cannot be reached
        """
        if self.connected:
            raise MCPClientError(f"Already connected to {self.target}")
        if not target or not target.strip():
            raise MCPClientError("Server target must not be empty")

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.settings.connect_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception_type(MCPConnectionError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.info(
                        "Retrying connection",
                        target=target,
                        attempt=attempt.retry_state.attempt_number
                    )
                await self._open(target)

        self.target = target
        logger.info(
            "Connected to MCP server",
            target=target,
            server=self.server_info.name if self.server_info else None,
            tool_count=len(self._tools)
        )

    async def _open(self, target: str) -> None:
        """Open transport and session; release partial resources on failure."""
        stack = AsyncExitStack()

        try:
            if is_http_target(target):
                read, write, _ = await stack.enter_async_context(
                    streamablehttp_client(
                        target.strip(),
                        headers=self.settings.http_headers or None,
                        timeout=timedelta(seconds=self.settings.connect_timeout_seconds),
                    )
                )
            else:
                params = build_server_parameters(target, env=self.settings.server_env)
                read, write = await stack.enter_async_context(stdio_client(params))

            session = await stack.enter_async_context(
                ClientSession(
                    read,
                    write,
                    read_timeout_seconds=timedelta(seconds=self.settings.request_timeout_seconds),
                    logging_callback=self._handle_log,
                )
            )
            init = await session.initialize()
            tools = await self._fetch_tools(session)

        except MCPClientError:
            await self._close_quietly(stack)
            raise
        except (OSError, httpx.HTTPError, McpError) as e:
            await self._close_quietly(stack)
            logger.error("MCP server connection failed", target=target, error=str(e))
            raise MCPConnectionError(f"Cannot connect to MCP server '{target}': {e}") from e
        except BaseException:
            await self._close_quietly(stack)
            raise

        self._exit_stack = stack
        self._session = session
        self.server_info = init.serverInfo
        self._tools = tools

    async def _close_quietly(self, stack: AsyncExitStack) -> None:
        try:
            await stack.aclose()
        except Exception as e:
            logger.warning("Failed to release partial connection", error=str(e))

    async def _fetch_tools(self, session: ClientSession) -> list[ToolDefinition]:
        """Fetch every page of the server's tool list."""
        tools: list[ToolDefinition] = []
        cursor: Optional[str] = None

        while True:
            result = await session.list_tools(cursor=cursor) if cursor else await session.list_tools()
            tools.extend(
                ToolDefinition(
                    name=tool.name,
                    description=tool.description,
                    input_schema=normalize_input_schema(tool.inputSchema),
                )
                for tool in result.tools
            )
            cursor = result.nextCursor
            if not cursor:
                return tools

    async def list_tools(self, refresh: bool = False) -> list[ToolDefinition]:
        """
        List the tools taken at connect time.

        Args:
            refresh: Re-fetch the list from the server first

        Returns:
            Tool definitions in server order

        Raises:
            MCPClientError: If not connected
        """
        session = self._require_session()
        if refresh:
            self._tools = await self._fetch_tools(session)
            logger.debug("Tool list refreshed", tool_count=len(self._tools))
        return list(self._tools)

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        """Get a tool from the snapshot by name."""
        return next((tool for tool in self._tools if tool.name == name), None)

    async def execute_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """
        Execute a tool on the connected server.

        Arguments are checked against the tool's input schema; mismatches
        are logged but the call is still sent, the server being the
        authority on what it accepts.

        Args:
            name: Tool name
            arguments: Argument mapping

        Returns:
            Tool execution result

        Raises:
            MCPClientError: If not connected
            ToolExecutionError: If the call fails at the protocol level
        """
        session = self._require_session()

        tool = self.get_tool(name)
        if tool is not None:
            valid, errors = validate_schema(arguments, tool.input_schema)
            if not valid:
                logger.warning("Arguments do not match tool schema", tool=name, errors=errors)

        logger.debug("Executing tool", tool=name)
        start = time.perf_counter()

        try:
            result = await session.call_tool(name, arguments)
        except (McpError, OSError, httpx.HTTPError) as e:
            logger.error("Tool call failed", tool=name, error=str(e))
            raise ToolExecutionError(f"Tool '{name}' failed: {e}") from e

        elapsed_ms = (time.perf_counter() - start) * 1000
        status = ToolResultStatus.ERROR if result.isError else ToolResultStatus.SUCCESS

        logger.info(
            "Tool executed",
            tool=name,
            status=status.value,
            execution_time_ms=round(elapsed_ms, 2)
        )

        return ToolResult(
            tool_name=name,
            status=status,
            content=[render_content(block) for block in result.content],
            structured=getattr(result, "structuredContent", None),
            execution_time_ms=elapsed_ms,
        )

    async def cleanup(self) -> None:
        """Close the session and transport. Safe to call repeatedly."""
        stack, self._exit_stack = self._exit_stack, None
        self._session = None
        self._tools = []

        if stack is None:
            return

        await stack.aclose()
        logger.info("Disconnected from MCP server", target=self.target)

    def _require_session(self) -> ClientSession:
        if self._session is None:
            raise MCPClientError("Not connected to an MCP server")
        return self._session

    async def _handle_log(self, params: types.LoggingMessageNotificationParams) -> None:
        """Render a server log notification and fan it out to handlers."""
        message = LogMessage(level=params.level, logger=params.logger, data=params.data)

        server_logger.log(
            mcp_log_level(message.level),
            "Server log",
            source=message.logger,
            data=message.data
        )

        for handler in self._handlers["log"]:
            try:
                outcome = handler(message)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.error("Log handler failed", error=str(e))
