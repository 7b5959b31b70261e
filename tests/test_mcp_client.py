"""Tests for the MCP client."""

import sys
from contextlib import asynccontextmanager
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from mcp import types
from mcp.shared.exceptions import McpError
from tenacity import wait_none

from shared.config import ClientSettings
from shared.models import LogMessage, ToolResultStatus
from mcp_client.client import (
    MCPClient,
    MCPClientError,
    MCPConnectionError,
    ToolExecutionError,
    build_server_parameters,
    is_http_target,
    render_content,
)


ECHO_SCHEMA = {
    "type": "object",
    "properties": {"message": {"type": "string"}},
    "required": ["message"],
}


class FakeSession:
    """Stands in for mcp.ClientSession."""

    pages = {
        None: types.ListToolsResult(
            tools=[types.Tool(name="echo", description="Echo", inputSchema=ECHO_SCHEMA)],
            nextCursor="page-2",
        ),
        "page-2": types.ListToolsResult(
            tools=[types.Tool(name="ping", inputSchema={"type": "object"})],
        ),
    }

    def __init__(self, read, write, read_timeout_seconds=None, logging_callback=None):
        self.logging_callback = logging_callback
        self.closed = False
        self.call_tool = AsyncMock(return_value=types.CallToolResult(
            content=[types.TextContent(type="text", text="hello")],
            isError=False,
        ))

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True

    async def initialize(self):
        return SimpleNamespace(serverInfo=types.Implementation(name="fake", version="1.0"))

    async def list_tools(self, cursor=None):
        return self.pages[cursor]


@pytest.fixture
def launched(monkeypatch):
    """Patch the stdio transport and session; record launch parameters."""
    calls = []

    @asynccontextmanager
    async def fake_stdio_client(params):
        calls.append(params)
        yield ("read", "write")

    monkeypatch.setattr("mcp_client.client.stdio_client", fake_stdio_client)
    monkeypatch.setattr("mcp_client.client.ClientSession", FakeSession)
    return calls


@pytest.fixture
def settings():
    return ClientSettings(connect_attempts=1)


class TestTargets:
    """Tests for target parsing."""

    def test_python_script(self):
        """Test that a bare .py path runs under this interpreter."""
        params = build_server_parameters("server.py")

        assert params.command == sys.executable
        assert params.args == ["server.py"]

    def test_node_script(self):
        params = build_server_parameters("build/index.js")

        assert params.command == "node"
        assert params.args == ["build/index.js"]

    def test_command_line_is_split(self):
        """Test shell-style splitting with quoting."""
        params = build_server_parameters('npx -y "@scope/server" --root "/tmp/my dir"')

        assert params.command == "npx"
        assert params.args == ["-y", "@scope/server", "--root", "/tmp/my dir"]

    def test_env_is_passed(self):
        params = build_server_parameters("uvx tool", env={"TOKEN": "x"})

        assert params.env == {"TOKEN": "x"}

    def test_empty_target_raises(self):
        with pytest.raises(MCPClientError, match="empty"):
            build_server_parameters("   ")

    @pytest.mark.parametrize("target,expected", [
        ("http://localhost:8000/mcp", True),
        ("HTTPS://example.com/mcp", True),
        ("python server.py", False),
        ("httpserver", False),
    ])
    def test_http_detection(self, target, expected):
        assert is_http_target(target) is expected


class TestRenderContent:
    """Tests for result content rendering."""

    def test_text(self):
        assert render_content(types.TextContent(type="text", text="hi")) == "hi"

    def test_image(self):
        block = types.ImageContent(type="image", data="AAAA", mimeType="image/png")

        assert render_content(block) == "[image: image/png]"

    def test_embedded_text_resource(self):
        block = types.EmbeddedResource(
            type="resource",
            resource=types.TextResourceContents(uri="file:///a.txt", text="contents"),
        )

        assert render_content(block) == "contents"

    def test_embedded_blob_resource(self):
        block = types.EmbeddedResource(
            type="resource",
            resource=types.BlobResourceContents(uri="file:///a.bin", blob="AAAA"),
        )

        assert render_content(block) == "[resource: file:///a.bin]"


class TestLifecycle:
    """Tests for connect, list and cleanup."""

    @pytest.mark.asyncio
    async def test_cleanup_without_connect(self, settings):
        """Test that cleanup is safe before any connection."""
        client = MCPClient(settings)

        await client.cleanup()
        await client.cleanup()

        assert not client.connected

    @pytest.mark.asyncio
    async def test_connect_takes_snapshot(self, launched, settings):
        """Test connect over stdio and paginated tool listing."""
        client = MCPClient(settings)

        await client.connect("python server.py --debug")
        tools = await client.list_tools()

        assert launched[0].command == "python"
        assert launched[0].args == ["server.py", "--debug"]
        assert [t.name for t in tools] == ["echo", "ping"]
        assert tools[0].properties()[0].required is True
        assert tools[1].input_schema["properties"] == {}
        assert client.server_info.name == "fake"

        await client.cleanup()
        assert not client.connected

    @pytest.mark.asyncio
    async def test_snapshot_is_a_copy(self, launched, settings):
        """Test that callers cannot mutate the client's snapshot."""
        client = MCPClient(settings)
        await client.connect("server.py")

        (await client.list_tools()).clear()

        assert len(await client.list_tools()) == 2

    @pytest.mark.asyncio
    async def test_connect_twice_raises(self, launched, settings):
        client = MCPClient(settings)
        await client.connect("server.py")

        with pytest.raises(MCPClientError, match="Already connected"):
            await client.connect("server.py")

    @pytest.mark.asyncio
    async def test_connect_failure_is_wrapped(self, monkeypatch, settings):
        """Test that a launch failure surfaces as MCPConnectionError."""
        @asynccontextmanager
        async def refusing(params):
            raise FileNotFoundError("no such command")
            yield

        monkeypatch.setattr("mcp_client.client.stdio_client", refusing)
        client = MCPClient(settings)

        with pytest.raises(MCPConnectionError, match="no such command"):
            await client.connect("does-not-exist")

        assert not client.connected
        await client.cleanup()

    @pytest.mark.asyncio
    async def test_connect_is_retried(self, monkeypatch, launched):
        """Test that a transient launch failure is retried."""
        attempts = []
        working = sys.modules["mcp_client.client"].stdio_client

        @asynccontextmanager
        async def flaky(params):
            attempts.append(params)
            if len(attempts) == 1:
                raise ConnectionResetError("reset")
            async with working(params) as streams:
                yield streams

        monkeypatch.setattr("mcp_client.client.stdio_client", flaky)
        monkeypatch.setattr("mcp_client.client.wait_exponential", lambda **kwargs: wait_none())
        client = MCPClient(ClientSettings(connect_attempts=2))

        await client.connect("server.py")

        assert len(attempts) == 2
        assert client.connected

    @pytest.mark.asyncio
    async def test_list_before_connect_raises(self, settings):
        with pytest.raises(MCPClientError, match="Not connected"):
            await MCPClient(settings).list_tools()

    @pytest.mark.asyncio
    async def test_context_manager_cleans_up(self, launched, settings):
        async with MCPClient(settings) as client:
            await client.connect("server.py")
            assert client.connected

        assert not client.connected


class TestExecuteTool:
    """Tests for tool execution."""

    @pytest.mark.asyncio
    async def test_execute_before_connect_raises(self, settings):
        with pytest.raises(MCPClientError, match="Not connected"):
            await MCPClient(settings).execute_tool("echo", {})

    @pytest.mark.asyncio
    async def test_success(self, launched, settings):
        """Test a successful call."""
        client = MCPClient(settings)
        await client.connect("server.py")

        result = await client.execute_tool("echo", {"message": "hi"})

        assert result.status == ToolResultStatus.SUCCESS
        assert result.text == "hello"
        client._session.call_tool.assert_awaited_once_with("echo", {"message": "hi"})

    @pytest.mark.asyncio
    async def test_schema_mismatch_still_sends(self, launched, settings):
        """Test that the server, not the client, rejects bad arguments."""
        client = MCPClient(settings)
        await client.connect("server.py")

        await client.execute_tool("echo", {"message": float("nan"), "extra": 1})

        client._session.call_tool.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_error_result(self, launched, settings):
        """Test that isError maps to an error status."""
        client = MCPClient(settings)
        await client.connect("server.py")
        client._session.call_tool.return_value = types.CallToolResult(
            content=[types.TextContent(type="text", text="bad input")],
            isError=True,
        )

        result = await client.execute_tool("echo", {"message": ""})

        assert result.status == ToolResultStatus.ERROR
        assert not result.ok
        assert result.content == ["bad input"]

    @pytest.mark.asyncio
    async def test_protocol_error_raises(self, launched, settings):
        """Test that protocol errors become ToolExecutionError."""
        client = MCPClient(settings)
        await client.connect("server.py")
        client._session.call_tool.side_effect = McpError(
            types.ErrorData(code=types.METHOD_NOT_FOUND, message="Unknown tool: nope")
        )

        with pytest.raises(ToolExecutionError, match="Unknown tool"):
            await client.execute_tool("nope", {})


class TestLogEvents:
    """Tests for log notification fan-out."""

    def test_unknown_event_rejected(self, settings):
        with pytest.raises(ValueError, match="Unsupported event"):
            MCPClient(settings).on("progress", lambda message: None)

    @pytest.mark.asyncio
    async def test_handlers_receive_messages(self, settings):
        """Test that sync and async handlers both receive log messages."""
        client = MCPClient(settings)
        seen: list[LogMessage] = []

        async def async_handler(message):
            seen.append(message)

        client.on("log", seen.append)
        client.on("log", async_handler)

        await client._handle_log(types.LoggingMessageNotificationParams(
            level="warning", logger="disk", data="space low"
        ))

        assert len(seen) == 2
        assert seen[0].level == "warning"
        assert seen[0].logger == "disk"
        assert seen[0].data == "space low"

    @pytest.mark.asyncio
    async def test_failing_handler_is_isolated(self, settings):
        """Test that one broken handler does not stop the others."""
        client = MCPClient(settings)
        seen = []

        def broken(message):
            raise RuntimeError("handler bug")

        client.on("log", broken)
        client.on("log", seen.append)

        await client._handle_log(types.LoggingMessageNotificationParams(level="info", data={"k": 1}))

        assert seen[0].data == {"k": 1}

    @pytest.mark.asyncio
    async def test_session_gets_log_callback(self, launched, settings):
        """Test that the session is wired to the client's log relay."""
        client = MCPClient(settings)
        await client.connect("server.py")

        assert client._session.logging_callback == client._handle_log
