"""Shared fixtures for the console and client tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.models import ToolDefinition, ToolResult, ToolResultStatus


class ScriptedConsole:
    """Console that replays canned operator input and records output."""

    def __init__(self, *lines: str) -> None:
        self.lines = list(lines)
        self.prompts: list[str] = []
        self.output: list[str] = []
        self.errors: list[str] = []

    async def ask(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.lines:
            raise EOFError
        return self.lines.pop(0)

    def show(self, message: str) -> None:
        self.output.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def count(self, text: str) -> int:
        return sum(1 for line in self.output if text in line)


def make_tool(name: str, properties: dict | None = None, required: list[str] | None = None) -> ToolDefinition:
    schema: dict = {"type": "object", "properties": properties or {}}
    if required:
        schema["required"] = required
    return ToolDefinition(name=name, description=f"{name} tool", input_schema=schema)


@pytest.fixture
def tools() -> list[ToolDefinition]:
    return [
        make_tool("echo", {"message": {"type": "string"}}, required=["message"]),
        make_tool("ping"),
        make_tool(
            "add",
            {"a": {"type": "number"}, "b": {"type": "number"}},
            required=["a", "b"],
        ),
    ]


@pytest.fixture
def client(tools):
    from mcp_client.client import MCPClient

    client = MagicMock(spec=MCPClient)
    client.connect = AsyncMock(return_value=None)
    client.list_tools = AsyncMock(return_value=tools)
    client.execute_tool = AsyncMock(side_effect=lambda name, args: ToolResult(
        tool_name=name,
        status=ToolResultStatus.SUCCESS,
        content=[f"{name} ok"],
    ))
    client.cleanup = AsyncMock(return_value=None)
    return client
