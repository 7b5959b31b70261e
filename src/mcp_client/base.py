"""Client contract consumed by the interactive console."""

from typing import Any, Awaitable, Callable, Protocol, Union, runtime_checkable

from shared.models import LogMessage, ToolDefinition, ToolResult

LogHandler = Callable[[LogMessage], Union[None, Awaitable[None]]]


@runtime_checkable
class ToolClient(Protocol):
    """
    Anything the console can drive.

    Implementations own the transport, the protocol session and the
    rendering of their own log output. ``cleanup`` must be safe to call
    whether or not ``connect`` succeeded.
    """

    async def connect(self, target: str) -> None: ...

    async def list_tools(self) -> list[ToolDefinition]: ...

    async def execute_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult: ...

    def on(self, event: str, handler: LogHandler) -> None: ...

    async def cleanup(self) -> None: ...
