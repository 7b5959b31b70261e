"""Interactive session controller.

Drives a tool client through connect, list, select, fill arguments and
execute until the operator quits. The controller owns no protocol logic;
it only validates and coerces operator input and keeps one bad tool call
from ending the session.
"""

import re
from typing import Any, Callable, Optional

from shared.logging import bind_context, clear_context, get_logger
from shared.models import ArgumentSet, LogMessage, ToolDefinition, ToolResult
from mcp_client.base import ToolClient
from mcp_cli.arguments import coerce_value, should_record
from mcp_cli.console import Console

logger = get_logger(__name__)

QUIT_COMMAND = "quit"

_SELECTION = re.compile(r"[+-]?[0-9]+")

LogSink = Callable[[LogMessage], Any]


def ignore_log(message: LogMessage) -> None:
    """Default log sink: the client renders its own log output."""


def parse_selection(text: str, tool_count: int) -> Optional[int]:
    """
    Parse a 1-based tool number.

    Only plain ASCII digits with an optional sign are accepted.

    Returns:
        Zero-based index, or None if the text is not a number in range
    """
    text = text.strip()
    if not _SELECTION.fullmatch(text):
        return None

    try:
        index = int(text) - 1
    except ValueError:
        return None

    if index < 0 or index >= tool_count:
        return None
    return index


class InteractiveSession:
    """
    One connect-to-cleanup session between an operator and a tool client.

    The tool list is captured once when the loop starts and is not
    re-fetched, so tool numbers stay stable for the whole session.
    """

    def __init__(
        self,
        client: ToolClient,
        console: Console,
        log_sink: LogSink = ignore_log
    ) -> None:
        """
        Initialize the session.

        Args:
            client: Tool client; exclusively owned by this session
            console: Prompt interface
            log_sink: Receives server log messages relayed by the client
        """
        self.client = client
        self.console = console
        self.log_sink = log_sink

        self.client.on("log", self.log_sink)

    async def start(self, target: str) -> int:
        """
        Connect, run the interactive loop and always clean up.

        Args:
            target: Server command line or URL, passed to the client as is

        Returns:
            Process exit status: 0 after a normal quit, 1 on any failure
        """
        status = 0
        bind_context(target=target)

        try:
            self.console.show("\nConnecting to server, please wait...")
            await self.client.connect(target)
            self.console.show("Connected.")

            await self.chat_loop()

        except Exception as e:
            status = 1
            logger.error("Session failed", error=str(e))
            self.console.error(f"\nError during connection or execution: {e}")

        finally:
            self.console.show("\nClosing client...")
            try:
                await self.client.cleanup()
            except Exception as e:
                status = 1
                logger.error("Client cleanup failed", error=str(e))
                self.console.error(f"Failed to close client cleanly: {e}")
            else:
                self.console.show("Client closed. Goodbye!")
            clear_context()

        return status

    async def chat_loop(self) -> None:
        """Select and run tools until the operator types quit."""
        self.console.show("\nMCP client started!")
        self.console.show(f"Enter a tool number, or '{QUIT_COMMAND}' to exit.")

        tools = await self.client.list_tools()

        while True:
            self._show_tools(tools)

            try:
                choice = await self.console.ask(
                    f"\nSelect a tool (1-{len(tools)}) or type '{QUIT_COMMAND}' to exit: "
                )
            except EOFError:
                logger.debug("End of input, leaving session")
                break

            if choice.strip().lower() == QUIT_COMMAND:
                break

            index = parse_selection(choice, len(tools))
            if index is None:
                self.console.error("\nInvalid tool selection!")
                continue

            tool = tools[index]
            try:
                arguments = await self.prompt_for_tool_arguments(tool)
                result = await self.client.execute_tool(tool.name, arguments.to_dict())
                self._show_result(result)
            except Exception as e:
                logger.warning("Tool invocation failed", tool=tool.name, error=str(e))
                self.console.error(f"\nTool execution failed: {e}")

    async def prompt_for_tool_arguments(self, tool: ToolDefinition) -> ArgumentSet:
        """
        Ask for each schema property in declared order.

        Empty input is kept only for required properties, where it is
        coerced like any other text. Nothing is re-prompted.
        """
        arguments = ArgumentSet(tool_name=tool.name)

        self.console.show(f"\nEnter arguments for {tool.name}:")

        for prop in tool.properties():
            marker = "required" if prop.required else "optional"
            text = await self.console.ask(f"{prop.name} ({marker}): ")

            if should_record(prop, text):
                arguments.set(prop.name, coerce_value(prop.kind, text))

        return arguments

    def _show_tools(self, tools: list[ToolDefinition]) -> None:
        self.console.show("\nAvailable tools:")
        for number, tool in enumerate(tools, 1):
            summary = (tool.description or "").strip().split("\n", 1)[0]
            if summary:
                self.console.show(f"{number}. {tool.name} - {summary}")
            else:
                self.console.show(f"{number}. {tool.name}")

    def _show_result(self, result: ToolResult) -> None:
        if result.ok:
            self.console.show(f"\nResult from {result.tool_name}:")
        else:
            self.console.error(f"\n{result.tool_name} reported an error:")

        self.console.show(result.text or "(no content)")
