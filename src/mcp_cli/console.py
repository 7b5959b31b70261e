"""Operator-facing line console."""

import asyncio
import sys
import threading
from typing import Callable, Protocol, TextIO


class Console(Protocol):
    """Line-oriented prompt interface used by the session controller."""

    async def ask(self, prompt: str) -> str:
        """Show a prompt and wait for one line. Raises EOFError at end of input."""
        ...

    def show(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


def _resolve(future: asyncio.Future, line: str | None, error: Exception | None) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(line)


class TerminalConsole:
    """
    Console over stdin/stdout.

    ``input()`` blocks, so each read runs in a daemon thread and the event
    loop stays free to process server notifications while the operator
    types. A read abandoned by cancellation (Ctrl-C) never keeps the
    process alive.
    """

    def __init__(
        self,
        out: TextIO | None = None,
        err: TextIO | None = None,
        reader: Callable[[str], str] = input
    ) -> None:
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        self.reader = reader

    async def ask(self, prompt: str) -> str:
        self.out.flush()
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        def read() -> None:
            line, error = None, None
            try:
                line = self.reader(prompt)
            except Exception as e:
                error = e
            try:
                loop.call_soon_threadsafe(_resolve, future, line, error)
            except RuntimeError:
                # event loop already closed; nobody is waiting for the line
                return

        threading.Thread(target=read, name="console-reader", daemon=True).start()
        return await future

    def show(self, message: str) -> None:
        print(message, file=self.out, flush=True)

    def error(self, message: str) -> None:
        print(message, file=self.err, flush=True)
