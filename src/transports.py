"""
Result transports.

A transport carries the messages of a measurement back to whoever asked
for it. Every transport implements two coroutines:
- push_progress(message): a partial result
- push_result(message): the terminal result

Messages have the shape {"testId", "measurementId", "result"}.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional

from rich.console import Console


class Transport(ABC):
    """Base class for measurement transports."""

    @abstractmethod
    async def push_progress(self, message: dict[str, Any]) -> None:
        """Send a partial result."""
        pass

    @abstractmethod
    async def push_result(self, message: dict[str, Any]) -> None:
        """Send the terminal result."""
        pass


class MemoryTransport(Transport):
    """Keeps every message in memory, in order."""

    def __init__(self):
        self.messages: list[tuple[str, dict[str, Any]]] = []

    async def push_progress(self, message: dict[str, Any]) -> None:
        self.messages.append(("progress", message))

    async def push_result(self, message: dict[str, Any]) -> None:
        self.messages.append(("result", message))

    @property
    def progress(self) -> list[dict[str, Any]]:
        return [m for kind, m in self.messages if kind == "progress"]

    @property
    def results(self) -> list[dict[str, Any]]:
        return [m for kind, m in self.messages if kind == "result"]


class ConsoleTransport(Transport):
    """
    Prints a measurement to the terminal.

    Progress fragments are written as they arrive; the terminal result is
    kept for the caller to render.
    """

    def __init__(self, console: Optional[Console] = None, show_progress: bool = True):
        self.console = console or Console()
        self.show_progress = show_progress
        self.result: Optional[dict[str, Any]] = None

    async def push_progress(self, message: dict[str, Any]) -> None:
        if not self.show_progress:
            return
        raw = message.get("result", {}).get("rawOutput")
        if raw:
            self.console.out(raw, end="", highlight=False)

    async def push_result(self, message: dict[str, Any]) -> None:
        self.result = message["result"]
        if self.show_progress:
            self.console.out("")


class JsonLinesTransport(Transport):
    """Writes every message as one JSON line to a console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    async def push_progress(self, message: dict[str, Any]) -> None:
        self.console.out(json.dumps({"type": "progress", **message}), highlight=False)

    async def push_result(self, message: dict[str, Any]) -> None:
        self.console.out(json.dumps({"type": "result", **message}), highlight=False)
