"""
Line streaming over asyncio byte streams.
"""

import asyncio
from typing import Callable


LineCallback = Callable[[str], None]


async def by_line(
    stream: asyncio.StreamReader,
    callback: LineCallback,
    encoding: str = "utf-8",
) -> None:
    """
    Deliver each line of a byte stream to a callback as it arrives.

    Lines keep their trailing newline so that joining every delivered
    line reproduces the stream. A final unterminated line is delivered
    at end of stream.

    Args:
        stream: Stream to read until EOF
        callback: Called once per line, in arrival order
        encoding: Text encoding of the stream
    """
    while True:
        line = await stream.readline()
        if not line:
            break
        callback(line.decode(encoding, errors="replace"))
