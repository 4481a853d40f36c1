"""
External command execution.

start_command() spawns a process and returns a CommandProcess handle.
The handle keeps the full stdout text for the final result. A consumer
that wants to follow the output while the process runs calls
`handle.follow()` and reads the returned stream. Awaiting the handle
returns a CommandResult or raises CommandError.
"""

import asyncio
import signal
from dataclasses import dataclass
from typing import Optional

from .exceptions import CommandError


CHUNK_SIZE = 4096


@dataclass
class CommandResult:
    """Result of a successful command."""
    command: list[str]
    returncode: int
    stdout: str
    stderr: str


class CommandProcess:
    """Handle of a running command."""

    def __init__(self, command: list[str], timeout: Optional[float] = None):
        """
        Args:
            command: Program and arguments
            timeout: Overall wall-clock limit in seconds
        """
        self.command = command
        self.timeout = timeout
        self.stdout: Optional[asyncio.StreamReader] = None
        self._process: Optional[asyncio.subprocess.Process] = None
        self._stdout_chunks: list[bytes] = []
        self._stdout_done = False
        self._killed = False
        self._spawn_error: Optional[OSError] = None

    async def start(self) -> "CommandProcess":
        """Spawn the process. Spawn failures surface when the handle is awaited."""
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            self._spawn_error = e
        return self

    def follow(self) -> Optional[asyncio.StreamReader]:
        """
        Stream replaying stdout as it arrives.

        Returns None if the process could not be started.
        """
        if self._process is None:
            return None

        if self.stdout is None:
            self.stdout = asyncio.StreamReader()
            if self._stdout_chunks:
                self.stdout.feed_data(b"".join(self._stdout_chunks))
            if self._stdout_done:
                self.stdout.feed_eof()
        return self.stdout

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode if self._process else None

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    def kill(self, sig: int = signal.SIGKILL) -> None:
        """Send a signal to the process if it is still running."""
        if self._process is None or self._process.returncode is not None:
            return
        self._killed = True
        try:
            self._process.send_signal(sig)
        except ProcessLookupError:
            pass

    async def _pump_stdout(self) -> None:
        assert self._process is not None and self._process.stdout is not None
        try:
            while True:
                chunk = await self._process.stdout.read(CHUNK_SIZE)
                if not chunk:
                    break
                self._stdout_chunks.append(chunk)
                if self.stdout is not None:
                    self.stdout.feed_data(chunk)
        finally:
            self._stdout_done = True
            if self.stdout is not None:
                self.stdout.feed_eof()

    def _collected_stdout(self) -> str:
        return b"".join(self._stdout_chunks).decode("utf-8", errors="replace")

    async def wait(self) -> CommandResult:
        """
        Wait for the process to exit.

        Raises:
            CommandError: On spawn failure, non-zero exit, kill or timeout

        Cancelling the wait kills the process.
        """
        if self._spawn_error is not None:
            raise CommandError(
                self.command,
                returncode=None,
                reason=f"could not be started: {self._spawn_error}",
            ) from self._spawn_error

        if self._process is None:
            raise RuntimeError("CommandProcess.wait() called before start()")

        process = self._process
        stdout_task = asyncio.ensure_future(self._pump_stdout())
        stderr_task = asyncio.ensure_future(process.stderr.read())
        finished = asyncio.gather(stdout_task, process.wait())
        timed_out = False

        try:
            await asyncio.wait_for(asyncio.shield(finished), timeout=self.timeout)
        except asyncio.TimeoutError:
            timed_out = True
            self.kill()
            await finished
        except asyncio.CancelledError:
            self.kill()
            await finished
            stderr_task.cancel()
            raise

        stderr = (await stderr_task).decode("utf-8", errors="replace")
        stdout = self._collected_stdout()
        returncode = process.returncode

        if timed_out or self._killed or returncode != 0:
            raise CommandError(
                self.command,
                returncode=returncode,
                stdout=stdout,
                stderr=stderr,
                timed_out=timed_out,
                killed=self._killed,
            )

        return CommandResult(
            command=self.command,
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
        )

    def __await__(self):
        return self.wait().__await__()


async def start_command(command: list[str], timeout: Optional[float] = None) -> CommandProcess:
    """
    Spawn a command.

    Args:
        command: Program and arguments
        timeout: Overall wall-clock limit in seconds

    Returns:
        A started CommandProcess
    """
    return await CommandProcess(command, timeout=timeout).start()
