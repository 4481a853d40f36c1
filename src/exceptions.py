"""
Exceptions raised by pingprobe.

Only InvalidOptionsError crosses a measurement run boundary. CommandError
describes a failed external process and is always converted into a
terminal result by the probers.
"""

from typing import Any, Optional


class ProbeError(Exception):
    """Base class for pingprobe errors."""


class InvalidOptionsError(ProbeError):
    """Measurement options failed validation."""

    def __init__(self, command: str, errors: list[dict[str, Any]]):
        """
        Args:
            command: Measurement type the options were meant for
            errors: List of {"field": ..., "message": ...} entries
        """
        self.command = command
        self.errors = errors
        details = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
        super().__init__(f"Invalid options for {command}: {details}")

    @property
    def fields(self) -> list[str]:
        return [e["field"] for e in self.errors]


class CommandError(ProbeError):
    """An external command exited unsuccessfully, timed out or was killed."""

    def __init__(
        self,
        command: list[str],
        returncode: Optional[int],
        stdout: str = "",
        stderr: str = "",
        timed_out: bool = False,
        killed: bool = False,
        reason: Optional[str] = None,
    ):
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.timed_out = timed_out
        self.killed = killed

        if reason is None:
            if timed_out:
                reason = "timed out"
            elif killed:
                reason = "was killed"
            else:
                reason = f"failed with exit code {returncode}"

        super().__init__(f"Command {' '.join(command)!r} {reason}")
