"""
Measurement strategies.

Provides one prober per protocol:
- ICMP: runs the system `ping` and parses its output line by line
- TCP: measures TCP connect latency to a port

Each prober turns a validated MeasurementOptions into a final
ParseOutput, reporting partial results through a callback while it runs.
"""

import asyncio
import signal
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from .config import Settings
from .exceptions import CommandError
from .logger import scoped_logger
from .models import MeasurementStatus, ParseOutput, ProgressMode, TcpPingData
from .options import MeasurementOptions
from .parser import parse
from .private_ip import is_ip_private
from .process import CommandProcess, start_command
from .streaming import by_line
from .tcp_ping import (
    ATTEMPT_INTERVAL,
    ATTEMPT_TIMEOUT,
    PRIVATE_IP_MESSAGE,
    format_tcp_ping_result,
    tcp_ping,
)


GENERIC_FAILURE_MESSAGE = "Test failed. Please try again."
TIMEOUT_SUFFIX = "\n\nThe measurement command timed out."

# Fixed ping arguments
PING_INTERVAL = "0.5"
PING_DEADLINE = "10"

ProgressCallback = Callable[[dict[str, Any]], None]

logger = scoped_logger("ping-command")


def build_args(options: MeasurementOptions) -> list[str]:
    """Arguments passed to `ping` for the given options."""
    return [
        f"-{options.ip_version}",
        "-O",
        "-c", str(options.packets),
        "-i", PING_INTERVAL,
        "-w", PING_DEADLINE,
        options.target,
    ]


async def start_ping(options: MeasurementOptions, settings: Settings) -> CommandProcess:
    """Start `ping` bounded by the configured command timeout."""
    command = [*settings.command_prefix, "ping", *build_args(options)]
    return await start_command(command, timeout=float(settings.commands_timeout))


class Prober(ABC):
    """Base class for measurement strategies."""

    progress_mode: ProgressMode

    @abstractmethod
    async def run(
        self,
        options: MeasurementOptions,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ParseOutput:
        """
        Run a measurement.

        Args:
            options: Validated options
            on_progress: Receives partial results; None disables them

        Returns:
            The final record. Measurement failures are reported through
            the record's status, not raised.
        """
        pass


class IcmpProber(Prober):
    """ICMP ping through the system `ping` binary."""

    progress_mode = ProgressMode.APPEND

    def __init__(self, settings: Settings, ping_cmd=start_ping):
        """
        Args:
            settings: Probe settings (command timeout and prefix)
            ping_cmd: Coroutine function (options, settings) -> CommandProcess
        """
        self.settings = settings
        self.ping_cmd = ping_cmd

    async def run(
        self,
        options: MeasurementOptions,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ParseOutput:
        is_result_private = False
        line_task: Optional[asyncio.Future] = None

        cmd = await self.ping_cmd(options, self.settings)
        stdout = cmd.follow() if on_progress is not None else None

        if stdout is not None:
            received: list[str] = []

            def on_line(line: str) -> None:
                nonlocal is_result_private
                if is_result_private:
                    return

                received.append(line)
                parsed = parse("".join(received))

                if is_ip_private(parsed.resolved_address):
                    cmd.kill(signal.SIGKILL)
                    is_result_private = True
                    return

                on_progress({"rawOutput": line})

            line_task = asyncio.ensure_future(by_line(stdout, on_line))

        try:
            cmd_result = await cmd

            if not cmd_result.stdout:
                logger.error(
                    "Successful stdout is empty.",
                    extra={"fields": {"command": cmd_result.command, "stderr": cmd_result.stderr}},
                )

            result = parse(cmd_result.stdout)
        except CommandError as e:
            result = parse(e.stdout)

            if e.timed_out:
                result.status = MeasurementStatus.FAILED
                result.raw_output += TIMEOUT_SUFFIX

            if not result.raw_output:
                result.raw_output = GENERIC_FAILURE_MESSAGE
        except Exception:
            logger.exception("Unexpected ping failure.", extra={"fields": {"target": options.target}})
            result = ParseOutput.failed(GENERIC_FAILURE_MESSAGE)
        except asyncio.CancelledError:
            if line_task is not None:
                line_task.cancel()
            raise

        if line_task is not None:
            await line_task

        if is_ip_private(result.resolved_address):
            is_result_private = True

        if is_result_private:
            result = ParseOutput.failed(PRIVATE_IP_MESSAGE)

        return result


class TcpProber(Prober):
    """TCP connect ping."""

    progress_mode = ProgressMode.DIFF

    def __init__(self, tcp_cmd=tcp_ping):
        """
        Args:
            tcp_cmd: Coroutine function (options, on_record, timeout, interval) -> records
        """
        self.tcp_cmd = tcp_cmd

    async def run(
        self,
        options: MeasurementOptions,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ParseOutput:
        progress: list[TcpPingData] = []
        record_handler = None

        if on_progress is not None:
            def record_handler(record: TcpPingData) -> None:
                progress.append(record)
                partial = format_tcp_ping_result(progress)
                if partial.is_finished:
                    on_progress({"rawOutput": partial.raw_output})

        records = await self.tcp_cmd(
            options,
            record_handler,
            timeout=ATTEMPT_TIMEOUT,
            interval=ATTEMPT_INTERVAL,
        )

        return format_tcp_ping_result(records)


def create_prober(
    options: MeasurementOptions,
    settings: Settings,
    ping_cmd=start_ping,
    tcp_cmd=tcp_ping,
) -> Prober:
    """
    Create the prober for the options' protocol.

    "TCP" selects the TCP prober; every other protocol value runs ICMP.
    """
    if options.is_tcp:
        return TcpProber(tcp_cmd)
    return IcmpProber(settings, ping_cmd)
