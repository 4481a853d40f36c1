"""
Ping measurement command.

PingCommand is the entry point for one measurement job: it validates the
options, picks the prober for the requested protocol, wires its partial
results into a ProgressBuffer and pushes the normalized final result.
"""

from typing import Any, Mapping, Optional, Union

from .config import Settings, get_settings
from .logger import scoped_logger
from .models import ParseOutput
from .options import MeasurementOptions
from .output import to_json_output
from .probers import GENERIC_FAILURE_MESSAGE, create_prober, start_ping
from .progress import ProgressBuffer
from .tcp_ping import tcp_ping
from .transports import Transport


logger = scoped_logger("ping-command")


class PingCommand:
    """Runs ping measurements (ICMP or TCP) and reports them over a transport."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        ping_cmd=start_ping,
        tcp_cmd=tcp_ping,
    ):
        """
        Args:
            settings: Probe settings (defaults to the process-wide settings)
            ping_cmd: Starts the ICMP ping process
            tcp_cmd: Runs a TCP ping
        """
        self.settings = settings or get_settings()
        self.ping_cmd = ping_cmd
        self.tcp_cmd = tcp_cmd

    async def run(
        self,
        transport: Transport,
        measurement_id: str,
        test_id: str,
        options: Union[MeasurementOptions, Mapping[str, Any]],
    ) -> None:
        """
        Run one measurement.

        Args:
            transport: Receives progress and the terminal result
            measurement_id: Measurement identifier
            test_id: Test identifier
            options: Raw or validated measurement options

        Raises:
            InvalidOptionsError: Before anything runs if options are invalid.
                Every other failure ends up in the terminal result.
        """
        cmd_options = MeasurementOptions.validate_options(options)

        prober = create_prober(cmd_options, self.settings, self.ping_cmd, self.tcp_cmd)
        buffer = ProgressBuffer(
            transport,
            test_id,
            measurement_id,
            prober.progress_mode,
            interval=self.settings.progress_interval,
        )
        on_progress = buffer.push_progress if cmd_options.in_progress_updates else None

        try:
            result = await prober.run(cmd_options, on_progress)
        except Exception:
            logger.exception(
                "Measurement failed unexpectedly.",
                extra={"fields": {"measurementId": measurement_id, "testId": test_id}},
            )
            result = ParseOutput.failed(GENERIC_FAILURE_MESSAGE)

        await buffer.push_result(to_json_output(result))
