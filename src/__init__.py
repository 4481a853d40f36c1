"""
pingprobe - probe-side ICMP and TCP ping measurements.

Runs ping measurements, streams partial output while they run and
reports a normalized JSON result.
"""

__version__ = "1.0.0"

from .command import PingCommand
from .exceptions import CommandError, InvalidOptionsError
from .models import ParseOutput, Stats, TcpPingData, Timing
from .options import MeasurementOptions

__all__ = [
    "__version__",
    "PingCommand",
    "MeasurementOptions",
    "ParseOutput",
    "Stats",
    "TcpPingData",
    "Timing",
    "CommandError",
    "InvalidOptionsError",
]
