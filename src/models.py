"""
Data models for pingprobe.

Defines structured types for parsed ping output, TCP ping attempt
records and the aggregate statistics shared by both strategies.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


Number = Union[int, float]


class Protocol(Enum):
    """Measurement strategies."""
    ICMP = "ICMP"
    TCP = "TCP"


class MeasurementStatus(Enum):
    """Final status of a measurement."""
    FINISHED = "finished"
    FAILED = "failed"


class ProgressMode(Enum):
    """How partial results are forwarded to the transport."""
    APPEND = "append"  # each push is additive raw text
    DIFF = "diff"      # each push is the full state, only the delta is sent


@dataclass
class Timing:
    """Round-trip time of a single reply."""
    rtt: float
    ttl: Optional[int] = None


@dataclass
class Stats:
    """Aggregate statistics of a measurement."""
    min: Optional[Number] = None
    max: Optional[Number] = None
    avg: Optional[Number] = None
    total: Optional[Number] = None
    loss: Optional[Number] = None
    rcv: Optional[Number] = None
    drop: Optional[Number] = None


@dataclass
class ParseOutput:
    """Structured record produced from ping output or TCP attempts."""
    status: MeasurementStatus
    raw_output: str
    resolved_hostname: Optional[str] = None
    resolved_address: Optional[str] = None
    timings: Optional[list[Timing]] = None
    stats: Optional[Stats] = None

    @classmethod
    def failed(cls, raw_output: str) -> "ParseOutput":
        """Failure record with no timings or stats."""
        return cls(status=MeasurementStatus.FAILED, raw_output=raw_output)

    @property
    def is_finished(self) -> bool:
        return self.status == MeasurementStatus.FINISHED


class TcpPingRecordType(Enum):
    """Kinds of records emitted during a TCP ping run."""
    START = "start"
    PROBE = "probe"
    STATISTICS = "statistics"
    ERROR = "error"


@dataclass
class TcpPingData:
    """
    One event of a TCP ping run.

    Probe records carry the attempt sequence index, whether the connection
    succeeded and the measured connect latency. Statistics records carry
    the aggregate over every attempt so far.
    """
    type: TcpPingRecordType
    hostname: Optional[str] = None
    address: Optional[str] = None
    port: Optional[int] = None

    # Probe records
    seq: Optional[int] = None
    success: bool = False
    rtt: Optional[float] = None

    # Statistics records
    stats: Optional[Stats] = None
    time_ms: Optional[float] = None

    # Error records
    message: Optional[str] = None

