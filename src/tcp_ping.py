"""
TCP connect ping.

Measures the time needed to open a TCP connection to a target port,
repeated at a fixed interval. Each event of the run is reported as a
TcpPingData record:
- start: target resolved, attempts begin
- probe: one connection attempt
- statistics: aggregate after the last attempt
- error: the run could not start (resolution failure, private target)
"""

import asyncio
import time
from typing import Callable, Optional

import dns.asyncresolver
import dns.exception

from .logger import scoped_logger
from .models import (
    MeasurementStatus,
    ParseOutput,
    TcpPingData,
    TcpPingRecordType,
    Timing,
)
from .options import MeasurementOptions, literal_ip_version
from .private_ip import is_ip_private
from .statistics import StatisticsEngine


PRIVATE_IP_MESSAGE = "Private IP ranges are not allowed."

# Per-attempt connect timeout and pause between attempts, seconds
ATTEMPT_TIMEOUT = 10.0
ATTEMPT_INTERVAL = 0.5

RecordCallback = Callable[[TcpPingData], None]

logger = scoped_logger("tcp-ping")


async def resolve_target(target: str, ip_version: int) -> str:
    """
    Resolve a hostname to one address of the requested family.

    Literal addresses are returned unchanged.

    Raises:
        dns.exception.DNSException: If the name cannot be resolved
    """
    if literal_ip_version(target) is not None:
        return target

    rdtype = "AAAA" if ip_version == 6 else "A"
    answer = await dns.asyncresolver.resolve(target, rdtype)
    return str(answer[0])


async def measure_connect(address: str, port: int, timeout: float = ATTEMPT_TIMEOUT) -> Optional[float]:
    """
    Open and close one TCP connection.

    Returns:
        Connect latency in milliseconds, or None if the attempt failed
    """
    start = time.perf_counter_ns()

    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(address, port),
            timeout=timeout,
        )
    except (asyncio.TimeoutError, OSError):
        return None

    end = time.perf_counter_ns()

    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass

    return (end - start) / 1_000_000


async def tcp_ping(
    options: MeasurementOptions,
    on_record: Optional[RecordCallback] = None,
    timeout: float = ATTEMPT_TIMEOUT,
    interval: float = ATTEMPT_INTERVAL,
    resolve=resolve_target,
    connect=measure_connect,
) -> list[TcpPingData]:
    """
    Run a TCP ping.

    Args:
        options: Validated measurement options
        on_record: Called with every record as soon as it is produced
        timeout: Per-attempt connect timeout in seconds
        interval: Pause between attempts in seconds
        resolve: Coroutine function (target, ip_version) -> address
        connect: Coroutine function (address, port, timeout) -> rtt or None

    Returns:
        All records of the run, in order
    """
    records: list[TcpPingData] = []

    def emit(record: TcpPingData) -> None:
        records.append(record)
        if on_record:
            on_record(record)

    hostname = options.target

    try:
        address = await resolve(hostname, options.ip_version)
    except dns.exception.DNSException as e:
        logger.debug("Target resolution failed.", extra={"fields": {"target": hostname, "error": str(e)}})
        emit(TcpPingData(
            type=TcpPingRecordType.ERROR,
            hostname=hostname,
            port=options.port,
            message=f"ping: {hostname}: Name or service not known",
        ))
        return records

    if is_ip_private(address):
        emit(TcpPingData(
            type=TcpPingRecordType.ERROR,
            hostname=hostname,
            address=address,
            port=options.port,
            message=PRIVATE_IP_MESSAGE,
        ))
        return records

    emit(TcpPingData(
        type=TcpPingRecordType.START,
        hostname=hostname,
        address=address,
        port=options.port,
    ))

    started = time.perf_counter()

    for seq in range(options.packets):
        if seq > 0:
            await asyncio.sleep(interval)

        rtt = await connect(address, options.port, timeout)

        emit(TcpPingData(
            type=TcpPingRecordType.PROBE,
            hostname=hostname,
            address=address,
            port=options.port,
            seq=seq,
            success=rtt is not None,
            rtt=rtt,
        ))

    emit(TcpPingData(
        type=TcpPingRecordType.STATISTICS,
        hostname=hostname,
        address=address,
        port=options.port,
        stats=StatisticsEngine.aggregate_attempts(records),
        time_ms=(time.perf_counter() - started) * 1000,
    ))

    return records


def _format_number(value: float) -> str:
    return f"{value:.3f}".rstrip("0").rstrip(".")


def format_tcp_ping_result(records: list[TcpPingData]) -> ParseOutput:
    """
    Build a ParseOutput from the records of a (possibly unfinished) run.

    The rendered text only ever grows as records are added, so the text
    of an earlier call is always a prefix of a later one.
    """
    start = next((r for r in records if r.type == TcpPingRecordType.START), None)
    error = next((r for r in records if r.type == TcpPingRecordType.ERROR), None)
    statistics = next((r for r in records if r.type == TcpPingRecordType.STATISTICS), None)
    probes = [r for r in records if r.type == TcpPingRecordType.PROBE]

    if error is not None:
        return ParseOutput.failed(error.message or "")

    lines: list[str] = []

    if start is not None:
        lines.append(f"TCP PING {start.hostname} ({start.address}) on port {start.port}")

    for probe in probes:
        target = f"{probe.hostname} ({probe.address}) on port {probe.port}"
        if probe.success:
            lines.append(f"Reply from {target}: tcp_conn={probe.seq + 1} time={_format_number(probe.rtt)} ms")
        else:
            lines.append(f"No reply from {target}: tcp_conn={probe.seq + 1}")

    stats = StatisticsEngine.aggregate_attempts(records)

    if statistics is not None:
        total_attempts = len(probes)
        lines.append("")
        lines.append(f"--- {statistics.hostname} ({statistics.address}) ping statistics ---")
        lines.append(
            f"{total_attempts} packets transmitted, {stats.rcv or 0} received, "
            f"{_format_number((stats.loss or 0) * 100)}% packet loss, "
            f"time {round(statistics.time_ms or 0)} ms"
        )
        if stats.rcv:
            lines.append(
                f"rtt min/avg/max = {_format_number(stats.min)}/"
                f"{_format_number(stats.avg)}/{_format_number(stats.max)} ms"
            )

    return ParseOutput(
        status=MeasurementStatus.FINISHED,
        raw_output="\n".join(lines),
        resolved_hostname=start.hostname if start else None,
        resolved_address=start.address if start else None,
        timings=[Timing(rtt=p.rtt) for p in probes if p.success and p.rtt is not None],
        stats=stats,
    )
