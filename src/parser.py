"""
Parser for iputils ping output.

Turns the (possibly still growing) text printed by `ping` into a
ParseOutput. Any prefix of a transcript can be parsed: the resolved
address becomes available as soon as the header line has arrived.
"""

import re
from typing import Optional

from .models import MeasurementStatus, ParseOutput, Stats, Timing


# PING google.com (142.250.185.78) 56(84) bytes of data.
# PING google.com(fra16s52-in-x0e.1e100.net (2a00:1450:4001:82b::200e)) 56 data bytes
# PING ::1(::1) 56 data bytes
HEADER_RE = re.compile(
    r"^PING\s+(?P<host>[^\s(]+)\s*\((?:(?P<name>[^\s()]+)\s+\()?(?P<addr>[^\s()]+)\)"
)

# 64 bytes from dns.google (8.8.8.8): icmp_seq=1 ttl=117 time=10.2 ms
REPLY_RE = re.compile(
    r"^\d+\s+bytes\s+from\s+(?P<source>.+?):\s+icmp_seq=\d+"
    r"(?:\s+ttl=(?P<ttl>\d+))?\s+time[=<](?P<rtt>[\d.]+)\s*ms"
)

SUMMARY_HEADER_RE = re.compile(r"^---\s.*\sstatistics\s---")

PACKETS_RE = re.compile(
    r"(?P<total>\d+)\s+packets\s+transmitted,\s+(?P<rcv>\d+)\s+(?:packets\s+)?received"
    r".*?(?P<loss>[\d.]+)%\s+packet\s+loss"
)

RTT_RE = re.compile(
    r"(?:rtt|round-trip)\s+min/avg/max(?:/(?:mdev|stddev))?\s*=\s*"
    r"(?P<min>[\d.]+)/(?P<avg>[\d.]+)/(?P<max>[\d.]+)"
)


def _parse_reply(line: str) -> Optional[tuple[str, Timing]]:
    match = REPLY_RE.search(line)
    if not match:
        return None

    source = match.group("source").split()[0].rstrip(":")
    ttl = match.group("ttl")
    timing = Timing(rtt=float(match.group("rtt")), ttl=int(ttl) if ttl else None)
    return source, timing


def _parse_summary(lines: list[str]) -> Stats:
    stats = Stats()

    for line in lines:
        packets = PACKETS_RE.search(line)
        if packets:
            total = int(packets.group("total"))
            rcv = int(packets.group("rcv"))
            stats.total = total
            stats.rcv = rcv
            stats.drop = total - rcv
            stats.loss = float(packets.group("loss")) / 100
            continue

        rtt = RTT_RE.search(line)
        if rtt:
            stats.min = float(rtt.group("min"))
            stats.avg = float(rtt.group("avg"))
            stats.max = float(rtt.group("max"))

    return stats


def parse(raw_output: str) -> ParseOutput:
    """
    Parse ping output.

    Args:
        raw_output: Text printed by ping so far

    Returns:
        A finished ParseOutput once the header line is present, otherwise a
        failed one carrying only the raw text.
    """
    lines = raw_output.splitlines()
    header = HEADER_RE.match(lines[0]) if lines else None

    if not header:
        return ParseOutput.failed(raw_output)

    resolved_hostname: Optional[str] = None
    timings: list[Timing] = []
    summary_index: Optional[int] = None

    for index, line in enumerate(lines[1:], start=1):
        if SUMMARY_HEADER_RE.match(line):
            summary_index = index
            break

        reply = _parse_reply(line)
        if reply is None:
            continue

        source, timing = reply
        if resolved_hostname is None:
            resolved_hostname = source
        timings.append(timing)

    stats = _parse_summary(lines[summary_index + 1:]) if summary_index is not None else Stats()

    return ParseOutput(
        status=MeasurementStatus.FINISHED,
        raw_output=raw_output,
        resolved_hostname=resolved_hostname,
        resolved_address=header.group("addr"),
        timings=timings,
        stats=stats,
    )
