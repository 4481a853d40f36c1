"""
Statistics over TCP ping attempts.

Aggregates the probe records of a run into the same stats shape the
ping parser produces:
- rcv / drop: successful and failed attempts
- loss: fraction of failed attempts
- min / max / avg / total: over latencies of successful attempts
"""

import numpy as np

from .models import Stats, TcpPingData, TcpPingRecordType


class StatisticsEngine:
    """Calculates aggregate statistics from TCP ping attempts."""

    @staticmethod
    def aggregate_attempts(records: list[TcpPingData]) -> Stats:
        """
        Aggregate probe records.

        Args:
            records: Records of a run so far; non-probe records are ignored

        Returns:
            Stats where values that could not be measured are None
        """
        probes = [r for r in records if r.type == TcpPingRecordType.PROBE]

        if not probes:
            return Stats()

        successful = [r for r in probes if r.success and r.rtt is not None]
        rcv = len(successful)
        drop = len(probes) - rcv

        stats = Stats(
            rcv=rcv,
            drop=drop,
            loss=drop / len(probes),
        )

        if successful:
            latencies = np.array([r.rtt for r in successful], dtype=float)

            stats.min = float(np.min(latencies))
            stats.max = float(np.max(latencies))
            stats.avg = float(np.mean(latencies))
            stats.total = float(np.sum(latencies))

        return stats
