from helpers import PING_OUTPUT

from pingprobe.models import MeasurementStatus
from pingprobe.parser import parse


def test_full_ipv4_transcript():
    result = parse("".join(PING_OUTPUT))

    assert result.status == MeasurementStatus.FINISHED
    assert result.resolved_address == "142.250.185.78"
    assert result.resolved_hostname == "fra16s52-in-f14.1e100.net"
    assert [(t.ttl, t.rtt) for t in result.timings] == [(117, 5.12), (117, 4.93), (117, 5.01)]

    stats = result.stats
    assert stats.total == 3
    assert stats.rcv == 3
    assert stats.drop == 0
    assert stats.loss == 0
    assert stats.min == 4.93
    assert stats.avg == 5.02
    assert stats.max == 5.12


def test_header_alone_resolves_address():
    result = parse(PING_OUTPUT[0])

    assert result.status == MeasurementStatus.FINISHED
    assert result.resolved_address == "142.250.185.78"
    assert result.resolved_hostname is None
    assert result.timings == []
    assert result.stats.rcv is None


def test_ipv6_header_with_reverse_name():
    output = (
        "PING google.com(fra16s52-in-x0e.1e100.net (2a00:1450:4001:82b::200e)) 56 data bytes\n"
        "64 bytes from fra16s52-in-x0e.1e100.net (2a00:1450:4001:82b::200e): icmp_seq=1 ttl=118 time=4.80 ms\n"
    )
    result = parse(output)

    assert result.resolved_address == "2a00:1450:4001:82b::200e"
    assert result.resolved_hostname == "fra16s52-in-x0e.1e100.net"
    assert result.timings[0].rtt == 4.8


def test_ipv6_literal_header():
    output = (
        "PING 2001:4860:4860::8888(2001:4860:4860::8888) 56 data bytes\n"
        "64 bytes from 2001:4860:4860::8888: icmp_seq=1 ttl=118 time=1.20 ms\n"
    )
    result = parse(output)

    assert result.resolved_address == "2001:4860:4860::8888"
    assert result.resolved_hostname == "2001:4860:4860::8888"


def test_total_loss_with_errors():
    output = (
        "PING 192.0.2.1 (192.0.2.1) 56(84) bytes of data.\n"
        "no answer yet for icmp_seq=1\n"
        "\n"
        "--- 192.0.2.1 ping statistics ---\n"
        "2 packets transmitted, 0 received, +2 errors, 100% packet loss, time 1001ms\n"
    )
    result = parse(output)

    assert result.status == MeasurementStatus.FINISHED
    assert result.timings == []
    assert result.stats.total == 2
    assert result.stats.rcv == 0
    assert result.stats.drop == 2
    assert result.stats.loss == 1.0
    assert result.stats.min is None


def test_unparseable_output_fails():
    result = parse("ping: nonexistent.invalid: Name or service not known\n")

    assert result.status == MeasurementStatus.FAILED
    assert result.raw_output == "ping: nonexistent.invalid: Name or service not known\n"
    assert result.resolved_address is None


def test_empty_output_fails():
    result = parse("")

    assert result.status == MeasurementStatus.FAILED
    assert result.raw_output == ""
