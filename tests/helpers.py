"""Fakes and sample output shared by the pingprobe tests."""

import asyncio

from pingprobe.exceptions import CommandError
from pingprobe.process import CommandResult
from pingprobe.tcp_ping import tcp_ping


PING_OUTPUT = [
    "PING google.com (142.250.185.78) 56(84) bytes of data.\n",
    "64 bytes from fra16s52-in-f14.1e100.net (142.250.185.78): icmp_seq=1 ttl=117 time=5.12 ms\n",
    "64 bytes from fra16s52-in-f14.1e100.net (142.250.185.78): icmp_seq=2 ttl=117 time=4.93 ms\n",
    "64 bytes from fra16s52-in-f14.1e100.net (142.250.185.78): icmp_seq=3 ttl=117 time=5.01 ms\n",
    "\n",
    "--- google.com ping statistics ---\n",
    "3 packets transmitted, 3 received, 0% packet loss, time 1002ms\n",
    "rtt min/avg/max/mdev = 4.930/5.020/5.120/0.078 ms\n",
]

PRIVATE_PING_OUTPUT = [
    "PING intranet.local (10.0.0.5) 56(84) bytes of data.\n",
    "64 bytes from 10.0.0.5: icmp_seq=1 ttl=64 time=0.31 ms\n",
    "64 bytes from 10.0.0.5: icmp_seq=2 ttl=64 time=0.29 ms\n",
]


class FakePingProcess:
    """Stands in for CommandProcess: replays lines, then exits as configured."""

    def __init__(self, lines, returncode=0, timed_out=False, stream=True, error=None):
        self.lines = list(lines)
        self.returncode = returncode
        self.timed_out = timed_out
        self.error = error
        self.stream = stream
        self.stdout = None
        self.killed_with = None

    def follow(self):
        if self.stream and self.stdout is None:
            self.stdout = asyncio.StreamReader()
        return self.stdout

    def kill(self, sig):
        self.killed_with = sig

    async def wait(self):
        if self.error is not None:
            if self.stdout is not None:
                self.stdout.feed_eof()
            raise self.error

        text = ""
        for line in self.lines:
            if self.killed_with is not None:
                break
            text += line
            if self.stdout is not None:
                self.stdout.feed_data(line.encode())
            # let the line consumer catch up
            await asyncio.sleep(0)
            await asyncio.sleep(0)

        if self.stdout is not None:
            self.stdout.feed_eof()

        command = ["ping"]
        if self.killed_with is not None:
            raise CommandError(command, -9, stdout=text, killed=True)
        if self.timed_out:
            raise CommandError(command, -9, stdout=text, timed_out=True, killed=True)
        if self.returncode != 0:
            raise CommandError(command, self.returncode, stdout=text)
        return CommandResult(command=command, returncode=0, stdout=text, stderr="")

    def __await__(self):
        return self.wait().__await__()


def fake_ping_cmd(lines=(), **kwargs):
    """ping_cmd replacement; exposes the started processes on `.started`."""
    started = []

    async def ping_cmd(options, settings):
        process = FakePingProcess(lines, **kwargs)
        started.append(process)
        return process

    ping_cmd.started = started
    return ping_cmd


def fake_tcp_cmd(rtts, address="93.184.216.34", resolve_error=None):
    """tcp_cmd replacement running tcp_ping against scripted connect latencies."""
    latencies = list(rtts)

    async def resolve(target, ip_version):
        if resolve_error is not None:
            raise resolve_error
        return address

    async def connect(addr, port, timeout):
        return latencies.pop(0)

    async def tcp_cmd(options, on_record, timeout, interval):
        return await tcp_ping(
            options,
            on_record,
            timeout=timeout,
            interval=0,
            resolve=resolve,
            connect=connect,
        )

    return tcp_cmd
