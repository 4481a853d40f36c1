import asyncio
import sys
import time

import pytest

from pingprobe.exceptions import CommandError
from pingprobe.options import MeasurementOptions
from pingprobe.probers import IcmpProber
from pingprobe.process import CommandProcess, start_command
from pingprobe.streaming import by_line


def python(code):
    return [sys.executable, "-c", code]


def test_successful_command_returns_output():
    async def scenario():
        process = await start_command(python("print('hello'); print('world')"), timeout=10)
        return await process

    result = asyncio.run(scenario())

    assert result.returncode == 0
    assert result.stdout.splitlines() == ["hello", "world"]


def test_stdout_is_streamed_while_collected():
    lines = []

    async def scenario():
        process = await start_command(python("for i in range(3): print(i, flush=True)"), timeout=10)
        reader = asyncio.ensure_future(by_line(process.follow(), lines.append))
        result = await process
        await reader
        return result

    result = asyncio.run(scenario())

    assert "".join(lines) == result.stdout
    assert [line.strip() for line in lines] == ["0", "1", "2"]


def test_nonzero_exit_raises_with_output():
    async def scenario():
        process = await start_command(
            python("import sys; print('partial'); sys.stderr.write('bad'); sys.exit(3)"),
            timeout=10,
        )
        await process

    with pytest.raises(CommandError) as exc_info:
        asyncio.run(scenario())

    error = exc_info.value
    assert error.returncode == 3
    assert error.stdout.strip() == "partial"
    assert error.stderr == "bad"
    assert not error.timed_out


def test_timeout_kills_and_keeps_output():
    async def scenario():
        process = await start_command(
            python("import time; print('started', flush=True); time.sleep(30)"),
            timeout=1,
        )
        await process

    with pytest.raises(CommandError) as exc_info:
        asyncio.run(scenario())

    error = exc_info.value
    assert error.timed_out
    assert error.killed
    assert error.stdout.strip() == "started"


def test_kill_raises_command_error():
    async def scenario():
        process = await start_command(python("import time; time.sleep(30)"), timeout=10)
        await asyncio.sleep(0.1)
        process.kill()
        await process

    with pytest.raises(CommandError) as exc_info:
        asyncio.run(scenario())

    assert exc_info.value.killed
    assert not exc_info.value.timed_out


def test_missing_binary_raises_when_awaited():
    async def scenario():
        process = await start_command(["pingprobe-no-such-binary"], timeout=10)
        assert process.follow() is None
        await process

    with pytest.raises(CommandError) as exc_info:
        asyncio.run(scenario())

    assert exc_info.value.returncode is None
    assert "could not be started" in str(exc_info.value)


def test_wait_before_start_is_an_error():
    with pytest.raises(RuntimeError):
        asyncio.run(CommandProcess(["true"]).wait())


def test_follow_after_output_replays_it():
    async def scenario():
        process = await start_command(python("print('early')"), timeout=10)
        result = await process
        stream = process.follow()
        return result, await stream.read()

    result, replayed = asyncio.run(scenario())

    assert replayed.decode() == result.stdout


def test_cancelling_wait_kills_the_process():
    async def scenario():
        process = await start_command(
            python("import time; print('started', flush=True); time.sleep(30)"),
            timeout=60,
        )
        waiter = asyncio.ensure_future(process.wait())
        await asyncio.sleep(0.5)

        cancelled_at = time.monotonic()
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        return process, time.monotonic() - cancelled_at

    process, latency = asyncio.run(scenario())

    assert latency < 5
    assert process.returncode < 0


def test_cancelling_icmp_run_stops_ping_promptly(settings):
    header = "PING example.com (93.184.216.34) 56(84) bytes of data."
    started = []

    async def ping_cmd(options, settings):
        process = await start_command(
            python(f"import time; print({header!r}, flush=True); time.sleep(30)"),
            timeout=60,
        )
        started.append(process)
        return process

    async def scenario():
        prober = IcmpProber(settings, ping_cmd)
        options = MeasurementOptions.validate_options({"target": "example.com"})
        run = asyncio.ensure_future(prober.run(options, lambda progress: None))
        await asyncio.sleep(0.5)

        cancelled_at = time.monotonic()
        run.cancel()
        with pytest.raises(asyncio.CancelledError):
            await run
        return time.monotonic() - cancelled_at

    latency = asyncio.run(scenario())

    assert latency < 5
    assert started[0].returncode < 0
