"""
Command-line interface for pingprobe.

Runs single measurements locally and starts the agent server.
"""

import asyncio
import sys
import uuid
from typing import Optional

import click
from rich.console import Console

from . import __version__
from .command import PingCommand
from .config import get_settings
from .exceptions import InvalidOptionsError
from .logger import configure_logging
from .models import Protocol
from .output import RichConsoleOutput
from .transports import ConsoleTransport, JsonLinesTransport


@click.group()
@click.version_option(__version__)
def main():
    """
    pingprobe - ICMP and TCP ping measurements with streamed progress.
    """
    configure_logging(get_settings().log_level)


@main.command()
@click.argument("target")
@click.option(
    "--packets", "-c",
    type=int,
    default=3,
    help="Number of packets / connection attempts (1-16)",
)
@click.option(
    "--protocol", "-P",
    type=click.Choice([p.value for p in Protocol], case_sensitive=False),
    default=Protocol.ICMP.value,
    help="Measurement protocol",
)
@click.option(
    "--port", "-p",
    type=int,
    default=80,
    help="Target port for TCP measurements",
)
@click.option("-4", "ip_version", flag_value=4, help="Use IPv4")
@click.option("-6", "ip_version", flag_value=6, help="Use IPv6")
@click.option(
    "--no-progress",
    is_flag=True,
    help="Do not stream partial output",
)
@click.option(
    "--json",
    is_flag=True,
    help="Print every message as a JSON line",
)
def run(
    target: str,
    packets: int,
    protocol: str,
    port: int,
    ip_version: Optional[int],
    no_progress: bool,
    json: bool,
):
    """
    Run one ping measurement against TARGET.

    Examples:

    \b
      # ICMP ping with streamed output
      pingprobe run 8.8.8.8

    \b
      # TCP connect ping to port 443
      pingprobe run example.com -P TCP -p 443 -c 5
    """
    options = {
        "type": "ping",
        "target": target,
        "packets": packets,
        "protocol": protocol.upper(),
        "port": port,
        "inProgressUpdates": not no_progress,
    }
    if ip_version is not None:
        options["ipVersion"] = ip_version

    console = Console()
    transport = JsonLinesTransport(console) if json else ConsoleTransport(console, show_progress=not no_progress)
    command = PingCommand(get_settings())
    measurement_id = uuid.uuid4().hex

    try:
        asyncio.run(command.run(transport, measurement_id, measurement_id, options))
    except InvalidOptionsError as e:
        for error in e.errors:
            click.echo(f"Error: {error['field']}: {error['message']}", err=True)
        sys.exit(2)

    if json:
        return

    if no_progress:
        click.echo(transport.result["rawOutput"])
    RichConsoleOutput.print(transport.result, console)


@main.command()
@click.option(
    "--port", "-p",
    type=int,
    default=8765,
    help="Port to run the agent server on",
)
@click.option(
    "--host",
    default="127.0.0.1",
    help="Host to bind the server to",
)
def serve(port: int, host: str):
    """
    Start the agent server.

    Measurement jobs are accepted on the /ws websocket endpoint and
    answered with progress and result messages.
    """
    from .server import run_server

    click.echo(f"pingprobe agent listening on ws://{host}:{port}/ws")
    run_server(host=host, port=port)


@main.command()
def info():
    """Show effective settings."""
    settings = get_settings()
    click.echo(f"Commands timeout: {settings.commands_timeout}s")
    click.echo(f"Progress interval: {settings.progress_interval}s")
    click.echo(f"Command prefix: {' '.join(settings.command_prefix) or '(none)'}")
    click.echo(f"Log level: {settings.log_level}")


if __name__ == "__main__":
    main()
