"""
Output formatting for measurement results.

Provides:
- JSON: the normalized terminal result sent to the controller
- Human-readable: rich terminal table of the same result
"""

import math
from dataclasses import fields
from typing import Any, Optional

from .models import Number, ParseOutput, Stats


def _present(value: Optional[Number]) -> bool:
    """True for any measured value, including 0."""
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return True


def to_json_output(result: ParseOutput) -> dict[str, Any]:
    """
    Normalize a ParseOutput into the terminal JSON contract.

    Empty hostnames/addresses become None, missing timings become an
    empty list, and every stat is kept as-is when measured (0 included)
    or None when it was not.
    """
    stats = result.stats or Stats()

    timings = [
        {"rtt": t.rtt} if t.ttl is None else {"ttl": t.ttl, "rtt": t.rtt}
        for t in result.timings or []
    ]

    return {
        "status": result.status.value,
        "rawOutput": result.raw_output,
        "resolvedHostname": result.resolved_hostname or None,
        "resolvedAddress": result.resolved_address or None,
        "timings": timings,
        "stats": {
            f.name: getattr(stats, f.name) if _present(getattr(stats, f.name)) else None
            for f in fields(Stats)
        },
    }


class RichConsoleOutput:
    """Rich library console output with colors and tables."""

    @staticmethod
    def print(result: dict[str, Any], console=None) -> None:
        """
        Print a normalized result.

        Args:
            result: Output of to_json_output()
            console: rich Console to print to (a new one by default)
        """
        from rich import box
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table

        console = console or Console()

        status = result["status"]
        colour = "green" if status == "finished" else "red"
        target = result.get("resolvedHostname") or "-"
        address = result.get("resolvedAddress") or "-"

        console.print()
        console.print(Panel.fit(
            f"[bold {colour}]{status.upper()}[/bold {colour}]  "
            f"[cyan]{target}[/cyan] [dim]({address})[/dim]",
            border_style=colour,
        ))

        if status != "finished":
            console.print(f"  [dim]{result['rawOutput']}[/dim]")
            console.print()
            return

        table = Table(
            title="Statistics",
            box=box.ROUNDED,
            header_style="bold magenta",
        )

        table.add_column("Sent", justify="right")
        table.add_column("Received", justify="right")
        table.add_column("Loss", justify="right", style="red")
        table.add_column("Min (ms)", justify="right", style="green")
        table.add_column("Avg (ms)", justify="right", style="green")
        table.add_column("Max (ms)", justify="right", style="yellow")

        stats = result["stats"]

        def cell(value: Optional[Number], fmt: str = "{:.2f}") -> str:
            return "-" if value is None else fmt.format(value)

        sent = None
        if stats["rcv"] is not None and stats["drop"] is not None:
            sent = stats["rcv"] + stats["drop"]

        table.add_row(
            cell(sent, "{}"),
            cell(stats["rcv"], "{}"),
            cell(None if stats["loss"] is None else stats["loss"] * 100, "{:.1f}%"),
            cell(stats["min"]),
            cell(stats["avg"]),
            cell(stats["max"]),
        )

        console.print(table)
        console.print()
