"""logs command — inspect the diagnostic ring buffers."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

console = Console()


def _show_errors(entries, raw: bool) -> None:
    table = Table(title=f"Recent Errors ({len(entries)})", show_header=True, header_style="bold red")
    table.add_column("#", justify="right", width=3)
    table.add_column("Time", width=19)
    table.add_column("Provider", width=8)
    table.add_column("Status", width=10)
    table.add_column("Message")
    for i, e in enumerate(entries, start=1):
        status = f"{e.http_status} {e.status_text}".strip() if e.http_status is not None else "-"
        table.add_row(
            str(i),
            e.timestamp[:19].replace("T", " "),
            escape(e.provider),
            escape(status),
            escape(e.message),
        )
    console.print(table)

    if not raw:
        return
    for i, e in enumerate(entries, start=1):
        if e.request_meta:
            console.print(Panel(Text(json.dumps(e.request_meta, indent=2)), title=f"#{i} request", expand=False))
        if e.raw_body:
            console.print(Panel(Text(e.raw_body), title=f"#{i} response body", expand=False))


def _show_responses(entries) -> None:
    for i, e in enumerate(entries, start=1):
        title = f"#{i} · {e.timestamp[:19].replace('T', ' ')} · {e.content_length} chars"
        console.print(Panel(Text(e.content_preview), title=title, expand=False))


@click.command("logs")
@click.option("--responses", is_flag=True, help="Show recent successful model replies instead of errors.")
@click.option("--raw", is_flag=True, help="Include request details and raw response bodies.")
@click.option("--clear", is_flag=True, help="Empty the error log.")
@click.pass_context
def logs_cmd(ctx, responses: bool, raw: bool, clear: bool):
    """Show the last 10 provider errors or the last 5 model replies.

    API keys are redacted before anything is stored, so the output is safe
    to paste into a bug report.
    """
    from codelens_cli.cli import build_client

    client = build_client(ctx)

    if clear:
        client.clear_error_log()
        console.print("[green]Error log cleared.[/green]")
        return

    if responses:
        entries = client.get_success_log()
        if not entries:
            console.print("[yellow]No successful responses recorded.[/yellow]")
            return
        _show_responses(entries)
        return

    entries = client.get_error_log()
    if not entries:
        console.print("[green]No errors recorded.[/green]")
        return
    _show_errors(entries, raw)
