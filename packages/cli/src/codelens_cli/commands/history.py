"""history command — display past review records from the store."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from codelens_store.models import ReviewRecord

console = Console()

REVIEW_HISTORY_KEY = "review_history"
REVIEW_HISTORY_LIMIT = 20


def load_history(store) -> list[ReviewRecord]:
    """Stored review records, newest first. Malformed entries are skipped."""
    value = store.get(REVIEW_HISTORY_KEY)
    if not isinstance(value, list):
        return []
    return [ReviewRecord.from_dict(d) for d in value if isinstance(d, dict)]


def save_to_history(store, record: ReviewRecord) -> None:
    store.push_front(REVIEW_HISTORY_KEY, record.to_dict(), REVIEW_HISTORY_LIMIT)


def score_style(score: int) -> str:
    if score >= 80:
        return "green"
    if score >= 60:
        return "yellow"
    return "red"


@click.command("history")
@click.option("--limit", default=REVIEW_HISTORY_LIMIT, show_default=True, help="Maximum number of records to show.")
@click.option("--clear", is_flag=True, help="Delete the stored review history.")
@click.pass_context
def history_cmd(ctx, limit: int, clear: bool):
    """Show past reviews, most recent first.

    Only the last 20 reviews are kept. With `store: memory` the history is
    always empty; run `codelens init` to pick a persistent store.
    """
    store = ctx.obj["store"]

    if clear:
        store.delete(REVIEW_HISTORY_KEY)
        console.print("[green]Review history cleared.[/green]")
        return

    records = load_history(store)[:limit]
    if not records:
        console.print("[yellow]No review records found.[/yellow]")
        return

    table = Table(title="Review History", show_header=True, header_style="bold cyan")
    table.add_column("File", max_width=40)
    table.add_column("Provider", width=8)
    table.add_column("Score", justify="right", width=6)
    table.add_column("Issues", justify="right", width=7)
    table.add_column("Reviewed At", width=20)

    for r in records:
        style = score_style(r.overall_score)
        table.add_row(
            escape(r.file_name),
            escape(r.provider),
            f"[{style}]{r.overall_score}[/{style}]",
            str(r.total_issues),
            r.reviewed_at[:19].replace("T", " "),
        )

    console.print(table)
