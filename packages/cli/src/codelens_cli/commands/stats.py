"""stats command — aggregate patterns across review history."""

from __future__ import annotations

from collections import Counter

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from codelens_cli.commands.history import load_history, score_style
from codelens_core.models import ISSUE_CATEGORIES, ISSUE_TYPES

console = Console()


@click.command("stats")
@click.pass_context
def stats_cmd(ctx):
    """Show aggregated statistics for the stored review history.

    Reports the average score, when the last review ran and how issues split
    by type and category, which is useful for spotting the kinds of problem
    that keep coming back.
    """
    records = load_history(ctx.obj["store"])
    if not records:
        console.print("[yellow]No review records found. Run `codelens review` first.[/yellow]")
        return

    total_reviews = len(records)
    total_issues = sum(r.total_issues for r in records)
    average = sum(r.overall_score for r in records) / total_reviews
    type_counter: Counter[str] = Counter()
    category_counter: Counter[str] = Counter()
    provider_counter: Counter[str] = Counter(r.provider for r in records)

    for record in records:
        type_counter.update(record.issues_by_type)
        category_counter.update(record.issues_by_category)

    # --- Summary ---
    style = score_style(round(average))
    console.print("\n[bold]Review stats[/bold]")
    console.print(f"  Total reviews:  {total_reviews}")
    console.print(f"  Average score:  [{style}]{average:.1f}[/{style}]")
    console.print(f"  Total issues:   {total_issues}")
    # History is newest first.
    console.print(f"  Last review:    {records[0].reviewed_at[:19].replace('T', ' ')}")
    providers = ", ".join(f"{escape(p)} ({n})" for p, n in provider_counter.most_common())
    console.print(f"  Providers:      {providers}")

    # --- Type breakdown ---
    if total_issues:
        type_table = Table(title="Issues by Type", show_header=True)
        type_table.add_column("Type", style="bold")
        type_table.add_column("Count", justify="right")
        type_table.add_column("% of total", justify="right")
        _type_style = {"error": "red", "warning": "yellow", "suggestion": "blue"}
        for issue_type in ISSUE_TYPES:
            count = type_counter.get(issue_type, 0)
            style = _type_style.get(issue_type, "white")
            type_table.add_row(f"[{style}]{issue_type}[/{style}]", str(count), f"{count / total_issues * 100:.1f}%")
        console.print(type_table)

    # --- Category breakdown ---
    if category_counter:
        cat_table = Table(title="Issues by Category", show_header=True)
        cat_table.add_column("Category")
        cat_table.add_column("Count", justify="right")
        for category, count in category_counter.most_common():
            if category in ISSUE_CATEGORIES:
                cat_table.add_row(category, str(count))
        console.print(cat_table)
