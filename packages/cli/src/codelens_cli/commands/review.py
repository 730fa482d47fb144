"""review command — run AI review on one source file."""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from codelens_cli.commands.history import save_to_history, score_style
from codelens_core.client import PROVIDERS
from codelens_core.errors import RateLimited, ReviewError
from codelens_core.models import Review
from codelens_core.prompts import normalize_rule_name
from codelens_store.models import ReviewRecord, utc_now

console = Console()

_TYPE_STYLE = {"error": "red", "warning": "yellow", "suggestion": "blue"}


def _review_to_record(review: Review, file_name: str, provider: str) -> ReviewRecord:
    """Map a Review returned by review_code() to a ReviewRecord for the store.

    The CLI layer owns this mapping — codelens_core has no history knowledge
    and codelens_store has no core knowledge. The CLI bridges the two.
    """
    return ReviewRecord(
        file_name=file_name,
        provider=provider,
        overall_score=review.overall_score,
        summary=review.summary,
        total_issues=len(review.issues),
        issues_by_type=dict(Counter(i.type for i in review.issues)),
        issues_by_category=dict(Counter(i.category for i in review.issues)),
    )


def _disable_rules(rules: dict[str, bool], disabled: tuple[str, ...]) -> dict[str, bool]:
    """Copy of rules with each named rule off, matched by canonical name.

    "--disable Security" and "--disable checkSecurity" both turn off a rule
    stored as "security" (or as "checkSecurity").
    """
    rules = dict(rules)
    for rule in disabled:
        target = normalize_rule_name(rule)
        matches = [key for key in rules if normalize_rule_name(key) == target]
        for key in matches or [target]:
            rules[key] = False
    return rules


def _export(path: Path, review: Review, record: ReviewRecord, code: str) -> None:
    payload = {
        **review.to_dict(),
        "fileName": record.file_name,
        "provider": record.provider,
        "date": record.reviewed_at,
        "code": code,
        "exportDate": utc_now(),
    }
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def _render(review: Review, file_name: str, provider: str) -> None:
    style = score_style(review.overall_score)
    console.print(f"\n[bold]{escape(file_name)}[/bold] [dim]({escape(provider)})[/dim]")
    console.print(f"Score: [bold {style}]{review.overall_score}/100[/bold {style}]")
    console.print(escape(review.summary))

    if review.issues:
        table = Table(title=f"Issues ({len(review.issues)})", show_header=True, header_style="bold cyan")
        table.add_column("Line", justify="right", width=5)
        table.add_column("Type", width=10)
        table.add_column("Category", width=13)
        table.add_column("Issue")
        for issue in review.issues:
            type_style = _TYPE_STYLE.get(issue.type, "white")
            detail = escape(issue.message)
            if issue.suggestion:
                detail += f"\n[dim]→ {escape(issue.suggestion)}[/dim]"
            if issue.code_example:
                detail += f"\n[green]{escape(issue.code_example)}[/green]"
            table.add_row(
                str(issue.line) if issue.line is not None else "-",
                f"[{type_style}]{issue.type}[/{type_style}]",
                escape(issue.category),
                detail,
            )
        console.print(table)
    else:
        console.print("[green]No issues found.[/green]")

    if review.strengths:
        console.print("\n[bold green]Strengths[/bold green]")
        for s in review.strengths:
            console.print(f"  • {escape(s)}")
    if review.recommendations:
        console.print("\n[bold]Recommendations[/bold]")
        for r in review.recommendations:
            console.print(f"  • {escape(r)}")


@click.command("review")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path), required=False)
@click.option(
    "--provider",
    type=click.Choice(sorted(PROVIDERS)),
    default=None,
    help="AI provider. Overrides config file.",
)
@click.option("--api-key", default=None, help="API key for the provider. Overrides environment variables.")
@click.option(
    "--disable",
    "disabled_rules",
    multiple=True,
    help="Skip a review rule for this run (repeatable), e.g. --disable documentation.",
)
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Also write the review and its metadata to this JSON file.",
)
@click.option("--demo", is_flag=True, help="Show a sample review without calling any provider.")
@click.option("--json", "as_json", is_flag=True, help="Print the review as JSON instead of tables.")
@click.pass_context
def review_cmd(
    ctx,
    file: Path | None,
    provider: str | None,
    api_key: str | None,
    disabled_rules: tuple[str, ...],
    output_path: Path | None,
    demo: bool,
    as_json: bool,
):
    """Review a source file with OpenAI or Google Gemini.

    The file's extension picks the language the model is told about. Each
    provider enforces a cooldown between requests for the same key (60s for
    OpenAI, 15s for Gemini) to stay inside free-tier limits.

    \b
    Environment variables:
      OPENAI_API_KEY    Required when using --provider openai
      GEMINI_API_KEY    Required when using --provider gemini (or GOOGLE_API_KEY)
    """
    from codelens_cli.auth import require_api_key
    from codelens_cli.cli import build_client
    from codelens_core.demo import SAMPLE_CODE, SAMPLE_FILE_NAME, sample_review

    config = ctx.obj["config"]
    store = ctx.obj["store"]

    if demo:
        provider_name = "demo"
        code = file.read_text(encoding="utf-8", errors="replace") if file else SAMPLE_CODE
        file_name = file.name if file else SAMPLE_FILE_NAME
        review = sample_review()
    else:
        if file is None:
            raise click.UsageError("Missing argument 'FILE'. Pass a file to review, or use --demo.")
        provider_name = provider or config["provider"]
        key = require_api_key(config, provider_name, api_key)
        code = file.read_text(encoding="utf-8", errors="replace")
        if not code.strip():
            raise click.UsageError(f"{file} is empty; nothing to review.")
        file_name = file.name

        rules = _disable_rules(config["rules"], disabled_rules)

        client = build_client(ctx)
        try:
            with console.status(f"Reviewing {escape(file_name)}…", spinner="dots"):
                review = client.review_code(code, file_name, provider_name, key, rules)
        except RateLimited as e:
            raise click.ClickException(e.message) from e
        except ReviewError as e:
            raise click.ClickException(f"{e.message}\nRun `codelens logs` for the recorded request details.") from e

    record = _review_to_record(review, file_name, provider_name)
    save_to_history(store, record)

    if as_json:
        click.echo(json.dumps(review.to_dict(), indent=2))
    else:
        _render(review, file_name, provider_name)

    if output_path is not None:
        _export(output_path, review, record, code)
        console.print(f"[green]Review exported to {escape(str(output_path))}[/green]")
