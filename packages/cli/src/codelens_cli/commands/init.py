"""init command — interactive settings wizard.

Writes the settings a review needs (provider, enabled rules, store backend)
to the config file. API keys are deliberately not asked for: they stay in
environment variables so the config file can be committed.
"""

from __future__ import annotations

from pathlib import Path

import click
import yaml
from rich.console import Console

from codelens_core.client import PROVIDERS
from codelens_core.config import API_KEY_ENV_VARS, DEFAULT_RULES

console = Console()

_RULE_HELP = {
    "style": "naming, formatting and idiom",
    "performance": "wasted work and slow patterns",
    "security": "injection, secrets and unsafe input handling",
    "bugs": "logic errors and unhandled edge cases",
    "complexity": "functions that do too much",
    "documentation": "missing or misleading comments",
}


@click.command("init")
@click.pass_context
def init_cmd(ctx):
    """Set up codelens for this project.

    Creates (or updates) .codelens.yml, or the file given with --config.
    """
    path = Path(ctx.obj["config_path"]) if ctx.obj else Path(".codelens.yml")
    console.print("\n[bold cyan]codelens init[/bold cyan] — settings wizard\n")

    # --- Choose provider ---
    console.print("AI providers:")
    console.print("  [bold]gemini[/bold]  — Google Gemini, generous free tier (15s between requests)")
    console.print("  [bold]openai[/bold]  — OpenAI, very limited free tier (60s between requests)")
    provider = click.prompt("AI provider", type=click.Choice(sorted(PROVIDERS)), default="gemini")

    # --- Choose rules ---
    console.print("\nReview rules:")
    rules = {}
    for rule, default in DEFAULT_RULES.items():
        rules[rule] = click.confirm(f"  Check {rule} ({_RULE_HELP.get(rule, rule)})?", default=default)

    # --- Choose store backend ---
    console.print("\nWhere to keep cooldowns, diagnostics and review history:")
    console.print("  [bold]sqlite[/bold]  — local SQLite file (default)")
    console.print("  [bold]json[/bold]    — one readable JSON file")
    console.print("  [bold]memory[/bold]  — nothing persists between runs")
    store_type = click.prompt("Store backend", type=click.Choice(["sqlite", "json", "memory"]), default="sqlite")

    config: dict = {"provider": provider, "rules": rules, "store": store_type}
    if store_type != "memory":
        default_path = "~/.codelens/state.db" if store_type == "sqlite" else "~/.codelens/state.json"
        store_path = click.prompt("Store path", default=default_path)
        if store_path != default_path:
            config["store_path"] = store_path

    # --- Write config ---
    _write_config(path, config)
    console.print(f"[green]Created {path}[/green]")

    env_vars = " or ".join(API_KEY_ENV_VARS[provider])
    console.print(f"\n[yellow]Remember to set [bold]{env_vars}[/bold] in your environment.[/yellow]")
    console.print("\n[bold green]Setup complete![/bold green]")
    console.print("Test your key with: [bold]codelens test-connection[/bold]")
    console.print("Run a review with:  [bold]codelens review <file>[/bold]")


def _write_config(path: Path, config: dict) -> None:
    """Write or update the config file, preserving any existing keys."""
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    # The wizard always re-chooses the store, so an old path must not linger.
    existing.pop("store_path", None)
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))
