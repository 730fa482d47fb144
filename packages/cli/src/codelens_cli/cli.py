"""CLI entry point for codelens.

Commands:
  review           — AI review of one source file (or the built-in demo)
  test-connection  — check that an API key works with the smallest request
  logs             — inspect or clear the diagnostic ring buffers
  history          — display past review records from the configured store
  stats            — aggregate scores and issue patterns across history
  init             — interactive settings wizard
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from codelens_cli.commands.history import history_cmd
from codelens_cli.commands.init import init_cmd
from codelens_cli.commands.logs import logs_cmd
from codelens_cli.commands.review import review_cmd
from codelens_cli.commands.stats import stats_cmd
from codelens_cli.commands.test_connection import test_connection_cmd

console = Console()

DEFAULT_SQLITE_PATH = "~/.codelens/state.db"
DEFAULT_JSON_PATH = "~/.codelens/state.json"


def _build_store(config: dict):
    """Instantiate the configured store from .codelens.yml settings.

    Store selection hierarchy:
      store: sqlite → SQLiteStore   (store_path or ~/.codelens/state.db)
      store: json   → JSONFileStore (store_path or ~/.codelens/state.json)
      store: memory → MemoryStore   (nothing survives the process)

    This factory lives in cli.py so neither codelens_core nor codelens_store
    know about the CLI config format.
    """
    store_type = config.get("store", "sqlite")

    if store_type == "sqlite":
        from codelens_store.sqlite import SQLiteStore

        return SQLiteStore(db_path=config.get("store_path") or DEFAULT_SQLITE_PATH)

    if store_type == "json":
        from codelens_store.jsonfile import JSONFileStore

        return JSONFileStore(path=config.get("store_path") or DEFAULT_JSON_PATH)

    from codelens_store.memory import MemoryStore

    if store_type != "memory":
        console.print(f"[yellow]Unknown store {store_type!r}. Falling back to an in-memory store.[/yellow]")
    return MemoryStore()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    handler = RichHandler(console=Console(stderr=True), show_path=verbose, rich_tracebacks=verbose)
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=[handler], force=True)


@click.group()
@click.version_option(
    version=importlib.metadata.version("codelens"),
    prog_name="codelens",
)
@click.option(
    "--config",
    "config_path",
    default=".codelens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="CODELENS_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log provider requests and failures to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """AI code reviewer for single files, backed by OpenAI or Google Gemini."""
    from codelens_core.config import load_config

    _configure_logging(verbose)
    ctx.ensure_object(dict)

    config = load_config(config_path)
    store = _build_store(config)
    ctx.obj["config_path"] = config_path
    ctx.obj["config"] = config
    ctx.obj["store"] = store
    ctx.call_on_close(store.close)


def build_client(ctx: click.Context):
    """ReviewClient bound to the command's store and configured models."""
    from codelens_core.client import ReviewClient

    config = ctx.obj["config"]
    models = {"openai": config.get("openai_model"), "gemini": config.get("gemini_model")}
    return ReviewClient(ctx.obj["store"], models=models)


main.add_command(review_cmd)
main.add_command(test_connection_cmd)
main.add_command(logs_cmd)
main.add_command(history_cmd)
main.add_command(stats_cmd)
main.add_command(init_cmd)
