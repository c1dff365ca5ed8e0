"""CLI entry point for codeatlas.

Commands:
  review  : run an AI review for a pull request (request file or webhook payload)
  history : display past review records from the configured store
  stats   : aggregate findings across review history
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from codeatlas_cli.commands.history import history_cmd
from codeatlas_cli.commands.review import review_cmd
from codeatlas_cli.commands.stats import stats_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured store from .codeatlas.yml settings.

    Store selection:
      store: sqlite → SQLiteStore (uses store_path, default .codeatlas.db)
      (default)     → NoOpStore   (no persistence)
    """
    from codeatlas_store.noop import NoOpStore

    store_type = config.get("store", "noop")

    if store_type == "sqlite":
        from codeatlas_store.sqlite import SQLiteStore

        return SQLiteStore(db_path=config.get("store_path", ".codeatlas.db"))

    if store_type not in ("noop", None):
        console.print(f"[yellow]Unknown store {store_type!r}. Falling back to no store.[/yellow]")
    return NoOpStore()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("codeatlas-review"),
    prog_name="codeatlas",
)
@click.option(
    "--config",
    "config_path",
    default=".codeatlas.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="CODEATLAS_CONFIG",
)
@click.pass_context
def main(ctx: click.Context, config_path: str):
    """AI-powered pull request reviews with structured findings."""
    from codeatlas_core.config import load_config

    ctx.ensure_object(dict)

    config = load_config(config_path)
    _configure_logging(config.get("log_level", "INFO"))

    store = _build_store(config)
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.call_on_close(store.close)


main.add_command(review_cmd)
main.add_command(history_cmd)
main.add_command(stats_cmd)
