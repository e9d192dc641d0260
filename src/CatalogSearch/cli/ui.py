"""Click CLI interface definitions.

Defines the command-line interface structure and routes commands
to their respective runners.
"""

from __future__ import annotations

from pathlib import Path

import click
from dotenv import load_dotenv

from CatalogSearch.cli.runner import CommandRunner
from CatalogSearch.config import load_config


@click.group(help="CatalogSearch: query the catalog with free text and field filters.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=Path("config/default.yml"),
    show_default=True,
    help="Path to YAML config file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    """CLI entry group.

    Loads environment variables from .env file before processing config.
    """
    load_dotenv()
    ctx.obj = load_config(config_path)


@cli.command("search")
@click.argument("raw")
@click.option("--namespace", default="catalog", show_default=True, help="Cache namespace.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["console", "json"]),
    default="console",
    show_default=True,
    help="Output format.",
)
@click.pass_context
def search_cmd(ctx: click.Context, raw: str, namespace: str, output_format: str) -> None:
    """Search the catalog with RAW, e.g. 'tag:react level:beginner hooks'.

    Raises:
        click.Abort: When the search fails.
    """
    runner = CommandRunner(ctx.obj)
    runner.run_search(ctx.command.name, raw=raw, namespace=namespace, output_format=output_format)


@cli.command("parse")
@click.argument("raw")
@click.pass_context
def parse_cmd(ctx: click.Context, raw: str) -> None:
    """Show tokens, clauses, predicates and signature for RAW."""
    runner = CommandRunner(ctx.obj)
    runner.run_parse(ctx.command.name, raw=raw)
