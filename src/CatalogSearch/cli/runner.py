"""Command runner for coordinating CLI execution.

Manages component lifecycle, logging configuration, and error handling for
command execution.
"""

from __future__ import annotations

import asyncio

import click

from CatalogSearch.cli.commands import SearchCommand
from CatalogSearch.config import AppConfig
from CatalogSearch.dsl import QueryCompiler
from CatalogSearch.renderers import render_query
from CatalogSearch.services import create_query_facade
from CatalogSearch.utils.log import configure_logging, log


class CommandRunner:
    """Orchestrates command execution with proper resource management."""

    def __init__(self, config: AppConfig) -> None:
        """Initialize command runner.

        Args:
            config: Application configuration.
        """
        self.config = config

    def run_search(self, action: str, *, raw: str, namespace: str, output_format: str) -> None:
        """Execute the search command.

        Args:
            action: The CLI command name (e.g., 'search').
            raw: Raw query string.
            namespace: Cache namespace to search in.
            output_format: ``console`` or ``json``.

        Raises:
            click.Abort: When the search fails.
        """
        self._configure_logging(action)
        try:
            facade = create_query_facade(self.config)
            command = SearchCommand(facade=facade, namespace=namespace, output_format=output_format)
            result = asyncio.run(command.execute(raw))
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("Search failed: %s", e)
            raise click.Abort from e

        if result.error is not None:
            log.error("Search failed: %s", result.error)
            raise click.Abort

    def run_parse(self, action: str, *, raw: str) -> None:
        """Print every compilation stage of a raw query."""
        self._configure_logging(action)
        compiler = QueryCompiler(self.config.query.fields, cache_size=self.config.query.parse_cache_size)
        click.echo(render_query(compiler.compile(raw)), nl=False)

    def _configure_logging(self, action: str) -> None:
        configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
        )
