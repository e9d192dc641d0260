"""CLI package for CatalogSearch command orchestration."""

from __future__ import annotations

__all__ = ["CommandRunner", "cli", "main"]

from CatalogSearch.cli.runner import CommandRunner
from CatalogSearch.cli.ui import cli


def main() -> None:
    """Run CatalogSearch CLI.

    Entry point referenced by console script in pyproject.toml.
    """
    cli()
