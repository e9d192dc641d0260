"""Command implementations for CatalogSearch CLI.

Encapsulates business logic for commands, separated from CLI parameter
handling and output formatting.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

import click

from CatalogSearch.core.models import SearchResult
from CatalogSearch.renderers import render_json, render_text
from CatalogSearch.services.search import QueryFacade
from CatalogSearch.utils.log import log


@dataclass(slots=True)
class SearchCommand:
    """Run one raw query through the facade and write its output.

    Responsible for logging the compiled query, awaiting the search and
    delegating rendering to the configured output format.
    """

    facade: QueryFacade
    namespace: str
    output_format: str = "console"

    async def execute(self, raw: str) -> SearchResult:
        """Execute the search and always release the facade.

        Args:
            raw: Raw query string.

        Returns:
            The search result, successful or not.
        """
        compiled = self.facade.compile(raw)
        log.info("namespace=%s signature=%s", self.namespace, compiled.signature)
        for note in compiled.ast.diagnostics:
            log.info("Query degraded to free text: %s", note)
        try:
            result = await self.facade.search(raw, self.namespace)
        finally:
            await self.facade.aclose()

        self.write(result)
        return result

    def write(self, result: SearchResult) -> None:
        if self.output_format == "json":
            click.echo(json.dumps(render_json(result), ensure_ascii=False, indent=2))
            return
        if result.error is not None:
            return
        log.info("Found %d items", len(result.data))
        for line in render_text(result.data).splitlines():
            log.info(line)
