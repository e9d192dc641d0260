"""GraphQL catalog source adapter."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from CatalogSearch.core.models import CatalogItem
from CatalogSearch.core.query import FilterPredicateSet
from CatalogSearch.sources.graphql.client import CatalogGraphQLClient
from CatalogSearch.sources.graphql.parser import extract_nodes, parse_catalog_items
from CatalogSearch.sources.graphql.query import CATALOG_QUERY, compile_variables


@dataclass(slots=True)
class GraphQLCatalogSource:
    """GraphQL-backed source adapter that returns normalized catalog items."""

    client: CatalogGraphQLClient
    max_results: int = 50
    name: str = "graphql"

    def fetch(
        self,
        predicates: FilterPredicateSet,
        *,
        namespace: str,
        cancelled: threading.Event | None = None,
    ) -> list[CatalogItem]:
        """Fetch items matching ``predicates``.

        The namespace does not change the request; it only scopes caching.
        """
        del namespace
        variables = compile_variables(predicates, max_results=self.max_results)
        data = self.client.execute(CATALOG_QUERY, variables, cancelled=cancelled)
        return parse_catalog_items(extract_nodes(data))

    def close(self) -> None:
        """Close resources held by the GraphQL source adapter."""
        self.client.close()
