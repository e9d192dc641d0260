"""Search service layer for CatalogSearch.

Provides the query facade and a factory wiring it to the configured cache
policies, field vocabulary and fetch collaborator.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Callable

from CatalogSearch.cache.engine import CacheEngine
from CatalogSearch.dsl import QueryCompiler
from CatalogSearch.services.search import CatalogSource, Fetcher, QueryFacade, as_fetcher

if TYPE_CHECKING:
    from CatalogSearch.config import AppConfig


def create_query_facade(
    config: AppConfig,
    *,
    fetcher: Fetcher | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> QueryFacade:
    """Create a query facade with its own cache engine.

    The returned facade owns the cache for its whole lifetime; results are
    dropped only through TTL expiry, LRU eviction or ``invalidate``.

    Args:
        config: Application configuration.
        fetcher: Async fetch collaborator; built from ``config.source`` when
            omitted.
        clock: Time source handed to the cache engine.

    Returns:
        Configured QueryFacade instance.
    """
    cache = CacheEngine(config.cache.namespaces, default_policy=config.cache.default, clock=clock)
    compiler = QueryCompiler(config.query.fields, cache_size=config.query.parse_cache_size)

    source: CatalogSource | None = None
    if fetcher is None:
        from CatalogSearch.sources.registry import build_source

        source = build_source(config.source.kind, config=config)
        fetcher = as_fetcher(source)

    return QueryFacade(fetcher, cache, compiler, source=source)


__all__ = [
    "CatalogSource",
    "Fetcher",
    "QueryFacade",
    "as_fetcher",
    "create_query_facade",
]
