"""Source registry and builders for fetch collaborators."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from CatalogSearch.config import AppConfig
    from CatalogSearch.services.search import CatalogSource

SourceBuilder = Callable[["AppConfig"], "CatalogSource"]


def build_source(source_name: str, *, config: AppConfig) -> CatalogSource:
    """Build a catalog source instance from the registered source name.

    Args:
        source_name: Source identifier from ``source.kind``.
        config: Parsed application configuration.

    Returns:
        Initialized source implementation for the given name.

    Raises:
        ValueError: If ``source_name`` is not registered.
    """
    builder = _source_builders().get(source_name)
    if builder is None:
        raise ValueError(f"Unsupported source in config.source.kind: {source_name}")
    return builder(config)


def supported_source_names() -> tuple[str, ...]:
    """Return all source names that can be built by the registry."""
    return tuple(_source_builders().keys())


def _source_builders() -> dict[str, SourceBuilder]:
    return {
        "local": _build_local_source,
        "graphql": _build_graphql_source,
    }


def _build_local_source(config: AppConfig) -> CatalogSource:
    """Build file-backed local source."""
    from CatalogSearch.sources.local.source import LocalCatalogSource

    return LocalCatalogSource.from_file(Path(config.source.path), max_results=config.source.max_results)


def _build_graphql_source(config: AppConfig) -> CatalogSource:
    """Build GraphQL source; the API key is read from the environment."""
    from CatalogSearch.sources.graphql.client import CatalogGraphQLClient
    from CatalogSearch.sources.graphql.source import GraphQLCatalogSource

    api_key = os.environ.get(config.source.api_key_env) or None
    return GraphQLCatalogSource(
        client=CatalogGraphQLClient(config.source.url, api_key=api_key, timeout=config.source.timeout),
        max_results=config.source.max_results,
    )
