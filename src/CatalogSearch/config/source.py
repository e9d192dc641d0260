"""Source domain configuration for the fetch collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from CatalogSearch.config.common import (
    expect_float,
    expect_int,
    expect_str,
    get_optional_value,
    get_required_value,
    get_section,
)
from CatalogSearch.sources.registry import supported_source_names


@dataclass(frozen=True, slots=True)
class SourceConfig:
    """Source configuration.

    Attributes:
        kind: Registered source name (``local`` or ``graphql``).
        path: Catalog file for the local source.
        url: Endpoint for the GraphQL source.
        timeout: HTTP timeout in seconds.
        api_key_env: Environment variable holding the GraphQL API key.
        max_results: Maximum number of items per fetch.
    """

    kind: str
    path: str
    url: str
    timeout: float
    api_key_env: str
    max_results: int


def load_source(raw: Mapping[str, Any]) -> SourceConfig:
    """Load source domain config from raw mapping."""
    section = get_section(raw, "source", required=True)
    return SourceConfig(
        kind=expect_str(get_required_value(section, "kind", "source.kind"), "source.kind").strip().lower(),
        path=expect_str(get_optional_value(section, "path", ""), "source.path"),
        url=expect_str(get_optional_value(section, "url", ""), "source.url"),
        timeout=expect_float(get_optional_value(section, "timeout", 30.0), "source.timeout"),
        api_key_env=expect_str(get_optional_value(section, "api_key_env", "CATALOG_API_KEY"), "source.api_key_env"),
        max_results=expect_int(get_optional_value(section, "max_results", 50), "source.max_results"),
    )


def check_source(config: SourceConfig) -> None:
    """Validate source domain constraints.

    Raises:
        ValueError: If values violate source constraints.
    """
    supported = supported_source_names()
    if config.kind not in supported:
        raise ValueError(f"source.kind must be one of {list(supported)}")
    if config.kind == "local" and not config.path.strip():
        raise ValueError("source.path is required when source.kind=local")
    if config.kind == "graphql" and not config.url.strip():
        raise ValueError("source.url is required when source.kind=graphql")
    if config.timeout <= 0:
        raise ValueError("source.timeout must be positive")
    if config.max_results <= 0:
        raise ValueError("source.max_results must be positive")
