from __future__ import annotations

"""Public configuration API for CatalogSearch."""

from CatalogSearch.config.app import (
    AppConfig,
    load_config,
    load_config_with_defaults,
    merge_config_dicts,
    parse_config_dict,
)
from CatalogSearch.config.cache import CacheConfig
from CatalogSearch.config.query import QueryConfig
from CatalogSearch.config.runtime import RuntimeConfig
from CatalogSearch.config.source import SourceConfig

__all__ = [
    "RuntimeConfig",
    "QueryConfig",
    "CacheConfig",
    "SourceConfig",
    "AppConfig",
    "load_config",
    "load_config_with_defaults",
    "merge_config_dicts",
    "parse_config_dict",
]
