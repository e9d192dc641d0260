"""Response cache for catalog searches."""

from __future__ import annotations

from CatalogSearch.cache.engine import MISS, CacheEngine, CacheLookup, CacheStats, NamespacePolicy

__all__ = [
    "MISS",
    "CacheEngine",
    "CacheLookup",
    "CacheStats",
    "NamespacePolicy",
]
