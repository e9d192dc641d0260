"""JSON output renderers.

Renders search results into JSON-serializable objects.
"""

from __future__ import annotations

from typing import Iterable

from CatalogSearch.core.models import CatalogItem, SearchResult


def render_items(items: Iterable[CatalogItem]) -> list[dict]:
    """Render catalog items into JSON-serializable Python objects."""
    out: list[dict] = []
    for item in items:
        out.append(
            {
                "id": item.id,
                "title": item.title,
                "description": item.description,
                "tags": list(item.tags),
                "level": item.level,
                "language": item.language,
                "updated": item.updated.isoformat() if item.updated else None,
            }
        )
    return out


def render_json(result: SearchResult) -> dict:
    """Render a search result in the uniform ``{data, isLoading, error}`` shape."""
    return {
        "namespace": result.namespace,
        "signature": result.signature,
        "fromCache": result.from_cache,
        "isLoading": result.is_loading,
        "error": str(result.error) if result.error is not None else None,
        "data": render_items(result.data) if result.data is not None else None,
    }
