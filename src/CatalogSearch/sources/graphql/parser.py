"""Catalog GraphQL payload parser."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from dateutil import parser as dt_parser

from CatalogSearch.core.models import CatalogItem

_KNOWN_KEYS = {"id", "title", "description", "tags", "level", "language", "updatedAt"}


def extract_nodes(data: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    """Return the ``catalogItems.nodes`` list of a response ``data`` object."""
    connection = data.get("catalogItems")
    nodes = connection.get("nodes") if isinstance(connection, Mapping) else None
    if not isinstance(nodes, list):
        return []
    return [node for node in nodes if isinstance(node, Mapping)]


def parse_catalog_items(nodes: Sequence[Mapping[str, Any]]) -> list[CatalogItem]:
    """Parse GraphQL nodes into catalog items, skipping nodes without an id."""
    items: list[CatalogItem] = []
    for node in nodes:
        item_id = _safe_str(node.get("id"))
        if not item_id:
            continue
        items.append(
            CatalogItem(
                id=item_id,
                title=_safe_str(node.get("title")) or "Untitled",
                description=_safe_str(node.get("description")),
                tags=_collect_str_list(node.get("tags")),
                level=_safe_str(node.get("level")) or None,
                language=_safe_str(node.get("language")) or None,
                updated=_parse_iso_datetime(_safe_str(node.get("updatedAt"))),
                extra={key: value for key, value in node.items() if key not in _KNOWN_KEYS},
            )
        )
    return items


def _parse_iso_datetime(raw_value: str) -> datetime | None:
    """Parse ISO datetime text into timezone-aware datetime."""
    if not raw_value:
        return None
    try:
        parsed = dt_parser.isoparse(raw_value)
    except (TypeError, ValueError):
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _collect_str_list(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(text for text in (_safe_str(item) for item in value) if text)


def _safe_str(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""
