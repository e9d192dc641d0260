"""In-process catalog source backed by a YAML or JSON file."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import yaml

from CatalogSearch.core.models import CatalogItem
from CatalogSearch.core.query import FilterPredicateSet
from CatalogSearch.dsl.translator import matches
from CatalogSearch.sources.graphql.parser import parse_catalog_items
from CatalogSearch.utils.log import log


def load_catalog_file(path: Path) -> list[CatalogItem]:
    """Load catalog items from a YAML/JSON file.

    The file holds either a list of item objects or an object with an
    ``items`` list; item keys follow the GraphQL node shape.

    Raises:
        ValueError: If the file does not contain an item list.
    """
    data: Any = yaml.safe_load(path.read_text(encoding="utf-8")) or []
    if isinstance(data, dict):
        data = data.get("items", [])
    if not isinstance(data, list):
        raise ValueError(f"Catalog file must contain a list of items: {path}")
    items = parse_catalog_items([node for node in data if isinstance(node, dict)])
    log.debug("Loaded catalog file: path=%s items=%d", path, len(items))
    return items


@dataclass(slots=True)
class LocalCatalogSource:
    """Filter a fixed list of items in memory."""

    items: Sequence[CatalogItem] = ()
    max_results: int = 50
    name: str = "local"

    @classmethod
    def from_file(cls, path: Path, *, max_results: int = 50) -> "LocalCatalogSource":
        return cls(items=tuple(load_catalog_file(path)), max_results=max_results)

    def fetch(
        self,
        predicates: FilterPredicateSet,
        *,
        namespace: str,
        cancelled: threading.Event | None = None,
    ) -> list[CatalogItem]:
        del namespace, cancelled
        found = [item for item in self.items if matches(item, predicates)]
        return found[: self.max_results]

    def close(self) -> None:
        return
