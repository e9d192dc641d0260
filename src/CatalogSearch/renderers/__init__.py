"""Output renderers for command results (console text, JSON)."""

from __future__ import annotations

from CatalogSearch.renderers.console import render_query, render_text
from CatalogSearch.renderers.json import render_items, render_json

__all__ = [
    "render_items",
    "render_json",
    "render_query",
    "render_text",
]
