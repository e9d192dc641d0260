"""Console text output renderers.

Renders catalog items and compiled queries into human-friendly text.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from CatalogSearch.core.models import CatalogItem
from CatalogSearch.core.query import FieldPredicate
from CatalogSearch.dsl import CompiledQuery


def _fmt_dt(dt: datetime | None) -> str:
    if not dt:
        return "-"
    return dt.strftime("%Y-%m-%d")


def render_text(items: Iterable[CatalogItem]) -> str:
    """Render catalog items into a human-readable text block.

    Args:
        items: Iterable of catalog items.

    Returns:
        A formatted string ready to be printed.
    """
    lines: list[str] = []
    for idx, item in enumerate(items, start=1):
        lines.append(f"{idx}. {item.title}")
        if item.tags:
            lines.append(f"   Tags: {', '.join(item.tags)}")
        lines.append(f"   Level: {item.level or '-'}  Language: {item.language or '-'}  Updated: {_fmt_dt(item.updated)}")
        if item.description:
            lines.append(f"   {item.description}")
        lines.append("")
    if not lines:
        return "No results.\n"
    return "\n".join(lines).rstrip() + "\n"


def render_query(compiled: CompiledQuery) -> str:
    """Render every stage of a compiled query, for debugging input syntax."""
    lines = [f"Raw: {compiled.raw!r}", "Tokens:"]
    for token in compiled.tokens:
        lines.append(f"  {token.position:>3} {token.kind.value:<9} {token.value!r}")
    lines.append("Clauses:")
    for clause in compiled.ast.clauses:
        if isinstance(clause, FieldPredicate):
            lines.append(f"  {clause.field} {clause.operator} {clause.value!r}")
        else:
            lines.append(f"  text {clause.term!r}")
    for note in compiled.ast.diagnostics:
        lines.append(f"  degraded: {note}")
    lines.append("Predicates:")
    for name, values in compiled.predicates.to_dict().items():
        lines.append(f"  {name} ({compiled.predicates.operators.get(name)}): {values}")
    lines.append(f"Signature: {compiled.signature}")
    return "\n".join(lines) + "\n"
