"""Query translator.

Maps a ``QueryAST`` to a backend-agnostic ``FilterPredicateSet`` and derives
its canonical signature.

Rules
- Field predicate values are stripped and lower-cased, then accumulate per
  field as alternatives (OR within a field, AND across fields).
- Free-text clauses are space-joined in clause order, stripped of double
  quotes, whitespace-normalized and lower-cased into the single ``freeText``
  value.
- The signature sorts field names and each field's values, so clause order
  and casing never change it. Each field serializes as ``name=<JSON array>``
  and fields join with ``&``; JSON quoting keeps values containing the
  delimiters from colliding. The empty predicate set signs as ``*``.
"""

from __future__ import annotations

import json
import re
from typing import Iterable, Mapping

from CatalogSearch.core.models import CatalogItem
from CatalogSearch.core.query import (
    CONTAINS,
    DEFAULT_FIELDS,
    EQUALS,
    FREE_TEXT_FIELD,
    FieldPredicate,
    FilterPredicateSet,
    FreeTextClause,
    QueryAST,
)

_RE_WS = re.compile(r"\s+")

EMPTY_SIGNATURE = "*"


def translate(ast: QueryAST) -> FilterPredicateSet:
    """Translate an AST into a filter predicate set.

    Args:
        ast: Parsed query.

    Returns:
        Predicate set with its canonical signature.
    """
    values: dict[str, set[str]] = {}
    operators: dict[str, str] = {}
    free_terms: list[str] = []

    for clause in ast.clauses:
        if isinstance(clause, FieldPredicate):
            value = _normalize(clause.value)
            if not value:
                continue
            values.setdefault(clause.field, set()).add(value)
            operators.setdefault(clause.field, clause.operator)
        elif isinstance(clause, FreeTextClause):
            free_terms.append(clause.term)

    free_text = _normalize(" ".join(free_terms).replace('"', " "))
    if free_text:
        values[FREE_TEXT_FIELD] = {free_text}
        operators[FREE_TEXT_FIELD] = CONTAINS

    frozen = {name: frozenset(items) for name, items in values.items()}
    return FilterPredicateSet(values=frozen, operators=operators, signature=canonical_signature(frozen))


def canonical_signature(values: Mapping[str, Iterable[str]]) -> str:
    """Build the canonical signature for a field -> values mapping."""
    parts: list[str] = []
    for name in sorted(values):
        items = sorted({_normalize(v) for v in values[name]} - {""})
        if not items:
            continue
        parts.append(f"{name}={json.dumps(items, ensure_ascii=False, separators=(',', ':'))}")
    if not parts:
        return EMPTY_SIGNATURE
    return "&".join(parts)


def matches(item: CatalogItem, predicates: FilterPredicateSet) -> bool:
    """Return True if ``item`` satisfies every field of ``predicates``."""
    for name, accepted in predicates.values.items():
        operator = predicates.operators.get(name, DEFAULT_FIELDS.get(name, EQUALS))
        candidates = _item_values(item, name)
        if not any(_value_matches(candidate, value, operator) for candidate in candidates for value in accepted):
            return False
    return True


def _item_values(item: CatalogItem, name: str) -> list[str]:
    """Collect the lower-cased values of ``item`` compared against field ``name``."""
    if name == FREE_TEXT_FIELD:
        haystack = " ".join([item.title, item.description, *item.tags])
        return [_normalize(haystack)]
    if name == "tag":
        return [_normalize(tag) for tag in item.tags]
    raw = getattr(item, name, None)
    if raw is None:
        raw = item.extra.get(name)
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [_normalize(str(v)) for v in raw]
    return [_normalize(str(raw))]


def _value_matches(candidate: str, value: str, operator: str) -> bool:
    if operator == CONTAINS:
        return value in candidate
    return candidate == value


def _normalize(value: str) -> str:
    return _RE_WS.sub(" ", value).strip().lower()
