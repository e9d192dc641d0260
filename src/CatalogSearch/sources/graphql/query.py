"""GraphQL variable compiler for catalog predicate sets.

Mapping
- equals fields   -> ``where.<filter>: {in: [...]}``
- contains fields -> ``where.<filter>: {containsAny: [...]}``
- freeText        -> top-level ``search`` variable
- ``tag`` filters the plural ``tags`` attribute; other fields keep their name.
"""

from __future__ import annotations

from typing import Any

from CatalogSearch.core.query import CONTAINS, FREE_TEXT_FIELD, FilterPredicateSet

CATALOG_QUERY = """
query CatalogSearch($where: CatalogItemFilter, $search: String, $first: Int) {
  catalogItems(where: $where, search: $search, first: $first) {
    nodes {
      id
      title
      description
      tags
      level
      language
      updatedAt
    }
  }
}
""".strip()

_FIELD_TO_FILTER: dict[str, str] = {
    "tag": "tags",
}


def compile_variables(predicates: FilterPredicateSet, *, max_results: int) -> dict[str, Any]:
    """Compile a predicate set into GraphQL variables for ``CATALOG_QUERY``.

    Values are emitted sorted so identical predicate sets always produce
    identical request bodies.
    """
    where: dict[str, Any] = {}
    for name in predicates.fields:
        if name == FREE_TEXT_FIELD:
            continue
        condition = "containsAny" if predicates.operators.get(name) == CONTAINS else "in"
        where[_FIELD_TO_FILTER.get(name, name)] = {condition: sorted(predicates.values[name])}

    variables: dict[str, Any] = {"first": max_results}
    if where:
        variables["where"] = where
    free_text = predicates.free_text
    if free_text:
        variables["search"] = free_text
    return variables
