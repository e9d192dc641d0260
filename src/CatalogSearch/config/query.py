"""Query language configuration: field vocabulary and parse memo size."""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from CatalogSearch.config.common import (
    expect_int,
    expect_mapping,
    expect_str,
    get_optional_value,
    get_section,
)
from CatalogSearch.core.query import DEFAULT_FIELDS, FREE_TEXT_FIELD, OPERATORS

_RE_FIELD_NAME = re.compile(r"^[a-z_][a-z0-9_]*$")


@dataclass(frozen=True, slots=True)
class QueryConfig:
    """Store the enumerated field vocabulary.

    Attributes:
        fields: Lower-case field name mapped to its operator.
        parse_cache_size: Number of compiled raw queries memoized.
    """

    fields: Mapping[str, str]
    parse_cache_size: int


def load_query(raw: Mapping[str, Any]) -> QueryConfig:
    """Load query configuration; the whole section is optional."""
    section = get_section(raw, "query", required=False)
    fields_obj = get_optional_value(section, "fields", None)
    if fields_obj is None:
        fields: Mapping[str, str] = DEFAULT_FIELDS
    else:
        mapping = expect_mapping(fields_obj, "query.fields")
        fields = MappingProxyType(
            {
                name.strip().lower(): expect_str(op, f"query.fields.{name}").strip().lower()
                for name, op in mapping.items()
            }
        )
    return QueryConfig(
        fields=fields,
        parse_cache_size=expect_int(get_optional_value(section, "parse_cache_size", 256), "query.parse_cache_size"),
    )


def check_query(config: QueryConfig) -> None:
    """Validate query domain constraints.

    Raises:
        ValueError: If a field name or operator is invalid.
    """
    if not config.fields:
        raise ValueError("query.fields must include at least one field")
    for name, op in config.fields.items():
        if not _RE_FIELD_NAME.match(name):
            raise ValueError(f"query.fields has invalid field name: {name}")
        if name == FREE_TEXT_FIELD.lower():
            raise ValueError(f"query.fields must not redefine reserved field: {FREE_TEXT_FIELD}")
        if op not in OPERATORS:
            raise ValueError(f"query.fields.{name} must be one of {sorted(OPERATORS)}")
    if config.parse_cache_size <= 0:
        raise ValueError("query.parse_cache_size must be positive")
