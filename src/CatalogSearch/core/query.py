from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Union

EQUALS = "equals"
CONTAINS = "contains"
OPERATORS = frozenset({EQUALS, CONTAINS})

FREE_TEXT_FIELD = "freeText"

# Enumerated filter fields and the operator each one applies to its values.
DEFAULT_FIELDS: Mapping[str, str] = MappingProxyType(
    {
        "tag": EQUALS,
        "level": EQUALS,
        "language": EQUALS,
        "title": CONTAINS,
    }
)


class TokenKind(Enum):
    FREE_TEXT = "FreeText"
    FIELD = "Field"
    OPERATOR = "Operator"
    SEPARATOR = "Separator"
    EOF = "EOF"


@dataclass(frozen=True, slots=True)
class Token:
    """One lexical token of a raw query string.

    Attributes:
        kind: Token category.
        value: Token text. Field names keep their input casing, quoted text keeps
            its quotes, operators carry the operator name.
        position: Offset of the token's first character in the raw string.
    """

    kind: TokenKind
    value: str
    position: int


@dataclass(frozen=True, slots=True)
class FreeTextClause:
    term: str
    position: int = 0


@dataclass(frozen=True, slots=True)
class FieldPredicate:
    field: str
    operator: str
    value: str
    position: int = 0


Clause = Union[FreeTextClause, FieldPredicate]


@dataclass(frozen=True, slots=True)
class QueryAST:
    """Parsed query: clauses combined with implicit AND.

    Clause order follows the raw input. It carries no meaning for matching,
    but diagnostics and the CLI report clauses in that order.

    Attributes:
        clauses: Parsed clauses in input order.
        diagnostics: Degraded-parse notes (unknown fields, missing values).
    """

    clauses: tuple[Clause, ...] = ()
    diagnostics: tuple[str, ...] = ()

    @property
    def free_text(self) -> tuple[FreeTextClause, ...]:
        return tuple(c for c in self.clauses if isinstance(c, FreeTextClause))

    @property
    def predicates(self) -> tuple[FieldPredicate, ...]:
        return tuple(c for c in self.clauses if isinstance(c, FieldPredicate))


@dataclass(frozen=True, slots=True)
class FilterPredicateSet:
    """Backend-agnostic filter derived from a query AST.

    A document matches when, for every field present, at least one of the
    field's values matches (OR within a field, AND across fields).

    Attributes:
        values: Mapping of field name to accepted lower-cased values. The
            reserved ``freeText`` field holds at most one substring.
        operators: Operator applied to each field's values.
        signature: Canonical, order-independent cache key basis.
    """

    values: Mapping[str, frozenset[str]] = field(default_factory=dict)
    operators: Mapping[str, str] = field(default_factory=dict)
    signature: str = "*"

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))
        object.__setattr__(self, "operators", MappingProxyType(dict(self.operators)))

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(sorted(self.values))

    @property
    def free_text(self) -> str | None:
        terms = self.values.get(FREE_TEXT_FIELD)
        if not terms:
            return None
        return next(iter(terms))

    def is_empty(self) -> bool:
        return not self.values

    def to_dict(self) -> dict[str, list[str]]:
        """Return a JSON-serializable, sorted view of the field values."""
        return {name: sorted(self.values[name]) for name in self.fields}
