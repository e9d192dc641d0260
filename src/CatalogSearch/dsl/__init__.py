"""Query language for catalog search.

Exposes the tokenizer, parser and translator, and ``QueryCompiler`` which
runs all three and memoizes the result per raw string.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping

from CatalogSearch.core.query import DEFAULT_FIELDS, FilterPredicateSet, QueryAST, Token
from CatalogSearch.dsl.parser import parse
from CatalogSearch.dsl.tokenizer import tokenize
from CatalogSearch.dsl.translator import canonical_signature, matches, translate


@dataclass(frozen=True, slots=True)
class CompiledQuery:
    """All intermediate forms of one raw query string."""

    raw: str
    tokens: tuple[Token, ...]
    ast: QueryAST
    predicates: FilterPredicateSet

    @property
    def signature(self) -> str:
        return self.predicates.signature


class QueryCompiler:
    """Compile raw query strings with a bounded LRU memo.

    Compilation is pure, so memoized results never need invalidation; the
    bound only limits memory while a user types many distinct prefixes.
    """

    def __init__(self, fields: Mapping[str, str] = DEFAULT_FIELDS, cache_size: int = 256) -> None:
        """Initialize the compiler.

        Args:
            fields: Enumerated field names mapped to their operator.
            cache_size: Maximum number of memoized raw strings.
        """
        self.fields = {name.lower(): op for name, op in fields.items()}
        self._compile_cached = lru_cache(maxsize=cache_size)(self._compile)

    def compile(self, raw: str) -> CompiledQuery:
        return self._compile_cached(raw or "")

    def cache_info(self):
        return self._compile_cached.cache_info()

    def _compile(self, raw: str) -> CompiledQuery:
        tokens = tokenize(raw, self.fields)
        ast = parse(tokens, self.fields)
        return CompiledQuery(raw=raw, tokens=tokens, ast=ast, predicates=translate(ast))


__all__ = [
    "CompiledQuery",
    "QueryCompiler",
    "canonical_signature",
    "matches",
    "parse",
    "tokenize",
    "translate",
]
