"""Query parser.

Builds a ``QueryAST`` from the tokenizer output. The parser never raises:
incomplete or unknown field groups are re-emitted verbatim as free text
(degraded parse) and noted in ``QueryAST.diagnostics``. Free-text terms keep
the raw text of their tokens, quotes included; the translator unquotes them.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from CatalogSearch.core.query import (
    DEFAULT_FIELDS,
    OPERATORS,
    Clause,
    FieldPredicate,
    FreeTextClause,
    QueryAST,
    Token,
    TokenKind,
)
from CatalogSearch.utils.log import log


def parse(tokens: Sequence[Token], fields: Mapping[str, str] = DEFAULT_FIELDS) -> QueryAST:
    """Parse tokens into a query AST.

    One ``FieldPredicate`` is produced per complete field group, and each
    contiguous run of free text becomes one ``FreeTextClause`` whose term is
    the whitespace-normalized run. Tokens with no separator between them are
    joined without a space.

    Args:
        tokens: Token stream from ``tokenize``.
        fields: Field vocabulary accepted as predicates.

    Returns:
        The parsed AST. For input without field groups this is a single
        free-text clause equal to the whitespace-normalized input.
    """
    known = {name.lower() for name in fields}
    clauses: list[Clause] = []
    diagnostics: list[str] = []
    pending: list[str] = []
    pending_pos = 0
    # End offset of the last pending text, or -1 after a separator.
    pending_end = -1

    def add_text(text: str, position: int) -> None:
        nonlocal pending_pos, pending_end
        if not text:
            return
        if pending and position == pending_end:
            pending[-1] += text
        else:
            if not pending:
                pending_pos = position
            pending.append(text)
        pending_end = position + len(text)

    def flush() -> None:
        nonlocal pending_end
        if pending:
            term = " ".join(" ".join(pending).split())
            clauses.append(FreeTextClause(term=term, position=pending_pos))
            pending.clear()
        pending_end = -1

    idx = 0
    while idx < len(tokens):
        token = tokens[idx]
        if token.kind is TokenKind.EOF:
            break
        if token.kind is TokenKind.SEPARATOR:
            pending_end = -1
            idx += 1
            continue
        if token.kind is not TokenKind.FIELD:
            # FREE_TEXT, or a stray OPERATOR outside a field group.
            add_text(token.value, token.position)
            idx += 1
            continue

        operator = _peek(tokens, idx + 1, TokenKind.OPERATOR)
        if operator is None:
            diagnostics.append(f"field {token.value!r} at {token.position} has no operator")
            add_text(token.value, token.position)
            idx += 1
            continue

        value = _peek(tokens, idx + 2, TokenKind.FREE_TEXT)
        consumed = 3 if value is not None else 2
        value_text = _unquote(value.value).strip() if value is not None else ""
        field_name = token.value.lower()
        verbatim = f"{token.value}:{value.value if value is not None else ''}"

        if field_name not in known:
            diagnostics.append(f"unknown field {token.value!r} at {token.position}")
            add_text(verbatim, token.position)
        elif operator.value not in OPERATORS:
            diagnostics.append(f"unknown operator {operator.value!r} at {operator.position}")
            add_text(verbatim, token.position)
        elif not value_text:
            diagnostics.append(f"field {token.value!r} at {token.position} has no value")
            add_text(verbatim, token.position)
        else:
            flush()
            clauses.append(
                FieldPredicate(field=field_name, operator=operator.value, value=value_text, position=token.position)
            )
        idx += consumed

    flush()
    for note in diagnostics:
        log.debug("Degraded query parse: %s", note)
    return QueryAST(clauses=tuple(clauses), diagnostics=tuple(diagnostics))


def _peek(tokens: Sequence[Token], idx: int, kind: TokenKind) -> Token | None:
    """Return ``tokens[idx]`` when it exists and has ``kind``."""
    if idx < len(tokens) and tokens[idx].kind is kind:
        return tokens[idx]
    return None


def _unquote(value: str) -> str:
    """Strip the surrounding quotes of a quoted value token."""
    if value.startswith('"'):
        value = value[1:]
        if value.endswith('"'):
            value = value[:-1]
    return value
