"""Query string tokenizer.

Lexing is lenient: any input produces a token stream, and text that does not
form a recognised ``field:value`` pair is kept as free text.

Lexical rules
- A whitespace run is one SEPARATOR token.
- ``"..."`` is one FREE_TEXT token holding the raw quoted text, quotes
  included, so the token covers its input span exactly. An unterminated quote
  runs to the end of the input.
- ``name:value`` where ``name`` is an enumerated field (case-insensitive) and
  the colon follows the name directly lexes as FIELD(name), OPERATOR(op) and,
  when present, a FREE_TEXT value token. The value may be quoted.
- Everything else is FREE_TEXT, including ``unknown:value``.
- The stream always ends with EOF.
"""

from __future__ import annotations

import re
from typing import Mapping

from CatalogSearch.core.query import DEFAULT_FIELDS, Token, TokenKind

_RE_WHITESPACE = re.compile(r"\s+")
_RE_WORD = re.compile(r"\S+")
_RE_FIELD_PREFIX = re.compile(r"([A-Za-z_][A-Za-z0-9_]*):")

_QUOTE = '"'


def tokenize(raw: str, fields: Mapping[str, str] = DEFAULT_FIELDS) -> tuple[Token, ...]:
    """Split a raw query string into tokens.

    Args:
        raw: Raw user input.
        fields: Enumerated field names mapped to their operator.

    Returns:
        Tokens in input order, terminated by an EOF token.
    """
    text = raw or ""
    known = {name.lower(): op for name, op in fields.items()}
    tokens: list[Token] = []
    pos = 0
    end = len(text)

    while pos < end:
        ws = _RE_WHITESPACE.match(text, pos)
        if ws:
            tokens.append(Token(TokenKind.SEPARATOR, " ", pos))
            pos = ws.end()
            continue

        if text[pos] == _QUOTE:
            value, pos_after = _read_quoted(text, pos)
            tokens.append(Token(TokenKind.FREE_TEXT, value, pos))
            pos = pos_after
            continue

        prefix = _RE_FIELD_PREFIX.match(text, pos)
        if prefix and prefix.group(1).lower() in known:
            name = prefix.group(1)
            tokens.append(Token(TokenKind.FIELD, name, pos))
            tokens.append(Token(TokenKind.OPERATOR, known[name.lower()], prefix.end() - 1))
            pos = prefix.end()
            if pos < end and text[pos] == _QUOTE:
                value, pos_after = _read_quoted(text, pos)
                tokens.append(Token(TokenKind.FREE_TEXT, value, pos))
                pos = pos_after
            elif pos < end and not text[pos].isspace():
                word = _RE_WORD.match(text, pos)
                tokens.append(Token(TokenKind.FREE_TEXT, word.group(0), pos))
                pos = word.end()
            continue

        word = _RE_WORD.match(text, pos)
        tokens.append(Token(TokenKind.FREE_TEXT, word.group(0), pos))
        pos = word.end()

    tokens.append(Token(TokenKind.EOF, "", end))
    return tuple(tokens)


def _read_quoted(text: str, start: int) -> tuple[str, int]:
    """Read a quoted run starting at ``start``.

    Returns:
        The quoted text, quotes included, and the offset just past the
        closing quote (or the end of input when the quote is unterminated).
    """
    close = text.find(_QUOTE, start + 1)
    if close == -1:
        return text[start:], len(text)
    return text[start:close + 1], close + 1
