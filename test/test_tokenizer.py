"""Tests for query string tokenization."""

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from CatalogSearch.core.query import CONTAINS, EQUALS, Token, TokenKind
from CatalogSearch.dsl.tokenizer import tokenize


def _kinds(tokens: tuple[Token, ...]) -> list[TokenKind]:
    return [token.kind for token in tokens]


class TestTokenize(unittest.TestCase):
    def test_field_value_pairs_and_free_text(self) -> None:
        tokens = tokenize("tag:React level:Beginner hello world")

        self.assertEqual(
            _kinds(tokens),
            [
                TokenKind.FIELD,
                TokenKind.OPERATOR,
                TokenKind.FREE_TEXT,
                TokenKind.SEPARATOR,
                TokenKind.FIELD,
                TokenKind.OPERATOR,
                TokenKind.FREE_TEXT,
                TokenKind.SEPARATOR,
                TokenKind.FREE_TEXT,
                TokenKind.SEPARATOR,
                TokenKind.FREE_TEXT,
                TokenKind.EOF,
            ],
        )
        self.assertEqual(tokens[0], Token(TokenKind.FIELD, "tag", 0))
        self.assertEqual(tokens[1], Token(TokenKind.OPERATOR, EQUALS, 3))
        self.assertEqual(tokens[2], Token(TokenKind.FREE_TEXT, "React", 4))
        self.assertEqual(tokens[4].position, 10)
        self.assertEqual(tokens[-1], Token(TokenKind.EOF, "", 36))

    def test_field_name_is_case_insensitive(self) -> None:
        tokens = tokenize("LeVeL:beginner")
        self.assertEqual(tokens[0].kind, TokenKind.FIELD)
        self.assertEqual(tokens[0].value, "LeVeL")
        self.assertEqual(tokens[2].value, "beginner")

    def test_title_uses_contains_operator(self) -> None:
        tokens = tokenize("title:hooks")
        self.assertEqual(tokens[1], Token(TokenKind.OPERATOR, CONTAINS, 5))

    def test_unknown_field_is_free_text(self) -> None:
        tokens = tokenize("author:jane")
        self.assertEqual(tokens, (Token(TokenKind.FREE_TEXT, "author:jane", 0), Token(TokenKind.EOF, "", 11)))

    def test_whitespace_before_colon_is_not_a_field(self) -> None:
        tokens = tokenize("tag :react")
        self.assertEqual(_kinds(tokens), [TokenKind.FREE_TEXT, TokenKind.SEPARATOR, TokenKind.FREE_TEXT, TokenKind.EOF])

    def test_quoted_text_is_one_token(self) -> None:
        tokens = tokenize('"hello   world" tag:x')
        self.assertEqual(tokens[0], Token(TokenKind.FREE_TEXT, '"hello   world"', 0))
        self.assertEqual(tokens[1].kind, TokenKind.SEPARATOR)
        self.assertEqual(tokens[2], Token(TokenKind.FIELD, "tag", 16))

    def test_quoted_field_value(self) -> None:
        tokens = tokenize('title:"react hooks"')
        self.assertEqual(tokens[2], Token(TokenKind.FREE_TEXT, '"react hooks"', 6))
        self.assertEqual(tokens[3], Token(TokenKind.EOF, "", 19))

    def test_unterminated_quote_runs_to_end(self) -> None:
        tokens = tokenize('"abc def')
        self.assertEqual(tokens[0], Token(TokenKind.FREE_TEXT, '"abc def', 0))
        self.assertEqual(tokens[-1].kind, TokenKind.EOF)

    def test_empty_quotes_are_kept(self) -> None:
        tokens = tokenize('say "" tag:""')
        self.assertEqual(tokens[2], Token(TokenKind.FREE_TEXT, '""', 4))
        self.assertEqual(tokens[6], Token(TokenKind.FREE_TEXT, '""', 11))
        self.assertEqual(tokens[7], Token(TokenKind.EOF, "", 13))

    def test_field_without_value(self) -> None:
        tokens = tokenize("tag:")
        self.assertEqual(_kinds(tokens), [TokenKind.FIELD, TokenKind.OPERATOR, TokenKind.EOF])

    def test_custom_vocabulary(self) -> None:
        tokens = tokenize("author:jane tag:react", {"author": EQUALS})
        self.assertEqual(tokens[0], Token(TokenKind.FIELD, "author", 0))
        self.assertEqual(tokens[4], Token(TokenKind.FREE_TEXT, "tag:react", 12))

    def test_never_fails_on_odd_input(self) -> None:
        for raw in ["", "   ", '"', ":", 'tag:"', "a:b:c", "\t\n", "tag:::", '""', "ünïcode:ç"]:
            with self.subTest(raw=raw):
                tokens = tokenize(raw)
                self.assertEqual(tokens[-1].kind, TokenKind.EOF)


if __name__ == "__main__":
    unittest.main()
