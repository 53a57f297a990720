"""
Postfix Lexer Tests
===================

Tests for the one-character-per-token lexer.
"""

import pytest

from rpncc.compiler.lexer import RpnLexer, RpnTokenType, RpnToken, tokenize
from rpncc.compiler.errors import InvalidCharacterError, MalformedInputError, ErrorKind
from rpncc.errors import SourceLocation


class TestTokenTypes:
    """Each character maps to exactly one token."""

    def test_empty_source(self):
        """Empty source should produce only an EOF token."""
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].type == RpnTokenType.EOF
        assert tokens[0].column == 1

    def test_digits(self):
        """Digits carry their integer value."""
        tokens = tokenize("0123456789")
        assert [t.value for t in tokens[:-1]] == list(range(10))
        assert all(t.type == RpnTokenType.DIGIT for t in tokens[:-1])

    def test_letters(self):
        """Upper and lower case letters are both variables."""
        tokens = tokenize("aZ")
        assert tokens[0].type == RpnTokenType.LETTER
        assert tokens[0].value == "a"
        assert tokens[1].value == "Z"

    def test_punctuation(self):
        """Operators and separators have no value."""
        tokens = tokenize("+-*=;")
        assert [t.type for t in tokens] == [
            RpnTokenType.PLUS,
            RpnTokenType.MINUS,
            RpnTokenType.STAR,
            RpnTokenType.EQUALS,
            RpnTokenType.SEMICOLON,
            RpnTokenType.EOF,
        ]
        assert all(t.value is None for t in tokens)

    def test_columns(self):
        """Columns are 1-indexed; EOF sits one past the last character."""
        tokens = tokenize("a2=;")
        assert [t.column for t in tokens] == [1, 2, 3, 4, 5]
        assert all(t.line == 1 for t in tokens)

    def test_location(self):
        """Tokens report their location with the filename."""
        token = next(RpnLexer("12+", "prog.rpn").tokenize())
        assert token.location == SourceLocation("prog.rpn", 1, 1)

    def test_repr(self):
        tokens = tokenize("7x+")
        assert repr(tokens[0]) == "Token(DIGIT, 7, 1:1)"
        assert repr(tokens[1]) == "Token(LETTER, 'x', 1:2)"
        assert repr(tokens[2]) == "Token(PLUS, 1:3)"


class TestInvalidInput:
    """Characters outside the alphabet are fatal."""

    @pytest.mark.parametrize("source", ["?", "1 2+", "12/", "(1)", "1\n", "é"])
    def test_invalid_character(self, source):
        with pytest.raises(InvalidCharacterError):
            tokenize(source)

    def test_invalid_character_location(self):
        """The error points at the offending character."""
        with pytest.raises(InvalidCharacterError) as exc_info:
            tokenize("12?+", "prog.rpn")

        error = exc_info.value
        assert error.char == "?"
        assert error.location == SourceLocation("prog.rpn", 1, 3)
        assert error.kind == ErrorKind.MALFORMED_INPUT
        assert isinstance(error, MalformedInputError)
        assert "prog.rpn:1:3: error: unexpected input character '?'" in str(error)

    def test_tokens_before_error_are_yielded(self):
        """Tokenizing is lazy; valid tokens come out before the failure."""
        tokens = RpnLexer("1?").tokenize()
        assert next(tokens).value == 1
        with pytest.raises(InvalidCharacterError):
            next(tokens)
