"""
Postfix Lexer (Tokenizer)
=========================

This module converts program text into a stream of tokens for the
compiler driver. Every token is exactly one character long and no
whitespace is allowed between tokens.

Token Categories
----------------
| Character | Token     | Value        |
|-----------|-----------|--------------|
| 0-9       | DIGIT     | int 0-9      |
| A-Z a-z   | LETTER    | the letter   |
| +         | PLUS      |              |
| -         | MINUS     |              |
| *         | STAR      |              |
| =         | EQUALS    |              |
| ;         | SEMICOLON |              |

Example Usage
-------------
>>> from rpncc.compiler.lexer import RpnLexer
>>> for token in RpnLexer("a2=;").tokenize():
...     print(token)
Token(LETTER, 'a', 1:1)
Token(DIGIT, 2, 1:2)
Token(EQUALS, 1:3)
Token(SEMICOLON, 1:4)
Token(EOF, 1:5)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator
import string

from rpncc.errors import SourceLocation
from rpncc.compiler.errors import InvalidCharacterError


class RpnTokenType(Enum):
    """Token types of the postfix language."""
    EOF = auto()
    DIGIT = auto()
    LETTER = auto()
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    EQUALS = auto()
    SEMICOLON = auto()


# Single-character operator and separator tokens
PUNCTUATION: dict[str, RpnTokenType] = {
    "+": RpnTokenType.PLUS,
    "-": RpnTokenType.MINUS,
    "*": RpnTokenType.STAR,
    "=": RpnTokenType.EQUALS,
    ";": RpnTokenType.SEMICOLON,
}


@dataclass(frozen=True)
class RpnToken:
    """
    A single token with its position in the source.

    Attributes:
        type: The RpnTokenType classification
        value: int for digits, str for letters, None otherwise
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: RpnTokenType
    value: str | int | None
    line: int
    column: int
    filename: str

    def __repr__(self) -> str:
        if self.value is not None:
            if isinstance(self.value, int):
                return f"Token({self.type.name}, {self.value}, {self.line}:{self.column})"
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)


class RpnLexer:
    """
    Tokenizes postfix program text.

    Usage:
        lexer = RpnLexer(source_text, filename)
        tokens = list(lexer.tokenize())

    Attributes:
        source: The program text being tokenized
        filename: Name of the source file (for error reporting)
    """

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

    def tokenize(self) -> Iterator[RpnToken]:
        """
        Generate tokens from the source.

        Yields:
            RpnToken objects, always ending with an EOF token

        Raises:
            InvalidCharacterError: For any character outside the alphabet
        """
        column = 0
        for column, char in enumerate(self.source, start=1):
            if char in string.digits:
                yield self._make_token(RpnTokenType.DIGIT, int(char), column)
            elif char in string.ascii_letters:
                yield self._make_token(RpnTokenType.LETTER, char, column)
            elif char in PUNCTUATION:
                yield self._make_token(PUNCTUATION[char], None, column)
            else:
                raise InvalidCharacterError(
                    char,
                    location=SourceLocation(self.filename, 1, column),
                    source_line=self.source,
                )

        yield self._make_token(RpnTokenType.EOF, None, column + 1)

    def _make_token(self, token_type: RpnTokenType, value: str | int | None, column: int) -> RpnToken:
        return RpnToken(token_type, value, 1, column, self.filename)


def tokenize(source: str, filename: str = "<input>") -> list[RpnToken]:
    """Convenience function returning all tokens of a source string."""
    return list(RpnLexer(source, filename).tokenize())
