"""
Kaleido Lexer (Scanner)
=======================

This module converts a character source into a stream of classified
tokens for the parser. It is pull-based: the parser asks for one token at
a time with next_token(), and the lexer reads only as many characters as
that token needs, plus one held-back character.

Token Categories
----------------
- Keywords: def, extern
- Identifiers: an ASCII letter followed by ASCII letters and digits
- Numbers: a run of digits and '.' characters, e.g. 1, 4.5, .5
- Characters: any other single character ('(', '+', ';', ...)
- EOF: end of input, returned again on every later call

Comments run from '#' to the end of the line and never produce tokens.

The lexer never raises. A character the grammar has no use for still
becomes a CHAR token; it is the parser's job to reject it.

Example Usage
-------------
>>> from kaleido.frontend.lexer import Lexer
>>> for token in Lexer("def f(x) x*2").tokenize():
...     print(token)
Token(DEF, 'def', 1:1)
Token(IDENTIFIER, 'f', 1:5)
Token(CHAR, '(', 1:6)
Token(IDENTIFIER, 'x', 1:7)
Token(CHAR, ')', 1:8)
Token(IDENTIFIER, 'x', 1:10)
Token(CHAR, '*', 1:11)
Token(NUMBER, 2.0, 1:12)
Token(EOF, 1:13)
"""

import logging
import re
import string
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional, Union

from kaleido.errors import SourceLocation
from kaleido.frontend.source import CharacterSource, StringSource

logger = logging.getLogger(__name__)


# =============================================================================
# Token Kind Enumeration
# =============================================================================

class TokenKind(Enum):
    """Lexical categories of the language."""

    EOF = auto()            # End of input

    # === Commands ===
    DEF = auto()            # def
    EXTERN = auto()         # extern

    # === Primary ===
    IDENTIFIER = auto()     # Variable/function names
    NUMBER = auto()         # Numeric literals

    # === Everything else ===
    CHAR = auto()           # A single operator or punctuation character


KEYWORDS: dict[str, TokenKind] = {
    "def": TokenKind.DEF,
    "extern": TokenKind.EXTERN,
}


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token.

    Attributes:
        kind: The TokenKind classification
        value: Identifier/keyword text, float value for numbers, the
            character itself for CHAR tokens, None for EOF
        text: The characters the token was scanned from
        line: Line of the first character (1-indexed)
        column: Column of the first character (1-indexed)
        filename: Name of the source
    """
    kind: TokenKind
    value: Union[str, float, None]
    text: str
    line: int
    column: int
    filename: str = "<input>"

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.kind.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.kind.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    def is_char(self, char: str) -> bool:
        """Return True if this is the CHAR token for `char`."""
        return self.kind is TokenKind.CHAR and self.value == char

    def describe(self) -> str:
        """Human-readable token description for diagnostics."""
        if self.kind is TokenKind.EOF:
            return "end of input"
        if self.kind is TokenKind.CHAR:
            return f"'{self.value}'"
        if self.kind is TokenKind.NUMBER:
            return f"number '{self.text}'"
        if self.kind is TokenKind.IDENTIFIER:
            return f"identifier '{self.value}'"
        return f"keyword '{self.value}'"


# =============================================================================
# Number Conversion
# =============================================================================

# Longest prefix accepted by C strtod for a run of digits and dots
_FLOAT_PREFIX = re.compile(r"\d+\.?\d*|\.\d+")

# A complete, well-formed literal of the language
WELL_FORMED_NUMBER = re.compile(r"(?:\d+\.?\d*|\.\d+)\Z")


def number_value(text: str) -> float:
    """
    Convert scanned number text to a float.

    Uses the longest valid leading prefix and ignores the rest, so
    "1.2.3" gives 1.2 and a lone "." gives 0.0.
    """
    match = _FLOAT_PREFIX.match(text)
    if match is None:
        return 0.0
    return float(match.group())


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes Kaleido source on demand.

    Usage:
        lexer = Lexer(StreamSource(sys.stdin), "<stdin>")
        token = lexer.next_token()

    Attributes:
        source: Where characters come from
        filename: Name of the source (for diagnostics)
    """

    IDENT_START = string.ascii_letters
    IDENT_CHARS = string.ascii_letters + string.digits
    NUMBER_CHARS = string.digits + "."
    WHITESPACE = " \t\n\r\f\v"

    def __init__(
        self,
        source: Union[CharacterSource, str],
        filename: str = "<input>",
    ):
        """
        Initialize the lexer.

        Args:
            source: A character source, or a string to scan
            filename: Name of the source (for error messages)
        """
        if isinstance(source, str):
            source = StringSource(source)
        self.source = source
        self.filename = filename

        # The held-back character, already read but not yet classified.
        # Starts as a space so the first call simply skips it.
        self._last_char = " "

        # Position of the next character read_char() will deliver
        self._next_line = 1
        self._next_column = 1

        # Position of _last_char
        self._line = 1
        self._column = 0

        # Text of the line being read, and of the one before it. Older
        # lines are dropped; no live token can point at them.
        self._line_chars: list[str] = []
        self._previous_line: Optional[str] = None
        self._at_eof = False

    # =========================================================================
    # Character Access
    # =========================================================================

    def _read(self) -> str:
        """Read the next character into the held-back slot."""
        if self._at_eof:
            self._last_char = ""
            return ""

        char = self.source.read_char()
        self._line = self._next_line
        self._column = self._next_column

        if char == "":
            self._at_eof = True
        elif char == "\n":
            self._next_line += 1
            self._next_column = 1
            self._previous_line = "".join(self._line_chars)
            self._line_chars = []
        else:
            self._next_column += 1
            if char != "\r":
                self._line_chars.append(char)

        self._last_char = char
        return char

    def source_line(self, line: int) -> Optional[str]:
        """
        Return the text of the current or the previous line.

        The current line may be incomplete, since the lexer never reads
        ahead of the token being classified. Earlier lines give None.
        """
        if line == self._next_line:
            return "".join(self._line_chars)
        if line == self._next_line - 1:
            return self._previous_line
        return None

    def _make_token(
        self,
        kind: TokenKind,
        value: Union[str, float, None],
        text: str,
        line: int,
        column: int,
    ) -> Token:
        return Token(kind, value, text, line, column, self.filename)

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def next_token(self) -> Token:
        """
        Scan and return the next token.

        Returns EOF once the source is exhausted, and on every call after.
        """
        while True:
            while self._last_char != "" and self._last_char in self.WHITESPACE:
                self._read()

            if self._last_char == "#":
                self._skip_comment()
                continue

            break

        start_line, start_column = self._line, self._column
        char = self._last_char

        if char == "":
            return self._make_token(TokenKind.EOF, None, "", start_line, max(start_column, 1))

        if char in self.IDENT_START:
            token = self._scan_identifier(start_line, start_column)
        elif char in self.NUMBER_CHARS:
            token = self._scan_number(start_line, start_column)
        else:
            self._read()
            token = self._make_token(TokenKind.CHAR, char, char, start_line, start_column)

        logger.debug(f"scanned {token!r}")
        return token

    def tokenize(self) -> Iterator[Token]:
        """Yield tokens up to and including the first EOF."""
        while True:
            token = self.next_token()
            yield token
            if token.kind is TokenKind.EOF:
                return

    def _skip_comment(self) -> None:
        """Discard a '#' comment up to, not including, the line break."""
        while True:
            char = self._read()
            if char in ("", "\n", "\r"):
                return

    def _scan_identifier(self, start_line: int, start_column: int) -> Token:
        """Scan an identifier or keyword (exact, case-sensitive match)."""
        chars = [self._last_char]
        while self._read() != "" and self._last_char in self.IDENT_CHARS:
            chars.append(self._last_char)

        name = "".join(chars)
        kind = KEYWORDS.get(name, TokenKind.IDENTIFIER)
        return self._make_token(kind, name, name, start_line, start_column)

    def _scan_number(self, start_line: int, start_column: int) -> Token:
        """Scan a run of digits and '.' characters."""
        chars = [self._last_char]
        while self._read() != "" and self._last_char in self.NUMBER_CHARS:
            chars.append(self._last_char)

        text = "".join(chars)
        return self._make_token(TokenKind.NUMBER, number_value(text), text, start_line, start_column)


def tokenize(text: str, filename: str = "<input>") -> list[Token]:
    """Scan a whole string, returning every token through EOF."""
    return list(Lexer(text, filename).tokenize())
