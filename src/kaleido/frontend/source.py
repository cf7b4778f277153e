"""
Character Sources
=================

The scanner pulls its input one character at a time from a character
source. A source returns a single character per request, and the empty
string once it is exhausted. Exhaustion is sticky: every later request
returns "" as well.

Two sources are provided:

- StringSource: in-memory text (tests, library use)
- StreamSource: any text stream, e.g. an open file or sys.stdin

Example Usage
-------------
>>> source = StringSource("def f(x) x")
>>> source.read_char()
'd'
"""

from typing import Protocol, TextIO


class CharacterSource(Protocol):
    """Pull-based, single-character input with no pushback."""

    def read_char(self) -> str:
        """Return the next character, or "" once the input is exhausted."""
        ...


class StringSource:
    """
    Character source over an in-memory string.

    Attributes:
        text: The complete input text
    """

    def __init__(self, text: str):
        self.text = text
        self._pos = 0

    def read_char(self) -> str:
        if self._pos >= len(self.text):
            return ""
        char = self.text[self._pos]
        self._pos += 1
        return char


class StreamSource:
    """
    Character source over a text stream.

    Reads one character per request so an interactive console is consumed
    only as far as the parser needs. Once the stream reports end of input
    it is never read again.
    """

    def __init__(self, stream: TextIO):
        self.stream = stream
        self._exhausted = False

    def read_char(self) -> str:
        if self._exhausted:
            return ""
        char = self.stream.read(1)
        if not char:
            self._exhausted = True
        return char
