"""
Kaleido Error Hierarchy
=======================

This module defines the root of the exception hierarchy for the Kaleido
front end. All exceptions inherit from KaleidoError, allowing callers to
catch every front-end error with a single except clause if desired.

Exception Hierarchy
-------------------
KaleidoError (base)
├── ConfigurationError - invalid precedence table or options
└── FrontendError (see kaleido.frontend.errors)
    └── ParseError - grammar violations found by the parser

Design Philosophy
-----------------
Errors that relate to input text carry a SourceLocation (filename, line,
column), so a message can point at the exact character that caused it:

    filename:line:column: error: description
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass


# =============================================================================
# Base Exception Class
# =============================================================================

class KaleidoError(Exception):
    """
    Base exception for all Kaleido errors.

        try:
            results = parse_program(text)
        except KaleidoError as e:
            print(f"Error: {e}")
    """
    pass


class ConfigurationError(KaleidoError):
    """
    Invalid front-end configuration.

    Raised when a precedence entry is malformed, names a character the
    scanner would never hand to the parser as an operator, or when a
    frozen precedence table is modified.
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A position in the character stream, for diagnostics.

    Attributes:
        filename: Name of the source ("<input>" for string input,
            "<stdin>" for the console)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"
