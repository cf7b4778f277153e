"""
Front-End Error Hierarchy
=========================

Exceptions raised by the parser, and the collector the top-level driver
uses to aggregate them. All inherit from FrontendError, which itself
inherits from KaleidoError.

Exception Hierarchy
-------------------
FrontendError (base for all front-end errors)
├── FrontendCompilationError - aggregate report of several errors
└── ParseError - one failed grammar production
    ├── UnexpectedTokenError - token cannot start an expression
    ├── MissingTokenError - required token absent
    ├── MalformedNumberError - numeric literal with more than one '.'
    ├── DuplicateParameterError - parameter named twice in a prototype
    └── NestingTooDeepError - expression nesting exceeds the depth budget

The scanner never raises: unknown characters become single-character
tokens and are rejected here, by the parser, when the grammar does not
expect them.

Error Message Format
--------------------
    demo.k:3:9: error: expected ')' in prototype
        def f(x y
                ^
    hint: parameter names are separated by spaces, not commas
"""

from typing import List, Optional

from kaleido.errors import KaleidoError, SourceLocation


# =============================================================================
# Base Front-End Exception
# =============================================================================

class FrontendError(KaleidoError):
    """
    Base exception for all front-end errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred
        hint: A suggestion for fixing the error
        source_line: The source text of the offending line, when known
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

            demo.k:1:5: error: unknown token when expecting an expression
                1 + ) 2
                    ^
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class FrontendCompilationError(FrontendError):
    """
    Aggregate error holding the report of several failed productions.

    The message is already a formatted report from ErrorCollector and is
    passed through untouched.
    """

    def _format_message(self) -> str:
        return self.message


# =============================================================================
# Parse Errors
# =============================================================================

class ParseError(FrontendError):
    """
    A grammar violation in one production.

    Raised by the parser when a token is missing or unexpected in a
    specific grammar position. The failing production builds nothing;
    the exception propagates to the top-level driver, which records it
    and resynchronizes.
    """
    pass


class UnexpectedTokenError(ParseError):
    """
    The current token cannot start the construct being parsed.

    Example:
        1 + )      # ')' cannot start an expression
    """

    def __init__(
        self,
        found: str,
        message: str = "unknown token when expecting an expression",
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.found = found
        super().__init__(
            message,
            location=location,
            hint=f"found {found}",
            source_line=source_line,
        )


class MissingTokenError(ParseError):
    """
    A required token is missing.

    Raised when a token such as ')' or the function name of a prototype
    is not found where the grammar needs it.
    """

    def __init__(
        self,
        message: str,
        found: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.found = found
        if hint is None and found is not None:
            hint = f"found {found}"
        super().__init__(
            message,
            location=location,
            hint=hint,
            source_line=source_line,
        )


class MalformedNumberError(ParseError):
    """
    A numeric literal that is not a well-formed decimal number.

    The scanner accepts any run of digits and '.' characters, so text
    like "1.2.3" or a lone "." reaches the parser as one number token.
    """

    def __init__(
        self,
        text: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.text = text
        super().__init__(
            f"malformed number literal '{text}'",
            location=location,
            hint="a number has digits and at most one '.'",
            source_line=source_line,
        )


class DuplicateParameterError(ParseError):
    """A prototype names the same parameter twice."""

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.name = name
        super().__init__(
            f"duplicate parameter '{name}' in prototype",
            location=location,
            source_line=source_line,
        )


class NestingTooDeepError(ParseError):
    """Expression nesting exceeded the parser's depth budget."""

    def __init__(
        self,
        max_depth: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.max_depth = max_depth
        super().__init__(
            f"expression nested deeper than {max_depth} levels",
            location=location,
            hint="raise the limit with --max-depth",
            source_line=source_line,
        )


# =============================================================================
# Error Collection (for multi-error reporting)
# =============================================================================

class ErrorCollector:
    """
    Collects parse errors across top-level forms for batch reporting.

    The driver keeps parsing after a failed production, so one run can
    report every malformed form instead of stopping at the first.

    Example:
        collector = ErrorCollector(max_errors=100)
        ...
        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self, max_errors: int = 100):
        self.errors: List[FrontendError] = []
        self.max_errors = max_errors

    def add(self, error: FrontendError) -> None:
        """Add an error to the collection."""
        self.errors.append(error)

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def should_stop(self) -> bool:
        """Return True if max_errors has been reached."""
        return len(self.errors) >= self.max_errors

    def error_count(self) -> int:
        """Return the number of collected errors."""
        return len(self.errors)

    def report(self) -> str:
        """Format all errors, followed by a summary line."""
        lines = []

        for error in self.errors:
            lines.append(str(error))
            lines.append("")

        error_word = "error" if len(self.errors) == 1 else "errors"
        lines.append(f"{len(self.errors)} {error_word}")

        return "\n".join(lines)

    def clear(self) -> None:
        """Forget all collected errors."""
        self.errors.clear()

    def raise_if_errors(self) -> None:
        """Raise a FrontendCompilationError if any errors were collected."""
        if self.has_errors():
            raise FrontendCompilationError(self.report())
