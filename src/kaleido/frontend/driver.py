"""
Top-Level Driver
================

This module runs the top-level loop that feeds the parser:

    Characters → Lexer → Parser → TopLevelResult (one per form)

Each iteration looks at the lookahead token and dispatches:

| Lookahead | Action                                      |
|-----------|---------------------------------------------|
| EOF       | stop                                        |
| ';'       | skip it, produce nothing                    |
| def       | parse a definition                          |
| extern    | parse an extern prototype                   |
| other     | parse a top-level expression                |

Error Recovery
--------------
When a production fails, the driver records the error, skips exactly
one token and goes back to dispatching. Skipping is coarse: a run of
garbage may fail once per token. But every failure consumes at least one
token, so the loop always makes progress and ends on finite input.

Usage
-----
>>> results = parse_source("def f(x) x*2; f(3)")
>>> [r.kind.name for r in results]
['DEFINITION', 'EXPRESSION']
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Iterator, Optional, Union

from kaleido.frontend.ast import Function, Prototype
from kaleido.frontend.errors import ErrorCollector, ParseError
from kaleido.frontend.lexer import Lexer, TokenKind
from kaleido.frontend.parser import DEFAULT_MAX_DEPTH, Parser
from kaleido.frontend.precedence import PrecedenceTable
from kaleido.frontend.source import CharacterSource

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class FrontendOptions:
    """
    Front-end configuration.

    Attributes:
        precedence: Binary operator table. Frozen by the driver before
            parsing starts.
        max_depth: Deepest allowed expression nesting
        strict_numbers: Reject number literals with more than one '.'
            (False keeps the C strtod truncation, "1.2.3" -> 1.2)
        max_errors: Stop after this many failed forms
    """
    precedence: PrecedenceTable = field(default_factory=PrecedenceTable.default)
    max_depth: int = DEFAULT_MAX_DEPTH
    strict_numbers: bool = True
    max_errors: int = 100


# =============================================================================
# Results
# =============================================================================

class FormKind(Enum):
    """Which top-level production a result came from."""
    DEFINITION = auto()
    EXTERN = auto()
    EXPRESSION = auto()


@dataclass
class TopLevelResult:
    """
    Outcome of one top-level parse attempt.

    Exactly one of `node` and `error` is set.

    Attributes:
        kind: The production that was attempted
        node: Function for definitions and expressions, Prototype for externs
        error: The failure, when the production failed
    """
    kind: FormKind
    node: Union[Function, Prototype, None] = None
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


SUCCESS_MESSAGES = {
    FormKind.DEFINITION: "Parsed a function definition.",
    FormKind.EXTERN: "Parsed an extern.",
    FormKind.EXPRESSION: "Parsed a top-level expr",
}


# =============================================================================
# Driver
# =============================================================================

class Driver:
    """
    Runs the top-level parse loop over one character source.

    Usage:
        driver = Driver(StreamSource(sys.stdin), filename="<stdin>")
        for result in driver.run():
            ...
        if driver.errors.has_errors():
            print(driver.errors.report())

    Attributes:
        options: Front-end configuration
        lexer: The lexer reading `source`
        parser: The parser fed by `lexer`
        errors: Every error recovered from so far
        prompt: Called before the first token is read and at the top of
            every loop iteration, end of input included
    """

    def __init__(
        self,
        source: Union[CharacterSource, str],
        options: Optional[FrontendOptions] = None,
        filename: str = "<input>",
        prompt: Optional[Callable[[], None]] = None,
    ):
        self.options = options or FrontendOptions()
        self.options.precedence.freeze()

        self.lexer = Lexer(source, filename)
        self.parser = Parser(
            self.lexer,
            self.options.precedence,
            max_depth=self.options.max_depth,
            strict_numbers=self.options.strict_numbers,
        )
        self.errors = ErrorCollector(max_errors=self.options.max_errors)
        self.prompt = prompt

    def run(self) -> Iterator[TopLevelResult]:
        """Yield one result per top-level form until end of input."""
        if self.prompt:
            self.prompt()
        self.parser.prime()

        while True:
            if self.prompt:
                self.prompt()

            token = self.parser.current

            if token.kind is TokenKind.EOF:
                return

            if token.is_char(";"):
                # ignore top-level semicolons
                self.parser.advance()
            elif token.kind is TokenKind.DEF:
                yield self._handle(FormKind.DEFINITION, self.parser.parse_definition)
            elif token.kind is TokenKind.EXTERN:
                yield self._handle(FormKind.EXTERN, self.parser.parse_extern)
            else:
                yield self._handle(FormKind.EXPRESSION, self.parser.parse_top_level_expr)

            if self.errors.should_stop():
                logger.warning(f"stopping after {self.errors.error_count()} errors")
                return

    def _handle(
        self,
        kind: FormKind,
        production: Callable[[], Union[Function, Prototype]],
    ) -> TopLevelResult:
        """Run one production, resynchronizing by one token if it fails."""
        try:
            node = production()
        except ParseError as e:
            logger.info(f"recovering from error at {e.location}: {e.message}")
            self.errors.add(e)
            # Skip token for error recovery.
            self.parser.advance()
            return TopLevelResult(kind, error=e)

        logger.info(SUCCESS_MESSAGES[kind])
        return TopLevelResult(kind, node=node)


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(
    source: Union[CharacterSource, str],
    filename: str = "<input>",
    options: Optional[FrontendOptions] = None,
) -> list[TopLevelResult]:
    """
    Parse every top-level form, failures included.

    Returns:
        One TopLevelResult per attempted form, in input order
    """
    return list(Driver(source, options, filename).run())


def parse_program(
    source: Union[CharacterSource, str],
    filename: str = "<input>",
    options: Optional[FrontendOptions] = None,
) -> list[Union[Function, Prototype]]:
    """
    Parse every top-level form and return the nodes.

    Raises:
        FrontendCompilationError: If any form failed to parse; the
            message reports all of them
    """
    driver = Driver(source, options, filename)
    nodes = [result.node for result in driver.run() if result.ok]
    driver.errors.raise_if_errors()
    return nodes
