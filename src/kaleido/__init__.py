"""
Kaleido - Front End for a Small Expression Language
===================================================

This package turns source text of a small expression-oriented language
into an abstract syntax tree, as the first stage of a language
processing pipeline.

Main Components
---------------
- **frontend**: lexer, precedence-climbing parser, AST and the
  top-level driver with error recovery
- **cli**: the `kparse` command

Quick Start
-----------
    >>> from kaleido import parse_program
    >>> parse_program("extern cos(x)")
    [Prototype(name='cos', parameters=('x',))]

Or from the shell:
    $ echo "def f(x) x*x+1" | kparse
    (def f (x) (+ (* x x) 1))
"""

__version__ = "1.0.0"

from kaleido.errors import ConfigurationError, KaleidoError, SourceLocation
from kaleido.frontend import (
    FrontendOptions,
    PrecedenceTable,
    parse_program,
    parse_source,
)

__all__ = [
    "__version__",
    "ConfigurationError",
    "KaleidoError",
    "SourceLocation",
    "FrontendOptions",
    "PrecedenceTable",
    "parse_program",
    "parse_source",
]
