"""
Kaleido Front End
=================

Turns the text of a small expression language into an abstract syntax
tree. The language has function definitions, extern declarations and
bare expressions built from numbers, variables, calls and binary
operators:

    # a comment
    extern sin(x)
    def square(x) x*x
    square(4) + sin(1.5)

Pipeline
--------
    Characters → Lexer → Parser → AST

The lexer is pull-based and the parser keeps one token of lookahead, so
input is consumed only as far as the current top-level form needs.
Operator precedence comes from a PrecedenceTable passed to the parser;
the default table is  < (10), + (20), - (30), * (40).

Usage
-----
>>> from kaleido.frontend import parse_program, format_node
>>> [format_node(node) for node in parse_program("def f(a b) a+b*2")]
['(def f (a b) (+ a (* b 2)))']

Not in scope: name resolution, type checking, evaluation and code
generation. The AST is handed to whatever consumes it.
"""

from kaleido.frontend.ast import (
    ASTPrinter,
    ASTVisitor,
    BinaryOp,
    Call,
    Expression,
    Function,
    Node,
    NumberLiteral,
    Prototype,
    VariableRef,
    format_node,
)
from kaleido.frontend.driver import (
    Driver,
    FormKind,
    FrontendOptions,
    TopLevelResult,
    parse_program,
    parse_source,
)
from kaleido.frontend.errors import (
    ErrorCollector,
    FrontendCompilationError,
    FrontendError,
    ParseError,
)
from kaleido.frontend.lexer import Lexer, Token, TokenKind, tokenize
from kaleido.frontend.parser import Parser
from kaleido.frontend.precedence import DEFAULT_PRECEDENCE, PrecedenceTable
from kaleido.frontend.source import CharacterSource, StreamSource, StringSource

__all__ = [
    # Driver
    "Driver",
    "FormKind",
    "FrontendOptions",
    "TopLevelResult",
    "parse_program",
    "parse_source",
    # Errors
    "ErrorCollector",
    "FrontendCompilationError",
    "FrontendError",
    "ParseError",
    # Sources and lexer
    "CharacterSource",
    "StreamSource",
    "StringSource",
    "Lexer",
    "Token",
    "TokenKind",
    "tokenize",
    # Parser
    "Parser",
    "PrecedenceTable",
    "DEFAULT_PRECEDENCE",
    # AST
    "ASTPrinter",
    "ASTVisitor",
    "BinaryOp",
    "Call",
    "Expression",
    "Function",
    "Node",
    "NumberLiteral",
    "Prototype",
    "VariableRef",
    "format_node",
]
