"""
Kaleido Recursive Descent Parser
================================

This module implements the parser. It pulls tokens from the lexer one at
a time, keeping exactly one token of lookahead (`current`), and builds
the AST. Binary operators are handled by precedence climbing driven by a
PrecedenceTable, so the operator set and its binding strengths are
configuration, not grammar.

Grammar
-------
top             ::= definition | external | expression | ';'
definition      ::= 'def' prototype expression
external        ::= 'extern' prototype
prototype       ::= IDENTIFIER '(' IDENTIFIER* ')'
expression      ::= primary binoprhs
binoprhs        ::= (BINOP primary)*
primary         ::= identifierexpr | numberexpr | parenexpr
identifierexpr  ::= IDENTIFIER | IDENTIFIER '(' (expression (',' expression)*)? ')'
numberexpr      ::= NUMBER
parenexpr       ::= '(' expression ')'

Precedence Climbing
-------------------
parse_bin_op_rhs sees an expression as a primary followed by
[operator, primary] pairs. For `a+b*c-d` it reads `a`, then the pairs
[+, b] [*, c] [-, d]. After reading a pair it peeks at the next operator:
if that one binds strictly tighter, the right operand absorbs it first
(b*c); otherwise the pair is folded into the left operand. Equal
precedence therefore folds left, so every operator is left-associative.

Failures
--------
Every production returns a complete node or raises a ParseError. No
partial node is ever returned. The parser never retries; recovery is the
top-level driver's job.

Example Usage
-------------
>>> from kaleido.frontend.lexer import Lexer
>>> from kaleido.frontend.precedence import PrecedenceTable
>>> parser = Parser(Lexer("a+b*c"), PrecedenceTable.default())
>>> _ = parser.prime()
>>> format_node(parser.parse_expression())
'(+ a (* b c))'
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

from kaleido.errors import ConfigurationError
from kaleido.frontend.ast import (
    BinaryOp,
    Call,
    Expression,
    Function,
    NumberLiteral,
    Prototype,
    VariableRef,
    anonymous_prototype,
    format_node,
)
from kaleido.frontend.errors import (
    DuplicateParameterError,
    MalformedNumberError,
    MissingTokenError,
    NestingTooDeepError,
    UnexpectedTokenError,
)
from kaleido.frontend.lexer import WELL_FORMED_NUMBER, Lexer, Token, TokenKind
from kaleido.frontend.precedence import NOT_AN_OPERATOR, PrecedenceTable

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 256
MAX_DEPTH_LIMIT = 10_000

# Python frames per nesting level (parse_expression down to
# parse_paren_expr, plus one spare), not counting the nested
# parse_bin_op_rhs calls that each extra precedence level can add
_FRAMES_PER_LEVEL = 6


class Parser:
    """
    Recursive descent parser with one token of lookahead.

    Attributes:
        lexer: Token supplier
        precedence: Binary operator table, read-only while parsing
        max_depth: Deepest allowed expression nesting
        strict_numbers: Reject number tokens like "1.2.3" instead of
            truncating them at the first invalid character
    """

    def __init__(
        self,
        lexer: Lexer,
        precedence: PrecedenceTable,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        strict_numbers: bool = True,
    ):
        if not 1 <= max_depth <= MAX_DEPTH_LIMIT:
            raise ConfigurationError(
                f"max_depth must be between 1 and {MAX_DEPTH_LIMIT}, got {max_depth}"
            )

        self.lexer = lexer
        self.precedence = precedence
        self.max_depth = max_depth
        self.strict_numbers = strict_numbers

        self.current: Optional[Token] = None
        self._depth = 0

    # =========================================================================
    # Token Access
    # =========================================================================

    def prime(self) -> Token:
        """Read the first token, if that has not happened yet."""
        if self.current is None:
            self.advance()
        return self.current

    def advance(self) -> Token:
        """Replace the lookahead with the next token from the lexer."""
        self.current = self.lexer.next_token()
        return self.current

    def _check_char(self, char: str) -> bool:
        return self.current.is_char(char)

    def _source_line(self, token: Token) -> Optional[str]:
        return self.lexer.source_line(token.line)

    def _missing(self, message: str, hint: Optional[str] = None) -> MissingTokenError:
        """Build a MissingTokenError located at the current token."""
        token = self.current
        return MissingTokenError(
            message,
            found=token.describe(),
            location=token.location,
            hint=hint,
            source_line=self._source_line(token),
        )

    def token_precedence(self) -> int:
        """Precedence of the lookahead as a binary operator, or -1."""
        if self.current.kind is not TokenKind.CHAR:
            return NOT_AN_OPERATOR
        return self.precedence.precedence_of(self.current.value)

    # =========================================================================
    # Primary Expressions
    # =========================================================================

    def parse_number_expr(self) -> NumberLiteral:
        """numberexpr ::= NUMBER"""
        token = self.current
        if self.strict_numbers and not WELL_FORMED_NUMBER.match(token.text):
            raise MalformedNumberError(token.text, token.location, self._source_line(token))
        self.advance()
        return NumberLiteral(token.value, location=token.location)

    def parse_paren_expr(self) -> Expression:
        """parenexpr ::= '(' expression ')'"""
        self.advance()  # eat (
        expr = self.parse_expression()

        if not self._check_char(")"):
            raise self._missing("expected ')'")
        self.advance()  # eat )

        return expr

    def parse_identifier_expr(self) -> Expression:
        """
        identifierexpr
            ::= IDENTIFIER
            ::= IDENTIFIER '(' (expression (',' expression)*)? ')'
        """
        token = self.current
        name = token.value
        self.advance()  # eat identifier

        if not self._check_char("("):
            return VariableRef(name, location=token.location)

        self.advance()  # eat (
        args: list[Expression] = []
        if not self._check_char(")"):
            while True:
                args.append(self.parse_expression())

                if self._check_char(")"):
                    break
                if not self._check_char(","):
                    raise self._missing("expected ')' or ',' in argument list")
                self.advance()  # eat ,

        self.advance()  # eat )

        return Call(name, tuple(args), location=token.location)

    def parse_primary(self) -> Expression:
        """primary ::= identifierexpr | numberexpr | parenexpr"""
        token = self.current

        if token.kind is TokenKind.IDENTIFIER:
            return self.parse_identifier_expr()
        if token.kind is TokenKind.NUMBER:
            return self.parse_number_expr()
        if token.is_char("("):
            return self.parse_paren_expr()

        raise UnexpectedTokenError(
            token.describe(),
            location=token.location,
            source_line=self._source_line(token),
        )

    # =========================================================================
    # Binary Expressions
    # =========================================================================

    def parse_bin_op_rhs(self, min_precedence: int, lhs: Expression) -> Expression:
        """
        binoprhs ::= (BINOP primary)*

        Consume [operator, primary] pairs whose operator binds at least as
        tightly as `min_precedence`, folding them into `lhs`.
        """
        while True:
            token_prec = self.token_precedence()

            # Not an operator, or one that binds too loosely for this level
            if token_prec < min_precedence:
                return lhs

            op_token = self.current
            self.advance()  # eat binop

            rhs = self.parse_primary()

            # Only a strictly tighter operator may take rhs away from us
            next_prec = self.token_precedence()
            if token_prec < next_prec:
                rhs = self.parse_bin_op_rhs(token_prec + 1, rhs)

            lhs = BinaryOp(op_token.value, lhs, rhs, location=op_token.location)

    def parse_expression(self) -> Expression:
        """
        expression ::= primary binoprhs

        The outermost call makes room on the Python stack for `max_depth`
        levels of nesting. Should the interpreter still run out of stack
        (an unusually tall precedence table), the failure is reported as
        NestingTooDeepError like any other nesting overflow.
        """
        if self._depth > 0:
            return self._parse_nested_expression()

        try:
            with self._stack_headroom():
                return self._parse_nested_expression()
        except RecursionError:
            token = self.current
            raise NestingTooDeepError(
                self.max_depth, token.location, self._source_line(token)
            ) from None

    def _parse_nested_expression(self) -> Expression:
        if self._depth >= self.max_depth:
            token = self.current
            raise NestingTooDeepError(self.max_depth, token.location, self._source_line(token))

        self._depth += 1
        try:
            lhs = self.parse_primary()
            return self.parse_bin_op_rhs(0, lhs)
        finally:
            self._depth -= 1

    def _frames_per_level(self) -> int:
        levels = {p for _, p in self.precedence.items() if p > 0}
        return _FRAMES_PER_LEVEL + max(len(levels) - 1, 0)

    @contextmanager
    def _stack_headroom(self) -> Iterator[None]:
        """Raise the recursion limit for one top-level expression."""
        old_limit = sys.getrecursionlimit()
        sys.setrecursionlimit(old_limit + self.max_depth * self._frames_per_level())
        try:
            yield
        finally:
            sys.setrecursionlimit(old_limit)

    # =========================================================================
    # Top-Level Forms
    # =========================================================================

    def parse_prototype(self) -> Prototype:
        """prototype ::= IDENTIFIER '(' IDENTIFIER* ')'"""
        if self.current.kind is not TokenKind.IDENTIFIER:
            raise self._missing("expected function name in prototype")

        name_token = self.current
        self.advance()

        if not self._check_char("("):
            raise self._missing("expected '(' in prototype")

        parameters: list[str] = []
        while self.advance().kind is TokenKind.IDENTIFIER:
            param = self.current.value
            if param in parameters:
                raise DuplicateParameterError(
                    param, self.current.location, self._source_line(self.current)
                )
            parameters.append(param)

        if not self._check_char(")"):
            hint = None
            if self._check_char(","):
                hint = "parameter names are separated by spaces, not commas"
            raise self._missing("expected ')' in prototype", hint=hint)

        self.advance()  # eat )

        return Prototype(name_token.value, tuple(parameters), location=name_token.location)

    def parse_definition(self) -> Function:
        """definition ::= 'def' prototype expression"""
        def_token = self.current
        self.advance()  # eat def

        prototype = self.parse_prototype()
        body = self.parse_expression()

        function = Function(prototype, body, location=def_token.location)
        logger.debug(f"parsed definition {format_node(function)}")
        return function

    def parse_extern(self) -> Prototype:
        """external ::= 'extern' prototype"""
        self.advance()  # eat extern
        return self.parse_prototype()

    def parse_top_level_expr(self) -> Function:
        """toplevelexpr ::= expression, wrapped in an anonymous function"""
        location = self.current.location
        body = self.parse_expression()
        return Function(anonymous_prototype(location), body, location=location)
