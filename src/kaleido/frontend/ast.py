"""
Kaleido Abstract Syntax Tree (AST) Definitions
==============================================

This module defines the node types produced by the parser. The node set
is closed: there are exactly six variants, and consumers can match on
them exhaustively.

Node Variants
-------------
Expression
├── NumberLiteral - numeric constant (always a float)
├── VariableRef - reference to a named value
├── BinaryOp - two operands joined by a single-character operator
└── Call - call of a named function with positional arguments
Prototype - function name and parameter names (also an `extern`)
Function - prototype plus body expression (`def`, or a wrapped
           top-level expression with an anonymous prototype)

Design Notes
------------
- All nodes are frozen dataclasses; children are owned by their parent
  and the tree has no back-references
- Sequences are tuples, so a built tree cannot be changed in place
- Every node may record the SourceLocation it was parsed from; the
  location is ignored by equality, so trees compare by shape
- Parentheses leave no trace; grouping is visible only in tree shape
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from kaleido.errors import SourceLocation


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass(frozen=True)
class NumberLiteral:
    """Numeric literal such as `1.0`."""
    value: float
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False, kw_only=True)


@dataclass(frozen=True)
class VariableRef:
    """Reference to a variable, such as `a`."""
    name: str
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False, kw_only=True)


@dataclass(frozen=True)
class BinaryOp:
    """
    Binary operation.

    Attributes:
        operator: The operator character; at parse time it had a positive
            precedence in the table the parser was given
        left: Left operand
        right: Right operand
    """
    operator: str
    left: "Expression"
    right: "Expression"
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False, kw_only=True)


@dataclass(frozen=True)
class Call:
    """
    Function call.

    Arity is not checked against any prototype; `args` may be empty.

    Attributes:
        callee: Name of the called function (never empty)
        args: Argument expressions in call order
    """
    callee: str
    args: tuple["Expression", ...] = ()
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False, kw_only=True)

    def __post_init__(self):
        if not self.callee:
            raise ValueError("Call requires a callee name")
        if not isinstance(self.args, tuple):
            object.__setattr__(self, "args", tuple(self.args))


Expression = Union[NumberLiteral, VariableRef, BinaryOp, Call]


# =============================================================================
# Function Nodes
# =============================================================================

@dataclass(frozen=True)
class Prototype:
    """
    Function prototype: a name and its parameter names.

    The parameter order is the declaration order and fixes how call-site
    arguments bind. An empty name marks the anonymous prototype wrapping a
    bare top-level expression.
    """
    name: str
    parameters: tuple[str, ...] = ()
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False, kw_only=True)

    def __post_init__(self):
        if not isinstance(self.parameters, tuple):
            object.__setattr__(self, "parameters", tuple(self.parameters))

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @property
    def is_anonymous(self) -> bool:
        return self.name == ""


@dataclass(frozen=True)
class Function:
    """Function definition: a prototype and the body expression."""
    prototype: Prototype
    body: Expression
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False, kw_only=True)

    @property
    def name(self) -> str:
        return self.prototype.name

    @property
    def is_anonymous(self) -> bool:
        """True for a wrapped top-level expression."""
        return self.prototype.is_anonymous


Node = Union[NumberLiteral, VariableRef, BinaryOp, Call, Prototype, Function]

NODE_TYPES = (NumberLiteral, VariableRef, BinaryOp, Call, Prototype, Function)


def anonymous_prototype(location: Optional[SourceLocation] = None) -> Prototype:
    """The empty-name, zero-parameter prototype of a top-level expression."""
    return Prototype("", (), location=location)


# =============================================================================
# AST Visitor
# =============================================================================

class ASTVisitor:
    """
    Base class for walking the AST.

    Dispatches to visit_<ClassName>. Subclasses override the methods for
    the nodes they care about; the defaults visit children.

        class NameCollector(ASTVisitor):
            def __init__(self):
                self.names = set()

            def visit_VariableRef(self, node):
                self.names.add(node.name)
    """

    def visit(self, node: Node) -> Any:
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: Node) -> None:
        """Visit every child node."""
        for child in children(node):
            self.visit(child)

    def visit_NumberLiteral(self, node: NumberLiteral): return self.generic_visit(node)
    def visit_VariableRef(self, node: VariableRef): return self.generic_visit(node)
    def visit_BinaryOp(self, node: BinaryOp): return self.generic_visit(node)
    def visit_Call(self, node: Call): return self.generic_visit(node)
    def visit_Prototype(self, node: Prototype): return self.generic_visit(node)
    def visit_Function(self, node: Function): return self.generic_visit(node)


def children(node: Node) -> tuple[Node, ...]:
    """Return the direct child nodes of `node`, in source order."""
    if isinstance(node, BinaryOp):
        return (node.left, node.right)
    if isinstance(node, Call):
        return node.args
    if isinstance(node, Function):
        return (node.prototype, node.body)
    if isinstance(node, NODE_TYPES):
        return ()
    raise TypeError(f"not an AST node: {node!r}")


# =============================================================================
# Rendering
# =============================================================================

def _number_str(value: float) -> str:
    """Render 2.0 as '2' and 2.5 as '2.5'."""
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_node(node: Node) -> str:
    """
    Render a node as a compact s-expression.

        >>> format_node(BinaryOp("+", VariableRef("a"), NumberLiteral(1.0)))
        '(+ a 1)'
    """
    if isinstance(node, NumberLiteral):
        return _number_str(node.value)
    if isinstance(node, VariableRef):
        return node.name
    if isinstance(node, BinaryOp):
        return f"({node.operator} {format_node(node.left)} {format_node(node.right)})"
    if isinstance(node, Call):
        args = "".join(f" {format_node(a)}" for a in node.args)
        return f"(call {node.callee}{args})"
    if isinstance(node, Prototype):
        params = " ".join(node.parameters)
        return f"(extern {node.name} ({params}))"
    if isinstance(node, Function):
        if node.is_anonymous:
            return f"(expr {format_node(node.body)})"
        params = " ".join(node.prototype.parameters)
        return f"(def {node.name} ({params}) {format_node(node.body)})"
    raise TypeError(f"not an AST node: {node!r}")


class ASTPrinter(ASTVisitor):
    """
    Indented tree printer for debugging.

        printer = ASTPrinter()
        print(printer.print(function))
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, node: Node) -> str:
        """Print the AST and return it as a string."""
        self.output = []
        self.indent_level = 0
        self.visit(node)
        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        indent = "  " * self.indent_level
        self.output.append(f"{indent}{text}")

    def _nested(self, *nodes: Node) -> None:
        self.indent_level += 1
        for node in nodes:
            self.visit(node)
        self.indent_level -= 1

    def visit_NumberLiteral(self, node: NumberLiteral):
        self._emit(f"Number {_number_str(node.value)}")

    def visit_VariableRef(self, node: VariableRef):
        self._emit(f"Variable {node.name}")

    def visit_BinaryOp(self, node: BinaryOp):
        self._emit(f"BinaryOp '{node.operator}'")
        self._nested(node.left, node.right)

    def visit_Call(self, node: Call):
        self._emit(f"Call {node.callee} ({len(node.args)} args)")
        self._nested(*node.args)

    def visit_Prototype(self, node: Prototype):
        name = node.name or "<anonymous>"
        self._emit(f"Prototype {name}({', '.join(node.parameters)})")

    def visit_Function(self, node: Function):
        self._emit("Function")
        self._nested(node.prototype, node.body)
