"""
Binary Operator Precedence Table
================================

The parser decides how to nest binary operations by looking up each
operator character here. Higher numbers bind tighter. An operator that is
missing from the table, or present with a precedence of zero or less, is
not a binary operator as far as the parser is concerned.

The table is built once, before parsing starts, and passed to the
parser. The driver freezes it so it cannot change mid-parse.

Default Table
-------------
| Operator | Precedence |
|----------|------------|
| <        | 10         |
| +        | 20         |
| -        | 30         |
| *        | 40         |
"""

from typing import Iterator, Mapping, Optional

from kaleido.errors import ConfigurationError


# Characters the scanner claims for itself, or that the grammar already
# uses; none of them can reach parse_bin_op_rhs as an operator.
RESERVED_CHARS = frozenset("(),;.#")

DEFAULT_PRECEDENCE: dict[str, int] = {
    "<": 10,
    "+": 20,
    "-": 30,
    "*": 40,
}

NOT_AN_OPERATOR = -1


class PrecedenceTable:
    """
    Mapping from operator character to binding strength.

    Usage:
        table = PrecedenceTable.default()
        table.set("/", 40)
        table.freeze()
        parser = Parser(lexer, table)
    """

    def __init__(self, entries: Optional[Mapping[str, int]] = None):
        self._entries: dict[str, int] = {}
        self._frozen = False
        for operator, precedence in (entries or {}).items():
            self.set(operator, precedence)

    @classmethod
    def default(cls) -> "PrecedenceTable":
        """A fresh table holding the standard four operators."""
        return cls(DEFAULT_PRECEDENCE)

    # =========================================================================
    # Lookup
    # =========================================================================

    def precedence_of(self, operator: str) -> int:
        """Return the precedence of `operator`, or -1 if it is not binary."""
        precedence = self._entries.get(operator, NOT_AN_OPERATOR)
        if precedence <= 0:
            return NOT_AN_OPERATOR
        return precedence

    def is_binary_operator(self, operator: str) -> bool:
        return self.precedence_of(operator) > 0

    def __contains__(self, operator: object) -> bool:
        return operator in self._entries

    def __getitem__(self, operator: str) -> int:
        return self._entries[operator]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def items(self):
        return self._entries.items()

    def __repr__(self) -> str:
        return f"PrecedenceTable({self._entries!r})"

    # =========================================================================
    # Configuration
    # =========================================================================

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "PrecedenceTable":
        """Make the table read-only. Returns self for chaining."""
        self._frozen = True
        return self

    def copy(self) -> "PrecedenceTable":
        """Return an unfrozen copy."""
        return PrecedenceTable(self._entries)

    def set(self, operator: str, precedence: int) -> None:
        """
        Add or replace an entry.

        Raises:
            ConfigurationError: If the table is frozen, the operator is not
                a single usable ASCII character, or the precedence is not
                an integer
        """
        if self._frozen:
            raise ConfigurationError("precedence table is frozen")
        if not isinstance(operator, str) or len(operator) != 1:
            raise ConfigurationError(f"operator must be a single character, got {operator!r}")
        if not operator.isascii() or not operator.isprintable():
            raise ConfigurationError(f"operator must be printable ASCII, got {operator!r}")
        if operator.isalnum() or operator.isspace() or operator in RESERVED_CHARS:
            raise ConfigurationError(f"'{operator}' cannot be used as a binary operator")
        if isinstance(precedence, bool) or not isinstance(precedence, int):
            raise ConfigurationError(f"precedence for '{operator}' must be an integer")
        self._entries[operator] = precedence

    @staticmethod
    def parse_entry(entry: str) -> tuple[str, int]:
        """
        Parse an `OP=N` entry, e.g. "/=40" or "==5".

        The operator is everything before the last '=', so '=' itself can
        be given a precedence.
        """
        operator, sep, number = entry.rpartition("=")
        if not sep or not operator:
            raise ConfigurationError(f"expected OP=N, got {entry!r}")
        try:
            precedence = int(number)
        except ValueError:
            raise ConfigurationError(f"precedence in {entry!r} is not an integer") from None
        return operator, precedence
