"""
Kaleido Command-Line Interface
==============================

- **kparse**: parse source text and print the resulting AST

Implemented as a Click application with help text and uniform exit
codes (see kaleido.cli.errors).
"""

__all__ = ["kparse"]
