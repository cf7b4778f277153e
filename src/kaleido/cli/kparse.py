"""
kparse - Kaleido Parser Command-Line Interface
==============================================

Parses a Kaleido source file (or standard input) and prints one line per
top-level form. Malformed forms are reported on stderr and parsing goes
on with the next form.

Usage Examples
--------------
Parse a file:
    $ kparse demo.k

Read from the console, with the classic prompt:
    $ kparse -i

Show tokens only:
    $ kparse --tokens demo.k

Add an operator:
    $ kparse -P /=40 demo.k
"""

import logging
import sys
from typing import Optional, TextIO

import click

from kaleido import __version__
from kaleido.cli.errors import ExitCode, handle_cli_exception
from kaleido.frontend.ast import ASTPrinter, format_node
from kaleido.frontend.driver import Driver, FrontendOptions
from kaleido.frontend.lexer import Lexer
from kaleido.frontend.parser import DEFAULT_MAX_DEPTH, MAX_DEPTH_LIMIT
from kaleido.frontend.precedence import PrecedenceTable
from kaleido.frontend.source import StreamSource


def build_options(
    precedence: tuple[str, ...],
    no_defaults: bool,
    lenient_numbers: bool,
    max_depth: int,
) -> FrontendOptions:
    """
    Turn command-line flags into FrontendOptions.

    Raises:
        ConfigurationError: If a precedence entry is malformed
    """
    table = PrecedenceTable() if no_defaults else PrecedenceTable.default()
    for entry in precedence:
        operator, value = PrecedenceTable.parse_entry(entry)
        table.set(operator, value)

    return FrontendOptions(
        precedence=table,
        max_depth=max_depth,
        strict_numbers=not lenient_numbers,
    )


def dump_tokens(stream: TextIO, filename: str) -> None:
    """Print every token of the input, one per line."""
    for token in Lexer(StreamSource(stream), filename).tokenize():
        click.echo(repr(token))


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.File("r"),
    default="-",
)
@click.option(
    "--tokens",
    is_flag=True,
    help="Print the token stream and exit",
)
@click.option(
    "--tree",
    is_flag=True,
    help="Print each form as an indented tree instead of an s-expression",
)
@click.option(
    "-P", "--precedence",
    multiple=True,
    metavar="OP=N",
    help="Set the precedence of a binary operator (can be repeated)",
)
@click.option(
    "--no-defaults",
    is_flag=True,
    help="Start from an empty precedence table instead of < + - *",
)
@click.option(
    "--lenient-numbers",
    is_flag=True,
    help="Accept literals like 1.2.3, keeping the valid prefix (1.2)",
)
@click.option(
    "--max-depth",
    type=click.IntRange(min=1, max=MAX_DEPTH_LIMIT),
    default=DEFAULT_MAX_DEPTH,
    show_default=True,
    help="Deepest allowed expression nesting",
)
@click.option(
    "-i", "--interactive",
    is_flag=True,
    help="Print a 'ready> ' prompt whenever a top-level form is awaited",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output (debug logging)",
)
@click.version_option(version=__version__, prog_name="kparse")
def main(
    input_file: TextIO,
    tokens: bool,
    tree: bool,
    precedence: tuple[str, ...],
    no_defaults: bool,
    lenient_numbers: bool,
    max_depth: int,
    interactive: bool,
    verbose: bool,
) -> None:
    """
    Parse Kaleido source into an abstract syntax tree.

    INPUT_FILE is the source to parse; omit it or pass - for stdin.

    \b
    Examples:
        kparse demo.k              # One s-expression per form
        kparse --tree demo.k       # Indented trees
        kparse --tokens demo.k     # Token stream
        kparse -P /=40 demo.k      # Add a division operator
        kparse -i                  # Console input with prompts
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    filename = getattr(input_file, "name", None) or "<stdin>"

    try:
        if tokens:
            dump_tokens(input_file, filename)
            return

        options = build_options(precedence, no_defaults, lenient_numbers, max_depth)

        prompt = None
        if interactive:
            def prompt() -> None:
                click.echo("ready> ", nl=False, err=True)

        driver = Driver(StreamSource(input_file), options, filename, prompt=prompt)
        printer: Optional[ASTPrinter] = ASTPrinter() if tree else None

        for result in driver.run():
            if not result.ok:
                click.echo(str(result.error), err=True)
                continue
            if printer is not None:
                click.echo(printer.print(result.node))
            else:
                click.echo(format_node(result.node))

    except Exception as e:
        handle_cli_exception(e, verbose)

    if interactive:
        click.echo("", err=True)

    if driver.errors.has_errors():
        count = driver.errors.error_count()
        click.echo(f"{count} {'error' if count == 1 else 'errors'}", err=True)
        sys.exit(ExitCode.PARSE_ERROR)


if __name__ == "__main__":
    main()
