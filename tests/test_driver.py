"""
Driver Test Suite
=================

Tests for the top-level loop: dispatch, error recovery, prompting,
logging, error aggregation and the parse_source / parse_program
convenience functions.
"""

import io
import logging

import pytest
from kaleido.errors import ConfigurationError, KaleidoError, SourceLocation
from kaleido.frontend.ast import BinaryOp, Function, NumberLiteral, Prototype, VariableRef, format_node
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
    MalformedNumberError,
    MissingTokenError,
    NestingTooDeepError,
    UnexpectedTokenError,
)
from kaleido.frontend.precedence import PrecedenceTable
from kaleido.frontend.source import StreamSource


# =============================================================================
# Helper Functions
# =============================================================================

def outcomes(source: str, **kwargs) -> list[tuple[str, bool]]:
    """(kind name, ok) for every result."""
    return [(r.kind.name, r.ok) for r in parse_source(source, **kwargs)]


def rendered(source: str, **kwargs) -> list[str]:
    """s-expressions of the successful results."""
    return [format_node(r.node) for r in parse_source(source, **kwargs) if r.ok]


# =============================================================================
# Dispatch Tests
# =============================================================================

class TestDispatch:
    """Each top-level form goes to the matching production."""

    def test_empty_input(self):
        """No input, no results."""
        assert parse_source("") == []

    def test_only_semicolons(self):
        """Top-level semicolons produce nothing."""
        assert parse_source(";;;\n;") == []

    def test_only_comments(self):
        assert parse_source("# one\n# two\n") == []

    def test_definition(self):
        results = parse_source("def f(x) x*2")
        assert len(results) == 1
        assert results[0].kind is FormKind.DEFINITION
        assert results[0].node == Function(
            Prototype("f", ("x",)),
            BinaryOp("*", VariableRef("x"), NumberLiteral(2.0)),
        )

    def test_extern(self):
        """extern sin(x) yields a bare prototype."""
        results = parse_source("extern sin(x)")
        assert results[0].kind is FormKind.EXTERN
        assert results[0].node == Prototype("sin", ("x",))

    def test_expression(self):
        results = parse_source("1+2")
        assert results[0].kind is FormKind.EXPRESSION
        assert results[0].node.is_anonymous

    def test_mixed_program(self):
        source = """
        # library
        extern sin(x);
        def square(x) x*x;
        square(4) + sin(1.5);
        """
        assert rendered(source) == [
            "(extern sin (x))",
            "(def square (x) (* x x))",
            "(expr (+ (call square 4) (call sin 1.5)))",
        ]

    def test_forms_need_no_separator(self):
        """A form ends where the grammar says, semicolon or not."""
        assert rendered("def f(x) x extern g() f(1)") == [
            "(def f (x) x)",
            "(extern g ())",
            "(expr (call f 1))",
        ]

    def test_adjacent_expressions(self):
        """Two primaries in a row are two top-level expressions."""
        assert rendered("a b") == ["(expr a)", "(expr b)"]

    def test_result_order_follows_input(self):
        kinds = [kind for kind, _ in outcomes("extern a() 1 def b() 2")]
        assert kinds == ["EXTERN", "EXPRESSION", "DEFINITION"]


# =============================================================================
# Recovery Tests
# =============================================================================

class TestRecovery:
    """Failed forms are reported and parsing resumes one token later."""

    def test_error_result(self):
        """A failed form is a result carrying the error and no node."""
        result = parse_source(")")[0]
        assert not result.ok
        assert result.node is None
        assert isinstance(result.error, UnexpectedTokenError)

    def test_recovers_after_bad_definition(self):
        """The token after the failure point starts the next attempt."""
        results = parse_source("def f( ; def g() 1")
        assert [(r.kind, r.ok) for r in results] == [
            (FormKind.DEFINITION, False),
            (FormKind.DEFINITION, True),
        ]
        assert results[1].node.name == "g"

    def test_each_bad_token_fails_once(self):
        """A run of unusable tokens fails once per token."""
        assert outcomes(") ) ) 1") == [
            ("EXPRESSION", False),
            ("EXPRESSION", False),
            ("EXPRESSION", False),
            ("EXPRESSION", True),
        ]

    def test_dangling_operator(self):
        """'1 + + 2' fails at the second '+' and then parses '2'."""
        results = parse_source("1 + + 2")
        assert [r.ok for r in results] == [False, True]
        assert results[0].error.location == SourceLocation("<input>", 1, 5)
        assert format_node(results[1].node) == "(expr 2)"

    def test_bad_extern(self):
        results = parse_source("extern 1; extern ok()")
        assert [r.ok for r in results] == [False, True]
        assert isinstance(results[0].error, MissingTokenError)
        assert results[0].error.message == "expected function name in prototype"

    def test_terminates_on_garbage(self):
        """Every failure consumes input, so the loop always ends."""
        source = ") , ( ] [ @ ! ? $ %" * 50
        results = parse_source(source, options=FrontendOptions(max_errors=10_000))
        assert results
        assert not any(r.ok for r in results)

    def test_malformed_number_recovers(self):
        results = parse_source("1.2.3; 4")
        assert isinstance(results[0].error, MalformedNumberError)
        assert rendered("1.2.3; 4") == ["(expr 4)"]

    def test_deep_nesting_is_recoverable(self):
        """Too much nesting fails one form; later forms still parse."""
        source = "(" * 40 + "x" + ")" * 40 + "; y"
        results = parse_source(source, options=FrontendOptions(max_depth=8))
        assert isinstance(results[0].error, NestingTooDeepError)
        assert results[-1].ok
        assert format_node(results[-1].node) == "(expr y)"

    @pytest.mark.parametrize("prefix", ["1+(", "a<b+(", "f(1, "])
    def test_deep_operator_nesting_within_limit(self, prefix):
        """250 levels with operators and calls in between parse under the defaults."""
        source = prefix * 250 + "x" + ")" * 250
        results = parse_source(source)
        assert [r.ok for r in results] == [True]

    def test_deep_operator_nesting_over_limit(self):
        """Past the limit the form fails and the driver carries on."""
        source = "1+(" * 300 + "x" + ")" * 300 + "; y"
        # each unmatched ")" left behind fails on its own
        results = parse_source(source, options=FrontendOptions(max_errors=1000))
        assert isinstance(results[0].error, NestingTooDeepError)
        assert results[-1].ok
        assert format_node(results[-1].node) == "(expr y)"

    def test_invalid_max_depth(self):
        with pytest.raises(ConfigurationError):
            Driver("1", FrontendOptions(max_depth=0))

    def test_error_cap_stops_driver(self, caplog):
        """Parsing stops once max_errors failures are collected."""
        with caplog.at_level(logging.WARNING, logger="kaleido.frontend.driver"):
            results = parse_source(") ) ) ) 1", options=FrontendOptions(max_errors=2))
        assert len(results) == 2
        assert "stopping after 2 errors" in caplog.text


# =============================================================================
# Options Tests
# =============================================================================

class TestOptions:
    """FrontendOptions and their effect on parsing."""

    def test_defaults(self):
        options = FrontendOptions()
        assert options.max_depth == 256
        assert options.strict_numbers is True
        assert options.max_errors == 100
        assert dict(options.precedence.items()) == {"<": 10, "+": 20, "-": 30, "*": 40}

    def test_custom_precedence(self):
        table = PrecedenceTable.default()
        table.set("/", 40)
        assert rendered("a/b+c", options=FrontendOptions(precedence=table)) == [
            "(expr (+ (/ a b) c))",
        ]

    def test_driver_freezes_table(self):
        """The table cannot change once parsing has been set up."""
        table = PrecedenceTable.default()
        Driver("1", FrontendOptions(precedence=table))
        assert table.frozen
        with pytest.raises(ConfigurationError):
            table.set("/", 40)

    def test_lenient_numbers(self):
        options = FrontendOptions(strict_numbers=False)
        assert rendered("1.2.3", options=options) == ["(expr 1.2)"]

    def test_filename_in_locations(self):
        result = parse_source("\n  )", filename="demo.k")[0]
        assert str(result.error.location) == "demo.k:2:3"


# =============================================================================
# Driver Tests
# =============================================================================

class TestDriver:
    """The Driver class itself."""

    def test_prompt_before_each_attempt(self):
        """The prompt is shown before the first token and at every loop turn."""
        calls = []
        driver = Driver("1; 2", prompt=lambda: calls.append(len(calls)))
        results = list(driver.run())
        assert len(results) == 2
        # before priming, then at '1', ';', '2' and end of input
        assert len(calls) == 5

    def test_prompt_on_empty_input(self):
        """Empty input still prompts before priming and at the end-of-input check."""
        calls = []
        list(Driver("", prompt=lambda: calls.append(1)).run())
        assert calls == [1, 1]

    def test_stream_source(self):
        driver = Driver(StreamSource(io.StringIO("extern f(a b)")), filename="<stream>")
        results = list(driver.run())
        assert results[0].node == Prototype("f", ("a", "b"))

    def test_run_is_lazy(self):
        """Forms are parsed only as results are requested."""
        driver = Driver("1 ) 2")
        run = driver.run()
        assert next(run).ok
        assert not driver.errors.has_errors()
        assert not next(run).ok
        assert driver.errors.error_count() == 1

    def test_success_logging(self, caplog):
        with caplog.at_level(logging.INFO, logger="kaleido.frontend.driver"):
            parse_source("def f(x) x; extern g(); 1")
        messages = [r.getMessage() for r in caplog.records]
        assert messages == [
            "Parsed a function definition.",
            "Parsed an extern.",
            "Parsed a top-level expr",
        ]

    def test_failure_logging(self, caplog):
        with caplog.at_level(logging.INFO, logger="kaleido.frontend.driver"):
            parse_source(")")
        assert "recovering from error at <input>:1:1" in caplog.text

    def test_top_level_result_ok(self):
        assert TopLevelResult(FormKind.EXPRESSION).ok
        error = UnexpectedTokenError("')'")
        assert not TopLevelResult(FormKind.EXPRESSION, error=error).ok


# =============================================================================
# parse_program Tests
# =============================================================================

class TestParseProgram:
    """parse_program returns nodes or raises one aggregate error."""

    def test_returns_nodes(self):
        nodes = parse_program("extern cos(x); cos(0)")
        assert nodes[0] == Prototype("cos", ("x",))
        assert isinstance(nodes[1], Function)

    def test_raises_on_any_failure(self):
        with pytest.raises(FrontendCompilationError) as exc_info:
            parse_program("1; ); def (")
        text = str(exc_info.value)
        assert text.endswith("2 errors")
        assert "<input>:1:4: error: unknown token when expecting an expression" in text

    def test_aggregate_is_kaleido_error(self):
        with pytest.raises(KaleidoError):
            parse_program(")")


# =============================================================================
# Error Collector and Formatting Tests
# =============================================================================

class TestErrorCollector:
    """Error aggregation and message formatting."""

    def test_empty_collector(self):
        collector = ErrorCollector()
        assert not collector.has_errors()
        collector.raise_if_errors()

    def test_report(self):
        collector = ErrorCollector()
        collector.add(UnexpectedTokenError("')'", location=SourceLocation("a.k", 1, 2)))
        report = collector.report()
        assert report.startswith("a.k:1:2: error: unknown token when expecting an expression")
        assert report.endswith("1 error")

    def test_should_stop(self):
        collector = ErrorCollector(max_errors=2)
        collector.add(UnexpectedTokenError("x"))
        assert not collector.should_stop()
        collector.add(UnexpectedTokenError("y"))
        assert collector.should_stop()
        collector.clear()
        assert collector.error_count() == 0

    def test_message_with_caret(self):
        """The caret sits under the reported column."""
        error = MissingTokenError(
            "expected ')'",
            found="end of input",
            location=SourceLocation("t.k", 1, 5),
            source_line="(a+b",
        )
        assert str(error).splitlines() == [
            "t.k:1:5: error: expected ')'",
            "    (a+b",
            "        ^",
            "hint: found end of input",
        ]

    def test_message_without_location(self):
        assert str(MalformedNumberError("1..")).splitlines()[0] == (
            "error: malformed number literal '1..'"
        )
