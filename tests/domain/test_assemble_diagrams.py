from __future__ import annotations

import logging

import pytest

from adapters.layout.railroad import RailroadLayoutEngine
from adapters.memory.renderer import InMemoryDiagramRenderer
from domain.errors import ErrorKind, GrammarSyntaxError, StructuralError
from domain.models import GeometryNode, NonTerminal, RuleNode
from domain.services.assemble_diagrams import DiagramAssembler, ErrorPolicy
from domain.services.parse_grammar import parse_rule
from tests.helpers.grammar_fixtures import load_grammar_fixture


class ExplodingLayoutEngine:
    """Fails on any rule that is exactly a reference to ``boom``."""

    def __init__(self, inner: RailroadLayoutEngine) -> None:
        self.inner = inner

    def build(self, node: RuleNode) -> GeometryNode:
        if node == NonTerminal("boom"):
            raise StructuralError("cannot lay out boom")
        return self.inner.build(node)


def test_renders_one_diagram_per_statement_in_order(
    layout_engine: RailroadLayoutEngine,
) -> None:
    renderer = InMemoryDiagramRenderer()
    report = DiagramAssembler(layout_engine, renderer).assemble('  A = "a";\nB = A, "b";  \n')

    assert report.ok
    assert renderer.symbols() == ["A", "B"]
    assert report.diagrams == renderer.diagrams
    second = renderer.diagrams[1]
    assert second.rule_text == 'A,"b"'
    assert second.caption == 'B = A,"b"'
    assert second.geometry == layout_engine.build(parse_rule(second.rule_text).node)


def test_missing_terminator_produces_no_diagram(layout_engine: RailroadLayoutEngine) -> None:
    renderer = InMemoryDiagramRenderer()
    report = DiagramAssembler(layout_engine, renderer).assemble('S = "a" | "b"')

    assert renderer.diagrams == []
    assert not report.ok
    (error,) = report.errors
    assert error.kind == ErrorKind.SYNTAX
    assert error.message == "';' expected"
    assert error.symbol == "S"
    with pytest.raises(GrammarSyntaxError, match="';' expected"):
        report.raise_for_errors()


def test_abort_stops_at_first_bad_statement(layout_engine: RailroadLayoutEngine) -> None:
    renderer = InMemoryDiagramRenderer()
    report = DiagramAssembler(layout_engine, renderer).assemble(
        'A = "a";\nB = @;\nC = "c";'
    )

    assert renderer.symbols() == ["A"]
    (error,) = report.errors
    assert error.message == "syntax error"
    assert (error.line, error.column) == (2, 5)


def test_error_positions_count_leading_blank_lines(
    layout_engine: RailroadLayoutEngine,
) -> None:
    grammar = '\n\n  A = @;\n'
    report = DiagramAssembler(layout_engine, InMemoryDiagramRenderer()).assemble(grammar)

    (error,) = report.errors
    assert error.position == grammar.index("@")
    assert (error.line, error.column) == (3, 7)


def test_skipped_statement_positions_refer_to_caller_text(
    layout_engine: RailroadLayoutEngine,
) -> None:
    grammar = '\n\nA = "a";\nB = @;\nC "c";\n'
    assembler = DiagramAssembler(layout_engine, InMemoryDiagramRenderer(), ErrorPolicy.SKIP)

    report = assembler.assemble(grammar)

    assert [(error.line, error.column) for error in report.errors] == [(4, 5), (5, 3)]
    assert [diagram.symbol_name for diagram in report.diagrams] == ["A"]


def test_deep_nesting_is_reported_not_raised(layout_engine: RailroadLayoutEngine) -> None:
    grammar = 'A = ' + "(" * 5000 + '"a"' + ")" * 5000 + ';\nB = "b";'
    renderer = InMemoryDiagramRenderer()
    assembler = DiagramAssembler(layout_engine, renderer, on_error=ErrorPolicy.SKIP)

    report = assembler.assemble(grammar)

    (error,) = report.errors
    assert error.message == "grammar nested too deeply"
    assert (error.line, error.column) == (1, 5)
    assert renderer.symbols() == ["B"]


def test_skip_reports_and_continues(
    layout_engine: RailroadLayoutEngine, caplog: pytest.LogCaptureFixture
) -> None:
    renderer = InMemoryDiagramRenderer()
    assembler = DiagramAssembler(layout_engine, renderer, on_error=ErrorPolicy.SKIP)

    with caplog.at_level(logging.WARNING, logger="domain.services.assemble_diagrams"):
        report = assembler.assemble('A = "a";\nB = @;\nC = "c";\nD = "d"')

    assert renderer.symbols() == ["A", "C"]
    assert [error.line for error in report.errors] == [2, 4]
    assert report.errors[1].symbol == "D"
    assert "Skipping statement" in caplog.text


def test_skip_steps_over_terminators_inside_quotes(
    layout_engine: RailroadLayoutEngine,
) -> None:
    renderer = InMemoryDiagramRenderer()
    assembler = DiagramAssembler(layout_engine, renderer, on_error="skip")  # type: ignore[arg-type]

    report = assembler.assemble('A = @ ";";\nB = "b";')

    assert renderer.symbols() == ["B"]
    assert len(report.errors) == 1


@pytest.mark.parametrize(
    ("policy", "expected"),
    [(ErrorPolicy.ABORT, []), (ErrorPolicy.SKIP, ["B"])],
)
def test_layout_failures_follow_error_policy(
    layout_engine: RailroadLayoutEngine, policy: ErrorPolicy, expected: list[str]
) -> None:
    renderer = InMemoryDiagramRenderer()
    assembler = DiagramAssembler(ExplodingLayoutEngine(layout_engine), renderer, on_error=policy)

    report = assembler.assemble('A = boom;\nB = "b";')

    assert renderer.symbols() == expected
    (error,) = report.errors
    assert error.kind == ErrorKind.STRUCTURE
    assert error.symbol == "A"
    assert error.position is None
    with pytest.raises(StructuralError):
        report.raise_for_errors()


def test_blank_grammar_produces_nothing(layout_engine: RailroadLayoutEngine) -> None:
    renderer = InMemoryDiagramRenderer()
    report = DiagramAssembler(layout_engine, renderer).assemble(" \n\t ")

    assert report.ok
    assert renderer.diagrams == []


def test_example_grammar_renders_every_rule(layout_engine: RailroadLayoutEngine) -> None:
    renderer = InMemoryDiagramRenderer()
    report = DiagramAssembler(layout_engine, renderer).assemble(
        load_grammar_fixture("expression.ebnf")
    )

    assert report.ok
    assert renderer.symbols() == ["expression", "term", "factor", "number", "identifier"]
