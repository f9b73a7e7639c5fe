from __future__ import annotations

import pytest

from domain.errors import ErrorKind, GrammarSyntaxError, StructuralError
from domain.models import (
    Choice,
    Connector,
    ConnectorKind,
    Diagram,
    Empty,
    GeometryKind,
    GeometryNode,
    Loop,
    ParseError,
    Point,
    Sequence,
    Side,
    Statement,
    Terminal,
    line_and_column,
    one_or_more,
    optional,
    zero_or_more,
)


def test_choice_requires_two_alternatives() -> None:
    with pytest.raises(StructuralError, match="at least one alternative beyond the first"):
        Choice((Terminal("a"),))
    with pytest.raises(StructuralError):
        Choice(())


def test_rule_nodes_are_immutable_values() -> None:
    sequence = Sequence([Terminal("a"), Terminal("b")])  # type: ignore[arg-type]

    assert sequence.children == (Terminal("a"), Terminal("b"))
    assert sequence == Sequence((Terminal("a"), Terminal("b")))
    with pytest.raises(AttributeError):
        sequence.children = ()  # type: ignore[misc]


def test_repetition_helpers() -> None:
    body = Terminal("x")

    assert optional(body) == Choice((body, Empty()))
    assert one_or_more(body) == Loop(body, Empty())
    assert zero_or_more(body) == Choice((Empty(), Loop(body, Empty())))
    assert Loop(body) == Loop(body, Empty())


def test_statement_caption() -> None:
    statement = Statement("S", Terminal("a"), '"a"')

    assert statement.caption == 'S = "a"'


def test_geometry_rejects_negative_size() -> None:
    with pytest.raises(StructuralError):
        GeometryNode(kind=GeometryKind.EMPTY, width=-1.0, height=10.0, baseline=5.0)


def test_geometry_rejects_baseline_outside_height() -> None:
    with pytest.raises(StructuralError):
        GeometryNode(kind=GeometryKind.EMPTY, width=10.0, height=10.0, baseline=11.0)


def test_connector_filtering_and_export() -> None:
    stub = Connector(ConnectorKind.STUB, Point(10, 30), Point(20, 40), Side.LEFT)
    branch = Connector(ConnectorKind.BRANCH, Point(80, 10), Point(80, 30), Side.RIGHT, arrow=True)
    node = GeometryNode(
        kind=GeometryKind.CHOICE,
        width=90.0,
        height=50.0,
        baseline=10.0,
        connectors=(stub, branch),
    )

    assert node.connectors_of(ConnectorKind.STUB) == [stub]
    assert node.connectors_of(ConnectorKind.BRANCH, Side.LEFT) == []
    assert stub.extent == 10
    assert branch.extent == 20
    assert branch.to_dict() == {
        "kind": "branch",
        "start": {"x": 80, "y": 10},
        "end": {"x": 80, "y": 30},
        "side": "right",
        "arrow": "up",
    }


def test_diagram_to_dict() -> None:
    geometry = GeometryNode(kind=GeometryKind.EMPTY, width=10.0, height=30.0, baseline=15.0)
    diagram = Diagram(symbol_name="S", rule_text="_", geometry=geometry)

    payload = diagram.to_dict()

    assert payload["schema_version"] == "1.0"
    assert payload["symbol"] == "S"
    assert payload["caption"] == "S = _"
    assert payload["geometry"] == {
        "kind": "empty",
        "width": 10.0,
        "height": 30.0,
        "baseline": 15.0,
        "connectors": [],
        "children": [],
    }


def test_line_and_column_are_one_based() -> None:
    assert line_and_column("abc", 0) == (1, 1)
    assert line_and_column('A = "a";\nB "b";', 11) == (2, 3)


def test_parse_error_round_trip() -> None:
    source = 'A = "a";\nB "b";'
    error = ParseError.from_exception(GrammarSyntaxError("'=' expected", 11), source)

    assert error.kind == ErrorKind.SYNTAX
    assert (error.line, error.column) == (2, 3)
    assert error.describe() == "'=' expected (line 2, column 3)"
    exc = error.to_exception()
    assert isinstance(exc, GrammarSyntaxError)
    assert exc.position == 11


def test_structural_parse_error_keeps_kind() -> None:
    error = ParseError.from_exception(StructuralError("too few"), "", symbol="S")

    assert error.kind == ErrorKind.STRUCTURE
    assert error.line is None
    assert error.describe() == "S: too few (input)"
    assert isinstance(error.to_exception(), StructuralError)
