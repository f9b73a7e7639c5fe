from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from domain.errors import ErrorKind, GrammarSyntaxError, StructuralError, TrailerError

METADATA_SCHEMA_VERSION = "1.0"


class TerminalStyle(str, Enum):
    NORMAL = "normal"
    SPECIAL = "special"


class BoxStyle(str, Enum):
    """Kind of labelled box handed to the text measurer."""

    TERMINAL = "terminal"
    NONTERMINAL = "nonterminal"
    SPECIAL = "special"


# Rule tree


@dataclass(frozen=True)
class Terminal:
    text: str
    style: TerminalStyle = TerminalStyle.NORMAL


@dataclass(frozen=True)
class NonTerminal:
    name: str


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class Sequence:
    children: tuple[RuleNode, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))


@dataclass(frozen=True)
class Choice:
    children: tuple[RuleNode, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))
        if len(self.children) < 2:
            msg = "stack requires at least one alternative beyond the first"
            raise StructuralError(msg)


@dataclass(frozen=True)
class Loop:
    body: RuleNode
    back_edge: RuleNode = field(default_factory=Empty)


RuleNode = Union[Terminal, NonTerminal, Empty, Sequence, Choice, Loop]


def optional(body: RuleNode) -> Choice:
    return Choice((body, Empty()))


def one_or_more(body: RuleNode) -> Loop:
    return Loop(body, Empty())


def zero_or_more(body: RuleNode) -> Choice:
    return Choice((Empty(), Loop(body, Empty())))


@dataclass(frozen=True)
class Statement:
    symbol_name: str
    rule: RuleNode
    literal_rule_text: str
    position: int = 0

    @property
    def caption(self) -> str:
        return f"{self.symbol_name} = {self.literal_rule_text}"


# Geometry


class GeometryKind(str, Enum):
    TERMINAL = "terminal"
    NONTERMINAL = "nonterminal"
    SPECIAL = "special"
    EMPTY = "empty"
    SEQUENCE = "sequence"
    CHOICE = "choice"
    LOOP = "loop"


class ConnectorKind(str, Enum):
    RAIL = "rail"
    STUB = "stub"
    BRANCH = "branch"


class Side(str, Enum):
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Box:
    position: Point
    size: Size


@dataclass(frozen=True)
class Connector:
    kind: ConnectorKind
    start: Point
    end: Point
    side: Side | None = None
    arrow: bool = False  # upward arrow drawn on a branch line

    @property
    def extent(self) -> float:
        """Reach along the longer axis; a stub reaches as far across as down."""
        return max(abs(self.end.x - self.start.x), abs(self.end.y - self.start.y))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "kind": self.kind.value,
            "start": {"x": self.start.x, "y": self.start.y},
            "end": {"x": self.end.x, "y": self.end.y},
        }
        if self.side is not None:
            payload["side"] = self.side.value
        if self.arrow:
            payload["arrow"] = "up"
        return payload


@dataclass(frozen=True)
class Placement:
    node: GeometryNode
    x_offset: float
    y_offset: float


@dataclass(frozen=True)
class GeometryNode:
    kind: GeometryKind
    width: float
    height: float
    baseline: float
    children: tuple[Placement, ...] = ()
    connectors: tuple[Connector, ...] = ()
    label: str | None = None
    box: Box | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))
        object.__setattr__(self, "connectors", tuple(self.connectors))
        if self.width < 0 or self.height < 0:
            msg = f"{self.kind.value} geometry has negative size {self.width}x{self.height}"
            raise StructuralError(msg)
        if not 0 <= self.baseline <= self.height:
            msg = f"{self.kind.value} baseline {self.baseline} outside height {self.height}"
            raise StructuralError(msg)

    def connectors_of(self, kind: ConnectorKind, side: Side | None = None) -> list[Connector]:
        return [
            connector
            for connector in self.connectors
            if connector.kind == kind and (side is None or connector.side == side)
        ]

    def walk(self) -> Iterator[GeometryNode]:
        yield self
        for placement in self.children:
            yield from placement.node.walk()

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "kind": self.kind.value,
            "width": self.width,
            "height": self.height,
            "baseline": self.baseline,
        }
        if self.label is not None:
            payload["label"] = self.label
        if self.box is not None:
            payload["box"] = {
                "x": self.box.position.x,
                "y": self.box.position.y,
                "width": self.box.size.width,
                "height": self.box.size.height,
            }
        payload["connectors"] = [connector.to_dict() for connector in self.connectors]
        payload["children"] = [
            {"x": placement.x_offset, "y": placement.y_offset, "node": placement.node.to_dict()}
            for placement in self.children
        ]
        return payload


@dataclass(frozen=True)
class Diagram:
    symbol_name: str
    rule_text: str
    geometry: GeometryNode

    @property
    def caption(self) -> str:
        return f"{self.symbol_name} = {self.rule_text}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": METADATA_SCHEMA_VERSION,
            "symbol": self.symbol_name,
            "rule": self.rule_text,
            "caption": self.caption,
            "width": self.geometry.width,
            "height": self.geometry.height,
            "geometry": self.geometry.to_dict(),
        }


@dataclass(frozen=True)
class ParseError:
    kind: ErrorKind
    message: str
    position: int | None
    line: int | None = None
    column: int | None = None
    symbol: str | None = None

    @classmethod
    def from_exception(
        cls, exc: TrailerError, source: str, symbol: str | None = None
    ) -> ParseError:
        line, column = (None, None)
        if exc.position is not None:
            line, column = line_and_column(source, exc.position)
        return cls(
            kind=exc.kind,
            message=exc.message,
            position=exc.position,
            line=line,
            column=column,
            symbol=symbol,
        )

    def to_exception(self) -> TrailerError:
        if self.kind == ErrorKind.STRUCTURE:
            return StructuralError(self.message, self.position)
        return GrammarSyntaxError(self.message, self.position)

    def describe(self) -> str:
        where = f"line {self.line}, column {self.column}" if self.line is not None else "input"
        prefix = f"{self.symbol}: " if self.symbol else ""
        return f"{prefix}{self.message} ({where})"


def line_and_column(source: str, position: int) -> tuple[int, int]:
    before = source[:position]
    line = before.count("\n") + 1
    column = position - (before.rfind("\n") + 1) + 1
    return line, column
