from __future__ import annotations

from collections.abc import Sequence as SequenceOf
from dataclasses import dataclass

from domain.errors import StructuralError
from domain.models import (
    Box,
    BoxStyle,
    Choice,
    Connector,
    ConnectorKind,
    Empty,
    GeometryKind,
    GeometryNode,
    Loop,
    NonTerminal,
    Placement,
    Point,
    RuleNode,
    Sequence,
    Side,
    Terminal,
    TerminalStyle,
)
from domain.ports.layout import LayoutEngine, TextMeasurer


@dataclass(frozen=True)
class LayoutConfig:
    rail_margin: float = 10.0  # rail on each side of a label box
    empty_height: float = 20.0
    empty_padding: float = 5.0
    vspace: float = 10.0  # gap between stacked elements
    branch_margin: float = 20.0  # room for the vertical branches on each side of a stack
    stub_length: float = 10.0


_TERMINAL_BOX_STYLES = {
    TerminalStyle.NORMAL: BoxStyle.TERMINAL,
    TerminalStyle.SPECIAL: BoxStyle.SPECIAL,
}
_BOX_KINDS = {
    BoxStyle.TERMINAL: GeometryKind.TERMINAL,
    BoxStyle.NONTERMINAL: GeometryKind.NONTERMINAL,
    BoxStyle.SPECIAL: GeometryKind.SPECIAL,
}


class RailroadLayoutEngine(LayoutEngine):
    def __init__(self, measurer: TextMeasurer, config: LayoutConfig | None = None) -> None:
        self.measurer = measurer
        self.config = config or LayoutConfig()

    def build(self, node: RuleNode) -> GeometryNode:
        if isinstance(node, Terminal):
            return self.box(node.text, _TERMINAL_BOX_STYLES[node.style])
        if isinstance(node, NonTerminal):
            return self.box(node.name, BoxStyle.NONTERMINAL)
        if isinstance(node, Empty):
            return self.empty()
        if isinstance(node, Sequence):
            return self.sequence([self.build(child) for child in node.children])
        if isinstance(node, Choice):
            return self.stack([self.build(child) for child in node.children], loop=False)
        if isinstance(node, Loop):
            return self.stack([self.build(node.body), self.build(node.back_edge)], loop=True)
        msg = f"Unsupported rule node: {type(node).__name__}"
        raise TypeError(msg)

    def box(self, text: str, style: BoxStyle) -> GeometryNode:
        size = self.measurer.measure(text, style)
        margin = self.config.rail_margin
        width = size.width + 2 * margin
        baseline = size.height / 2
        return GeometryNode(
            kind=_BOX_KINDS[style],
            width=width,
            height=size.height,
            baseline=baseline,
            connectors=(
                Connector(ConnectorKind.RAIL, Point(0.0, baseline), Point(width, baseline)),
            ),
            label=text,
            box=Box(position=Point(margin, 0.0), size=size),
        )

    def empty(self) -> GeometryNode:
        padding = self.config.empty_padding
        height = self.config.empty_height + 2 * padding
        width = 2 * padding
        baseline = height / 2
        return GeometryNode(
            kind=GeometryKind.EMPTY,
            width=width,
            height=height,
            baseline=baseline,
            connectors=(
                Connector(ConnectorKind.RAIL, Point(0.0, baseline), Point(width, baseline)),
            ),
        )

    def sequence(self, children: SequenceOf[GeometryNode]) -> GeometryNode:
        baseline = max((child.baseline for child in children), default=0.0)
        placements: list[Placement] = []
        x = 0.0
        height = 0.0
        for child in children:
            # Lower every child whose rail sits above the common one.
            shift = baseline - child.baseline
            placements.append(Placement(node=child, x_offset=x, y_offset=shift))
            x += child.width
            height = max(height, child.height + shift)
        return GeometryNode(
            kind=GeometryKind.SEQUENCE,
            width=x,
            height=height,
            baseline=baseline,
            children=tuple(placements),
        )

    def stack(self, children: SequenceOf[GeometryNode], loop: bool) -> GeometryNode:
        if len(children) < 2:
            msg = "stack requires at least one alternative beyond the first"
            raise StructuralError(msg)

        max_width = max(child.width for child in children)
        width = max_width + 2 * self.config.branch_margin
        placements: list[Placement] = []
        y = 0.0
        for child in children:
            placements.append(
                Placement(node=child, x_offset=(width - child.width) / 2, y_offset=y)
            )
            y += child.height + self.config.vspace
        height = y - self.config.vspace

        connectors = [
            *self._branch(placements, width, Side.LEFT, loop),
            *self._branch(placements, width, Side.RIGHT, loop),
        ]
        return GeometryNode(
            kind=GeometryKind.LOOP if loop else GeometryKind.CHOICE,
            width=width,
            height=height,
            baseline=children[0].baseline,
            children=tuple(placements),
            connectors=tuple(connectors),
        )

    def _branch(
        self, placements: list[Placement], width: float, side: Side, loop: bool
    ) -> list[Connector]:
        stub = self.config.stub_length
        margin = self.config.branch_margin
        if side == Side.LEFT:
            branch_x = margin - stub
            direction = 1.0
        else:
            branch_x = width - (margin - stub)
            direction = -1.0

        connectors: list[Connector] = []
        top_rail = placements[0].y_offset + placements[0].node.baseline
        last_rail = top_rail
        for index, placement in enumerate(placements):
            rail_y = placement.y_offset + placement.node.baseline
            last_rail = rail_y
            if index == 0:
                if side == Side.RIGHT:
                    # Entry/exit rail through the top element.
                    connectors.append(
                        Connector(
                            ConnectorKind.RAIL, Point(0.0, rail_y), Point(width, rail_y), side
                        )
                    )
                continue
            connectors.append(
                Connector(
                    ConnectorKind.STUB,
                    Point(branch_x, rail_y - stub),
                    Point(branch_x + direction * stub, rail_y),
                    side,
                )
            )
            if side == Side.RIGHT:
                connectors.append(
                    Connector(
                        ConnectorKind.RAIL,
                        Point(margin, rail_y),
                        Point(width - margin, rail_y),
                        side,
                    )
                )

        # Up arrow: loops return on the left, choices rejoin on the right.
        arrow = (loop and side == Side.LEFT) or (not loop and side == Side.RIGHT)
        connectors.append(
            Connector(
                ConnectorKind.BRANCH,
                Point(branch_x, top_rail),
                Point(branch_x, last_rail - stub),
                side,
                arrow=arrow,
            )
        )
        return connectors


def layout(
    node: RuleNode, measurer: TextMeasurer, config: LayoutConfig | None = None
) -> GeometryNode:
    return RailroadLayoutEngine(measurer, config).build(node)
