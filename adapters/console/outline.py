from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from domain.models import Diagram, GeometryNode
from domain.ports.rendering import DiagramRenderer


def _describe(node: GeometryNode) -> str:
    size = f"{node.width:g}x{node.height:g} @{node.baseline:g}"
    if node.label is not None:
        return f"{node.kind.value} [bold]{escape(node.label)}[/] {size}"
    return f"{node.kind.value} {size}"


class ConsoleDiagramRenderer(DiagramRenderer):
    """Prints the geometry tree of each diagram as an indented outline."""

    def __init__(self, console: Console | None = None, show_connectors: bool = False) -> None:
        self.console = console or Console()
        self.show_connectors = show_connectors

    def render(self, diagram: Diagram) -> None:
        tree = Tree(f"[bold cyan]{escape(diagram.symbol_name)}[/]")
        self._add(tree, diagram.geometry, 0.0, 0.0)
        self.console.print(tree)
        self.console.print(escape(diagram.caption), style="dim")

    def _add(self, parent: Tree, node: GeometryNode, x: float, y: float) -> None:
        branch = parent.add(f"{_describe(node)} at ({x:g}, {y:g})")
        if self.show_connectors:
            for connector in node.connectors:
                side = f" {connector.side.value}" if connector.side is not None else ""
                arrow = " ▲" if connector.arrow else ""
                branch.add(
                    f"[dim]{connector.kind.value}{side} "
                    f"({connector.start.x:g}, {connector.start.y:g}) -> "
                    f"({connector.end.x:g}, {connector.end.y:g}){arrow}[/]"
                )
        for placement in node.children:
            self._add(branch, placement.node, x + placement.x_offset, y + placement.y_offset)
