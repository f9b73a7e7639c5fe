from __future__ import annotations

from domain.models import Diagram
from domain.ports.rendering import DiagramRenderer


class InMemoryDiagramRenderer(DiagramRenderer):
    def __init__(self) -> None:
        self.diagrams: list[Diagram] = []

    def render(self, diagram: Diagram) -> None:
        self.diagrams.append(diagram)

    def symbols(self) -> list[str]:
        return [diagram.symbol_name for diagram in self.diagrams]
