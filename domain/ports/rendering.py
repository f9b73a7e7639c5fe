from __future__ import annotations

from typing import Protocol

from domain.models import Diagram


class DiagramRenderer(Protocol):
    def render(self, diagram: Diagram) -> None: ...
