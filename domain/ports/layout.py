from __future__ import annotations

from typing import Protocol

from domain.models import BoxStyle, GeometryNode, RuleNode, Size


class TextMeasurer(Protocol):
    def measure(self, text: str, style: BoxStyle) -> Size:
        ...


class LayoutEngine(Protocol):
    def build(self, node: RuleNode) -> GeometryNode:
        ...
