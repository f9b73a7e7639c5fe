from __future__ import annotations

from dataclasses import dataclass

from rich.cells import cell_len

from domain.models import BoxStyle, Size
from domain.ports.layout import TextMeasurer


@dataclass(frozen=True)
class CellMetrics:
    char_width: float = 8.0
    special_char_width: float | None = None
    line_height: float = 16.0
    padding_x: float = 8.0
    padding_y: float = 4.0


class CellMetricsMeasurer(TextMeasurer):
    """Sizes labels on a fixed character grid.

    Wide characters (CJK, emoji) count as two cells, the way a terminal
    would draw them.
    """

    def __init__(self, metrics: CellMetrics | None = None) -> None:
        self.metrics = metrics or CellMetrics()

    def measure(self, text: str, style: BoxStyle) -> Size:
        char_width = self.metrics.char_width
        if style == BoxStyle.SPECIAL and self.metrics.special_char_width is not None:
            char_width = self.metrics.special_char_width
        width = cell_len(text) * char_width + 2 * self.metrics.padding_x
        height = self.metrics.line_height + 2 * self.metrics.padding_y
        return Size(width, height)
