from __future__ import annotations

from adapters.layout.railroad import RailroadLayoutEngine
from adapters.measure.cell_metrics import CellMetricsMeasurer
from app.config import AppSettings
from domain.ports.layout import LayoutEngine, TextMeasurer
from domain.ports.rendering import DiagramRenderer
from domain.services.assemble_diagrams import DiagramAssembler, ErrorPolicy


def build_measurer(settings: AppSettings) -> TextMeasurer:
    return CellMetricsMeasurer(settings.measure.to_metrics())


def build_layout_engine(settings: AppSettings) -> LayoutEngine:
    return RailroadLayoutEngine(build_measurer(settings), settings.layout.to_layout_config())


def build_assembler(
    settings: AppSettings,
    renderer: DiagramRenderer,
    on_error: ErrorPolicy | None = None,
) -> DiagramAssembler:
    return DiagramAssembler(
        build_layout_engine(settings),
        renderer,
        on_error=on_error or settings.on_error,
    )
