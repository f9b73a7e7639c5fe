from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import orjson
from filelock import FileLock

from domain.models import Diagram
from domain.ports.rendering import DiagramRenderer

logger = logging.getLogger(__name__)


def load_json(path: Path) -> dict[str, Any]:
    data = orjson.loads(path.read_bytes())
    return data if isinstance(data, dict) else {}


def write_json_atomic(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(f"{path.suffix}.tmp")
    tmp_path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
    tmp_path.replace(path)


class JsonDiagramExporter(DiagramRenderer):
    """Writes each diagram's geometry tree to ``<output_dir>/<symbol>.json``."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir
        self.written: list[Path] = []

    def path_for(self, symbol_name: str) -> Path:
        return self.output_dir / f"{symbol_name}.json"

    def render(self, diagram: Diagram) -> None:
        path = self.path_for(diagram.symbol_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        lock_path = path.with_suffix(f"{path.suffix}.lock")
        with FileLock(str(lock_path)):
            write_json_atomic(path, diagram.to_dict())
        if path not in self.written:
            self.written.append(path)
        logger.info("Wrote %s", path)
