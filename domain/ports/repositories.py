from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol


class GrammarRepository(Protocol):
    def load(self, path: Path) -> str: ...

    def load_all_with_paths(self, directory: Path) -> Sequence[tuple[Path, str]]: ...
