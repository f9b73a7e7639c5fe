from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from domain.ports.repositories import GrammarRepository

COMMENT_PREFIX = "#"


class FileSystemGrammarRepository(GrammarRepository):
    def load(self, path: Path) -> str:
        return self._strip_comments(path.read_text(encoding="utf-8"))

    def load_all_with_paths(self, directory: Path) -> list[tuple[Path, str]]:
        return [(path, self.load(path)) for path in sorted(self._iter_paths(directory))]

    def _iter_paths(self, directory: Path) -> Iterable[Path]:
        for pattern in ("*.ebnf", "*.txt"):
            yield from directory.glob(pattern)

    def _strip_comments(self, content: str) -> str:
        # Comment lines are blanked rather than dropped so line numbers in
        # error reports still match the file.
        return "\n".join(
            "" if line.lstrip().startswith(COMMENT_PREFIX) else line
            for line in content.splitlines()
        )
