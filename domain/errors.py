from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    SYNTAX = "syntax"
    STRUCTURE = "structure"


class TrailerError(Exception):
    """Base class for grammar and layout failures.

    ``position`` is the character offset into the grammar text where the
    problem was detected, or ``None`` when the failure is not tied to input
    text (for example a rule tree built by hand).
    """

    kind: ErrorKind = ErrorKind.SYNTAX

    def __init__(self, message: str, position: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.message} (at offset {self.position})"


class GrammarSyntaxError(TrailerError):
    kind = ErrorKind.SYNTAX


class StructuralError(TrailerError):
    kind = ErrorKind.STRUCTURE
