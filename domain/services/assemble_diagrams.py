from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from domain.errors import TrailerError
from domain.models import Diagram, ParseError
from domain.ports.layout import LayoutEngine
from domain.ports.rendering import DiagramRenderer
from domain.services.parse_grammar import EbnfParser, skip_blanks, skip_statement

logger = logging.getLogger(__name__)


class ErrorPolicy(str, Enum):
    ABORT = "abort"
    SKIP = "skip"


@dataclass(frozen=True)
class AssemblyReport:
    diagrams: list[Diagram] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise self.errors[0].to_exception()


class DiagramAssembler:
    """Turns a whole grammar into one diagram per statement.

    Diagrams are handed to the renderer in source order as soon as each one
    is laid out. With ``ErrorPolicy.ABORT`` the first bad statement ends the
    run; with ``ErrorPolicy.SKIP`` it is reported and parsing resumes after
    the next ``;``.
    """

    def __init__(
        self,
        layout_engine: LayoutEngine,
        renderer: DiagramRenderer,
        on_error: ErrorPolicy = ErrorPolicy.ABORT,
    ) -> None:
        self.layout_engine = layout_engine
        self.renderer = renderer
        self.on_error = ErrorPolicy(on_error)

    def assemble(self, grammar: str) -> AssemblyReport:
        parser = EbnfParser(grammar)
        report = AssemblyReport()
        text = skip_blanks(grammar)
        while text:
            statement_text = text
            symbol: str | None = None
            resume: str | None = None
            try:
                statement, rest = parser.parse_statement(text)
                symbol = statement.symbol_name
                resume = parser.expect_terminator(rest)
                geometry = self.layout_engine.build(statement.rule)
            except TrailerError as exc:
                error = ParseError.from_exception(exc, grammar, symbol=symbol)
                report.errors.append(error)
                if self.on_error == ErrorPolicy.ABORT:
                    logger.debug("Stopping at %s", error.describe())
                    break
                logger.warning("Skipping statement: %s", error.describe())
                text = resume if resume is not None else skip_statement(statement_text)
                continue

            logger.debug("Laid out %s (%sx%s)", symbol, geometry.width, geometry.height)
            diagram = Diagram(
                symbol_name=statement.symbol_name,
                rule_text=statement.literal_rule_text,
                geometry=geometry,
            )
            self.renderer.render(diagram)
            report.diagrams.append(diagram)
            text = resume
        return report
