from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from adapters.console.outline import ConsoleDiagramRenderer
from adapters.filesystem.diagram_exporter import JsonDiagramExporter
from adapters.filesystem.grammar_repository import FileSystemGrammarRepository
from app.config import AppSettings, load_settings
from app.wiring import build_assembler
from domain.errors import TrailerError
from domain.models import ParseError
from domain.ports.repositories import GrammarRepository
from domain.services.assemble_diagrams import AssemblyReport, ErrorPolicy
from domain.services.parse_grammar import parse_grammar

app = typer.Typer(no_args_is_help=True)
console = Console()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _settings(ctx: typer.Context) -> AppSettings:
    return ctx.obj


def _read_grammars(grammar_path: Path) -> list[tuple[Path, str]]:
    repository: GrammarRepository = FileSystemGrammarRepository()
    if not grammar_path.exists():
        console.print(f"[red]File not found:[/] {grammar_path}", soft_wrap=True)
        raise typer.Exit(code=1)
    if grammar_path.is_dir():
        grammars = list(repository.load_all_with_paths(grammar_path))
        if not grammars:
            console.print(f"[yellow]No grammar files found in {grammar_path}[/]", soft_wrap=True)
        return grammars
    return [(grammar_path, repository.load(grammar_path))]


def _print_error(path: Path, error: ParseError) -> None:
    console.print(f"[red]{path}:[/] {escape(error.describe())}", soft_wrap=True)


def _print_errors(path: Path, report: AssemblyReport) -> bool:
    for error in report.errors:
        _print_error(path, error)
    return not report.ok


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", help="YAML settings file (defaults to config/trailer.yaml)."
    ),
) -> None:
    try:
        settings = load_settings(config)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]Invalid configuration:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    _configure_logging(settings.log_level)
    ctx.obj = settings


@app.command("check")
def check(
    grammar_path: Path = typer.Argument(..., help="Grammar file, or a directory of them."),
) -> None:
    failed = False
    for path, text in _read_grammars(grammar_path):
        try:
            statements = parse_grammar(text)
        except TrailerError as exc:
            _print_error(path, ParseError.from_exception(exc, text))
            failed = True
            continue

        table = Table("Symbol", "Rule")
        for statement in statements:
            table.add_row(escape(statement.symbol_name), escape(statement.literal_rule_text))
        console.print(table)
        console.print(f"[green]{len(statements)} rule(s) parsed[/] from {path}", soft_wrap=True)
    if failed:
        raise typer.Exit(code=1)


@app.command("show")
def show(
    ctx: typer.Context,
    grammar_path: Path = typer.Argument(..., help="Grammar file, or a directory of them."),
    connectors: bool = typer.Option(False, help="Also list rails, stubs and branches."),
) -> None:
    renderer = ConsoleDiagramRenderer(console, show_connectors=connectors)
    assembler = build_assembler(_settings(ctx), renderer)
    failed = False
    for path, text in _read_grammars(grammar_path):
        failed = _print_errors(path, assembler.assemble(text)) or failed
    if failed:
        raise typer.Exit(code=1)


@app.command("export")
def export(
    ctx: typer.Context,
    grammar_path: Path = typer.Argument(..., help="Grammar file, or a directory of them."),
    output_dir: Optional[Path] = typer.Option(
        None, help="Directory for the geometry JSON files (defaults to settings.output_dir)."
    ),
    on_error: Optional[ErrorPolicy] = typer.Option(
        None, help="Stop at the first bad rule (abort) or report it and go on (skip)."
    ),
) -> None:
    settings = _settings(ctx)
    exporter = JsonDiagramExporter(output_dir or settings.output_dir)
    assembler = build_assembler(settings, exporter, on_error=on_error)
    failed = False
    for path, text in _read_grammars(grammar_path):
        failed = _print_errors(path, assembler.assemble(text)) or failed
    for written in exporter.written:
        console.print(f"[green]Wrote[/] {written}", soft_wrap=True)
    if failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
