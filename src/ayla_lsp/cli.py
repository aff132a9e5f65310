from __future__ import annotations

import json
import logging
from dataclasses import asdict, is_dataclass
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.pretty import Pretty
from rich.table import Table
from rich.tree import Tree

from ayla_lsp import __version__
from ayla_lsp.analysis import AnalysisOptions, DocumentSnapshot, analyze_source, definition, hover
from ayla_lsp.config import AylaConfig, LogLevel, discover_config_path, load_config
from ayla_lsp.diag.cli_diagnostics import config_load_error, file_read_error, invalid_position
from ayla_lsp.diag.diagnostic import Diagnostic
from ayla_lsp.diag.reporter import DiagnosticReporter
from ayla_lsp.diag.source import Position, SourceText
from ayla_lsp.lsp.server import start
from ayla_lsp.sema.infer import TypeInferencer
from ayla_lsp.sema.symbols import Scope
from ayla_lsp.sema.types import render_type

app = typer.Typer(
    help="Ayla language server and analysis tools",
    no_args_is_help=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
inspect_app = typer.Typer(help="Run the analysis core on a file without an editor")

app.add_typer(inspect_app, name="inspect")
app.add_typer(inspect_app, name="ins")

LOGGER = logging.getLogger(__name__)


@app.callback(invoke_without_command=True)
def root_callback(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand is not None:
        return

    console = Console()
    try:
        ayla_version = version("ayla-lsp")
    except PackageNotFoundError:
        ayla_version = __version__

    console.print(
        Panel(
            (
                f"[bold cyan]Welcome to ayla-lsp v{ayla_version}[/bold cyan]\n\n"
                "[white]Language server for Ayla: diagnostics, hover and go-to-definition "
                "over stdio, plus inspection commands for the analysis core.[/white]"
            ),
            title="[bold green]ayla-lsp[/bold green]",
            border_style="bright_blue",
            expand=False,
        )
    )

    quickstart = Table(
        title="Quick Start", show_header=True, header_style="bold magenta", expand=True
    )
    quickstart.add_column("Workflow", style="bold yellow", ratio=1)
    quickstart.add_column("Command", style="green", ratio=2)
    quickstart.add_row("Run the language server", "ayla-lsp serve")
    quickstart.add_row("Check a file", "ayla-lsp inspect check main.ayla")
    quickstart.add_row("Show the scope tree", "ayla-lsp inspect symbols main.ayla")
    quickstart.add_row("Hover at line 3, character 4", "ayla-lsp inspect hover main.ayla 3 4")
    console.print(quickstart)
    console.print("[dim]Use `ayla-lsp --help` for full command documentation.[/dim]")


def _configure_logging(level: LogLevel, *, log_file: Path | None = None) -> None:
    resolved_level = getattr(logging, level.value.upper())

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    root.setLevel(resolved_level)
    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(resolved_level)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(resolved_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


def _read_file(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _to_jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {k: _to_jsonable(v) for k, v in asdict(value).items()}
    if isinstance(value, tuple):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, list):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    return value


def _print_diags(
    console: Console, source: SourceText | None, diagnostics: list[Diagnostic]
) -> bool:
    reporter = DiagnosticReporter(console=console)
    if diagnostics:
        reporter.print(source, diagnostics)
    return any(d.is_error for d in diagnostics)


def _load_settings(console: Console, config: Path | None) -> AylaConfig:
    path = discover_config_path(cwd=Path.cwd(), explicit_config=config)
    if path is None:
        return AylaConfig()
    try:
        loaded = load_config(path)
    except (OSError, ValueError) as exc:
        _print_diags(console, None, [config_load_error(path, exc)])
        raise typer.Exit(code=1) from None
    LOGGER.info("Loaded config file: %s", path)
    return loaded


def _read_source(console: Console, file: Path) -> str:
    try:
        return _read_file(file)
    except OSError as exc:
        _print_diags(console, None, [file_read_error(file, exc)])
        raise typer.Exit(code=1) from None


def _position(console: Console, file: Path, text: str, line: int, character: int) -> Position:
    lines = text.split("\n")
    if line < 0 or character < 0 or line >= len(lines):
        message = f"position {line}:{character} is outside of {file} ({len(lines)} line(s))"
        _print_diags(console, None, [invalid_position(message, path=file)])
        raise typer.Exit(code=1)
    return Position(line=line, character=character)


def _scope_tree(scope: Scope, inferencer: TypeInferencer, tree: Tree) -> Tree:
    for symbol in scope.symbols.values():
        if symbol.ident is None:
            continue
        shown = symbol.detail or render_type(inferencer.type_of(symbol, scope))
        where = f"{symbol.ident.span.line}:{symbol.ident.span.col}"
        tree.add(f"[bold]{escape(symbol.name)}[/bold] {symbol.kind.value} {escape(shown)} [dim]{where}[/dim]")
        if symbol.members is not None:
            _scope_tree(symbol.members, inferencer, tree.add(f"[cyan]{escape(symbol.members.name)}[/cyan]"))
    for child in scope.children:
        _scope_tree(child, inferencer, tree.add(f"[cyan]{escape(child.name)}[/cyan]"))
    return tree


@app.command("serve", help="Run the language server over stdio.")
def serve_cmd(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to ayla-lsp.toml (default: ./ayla-lsp.toml if present)."
    ),
    log_level: LogLevel | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Set server log verbosity (overrides the config file).",
    ),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Write logs to this file (overrides the config file)."
    ),
    no_log_file: bool = typer.Option(False, "--no-log-file", help="Log to stderr only."),
) -> None:
    console = Console(stderr=True)
    settings = _load_settings(console, config)

    resolved_file = log_file
    if resolved_file is None and not no_log_file and settings.server.log_file is not None:
        resolved_file = Path(settings.server.log_file)
    _configure_logging(log_level or settings.server.log_level, log_file=None if no_log_file else resolved_file)

    start(settings)


@inspect_app.command("parse", help="Parse an Ayla file and print its syntax tree.")
def inspect_parse(
    file: Path = typer.Argument(..., help="Path to the Ayla source file."),
    json_out: bool = typer.Option(False, "--json", "-j", help="Print the syntax tree as JSON."),
    no_color: bool = typer.Option(False, "--no-color", "-n", help="Disable ANSI color output."),
    log_level: LogLevel = typer.Option(
        LogLevel.warning,
        "--log-level",
        "-l",
        help="Set CLI log verbosity.",
    ),
) -> None:
    console = Console(no_color=no_color)
    _configure_logging(log_level)

    text = _read_source(console, file)
    unit = analyze_source(text, AnalysisOptions(filename=str(file), semantic_diagnostics=False))
    source = SourceText(text, str(file))
    if _print_diags(console, source, unit.diagnostics):
        raise typer.Exit(code=1) from None

    if json_out:
        console.print(
            json.dumps(_to_jsonable(unit.program), indent=2, sort_keys=True),
            markup=False,
            highlight=False,
            soft_wrap=True,
        )
    else:
        console.print(Pretty(unit.program))


@inspect_app.command("check", help="Report parse errors and declaration conflicts.")
def inspect_check(
    file: Path = typer.Argument(..., help="Path to the Ayla source file."),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to ayla-lsp.toml."),
    no_color: bool = typer.Option(False, "--no-color", "-n", help="Disable ANSI color output."),
    log_level: LogLevel = typer.Option(
        LogLevel.warning,
        "--log-level",
        "-l",
        help="Set CLI log verbosity.",
    ),
) -> None:
    console = Console(no_color=no_color)
    _configure_logging(log_level)
    settings = _load_settings(console, config)

    text = _read_source(console, file)
    unit = analyze_source(text, AnalysisOptions.from_settings(settings.analysis, filename=str(file)))
    source = SourceText(text, str(file))
    has_errors = _print_diags(console, source, unit.diagnostics)

    if not unit.diagnostics:
        console.print("No diagnostics.")
    if has_errors:
        raise typer.Exit(code=1) from None


@inspect_app.command("symbols", help="Print the scope tree with every declared symbol.")
def inspect_symbols(
    file: Path = typer.Argument(..., help="Path to the Ayla source file."),
    no_color: bool = typer.Option(False, "--no-color", "-n", help="Disable ANSI color output."),
    log_level: LogLevel = typer.Option(
        LogLevel.warning,
        "--log-level",
        "-l",
        help="Set CLI log verbosity.",
    ),
) -> None:
    console = Console(no_color=no_color)
    _configure_logging(log_level)

    text = _read_source(console, file)
    unit = analyze_source(text, AnalysisOptions(filename=str(file)))
    has_errors = _print_diags(console, SourceText(text, str(file)), unit.diagnostics)
    if unit.symbols is not None:
        root = unit.symbols.root
        console.print(_scope_tree(root, TypeInferencer(), Tree(f"[cyan]{root.name}[/cyan]")))
    if has_errors:
        raise typer.Exit(code=1) from None


@inspect_app.command("hover", help="Show the hover text at a zero-based LINE and CHARACTER.")
def inspect_hover(
    file: Path = typer.Argument(..., help="Path to the Ayla source file."),
    line: int = typer.Argument(..., help="Zero-based line."),
    character: int = typer.Argument(..., help="Zero-based character."),
    no_color: bool = typer.Option(False, "--no-color", "-n", help="Disable ANSI color output."),
    log_level: LogLevel = typer.Option(
        LogLevel.warning,
        "--log-level",
        "-l",
        help="Set CLI log verbosity.",
    ),
) -> None:
    console = Console(no_color=no_color)
    _configure_logging(log_level)

    text = _read_source(console, file)
    position = _position(console, file, text, line, character)
    result = hover(DocumentSnapshot(uri=str(file), text=text), position)
    if result is None:
        console.print("No hover result.")
        return
    console.print(result.contents, markup=False, highlight=False, soft_wrap=True)


@inspect_app.command("definition", help="Show where the name at LINE and CHARACTER is declared.")
def inspect_definition(
    file: Path = typer.Argument(..., help="Path to the Ayla source file."),
    line: int = typer.Argument(..., help="Zero-based line."),
    character: int = typer.Argument(..., help="Zero-based character."),
    no_color: bool = typer.Option(False, "--no-color", "-n", help="Disable ANSI color output."),
    log_level: LogLevel = typer.Option(
        LogLevel.warning,
        "--log-level",
        "-l",
        help="Set CLI log verbosity.",
    ),
) -> None:
    console = Console(no_color=no_color)
    _configure_logging(log_level)

    text = _read_source(console, file)
    position = _position(console, file, text, line, character)
    result = definition(DocumentSnapshot(uri=str(file), text=text), position)
    if result is None:
        console.print("No definition found.")
        return
    start, end = result.range.start, result.range.end
    console.print(
        f"{result.uri}:{start.line + 1}:{start.character + 1} "
        f"(range {start.line}:{start.character}-{end.line}:{end.character})",
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


# Command aliases
inspect_app.command("p", help="Alias for `inspect parse`.")(inspect_parse)
inspect_app.command("c", help="Alias for `inspect check`.")(inspect_check)
inspect_app.command("s", help="Alias for `inspect symbols`.")(inspect_symbols)
inspect_app.command("h", help="Alias for `inspect hover`.")(inspect_hover)
inspect_app.command("d", help="Alias for `inspect definition`.")(inspect_definition)


if __name__ == "__main__":
    app()
