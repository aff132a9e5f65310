from __future__ import annotations

import re

from typer.testing import CliRunner

from ayla_lsp.cli import app


def _strip_ansi(text: str) -> str:
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


def test_root_help_includes_command_descriptions() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["-h"], env={"COLUMNS": "120"})

    assert result.exit_code == 0
    assert "Run the language server over stdio." in result.stdout
    assert "Run the analysis core on a file without an editor" in result.stdout


def test_inspect_help_lists_commands_and_aliases() -> None:
    runner = CliRunner()
    env = {"COLUMNS": "120"}

    inspect_help = runner.invoke(app, ["inspect", "-h"], env=env)
    assert inspect_help.exit_code == 0
    assert "Parse an Ayla file and print its syntax tree." in inspect_help.stdout
    assert "Report parse errors and declaration conflicts." in inspect_help.stdout
    assert "Print the scope tree with every declared symbol." in inspect_help.stdout
    assert "Alias for `inspect hover`." in inspect_help.stdout
    assert "Alias for `inspect definition`." in inspect_help.stdout

    hover_help = runner.invoke(app, ["inspect", "hover", "-h"], env=env)
    assert hover_help.exit_code == 0
    plain = _strip_ansi(hover_help.stdout)
    assert "Zero-based line." in plain
    assert "--no-color" in plain


def test_serve_help_lists_logging_options() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["serve", "-h"], env={"COLUMNS": "120"})
    assert result.exit_code == 0
    plain = _strip_ansi(result.stdout)
    assert "--log-level" in plain
    assert "--no-log-file" in plain
