from __future__ import annotations

from lsprotocol import types

from ayla_lsp.analysis.queries import DefinitionResult, HoverResult
from ayla_lsp.diag.diagnostic import Diagnostic, Severity
from ayla_lsp.diag.source import Position, TextRange

SOURCE = "ayla-lsp"

_SEVERITIES = {
    Severity.ERROR: types.DiagnosticSeverity.Error,
    Severity.WARNING: types.DiagnosticSeverity.Warning,
    Severity.INFO: types.DiagnosticSeverity.Information,
}


def _line(text: str, line: int) -> str:
    lines = text.split("\n")
    return lines[line] if 0 <= line < len(lines) else ""


def _width(ch: str) -> int:
    return 2 if ord(ch) > 0xFFFF else 1


def position_from_lsp(position: types.Position, text: str = "") -> Position:
    """Convert a UTF-16 client position to a code point column on the same line."""
    line = _line(text, position.line)
    units = 0
    for index, ch in enumerate(line):
        if units >= position.character:
            return Position(line=position.line, character=index)
        units += _width(ch)
    return Position(line=position.line, character=len(line) + max(0, position.character - units))


def position_to_lsp(position: Position, text: str = "") -> types.Position:
    line = _line(text, position.line)
    prefix = line[: position.character]
    units = sum(_width(ch) for ch in prefix) + max(0, position.character - len(prefix))
    return types.Position(line=position.line, character=units)


def range_to_lsp(text_range: TextRange, text: str = "") -> types.Range:
    return types.Range(
        start=position_to_lsp(text_range.start, text),
        end=position_to_lsp(text_range.end, text),
    )


def diagnostic_to_lsp(diag: Diagnostic, uri: str, text: str = "") -> types.Diagnostic:
    related = [
        types.DiagnosticRelatedInformation(
            location=types.Location(uri=uri, range=range_to_lsp(label.span.to_range(), text)),
            message=label.message,
        )
        for label in diag.labels
        if not label.is_primary
    ]
    message = diag.message if not diag.notes else f"{diag.message}; {'; '.join(diag.notes)}"
    return types.Diagnostic(
        range=range_to_lsp(diag.span.to_range(), text),
        message=message,
        severity=_SEVERITIES[diag.severity],
        code=diag.code,
        source=SOURCE,
        related_information=related or None,
    )


def hover_to_lsp(result: HoverResult, text: str = "") -> types.Hover:
    return types.Hover(
        contents=types.MarkupContent(kind=types.MarkupKind.Markdown, value=result.contents),
        range=range_to_lsp(result.range, text),
    )


def definition_to_lsp(result: DefinitionResult, text: str = "") -> types.Location:
    return types.Location(uri=result.uri, range=range_to_lsp(result.range, text))
