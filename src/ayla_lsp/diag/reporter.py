from __future__ import annotations

from collections import Counter

from rich.console import Console
from rich.text import Text

from ayla_lsp.diag.diagnostic import Diagnostic, DiagnosticLabel, Severity
from ayla_lsp.diag.source import SourceRepository, SourceText, Span

_STYLES = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}


class DiagnosticReporter:
    """Renders diagnostics as rustc-style excerpts on a rich console."""

    TAB_SIZE = 4

    def __init__(
        self,
        console: Console | None = None,
        *,
        repository: SourceRepository | None = None,
    ) -> None:
        self.console = console or Console(stderr=True)
        self.repository = repository or SourceRepository()

    def render_text(self, source: SourceText | None, diag: Diagnostic) -> str:
        filename = diag.span.filename
        lines = [
            f"{diag.severity.value}[{diag.code}]: {diag.message}",
            f"  --> {filename}:{max(1, diag.span.line)}:{max(1, diag.span.col)}",
        ]

        resolved = self._resolve_source(source, filename)
        if resolved is None:
            lines.append("   = note: source is unavailable for this diagnostic span")
        else:
            lines.append("   |")
            for idx, label in enumerate(self._labels_for(diag)):
                if idx > 0:
                    lines.append("   |")
                lines.extend(self._render_label(resolved, label))

        lines.extend(f"   = note: {note}" for note in diag.notes)
        lines.extend(f"   = help: {item}" for item in diag.help)
        return "\n".join(lines)

    def print(self, source: SourceText | None, diagnostics: list[Diagnostic]) -> None:
        ordered = sorted(
            diagnostics,
            key=lambda d: (d.span.filename, d.span.line, d.span.col),
        )
        for diag in ordered:
            self.console.print(Text(self.render_text(source, diag), style=_STYLES[diag.severity]))
            self.console.print()
        if diagnostics:
            self.console.print(self.render_summary(diagnostics))

    def render_summary(self, diagnostics: list[Diagnostic]) -> str:
        counts = Counter(d.severity for d in diagnostics)
        errors = counts[Severity.ERROR]
        warnings = counts[Severity.WARNING]
        infos = counts[Severity.INFO]
        verdict = "aborting due to" if errors else "finished with"
        return f"{verdict} {errors} error(s), {warnings} warning(s), {infos} info message(s)"

    def _resolve_source(self, source: SourceText | None, filename: str) -> SourceText | None:
        if source is not None:
            self.repository.remember(source)
            if source.filename == filename:
                return source
        return self.repository.get(filename)

    def _labels_for(self, diag: Diagnostic) -> list[DiagnosticLabel]:
        labels = list(diag.labels)
        if not labels:
            return [DiagnosticLabel(span=diag.span, is_primary=True)]
        if not any(label.is_primary for label in labels):
            first = labels[0]
            labels[0] = DiagnosticLabel(span=first.span, message=first.message, is_primary=True)
        return labels

    def _render_label(self, source: SourceText, label: DiagnosticLabel) -> list[str]:
        span = label.span
        start_line = max(1, min(span.line, source.line_count))
        end_line = max(start_line, min(span.end_line, source.line_count))
        marker_char = "^" if label.is_primary else "-"
        rendered: list[str] = []

        for line_no in range(start_line, end_line + 1):
            raw = source.line_text(line_no)
            start_col, end_col = self._columns(raw, span, line_no)
            start_visual = self._visual_col(raw, start_col)
            width = max(1, self._visual_col(raw, end_col) - start_visual)
            marker = " " * start_visual + marker_char * width
            rendered.append(f"{line_no:>3} | {raw.expandtabs(self.TAB_SIZE)}")
            if line_no == start_line and label.message:
                rendered.append(f"   | {marker} {label.message}")
            else:
                rendered.append(f"   | {marker}")
        return rendered

    def _columns(self, raw: str, span: Span, line_no: int) -> tuple[int, int]:
        max_col = len(raw) + 1
        start = max(1, span.col) if line_no == span.line else 1
        end = max(start + 1, span.end_col) if line_no == span.end_line else max_col
        start = min(max_col, start)
        end = min(max_col, end)
        if end <= start:
            end = min(max_col, start + 1)
        return start, end

    def _visual_col(self, raw: str, col: int) -> int:
        return len(raw[: max(0, col - 1)].expandtabs(self.TAB_SIZE))
