from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class Position:
    """Zero-based editor coordinate."""

    line: int
    character: int


@dataclass(frozen=True, slots=True)
class TextRange:
    start: Position
    end: Position


@dataclass(frozen=True, slots=True)
class Span:
    """One-based source region; `end_col` is the column just past the last character."""

    start_offset: int
    end_offset: int
    line: int
    col: int
    end_line: int
    end_col: int
    filename: str = "<input>"

    def contains(self, position: Position) -> bool:
        point = (position.line + 1, position.character + 1)
        return (self.line, self.col) <= point < (self.end_line, self.end_col)

    def to_range(self) -> TextRange:
        return TextRange(
            start=Position(line=self.line - 1, character=self.col - 1),
            end=Position(line=self.end_line - 1, character=self.end_col - 1),
        )


def point_span(line: int, col: int, length: int, *, filename: str = "<input>") -> Span:
    width = max(length, 1)
    return Span(
        start_offset=0,
        end_offset=width,
        line=line,
        col=col,
        end_line=line,
        end_col=col + width,
        filename=filename,
    )


class SourceText:
    def __init__(self, text: str, filename: str = "<input>") -> None:
        self.text = text
        self.filename = filename
        self._lines = text.split("\n")

    def line_text(self, line: int) -> str:
        if line < 1 or line > len(self._lines):
            return ""
        return self._lines[line - 1].rstrip("\r")

    @property
    def line_count(self) -> int:
        return len(self._lines)


class SourceRepository:
    def __init__(self) -> None:
        self._cache: dict[str, SourceText | None] = {}

    def remember(self, source: SourceText) -> SourceText:
        self._cache[source.filename] = source
        return source

    def get(self, filename: str) -> SourceText | None:
        if filename in self._cache:
            return self._cache[filename]
        if filename.startswith("<") and filename.endswith(">"):
            self._cache[filename] = None
            return None
        try:
            path = Path(filename)
            if not path.is_file():
                self._cache[filename] = None
                return None
            text = path.read_text(encoding="utf-8")
        except OSError:
            self._cache[filename] = None
            return None
        return self.remember(SourceText(text=text, filename=filename))
