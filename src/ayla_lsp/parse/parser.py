from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import cast

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken
from lark.lark import PostLex
from lark.lexer import PatternStr

from ayla_lsp.diag.diagnostic import Diagnostic, Severity
from ayla_lsp.diag.source import point_span
from ayla_lsp.parse.ast import Program
from ayla_lsp.parse.ast_builder import ASTBuilder

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_ERRORS = 25

_WORD = re.compile(r"\w+|\S")

_CLOSERS = {"RBRACE": ("{", "\n}"), "RPAR": ("(", ")"), "RSQB": ("[", "]")}


class _BracketNewlines(PostLex):
    """Drops newline tokens nested inside parentheses or brackets."""

    always_accept = ("_NL",)

    def process(self, stream: Iterator[Token]) -> Iterator[Token]:
        depth = 0
        for token in stream:
            if token.type in ("LPAR", "LSQB"):
                depth += 1
            elif token.type in ("RPAR", "RSQB"):
                depth = max(0, depth - 1)
            elif token.type == "_NL" and depth:
                continue
            yield token


@lru_cache(maxsize=1)
def _parser() -> Lark:
    grammar = Path(__file__).with_name("grammar.lark").read_text(encoding="utf-8")
    return Lark(
        grammar,
        parser="lalr",
        lexer="contextual",
        postlex=_BracketNewlines(),
        propagate_positions=True,
        maybe_placeholders=False,
        start="start",
    )


@dataclass(frozen=True, slots=True)
class ParseError:
    """One syntax error; `line` and `column` are one-based."""

    line: int
    column: int
    token: str
    message: str
    expected: tuple[str, ...] = ()

    @property
    def length(self) -> int:
        return len(self.token)

    def to_diagnostic(self, filename: str = "<input>") -> Diagnostic:
        note = expected_note(list(self.expected))
        return Diagnostic(
            severity=Severity.ERROR,
            code="AYLA1001",
            message=self.message,
            span=point_span(self.line, self.column, self.length, filename=filename),
            notes=[] if note is None else [note],
        )


@dataclass(slots=True)
class ParseResult:
    program: Program
    errors: list[ParseError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _friendly_expected(expected: list[str]) -> list[str]:
    parser = _parser()
    normalized: list[str] = []
    for name in expected:
        try:
            pattern = parser.get_terminal(name).pattern
        except KeyError:
            normalized.append(name.lower())
            continue
        if isinstance(pattern, PatternStr):
            normalized.append(f"`{pattern.value}`")
        elif name == "_NL":
            normalized.append("newline")
        else:
            normalized.append(name.lower())
    return list(dict.fromkeys(normalized))


def expected_note(expected: list[str]) -> str | None:
    if not expected:
        return None
    pretty = _friendly_expected(expected)
    limit = 8
    shown = pretty[:limit]
    extra = len(pretty) - len(shown)
    suffix = "" if extra <= 0 else f", ... (+{extra} more)"
    return f"expected one of: {', '.join(shown)}{suffix}"


def _error_from(exc: UnexpectedInput, text: str) -> ParseError:
    expected = tuple(sorted(getattr(exc, "expected", None) or ()))
    line = exc.line if isinstance(exc.line, int) and exc.line > 0 else 1
    column = exc.column if isinstance(exc.column, int) and exc.column > 0 else 1

    if isinstance(exc, UnexpectedToken):
        token = exc.token
        if token.type == "$END":
            return ParseError(
                line=line,
                column=column,
                token="",
                message="unexpected end of input",
                expected=expected,
            )
        value = str(token.value)
        if token.type == "_NL":
            return ParseError(
                line=line,
                column=column,
                token="",
                message="unexpected end of line",
                expected=expected,
            )
        return ParseError(
            line=line,
            column=column,
            token=value,
            message=f"unexpected token `{value}`",
            expected=expected,
        )

    offending = ""
    if isinstance(exc, UnexpectedCharacters):
        match = _WORD.match(text, exc.pos_in_stream)
        offending = match.group(0) if match else ""
    return ParseError(
        line=line,
        column=column,
        token=offending,
        message=f"unexpected character `{offending[:1]}`" if offending else "unexpected input",
        expected=expected,
    )


def _blank(text: str, start: int, end: int) -> str:
    kept = "".join(ch if ch in "\r\n" else " " for ch in text[start:end])
    return text[:start] + kept + text[end:]


def _blank_line(text: str, line: int) -> str | None:
    lines = text.split("\n")
    idx = line - 1
    if idx < 0 or idx >= len(lines) or not lines[idx].strip():
        return None
    start = sum(len(raw) + 1 for raw in lines[:idx])
    return _blank(text, start, start + len(lines[idx]))


def _blank_token(text: str, exc: UnexpectedInput) -> str | None:
    if isinstance(exc, UnexpectedToken):
        start = exc.token.start_pos
        length = len(str(exc.token.value))
    elif isinstance(exc, UnexpectedCharacters):
        start = exc.pos_in_stream
        match = _WORD.match(text, start)
        length = len(match.group(0)) if match else 0
    else:
        return None
    if not isinstance(start, int) or length <= 0 or not text[start : start + length].strip():
        return None
    return _blank(text, start, start + length)


def _close_block(text: str, original: str, exc: UnexpectedToken, added: dict[str, int]) -> str | None:
    for name, (opener, closer) in _CLOSERS.items():
        if name in exc.expected and added.get(name, 0) < original.count(opener):
            added[name] = added.get(name, 0) + 1
            return text + closer
    return None


def parse_program(text: str) -> Tree[object]:
    """Raw lark parse; raises lark's `UnexpectedInput` on the first error."""
    return cast(Tree[object], _parser().parse(text))


def parse_source(
    text: str,
    filename: str | None = None,
    *,
    max_errors: int = DEFAULT_MAX_ERRORS,
) -> ParseResult:
    """Parse Ayla source into a program plus every syntax error found.

    Each faulty line reports one error. The offending token is blanked first
    and the whole line only if the same line fails again; blanking keeps every
    position intact. A premature end of input is repaired by closing the open
    block, so the enclosing declaration survives.
    """
    actual_name = filename or "<input>"
    builder = ASTBuilder(text=text, filename=actual_name)
    errors: list[ParseError] = []
    error_lines: set[int] = set()
    added: dict[str, int] = {}
    current = text

    while True:
        try:
            tree = parse_program(current)
        except UnexpectedInput as exc:
            error = _error_from(exc, current)
            repeated = error.line in error_lines
            if isinstance(exc, UnexpectedToken) and exc.token.type == "$END":
                if not errors:
                    errors.append(error)
                    error_lines.add(error.line)
                repaired = _close_block(current, text, exc, added) or _blank_line(current, error.line)
            else:
                if not repeated:
                    errors.append(error)
                    error_lines.add(error.line)
                    LOGGER.debug("Parse error in %s at %s:%s", actual_name, error.line, error.column)
                repaired = None if repeated else _blank_token(current, exc)
                repaired = repaired or _blank_line(current, error.line)
            if len(errors) >= max_errors or repaired is None:
                LOGGER.info("Giving up on %s after %s parse error(s)", actual_name, len(errors))
                return ParseResult(program=builder.empty_program(), errors=errors)
            current = repaired
            continue
        return ParseResult(program=builder.build(tree), errors=errors)


def parse_to_ast(text: str, filename: str | None = None) -> Program:
    return parse_source(text, filename).program
