from __future__ import annotations

from pathlib import Path

from ayla_lsp.diag.diagnostic import Diagnostic, Severity
from ayla_lsp.diag.source import point_span


def file_read_error(path: Path, exc: OSError) -> Diagnostic:
    return Diagnostic(
        severity=Severity.ERROR,
        code="AYLA4003",
        message=f"failed to read file: {path}",
        span=point_span(1, 1, 1, filename=str(path)),
        notes=[str(exc)],
        help=["Verify the file path exists and is readable."],
    )


def config_load_error(path: Path, exc: Exception) -> Diagnostic:
    return Diagnostic(
        severity=Severity.ERROR,
        code="AYLA4004",
        message=f"failed to load config TOML: {path}",
        span=point_span(1, 1, 1, filename=str(path)),
        notes=[str(exc)],
        help=["Ensure the config is valid TOML with `schema_version = \"1\"`."],
    )


def invalid_position(message: str, *, path: Path) -> Diagnostic:
    return Diagnostic(
        severity=Severity.ERROR,
        code="AYLA4001",
        message=message,
        span=point_span(1, 1, 1, filename=str(path)),
        help=["Lines and characters are zero-based, as in the editor protocol."],
    )
