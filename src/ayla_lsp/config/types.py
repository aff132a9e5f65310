from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class LogLevel(str, Enum):
    debug = "debug"
    info = "info"
    warning = "warning"
    error = "error"


@dataclass(frozen=True, slots=True)
class ServerSettings:
    log_level: LogLevel = LogLevel.info
    log_file: str | None = "ayla-lsp.log"


@dataclass(frozen=True, slots=True)
class AnalysisSettings:
    hover_language: str = "ayla"
    semantic_diagnostics: bool = True
    max_parse_errors: int = 25


@dataclass(frozen=True, slots=True)
class AylaConfig:
    schema_version: str = "1"
    server: ServerSettings = field(default_factory=ServerSettings)
    analysis: AnalysisSettings = field(default_factory=AnalysisSettings)
