from __future__ import annotations

from dataclasses import dataclass

from ayla_lsp.config.types import AnalysisSettings


@dataclass(frozen=True, slots=True)
class AnalysisOptions:
    filename: str = "<input>"
    hover_language: str = "ayla"
    semantic_diagnostics: bool = True
    max_parse_errors: int = 25

    @classmethod
    def from_settings(cls, settings: AnalysisSettings, *, filename: str = "<input>") -> AnalysisOptions:
        return cls(
            filename=filename,
            hover_language=settings.hover_language,
            semantic_diagnostics=settings.semantic_diagnostics,
            max_parse_errors=settings.max_parse_errors,
        )
