from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ayla_lsp.analysis.options import AnalysisOptions
from ayla_lsp.diag.diagnostic import Diagnostic
from ayla_lsp.parse.ast import Program
from ayla_lsp.parse.parser import ParseError, parse_source
from ayla_lsp.sema.builder import BuildResult, SymbolBuilder

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class AnalysisUnit:
    program: Program
    parse_errors: list[ParseError] = field(default_factory=list)
    symbols: BuildResult | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(d.is_error for d in self.diagnostics)


def analyze_source(text: str, options: AnalysisOptions | None = None) -> AnalysisUnit:
    """Parse `text` and build a fresh symbol table for it.

    Nothing is cached: each call produces a new unit that the caller owns.
    """
    opts = options or AnalysisOptions()
    parsed = parse_source(text, opts.filename, max_errors=opts.max_parse_errors)
    unit = AnalysisUnit(program=parsed.program, parse_errors=list(parsed.errors))
    unit.diagnostics.extend(error.to_diagnostic(opts.filename) for error in parsed.errors)

    unit.symbols = SymbolBuilder().build(parsed.program.statements)
    if opts.semantic_diagnostics:
        unit.diagnostics.extend(unit.symbols.diagnostics)

    LOGGER.debug(
        "Analyzed %s: %s statement(s), %s diagnostic(s)",
        opts.filename,
        len(parsed.program.statements),
        len(unit.diagnostics),
    )
    return unit
