from ayla_lsp.analysis.documents import DocumentSnapshot, DocumentStore
from ayla_lsp.analysis.options import AnalysisOptions
from ayla_lsp.analysis.pipeline import AnalysisUnit, analyze_source
from ayla_lsp.analysis.queries import (
    DefinitionResult,
    HoverResult,
    definition,
    document_diagnostics,
    hover,
)

__all__ = [
    "AnalysisOptions",
    "AnalysisUnit",
    "DefinitionResult",
    "DocumentSnapshot",
    "DocumentStore",
    "HoverResult",
    "analyze_source",
    "definition",
    "document_diagnostics",
    "hover",
]
