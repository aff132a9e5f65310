from ayla_lsp.analysis import (
    AnalysisOptions,
    AnalysisUnit,
    DocumentSnapshot,
    DocumentStore,
    analyze_source,
    definition,
    document_diagnostics,
    hover,
)

__version__ = "0.1.0"

__all__ = [
    "AnalysisOptions",
    "AnalysisUnit",
    "DocumentSnapshot",
    "DocumentStore",
    "__version__",
    "analyze_source",
    "definition",
    "document_diagnostics",
    "hover",
]
