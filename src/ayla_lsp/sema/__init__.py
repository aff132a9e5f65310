from ayla_lsp.sema.builder import BuildResult, SymbolBuilder
from ayla_lsp.sema.infer import TypeInferencer
from ayla_lsp.sema.locate import Target, locate, locate_target
from ayla_lsp.sema.symbols import Conflict, Defined, Scope, Symbol, SymbolKind, new_scope

__all__ = [
    "BuildResult",
    "Conflict",
    "Defined",
    "Scope",
    "Symbol",
    "SymbolBuilder",
    "SymbolKind",
    "Target",
    "TypeInferencer",
    "locate",
    "locate_target",
    "new_scope",
]
