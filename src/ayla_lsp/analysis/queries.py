from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import assert_never

from ayla_lsp.analysis.documents import DocumentSnapshot
from ayla_lsp.analysis.options import AnalysisOptions
from ayla_lsp.analysis.pipeline import AnalysisUnit, analyze_source
from ayla_lsp.diag.diagnostic import Diagnostic
from ayla_lsp.diag.source import Position, TextRange
from ayla_lsp.sema.infer import TypeInferencer
from ayla_lsp.sema.locate import Target, locate_target
from ayla_lsp.sema.symbols import Scope, Symbol, SymbolKind
from ayla_lsp.sema.types import NamedType, render_type

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HoverResult:
    contents: str
    range: TextRange


@dataclass(frozen=True, slots=True)
class DefinitionResult:
    uri: str
    range: TextRange


@dataclass(slots=True)
class _Lookup:
    target: Target
    symbol: Symbol | None
    scope: Scope


def hover(
    snapshot: DocumentSnapshot,
    position: Position,
    options: AnalysisOptions | None = None,
) -> HoverResult | None:
    opts = _options_for(snapshot, options)
    inferencer = TypeInferencer()
    found = _lookup(analyze_source(snapshot.text, opts), position, inferencer)
    if found is None:
        return None

    ident = found.target.identifier
    if found.symbol is None:
        if not ident.synthetic:
            LOGGER.debug("Hover on unresolved name `%s` in %s", ident.value, snapshot.uri)
            return None
        text = ident.value
    else:
        text = describe(found.symbol, found.scope, inferencer)
    return HoverResult(contents=_fence(text, opts.hover_language), range=ident.span.to_range())


def definition(
    snapshot: DocumentSnapshot,
    position: Position,
    options: AnalysisOptions | None = None,
) -> DefinitionResult | None:
    opts = _options_for(snapshot, options)
    found = _lookup(analyze_source(snapshot.text, opts), position, TypeInferencer())
    if found is None or found.symbol is None or found.symbol.ident is None:
        return None
    return DefinitionResult(uri=snapshot.uri, range=found.symbol.ident.span.to_range())


def document_diagnostics(text: str, options: AnalysisOptions | None = None) -> list[Diagnostic]:
    return analyze_source(text, options).diagnostics


def describe(symbol: Symbol, scope: Scope, inferencer: TypeInferencer) -> str:
    kind = symbol.kind
    if kind is SymbolKind.VARIABLE:
        return f"egg {symbol.name} {render_type(inferencer.type_of(symbol, scope))}"
    if kind is SymbolKind.CONSTANT:
        return f"rock {symbol.name} {render_type(inferencer.type_of(symbol, scope))}"
    if kind is SymbolKind.FUNCTION:
        return f"fun {symbol.name}{symbol.detail or '()'}"
    if kind is SymbolKind.PARAMETER:
        return f"param {symbol.name} {render_type(symbol.declared_type)}"
    if kind is SymbolKind.STRUCT_FIELD:
        return f"field {symbol.name} {render_type(symbol.declared_type)}"
    if kind is SymbolKind.BUILTIN_TYPE:
        return f"type {symbol.name}"
    if kind is SymbolKind.USER_TYPE:
        return f"type {symbol.name} {render_type(symbol.declared_type)}"
    assert_never(kind)


def _lookup(unit: AnalysisUnit, position: Position, inferencer: TypeInferencer) -> _Lookup | None:
    target = locate_target(unit.program.statements, position)
    if target is None or unit.symbols is None:
        return None

    scope = unit.symbols.root.innermost(position)
    name = target.identifier.value
    if target.owner is not None:
        symbol = inferencer.member(scope, NamedType(target.owner), name)
        return _Lookup(target=target, symbol=symbol, scope=scope)
    if target.receiver is not None:
        receiver = inferencer.receiver_type(scope, target.receiver)
        symbol = inferencer.member(scope, receiver, name)
        return _Lookup(target=target, symbol=symbol, scope=scope)

    binding = inferencer.resolve_reference(scope, target.identifier)
    if binding is None:
        return _Lookup(target=target, symbol=None, scope=scope)
    symbol, bound_in = binding
    return _Lookup(target=target, symbol=symbol, scope=bound_in)


def _options_for(snapshot: DocumentSnapshot, options: AnalysisOptions | None) -> AnalysisOptions:
    return replace(options or AnalysisOptions(), filename=snapshot.uri)


def _fence(text: str, language: str) -> str:
    return f"```{language}\n{text}\n```"


__all__ = [
    "DefinitionResult",
    "HoverResult",
    "definition",
    "describe",
    "document_diagnostics",
    "hover",
]
