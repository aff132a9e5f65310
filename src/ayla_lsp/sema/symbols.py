from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ayla_lsp.diag.source import Position, Span
from ayla_lsp.parse import ast
from ayla_lsp.sema.types import Type


class SymbolKind(str, Enum):
    VARIABLE = "variable"
    CONSTANT = "constant"
    FUNCTION = "function"
    PARAMETER = "parameter"
    BUILTIN_TYPE = "builtin_type"
    USER_TYPE = "user_type"
    STRUCT_FIELD = "struct_field"


@dataclass(slots=True, eq=False)
class Symbol:
    """A declared name.

    `ident` is the declaring identifier (None for built-ins). `owner` is the
    name of the enclosing type or function, looked up on demand. `members`
    holds the field scope of a struct type. `inferred_type` is filled lazily
    from `initializer` and lives only as long as the table that owns it.
    """

    name: str
    kind: SymbolKind
    ident: ast.Identifier | None = None
    declared_type: Type | None = None
    initializer: ast.Expr | None = None
    owner: str | None = None
    detail: str | None = None
    members: Scope | None = None
    inferred_type: Type | None = None

    @property
    def decl_site(self) -> tuple[int, int] | None:
        if self.ident is None:
            return None
        return self.ident.span.line, self.ident.span.col


@dataclass(frozen=True, slots=True)
class Defined:
    symbol: Symbol


@dataclass(frozen=True, slots=True)
class Conflict:
    symbol: Symbol
    previous: Symbol


DefineResult = Defined | Conflict


@dataclass(slots=True, eq=False)
class Scope:
    name: str
    span: Span | None = None
    parent: Scope | None = field(default=None, repr=False)
    symbols: dict[str, Symbol] = field(default_factory=dict)
    children: list[Scope] = field(default_factory=list, repr=False)

    def define(self, symbol: Symbol) -> DefineResult:
        previous = self.symbols.get(symbol.name)
        if previous is not None:
            return Conflict(symbol=symbol, previous=previous)
        self.symbols[symbol.name] = symbol
        return Defined(symbol=symbol)

    def resolve(self, name: str) -> Symbol | None:
        found = self.resolve_binding(name)
        return None if found is None else found[0]

    def resolve_binding(self, name: str) -> tuple[Symbol, Scope] | None:
        cur: Scope | None = self
        while cur is not None:
            if name in cur.symbols:
                return cur.symbols[name], cur
            cur = cur.parent
        return None

    def innermost(self, position: Position) -> Scope:
        for child in self.children:
            if child.span is not None and child.span.contains(position):
                return child.innermost(position)
        return self


def new_scope(parent: Scope | None = None, *, name: str, span: Span | None = None) -> Scope:
    scope = Scope(name=name, span=span, parent=parent)
    if parent is not None:
        parent.children.append(scope)
    return scope
