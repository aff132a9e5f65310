from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import assert_never

from ayla_lsp.diag.diagnostic import Diagnostic, DiagnosticLabel, Severity
from ayla_lsp.diag.source import Span
from ayla_lsp.parse import ast
from ayla_lsp.sema.symbols import Conflict, Scope, Symbol, SymbolKind, new_scope
from ayla_lsp.sema.types import BUILTIN_TYPE_NAMES, RecordType, render_type, type_from_ref

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class BuildResult:
    root: Scope
    diagnostics: list[Diagnostic] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)


def builtin_scope() -> Scope:
    root = new_scope(name="global")
    for name in BUILTIN_TYPE_NAMES:
        root.define(Symbol(name=name, kind=SymbolKind.BUILTIN_TYPE))
    return root


def function_detail(decl: ast.FuncDecl) -> str:
    params = ", ".join(f"{p.name.value} {render_type(type_from_ref(p.type))}" for p in decl.params)
    if decl.result is None:
        return f"({params})"
    return f"({params}) {render_type(type_from_ref(decl.result))}"


class SymbolBuilder:
    """Walks a statement list and records every declaration in nested scopes.

    Conflicting declarations never stop the walk: each one becomes a diagnostic
    on the duplicate identifier, the duplicate is skipped and the remaining
    statements are still built.
    """

    def build(self, statements: list[ast.Stmt]) -> BuildResult:
        result = BuildResult(root=builtin_scope())
        self._build_block(result.root, statements, result)
        LOGGER.debug(
            "Built symbol table: %s top-level symbol(s), %s conflict(s)",
            len(result.root.symbols),
            len(result.conflicts),
        )
        return result

    def _build_block(self, scope: Scope, statements: list[ast.Stmt], result: BuildResult) -> None:
        for stmt in statements:
            self._build_stmt(scope, stmt, result)

    def _build_stmt(self, scope: Scope, stmt: ast.Stmt, result: BuildResult) -> None:
        if isinstance(stmt, ast.VarDecl):
            for name in stmt.names:
                self._define(
                    scope,
                    Symbol(
                        name=name.value,
                        kind=SymbolKind.VARIABLE,
                        ident=name,
                        declared_type=None if stmt.type is None else type_from_ref(stmt.type),
                        initializer=stmt.value,
                    ),
                    result,
                )
        elif isinstance(stmt, ast.ConstDecl):
            for name in stmt.names:
                self._define(
                    scope,
                    Symbol(
                        name=name.value,
                        kind=SymbolKind.CONSTANT,
                        ident=name,
                        declared_type=None if stmt.type is None else type_from_ref(stmt.type),
                        initializer=stmt.value,
                    ),
                    result,
                )
        elif isinstance(stmt, ast.FuncDecl):
            self._build_function(scope, stmt, result)
        elif isinstance(stmt, ast.TypeDecl):
            self._build_type(scope, stmt, result)
        elif isinstance(stmt, ast.IfStmt):
            self._build_block(self._enter(scope, "if", stmt.then.span), stmt.then.statements, result)
            if stmt.otherwise is not None:
                else_scope = self._enter(scope, "else", stmt.otherwise.span)
                self._build_block(else_scope, stmt.otherwise.statements, result)
        elif isinstance(stmt, ast.ForStmt):
            loop_scope = self._enter(scope, "for", stmt.span)
            if stmt.init is not None:
                self._build_stmt(loop_scope, stmt.init, result)
            if stmt.post is not None:
                self._build_stmt(loop_scope, stmt.post, result)
            self._build_block(loop_scope, stmt.body.statements, result)
        elif isinstance(stmt, ast.WhileStmt):
            self._build_block(self._enter(scope, "while", stmt.body.span), stmt.body.statements, result)
        elif isinstance(stmt, ast.SpawnStmt):
            self._build_block(self._enter(scope, "spawn", stmt.body.span), stmt.body.statements, result)
        elif isinstance(stmt, (ast.Assign, ast.IndexAssign, ast.ExprStmt, ast.ReturnStmt)):
            return
        else:
            assert_never(stmt)

    def _build_function(self, scope: Scope, decl: ast.FuncDecl, result: BuildResult) -> None:
        name = decl.name
        self._define(
            scope,
            Symbol(
                name=name.value,
                kind=SymbolKind.FUNCTION,
                ident=name,
                detail=function_detail(decl),
            ),
            result,
        )
        body = decl.body.span
        span = Span(
            start_offset=name.span.end_offset,
            end_offset=body.end_offset,
            line=name.span.end_line,
            col=name.span.end_col,
            end_line=body.end_line,
            end_col=body.end_col,
            filename=body.filename,
        )
        fn_scope = self._enter(scope, f"fun:{name.value}", span)
        for param in decl.params:
            self._define(
                fn_scope,
                Symbol(
                    name=param.name.value,
                    kind=SymbolKind.PARAMETER,
                    ident=param.name,
                    declared_type=type_from_ref(param.type),
                    owner=name.value,
                ),
                result,
            )
        self._build_block(fn_scope, decl.body.statements, result)

    def _build_type(self, scope: Scope, decl: ast.TypeDecl, result: BuildResult) -> None:
        declared = type_from_ref(decl.type)
        symbol = Symbol(
            name=decl.name.value,
            kind=SymbolKind.USER_TYPE,
            ident=decl.name,
            declared_type=declared,
        )
        if isinstance(declared, RecordType) and isinstance(decl.type, ast.StructTypeRef):
            members = new_scope(name=f"struct:{decl.name.value}", span=decl.type.span)
            for field_decl in decl.type.fields:
                self._define(
                    members,
                    Symbol(
                        name=field_decl.name.value,
                        kind=SymbolKind.STRUCT_FIELD,
                        ident=field_decl.name,
                        declared_type=type_from_ref(field_decl.type),
                        owner=decl.name.value,
                    ),
                    result,
                )
            symbol.members = members
        self._define(scope, symbol, result)

    def _enter(self, parent: Scope, name: str, span: Span) -> Scope:
        scope = new_scope(parent, name=name, span=span)
        LOGGER.debug("Enter scope %s at %s:%s", name, span.line, span.col)
        return scope

    def _define(self, scope: Scope, symbol: Symbol, result: BuildResult) -> None:
        ident = symbol.ident
        if ident is None:
            raise ValueError(f"user symbol `{symbol.name}` has no declaring identifier")
        if symbol.name in BUILTIN_TYPE_NAMES:
            result.diagnostics.append(self._builtin(ident.span, symbol.name))
            return

        outcome = scope.define(symbol)
        if isinstance(outcome, Conflict):
            result.conflicts.append(outcome)
            previous = outcome.previous.ident
            result.diagnostics.append(
                self._dup(ident.span, symbol.name, previous=None if previous is None else previous.span)
            )
            return
        LOGGER.debug("Define %s %s in scope %s", symbol.kind.value, symbol.name, scope.name)

    def _dup(self, span: Span, name: str, *, previous: Span | None = None) -> Diagnostic:
        labels: list[DiagnosticLabel] = [
            DiagnosticLabel(span=span, message="redefined here", is_primary=True)
        ]
        notes: list[str] = []
        if previous is not None:
            labels.append(
                DiagnosticLabel(span=previous, message="previous definition here", is_primary=False)
            )
            notes.append(f"previous definition at {previous.filename}:{previous.line}:{previous.col}")
        return Diagnostic(
            severity=Severity.ERROR,
            code="AYLA2002",
            message=f"redefinition of `{name}` in same scope",
            span=span,
            labels=labels,
            notes=notes,
            help=[f"Rename one of the declarations of `{name}` in this scope."],
        )

    def _builtin(self, span: Span, name: str) -> Diagnostic:
        return Diagnostic(
            severity=Severity.ERROR,
            code="AYLA2003",
            message=f"cannot redefine built-in type `{name}`",
            span=span,
            help=[f"Pick a name other than the built-in types: {', '.join(BUILTIN_TYPE_NAMES)}."],
        )


__all__ = ["BuildResult", "SymbolBuilder", "builtin_scope", "function_detail"]
