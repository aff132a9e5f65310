from __future__ import annotations

from dataclasses import dataclass
from typing import assert_never

from ayla_lsp.diag.source import Position, Span
from ayla_lsp.parse import ast
from ayla_lsp.sema.types import render_type, type_from_ref

_STRUCT_KEYWORD = "struct"


@dataclass(frozen=True, slots=True)
class Target:
    """Identifier under the cursor plus its member context.

    `owner` names the struct type a field belongs to; `receiver` is the
    expression a `.field` is selected from. Both are None for plain names.
    """

    identifier: ast.Identifier
    owner: str | None = None
    receiver: ast.Expr | None = None


def token_matches(ident: ast.Identifier, position: Position) -> bool:
    if ident.synthetic:
        return ident.span.contains(position)
    if position.line != ident.span.line - 1:
        return False
    end = ident.span.end_col - 1
    return end - len(ident.value) <= position.character < end


def locate_target(statements: list[ast.Stmt], position: Position) -> Target | None:
    return _Locator(position).statements(statements)


def locate(statements: list[ast.Stmt], position: Position) -> ast.Identifier | None:
    target = locate_target(statements, position)
    return None if target is None else target.identifier


class _Locator:
    def __init__(self, position: Position) -> None:
        self.position = position

    def statements(self, statements: list[ast.Stmt]) -> Target | None:
        for stmt in statements:
            found = self.stmt(stmt)
            if found is not None:
                return found
        return None

    def stmt(self, stmt: ast.Stmt) -> Target | None:
        if isinstance(stmt, (ast.VarDecl, ast.ConstDecl)):
            return (
                self.names(stmt.names)
                or self.optional_type(stmt.type)
                or self.optional_expr(stmt.value)
            )
        if isinstance(stmt, ast.Assign):
            return self.names(stmt.targets) or self.expr(stmt.value)
        if isinstance(stmt, ast.IndexAssign):
            return self.expr(stmt.target) or self.expr(stmt.index) or self.expr(stmt.value)
        if isinstance(stmt, ast.ExprStmt):
            return self.expr(stmt.expr)
        if isinstance(stmt, ast.FuncDecl):
            found = self.ident(stmt.name)
            for param in stmt.params:
                found = found or self.ident(param.name) or self.type_ref(param.type)
            return found or self.optional_type(stmt.result) or self.statements(stmt.body.statements)
        if isinstance(stmt, ast.TypeDecl):
            found = self.ident(stmt.name)
            if found is not None:
                return found
            if isinstance(stmt.type, ast.StructTypeRef):
                return self.struct_body(stmt.type, owner=stmt.name.value)
            return self.type_ref(stmt.type)
        if isinstance(stmt, ast.IfStmt):
            return (
                self.expr(stmt.cond)
                or self.statements(stmt.then.statements)
                or (None if stmt.otherwise is None else self.statements(stmt.otherwise.statements))
            )
        if isinstance(stmt, ast.ForStmt):
            return (
                (None if stmt.init is None else self.stmt(stmt.init))
                or self.optional_expr(stmt.cond)
                or (None if stmt.post is None else self.stmt(stmt.post))
                or self.statements(stmt.body.statements)
            )
        if isinstance(stmt, ast.WhileStmt):
            return self.expr(stmt.cond) or self.statements(stmt.body.statements)
        if isinstance(stmt, ast.SpawnStmt):
            return self.statements(stmt.body.statements)
        if isinstance(stmt, ast.ReturnStmt):
            return self.optional_expr(stmt.value)
        assert_never(stmt)

    def expr(self, expr: ast.Expr) -> Target | None:
        if isinstance(expr, ast.Identifier):
            return self.ident(expr)
        if isinstance(expr, (ast.IntLit, ast.FloatLit, ast.StringLit, ast.BoolLit)):
            return None
        if isinstance(expr, ast.ArrayLit):
            for element in expr.elements:
                found = self.expr(element)
                if found is not None:
                    return found
            return None
        if isinstance(expr, ast.StructLit):
            found = self.ident(expr.type_name)
            for init in expr.fields:
                found = found or self.ident(init.name, owner=expr.type_name.value) or self.expr(init.value)
            return found
        if isinstance(expr, ast.AnonStructLit):
            for init in expr.fields:
                found = self.expr(init.value)
                if found is not None:
                    return found
            return None
        if isinstance(expr, ast.Prefix):
            return self.expr(expr.operand)
        if isinstance(expr, ast.Infix):
            return self.expr(expr.left) or self.expr(expr.right)
        if isinstance(expr, ast.Index):
            return self.expr(expr.target) or self.expr(expr.index)
        if isinstance(expr, ast.Member):
            return self.expr(expr.target) or self.ident(expr.field, receiver=expr.target)
        if isinstance(expr, ast.Call):
            found = self.ident(expr.callee)
            for arg in expr.args:
                found = found or self.expr(arg)
            return found
        assert_never(expr)

    def type_ref(self, ref: ast.TypeRef) -> Target | None:
        if isinstance(ref, ast.NamedTypeRef):
            return self.synthetic(ref.span, ref.name)
        if isinstance(ref, ast.ArrayTypeRef):
            return self.type_ref(ref.elem)
        if isinstance(ref, ast.StructTypeRef):
            display = render_type(type_from_ref(ref))
            found = self.synthetic(_keyword_span(ref.span), display)
            for field_decl in ref.fields:
                found = (
                    found
                    or self.synthetic(field_decl.name.span, display)
                    or self.type_ref(field_decl.type)
                )
            return found
        assert_never(ref)

    def struct_body(self, ref: ast.StructTypeRef, *, owner: str) -> Target | None:
        found = self.synthetic(_keyword_span(ref.span), render_type(type_from_ref(ref)))
        for field_decl in ref.fields:
            found = found or self.ident(field_decl.name, owner=owner) or self.type_ref(field_decl.type)
        return found

    def optional_type(self, ref: ast.TypeRef | None) -> Target | None:
        return None if ref is None else self.type_ref(ref)

    def optional_expr(self, expr: ast.Expr | None) -> Target | None:
        return None if expr is None else self.expr(expr)

    def names(self, names: list[ast.Identifier]) -> Target | None:
        for name in names:
            found = self.ident(name)
            if found is not None:
                return found
        return None

    def ident(
        self,
        ident: ast.Identifier,
        *,
        owner: str | None = None,
        receiver: ast.Expr | None = None,
    ) -> Target | None:
        if token_matches(ident, self.position):
            return Target(identifier=ident, owner=owner, receiver=receiver)
        return None

    def synthetic(self, span: Span, display: str) -> Target | None:
        ident = ast.Identifier(span=span, value=display, synthetic=True)
        return self.ident(ident)


def _keyword_span(span: Span) -> Span:
    width = len(_STRUCT_KEYWORD)
    return Span(
        start_offset=span.start_offset,
        end_offset=span.start_offset + width,
        line=span.line,
        col=span.col,
        end_line=span.line,
        end_col=span.col + width,
        filename=span.filename,
    )


__all__ = ["Target", "locate", "locate_target", "token_matches"]
