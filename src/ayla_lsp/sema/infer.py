from __future__ import annotations

import logging
from typing import assert_never

from ayla_lsp.parse import ast
from ayla_lsp.sema.symbols import Scope, Symbol, SymbolKind
from ayla_lsp.sema.types import (
    BOOL,
    FLOAT,
    INT,
    STRING,
    STRUCT,
    UNKNOWN,
    ArrayType,
    NamedType,
    RecordType,
    Type,
    is_unknown,
    promote_numeric,
    same_type,
)

LOGGER = logging.getLogger(__name__)


class TypeInferencer:
    """Best-effort structural typing of expressions.

    `infer` never mutates the table. `type_of` is the single place where an
    inferred type is memoised onto a symbol.
    """

    def infer(self, scope: Scope, expr: ast.Expr) -> Type:
        return self._infer(scope, expr, frozenset())

    def type_of(self, symbol: Symbol, scope: Scope) -> Type:
        if symbol.declared_type is not None:
            return symbol.declared_type
        if symbol.inferred_type is not None:
            return symbol.inferred_type
        if symbol.initializer is None:
            return UNKNOWN
        inferred = self._infer(scope, symbol.initializer, frozenset({id(symbol)}))
        symbol.inferred_type = inferred
        LOGGER.debug("Inferred %s for %s", inferred, symbol.name)
        return inferred

    def _infer(self, scope: Scope, expr: ast.Expr, visiting: frozenset[int]) -> Type:
        if isinstance(expr, ast.IntLit):
            return INT
        if isinstance(expr, ast.FloatLit):
            return FLOAT
        if isinstance(expr, ast.StringLit):
            return STRING
        if isinstance(expr, ast.BoolLit):
            return BOOL
        if isinstance(expr, ast.ArrayLit):
            return self._array(scope, expr, visiting)
        if isinstance(expr, ast.StructLit):
            return NamedType(expr.type_name.value)
        if isinstance(expr, ast.AnonStructLit):
            return STRUCT
        if isinstance(expr, ast.Infix):
            left = self._infer(scope, expr.left, visiting)
            right = self._infer(scope, expr.right, visiting)
            if is_unknown(left) or is_unknown(right):
                return UNKNOWN
            if same_type(left, right):
                return left
            return promote_numeric(left, right) or UNKNOWN
        if isinstance(expr, ast.Prefix):
            return self._infer(scope, expr.operand, visiting)
        if isinstance(expr, ast.Identifier):
            return self._identifier(scope, expr, visiting)
        if isinstance(expr, (ast.Call, ast.Index, ast.Member)):
            return UNKNOWN
        assert_never(expr)

    def _array(self, scope: Scope, expr: ast.ArrayLit, visiting: frozenset[int]) -> Type:
        if not expr.elements:
            return UNKNOWN
        first = self._infer(scope, expr.elements[0], visiting)
        if is_unknown(first):
            return UNKNOWN
        for element in expr.elements[1:]:
            if not same_type(first, self._infer(scope, element, visiting)):
                return UNKNOWN
        return ArrayType(first)

    def resolve_reference(self, scope: Scope, ident: ast.Identifier) -> tuple[Symbol, Scope] | None:
        """Binding an identifier refers to.

        A name used inside its own initializer refers to the declaration it
        shadows, so `egg x = x + 1` reads the outer `x`.
        """
        found = scope.resolve_binding(ident.value)
        while found is not None and _in_initializer(found[0], ident):
            parent = found[1].parent
            found = None if parent is None else parent.resolve_binding(ident.value)
        return found

    def _identifier(self, scope: Scope, ident: ast.Identifier, visiting: frozenset[int]) -> Type:
        found = self.resolve_reference(scope, ident)
        if found is None:
            return UNKNOWN
        symbol, binding = found
        if symbol.declared_type is not None:
            return symbol.declared_type
        if symbol.inferred_type is not None:
            return symbol.inferred_type
        if symbol.initializer is None or id(symbol) in visiting:
            return UNKNOWN
        return self._infer(binding, symbol.initializer, visiting | {id(symbol)})

    def receiver_type(self, scope: Scope, expr: ast.Expr) -> Type:
        """Type of the value a `.field` is selected from.

        Unlike `infer` this looks through indexing and nested member access so
        that `points[0].x` and `line.start.x` reach their fields.
        """
        if isinstance(expr, ast.Index):
            target = self.receiver_type(scope, expr.target)
            return target.elem if isinstance(target, ArrayType) else UNKNOWN
        if isinstance(expr, ast.Member):
            field = self.member(scope, self.receiver_type(scope, expr.target), expr.field.value)
            return UNKNOWN if field is None else self.type_of(field, scope)
        if isinstance(expr, ast.Identifier):
            found = self.resolve_reference(scope, expr)
            if found is None:
                return UNKNOWN
            symbol, binding = found
            return self.type_of(symbol, binding)
        return self.infer(scope, expr)

    def member(self, scope: Scope, owner: Type, name: str) -> Symbol | None:
        """Field `name` of a struct-typed value, following type aliases."""
        seen: set[str] = set()
        current = owner
        while isinstance(current, NamedType) and current.name not in seen:
            seen.add(current.name)
            symbol = scope.resolve(current.name)
            if symbol is None or symbol.kind is not SymbolKind.USER_TYPE:
                return None
            if symbol.members is not None:
                return symbol.members.symbols.get(name)
            if symbol.declared_type is None:
                return None
            current = symbol.declared_type
        if isinstance(current, RecordType):
            field_type = current.field(name)
            if field_type is None:
                return None
            return Symbol(
                name=name,
                kind=SymbolKind.STRUCT_FIELD,
                declared_type=field_type,
            )
        return None


def _in_initializer(symbol: Symbol, ident: ast.Identifier) -> bool:
    if symbol.initializer is None or ident.synthetic:
        return False
    outer, inner = symbol.initializer.span, ident.span
    return (outer.line, outer.col) <= (inner.line, inner.col) and (inner.end_line, inner.end_col) <= (
        outer.end_line,
        outer.end_col,
    )


__all__ = ["TypeInferencer"]
