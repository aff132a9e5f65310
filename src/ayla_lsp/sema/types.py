from __future__ import annotations

from dataclasses import dataclass

from ayla_lsp.parse import ast


class Type:
    pass


@dataclass(frozen=True, slots=True)
class NamedType(Type):
    name: str


@dataclass(frozen=True, slots=True)
class ArrayType(Type):
    elem: Type


@dataclass(frozen=True, slots=True)
class RecordType(Type):
    """Structural `struct { ... }` type; only ever shown, never compared."""

    fields: tuple[tuple[str, Type], ...]

    def field(self, name: str) -> Type | None:
        for field_name, field_type in self.fields:
            if field_name == name:
                return field_type
        return None


@dataclass(frozen=True, slots=True)
class UnknownType(Type):
    pass


INT = NamedType("int")
FLOAT = NamedType("float")
STRING = NamedType("string")
BOOL = NamedType("bool")
STRUCT = NamedType("struct")
UNKNOWN = UnknownType()

BUILTIN_TYPE_NAMES: tuple[str, ...] = ("int", "float", "string", "bool", "arr")


def same_type(left: Type, right: Type) -> bool:
    if isinstance(left, NamedType) and isinstance(right, NamedType):
        return left.name == right.name
    if isinstance(left, ArrayType) and isinstance(right, ArrayType):
        return same_type(left.elem, right.elem)
    return False


def is_unknown(tp: Type | None) -> bool:
    return tp is None or isinstance(tp, UnknownType)


def promote_numeric(left: Type, right: Type) -> Type | None:
    pair = {left, right}
    if pair == {INT, FLOAT}:
        return FLOAT
    return None


def render_type(tp: Type | None) -> str:
    if isinstance(tp, NamedType):
        return tp.name
    if isinstance(tp, ArrayType):
        return "[]" + render_type(tp.elem)
    if isinstance(tp, RecordType):
        if not tp.fields:
            return "struct {}"
        body = "; ".join(f"{name} {render_type(field_type)}" for name, field_type in tp.fields)
        return f"struct {{ {body} }}"
    return "unknown"


def type_from_ref(ref: ast.TypeRef) -> Type:
    if isinstance(ref, ast.NamedTypeRef):
        return NamedType(ref.name)
    if isinstance(ref, ast.ArrayTypeRef):
        return ArrayType(type_from_ref(ref.elem))
    return RecordType(tuple((f.name.value, type_from_ref(f.type)) for f in ref.fields))
