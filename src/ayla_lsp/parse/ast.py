from __future__ import annotations

from dataclasses import dataclass

from ayla_lsp.diag.source import Span


@dataclass(frozen=True, slots=True)
class Node:
    span: Span


@dataclass(frozen=True, slots=True)
class Identifier(Node):
    """A name token. Synthetic identifiers stand in for type references."""

    value: str
    synthetic: bool = False


# Type references


@dataclass(frozen=True, slots=True)
class NamedTypeRef(Node):
    name: str


@dataclass(frozen=True, slots=True)
class ArrayTypeRef(Node):
    elem: TypeRef


@dataclass(frozen=True, slots=True)
class FieldDecl(Node):
    name: Identifier
    type: TypeRef


@dataclass(frozen=True, slots=True)
class StructTypeRef(Node):
    fields: list[FieldDecl]


TypeRef = NamedTypeRef | ArrayTypeRef | StructTypeRef


# Expressions


@dataclass(frozen=True, slots=True)
class IntLit(Node):
    value: int


@dataclass(frozen=True, slots=True)
class FloatLit(Node):
    value: float


@dataclass(frozen=True, slots=True)
class StringLit(Node):
    value: str


@dataclass(frozen=True, slots=True)
class BoolLit(Node):
    value: bool


@dataclass(frozen=True, slots=True)
class ArrayLit(Node):
    elements: list[Expr]


@dataclass(frozen=True, slots=True)
class FieldInit(Node):
    name: Identifier
    value: Expr


@dataclass(frozen=True, slots=True)
class StructLit(Node):
    type_name: Identifier
    fields: list[FieldInit]


@dataclass(frozen=True, slots=True)
class AnonStructLit(Node):
    fields: list[FieldInit]


@dataclass(frozen=True, slots=True)
class Prefix(Node):
    op: str
    operand: Expr


@dataclass(frozen=True, slots=True)
class Infix(Node):
    op: str
    left: Expr
    right: Expr


@dataclass(frozen=True, slots=True)
class Index(Node):
    target: Expr
    index: Expr


@dataclass(frozen=True, slots=True)
class Member(Node):
    target: Expr
    field: Identifier


@dataclass(frozen=True, slots=True)
class Call(Node):
    callee: Identifier
    args: list[Expr]


Expr = (
    Identifier
    | IntLit
    | FloatLit
    | StringLit
    | BoolLit
    | ArrayLit
    | StructLit
    | AnonStructLit
    | Prefix
    | Infix
    | Index
    | Member
    | Call
)


# Statements


@dataclass(frozen=True, slots=True)
class Block(Node):
    statements: list[Stmt]


@dataclass(frozen=True, slots=True)
class VarDecl(Node):
    """`egg a, b T = v` or, with `short`, `a, b := v`."""

    names: list[Identifier]
    type: TypeRef | None
    value: Expr | None
    short: bool = False


@dataclass(frozen=True, slots=True)
class ConstDecl(Node):
    names: list[Identifier]
    type: TypeRef | None
    value: Expr


@dataclass(frozen=True, slots=True)
class Assign(Node):
    targets: list[Identifier]
    value: Expr


@dataclass(frozen=True, slots=True)
class IndexAssign(Node):
    target: Expr
    index: Expr
    value: Expr


@dataclass(frozen=True, slots=True)
class ExprStmt(Node):
    expr: Expr


@dataclass(frozen=True, slots=True)
class Param(Node):
    name: Identifier
    type: TypeRef


@dataclass(frozen=True, slots=True)
class FuncDecl(Node):
    name: Identifier
    params: list[Param]
    result: TypeRef | None
    body: Block


@dataclass(frozen=True, slots=True)
class TypeDecl(Node):
    name: Identifier
    type: TypeRef


@dataclass(frozen=True, slots=True)
class IfStmt(Node):
    """`else if` chains are stored as an alternative block holding one IfStmt."""

    cond: Expr
    then: Block
    otherwise: Block | None


@dataclass(frozen=True, slots=True)
class ForStmt(Node):
    init: SimpleStmt | None
    cond: Expr | None
    post: SimpleStmt | None
    body: Block


@dataclass(frozen=True, slots=True)
class WhileStmt(Node):
    cond: Expr
    body: Block


@dataclass(frozen=True, slots=True)
class SpawnStmt(Node):
    body: Block


@dataclass(frozen=True, slots=True)
class ReturnStmt(Node):
    value: Expr | None


SimpleStmt = VarDecl | Assign | IndexAssign | ExprStmt

Stmt = (
    VarDecl
    | ConstDecl
    | Assign
    | IndexAssign
    | ExprStmt
    | FuncDecl
    | TypeDecl
    | IfStmt
    | ForStmt
    | WhileStmt
    | SpawnStmt
    | ReturnStmt
)


@dataclass(frozen=True, slots=True)
class Program(Node):
    statements: list[Stmt]
