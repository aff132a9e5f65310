from __future__ import annotations

from ayla_lsp.parse import ast
from ayla_lsp.parse.parser import parse_to_ast
from ayla_lsp.sema.builder import SymbolBuilder, builtin_scope
from ayla_lsp.sema.infer import TypeInferencer
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
    render_type,
)


def _expr(source: str) -> ast.Expr:
    decl = parse_to_ast(f"egg v = {source}\n").statements[0]
    assert isinstance(decl, ast.VarDecl) and decl.value is not None
    return decl.value


def _infer(source: str) -> object:
    return TypeInferencer().infer(builtin_scope(), _expr(source))


def test_literals() -> None:
    assert _infer("1") == INT
    assert _infer("2.5") == FLOAT
    assert _infer('"a"') == STRING
    assert _infer("true") == BOOL


def test_numeric_promotion() -> None:
    assert _infer("1 + 2.5") == FLOAT
    assert _infer("2.5 * 3") == FLOAT
    assert _infer("1 + 2") == INT
    assert _infer('"a" + 1') == UNKNOWN
    assert _infer('"a" + "b"') == STRING


def test_array_homogeneity() -> None:
    assert _infer("[1, 2, 3]") == ArrayType(INT)
    assert _infer('[1, "a"]') == UNKNOWN
    assert _infer("[]") == UNKNOWN
    assert _infer("[[1], [2, 3]]") == ArrayType(ArrayType(INT))
    assert _infer('[[1], ["a"]]') == UNKNOWN
    assert _infer("[[], []]") == UNKNOWN


def test_struct_literals() -> None:
    assert _infer("Point{x: 1}") == NamedType("Point")
    assert _infer("struct{x: 1}") == STRUCT


def test_prefix_keeps_operand_type() -> None:
    assert _infer("-1.5") == FLOAT
    assert _infer("!true") == BOOL


def test_calls_indexing_and_members_are_unknown() -> None:
    assert _infer("f(1)") == UNKNOWN
    assert _infer("[1, 2][0]") == UNKNOWN
    assert _infer("p.x") == UNKNOWN


def test_unresolved_identifier_is_unknown() -> None:
    assert _infer("missing") == UNKNOWN
    assert _infer("missing + 1") == UNKNOWN


def test_identifier_uses_declared_then_initializer_type() -> None:
    program = parse_to_ast("egg a float\nb := 2\nc := a + b\n")
    root = SymbolBuilder().build(program.statements).root
    inferencer = TypeInferencer()

    assert inferencer.infer(root, ast.Identifier(span=program.span, value="a")) == FLOAT
    assert inferencer.infer(root, ast.Identifier(span=program.span, value="c")) == FLOAT


def test_infer_does_not_memoise_but_type_of_does() -> None:
    program = parse_to_ast("b := [1, 2]\n")
    root = SymbolBuilder().build(program.statements).root
    symbol = root.resolve("b")
    assert symbol is not None
    inferencer = TypeInferencer()

    assert inferencer.infer(root, ast.Identifier(span=program.span, value="b")) == ArrayType(INT)
    assert symbol.inferred_type is None

    assert inferencer.type_of(symbol, root) == ArrayType(INT)
    assert symbol.inferred_type == ArrayType(INT)
    assert symbol.declared_type is None


def test_cyclic_initializers_are_unknown() -> None:
    program = parse_to_ast("egg a = b\negg b = a + 1\n")
    root = SymbolBuilder().build(program.statements).root
    symbol = root.resolve("a")
    assert symbol is not None
    assert TypeInferencer().type_of(symbol, root) == UNKNOWN


def test_member_lookup_follows_aliases_and_records() -> None:
    program = parse_to_ast("type Point struct { x int }\ntype Alias Point\negg r struct { y bool }\n")
    root = SymbolBuilder().build(program.statements).root
    inferencer = TypeInferencer()

    field = inferencer.member(root, NamedType("Alias"), "x")
    assert field is not None and field.owner == "Point"
    assert inferencer.member(root, NamedType("Point"), "nope") is None
    assert inferencer.member(root, NamedType("int"), "x") is None

    record = root.resolve("r")
    assert record is not None and isinstance(record.declared_type, RecordType)
    ephemeral = inferencer.member(root, record.declared_type, "y")
    assert ephemeral is not None
    assert ephemeral.declared_type == BOOL
    assert ephemeral.ident is None


def test_receiver_type_sees_through_indexing() -> None:
    program = parse_to_ast("type P struct { x int }\nps := [P{x: 1}]\n")
    root = SymbolBuilder().build(program.statements).root
    receiver = _expr("ps[0]")
    assert TypeInferencer().receiver_type(root, receiver) == NamedType("P")


def test_render_type() -> None:
    assert render_type(ArrayType(ArrayType(STRING))) == "[][]string"
    assert render_type(UNKNOWN) == "unknown"
    assert render_type(None) == "unknown"
    assert render_type(RecordType((("a", INT), ("b", ArrayType(BOOL))))) == "struct { a int; b []bool }"
    assert render_type(RecordType(())) == "struct {}"


def test_shadowing_initializer_reads_the_outer_declaration() -> None:
    program = parse_to_ast("egg x = 1\nif (true) {\n    egg x = x + 0.5\n}\n")
    root = SymbolBuilder().build(program.statements).root
    branch = program.statements[1]
    assert isinstance(branch, ast.IfStmt)
    inner_decl = branch.then.statements[0]
    assert isinstance(inner_decl, ast.VarDecl) and isinstance(inner_decl.value, ast.Infix)
    reference = inner_decl.value.left
    assert isinstance(reference, ast.Identifier)

    inferencer = TypeInferencer()
    inner_scope = root.children[0]
    found = inferencer.resolve_reference(inner_scope, reference)
    assert found is not None
    symbol, binding = found
    assert binding is root
    assert symbol.decl_site == (1, 5)

    inner = inner_scope.resolve("x")
    assert inner is not None and inner is not symbol
    assert inferencer.type_of(inner, inner_scope) == FLOAT
