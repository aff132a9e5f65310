from __future__ import annotations

from ayla_lsp.diag.source import Position
from ayla_lsp.parse.parser import parse_to_ast
from ayla_lsp.sema.builder import BuildResult, SymbolBuilder
from ayla_lsp.sema.symbols import SymbolKind
from ayla_lsp.sema.types import INT, STRING, RecordType


def _build(text: str) -> BuildResult:
    return SymbolBuilder().build(parse_to_ast(text, filename="build.ayla").statements)


def _position_of(text: str, needle: str, occurrence: int = 0, offset: int = 0) -> Position:
    start = -1
    for _ in range(occurrence + 1):
        start = text.index(needle, start + 1)
    start += offset
    line = text.count("\n", 0, start)
    return Position(line=line, character=start - (text.rfind("\n", 0, start) + 1))


def test_root_scope_holds_builtin_types() -> None:
    result = _build("")
    for name in ("int", "float", "string", "bool", "arr"):
        symbol = result.root.resolve(name)
        assert symbol is not None
        assert symbol.kind is SymbolKind.BUILTIN_TYPE
        assert symbol.ident is None
    assert result.diagnostics == []


def test_inner_block_shadows_outer_variable() -> None:
    text = 'egg x int = 1\nif (true) {\n    egg x string = "a"\n    egg y = x\n}\negg z = x\n'
    result = _build(text)

    outer = result.root.resolve("x")
    assert outer is not None and outer.declared_type == INT

    inside = result.root.innermost(_position_of(text, "= x", offset=2))
    inner = inside.resolve("x")
    assert inner is not None and inner.declared_type == STRING
    assert inner is not outer

    outside = result.root.innermost(_position_of(text, "= x", occurrence=1, offset=2))
    assert outside is result.root
    assert outside.resolve("x") is outer
    assert result.diagnostics == []


def test_if_branches_are_isolated() -> None:
    text = "if (true) {\n    egg a = 1\n} else {\n    egg b = 2\n}\n"
    result = _build(text)
    then_scope, else_scope = result.root.children

    assert then_scope.resolve("a") is not None
    assert then_scope.resolve("b") is None
    assert else_scope.resolve("b") is not None
    assert else_scope.resolve("a") is None
    assert result.root.resolve("a") is None
    assert result.root.resolve("b") is None


def test_for_initializer_is_scoped_to_the_loop() -> None:
    text = "for (i := 0; i < 3; i = i + 1) {\n    egg j = i\n}\negg k = 1\n"
    result = _build(text)
    loop_scope = result.root.children[0]

    assert loop_scope.name == "for"
    assert loop_scope.resolve("i") is not None
    assert loop_scope.resolve("j") is not None
    assert result.root.resolve("i") is None

    in_body = result.root.innermost(_position_of(text, "= i", offset=2))
    assert in_body is loop_scope
    after = result.root.innermost(_position_of(text, "egg k"))
    assert after.resolve("i") is None


def test_while_and_spawn_open_child_scopes() -> None:
    result = _build("while (true) {\n    egg w = 1\n}\nspawn {\n    egg t = 2\n}\n")
    names = [scope.name for scope in result.root.children]
    assert names == ["while", "spawn"]
    assert result.root.children[0].resolve("w") is not None
    assert result.root.children[1].resolve("t") is not None
    assert result.root.resolve("t") is None


def test_multi_name_declarations_share_type_and_initializer() -> None:
    result = _build("egg a, b int\nrock c, d = 2\n")
    a = result.root.resolve("a")
    b = result.root.resolve("b")
    c = result.root.resolve("c")
    d = result.root.resolve("d")
    assert a is not None and b is not None and c is not None and d is not None
    assert a.declared_type == INT and b.declared_type == INT
    assert c.kind is SymbolKind.CONSTANT
    assert c.initializer is d.initializer


def test_function_parameters_live_in_function_scope() -> None:
    text = "fun add(a int, b float) int {\n    egg s = a\n}\n"
    result = _build(text)

    func = result.root.resolve("add")
    assert func is not None
    assert func.kind is SymbolKind.FUNCTION
    assert func.detail == "(a int, b float) int"
    assert func.decl_site == (1, 5)

    fn_scope = result.root.children[0]
    param = fn_scope.symbols["a"]
    assert param.kind is SymbolKind.PARAMETER
    assert param.owner == "add"
    assert param.declared_type == INT
    assert "s" in fn_scope.symbols
    assert result.root.resolve("a") is None

    # The function name itself sits outside its own scope.
    assert result.root.innermost(_position_of(text, "add")) is result.root
    assert result.root.innermost(_position_of(text, "egg s")) is fn_scope


def test_struct_type_fields_are_members_only() -> None:
    result = _build("type Point struct { x int; y string }\n")
    point = result.root.resolve("Point")
    assert point is not None
    assert point.kind is SymbolKind.USER_TYPE
    assert isinstance(point.declared_type, RecordType)
    assert point.members is not None

    x = point.members.symbols["x"]
    assert x.kind is SymbolKind.STRUCT_FIELD
    assert x.owner == "Point"
    assert x.declared_type == INT
    assert result.root.resolve("x") is None


def test_alias_type_records_aliased_type() -> None:
    result = _build("type Count int\n")
    count = result.root.resolve("Count")
    assert count is not None
    assert count.declared_type == INT
    assert count.members is None


def test_duplicate_declaration_is_reported_and_build_continues() -> None:
    result = _build("egg a = 1\negg a = 2\negg b = 3\n")

    assert [d.code for d in result.diagnostics] == ["AYLA2002"]
    diag = result.diagnostics[0]
    assert (diag.span.line, diag.span.col) == (2, 5)
    assert any(not label.is_primary for label in diag.labels)

    assert len(result.conflicts) == 1
    conflict = result.conflicts[0]
    assert conflict.previous.decl_site == (1, 5)

    kept = result.root.resolve("a")
    assert kept is conflict.previous
    assert result.root.resolve("b") is not None


def test_duplicates_inside_nested_scopes_do_not_stop_siblings() -> None:
    text = "fun f(p int, p int) {\n    egg q = 1\n}\negg after = 2\n"
    result = _build(text)
    assert [d.code for d in result.diagnostics] == ["AYLA2002"]
    assert result.root.children[0].resolve("q") is not None
    assert result.root.resolve("after") is not None


def test_shadowing_in_child_scope_is_not_a_conflict() -> None:
    result = _build("egg a = 1\nwhile (true) {\n    egg a = 2\n}\n")
    assert result.diagnostics == []
    assert result.conflicts == []


def test_builtin_type_names_cannot_be_redeclared() -> None:
    result = _build("egg int = 1\ntype float string\nfun f(bool int) {\n}\n")
    assert [d.code for d in result.diagnostics] == ["AYLA2003", "AYLA2003", "AYLA2003"]
    for name in ("int", "float"):
        symbol = result.root.resolve(name)
        assert symbol is not None and symbol.kind is SymbolKind.BUILTIN_TYPE
    assert "bool" not in result.root.children[0].symbols


def test_for_post_clause_declares_in_loop_scope() -> None:
    text = "for (i := 0; i < 3; j := i) {\n    egg k = 1\n}\n"
    result = _build(text)

    loop_scope = result.root.innermost(_position_of(text, "k = 1"))
    assert loop_scope.name == "for"
    assert loop_scope.resolve("i") is not None
    post = loop_scope.resolve("j")
    assert post is not None and post.kind is SymbolKind.VARIABLE
    assert result.root.resolve("j") is None
    assert result.diagnostics == []
