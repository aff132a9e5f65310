from __future__ import annotations

from dataclasses import fields, is_dataclass

from ayla_lsp.diag.source import Position
from ayla_lsp.parse import ast
from ayla_lsp.parse.parser import parse_to_ast
from ayla_lsp.sema.locate import locate, locate_target

PROGRAM = """egg count int = 1
fun add(a int, b int) int {
    return a + b
}
type Point struct { x int; y int }
p := Point{x: count, y: add(1, 2)}
egg total = p.x + p.y
if (total > 0) {
    total = total - 1
}
for (i := 0; i < total; i = i + 1) {
    spawn {
        xs := [i, -count]
        xs[0] = total
    }
}
"""


def _position_of(text: str, needle: str, occurrence: int = 0, offset: int = 0) -> Position:
    start = -1
    for _ in range(occurrence + 1):
        start = text.index(needle, start + 1)
    start += offset
    line = text.count("\n", 0, start)
    return Position(line=line, character=start - (text.rfind("\n", 0, start) + 1))


def _identifiers(node: object) -> list[ast.Identifier]:
    if isinstance(node, ast.Identifier):
        return [node]
    found: list[ast.Identifier] = []
    if isinstance(node, list):
        for item in node:
            found.extend(_identifiers(item))
    elif is_dataclass(node) and not isinstance(node, type):
        for item in fields(node):
            if item.name != "span":
                found.extend(_identifiers(getattr(node, item.name)))
    return found


def test_every_identifier_is_found_at_each_of_its_characters() -> None:
    statements = parse_to_ast(PROGRAM).statements
    identifiers = _identifiers(statements)
    assert len(identifiers) > 20

    for ident in identifiers:
        for k in range(len(ident.value)):
            position = Position(line=ident.span.line - 1, character=ident.span.col - 1 + k)
            found = locate(statements, position)
            assert found == ident, (ident.value, position)


def test_whitespace_literals_and_keywords_are_not_identifiers() -> None:
    statements = parse_to_ast(PROGRAM).statements
    assert locate(statements, Position(line=0, character=3)) is None  # space after `egg`
    assert locate(statements, Position(line=0, character=0)) is None  # `egg`
    assert locate(statements, _position_of(PROGRAM, "1\n")) is None
    assert locate(statements, _position_of(PROGRAM, '+ b')) is None
    assert locate(statements, Position(line=99, character=0)) is None


def test_identifier_end_is_exclusive() -> None:
    statements = parse_to_ast("egg count = 1\n").statements
    assert locate(statements, Position(line=0, character=8)) is not None
    assert locate(statements, Position(line=0, character=9)) is None


def test_named_type_reference_yields_synthetic_identifier() -> None:
    statements = parse_to_ast(PROGRAM).statements
    found = locate(statements, _position_of(PROGRAM, "int"))
    assert found is not None
    assert found.synthetic
    assert found.value == "int"


def test_struct_keyword_yields_display_name() -> None:
    text = "egg q struct { a int; b []string }\n"
    statements = parse_to_ast(text).statements

    keyword = locate(statements, _position_of(text, "struct", offset=2))
    assert keyword is not None
    assert keyword.synthetic
    assert keyword.value == "struct { a int; b []string }"

    field = locate(statements, _position_of(text, "a int"))
    assert field is not None
    assert field.value == "struct { a int; b []string }"

    elem = locate(statements, _position_of(text, "string"))
    assert elem is not None and elem.value == "string"


def test_member_access_carries_receiver() -> None:
    statements = parse_to_ast(PROGRAM).statements
    target = locate_target(statements, _position_of(PROGRAM, "p.x", offset=2))
    assert target is not None
    assert target.identifier.value == "x"
    assert isinstance(target.receiver, ast.Identifier)
    assert target.receiver.value == "p"
    assert target.owner is None


def test_struct_literal_and_declaration_fields_carry_owner() -> None:
    statements = parse_to_ast(PROGRAM).statements

    literal = locate_target(statements, _position_of(PROGRAM, "x: count"))
    assert literal is not None
    assert literal.identifier.value == "x"
    assert literal.owner == "Point"

    declared = locate_target(statements, _position_of(PROGRAM, "x int"))
    assert declared is not None
    assert declared.identifier.value == "x"
    assert not declared.identifier.synthetic
    assert declared.owner == "Point"


def test_plain_reference_has_no_member_context() -> None:
    statements = parse_to_ast(PROGRAM).statements
    target = locate_target(statements, _position_of(PROGRAM, "count", occurrence=1))
    assert target is not None
    assert target.owner is None
    assert target.receiver is None
