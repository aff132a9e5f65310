from __future__ import annotations

import ast as pyast
from dataclasses import dataclass
from typing import cast

from lark import Token, Tree

from ayla_lsp.diag.source import Span
from ayla_lsp.parse import ast

ParseNode = Tree[object] | Token

_TYPE_RULES = frozenset({"named_type", "array_type", "struct_type"})
_SIMPLE_STMTS = (ast.VarDecl, ast.Assign, ast.IndexAssign, ast.ExprStmt)


@dataclass(slots=True)
class ASTBuilder:
    text: str
    filename: str

    def build(self, tree: Tree[object]) -> ast.Program:
        node = self._from_tree(tree)
        if not isinstance(node, ast.Program):
            raise TypeError("Expected program AST")
        return node

    def empty_program(self) -> ast.Program:
        return ast.Program(span=self._program_span(), statements=[])

    def _from_tree(self, node: ParseNode) -> object:
        if isinstance(node, Token):
            return self._from_token(node)

        data = node.data
        c: list[ParseNode] = [cast(ParseNode, child) for child in node.children]

        if data == "start":
            return self._from_tree(c[0])
        if data == "program":
            return ast.Program(span=self._program_span(), statements=self._stmts(c))
        if data == "block":
            return ast.Block(span=self._span(node), statements=self._stmts(c))

        if data in ("var_decl", "const_decl"):
            names = self._names(c[0])
            type_ref: ast.TypeRef | None = None
            value: ast.Expr | None = None
            for ch in c[1:]:
                if self._is_type(ch):
                    type_ref = self._type(ch)
                else:
                    value = self._expr(ch)
            if data == "var_decl":
                return ast.VarDecl(span=self._span(node), names=names, type=type_ref, value=value)
            if value is None:
                raise ValueError("constant declaration without a value")
            return ast.ConstDecl(span=self._span(node), names=names, type=type_ref, value=value)
        if data == "short_decl":
            return ast.VarDecl(
                span=self._span(node),
                names=self._names(c[0]),
                type=None,
                value=self._expr(c[1]),
                short=True,
            )
        if data == "assign":
            return ast.Assign(
                span=self._span(node),
                targets=self._names(c[0]),
                value=self._expr(c[1]),
            )
        if data == "index_assign":
            return ast.IndexAssign(
                span=self._span(node),
                target=self._expr(c[0]),
                index=self._expr(c[1]),
                value=self._expr(c[2]),
            )
        if data == "expr_stmt":
            return ast.ExprStmt(span=self._span(node), expr=self._expr(c[0]))

        if data == "func_decl":
            params: list[ast.Param] = []
            result: ast.TypeRef | None = None
            for ch in c[1:-1]:
                if isinstance(ch, Tree) and ch.data == "params":
                    params = [cast(ast.Param, self._from_tree(p)) for p in ch.children]
                else:
                    result = self._type(ch)
            return ast.FuncDecl(
                span=self._span(node),
                name=self._ident(c[0]),
                params=params,
                result=result,
                body=self._block(c[-1]),
            )
        if data == "param":
            return ast.Param(span=self._span(node), name=self._ident(c[0]), type=self._type(c[1]))
        if data == "type_decl":
            return ast.TypeDecl(span=self._span(node), name=self._ident(c[0]), type=self._type(c[1]))

        if data == "if_stmt":
            otherwise: ast.Block | None = None
            if len(c) == 3:
                alt = c[2]
                if isinstance(alt, Tree) and alt.data == "if_stmt":
                    nested = cast(ast.IfStmt, self._from_tree(alt))
                    otherwise = ast.Block(span=nested.span, statements=[nested])
                else:
                    otherwise = self._block(alt)
            return ast.IfStmt(
                span=self._span(node),
                cond=self._expr(c[0]),
                then=self._block(c[1]),
                otherwise=otherwise,
            )
        if data == "for_stmt":
            init, cond, post, body = c
            return ast.ForStmt(
                span=self._span(node),
                init=self._simple(init),
                cond=self._optional_expr(cond),
                post=self._simple(post),
                body=self._block(body),
            )
        if data == "while_stmt":
            return ast.WhileStmt(span=self._span(node), cond=self._expr(c[0]), body=self._block(c[1]))
        if data == "spawn_stmt":
            return ast.SpawnStmt(span=self._span(node), body=self._block(c[0]))
        if data == "return_stmt":
            return ast.ReturnStmt(
                span=self._span(node),
                value=self._expr(c[0]) if c else None,
            )

        if data == "named_type":
            return ast.NamedTypeRef(span=self._span(node), name=str(cast(Token, c[0]).value))
        if data == "array_type":
            return ast.ArrayTypeRef(span=self._span(node), elem=self._type(c[0]))
        if data == "struct_type":
            return ast.StructTypeRef(
                span=self._span(node),
                fields=[cast(ast.FieldDecl, self._from_tree(ch)) for ch in c],
            )
        if data == "field_decl":
            return ast.FieldDecl(span=self._span(node), name=self._ident(c[0]), type=self._type(c[1]))

        if data == "ident":
            return self._ident(c[0])
        if data == "int_lit":
            return ast.IntLit(span=self._span(node), value=int(str(cast(Token, c[0]).value)))
        if data == "float_lit":
            return ast.FloatLit(span=self._span(node), value=float(str(cast(Token, c[0]).value)))
        if data == "string_lit":
            return ast.StringLit(span=self._span(node), value=self._string(cast(Token, c[0])))
        if data == "true_lit":
            return ast.BoolLit(span=self._span(node), value=True)
        if data == "false_lit":
            return ast.BoolLit(span=self._span(node), value=False)
        if data == "array_lit":
            return ast.ArrayLit(span=self._span(node), elements=[self._expr(ch) for ch in c])
        if data == "field_init":
            return ast.FieldInit(span=self._span(node), name=self._ident(c[0]), value=self._expr(c[1]))
        if data == "struct_lit":
            return ast.StructLit(
                span=self._span(node),
                type_name=self._ident(c[0]),
                fields=[cast(ast.FieldInit, self._from_tree(ch)) for ch in c[1:]],
            )
        if data == "anon_struct_lit":
            return ast.AnonStructLit(
                span=self._span(node),
                fields=[cast(ast.FieldInit, self._from_tree(ch)) for ch in c],
            )
        if data == "call":
            return ast.Call(
                span=self._span(node),
                callee=self._ident(c[0]),
                args=[self._expr(ch) for ch in c[1:]],
            )
        if data == "prefix":
            return ast.Prefix(
                span=self._span(node),
                op=str(cast(Token, c[0]).value),
                operand=self._expr(c[1]),
            )
        if data == "infix":
            return ast.Infix(
                span=self._span(node),
                op=str(cast(Token, c[1]).value),
                left=self._expr(c[0]),
                right=self._expr(c[2]),
            )
        if data == "index":
            return ast.Index(span=self._span(node), target=self._expr(c[0]), index=self._expr(c[1]))
        if data == "member":
            return ast.Member(span=self._span(node), target=self._expr(c[0]), field=self._ident(c[1]))

        raise NotImplementedError(f"Unhandled tree node: {data}")

    def _from_token(self, token: Token) -> object:
        if token.type == "NAME":
            return self._ident(token)
        return token

    def _stmts(self, children: list[ParseNode]) -> list[ast.Stmt]:
        return [cast(ast.Stmt, self._from_tree(ch)) for ch in children if isinstance(ch, Tree)]

    def _names(self, node: ParseNode) -> list[ast.Identifier]:
        if isinstance(node, Token):
            return [self._ident(node)]
        return [self._ident(cast(Token, ch)) for ch in node.children]

    def _ident(self, node: ParseNode) -> ast.Identifier:
        if not isinstance(node, Token):
            raise TypeError(f"Expected name token, got {node.data}")
        return ast.Identifier(span=self._span(node), value=str(node.value))

    def _is_type(self, node: ParseNode) -> bool:
        return isinstance(node, Tree) and node.data in _TYPE_RULES

    def _type(self, node: ParseNode) -> ast.TypeRef:
        value = self._from_tree(node)
        if not isinstance(value, (ast.NamedTypeRef, ast.ArrayTypeRef, ast.StructTypeRef)):
            raise TypeError(f"Expected type reference, got {type(value).__name__}")
        return value

    def _expr(self, node: ParseNode) -> ast.Expr:
        return cast(ast.Expr, self._from_tree(node))

    def _optional_expr(self, node: ParseNode) -> ast.Expr | None:
        if isinstance(node, Tree) and not node.children:
            return None
        if isinstance(node, Tree) and node.data == "for_cond":
            return self._expr(cast(ParseNode, node.children[0]))
        return self._expr(node)

    def _simple(self, node: ParseNode) -> ast.SimpleStmt | None:
        if not isinstance(node, Tree) or not node.children:
            return None
        value = self._from_tree(cast(ParseNode, node.children[0]))
        if not isinstance(value, _SIMPLE_STMTS):
            raise TypeError(f"Expected simple statement, got {type(value).__name__}")
        return value

    def _block(self, node: ParseNode) -> ast.Block:
        value = self._from_tree(node)
        if not isinstance(value, ast.Block):
            raise TypeError("Expected block")
        return value

    def _string(self, token: Token) -> str:
        raw = str(token.value)
        try:
            value = pyast.literal_eval(raw)
        except (SyntaxError, ValueError):
            return raw[1:-1]
        if not isinstance(value, str):
            raise TypeError("string token did not decode to str")
        return value

    def _program_span(self) -> Span:
        lines = self.text.split("\n")
        return Span(
            start_offset=0,
            end_offset=len(self.text),
            line=1,
            col=1,
            end_line=len(lines),
            end_col=len(lines[-1]) + 1,
            filename=self.filename,
        )

    def _span(self, node: Tree[object] | Token) -> Span:
        def _ival(value: int | None, default: int = 0) -> int:
            return default if value is None else value

        if isinstance(node, Tree):
            meta = node.meta
            return Span(
                start_offset=_ival(getattr(meta, "start_pos", None)),
                end_offset=_ival(getattr(meta, "end_pos", None)),
                line=_ival(getattr(meta, "line", None), default=1),
                col=_ival(getattr(meta, "column", None), default=1),
                end_line=_ival(getattr(meta, "end_line", None), default=1),
                end_col=_ival(getattr(meta, "end_column", None), default=1),
                filename=self.filename,
            )
        return Span(
            start_offset=_ival(node.start_pos),
            end_offset=_ival(node.end_pos),
            line=_ival(node.line, default=1),
            col=_ival(node.column, default=1),
            end_line=_ival(node.end_line, default=1),
            end_col=_ival(node.end_column, default=1),
            filename=self.filename,
        )
