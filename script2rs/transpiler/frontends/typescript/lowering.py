"""Lowering of the TypeScript parse tree to the shared AST."""

from lark import v_args

from script2rs.transpiler.ast.nodes import ForEach, FunctionDecl, Param, VarDecl
from script2rs.transpiler.errors import ParseError
from script2rs.transpiler.frontends.grammar import LarkLowering
from script2rs.transpiler.normalizer import RawClass, RawUnit, for_range_from_c_style


@v_args(inline=True, meta=True)
class TypeScriptLowering(LarkLowering):
    def start(self, meta, *items):
        classes = [item for item in items if isinstance(item, RawClass)]
        return RawUnit(classes, self.path)

    def import_decl(self, meta, *_):
        return None

    def decorators(self, meta, *names):
        return list(names)

    def decorator(self, meta, name):
        return str(name)

    def export_mod(self, meta, *tokens):
        return bool(tokens)

    def class_decl(self, meta, decorators, exported, name, base, *members):
        return RawClass(
            name=str(name),
            base=str(base) if base is not None else None,
            markers=decorators,
            exported=exported,
            fields=[m for m in members if isinstance(m, VarDecl)],
            methods=[m for m in members if isinstance(m, FunctionDecl)],
            span=self._span(meta),
        )

    def field_decl(self, meta, decorators, modifiers, name, type_ref, value):
        return VarDecl(
            str(name),
            type_ref,
            value,
            attributes=decorators,
            is_const="readonly" in modifiers and "static" in modifiers,
            is_public="private" not in modifiers,
            span=self._span(meta),
        )

    def method_decl(self, meta, decorators, modifiers, name, params, return_type, body):
        return FunctionDecl(
            str(name),
            params or [],
            return_type,
            body,
            attributes=decorators,
            is_public="private" not in modifiers,
            span=self._span(meta),
        )

    def param(self, meta, name, type_ref):
        return Param(str(name), type_ref, span=self._span(meta))

    def mutable(self, meta):
        return "let"

    def constant(self, meta):
        return "const"

    def var_stmt(self, meta, kind, name, type_ref, value):
        return VarDecl(
            str(name), type_ref, value, is_const=kind == "const", span=self._span(meta)
        )

    def for_stmt(self, meta, _kind, name, _type_ref, start, condition, step, body):
        try:
            return for_range_from_c_style(
                str(name), start, condition, step, body, self._span(meta)
            )
        except ParseError as e:
            return self._fail(e)

    def for_of_stmt(self, meta, _kind, name, iterable, body):
        return ForEach(str(name), iterable, body, span=self._span(meta))
