"""Lowering of the C# parse tree to the shared AST."""

from lark import v_args

from script2rs.transpiler.ast.nodes import Cast, ForEach, FunctionDecl, Param, TypeRef, VarDecl
from script2rs.transpiler.errors import ParseError
from script2rs.transpiler.frontends.grammar import LarkLowering
from script2rs.transpiler.normalizer import RawClass, RawUnit, for_range_from_c_style


@v_args(inline=True, meta=True)
class CSharpLowering(LarkLowering):
    literal_suffixes = {
        "f": "float",
        "d": "double",
        "m": "decimal",
        "l": "long",
        "u": "uint",
        "ul": "ulong",
        "lu": "ulong",
    }

    def start(self, meta, *items):
        classes: list[RawClass] = []
        for item in items:
            if isinstance(item, RawClass):
                classes.append(item)
            elif isinstance(item, list):
                classes.extend(c for c in item if isinstance(c, RawClass))
        return RawUnit(classes, self.path)

    def using_directive(self, meta, *_):
        return None

    def namespace_stmt(self, meta, *_):
        return None

    def namespace_block(self, meta, _name, *items):
        return [item for item in items if isinstance(item, RawClass)]

    def qualified_name(self, meta, *parts):
        return ".".join(str(p) for p in parts)

    def attributes(self, meta, *sections):
        return [name for section in sections for name in section]

    def attribute_section(self, meta, *names):
        return list(names)

    def attribute(self, meta, name, *_args):
        return str(name)

    def const_mod(self, meta):
        return "const"

    def ignored_mod(self, meta):
        return "ignored"

    def class_kind(self, meta):
        return "class"

    def struct_kind(self, meta):
        return "struct"

    def base_list(self, meta, *names):
        return [str(n) for n in names]

    def type_decl(self, meta, attributes, modifiers, kind, name, bases, *members):
        return RawClass(
            name=str(name),
            base=bases[0] if bases else None,
            markers=attributes,
            is_struct=kind == "struct",
            fields=[m for m in members if isinstance(m, VarDecl)],
            methods=[m for m in members if isinstance(m, FunctionDecl)],
            span=self._span(meta),
        )

    def field_decl(self, meta, attributes, modifiers, type_ref, name, value):
        return VarDecl(
            str(name),
            type_ref,
            value,
            attributes=attributes,
            is_const="const" in modifiers,
            is_public="private" not in modifiers,
            span=self._span(meta),
        )

    def method_decl(self, meta, attributes, modifiers, return_type, name, params, body):
        return FunctionDecl(
            str(name),
            params or [],
            return_type,
            body,
            attributes=attributes,
            is_public="private" not in modifiers,
            span=self._span(meta),
        )

    def void_type(self, meta):
        return TypeRef("void")

    def param(self, meta, type_ref, name):
        return Param(str(name), type_ref, span=self._span(meta))

    def var_type(self, meta):
        return None

    def local_decl(self, meta, type_ref, name, value):
        return VarDecl(str(name), type_ref, value, span=self._span(meta))

    def const_decl(self, meta, type_ref, name, value):
        return VarDecl(str(name), type_ref, value, is_const=True, span=self._span(meta))

    def prim_cast(self, meta, primitive, value):
        target = TypeRef(str(primitive), (), self._token_span(primitive))
        return Cast(value, target, span=self._span(meta))

    def for_stmt(self, meta, _type_ref, name, start, condition, step, body):
        try:
            return for_range_from_c_style(
                str(name), start, condition, step, body, self._span(meta)
            )
        except ParseError as e:
            return self._fail(e)

    def foreach_stmt(self, meta, _type_ref, name, iterable, body):
        return ForEach(str(name), iterable, body, span=self._span(meta))
