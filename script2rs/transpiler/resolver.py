"""
Name resolution and type annotation.

The resolver walks one normalized script and binds every identifier, member
access and call either to a script-local symbol or to a canonical operation of
the registries. Expressions are annotated in place with their resolved type.

Problems are reported to the file's diagnostic collector instead of being
raised. An expression that failed to resolve gets the poison type, so no
follow-up errors are reported for the expressions built on it.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum, auto

from loguru import logger

from script2rs.transpiler.ast.nodes import (
    ArrayLiteral,
    Assignment,
    BinaryOp,
    Break,
    Call,
    Cast,
    Continue,
    DynamicGet,
    Expr,
    ExprStmt,
    ForEach,
    ForRange,
    FunctionDecl,
    If,
    Index,
    Literal,
    LiteralKind,
    MemberAccess,
    Name,
    New,
    Node,
    Pass,
    Return,
    ScriptDecl,
    SelfRef,
    Stmt,
    StructDecl,
    TypeRef,
    UnaryOp,
    VarDecl,
    While,
)
from script2rs.transpiler.ast.visitor import Visitor
from script2rs.transpiler.bindings.resource_bindings import MUTATING_OPS
from script2rs.transpiler.diagnostics import UNKNOWN_SPAN, DiagnosticCollector, SourceSpan
from script2rs.transpiler.errors import (
    ExposeAttributeError,
    LifecycleSignatureError,
    ParseError,
    TranspilerError,
    TypeMismatchError,
    UnresolvedSymbolError,
)
from script2rs.transpiler.models import (
    EnumVariant,
    NodeFieldRef,
    NodeMethodRef,
    OperationSignature,
    RegistryEntry,
    ResourceModule,
    ScriptKind,
)
from script2rs.transpiler.normalizer import DEFAULT_BASE
from script2rs.transpiler.registry.builder import Registries
from script2rs.transpiler.registry.resource_modules import (
    CONTAINER_RESOURCES,
    RESOURCE_OF_KIND,
    VALUE_FIELDS,
)
from script2rs.transpiler.type_checker import (
    ARITHMETIC_OPS,
    binary_result,
    check_cast,
    check_expose,
    check_lifecycle,
    coerce,
    container_bindings,
    has_type_vars,
    is_error,
    is_numeric,
    is_untyped_literal,
    literal_type,
    substitute,
    unary_result,
)
from script2rs.transpiler.types import (
    ANY,
    BOOL,
    ERROR,
    F32,
    I32,
    STRING,
    VOID,
    ContainerKind,
    ContainerType,
    CustomType,
    EngineResourceType,
    EnumType,
    ErrorType,
    NodeHandleType,
    PrimitiveType,
    ResourceKind,
    ScriptHandleType,
    Type,
    TypeVar,
    array_of,
)

_RESOURCE_TYPES = {kind.value: kind for kind in ResourceKind}
_VECTOR_KINDS = (ResourceKind.VECTOR2, ResourceKind.VECTOR3, ResourceKind.COLOR)


class SymbolKind(Enum):
    LOCAL = auto()
    PARAM = auto()
    LOOP_VAR = auto()
    FIELD = auto()
    FUNCTION = auto()
    STRUCT = auto()
    STRUCT_FIELD = auto()


@dataclass(eq=False)
class Symbol:
    """A script-local declaration.

    Symbols compare by identity, so equally named declarations in different
    scopes stay distinct.
    """

    name: str
    kind: SymbolKind
    type: Type
    decl: Node | None = None
    is_const: bool = False
    signature: OperationSignature | None = None
    mutated: bool = False

    @property
    def is_handle(self) -> bool:
        return self.type.is_handle


class Scope:
    """Lexical scope with a link to its enclosing scope."""

    def __init__(self, parent: "Scope | None" = None):
        self.parent = parent
        self.symbols: dict[str, Symbol] = {}

    def define(self, symbol: Symbol) -> Symbol:
        self.symbols[symbol.name] = symbol
        return symbol

    def lookup(self, name: str) -> Symbol | None:
        scope: Scope | None = self
        while scope is not None:
            if name in scope.symbols:
                return scope.symbols[name]
            scope = scope.parent
        return None


@dataclass
class ResolvedScript:
    """A script whose AST has been annotated by the resolver.

    Attributes:
        script: The annotated script declaration
        base_tag: Node type the script is attached to (None for modules)
        fields: Script fields and functions by name
        structs: User struct symbols by name
        struct_fields: Field symbols per struct name
    """

    script: ScriptDecl
    base_tag: str | None
    fields: dict[str, Symbol] = field(default_factory=dict)
    structs: dict[str, Symbol] = field(default_factory=dict)
    struct_fields: dict[str, dict[str, Symbol]] = field(default_factory=dict)

    @property
    def is_module(self) -> bool:
        return self.script.kind is ScriptKind.MODULE


def _resource_owners(resource_modules) -> dict[ResourceModule, str]:
    """First frontend spelling of each resource module."""
    owners: dict[ResourceModule, str] = {}
    for owner, members in resource_modules.items():
        for ref in members.values():
            owners.setdefault(ref.resource, owner)
    return owners


class Resolver(Visitor[None]):
    """Resolves and type checks one script.

    Statements are handled by `visit_*` methods, expressions by `resolve_*`
    methods that receive the type expected at the use site (used for literal
    adoption and for inferring container constructors).
    """

    def __init__(
        self,
        script: ScriptDecl,
        registries: Registries,
        script_names: Iterable[str] = (),
        diagnostics: DiagnosticCollector | None = None,
    ):
        self.script = script
        self.registries = registries
        self.frontend = script.frontend
        self.symbols = registries.symbols[script.frontend]
        self.nodes = registries.nodes
        self.script_names = frozenset(script_names)
        if diagnostics is None:
            diagnostics = DiagnosticCollector(script.path)
        self.diagnostics = diagnostics

        self.fields = Scope()
        self.structs: dict[str, Symbol] = {}
        self.struct_fields: dict[str, dict[str, Symbol]] = {}
        self.base_tag: str | None = None

        self._scope = self.fields
        self._function: FunctionDecl | None = None
        self._loop_depth = 0
        self._owners = _resource_owners(self.symbols.resource_modules)

    # ====================
    # Entry point
    # ====================

    def resolve(self) -> ResolvedScript:
        """Resolve the whole script.

        Structs are declared first, then script fields, then function
        signatures, so function bodies can refer to any of them regardless of
        declaration order.
        """
        logger.debug(f"Resolving {self.script.kind.name.lower()} script '{self.script.name}'")
        self._resolve_base()

        for struct in self.script.structs:
            self.structs[struct.name] = Symbol(
                struct.name, SymbolKind.STRUCT, CustomType(struct.name), struct
            )
        for struct in self.script.structs:
            self._resolve_struct(struct)

        for decl in self.script.fields:
            self._declare_field(decl)
        for function in self.script.functions:
            self._declare_function(function)
        for function in self.script.functions:
            self._resolve_body(function)

        logger.debug(
            f"Resolved '{self.script.name}': {self.diagnostics.error_count} errors"
        )
        return ResolvedScript(
            self.script,
            self.base_tag,
            dict(self.fields.symbols),
            dict(self.structs),
            self.struct_fields,
        )

    def _report(self, error: TranspilerError, span: SourceSpan) -> None:
        if error.span is None or error.span == UNKNOWN_SPAN:
            error = error.with_span(span)
        self.diagnostics.report(error)

    def _coerce(
        self, expr: Expr, expected: Type, arg_index: int | None = None, context: str = ""
    ) -> None:
        try:
            coerce(expr, expected, self.nodes, arg_index, context)
        except TypeMismatchError as e:
            self._report(e, expr.span)

    # ====================
    # Declarations
    # ====================

    def _resolve_base(self) -> None:
        if self.script.kind is ScriptKind.MODULE:
            return
        base = self.script.base_type or DEFAULT_BASE
        if not self.nodes.is_node_type(base):
            self._report(
                UnresolvedSymbolError(base, self.script.span, "unknown node type"),
                self.script.span,
            )
            base = DEFAULT_BASE
        self.base_tag = base

    def resolve_type(self, ref: TypeRef) -> Type:
        """Resolve a type annotation.

        Args:
            ref: Type annotation as written in the source

        Returns:
            The resolved type

        Raises:
            UnresolvedSymbolError: If the annotation names no known type or
                has the wrong number of type arguments
        """
        name = ref.name
        if name in self.symbols.type_names:
            if ref.args:
                raise UnresolvedSymbolError(str(ref), ref.span, f"'{name}' takes no type arguments")
            return self.symbols.type_names[name]
        if name in self.symbols.container_names:
            kind = self.symbols.container_names[name]
            arity = 1 if kind is ContainerKind.ARRAY else 2
            if len(ref.args) != arity:
                raise UnresolvedSymbolError(
                    str(ref), ref.span, f"'{name}' takes {arity} type argument(s)"
                )
            return ContainerType(kind, tuple(self.resolve_type(arg) for arg in ref.args))
        if name in _RESOURCE_TYPES:
            return EngineResourceType(_RESOURCE_TYPES[name])
        if self.nodes.is_node_type(name):
            return NodeHandleType(name)
        if name in self.symbols.enums:
            return EnumType(self.symbols.enums[name])
        if name in self.structs:
            return CustomType(name)
        if name in self.script_names:
            return ScriptHandleType(name)
        raise UnresolvedSymbolError(name, ref.span, "unknown type")

    def _type_or_error(self, ref: TypeRef, span: SourceSpan) -> Type:
        try:
            return self.resolve_type(ref)
        except TranspilerError as e:
            self._report(e, span)
            return ERROR

    def _declared_type(self, decl: VarDecl) -> Type:
        """Type of a variable declaration from its annotation and initializer."""
        declared = self._type_or_error(decl.type_ref, decl.span) if decl.type_ref else None
        context = f"initializer of '{decl.name}'"
        if decl.value is not None:
            actual = self.resolve_expr(decl.value, declared)
            if declared is None:
                if actual == VOID:
                    self._report(
                        TypeMismatchError("a value", VOID, span=decl.value.span, context=context),
                        decl.span,
                    )
                    return ERROR
                return actual
            self._coerce(decl.value, declared, context=context)
            return declared
        if declared is None:
            self._report(
                TypeMismatchError(
                    "a type annotation or an initializer",
                    "neither",
                    span=decl.span,
                    context=f"declaration of '{decl.name}'",
                ),
                decl.span,
            )
            return ERROR
        return declared

    def _resolve_struct(self, struct: StructDecl) -> None:
        members: dict[str, Symbol] = {}
        saved, self._scope = self._scope, Scope()
        for decl in struct.fields:
            self._check_expose(decl, top_level=False)
            decl.resolved_type = self._declared_type(decl)
            decl.symbol = members[decl.name] = Symbol(
                decl.name, SymbolKind.STRUCT_FIELD, decl.resolved_type, decl
            )
        self._scope = saved
        self.struct_fields[struct.name] = members

    def _check_expose(self, decl: VarDecl | FunctionDecl, top_level: bool) -> None:
        try:
            check_expose(decl, self.script, self.symbols, top_level)
        except ExposeAttributeError as e:
            self._report(e, decl.span)

    def _declare_field(self, decl: VarDecl) -> None:
        self._check_expose(decl, top_level=True)
        decl.resolved_type = self._declared_type(decl)
        # Module fields are read-only: they have no instance to live in.
        is_const = decl.is_const or self.script.kind is ScriptKind.MODULE
        decl.symbol = self.fields.define(
            Symbol(decl.name, SymbolKind.FIELD, decl.resolved_type, decl, is_const=is_const)
        )

    def _declare_function(self, function: FunctionDecl) -> None:
        for param in function.params:
            param.resolved_type = self._type_or_error(param.type_ref, param.span)
        if function.return_type is not None:
            function.resolved_return = self._type_or_error(function.return_type, function.span)
        else:
            function.resolved_return = VOID

        self._check_expose(function, top_level=True)
        try:
            check_lifecycle(function)
        except LifecycleSignatureError as e:
            self._report(e, function.span)

        signature = OperationSignature(
            tuple(p.resolved_type for p in function.params),
            function.resolved_return,
            tuple(p.name for p in function.params),
        )
        self.fields.define(
            Symbol(
                function.name,
                SymbolKind.FUNCTION,
                function.resolved_return,
                function,
                signature=signature,
            )
        )

    def _resolve_body(self, function: FunctionDecl) -> None:
        self._function = function
        self._scope = Scope(self.fields)
        for param in function.params:
            param.symbol = self._scope.define(
                Symbol(param.name, SymbolKind.PARAM, param.resolved_type, param)
            )
        self.resolve_block(function.body, new_scope=False)
        self._scope = self.fields
        self._function = None

    # ====================
    # Statements
    # ====================

    def resolve_block(self, body: Sequence[Stmt], new_scope: bool = True) -> None:
        if new_scope:
            self._scope = Scope(self._scope)
        for stmt in body:
            try:
                self.visit(stmt)
            except TranspilerError as e:
                self._report(e, stmt.span)
        if new_scope:
            self._scope = self._scope.parent

    def visit_VarDecl(self, node: VarDecl) -> None:
        self._check_expose(node, top_level=False)
        node.resolved_type = self._declared_type(node)
        node.symbol = self._scope.define(
            Symbol(node.name, SymbolKind.LOCAL, node.resolved_type, node, is_const=node.is_const)
        )

    def visit_Assignment(self, node: Assignment) -> None:
        """Check an assignment target and the assigned value.

        Compound assignments need a numeric target (or a string target for
        `+=`, or a vector target for component-wise operators).
        """
        target_type = self.resolve_expr(node.target)
        self._check_assignable(node.target, node.op)
        self.resolve_expr(node.value, None if is_error(target_type) else target_type)
        if is_error(target_type) or is_error(node.value.type):
            return

        context = f"assignment '{node.op}'"
        if node.op == "=":
            self._coerce(node.value, target_type, context=context)
            return
        op = node.op[:-1]
        if op == "+" and target_type == STRING:
            return
        if isinstance(target_type, EngineResourceType) and target_type.kind in _VECTOR_KINDS:
            result = binary_result(node.target, node.value, op)
            if result != target_type:
                raise TypeMismatchError(target_type, result, span=node.value.span, context=context)
            return
        if not is_numeric(target_type):
            raise TypeMismatchError("a numeric type", target_type, span=node.target.span, context=context)
        self._coerce(node.value, target_type, context=context)

    def _check_assignable(self, target: Expr, op: str, nested: bool = False) -> None:
        """Check that `target` names storage that can be written.

        Raises:
            TypeMismatchError: If the target is not assignable
        """
        if is_error(target.type):
            return
        symbol = target.symbol if isinstance(target.symbol, Symbol) else None
        if symbol is not None and isinstance(target, Name | MemberAccess):
            if symbol.kind is SymbolKind.FUNCTION:
                raise TypeMismatchError("an assignable variable", f"function '{symbol.name}'", span=target.span)
            if symbol.kind is SymbolKind.LOOP_VAR:
                raise TypeMismatchError("an assignable variable", f"loop variable '{symbol.name}'", span=target.span)
            if symbol.is_const:
                raise TypeMismatchError("an assignable variable", f"constant '{symbol.name}'", span=target.span)
            if symbol.kind is SymbolKind.STRUCT_FIELD and isinstance(target, MemberAccess):
                self._check_assignable(target.value, "=", nested=True)
            symbol.mutated = True
            return
        if isinstance(target.ref, NodeFieldRef):
            return
        if isinstance(target, MemberAccess | DynamicGet) and isinstance(target.ref, NodeMethodRef):
            if target.ref.is_dynamic and not nested:
                return
        elif isinstance(target, MemberAccess) and target.ref is None:
            # Plain struct field of an engine value, e.g. `position.x`
            self._check_assignable(target.value, "=", nested=True)
            return
        elif isinstance(target, Index):
            self._check_assignable(target.value, "=", nested=True)
            return
        raise TypeMismatchError("an assignable target", "an expression", span=target.span)

    def _mark_mutated(self, expr: Expr) -> None:
        while isinstance(expr, MemberAccess | Index) and expr.symbol is None:
            expr = expr.value
        if isinstance(expr.symbol, Symbol):
            expr.symbol.mutated = True

    def visit_ExprStmt(self, node: ExprStmt) -> None:
        self.resolve_expr(node.value)

    def _condition(self, test: Expr) -> None:
        self.resolve_expr(test, BOOL)
        self._coerce(test, BOOL, context="condition")

    def visit_If(self, node: If) -> None:
        self._condition(node.test)
        self.resolve_block(node.body)
        self.resolve_block(node.orelse)

    def visit_While(self, node: While) -> None:
        self._condition(node.test)
        self._loop_body(node.body)

    def _loop_body(self, body: list[Stmt], scope: Scope | None = None) -> None:
        self._loop_depth += 1
        if scope is not None:
            saved, self._scope = self._scope, scope
            self.resolve_block(body, new_scope=False)
            self._scope = saved
        else:
            self.resolve_block(body)
        self._loop_depth -= 1

    def visit_ForRange(self, node: ForRange) -> None:
        first, second = node.start, node.end
        if is_untyped_literal(first) and not is_untyped_literal(second):
            first, second = second, first
        first_type = self.resolve_expr(first)
        self.resolve_expr(second, first_type if is_numeric(first_type) else None)

        var_type = I32
        try:
            for bound in (node.start, node.end):
                t = bound.type
                if not is_error(t) and not (isinstance(t, PrimitiveType) and t.is_integer):
                    raise TypeMismatchError("an integer type", t, span=bound.span, context="range bound")
            var_type = binary_result(node.start, node.end, "-")
        except TypeMismatchError as e:
            self._report(e, node.span)
            var_type = ERROR

        scope = Scope(self._scope)
        node.var_symbol = scope.define(Symbol(node.var, SymbolKind.LOOP_VAR, var_type, node))
        self._loop_body(node.body, scope)

    def visit_ForEach(self, node: ForEach) -> None:
        iterable_type = self.resolve_expr(node.iterable)
        match iterable_type:
            case ContainerType(kind=ContainerKind.ARRAY):
                var_type = iterable_type.element
            case ContainerType(kind=ContainerKind.MAP):
                var_type = iterable_type.params[0]
            case ErrorType():
                var_type = ERROR
            case _:
                self._report(
                    TypeMismatchError(
                        "an Array or Map", iterable_type, span=node.iterable.span, context="for loop"
                    ),
                    node.span,
                )
                var_type = ERROR
        scope = Scope(self._scope)
        node.var_symbol = scope.define(Symbol(node.var, SymbolKind.LOOP_VAR, var_type, node))
        self._loop_body(node.body, scope)

    def visit_Return(self, node: Return) -> None:
        expected = self._function.resolved_return if self._function else VOID
        if node.value is None:
            if expected != VOID and not is_error(expected):
                raise TypeMismatchError(expected, VOID, span=node.span, context="return")
            return
        actual = self.resolve_expr(node.value, expected)
        if expected == VOID:
            if not is_error(actual):
                raise TypeMismatchError(VOID, actual, span=node.value.span, context="return")
            return
        self._coerce(node.value, expected, context="return")

    def visit_Break(self, node: Break) -> None:
        if self._loop_depth == 0:
            raise ParseError("'break' outside of a loop", node.span)

    def visit_Continue(self, node: Continue) -> None:
        if self._loop_depth == 0:
            raise ParseError("'continue' outside of a loop", node.span)

    def visit_Pass(self, node: Pass) -> None:
        pass

    # ====================
    # Expressions
    # ====================

    def resolve_expr(self, expr: Expr, expected: Type | None = None) -> Type:
        """Resolve an expression and annotate it with its type.

        Args:
            expr: Expression to resolve
            expected: Type expected at the use site, if known

        Returns:
            The resolved type; the poison type if resolution failed
        """
        method = getattr(self, f"resolve_{expr.__class__.__name__}")
        try:
            result = method(expr, expected)
        except TranspilerError as e:
            self._report(e, expr.span)
            result = ERROR
        expr.type = result
        return result

    def resolve_Literal(self, expr: Literal, expected: Type | None) -> Type:
        return literal_type(expr, expected, self.symbols)

    def resolve_Name(self, expr: Name, expected: Type | None) -> Type:
        symbol = self._scope.lookup(expr.id)
        if symbol is not None:
            if symbol.kind is SymbolKind.FUNCTION:
                raise UnresolvedSymbolError(expr.id, expr.span, "functions must be called")
            expr.symbol = symbol
            return symbol.type
        entry = self._implicit_node_member(expr.id)
        if entry is not None and isinstance(entry.ref, NodeFieldRef):
            expr.ref = entry.ref
            return entry.return_type
        if expr.id in self.script_names:
            return ScriptHandleType(expr.id)
        raise UnresolvedSymbolError(expr.id, expr.span)

    def resolve_SelfRef(self, expr: SelfRef, expected: Type | None) -> Type:
        if self.base_tag is None:
            raise UnresolvedSymbolError("self", expr.span, "module scripts have no attached node")
        return NodeHandleType(self.base_tag)

    def resolve_MemberAccess(self, expr: MemberAccess, expected: Type | None) -> Type:
        static = self._static_member(expr.value, expr.member, expr.span)
        if static is not None:
            if isinstance(static.ref, EnumVariant) or not static.param_types:
                expr.ref = static.ref
                return static.return_type
            raise UnresolvedSymbolError(
                f"{expr.value.id}.{expr.member}", expr.span, "operation takes arguments and must be called"
            )

        value_type = self.resolve_expr(expr.value)
        if is_error(value_type):
            return ERROR
        if isinstance(expr.value, SelfRef):
            symbol = self.fields.symbols.get(expr.member)
            if symbol is not None:
                if symbol.kind is SymbolKind.FUNCTION:
                    raise UnresolvedSymbolError(expr.member, expr.span, "functions must be called")
                expr.symbol = symbol
                return symbol.type
        return self._member_of(expr, value_type)

    def _member_of(self, expr: MemberAccess, value_type: Type) -> Type:
        member = expr.member
        match value_type:
            case NodeHandleType(tag=tag):
                entry = self.nodes.lookup(self.frontend, tag, member)
                if entry is not None and isinstance(entry.ref, NodeFieldRef):
                    expr.ref = entry.ref
                    return entry.return_type
                hint = "methods must be called" if entry is not None else ""
                raise UnresolvedSymbolError(f"{tag}.{member}", expr.span, hint)
            case ScriptHandleType():
                expr.ref = NodeMethodRef(DEFAULT_BASE, "get_var")
                return ANY
            case EngineResourceType(kind=kind):
                value_fields = VALUE_FIELDS.get(kind, {})
                canonical = self.symbols.canonical_member(member, frozenset(value_fields))
                if canonical is not None:
                    expr.member = canonical
                    return value_fields[canonical]
                return self._property_op(expr, value_type, RESOURCE_OF_KIND[kind])
            case ContainerType(kind=kind):
                return self._property_op(expr, value_type, CONTAINER_RESOURCES[kind])
            case CustomType(name=name) if member in self.struct_fields.get(name, {}):
                symbol = self.struct_fields[name][member]
                expr.symbol = symbol
                return symbol.type
        raise UnresolvedSymbolError(f"{value_type}.{member}", expr.span)

    def _property_op(self, expr: MemberAccess, value_type: Type, module: ResourceModule) -> Type:
        """Zero-argument instance operation read like a property, e.g. `list.Count`."""
        entry = self._instance_entry(module, expr.member)
        if entry is None or len(entry.param_types) != 1:
            raise UnresolvedSymbolError(f"{value_type}.{expr.member}", expr.span)
        expr.ref = entry.ref
        bindings = container_bindings(entry.param_types[0], value_type)
        return self._result_type(entry.return_type, bindings, None, expr.span)

    def resolve_DynamicGet(self, expr: DynamicGet, expected: Type | None) -> Type:
        value_type = self.resolve_expr(expr.value)
        expr.ref = NodeMethodRef(self._dynamic_tag(expr.value, value_type), "get_var")
        return ERROR if is_error(value_type) else ANY

    def _dynamic_tag(self, value: Expr, value_type: Type) -> str:
        match value_type:
            case NodeHandleType(tag=tag):
                return tag
            case ScriptHandleType() | ErrorType():
                return DEFAULT_BASE
        raise TypeMismatchError("a node or script handle", value_type, span=value.span, context="by-name access")

    def resolve_Call(self, expr: Call, expected: Type | None) -> Type:
        func = expr.func
        match func:
            case Name(id=name):
                return self._call_name(expr, name)
            case MemberAccess():
                return self._call_member(expr, func, expected)
            case DynamicGet():
                value_type = self.resolve_expr(func.value)
                return self._dynamic_call(expr, func.value, value_type, func.member)
        raise UnresolvedSymbolError("expression", func.span, "expression is not callable")

    def _call_name(self, expr: Call, name: str) -> Type:
        symbol = self._scope.lookup(name)
        if symbol is not None:
            if symbol.kind is not SymbolKind.FUNCTION:
                raise UnresolvedSymbolError(name, expr.func.span, f"'{name}' is not a function")
            return self._call_function(expr, symbol)
        entry = self._implicit_node_member(name)
        if entry is not None and isinstance(entry.ref, NodeMethodRef):
            receiver = SelfRef(span=expr.func.span)
            self.resolve_expr(receiver)
            return self._call_node_method(expr, entry, receiver)
        raise UnresolvedSymbolError(name, expr.func.span)

    def _call_function(self, expr: Call, symbol: Symbol) -> Type:
        expr.symbol = symbol
        self._check_arguments(symbol.signature, expr.args, f"'{symbol.name}'", expr.span)
        return symbol.signature.return_type

    def _call_node_method(self, expr: Call, entry: RegistryEntry, receiver: Expr) -> Type:
        expr.ref = entry.ref
        expr.receiver = receiver
        expr.bound_args = list(expr.args)
        self._check_arguments(entry.signature, expr.args, str(entry.ref), expr.span)
        return entry.return_type

    def _dynamic_call(self, expr: Call, receiver: Expr, receiver_type: Type, member: str) -> Type:
        """By-name call on another node's script; the name travels as a string."""
        tag = self._dynamic_tag(receiver, receiver_type)
        if expr.args:
            raise TypeMismatchError(
                "0 arguments", len(expr.args), span=expr.span, context=f"by-name call to '{member}'"
            )
        expr.ref = NodeMethodRef(tag, "call")
        expr.receiver = receiver
        expr.bound_args = [Literal(member, LiteralKind.STRING, span=expr.func.span, type=STRING)]
        return ANY

    def _call_member(self, expr: Call, func: MemberAccess, expected: Type | None) -> Type:
        static = self._static_member(func.value, func.member, func.span)
        if static is not None:
            if isinstance(static.ref, EnumVariant):
                raise UnresolvedSymbolError(str(static.ref), func.span, "enum variants are not callable")
            expr.ref = static.ref
            expr.bound_args = list(expr.args)
            bindings = self._check_arguments(
                static.signature, expr.args, f"{func.value.id}.{func.member}", expr.span
            )
            if static.ref in MUTATING_OPS and expr.args:
                self._mark_mutated(expr.args[0])
            return self._result_type(static.return_type, bindings, expected, expr.span)

        value = func.value
        value_type = self.resolve_expr(value)
        if is_error(value_type):
            for arg in expr.args:
                self.resolve_expr(arg)
            return ERROR
        if isinstance(value, SelfRef):
            symbol = self.fields.symbols.get(func.member)
            if symbol is not None:
                if symbol.kind is not SymbolKind.FUNCTION:
                    raise UnresolvedSymbolError(func.member, func.span, f"'{func.member}' is not a function")
                return self._call_function(expr, symbol)

        match value_type:
            case NodeHandleType(tag=tag):
                entry = self.nodes.lookup(self.frontend, tag, func.member)
                if entry is None or not isinstance(entry.ref, NodeMethodRef):
                    raise UnresolvedSymbolError(f"{tag}.{func.member}", func.span)
                return self._call_node_method(expr, entry, value)
            case ScriptHandleType():
                return self._dynamic_call(expr, value, value_type, func.member)
            case EngineResourceType(kind=kind):
                module = RESOURCE_OF_KIND[kind]
            case ContainerType(kind=kind):
                module = CONTAINER_RESOURCES[kind]
            case _:
                raise UnresolvedSymbolError(f"{value_type}.{func.member}", func.span)

        entry = self._instance_entry(module, func.member)
        if entry is None:
            raise UnresolvedSymbolError(f"{value_type}.{func.member}", func.span)
        expr.ref = entry.ref
        expr.bound_args = [value, *expr.args]
        bindings = self._check_arguments(
            entry.signature, expr.bound_args, f"{value_type}.{func.member}", expr.span, offset=1
        )
        if entry.ref in MUTATING_OPS:
            self._mark_mutated(value)
        return self._result_type(entry.return_type, bindings, expected, expr.span)

    def _check_arguments(
        self,
        signature: OperationSignature,
        args: list[Expr],
        callee: str,
        span: SourceSpan,
        offset: int = 0,
    ) -> dict[str, Type]:
        """Resolve call arguments and check them against a signature.

        Type variables bind to the first argument that fixes them, normally
        the receiver container.

        Args:
            signature: Signature of the called operation
            args: Arguments in signature order
            callee: Callee description for error messages
            span: Span of the call
            offset: Number of leading arguments that are not user-written
                (an instance receiver)

        Returns:
            The type variable bindings

        Raises:
            TypeMismatchError: If the argument count does not match
        """
        params = signature.param_types
        if len(args) != len(params):
            for arg in args:
                if arg.type is None:
                    self.resolve_expr(arg)
            raise TypeMismatchError(
                f"{len(params) - offset} arguments",
                len(args) - offset,
                span=span,
                context=f"call to {callee}",
            )

        bindings: dict[str, Type] = {}
        for i, (arg, param) in enumerate(zip(args, params)):
            expected = substitute(param, bindings)
            if arg.type is None:
                self.resolve_expr(arg, None if has_type_vars(expected) else expected)
            if has_type_vars(expected) and not is_error(arg.type):
                if isinstance(expected, TypeVar):
                    bindings[expected.name] = arg.type
                else:
                    bindings.update(container_bindings(expected, arg.type))
                expected = substitute(param, bindings)
            if not has_type_vars(expected):
                self._coerce(arg, expected, arg_index=i - offset, context=f"call to {callee}")
        return bindings

    def _result_type(
        self, returns: Type, bindings: dict[str, Type], expected: Type | None, span: SourceSpan
    ) -> Type:
        result = substitute(returns, bindings)
        if not has_type_vars(result):
            return result
        if isinstance(expected, ContainerType) and isinstance(result, ContainerType):
            if expected.kind is result.kind and not has_type_vars(expected):
                return expected
        if isinstance(result, TypeVar):
            return expected if expected is not None and not has_type_vars(expected) else ANY
        raise TypeMismatchError(
            "an annotated container type", result, span=span, context="container construction"
        )

    def _implicit_node_member(self, name: str) -> RegistryEntry | None:
        if self.base_tag is None:
            return None
        return self.nodes.lookup(self.frontend, self.base_tag, name)

    def _static_member(self, owner: Expr, member: str, span: SourceSpan) -> RegistryEntry | None:
        """Resolve `Owner.member` where `Owner` is a module, resource type or enum.

        Returns None when `owner` is not a static owner, so the access is
        resolved as a member of a value instead.

        Raises:
            UnresolvedSymbolError: If the owner is known but the member is not
        """
        if not isinstance(owner, Name) or self._scope.lookup(owner.id) is not None:
            return None
        name = owner.id
        for registry in (self.registries.resources, self.registries.api):
            entry = registry.lookup(self.frontend, name, member)
            if entry is not None:
                return entry
        if name in self.symbols.enums:
            entry = self.nodes.lookup(self.frontend, name, member)
            if entry is not None and isinstance(entry.ref, EnumVariant):
                return entry
        is_owner = (
            self.registries.resources.has_owner(self.frontend, name)
            or self.registries.api.has_owner(self.frontend, name)
            or name in self.symbols.enums
        )
        implicit = self._implicit_node_member(name)
        if is_owner and not (implicit is not None and isinstance(implicit.ref, NodeFieldRef)):
            raise UnresolvedSymbolError(f"{name}.{member}", span)
        return None

    def _instance_entry(self, module: ResourceModule, member: str) -> RegistryEntry | None:
        owner = self._owners.get(module)
        if owner is None:
            return None
        entry = self.registries.resources.lookup(self.frontend, owner, member)
        if entry is None or not entry.signature.instance:
            return None
        return entry

    def resolve_New(self, expr: New, expected: Type | None) -> Type:
        target = self._constructed_type(expr.type_ref, expected)
        match target:
            case ContainerType(kind=kind):
                if expr.args:
                    raise TypeMismatchError("0 arguments", len(expr.args), span=expr.span, context=f"new {target}")
                entry = self._constructor(CONTAINER_RESOURCES[kind], expr.type_ref)
                expr.ref = entry.ref
                expr.bound_args = []
                return target
            case EngineResourceType(kind=kind):
                entry = self._constructor(RESOURCE_OF_KIND[kind], expr.type_ref)
                expr.ref = entry.ref
                expr.bound_args = list(expr.args)
                self._check_arguments(entry.signature, expr.args, f"new {target}", expr.span)
                return entry.return_type
            case CustomType(name=name):
                if expr.args:
                    raise TypeMismatchError("0 arguments", len(expr.args), span=expr.span, context=f"new {name}")
                expr.symbol = self.structs[name]
                return target
            case NodeHandleType(tag=tag):
                raise UnresolvedSymbolError(f"new {tag}", expr.span, "engine nodes cannot be constructed by scripts")
        raise TypeMismatchError("a constructible type", target, span=expr.span, context="new")

    def _constructed_type(self, ref: TypeRef, expected: Type | None) -> Type:
        kind = self.symbols.container_names.get(ref.name)
        if kind is not None and not ref.args:
            if isinstance(expected, ContainerType) and expected.kind is kind:
                return expected
            raise TypeMismatchError(
                "an annotated container type", ref.name, span=ref.span, context="container construction"
            )
        return self.resolve_type(ref)

    def _constructor(self, module: ResourceModule, ref: TypeRef) -> RegistryEntry:
        owner = self._owners.get(module)
        entry = self.registries.resources.lookup(self.frontend, owner, "new") if owner else None
        if entry is None:
            raise UnresolvedSymbolError(f"new {ref.name}", ref.span, "type has no constructor")
        return entry

    def resolve_Index(self, expr: Index, expected: Type | None) -> Type:
        value_type = self.resolve_expr(expr.value)
        match value_type:
            case ContainerType(kind=ContainerKind.ARRAY):
                index_type = self.resolve_expr(expr.index, I32)
                if not is_error(index_type) and not (
                    isinstance(index_type, PrimitiveType) and index_type.is_integer
                ):
                    raise TypeMismatchError("an integer type", index_type, span=expr.index.span, context="index")
                return value_type.element
            case ContainerType(kind=ContainerKind.MAP):
                key_type, item_type = value_type.params
                self.resolve_expr(expr.index, key_type)
                self._coerce(expr.index, key_type, context="map key")
                return item_type
            case ErrorType():
                self.resolve_expr(expr.index)
                return ERROR
        raise TypeMismatchError("an Array or Map", value_type, span=expr.value.span, context="index")

    def resolve_BinaryOp(self, expr: BinaryOp, expected: Type | None) -> Type:
        hint = expected if expr.op in ARITHMETIC_OPS and is_numeric(expected) else None
        first, second = expr.left, expr.right
        if is_untyped_literal(first) and not is_untyped_literal(second):
            first, second = second, first
        first_type = self.resolve_expr(first, hint)
        if is_numeric(first_type):
            hint = first_type
        elif isinstance(first_type, EngineResourceType) and first_type.kind in _VECTOR_KINDS:
            hint = F32
        self.resolve_expr(second, hint)
        return binary_result(expr.left, expr.right, expr.op)

    def resolve_UnaryOp(self, expr: UnaryOp, expected: Type | None) -> Type:
        self.resolve_expr(expr.operand, expected if expr.op == "-" and is_numeric(expected) else None)
        return unary_result(expr.operand, expr.op)

    def resolve_Cast(self, expr: Cast, expected: Type | None) -> Type:
        target = self.resolve_type(expr.target)
        self.resolve_expr(expr.value, target if is_numeric(target) else None)
        check_cast(expr.value, target, self.nodes)
        return target

    def resolve_ArrayLiteral(self, expr: ArrayLiteral, expected: Type | None) -> Type:
        element = None
        if isinstance(expected, ContainerType) and expected.kind is ContainerKind.ARRAY:
            if not has_type_vars(expected):
                element = expected.element
        if not expr.elements:
            if element is None:
                raise TypeMismatchError(
                    "an annotated array type", "an empty array literal", span=expr.span
                )
            return array_of(element)
        for item in expr.elements:
            item_type = self.resolve_expr(item, element)
            if element is None and not is_error(item_type):
                element = item_type
        if element is None:
            return ERROR
        for item in expr.elements:
            self._coerce(item, element, context="array literal")
        return array_of(element)


def resolve_script(
    script: ScriptDecl,
    registries: Registries,
    script_names: Iterable[str] = (),
    diagnostics: DiagnosticCollector | None = None,
) -> ResolvedScript:
    """Resolve and type check one script.

    Args:
        script: Normalized script declaration; annotated in place
        registries: Frozen registries
        script_names: Names of all scripts in the compilation pass
        diagnostics: Collector receiving the problems found

    Returns:
        The resolved script
    """
    return Resolver(script, registries, script_names, diagnostics).resolve()
