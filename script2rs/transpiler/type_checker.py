"""
Type checking rules for the shared AST.

The resolver decides what every expression refers to; the functions here
decide whether a resolved type fits where it is used. A fit may require an
implicit widening, which is recorded on the expression as `cast_to` and later
emitted as an explicit `as` cast.
"""

from script2rs.transpiler.ast.nodes import (
    Expr,
    FunctionDecl,
    Literal,
    LiteralKind,
    ScriptDecl,
    VarDecl,
)
from script2rs.transpiler.errors import (
    ExposeAttributeError,
    LifecycleSignatureError,
    TypeMismatchError,
    UnresolvedSymbolError,
)
from script2rs.transpiler.models import ScriptKind
from script2rs.transpiler.registry.engine_nodes import EngineNodeRegistry
from script2rs.transpiler.registry.symbols import FrontendSymbols
from script2rs.transpiler.types import (
    ANY,
    BOOL,
    DECIMAL,
    ERROR,
    F32,
    I32,
    STRING,
    VOID,
    ContainerType,
    EngineResourceType,
    ErrorType,
    NodeHandleType,
    PrimitiveType,
    ResourceKind,
    ScriptHandleType,
    Type,
    TypeVar,
    can_widen,
)

COMPARISON_OPS = ("==", "!=", "<", ">", "<=", ">=")
LOGICAL_OPS = ("&&", "||")
ARITHMETIC_OPS = ("+", "-", "*", "/", "%")

# Value resources supporting component-wise arithmetic
_VECTOR_KINDS = (ResourceKind.VECTOR2, ResourceKind.VECTOR3, ResourceKind.COLOR)


def is_error(t: Type | None) -> bool:
    return isinstance(t, ErrorType)


def is_numeric(t: Type | None) -> bool:
    return isinstance(t, PrimitiveType) and t.is_numeric


def is_untyped_literal(expr: Expr) -> bool:
    """Numeric literal without a source suffix; it adopts the expected type."""
    return (
        isinstance(expr, Literal)
        and expr.kind in (LiteralKind.INT, LiteralKind.FLOAT)
        and expr.suffix is None
    )


def literal_type(literal: Literal, expected: Type | None, symbols: FrontendSymbols) -> Type:
    """Determine the type of a literal.

    Suffixed literals keep the type their suffix names. Unsuffixed integer
    literals adopt any expected numeric type, unsuffixed float literals adopt
    an expected float or decimal type.

    Args:
        literal: Literal node
        expected: Type expected at the use site, if known
        symbols: Symbol table of the literal's frontend

    Returns:
        The literal's type

    Raises:
        UnresolvedSymbolError: If the suffix names no type
        TypeMismatchError: If an integer literal does not fit its type
    """
    if literal.suffix is not None:
        if literal.suffix not in symbols.type_names:
            raise UnresolvedSymbolError(literal.suffix, literal.span, "unknown literal suffix")
        return check_literal_range(literal, symbols.type_names[literal.suffix])
    match literal.kind:
        case LiteralKind.BOOL:
            return BOOL
        case LiteralKind.STRING:
            return STRING
        case LiteralKind.INT:
            if isinstance(expected, PrimitiveType) and expected.is_unsigned and literal.value < 0:
                return I32
            if is_numeric(expected):
                return check_literal_range(literal, expected)
            return check_literal_range(literal, I32)
        case LiteralKind.FLOAT:
            if isinstance(expected, PrimitiveType) and (expected.is_float or expected == DECIMAL):
                return expected
            return F32
    return ERROR


def check_literal_range(literal: Literal, t: Type) -> Type:
    """Return `t`, or raise if the integer `literal` is not representable in it."""
    if literal.kind is not LiteralKind.INT or not isinstance(t, PrimitiveType) or not t.is_integer:
        return t
    if t.is_signed:
        low, high = -(2 ** (t.bits - 1)), 2 ** (t.bits - 1) - 1
    else:
        low, high = 0, 2**t.bits - 1
    if not low <= literal.value <= high:
        raise TypeMismatchError(t, literal.value, span=literal.span, context="integer literal")
    return t


def node_compatible(actual: Type, expected: Type, nodes: EngineNodeRegistry | None) -> bool:
    """Check whether a handle may be used where another handle is expected."""
    if isinstance(expected, NodeHandleType):
        if isinstance(actual, NodeHandleType):
            return nodes is not None and nodes.is_subtype(actual.tag, expected.tag)
        return isinstance(actual, ScriptHandleType)
    return False


def coerce(
    expr: Expr,
    expected: Type,
    nodes: EngineNodeRegistry | None = None,
    arg_index: int | None = None,
    context: str = "",
) -> None:
    """Check that a resolved expression fits `expected`.

    Records an implicit widening, or boxing into `any`, as `expr.cast_to`.

    Args:
        expr: Resolved expression
        expected: Type required at the use site
        nodes: Node registry, for handle subtyping
        arg_index: Argument index when checking a call argument
        context: Short description of the use site

    Raises:
        TypeMismatchError: If the types do not fit
    """
    actual = expr.type
    if actual is None or is_error(actual) or is_error(expected):
        return
    if actual == expected or isinstance(expected, TypeVar):
        return
    if actual == VOID:
        raise TypeMismatchError(expected, actual, arg_index, expr.span, context)
    if expected == ANY:
        expr.cast_to = ANY
        return
    if can_widen(actual, expected):
        expr.cast_to = expected
        return
    if node_compatible(actual, expected, nodes):
        return
    raise TypeMismatchError(expected, actual, arg_index, expr.span, context)


def unify_operands(left: Expr, right: Expr, op: str) -> Type:
    """Bring both operands of a binary operator to one common type.

    Returns:
        The common operand type

    Raises:
        TypeMismatchError: If no common type exists
    """
    lt, rt = left.type, right.type
    if is_error(lt) or is_error(rt):
        return ERROR
    if lt == rt:
        return lt
    if can_widen(lt, rt):
        left.cast_to = rt
        return rt
    if can_widen(rt, lt):
        right.cast_to = lt
        return lt
    raise TypeMismatchError(lt, rt, span=right.span, context=f"operator '{op}'")


def binary_result(left: Expr, right: Expr, op: str) -> Type:
    """Type of `left op right` once both operands are resolved.

    Raises:
        TypeMismatchError: If the operator does not apply to the operands
    """
    lt, rt = left.type, right.type
    if is_error(lt) or is_error(rt):
        return ERROR

    if op in LOGICAL_OPS:
        for operand in (left, right):
            if operand.type != BOOL:
                raise TypeMismatchError(BOOL, operand.type, span=operand.span, context=f"operator '{op}'")
        return BOOL

    if op == "+" and (lt == STRING or rt == STRING):
        return STRING

    if op in ARITHMETIC_OPS and isinstance(lt, EngineResourceType) and lt.kind in _VECTOR_KINDS:
        if rt == lt and op in ("+", "-", "*"):
            return lt
        if is_numeric(rt) and op in ("*", "/"):
            if rt != F32:
                coerce(right, F32, context=f"operator '{op}'")
            return lt
        raise TypeMismatchError(lt, rt, span=right.span, context=f"operator '{op}'")

    common = unify_operands(left, right, op)
    if is_error(common):
        return ERROR
    if op in COMPARISON_OPS:
        if op not in ("==", "!=") and not is_numeric(common):
            raise TypeMismatchError("a numeric type", common, span=left.span, context=f"operator '{op}'")
        return BOOL
    if not is_numeric(common):
        raise TypeMismatchError("a numeric type", common, span=left.span, context=f"operator '{op}'")
    return common


def unary_result(operand: Expr, op: str) -> Type:
    """Type of a unary operation.

    Raises:
        TypeMismatchError: If the operator does not apply to the operand
    """
    t = operand.type
    if is_error(t):
        return ERROR
    if op == "!":
        if t != BOOL:
            raise TypeMismatchError(BOOL, t, span=operand.span, context="operator '!'")
        return BOOL
    if is_numeric(t) and not (isinstance(t, PrimitiveType) and t.is_unsigned):
        return t
    if isinstance(t, EngineResourceType) and t.kind in _VECTOR_KINDS:
        return t
    raise TypeMismatchError("a signed numeric type", t, span=operand.span, context=f"operator '{op}'")


def check_cast(value: Expr, target: Type, nodes: EngineNodeRegistry) -> None:
    """Validate an explicit cast.

    Numeric types convert freely (including Decimal and BigInt), `any` converts
    to every type, every type converts to string and node handles convert
    along their inheritance chain.

    Raises:
        TypeMismatchError: If the cast is not allowed
    """
    source = value.type
    if is_error(source) or is_error(target) or source == target:
        return
    if source == ANY or target == STRING:
        return
    if is_numeric(source) and is_numeric(target):
        return
    if isinstance(source, NodeHandleType | ScriptHandleType) and isinstance(target, NodeHandleType):
        if isinstance(source, ScriptHandleType):
            return
        if nodes.is_subtype(source.tag, target.tag) or nodes.is_subtype(target.tag, source.tag):
            return
    raise TypeMismatchError(target, source, span=value.span, context="cast")


def check_lifecycle(function: FunctionDecl) -> None:
    """Lifecycle methods take no parameters and return nothing.

    Raises:
        LifecycleSignatureError: If the signature is not `() -> void`
    """
    if function.lifecycle is None:
        return
    if function.params:
        raise LifecycleSignatureError(
            function.name,
            f"must take no parameters, found {len(function.params)}",
            function.params[0].span,
        )
    returns = function.resolved_return
    if returns is not None and returns != VOID and not is_error(returns):
        raise LifecycleSignatureError(
            function.name, f"must return void, found {returns}", function.span
        )


def check_expose(
    decl: VarDecl | FunctionDecl, script: ScriptDecl, symbols: FrontendSymbols, top_level: bool
) -> None:
    """Validate use of the expose attribute on a declaration.

    Raises:
        ExposeAttributeError: If the attribute is misplaced
    """
    if not any(symbols.is_expose(a) for a in decl.attributes):
        return
    if isinstance(decl, FunctionDecl) or not top_level:
        raise ExposeAttributeError(decl.name, "only top-level fields can be exposed", decl.span)
    if script.kind is not ScriptKind.ATTACHED:
        raise ExposeAttributeError(
            decl.name,
            f"only fields of attached scripts can be exposed, not of {script.kind.name.lower()} scripts",
            decl.span,
        )
    if decl.is_const:
        raise ExposeAttributeError(decl.name, "constants cannot be exposed", decl.span)


def is_exposed(decl: VarDecl, symbols: FrontendSymbols) -> bool:
    return any(symbols.is_expose(a) for a in decl.attributes)


def container_bindings(pattern: Type, actual: Type) -> dict[str, Type]:
    """Bind type variables of a container pattern to an actual container's parameters."""
    if not (isinstance(pattern, ContainerType) and isinstance(actual, ContainerType)):
        return {}
    if pattern.kind is not actual.kind:
        return {}
    return {
        p.name: a for p, a in zip(pattern.params, actual.params) if isinstance(p, TypeVar)
    }


def substitute(t: Type, bindings: dict[str, Type]) -> Type:
    """Replace bound type variables in `t`."""
    if isinstance(t, TypeVar):
        return bindings.get(t.name, t)
    if isinstance(t, ContainerType):
        return ContainerType(t.kind, tuple(substitute(p, bindings) for p in t.params))
    return t


def has_type_vars(t: Type) -> bool:
    if isinstance(t, TypeVar):
        return True
    if isinstance(t, ContainerType):
        return any(has_type_vars(p) for p in t.params)
    return False
