"""Shared AST node definitions.

Every frontend lowers to these nodes. Names and type annotations stay raw
strings until the resolver annotates expressions in place with a canonical
operation reference or a symbol, a resolved type and an optional cast.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from script2rs.transpiler.diagnostics import UNKNOWN_SPAN, SourceSpan
from script2rs.transpiler.models import (
    CanonicalOperationRef,
    FrontendKind,
    LifecycleTag,
    ScriptKind,
)
from script2rs.transpiler.types import Type


@dataclass(eq=False)
class Node:
    """Base AST node"""

    span: SourceSpan = field(default=UNKNOWN_SPAN, kw_only=True)


@dataclass(frozen=True)
class TypeRef:
    """Unresolved type annotation as written in the source."""

    name: str
    args: tuple["TypeRef", ...] = ()
    span: SourceSpan = field(default=UNKNOWN_SPAN, compare=False)

    def __str__(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name}[{', '.join(str(a) for a in self.args)}]"


# ====================
# Expressions
# ====================


@dataclass(eq=False)
class Expr(Node):
    """Base expression node.

    Resolution annotations:
        type: resolved type of the expression
        ref: canonical operation this node was resolved to
        symbol: script-local symbol this node was resolved to
        cast_to: target type of an implicit widening applied at the use site
    """

    type: Type | None = field(default=None, kw_only=True)
    ref: CanonicalOperationRef | None = field(default=None, kw_only=True)
    symbol: Any = field(default=None, kw_only=True)
    cast_to: Type | None = field(default=None, kw_only=True)


class LiteralKind(Enum):
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    BOOL = "bool"


@dataclass(eq=False)
class Literal(Expr):
    """Literal value. `suffix` keeps a source type suffix such as `f` or `m`."""

    value: int | float | str | bool
    kind: LiteralKind
    suffix: str | None = None


@dataclass(eq=False)
class Name(Expr):
    """Variable reference"""

    id: str


@dataclass(eq=False)
class SelfRef(Expr):
    """The node the current script is attached to."""


@dataclass(eq=False)
class MemberAccess(Expr):
    value: Expr
    member: str


@dataclass(eq=False)
class DynamicGet(Expr):
    """By-name field read on a node, such as `enemy::health`."""

    value: Expr
    member: str


@dataclass(eq=False)
class Call(Expr):
    """Function or method call.

    After resolution `bound_args` holds the arguments in signature order
    (an instance receiver of a resource operation comes first) and `receiver`
    holds the node handle a node operation is applied to.
    """

    func: Expr
    args: list[Expr]
    receiver: Expr | None = field(default=None, kw_only=True)
    bound_args: list[Expr] | None = field(default=None, kw_only=True)


@dataclass(eq=False)
class New(Expr):
    """Construction such as `new Vector2(1, 2)`."""

    type_ref: TypeRef
    args: list[Expr]
    bound_args: list[Expr] | None = field(default=None, kw_only=True)


@dataclass(eq=False)
class Index(Expr):
    value: Expr
    index: Expr


@dataclass(eq=False)
class BinaryOp(Expr):
    left: Expr
    op: str
    right: Expr


@dataclass(eq=False)
class UnaryOp(Expr):
    op: str
    operand: Expr


@dataclass(eq=False)
class Cast(Expr):
    value: Expr
    target: TypeRef


@dataclass(eq=False)
class ArrayLiteral(Expr):
    elements: list[Expr]


# ====================
# Statements
# ====================


@dataclass(eq=False)
class Stmt(Node):
    """Base statement node"""


@dataclass(eq=False)
class VarDecl(Stmt):
    name: str
    type_ref: TypeRef | None
    value: Expr | None
    attributes: list[str] = field(default_factory=list)
    is_const: bool = False
    is_public: bool = True
    # set by the resolver
    resolved_type: Type | None = field(default=None, kw_only=True)
    symbol: Any = field(default=None, kw_only=True)


@dataclass(eq=False)
class Assignment(Stmt):
    """Plain (`op="="`) or compound assignment."""

    target: Expr
    op: str
    value: Expr


@dataclass(eq=False)
class ExprStmt(Stmt):
    value: Expr


@dataclass(eq=False)
class If(Stmt):
    """Conditional. An `else if` chain is an `If` as the only `orelse` item."""

    test: Expr
    body: list[Stmt]
    orelse: list[Stmt] = field(default_factory=list)


@dataclass(eq=False)
class ForRange(Stmt):
    """Loop over the half-open integer range `start..end`."""

    var: str
    start: Expr
    end: Expr
    body: list[Stmt]
    var_symbol: Any = field(default=None, kw_only=True)


@dataclass(eq=False)
class ForEach(Stmt):
    var: str
    iterable: Expr
    body: list[Stmt]
    var_symbol: Any = field(default=None, kw_only=True)


@dataclass(eq=False)
class While(Stmt):
    test: Expr
    body: list[Stmt]


@dataclass(eq=False)
class Return(Stmt):
    value: Expr | None = None


@dataclass(eq=False)
class Break(Stmt):
    pass


@dataclass(eq=False)
class Continue(Stmt):
    pass


@dataclass(eq=False)
class Pass(Stmt):
    pass


# ====================
# Declarations
# ====================


@dataclass(eq=False)
class Param(Node):
    name: str
    type_ref: TypeRef
    resolved_type: Type | None = field(default=None, kw_only=True)
    symbol: Any = field(default=None, kw_only=True)


@dataclass(eq=False)
class FunctionDecl(Node):
    name: str
    params: list[Param]
    return_type: TypeRef | None
    body: list[Stmt]
    lifecycle: LifecycleTag | None = None
    attributes: list[str] = field(default_factory=list)
    is_public: bool = True
    resolved_return: Type | None = field(default=None, kw_only=True)


@dataclass(eq=False)
class StructDecl(Node):
    name: str
    fields: list[VarDecl]


@dataclass(eq=False)
class ScriptDecl(Node):
    """Root of one normalized source file."""

    name: str
    kind: ScriptKind
    base_type: str | None
    frontend: FrontendKind
    fields: list[VarDecl] = field(default_factory=list)
    functions: list[FunctionDecl] = field(default_factory=list)
    structs: list[StructDecl] = field(default_factory=list)
    attributes: list[str] = field(default_factory=list)
    path: str = ""
