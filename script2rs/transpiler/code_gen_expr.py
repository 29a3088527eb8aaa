"""
Rust code generation for expressions.

Every resolved operation is emitted through its binding. An expression is
generated either as a value, where non-`Copy` places are cloned, or as a
place that is borrowed, called on or written to. Inner calls that Rust cannot
nest are hoisted into temporaries queued on the context's `Temporaries`.
"""

from dataclasses import dataclass

from loguru import logger

from script2rs.transpiler.ast.nodes import (
    ArrayLiteral,
    BinaryOp,
    Call,
    Cast,
    DynamicGet,
    Expr,
    Index,
    Literal,
    LiteralKind,
    MemberAccess,
    Name,
    New,
    SelfRef,
    UnaryOp,
)
from script2rs.transpiler.ast.visitor import walk
from script2rs.transpiler.bindings import BindingTable, atom
from script2rs.transpiler.code_block import Temporaries
from script2rs.transpiler.constants import (
    NON_ASSOCIATIVE,
    OPERATOR_PRECEDENCE,
    SCRIPT_NODE_TEMPLATE,
    SELF_NODE,
)
from script2rs.transpiler.diagnostics import DiagnosticCollector, Severity
from script2rs.transpiler.errors import CompositionError, TranspilerError
from script2rs.transpiler.lowering import Lowerer, is_copy, lower_type
from script2rs.transpiler.models import (
    ApiModuleOp,
    CanonicalOperationRef,
    EnumVariant,
    NodeFieldRef,
    NodeMethodRef,
    ResourceModuleOp,
)
from script2rs.transpiler.resolver import ResolvedScript, Symbol, SymbolKind
from script2rs.transpiler.type_checker import COMPARISON_OPS
from script2rs.transpiler.types import (
    ANY,
    BIGINT,
    DECIMAL,
    STRING,
    ContainerKind,
    PrimitiveType,
    ScriptHandleType,
    Type,
)

_I64_RANGE = range(-(2**63), 2**63)
_RUST_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t", "\0": "\\0"}


@dataclass
class GenerationContext:
    """Per-file state shared by the expression and statement generators."""

    resolved: ResolvedScript
    bindings: BindingTable
    lowerer: Lowerer
    temps: Temporaries
    diagnostics: DiagnosticCollector

    @property
    def is_module(self) -> bool:
        return self.resolved.is_module


def rust_string(value: str) -> str:
    """Quote `value` as a Rust string literal."""
    return '"' + "".join(_RUST_ESCAPES.get(c, c) for c in value) + '"'


def _float_text(value: float) -> str:
    text = repr(float(value))
    if "e" in text:
        mantissa, exponent = text.split("e")
        return f"{mantissa}e{int(exponent)}"
    return text


def generate_literal(literal: Literal, t: Type) -> str:
    """Generate Rust code for a literal of resolved type `t`.

    Args:
        literal: AST literal node
        t: Type the literal resolved to

    Returns:
        Generated Rust code for the literal
    """
    match literal.kind:
        case LiteralKind.BOOL:
            return "true" if literal.value else "false"
        case LiteralKind.STRING:
            return f"String::from({rust_string(literal.value)})"

    value = literal.value
    if t == DECIMAL:
        if literal.kind is LiteralKind.INT:
            return f"Decimal::from({value}i64)"
        text = _float_text(value)
        if "e" in text:
            return f'Decimal::from_scientific("{text}").unwrap()'
        return f'Decimal::from_str("{text}").unwrap()'
    if t == BIGINT:
        if int(value) in _I64_RANGE:
            return f"BigInt::from({int(value)}i64)"
        return f'BigInt::from_str("{int(value)}").unwrap()'
    if isinstance(t, PrimitiveType) and t.is_float:
        return f"{_float_text(value)}{t.kind.value}"
    return f"{int(value)}{t.kind.value}"


def convert_numeric(text: str, source: PrimitiveType, target: PrimitiveType) -> str:
    """Generate an explicit numeric conversion of `text`.

    Machine numbers use `as`; Decimal and BigInt convert through the
    `FromPrimitive`/`ToPrimitive` traits and fall back to zero when the value
    does not fit.
    """
    if not source.is_big and not target.is_big:
        return f"({text} as {target.kind.value})"
    if source.is_big and target.is_big:
        digits = f"{atom(text)}.trunc()" if source == DECIMAL else atom(text)
        return f"{target.kind.value}::from_str(&{digits}.to_string()).unwrap_or_default()"
    if target.is_big:
        if source.is_float:
            return f"{target.kind.value}::from_f64({atom(text)} as f64).unwrap_or_default()"
        return f"{target.kind.value}::from({text})"
    return f"{atom(text)}.to_{target.kind.value}().unwrap_or_default()"


class ExpressionGenerator:
    """Generates Rust text for resolved expressions of one script."""

    def __init__(self, ctx: GenerationContext):
        self.ctx = ctx
        self.bindings = ctx.bindings
        self.lowerer = ctx.lowerer

    def generate(
        self,
        expr: Expr,
        parent_precedence: int = 0,
        place: bool = False,
        box_any: bool = True,
    ) -> str:
        """Generate Rust code for an expression.

        Args:
            expr: Resolved expression
            parent_precedence: Precedence level of the enclosing operation
            place: Generate a place (no `.clone()` of non-`Copy` reads)
            box_any: Wrap values flowing into `any` with `json!`

        Returns:
            Generated Rust code for the expression
        """
        method = getattr(self, f"_generate_{expr.__class__.__name__}")
        if expr.cast_to is None:
            return method(expr, parent_precedence, place)
        if expr.cast_to == ANY:
            if not box_any:
                return method(expr, parent_precedence, place)
            return f"json!({method(expr, 0, False)})"
        inner = method(expr, OPERATOR_PRECEDENCE["as"], False)
        return f"({inner} as {lower_type(expr.cast_to)})"

    def emitted_type(self, expr: Expr, box_any: bool = True) -> Type:
        """Type of the text `generate` produces for `expr`."""
        if expr.cast_to is None or (expr.cast_to == ANY and not box_any):
            return expr.type
        return expr.cast_to

    # ====================
    # Composition
    # ====================

    def borrows_context(self, expr: Expr) -> bool:
        """Whether `expr` contains a call that borrows the runtime API or the script."""
        for node in walk(expr):
            if isinstance(node, Call) and isinstance(node.symbol, Symbol):
                return True
            if isinstance(node, Name) and node.symbol is None and node.ref is None:
                if isinstance(node.type, ScriptHandleType):
                    return True
            if isinstance(node, Name | MemberAccess) and self._is_module_field(node.symbol):
                return True
            ref = getattr(node, "ref", None)
            if ref is not None and self.bindings.get(ref).borrows_api:
                return True
        return False

    def temporary(self, expr: Expr, text: str, t: Type) -> str:
        """Hoist `text` into a `let` temporary and return the temporary's name."""
        name = self.ctx.temps.new(lower_type(t), text)
        logger.debug(f"Hoisted '{text}' into {name}")
        self.ctx.diagnostics.report(
            CompositionError(f"Synthesized temporary {name} for a nested call", expr.span),
            Severity.NOTE,
        )
        return name

    def receiver(self, expr: Expr) -> str:
        """Generate the node handle a node operation is applied to.

        A handle produced by a resolved call or member operation is hoisted,
        so the outer operation never borrows the runtime twice.
        """
        text = self.generate(expr)
        if self._produces_handle(expr):
            return self.temporary(expr, text, expr.type)
        return text

    def _produces_handle(self, expr: Expr) -> bool:
        if expr.type is None or not expr.type.is_handle:
            return False
        if isinstance(expr, Call):
            return True
        if isinstance(expr, MemberAccess | DynamicGet | Name):
            return expr.ref is not None or (
                isinstance(expr, Name) and expr.symbol is None
            )
        return False

    def argument(self, expr: Expr, hoist: bool, place: bool = False, box_any: bool = True) -> str:
        text = self.generate(expr, 0, place, box_any)
        if hoist and self.borrows_context(expr):
            return self.temporary(expr, text, self.emitted_type(expr, box_any))
        return text

    def emit_binding(
        self, ref: CanonicalOperationRef, receiver: str | None, args: list[Expr]
    ) -> str:
        """Emit a resolved operation through its binding.

        Arguments of a binding that borrows the runtime API or mutates its
        receiver are hoisted when they borrow the API or the script themselves.
        """
        entry = self.bindings.get(ref)
        hoist = entry.borrows_api or entry.mutates_receiver
        texts = []
        for i, arg in enumerate(args):
            texts.append(
                self.argument(
                    arg,
                    hoist=hoist and not (entry.mutates_receiver and i == 0),
                    place=i in entry.place_args,
                    box_any=entry.param_types[i] != ANY,
                )
            )
        return self.bindings.emit(ref, receiver, texts)

    def name_argument(self, member: str, expr: Expr) -> Literal:
        """String literal carrying a member name for by-name runtime lookups."""
        return Literal(member, LiteralKind.STRING, span=expr.span, type=STRING)

    # ====================
    # Places
    # ====================

    def _read(self, text: str, expr: Expr, place: bool) -> str:
        if place or is_copy(expr.type):
            return text
        return f"{text}.clone()"

    def _is_module_field(self, symbol: object) -> bool:
        return (
            self.ctx.is_module
            and isinstance(symbol, Symbol)
            and symbol.kind is SymbolKind.FIELD
        )

    def symbol_place(self, symbol: Symbol) -> str:
        """Place text of a script-local symbol."""
        name = self.lowerer.symbol(symbol)
        if symbol.kind is SymbolKind.FIELD:
            # Module fields are read through their getter
            return f"{name}(api)" if self.ctx.is_module else f"self.{name}"
        return name

    # ====================
    # Expressions
    # ====================

    def _generate_Literal(self, expr: Literal, parent_precedence: int, place: bool) -> str:
        text = generate_literal(expr, expr.type)
        if text.startswith("-") and OPERATOR_PRECEDENCE["unary"] < parent_precedence:
            return f"({text})"
        return text

    def _generate_Name(self, expr: Name, parent_precedence: int, place: bool) -> str:
        if isinstance(expr.symbol, Symbol):
            if self._is_module_field(expr.symbol):
                return self.symbol_place(expr.symbol)
            return self._read(self.symbol_place(expr.symbol), expr, place)
        if isinstance(expr.ref, NodeFieldRef):
            return self.bindings.emit(expr.ref, SELF_NODE, [])
        if isinstance(expr.type, ScriptHandleType):
            return SCRIPT_NODE_TEMPLATE.format(name=expr.type.name)
        raise TranspilerError(f"Unresolved name '{expr.id}' reached code generation", expr.span)

    def _generate_SelfRef(self, expr: SelfRef, parent_precedence: int, place: bool) -> str:
        return SELF_NODE

    def _generate_MemberAccess(self, expr: MemberAccess, parent_precedence: int, place: bool) -> str:
        symbol = expr.symbol
        if isinstance(symbol, Symbol):
            if symbol.kind is SymbolKind.STRUCT_FIELD:
                owner = atom(self.generate(expr.value, OPERATOR_PRECEDENCE["call"], place=True))
                return self._read(f"{owner}.{self.lowerer.symbol(symbol)}", expr, place)
            return self._read(self.symbol_place(symbol), expr, place)

        ref = expr.ref
        match ref:
            case EnumVariant():
                return self.bindings.emit(ref, None, [])
            case NodeFieldRef():
                return self.bindings.emit(ref, self.receiver(expr.value), [])
            case NodeMethodRef():
                # By-name read of another script's variable
                receiver = self.receiver(expr.value)
                return self.emit_binding(ref, receiver, [self.name_argument(expr.member, expr)])
            case ApiModuleOp() | ResourceModuleOp():
                if not self.bindings.get(ref).param_types:
                    return self.bindings.emit(ref, None, [])
                return self.emit_binding(ref, None, [expr.value])

        # Plain field of an engine value, e.g. `position.x`
        owner = atom(self.generate(expr.value, OPERATOR_PRECEDENCE["call"], place=True))
        return f"{owner}.{expr.member}"

    def _generate_DynamicGet(self, expr: DynamicGet, parent_precedence: int, place: bool) -> str:
        receiver = self.receiver(expr.value)
        return self.emit_binding(expr.ref, receiver, [self.name_argument(expr.member, expr)])

    def _generate_Call(self, expr: Call, parent_precedence: int, place: bool) -> str:
        if isinstance(expr.symbol, Symbol):
            return self._script_call(expr)
        receiver = self.receiver(expr.receiver) if expr.receiver is not None else None
        return self.emit_binding(expr.ref, receiver, expr.bound_args or [])

    def _script_call(self, expr: Call) -> str:
        """Call of a function declared by the script itself."""
        args = ["api"]
        for arg in expr.args:
            args.append(self.argument(arg, hoist=True))
        name = self.lowerer.symbol(expr.symbol)
        callee = name if self.ctx.is_module else f"self.{name}"
        return f"{callee}({', '.join(args)})"

    def _generate_New(self, expr: New, parent_precedence: int, place: bool) -> str:
        if isinstance(expr.symbol, Symbol):
            return f"{lower_type(expr.type)}::default()"
        return self.emit_binding(expr.ref, None, expr.bound_args or [])

    def _generate_Index(self, expr: Index, parent_precedence: int, place: bool) -> str:
        container = atom(self.generate(expr.value, OPERATOR_PRECEDENCE["call"], place=True))
        if expr.value.type.kind is ContainerKind.MAP:
            key = atom(self.generate(expr.index, OPERATOR_PRECEDENCE["unary"], place=True))
            text = f"{container}[&{key}]"
        else:
            index = self.generate(expr.index, OPERATOR_PRECEDENCE["as"])
            text = f"{container}[{index} as usize]"
        return self._read(text, expr, place)

    def _generate_BinaryOp(self, expr: BinaryOp, parent_precedence: int, place: bool) -> str:
        if expr.op == "+" and expr.type == STRING:
            return self._concat(expr)

        precedence = OPERATOR_PRECEDENCE[expr.op]
        operand_place = expr.op in COMPARISON_OPS
        left_precedence = precedence + 1 if expr.op in NON_ASSOCIATIVE else precedence
        left = self.generate(expr.left, left_precedence, operand_place)
        right = self.generate(expr.right, precedence + 1, operand_place)

        text = f"{left} {expr.op} {right}"
        return f"({text})" if precedence < parent_precedence else text

    def _concat(self, expr: BinaryOp) -> str:
        """Flatten a chain of string `+` into a single `format!`."""
        operands: list[Expr] = []
        pending: list[Expr] = [expr.right, expr.left]
        while pending:
            node = pending.pop()
            if (
                isinstance(node, BinaryOp)
                and node.op == "+"
                and node.type == STRING
                and node.cast_to is None
            ):
                pending.extend((node.right, node.left))
            else:
                operands.append(node)
        parts = [self.generate(operand, place=True) for operand in operands]
        return f'format!("{"{}" * len(parts)}", {", ".join(parts)})'

    def _generate_UnaryOp(self, expr: UnaryOp, parent_precedence: int, place: bool) -> str:
        precedence = OPERATOR_PRECEDENCE["unary"]
        operand = self.generate(expr.operand, precedence)
        text = f"{expr.op}{operand}"
        return f"({text})" if precedence < parent_precedence else text

    def _generate_Cast(self, expr: Cast, parent_precedence: int, place: bool) -> str:
        source, target = expr.value.type, expr.type
        if source == target or (target.is_handle and source.is_handle):
            return self.generate(expr.value, parent_precedence, place)
        if source == ANY:
            value = self.generate(expr.value)
            return f"serde_json::from_value::<{lower_type(target)}>({value}).unwrap_or_default()"
        if target == STRING:
            value = atom(self.generate(expr.value, OPERATOR_PRECEDENCE["call"], place=True))
            return f"{value}.to_string()"
        value = self.generate(expr.value, OPERATOR_PRECEDENCE["as"])
        return convert_numeric(value, source, target)

    def _generate_ArrayLiteral(self, expr: ArrayLiteral, parent_precedence: int, place: bool) -> str:
        items = ", ".join(self.generate(item) for item in expr.elements)
        return f"vec![{items}]"
