"""
Rust code generation for statements.

One source statement becomes one Rust statement, preceded by the `let`s of
the temporaries its expressions needed.
"""

from loguru import logger

from script2rs.transpiler.ast.nodes import (
    Assignment,
    Break,
    Continue,
    DynamicGet,
    Expr,
    ExprStmt,
    ForEach,
    ForRange,
    If,
    Index,
    MemberAccess,
    Name,
    Pass,
    Return,
    Stmt,
    VarDecl,
    While,
)
from script2rs.transpiler.ast.visitor import Visitor
from script2rs.transpiler.bindings import atom
from script2rs.transpiler.code_block import CodeBlock
from script2rs.transpiler.code_gen_expr import ExpressionGenerator, GenerationContext
from script2rs.transpiler.constants import OPERATOR_PRECEDENCE, SELF_NODE
from script2rs.transpiler.errors import TranspilerError
from script2rs.transpiler.lowering import lower_type
from script2rs.transpiler.models import NodeFieldRef, NodeMethodRef
from script2rs.transpiler.resolver import Symbol
from script2rs.transpiler.types import STRING, ContainerKind, ContainerType


class StatementGenerator(Visitor[None]):
    """Writes the statements of one function body into a `CodeBlock`."""

    def __init__(self, ctx: GenerationContext, exprs: ExpressionGenerator, code: CodeBlock):
        self.ctx = ctx
        self.exprs = exprs
        self.code = code

    def generate_body(self, body: list[Stmt]) -> None:
        for stmt in body:
            self.visit(stmt)

    def _block(self, body: list[Stmt]) -> None:
        self.code.indent_level += 1
        self.generate_body(body)
        self.code.indent_level -= 1

    def _emit(self, lets: list[str], line: str) -> None:
        self.code.add_lines(lets)
        self.code.add_line(line)

    def _condition(self, test: Expr) -> tuple[str, list[str]]:
        with self.ctx.temps.capture() as lets:
            text = self.exprs.generate(test)
        return text, lets

    # ====================
    # Simple statements
    # ====================

    def visit_VarDecl(self, node: VarDecl) -> None:
        name = self.ctx.lowerer.symbol(node.symbol)
        mut = "mut " if node.symbol.mutated else ""
        with self.ctx.temps.capture() as lets:
            value = (
                self.exprs.generate(node.value)
                if node.value is not None
                else "Default::default()"
            )
        self._emit(lets, f"let {mut}{name}: {lower_type(node.resolved_type)} = {value};")

    def visit_ExprStmt(self, node: ExprStmt) -> None:
        with self.ctx.temps.capture() as lets:
            text = self.exprs.generate(node.value, place=True)
        self._emit(lets, f"{text};")

    def visit_Return(self, node: Return) -> None:
        if node.value is None:
            self.code.add_line("return;")
            return
        with self.ctx.temps.capture() as lets:
            text = self.exprs.generate(node.value)
        self._emit(lets, f"return {text};")

    def visit_Break(self, node: Break) -> None:
        self.code.add_line("break;")

    def visit_Continue(self, node: Continue) -> None:
        self.code.add_line("continue;")

    def visit_Pass(self, node: Pass) -> None:
        pass

    # ====================
    # Assignment
    # ====================

    def visit_Assignment(self, node: Assignment) -> None:
        """Generate an assignment.

        Node fields are written through their binding's field writer, by-name
        targets through `set_var`, map entries through `insert`/`entry`.
        Everything else is a plain Rust place.
        """
        with self.ctx.temps.capture() as lets:
            line = self._assignment(node.target, node.op, node.value)
        self._emit(lets, line)

    def _assignment(self, target: Expr, op: str, value: Expr) -> str:
        node_field = self._node_field_target(target)
        if node_field is not None:
            owner, path = node_field
            receiver = SELF_NODE if isinstance(owner, Name) else self.exprs.receiver(owner.value)
            text = self._value(value, hoist=True)
            entry = self.ctx.bindings.get(owner.ref)
            return entry.emit_assign(receiver, path, op, text) + ";"

        if isinstance(target, DynamicGet | MemberAccess) and isinstance(target.ref, NodeMethodRef):
            setter = NodeMethodRef(target.ref.node_type, "set_var")
            receiver = self.exprs.receiver(target.value)
            name = self.exprs.name_argument(target.member, target)
            return self.exprs.emit_binding(setter, receiver, [name, value]) + ";"

        if isinstance(target, Index) and self._is_map(target.value):
            container = atom(
                self.exprs.generate(target.value, OPERATOR_PRECEDENCE["call"], place=True)
            )
            key = self.exprs.generate(target.index)
            text = self._value(value, hoist=True)
            if op == "=":
                return f"{container}.insert({key}, {text});"
            return f"*{container}.entry({key}).or_default() {op} {text};"

        place = self.exprs.generate(target, place=True)
        if op == "+=" and target.type == STRING:
            text = self._value(value, hoist=True, place=True)
            if value.type == STRING:
                return f"{place} += &{atom(text)};"
            return f"{place} += &{atom(text)}.to_string();"
        text = self._value(value, hoist=op != "=")
        return f"{place} {op} {text};"

    def _value(self, value: Expr, hoist: bool, place: bool = False) -> str:
        """Assigned value; hoisted when writing it would overlap a borrow."""
        text = self.exprs.generate(value, place=place)
        if hoist and self.exprs.borrows_context(value):
            return self.exprs.temporary(value, text, self.exprs.emitted_type(value))
        return text

    def _node_field_target(self, target: Expr) -> tuple[Expr, str] | None:
        """Split `node.field.x.y` into the node field access and the `.x.y` path."""
        path: list[str] = []
        expr = target
        while isinstance(expr, MemberAccess) and expr.ref is None and expr.symbol is None:
            path.append(expr.member)
            expr = expr.value
        if isinstance(expr, Name | MemberAccess) and isinstance(expr.ref, NodeFieldRef):
            return expr, "".join(f".{member}" for member in reversed(path))
        return None

    def _is_map(self, expr: Expr) -> bool:
        return isinstance(expr.type, ContainerType) and expr.type.kind is ContainerKind.MAP

    # ====================
    # Control flow
    # ====================

    def visit_If(self, node: If) -> None:
        test, lets = self._condition(node.test)
        self.code.add_lines(lets)
        self._if_chain(node, test)

    def _if_chain(self, node: If, test: str) -> None:
        self.code.add_line(f"if {test} {{")
        self._block(node.body)
        orelse = node.orelse
        while len(orelse) == 1 and isinstance(orelse[0], If):
            nested = orelse[0]
            test, lets = self._condition(nested.test)
            if lets:
                # Temporaries of an `else if` condition live in the else block
                self.code.add_line("} else {")
                self.code.indent_level += 1
                self.code.add_lines(lets)
                self._if_chain(nested, test)
                self.code.indent_level -= 1
                self.code.add_line("}")
                return
            self.code.add_line(f"}} else if {test} {{")
            self._block(nested.body)
            orelse = nested.orelse
        if orelse:
            self.code.add_line("} else {")
            self._block(orelse)
        self.code.add_line("}")

    def visit_While(self, node: While) -> None:
        test, lets = self._condition(node.test)
        if not lets:
            with self.code.block(f"while {test}"):
                self.generate_body(node.body)
            return
        logger.debug("Lowering while loop with hoisted condition to loop/break")
        with self.code.block("loop"):
            self.code.add_lines(lets)
            with self.code.block(f"if !{atom(test)}"):
                self.code.add_line("break;")
            self.generate_body(node.body)

    def visit_ForRange(self, node: ForRange) -> None:
        name = self.ctx.lowerer.symbol(node.var_symbol)
        with self.ctx.temps.capture() as lets:
            start = self.exprs.generate(node.start)
            end = self.exprs.generate(node.end)
        self.code.add_lines(lets)
        with self.code.block(f"for {name} in {start}..{end}"):
            self.generate_body(node.body)

    def visit_ForEach(self, node: ForEach) -> None:
        name = self.ctx.lowerer.symbol(node.var_symbol)
        with self.ctx.temps.capture() as lets:
            iterable = atom(self.exprs.generate(node.iterable, OPERATOR_PRECEDENCE["call"]))
        if self._is_map(node.iterable):
            iterable = f"{iterable}.into_keys()"
        self.code.add_lines(lets)
        with self.code.block(f"for {name} in {iterable}"):
            self.generate_body(node.body)

    def generic_visit(self, node: Stmt) -> None:
        raise TranspilerError(f"No code generation for {node.__class__.__name__}", node.span)


def lower_params(ctx: GenerationContext, params) -> list[str]:
    """Rust parameter list entries; parameters written to are `mut`."""
    result = []
    for param in params:
        symbol: Symbol = param.symbol
        mut = "mut " if symbol.mutated else ""
        result.append(f"{mut}{ctx.lowerer.symbol(symbol)}: {lower_type(param.resolved_type)}")
    return result
