"""
AST normalization.

Every frontend describes its input as a `RawUnit`: a list of class-like
declarations with fields, methods and opaque marker strings (decorators,
attributes, header keywords). The normalizer maps that shape onto the shared
`ScriptDecl`: it picks the script declaration, selects its kind, turns the
remaining declarations into structs and tags lifecycle methods.
"""

from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from script2rs.transpiler.ast.nodes import (
    Assignment,
    BinaryOp,
    ForRange,
    FunctionDecl,
    Literal,
    LiteralKind,
    Name,
    ScriptDecl,
    Stmt,
    StructDecl,
    UnaryOp,
    VarDecl,
)
from script2rs.transpiler.diagnostics import UNKNOWN_SPAN, SourceSpan
from script2rs.transpiler.errors import ParseError
from script2rs.transpiler.models import ScriptKind
from script2rs.transpiler.registry.symbols import FrontendSymbols

DEFAULT_BASE = "Node"


@dataclass
class RawClass:
    """Frontend-neutral description of one class-like declaration."""

    name: str
    base: str | None = None
    markers: list[str] = field(default_factory=list)
    exported: bool = False
    is_struct: bool = False
    fields: list[VarDecl] = field(default_factory=list)
    methods: list[FunctionDecl] = field(default_factory=list)
    span: SourceSpan = UNKNOWN_SPAN


@dataclass
class RawUnit:
    classes: list[RawClass]
    path: str = ""


def default_script_name(path: str) -> str:
    """Derive a script name from a file path, e.g. `player_ctrl.pup` -> `PlayerCtrl`."""
    stem = Path(path).stem if path else "Script"
    parts = [p for p in stem.replace("-", "_").split("_") if p]
    return "".join(p[:1].upper() + p[1:] for p in parts) or "Script"


class AstNormalizer:
    """Maps a `RawUnit` of one frontend onto a shared `ScriptDecl`."""

    def __init__(self, symbols: FrontendSymbols):
        self.symbols = symbols

    def script_kind(self, raw: RawClass) -> ScriptKind | None:
        kinds = [self.symbols.script_kinds[m] for m in raw.markers if m in self.symbols.script_kinds]
        if kinds:
            return kinds[0]
        if raw.base is not None:
            return ScriptKind.ATTACHED
        return None

    def _is_script_candidate(self, raw: RawClass) -> bool:
        return not raw.is_struct and (raw.exported or self.script_kind(raw) is not None)

    def _pick_script(self, unit: RawUnit) -> RawClass:
        exported = [c for c in unit.classes if c.exported and not c.is_struct]
        candidates = exported or [c for c in unit.classes if self._is_script_candidate(c)]
        if not candidates:
            raise ParseError("No script declaration found", UNKNOWN_SPAN)
        if len(candidates) > 1:
            raise ParseError(
                f"More than one script declaration: "
                f"{', '.join(c.name for c in candidates)}",
                candidates[1].span,
            )
        return candidates[0]

    def _to_struct(self, raw: RawClass) -> StructDecl:
        if raw.methods:
            raise ParseError(
                f"Methods are not supported on struct '{raw.name}'", raw.methods[0].span
            )
        return StructDecl(raw.name, raw.fields, span=raw.span)

    def tag_lifecycle(self, function: FunctionDecl, kind: ScriptKind) -> FunctionDecl:
        """Attach the canonical lifecycle tag to a method, if it has one."""
        if kind is not ScriptKind.MODULE:
            function.lifecycle = self.symbols.lifecycle_names.get(function.name)
        return function

    def normalize(self, unit: RawUnit) -> ScriptDecl:
        """Build the shared script declaration of a unit.

        Raises:
            ParseError: If the unit has no usable script declaration
        """
        script = self._pick_script(unit)
        kind = self.script_kind(script)
        if kind is None:
            raise ParseError(
                f"Script '{script.name}' needs a base node type or a kind marker",
                script.span,
            )

        base = script.base
        if kind is ScriptKind.MODULE:
            base = None
        elif base is None:
            if kind is ScriptKind.ATTACHED:
                raise ParseError(f"Script '{script.name}' has no base node type", script.span)
            base = DEFAULT_BASE

        structs = [self._to_struct(c) for c in unit.classes if c is not script]
        functions = [self.tag_lifecycle(m, kind) for m in script.methods]
        attributes = [m for m in script.markers if m not in self.symbols.script_kinds]

        logger.debug(
            f"Normalized {self.symbols.kind.name} script '{script.name}' "
            f"({kind.name}, base={base})"
        )
        return ScriptDecl(
            name=script.name,
            kind=kind,
            base_type=base,
            frontend=self.symbols.kind,
            fields=script.fields,
            functions=functions,
            structs=structs,
            attributes=attributes,
            path=unit.path,
            span=script.span,
        )


def for_range_from_c_style(
    var: str,
    start,
    condition,
    step: Stmt,
    body: list[Stmt],
    span: SourceSpan,
) -> ForRange:
    """Recognize `for (i = start; i < end; i++)` and build a `ForRange`.

    Args:
        var: Loop variable declared in the initializer
        start: Initializer expression
        condition: Loop condition
        step: Update clause as an assignment statement
        body: Loop body
        span: Span of the whole loop

    Raises:
        ParseError: If the loop is not of the counting form
    """
    counting = (
        isinstance(condition, BinaryOp)
        and condition.op in ("<", "<=")
        and isinstance(condition.left, Name)
        and condition.left.id == var
        and isinstance(step, Assignment)
        and step.op == "+="
        and isinstance(step.target, Name)
        and step.target.id == var
        and isinstance(step.value, Literal)
        and step.value.kind is LiteralKind.INT
        and step.value.value == 1
    )
    if not counting:
        raise ParseError(
            "Only counting loops of the form `i = a; i < b; i++` are supported", span
        )
    end = condition.right
    if condition.op == "<=":
        one = Literal(1, LiteralKind.INT, span=end.span)
        end = BinaryOp(end, "+", one, span=end.span)
    return ForRange(var, start, end, body, span=span)


def negate(operand, span: SourceSpan):
    """Build `-operand`, folding numeric literals into negative literals."""
    if isinstance(operand, Literal) and operand.kind in (LiteralKind.INT, LiteralKind.FLOAT):
        return Literal(-operand.value, operand.kind, operand.suffix, span=span)
    return UnaryOp("-", operand, span=span)
