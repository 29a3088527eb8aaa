"""
Support for the grammar-driven frontends.

TypeScript and C# are parsed with lark (Earley parser, basic lexer) from a
grammar file shipped next to the frontend. The parse tree is lowered with a
`lark.Transformer`; the callbacks shared by both syntaxes live in
`LarkLowering`.
"""

from functools import lru_cache
from itertools import accumulate
from pathlib import Path

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from script2rs.transpiler.ast.nodes import (
    ArrayLiteral,
    Assignment,
    BinaryOp,
    Break,
    Call,
    Cast,
    Continue,
    DynamicGet,
    ExprStmt,
    If,
    Index,
    Literal,
    LiteralKind,
    MemberAccess,
    Name,
    New,
    Pass,
    Return,
    SelfRef,
    TypeRef,
    UnaryOp,
    While,
)
from script2rs.transpiler.diagnostics import UNKNOWN_SPAN, SourceSpan
from script2rs.transpiler.errors import ParseError
from script2rs.transpiler.normalizer import negate

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", '"': '"', "'": "'", "\\": "\\"}

# Operators accepted as spelling variants of a shared operator
_OPERATOR_ALIASES = {"===": "==", "!==": "!="}


@lru_cache(maxsize=None)
def load_parser(grammar_path: Path) -> Lark:
    """Build (once per grammar file) the lark parser of a frontend."""
    return Lark(
        grammar_path.read_text(encoding="utf-8"),
        parser="earley",
        lexer="basic",
        propagate_positions=True,
    )


def decode_string(text: str) -> str:
    """Strip the quotes of a string token and resolve its escapes."""
    body = text[1:-1]
    chars: list[str] = []
    i = 0
    while i < len(body):
        char = body[i]
        if char == "\\" and i + 1 < len(body):
            # Unknown escapes keep their backslash
            chars.append(_ESCAPES.get(body[i + 1], "\\" + body[i + 1]))
            i += 2
            continue
        chars.append(char)
        i += 1
    return "".join(chars)


class ByteOffsets:
    """Converts character offsets of a source text into UTF-8 byte offsets."""

    def __init__(self, source: str):
        self.length = len(source)
        self._table = None if source.isascii() else [
            0, *accumulate(len(c.encode("utf-8")) for c in source)
        ]

    def __call__(self, pos: int | None) -> int:
        pos = self.length if pos is None else min(max(pos, 0), self.length)
        return pos if self._table is None else self._table[pos]


def syntax_error(error: UnexpectedInput, source: str) -> ParseError:
    """Convert a lark syntax error into a `ParseError` with a source span."""
    offsets = ByteOffsets(source)
    match error:
        case UnexpectedCharacters():
            message = f"Unexpected character '{source[error.pos_in_stream]}'"
        case UnexpectedToken() if error.token.type != "$END":
            expected = ", ".join(sorted(error.expected)[:6])
            message = f"Unexpected token '{error.token}'"
            if expected:
                message += f", expected one of: {expected}"
        case UnexpectedToken() | UnexpectedEOF():
            message = "Unexpected end of input"
        case _:
            message = str(error)

    line = getattr(error, "line", -1)
    column = getattr(error, "column", -1)
    pos = getattr(error, "pos_in_stream", None)
    if line is None or line < 1:
        line = source.count("\n") + 1
        column = len(source) - (source.rfind("\n") + 1) + 1
        pos = len(source)
    start = offsets(pos)
    span = SourceSpan(start, min(start + 1, offsets(None)), line, column, line, column + 1)
    return ParseError(message, span)


@v_args(inline=True, meta=True)
class LarkLowering(Transformer):
    """Lowering callbacks shared by the grammar-driven frontends.

    Callback names match rule names and aliases of the grammars. Problems that
    do not stop lowering are collected in `errors`.
    """

    # Literal suffix -> type spelling of the frontend
    literal_suffixes: dict[str, str] = {}

    def __init__(self, source: str, path: str = ""):
        super().__init__()
        self.path = path
        self.errors: list[ParseError] = []
        self._offsets = ByteOffsets(source)

    # ====================
    # Spans and errors
    # ====================

    def _span(self, meta) -> SourceSpan:
        if getattr(meta, "empty", True):
            return UNKNOWN_SPAN
        return SourceSpan(
            self._offsets(meta.start_pos),
            self._offsets(meta.end_pos),
            meta.line,
            meta.column,
            meta.end_line,
            meta.end_column,
        )

    def _token_span(self, token: Token) -> SourceSpan:
        return SourceSpan(
            self._offsets(token.start_pos),
            self._offsets(token.end_pos),
            token.line,
            token.column,
            token.end_line,
            token.end_column,
        )

    def _fail(self, error: ParseError) -> Pass:
        self.errors.append(error)
        return Pass(span=error.span or UNKNOWN_SPAN)

    def _check_target(self, target, span: SourceSpan) -> None:
        if not isinstance(target, Name | MemberAccess | Index | DynamicGet):
            self.errors.append(ParseError("Invalid assignment target", span))

    # ====================
    # Expressions
    # ====================

    def binop(self, meta, left, op, right):
        operator = _OPERATOR_ALIASES.get(op.value, op.value)
        return BinaryOp(left, operator, right, span=self._span(meta))

    def neg(self, meta, _op, operand):
        return negate(operand, self._span(meta))

    def not_(self, meta, _op, operand):
        return UnaryOp("!", operand, span=self._span(meta))

    def member(self, meta, value, name):
        return MemberAccess(value, str(name), span=self._span(meta))

    def call(self, meta, func, args):
        return Call(func, args or [], span=self._span(meta))

    def index(self, meta, value, index):
        return Index(value, index, span=self._span(meta))

    def cast(self, meta, value, target):
        return Cast(value, target, span=self._span(meta))

    def number(self, meta, token):
        text = str(token)
        suffix = None
        lowered = text.lower()
        for candidate in sorted(self.literal_suffixes, key=len, reverse=True):
            if lowered.endswith(candidate) and not lowered.startswith("0x"):
                suffix = self.literal_suffixes[candidate]
                text = text[: -len(candidate)]
                break
        span = self._span(meta)
        is_float = any(c in text for c in ".eE") or suffix in ("float", "double")
        if is_float:
            return Literal(float(text), LiteralKind.FLOAT, suffix, span=span)
        return Literal(int(text), LiteralKind.INT, suffix, span=span)

    def string(self, meta, token):
        return Literal(decode_string(str(token)), LiteralKind.STRING, span=self._span(meta))

    def true_lit(self, meta):
        return Literal(True, LiteralKind.BOOL, span=self._span(meta))

    def false_lit(self, meta):
        return Literal(False, LiteralKind.BOOL, span=self._span(meta))

    def this_ref(self, meta):
        return SelfRef(span=self._span(meta))

    def name(self, meta, token):
        return Name(str(token), span=self._span(meta))

    def new_expr(self, meta, type_ref, args):
        return New(type_ref, args or [], span=self._span(meta))

    def array_lit(self, meta, elements):
        return ArrayLiteral(elements or [], span=self._span(meta))

    def arguments(self, meta, *args):
        return list(args)

    # ====================
    # Types
    # ====================

    def type_name(self, meta, name, args):
        return TypeRef(str(name), tuple(args or ()), self._span(meta))

    def type_args(self, meta, *children):
        return [c for c in children if isinstance(c, TypeRef)]

    def array_type(self, meta, element):
        return TypeRef("Array", (element,), self._span(meta))

    # ====================
    # Statements
    # ====================

    def block(self, meta, *statements):
        return [s for s in statements if s is not None]

    def empty_stmt(self, meta):
        return None

    def expr_stmt(self, meta, value):
        return ExprStmt(value, span=self._span(meta))

    def return_stmt(self, meta, value):
        return Return(value, span=self._span(meta))

    def break_stmt(self, meta):
        return Break(span=self._span(meta))

    def continue_stmt(self, meta):
        return Continue(span=self._span(meta))

    def assign_op(self, meta, token):
        return str(token)

    def assign_stmt(self, meta, target, op, value):
        span = self._span(meta)
        self._check_target(target, span)
        return Assignment(target, op, value, span=span)

    def increment(self, meta, target, _op):
        span = self._span(meta)
        self._check_target(target, span)
        return Assignment(target, "+=", Literal(1, LiteralKind.INT, span=span), span=span)

    def decrement(self, meta, target, _op):
        span = self._span(meta)
        self._check_target(target, span)
        return Assignment(target, "-=", Literal(1, LiteralKind.INT, span=span), span=span)

    def if_stmt(self, meta, test, body, orelse):
        return If(test, body, orelse or [], span=self._span(meta))

    def else_clause(self, meta, body):
        return body if isinstance(body, list) else [body]

    def while_stmt(self, meta, test, body):
        return While(test, body, span=self._span(meta))

    # ====================
    # Declarations
    # ====================

    def modifiers(self, meta, *modifiers):
        return list(modifiers)

    def public_mod(self, meta):
        return "public"

    def private_mod(self, meta):
        return "private"

    def static_mod(self, meta):
        return "static"

    def readonly_mod(self, meta):
        return "readonly"

    def params(self, meta, *params):
        return list(params)
