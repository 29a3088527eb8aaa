"""
Pup parser.

Recursive descent for declarations and statements, Pratt parsing for
expressions. Statements and expressions are built directly as shared AST
nodes; declarations are collected into a `RawUnit` for the normalizer.

The parser recovers at statement and top-level declaration boundaries, so one
pass reports every syntax error it can find.
"""

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
    Param,
    Pass,
    Return,
    SelfRef,
    Stmt,
    TypeRef,
    UnaryOp,
    VarDecl,
    While,
)
from script2rs.transpiler.diagnostics import SourceSpan
from script2rs.transpiler.errors import ParseError
from script2rs.transpiler.frontends.pup.lexer import Token, TokenKind
from script2rs.transpiler.normalizer import RawClass, RawUnit, default_script_name, negate

# Binding powers, loosest first
BINARY_PRECEDENCE = {
    "||": 1, "or": 1,
    "&&": 2, "and": 2,
    "==": 3, "!=": 3,
    "<": 4, ">": 4, "<=": 4, ">=": 4,
    "+": 5, "-": 5,
    "*": 6, "/": 6, "%": 6,
}  # fmt: skip
AS_PRECEDENCE = 7
UNARY_PRECEDENCE = 8

ASSIGN_OPS = ("=", "+=", "-=", "*=", "/=", "%=")
_WORD_OPS = {"or": "||", "and": "&&", "not": "!"}
_TOP_LEVEL = ("fn", "var", "let", "const", "struct", "extends")


class PupParser:
    """Parser over the token list of one Pup file."""

    def __init__(self, tokens: list[Token], path: str = "", script_kinds=()):
        self.tokens = tokens
        self.path = path
        self.script_kinds = set(script_kinds)
        self.pos = 0
        self.errors: list[ParseError] = []

    # ====================
    # Token helpers
    # ====================

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    @property
    def previous(self) -> Token:
        return self.tokens[max(self.pos - 1, 0)]

    def _at_end(self) -> bool:
        return self.current.kind is TokenKind.EOF

    def _advance(self) -> Token:
        token = self.current
        if not self._at_end():
            self.pos += 1
        return token

    def _check_op(self, *values: str) -> bool:
        return self.current.is_op(*values)

    def _check_keyword(self, *values: str) -> bool:
        return self.current.is_keyword(*values)

    def _match_op(self, *values: str) -> Token | None:
        if self._check_op(*values):
            return self._advance()
        return None

    def _expect_op(self, value: str) -> Token:
        if not self._check_op(value):
            raise self._error(f"Expected '{value}'")
        return self._advance()

    def _expect_keyword(self, value: str) -> Token:
        if not self._check_keyword(value):
            raise self._error(f"Expected '{value}'")
        return self._advance()

    def _expect_ident(self, what: str = "identifier") -> Token:
        if self.current.kind is not TokenKind.IDENT:
            raise self._error(f"Expected {what}")
        return self._advance()

    def _error(self, message: str) -> ParseError:
        token = self.current
        found = "end of input" if token.kind is TokenKind.EOF else f"'{token.value}'"
        return ParseError(f"{message}, found {found}", token.span)

    def _span_from(self, start: Token) -> SourceSpan:
        return start.span.merge(self.previous.span)

    def _on_same_line(self) -> bool:
        return self.current.span.line == self.previous.span.end_line

    def _skip_semicolons(self) -> None:
        while self._match_op(";"):
            pass

    # ====================
    # Recovery
    # ====================

    def _starts_line(self) -> bool:
        return self.current.span.line > self.previous.span.end_line

    def _sync_statement(self, failed_at: Token) -> None:
        """Skip the rest of the line holding the failed statement."""
        if self.current is failed_at and not self._check_op("}"):
            self._advance()
        while not self._at_end():
            if self._check_op("}") or self.previous.is_op(";") or self._starts_line():
                return
            self._advance()

    def _sync_top_level(self, failed_at: Token) -> None:
        """Skip to the next line starting with a top-level declaration."""
        if self.current is failed_at:
            self._advance()
        while not self._at_end():
            if (self._check_keyword(*_TOP_LEVEL) or self._check_op("@")) and self._starts_line():
                return
            self._advance()

    # ====================
    # Declarations
    # ====================

    def parse_file(self) -> RawUnit:
        """Parse a whole file into a `RawUnit`.

        Syntax errors are collected in `self.errors`.
        """
        script = RawClass(name="")
        structs: list[RawClass] = []
        pending: list[str] = []
        start = self.current

        while not self._at_end():
            self._skip_semicolons()
            if self._at_end():
                break
            token = self.current
            try:
                if self._match_op("@"):
                    name = self._advance()
                    if name.kind not in (TokenKind.IDENT, TokenKind.KEYWORD):
                        raise ParseError("Expected attribute name after '@'", name.span)
                    if name.value in self.script_kinds:
                        script.markers.append(name.value)
                        if self.current.kind is TokenKind.IDENT and self._on_same_line():
                            script.name = self._advance().value
                    else:
                        pending.append(name.value)
                elif self._check_keyword("extends"):
                    self._advance()
                    base = self._expect_ident("base node type")
                    if script.base is not None:
                        raise ParseError("Duplicate 'extends' clause", base.span)
                    script.base = base.value
                elif self._check_keyword("var", "let", "const"):
                    script.fields.append(self._var_decl(pending))
                    pending = []
                elif self._check_keyword("fn"):
                    script.methods.append(self._function(pending))
                    pending = []
                elif self._check_keyword("struct"):
                    structs.append(self._struct())
                    pending = []
                else:
                    raise self._error("Expected a declaration")
            except ParseError as e:
                self.errors.append(e)
                pending = []
                self._sync_top_level(token)

        script.name = script.name or default_script_name(self.path)
        script.exported = True
        script.span = self._span_from(start)
        logger.debug(
            f"Parsed Pup file '{self.path}': {len(script.fields)} fields, "
            f"{len(script.methods)} functions, {len(structs)} structs"
        )
        return RawUnit([script, *structs], self.path)

    def _var_decl(self, attributes: list[str]) -> VarDecl:
        start = self._advance()
        is_const = start.value == "const"
        name = self._expect_ident("variable name")
        type_ref = self._type() if self._match_op(":") else None
        value = self._expression() if self._match_op("=") else None
        if is_const and value is None:
            raise ParseError(f"Constant '{name.value}' needs a value", self._span_from(start))
        self._match_op(";")
        return VarDecl(
            name.value,
            type_ref,
            value,
            attributes=list(attributes),
            is_const=is_const,
            span=self._span_from(start),
        )

    def _function(self, attributes: list[str]) -> FunctionDecl:
        start = self._expect_keyword("fn")
        name = self._expect_ident("function name")
        self._expect_op("(")
        params: list[Param] = []
        while not self._check_op(")"):
            param_start = self._expect_ident("parameter name")
            self._expect_op(":")
            param_type = self._type()
            params.append(Param(param_start.value, param_type, span=self._span_from(param_start)))
            if not self._match_op(","):
                break
        self._expect_op(")")
        return_type = self._type() if self._match_op("->") else None
        body = self._block()
        return FunctionDecl(
            name.value,
            params,
            return_type,
            body,
            attributes=list(attributes),
            span=self._span_from(start),
        )

    def _struct(self) -> RawClass:
        start = self._expect_keyword("struct")
        name = self._expect_ident("struct name")
        self._expect_op("{")
        fields: list[VarDecl] = []
        while not self._check_op("}"):
            self._match_op(",", ";")
            if self._check_op("}"):
                break
            if self._check_keyword("var", "let"):
                self._advance()
            field_name = self._expect_ident("field name")
            self._expect_op(":")
            field_type = self._type()
            value = self._expression() if self._match_op("=") else None
            fields.append(
                VarDecl(field_name.value, field_type, value, span=self._span_from(field_name))
            )
            if not self._match_op(",", ";") and not self._check_op("}"):
                if not self._starts_line():
                    raise self._error("Expected ',' or '}'")
        self._expect_op("}")
        return RawClass(name.value, is_struct=True, fields=fields, span=self._span_from(start))

    def _type(self) -> TypeRef:
        start = self.current
        if start.kind is not TokenKind.IDENT:
            raise self._error("Expected type name")
        self._advance()
        args: list[TypeRef] = []
        if self._check_op("[", "<") and self._on_same_line():
            close = "]" if self._advance().value == "[" else ">"
            args.append(self._type())
            while self._match_op(","):
                args.append(self._type())
            self._expect_op(close)
        return TypeRef(start.value, tuple(args), self._span_from(start))

    # ====================
    # Statements
    # ====================

    def _block(self) -> list[Stmt]:
        self._expect_op("{")
        body: list[Stmt] = []
        while not self._check_op("}"):
            if self._at_end():
                raise self._error("Expected '}'")
            token = self.current
            try:
                statement = self._statement()
                if statement is not None:
                    body.append(statement)
            except ParseError as e:
                self.errors.append(e)
                self._sync_statement(token)
        self._expect_op("}")
        return body

    def _statement(self) -> Stmt | None:
        token = self.current
        if self._match_op(";"):
            return None
        if token.kind is TokenKind.KEYWORD:
            match token.value:
                case "var" | "let" | "const":
                    return self._var_decl([])
                case "if":
                    return self._if()
                case "for":
                    return self._for()
                case "while":
                    self._advance()
                    test = self._expression()
                    body = self._block()
                    return While(test, body, span=self._span_from(token))
                case "return":
                    self._advance()
                    value = None
                    if not self._check_op(";", "}") and not self._at_end() and self._on_same_line():
                        value = self._expression()
                    self._match_op(";")
                    return Return(value, span=self._span_from(token))
                case "break":
                    self._advance()
                    self._match_op(";")
                    return Break(span=token.span)
                case "continue":
                    self._advance()
                    self._match_op(";")
                    return Continue(span=token.span)
                case "pass":
                    self._advance()
                    self._match_op(";")
                    return Pass(span=token.span)

        target = self._expression()
        if self._check_op(*ASSIGN_OPS):
            op = self._advance().value
            if not isinstance(target, Name | MemberAccess | Index | DynamicGet):
                raise ParseError("Invalid assignment target", target.span)
            value = self._expression()
            self._match_op(";")
            return Assignment(target, op, value, span=self._span_from(token))
        self._match_op(";")
        return ExprStmt(target, span=self._span_from(token))

    def _if(self) -> If:
        start = self._expect_keyword("if")
        test = self._expression()
        body = self._block()
        orelse: list[Stmt] = []
        if self._check_keyword("else"):
            self._advance()
            if self._check_keyword("if"):
                orelse = [self._if()]
            else:
                orelse = self._block()
        return If(test, body, orelse, span=self._span_from(start))

    def _for(self) -> Stmt:
        start = self._expect_keyword("for")
        var = self._expect_ident("loop variable")
        self._expect_keyword("in")
        first = self._expression()
        if self._match_op(".."):
            end = self._expression()
            body = self._block()
            return ForRange(var.value, first, end, body, span=self._span_from(start))
        body = self._block()
        return ForEach(var.value, first, body, span=self._span_from(start))

    # ====================
    # Expressions
    # ====================

    def _expression(self, min_precedence: int = 0) -> Expr:
        start = self.current
        left = self._prefix()

        while True:
            token = self.current
            if token.is_op(".", "::") or (token.is_op("(", "[") and self._on_same_line()):
                left = self._postfix(left, start)
                continue
            if token.is_keyword("as"):
                if AS_PRECEDENCE <= min_precedence:
                    break
                self._advance()
                target = self._type()
                left = Cast(left, target, span=self._span_from(start))
                continue

            op = None
            if token.kind is TokenKind.OP and token.value in BINARY_PRECEDENCE:
                op = token.value
            elif token.is_keyword("and", "or"):
                op = token.value
            if op is None:
                break
            precedence = BINARY_PRECEDENCE[op]
            if precedence <= min_precedence:
                break
            self._advance()
            right = self._expression(precedence)
            left = BinaryOp(left, _WORD_OPS.get(op, op), right, span=self._span_from(start))
        return left

    def _postfix(self, left: Expr, start: Token) -> Expr:
        token = self._advance()
        match token.value:
            case "(":
                args = self._arguments(")")
                return Call(left, args, span=self._span_from(start))
            case "[":
                index = self._expression()
                self._expect_op("]")
                return Index(left, index, span=self._span_from(start))
            case "." | "::":
                member = self._advance()
                if member.kind not in (TokenKind.IDENT, TokenKind.KEYWORD):
                    raise ParseError("Expected member name", member.span)
                node_class = DynamicGet if token.value == "::" else MemberAccess
                return node_class(left, member.value, span=self._span_from(start))
        raise ParseError(f"Unexpected '{token.value}'", token.span)

    def _arguments(self, close: str) -> list[Expr]:
        args: list[Expr] = []
        while not self._check_op(close):
            args.append(self._expression())
            if not self._match_op(","):
                break
        self._expect_op(close)
        return args

    def _prefix(self) -> Expr:
        token = self.current
        match token.kind:
            case TokenKind.INT:
                self._advance()
                return Literal(int(token.value), LiteralKind.INT, span=token.span)
            case TokenKind.FLOAT:
                self._advance()
                return Literal(float(token.value), LiteralKind.FLOAT, span=token.span)
            case TokenKind.STRING:
                self._advance()
                return Literal(token.value, LiteralKind.STRING, span=token.span)
            case TokenKind.IDENT:
                self._advance()
                return Name(token.value, span=token.span)
            case TokenKind.KEYWORD:
                return self._keyword_prefix(token)
            case TokenKind.OP:
                return self._operator_prefix(token)
        raise self._error("Expected expression")

    def _keyword_prefix(self, token: Token) -> Expr:
        match token.value:
            case "true" | "false":
                self._advance()
                return Literal(token.value == "true", LiteralKind.BOOL, span=token.span)
            case "self":
                self._advance()
                return SelfRef(span=token.span)
            case "not":
                self._advance()
                operand = self._expression(UNARY_PRECEDENCE)
                return UnaryOp("!", operand, span=self._span_from(token))
            case "new":
                self._advance()
                type_ref = self._type()
                self._expect_op("(")
                args = self._arguments(")")
                return New(type_ref, args, span=self._span_from(token))
        raise self._error("Expected expression")

    def _operator_prefix(self, token: Token) -> Expr:
        match token.value:
            case "-":
                self._advance()
                operand = self._expression(UNARY_PRECEDENCE)
                return negate(operand, self._span_from(token))
            case "!":
                self._advance()
                operand = self._expression(UNARY_PRECEDENCE)
                return UnaryOp("!", operand, span=self._span_from(token))
            case "(":
                self._advance()
                inner = self._expression()
                self._expect_op(")")
                return inner
            case "[":
                self._advance()
                elements = self._arguments("]")
                return ArrayLiteral(elements, span=self._span_from(token))
        raise self._error("Expected expression")
