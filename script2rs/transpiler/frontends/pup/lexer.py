"""
Pup tokenizer.

Produces a flat token list terminated by an EOF token. Spans carry byte
offsets into the UTF-8 encoded source plus 1-based line and column numbers.
Lexical errors are collected and scanning continues after the bad character.
"""

from dataclasses import dataclass
from enum import Enum, auto

from script2rs.transpiler.diagnostics import SourceSpan
from script2rs.transpiler.errors import ParseError


class TokenKind(Enum):
    IDENT = auto()
    INT = auto()
    FLOAT = auto()
    STRING = auto()
    KEYWORD = auto()
    OP = auto()
    EOF = auto()


KEYWORDS = frozenset({
    "extends", "var", "let", "const", "fn", "struct", "new",
    "if", "else", "for", "in", "while", "return", "break", "continue", "pass",
    "self", "true", "false", "and", "or", "not", "as",
})  # fmt: skip

# Longest first, so that `..` wins over `.` and `==` over `=`.
OPERATORS = (
    "::", "..", "->", "==", "!=", "<=", ">=", "&&", "||",
    "+=", "-=", "*=", "/=", "%=",
    "+", "-", "*", "/", "%", "=", "<", ">", "!",
    "(", ")", "{", "}", "[", "]", ",", ":", ".", ";", "@",
)  # fmt: skip

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", '"': '"', "'": "'", "\\": "\\"}


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    span: SourceSpan

    def is_op(self, *values: str) -> bool:
        return self.kind is TokenKind.OP and self.value in values

    def is_keyword(self, *values: str) -> bool:
        return self.kind is TokenKind.KEYWORD and self.value in values


class Lexer:
    """Single-use tokenizer over one source text."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.byte = 0
        self.line = 1
        self.column = 1
        self.errors: list[ParseError] = []

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.source[index] if index < len(self.source) else ""

    def _advance(self) -> str:
        char = self.source[self.pos]
        self.pos += 1
        self.byte += len(char.encode("utf-8"))
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char

    def _mark(self) -> tuple[int, int, int]:
        return self.byte, self.line, self.column

    def _span(self, mark: tuple[int, int, int]) -> SourceSpan:
        start, line, column = mark
        return SourceSpan(start, self.byte, line, column, self.line, self.column)

    def _skip_trivia(self) -> None:
        while self.pos < len(self.source):
            char = self._peek()
            if char in " \t\r\n":
                self._advance()
            elif char == "/" and self._peek(1) == "/":
                while self.pos < len(self.source) and self._peek() != "\n":
                    self._advance()
            elif char == "/" and self._peek(1) == "*":
                mark = self._mark()
                self._advance()
                self._advance()
                while self.pos < len(self.source) and not (
                    self._peek() == "*" and self._peek(1) == "/"
                ):
                    self._advance()
                if self.pos >= len(self.source):
                    self.errors.append(ParseError("Unterminated block comment", self._span(mark)))
                    return
                self._advance()
                self._advance()
            else:
                return

    def _number(self) -> Token:
        mark = self._mark()
        text = ""
        while self._peek().isdigit() or self._peek() == "_":
            text += self._advance()
        kind = TokenKind.INT
        # `0..10` is a range, not a float
        if self._peek() == "." and self._peek(1).isdigit():
            kind = TokenKind.FLOAT
            text += self._advance()
            while self._peek().isdigit() or self._peek() == "_":
                text += self._advance()
        if self._peek() in ("e", "E") and (
            self._peek(1).isdigit() or (self._peek(1) in "+-" and self._peek(2).isdigit())
        ):
            kind = TokenKind.FLOAT
            text += self._advance()
            if self._peek() in "+-":
                text += self._advance()
            while self._peek().isdigit():
                text += self._advance()
        return Token(kind, text.replace("_", ""), self._span(mark))

    def _string(self) -> Token:
        mark = self._mark()
        quote = self._advance()
        chars: list[str] = []
        while True:
            char = self._peek()
            if char == "" or char == "\n":
                self.errors.append(ParseError("Unterminated string literal", self._span(mark)))
                break
            self._advance()
            if char == quote:
                break
            if char == "\\":
                escaped = self._peek()
                if escaped == "":
                    continue
                self._advance()
                if escaped not in _ESCAPES:
                    self.errors.append(
                        ParseError(f"Unknown escape sequence '\\{escaped}'", self._span(mark))
                    )
                    chars.append("\\")
                chars.append(_ESCAPES.get(escaped, escaped))
            else:
                chars.append(char)
        return Token(TokenKind.STRING, "".join(chars), self._span(mark))

    def _word(self) -> Token:
        mark = self._mark()
        text = ""
        while self._peek().isalnum() or self._peek() == "_":
            text += self._advance()
        kind = TokenKind.KEYWORD if text in KEYWORDS else TokenKind.IDENT
        return Token(kind, text, self._span(mark))

    def _operator(self) -> Token | None:
        mark = self._mark()
        for op in OPERATORS:
            if self.source.startswith(op, self.pos):
                for _ in op:
                    self._advance()
                return Token(TokenKind.OP, op, self._span(mark))
        return None

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        while True:
            self._skip_trivia()
            if self.pos >= len(self.source):
                break
            char = self._peek()
            if char.isdigit():
                tokens.append(self._number())
            elif char.isalpha() or char == "_":
                tokens.append(self._word())
            elif char in "\"'":
                tokens.append(self._string())
            else:
                token = self._operator()
                if token is None:
                    mark = self._mark()
                    self._advance()
                    self.errors.append(
                        ParseError(f"Unexpected character '{char}'", self._span(mark))
                    )
                else:
                    tokens.append(token)
        mark = self._mark()
        tokens.append(Token(TokenKind.EOF, "", self._span(mark)))
        return tokens


def tokenize(source: str) -> tuple[list[Token], list[ParseError]]:
    """Tokenize Pup source.

    Returns:
        The token list (always EOF-terminated) and the lexical errors found
    """
    lexer = Lexer(source)
    tokens = lexer.tokenize()
    return tokens, lexer.errors
