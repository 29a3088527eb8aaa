"""Pup frontend: hand-written lexer and Pratt parser."""

from typing import Any

from script2rs.transpiler.ast.nodes import ScriptDecl
from script2rs.transpiler.frontends.base import FrontendAdapter, ParseResult
from script2rs.transpiler.frontends.pup.lexer import tokenize
from script2rs.transpiler.frontends.pup.parser import PupParser
from script2rs.transpiler.frontends.pup.symbols import PUP_SYMBOLS
from script2rs.transpiler.models import FrontendKind


class PupFrontend(FrontendAdapter):
    kind = FrontendKind.PUP
    symbols = PUP_SYMBOLS

    def parse(self, source: str, path: str = "") -> ParseResult:
        tokens, errors = tokenize(source)
        parser = PupParser(tokens, path, self.symbols.script_kinds)
        unit = parser.parse_file()
        return ParseResult(unit, errors + parser.errors)

    def normalize(self, tree: Any, path: str = "") -> ScriptDecl:
        return self.normalizer.normalize(tree)


__all__ = ["PupFrontend"]
