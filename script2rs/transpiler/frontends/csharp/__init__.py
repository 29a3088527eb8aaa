"""C# frontend: lark grammar plus parse-tree lowering."""

from pathlib import Path
from typing import Any

from lark.exceptions import UnexpectedInput

from script2rs.transpiler.ast.nodes import ScriptDecl
from script2rs.transpiler.frontends.base import FrontendAdapter, ParseResult
from script2rs.transpiler.frontends.csharp.lowering import CSharpLowering
from script2rs.transpiler.frontends.csharp.symbols import CSHARP_SYMBOLS
from script2rs.transpiler.frontends.grammar import load_parser, syntax_error
from script2rs.transpiler.models import FrontendKind

GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")


class CSharpFrontend(FrontendAdapter):
    kind = FrontendKind.CSHARP
    symbols = CSHARP_SYMBOLS

    def parse(self, source: str, path: str = "") -> ParseResult:
        try:
            tree = load_parser(GRAMMAR_PATH).parse(source)
        except UnexpectedInput as e:
            return ParseResult(None, [syntax_error(e, source)])
        lowering = CSharpLowering(source, path)
        unit = lowering.transform(tree)
        return ParseResult(unit, lowering.errors)

    def normalize(self, tree: Any, path: str = "") -> ScriptDecl:
        return self.normalizer.normalize(tree)


__all__ = ["CSharpFrontend"]
