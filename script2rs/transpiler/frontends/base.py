"""Frontend adapter interface shared by all surface syntaxes."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from script2rs.transpiler.ast.nodes import ScriptDecl
from script2rs.transpiler.diagnostics import DiagnosticCollector
from script2rs.transpiler.errors import ParseError
from script2rs.transpiler.models import FrontendKind
from script2rs.transpiler.normalizer import AstNormalizer
from script2rs.transpiler.registry.symbols import FrontendSymbols


@dataclass
class ParseResult:
    """Parse tree of one file plus the syntax errors found while building it.

    `tree` is None when the input could not be parsed at all.
    """

    tree: Any | None
    errors: list[ParseError] = field(default_factory=list)


class FrontendAdapter(ABC):
    """Turns raw source text of one syntax into the shared AST.

    Subclasses implement `parse` and `normalize`; neither raises past the
    adapter, `to_ast` reports every problem to a diagnostics collector.
    """

    kind: FrontendKind
    symbols: FrontendSymbols

    def __init__(self) -> None:
        self.normalizer = AstNormalizer(self.symbols)

    @abstractmethod
    def parse(self, source: str, path: str = "") -> ParseResult:
        """Parse source text into this frontend's parse tree."""

    @abstractmethod
    def normalize(self, tree: Any, path: str = "") -> ScriptDecl:
        """Lower a parse tree to a shared `ScriptDecl`.

        Raises:
            ParseError: If the tree has an unsupported shape
        """

    def to_ast(self, source: str, path: str, diagnostics: DiagnosticCollector) -> ScriptDecl | None:
        """Parse and normalize one file.

        Args:
            source: Source text
            path: Path used for spans and the default script name
            diagnostics: Collector receiving parse errors

        Returns:
            The shared AST, or None when the file has syntax errors
        """
        result = self.parse(source, path)
        for error in result.errors:
            diagnostics.report(error)
        if result.tree is None or result.errors:
            logger.debug(f"{path}: {len(result.errors)} syntax error(s)")
            return None

        try:
            script = self.normalize(result.tree, path)
        except ParseError as e:
            diagnostics.report(e)
            return None
        logger.debug(f"{path}: parsed {self.kind.name} script '{script.name}'")
        return script
