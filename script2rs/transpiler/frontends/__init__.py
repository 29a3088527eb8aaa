"""Frontend adapters, one per supported surface syntax."""

from script2rs.transpiler.frontends.base import FrontendAdapter, ParseResult
from script2rs.transpiler.frontends.csharp.symbols import CSHARP_SYMBOLS
from script2rs.transpiler.frontends.pup.symbols import PUP_SYMBOLS
from script2rs.transpiler.frontends.typescript.symbols import TYPESCRIPT_SYMBOLS
from script2rs.transpiler.models import FrontendKind
from script2rs.transpiler.registry.symbols import FrontendSymbols


def default_symbol_tables() -> list[FrontendSymbols]:
    """Symbol tables of every built-in frontend."""
    return [PUP_SYMBOLS, TYPESCRIPT_SYMBOLS, CSHARP_SYMBOLS]


def get_frontend(kind: FrontendKind) -> FrontendAdapter:
    """Create the adapter for a frontend kind."""
    match kind:
        case FrontendKind.PUP:
            from script2rs.transpiler.frontends.pup import PupFrontend

            return PupFrontend()
        case FrontendKind.TYPESCRIPT:
            from script2rs.transpiler.frontends.typescript import TypeScriptFrontend

            return TypeScriptFrontend()
        case FrontendKind.CSHARP:
            from script2rs.transpiler.frontends.csharp import CSharpFrontend

            return CSharpFrontend()
    raise ValueError(f"Unknown frontend: {kind}")


__all__ = [
    "FrontendAdapter",
    "ParseResult",
    "default_symbol_tables",
    "get_frontend",
]
