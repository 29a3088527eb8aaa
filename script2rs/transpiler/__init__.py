"""
Transpilation of game scripts to Rust.

This module provides the top-level interface: building the frozen registries
and binding table, and running source text or files through a compilation
pass.
"""

from collections.abc import Iterable
from functools import cache
from pathlib import Path

from loguru import logger

from script2rs.transpiler.bindings import BindingTable, build_binding_table
from script2rs.transpiler.diagnostics import Diagnostic, Severity, SourceSpan
from script2rs.transpiler.errors import TranspilerError
from script2rs.transpiler.models import (
    FrontendKind,
    HeaderStyle,
    SourceFile,
    TranspilerConfig,
)
from script2rs.transpiler.pipeline import (
    CompilationPass,
    FileResult,
    PassResult,
    read_sources,
)
from script2rs.transpiler.registry.builder import Registries, build_registries
from script2rs.transpiler.registry.symbols import FrontendSymbols
from script2rs.transpiler.source_map import SourceMap


def default_environment(
    tables: Iterable[FrontendSymbols] | None = None,
) -> tuple[Registries, BindingTable]:
    """Build and freeze the registries and the binding table.

    Args:
        tables: Frontend symbol tables; defaults to every built-in frontend,
            in which case the environment is built once per process

    Returns:
        Tuple of (frozen registries, frozen binding table)

    Raises:
        DuplicateRegistrationError: If the static tables collide
    """
    if tables is None:
        return _builtin_environment()
    return _build_environment(tables)


@cache
def _builtin_environment() -> tuple[Registries, BindingTable]:
    return _build_environment(None)


def _build_environment(
    tables: Iterable[FrontendSymbols] | None,
) -> tuple[Registries, BindingTable]:
    registries = build_registries(tables)
    bindings = build_binding_table(registries)
    registries.freeze()
    bindings.freeze()
    logger.debug(f"Environment ready: {len(bindings)} bindings")
    return registries, bindings


def transpile(
    source: str,
    frontend: FrontendKind | str = FrontendKind.PUP,
    path: str = "",
    config: TranspilerConfig | None = None,
) -> FileResult:
    """Transpile one script given as source text.

    Args:
        source: Script source text
        frontend: Surface syntax of the source
        path: Path used in diagnostics and to derive the default script name
        config: Pass options; nothing is written to disk

    Returns:
        The file result with generated Rust (None on errors) and diagnostics

    Raises:
        DuplicateRegistrationError: If the environment cannot be built
    """
    kind = FrontendKind(frontend)
    registries, bindings = default_environment()
    unit = SourceFile(path or f"script.{kind.value}", source, kind)
    return CompilationPass(registries, bindings, config).run([unit]).files[0]


def transpile_files(
    paths: Iterable[str | Path],
    out_dir: str | Path | None = None,
    config: TranspilerConfig | None = None,
) -> PassResult:
    """Transpile files in one compilation pass.

    Args:
        paths: Input files; the frontend is chosen by extension
        out_dir: Directory receiving `<stem>_<frontend>.rs` outputs
        config: Pass options

    Returns:
        Per-file results, plus records for files that could not be read
    """
    read_errors: list[Diagnostic] = []
    sources = read_sources(paths, read_errors)
    registries, bindings = default_environment()
    result = CompilationPass(registries, bindings, config).run(sources, out_dir)
    result.read_errors = read_errors
    return result


__all__ = [
    "CompilationPass",
    "Diagnostic",
    "FileResult",
    "FrontendKind",
    "HeaderStyle",
    "PassResult",
    "Severity",
    "SourceFile",
    "SourceMap",
    "SourceSpan",
    "TranspilerConfig",
    "TranspilerError",
    "default_environment",
    "transpile",
    "transpile_files",
]
