"""
Compilation pass: the per-file pipeline.

A pass takes a closed set of source files, parses them all, collects the
script names that serve as cross-script handles, then resolves and generates
every file independently. Files with error diagnostics produce no output and
do not stop the other files.
"""

import os
import tempfile
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

from loguru import logger

from script2rs.transpiler.ast.nodes import ScriptDecl
from script2rs.transpiler.bindings import BindingTable
from script2rs.transpiler.code_generator import generate_rust
from script2rs.transpiler.diagnostics import Diagnostic, DiagnosticCollector, Severity
from script2rs.transpiler.errors import DuplicateRegistrationError, TranspilerError
from script2rs.transpiler.frontends import get_frontend
from script2rs.transpiler.lowering import Lowerer, snake_name
from script2rs.transpiler.models import SourceFile, TranspilerConfig
from script2rs.transpiler.registry.builder import Registries
from script2rs.transpiler.resolver import resolve_script
from script2rs.transpiler.source_map import SourceMap, build_source_map

IO_ERROR = "io-error"
SOURCE_MAP_SUFFIX = ".map.json"

A = TypeVar("A")
R = TypeVar("R")


@dataclass
class FileResult:
    """Outcome of one source file.

    Attributes:
        source: The input file
        script_name: Name of the parsed script, None if parsing failed
        output: Generated Rust source, None if the file had errors
        output_path: Where the output was written, if it was
        source_map: Map from the output back to the script, None without output
        diagnostics: Records of the file in source order
    """

    source: SourceFile
    script_name: str | None = None
    output: str | None = None
    output_path: Path | None = None
    source_map: SourceMap | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not any(d.severity is Severity.ERROR for d in self.diagnostics)


@dataclass
class PassResult:
    """Outcome of a compilation pass, files in input order.

    `read_errors` holds the records of input files that could not be read.
    """

    files: list[FileResult]
    read_errors: list[Diagnostic] = field(default_factory=list)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return self.read_errors + [d for result in self.files for d in result.diagnostics]

    @property
    def has_errors(self) -> bool:
        return bool(self.read_errors) or any(not result.ok for result in self.files)

    @property
    def outputs(self) -> dict[str, str]:
        """Generated source by input path."""
        return {r.source.path: r.output for r in self.files if r.output is not None}


@dataclass
class _Parsed:
    source: SourceFile
    script: ScriptDecl | None
    diagnostics: DiagnosticCollector


def output_name(source: SourceFile, extension: str = ".rs") -> str:
    """`scripts/PlayerController.cs` -> `player_controller_cs.rs`."""
    stem = snake_name(Path(source.path).stem.replace("-", "_"))
    return f"{stem}_{source.frontend.value}{extension}"


def write_atomic(path: Path, text: str) -> None:
    """Write `text` to `path` through a temp file in the same directory.

    Raises:
        OSError: If the file cannot be written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class CompilationPass:
    """Runs the pipeline over a set of source files.

    Registries and the binding table are frozen before the first file is
    processed; after that they are shared read-only between worker threads.
    """

    def __init__(
        self,
        registries: Registries,
        bindings: BindingTable,
        config: TranspilerConfig | None = None,
    ):
        self.registries = registries
        self.bindings = bindings
        self.config = config or TranspilerConfig()
        if not registries.frozen:
            registries.freeze()
        if not bindings.frozen:
            bindings.freeze()

    def _map(self, func: Callable[[A], R], items: Iterable[A]) -> list[R]:
        items = list(items)
        if self.config.jobs <= 1 or len(items) <= 1:
            return [func(item) for item in items]
        with ThreadPoolExecutor(max_workers=self.config.jobs) as executor:
            return list(executor.map(func, items))

    def run(
        self, sources: Iterable[SourceFile], out_dir: str | Path | None = None
    ) -> PassResult:
        """Transpile a set of files.

        Args:
            sources: Input files
            out_dir: Directory receiving the generated files; nothing is
                written when None or when `write_outputs` is off

        Returns:
            Per-file results in input order

        Raises:
            DuplicateRegistrationError: Aborts the whole pass
        """
        sources = list(sources)
        logger.info(f"Compiling {len(sources)} file(s) with {self.config.jobs} job(s)")
        parsed = self._map(self._parse, sources)
        script_names = frozenset(p.script.name for p in parsed if p.script is not None)
        logger.debug(f"Scripts in pass: {', '.join(sorted(script_names)) or '<none>'}")

        target = Path(out_dir) if out_dir is not None and self.config.write_outputs else None
        results = self._map(lambda p: self._compile(p, script_names, target), parsed)

        failed = sum(1 for r in results if not r.ok)
        logger.info(f"Pass finished: {len(results) - failed} ok, {failed} failed")
        return PassResult(results)

    def _parse(self, source: SourceFile) -> _Parsed:
        diagnostics = DiagnosticCollector(source.path)
        frontend = get_frontend(source.frontend)
        script = frontend.to_ast(source.text, source.path, diagnostics)
        return _Parsed(source, script, diagnostics)

    def _compile(
        self, parsed: _Parsed, script_names: frozenset[str], out_dir: Path | None
    ) -> FileResult:
        source, script, diagnostics = parsed.source, parsed.script, parsed.diagnostics
        result = FileResult(source, script.name if script is not None else None)
        if script is not None:
            try:
                result.output, result.source_map = self._generate(
                    script, script_names, diagnostics
                )
            except DuplicateRegistrationError:
                raise
            except TranspilerError as e:
                diagnostics.report(e)
                result.output, result.source_map = None, None

        if result.output is not None and out_dir is not None:
            path = out_dir / output_name(source, self.config.output_extension)
            try:
                write_atomic(path, result.output)
                result.output_path = path
                logger.debug(f"Wrote {path}")
                if self.config.source_maps and result.source_map is not None:
                    map_path = path.with_name(path.name + SOURCE_MAP_SUFFIX)
                    write_atomic(map_path, result.source_map.to_json())
            except OSError as e:
                diagnostics.add(f"Cannot write {path}: {e}", IO_ERROR)

        result.diagnostics = diagnostics.diagnostics
        return result

    def _generate(
        self, script: ScriptDecl, script_names: frozenset[str], diagnostics: DiagnosticCollector
    ) -> tuple[str | None, SourceMap | None]:
        resolved = resolve_script(script, self.registries, script_names, diagnostics)
        if diagnostics.has_errors:
            logger.debug(f"{script.path}: {diagnostics.error_count} error(s), no output")
            return None, None
        lowerer = Lowerer()
        output = generate_rust(
            resolved,
            self.bindings,
            self.registries.symbols[script.frontend],
            self.config.header,
            diagnostics,
            lowerer,
        )
        if diagnostics.has_errors:
            return None, None
        return output, build_source_map(resolved, lowerer, output)


def read_sources(
    paths: Iterable[str | Path], diagnostics: list[Diagnostic] | None = None
) -> list[SourceFile]:
    """Read source files, recording unreadable ones as `io-error` diagnostics.

    Args:
        paths: Input paths; the frontend is chosen by extension
        diagnostics: List receiving a record per unreadable file

    Returns:
        The files that could be read
    """
    sources = []
    for path in paths:
        try:
            sources.append(SourceFile.read(path))
        except (OSError, UnicodeDecodeError, ValueError) as e:
            collector = DiagnosticCollector(str(path))
            collector.add(f"Cannot read {path}: {e}", IO_ERROR)
            if diagnostics is not None:
                diagnostics.extend(collector.diagnostics)
            logger.debug(f"Skipping {path}: {e}")
    return sources
