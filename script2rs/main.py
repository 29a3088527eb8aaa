"""Command line interface for script2rs.

This module provides a command-line interface for transpiling Pup, TypeScript
and C# game scripts to Rust, checking them for errors and watching a directory
for changes.
"""

import json
import sys
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, cast

import typer
import watchdog.events
import watchdog.observers
from loguru import logger
from watchdog.events import FileSystemEventHandler

from script2rs.transpiler import (
    FrontendKind,
    HeaderStyle,
    PassResult,
    TranspilerConfig,
    TranspilerError,
    transpile,
    transpile_files,
)
from script2rs.transpiler.diagnostics import Diagnostic

# Define type variables for TypedCallable
F = TypeVar("F", bound=Callable[..., Any])

SOURCE_EXTENSIONS = frozenset(f".{kind.value}" for kind in FrontendKind)


# TypedCommand decorator helper
def typed_command(app_command: Any) -> Callable[[F], F]:
    """Wrap typer command with proper typing for mypy."""

    def decorator(func: F) -> F:
        return cast(F, app_command(func))

    return decorator


app = typer.Typer(
    name="script2rs",
    help=(
        "Transpile Pup, TypeScript and C# game scripts to Rust. "
        "Commands: transpile, check, show, watch."
    ),
    add_completion=False,
)


def _setup_logging(verbose: bool) -> None:
    """Enable library logging on stderr; `--verbose` shows every pipeline stage."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")
    logger.enable("script2rs")


def _parse_header(header: str) -> HeaderStyle:
    try:
        return HeaderStyle(header.lower())
    except ValueError as e:
        choices = ", ".join(style.value for style in HeaderStyle)
        logger.error(f"Unknown header style '{header}' (expected one of: {choices})")
        raise typer.Exit(2) from e


def _parse_frontend(frontend: str) -> FrontendKind | None:
    if not frontend:
        return None
    try:
        return FrontendKind(frontend.lower())
    except ValueError as e:
        choices = ", ".join(kind.value for kind in FrontendKind)
        logger.error(f"Unknown frontend '{frontend}' (expected one of: {choices})")
        raise typer.Exit(2) from e


def _print_diagnostics(diagnostics: list[Diagnostic]) -> None:
    for diagnostic in diagnostics:
        typer.echo(diagnostic.format(), err=True)


def _collect_sources(directory: Path) -> list[Path]:
    """All script sources under `directory`, in a stable order."""
    return sorted(
        path
        for path in directory.rglob("*")
        if path.is_file() and path.suffix.lower() in SOURCE_EXTENSIONS
    )


def _run_pass(
    files: list[str] | list[Path],
    out_dir: str | None,
    config: TranspilerConfig,
) -> PassResult:
    """Run a compilation pass, turning fatal configuration errors into exit code 1."""
    try:
        return transpile_files(files, out_dir, config)
    except TranspilerError as e:
        logger.error(f"Transpilation aborted: {e}")
        raise typer.Exit(1) from e


@typed_command(app.command("transpile"))
def transpile_command(
    files: list[str] = typer.Argument(..., help="Script files (.pup, .ts, .cs)"),
    out_dir: str = typer.Option(".", "--out-dir", "-o", help="Output directory"),
    jobs: int = typer.Option(1, "--jobs", "-j", help="Worker threads"),
    header: str = typer.Option(
        "plain", "--header", help="Header comment (none, plain, timestamped)"
    ),
    source_map: bool = typer.Option(
        False, "--source-map", help="Also write `<output>.map.json` source maps"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Transpile script files to Rust.

    Each input produces `<stem>_<frontend>.rs` in the output directory. Files
    with errors produce no output; the command then exits with code 1.
    With `--source-map` every output gets a JSON map back to its script.

    Example: script2rs transpile scripts/player.pup scripts/Enemy.cs -o gen
    """
    _setup_logging(verbose)
    config = TranspilerConfig(jobs=jobs, header=_parse_header(header), source_maps=source_map)
    result = _run_pass(files, out_dir, config)
    _print_diagnostics(result.diagnostics)

    for file in result.files:
        if file.output_path is not None:
            logger.info(f"{file.source.path} -> {file.output_path}")
    if result.has_errors:
        raise typer.Exit(1)


@typed_command(app.command("check"))
def check_command(
    files: list[str] = typer.Argument(..., help="Script files (.pup, .ts, .cs)"),
    as_json: bool = typer.Option(False, "--json", help="Print diagnostics as JSON"),
    jobs: int = typer.Option(1, "--jobs", "-j", help="Worker threads"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Check script files without writing any output.

    Exits with code 1 when any file has an error.

    Example: script2rs check scripts/*.ts --json
    """
    _setup_logging(verbose)
    config = TranspilerConfig(jobs=jobs, write_outputs=False)
    result = _run_pass(files, None, config)

    if as_json:
        typer.echo(json.dumps([d.to_dict() for d in result.diagnostics], indent=2))
    else:
        _print_diagnostics(result.diagnostics)
        ok = sum(1 for file in result.files if file.ok)
        typer.echo(f"{ok}/{len(result.files) + len(result.read_errors)} file(s) ok")
    if result.has_errors:
        raise typer.Exit(1)


@typed_command(app.command("show"))
def show_command(
    file: str = typer.Argument(..., help="Script file to transpile"),
    frontend: str = typer.Option(
        "", "--frontend", "-f", help="Frontend (pup, ts, cs); default from extension"
    ),
    header: str = typer.Option(
        "none", "--header", help="Header comment (none, plain, timestamped)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Print the generated Rust of a single file.

    Example: script2rs show scripts/player.pup
    """
    _setup_logging(verbose)
    path = Path(file)
    try:
        kind = _parse_frontend(frontend) or FrontendKind.from_path(path)
        source = path.read_text(encoding="utf-8")
    except (OSError, ValueError) as e:
        logger.error(f"Cannot read {file}: {e}")
        raise typer.Exit(1) from e

    try:
        result = transpile(source, kind, str(path), TranspilerConfig(header=_parse_header(header)))
    except TranspilerError as e:
        logger.error(f"Transpilation aborted: {e}")
        raise typer.Exit(1) from e

    _print_diagnostics(result.diagnostics)
    if result.output is None:
        raise typer.Exit(1)
    typer.echo(result.output, nl=False)


class ScriptChangeHandler(FileSystemEventHandler):  # type: ignore
    """Event handler re-running the pass when a script changes."""

    def __init__(self, directory: str, out_dir: str, config: TranspilerConfig):
        """Initialize script change handler.

        Args:
            directory: Directory holding the scripts
            out_dir: Output directory for generated files
            config: Pass options
        """
        self.directory = Path(directory)
        self.out_dir = out_dir
        self.config = config
        self.runs = 0

    def on_modified(self, event: watchdog.events.FileSystemEvent) -> None:
        self._on_change(event)

    def on_created(self, event: watchdog.events.FileSystemEvent) -> None:
        self._on_change(event)

    def _on_change(self, event: watchdog.events.FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = Path(str(event.src_path))
        if path.suffix.lower() not in SOURCE_EXTENSIONS:
            return
        logger.info(f"Detected changes in {path.name}")
        self.rebuild()

    def rebuild(self) -> PassResult | None:
        """Re-run the pass over every script in the directory.

        The whole directory is recompiled so cross-script handles stay in sync.
        """
        self.runs += 1
        try:
            result = transpile_files(_collect_sources(self.directory), self.out_dir, self.config)
        except TranspilerError as e:
            logger.error(f"Transpilation aborted: {e}")
            return None
        _print_diagnostics(result.diagnostics)
        written = sum(1 for file in result.files if file.output_path is not None)
        logger.info(f"Wrote {written}/{len(result.files)} file(s) to {self.out_dir}")
        return result


@typed_command(app.command("watch"))
def watch_command(
    directory: str = typer.Argument(..., help="Directory containing scripts"),
    out_dir: str = typer.Option("generated", "--out-dir", "-o", help="Output directory"),
    jobs: int = typer.Option(1, "--jobs", "-j", help="Worker threads"),
    header: str = typer.Option(
        "plain", "--header", help="Header comment (none, plain, timestamped)"
    ),
    source_map: bool = typer.Option(
        False, "--source-map", help="Also write `<output>.map.json` source maps"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Watch a directory and re-transpile on changes.

    Example: script2rs watch scripts -o gen
    """
    _setup_logging(verbose)
    if not Path(directory).is_dir():
        logger.error(f"Not a directory: {directory}")
        raise typer.Exit(1)

    config = TranspilerConfig(jobs=jobs, header=_parse_header(header), source_maps=source_map)
    handler = ScriptChangeHandler(directory, out_dir, config)
    handler.rebuild()

    observer = watchdog.observers.Observer()
    observer.schedule(handler, path=directory, recursive=True)
    observer.start()
    logger.info(f"Watching {directory} (press Ctrl+C to stop)")

    try:
        while True:
            time.sleep(0.5)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, stopping...")
    finally:
        observer.stop()
        observer.join()


if __name__ == "__main__":
    app()
