"""
Pytest configuration and shared fixtures for transpiler tests.

This module contains fixtures that are shared across multiple test modules.
"""

import pytest

from script2rs.transpiler.code_generator import generate_rust
from script2rs.transpiler.diagnostics import DiagnosticCollector
from script2rs.transpiler.frontends import get_frontend
from script2rs.transpiler.models import FrontendKind, HeaderStyle
from script2rs.transpiler.resolver import resolve_script


@pytest.fixture
def parse():
    """Fixture parsing source text into a shared `ScriptDecl`."""

    def _parse(source: str, kind: FrontendKind = FrontendKind.PUP, path: str = ""):
        path = path or f"player.{kind.value}"
        diagnostics = DiagnosticCollector(path)
        script = get_frontend(kind).to_ast(source, path, diagnostics)
        return script, diagnostics

    return _parse


@pytest.fixture
def resolve(parse, registries):
    """Fixture parsing and resolving source text.

    Returns a (resolved script, diagnostics) pair.
    """

    def _resolve(
        source: str,
        kind: FrontendKind = FrontendKind.PUP,
        script_names: tuple[str, ...] = (),
        path: str = "",
    ):
        script, diagnostics = parse(source, kind, path)
        assert script is not None, [d.format() for d in diagnostics.diagnostics]
        resolved = resolve_script(script, registries, {script.name, *script_names}, diagnostics)
        return resolved, diagnostics

    return _resolve


@pytest.fixture
def generate(resolve, registries, bindings):
    """Fixture turning error-free source text into Rust without a header."""

    def _generate(
        source: str,
        kind: FrontendKind = FrontendKind.PUP,
        script_names: tuple[str, ...] = (),
    ):
        resolved, diagnostics = resolve(source, kind, script_names)
        errors = [d.format() for d in diagnostics.diagnostics if d.severity.value == "error"]
        assert not errors, errors
        rust = generate_rust(
            resolved,
            bindings,
            registries.symbols[kind],
            HeaderStyle.NONE,
            diagnostics,
        )
        return rust, diagnostics

    return _generate

