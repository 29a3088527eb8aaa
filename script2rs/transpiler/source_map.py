"""
Source maps from generated Rust back to the script it came from.

A map holds one line range per script function, taken from the function's
span and the braces of its generated `fn`, plus every identifier the
lowering renamed. Runtime tooling uses it to turn Rust panics and compiler
messages back into script lines and names.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from script2rs.transpiler.constants import USER_PREFIX
from script2rs.transpiler.lowering import Lowerer, lower_type
from script2rs.transpiler.resolver import ResolvedScript
from script2rs.transpiler.types import CustomType

HANDLE_SUFFIX = "_id"


@dataclass(frozen=True)
class LineRange:
    """Inclusive, 1-based line ranges of a source construct and its output."""

    source_start: int
    source_end: int
    generated_start: int
    generated_end: int

    def to_dict(self) -> dict[str, int]:
        return {
            "s_start": self.source_start,
            "s_end": self.source_end,
            "g_start": self.generated_start,
            "g_end": self.generated_end,
        }


@dataclass
class SourceMap:
    """Source map of one generated file.

    Attributes:
        source_path: Path of the script
        identifier: Name of the generated script
        line_ranges: One range per mapped function, in generated order
        names: Lowered identifier to source identifier
    """

    source_path: str
    identifier: str
    line_ranges: list[LineRange] = field(default_factory=list)
    names: dict[str, str] = field(default_factory=dict)

    def find_source_line(self, generated_line: int) -> int | None:
        """Script line of a generated line, interpolated within its range."""
        for r in self.line_ranges:
            if r.generated_start <= generated_line <= r.generated_end:
                generated_span = r.generated_end - r.generated_start
                if generated_span == 0:
                    return r.source_start
                offset = generated_line - r.generated_start
                return r.source_start + offset * (r.source_end - r.source_start) // generated_span
        return None

    def restore_name(self, generated: str) -> str:
        """Source name of a lowered identifier."""
        if generated in self.names:
            return self.names[generated]
        if generated.startswith(USER_PREFIX):
            return generated.removeprefix(USER_PREFIX)
        if generated.endswith(HANDLE_SUFFIX):
            return generated.removesuffix(HANDLE_SUFFIX)
        return generated

    def convert_message(self, message: str) -> str:
        """Replace lowered identifiers in `message` with their source names."""
        if not self.names:
            return message
        # Longest first, so `__t_a` never rewrites part of `__t_ab`
        pattern = re.compile(
            r"\b("
            + "|".join(re.escape(n) for n in sorted(self.names, key=len, reverse=True))
            + r")\b"
        )
        return pattern.sub(lambda m: self.names[m.group(1)], message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "src": self.source_path,
            "id": self.identifier,
            "lines": [r.to_dict() for r in self.line_ranges],
            "names": dict(sorted(self.names.items())),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2) + "\n"


def _function_lines(lines: list[str], name: str) -> tuple[int, int] | None:
    """1-based first and last line of the generated `fn name(...) { ... }`."""
    signature = f"fn {name}("
    start = next((i for i, line in enumerate(lines) if signature in line), None)
    if start is None:
        return None
    depth = 0
    for i in range(start, len(lines)):
        depth += lines[i].count("{") - lines[i].count("}")
        if depth <= 0 and i > start:
            return start + 1, i + 1
    return start + 1, len(lines)


def build_source_map(resolved: ResolvedScript, lowerer: Lowerer, code: str) -> SourceMap:
    """Build the source map of a generated file.

    Args:
        resolved: The script the file was generated from
        lowerer: Lowerer used during generation; holds every renamed identifier
        code: The generated file

    Returns:
        Source map of `code`
    """
    script = resolved.script
    lines = code.splitlines()
    source_map = SourceMap(script.path, script.name)
    for function in script.functions:
        lowered = lowerer.name(function, function.name, lifecycle=function.lifecycle)
        generated = _function_lines(lines, lowered)
        if generated is None:
            continue
        span = function.span
        source_map.line_ranges.append(
            LineRange(span.line, max(span.line, span.end_line), *generated)
        )
    source_map.line_ranges.sort(key=lambda r: r.generated_start)
    source_map.names = lowerer.renames()
    for struct in script.structs:
        source_map.names[lower_type(CustomType(struct.name))] = struct.name
    logger.debug(
        f"Source map of '{script.name}': {len(source_map.line_ranges)} range(s), "
        f"{len(source_map.names)} name(s)"
    )
    return source_map
