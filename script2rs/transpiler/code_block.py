"""Code block and temporary management."""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from script2rs.transpiler.constants import TEMP_PREFIX


@dataclass
class CodeBlock:
    """Manages Rust code block generation."""

    indent_level: int = 0
    lines: list[str] = field(default_factory=list)

    @contextmanager
    def block(self, opener: str = "") -> Iterator[None]:
        """Context manager for a braced block, e.g. `block("if x")`."""
        self.add_line(f"{opener} {{" if opener else "{")
        self.indent_level += 1
        try:
            yield
        finally:
            self.indent_level -= 1
            self.add_line("}")

    def add_line(self, line: str = "") -> None:
        """Add line with proper indentation.

        Consecutive blank lines collapse into one.
        """
        if not line:
            if self.lines and self.lines[-1]:
                self.lines.append("")
            return
        self.lines.append(f"{'    ' * self.indent_level}{line}")

    def add_lines(self, lines: list[str]) -> None:
        for line in lines:
            self.add_line(line)

    def get_code(self) -> str:
        """Get generated code, ending with a single newline."""
        while self.lines and not self.lines[-1]:
            self.lines.pop()
        return "\n".join(self.lines) + "\n"


@dataclass
class Temporaries:
    """Synthesized `let` temporaries of one function body.

    Names are `__temp_N` with a counter reset per function, so regenerating a
    function yields the same names.
    """

    counter: int = 0
    pending: list[str] = field(default_factory=list)

    def reset(self) -> None:
        self.counter = 0
        self.pending = []

    def new(self, type_text: str, value_text: str) -> str:
        """Queue `let __temp_N: T = value;` and return the temporary's name."""
        name = f"{TEMP_PREFIX}{self.counter}"
        self.counter += 1
        self.pending.append(f"let {name}: {type_text} = {value_text};")
        return name

    @contextmanager
    def capture(self) -> Iterator[list[str]]:
        """Collect the temporaries queued while generating one statement part."""
        saved, self.pending = self.pending, []
        captured = self.pending
        try:
            yield captured
        finally:
            self.pending = saved
