"""
Diagnostics records and per-file collection.

Every error found while parsing, resolving or type checking a file ends up here
as a `Diagnostic` record. Records are the only channel external tooling needs:
they carry the file, the source span, a severity, a message and a stable code.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from loguru import logger


class Severity(Enum):
    """Diagnostic severity levels."""

    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


@dataclass(frozen=True)
class SourceSpan:
    """Byte/line/column span of a source construct.

    Lines and columns are 1-based, byte offsets are 0-based and the end offset
    is exclusive.
    """

    start: int = 0
    end: int = 0
    line: int = 1
    column: int = 1
    end_line: int = 1
    end_column: int = 1

    def merge(self, other: "SourceSpan") -> "SourceSpan":
        """Return the smallest span covering both spans."""
        first, last = (self, other) if self.start <= other.start else (other, self)
        end_span = last if last.end >= first.end else first
        return SourceSpan(
            start=first.start,
            end=end_span.end,
            line=first.line,
            column=first.column,
            end_line=end_span.end_line,
            end_column=end_span.end_column,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "start": self.start,
            "end": self.end,
            "line": self.line,
            "column": self.column,
            "end_line": self.end_line,
            "end_column": self.end_column,
        }


UNKNOWN_SPAN = SourceSpan()


@dataclass(frozen=True)
class Diagnostic:
    """A single diagnostic record."""

    file: str
    span: SourceSpan
    severity: Severity
    message: str
    code: str

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready representation of the record."""
        return {
            "file": self.file,
            "span": self.span.to_dict(),
            "severity": self.severity.value,
            "message": self.message,
            "code": self.code,
        }

    def format(self) -> str:
        """Format as `file:line:col: severity[code]: message`."""
        return (
            f"{self.file}:{self.span.line}:{self.span.column}: "
            f"{self.severity.value}[{self.code}]: {self.message}"
        )


@dataclass
class DiagnosticCollector:
    """Collects diagnostics for one input file.

    Errors are reported here instead of being raised, so a pass can keep
    walking the file and report everything it finds.
    """

    file: str
    _records: list[Diagnostic] = field(default_factory=list)

    def report(self, error: Any, severity: Severity = Severity.ERROR) -> None:
        """Record a `TranspilerError` instance as a diagnostic.

        Args:
            error: The error to record; must provide `message`, `code` and `span`
            severity: Severity to record the error with
        """
        self._append(
            Diagnostic(
                file=self.file,
                span=error.span or UNKNOWN_SPAN,
                severity=severity,
                message=error.message,
                code=error.code,
            )
        )

    def add(
        self,
        message: str,
        code: str,
        span: SourceSpan | None = None,
        severity: Severity = Severity.ERROR,
    ) -> None:
        self._append(Diagnostic(self.file, span or UNKNOWN_SPAN, severity, message, code))

    def _append(self, record: Diagnostic) -> None:
        logger.debug(f"Diagnostic: {record.format()}")
        self._records.append(record)

    def extend(self, records: list[Diagnostic]) -> None:
        self._records.extend(records)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        """Records in source order (stable for equal start offsets)."""
        return sorted(self._records, key=lambda d: d.span.start)

    @property
    def has_errors(self) -> bool:
        return any(d.severity is Severity.ERROR for d in self._records)

    @property
    def error_count(self) -> int:
        return sum(1 for d in self._records if d.severity is Severity.ERROR)

    def __len__(self) -> int:
        return len(self._records)
