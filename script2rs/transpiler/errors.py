"""
Exceptions and error handling for the script transpiler.

All user-facing problems derive from `TranspilerError`. Parse, resolve and type
errors are collected into a `DiagnosticCollector` rather than raised; only
`DuplicateRegistrationError` and `RegistryFrozenError` are raised, since they
indicate a defect in the static configuration and abort the whole pass.
"""

from typing import Any

from script2rs.transpiler.diagnostics import SourceSpan


class TranspilerError(Exception):
    """Base exception for transpilation errors.

    Examples:
        >>> raise TranspilerError("Unknown operation: Console.shout")
        TranspilerError: Unknown operation: Console.shout
    """

    code = "transpiler-error"

    def __init__(self, message: str, span: SourceSpan | None = None):
        """Initialize the exception with a message and optional source span.

        Args:
            message: The error message
            span: Optional span of the construct the error refers to
        """
        self.message = message
        self.span = span

        location_info = ""
        if span is not None:
            location_info = f" at line {span.line}, column {span.column}"
        super().__init__(f"{message}{location_info}")

    def with_span(self, span: SourceSpan) -> "TranspilerError":
        """Create a copy of this error attached to a different span."""
        clone = self.__class__.__new__(self.__class__)
        clone.__dict__.update(self.__dict__)
        TranspilerError.__init__(clone, self.message, span)
        return clone


class ParseError(TranspilerError):
    """Malformed syntax in a source file."""

    code = "parse-error"


class UnresolvedSymbolError(TranspilerError):
    """A name, member or call that no scope or registry knows about."""

    code = "unresolved-symbol"

    def __init__(self, symbol: str, span: SourceSpan | None = None, hint: str = ""):
        self.symbol = symbol
        message = f"Unresolved symbol: {symbol}"
        if hint:
            message += f" ({hint})"
        super().__init__(message, span)


class TypeMismatchError(TranspilerError):
    """A value whose type does not fit where it is used."""

    code = "type-mismatch"

    def __init__(
        self,
        expected: Any,
        actual: Any,
        arg_index: int | None = None,
        span: SourceSpan | None = None,
        context: str = "",
    ):
        """Initialize the mismatch.

        Args:
            expected: Expected type
            actual: Actual type found
            arg_index: Zero-based argument index when the mismatch is in a call
            span: Span of the offending expression
            context: Short description of where the mismatch occurred
        """
        self.expected = expected
        self.actual = actual
        self.arg_index = arg_index
        where = f" for argument {arg_index}" if arg_index is not None else ""
        if context:
            where += f" in {context}"
        super().__init__(
            f"Type mismatch{where}: expected {expected}, found {actual}", span
        )


class ExposeAttributeError(TypeMismatchError):
    """The expose attribute used outside a top-level field of an attached script."""

    code = "invalid-expose"

    def __init__(self, name: str, reason: str, span: SourceSpan | None = None):
        self.name = name
        TranspilerError.__init__(
            self, f"Cannot expose '{name}': {reason}", span
        )
        self.expected = None
        self.actual = None
        self.arg_index = None


class LifecycleSignatureError(TranspilerError):
    """A lifecycle method declared with parameters or a return value."""

    code = "lifecycle-signature"

    def __init__(self, name: str, reason: str, span: SourceSpan | None = None):
        self.name = name
        super().__init__(f"Lifecycle method '{name}' {reason}", span)


class DuplicateRegistrationError(TranspilerError):
    """Two registry or binding entries for the same key. Fatal."""

    code = "duplicate-registration"


class RegistryFrozenError(TranspilerError):
    """Registration attempted after a registry was frozen."""

    code = "registry-frozen"


class CompositionError(TranspilerError):
    """Internal note: the generator fell back to a synthesized temporary."""

    code = "composition"
