"""
Binding table: one Rust emission rule per canonical operation.

A binding is a pure string builder. It receives receiver text and argument
text that the generator has already type checked and lowered, and returns the
exact Rust expression for the call.
"""

import string
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from script2rs.transpiler.errors import (
    DuplicateRegistrationError,
    RegistryFrozenError,
    TranspilerError,
)
from script2rs.transpiler.models import CanonicalOperationRef
from script2rs.transpiler.types import Type

Emitter = Callable[[str | None, list[str]], str]
AssignEmitter = Callable[[str, str, str, str], str]

# Field specs whose argument is used in place (borrowed or called on)
PLACE_SPECS = ("atom", "ref")


def atom(text: str) -> str:
    """Parenthesize `text` unless it already binds as a single operand.

    Paths, literals, calls, macro invocations and postfix chains such as
    `a.b(c)[0]` are atomic. Text with a top-level space or operator is not.
    """
    if _is_postfix_chain(text):
        return text
    return f"({text})"


def _is_postfix_chain(text: str) -> bool:
    if not text or not (text[0].isalnum() or text[0] in '_("'):
        return False
    depth = 0
    in_string = escaped = False
    for i, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        elif depth == 0:
            macro = char == "!" and text[i + 1 : i + 2] in ("(", "[")
            if not (char.isalnum() or char in "_.:" or macro):
                return False
    return depth == 0 and not in_string


def place_args(pattern: str) -> frozenset[int]:
    """Indices of the arguments a pattern borrows or calls methods on."""
    return frozenset(
        int(name)
        for _, name, spec, _ in string.Formatter().parse(pattern)
        if name is not None and name.isdigit() and spec in PLACE_SPECS
    )


class _BindingFormatter(string.Formatter):
    """Formatter with `atom` and `ref` field specs for argument text."""

    def format_field(self, value: Any, format_spec: str) -> str:
        match format_spec:
            case "atom":
                return atom(str(value))
            case "ref":
                return "&" + atom(str(value))
            case _:
                return super().format_field(value, format_spec)


_FORMATTER = _BindingFormatter()


def template(pattern: str) -> Emitter:
    """Create an emitter from a format pattern.

    Positional fields are arguments, `{recv}` is the receiver text. The field
    specs `:atom` and `:ref` parenthesize or borrow argument text.
    """

    def emit(receiver: str | None, args: list[str]) -> str:
        return _FORMATTER.format(pattern, *args, recv=receiver)

    return emit


@dataclass(frozen=True)
class BindingEntry:
    """Emission rule of one canonical operation.

    Attributes:
        ref: Operation the binding belongs to
        param_types: Parameter types, in signature order
        return_type: Type of the emitted expression
        emit: Builds the call expression from receiver and argument text
        borrows_api: The emitted text uses the mutable runtime API handle
        mutates_receiver: The emitted text mutates its first argument in place
        emit_assign: Field writer taking (receiver, sub-path, operator, value)
        place_args: Indices of arguments used in place rather than moved
    """

    ref: CanonicalOperationRef
    param_types: tuple[Type, ...]
    return_type: Type
    emit: Emitter
    borrows_api: bool = True
    mutates_receiver: bool = False
    emit_assign: AssignEmitter | None = None
    place_args: frozenset[int] = frozenset()


class BindingTable:
    """Mapping of canonical operations to their binding entries."""

    def __init__(self) -> None:
        self._entries: dict[CanonicalOperationRef, BindingEntry] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def add(self, entry: BindingEntry) -> None:
        """Add a binding entry.

        Raises:
            DuplicateRegistrationError: If the operation already has a binding
            RegistryFrozenError: If the table is frozen
        """
        if self._frozen:
            raise RegistryFrozenError("Binding table is frozen")
        if entry.ref in self._entries:
            raise DuplicateRegistrationError(f"Duplicate binding for {entry.ref}")
        self._entries[entry.ref] = entry

    def get(self, ref: CanonicalOperationRef | None) -> BindingEntry:
        """Binding of `ref`.

        Raises:
            TranspilerError: If `ref` is unresolved or has no binding
        """
        if ref is None:
            raise TranspilerError("Operation was not resolved to a canonical reference")
        if ref not in self._entries:
            raise TranspilerError(f"No binding for {ref}")
        return self._entries[ref]

    def emit(
        self, ref: CanonicalOperationRef, receiver: str | None, args: list[str]
    ) -> str:
        """Emit the call text for `ref`.

        Raises:
            TranspilerError: If the argument count does not match the binding
        """
        entry = self.get(ref)
        if len(args) != len(entry.param_types):
            raise TranspilerError(
                f"Binding for {ref} expects {len(entry.param_types)} arguments, "
                f"got {len(args)}"
            )
        return entry.emit(receiver, args)

    def verify(self, refs: list[CanonicalOperationRef]) -> None:
        """Check that every operation in `refs` has a binding.

        Raises:
            TranspilerError: If any operation has no binding
        """
        missing = [str(ref) for ref in refs if ref not in self._entries]
        if missing:
            raise TranspilerError(f"Operations without binding: {', '.join(missing)}")

    def freeze(self) -> None:
        self._frozen = True
        logger.debug(f"Froze binding table with {len(self._entries)} entries")

    def __contains__(self, ref: object) -> bool:
        return ref in self._entries

    def __len__(self) -> int:
        return len(self._entries)
