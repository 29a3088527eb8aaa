"""
Identifier and type lowering.

Maps a declared (type, name) pair to the emitted Rust (type, name). The
mapping is total and deterministic; the `Lowerer` applies it once per
declaration and hands back the memoized result on every later use.
"""

import re
from typing import Any

from loguru import logger

from script2rs.transpiler.constants import (
    HANDLE_SUFFIX,
    NODE_ID_TYPE,
    RESOURCE_TYPE_NAMES,
    USER_PREFIX,
)
from script2rs.transpiler.errors import TranspilerError
from script2rs.transpiler.models import LifecycleTag
from script2rs.transpiler.types import (
    ContainerKind,
    ContainerType,
    CustomType,
    EngineResourceType,
    EnumType,
    NodeHandleType,
    PrimitiveKind,
    PrimitiveType,
    ResourceKind,
    ScriptHandleType,
    Type,
)

# Primitive kinds that are not `Copy` in Rust
_OWNED_PRIMITIVES = (PrimitiveKind.STRING, PrimitiveKind.BIGINT, PrimitiveKind.ANY)

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def lower_type(t: Type) -> str:
    """Lower a resolved type to its Rust spelling.

    Args:
        t: Resolved type

    Returns:
        Rust type text

    Raises:
        TranspilerError: If the type cannot appear in generated code
    """
    match t:
        case PrimitiveType(kind=kind):
            return kind.value
        case ContainerType(kind=ContainerKind.ARRAY):
            return f"Vec<{lower_type(t.element)}>"
        case ContainerType(kind=ContainerKind.MAP):
            key, value = t.params
            return f"HashMap<{lower_type(key)}, {lower_type(value)}>"
        case NodeHandleType() | ScriptHandleType():
            return NODE_ID_TYPE
        case EngineResourceType(kind=kind):
            return RESOURCE_TYPE_NAMES[kind]
        case EnumType(name=name):
            return name
        case CustomType(name=name):
            return f"{USER_PREFIX}{name}"
    raise TranspilerError(f"Type {t} has no Rust representation")


def lower_name(name: str, t: Type | None = None, lifecycle: LifecycleTag | None = None) -> str:
    """Lower a user-declared name.

    Lifecycle methods keep the runtime's fixed names, handle-typed
    declarations get the handle suffix and everything else the user prefix.
    """
    if lifecycle is not None:
        return lifecycle.value
    if t is not None and t.is_handle:
        return f"{name}{HANDLE_SUFFIX}"
    return f"{USER_PREFIX}{name}"


def snake_name(name: str) -> str:
    """`PlayerController` -> `player_controller`."""
    return _WORD_BOUNDARY.sub("_", name).lower()


def is_copy(t: Type | None) -> bool:
    """Whether values of the lowered type are `Copy` (read without `.clone()`)."""
    match t:
        case PrimitiveType(kind=kind):
            return kind not in _OWNED_PRIMITIVES
        case NodeHandleType() | ScriptHandleType() | EnumType():
            return True
        case EngineResourceType(kind=kind):
            return kind is not ResourceKind.SHAPE
    return False


class Lowerer:
    """Memoizing identifier lowering, keyed by declaration.

    A declaration is lowered the first time it is emitted. The declaration
    object is kept alongside the result so its identity stays valid for the
    lifetime of the lowerer.
    """

    def __init__(self) -> None:
        self._names: dict[int, tuple[Any, str, str]] = {}

    def name(
        self,
        decl: Any,
        name: str,
        t: Type | None = None,
        lifecycle: LifecycleTag | None = None,
    ) -> str:
        key = id(decl)
        if key not in self._names:
            lowered = lower_name(name, t, lifecycle)
            self._names[key] = (decl, name, lowered)
            logger.debug(f"Lowered '{name}' to '{lowered}'")
        return self._names[key][2]

    def symbol(self, symbol: Any) -> str:
        """Lowered name of a resolver symbol."""
        if symbol.signature is not None:
            lifecycle = getattr(symbol.decl, "lifecycle", None)
            return self.name(symbol.decl, symbol.name, lifecycle=lifecycle)
        return self.name(symbol.decl or symbol, symbol.name, symbol.type)

    def renames(self) -> dict[str, str]:
        """Lowered name to source name, for every name lowering changed."""
        return {lowered: name for _, name, lowered in self._names.values() if lowered != name}

    def __len__(self) -> int:
        return len(self._names)
