"""Per-frontend symbolic-name tables.

Each frontend supplies one `FrontendSymbols` instance describing how it spells
modules, resource types, node members, enums, types and lifecycle methods. The
registry builder turns these spellings into registry entries that all point at
the same canonical operations.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from script2rs.transpiler.models import (
    ApiModule,
    ApiModuleOp,
    FrontendKind,
    LifecycleTag,
    ResourceModule,
    ResourceModuleOp,
    ScriptKind,
)
from script2rs.transpiler.types import ContainerKind, Type


def snake_case(name: str) -> str:
    return name


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def pascal_case(name: str) -> str:
    return "".join(part.capitalize() for part in name.split("_"))


@dataclass(frozen=True)
class FrontendSymbols:
    """Symbolic-name table of one frontend.

    Attributes:
        kind: Frontend the table belongs to
        api_modules: Module spelling -> {function spelling: operation}
        resource_modules: Resource type spelling -> {member spelling: operation}
        enums: Enum spelling -> canonical enum name
        member_spelling: Canonical node/value member name -> frontend spelling
        member_aliases: Extra member spellings -> canonical member name
        type_names: Primitive and alias type spellings
        container_names: Container type spellings
        lifecycle_names: Lifecycle method spellings
        script_kinds: Header/attribute spellings selecting a script kind
        expose_attribute: Attribute spelling marking exposed fields
    """

    kind: FrontendKind
    api_modules: Mapping[str, Mapping[str, ApiModuleOp]]
    resource_modules: Mapping[str, Mapping[str, ResourceModuleOp]]
    enums: Mapping[str, str]
    member_spelling: Callable[[str], str]
    type_names: Mapping[str, Type]
    container_names: Mapping[str, ContainerKind]
    lifecycle_names: Mapping[str, LifecycleTag]
    script_kinds: Mapping[str, ScriptKind]
    member_aliases: Mapping[str, str] = field(default_factory=dict)
    expose_attribute: str = "expose"

    def is_expose(self, attribute: str) -> bool:
        return attribute.lower() == self.expose_attribute.lower()

    def canonical_member(self, spelling: str, known: set[str] | frozenset[str]) -> str | None:
        """Map a member spelling back to a canonical name from `known`."""
        if spelling in self.member_aliases:
            return self.member_aliases[spelling]
        for name in known:
            if self.member_spelling(name) == spelling:
                return name
        return None


def api_ops(module: ApiModule, spellings: Mapping[str, str]) -> dict[str, ApiModuleOp]:
    """Map frontend spellings to operations of one API module."""
    return {symbol: ApiModuleOp(module, op) for symbol, op in spellings.items()}


def resource_ops(
    resource: ResourceModule, spellings: Mapping[str, str]
) -> dict[str, ResourceModuleOp]:
    """Map frontend spellings to operations of one resource module."""
    return {symbol: ResourceModuleOp(resource, op) for symbol, op in spellings.items()}
