"""Assembly of the process-wide registries.

Registries are built fully from the canonical tables and every frontend's
symbolic-name table, then frozen by the embedding application (after the
binding table is built) before any file is resolved.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from loguru import logger

from script2rs.transpiler.models import EnumVariant, FrontendKind, NodeFieldRef, NodeMethodRef
from script2rs.transpiler.registry.api_modules import API_SIGNATURES
from script2rs.transpiler.registry.base import Registry
from script2rs.transpiler.registry.engine_nodes import EngineNodeRegistry
from script2rs.transpiler.registry.resource_modules import RESOURCE_SIGNATURES
from script2rs.transpiler.registry.symbols import FrontendSymbols


@dataclass(frozen=True)
class Registries:
    """The three registries plus the frontend tables they were built from."""

    api: Registry
    resources: Registry
    nodes: EngineNodeRegistry
    symbols: Mapping[FrontendKind, FrontendSymbols]

    def freeze(self) -> None:
        self.api.freeze()
        self.resources.freeze()
        self.nodes.freeze()

    @property
    def frozen(self) -> bool:
        return self.api.frozen and self.resources.frozen and self.nodes.frozen

    def all(self) -> tuple[Registry, ...]:
        return (self.api, self.resources, self.nodes)


def _register_modules(registry: Registry, table: FrontendSymbols, modules: Mapping) -> None:
    for owner, members in modules.items():
        for symbol, ref in members.items():
            registry.register(table.kind, owner, symbol, ref)


def _register_node_members(nodes: EngineNodeRegistry, table: FrontendSymbols) -> None:
    for tag in nodes.node_types:
        members: dict[str, NodeFieldRef | NodeMethodRef] = {}
        for field_name in nodes.all_fields(tag):
            members[field_name] = NodeFieldRef(tag, field_name)
        for method_name in nodes.all_methods(tag):
            members[method_name] = NodeMethodRef(tag, method_name)

        for canonical, ref in members.items():
            nodes.register(table.kind, tag, table.member_spelling(canonical), ref)
        for alias, canonical in table.member_aliases.items():
            if canonical in members:
                nodes.register(table.kind, tag, alias, members[canonical])

    for owner, enum_name in table.enums.items():
        for variant in nodes.enums[enum_name]:
            nodes.register(table.kind, owner, variant, EnumVariant(enum_name, variant))


def build_registries(tables: Iterable[FrontendSymbols] | None = None) -> Registries:
    """Build the API-module, resource-module and engine-node registries.

    Args:
        tables: Frontend symbol tables to register; defaults to every
            built-in frontend

    Returns:
        Unfrozen registries

    Raises:
        DuplicateRegistrationError: If two spellings collide for one owner
    """
    if tables is None:
        from script2rs.transpiler.frontends import default_symbol_tables

        tables = default_symbol_tables()
    tables = list(tables)

    api = Registry("api-module")
    for ref, signature in API_SIGNATURES.items():
        api.define(ref, signature)

    resources = Registry("resource-module")
    for ref, signature in RESOURCE_SIGNATURES.items():
        resources.define(ref, signature)

    nodes = EngineNodeRegistry()
    nodes.define_flattened()

    for table in tables:
        logger.debug(f"Registering {table.kind.name} symbol table")
        _register_modules(api, table, table.api_modules)
        _register_modules(resources, table, table.resource_modules)
        _register_node_members(nodes, table)

    return Registries(api, resources, nodes, {t.kind: t for t in tables})
