"""Binding table construction."""

from loguru import logger

from script2rs.transpiler.bindings.api_bindings import API_TEMPLATES, PURE_API_OPS
from script2rs.transpiler.bindings.node_bindings import node_bindings
from script2rs.transpiler.bindings.resource_bindings import (
    MUTATING_OPS,
    PURE_RESOURCES,
    RESOURCE_TEMPLATES,
)
from script2rs.transpiler.bindings.table import (
    BindingEntry,
    BindingTable,
    atom,
    place_args,
    template,
)
from script2rs.transpiler.registry.builder import Registries


def build_binding_table(registries: Registries) -> BindingTable:
    """Build the binding table for every operation defined in `registries`.

    Args:
        registries: Fully built registries

    Returns:
        Unfrozen binding table

    Raises:
        DuplicateRegistrationError: If an operation gets two bindings
        TranspilerError: If a defined operation has no binding
    """
    table = BindingTable()

    for ref, pattern in API_TEMPLATES.items():
        signature = registries.api.signature(ref)
        table.add(
            BindingEntry(
                ref,
                signature.param_types,
                signature.return_type,
                template(pattern),
                borrows_api=ref not in PURE_API_OPS,
                place_args=place_args(pattern),
            )
        )

    for ref, pattern in RESOURCE_TEMPLATES.items():
        signature = registries.resources.signature(ref)
        table.add(
            BindingEntry(
                ref,
                signature.param_types,
                signature.return_type,
                template(pattern),
                borrows_api=ref.resource not in PURE_RESOURCES,
                mutates_receiver=ref in MUTATING_OPS,
                place_args=place_args(pattern),
            )
        )

    for entry in node_bindings(registries.nodes):
        table.add(entry)

    for registry in registries.all():
        table.verify(list(registry.refs()))
    logger.debug(f"Built binding table with {len(table)} entries")
    return table


__all__ = [
    "BindingEntry",
    "BindingTable",
    "atom",
    "build_binding_table",
    "place_args",
    "template",
]
