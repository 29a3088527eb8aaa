"""Rust emission rules for engine-node fields, methods and enum variants.

Node members are reached through the runtime: field reads go through
`api.read_node` and writes through `api.mutate_node`, each with a closure typed
by the concrete node struct.
"""

from collections.abc import Iterator

from script2rs.transpiler.bindings.table import (
    AssignEmitter,
    BindingEntry,
    Emitter,
    place_args,
    template,
)
from script2rs.transpiler.models import EnumVariant, NodeFieldRef, NodeMethodRef
from script2rs.transpiler.lowering import is_copy
from script2rs.transpiler.registry.engine_nodes import EngineNodeRegistry
from script2rs.transpiler.types import Type

# Runtime struct field names that differ from the script-visible name.
RUNTIME_FIELD_NAMES = {"texture": "texture_id", "mesh": "mesh_id"}

METHOD_TEMPLATES: dict[str, str] = {
    "get_node": "api.get_child_by_name({recv}, {0:ref})",
    "get_parent": "api.get_parent({recv})",
    "add_child": "api.reparent({recv}, {0})",
    "remove": "api.remove_node({recv})",
    "get_type": "api.get_type({recv})",
    "translate": "api.mutate_node({recv}, |n: &mut {tag}| {{ n.position += {0}; }})",
    "get_var": "api.get_script_var({recv}, {0:ref})",
    "set_var": "api.set_script_var({recv}, {0:ref}, json!({1}))",
    "call": "api.call_function({recv}, {0:ref}, &[])",
}


def runtime_field(name: str) -> str:
    return RUNTIME_FIELD_NAMES.get(name, name)


def _field_reader(tag: str, name: str, field_type: Type) -> Emitter:
    suffix = "" if is_copy(field_type) else ".clone()"

    def emit(receiver: str | None, args: list[str]) -> str:
        return f"api.read_node({receiver}, |n: &{tag}| n.{runtime_field(name)}{suffix})"

    return emit


def _field_writer(tag: str, name: str) -> AssignEmitter:
    def emit_assign(receiver: str, path: str, op: str, value: str) -> str:
        return (
            f"api.mutate_node({receiver}, |n: &mut {tag}| "
            f"{{ n.{runtime_field(name)}{path} {op} {value}; }})"
        )

    return emit_assign


def _method(tag: str, pattern: str) -> Emitter:
    return template(pattern.replace("{tag}", tag))


def node_bindings(nodes: EngineNodeRegistry) -> Iterator[BindingEntry]:
    """Yield one binding per node field, node method and enum variant."""
    for tag in nodes.node_types:
        for name, field_type in nodes.all_fields(tag).items():
            ref = NodeFieldRef(tag, name)
            yield BindingEntry(
                ref,
                (),
                field_type,
                _field_reader(tag, name, field_type),
                emit_assign=_field_writer(tag, name),
            )
        for name, signature in nodes.all_methods(tag).items():
            ref = NodeMethodRef(tag, name)
            yield BindingEntry(
                ref,
                signature.param_types,
                signature.return_type,
                _method(tag, METHOD_TEMPLATES[name]),
                place_args=place_args(METHOD_TEMPLATES[name]),
            )
    for enum_name, variants in nodes.enums.items():
        for variant in variants:
            ref = EnumVariant(enum_name, variant)
            yield BindingEntry(
                ref,
                (),
                nodes.signature(ref).return_type,
                template(f"{enum_name}::{variant}"),
                borrows_api=False,
            )
