"""Engine node types, their fields and methods.

Node types form a single-inheritance chain rooted at `Node`. The registry is
flattened at build time, so every node type carries its full inherited member
set and its own canonical references, e.g. `NodeFieldRef("Sprite2D", "position")`.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field

from script2rs.transpiler.models import (
    EnumVariant,
    NodeFieldRef,
    NodeMethodRef,
    OperationSignature,
)
from script2rs.transpiler.registry.base import Registry
from script2rs.transpiler.types import (
    ANY,
    BOOL,
    F32,
    I32,
    MESH,
    QUATERNION,
    SHAPE,
    STRING,
    TEXTURE,
    VECTOR2,
    VECTOR3,
    VOID,
    EnumType,
    Type,
    node,
)

NODE_TYPE_ENUM = "NodeType"


@dataclass(frozen=True)
class NodeTypeInfo:
    name: str
    base: str | None
    fields: Mapping[str, Type] = field(default_factory=dict)
    methods: Mapping[str, OperationSignature] = field(default_factory=dict)


def _method(params: tuple, ret: Type, names: tuple[str, ...] | None = None) -> OperationSignature:
    return OperationSignature(params, ret, names)


# By-name sugar; the first argument is always the member name as a string.
DYNAMIC_SUGAR: dict[str, OperationSignature] = {
    "get_var": _method((STRING,), ANY, ("name",)),
    "set_var": _method((STRING, ANY), VOID, ("name", "value")),
    "call": _method((STRING,), ANY, ("name",)),
}

NODE_TYPES: tuple[NodeTypeInfo, ...] = (
    NodeTypeInfo(
        "Node",
        None,
        fields={"name": STRING},
        methods={
            "get_node": _method((STRING,), node("Node"), ("name",)),
            "get_parent": _method((), node("Node")),
            "add_child": _method((node("Node"),), VOID, ("child",)),
            "remove": _method((), VOID),
            "get_type": _method((), EnumType(NODE_TYPE_ENUM)),
        },
    ),
    NodeTypeInfo(
        "Node2D",
        "Node",
        fields={
            "position": VECTOR2,
            "rotation": F32,
            "scale": VECTOR2,
            "z_index": I32,
            "visible": BOOL,
        },
        methods={"translate": _method((VECTOR2,), VOID, ("offset",))},
    ),
    NodeTypeInfo("Sprite2D", "Node2D", fields={"texture": TEXTURE}),
    NodeTypeInfo("Camera2D", "Node2D", fields={"zoom": F32, "active": BOOL}),
    NodeTypeInfo("Area2D", "Node2D"),
    NodeTypeInfo("CollisionShape2D", "Node2D", fields={"shape": SHAPE}),
    NodeTypeInfo(
        "Node3D",
        "Node",
        fields={
            "position": VECTOR3,
            "rotation": QUATERNION,
            "scale": VECTOR3,
            "visible": BOOL,
        },
        methods={"translate": _method((VECTOR3,), VOID, ("offset",))},
    ),
    NodeTypeInfo("MeshInstance3D", "Node3D", fields={"mesh": MESH}),
    NodeTypeInfo("Camera3D", "Node3D", fields={"fov": F32, "active": BOOL}),
)


class EngineNodeRegistry(Registry):
    """Registry of node members plus the node type hierarchy and enums."""

    def __init__(self, node_types: tuple[NodeTypeInfo, ...] = NODE_TYPES):
        super().__init__("engine-node")
        self.node_types: dict[str, NodeTypeInfo] = {info.name: info for info in node_types}
        self.enums: dict[str, tuple[str, ...]] = {
            NODE_TYPE_ENUM: tuple(info.name for info in node_types)
        }

    def is_node_type(self, name: str) -> bool:
        return name in self.node_types

    def chain(self, name: str) -> list[str]:
        """Return `name` followed by its base types, nearest first."""
        result = []
        current: str | None = name
        while current is not None:
            result.append(current)
            current = self.node_types[current].base
        return result

    def is_subtype(self, name: str, ancestor: str) -> bool:
        return self.is_node_type(name) and ancestor in self.chain(name)

    def all_fields(self, name: str) -> dict[str, Type]:
        merged: dict[str, Type] = {}
        for tag in reversed(self.chain(name)):
            merged.update(self.node_types[tag].fields)
        return merged

    def all_methods(self, name: str) -> dict[str, OperationSignature]:
        merged: dict[str, OperationSignature] = {}
        for tag in reversed(self.chain(name)):
            merged.update(self.node_types[tag].methods)
        merged.update(DYNAMIC_SUGAR)
        return merged

    def define_flattened(self) -> None:
        """Define one field/method operation per node type and inherited member."""
        for tag in self.node_types:
            for field_name, field_type in self.all_fields(tag).items():
                self.define(NodeFieldRef(tag, field_name), OperationSignature((), field_type))
            for method_name, signature in self.all_methods(tag).items():
                self.define(NodeMethodRef(tag, method_name), signature)
        for enum_name, variants in self.enums.items():
            for variant in variants:
                self.define(
                    EnumVariant(enum_name, variant),
                    OperationSignature((), EnumType(enum_name)),
                )
