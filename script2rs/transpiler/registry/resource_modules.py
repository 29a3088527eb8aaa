"""Canonical resource-module operations and value-type fields.

Resource modules are constructible types with static methods. Operations marked
`instance` take the resource value as their first parameter, so they can also
be called as methods on a value of that type.
"""

from script2rs.transpiler.models import OperationSignature, ResourceModule, ResourceModuleOp
from script2rs.transpiler.types import (
    BOOL,
    COLOR,
    F32,
    I32,
    K,
    MESH,
    QUATERNION,
    SHAPE,
    SIGNAL,
    STRING,
    TEXTURE,
    U32,
    V,
    VECTOR2,
    VECTOR3,
    VOID,
    ContainerKind,
    ResourceKind,
    T,
    Type,
    array_of,
    map_of,
)

_ARRAY = array_of(T)
_MAP = map_of(K, V)


def _static(params: tuple, ret: Type, names: tuple[str, ...] | None = None) -> OperationSignature:
    return OperationSignature(params, ret, names)


def _instance(params: tuple, ret: Type, names: tuple[str, ...] | None = None) -> OperationSignature:
    return OperationSignature(params, ret, names, instance=True)


def _ops(resource: ResourceModule, table: dict[str, OperationSignature]):
    return {ResourceModuleOp(resource, name): sig for name, sig in table.items()}


RESOURCE_SIGNATURES: dict[ResourceModuleOp, OperationSignature] = {
    **_ops(ResourceModule.TEXTURE, {
        "load": _static((STRING,), TEXTURE, ("path",)),
        "preload": _static((STRING,), TEXTURE, ("path",)),
        "remove": _instance((TEXTURE,), VOID, ("texture",)),
        "get_width": _instance((TEXTURE,), U32, ("texture",)),
        "get_height": _instance((TEXTURE,), U32, ("texture",)),
        "get_size": _instance((TEXTURE,), VECTOR2, ("texture",)),
    }),
    **_ops(ResourceModule.MESH, {
        "load": _static((STRING,), MESH, ("path",)),
        "preload": _static((STRING,), MESH, ("path",)),
        "remove": _instance((MESH,), VOID, ("mesh",)),
        "cube": _static((), MESH),
        "sphere": _static((), MESH),
        "plane": _static((), MESH),
    }),
    **_ops(ResourceModule.SIGNAL, {
        "new": _static((STRING,), SIGNAL, ("name",)),
        "connect": _instance((SIGNAL, STRING), VOID, ("signal", "function")),
        "emit": _instance((SIGNAL,), VOID, ("signal",)),
        "emit_deferred": _instance((SIGNAL,), VOID, ("signal",)),
    }),
    **_ops(ResourceModule.SHAPE, {
        "rectangle": _static((F32, F32), SHAPE, ("width", "height")),
        "circle": _static((F32,), SHAPE, ("radius",)),
        "square": _static((F32,), SHAPE, ("size",)),
    }),
    **_ops(ResourceModule.ARRAY, {
        "new": _static((), _ARRAY),
        "push": _instance((_ARRAY, T), VOID, ("array", "value")),
        "pop": _instance((_ARRAY,), T, ("array",)),
        "insert": _instance((_ARRAY, I32, T), VOID, ("array", "index", "value")),
        "remove": _instance((_ARRAY, I32), T, ("array", "index")),
        "len": _instance((_ARRAY,), I32, ("array",)),
        "clear": _instance((_ARRAY,), VOID, ("array",)),
        "contains": _instance((_ARRAY, T), BOOL, ("array", "value")),
    }),
    **_ops(ResourceModule.MAP, {
        "new": _static((), _MAP),
        "insert": _instance((_MAP, K, V), VOID, ("map", "key", "value")),
        "get": _instance((_MAP, K), V, ("map", "key")),
        "remove": _instance((_MAP, K), VOID, ("map", "key")),
        "contains": _instance((_MAP, K), BOOL, ("map", "key")),
        "len": _instance((_MAP,), I32, ("map",)),
        "clear": _instance((_MAP,), VOID, ("map",)),
    }),
    **_ops(ResourceModule.QUATERNION, {
        "identity": _static((), QUATERNION),
        "from_euler": _static((VECTOR3,), QUATERNION, ("degrees",)),
        "to_euler": _instance((QUATERNION,), VECTOR3, ("rotation",)),
        "rotate_x": _instance((QUATERNION, F32), QUATERNION, ("rotation", "degrees")),
        "rotate_y": _instance((QUATERNION, F32), QUATERNION, ("rotation", "degrees")),
        "rotate_z": _instance((QUATERNION, F32), QUATERNION, ("rotation", "degrees")),
    }),
    **_ops(ResourceModule.VECTOR2, {
        "new": _static((F32, F32), VECTOR2, ("x", "y")),
        "length": _instance((VECTOR2,), F32, ("vector",)),
        "normalized": _instance((VECTOR2,), VECTOR2, ("vector",)),
    }),
    **_ops(ResourceModule.VECTOR3, {
        "new": _static((F32, F32, F32), VECTOR3, ("x", "y", "z")),
        "length": _instance((VECTOR3,), F32, ("vector",)),
        "normalized": _instance((VECTOR3,), VECTOR3, ("vector",)),
    }),
    **_ops(ResourceModule.COLOR, {
        "new": _static((F32, F32, F32, F32), COLOR, ("r", "g", "b", "a")),
    }),
}  # fmt: skip

# Plain struct fields of engine value types, accessed structurally.
VALUE_FIELDS: dict[ResourceKind, dict[str, Type]] = {
    ResourceKind.VECTOR2: {"x": F32, "y": F32},
    ResourceKind.VECTOR3: {"x": F32, "y": F32, "z": F32},
    ResourceKind.QUATERNION: {"x": F32, "y": F32, "z": F32, "w": F32},
    ResourceKind.COLOR: {"r": F32, "g": F32, "b": F32, "a": F32},
}

# Resource module owning the instance operations of a resource value type.
RESOURCE_OF_KIND: dict[ResourceKind, ResourceModule] = {
    ResourceKind.TEXTURE: ResourceModule.TEXTURE,
    ResourceKind.MESH: ResourceModule.MESH,
    ResourceKind.SIGNAL: ResourceModule.SIGNAL,
    ResourceKind.SHAPE: ResourceModule.SHAPE,
    ResourceKind.QUATERNION: ResourceModule.QUATERNION,
    ResourceKind.VECTOR2: ResourceModule.VECTOR2,
    ResourceKind.VECTOR3: ResourceModule.VECTOR3,
    ResourceKind.COLOR: ResourceModule.COLOR,
}

# Resource module owning the operations of each container kind.
CONTAINER_RESOURCES: dict[ContainerKind, ResourceModule] = {
    ContainerKind.ARRAY: ResourceModule.ARRAY,
    ContainerKind.MAP: ResourceModule.MAP,
}
