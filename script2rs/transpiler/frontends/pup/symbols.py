"""Pup spellings of modules, resources, types and lifecycle methods."""

from script2rs.transpiler.models import (
    ApiModule,
    FrontendKind,
    LifecycleTag,
    ResourceModule,
    ScriptKind,
)
from script2rs.transpiler.registry.symbols import (
    FrontendSymbols,
    api_ops,
    resource_ops,
    snake_case,
)
from script2rs.transpiler.types import (
    ANY,
    BIGINT,
    BOOL,
    DECIMAL,
    F32,
    F64,
    I8,
    I16,
    I32,
    I64,
    I128,
    STRING,
    U8,
    U16,
    U32,
    U64,
    U128,
    VOID,
    ContainerKind,
)


PUP_SYMBOLS = FrontendSymbols(
    kind=FrontendKind.PUP,
    api_modules={
        "Console": api_ops(ApiModule.CONSOLE, {
            "print": "log", "log": "log", "warn": "warn", "error": "error", "info": "info",
        }),
        "Time": api_ops(ApiModule.TIME, {
            "get_delta": "get_delta",
            "delta": "get_delta",
            "get_unix_time_msec": "get_unix_time_msec",
            "sleep_msec": "sleep_msec",
        }),
        "OS": api_ops(ApiModule.OS, {
            "get_env": "get_env", "get_platform_name": "get_platform_name",
        }),
        "JSON": api_ops(ApiModule.JSON, {"parse": "parse", "stringify": "stringify"}),
        "Input": api_ops(ApiModule.INPUT, {
            "is_key_pressed": "is_key_pressed",
            "is_action_pressed": "is_action_pressed",
            "get_action": "is_action_pressed",
            "is_mouse_button_pressed": "is_mouse_button_pressed",
            "get_mouse_position": "get_mouse_position",
        }),
        "Math": api_ops(ApiModule.MATH, {
            name: name
            for name in ("sqrt", "abs", "sin", "cos", "min", "max", "clamp", "lerp", "random")
        }),
    },
    resource_modules={
        "Texture": resource_ops(ResourceModule.TEXTURE, {
            name: name
            for name in ("load", "preload", "remove", "get_width", "get_height", "get_size")
        }),
        "Mesh": resource_ops(ResourceModule.MESH, {
            name: name for name in ("load", "preload", "remove", "cube", "sphere", "plane")
        }),
        "Signal": resource_ops(ResourceModule.SIGNAL, {
            name: name for name in ("new", "connect", "emit", "emit_deferred")
        }),
        "Shape": resource_ops(ResourceModule.SHAPE, {
            name: name for name in ("rectangle", "circle", "square")
        }),
        "Array": resource_ops(ResourceModule.ARRAY, {
            "new": "new", "push": "push", "append": "push", "pop": "pop",
            "insert": "insert", "remove": "remove", "len": "len", "size": "len",
            "clear": "clear", "contains": "contains",
        }),
        "Map": resource_ops(ResourceModule.MAP, {
            "new": "new", "insert": "insert", "get": "get", "remove": "remove",
            "contains": "contains", "contains_key": "contains",
            "len": "len", "size": "len", "clear": "clear",
        }),
        "Quaternion": resource_ops(ResourceModule.QUATERNION, {
            name: name
            for name in (
                "identity", "from_euler", "to_euler", "rotate_x", "rotate_y", "rotate_z",
            )
        }),
        "Vector2": resource_ops(ResourceModule.VECTOR2, {
            name: name for name in ("new", "length", "normalized")
        }),
        "Vector3": resource_ops(ResourceModule.VECTOR3, {
            name: name for name in ("new", "length", "normalized")
        }),
        "Color": resource_ops(ResourceModule.COLOR, {"new": "new"}),
    },
    enums={"NODE_TYPE": "NodeType", "NodeType": "NodeType"},
    member_spelling=snake_case,
    type_names={
        "int": I32, "int_8": I8, "int_16": I16, "int_32": I32, "int_64": I64, "int_128": I128,
        "uint": U32, "uint_8": U8, "uint_16": U16, "uint_32": U32, "uint_64": U64,
        "uint_128": U128,
        "float": F32, "float_32": F32, "double": F64, "float_64": F64,
        "decimal": DECIMAL, "big": BIGINT, "bigint": BIGINT, "big_int": BIGINT,
        "string": STRING, "bool": BOOL, "void": VOID, "any": ANY,
    },
    container_names={"Array": ContainerKind.ARRAY, "Map": ContainerKind.MAP},
    lifecycle_names={
        "init": LifecycleTag.INIT,
        "update": LifecycleTag.UPDATE,
        "fixed_update": LifecycleTag.FIXED_UPDATE,
    },
    script_kinds={
        "script": ScriptKind.ATTACHED,
        "global": ScriptKind.GLOBAL,
        "root": ScriptKind.ROOT,
        "module": ScriptKind.MODULE,
    },
)  # fmt: skip
