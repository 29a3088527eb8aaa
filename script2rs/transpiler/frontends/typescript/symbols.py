"""TypeScript spellings of modules, resources, types and lifecycle methods."""

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
    camel_case,
    resource_ops,
)
from script2rs.transpiler.types import (
    ANY,
    BIGINT,
    BOOL,
    DECIMAL,
    F32,
    F64,
    I32,
    I64,
    STRING,
    U32,
    U64,
    VOID,
    ContainerKind,
)

_CONSOLE = api_ops(ApiModule.CONSOLE, {
    "log": "log", "warn": "warn", "error": "error", "info": "info",
})  # fmt: skip

TYPESCRIPT_SYMBOLS = FrontendSymbols(
    kind=FrontendKind.TYPESCRIPT,
    api_modules={
        "console": _CONSOLE,
        "Console": _CONSOLE,
        "Time": api_ops(ApiModule.TIME, {
            "getDelta": "get_delta",
            "getDeltaTime": "get_delta",
            "now": "get_unix_time_msec",
            "getUnixMsec": "get_unix_time_msec",
            "sleep": "sleep_msec",
            "sleepMsec": "sleep_msec",
        }),
        "OS": api_ops(ApiModule.OS, {
            "getEnv": "get_env", "getPlatform": "get_platform_name",
            "getPlatformName": "get_platform_name",
        }),
        "JSON": api_ops(ApiModule.JSON, {"parse": "parse", "stringify": "stringify"}),
        "Input": api_ops(ApiModule.INPUT, {
            "isKeyPressed": "is_key_pressed",
            "isActionPressed": "is_action_pressed",
            "isMouseButtonPressed": "is_mouse_button_pressed",
            "getMousePosition": "get_mouse_position",
        }),
        "Math": api_ops(ApiModule.MATH, {
            name: name
            for name in ("sqrt", "abs", "sin", "cos", "min", "max", "clamp", "lerp", "random")
        }),
    },
    resource_modules={
        "Texture": resource_ops(ResourceModule.TEXTURE, {
            "load": "load", "preload": "preload", "remove": "remove",
            "getWidth": "get_width", "getHeight": "get_height", "getSize": "get_size",
        }),
        "Mesh": resource_ops(ResourceModule.MESH, {
            name: name for name in ("load", "preload", "remove", "cube", "sphere", "plane")
        }),
        "Signal": resource_ops(ResourceModule.SIGNAL, {
            "new": "new", "connect": "connect", "emit": "emit",
            "emitDeferred": "emit_deferred",
        }),
        "Shape": resource_ops(ResourceModule.SHAPE, {
            name: name for name in ("rectangle", "circle", "square")
        }),
        "Array": resource_ops(ResourceModule.ARRAY, {
            "new": "new", "push": "push", "pop": "pop", "insert": "insert",
            "removeAt": "remove", "length": "len", "clear": "clear",
            "includes": "contains",
        }),
        "Map": resource_ops(ResourceModule.MAP, {
            "new": "new", "set": "insert", "get": "get", "delete": "remove",
            "has": "contains", "size": "len", "clear": "clear",
        }),
        "Quaternion": resource_ops(ResourceModule.QUATERNION, {
            "identity": "identity", "fromEuler": "from_euler", "toEuler": "to_euler",
            "rotateX": "rotate_x", "rotateY": "rotate_y", "rotateZ": "rotate_z",
        }),
        "Vector2": resource_ops(ResourceModule.VECTOR2, {
            name: name for name in ("new", "length", "normalized")
        }),
        "Vector3": resource_ops(ResourceModule.VECTOR3, {
            name: name for name in ("new", "length", "normalized")
        }),
        "Color": resource_ops(ResourceModule.COLOR, {"new": "new"}),
    },
    enums={"NodeType": "NodeType"},
    member_spelling=camel_case,
    type_names={
        "number": F32, "int": I32, "float": F32, "double": F64, "long": I64,
        "uint": U32, "ulong": U64, "boolean": BOOL, "bool": BOOL, "string": STRING,
        "bigint": BIGINT, "decimal": DECIMAL, "any": ANY, "object": ANY, "void": VOID,
    },
    container_names={"Array": ContainerKind.ARRAY, "Map": ContainerKind.MAP},
    lifecycle_names={
        "init": LifecycleTag.INIT,
        "update": LifecycleTag.UPDATE,
        "fixedUpdate": LifecycleTag.FIXED_UPDATE,
    },
    script_kinds={
        "script": ScriptKind.ATTACHED,
        "global": ScriptKind.GLOBAL,
        "root": ScriptKind.ROOT,
        "module": ScriptKind.MODULE,
    },
)  # fmt: skip
