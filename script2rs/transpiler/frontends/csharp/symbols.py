"""C# spellings of modules, resources, types and lifecycle methods."""

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
    pascal_case,
    resource_ops,
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
    STRING,
    U8,
    U16,
    U32,
    U64,
    VOID,
    ContainerKind,
)

_MATH = api_ops(ApiModule.MATH, {
    "Sqrt": "sqrt", "Abs": "abs", "Sin": "sin", "Cos": "cos", "Min": "min",
    "Max": "max", "Clamp": "clamp", "Lerp": "lerp", "Random": "random",
})
_LIST = resource_ops(ResourceModule.ARRAY, {
    "new": "new", "Add": "push", "Pop": "pop", "Insert": "insert",
    "RemoveAt": "remove", "Count": "len", "Clear": "clear", "Contains": "contains",
})
_DICTIONARY = resource_ops(ResourceModule.MAP, {
    "new": "new", "Add": "insert", "Get": "get", "Remove": "remove",
    "ContainsKey": "contains", "Count": "len", "Clear": "clear",
})
_JSON = api_ops(ApiModule.JSON, {"Parse": "parse", "Stringify": "stringify"})

CSHARP_SYMBOLS = FrontendSymbols(
    kind=FrontendKind.CSHARP,
    api_modules={
        "Console": api_ops(ApiModule.CONSOLE, {
            "WriteLine": "log", "Write": "log", "Log": "log",
            "Warn": "warn", "Error": "error", "Info": "info",
        }),
        "Debug": api_ops(ApiModule.CONSOLE, {
            "Log": "log", "LogWarning": "warn", "LogError": "error",
        }),
        "Time": api_ops(ApiModule.TIME, {
            "DeltaTime": "get_delta",
            "GetDelta": "get_delta",
            "UnixTimeMsec": "get_unix_time_msec",
            "GetUnixTimeMsec": "get_unix_time_msec",
            "SleepMsec": "sleep_msec",
        }),
        "OS": api_ops(ApiModule.OS, {
            "GetEnv": "get_env", "GetPlatformName": "get_platform_name",
        }),
        "JSON": _JSON,
        "Json": _JSON,
        "Input": api_ops(ApiModule.INPUT, {
            "IsKeyPressed": "is_key_pressed",
            "IsActionPressed": "is_action_pressed",
            "IsMouseButtonPressed": "is_mouse_button_pressed",
            "GetMousePosition": "get_mouse_position",
            "MousePosition": "get_mouse_position",
        }),
        "Mathf": _MATH,
        "Math": _MATH,
    },
    resource_modules={
        "Texture": resource_ops(ResourceModule.TEXTURE, {
            "Load": "load", "Preload": "preload", "Remove": "remove",
            "GetWidth": "get_width", "GetHeight": "get_height", "GetSize": "get_size",
        }),
        "Mesh": resource_ops(ResourceModule.MESH, {
            "Load": "load", "Preload": "preload", "Remove": "remove",
            "Cube": "cube", "Sphere": "sphere", "Plane": "plane",
        }),
        "Signal": resource_ops(ResourceModule.SIGNAL, {
            "new": "new", "Connect": "connect", "Emit": "emit",
            "EmitDeferred": "emit_deferred",
        }),
        "Shape": resource_ops(ResourceModule.SHAPE, {
            "Rectangle": "rectangle", "Circle": "circle", "Square": "square",
        }),
        "List": _LIST,
        "Array": _LIST,
        "Dictionary": _DICTIONARY,
        "Map": _DICTIONARY,
        "Quaternion": resource_ops(ResourceModule.QUATERNION, {
            "Identity": "identity", "FromEuler": "from_euler", "ToEuler": "to_euler",
            "RotateX": "rotate_x", "RotateY": "rotate_y", "RotateZ": "rotate_z",
        }),
        "Vector2": resource_ops(ResourceModule.VECTOR2, {
            "new": "new", "Length": "length", "Normalized": "normalized",
        }),
        "Vector3": resource_ops(ResourceModule.VECTOR3, {
            "new": "new", "Length": "length", "Normalized": "normalized",
        }),
        "Color": resource_ops(ResourceModule.COLOR, {"new": "new"}),
    },
    enums={"NodeType": "NodeType"},
    member_spelling=pascal_case,
    type_names={
        "int": I32, "long": I64, "short": I16, "byte": U8, "sbyte": I8,
        "uint": U32, "ulong": U64, "ushort": U16, "float": F32, "double": F64,
        "decimal": DECIMAL, "bool": BOOL, "string": STRING, "object": ANY,
        "void": VOID, "BigInteger": BIGINT,
    },
    container_names={
        "List": ContainerKind.ARRAY,
        "Array": ContainerKind.ARRAY,
        "Dictionary": ContainerKind.MAP,
        "Map": ContainerKind.MAP,
    },
    lifecycle_names={
        "Init": LifecycleTag.INIT,
        "Update": LifecycleTag.UPDATE,
        "FixedUpdate": LifecycleTag.FIXED_UPDATE,
    },
    script_kinds={
        "Script": ScriptKind.ATTACHED,
        "Global": ScriptKind.GLOBAL,
        "Root": ScriptKind.ROOT,
        "Module": ScriptKind.MODULE,
    },
    expose_attribute="Expose",
)  # fmt: skip
