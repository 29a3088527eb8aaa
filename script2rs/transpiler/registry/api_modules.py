"""Canonical API-module operations: bare modules with free functions."""

from script2rs.transpiler.models import ApiModule, ApiModuleOp, OperationSignature
from script2rs.transpiler.types import ANY, BOOL, F32, STRING, U64, VECTOR2, VOID


def _op(module: ApiModule, name: str) -> ApiModuleOp:
    return ApiModuleOp(module, name)


def _sig(params: tuple, ret, names: tuple[str, ...] | None = None) -> OperationSignature:
    return OperationSignature(params, ret, names)


API_SIGNATURES: dict[ApiModuleOp, OperationSignature] = {
    # Console
    _op(ApiModule.CONSOLE, "log"): _sig((ANY,), VOID, ("message",)),
    _op(ApiModule.CONSOLE, "warn"): _sig((ANY,), VOID, ("message",)),
    _op(ApiModule.CONSOLE, "error"): _sig((ANY,), VOID, ("message",)),
    _op(ApiModule.CONSOLE, "info"): _sig((ANY,), VOID, ("message",)),
    # Time
    _op(ApiModule.TIME, "get_delta"): _sig((), F32),
    _op(ApiModule.TIME, "get_unix_time_msec"): _sig((), U64),
    _op(ApiModule.TIME, "sleep_msec"): _sig((U64,), VOID, ("msec",)),
    # OS
    _op(ApiModule.OS, "get_env"): _sig((STRING,), STRING, ("name",)),
    _op(ApiModule.OS, "get_platform_name"): _sig((), STRING),
    # JSON
    _op(ApiModule.JSON, "parse"): _sig((STRING,), ANY, ("text",)),
    _op(ApiModule.JSON, "stringify"): _sig((ANY,), STRING, ("value",)),
    # Input
    _op(ApiModule.INPUT, "is_key_pressed"): _sig((STRING,), BOOL, ("key",)),
    _op(ApiModule.INPUT, "is_action_pressed"): _sig((STRING,), BOOL, ("action",)),
    _op(ApiModule.INPUT, "is_mouse_button_pressed"): _sig((STRING,), BOOL, ("button",)),
    _op(ApiModule.INPUT, "get_mouse_position"): _sig((), VECTOR2),
    # Math
    _op(ApiModule.MATH, "sqrt"): _sig((F32,), F32, ("value",)),
    _op(ApiModule.MATH, "abs"): _sig((F32,), F32, ("value",)),
    _op(ApiModule.MATH, "sin"): _sig((F32,), F32, ("radians",)),
    _op(ApiModule.MATH, "cos"): _sig((F32,), F32, ("radians",)),
    _op(ApiModule.MATH, "min"): _sig((F32, F32), F32, ("a", "b")),
    _op(ApiModule.MATH, "max"): _sig((F32, F32), F32, ("a", "b")),
    _op(ApiModule.MATH, "clamp"): _sig((F32, F32, F32), F32, ("value", "min", "max")),
    _op(ApiModule.MATH, "lerp"): _sig((F32, F32, F32), F32, ("a", "b", "t")),
    _op(ApiModule.MATH, "random"): _sig((), F32),
}
