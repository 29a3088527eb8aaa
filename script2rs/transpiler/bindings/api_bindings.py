"""Rust emission templates for API-module operations."""

from script2rs.transpiler.models import ApiModule, ApiModuleOp

_C = ApiModule.CONSOLE
_T = ApiModule.TIME
_O = ApiModule.OS
_J = ApiModule.JSON
_I = ApiModule.INPUT
_M = ApiModule.MATH

API_TEMPLATES: dict[ApiModuleOp, str] = {
    ApiModuleOp(_C, "log"): 'api.print(&format!("{{}}", {0}))',
    ApiModuleOp(_C, "warn"): 'api.print_warn(&format!("{{}}", {0}))',
    ApiModuleOp(_C, "error"): 'api.print_error(&format!("{{}}", {0}))',
    ApiModuleOp(_C, "info"): 'api.print_info(&format!("{{}}", {0}))',
    ApiModuleOp(_T, "get_delta"): "api.Time.get_delta()",
    ApiModuleOp(_T, "get_unix_time_msec"): "api.Time.get_unix_time_msec()",
    ApiModuleOp(_T, "sleep_msec"): "api.Time.sleep_msec({0})",
    ApiModuleOp(_O, "get_env"): "api.OS.getenv({0:ref})",
    ApiModuleOp(_O, "get_platform_name"): "api.OS.get_platform_name()",
    ApiModuleOp(_J, "parse"): "api.JSON.parse({0:ref})",
    ApiModuleOp(_J, "stringify"): "serde_json::to_string(&json!({0})).unwrap_or_default()",
    ApiModuleOp(_I, "is_key_pressed"): "api.Input.is_key_pressed({0:ref})",
    ApiModuleOp(_I, "is_action_pressed"): "api.Input.get_action({0:ref})",
    ApiModuleOp(_I, "is_mouse_button_pressed"): "api.Input.is_button_pressed({0:ref})",
    ApiModuleOp(_I, "get_mouse_position"): "api.Input.get_mouse_position()",
    ApiModuleOp(_M, "sqrt"): "f32::sqrt({0})",
    ApiModuleOp(_M, "abs"): "f32::abs({0})",
    ApiModuleOp(_M, "sin"): "f32::sin({0})",
    ApiModuleOp(_M, "cos"): "f32::cos({0})",
    ApiModuleOp(_M, "min"): "f32::min({0}, {1})",
    ApiModuleOp(_M, "max"): "f32::max({0}, {1})",
    ApiModuleOp(_M, "clamp"): "f32::clamp({0}, {1}, {2})",
    ApiModuleOp(_M, "lerp"): "math::lerp({0}, {1}, {2})",
    ApiModuleOp(_M, "random"): "api.Math.random()",
}

# Operations whose emission never touches the runtime API handle.
PURE_API_OPS = frozenset(
    ref for ref in API_TEMPLATES if ref.module is _M and ref.op != "random"
) | {ApiModuleOp(_J, "stringify")}
