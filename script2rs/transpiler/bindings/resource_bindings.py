"""Rust emission templates for resource-module operations."""

from script2rs.transpiler.models import ResourceModule, ResourceModuleOp


def _templates(resource: ResourceModule, table: dict[str, str]) -> dict[ResourceModuleOp, str]:
    return {ResourceModuleOp(resource, op): pattern for op, pattern in table.items()}


RESOURCE_TEMPLATES: dict[ResourceModuleOp, str] = {
    **_templates(ResourceModule.TEXTURE, {
        "load": "api.Texture.load({0:ref})",
        "preload": "api.Texture.preload({0:ref})",
        "remove": "api.Texture.remove({0})",
        "get_width": "api.Texture.get_width({0})",
        "get_height": "api.Texture.get_height({0})",
        "get_size": "api.Texture.get_size({0})",
    }),
    **_templates(ResourceModule.MESH, {
        "load": "api.Mesh.load({0:ref})",
        "preload": "api.Mesh.preload({0:ref})",
        "remove": "api.Mesh.remove({0})",
        "cube": "api.Mesh.cube()",
        "sphere": "api.Mesh.sphere()",
        "plane": "api.Mesh.plane()",
    }),
    **_templates(ResourceModule.SIGNAL, {
        "new": "api.Signal.new({0:ref})",
        "connect": "api.Signal.connect({0}, {1:ref})",
        "emit": "api.Signal.emit({0}, &[])",
        "emit_deferred": "api.Signal.emit_deferred({0}, &[])",
    }),
    **_templates(ResourceModule.SHAPE, {
        "rectangle": "Shape2D::Rectangle {{ width: {0}, height: {1} }}",
        "circle": "Shape2D::Circle {{ radius: {0} }}",
        "square": "Shape2D::Square {{ size: {0} }}",
    }),
    **_templates(ResourceModule.ARRAY, {
        "new": "Vec::new()",
        "push": "{0:atom}.push({1})",
        "pop": "{0:atom}.pop().unwrap_or_default()",
        "insert": "{0:atom}.insert({1:atom} as usize, {2})",
        "remove": "{0:atom}.remove({1:atom} as usize)",
        "len": "({0:atom}.len() as i32)",
        "clear": "{0:atom}.clear()",
        "contains": "{0:atom}.contains({1:ref})",
    }),
    **_templates(ResourceModule.MAP, {
        "new": "HashMap::new()",
        "insert": "{0:atom}.insert({1}, {2})",
        "get": "{0:atom}.get({1:ref}).cloned().unwrap_or_default()",
        "remove": "{0:atom}.remove({1:ref})",
        "contains": "{0:atom}.contains_key({1:ref})",
        "len": "({0:atom}.len() as i32)",
        "clear": "{0:atom}.clear()",
    }),
    **_templates(ResourceModule.QUATERNION, {
        "identity": "Quaternion::identity()",
        "from_euler": "Quaternion::from_euler_deg({0})",
        "to_euler": "{0:atom}.to_euler_deg()",
        "rotate_x": "{0:atom}.rotate_x({1})",
        "rotate_y": "{0:atom}.rotate_y({1})",
        "rotate_z": "{0:atom}.rotate_z({1})",
    }),
    **_templates(ResourceModule.VECTOR2, {
        "new": "Vector2::new({0}, {1})",
        "length": "{0:atom}.length()",
        "normalized": "{0:atom}.normalized()",
    }),
    **_templates(ResourceModule.VECTOR3, {
        "new": "Vector3::new({0}, {1}, {2})",
        "length": "{0:atom}.length()",
        "normalized": "{0:atom}.normalized()",
    }),
    **_templates(ResourceModule.COLOR, {
        "new": "Color::new({0}, {1}, {2}, {3})",
    }),
}  # fmt: skip

# Resources whose operations are plain value code, never touching the API.
PURE_RESOURCES = frozenset({
    ResourceModule.SHAPE,
    ResourceModule.ARRAY,
    ResourceModule.MAP,
    ResourceModule.QUATERNION,
    ResourceModule.VECTOR2,
    ResourceModule.VECTOR3,
    ResourceModule.COLOR,
})  # fmt: skip

# Operations that mutate their first argument in place.
MUTATING_OPS = frozenset({
    ResourceModuleOp(ResourceModule.ARRAY, op)
    for op in ("push", "pop", "insert", "remove", "clear")
} | {
    ResourceModuleOp(ResourceModule.MAP, op) for op in ("insert", "remove", "clear")
})  # fmt: skip
