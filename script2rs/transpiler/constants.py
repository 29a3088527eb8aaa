"""
Constants for the Rust code generator.

This module contains the operator precedence table, the identifier lowering
affixes and the fixed text every generated file starts with.
"""

from script2rs.transpiler.types import ResourceKind

# Rust operator precedence, higher binds tighter
OPERATOR_PRECEDENCE = {
    "||": 1,
    "&&": 2,
    "==": 3,
    "!=": 3,
    "<": 3,
    ">": 3,
    "<=": 3,
    ">=": 3,
    "+": 4,
    "-": 4,
    "*": 5,
    "/": 5,
    "%": 5,
    "as": 6,
    "unary": 7,
    "call": 8,
}

# Comparison operators are non-associative in Rust
NON_ASSOCIATIVE = frozenset({"==", "!=", "<", ">", "<=", ">="})

# Identifier lowering
USER_PREFIX = "__t_"
HANDLE_SUFFIX = "_id"
TEMP_PREFIX = "__temp_"
SCRIPT_SUFFIX = "Script"
SELF_NODE = "self.id"

# Opaque handle of another script in the same pass, looked up by the runtime
SCRIPT_NODE_TEMPLATE = 'api.get_script_node("{name}")'

NODE_ID_TYPE = "NodeID"
RESOURCE_TYPE_NAMES = {
    ResourceKind.TEXTURE: "TextureID",
    ResourceKind.MESH: "MeshID",
    ResourceKind.SIGNAL: "SignalID",
    ResourceKind.SHAPE: "Shape2D",
    ResourceKind.QUATERNION: "Quaternion",
    ResourceKind.VECTOR2: "Vector2",
    ResourceKind.VECTOR3: "Vector3",
    ResourceKind.COLOR: "Color",
}

GENERATED_NOTICE = "Generated by script2rs. Do not edit."

RUST_PRELUDE = (
    "#![allow(improper_ctypes_definitions)]",
    "#![allow(unused)]",
    "",
    "use std::any::Any;",
    "use std::collections::HashMap;",
    "use std::str::FromStr;",
    "use serde_json::{Value, json};",
    "use serde::{Serialize, Deserialize};",
    "use rust_decimal::{Decimal, prelude::*};",
    "use num_bigint::BigInt;",
    "",
    "use perro_core::prelude::*;",
)

SECTION_RULE = "// " + "=" * 72
