"""
Data models for the script transpiler.

This module defines the canonical operation references shared by all
frontends, the registry entry records and the transpiler configuration.
"""

from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path

from script2rs.transpiler.types import Type


class FrontendKind(Enum):
    """Supported surface syntaxes."""

    PUP = "pup"
    TYPESCRIPT = "ts"
    CSHARP = "cs"

    @classmethod
    def from_path(cls, path: str | Path) -> "FrontendKind":
        """Detect the frontend kind from a file extension.

        Raises:
            ValueError: If the extension belongs to no frontend
        """
        suffix = Path(path).suffix.lstrip(".").lower()
        for kind in cls:
            if kind.value == suffix:
                return kind
        raise ValueError(f"No frontend handles '{Path(path).name}'")


class ScriptKind(Enum):
    ATTACHED = auto()
    GLOBAL = auto()
    ROOT = auto()
    MODULE = auto()


class LifecycleTag(Enum):
    """Canonical lifecycle tags; values are the emitted method names."""

    INIT = "init"
    UPDATE = "update"
    FIXED_UPDATE = "fixed_update"


LIFECYCLE_FLAGS = {
    LifecycleTag.INIT: 1,
    LifecycleTag.UPDATE: 2,
    LifecycleTag.FIXED_UPDATE: 4,
}


class HeaderStyle(Enum):
    """Header comment written at the top of generated files."""

    NONE = "none"
    PLAIN = "plain"
    TIMESTAMPED = "timestamped"


class ApiModule(Enum):
    CONSOLE = "Console"
    TIME = "Time"
    OS = "OS"
    JSON = "JSON"
    INPUT = "Input"
    MATH = "Math"


class ResourceModule(Enum):
    TEXTURE = "Texture"
    MESH = "Mesh"
    SIGNAL = "Signal"
    SHAPE = "Shape"
    ARRAY = "Array"
    MAP = "Map"
    QUATERNION = "Quaternion"
    VECTOR2 = "Vector2"
    VECTOR3 = "Vector3"
    COLOR = "Color"


# Dynamic by-name sugar present on every node type. The member name travels
# as a runtime string argument.
DYNAMIC_METHODS = ("get_var", "set_var", "call")


@dataclass(frozen=True)
class ApiModuleOp:
    module: ApiModule
    op: str

    def __str__(self) -> str:
        return f"{self.module.value}.{self.op}"


@dataclass(frozen=True)
class ResourceModuleOp:
    resource: ResourceModule
    op: str

    def __str__(self) -> str:
        return f"{self.resource.value}.{self.op}"


@dataclass(frozen=True)
class NodeMethodRef:
    node_type: str
    method: str

    @property
    def is_dynamic(self) -> bool:
        return self.method in DYNAMIC_METHODS

    def __str__(self) -> str:
        return f"{self.node_type}.{self.method}()"


@dataclass(frozen=True)
class NodeFieldRef:
    node_type: str
    field: str

    def __str__(self) -> str:
        return f"{self.node_type}.{self.field}"


@dataclass(frozen=True)
class EnumVariant:
    enum: str
    variant: str

    def __str__(self) -> str:
        return f"{self.enum}::{self.variant}"


CanonicalOperationRef = (
    ApiModuleOp | ResourceModuleOp | NodeMethodRef | NodeFieldRef | EnumVariant
)


@dataclass(frozen=True)
class OperationSignature:
    """Parameter and return types of a canonical operation.

    For resource operations with `instance=True` the receiver value is the
    first parameter, so `tex.get_width()` and `Texture.get_width(tex)` resolve
    to the same operation with the same argument count.
    """

    param_types: tuple[Type, ...]
    return_type: Type
    param_names: tuple[str, ...] | None = None
    instance: bool = False


@dataclass(frozen=True)
class RegistryEntry:
    """One (owner, per-frontend symbol) mapping to a canonical operation."""

    frontend: FrontendKind
    owner: str
    symbol: str
    ref: CanonicalOperationRef
    signature: OperationSignature

    @property
    def param_types(self) -> tuple[Type, ...]:
        return self.signature.param_types

    @property
    def return_type(self) -> Type:
        return self.signature.return_type

    @property
    def param_names(self) -> tuple[str, ...] | None:
        return self.signature.param_names


@dataclass(frozen=True)
class SourceFile:
    """One input unit tagged with its frontend kind."""

    path: str
    text: str
    frontend: FrontendKind

    @classmethod
    def read(cls, path: str | Path, frontend: FrontendKind | None = None) -> "SourceFile":
        path = Path(path)
        kind = frontend or FrontendKind.from_path(path)
        return cls(str(path), path.read_text(encoding="utf-8"), kind)


@dataclass
class TranspilerConfig:
    """Options for a compilation pass.

    Attributes:
        jobs: Worker threads for per-file processing (1 runs sequentially)
        output_extension: Extension of generated files
        header: Header comment style for generated files
        write_outputs: Write generated files to disk when an output dir is given
        source_maps: Write a `<output>.map.json` source map next to each output
    """

    jobs: int = 1
    output_extension: str = ".rs"
    header: HeaderStyle = HeaderStyle.PLAIN
    write_outputs: bool = True
    source_maps: bool = False
