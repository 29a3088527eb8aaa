"""
Shared type system.

Types are frozen value objects so they can be compared, hashed and used as
dictionary keys by the registries and the binding table. All frontends resolve
their type spellings onto these variants.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType


class PrimitiveKind(Enum):
    """Primitive type kinds; values are the emitted Rust spellings."""

    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    I128 = "i128"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    U128 = "u128"
    F32 = "f32"
    F64 = "f64"
    DECIMAL = "Decimal"
    BIGINT = "BigInt"
    BOOL = "bool"
    STRING = "String"
    VOID = "()"
    ANY = "Value"


_SIGNED = (PrimitiveKind.I8, PrimitiveKind.I16, PrimitiveKind.I32, PrimitiveKind.I64, PrimitiveKind.I128)
_UNSIGNED = (PrimitiveKind.U8, PrimitiveKind.U16, PrimitiveKind.U32, PrimitiveKind.U64, PrimitiveKind.U128)
_FLOATS = (PrimitiveKind.F32, PrimitiveKind.F64)
_BITS = {
    PrimitiveKind.I8: 8, PrimitiveKind.I16: 16, PrimitiveKind.I32: 32,
    PrimitiveKind.I64: 64, PrimitiveKind.I128: 128,
    PrimitiveKind.U8: 8, PrimitiveKind.U16: 16, PrimitiveKind.U32: 32,
    PrimitiveKind.U64: 64, PrimitiveKind.U128: 128,
    PrimitiveKind.F32: 32, PrimitiveKind.F64: 64,
}  # fmt: skip


class ContainerKind(Enum):
    ARRAY = "Array"
    MAP = "Map"


class ResourceKind(Enum):
    """Engine resource kinds. Texture, Mesh and Signal are runtime handles."""

    TEXTURE = "Texture"
    MESH = "Mesh"
    SIGNAL = "Signal"
    SHAPE = "Shape"
    QUATERNION = "Quaternion"
    VECTOR2 = "Vector2"
    VECTOR3 = "Vector3"
    COLOR = "Color"


HANDLE_RESOURCES = frozenset({ResourceKind.TEXTURE, ResourceKind.MESH, ResourceKind.SIGNAL})


class Type:
    """Base class for all shared types."""

    @property
    def is_handle(self) -> bool:
        return False


@dataclass(frozen=True)
class PrimitiveType(Type):
    kind: PrimitiveKind

    @property
    def is_signed(self) -> bool:
        return self.kind in _SIGNED

    @property
    def is_unsigned(self) -> bool:
        return self.kind in _UNSIGNED

    @property
    def is_integer(self) -> bool:
        return self.is_signed or self.is_unsigned

    @property
    def is_float(self) -> bool:
        return self.kind in _FLOATS

    @property
    def is_big(self) -> bool:
        """Arbitrary-precision numeric types."""
        return self.kind in (PrimitiveKind.DECIMAL, PrimitiveKind.BIGINT)

    @property
    def is_numeric(self) -> bool:
        return self.is_integer or self.is_float or self.is_big

    @property
    def bits(self) -> int:
        return _BITS.get(self.kind, 0)

    def __str__(self) -> str:
        names = {PrimitiveKind.STRING: "string", PrimitiveKind.VOID: "void", PrimitiveKind.ANY: "any"}
        return names.get(self.kind, self.kind.value)


@dataclass(frozen=True)
class ContainerType(Type):
    kind: ContainerKind
    params: tuple[Type, ...]

    @property
    def element(self) -> Type:
        return self.params[-1]

    def __str__(self) -> str:
        return f"{self.kind.value}[{', '.join(str(p) for p in self.params)}]"


@dataclass(frozen=True)
class NodeHandleType(Type):
    """Reference to an engine node of a given node type."""

    tag: str

    @property
    def is_handle(self) -> bool:
        return True

    def __str__(self) -> str:
        return self.tag


@dataclass(frozen=True)
class EngineResourceType(Type):
    kind: ResourceKind

    @property
    def is_handle(self) -> bool:
        return self.kind in HANDLE_RESOURCES

    def __str__(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class EnumType(Type):
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class CustomType(Type):
    """User-declared struct type."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ScriptHandleType(Type):
    """Opaque reference to another script in the same pass."""

    name: str

    @property
    def is_handle(self) -> bool:
        return True

    def __str__(self) -> str:
        return f"script {self.name}"


@dataclass(frozen=True)
class TypeVar(Type):
    """Placeholder bound from a receiver container's type parameters."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ErrorType(Type):
    """Poison type for expressions that already produced a diagnostic."""

    def __str__(self) -> str:
        return "<error>"


I8 = PrimitiveType(PrimitiveKind.I8)
I16 = PrimitiveType(PrimitiveKind.I16)
I32 = PrimitiveType(PrimitiveKind.I32)
I64 = PrimitiveType(PrimitiveKind.I64)
I128 = PrimitiveType(PrimitiveKind.I128)
U8 = PrimitiveType(PrimitiveKind.U8)
U16 = PrimitiveType(PrimitiveKind.U16)
U32 = PrimitiveType(PrimitiveKind.U32)
U64 = PrimitiveType(PrimitiveKind.U64)
U128 = PrimitiveType(PrimitiveKind.U128)
F32 = PrimitiveType(PrimitiveKind.F32)
F64 = PrimitiveType(PrimitiveKind.F64)
DECIMAL = PrimitiveType(PrimitiveKind.DECIMAL)
BIGINT = PrimitiveType(PrimitiveKind.BIGINT)
BOOL = PrimitiveType(PrimitiveKind.BOOL)
STRING = PrimitiveType(PrimitiveKind.STRING)
VOID = PrimitiveType(PrimitiveKind.VOID)
ANY = PrimitiveType(PrimitiveKind.ANY)
ERROR = ErrorType()

TEXTURE = EngineResourceType(ResourceKind.TEXTURE)
MESH = EngineResourceType(ResourceKind.MESH)
SIGNAL = EngineResourceType(ResourceKind.SIGNAL)
SHAPE = EngineResourceType(ResourceKind.SHAPE)
QUATERNION = EngineResourceType(ResourceKind.QUATERNION)
VECTOR2 = EngineResourceType(ResourceKind.VECTOR2)
VECTOR3 = EngineResourceType(ResourceKind.VECTOR3)
COLOR = EngineResourceType(ResourceKind.COLOR)

T = TypeVar("T")
K = TypeVar("K")
V = TypeVar("V")


def array_of(element: Type) -> ContainerType:
    return ContainerType(ContainerKind.ARRAY, (element,))


def map_of(key: Type, value: Type) -> ContainerType:
    return ContainerType(ContainerKind.MAP, (key, value))


def node(tag: str) -> NodeHandleType:
    return NodeHandleType(tag)


def _build_widening_table() -> MappingProxyType:
    table: dict[PrimitiveKind, frozenset[PrimitiveKind]] = {}
    for src in _SIGNED + _UNSIGNED + _FLOATS:
        targets: set[PrimitiveKind] = set()
        if src in _SIGNED:
            targets.update(k for k in _SIGNED if _BITS[k] > _BITS[src])
            targets.update(_FLOATS)
        elif src in _UNSIGNED:
            targets.update(k for k in _UNSIGNED if _BITS[k] > _BITS[src])
            targets.update(k for k in _SIGNED if _BITS[k] > _BITS[src])
            targets.update(_FLOATS)
        elif src is PrimitiveKind.F32:
            targets.add(PrimitiveKind.F64)
        table[src] = frozenset(targets)
    return MappingProxyType(table)


# The single table of implicit numeric widenings. Decimal and BigInt appear in
# neither keys nor values: they never convert implicitly.
IMPLICIT_WIDENINGS = _build_widening_table()


def can_widen(src: Type, dst: Type) -> bool:
    """Check whether `src` implicitly widens to `dst`."""
    if not isinstance(src, PrimitiveType) or not isinstance(dst, PrimitiveType):
        return False
    return dst.kind in IMPLICIT_WIDENINGS.get(src.kind, frozenset())
