"""Static registries mapping frontend spellings to canonical operations."""

from script2rs.transpiler.registry.base import Registry
from script2rs.transpiler.registry.builder import Registries, build_registries
from script2rs.transpiler.registry.engine_nodes import EngineNodeRegistry
from script2rs.transpiler.registry.symbols import FrontendSymbols

__all__ = [
    "EngineNodeRegistry",
    "FrontendSymbols",
    "Registries",
    "Registry",
    "build_registries",
]
