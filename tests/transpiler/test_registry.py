"""Tests for the operation registries."""

import pytest

from script2rs.transpiler.errors import DuplicateRegistrationError, RegistryFrozenError
from script2rs.transpiler.models import (
    ApiModule,
    ApiModuleOp,
    EnumVariant,
    FrontendKind,
    NodeFieldRef,
    NodeMethodRef,
    OperationSignature,
    ResourceModule,
    ResourceModuleOp,
)
from script2rs.transpiler.registry.base import Registry
from script2rs.transpiler.registry.builder import build_registries
from script2rs.transpiler.registry.engine_nodes import EngineNodeRegistry
from script2rs.transpiler.types import F32, VOID


class TestRegistry:
    """Tests for the `Registry` storage."""

    def test_define_twice_raises(self):
        """Test that defining one operation twice is rejected."""
        # Arrange
        registry = Registry("test")
        ref = ApiModuleOp(ApiModule.TIME, "get_delta")
        registry.define(ref, OperationSignature((), F32))

        # Act / Assert
        with pytest.raises(DuplicateRegistrationError, match="defined twice"):
            registry.define(ref, OperationSignature((), F32))

    def test_register_same_spelling_twice_raises(self):
        """Test that one (frontend, owner, symbol) triple maps to one operation."""
        # Arrange
        registry = Registry("test")
        ref = ApiModuleOp(ApiModule.TIME, "get_delta")
        registry.define(ref, OperationSignature((), F32))
        registry.register(FrontendKind.PUP, "Time", "delta", ref)

        # Act / Assert
        with pytest.raises(DuplicateRegistrationError, match="Time.delta"):
            registry.register(FrontendKind.PUP, "Time", "delta", ref)

    def test_register_undefined_operation_raises(self):
        """Test that spellings can only point at defined operations."""
        registry = Registry("test")
        with pytest.raises(KeyError):
            registry.register(
                FrontendKind.PUP, "Time", "delta", ApiModuleOp(ApiModule.TIME, "get_delta")
            )

    def test_frozen_registry_rejects_changes(self):
        """Test that a frozen registry is read-only."""
        # Arrange
        registry = Registry("test")
        registry.freeze()

        # Act / Assert
        assert registry.frozen
        with pytest.raises(RegistryFrozenError):
            registry.define(ApiModuleOp(ApiModule.OS, "get_env"), OperationSignature((), VOID))

    def test_lookup_is_per_frontend(self):
        """Test that spellings of one frontend are invisible to the others."""
        # Arrange
        registry = Registry("test")
        ref = ApiModuleOp(ApiModule.CONSOLE, "log")
        registry.define(ref, OperationSignature((), VOID))
        registry.register(FrontendKind.CSHARP, "Console", "WriteLine", ref)

        # Act
        entry = registry.lookup(FrontendKind.CSHARP, "Console", "WriteLine")

        # Assert
        assert entry is not None and entry.ref == ref
        assert registry.lookup(FrontendKind.PUP, "Console", "WriteLine") is None
        assert registry.has_owner(FrontendKind.CSHARP, "Console")
        assert not registry.has_owner(FrontendKind.TYPESCRIPT, "Console")


class TestEngineNodes:
    """Tests for the flattened engine node registry."""

    def test_chain_is_nearest_first(self):
        nodes = EngineNodeRegistry()
        assert nodes.chain("Sprite2D") == ["Sprite2D", "Node2D", "Node"]

    def test_subtype(self):
        nodes = EngineNodeRegistry()
        assert nodes.is_subtype("Camera3D", "Node3D")
        assert nodes.is_subtype("Camera3D", "Node")
        assert not nodes.is_subtype("Camera3D", "Node2D")
        assert not nodes.is_subtype("Texture", "Node")

    def test_inherited_members_are_flattened(self):
        """Test that every node type carries its own refs for inherited members."""
        # Arrange
        nodes = EngineNodeRegistry()

        # Act
        nodes.define_flattened()

        # Assert
        assert NodeFieldRef("Sprite2D", "position") in nodes
        assert NodeFieldRef("Sprite2D", "name") in nodes
        assert NodeMethodRef("Sprite2D", "get_parent") in nodes
        assert NodeMethodRef("Node", "get_var") in nodes
        assert NodeFieldRef("Node", "position") not in nodes
        assert EnumVariant("NodeType", "MeshInstance3D") in nodes


class TestBuildRegistries:
    """Tests for the assembly of the process-wide registries."""

    def test_frontend_spellings_share_one_operation(self, registries):
        """Test that each frontend's spelling maps to the same canonical operation."""
        # Arrange
        log = ApiModuleOp(ApiModule.CONSOLE, "log")

        # Act
        spellings = [
            registries.api.lookup(FrontendKind.PUP, "Console", "print"),
            registries.api.lookup(FrontendKind.TYPESCRIPT, "console", "log"),
            registries.api.lookup(FrontendKind.CSHARP, "Console", "WriteLine"),
        ]

        # Assert
        assert all(entry is not None and entry.ref == log for entry in spellings)

    def test_node_members_follow_member_spelling(self, registries):
        """Test that node members are registered in each frontend's case style."""
        ref = NodeFieldRef("Node2D", "z_index")
        assert registries.nodes.lookup(FrontendKind.PUP, "Node2D", "z_index").ref == ref
        assert registries.nodes.lookup(FrontendKind.TYPESCRIPT, "Node2D", "zIndex").ref == ref
        assert registries.nodes.lookup(FrontendKind.CSHARP, "Node2D", "ZIndex").ref == ref

    def test_resource_aliases(self, registries):
        """Test that several spellings may map to one resource operation."""
        push = ResourceModuleOp(ResourceModule.ARRAY, "push")
        assert registries.resources.lookup(FrontendKind.PUP, "Array", "append").ref == push
        assert registries.resources.lookup(FrontendKind.CSHARP, "List", "Add").ref == push

    def test_default_environment_is_frozen(self, registries, bindings):
        assert registries.frozen
        assert bindings.frozen

    def test_fresh_build_is_not_frozen(self):
        registries = build_registries()
        assert not registries.frozen
