"""Tests for identifier and type lowering."""

import pytest

from script2rs.transpiler.errors import TranspilerError
from script2rs.transpiler.lowering import Lowerer, is_copy, lower_name, lower_type, snake_name
from script2rs.transpiler.models import LifecycleTag
from script2rs.transpiler.types import (
    ANY,
    BIGINT,
    DECIMAL,
    ERROR,
    F32,
    I32,
    SHAPE,
    STRING,
    TEXTURE,
    VECTOR2,
    CustomType,
    EnumType,
    NodeHandleType,
    ScriptHandleType,
    array_of,
    map_of,
)


class TestLowerType:
    """Tests for the Rust spelling of resolved types."""

    @pytest.mark.parametrize(
        "t, expected",
        [
            (I32, "i32"),
            (F32, "f32"),
            (STRING, "String"),
            (ANY, "Value"),
            (DECIMAL, "Decimal"),
            (BIGINT, "BigInt"),
            (array_of(I32), "Vec<i32>"),
            (map_of(STRING, array_of(F32)), "HashMap<String, Vec<f32>>"),
            (NodeHandleType("Sprite2D"), "NodeID"),
            (ScriptHandleType("Enemy"), "NodeID"),
            (TEXTURE, "TextureID"),
            (SHAPE, "Shape2D"),
            (EnumType("NodeType"), "NodeType"),
            (CustomType("Stats"), "__t_Stats"),
        ],
    )
    def test_lower_type(self, t, expected):
        assert lower_type(t) == expected

    def test_error_type_has_no_rust_form(self):
        with pytest.raises(TranspilerError, match="no Rust representation"):
            lower_type(ERROR)


class TestLowerName:
    """Tests for user identifier lowering."""

    def test_user_prefix(self):
        assert lower_name("health", I32) == "__t_health"

    def test_handle_suffix(self):
        """Test that handle-typed declarations keep their name with a suffix."""
        assert lower_name("tex", TEXTURE) == "tex_id"
        assert lower_name("target", NodeHandleType("Node2D")) == "target_id"
        assert lower_name("boss", ScriptHandleType("Enemy")) == "boss_id"

    def test_value_resources_are_not_handles(self):
        assert lower_name("offset", VECTOR2) == "__t_offset"

    @pytest.mark.parametrize("tag", list(LifecycleTag))
    def test_lifecycle_names_are_fixed(self, tag):
        assert lower_name("Whatever", lifecycle=tag) == tag.value

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Player", "player"),
            ("PlayerController", "player_controller"),
            ("HTTPClient", "http_client"),
            ("enemy_ai", "enemy_ai"),
            ("Level2Boss", "level2_boss"),
        ],
    )
    def test_snake_name(self, name, expected):
        assert snake_name(name) == expected


class TestIsCopy:
    @pytest.mark.parametrize("t", [I32, F32, DECIMAL, TEXTURE, VECTOR2, NodeHandleType("Node")])
    def test_copy_types(self, t):
        assert is_copy(t)

    @pytest.mark.parametrize("t", [STRING, ANY, BIGINT, SHAPE, array_of(I32), CustomType("S")])
    def test_owned_types(self, t):
        assert not is_copy(t)


class TestLowerer:
    """Tests for memoized lowering."""

    def test_first_lowering_wins(self):
        """Test that a declaration keeps its first lowered name."""
        # Arrange
        lowerer = Lowerer()
        decl = object()

        # Act
        first = lowerer.name(decl, "health", I32)
        second = lowerer.name(decl, "health", TEXTURE)

        # Assert
        assert first == second == "__t_health"
        assert len(lowerer) == 1

    def test_declarations_are_keyed_by_identity(self):
        lowerer = Lowerer()
        a, b = object(), object()
        assert lowerer.name(a, "x", I32) == "__t_x"
        assert lowerer.name(b, "x", TEXTURE) == "x_id"
        assert len(lowerer) == 2
