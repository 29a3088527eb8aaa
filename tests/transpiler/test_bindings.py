"""Tests for the binding table."""

import pytest

from script2rs.transpiler.bindings import (
    BindingEntry,
    BindingTable,
    atom,
    place_args,
    template,
)
from script2rs.transpiler.errors import (
    DuplicateRegistrationError,
    RegistryFrozenError,
    TranspilerError,
)
from script2rs.transpiler.models import (
    ApiModule,
    ApiModuleOp,
    EnumVariant,
    NodeFieldRef,
    NodeMethodRef,
    ResourceModule,
    ResourceModuleOp,
)
from script2rs.transpiler.types import ANY, F32, VOID


class TestAtom:
    """Tests for operand parenthesization."""

    @pytest.mark.parametrize(
        "text",
        [
            "x",
            "self.__t_health",
            "api.Time.get_delta()",
            'String::from("a b")',
            "vec![1i32, 2i32]",
            "items[0 as usize]",
            "(a + b)",
        ],
    )
    def test_atomic_text_is_unchanged(self, text):
        assert atom(text) == text

    @pytest.mark.parametrize("text", ["a + b", "-x", "!done", "(a) + (b)", "x as f64"])
    def test_compound_text_is_parenthesized(self, text):
        assert atom(text) == f"({text})"


class TestTemplate:
    """Tests for format-pattern emitters."""

    def test_place_args(self):
        assert place_args("api.Texture.load({0:ref})") == frozenset({0})
        assert place_args("{0:atom}.insert({1}, {2})") == frozenset({0})
        assert place_args("f32::max({0}, {1})") == frozenset()

    def test_ref_and_atom_specs(self):
        # Arrange
        emit = template("{0:atom}.push({1}) + {1:ref} + {recv}")

        # Act
        text = emit("self.id", ["a + b", "c"])

        # Assert
        assert text == "(a + b).push(c) + &c + self.id"

    def test_escaped_braces(self):
        emit = template('api.print(&format!("{{}}", {0}))')
        assert emit(None, ["x"]) == 'api.print(&format!("{}", x))'


class TestBindingTable:
    """Tests for `BindingTable`."""

    def _entry(self, ref=ApiModuleOp(ApiModule.MATH, "sqrt")):
        return BindingEntry(ref, (F32,), F32, template("f32::sqrt({0})"), borrows_api=False)

    def test_duplicate_binding_raises(self):
        table = BindingTable()
        table.add(self._entry())
        with pytest.raises(DuplicateRegistrationError):
            table.add(self._entry())

    def test_frozen_table_rejects_entries(self):
        table = BindingTable()
        table.freeze()
        with pytest.raises(RegistryFrozenError):
            table.add(self._entry())

    def test_argument_count_is_checked(self):
        table = BindingTable()
        table.add(self._entry())
        with pytest.raises(TranspilerError, match="expects 1 arguments, got 2"):
            table.emit(ApiModuleOp(ApiModule.MATH, "sqrt"), None, ["a", "b"])

    def test_unknown_operation_is_a_transpiler_error(self):
        """Test that looking up an unbound or unresolved operation raises a TranspilerError."""
        # Arrange
        table = BindingTable()
        table.add(self._entry())

        # Act / Assert
        with pytest.raises(TranspilerError, match="not resolved"):
            table.get(None)
        with pytest.raises(TranspilerError, match="No binding for Math.cos"):
            table.emit(ApiModuleOp(ApiModule.MATH, "cos"), None, ["a"])

    def test_verify_reports_missing_bindings(self):
        table = BindingTable()
        table.add(self._entry())
        with pytest.raises(TranspilerError, match="Math.cos"):
            table.verify(
                [ApiModuleOp(ApiModule.MATH, "sqrt"), ApiModuleOp(ApiModule.MATH, "cos")]
            )


class TestBuiltinBindings:
    """Tests for the bindings built from the default registries."""

    def test_every_operation_has_a_binding(self, registries, bindings):
        """Test that the binding table covers every registered operation."""
        for registry in registries.all():
            for ref in registry.refs():
                assert ref in bindings, ref

    def test_parameter_types_match_signatures(self, registries, bindings):
        for registry in registries.all():
            for ref in registry.refs():
                assert bindings.get(ref).param_types == registry.signature(ref).param_types

    def test_api_bindings(self, bindings):
        log = ApiModuleOp(ApiModule.CONSOLE, "log")
        assert bindings.get(log).param_types == (ANY,)
        assert bindings.emit(log, None, ["x"]) == 'api.print(&format!("{}", x))'
        assert not bindings.get(ApiModuleOp(ApiModule.MATH, "sqrt")).borrows_api

    def test_mutating_resource_binding(self, bindings):
        push = ResourceModuleOp(ResourceModule.ARRAY, "push")
        entry = bindings.get(push)
        assert entry.mutates_receiver
        assert 0 in entry.place_args
        assert bindings.emit(push, None, ["self.__t_items", "1i32"]) == (
            "self.__t_items.push(1i32)"
        )

    def test_node_field_reader_and_writer(self, bindings):
        """Test that node fields read and write through the runtime closures."""
        # Arrange
        entry = bindings.get(NodeFieldRef("Sprite2D", "texture"))

        # Act
        read = entry.emit("self.id", [])
        write = entry.emit_assign("self.id", "", "=", "__t_tex")

        # Assert
        assert read == "api.read_node(self.id, |n: &Sprite2D| n.texture_id)"
        assert write == "api.mutate_node(self.id, |n: &mut Sprite2D| { n.texture_id = __t_tex; })"

    def test_node_method_binding_uses_concrete_tag(self, bindings):
        translate = NodeMethodRef("Sprite2D", "translate")
        text = bindings.emit(translate, "self.id", ["offset"])
        assert text == "api.mutate_node(self.id, |n: &mut Sprite2D| { n.position += offset; })"

    def test_enum_variant_binding(self, bindings):
        variant = EnumVariant("NodeType", "Camera2D")
        assert bindings.emit(variant, None, []) == "NodeType::Camera2D"
        assert bindings.get(variant).return_type != VOID
