"""Tests for name resolution and type checking."""

import pytest

from script2rs.transpiler.ast.nodes import Call, DynamicGet, ExprStmt
from script2rs.transpiler.models import (
    FrontendKind,
    NodeFieldRef,
    NodeMethodRef,
    ResourceModule,
    ResourceModuleOp,
)
from script2rs.transpiler.resolver import SymbolKind
from script2rs.transpiler.types import (
    ANY,
    F32,
    I32,
    I64,
    ContainerKind,
    ContainerType,
    NodeHandleType,
    ScriptHandleType,
)


def _codes(diagnostics):
    return [d.code for d in diagnostics.diagnostics]


def _body(resolved, index: int = 0):
    return resolved.script.functions[index].body


class TestNumericTypes:
    """Tests for implicit widening and numeric compatibility."""

    def test_widening_records_cast(self, resolve):
        """Test that `int` flowing into `int_64` is widened with an explicit cast."""
        # Arrange
        source = "extends Node\nfn f(a: int) {\n    var b: int_64 = a\n}\n"

        # Act
        resolved, diagnostics = resolve(source)

        # Assert
        assert not diagnostics.diagnostics
        (decl,) = _body(resolved)
        assert decl.resolved_type == I64
        assert decl.value.type == I32
        assert decl.value.cast_to == I64

    def test_literal_adopts_expected_type(self, resolve):
        resolved, diagnostics = resolve("extends Node\nvar speed: float = 3\n")
        assert not diagnostics.diagnostics
        value = resolved.script.fields[0].value
        assert value.type == F32
        assert value.cast_to is None

    @pytest.mark.parametrize(
        "declaration",
        ["var c: int_8 = 300", "var c: uint_8 = 256", "var c: int_8 = -129", "var c = 3000000000"],
    )
    def test_literal_out_of_range(self, resolve, declaration):
        """Test that an integer literal must fit the type it adopts."""
        # Arrange
        source = f"extends Node\nfn f() {{\n    {declaration}\n}}\n"

        # Act
        _, diagnostics = resolve(source)

        # Assert
        assert _codes(diagnostics) == ["type-mismatch"]
        assert "integer literal" in diagnostics.diagnostics[0].message

    @pytest.mark.parametrize(
        "declaration", ["var c: int_8 = -128", "var c: uint_8 = 255", "var c: int_64 = 3000000000"]
    )
    def test_literal_at_type_bounds(self, resolve, declaration):
        _, diagnostics = resolve(f"extends Node\nfn f() {{\n    {declaration}\n}}\n")
        assert not diagnostics.diagnostics

    def test_narrowing_is_rejected(self, resolve):
        source = "extends Node\nfn f(a: int_64) {\n    var b: int = a\n}\n"
        _, diagnostics = resolve(source)
        assert _codes(diagnostics) == ["type-mismatch"]

    def test_decimal_and_big_do_not_mix(self, resolve):
        """Test that Decimal and BigInt never convert implicitly."""
        # Arrange
        source = (
            "extends Node\n"
            "fn f() {\n"
            "    var d: decimal = 1.5\n"
            "    var b: big = 2\n"
            "    var c = d + b\n"
            "}\n"
        )

        # Act
        _, diagnostics = resolve(source)

        # Assert
        assert _codes(diagnostics) == ["type-mismatch"]
        assert diagnostics.diagnostics[0].span.line == 5

    def test_explicit_cast_between_decimal_and_big(self, resolve):
        source = (
            "extends Node\n"
            "fn f(d: decimal) -> big {\n"
            "    return d as big\n"
            "}\n"
        )
        _, diagnostics = resolve(source)
        assert not diagnostics.diagnostics


class TestAnyAndVoid:
    """Tests for dynamic values and void results."""

    def test_value_boxed_into_any(self, resolve):
        resolved, diagnostics = resolve("extends Node\nfn f() {\n    var v: any = 5\n}\n")
        assert not diagnostics.diagnostics
        (decl,) = _body(resolved)
        assert decl.value.type == I32
        assert decl.value.cast_to == ANY

    def test_void_result_used_as_value(self, resolve):
        """Test that a void call cannot initialize a typed variable."""
        # Arrange
        source = "extends Node\nfn g() {\n}\nfn f() {\n    var x: int = g()\n}\n"

        # Act
        _, diagnostics = resolve(source)

        # Assert
        assert _codes(diagnostics) == ["type-mismatch"]
        assert "void" in diagnostics.diagnostics[0].message

    def test_return_value_from_void_function(self, resolve):
        _, diagnostics = resolve("extends Node\nfn f() {\n    return 1\n}\n")
        assert _codes(diagnostics) == ["type-mismatch"]


class TestDeclarations:
    """Tests for lifecycle, expose and assignment rules."""

    def test_lifecycle_with_parameter(self, resolve):
        _, diagnostics = resolve("extends Node\nfn update(dt: float) {\n}\n")
        assert _codes(diagnostics) == ["lifecycle-signature"]

    def test_lifecycle_with_return_type(self, resolve):
        _, diagnostics = resolve("extends Node\nfn init() -> int {\n    return 1\n}\n")
        assert _codes(diagnostics) == ["lifecycle-signature"]

    def test_lifecycle_names_are_per_frontend(self, resolve):
        """Test that `Update` is an ordinary method in Pup but a lifecycle method in C#."""
        # Arrange
        cs_source = "public class A : Node { public void Update(int x) { } }"

        # Act
        _, pup_diagnostics = resolve("extends Node\nfn Update(x: int) {\n}\n")
        _, cs_diagnostics = resolve(cs_source, FrontendKind.CSHARP)

        # Assert
        assert not pup_diagnostics.diagnostics
        assert _codes(cs_diagnostics) == ["lifecycle-signature"]

    def test_expose_in_global_script(self, resolve):
        _, diagnostics = resolve("@global\n@expose\nvar speed: float = 1.0\n")
        assert _codes(diagnostics) == ["invalid-expose"]

    def test_expose_on_constant(self, resolve):
        _, diagnostics = resolve("extends Node\n@expose\nconst limit: int = 3\n")
        assert _codes(diagnostics) == ["invalid-expose"]

    def test_expose_on_function(self, resolve):
        _, diagnostics = resolve("extends Node\n@expose\nfn f() {\n}\n")
        assert _codes(diagnostics) == ["invalid-expose"]

    def test_assign_to_constant(self, resolve):
        source = "extends Node\nconst limit: int = 3\nfn f() {\n    limit = 4\n}\n"
        _, diagnostics = resolve(source)
        assert _codes(diagnostics) == ["type-mismatch"]
        assert "constant 'limit'" in diagnostics.diagnostics[0].message

    def test_assigned_locals_are_marked_mutated(self, resolve):
        source = "extends Node\nfn f() {\n    var x: int = 1\n    var y: int = 2\n    x += y\n}\n"
        resolved, _ = resolve(source)
        x, y, _ = _body(resolved)
        assert x.symbol.mutated
        assert not y.symbol.mutated

    def test_break_outside_loop(self, resolve):
        _, diagnostics = resolve("extends Node\nfn f() {\n    break\n}\n")
        assert _codes(diagnostics) == ["parse-error"]

    def test_every_error_is_reported(self, resolve):
        """Test that resolution continues past the first error."""
        # Arrange
        source = (
            "extends Node\n"
            "fn f() {\n"
            '    var a: int = "x"\n'
            "    var b: bool = 1\n"
            "    missing()\n"
            "}\n"
        )

        # Act
        _, diagnostics = resolve(source)

        # Assert
        assert _codes(diagnostics) == ["type-mismatch", "type-mismatch", "unresolved-symbol"]
        assert [d.span.line for d in diagnostics.diagnostics] == [3, 4, 5]


class TestMembers:
    """Tests for node members, resources and cross-script handles."""

    def test_unknown_base_type(self, resolve):
        _, diagnostics = resolve("extends Sprite9D\n")
        assert _codes(diagnostics) == ["unresolved-symbol"]

    def test_implicit_node_field(self, resolve):
        """Test that bare names fall back to fields of the attached node."""
        resolved, diagnostics = resolve("extends Node2D\nfn f() {\n    rotation = 1.5\n}\n")
        assert not diagnostics.diagnostics
        (assign,) = _body(resolved)
        assert assign.target.ref == NodeFieldRef("Node2D", "rotation")
        assert assign.value.type == F32

    def test_inherited_field_uses_concrete_tag(self, resolve):
        resolved, _ = resolve("extends Sprite2D\nfn f() {\n    z_index = 2\n}\n")
        (assign,) = _body(resolved)
        assert assign.target.ref == NodeFieldRef("Sprite2D", "z_index")

    def test_node_method_call_on_handle(self, resolve):
        source = (
            "extends Node\n"
            "fn f() {\n"
            '    var cam: Camera2D = get_node("cam") as Camera2D\n'
            "    cam.zoom = 2.0\n"
            "}\n"
        )
        resolved, diagnostics = resolve(source)
        assert not diagnostics.diagnostics
        decl, assign = _body(resolved)
        assert decl.resolved_type == NodeHandleType("Camera2D")
        assert decl.value.value.ref == NodeMethodRef("Node", "get_node")
        assert assign.target.ref == NodeFieldRef("Camera2D", "zoom")

    def test_mutating_resource_call(self, resolve):
        """Test that `items.push(x)` resolves to the array op and marks `items` written."""
        # Arrange
        source = (
            "extends Node\n"
            "fn f() {\n"
            "    var items: Array[int] = []\n"
            "    items.push(1)\n"
            "}\n"
        )

        # Act
        resolved, diagnostics = resolve(source)

        # Assert
        assert not diagnostics.diagnostics
        decl, stmt = _body(resolved)
        assert decl.resolved_type == ContainerType(ContainerKind.ARRAY, (I32,))
        assert stmt.value.ref == ResourceModuleOp(ResourceModule.ARRAY, "push")
        assert len(stmt.value.bound_args) == 2
        assert decl.symbol.mutated

    def test_property_style_length(self, resolve):
        source = (
            "public class A : Node {\n"
            "    public int Count(List<int> items) { return items.Count; }\n"
            "}\n"
        )
        resolved, diagnostics = resolve(source, FrontendKind.CSHARP)
        assert not diagnostics.diagnostics
        (ret,) = _body(resolved)
        assert ret.value.ref == ResourceModuleOp(ResourceModule.ARRAY, "len")

    def test_unknown_module_member(self, resolve):
        _, diagnostics = resolve("extends Node\nfn f() {\n    Console.shout(1)\n}\n")
        assert _codes(diagnostics) == ["unresolved-symbol"]
        assert "Console.shout" in diagnostics.diagnostics[0].message

    def test_script_handle(self, resolve):
        """Test by-name access to another script of the same pass."""
        # Arrange
        source = (
            "extends Node\n"
            "fn f() {\n"
            "    var hp = Enemy::hp\n"
            "    Enemy.hit()\n"
            "}\n"
        )

        # Act
        resolved, diagnostics = resolve(source, script_names=("Enemy",))

        # Assert
        assert not diagnostics.diagnostics
        decl, stmt = _body(resolved)
        assert isinstance(decl.value, DynamicGet)
        assert decl.value.value.type == ScriptHandleType("Enemy")
        assert decl.resolved_type == ANY
        assert isinstance(stmt, ExprStmt) and isinstance(stmt.value, Call)
        assert stmt.value.ref == NodeMethodRef("Node", "call")

    def test_unknown_script_is_unresolved(self, resolve):
        _, diagnostics = resolve("extends Node\nfn f() {\n    Enemy.hit()\n}\n")
        assert _codes(diagnostics) == ["unresolved-symbol"]

    @pytest.mark.parametrize(
        "kind, source",
        [
            (FrontendKind.PUP, "extends Node\nvar t: NodeType = NodeType.Sprite2D\n"),
            (
                FrontendKind.TYPESCRIPT,
                "export class A extends Node { t: NodeType = NodeType.Sprite2D; }",
            ),
        ],
    )
    def test_enum_variant(self, resolve, kind, source):
        resolved, diagnostics = resolve(source, kind)
        assert not diagnostics.diagnostics
        assert str(resolved.script.fields[0].value.ref) == "NodeType::Sprite2D"

    def test_fields_are_symbols(self, resolve, pup_player):
        resolved, _ = resolve(pup_player)
        assert resolved.base_tag == "Node2D"
        assert resolved.fields["health"].kind is SymbolKind.FIELD
        assert resolved.fields["take_damage"].kind is SymbolKind.FUNCTION
