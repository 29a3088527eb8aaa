"""Tests for Rust code generation."""

import pytest

from script2rs.transpiler import transpile
from script2rs.transpiler.diagnostics import Severity
from script2rs.transpiler.models import FrontendKind, HeaderStyle, TranspilerConfig


def _section(rust: str, start: str, end: str) -> str:
    """Text of `rust` between the first `start` and the following `end`."""
    head = rust.index(start)
    return rust[head : rust.index(end, head)]


class TestScriptFile:
    """Tests for the sections of a generated attached script."""

    @pytest.fixture
    def player_rust(self, generate, pup_player):
        rust, _ = generate(pup_player)
        return rust

    def test_script_struct_and_factory(self, player_rust):
        """Test the script struct, its fields and the exported factory."""
        # Assert
        assert "pub struct PlayerScript {\n    id: NodeID,\n    __t_health: i32,\n    __t_speed: f32,\n}" in player_rust
        assert 'pub extern "C" fn player_create_script() -> *mut dyn ScriptObject {' in player_rust
        assert "#[unsafe(no_mangle)]" in player_rust

    def test_lifecycle_impl(self, player_rust):
        body = _section(player_rust, "impl Script for PlayerScript", "impl PlayerScript")
        assert "fn init(&mut self, api: &mut ScriptApi<'_>) {" in body
        assert 'api.print(&format!("{}", String::from("hi")));' in body
        assert "fn update" not in body

    def test_user_method(self, player_rust):
        """Test that a field write inside a method goes through `self`."""
        # Assert
        assert (
            "fn __t_take_damage(&mut self, api: &mut ScriptApi<'_>, __t_amount: i32) {\n"
            "        self.__t_health -= __t_amount;\n"
            "    }"
        ) in player_rust

    def test_apply_exposed(self, player_rust):
        """Test that initializers run first and only exposed fields are overridden."""
        # Act
        body = _section(player_rust, "fn apply_exposed", "fn call_function")

        # Assert
        assert "self.__t_health = 100i32;" in body
        assert "self.__t_speed = 2.5f32;" in body
        assert '"health" =>' in body
        assert "serde_json::from_value::<i32>(val.clone())" in body
        assert '"speed" =>' not in body

    def test_var_accessors(self, player_rust):
        get_var = _section(player_rust, "fn get_var", "fn set_var")
        assert '"health" => Some(json!(self.__t_health)),' in get_var
        assert '"speed" => Some(json!(self.__t_speed)),' in get_var
        assert "_ => None," in get_var

    def test_call_function_dispatch(self, player_rust):
        body = _section(player_rust, "fn call_function", "fn script_flags")
        assert '"take_damage" =>' in body
        assert "let __t_amount: i32 = serde_json::from_value::<i32>(params.get(0)" in body
        assert "self.__t_take_damage(api, __t_amount);" in body
        assert '"init"' not in body

    def test_script_flags(self, generate):
        source = "extends Node\nfn init() {\n}\nfn fixed_update() {\n}\n"
        rust, _ = generate(source)
        assert "fn script_flags(&self) -> u8 {\n        5\n    }" in rust

    def test_generation_is_deterministic(self, generate, pup_player):
        first, _ = generate(pup_player)
        second, _ = generate(pup_player)
        assert first == second


class TestFrontendsAgree:
    """Tests that equivalent scripts in every frontend generate the same code."""

    @pytest.mark.parametrize(
        "kind, fixture",
        [
            (FrontendKind.PUP, "pup_player"),
            (FrontendKind.TYPESCRIPT, "ts_player"),
            (FrontendKind.CSHARP, "cs_player"),
        ],
    )
    def test_same_output_lines(self, request, generate, kind, fixture):
        """Test the shared output of the three player scripts."""
        # Arrange
        source = request.getfixturevalue(fixture)

        # Act
        rust, diagnostics = generate(source, kind)

        # Assert
        assert not diagnostics.diagnostics
        assert 'api.print(&format!("{}", String::from("hi")));' in rust
        assert "pub struct PlayerScript {" in rust
        assert "self.__t_health -= __t_amount;" in rust
        assert "self.__t_speed = 2.5f32;" in rust


class TestExpressions:
    """Tests for expression-level output inside function bodies."""

    def test_nested_runtime_call_is_hoisted(self, generate):
        """Test that a runtime call nested in another gets a temporary."""
        # Arrange
        source = "extends Node\nfn init() {\n    Console.print(Time.get_delta())\n}\n"

        # Act
        rust, diagnostics = generate(source)

        # Assert
        assert (
            "let __temp_0: f32 = api.Time.get_delta();\n"
            '        api.print(&format!("{}", __temp_0));'
        ) in rust
        (note,) = diagnostics.diagnostics
        assert note.severity is Severity.NOTE
        assert note.code == "composition"

    def test_temporaries_restart_per_function(self, generate):
        # Arrange
        source = (
            "extends Node\n"
            "fn init() {\n"
            "    Console.print(Time.get_delta())\n"
            "    Console.print(Time.get_delta())\n"
            "}\n"
            "fn update() {\n"
            "    Console.print(Time.get_delta())\n"
            "}\n"
        )

        # Act
        rust, _ = generate(source)

        # Assert
        assert rust.count("let __temp_0: f32") == 2
        assert rust.count("let __temp_1: f32") == 1
        assert "__temp_2" not in rust

    def test_temporaries_keep_evaluation_order(self, generate):
        """Test that the first argument's temporary is declared before the second's."""
        # Arrange
        source = (
            "extends Node\n"
            "fn stamp(dt: float, ms: uint_64) {\n"
            "}\n"
            "fn init() {\n"
            "    stamp(Time.get_delta(), Time.get_unix_time_msec())\n"
            "}\n"
        )

        # Act
        rust, _ = generate(source)

        # Assert
        first = rust.index("let __temp_0: f32 = api.Time.get_delta();")
        second = rust.index("let __temp_1: u64 = api.Time.get_unix_time_msec();")
        assert first < second < rust.index("self.__t_stamp(api, __temp_0, __temp_1);")

    def test_string_concat_passed_to_print(self, generate):
        """Test that a concatenation flowing into an `any` parameter becomes one `format!`."""
        rust, _ = generate('extends Node\nfn init() {\n    Console.print("a" + "b")\n}\n')
        assert 'format!("{}{}", String::from("a"), String::from("b"))' in rust

    def test_string_concat_with_field(self, generate):
        # Arrange
        source = (
            "export class Player extends Node2D {\n"
            "    health: int = 100;\n"
            "\n"
            "    init(): void {\n"
            '        console.log("hp " + this.health);\n'
            "    }\n"
            "}\n"
        )

        # Act
        rust, _ = generate(source, FrontendKind.TYPESCRIPT)

        # Assert
        assert 'format!("{}{}", String::from("hp "), self.__t_health)' in rust

    def test_while_with_hoisted_condition(self, generate):
        """Test that a condition needing temporaries is re-evaluated inside `loop`."""
        # Arrange
        source = (
            "extends Node\n"
            "fn waiting(dt: float) -> bool {\n"
            "    return dt > 0.5\n"
            "}\n"
            "fn update() {\n"
            "    while waiting(Time.get_delta()) {\n"
            '        Console.print("tick")\n'
            "    }\n"
            "}\n"
        )

        # Act
        rust, _ = generate(source)

        # Assert
        body = _section(rust, "fn update", "impl PlayerScript")
        assert "while" not in body
        assert (
            "        loop {\n"
            "            let __temp_0: f32 = api.Time.get_delta();\n"
            "            if !"
        ) in body
        assert "self.__t_waiting(api, __temp_0)" in body
        assert "                break;\n            }\n" in body

    def test_else_if_with_hoisted_condition(self, generate):
        """Test that temporaries of an `else if` condition live in a nested else block."""
        # Arrange
        source = (
            "extends Node\n"
            "fn waiting(dt: float) -> bool {\n"
            "    return dt > 0.5\n"
            "}\n"
            "fn update() {\n"
            "    var n: int = 0\n"
            "    if n > 1 {\n"
            "        n = 1\n"
            "    } else if waiting(Time.get_delta()) {\n"
            "        n = 2\n"
            "    } else {\n"
            "        n = 3\n"
            "    }\n"
            "}\n"
        )

        # Act
        rust, _ = generate(source)

        # Assert
        assert "else if" not in rust
        assert (
            "        } else {\n"
            "            let __temp_0: f32 = api.Time.get_delta();\n"
            "            if self.__t_waiting(api, __temp_0) {\n"
            "                __t_n = 2i32;\n"
            "            } else {\n"
            "                __t_n = 3i32;\n"
            "            }\n"
            "        }\n"
        ) in rust

    def test_boxing_into_any(self, generate):
        rust, _ = generate("extends Node\nfn init() {\n    var v: any = 5\n}\n")
        assert "let __t_v: Value = json!(5i32);" in rust

    def test_widening_cast(self, generate):
        rust, _ = generate("extends Node\nfn f(a: int) -> int_64 {\n    return a\n}\n")
        assert "fn __t_f(&mut self, api: &mut ScriptApi<'_>, __t_a: i32) -> i64 {" in rust
        assert "return (__t_a as i64);" in rust

    def test_mutated_local_is_mut(self, generate):
        source = "extends Node\nfn init() {\n    var n: int = 1\n    n += 2\n}\n"
        rust, _ = generate(source)
        assert "let mut __t_n: i32 = 1i32;" in rust
        assert "__t_n += 2i32;" in rust

    def test_node_field_write(self, generate):
        """Test that a write below a node field goes through `mutate_node`."""
        rust, _ = generate("extends Node2D\nfn update() {\n    position.x += 1.0\n}\n")
        assert (
            "api.mutate_node(self.id, |n: &mut Node2D| { n.position.x += 1.0f32; });"
        ) in rust

    def test_node_field_read(self, generate):
        rust, _ = generate("extends Node2D\nfn update() {\n    var r: float = rotation\n}\n")
        assert "let __t_r: f32 = api.read_node(self.id, |n: &Node2D| n.rotation);" in rust

    def test_resource_field(self, generate):
        """Test that a handle-typed field is suffixed and loaded in apply_exposed."""
        # Arrange
        source = 'extends Sprite2D\nvar tex: Texture = Texture.load("a.png")\n'

        # Act
        rust, _ = generate(source)

        # Assert
        assert "    tex_id: TextureID," in rust
        assert 'self.tex_id = api.Texture.load(&String::from("a.png"));' in rust

    def test_cross_script_call(self, generate):
        # Act
        rust, _ = generate(
            "extends Node\nfn init() {\n    Enemy.take_damage()\n}\n", script_names=("Enemy",)
        )

        # Assert
        assert 'let __temp_0: NodeID = api.get_script_node("Enemy");' in rust
        assert 'api.call_function(__temp_0, &String::from("take_damage"), &[]);' in rust

    def test_struct_initializer_cannot_call_runtime(self, generate):
        source = "extends Node\nstruct Timing {\n    t: float = Time.get_delta()\n}\n"
        _, diagnostics = generate(source)
        assert diagnostics.has_errors
        assert [d.code for d in diagnostics.diagnostics] == ["composition"]


class TestModuleScript:
    """Tests for module scripts."""

    def test_module_becomes_pub_mod(self, generate):
        # Arrange
        source = (
            "@module\n"
            "const factor: int = 2\n"
            "fn double(x: int) -> int {\n"
            "    return x * factor\n"
            "}\n"
        )

        # Act
        rust, _ = generate(source)

        # Assert
        assert "pub mod __t_player {" in rust
        assert "pub fn __t_factor(api: &mut ScriptApi<'_>) -> i32 {" in rust
        assert "pub fn __t_double(api: &mut ScriptApi<'_>, __t_x: i32) -> i32 {" in rust
        assert "return __t_x * __t_factor(api);" in rust
        assert "impl Script" not in rust


class TestTranspile:
    """Tests for the single-source entry point."""

    def test_errors_produce_no_output(self):
        result = transpile("extends Node\nfn update(dt: float) {\n}\n", "pup", "bad.pup")
        assert not result.ok
        assert result.output is None
        assert [d.code for d in result.diagnostics] == ["lifecycle-signature"]

    def test_plain_header(self, pup_player):
        # Act
        result = transpile(pup_player, FrontendKind.PUP, "scripts/player.pup")

        # Assert
        assert result.ok
        lines = result.output.splitlines()
        assert lines[0] == "// Generated by script2rs. Do not edit."
        assert lines[1] == "// Source: player.pup"
        assert "Generated at" not in result.output

    def test_timestamped_header(self, pup_player):
        config = TranspilerConfig(header=HeaderStyle.TIMESTAMPED)
        result = transpile(pup_player, "pup", "player.pup", config)
        assert result.output.splitlines()[2].startswith("// Generated at: ")

    def test_no_header(self, pup_player):
        config = TranspilerConfig(header=HeaderStyle.NONE)
        result = transpile(pup_player, "pup", "player.pup", config)
        assert result.output.startswith("#![allow(improper_ctypes_definitions)]")
