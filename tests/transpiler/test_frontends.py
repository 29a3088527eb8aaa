"""Tests for the Pup, TypeScript and C# frontends."""

import pytest

from script2rs.transpiler.ast.nodes import (
    Assignment,
    BinaryOp,
    Call,
    DynamicGet,
    ExprStmt,
    ForEach,
    ForRange,
    Literal,
    LiteralKind,
    MemberAccess,
    Name,
    SelfRef,
)
from script2rs.transpiler.frontends import get_frontend
from script2rs.transpiler.frontends.grammar import decode_string
from script2rs.transpiler.frontends.pup.lexer import TokenKind, tokenize
from script2rs.transpiler.models import FrontendKind, LifecycleTag, ScriptKind
from script2rs.transpiler.normalizer import default_script_name


def _codes(diagnostics):
    return [d.code for d in diagnostics.diagnostics]


class TestPupLexer:
    """Tests for the Pup tokenizer."""

    def test_comments_are_skipped(self):
        # Arrange
        source = "var x = 1 // trailing\n/* block\ncomment */ var y = 2"

        # Act
        tokens, errors = tokenize(source)

        # Assert
        assert not errors
        names = [t.value for t in tokens if t.kind is TokenKind.IDENT]
        assert names == ["x", "y"]

    def test_range_is_not_a_float(self):
        tokens, errors = tokenize("0..10")
        assert not errors
        assert [t.value for t in tokens if t.kind is not TokenKind.EOF] == ["0", "..", "10"]

    def test_string_escapes(self):
        tokens, errors = tokenize(r'"a\tb\"c"')
        assert not errors
        assert tokens[0].kind is TokenKind.STRING
        assert tokens[0].value == 'a\tb"c'

    def test_unknown_escape_is_reported(self):
        """Test that an unknown escape keeps its backslash and is an error."""
        # Act
        tokens, errors = tokenize(r'"a\q"')

        # Assert
        assert tokens[0].value == "a\\q"
        assert len(errors) == 1
        assert "\\q" in errors[0].message


class TestPupFrontend:
    """Tests for parsing Pup scripts."""

    def test_attached_script(self, parse, pup_player):
        """Test the declarations of an attached script."""
        # Act
        script, diagnostics = parse(pup_player, path="scripts/player.pup")

        # Assert
        assert not diagnostics.diagnostics
        assert script.name == "Player"
        assert script.kind is ScriptKind.ATTACHED
        assert script.base_type == "Node2D"
        assert [f.name for f in script.fields] == ["health", "speed"]
        assert script.fields[0].attributes == ["expose"]
        init, take_damage = script.functions
        assert init.lifecycle is LifecycleTag.INIT
        assert take_damage.lifecycle is None
        assert [p.name for p in take_damage.params] == ["amount"]

    def test_script_marker_names_the_script(self, parse):
        script, _ = parse("@script Hero\nextends Sprite2D\n", path="whatever.pup")
        assert script.name == "Hero"
        assert script.base_type == "Sprite2D"

    def test_global_script_defaults_to_node(self, parse):
        script, _ = parse("@global\nvar score: int = 0\n")
        assert script.kind is ScriptKind.GLOBAL
        assert script.base_type == "Node"

    def test_module_has_no_base(self, parse):
        script, _ = parse("@module\nfn double(x: int) -> int {\n    return x * 2\n}\n")
        assert script.kind is ScriptKind.MODULE
        assert script.base_type is None
        assert script.functions[0].lifecycle is None

    def test_missing_base_is_reported(self, parse):
        """Test that a script without `extends` or a kind marker is an error."""
        # Act
        script, diagnostics = parse("var x: int = 1\n")

        # Assert
        assert script is None
        assert _codes(diagnostics) == ["parse-error"]
        assert "kind marker" in diagnostics.diagnostics[0].message

    def test_errors_are_collected_across_declarations(self, parse):
        """Test that the parser recovers and reports every broken declaration."""
        # Arrange
        source = "extends Node\nvar = 1\nfn ok() {}\nconst c: int\n"

        # Act
        script, diagnostics = parse(source)

        # Assert
        assert script is None
        assert _codes(diagnostics) == ["parse-error", "parse-error"]
        assert diagnostics.diagnostics[0].span.line == 2
        assert diagnostics.diagnostics[1].span.line == 4

    def test_statements(self, parse):
        """Test loops, by-name access and compound assignment."""
        # Arrange
        source = (
            "extends Node\n"
            "fn run(items: Array[int]) {\n"
            "    for i in 0..10 {\n"
            "        pass\n"
            "    }\n"
            "    for item in items {\n"
            "        Console.print(item)\n"
            "    }\n"
            "    self::score += 1\n"
            "}\n"
        )

        # Act
        script, diagnostics = parse(source)

        # Assert
        assert not diagnostics.diagnostics
        loop, each, assign = script.functions[0].body
        assert isinstance(loop, ForRange) and loop.var == "i"
        assert isinstance(each, ForEach) and isinstance(each.iterable, Name)
        assert isinstance(assign, Assignment) and assign.op == "+="
        assert isinstance(assign.target, DynamicGet) and assign.target.member == "score"
        assert isinstance(assign.target.value, SelfRef)

    def test_struct(self, parse):
        script, _ = parse("extends Node\nstruct Stats {\n    hp: int = 10,\n    name: string\n}\n")
        (stats,) = script.structs
        assert stats.name == "Stats"
        assert [f.name for f in stats.fields] == ["hp", "name"]
        assert stats.fields[1].value is None


class TestTypeScriptFrontend:
    """Tests for parsing TypeScript scripts."""

    def test_exported_class(self, parse, ts_player):
        # Act
        script, diagnostics = parse(ts_player, FrontendKind.TYPESCRIPT)

        # Assert
        assert not diagnostics.diagnostics
        assert script.name == "Player"
        assert script.base_type == "Node2D"
        assert script.fields[0].attributes == ["expose"]
        assert script.functions[0].lifecycle is LifecycleTag.INIT
        target = script.functions[1].body[0].target
        assert isinstance(target, MemberAccess) and isinstance(target.value, SelfRef)

    def test_counting_loop_becomes_range(self, parse):
        """Test that `for (let i = a; i <= b; i++)` lowers to an exclusive range."""
        # Arrange
        source = (
            "export class Loop extends Node {\n"
            "    run(): void {\n"
            "        for (let i = 0; i <= 9; i++) { }\n"
            "    }\n"
            "}\n"
        )

        # Act
        script, diagnostics = parse(source, FrontendKind.TYPESCRIPT)

        # Assert
        assert not diagnostics.diagnostics
        (loop,) = script.functions[0].body
        assert isinstance(loop, ForRange)
        assert isinstance(loop.end, BinaryOp) and loop.end.op == "+"

    def test_non_counting_loop_is_rejected(self, parse):
        source = (
            "export class Loop extends Node {\n"
            "    run(): void {\n"
            "        for (let i = 0; i < 10; i += 2) { }\n"
            "    }\n"
            "}\n"
        )
        script, diagnostics = parse(source, FrontendKind.TYPESCRIPT)
        assert script is None
        assert "counting loops" in diagnostics.diagnostics[0].message

    def test_syntax_error_has_position(self, parse):
        script, diagnostics = parse("export class {\n", FrontendKind.TYPESCRIPT)
        assert script is None
        (error,) = diagnostics.diagnostics
        assert error.code == "parse-error"
        assert error.span.line == 1


class TestCSharpFrontend:
    """Tests for parsing C# scripts."""

    def test_class_with_base(self, parse, cs_player):
        # Act
        script, diagnostics = parse(cs_player, FrontendKind.CSHARP)

        # Assert
        assert not diagnostics.diagnostics
        assert script.name == "Player"
        assert script.base_type == "Node2D"
        assert script.fields[0].attributes == ["Expose"]
        assert script.functions[0].lifecycle is LifecycleTag.INIT
        assert script.fields[1].value.suffix == "float"

    def test_structs_and_namespace(self, parse):
        # Arrange
        source = (
            "namespace Game {\n"
            "    public struct Stats { public int hp = 3; }\n"
            "    [Global]\n"
            "    public class Score { public int total; }\n"
            "}\n"
        )

        # Act
        script, diagnostics = parse(source, FrontendKind.CSHARP)

        # Assert
        assert not diagnostics.diagnostics
        assert script.name == "Score"
        assert script.kind is ScriptKind.GLOBAL
        assert [s.name for s in script.structs] == ["Stats"]

    def test_foreach_and_call(self, parse):
        source = (
            "public class Walker : Node {\n"
            "    public void Walk(List<int> steps) {\n"
            "        foreach (var step in steps) { Console.WriteLine(step); }\n"
            "    }\n"
            "}\n"
        )
        script, diagnostics = parse(source, FrontendKind.CSHARP)
        assert not diagnostics.diagnostics
        (loop,) = script.functions[0].body
        assert isinstance(loop, ForEach)
        (stmt,) = loop.body
        assert isinstance(stmt, ExprStmt) and isinstance(stmt.value, Call)

    def test_two_scripts_are_rejected(self, parse):
        source = "public class A : Node { }\npublic class B : Node { }\n"
        script, diagnostics = parse(source, FrontendKind.CSHARP)
        assert script is None
        assert "More than one script" in diagnostics.diagnostics[0].message


class TestFrontendHelpers:
    """Tests for frontend selection and naming helpers."""

    @pytest.mark.parametrize(
        "path, expected",
        [("player_ctrl.pup", "PlayerCtrl"), ("enemy-ai.ts", "EnemyAi"), ("", "Script")],
    )
    def test_default_script_name(self, path, expected):
        assert default_script_name(path) == expected

    def test_frontend_from_path(self):
        assert FrontendKind.from_path("a/b/Enemy.cs") is FrontendKind.CSHARP
        with pytest.raises(ValueError):
            FrontendKind.from_path("notes.txt")

    @pytest.mark.parametrize("kind", list(FrontendKind))
    def test_get_frontend(self, kind):
        assert get_frontend(kind).kind is kind

    def test_literal_kinds(self, parse):
        script, _ = parse("extends Node\nvar a = 1\nvar b = 1.5\nvar c = \"x\"\nvar d = true\n")
        kinds = [f.value.kind for f in script.fields]
        assert kinds == [LiteralKind.INT, LiteralKind.FLOAT, LiteralKind.STRING, LiteralKind.BOOL]
        assert all(isinstance(f.value, Literal) for f in script.fields)

    @pytest.mark.parametrize(
        "token, expected",
        [(r'"a\nb"', "a\nb"), (r"'it\'s'", "it's"), (r'"a\q"', "a\\q")],
    )
    def test_decode_string(self, token, expected):
        assert decode_string(token) == expected
