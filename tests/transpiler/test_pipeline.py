"""Tests for the compilation pass."""

import json

import pytest

from script2rs.transpiler import transpile_files
from script2rs.transpiler.models import FrontendKind, HeaderStyle, SourceFile, TranspilerConfig
from script2rs.transpiler.pipeline import (
    IO_ERROR,
    CompilationPass,
    output_name,
    read_sources,
    write_atomic,
)

ENEMY = """\
extends Node2D

var hp: int = 10

fn take_damage() {
    hp -= 1
}
"""

HERO = """\
extends Node2D

fn update() {
    Enemy.take_damage()
}
"""

BROKEN = "extends Node\nfn init() {\n    missing()\n}\n"


@pytest.fixture
def config():
    return TranspilerConfig(header=HeaderStyle.NONE)


class TestOutputName:
    @pytest.mark.parametrize(
        "path, kind, expected",
        [
            ("scripts/PlayerController.cs", FrontendKind.CSHARP, "player_controller_cs.rs"),
            ("enemy-ai.ts", FrontendKind.TYPESCRIPT, "enemy_ai_ts.rs"),
            ("hero.pup", FrontendKind.PUP, "hero_pup.rs"),
        ],
    )
    def test_output_name(self, path, kind, expected):
        assert output_name(SourceFile(path, "", kind)) == expected

    def test_custom_extension(self):
        assert output_name(SourceFile("a.pup", "", FrontendKind.PUP), ".rs.txt") == "a_pup.rs.txt"


class TestWriteAtomic:
    def test_writes_file_without_leftovers(self, tmp_path):
        # Arrange
        target = tmp_path / "out" / "hero_pup.rs"

        # Act
        write_atomic(target, "fn main() {}\n")
        write_atomic(target, "fn other() {}\n")

        # Assert
        assert target.read_text() == "fn other() {}\n"
        assert [p.name for p in target.parent.iterdir()] == ["hero_pup.rs"]


class TestCompilationPass:
    """Tests for `CompilationPass`."""

    def test_broken_file_does_not_block_others(self, registries, bindings, config, tmp_path):
        """Test that each file succeeds or fails on its own."""
        # Arrange
        sources = [
            SourceFile("broken.pup", BROKEN, FrontendKind.PUP),
            SourceFile("enemy.pup", ENEMY, FrontendKind.PUP),
        ]

        # Act
        result = CompilationPass(registries, bindings, config).run(sources, tmp_path)

        # Assert
        broken, enemy = result.files
        assert result.has_errors
        assert not broken.ok and broken.output is None and broken.output_path is None
        assert [d.code for d in broken.diagnostics] == ["unresolved-symbol"]
        assert enemy.ok
        assert enemy.output_path == tmp_path / "enemy_pup.rs"
        assert enemy.output_path.read_text() == enemy.output
        assert not (tmp_path / "broken_pup.rs").exists()

    def test_resolve_errors_reach_the_file_result(self, registries, bindings, config, tmp_path):
        """Test that an unknown API call is reported and produces no output."""
        # Arrange
        loud = "extends Node\nfn init() {\n    Console.shout(1)\n}\n"
        sources = [
            SourceFile("loud.pup", loud, FrontendKind.PUP),
            SourceFile("bad.pup", "extends Node\nfn update(dt: float) {\n}\n", FrontendKind.PUP),
            SourceFile("enemy.pup", ENEMY, FrontendKind.PUP),
        ]

        # Act
        result = CompilationPass(registries, bindings, config).run(sources, tmp_path)

        # Assert
        loud, bad, enemy = result.files
        assert [d.code for d in loud.diagnostics] == ["unresolved-symbol"]
        assert [d.code for d in bad.diagnostics] == ["lifecycle-signature"]
        assert loud.output is None and bad.output is None
        assert enemy.ok
        assert sorted(p.name for p in tmp_path.iterdir()) == ["enemy_pup.rs"]

    def test_script_names_are_shared_across_files(self, registries, bindings, config):
        """Test that a script may call another script of the same pass by name."""
        # Arrange
        sources = [
            SourceFile("hero.pup", HERO, FrontendKind.PUP),
            SourceFile("enemy.pup", ENEMY, FrontendKind.PUP),
        ]

        # Act
        result = CompilationPass(registries, bindings, config).run(sources)

        # Assert
        assert not result.has_errors
        hero = result.outputs["hero.pup"]
        assert 'api.get_script_node("Enemy")' in hero
        assert 'api.call_function(__temp_0, &String::from("take_damage"), &[]);' in hero

    def test_missing_peer_is_unresolved(self, registries, bindings, config):
        result = CompilationPass(registries, bindings, config).run(
            [SourceFile("hero.pup", HERO, FrontendKind.PUP)]
        )
        assert [d.code for d in result.diagnostics] == ["unresolved-symbol"]

    def test_parallel_pass_keeps_input_order(self, registries, bindings, tmp_path):
        # Arrange
        config = TranspilerConfig(jobs=4, header=HeaderStyle.NONE)
        sources = [
            SourceFile(f"script_{i}.pup", ENEMY, FrontendKind.PUP) for i in range(6)
        ]

        # Act
        result = CompilationPass(registries, bindings, config).run(sources, tmp_path)

        # Assert
        assert [r.script_name for r in result.files] == [f"Script{i}" for i in range(6)]
        assert all(r.ok for r in result.files)

    def test_write_outputs_off(self, registries, bindings, tmp_path):
        config = TranspilerConfig(write_outputs=False)
        result = CompilationPass(registries, bindings, config).run(
            [SourceFile("enemy.pup", ENEMY, FrontendKind.PUP)], tmp_path
        )
        assert result.files[0].output is not None
        assert list(tmp_path.iterdir()) == []

    def test_source_maps_are_written_next_to_outputs(self, registries, bindings, tmp_path):
        # Arrange
        config = TranspilerConfig(header=HeaderStyle.NONE, source_maps=True)
        sources = [
            SourceFile("broken.pup", BROKEN, FrontendKind.PUP),
            SourceFile("enemy.pup", ENEMY, FrontendKind.PUP),
        ]

        # Act
        CompilationPass(registries, bindings, config).run(sources, tmp_path)

        # Assert
        assert sorted(p.name for p in tmp_path.iterdir()) == [
            "enemy_pup.rs",
            "enemy_pup.rs.map.json",
        ]
        data = json.loads((tmp_path / "enemy_pup.rs.map.json").read_text())
        assert data["src"] == "enemy.pup"
        assert data["names"]["__t_hp"] == "hp"

    def test_unwritable_output_is_io_error(self, registries, bindings, config, tmp_path):
        """Test that a failed write is recorded against the file."""
        # Arrange
        blocker = tmp_path / "out"
        blocker.write_text("not a directory")

        # Act
        result = CompilationPass(registries, bindings, config).run(
            [SourceFile("enemy.pup", ENEMY, FrontendKind.PUP)], blocker
        )

        # Assert
        (enemy,) = result.files
        assert [d.code for d in enemy.diagnostics] == [IO_ERROR]
        assert not enemy.ok


class TestReadSources:
    def test_unreadable_files_are_recorded(self, tmp_path):
        # Arrange
        good = tmp_path / "enemy.pup"
        good.write_text(ENEMY)
        notes = tmp_path / "notes.txt"
        notes.write_text("hello")
        errors = []

        # Act
        sources = read_sources([good, tmp_path / "gone.pup", notes], errors)

        # Assert
        assert [s.frontend for s in sources] == [FrontendKind.PUP]
        assert [d.code for d in errors] == [IO_ERROR, IO_ERROR]
        assert "gone.pup" in errors[0].file

    def test_transpile_files(self, tmp_path):
        # Arrange
        (tmp_path / "enemy.pup").write_text(ENEMY)
        (tmp_path / "hero.pup").write_text(HERO)
        out = tmp_path / "gen"

        # Act
        result = transpile_files(
            [tmp_path / "enemy.pup", tmp_path / "hero.pup", tmp_path / "gone.ts"], out
        )

        # Assert
        assert [d.code for d in result.read_errors] == [IO_ERROR]
        assert result.has_errors
        assert sorted(p.name for p in out.iterdir()) == ["enemy_pup.rs", "hero_pup.rs"]
