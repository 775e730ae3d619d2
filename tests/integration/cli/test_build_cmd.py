"""Integration tests for the build and routes commands (load -> pipeline -> export)"""

import json

import pytest
from typer.testing import CliRunner

from vaultpub.cli.cli import app


runner = CliRunner()


@pytest.fixture(name="vault")
def vault_fixture(tmp_path):
    root = tmp_path / "vault"
    (root / "Guides").mkdir(parents=True)
    (root / "Home.md").write_text("---\ntitle: Home\ntags: [start]\n---\nSee [[Setup#First Steps]].\n")
    (root / "Guides" / "Setup.md").write_text("## First Steps\n\nDo it.\n")
    (root / "Draft.md").write_text("---\npublish: false\n---\nNot yet.\n")
    return root


def test_cli_help():
    """--help lists both commands."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "build" in result.output
    assert "routes" in result.output


def test_build_cmd_writes_notes_and_manifest(tmp_path, vault):
    """build publishes every eligible note plus manifest.json."""
    (tmp_path / "config.yaml").write_text("ignore_rules:\n  - property: publish\n    ignore_if: false\n")
    result = runner.invoke(app, ["build", str(vault), "--out-dir", str(tmp_path / "dist")])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "dist" / "home.md").exists()
    assert (tmp_path / "dist" / "guides" / "setup.md").exists()
    assert not (tmp_path / "dist" / "draft.md").exists()
    manifest = json.loads((tmp_path / "dist" / "manifest.json").read_text())
    home = next(e for e in manifest["documents"] if e["route"] == "/home")
    assert home["links"][0]["href"] == "/guides/setup#first-steps"
    assert home["tags"] == ["start"]
    assert "Published 2 note(s)" in result.output


def test_build_cmd_twice_ignores_previous_output(tmp_path):
    """With the defaults, a rebuild does not ingest the earlier dist/ files."""
    (tmp_path / "Note.md").write_text("text\n")
    first = runner.invoke(app, ["build"])
    second = runner.invoke(app, ["build"])
    assert first.exit_code == 0, first.output
    assert second.exit_code == 0, second.output
    assert "Published 1 note(s)" in second.output


def test_routes_cmd_lists_routes(vault):
    """routes prints 'route <- vault path' per published note."""
    result = runner.invoke(app, ["routes", str(vault)])
    assert result.exit_code == 0, result.output
    assert "/guides/setup <- Guides/Setup.md" in result.output
    assert "/home <- Home.md" in result.output


def test_build_cmd_collision_fails(tmp_path):
    """A flattened folder with colliding names exits 1 with both paths."""
    root = tmp_path / "vault"
    (root / "a").mkdir(parents=True)
    (root / "b").mkdir()
    (root / "a" / "duplicate.md").write_text("one")
    (root / "b" / "duplicate.md").write_text("two")
    (tmp_path / "config.yaml").write_text("folders:\n  - id: flat\n    route_base: /\n    flatten_tree: true\n")

    result = runner.invoke(app, ["build", str(root), "--out-dir", str(tmp_path / "dist")])
    assert result.exit_code == 1
    assert "Error: Slug collision detected" in result.output
    assert "a/duplicate.md" in result.output
    assert "b/duplicate.md" in result.output


def test_build_cmd_invalid_config(tmp_path, vault):
    """An invalid config.yaml is reported and exits 1."""
    (tmp_path / "config.yaml").write_text("folders: [unclosed\n")
    result = runner.invoke(app, ["build", str(vault)])
    assert result.exit_code == 1
    assert "Invalid config.yaml" in result.output


def test_build_cmd_missing_vault(tmp_path):
    """A missing vault directory exits 1."""
    result = runner.invoke(app, ["build", str(tmp_path / "nope")])
    assert result.exit_code == 1
    assert "Vault directory not found" in result.output


def test_build_cmd_output_conflict_fails(tmp_path):
    """Two folders exporting the same route exit 1 naming both notes."""
    root = tmp_path / "vault"
    for name in ("One", "Two"):
        (root / name).mkdir(parents=True)
        (root / name / "guide.md").write_text(f"{name} guide")
    (tmp_path / "config.yaml").write_text(
        "folders:\n"
        "  - id: one\n    vault_folder: One\n    route_base: /\n"
        "  - id: two\n    vault_folder: Two\n    route_base: /\n"
    )
    result = runner.invoke(app, ["build", str(root), "--out-dir", str(tmp_path / "dist")])
    assert result.exit_code == 1
    assert "Error: Output path conflict" in result.output
    assert "One/guide.md" in result.output
    assert "Two/guide.md" in result.output
