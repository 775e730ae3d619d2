"""Unit tests for config.py and log.py"""

import logging

import pytest

from vaultpub.config import load_config
from vaultpub.log import KeyValueFormatter, setup_logging


def test_load_config_defaults():
    """Settings defaults apply when no config.yaml, env var, or CLI override exists."""
    settings = load_config()
    assert settings.output_dir == "dist"
    assert settings.parser_config == "commonmark"
    assert [f.id for f in settings.folders] == ["root"]
    assert settings.ignore_rules == []
    assert settings.yield_every_n == 15


def test_load_config_reads_folders_and_rules(tmp_path):
    """Folder policies and ignore rules are read from config.yaml."""
    (tmp_path / "config.yaml").write_text(
        "folders:\n"
        "  - id: blog\n"
        "    vault_folder: Blog\n"
        "    route_base: /blog\n"
        "    flatten_tree: true\n"
        "    additional_files: [Misc/About.md]\n"
        "ignore_rules:\n"
        "  - property: publish\n"
        "    ignore_if: false\n"
        "  - property: status\n"
        "    ignore_values: [draft, 1]\n"
    )
    settings = load_config()
    [folder] = settings.folders
    assert folder.flatten_tree is True
    assert folder.additional_files == ["Misc/About.md"]
    assert settings.ignore_rules[0].ignore_if is False
    assert settings.ignore_rules[1].ignore_values == ["draft", 1]


def test_load_config_env_overrides_config_yaml(tmp_path, monkeypatch):
    """VAULTPUB_OUTPUT_DIR takes precedence over config.yaml."""
    (tmp_path / "config.yaml").write_text("output_dir: site\n")
    monkeypatch.setenv("VAULTPUB_OUTPUT_DIR", "public")
    assert load_config().output_dir == "public"


def test_load_config_env_coerces_numbers(monkeypatch):
    """VAULTPUB_YIELD_EVERY_N is coerced to int."""
    monkeypatch.setenv("VAULTPUB_YIELD_EVERY_N", "3")
    assert load_config().yield_every_n == 3


def test_load_config_env_structured_field(monkeypatch):
    """Structured fields from the environment are parsed as YAML."""
    monkeypatch.setenv("VAULTPUB_IGNORE_RULES", "[{property: publish, ignore_if: false}]")
    assert load_config().ignore_rules[0].property == "publish"


def test_load_config_cli_overrides_env(monkeypatch):
    """A non-None CLI override beats the env var; None overrides are ignored."""
    monkeypatch.setenv("VAULTPUB_OUTPUT_DIR", "public")
    assert load_config(overrides={"output_dir": "cli"}).output_dir == "cli"
    assert load_config(overrides={"output_dir": None}).output_dir == "public"


def test_load_config_invalid_yaml(tmp_path):
    """load_config raises ValueError when config.yaml contains invalid YAML."""
    (tmp_path / "config.yaml").write_text("key: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid config.yaml"):
        load_config()


def test_load_config_rejects_bad_values(tmp_path):
    """Schema violations surface as ValueError."""
    (tmp_path / "config.yaml").write_text("yield_every_n: 0\n")
    with pytest.raises(ValueError):
        load_config()


def test_key_value_formatter_appends_extras():
    """Fields passed through extra are appended as sorted key=value pairs."""
    record = logging.LogRecord("vaultpub.x", logging.INFO, __file__, 1, "Stage complete", (), None)
    record.stage = "routing"
    record.notes = 3
    line = KeyValueFormatter("%(levelname)s %(message)s").format(record)
    assert line == "INFO Stage complete notes=3 stage=routing"


def test_setup_logging_replaces_handler():
    """Repeated setup keeps a single package handler."""
    setup_logging("DEBUG")
    logger = setup_logging("warning")
    owned = [h for h in logger.handlers if isinstance(h.formatter, KeyValueFormatter)]
    assert len(owned) == 1
    assert logger.level == logging.WARNING
    with pytest.raises(ValueError):
        setup_logging("chatty")
