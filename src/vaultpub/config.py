"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from vaultpub.core.models import FolderConfig, IgnoreRule


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "VAULTPUB_"


def _default_folders() -> list[FolderConfig]:
    return [FolderConfig(id="root", vault_folder="", route_base="/")]


class Settings(BaseModel):
    vault_dir:         str = Field(default=".",          description="Vault root directory")
    output_dir:        str = Field(default="dist",       description="Directory for exported notes + manifest")
    parser_config:     str = Field(default="commonmark", description="MarkdownIt parser preset name")
    folders:           list[FolderConfig] = Field(default_factory=_default_folders, min_length=1)
    ignore_rules:      list[IgnoreRule] = Field(default_factory=list)
    yield_every_n:     int = Field(default=15, ge=1, description="Operations between cooperative yields")
    yield_every_ms:    float = Field(default=30, ge=0, description="Milliseconds between cooperative yields")
    log_level:         str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then VAULTPUB_<FIELD> env vars, then non-None CLI overrides.

    Structured fields (folders, ignore_rules) read from the environment are parsed as YAML.
    """
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            if name in ("folders", "ignore_rules"):
                try:
                    val = yaml.safe_load(val)
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid {ENV_PREFIX}{name.upper()}: {e}") from e
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
