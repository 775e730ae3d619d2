"""Root test configuration: environment isolation and note factories"""

import logging
import os
from pathlib import PurePosixPath

import pytest

from vaultpub.core.context import PipelineContext
from vaultpub.core.frontmatter import normalize
from vaultpub.core.models import Document, FolderConfig
from vaultpub.log import LOGGER_NAME, KeyValueFormatter


ROOT_FOLDER = FolderConfig(id="root", vault_folder="", route_base="/")


@pytest.fixture(autouse=True)
def isolate_environment(tmp_path, monkeypatch):
    """Run every test from an empty directory with no VAULTPUB_* variables set."""
    for name in list(os.environ):
        if name.startswith("VAULTPUB_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by setup_logging so no test writes to a stale stream."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in [h for h in logger.handlers if isinstance(h.formatter, KeyValueFormatter)]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture(name="ctx")
def ctx_fixture():
    return PipelineContext()


@pytest.fixture(name="make_doc")
def make_doc_fixture():
    """Factory for Documents with normalized frontmatter; raw metadata is kept for re-normalization."""

    def _make(
        relative_path: str,
        content: str = "",
        meta: dict = None,
        folder: FolderConfig = ROOT_FOLDER,
        title: str = None,
        vault_path: str = None,
        is_additional: bool = False,
        ) -> Document:
        vault_path = vault_path or "/".join(p for p in (folder.vault_folder.strip("/"), relative_path) if p)
        return Document(
            note_id=f"{folder.id}:{vault_path}",
            title=PurePosixPath(relative_path).stem if title is None else title,
            vault_path=vault_path,
            relative_path=relative_path,
            content=content,
            raw_frontmatter=meta,
            frontmatter=normalize(meta or {}),
            folder_config=folder,
            is_additional=is_additional,
        )

    return _make
