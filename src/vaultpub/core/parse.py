"""Vault discovery and frontmatter splitting: turns files on disk into raw Documents"""

import logging
import re
from pathlib import Path

from vaultpub.core.models import Document, FolderConfig
from vaultpub.core.utils.hashing import short_id
from vaultpub.core.utils.paths import normalize_path


logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r'^---\s*\n(.*?)\n?---\s*(?:\n|$)', re.DOTALL)
MD_EXTENSIONS = {'.md', '.markdown'}


def split_frontmatter(text: str) -> tuple[str | None, str]:
    """Return (raw YAML text, body); YAML is parsed later so bad metadata only degrades one note."""
    text = text.lstrip('\ufeff')
    m = FRONTMATTER_RE.match(text)
    if m:
        return m.group(1), text[m.end():]
    return None, text


def _excluded(path: Path, exclude: tuple[Path, ...]) -> bool:
    resolved = path.resolve()
    return any(resolved.is_relative_to(e) for e in exclude)


def discover_files(path: Path, exclude: tuple[Path, ...] = ()) -> list[Path]:
    """Return sorted markdown files under path, or [path] if a single file.

    Dot-directories and anything under an excluded directory (e.g. the output dir) are skipped.
    """
    exclude = tuple(e.resolve() for e in exclude)
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    if not path.is_dir():
        return []
    return sorted(
        p for p in path.rglob('*')
        if p.is_file() and p.suffix in MD_EXTENSIONS
        and not any(part.startswith('.') for part in p.relative_to(path).parts)
        and not _excluded(p, exclude)
    )


def make_note_id(folder_id: str, vault_path: str) -> str:
    return short_id(folder_id, vault_path)


def load_document(
    path: Path,
    vault_root: Path,
    folder: FolderConfig,
    relative_path: str,
    is_additional: bool = False,
    ) -> Document:
    """Read a single note; the title is the file stem."""
    raw_frontmatter, body = split_frontmatter(path.read_text(encoding='utf-8'))
    vault_path = path.relative_to(vault_root).as_posix()
    return Document(
        note_id=make_note_id(folder.id, vault_path),
        title=path.stem,
        vault_path=vault_path,
        relative_path=relative_path,
        content=body,
        raw_frontmatter=raw_frontmatter,
        folder_config=folder,
        is_additional=is_additional,
    )


def collect_folder(vault_root: Path, folder: FolderConfig, exclude: tuple[Path, ...] = ()) -> list[Document]:
    """Scan one folder plus its additional files."""
    source = vault_root / normalize_path(folder.vault_folder)
    docs = [
        load_document(p, vault_root, folder, p.relative_to(source).as_posix())
        for p in discover_files(source, exclude)
    ]
    seen = {d.vault_path for d in docs}
    for extra in folder.additional_files:
        path = vault_root / normalize_path(extra)
        if not path.is_file():
            logger.warning("Additional file not found", extra={"folder_id": folder.id, "file": extra})
            continue
        doc = load_document(path, vault_root, folder, path.name, is_additional=True)
        if doc.vault_path in seen:
            continue
        seen.add(doc.vault_path)
        docs.append(doc)
    logger.debug("Collected folder", extra={"folder_id": folder.id, "notes": len(docs)})
    return docs


def collect_documents(
    vault_root: Path,
    folders: list[FolderConfig],
    exclude: tuple[Path, ...] = (),
    ) -> list[Document]:
    """Load every configured folder of the vault, in folder order."""
    if not vault_root.is_dir():
        raise ValueError(f"Vault directory not found: {vault_root}")
    docs = [doc for folder in folders for doc in collect_folder(vault_root, folder, exclude)]
    logger.info("Loaded vault", extra={"vault": str(vault_root), "notes": len(docs), "folders": len(folders)})
    return docs
