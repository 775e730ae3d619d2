"""Export: per-note markdown with a YAML header and a manifest for incremental publishing"""

import json
import logging
from pathlib import Path

import yaml

from vaultpub.core.models import Document
from vaultpub.core.utils.hashing import sha256


logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"


def output_path(doc: Document, output_dir: Path) -> Path:
    """output_dir / <full_path>.md"""
    return output_dir / f"{doc.routing.full_path.strip('/')}.md"


def check_output_paths(docs: list[Document], output_dir: Path) -> None:
    """Raise ValueError when two notes would be written to the same file."""
    claimed: dict[Path, Document] = {}
    for doc in docs:
        path = output_path(doc, output_dir)
        if (other := claimed.get(path)) is not None:
            logger.error("Output path conflict", extra={
                "path": str(path), "notes": [other.vault_path, doc.vault_path],
            })
            raise ValueError(
                f"Output path conflict: {other.vault_path} and {doc.vault_path} both export to {path}"
            )
        claimed[path] = doc


def build_markdown(doc: Document) -> str:
    """Return the note body with a YAML header (title, slug, route, tags) prepended."""
    header = {
        "title": doc.title,
        "slug": doc.routing.slug,
        "route": doc.routing.full_path,
    }
    if doc.frontmatter.tags:
        header["tags"] = list(doc.frontmatter.tags)
    fm = yaml.dump(header, default_flow_style=False, allow_unicode=True, sort_keys=False)
    return f"---\n{fm}---\n\n{doc.content.lstrip()}"


def build_entry(doc: Document) -> dict:
    """Manifest entry: route, content hash, assets and links of one note."""
    routing = doc.routing
    return {
        "note_id": doc.note_id,
        "vault_path": doc.vault_path,
        "folder_id": doc.folder_config.id,
        "title": doc.title,
        "route": routing.full_path,
        "slug": routing.slug,
        "path": routing.path,
        "route_base": routing.route_base,
        "folder_display_name": routing.folder_display_name,
        "hash": sha256(doc.content),
        "tags": list(doc.frontmatter.tags),
        "assets": [
            {"target": a.target, "kind": a.kind.value, "origin": a.origin.kind.value}
            for a in doc.assets
        ],
        "links": [
            {
                "target": l.target,
                "resolved": l.is_resolved,
                "href": l.href,
                "origin": l.origin.kind.value,
                "property": l.origin.property_path,
            }
            for l in doc.resolved_wikilinks
        ],
        "map_blocks": [b.id for b in doc.map_blocks],
    }


def build_manifest(docs: list[Document]) -> dict:
    """Manifest of every published note, ordered by route."""
    entries = sorted((build_entry(d) for d in docs), key=lambda e: (e["route"], e["vault_path"]))
    return {"count": len(entries), "documents": entries}


def write_doc(doc: Document, output_dir: Path) -> Path:
    """Write a single routed note; returns the markdown path."""
    path = output_path(doc, output_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(build_markdown(doc), encoding='utf-8')
    return path


def write_outputs(docs: list[Document], output_dir: Path) -> tuple[list[tuple[Document, Path]], Path]:
    """Write every note plus the manifest. Returns ((doc, md_path) pairs, manifest_path)."""
    check_output_paths(docs, output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    results = [(doc, write_doc(doc, output_dir)) for doc in docs]
    manifest_path = output_dir / MANIFEST_FILE
    manifest_path.write_text(json.dumps(build_manifest(docs), indent=2, ensure_ascii=False), encoding='utf-8')
    logger.info("Export complete", extra={"notes": len(results), "output_dir": str(output_dir)})
    return results, manifest_path
