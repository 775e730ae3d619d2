"""Cross-reference detection: [[target#subpath|alias]] and [text](note.md) links"""

import logging
import re
from urllib.parse import unquote

from vaultpub.core.detect.strings import iter_strings
from vaultpub.core.models import CONTENT_ORIGIN, Document, Origin, OriginKind, WikilinkKind, WikilinkRef
from vaultpub.core.utils.paths import normalize_path
from vaultpub.core.utils.slug import normalize_key


logger = logging.getLogger(__name__)

WIKILINK_RE = re.compile(r'\[\[([^\]]+)\]\]')
MARKDOWN_LINK_RE = re.compile(r'(?<!!)\[([^\]\n]*)\]\((<[^>\n]+>|[^)\s]+)\)')
SCHEME_RE = re.compile(r'^[a-z][a-z0-9+.-]*:', re.IGNORECASE)
DOCUMENT_EXT_RE = re.compile(r'\.(md|markdown)$', re.IGNORECASE)
FILE_EXT_RE = re.compile(r'\.(png|jpe?g|gif|webp|svg|mp3|wav|flac|ogg|mp4|webm|mkv|mov|pdf)$', re.IGNORECASE)


def infer_kind(path: str) -> WikilinkKind:
    return WikilinkKind.file if FILE_EXT_RE.search(path) else WikilinkKind.note


def _split_target(target: str) -> tuple[str, str | None]:
    path, _, subpath = target.partition('#')
    return path.strip(), subpath.strip() or None


def parse_wikilinks(text: str, origin: Origin = CONTENT_ORIGIN) -> list[WikilinkRef]:
    """Tokens of the [[...]] grammar; ![[...]] embeds belong to asset detection."""
    refs = []
    for m in WIKILINK_RE.finditer(text):
        if m.start() > 0 and text[m.start() - 1] == '!':
            continue
        target, _, alias = m.group(1).partition('|')
        target = target.strip()
        path, subpath = _split_target(target)
        if not path:
            continue
        refs.append(WikilinkRef(
            raw=m.group(0), target=target, path=path, subpath=subpath,
            alias=alias.strip() or None, origin=origin, kind=infer_kind(path),
        ))
    return refs


def parse_markdown_links(text: str, origin: Origin = CONTENT_ORIGIN) -> list[WikilinkRef]:
    """Tokens of the [text](path.md#anchor) grammar that point at vault documents."""
    refs = []
    for m in MARKDOWN_LINK_RE.finditer(text):
        href = m.group(2).strip('<>')
        if SCHEME_RE.match(href) or href.startswith(('#', '//')):
            continue
        target = unquote(href)
        path, subpath = _split_target(target)
        if not DOCUMENT_EXT_RE.search(path):
            continue
        refs.append(WikilinkRef(
            raw=m.group(0), target=target, path=normalize_path(path), subpath=subpath,
            alias=m.group(1).strip() or None, origin=origin, kind=WikilinkKind.note, syntax="markdown",
        ))
    return refs


def dedup_key(ref: WikilinkRef) -> tuple[str, str, str, str]:
    """Origin + normalized path + subpath; identical links from different origins stay apart."""
    return (
        ref.origin.kind.value,
        ref.origin.property_path or "",
        normalize_key(DOCUMENT_EXT_RE.sub('', ref.path)),
        (ref.subpath or "").lower(),
    )


def detect_in_text(text: str, origin: Origin = CONTENT_ORIGIN) -> list[WikilinkRef]:
    return parse_wikilinks(text, origin) + parse_markdown_links(text, origin)


def detect_wikilinks(doc: Document) -> list[WikilinkRef]:
    """All references of a note, content first, then frontmatter strings, deduplicated."""
    refs = detect_in_text(doc.content)
    for block in doc.map_blocks:
        refs += [ref for marker in block.markers if marker.link for ref in parse_wikilinks(f"[[{marker.link}]]")]
    for entry in iter_strings(doc.frontmatter.nested):
        refs += detect_in_text(entry.value, Origin(kind=OriginKind.frontmatter, property_path=entry.path))

    unique: dict[tuple, WikilinkRef] = {}
    for ref in refs:
        unique.setdefault(dedup_key(ref), ref)
    if unique:
        logger.debug("Detected wikilinks", extra={"note_id": doc.note_id, "count": len(unique)})
    return list(unique.values())
