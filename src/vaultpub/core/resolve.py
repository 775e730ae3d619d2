"""Wikilink resolution against a batch-wide, read-only note lookup"""

import logging
from types import MappingProxyType
from typing import Mapping

from vaultpub.core.context import PipelineContext
from vaultpub.core.detect.wikilinks import detect_wikilinks
from vaultpub.core.models import Document, ResolvedWikilink, WikilinkRef
from vaultpub.core.utils.paths import basename, normalize_path, split_segments, strip_extension
from vaultpub.core.utils.slug import normalize_key, slugify


logger = logging.getLogger(__name__)


def _slug_path(path: str) -> str:
    return '/'.join(s for s in (slugify(seg, fallback="") for seg in split_segments(path)) if s)


def _normalized(keys: list[str]) -> list[str]:
    return list(dict.fromkeys(k for k in (normalize_key(key) for key in keys) if k))


def note_keys(doc: Document) -> list[str]:
    """Every key a note can be reached by, most specific first."""
    keys = []
    for path in (doc.relative_path, doc.vault_path):
        normalized = normalize_path(path)
        without_ext = strip_extension(normalized)
        slug_path = _slug_path(without_ext)
        keys += [
            normalized, without_ext,
            basename(normalized), strip_extension(basename(normalized)),
            slug_path, basename(slug_path),
        ]
    keys.append(slugify(doc.title, fallback=""))
    return _normalized(keys)


def link_keys(target: str) -> list[str]:
    """Candidate keys for a reference path, tried in order."""
    normalized = normalize_path(target)
    without_ext = strip_extension(normalized)
    with_md = normalized if normalized.endswith('.md') else f"{normalized}.md"
    slug_path = _slug_path(without_ext)
    return _normalized([
        normalized, with_md, without_ext,
        basename(normalized), strip_extension(basename(normalized)),
        slug_path, basename(slug_path), slugify(target, fallback=""),
    ])


def vault_path_keys(doc: Document) -> list[str]:
    """Exact vault path, with and without its extension."""
    normalized = normalize_path(doc.vault_path)
    return _normalized([normalized, strip_extension(normalized)])


def build_lookup(docs: list[Document]) -> Mapping[str, Document]:
    """Key -> note; built once per batch.

    Exact vault paths are registered for every note before any other key, so a
    folder-relative path or basename never shadows a note whose vault path matches.
    Within each pass the first registration wins in vault-path order.
    """
    lookup: dict[str, Document] = {}
    ordered = sorted(docs, key=lambda d: d.vault_path)
    for keys_of in (vault_path_keys, note_keys):
        for doc in ordered:
            for key in keys_of(doc):
                lookup.setdefault(key, doc)
    return MappingProxyType(lookup)


def find_target(path: str, lookup: Mapping[str, Document]) -> Document | None:
    for key in link_keys(path):
        if (doc := lookup.get(key)) is not None:
            return doc
    return None


def resolve(ref: WikilinkRef, lookup: Mapping[str, Document]) -> ResolvedWikilink:
    """Tentative resolution: the href points at the target's vault path until routes exist."""
    target = find_target(ref.path, lookup)
    if target is None:
        return ResolvedWikilink(**ref.model_dump())
    href = target.routing.full_path if target.routing else normalize_path(target.relative_path)
    if ref.subpath:
        href = f"{href}#{ref.subpath}"
    return ResolvedWikilink(**ref.model_dump(), is_resolved=True, target_note_id=target.note_id, href=href)


def resolve_document(doc: Document, lookup: Mapping[str, Document]) -> Document:
    return doc.model_copy(update={"resolved_wikilinks": [resolve(ref, lookup) for ref in detect_wikilinks(doc)]})


def _log_summary(docs: list[Document]) -> None:
    links = [link for doc in docs for link in doc.resolved_wikilinks]
    resolved = sum(1 for link in links if link.is_resolved)
    logger.info("Wikilink resolution complete", extra={
        "notes": len(docs), "resolved": resolved, "unresolved": len(links) - resolved,
    })


def resolve_wikilinks(docs: list[Document], ctx: PipelineContext) -> list[Document]:
    lookup = build_lookup(docs)
    results = []
    for doc in docs:
        ctx.checkpoint()
        results.append(resolve_document(doc, lookup))
    _log_summary(results)
    return results


async def resolve_wikilinks_chunked(docs: list[Document], ctx: PipelineContext) -> list[Document]:
    """Like resolve_wikilinks, yielding to the event loop after every yield_every_n notes.

    The lookup is built once over the whole batch before the first chunk.
    """
    lookup = build_lookup(docs)
    size = max(1, ctx.scheduler.yield_every_n)
    results: list[Document] = []
    for start in range(0, len(docs), size):
        ctx.checkpoint()
        results += [resolve_document(doc, lookup) for doc in docs[start:start + size]]
        await ctx.scheduler.maybe_yield()
    _log_summary(results)
    return results
