"""Per-folder deduplication of notes that share a publication slug

Within each folder, notes are grouped by routing slug:
  - all members the same content length: strict duplicates, keep the first by vault path
  - lengths differ: keep all; the largest (ties by vault path) keeps the slug and the
    others get ' (1)', ' (2)', ... inserted before any extension-like suffix
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from vaultpub.core.context import PipelineContext
from vaultpub.core.models import Document
from vaultpub.core.routing import finalize_links
from vaultpub.core.utils.paths import join_route


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rename:
    note_id:       str
    vault_path:    str
    original_slug: str
    new_slug:      str


@dataclass
class DeduplicationResult:
    retained: list[Document] = field(default_factory=list)
    dropped:  list[Document] = field(default_factory=list)
    renamed:  list[Rename] = field(default_factory=list)


def add_suffix(slug: str, index: int) -> str:
    """'note' -> 'note (1)'; 'note.md' -> 'note (1).md'; '.hidden' -> '.hidden (1)'."""
    suffix = f" ({index})"
    dot = slug.rfind('.')
    if dot <= 0:
        return slug + suffix
    return slug[:dot] + suffix + slug[dot:]


def _sort_key(doc: Document) -> tuple[int, str]:
    return (-len(doc.content), doc.vault_path)


def with_slug(doc: Document, slug: str) -> Document:
    routing = doc.routing
    return doc.model_copy(update={"routing": routing.model_copy(update={
        "slug": slug,
        "full_path": join_route(routing.route_base, routing.path, slug),
    })})


def deduplicate_folder(docs: list[Document]) -> DeduplicationResult:
    result = DeduplicationResult()
    by_slug: dict[str, list[Document]] = defaultdict(list)
    for doc in docs:
        by_slug[doc.routing.slug].append(doc)

    replacements: dict[str, Document | None] = {}
    for slug in sorted(by_slug):
        group = sorted(by_slug[slug], key=_sort_key)
        if len(group) == 1:
            continue
        if len({len(d.content) for d in group}) == 1:
            for dup in group[1:]:
                replacements[dup.note_id] = None
                result.dropped.append(dup)
            continue
        for i, doc in enumerate(group[1:], start=1):
            new_slug = add_suffix(slug, i)
            replacements[doc.note_id] = with_slug(doc, new_slug)
            result.renamed.append(Rename(doc.note_id, doc.vault_path, slug, new_slug))

    for doc in docs:
        if doc.note_id not in replacements:
            result.retained.append(doc)
        elif (renamed := replacements[doc.note_id]) is not None:
            result.retained.append(renamed)
    return result


def deduplicate(docs: list[Document], ctx: PipelineContext) -> list[Document]:
    """Deduplicate each folder independently, then re-patch link hrefs to the final routes."""
    if not docs:
        return docs
    by_folder: dict[str, list[Document]] = defaultdict(list)
    for doc in docs:
        by_folder[doc.folder_config.id].append(doc)

    retained: dict[str, Document] = {}
    for folder_id in sorted(by_folder):
        ctx.checkpoint()
        result = deduplicate_folder(by_folder[folder_id])
        for doc in result.retained:
            retained[doc.note_id] = doc
        for doc in result.dropped:
            logger.warning("Dropped duplicate note", extra={
                "folder_id": folder_id, "vault_path": doc.vault_path, "slug": doc.routing.slug,
            })
        for rename in result.renamed:
            logger.info("Renamed colliding note", extra={
                "folder_id": folder_id, "vault_path": rename.vault_path,
                "from": rename.original_slug, "to": rename.new_slug,
            })

    return finalize_links([retained[d.note_id] for d in docs if d.note_id in retained])
