"""Frontmatter normalization: raw metadata -> flat, nested and tags views"""

import logging
from typing import Any

import yaml

from vaultpub.core.context import PipelineContext
from vaultpub.core.models import Document, Frontmatter
from vaultpub.core.utils.slug import normalize_property_key


logger = logging.getLogger(__name__)

MAX_DEPTH = 10

EMPTY = Frontmatter()


def _raw_mapping(doc: Document) -> dict[str, Any] | None:
    """Return the raw metadata mapping, parsing YAML text when needed; None if malformed."""
    raw = doc.raw_frontmatter
    if raw is None:
        return dict(doc.frontmatter.flat)
    if isinstance(raw, str):
        if not raw.strip():
            return {}
        try:
            raw = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            logger.warning("Invalid YAML frontmatter, using empty metadata",
                           extra={"note_id": doc.note_id, "vault_path": doc.vault_path, "error": str(e)})
            return None
        if raw is None:
            return {}
    if not isinstance(raw, dict):
        logger.warning("Frontmatter is not a mapping, using empty metadata",
                       extra={"note_id": doc.note_id, "vault_path": doc.vault_path,
                              "type": type(raw).__name__})
        return None
    return raw


def _bounded(value: Any, depth: int, normalize_keys: bool = True) -> Any:
    """Copy a value, optionally normalizing mapping keys; containers at MAX_DEPTH become None.

    Lists and mappings both count as a level, so self-referencing YAML anchors terminate.
    """
    if isinstance(value, (dict, list, tuple)) and depth >= MAX_DEPTH:
        return None
    if isinstance(value, dict):
        return {
            (normalize_property_key(k) if normalize_keys else k): _bounded(v, depth + 1, normalize_keys)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_bounded(v, depth + 1, normalize_keys) for v in value]
    return value


def set_nested(target: dict[str, Any], path: str, value: Any) -> None:
    """Expand a dotted key into target; paths deeper than MAX_DEPTH stay a single flat key."""
    segments = [normalize_property_key(s) for s in str(path).split('.')]
    if len(segments) > MAX_DEPTH:
        logger.warning("Frontmatter path too deep, flattening", extra={"path": path, "depth": len(segments)})
        target[normalize_property_key(path)] = value
        return

    current = target
    for segment in segments[:-1]:
        if not isinstance(current.get(segment), dict):
            current[segment] = {}
        current = current[segment]
    current[segments[-1]] = _bounded(value, len(segments))


def coerce_tags(raw: Any) -> list[str]:
    """Tags from a list of strings or a bare string; any other shape yields []."""
    if isinstance(raw, str):
        candidates = [raw]
    elif isinstance(raw, list) and all(isinstance(t, str) for t in raw):
        candidates = raw
    else:
        return []
    return list(dict.fromkeys(t.strip() for t in candidates if t.strip()))


def normalize(source: dict[str, Any]) -> Frontmatter:
    """Build the flat/nested/tags triple from a raw metadata mapping."""
    flat: dict[str, Any] = {}
    nested: dict[str, Any] = {}
    for key, value in source.items():
        flat[normalize_property_key(key)] = _bounded(value, 1, normalize_keys=False)
        set_nested(nested, key, value)
    return Frontmatter(flat=flat, nested=nested, tags=coerce_tags(flat.get("tags")))


def normalize_frontmatter(docs: list[Document], ctx: PipelineContext) -> list[Document]:
    """Normalize every note's metadata; malformed metadata degrades to empty."""
    results = []
    for doc in docs:
        ctx.checkpoint()
        frontmatter = EMPTY
        try:
            if (source := _raw_mapping(doc)) is not None:
                frontmatter = normalize(source)
        except RecursionError:
            logger.warning("Frontmatter nesting too deep, using empty metadata",
                           extra={"note_id": doc.note_id, "vault_path": doc.vault_path})
        logger.debug("Frontmatter normalized", extra={
            "note_id": doc.note_id, "flat_keys": len(frontmatter.flat), "tags": len(frontmatter.tags),
        })
        results.append(doc.model_copy(update={"frontmatter": frontmatter, "raw_frontmatter": None}))
    return results
