"""Asset detection: ![[embed|modifiers]] tokens in content, frontmatter and map overlays"""

import logging
import re

from vaultpub.core.context import PipelineContext
from vaultpub.core.detect.strings import iter_strings
from vaultpub.core.models import (
    CONTENT_ORIGIN, AssetDisplay, AssetKind, AssetRef, Document, MapBlock, Origin, OriginKind,
)


logger = logging.getLogger(__name__)

EMBED_RE = re.compile(r'!\[\[([^\]]+)\]\]')
WIDTH_RE = re.compile(r'^[0-9]+$')

KIND_BY_EXTENSION = [
    (re.compile(r'\.(png|jpe?g|gif|webp|svg)$'), AssetKind.image),
    (re.compile(r'\.(mp3|wav|flac|ogg)$'),       AssetKind.audio),
    (re.compile(r'\.(mp4|webm|mkv|mov)$'),       AssetKind.video),
    (re.compile(r'\.pdf$'),                      AssetKind.pdf),
]
ALIGNMENTS = {"left": "left", "right": "right", "center": "center", "centre": "center"}


def classify(target: str) -> AssetKind:
    lower = target.lower()
    for pattern, kind in KIND_BY_EXTENSION:
        if pattern.search(lower):
            return kind
    return AssetKind.other


def normalize_target(target: str) -> str:
    """Forward slashes, no leading './' or '/'."""
    t = target.strip().replace('\\', '/')
    t = re.sub(r'^\./+', '', t)
    return t.lstrip('/')


def parse_modifiers(tokens: list[str]) -> AssetDisplay:
    """First alignment keyword, first integer width, everything else a CSS class."""
    alignment, width = None, None
    classes, raw = [], []
    for token in (t.strip() for t in tokens):
        if not token:
            continue
        raw.append(token)
        if alignment is None and token.lower() in ALIGNMENTS:
            alignment = ALIGNMENTS[token.lower()]
        elif width is None and WIDTH_RE.match(token):
            width = int(token)
        else:
            classes.append(token)
    return AssetDisplay(alignment=alignment, width=width, classes=classes, raw_modifiers=raw)


def detect_in_text(text: str, origin: Origin = CONTENT_ORIGIN) -> list[AssetRef]:
    assets = []
    for m in EMBED_RE.finditer(text):
        segments = [s.strip() for s in m.group(1).split('|') if s.strip()]
        if not segments:
            continue
        target = normalize_target(segments[0])
        kind = classify(target)
        if kind is AssetKind.other and '.' not in target:
            continue        # note transclusion, not a binary asset
        assets.append(AssetRef(
            raw=m.group(0), target=target, kind=kind, display=parse_modifiers(segments[1:]), origin=origin,
        ))
    return assets


def detect_in_frontmatter(nested: dict) -> list[AssetRef]:
    return [
        asset
        for entry in iter_strings(nested)
        for asset in detect_in_text(entry.value, Origin(kind=OriginKind.frontmatter, property_path=entry.path))
    ]


def detect_in_map_blocks(blocks: list[MapBlock]) -> list[AssetRef]:
    assets = []
    for block in blocks:
        for overlay in block.image_overlays:
            target = normalize_target(overlay.path)
            if target:
                assets.append(AssetRef(raw=f"[[{overlay.path}]]", target=target, kind=classify(target)))
    return assets


def detect_assets(docs: list[Document], ctx: PipelineContext) -> list[Document]:
    results = []
    total = 0
    for doc in docs:
        ctx.checkpoint()
        assets = (
            detect_in_text(doc.content)
            + detect_in_frontmatter(doc.frontmatter.nested)
            + detect_in_map_blocks(doc.map_blocks)
        )
        total += len(assets)
        results.append(doc.model_copy(update={"assets": assets}))
    logger.debug("Asset detection complete", extra={"notes": len(docs), "assets": total})
    return results
