"""Map overlay blocks: parse ```leaflet fences and replace them with placeholders"""

import logging
import re
from typing import Any

from pydantic import ValidationError

from vaultpub.core.context import PipelineContext
from vaultpub.core.models import Document, MapBlock, MapImageOverlay, MapMarker


logger = logging.getLogger(__name__)

MAP_BLOCK_RE = re.compile(r'```leaflet[ \t]*\n(.*?)```', re.DOTALL)
WIKILINK_RE = re.compile(r'\[\[([^\]]+)\]\]')
PLACEHOLDER = '<div class="leaflet-map-placeholder" data-leaflet-map-id="{id}"></div>'

TRUE_WORDS = {"true", "1", "yes"}
FALSE_WORDS = {"false", "0", "no"}

NUMBER_KEYS = {
    "lat": "lat", "long": "long", "lon": "long", "minzoom": "min_zoom", "maxzoom": "max_zoom",
    "defaultzoom": "default_zoom", "scale": "scale",
}
TEXT_KEYS = {"id": "id", "height": "height", "width": "width", "unit": "unit", "tileserver": "tile_server"}


class MapBlockError(ValueError):
    """A fenced block that cannot become a MapBlock."""


def parse_number(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise MapBlockError(f"Invalid number: {value}") from None


def parse_boolean(value: str) -> bool:
    lower = value.strip().lower()
    if lower not in TRUE_WORDS | FALSE_WORDS:
        logger.debug("Unrecognized boolean, treating as false", extra={"value": value})
    return lower in TRUE_WORDS


def parse_marker(value: str) -> MapMarker | None:
    """Parse 'type, lat, long[, description]' with an optional [[link]] anywhere in the line."""
    link_match = WIKILINK_RE.search(value)
    link = link_match.group(1).strip() if link_match else None
    parts = [p.strip() for p in WIKILINK_RE.sub('', value).strip().rstrip(',').split(',')]
    if len(parts) < 3:
        logger.warning("Invalid marker format (need at least type, lat, long)", extra={"value": value})
        return None

    marker_type, lat, long, *rest = parts
    description = None
    if rest and not link:
        description = ",".join(rest).strip() or None
    try:
        return MapMarker(
            type=marker_type or "default",
            lat=parse_number(lat),
            long=parse_number(long),
            link=link,
            description=description,
        )
    except MapBlockError as e:
        logger.warning("Failed to parse marker coordinates", extra={"value": value, "error": str(e)})
        return None


def _apply_scale(fields: dict[str, Any], overlays: list[MapImageOverlay]) -> list[MapImageOverlay]:
    """Centre overlays on (0, 0) using scale as width and a 4:3 height."""
    scale = fields.get("scale")
    if not scale or not overlays:
        return overlays
    half_w, half_h = scale / 2, scale * 0.75 / 2
    return [o.model_copy(update={"top_left": (half_h, -half_w), "bottom_right": (-half_h, half_w)})
            for o in overlays]


def parse_map_block(raw_content: str) -> MapBlock:
    """Parse the key: value mini-language of one block; raises MapBlockError without an id."""
    fields: dict[str, Any] = {}
    markers: list[MapMarker] = []
    overlays: list[MapImageOverlay] = []

    for line in (l.strip() for l in raw_content.split('\n')):
        if not line or line.startswith('#') or ':' not in line:
            continue
        key, value = (part.strip() for part in line.split(':', 1))
        key = key.lower()

        if key in TEXT_KEYS:
            fields[TEXT_KEYS[key]] = value
        elif key in NUMBER_KEYS:
            fields[NUMBER_KEYS[key]] = parse_number(value)
        elif key == "darkmode":
            fields["dark_mode"] = parse_boolean(value)
        elif key == "marker":
            if marker := parse_marker(value):
                markers.append(marker)
        elif key == "image":
            overlays.extend(MapImageOverlay(path=m.strip()) for m in WIKILINK_RE.findall(value))
        else:
            logger.debug("Unknown map block property", extra={"key": key, "value": value})

    if not fields.get("id"):
        raise MapBlockError('Map block must have an "id" property')

    overlays = _apply_scale(fields, overlays)
    if fields.get("lat") is None and fields.get("long") is None and overlays and fields.get("scale"):
        first = overlays[0]
        fields["lat"] = (first.top_left[0] + first.bottom_right[0]) / 2
        fields["long"] = (first.top_left[1] + first.bottom_right[1]) / 2

    try:
        return MapBlock(raw_content=raw_content, markers=markers, image_overlays=overlays, **fields)
    except ValidationError as e:
        raise MapBlockError(str(e)) from e


def extract_map_blocks(content: str, note_id: str = "") -> tuple[str, list[MapBlock]]:
    """Return (content with parsed blocks replaced by placeholders, parsed blocks).

    Blocks that fail to parse are logged and left in the content unchanged.
    """
    blocks: list[MapBlock] = []

    def _replace(m: re.Match) -> str:
        raw = m.group(1).strip()
        try:
            block = parse_map_block(raw)
        except MapBlockError as e:
            logger.warning("Failed to parse map block", extra={"note_id": note_id, "error": str(e)})
            return m.group(0)
        blocks.append(block)
        return PLACEHOLDER.format(id=block.id)

    return MAP_BLOCK_RE.sub(_replace, content), blocks


def detect_map_blocks(docs: list[Document], ctx: PipelineContext) -> list[Document]:
    results = []
    total = 0
    for doc in docs:
        ctx.checkpoint()
        content, blocks = extract_map_blocks(doc.content, doc.note_id)
        if blocks:
            total += len(blocks)
            doc = doc.model_copy(update={"content": content, "map_blocks": blocks})
        results.append(doc)
    logger.debug("Map block detection complete", extra={"notes": len(docs), "blocks": total})
    return results
