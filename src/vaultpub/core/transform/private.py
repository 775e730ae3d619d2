"""Private section removal for `^no-publishing` markers

A marker line removes everything from its delimiter up to and including the marker.
The delimiter is found scanning backwards: the nearest horizontal rule wins over the
nearest header; with neither, the section starts at the beginning of the document.
"""

import logging
import re

from vaultpub.core.context import PipelineContext
from vaultpub.core.models import Document


logger = logging.getLogger(__name__)

MARKER_RE = re.compile(r'^\s*\^no-publishing\s*$', re.IGNORECASE)
HEADER_RE = re.compile(r'^(#{1,6})\s+(.+)$')
HR_RE = re.compile(r'^(?:[-*_]\s*){3,}$')
EXCESS_BLANKS_RE = re.compile(r'\n{3,}')


def find_delimiter(lines: list[str], marker_index: int) -> int:
    header_index = -1
    for i in range(marker_index - 1, -1, -1):
        if HR_RE.match(lines[i]):
            return i
        if header_index == -1 and HEADER_RE.match(lines[i]):
            header_index = i
    return max(header_index, 0)


def strip_private(content: str) -> str:
    """Remove every marked section; a document without markers is returned unchanged."""
    lines = content.split('\n')
    ranges = [(find_delimiter(lines, i), i) for i, line in enumerate(lines) if MARKER_RE.match(line)]
    if not ranges:
        return content

    kept: list[str] = []
    cursor = 0
    for start, end in ranges:
        if cursor < start:
            kept.extend(lines[cursor:start])
        cursor = max(cursor, end + 1)
    kept.extend(lines[cursor:])
    return EXCESS_BLANKS_RE.sub('\n\n', '\n'.join(kept))


def strip_private_sections(docs: list[Document], ctx: PipelineContext) -> list[Document]:
    results = []
    for doc in docs:
        ctx.checkpoint()
        content = strip_private(doc.content)
        if content != doc.content:
            logger.debug("Removed private sections", extra={
                "note_id": doc.note_id, "original_length": len(doc.content), "length": len(content),
            })
            doc = doc.model_copy(update={"content": content})
        results.append(doc)
    return results
