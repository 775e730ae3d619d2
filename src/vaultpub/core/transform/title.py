"""Title header insertion: guarantee a heading matching the note title"""

import logging
import re
from functools import lru_cache

from markdown_it import MarkdownIt

from vaultpub.core.context import PipelineContext
from vaultpub.core.models import Document


logger = logging.getLogger(__name__)

_INLINE_MARKUP = [
    (re.compile(r'\*\*(.+?)\*\*'), r'\1'),
    (re.compile(r'__(.+?)__'),     r'\1'),
    (re.compile(r'\*(.+?)\*'),     r'\1'),
    (re.compile(r'_(.+?)_'),       r'\1'),
    (re.compile(r'`(.+?)`'),       r'\1'),
]


@lru_cache(maxsize=None)
def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False})


def extract_headers(content: str, preset: str = "commonmark") -> list[tuple[int, str]]:
    """Return (level, text) for every ATX heading; fenced code and setext underlines are ignored."""
    tokens = _make_parser(preset).parse(content)
    headers = []
    for i, tok in enumerate(tokens):
        if tok.type == 'heading_open' and tok.markup.startswith('#'):
            inline = tokens[i + 1]
            headers.append((int(tok.tag[1:]), inline.content.strip()))
    return headers


def normalize_header_text(text: str) -> str:
    """Lowercase and strip bold/italic/code inline markup for comparison."""
    text = text.strip().lower()
    for pattern, repl in _INLINE_MARKUP:
        text = pattern.sub(repl, text)
    return text.strip()


def header_level(headers: list[tuple[int, str]]) -> int:
    """One level above the shallowest existing header; 1 when there are none."""
    if not headers:
        return 1
    return max(1, min(level for level, _ in headers) - 1)


def ensure_header(content: str, title: str, preset: str = "commonmark") -> str:
    """Insert '# title' before the body unless a matching header already exists."""
    if not title or not title.strip():
        return content
    headers = extract_headers(content, preset)
    wanted = normalize_header_text(title)
    if any(normalize_header_text(text) == wanted for _, text in headers):
        return content

    heading = f"{'#' * header_level(headers)} {title.strip()}"
    body = content.lstrip()
    return f"{heading}\n\n{body}" if body else f"{heading}\n"


def ensure_title_header(docs: list[Document], ctx: PipelineContext, preset: str = "commonmark") -> list[Document]:
    results = []
    for doc in docs:
        ctx.checkpoint()
        content = ensure_header(doc.content, doc.title, preset)
        if content != doc.content:
            logger.debug("Inserted title header", extra={"note_id": doc.note_id, "title": doc.title})
            doc = doc.model_copy(update={"content": content})
        results.append(doc)
    return results
