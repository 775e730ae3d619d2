"""Bridge to slow external block renderers (e.g. ```dataview queries) with bounded concurrency"""

import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from vaultpub.core.concurrency import YieldScheduler, process_with_limit
from vaultpub.core.context import CancellationToken
from vaultpub.core.models import Document


logger = logging.getLogger(__name__)

# (docs, cancellation) -> docs; the hook signature the orchestrator accepts
BlockProcessor = Callable[[list[Document], Optional[CancellationToken]], Awaitable[list[Document]]]

# (block source, document) -> replacement markdown
BlockRenderer = Callable[[str, Document], Awaitable[str]]


@dataclass(frozen=True)
class FencedBlock:
    doc_index: int
    start:     int
    end:       int
    source:    str


def fence_pattern(tag: str) -> re.Pattern:
    return re.compile(rf'```{re.escape(tag)}[ \t]*\n(.*?)```', re.DOTALL)


def find_blocks(docs: list[Document], tag: str) -> list[FencedBlock]:
    pattern = fence_pattern(tag)
    return [
        FencedBlock(i, m.start(), m.end(), m.group(1))
        for i, doc in enumerate(docs)
        for m in pattern.finditer(doc.content)
    ]


def make_block_processor(
    render: BlockRenderer,
    tag: str = "dataview",
    concurrency: int = 5,
    scheduler: Optional[YieldScheduler] = None,
    ) -> BlockProcessor:
    """Build a hook that renders every `tag` fence through `render`, at most `concurrency` at once."""

    async def process(docs: list[Document], cancellation: Optional[CancellationToken] = None) -> list[Document]:
        blocks = find_blocks(docs, tag)
        if not blocks:
            return docs
        logger.debug("Rendering external blocks", extra={"tag": tag, "blocks": len(blocks)})

        async def _render(block: FencedBlock, _index: int) -> str:
            return await render(block.source, docs[block.doc_index])

        rendered = await process_with_limit(
            blocks, _render, concurrency=concurrency, scheduler=scheduler, cancellation=cancellation,
        )

        # Splice from the end so earlier offsets stay valid
        contents = [doc.content for doc in docs]
        for block, text in sorted(zip(blocks, rendered), key=lambda p: (p[0].doc_index, -p[0].start)):
            c = contents[block.doc_index]
            contents[block.doc_index] = c[:block.start] + text + c[block.end:]
        return [
            doc if doc.content == content else doc.model_copy(update={"content": content})
            for doc, content in zip(docs, contents)
        ]

    return process
