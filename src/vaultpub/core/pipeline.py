"""Pipeline orchestration: eleven ordered stages over one immutable batch of notes"""

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from typing import Awaitable, Callable, Optional, Union

from vaultpub.core.context import PipelineContext
from vaultpub.core.dedup import deduplicate
from vaultpub.core.detect.assets import detect_assets
from vaultpub.core.eligibility import evaluate_ignore_rules, filter_publishable
from vaultpub.core.errors import PipelineCancelledError
from vaultpub.core.frontmatter import normalize_frontmatter
from vaultpub.core.models import Document, IgnoreRule
from vaultpub.core.resolve import resolve_wikilinks_chunked
from vaultpub.core.routing import compute_routing
from vaultpub.core.transform.external import BlockProcessor
from vaultpub.core.transform.inline import render_inline_expressions
from vaultpub.core.transform.mapblocks import detect_map_blocks
from vaultpub.core.transform.private import strip_private_sections
from vaultpub.core.transform.title import ensure_title_header


logger = logging.getLogger(__name__)

Stage = Callable[[list[Document], PipelineContext], Union[list[Document], Awaitable[list[Document]]]]


@dataclass(frozen=True)
class StageSpec:
    name:         str
    run:          Stage
    per_document: bool = True       # chunked, with a cooperative yield after each chunk
    is_async:     bool = False


def build_stages(
    ignore_rules: list[IgnoreRule],
    block_processor: Optional[BlockProcessor] = None,
    parser_config: str = "commonmark",
    ) -> list[StageSpec]:
    """Stages in execution order; the external block hook is left out when none is given."""
    def _eligibility(docs: list[Document], ctx: PipelineContext) -> list[Document]:
        return filter_publishable(evaluate_ignore_rules(docs, ctx, ignore_rules))

    async def _external(docs: list[Document], ctx: PipelineContext) -> list[Document]:
        return list(await block_processor(docs, ctx.cancellation))

    stages = [
        StageSpec("normalize-frontmatter", normalize_frontmatter),
        StageSpec("evaluate-ignore-rules", _eligibility),
        StageSpec("inline-expressions", render_inline_expressions),
    ]
    if block_processor is not None:
        stages.append(StageSpec("external-blocks", _external, per_document=False, is_async=True))
    else:
        logger.debug("No external block processor configured, skipping")
    stages += [
        StageSpec("map-blocks", detect_map_blocks),
        StageSpec("title-header", partial(ensure_title_header, preset=parser_config)),
        StageSpec("private-sections", strip_private_sections),
        StageSpec("assets", detect_assets),
        StageSpec("wikilinks", resolve_wikilinks_chunked, per_document=False, is_async=True),
        StageSpec("routing", compute_routing, per_document=False),
        StageSpec("deduplication", deduplicate, per_document=False),
    ]
    return stages


async def _run_chunked(stage: StageSpec, docs: list[Document], ctx: PipelineContext) -> list[Document]:
    """Apply a per-document stage in slices so a large batch never monopolizes the loop."""
    size = max(1, ctx.scheduler.yield_every_n)
    out: list[Document] = []
    for start in range(0, len(docs), size):
        ctx.checkpoint()
        out += stage.run(docs[start:start + size], ctx)
        await ctx.scheduler.maybe_yield()
    return out


async def run_stage(stage: StageSpec, docs: list[Document], ctx: PipelineContext) -> list[Document]:
    """Run one stage after a cancellation check, logging the stage name on failure."""
    ctx.checkpoint()
    try:
        if stage.is_async:
            result = await stage.run(docs, ctx)
        elif stage.per_document:
            result = await _run_chunked(stage, docs, ctx)
        else:
            result = stage.run(docs, ctx)
    except PipelineCancelledError:
        logger.info("Pipeline cancelled", extra={"stage": stage.name})
        raise
    except Exception:
        logger.error("Pipeline stage failed", extra={"stage": stage.name, "notes": len(docs)})
        raise
    logger.debug("Stage complete", extra={"stage": stage.name, "notes": len(result)})
    await ctx.scheduler.force_yield()
    return result


async def run_pipeline(
    documents: list[Document],
    ctx: Optional[PipelineContext] = None,
    *,
    ignore_rules: Optional[list[IgnoreRule]] = None,
    block_processor: Optional[BlockProcessor] = None,
    parser_config: str = "commonmark",
    ) -> list[Document]:
    """Run every stage in order and return the published notes.

    Any exception escaping a stage aborts the whole batch; no partial list is returned.
    """
    ctx = ctx or PipelineContext()
    rules = list(ignore_rules or [])
    docs = list(documents)
    logger.info("Pipeline started", extra={"notes": len(docs), "rules": len(rules)})

    for stage in build_stages(rules, block_processor, parser_config):
        docs = await run_stage(stage, docs, ctx)

    logger.info("Pipeline complete", extra={"published": len(docs), "yields": ctx.scheduler.yields})
    return docs


def run_pipeline_sync(documents: list[Document], ctx: Optional[PipelineContext] = None, **kwargs) -> list[Document]:
    """Blocking wrapper for callers without an event loop (CLI, tests)."""
    return asyncio.run(run_pipeline(documents, ctx, **kwargs))
