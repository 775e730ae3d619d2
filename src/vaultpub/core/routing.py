"""Route computation, flattened-folder collision checks and link href back-patching"""

import logging
from collections import defaultdict
from types import MappingProxyType
from typing import Mapping

from vaultpub.core.context import PipelineContext
from vaultpub.core.errors import SlugCollisionError
from vaultpub.core.models import Document, ResolvedWikilink, RoutingInfo
from vaultpub.core.utils.paths import join_route, split_segments, strip_extension
from vaultpub.core.utils.slug import slugify


logger = logging.getLogger(__name__)


def normalize_route_base(route_base: str) -> str:
    """'docs/' -> '/docs'; empty stays empty."""
    r = (route_base or "").strip()
    if not r:
        return ""
    r = '/' + r.strip('/')
    return "" if r == '/' else r


def discards_directories(doc: Document) -> bool:
    return doc.folder_config.flatten_tree or doc.is_additional


def compute_route(doc: Document) -> RoutingInfo:
    folder = doc.folder_config
    route_base = normalize_route_base(folder.route_base)
    segments = split_segments(doc.relative_path)

    if not segments:
        slug, dirs = slugify(""), []
    else:
        slug = slugify(strip_extension(segments[-1]))
        dirs = segments[:-1]

    flattened = discards_directories(doc)
    path = "" if flattened else '/'.join(s for s in (slugify(d, fallback="") for d in dirs) if s)
    inherits_display_name = not dirs or flattened

    return RoutingInfo(
        slug=slug,
        path=path,
        route_base=route_base,
        full_path=join_route(route_base, path, slug),
        folder_display_name=folder.display_name if inherits_display_name else None,
    )


def detect_slug_collisions(docs: list[Document]) -> None:
    """Raise SlugCollisionError when notes whose directories were discarded share a route."""
    by_folder: dict[str, dict[str, list[Document]]] = defaultdict(lambda: defaultdict(list))
    for doc in docs:
        if discards_directories(doc):
            by_folder[doc.folder_config.id][doc.routing.full_path].append(doc)

    for folder_id in sorted(by_folder):
        for route, group in sorted(by_folder[folder_id].items()):
            if len(group) > 1:
                paths = [d.vault_path for d in group]
                logger.error("Slug collision detected in flattened folder", extra={
                    "folder_id": folder_id, "route": route, "conflicting": ", ".join(sorted(paths)),
                })
                raise SlugCollisionError(folder_id, route, paths)


def anchor(subpath: str) -> str:
    """Heading anchors are slugified; block references (^id) are kept verbatim."""
    return subpath if subpath.startswith('^') else slugify(subpath, fallback=subpath)


def build_route_index(docs: list[Document]) -> Mapping[str, str]:
    """Immutable note id -> full path index for routed notes."""
    return MappingProxyType({d.note_id: d.routing.full_path for d in docs if d.routing is not None})


def finalize_link(link: ResolvedWikilink, routes: Mapping[str, str]) -> ResolvedWikilink:
    route = routes.get(link.target_note_id) if link.target_note_id else None
    if route is None:
        return link.model_copy(update={"is_resolved": False, "href": None})
    href = f"{route}#{anchor(link.subpath)}" if link.subpath else route
    return link.model_copy(update={"is_resolved": True, "href": href})


def finalize_links(docs: list[Document]) -> list[Document]:
    """Second pass: rebuild every note's links from the route index by pure lookup."""
    routes = build_route_index(docs)
    return [
        doc.model_copy(update={"resolved_wikilinks": [finalize_link(l, routes) for l in doc.resolved_wikilinks]})
        if doc.resolved_wikilinks else doc
        for doc in docs
    ]


def compute_routing(docs: list[Document], ctx: PipelineContext) -> list[Document]:
    routed = []
    for doc in docs:
        ctx.checkpoint()
        routing = compute_route(doc)
        logger.debug("Computed routing", extra={"note_id": doc.note_id, "full_path": routing.full_path})
        routed.append(doc.model_copy(update={"routing": routing}))

    detect_slug_collisions(routed)
    return finalize_links(routed)
