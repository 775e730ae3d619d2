"""Unit tests for core/dedup.py"""

import itertools

import pytest

from vaultpub.core.dedup import add_suffix, deduplicate, deduplicate_folder
from vaultpub.core.models import FolderConfig
from vaultpub.core.resolve import resolve_wikilinks
from vaultpub.core.routing import compute_routing


DOCS = FolderConfig(id="docs", vault_folder="Docs", route_base="/docs")
NOTES = FolderConfig(id="notes", vault_folder="Notes", route_base="/notes")


@pytest.fixture(name="routed")
def routed_fixture(make_doc, ctx):
    """Factory: build notes and run routing so slugs exist."""
    def _routed(*specs):
        docs = [make_doc(path, content=content, folder=folder) for path, content, folder in specs]
        return compute_routing(resolve_wikilinks(docs, ctx), ctx)
    return _routed


@pytest.mark.parametrize("slug,index,expected", [
    ("note", 1, "note (1)"),
    ("note.md", 2, "note (2).md"),
    (".hidden", 1, ".hidden (1)"),
])
def test_add_suffix(slug, index, expected):
    """Suffixes go before any extension-like tail."""
    assert add_suffix(slug, index) == expected


def test_strict_duplicates_dropped(routed):
    """Same slug and same length: only the first by vault path is kept."""
    docs = routed(("b/guide.md", "x" * 250, DOCS), ("a/Guide.md", "y" * 250, DOCS))
    result = deduplicate_folder(docs)
    assert [d.vault_path for d in result.retained] == ["Docs/a/Guide.md"]
    assert [d.vault_path for d in result.dropped] == ["Docs/b/guide.md"]
    assert result.renamed == []


def test_different_lengths_renamed(routed):
    """Same slug, different lengths: the larger keeps the slug, the other gets ' (1)'."""
    docs = routed(("a/report.md", "s" * 300, DOCS), ("b/report.md", "l" * 500, DOCS))
    result = deduplicate_folder(docs)
    by_path = {d.vault_path: d.routing for d in result.retained}
    assert by_path["Docs/b/report.md"].slug == "report"
    assert by_path["Docs/a/report.md"].slug == "report (1)"
    assert by_path["Docs/a/report.md"].full_path == "/docs/a/report (1)"
    assert result.dropped == []
    assert [(r.original_slug, r.new_slug) for r in result.renamed] == [("report", "report (1)")]


def test_length_ties_broken_by_path(routed):
    """Among three, ties on length sort by vault path."""
    docs = routed(
        ("c/page.md", "a" * 10, DOCS), ("b/page.md", "a" * 10, DOCS), ("a/page.md", "a" * 20, DOCS),
    )
    slugs = {d.vault_path: d.routing.slug for d in deduplicate_folder(docs).retained}
    assert slugs == {"Docs/a/page.md": "page", "Docs/b/page.md": "page (1)", "Docs/c/page.md": "page (2)"}


def test_folders_deduplicated_independently(routed, ctx):
    """Identical slugs in different folders are left alone."""
    docs = routed(("guide.md", "x" * 5, DOCS), ("guide.md", "x" * 5, NOTES))
    out = deduplicate(docs, ctx)
    assert len(out) == 2
    assert {d.routing.slug for d in out} == {"guide"}


def test_deduplication_is_order_independent(routed, ctx):
    """Every input permutation yields the same drop and rename decisions."""
    specs = [
        ("a/guide.md", "g" * 250, DOCS), ("b/guide.md", "h" * 250, DOCS),
        ("a/report.md", "r" * 500, DOCS), ("b/report.md", "r" * 300, DOCS), ("c/report.md", "r" * 300, DOCS),
    ]
    outcomes = set()
    for perm in itertools.permutations(specs):
        out = deduplicate(routed(*perm), ctx)
        outcomes.add(frozenset((d.vault_path, d.routing.full_path) for d in out))
    assert len(outcomes) == 1
    [outcome] = outcomes
    assert dict(outcome) == {
        "Docs/a/guide.md": "/docs/a/guide",
        "Docs/a/report.md": "/docs/a/report",
        "Docs/b/report.md": "/docs/b/report (1)",
        "Docs/c/report.md": "/docs/c/report (2)",
    }


def test_links_repatched_after_dedup(make_doc, ctx):
    """Links follow renamed notes and become unresolved when their target is dropped."""
    docs = [
        make_doc("src.md", content="[[a/report]] [[b/guide]]", folder=DOCS),
        make_doc("a/report.md", content="r" * 10, folder=DOCS),
        make_doc("b/report.md", content="r" * 20, folder=DOCS),
        make_doc("a/guide.md", content="g" * 5, folder=DOCS),
        make_doc("b/guide.md", content="h" * 5, folder=DOCS),
    ]
    out = deduplicate(compute_routing(resolve_wikilinks(docs, ctx), ctx), ctx)
    links = {l.path: l for l in out[0].resolved_wikilinks}
    assert links["a/report"].href == "/docs/a/report (1)"
    assert links["b/guide"].is_resolved is False
    assert links["b/guide"].href is None
