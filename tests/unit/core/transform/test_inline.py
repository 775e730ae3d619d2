"""Unit tests for core/transform/inline.py"""

import pytest

from vaultpub.core.frontmatter import normalize
from vaultpub.core.transform.inline import evaluate, render_inline, render_inline_expressions


FM = normalize({"tags": ["a", "b"], "author": "Ann", "draft": True, "rating": 4.0, "Meta": {"Kind": "guide"}})


def test_join_with_separator():
    """join(this.tags, ", ") renders the array as literal text."""
    content, found = render_inline('Tags: `= join(this.tags, ", ")`', FM)
    assert content == "Tags: a, b"
    assert found[0].property_path == "tags"
    assert found[0].rendered == "a, b"


def test_join_coerces_scalar_to_list():
    """join over a scalar renders the scalar alone."""
    assert evaluate('join(this.author, " / ")', FM) == "Ann"


@pytest.mark.parametrize("expression,expected", [
    ("this.author", "Ann"),
    ("this.tags", "a, b"),
    ("this.draft", "true"),
    ("this.rating", "4"),
    ("this.meta.kind", "guide"),
    ("this.missing", ""),
    ("dv.pages()", ""),
])
def test_property_access(expression, expected):
    """Property access renders scalars, lists, and missing values."""
    assert evaluate(expression, FM) == expected


def test_plain_inline_code_untouched():
    """Inline code without '=' is left as is."""
    text = "Run `make build` then `= this.author`."
    content, found = render_inline(text, FM)
    assert content == "Run `make build` then Ann."
    assert len(found) == 1


def test_stage_updates_content(make_doc, ctx):
    """The stage rewrites only notes that contain expressions."""
    with_expr = make_doc("a.md", content="By `= this.author`", meta={"author": "Bo"})
    plain = make_doc("b.md", content="nothing here")
    out = render_inline_expressions([with_expr, plain], ctx)
    assert out[0].content == "By Bo"
    assert out[1] is plain
