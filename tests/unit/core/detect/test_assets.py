"""Unit tests for core/detect/assets.py"""

import pytest

from vaultpub.core.detect.assets import classify, detect_assets, detect_in_text, parse_modifiers
from vaultpub.core.models import AssetKind, MapBlock, MapImageOverlay, OriginKind


@pytest.mark.parametrize("target,kind", [
    ("img/cat.PNG", AssetKind.image),
    ("a.jpeg", AssetKind.image),
    ("song.flac", AssetKind.audio),
    ("clip.webm", AssetKind.video),
    ("paper.pdf", AssetKind.pdf),
    ("data.csv", AssetKind.other),
])
def test_classify_by_extension(target, kind):
    """Kinds are derived from the file extension, case-insensitively."""
    assert classify(target) is kind


def test_detect_with_modifiers():
    """Alignment, width, and CSS classes are parsed from pipe modifiers."""
    [asset] = detect_in_text("![[./img/cat.png|centre|300|rounded|shadow]]")
    assert asset.target == "img/cat.png"
    assert asset.kind is AssetKind.image
    assert asset.display.alignment == "center"
    assert asset.display.width == 300
    assert asset.display.classes == ["rounded", "shadow"]
    assert asset.display.raw_modifiers == ["centre", "300", "rounded", "shadow"]


def test_parse_modifiers_first_wins():
    """Only the first alignment and width are used; the rest become classes."""
    display = parse_modifiers(["left", "right", "10", "20"])
    assert display.alignment == "left"
    assert display.width == 10
    assert display.classes == ["right", "20"]


def test_transclusions_and_links_ignored():
    """Note embeds without an extension and plain [[links]] are not assets."""
    assert detect_in_text("![[Other Note]] and [[image.png]]") == []


def test_detect_assets_stage_sweeps_all_sources(make_doc, ctx):
    """Content, frontmatter strings, and map overlays are all scanned."""
    doc = make_doc("a.md", content="![[pic.gif]]", meta={"cover": "![[cover.jpg|right]]"})
    doc = doc.model_copy(update={"map_blocks": [
        MapBlock(id="m", raw_content="", image_overlays=[MapImageOverlay(path="maps/base.webp")]),
    ]})
    [out] = detect_assets([doc], ctx)
    targets = [(a.target, a.origin.kind, a.origin.property_path) for a in out.assets]
    assert targets == [
        ("pic.gif", OriginKind.content, None),
        ("cover.jpg", OriginKind.frontmatter, "cover"),
        ("maps/base.webp", OriginKind.content, None),
    ]
