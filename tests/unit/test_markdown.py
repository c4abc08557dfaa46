"""Tests for markdown rendering of the outline."""

from notetree.core.tree.forest import build_forest
from notetree.core.tree.markdown import render_forest_as_markdown
from notetree.models.node import Node
from tests.unit.fakes import make_node


def test_render_full_outline(sample_nodes: tuple[Node, ...]) -> None:
    md = render_forest_as_markdown(build_forest(sample_nodes))
    assert md.splitlines() == [
        "- 📁 Alpha",
        "    - Beta",
        "        - Delta",
        "    - Gamma",
    ]


def test_render_with_depth_limit_shows_truncation(sample_nodes: tuple[Node, ...]) -> None:
    md = render_forest_as_markdown(build_forest(sample_nodes), max_depth=1)
    assert "Delta" not in md
    assert "... (1 more child, id=B)" in md
    # C has no children, so no indicator after it
    assert md.rstrip().endswith("- Gamma")


def test_render_uses_untitled_fallback_and_ids() -> None:
    md = render_forest_as_markdown(build_forest([make_node("n1", title="")]), show_ids=True)
    assert md == "- Untitled  (id=n1)\n"


def test_render_empty_forest() -> None:
    assert render_forest_as_markdown(()) == ""
