"""Tests for substring search and snippets."""

from notetree.core.search.searcher import extract_snippet, search, strip_markup
from notetree.models.node import Node
from tests.unit.fakes import make_node


def test_title_match_has_no_snippet(sample_nodes: tuple[Node, ...]) -> None:
    results = search(sample_nodes, "gamma")
    assert [r.node.id for r in results] == ["C"]
    assert results[0].match_type == "title"
    assert results[0].snippet is None


def test_body_match_is_case_insensitive(sample_nodes: tuple[Node, ...]) -> None:
    results = search(sample_nodes, "PYTHON")
    assert [r.node.id for r in results] == ["B"]
    assert results[0].match_type == "body"
    assert results[0].snippet == "Python is great for scripting"


def test_body_markup_is_stripped_before_matching() -> None:
    nodes = [make_node("A", body="<p>Hello <b>World</b> &amp; friends</p>")]
    results = search(nodes, "hello world & friends")
    assert len(results) == 1
    assert results[0].snippet == "Hello World & friends"


def test_title_match_wins_over_body_match() -> None:
    nodes = [make_node("A", title="Python notes", body="More python here")]
    results = search(nodes, "python")
    assert len(results) == 1
    assert results[0].match_type == "title"


def test_blank_query_matches_nothing(sample_nodes: tuple[Node, ...]) -> None:
    assert search(sample_nodes, "") == []
    assert search(sample_nodes, "   ") == []


def test_results_are_newest_first(sample_nodes: tuple[Node, ...]) -> None:
    """All sample bodies or titles contain an 'a'; C is the newest."""
    results = search(sample_nodes, "a")
    assert [r.node.id for r in results] == ["C", "D", "B", "A"]


def test_ties_keep_store_order() -> None:
    nodes = [make_node("X", title="same"), make_node("Y", title="same")]
    assert [r.node.id for r in search(nodes, "same")] == ["X", "Y"]


def test_store_order_when_not_newest_first(sample_nodes: tuple[Node, ...]) -> None:
    results = search(sample_nodes, "a", newest_first=False)
    assert [r.node.id for r in results] == ["A", "B", "D", "C"]


def test_limit(sample_nodes: tuple[Node, ...]) -> None:
    assert len(search(sample_nodes, "a", limit=2)) == 2


def test_custom_projector() -> None:
    nodes = [make_node("A", body='{"text": "secret"}')]
    results = search(nodes, "secret", projector=lambda body: body.upper())
    assert results[0].snippet == '{"TEXT": "SECRET"}'


def test_snippet_window_with_ellipses() -> None:
    text = "x" * 100 + "needle" + "y" * 100
    assert extract_snippet(text, "NEEDLE") == "..." + "x" * 40 + "needle" + "y" * 40 + "..."


def test_snippet_near_start_has_no_prefix() -> None:
    text = "needle" + "y" * 100
    assert extract_snippet(text, "needle") == "needle" + "y" * 40 + "..."


def test_snippet_only_first_occurrence() -> None:
    text = "a needle and another needle"
    assert extract_snippet(text, "needle", radius=2) == "a needle a..."


def test_snippet_without_match() -> None:
    assert extract_snippet("nothing here", "needle") is None


def test_strip_markup_collapses_whitespace() -> None:
    assert strip_markup("<h1>Title</h1>\n\n<p>Body   text</p>") == "Title Body text"


def test_snippet_keeps_match_when_lowercase_changes_length() -> None:
    # "İ".lower() is two characters long.
    text = "İ" * 50 + "needle" + "x" * 5
    assert extract_snippet(text, "needle", radius=3) == "...İİİneedlexxx..."


def test_body_hit_after_non_ascii_text_shows_match() -> None:
    nodes = [make_node("A", title="Notes", body="İstanbul " * 10 + "Needle here")]
    [result] = search(nodes, "needle")
    assert result.snippet is not None
    assert "Needle" in result.snippet
