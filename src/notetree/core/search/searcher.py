"""Substring search over node titles and bodies."""

import html
import re
from collections.abc import Callable, Sequence

from notetree.config import SNIPPET_ELLIPSIS, SNIPPET_RADIUS
from notetree.models.node import Node, SearchResult

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")


def strip_markup(body: str) -> str:
    """Default plain-text projection of an editor body (HTML)."""
    text = _TAG_RE.sub(" ", body)
    return _SPACE_RE.sub(" ", html.unescape(text)).strip()


def extract_snippet(text: str, query: str, *, radius: int = SNIPPET_RADIUS) -> str | None:
    """Return the text around the first case-insensitive match of ``query``.

    The window reaches ``radius`` characters past either end of the match and
    is marked with an ellipsis where it stops short of the text boundary.
    """
    # Match on the text itself; lower() can change its length.
    match = re.search(re.escape(query), text, re.IGNORECASE)
    if match is None:
        return None

    start = max(0, match.start() - radius)
    end = min(len(text), match.end() + radius)
    prefix = SNIPPET_ELLIPSIS if start > 0 else ""
    suffix = SNIPPET_ELLIPSIS if end < len(text) else ""
    return f"{prefix}{text[start:end]}{suffix}"


def search(
    nodes: Sequence[Node],
    query: str,
    *,
    projector: Callable[[str], str] = strip_markup,
    limit: int | None = None,
    newest_first: bool = True,
) -> list[SearchResult]:
    """Find nodes whose title or plain-text body contains ``query``.

    Args:
        nodes: Node sequence to search.
        query: Case-insensitive substring; blank queries match nothing.
        projector: Turns a body into plain text before matching.
        limit: Max results to return (None = all).
        newest_first: Order by created_at descending; otherwise keep
            sequence order. Ties always keep sequence order.

    Returns:
        One SearchResult per matching node. A title hit wins over a body
        hit and carries no snippet.
    """
    if not query.strip():
        return []

    needle = query.lower()
    results: list[SearchResult] = []
    for node in nodes:
        if needle in node.title.lower():
            results.append(SearchResult(node=node, match_type="title"))
            continue
        snippet = extract_snippet(projector(node.body), query)
        if snippet is not None:
            results.append(SearchResult(node=node, match_type="body", snippet=snippet))

    if newest_first:
        results.sort(key=lambda r: r.node.created_at, reverse=True)
    if limit is not None:
        results = results[:limit]
    return results
