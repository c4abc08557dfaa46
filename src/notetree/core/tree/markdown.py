"""Render trees as an indented markdown outline."""

import io
from collections.abc import Iterable

from notetree.models.node import TreeNode


def render_forest_as_markdown(
    forest: Iterable[TreeNode],
    *,
    max_depth: int | None = None,
    show_ids: bool = False,
) -> str:
    """Render trees as indented markdown bullets.

    Args:
        forest: Trees to render, in order.
        max_depth: Max levels below each root to include (None = unlimited).
        show_ids: Append each node's id.

    Returns:
        Markdown string with bullet-list hierarchy.
    """
    out = io.StringIO()
    stack: list[tuple[TreeNode, int]] = [(tree, 0) for tree in reversed(tuple(forest))]
    while stack:
        tree, depth = stack.pop()
        node = tree.node
        indent = "    " * depth

        marker = "📁 " if node.is_folder else ""
        suffix = f"  (id={node.id})" if show_ids else ""
        out.write(f"{indent}- {marker}{node.display_title}{suffix}\n")

        if max_depth is not None and depth >= max_depth:
            if tree.children:
                count = len(tree.children)
                noun = "child" if count == 1 else "children"
                out.write(f"{indent}    - ... ({count} more {noun}, id={node.id})\n")
            continue

        stack.extend((child, depth + 1) for child in reversed(tree.children))

    return out.getvalue()
