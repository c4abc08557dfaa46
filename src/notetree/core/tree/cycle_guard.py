"""Ancestor queries used before any change of parentage."""

from collections.abc import Sequence

from notetree.models.node import Breadcrumb, Node


def _parent_lookup(nodes: Sequence[Node]) -> dict[str, str | None]:
    return {n.id: n.parent_id for n in nodes}


def is_descendant(nodes: Sequence[Node], ancestor_id: str, node_id: str) -> bool:
    """Return True if ``node_id`` is ``ancestor_id`` or lies below it.

    Walks up from ``node_id`` through parent pointers. The walk is bounded by
    the number of nodes, so a corrupt cycle cannot hang it.
    """
    if node_id == ancestor_id:
        return True
    parents = _parent_lookup(nodes)
    current = parents.get(node_id)
    for _ in range(len(parents)):
        if current is None:
            return False
        if current == ancestor_id:
            return True
        current = parents.get(current)
    return False


def has_cycle(nodes: Sequence[Node]) -> bool:
    """Return True if following parent pointers from some node never reaches a root."""
    parents = _parent_lookup(nodes)
    # Nodes already known to reach a root (or a dangling reference).
    settled: set[str] = set()
    for start in parents:
        trail: set[str] = set()
        current: str | None = start
        while current is not None and current not in settled:
            if current in trail:
                return True
            trail.add(current)
            current = parents.get(current)
        settled |= trail
    return False


def get_breadcrumbs(nodes: Sequence[Node], node_id: str) -> tuple[Breadcrumb, ...]:
    """Get ancestor breadcrumbs for a node.

    Returns breadcrumbs in order from root to immediate parent (excludes the node itself).
    """
    by_id = {n.id: n for n in nodes}
    node = by_id.get(node_id)
    if node is None:
        return ()

    chain: list[Node] = []
    current = by_id.get(node.parent_id) if node.parent_id else None
    while current is not None and len(chain) < len(by_id):
        chain.append(current)
        current = by_id.get(current.parent_id) if current.parent_id else None

    chain.reverse()
    return tuple(
        Breadcrumb(node_id=n.id, title=n.display_title, depth=depth)
        for depth, n in enumerate(chain)
    )
