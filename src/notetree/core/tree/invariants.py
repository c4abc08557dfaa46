"""Structural invariants of the flat node sequence.

The sequence is a pre-order flattening of the forest: every node precedes
its descendants, and a node's descendants form one unbroken run right
behind it. Subtree lookups below rely on that.
"""

from collections import defaultdict
from collections.abc import Sequence

from notetree.models.node import Node


class InvariantViolation(RuntimeError):
    """The node sequence is corrupt (not a valid pre-order forest)."""


def index_of(nodes: Sequence[Node], node_id: str) -> int | None:
    """Return the position of ``node_id`` in ``nodes``, or None."""
    for i, node in enumerate(nodes):
        if node.id == node_id:
            return i
    return None


def subtree_end(nodes: Sequence[Node], index: int) -> int:
    """Return the exclusive end index of the block rooted at ``nodes[index]``.

    Scans forward and stops at the first node whose parent is not inside
    the block collected so far.
    """
    block = {nodes[index].id}
    end = index + 1
    while end < len(nodes) and nodes[end].parent_id in block:
        block.add(nodes[end].id)
        end += 1
    return end


def children_map(nodes: Sequence[Node]) -> dict[str | None, list[str]]:
    """Map each parent id (None for roots) to its child ids in sequence order."""
    children: dict[str | None, list[str]] = defaultdict(list)
    for node in nodes:
        children[node.parent_id].append(node.id)
    return children


def descendant_ids(nodes: Sequence[Node], node_id: str) -> set[str]:
    """Return ``node_id`` plus every node whose parent chain passes through it.

    Follows parent pointers only, so the answer does not depend on where
    the nodes sit in the sequence.
    """
    children = children_map(nodes)
    result = {node_id}
    todo = [node_id]
    while todo:
        current = todo.pop()
        for child_id in children.get(current, ()):
            if child_id not in result:
                result.add(child_id)
                todo.append(child_id)
    return result


def find_contiguity_violation(nodes: Sequence[Node]) -> str | None:
    """Describe the first place where ``nodes`` is not a pre-order forest.

    Returns None when the sequence is valid. Also reports duplicate ids and
    dangling parent references, since neither can be laid out validly.
    """
    known_ids = {n.id for n in nodes}
    seen: set[str] = set()
    # Ancestor path of the node currently being visited.
    path: list[str] = []

    for i, node in enumerate(nodes):
        if node.id in seen:
            return f"duplicate id {node.id!r} at index {i}"
        seen.add(node.id)

        if node.parent_id is None:
            path = [node.id]
            continue
        if node.parent_id not in known_ids:
            return f"node {node.id!r} at index {i} references missing parent {node.parent_id!r}"

        while path and path[-1] != node.parent_id:
            path.pop()
        if not path:
            return (
                f"node {node.id!r} at index {i} is not inside the block "
                f"of its parent {node.parent_id!r}"
            )
        path.append(node.id)

    return None


def is_contiguous(nodes: Sequence[Node]) -> bool:
    return find_contiguity_violation(nodes) is None


def assert_contiguous(nodes: Sequence[Node]) -> None:
    """Raise InvariantViolation unless ``nodes`` is a valid pre-order forest."""
    problem = find_contiguity_violation(nodes)
    if problem is not None:
        raise InvariantViolation(problem)
