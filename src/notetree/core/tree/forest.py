"""Build the nested display tree from the flat node sequence, and back."""

from collections.abc import Iterable, Sequence
from dataclasses import replace

from loguru import logger

from notetree.core.tree.invariants import is_contiguous
from notetree.models.node import Node, TreeNode


def _reachable(root_ids: Iterable[str], child_ids: dict[str, list[str]]) -> set[str]:
    seen: set[str] = set()
    todo = list(root_ids)
    while todo:
        current = todo.pop()
        if current in seen:
            continue
        seen.add(current)
        todo.extend(child_ids.get(current, ()))
    return seen


def _assemble(
    root_id: str, by_id: dict[str, Node], child_ids: dict[str, list[str]]
) -> TreeNode:
    # Iterative post-order so deep outlines don't hit the recursion limit.
    built: dict[str, TreeNode] = {}
    stack: list[tuple[str, bool]] = [(root_id, False)]
    while stack:
        node_id, ready = stack.pop()
        if ready:
            built[node_id] = TreeNode(
                node=by_id[node_id],
                children=tuple(built.pop(c) for c in child_ids[node_id]),
            )
        else:
            stack.append((node_id, True))
            stack.extend((c, False) for c in reversed(child_ids[node_id]))
    return built[root_id]


def build_forest(nodes: Sequence[Node]) -> tuple[TreeNode, ...]:
    """Nest ``nodes`` into trees, one per root.

    Children keep the order they have in ``nodes``, so a sequence that
    satisfies the contiguity invariant needs no extra sorting. A node whose
    parent is missing is shown as a root instead of being dropped.
    """
    by_id = {n.id: n for n in nodes}
    child_ids: dict[str, list[str]] = {n.id: [] for n in nodes}
    root_ids: list[str] = []

    for node in nodes:
        parent_id = node.parent_id
        if parent_id is not None and parent_id in by_id and parent_id != node.id:
            child_ids[parent_id].append(node.id)
            continue
        if parent_id == node.id:
            logger.warning("Node {} is its own parent; showing it as a root", node.id)
        elif parent_id is not None:
            logger.warning(
                "Node {} references missing parent {}; showing it as a root", node.id, parent_id
            )
        root_ids.append(node.id)

    reached = _reachable(root_ids, child_ids)
    if len(reached) < len(by_id):
        for node in nodes:
            if node.id in reached:
                continue
            logger.warning("Node {} sits on a parent cycle; showing it as a root", node.id)
            child_ids[node.parent_id].remove(node.id)  # type: ignore[index]
            root_ids.append(node.id)
            reached |= _reachable([node.id], child_ids)

    return tuple(_assemble(root_id, by_id, child_ids) for root_id in root_ids)


def flatten_forest(forest: Iterable[TreeNode]) -> tuple[Node, ...]:
    """Pre-order flattening of ``forest``; the inverse of build_forest."""
    result: list[Node] = []
    stack = list(reversed(tuple(forest)))
    while stack:
        tree = stack.pop()
        result.append(tree.node)
        stack.extend(reversed(tree.children))
    return tuple(result)


def normalize_order(nodes: Sequence[Node]) -> tuple[Node, ...]:
    """Rearrange ``nodes`` into a valid pre-order forest.

    Relative sibling order is kept. Dangling parent references and members
    of parent cycles are turned into roots. A sequence that is already valid
    comes back unchanged.
    """
    fixed = list(nodes)
    known_ids = {n.id for n in fixed}
    for i, node in enumerate(fixed):
        if node.parent_id == node.id:
            logger.warning("Detaching node {} from itself as parent", node.id)
        elif node.parent_id is not None and node.parent_id not in known_ids:
            logger.warning(
                "Detaching node {} from missing parent {}", node.id, node.parent_id
            )
        else:
            continue
        fixed[i] = replace(node, parent_id=None)

    while True:
        child_ids: dict[str, list[str]] = {n.id: [] for n in fixed}
        for node in fixed:
            if node.parent_id is not None:
                child_ids[node.parent_id].append(node.id)
        reached = _reachable((n.id for n in fixed if n.parent_id is None), child_ids)
        stray = next((i for i, n in enumerate(fixed) if n.id not in reached), None)
        if stray is None:
            break
        logger.warning("Breaking parent cycle at node {}", fixed[stray].id)
        fixed[stray] = replace(fixed[stray], parent_id=None)

    return flatten_forest(build_forest(fixed))


def ensure_contiguous(nodes: Sequence[Node]) -> tuple[Node, ...]:
    """Return ``nodes`` as a tuple, repaired by normalize_order if it is not a valid outline."""
    current = tuple(nodes)
    if is_contiguous(current):
        return current
    logger.warning("Node sequence is not a valid outline; repairing it before the change")
    return normalize_order(current)
