"""Create, duplicate, update and delete nodes while keeping the sequence valid."""

import uuid
from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import Any

from loguru import logger

from notetree.core.tree.forest import ensure_contiguous
from notetree.core.tree.invariants import descendant_ids, index_of, subtree_end
from notetree.models.node import ErrorKind, MutationResult, Node, NodeKind, rejected
from notetree.protocols import ClockProtocol

IdFactory = Callable[[], str]

# Fields a caller may assign directly. Structure changes go through move().
UPDATABLE_FIELDS = frozenset(
    {"title", "body", "is_folder", "is_expanded", "is_archived", "is_deleted", "tags"}
)


def new_node_id() -> str:
    return uuid.uuid4().hex


def _insert(nodes: tuple[Node, ...], index: int, node: Node) -> tuple[Node, ...]:
    return (*nodes[:index], node, *nodes[index:])


def _parse_kind(kind: NodeKind | str) -> NodeKind | None:
    try:
        return NodeKind(kind)
    except ValueError:
        return None


def create(
    nodes: Sequence[Node],
    parent_id: str | None,
    kind: NodeKind | str = NodeKind.DOCUMENT,
    *,
    clock: ClockProtocol,
    id_factory: IdFactory = new_node_id,
    title: str = "",
    body: str = "",
) -> MutationResult:
    """Create an empty node as the last child of ``parent_id``.

    With ``parent_id`` None the node becomes the last root.
    """
    current = tuple(nodes)
    node_kind = _parse_kind(kind)
    if node_kind is None:
        return rejected(current, ErrorKind.INVALID_OPERATION, f"Invalid kind '{kind}'.")
    if parent_id is not None and index_of(current, parent_id) is None:
        return rejected(current, ErrorKind.NOT_FOUND, f"Parent '{parent_id}' not found.")

    current = ensure_contiguous(current)
    if parent_id is None:
        insert_at = len(current)
    else:
        parent_index = index_of(current, parent_id)
        assert parent_index is not None
        insert_at = subtree_end(current, parent_index)

    now = clock.now()
    node = Node(
        id=id_factory(),
        parent_id=parent_id,
        created_at=now,
        updated_at=now,
        title=title,
        body=body,
        is_folder=node_kind is NodeKind.FOLDER,
    )
    logger.debug("Created {} {} under {}", node_kind.value, node.id, parent_id)
    return MutationResult(nodes=_insert(current, insert_at, node), node=node)


def add_sibling(
    nodes: Sequence[Node],
    sibling_id: str,
    kind: NodeKind | str = NodeKind.DOCUMENT,
    *,
    clock: ClockProtocol,
    id_factory: IdFactory = new_node_id,
    title: str = "",
    body: str = "",
) -> MutationResult:
    """Create a node right after ``sibling_id`` in its parent's child order."""
    current = tuple(nodes)
    node_kind = _parse_kind(kind)
    if node_kind is None:
        return rejected(current, ErrorKind.INVALID_OPERATION, f"Invalid kind '{kind}'.")
    if index_of(current, sibling_id) is None:
        return rejected(current, ErrorKind.NOT_FOUND, f"Node '{sibling_id}' not found.")

    current = ensure_contiguous(current)
    sibling_index = index_of(current, sibling_id)
    assert sibling_index is not None
    sibling = current[sibling_index]

    now = clock.now()
    node = Node(
        id=id_factory(),
        parent_id=sibling.parent_id,
        created_at=now,
        updated_at=now,
        title=title,
        body=body,
        is_folder=node_kind is NodeKind.FOLDER,
    )
    insert_at = subtree_end(current, sibling_index)
    logger.debug("Created {} {} after sibling {}", node_kind.value, node.id, sibling_id)
    return MutationResult(nodes=_insert(current, insert_at, node), node=node)


def duplicate(
    nodes: Sequence[Node],
    node_id: str,
    *,
    clock: ClockProtocol,
    id_factory: IdFactory = new_node_id,
) -> MutationResult:
    """Copy a single node (not its children) as its next sibling.

    The copy gets a fresh id and timestamps and a " (Copy)" title suffix.
    It is placed after the original's descendants rather than at the
    original's index plus one. Sibling order is the same either way, and
    only this placement keeps every subtree contiguous in the sequence.
    """
    current = tuple(nodes)
    if index_of(current, node_id) is None:
        return rejected(current, ErrorKind.NOT_FOUND, f"Node '{node_id}' not found.")

    current = ensure_contiguous(current)
    original_index = index_of(current, node_id)
    assert original_index is not None
    original = current[original_index]
    now = clock.now()
    copy = replace(
        original,
        id=id_factory(),
        title=f"{original.title} (Copy)",
        created_at=now,
        updated_at=now,
    )
    insert_at = subtree_end(current, original_index)
    logger.debug("Duplicated {} as {}", node_id, copy.id)
    return MutationResult(nodes=_insert(current, insert_at, copy), node=copy)


def cascading_delete(nodes: Sequence[Node], node_id: str) -> MutationResult:
    """Remove ``node_id`` and everything below it.

    Descendants are found through parent pointers, not sequence position.
    ``removed_ids`` lets callers drop cached references to deleted nodes.
    """
    current = tuple(nodes)
    if index_of(current, node_id) is None:
        return rejected(current, ErrorKind.NOT_FOUND, f"Node '{node_id}' not found.")

    current = ensure_contiguous(current)
    node_index = index_of(current, node_id)
    assert node_index is not None
    removed = frozenset(descendant_ids(current, node_id))
    remaining = tuple(n for n in current if n.id not in removed)
    logger.debug("Deleted {} with {} descendants", node_id, len(removed) - 1)
    return MutationResult(nodes=remaining, node=current[node_index], removed_ids=removed)


def update_node(
    nodes: Sequence[Node],
    node_id: str,
    *,
    clock: ClockProtocol,
    **changes: Any,
) -> MutationResult:
    """Assign plain fields (title, body, flags, tags) on one node.

    ``id`` can never change and ``parent_id`` only changes through move().
    """
    current = tuple(nodes)
    if index_of(current, node_id) is None:
        return rejected(current, ErrorKind.NOT_FOUND, f"Node '{node_id}' not found.")

    if "parent_id" in changes:
        return rejected(
            current, ErrorKind.INVALID_OPERATION, "Use move to change a node's parent."
        )
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        return rejected(
            current,
            ErrorKind.INVALID_OPERATION,
            f"Cannot update field(s): {', '.join(sorted(unknown))}.",
        )

    current = ensure_contiguous(current)
    node_index = index_of(current, node_id)
    assert node_index is not None
    if "tags" in changes:
        changes["tags"] = frozenset(changes["tags"])
    updated = replace(current[node_index], **changes, updated_at=clock.now())
    result = (*current[:node_index], updated, *current[node_index + 1 :])
    logger.debug("Updated {}: {}", node_id, ", ".join(sorted(changes)))
    return MutationResult(nodes=result, node=updated)
