"""Drag-and-drop moves: reparent a subtree and splice it into its new place."""

from collections.abc import Sequence
from dataclasses import replace

from loguru import logger

from notetree.core.tree.cycle_guard import is_descendant
from notetree.core.tree.forest import ensure_contiguous
from notetree.core.tree.invariants import descendant_ids, index_of, subtree_end
from notetree.models.node import ErrorKind, MovePosition, MutationResult, Node, rejected
from notetree.protocols import ClockProtocol


def move(
    nodes: Sequence[Node],
    dragged_id: str,
    target_id: str | None,
    position: MovePosition | str,
    *,
    clock: ClockProtocol,
) -> MutationResult:
    """Move ``dragged_id`` and its whole subtree relative to ``target_id``.

    Args:
        nodes: Current node sequence (not modified).
        dragged_id: Node being dragged.
        target_id: Node it was dropped on; None means the root level.
        position: "before" / "after" the target as a sibling, or "child"
            to become the target's last child.
        clock: Source of the new updated_at timestamp.

    Returns:
        MutationResult with the reordered sequence and the moved node.
        Rejected moves return the input unchanged. An input that is not a
        valid outline is repaired with normalize_order before the splice.
    """
    current = tuple(nodes)
    try:
        position = MovePosition(position)
    except ValueError:
        return rejected(current, ErrorKind.INVALID_OPERATION, f"Invalid position '{position}'.")

    if index_of(current, dragged_id) is None:
        return rejected(current, ErrorKind.NOT_FOUND, f"Node '{dragged_id}' not found.")
    if dragged_id == target_id:
        return rejected(current, ErrorKind.INVALID_OPERATION, "Cannot move a node onto itself.")

    if target_id is not None:
        if index_of(current, target_id) is None:
            return rejected(current, ErrorKind.NOT_FOUND, f"Node '{target_id}' not found.")
        if is_descendant(current, dragged_id, target_id):
            return rejected(
                current,
                ErrorKind.INVALID_OPERATION,
                "Cannot move a node into its own subtree.",
            )

    # Splice against a valid outline so the result is one too.
    current = ensure_contiguous(current)
    by_id = {n.id: n for n in current}
    dragged = by_id[dragged_id]

    if position is MovePosition.CHILD:
        new_parent_id = target_id
    else:
        new_parent_id = by_id[target_id].parent_id if target_id is not None else None

    # Lift the dragged block out, keeping its internal order.
    block_ids = descendant_ids(current, dragged_id)
    moved = replace(dragged, parent_id=new_parent_id, updated_at=clock.now())
    block = [moved, *(n for n in current if n.id in block_ids and n.id != dragged_id)]
    remaining = [n for n in current if n.id not in block_ids]

    if target_id is None:
        insert_at = 0 if position is MovePosition.BEFORE else len(remaining)
    else:
        target_index = index_of(remaining, target_id)
        assert target_index is not None  # target is outside the dragged block
        if position is MovePosition.BEFORE:
            insert_at = target_index
        else:
            # Both "after" and "child" land behind the target's whole subtree.
            insert_at = subtree_end(remaining, target_index)

    result = (*remaining[:insert_at], *block, *remaining[insert_at:])
    logger.debug(
        "Moved {} ({} nodes) {} {} under parent {}",
        dragged_id,
        len(block),
        position.value,
        target_id,
        new_parent_id,
    )
    return MutationResult(nodes=result, node=moved)
