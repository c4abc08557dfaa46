"""The node store: one ordered node sequence plus the operations on it."""

from collections.abc import Iterator, Sequence
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from notetree.core.lifecycle.operations import (
    IdFactory,
    add_sibling,
    cascading_delete,
    create,
    duplicate,
    new_node_id,
    update_node,
)
from notetree.core.search.searcher import search, strip_markup
from notetree.core.tree.cycle_guard import get_breadcrumbs, is_descendant
from notetree.core.tree.forest import build_forest, normalize_order
from notetree.core.tree.invariants import assert_contiguous, index_of
from notetree.core.tree.reorder import move
from notetree.models.node import (
    Breadcrumb,
    MovePosition,
    MutationResult,
    Node,
    NodeKind,
    SearchResult,
    TreeNode,
)
from notetree.protocols import ClockProtocol, PersistenceProtocol, PlainTextProjector


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(tz=UTC)


class NodeStore:
    """Owns the node sequence for one embedding application.

    Every structural change goes through the methods here. A successful
    mutation is handed to the persistence adapter, if there is one, and
    only then swapped in as the current sequence. Nodes passed to the
    constructor are repaired into a valid outline. The store does no
    locking; callers must not run mutations concurrently.
    """

    def __init__(
        self,
        nodes: Sequence[Node] = (),
        *,
        clock: ClockProtocol | None = None,
        id_factory: IdFactory = new_node_id,
        persistence: PersistenceProtocol | None = None,
        projector: PlainTextProjector = strip_markup,
    ) -> None:
        self._nodes: tuple[Node, ...] = normalize_order(nodes)
        self.clock: ClockProtocol = clock or SystemClock()
        self.id_factory = id_factory
        self.persistence = persistence
        self.projector = projector

    @classmethod
    def load(cls, persistence: PersistenceProtocol, **kwargs: Any) -> "NodeStore":
        """Load all nodes from ``persistence``, repairing their order if needed."""
        loaded = persistence.load_all()
        store = cls(loaded, persistence=persistence, **kwargs)
        if list(store.snapshot()) != loaded:
            logger.warning("Stored node order was not a valid outline; repaired it")
        return store

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return any(n.id == node_id for n in self._nodes)

    def snapshot(self) -> tuple[Node, ...]:
        """Immutable view of the current sequence, safe to hand to readers."""
        return self._nodes

    def get(self, node_id: str) -> Node | None:
        index = index_of(self._nodes, node_id)
        return self._nodes[index] if index is not None else None

    # --- Read-only queries ---

    def forest(self) -> tuple[TreeNode, ...]:
        return build_forest(self._nodes)

    def search(self, query: str, *, limit: int | None = None) -> list[SearchResult]:
        return search(self._nodes, query, projector=self.projector, limit=limit)

    def breadcrumbs(self, node_id: str) -> tuple[Breadcrumb, ...]:
        return get_breadcrumbs(self._nodes, node_id)

    def is_descendant(self, ancestor_id: str, node_id: str) -> bool:
        return is_descendant(self._nodes, ancestor_id, node_id)

    def check(self) -> None:
        """Raise InvariantViolation if the in-memory sequence is corrupt."""
        assert_contiguous(self._nodes)

    # --- Mutations ---

    def _commit(self, result: MutationResult, action: str) -> MutationResult:
        if not result.success:
            assert result.error is not None
            logger.info("Rejected {}: {}", action, result.error.message)
            return result
        # Save first: if it raises, memory still matches what is stored.
        if self.persistence is not None:
            self.persistence.save_all(result.nodes)
        self._nodes = result.nodes
        return result

    def move(
        self, dragged_id: str, target_id: str | None, position: MovePosition | str
    ) -> MutationResult:
        result = move(self._nodes, dragged_id, target_id, position, clock=self.clock)
        return self._commit(result, "move")

    def create(
        self,
        parent_id: str | None = None,
        kind: NodeKind | str = NodeKind.DOCUMENT,
        *,
        title: str = "",
        body: str = "",
    ) -> MutationResult:
        result = create(
            self._nodes,
            parent_id,
            kind,
            clock=self.clock,
            id_factory=self.id_factory,
            title=title,
            body=body,
        )
        return self._commit(result, "create")

    def add_sibling(
        self,
        sibling_id: str,
        kind: NodeKind | str = NodeKind.DOCUMENT,
        *,
        title: str = "",
        body: str = "",
    ) -> MutationResult:
        result = add_sibling(
            self._nodes,
            sibling_id,
            kind,
            clock=self.clock,
            id_factory=self.id_factory,
            title=title,
            body=body,
        )
        return self._commit(result, "add sibling")

    def duplicate(self, node_id: str) -> MutationResult:
        result = duplicate(self._nodes, node_id, clock=self.clock, id_factory=self.id_factory)
        return self._commit(result, "duplicate")

    def delete(self, node_id: str) -> MutationResult:
        return self._commit(cascading_delete(self._nodes, node_id), "delete")

    def update(self, node_id: str, **changes: Any) -> MutationResult:
        result = update_node(self._nodes, node_id, clock=self.clock, **changes)
        return self._commit(result, "update")
