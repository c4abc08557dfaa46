"""Tests for the NodeStore facade."""

import pytest

from notetree.core.tree.invariants import InvariantViolation
from notetree.models.node import ErrorKind, Node
from notetree.protocols import ClockProtocol, PersistenceProtocol
from notetree.store import NodeStore, SystemClock
from tests.unit.fakes import FailingPersistence, FakeClock, FakePersistence, ids, make_node


def test_fakes_satisfy_protocols(persistence: FakePersistence, clock: FakeClock) -> None:
    assert isinstance(persistence, PersistenceProtocol)
    assert isinstance(clock, ClockProtocol)
    assert isinstance(SystemClock(), ClockProtocol)


def test_system_clock_is_timezone_aware() -> None:
    assert SystemClock().now().tzinfo is not None


def test_load_keeps_valid_order(store: NodeStore, sample_nodes: tuple[Node, ...]) -> None:
    assert store.snapshot() == sample_nodes
    assert len(store) == 4
    assert "D" in store
    assert store.get("D") == sample_nodes[2]
    assert store.get("missing") is None


def test_load_repairs_unordered_data(unordered_nodes: tuple[Node, ...]) -> None:
    store = NodeStore.load(FakePersistence(unordered_nodes))
    assert ids(store.snapshot()) == ["A", "B", "D", "C"]
    store.check()


def test_sample_scenario(store: NodeStore, persistence: FakePersistence) -> None:
    moved = store.move("C", "B", "child")
    assert moved.success
    b = store.forest()[0].children[0]
    assert [c.id for c in b.children] == ["D", "C"]
    assert [t.id for t in store.forest()] == ["A"]

    rejected = store.move("A", "D", "child")
    assert rejected.error is not None
    assert rejected.error.kind is ErrorKind.INVALID_OPERATION

    deleted = store.delete("B")
    assert deleted.removed_ids == {"B", "C", "D"}
    assert ids(store.snapshot()) == ["A"]
    assert len(persistence.saves) == 2


def test_successful_mutation_is_saved(store: NodeStore, persistence: FakePersistence) -> None:
    result = store.create("A", "folder", title="Projects")
    assert result.success
    assert persistence.saves == [store.snapshot()]
    assert ids(persistence.nodes)[-1] == "new-1"


def test_rejected_mutation_changes_nothing(
    store: NodeStore, persistence: FakePersistence
) -> None:
    before = store.snapshot()
    assert not store.move("B", "B", "before").success
    assert not store.duplicate("ghost").success
    assert not store.delete("ghost").success
    assert not store.update("ghost", title="x").success
    assert store.snapshot() is before
    assert persistence.saves == []


def test_store_operations_keep_invariant(store: NodeStore) -> None:
    assert store.add_sibling("B", title="After Beta").success
    assert store.duplicate("B").success
    assert store.update("C", body="edited").success
    assert store.move("D", None, "child").success
    store.check()
    assert ids(store.snapshot()) == ["A", "B", "new-2", "new-1", "C", "D"]


def test_search_and_breadcrumbs(store: NodeStore) -> None:
    results = store.search("fastapi")
    assert [r.node.id for r in results] == ["D"]
    assert [c.node_id for c in store.breadcrumbs("D")] == ["A", "B"]
    assert store.is_descendant("A", "D")


def test_constructor_repairs_order(unordered_nodes: tuple[Node, ...]) -> None:
    store = NodeStore([make_node("B", "A"), make_node("A")])
    assert ids(store.snapshot()) == ["A", "B"]
    store.check()

    store = NodeStore(unordered_nodes)
    assert ids(store.snapshot()) == ["A", "B", "D", "C"]


def test_check_raises_on_corrupt_sequence(store: NodeStore) -> None:
    store._nodes = (make_node("B", "A"), make_node("A"))
    with pytest.raises(InvariantViolation):
        store.check()


def test_failed_save_keeps_previous_state(clock: FakeClock) -> None:
    store = NodeStore.load(FailingPersistence([make_node("A"), make_node("B", "A")]), clock=clock)
    before = store.snapshot()
    with pytest.raises(OSError):
        store.delete("B")
    assert store.snapshot() is before
    with pytest.raises(OSError):
        store.create(title="Lost")
    assert ids(store.snapshot()) == ["A", "B"]


def test_store_without_persistence(clock: FakeClock) -> None:
    store = NodeStore(clock=clock)
    result = store.create(title="First")
    assert result.success
    assert [n.title for n in store] == ["First"]
