"""Tests for building, flattening and repairing the forest."""

from loguru import logger

from notetree.core.tree.cycle_guard import has_cycle
from notetree.core.tree.forest import build_forest, flatten_forest, normalize_order
from notetree.core.tree.invariants import is_contiguous
from notetree.models.node import Node
from tests.unit.fakes import ids, make_node


def test_build_forest_nests_children_in_store_order(sample_nodes: tuple[Node, ...]) -> None:
    forest = build_forest(sample_nodes)
    assert [t.id for t in forest] == ["A"]
    a = forest[0]
    assert [c.id for c in a.children] == ["B", "C"]
    assert [c.id for c in a.children[0].children] == ["D"]
    assert a.children[1].children == ()


def test_build_forest_keeps_root_order() -> None:
    nodes = [make_node("X"), make_node("Y"), make_node("Y1", "Y"), make_node("Z")]
    assert [t.id for t in build_forest(nodes)] == ["X", "Y", "Z"]


def test_dangling_parent_becomes_root() -> None:
    nodes = [make_node("A"), make_node("orphan", "ghost"), make_node("A1", "A")]
    forest = build_forest(nodes)
    assert [t.id for t in forest] == ["A", "orphan"]
    assert [c.id for c in forest[0].children] == ["A1"]


def test_parent_cycle_does_not_lose_nodes() -> None:
    nodes = [make_node("X", "Y"), make_node("Y", "X"), make_node("R")]
    forest = build_forest(nodes)
    assert sorted(ids(flatten_forest(forest))) == ["R", "X", "Y"]


def test_build_forest_is_idempotent(sample_nodes: tuple[Node, ...]) -> None:
    assert build_forest(sample_nodes) == build_forest(sample_nodes)


def test_flatten_round_trip(sample_nodes: tuple[Node, ...]) -> None:
    assert flatten_forest(build_forest(sample_nodes)) == sample_nodes


def test_empty_store_builds_empty_forest() -> None:
    assert build_forest([]) == ()
    assert flatten_forest(()) == ()


def test_normalize_reorders_into_pre_order(unordered_nodes: tuple[Node, ...]) -> None:
    fixed = normalize_order(unordered_nodes)
    assert ids(fixed) == ["A", "B", "D", "C"]
    assert is_contiguous(fixed)


def test_normalize_leaves_valid_order_alone(sample_nodes: tuple[Node, ...]) -> None:
    assert normalize_order(sample_nodes) == sample_nodes


def test_normalize_detaches_dangling_parent() -> None:
    fixed = normalize_order([make_node("A"), make_node("B", "ghost")])
    assert {n.id: n.parent_id for n in fixed} == {"A": None, "B": None}


def test_normalize_breaks_cycles() -> None:
    nodes = [make_node("X", "Y"), make_node("Y", "X"), make_node("Z", "Z")]
    fixed = normalize_order(nodes)
    assert sorted(ids(fixed)) == ["X", "Y", "Z"]
    assert not has_cycle(fixed)
    assert is_contiguous(fixed)


def test_self_parent_is_reported_separately() -> None:
    messages: list[str] = []
    handler_id = logger.add(messages.append, level="WARNING", format="{message}")
    try:
        forest = build_forest([make_node("S", "S"), make_node("O", "ghost")])
    finally:
        logger.remove(handler_id)
    assert [t.id for t in forest] == ["S", "O"]
    assert any("S is its own parent" in m for m in messages)
    assert any("O references missing parent ghost" in m for m in messages)
    assert not any("S references missing parent" in m for m in messages)
