"""Shared test fixtures."""

import pytest

from notetree.models.node import Node
from notetree.store import NodeStore
from tests.unit.fakes import FakeClock, FakePersistence, SequentialIds, make_node

# A
# ├── B
# │   └── D
# └── C
SAMPLE_NODES: tuple[Node, ...] = (
    make_node("A", title="Alpha", body="<p>Top level notes</p>", minutes=1, is_folder=True),
    make_node("B", "A", title="Beta", body="<p>Python is great for scripting</p>", minutes=2),
    make_node("D", "B", title="Delta", body="FastAPI for web services", minutes=3),
    make_node("C", "A", title="Gamma", body="Rust is fast", minutes=4),
)

# The same forest with D listed after C, i.e. not in pre-order.
UNORDERED_NODES: tuple[Node, ...] = (
    SAMPLE_NODES[0],
    SAMPLE_NODES[1],
    SAMPLE_NODES[3],
    SAMPLE_NODES[2],
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def id_factory() -> SequentialIds:
    return SequentialIds()


@pytest.fixture
def sample_nodes() -> tuple[Node, ...]:
    return SAMPLE_NODES


@pytest.fixture
def unordered_nodes() -> tuple[Node, ...]:
    return UNORDERED_NODES


@pytest.fixture
def persistence() -> FakePersistence:
    return FakePersistence(SAMPLE_NODES)


@pytest.fixture
def store(
    persistence: FakePersistence, clock: FakeClock, id_factory: SequentialIds
) -> NodeStore:
    """A store loaded with the sample forest, saving into ``persistence``."""
    return NodeStore.load(persistence, clock=clock, id_factory=id_factory)

