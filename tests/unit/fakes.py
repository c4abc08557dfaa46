"""Fake collaborators for testing the hierarchy engine."""

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta

from notetree.models.node import Node

EPOCH = datetime(2024, 1, 1, tzinfo=UTC)


class FakeClock:
    """Deterministic clock that advances one minute per call."""

    def __init__(self, start: datetime = EPOCH, step: timedelta = timedelta(minutes=1)) -> None:
        self.current = start
        self.step = step

    def now(self) -> datetime:
        self.current += self.step
        return self.current


class SequentialIds:
    """Id factory returning new-1, new-2, ..."""

    def __init__(self, prefix: str = "new") -> None:
        self.prefix = prefix
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"{self.prefix}-{self.count}"


class FakePersistence:
    """In-memory persistence adapter that records every save."""

    def __init__(self, nodes: Sequence[Node] = ()) -> None:
        self.nodes: list[Node] = list(nodes)
        self.saves: list[tuple[Node, ...]] = []

    def load_all(self) -> list[Node]:
        return list(self.nodes)

    def save_all(self, nodes: Sequence[Node]) -> None:
        self.nodes = list(nodes)
        self.saves.append(tuple(nodes))


class FailingPersistence(FakePersistence):
    """Persistence adapter whose saves always fail, like a full disk."""

    def save_all(self, nodes: Sequence[Node]) -> None:
        raise OSError("disk full")


def make_node(
    node_id: str,
    parent_id: str | None = None,
    *,
    title: str | None = None,
    body: str = "",
    minutes: int = 0,
    is_folder: bool = False,
) -> Node:
    """Build a node; created_at is EPOCH plus ``minutes``."""
    stamp = EPOCH + timedelta(minutes=minutes)
    return Node(
        id=node_id,
        parent_id=parent_id,
        created_at=stamp,
        updated_at=stamp,
        title=node_id if title is None else title,
        body=body,
        is_folder=is_folder,
    )


def ids(nodes: Sequence[Node]) -> list[str]:
    return [n.id for n in nodes]
