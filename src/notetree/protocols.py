"""Protocols for the collaborators the hierarchy engine depends on."""

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol, runtime_checkable

from notetree.models.node import Node


@runtime_checkable
class ClockProtocol(Protocol):
    """Supplies timestamps for created_at / updated_at."""

    def now(self) -> datetime:
        """Return the current time (timezone-aware)."""
        ...


@runtime_checkable
class PersistenceProtocol(Protocol):
    """Loads the full node collection and stores it after each mutation."""

    def load_all(self) -> list[Node]:
        """Return every stored node in stored order."""
        ...

    def save_all(self, nodes: Sequence[Node]) -> None:
        """Replace the stored collection with ``nodes``, keeping their order."""
        ...


@runtime_checkable
class PlainTextProjector(Protocol):
    """Turns an editor body into plain text for searching."""

    def __call__(self, body: str) -> str: ...
