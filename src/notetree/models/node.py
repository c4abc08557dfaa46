"""Domain models for the document hierarchy."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class NodeKind(StrEnum):
    """What a newly created node should be rendered as."""

    DOCUMENT = "document"
    FOLDER = "folder"


class MovePosition(StrEnum):
    """Where a dragged node lands relative to the drop target."""

    BEFORE = "before"
    AFTER = "after"
    CHILD = "child"


class ErrorKind(StrEnum):
    NOT_FOUND = "not_found"
    INVALID_OPERATION = "invalid_operation"
    DANGLING_REFERENCE = "dangling_reference"


@dataclass(frozen=True)
class Node:
    """A single document or folder.

    ``parent_id`` of None means the node is a root. ``is_folder`` is a
    rendering hint only; any node may have children.
    """

    id: str
    parent_id: str | None
    created_at: datetime
    updated_at: datetime
    title: str = ""
    body: str = ""
    is_folder: bool = False
    is_expanded: bool = False
    is_archived: bool = False
    is_deleted: bool = False
    tags: frozenset[str] = frozenset()

    @property
    def display_title(self) -> str:
        return self.title or "Untitled"


@dataclass(frozen=True)
class TreeNode:
    """A node together with its ordered children, as rendered."""

    node: Node
    children: tuple[TreeNode, ...] = ()

    @property
    def id(self) -> str:
        return self.node.id

    @property
    def title(self) -> str:
        return self.node.title

    @property
    def parent_id(self) -> str | None:
        return self.node.parent_id


@dataclass(frozen=True)
class Breadcrumb:
    """A single ancestor in a breadcrumb trail."""

    node_id: str
    title: str
    depth: int


@dataclass(frozen=True)
class SearchResult:
    """A search hit. Title hits carry no snippet."""

    node: Node
    match_type: str
    snippet: str | None = None


@dataclass(frozen=True)
class HierarchyError:
    """Why an operation was rejected."""

    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a structural operation.

    On failure ``nodes`` is the untouched input sequence.
    """

    nodes: tuple[Node, ...]
    node: Node | None = None
    removed_ids: frozenset[str] = field(default_factory=frozenset)
    error: HierarchyError | None = None

    @property
    def success(self) -> bool:
        return self.error is None


def rejected(nodes: tuple[Node, ...], kind: ErrorKind, message: str) -> MutationResult:
    """Build a failed result that leaves ``nodes`` as they were."""
    return MutationResult(nodes=nodes, error=HierarchyError(kind=kind, message=message))
