"""Document hierarchy engine: an ordered forest of notes and folders."""

from notetree.core.tree.forest import build_forest, flatten_forest
from notetree.core.tree.invariants import InvariantViolation, assert_contiguous
from notetree.models.node import (
    ErrorKind,
    HierarchyError,
    MovePosition,
    MutationResult,
    Node,
    NodeKind,
    SearchResult,
    TreeNode,
)
from notetree.store import NodeStore, SystemClock

__all__ = [
    "ErrorKind",
    "HierarchyError",
    "InvariantViolation",
    "MovePosition",
    "MutationResult",
    "Node",
    "NodeKind",
    "NodeStore",
    "SearchResult",
    "SystemClock",
    "TreeNode",
    "assert_contiguous",
    "build_forest",
    "flatten_forest",
]
