"""MCP server exposing the note hierarchy as tools."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from notetree.config import DATABASE_FILENAME, resolve_data_directory
from notetree.core.database.repository import SqliteRepository
from notetree.core.tree.forest import build_forest
from notetree.core.tree.markdown import render_forest_as_markdown
from notetree.models.node import MovePosition, MutationResult, Node, TreeNode
from notetree.store import NodeStore


def _node_to_dict(node: Node) -> dict[str, Any]:
    return {
        "id": node.id,
        "parent_id": node.parent_id,
        "title": node.title,
        "is_folder": node.is_folder,
        "is_expanded": node.is_expanded,
        "is_archived": node.is_archived,
        "is_deleted": node.is_deleted,
        "tags": sorted(node.tags),
        "created_at": node.created_at.isoformat(),
        "updated_at": node.updated_at.isoformat(),
    }


def _tree_to_dict(tree: TreeNode, remaining_depth: int | None) -> dict[str, Any]:
    entry = _node_to_dict(tree.node)
    entry["child_count"] = len(tree.children)
    # At the depth boundary only child_count is given, signalling "drill down".
    if remaining_depth is None or remaining_depth > 0:
        next_depth = None if remaining_depth is None else remaining_depth - 1
        entry["children"] = [_tree_to_dict(c, next_depth) for c in tree.children]
    return entry


def _find_tree(forest: tuple[TreeNode, ...], node_id: str) -> TreeNode | None:
    stack = list(forest)
    while stack:
        tree = stack.pop()
        if tree.id == node_id:
            return tree
        stack.extend(tree.children)
    return None


def _breadcrumbs_str(store: NodeStore, node_id: str) -> str:
    crumbs = store.breadcrumbs(node_id)
    return " > ".join(c.title[:40] for c in crumbs) if crumbs else ""


def _error(result: MutationResult) -> dict[str, Any]:
    assert result.error is not None
    return {"success": False, "error": result.error.message, "kind": result.error.kind.value}


# --- Core functions (testable without MCP context) ---


def notetree_tree(
    store: NodeStore,
    *,
    node_id: str | None = None,
    max_depth: int | None = None,
    output_format: str = "markdown",
) -> dict[str, Any]:
    """Render the whole forest, or the subtree under one node.

    Args:
        node_id: Root of the subtree to render (None = everything).
        max_depth: Max levels below each root to include (None = unlimited).
        output_format: "markdown" or "json".
    """
    nodes = store.snapshot()
    forest = build_forest(nodes)
    if node_id is not None:
        subtree = _find_tree(forest, node_id)
        if subtree is None:
            return {"error": f"Node '{node_id}' not found."}
        forest = (subtree,)

    if output_format == "markdown":
        return {
            "content": render_forest_as_markdown(forest, max_depth=max_depth, show_ids=True),
            "node_id": node_id,
            "breadcrumbs": _breadcrumbs_str(store, node_id) if node_id else "",
            "count": len(nodes),
        }
    return {
        "roots": [_tree_to_dict(t, max_depth) for t in forest],
        "node_id": node_id,
        "count": len(nodes),
    }


def notetree_search(store: NodeStore, *, query: str, limit: int = 20) -> dict[str, Any]:
    """Case-insensitive substring search over titles and bodies.

    Args:
        query: Search text.
        limit: Max results (1-100, default 20).
    """
    if not query.strip():
        return {"error": "No search query provided.", "results": [], "count": 0}

    limit = max(1, min(limit, 100))
    results = store.search(query, limit=limit)
    return {
        "results": [
            {
                "node_id": r.node.id,
                "title": r.node.display_title,
                "match_type": r.match_type,
                "snippet": r.snippet,
                "breadcrumbs": _breadcrumbs_str(store, r.node.id),
                "created_at": r.node.created_at.isoformat(),
            }
            for r in results
        ],
        "count": len(results),
    }


def notetree_create(
    store: NodeStore,
    *,
    parent_id: str | None = None,
    kind: str = "document",
    title: str = "",
    body: str = "",
    after_sibling: str | None = None,
) -> dict[str, Any]:
    """Create a document or folder.

    Args:
        parent_id: Parent node; None creates a new root.
        kind: "document" or "folder".
        title: Initial title.
        body: Initial body.
        after_sibling: Place the node right after this sibling instead.
    """
    if after_sibling is not None:
        result = store.add_sibling(after_sibling, kind, title=title, body=body)
    else:
        result = store.create(parent_id, kind, title=title, body=body)
    if not result.success:
        return _error(result)
    assert result.node is not None
    return {"success": True, "node": _node_to_dict(result.node)}


def notetree_move(
    store: NodeStore,
    *,
    dragged_id: str,
    target_id: str | None,
    position: str,
) -> dict[str, Any]:
    """Move a node (with its subtree) before, after, or into another node."""
    result = store.move(dragged_id, target_id, position)
    if not result.success:
        return _error(result)
    return {
        "success": True,
        "dragged_id": dragged_id,
        "target_id": target_id,
        "position": MovePosition(position).value,
    }


def notetree_delete(store: NodeStore, *, node_id: str) -> dict[str, Any]:
    """Delete a node and all of its descendants."""
    result = store.delete(node_id)
    if not result.success:
        return _error(result)
    return {"success": True, "removed_ids": sorted(result.removed_ids)}


def notetree_duplicate(store: NodeStore, *, node_id: str) -> dict[str, Any]:
    """Copy one node (without children) next to the original."""
    result = store.duplicate(node_id)
    if not result.success:
        return _error(result)
    assert result.node is not None
    return {"success": True, "node": _node_to_dict(result.node)}


def notetree_update(
    store: NodeStore,
    *,
    node_id: str,
    title: str | None = None,
    body: str | None = None,
    is_expanded: bool | None = None,
    is_archived: bool | None = None,
    tags: list[str] | None = None,
) -> dict[str, Any]:
    """Edit a node's title, body, flags or tags."""
    changes: dict[str, Any] = {
        k: v
        for k, v in {
            "title": title,
            "body": body,
            "is_expanded": is_expanded,
            "is_archived": is_archived,
            "tags": tags,
        }.items()
        if v is not None
    }
    if not changes:
        return {"success": False, "error": "No fields to update."}

    result = store.update(node_id, **changes)
    if not result.success:
        return _error(result)
    assert result.node is not None
    return {"success": True, "node": _node_to_dict(result.node)}


# --- Server lifecycle ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    store: NodeStore
    repository: SqliteRepository
    # Mutations must not interleave; reads run freely against snapshots.
    write_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


def _resolve_db_path() -> Path:
    return resolve_data_directory() / DATABASE_FILENAME


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Open database on startup, close on shutdown."""
    db_path = _resolve_db_path()
    repository = SqliteRepository.open(db_path)
    try:
        store = NodeStore.load(repository)
        logger.info("Loaded {} nodes from {}", len(store), db_path)
        yield ServerContext(store=store, repository=repository)
    finally:
        repository.close()


mcp_server = FastMCP(
    "notetree",
    instructions="""\
notetree keeps notes and folders in a tree. Any node may have children.

- Use notetree_tree_tool to see the outline (ids are shown next to titles).
- Use notetree_search_tool to find nodes by title or body text.
- Moving a node always moves its whole subtree. position="child" makes it the
  last child of the target; "before"/"after" make it a sibling of the target.
- Deleting a node deletes everything below it. Duplicating copies one node only.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def notetree_tree_tool(
    ctx: Context,
    node_id: str | None = None,
    max_depth: int | None = None,
    output_format: str = "markdown",
) -> dict[str, Any]:
    """Show the note outline, or the subtree under one node.

    Args:
        node_id: Subtree root (omit for the whole outline).
        max_depth: Levels below each root to include.
        output_format: "markdown" or "json".
    """
    return notetree_tree(
        _ctx(ctx).store, node_id=node_id, max_depth=max_depth, output_format=output_format
    )


@mcp_server.tool()
async def notetree_search_tool(ctx: Context, query: str, limit: int = 20) -> dict[str, Any]:
    """Search note titles and bodies (case-insensitive substring).

    Args:
        query: Text to look for.
        limit: Max results (1-100).
    """
    return notetree_search(_ctx(ctx).store, query=query, limit=limit)


@mcp_server.tool()
async def notetree_create_tool(
    ctx: Context,
    parent_id: str | None = None,
    kind: str = "document",
    title: str = "",
    body: str = "",
    after_sibling: str | None = None,
) -> dict[str, Any]:
    """Create a document or folder as the last child of a parent (or a new root).

    Args:
        parent_id: Parent node ID (omit for a new root).
        kind: "document" or "folder".
        title: Initial title.
        body: Initial body.
        after_sibling: Insert right after this sibling instead of under parent_id.
    """
    async with _ctx(ctx).write_lock:
        return notetree_create(
            _ctx(ctx).store,
            parent_id=parent_id,
            kind=kind,
            title=title,
            body=body,
            after_sibling=after_sibling,
        )


@mcp_server.tool()
async def notetree_move_tool(
    ctx: Context,
    dragged_id: str,
    position: str,
    target_id: str | None = None,
) -> dict[str, Any]:
    """Move a node and its subtree.

    Args:
        dragged_id: Node to move.
        position: "before", "after" or "child".
        target_id: Reference node (omit for the root level).
    """
    async with _ctx(ctx).write_lock:
        return notetree_move(
            _ctx(ctx).store, dragged_id=dragged_id, target_id=target_id, position=position
        )


@mcp_server.tool()
async def notetree_delete_tool(ctx: Context, node_id: str) -> dict[str, Any]:
    """Delete a node together with all of its descendants.

    Args:
        node_id: Node to delete.
    """
    async with _ctx(ctx).write_lock:
        return notetree_delete(_ctx(ctx).store, node_id=node_id)


@mcp_server.tool()
async def notetree_duplicate_tool(ctx: Context, node_id: str) -> dict[str, Any]:
    """Duplicate a single node (children are not copied).

    Args:
        node_id: Node to duplicate.
    """
    async with _ctx(ctx).write_lock:
        return notetree_duplicate(_ctx(ctx).store, node_id=node_id)


@mcp_server.tool()
async def notetree_update_tool(
    ctx: Context,
    node_id: str,
    title: str | None = None,
    body: str | None = None,
    is_expanded: bool | None = None,
    is_archived: bool | None = None,
    tags: list[str] | None = None,
) -> dict[str, Any]:
    """Edit a node's title, body, flags or tags.

    Args:
        node_id: Node to edit.
        title: New title.
        body: New body.
        is_expanded: New expanded state.
        is_archived: New archived state.
        tags: Replacement tag list.
    """
    async with _ctx(ctx).write_lock:
        return notetree_update(
            _ctx(ctx).store,
            node_id=node_id,
            title=title,
            body=body,
            is_expanded=is_expanded,
            is_archived=is_archived,
            tags=tags,
        )


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from notetree.logging_config import configure_logging

    configure_logging(verbose=False)
    mcp_server.run(transport="stdio")
