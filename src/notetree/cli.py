"""CLI for notetree (outline, edit, search, MCP server)."""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger

from notetree.config import DATABASE_FILENAME, resolve_data_directory
from notetree.core.database.repository import SqliteRepository
from notetree.core.tree.invariants import InvariantViolation, assert_contiguous
from notetree.core.tree.markdown import render_forest_as_markdown
from notetree.logging_config import configure_logging
from notetree.mcp.server import (
    notetree_create,
    notetree_delete,
    notetree_duplicate,
    notetree_move,
    notetree_search,
    notetree_tree,
    notetree_update,
)
from notetree.store import NodeStore

app = typer.Typer(help="notetree: organize notes and folders in a tree.")

DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", "-d", help="Directory holding the notetree database"),
]
JsonOption = Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


@contextmanager
def _open_store(data_dir: Path | None) -> Iterator[NodeStore]:
    """Load the store from the database, creating it on first use."""
    db_path = (data_dir or resolve_data_directory()) / DATABASE_FILENAME
    repository = SqliteRepository.open(db_path)
    try:
        yield NodeStore.load(repository)
    finally:
        repository.close()


def _report(result: dict[str, Any], *, output_json: bool, message: str) -> None:
    """Print a tool result; exit non-zero when it failed."""
    if output_json:
        typer.echo(json.dumps(result, indent=2))
    elif result.get("success"):
        typer.echo(message)
    if not result.get("success"):
        logger.error("{}", result.get("error"))
        raise typer.Exit(1)


@app.command()
def tree(
    node_id: str | None = typer.Argument(None, help="Only show the subtree under this node"),
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-m", help="Max depth levels to render"),
    ] = None,
    show_ids: bool = typer.Option(True, "--ids/--no-ids", help="Show node ids"),
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """Show the outline as markdown."""
    with _open_store(data_dir) as store:
        if output_json or node_id:
            result = notetree_tree(
                store,
                node_id=node_id,
                max_depth=max_depth,
                output_format="json" if output_json else "markdown",
            )
            if "error" in result:
                typer.echo(result["error"])
                raise typer.Exit(1)
            typer.echo(json.dumps(result, indent=2) if output_json else result["content"])
            return

        if not len(store):
            typer.echo("No notes yet.")
            return
        typer.echo(render_forest_as_markdown(store.forest(), max_depth=max_depth, show_ids=show_ids))


@app.command()
def add(
    title: str = typer.Argument("", help="Title of the new node"),
    parent: Annotated[
        str | None, typer.Option("--parent", "-p", help="Parent node ID (default: new root)")
    ] = None,
    folder: bool = typer.Option(False, "--folder", "-F", help="Create a folder"),
    body: str = typer.Option("", "--body", "-b", help="Initial body"),
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """Create a document or folder as the last child of a parent."""
    with _open_store(data_dir) as store:
        result = notetree_create(
            store,
            parent_id=parent,
            kind="folder" if folder else "document",
            title=title,
            body=body,
        )
    node_id = result.get("node", {}).get("id")
    _report(result, output_json=output_json, message=f"Created {node_id}")


@app.command(name="add-sibling")
def add_sibling(
    sibling_id: str = typer.Argument(..., help="Node to insert after"),
    title: str = typer.Argument("", help="Title of the new node"),
    folder: bool = typer.Option(False, "--folder", "-F", help="Create a folder"),
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """Create a node right after a sibling."""
    with _open_store(data_dir) as store:
        result = notetree_create(
            store,
            kind="folder" if folder else "document",
            title=title,
            after_sibling=sibling_id,
        )
    node_id = result.get("node", {}).get("id")
    _report(result, output_json=output_json, message=f"Created {node_id}")


@app.command()
def move(
    dragged_id: str = typer.Argument(..., help="Node to move"),
    position: str = typer.Argument(..., help="before, after or child"),
    target_id: str | None = typer.Argument(None, help="Reference node (omit for root level)"),
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """Move a node and its subtree."""
    with _open_store(data_dir) as store:
        result = notetree_move(
            store, dragged_id=dragged_id, target_id=target_id, position=position
        )
    _report(
        result,
        output_json=output_json,
        message=f"Moved {dragged_id} {position} {target_id or 'root level'}",
    )


@app.command()
def delete(
    node_id: str = typer.Argument(..., help="Node to delete with its descendants"),
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """Delete a node and everything below it."""
    with _open_store(data_dir) as store:
        result = notetree_delete(store, node_id=node_id)
    count = len(result.get("removed_ids", []))
    _report(result, output_json=output_json, message=f"Deleted {count} node(s)")


@app.command()
def duplicate(
    node_id: str = typer.Argument(..., help="Node to duplicate (children are not copied)"),
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """Duplicate a single node next to the original."""
    with _open_store(data_dir) as store:
        result = notetree_duplicate(store, node_id=node_id)
    node_id_new = result.get("node", {}).get("id")
    _report(result, output_json=output_json, message=f"Created {node_id_new}")


@app.command()
def update(
    node_id: str = typer.Argument(..., help="Node to edit"),
    title: Annotated[str | None, typer.Option("--title", "-t", help="New title")] = None,
    body: Annotated[str | None, typer.Option("--body", "-b", help="New body")] = None,
    tag: Annotated[
        list[str] | None, typer.Option("--tag", help="Replacement tags (repeatable)")
    ] = None,
    archived: Annotated[
        bool | None, typer.Option("--archived/--not-archived", help="Archive flag")
    ] = None,
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """Edit a node's title, body, tags or archive flag."""
    with _open_store(data_dir) as store:
        result = notetree_update(
            store, node_id=node_id, title=title, body=body, tags=tag, is_archived=archived
        )
    _report(result, output_json=output_json, message=f"Updated {node_id}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    limit: int = typer.Option(10, "--limit", "-n", help="Max results"),
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """Search titles and bodies."""
    with _open_store(data_dir) as store:
        result = notetree_search(store, query=query, limit=limit)

    if output_json:
        typer.echo(json.dumps(result, indent=2))
        return
    if "error" in result:
        typer.echo(result["error"])
        raise typer.Exit(1)

    typer.echo(f"Found {result['count']} results:\n")
    for r in result["results"]:
        crumbs = f"{r['breadcrumbs']} > " if r["breadcrumbs"] else ""
        typer.echo(f"  {crumbs}{r['title']}")
        if r["snippet"]:
            typer.echo(f"    {r['snippet']}")
        typer.echo(f"    id={r['node_id']}")
        typer.echo()


@app.command()
def check(data_dir: DataDirOption = None) -> None:
    """Verify that the stored outline is consistent."""
    db_path = (data_dir or resolve_data_directory()) / DATABASE_FILENAME
    repository = SqliteRepository.open(db_path)
    try:
        nodes = repository.load_all()
        assert_contiguous(nodes)
    except InvariantViolation as e:
        typer.echo(f"Outline is inconsistent: {e}")
        raise typer.Exit(1) from e
    finally:
        repository.close()
    typer.echo(f"OK: {len(nodes)} nodes")


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from notetree.mcp.server import run_mcp_server

    run_mcp_server()
