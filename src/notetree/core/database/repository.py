"""SQLite persistence adapter for the node sequence."""

import json
import sqlite3
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from loguru import logger

from notetree.core.database.schema import migrate_schema, set_metadata
from notetree.models.node import Node

_COLUMNS = (
    "id, parent_id, title, body, is_folder, is_expanded, is_archived, is_deleted, "
    "tags, created_at, updated_at, sort_order"
)


def _row_to_node(row: sqlite3.Row | tuple) -> Node:
    return Node(
        id=row[0],
        parent_id=row[1],
        title=row[2],
        body=row[3],
        is_folder=bool(row[4]),
        is_expanded=bool(row[5]),
        is_archived=bool(row[6]),
        is_deleted=bool(row[7]),
        tags=frozenset(json.loads(row[8])),
        created_at=datetime.fromisoformat(row[9]),
        updated_at=datetime.fromisoformat(row[10]),
    )


def _node_to_row(node: Node, sort_order: int) -> tuple:
    return (
        node.id, node.parent_id, node.title, node.body,
        int(node.is_folder), int(node.is_expanded), int(node.is_archived), int(node.is_deleted),
        json.dumps(sorted(node.tags)), node.created_at.isoformat(), node.updated_at.isoformat(),
        sort_order,
    )


class SqliteRepository:
    """Stores the whole node sequence in one table, order kept in ``sort_order``."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        migrate_schema(conn)

    @classmethod
    def open(cls, db_path: Path) -> "SqliteRepository":
        """Open (and create if needed) the database at ``db_path``."""
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return cls(sqlite3.connect(str(db_path)))

    def close(self) -> None:
        self.conn.close()

    def load_all(self) -> list[Node]:
        rows = self.conn.execute(
            f"SELECT {_COLUMNS} FROM nodes ORDER BY sort_order"
        ).fetchall()
        logger.debug("Loaded {} nodes", len(rows))
        return [_row_to_node(r) for r in rows]

    def save_all(self, nodes: Sequence[Node]) -> None:
        try:
            # Clear and re-insert
            self.conn.execute("DELETE FROM nodes")
            self.conn.executemany(
                f"INSERT INTO nodes ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [_node_to_row(n, i) for i, n in enumerate(nodes)],
            )
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            logger.exception("Failed to save {} nodes", len(nodes))
            raise
        set_metadata(self.conn, "last_saved_at", datetime.now().astimezone().isoformat())
        logger.debug("Saved {} nodes", len(nodes))
