from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

Collection = Literal["industries", "project_types"]

COLLECTIONS: tuple[str, ...] = ("industries", "project_types")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS industries (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_industries_name ON industries(name);
CREATE INDEX IF NOT EXISTS idx_industries_active ON industries(is_active);

CREATE TABLE IF NOT EXISTS project_types (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_project_types_name ON project_types(name);
CREATE INDEX IF NOT EXISTS idx_project_types_active ON project_types(is_active);
"""

DEFAULT_INDUSTRIES: list[dict[str, str]] = [
    {"id": "healthcare", "name": "Healthcare", "description": "Medical, pharmaceutical, and health-related projects"},
    {"id": "education", "name": "Education", "description": "Educational technology and learning platforms"},
    {"id": "finance", "name": "Finance", "description": "Banking, fintech, and financial services"},
    {"id": "technology", "name": "Technology", "description": "Software development and IT solutions"},
    {"id": "ecommerce", "name": "E-commerce", "description": "Online retail and marketplace platforms"},
    {"id": "manufacturing", "name": "Manufacturing", "description": "Industrial and production management systems"},
    {"id": "entertainment", "name": "Entertainment", "description": "Media, gaming, and entertainment platforms"},
    {"id": "transportation", "name": "Transportation", "description": "Logistics, mobility, and transportation solutions"},
]

DEFAULT_PROJECT_TYPES: list[dict[str, str]] = [
    {"id": "web-application", "name": "Web Application", "description": "Browser-based applications and web platforms"},
    {"id": "mobile-application", "name": "Mobile Application", "description": "iOS and Android mobile applications"},
    {"id": "desktop-software", "name": "Desktop Software", "description": "Cross-platform desktop applications"},
    {"id": "iot-project", "name": "IoT Project", "description": "Internet of Things and connected devices"},
    {"id": "data-science", "name": "Data Science", "description": "Data analysis and visualization projects"},
    {"id": "machine-learning", "name": "Machine Learning", "description": "AI and machine learning applications"},
    {"id": "game-development", "name": "Game Development", "description": "Video games and interactive entertainment"},
    {"id": "blockchain", "name": "Blockchain", "description": "Decentralized applications and smart contracts"},
]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _table(collection: str) -> str:
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown collection: {collection}")
    return collection


def _escape_like(query: str) -> str:
    return query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_dict(row: sqlite3.Row) -> dict[str, Any]:
    data = dict(row)
    data["is_active"] = bool(data["is_active"])
    return data


class Store:
    """SQLite persistence for the industry and project type collections."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)

    def seed_defaults(self) -> int:
        """Replace both collections with the default catalog. Returns rows written."""
        stamp = _now()
        written = 0
        with self._connect() as conn:
            for table, entries in (("industries", DEFAULT_INDUSTRIES), ("project_types", DEFAULT_PROJECT_TYPES)):
                conn.execute(f"DELETE FROM {table}")
                conn.executemany(
                    f"""
                    INSERT INTO {table}(id, name, description, is_active, created_at, updated_at)
                    VALUES (?, ?, ?, 1, ?, ?)
                    """,
                    [(e["id"], e["name"], e["description"], stamp, stamp) for e in entries],
                )
                written += len(entries)
        return written

    def list_active(self, collection: Collection) -> list[dict[str, Any]]:
        table = _table(collection)
        with self._connect() as conn:
            rows = conn.execute(f"SELECT * FROM {table} WHERE is_active = 1 ORDER BY name").fetchall()
            return [_row_to_dict(r) for r in rows]

    def search_active(self, collection: Collection, query: str) -> list[dict[str, Any]]:
        table = _table(collection)
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM {table} WHERE is_active = 1 AND name LIKE ? ESCAPE '\\' ORDER BY name",
                (f"%{_escape_like(query)}%",),
            ).fetchall()
            return [_row_to_dict(r) for r in rows]

    def get(self, collection: Collection, entry_id: str, active_only: bool = False) -> dict[str, Any] | None:
        table = _table(collection)
        query = f"SELECT * FROM {table} WHERE id = ?"
        if active_only:
            query += " AND is_active = 1"
        with self._connect() as conn:
            row = conn.execute(query, (entry_id,)).fetchone()
            return _row_to_dict(row) if row else None

    def insert(self, collection: Collection, entry_id: str, name: str, description: str) -> dict[str, Any]:
        """Insert an active entry. Raises ``sqlite3.IntegrityError`` on a duplicate id."""
        table = _table(collection)
        stamp = _now()
        with self._connect() as conn:
            conn.execute(
                f"""
                INSERT INTO {table}(id, name, description, is_active, created_at, updated_at)
                VALUES (?, ?, ?, 1, ?, ?)
                """,
                (entry_id, name, description, stamp, stamp),
            )
        return {
            "id": entry_id,
            "name": name,
            "description": description,
            "is_active": True,
            "created_at": stamp,
            "updated_at": stamp,
        }

    def update(self, collection: Collection, entry_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        table = _table(collection)
        allowed = {key: value for key, value in changes.items() if key in {"name", "description", "is_active"}}
        if "is_active" in allowed:
            allowed["is_active"] = int(bool(allowed["is_active"]))
        allowed["updated_at"] = _now()

        assignments = ", ".join(f"{key} = ?" for key in allowed)
        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE {table} SET {assignments} WHERE id = ?",
                (*allowed.values(), entry_id),
            )
            if cursor.rowcount == 0:
                return None
        return self.get(collection, entry_id)

    def delete(self, collection: Collection, entry_id: str) -> bool:
        table = _table(collection)
        with self._connect() as conn:
            cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (entry_id,))
            return cursor.rowcount > 0
