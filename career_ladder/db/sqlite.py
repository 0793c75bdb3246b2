"""SQLite database helper and repositories for the career ladder matrix.

Only used when DATA_PROVIDER=sqlite. Otherwise, an in-memory matrix seeded
from the bundled snapshot is used.

Controls:
- Use parameterized queries.
- Ensure connections are closed via context managers.
- Create DB directory if missing; initialize schema on first connect.

JSON-valued columns (descriptions_by_level, goals, key_principles) are stored
as TEXT. Row order of every table is insertion order (rowid).
"""
from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from career_ladder.core.config import get_settings
from career_ladder.models.domain import (
    CompetencyCategory,
    CompetencySubCategory,
    EditHistoryEntry,
    EngineeringJobMatrix,
    JobLevel,
    Metadata,
)


LEVEL_COLUMNS = (
    "id",
    "name",
    "track",
    "summary_description",
    "trajectory_info",
    "scope_of_influence_summary",
    "ownership_summary",
)


def _ensure_schema(conn: sqlite3.Connection) -> None:
    """Create the matrix tables if they do not exist."""
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS job_levels (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            track TEXT NOT NULL CHECK (track IN ('IC', 'TL', 'EM', 'Director')),
            summary_description TEXT NOT NULL,
            trajectory_info TEXT,
            scope_of_influence_summary TEXT,
            ownership_summary TEXT,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        CREATE TABLE IF NOT EXISTS competency_categories (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        -- Sub-categories are owned by a category; deleting the category cascades
        CREATE TABLE IF NOT EXISTS competency_sub_categories (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            category_id TEXT NOT NULL,
            descriptions_by_level TEXT NOT NULL DEFAULT '{}',
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(category_id) REFERENCES competency_categories(id) ON DELETE CASCADE
        );
        -- Single logical row
        CREATE TABLE IF NOT EXISTS metadata (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            last_updated TEXT NOT NULL,
            goals TEXT NOT NULL DEFAULT '[]',
            key_principles TEXT NOT NULL DEFAULT '[]',
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        CREATE TABLE IF NOT EXISTS edit_history (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            date TEXT NOT NULL,
            description TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        """
    )
    conn.commit()


@contextmanager
def get_conn():
    settings = get_settings()
    db_path = Path(settings.db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    # Use check_same_thread=False to prevent thread-affinity errors under TestClient or background tasks.
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    try:
        conn.execute("PRAGMA foreign_keys = ON")
        _ensure_schema(conn)
        yield conn
    finally:
        conn.close()


def fetch_all(conn: sqlite3.Connection, query: str, params: Iterable[Any]) -> list[dict[str, Any]]:
    conn.row_factory = sqlite3.Row
    cur = conn.execute(query, list(params))
    rows = cur.fetchall()
    return [dict(r) for r in rows]


def fetch_one(conn: sqlite3.Connection, query: str, params: Iterable[Any]) -> Optional[dict[str, Any]]:
    conn.row_factory = sqlite3.Row
    cur = conn.execute(query, list(params))
    row = cur.fetchone()
    return dict(row) if row else None


def execute(conn: sqlite3.Connection, query: str, params: Iterable[Any]) -> None:
    conn.execute(query, list(params))
    conn.commit()


# PUBLIC_INTERFACE
def reset_matrix_tables() -> None:
    """Drop all rows from the matrix tables for test isolation."""
    with get_conn() as conn:
        _clear(conn)
        conn.commit()


def _clear(conn: sqlite3.Connection) -> None:
    # Dependent tables first due to foreign keys
    conn.execute("DELETE FROM edit_history")
    conn.execute("DELETE FROM competency_sub_categories")
    conn.execute("DELETE FROM competency_categories")
    conn.execute("DELETE FROM job_levels")
    conn.execute("DELETE FROM metadata")


# --- Row mapping ---

def _load_json(value: Optional[str], default: Any) -> Any:
    if not value:
        return default
    try:
        return json.loads(value)
    except ValueError as exc:
        raise sqlite3.DatabaseError(f"Corrupt JSON column value: {exc}") from exc


def _row_to_level(row: dict[str, Any]) -> JobLevel:
    return JobLevel(**{c: row[c] for c in LEVEL_COLUMNS})


def _row_to_sub_category(row: dict[str, Any]) -> CompetencySubCategory:
    return CompetencySubCategory(
        id=row["id"],
        name=row["name"],
        category_id=row["category_id"],
        descriptions_by_level=_load_json(row["descriptions_by_level"], {}),
    )


# --- Job levels ---

def select_job_levels(conn: sqlite3.Connection) -> List[JobLevel]:
    rows = fetch_all(conn, "SELECT * FROM job_levels ORDER BY rowid", ())
    return [_row_to_level(r) for r in rows]


def select_job_level(conn: sqlite3.Connection, level_id: str) -> Optional[JobLevel]:
    row = fetch_one(conn, "SELECT * FROM job_levels WHERE id = ?", (level_id,))
    return _row_to_level(row) if row else None


def insert_job_level(conn: sqlite3.Connection, level: JobLevel, commit: bool = True) -> None:
    conn.execute(
        "INSERT INTO job_levels (id, name, track, summary_description, trajectory_info, "
        "scope_of_influence_summary, ownership_summary) VALUES (?, ?, ?, ?, ?, ?, ?)",
        (
            level.id,
            level.name,
            level.track.value,
            level.summary_description,
            level.trajectory_info,
            level.scope_of_influence_summary,
            level.ownership_summary,
        ),
    )
    if commit:
        conn.commit()


def update_job_level(conn: sqlite3.Connection, level_id: str, changes: Dict[str, Any]) -> None:
    """Apply a partial update. Keys must be JobLevel field names."""
    cols = [c for c in changes if c in LEVEL_COLUMNS and c != "id"]
    if not cols:
        return
    values = [getattr(changes[c], "value", changes[c]) for c in cols]
    assignments = ", ".join(f"{c} = ?" for c in cols)
    execute(
        conn,
        f"UPDATE job_levels SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
        (*values, level_id),
    )


def delete_job_level(conn: sqlite3.Connection, level_id: str) -> bool:
    """Remove the level's descriptions from every sub-category, then the level."""
    rows = fetch_all(conn, "SELECT id, descriptions_by_level FROM competency_sub_categories", ())
    for r in rows:
        descriptions = _load_json(r["descriptions_by_level"], {})
        if level_id in descriptions:
            del descriptions[level_id]
            conn.execute(
                "UPDATE competency_sub_categories SET descriptions_by_level = ?, "
                "updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (json.dumps(descriptions), r["id"]),
            )
    cur = conn.execute("DELETE FROM job_levels WHERE id = ?", (level_id,))
    conn.commit()
    return cur.rowcount > 0


# --- Competency categories ---

def select_categories(conn: sqlite3.Connection) -> List[CompetencyCategory]:
    """All categories (including empty ones) with sub-categories, in insertion order."""
    cats = fetch_all(conn, "SELECT id, name FROM competency_categories ORDER BY rowid", ())
    subs = fetch_all(conn, "SELECT * FROM competency_sub_categories ORDER BY rowid", ())
    by_cat: Dict[str, List[CompetencySubCategory]] = {}
    for s in subs:
        by_cat.setdefault(s["category_id"], []).append(_row_to_sub_category(s))
    return [
        CompetencyCategory(id=c["id"], name=c["name"], sub_categories=by_cat.get(c["id"], []))
        for c in cats
    ]


def select_category(conn: sqlite3.Connection, category_id: str) -> Optional[CompetencyCategory]:
    row = fetch_one(conn, "SELECT id, name FROM competency_categories WHERE id = ?", (category_id,))
    if not row:
        return None
    subs = fetch_all(
        conn,
        "SELECT * FROM competency_sub_categories WHERE category_id = ? ORDER BY rowid",
        (category_id,),
    )
    return CompetencyCategory(
        id=row["id"], name=row["name"], sub_categories=[_row_to_sub_category(s) for s in subs]
    )


def select_sub_category(conn: sqlite3.Connection, sub_id: str) -> Optional[CompetencySubCategory]:
    row = fetch_one(conn, "SELECT * FROM competency_sub_categories WHERE id = ?", (sub_id,))
    return _row_to_sub_category(row) if row else None


def insert_category(conn: sqlite3.Connection, category_id: str, name: str, commit: bool = True) -> None:
    conn.execute("INSERT INTO competency_categories (id, name) VALUES (?, ?)", (category_id, name))
    if commit:
        conn.commit()


def insert_sub_category(conn: sqlite3.Connection, sub: CompetencySubCategory, commit: bool = True) -> None:
    conn.execute(
        "INSERT INTO competency_sub_categories (id, name, category_id, descriptions_by_level) "
        "VALUES (?, ?, ?, ?)",
        (sub.id, sub.name, sub.category_id, json.dumps(sub.descriptions_by_level)),
    )
    if commit:
        conn.commit()


# --- Metadata & edit history ---

def select_metadata_row(conn: sqlite3.Connection) -> Optional[dict[str, Any]]:
    row = fetch_one(conn, "SELECT * FROM metadata ORDER BY id LIMIT 1", ())
    if not row:
        return None
    row["goals"] = _load_json(row["goals"], [])
    row["key_principles"] = _load_json(row["key_principles"], [])
    return row


def insert_metadata(
    conn: sqlite3.Connection, last_updated: str, goals: List[str], key_principles: List[str], commit: bool = True
) -> None:
    conn.execute(
        "INSERT INTO metadata (last_updated, goals, key_principles) VALUES (?, ?, ?)",
        (last_updated, json.dumps(goals), json.dumps(key_principles)),
    )
    if commit:
        conn.commit()


def update_metadata(conn: sqlite3.Connection, row_id: int, changes: Dict[str, Any]) -> None:
    cols = [c for c in ("last_updated", "goals", "key_principles") if c in changes]
    if not cols:
        return
    values = [changes[c] if c == "last_updated" else json.dumps(changes[c]) for c in cols]
    assignments = ", ".join(f"{c} = ?" for c in cols)
    execute(
        conn,
        f"UPDATE metadata SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
        (*values, row_id),
    )


def select_edit_history(conn: sqlite3.Connection) -> List[EditHistoryEntry]:
    rows = fetch_all(conn, "SELECT date, description FROM edit_history ORDER BY id", ())
    return [EditHistoryEntry(**r) for r in rows]


def insert_edit_history(conn: sqlite3.Connection, entry: EditHistoryEntry, commit: bool = True) -> None:
    conn.execute(
        "INSERT INTO edit_history (date, description) VALUES (?, ?)",
        (entry.date, entry.description),
    )
    if commit:
        conn.commit()


# --- Aggregate ---

def load_matrix(conn: sqlite3.Connection) -> EngineeringJobMatrix:
    """Assemble a snapshot. metadata is None when no metadata row exists."""
    meta_row = select_metadata_row(conn)
    metadata = None
    if meta_row:
        metadata = Metadata(
            last_updated=meta_row["last_updated"],
            goals=meta_row["goals"],
            key_principles=meta_row["key_principles"],
            edit_history=select_edit_history(conn),
        )
    return EngineeringJobMatrix(
        job_levels=select_job_levels(conn),
        competency_categories=select_categories(conn),
        metadata=metadata,
    )


def replace_matrix(conn: sqlite3.Connection, matrix: EngineeringJobMatrix) -> None:
    """Replace every stored row with the given snapshot in one transaction."""
    try:
        _clear(conn)
        for level in matrix.job_levels:
            insert_job_level(conn, level, commit=False)
        for category in matrix.competency_categories:
            insert_category(conn, category.id, category.name, commit=False)
            for sub in category.sub_categories:
                insert_sub_category(
                    conn, sub.model_copy(update={"category_id": category.id}), commit=False
                )
        if matrix.metadata is not None:
            insert_metadata(
                conn,
                matrix.metadata.last_updated,
                matrix.metadata.goals,
                matrix.metadata.key_principles,
                commit=False,
            )
            for entry in matrix.metadata.edit_history:
                insert_edit_history(conn, entry, commit=False)
        conn.commit()
    except sqlite3.DatabaseError:
        conn.rollback()
        raise
