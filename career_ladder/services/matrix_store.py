"""Matrix store: snapshot assembly and mutations.

Uses SQLite when DATA_PROVIDER=sqlite; otherwise an in-memory matrix seeded
from the bundled sample snapshot. Snapshot reads against SQLite that fail
with a database or filesystem error degrade to the bundled snapshot so
browsing keeps working.

Every read returns fresh models; callers may hand them to the filter and
comparison engines without affecting stored state.
"""
from __future__ import annotations

import logging
import sqlite3
import threading
from typing import List, Optional

from fastapi import HTTPException, status

from career_ladder.core.config import get_settings
from career_ladder.data_readers import json_provider
from career_ladder.db import sqlite as sqlite_db
from career_ladder.models.domain import (
    TRACK_ORDER,
    CompetencyCategory,
    CompetencyCategoryCreate,
    CompetencySubCategory,
    CompetencySubCategoryCreate,
    EditHistoryEntry,
    EditHistoryEntryCreate,
    EngineeringJobMatrix,
    JobLevel,
    JobLevelCreate,
    JobLevelUpdate,
    Metadata,
    MetadataUpdate,
    SeedResult,
)

logger = logging.getLogger(__name__)

# In-memory fallback store (used when DATA_PROVIDER != "sqlite")
_mem_matrix: Optional[EngineeringJobMatrix] = None
# Guards lazy seeding and every in-memory mutation
_mem_lock = threading.RLock()


def _use_sqlite() -> bool:
    return get_settings().data_provider == "sqlite"


def _mem() -> EngineeringJobMatrix:
    global _mem_matrix
    with _mem_lock:
        if _mem_matrix is None:
            _mem_matrix = json_provider.get_sample_matrix()
        return _mem_matrix


def _db_failed(action: str) -> HTTPException:
    logger.exception("db.error", extra={"action": action})
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Database operation failed")


# PUBLIC_INTERFACE
def reset_store() -> None:
    """Reset in-memory state for tests or local dev.

    Note:
        - The in-memory matrix is re-seeded from the bundled snapshot on next use.
        - When using the SQLite provider, stored rows are not cleared.
    """
    global _mem_matrix
    with _mem_lock:
        _mem_matrix = None
    json_provider.clear_cache()


# --- Snapshot ---

# PUBLIC_INTERFACE
def load_matrix() -> EngineeringJobMatrix:
    """Assemble a fresh EngineeringJobMatrix snapshot.

    With the SQLite provider, a database or filesystem error (including a
    corrupt stored JSON column) falls back to the bundled sample snapshot.
    Missing metadata is replaced by Metadata.default().
    """
    if _use_sqlite():
        try:
            with sqlite_db.get_conn() as conn:
                matrix = sqlite_db.load_matrix(conn)
        except (sqlite3.DatabaseError, OSError):
            logger.warning("matrix.fallback", exc_info=True)
            matrix = json_provider.get_sample_matrix()
    else:
        with _mem_lock:
            matrix = _mem().model_copy(deep=True)

    if matrix.metadata is None:
        matrix.metadata = Metadata.default()
    return matrix


# --- Job levels ---

# PUBLIC_INTERFACE
def list_job_levels() -> List[JobLevel]:
    """All job levels ordered by track, then name."""
    levels = load_matrix().job_levels
    return sorted(levels, key=lambda lvl: (TRACK_ORDER[lvl.track], lvl.name))


# PUBLIC_INTERFACE
def get_job_level(level_id: str) -> Optional[JobLevel]:
    if _use_sqlite():
        try:
            with sqlite_db.get_conn() as conn:
                return sqlite_db.select_job_level(conn, level_id)
        except sqlite3.DatabaseError:
            raise _db_failed("get_job_level")
    with _mem_lock:
        for level in _mem().job_levels:
            if level.id == level_id:
                return level.model_copy(deep=True)
    return None


# PUBLIC_INTERFACE
def create_job_level(payload: JobLevelCreate) -> JobLevel:
    """Create a job level with a caller-supplied id (409 if it already exists)."""
    level = JobLevel(**payload.model_dump())
    if _use_sqlite():
        try:
            with sqlite_db.get_conn() as conn:
                if sqlite_db.select_job_level(conn, level.id):
                    raise HTTPException(
                        status_code=status.HTTP_409_CONFLICT,
                        detail=f"Job level with ID '{level.id}' already exists",
                    )
                sqlite_db.insert_job_level(conn, level)
        except sqlite3.IntegrityError:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Job level with ID '{level.id}' already exists",
            )
        except sqlite3.DatabaseError:
            raise _db_failed("create_job_level")
    else:
        with _mem_lock:
            matrix = _mem()
            if any(lvl.id == level.id for lvl in matrix.job_levels):
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Job level with ID '{level.id}' already exists",
                )
            matrix.job_levels.append(level.model_copy(deep=True))
    logger.info("level.created", extra={"level_id": level.id})
    return level


# PUBLIC_INTERFACE
def update_job_level(level_id: str, payload: JobLevelUpdate) -> Optional[JobLevel]:
    """Apply only the fields present in the payload. Returns None if the level is unknown."""
    changes = payload.changes()
    if _use_sqlite():
        try:
            with sqlite_db.get_conn() as conn:
                if not sqlite_db.select_job_level(conn, level_id):
                    return None
                sqlite_db.update_job_level(conn, level_id, changes)
                updated = sqlite_db.select_job_level(conn, level_id)
        except sqlite3.DatabaseError:
            raise _db_failed("update_job_level")
    else:
        with _mem_lock:
            matrix = _mem()
            for i, level in enumerate(matrix.job_levels):
                if level.id == level_id:
                    matrix.job_levels[i] = level.model_copy(update=changes)
                    updated = matrix.job_levels[i].model_copy(deep=True)
                    break
            else:
                return None
    logger.info("level.updated", extra={"level_id": level_id, "fields": sorted(changes)})
    return updated


# PUBLIC_INTERFACE
def delete_job_level(level_id: str) -> bool:
    """Delete a level after removing its entries from every description map.

    Returns:
        True if a level was deleted, False if it did not exist.
    """
    if _use_sqlite():
        try:
            with sqlite_db.get_conn() as conn:
                if not sqlite_db.select_job_level(conn, level_id):
                    return False
                deleted = sqlite_db.delete_job_level(conn, level_id)
        except sqlite3.DatabaseError:
            raise _db_failed("delete_job_level")
    else:
        with _mem_lock:
            matrix = _mem()
            remaining = [lvl for lvl in matrix.job_levels if lvl.id != level_id]
            if len(remaining) == len(matrix.job_levels):
                return False
            for category in matrix.competency_categories:
                for sub in category.sub_categories:
                    sub.descriptions_by_level.pop(level_id, None)
            matrix.job_levels = remaining
            deleted = True
    logger.info("level.deleted", extra={"level_id": level_id})
    return deleted


# --- Competency categories ---

# PUBLIC_INTERFACE
def list_competency_categories() -> List[CompetencyCategory]:
    """All categories ordered by name, each with sub-categories ordered by name."""
    categories = load_matrix().competency_categories
    return [
        c.model_copy(update={"sub_categories": sorted(c.sub_categories, key=lambda s: s.name)})
        for c in sorted(categories, key=lambda c: c.name)
    ]


# PUBLIC_INTERFACE
def get_competency_category(category_id: str) -> Optional[CompetencyCategory]:
    if _use_sqlite():
        try:
            with sqlite_db.get_conn() as conn:
                return sqlite_db.select_category(conn, category_id)
        except sqlite3.DatabaseError:
            raise _db_failed("get_competency_category")
    with _mem_lock:
        for category in _mem().competency_categories:
            if category.id == category_id:
                return category.model_copy(deep=True)
    return None


# PUBLIC_INTERFACE
def create_competency_category(payload: CompetencyCategoryCreate) -> CompetencyCategory:
    """Create an empty category (409 if the id already exists)."""
    conflict = HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=f"Competency category with ID '{payload.id}' already exists",
    )
    if _use_sqlite():
        try:
            with sqlite_db.get_conn() as conn:
                if sqlite_db.select_category(conn, payload.id):
                    raise conflict
                sqlite_db.insert_category(conn, payload.id, payload.name)
        except sqlite3.IntegrityError:
            raise conflict
        except sqlite3.DatabaseError:
            raise _db_failed("create_competency_category")
    else:
        with _mem_lock:
            matrix = _mem()
            if any(c.id == payload.id for c in matrix.competency_categories):
                raise conflict
            matrix.competency_categories.append(CompetencyCategory(id=payload.id, name=payload.name))
    logger.info("category.created", extra={"category_id": payload.id})
    return CompetencyCategory(id=payload.id, name=payload.name, sub_categories=[])


def _sub_category_exists(matrix: EngineeringJobMatrix, sub_id: str) -> bool:
    return any(s.id == sub_id for c in matrix.competency_categories for s in c.sub_categories)


# PUBLIC_INTERFACE
def create_competency_sub_category(payload: CompetencySubCategoryCreate) -> CompetencySubCategory:
    """Create a sub-category under an existing category.

    Raises:
        HTTPException: 404 if the category does not exist, 409 if the id is taken.
    """
    sub = CompetencySubCategory(**payload.model_dump())
    missing = HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Competency category with id '{payload.category_id}' does not exist",
    )
    conflict = HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=f"Competency sub-category with ID '{payload.id}' already exists",
    )
    if _use_sqlite():
        try:
            with sqlite_db.get_conn() as conn:
                if not sqlite_db.select_category(conn, payload.category_id):
                    raise missing
                if sqlite_db.select_sub_category(conn, payload.id):
                    raise conflict
                sqlite_db.insert_sub_category(conn, sub)
        except sqlite3.IntegrityError:
            raise conflict
        except sqlite3.DatabaseError:
            raise _db_failed("create_competency_sub_category")
    else:
        with _mem_lock:
            matrix = _mem()
            category = next((c for c in matrix.competency_categories if c.id == payload.category_id), None)
            if category is None:
                raise missing
            if _sub_category_exists(matrix, payload.id):
                raise conflict
            category.sub_categories.append(sub.model_copy(deep=True))
    logger.info("sub_category.created", extra={"sub_category_id": sub.id, "category_id": sub.category_id})
    return sub


# --- Metadata & edit history ---

def _newest_first(entries: List[EditHistoryEntry]) -> List[EditHistoryEntry]:
    return sorted(entries, key=lambda e: e.date, reverse=True)


# PUBLIC_INTERFACE
def get_metadata() -> Metadata:
    """Return the metadata singleton, creating it with defaults if absent.

    Edit history is ordered by date, most recent first.
    """
    if _use_sqlite():
        try:
            with sqlite_db.get_conn() as conn:
                row = sqlite_db.select_metadata_row(conn)
                if row is None:
                    default = Metadata.default()
                    sqlite_db.insert_metadata(conn, default.last_updated, [], [])
                    row = sqlite_db.select_metadata_row(conn)
                history = sqlite_db.select_edit_history(conn)
        except sqlite3.DatabaseError:
            raise _db_failed("get_metadata")
        return Metadata(
            last_updated=row["last_updated"],
            goals=row["goals"],
            key_principles=row["key_principles"],
            edit_history=_newest_first(history),
        )
    with _mem_lock:
        matrix = _mem()
        if matrix.metadata is None:
            matrix.metadata = Metadata.default()
        metadata = matrix.metadata.model_copy(deep=True)
    metadata.edit_history = _newest_first(metadata.edit_history)
    return metadata


# PUBLIC_INTERFACE
def update_metadata(payload: MetadataUpdate) -> Metadata:
    """Create metadata on first use, otherwise replace only the provided fields."""
    changes = payload.changes()
    if _use_sqlite():
        try:
            with sqlite_db.get_conn() as conn:
                row = sqlite_db.select_metadata_row(conn)
                if row is None:
                    sqlite_db.insert_metadata(
                        conn,
                        changes.get("last_updated") or Metadata.default().last_updated,
                        changes.get("goals", []),
                        changes.get("key_principles", []),
                    )
                else:
                    sqlite_db.update_metadata(conn, row["id"], changes)
        except sqlite3.DatabaseError:
            raise _db_failed("update_metadata")
    else:
        with _mem_lock:
            matrix = _mem()
            if matrix.metadata is None:
                matrix.metadata = Metadata.default()
            matrix.metadata = matrix.metadata.model_copy(update=changes)
    logger.info("metadata.updated", extra={"fields": sorted(changes)})
    return get_metadata()


# PUBLIC_INTERFACE
def add_edit_history_entry(payload: EditHistoryEntryCreate) -> EditHistoryEntry:
    """Append an entry to the edit history."""
    entry = EditHistoryEntry(date=payload.date, description=payload.description)
    if _use_sqlite():
        try:
            with sqlite_db.get_conn() as conn:
                sqlite_db.insert_edit_history(conn, entry)
        except sqlite3.DatabaseError:
            raise _db_failed("add_edit_history_entry")
    else:
        with _mem_lock:
            matrix = _mem()
            if matrix.metadata is None:
                matrix.metadata = Metadata.default()
            matrix.metadata.edit_history.append(entry.model_copy())
    logger.info("edit_history.added", extra={"date": entry.date})
    return entry


# PUBLIC_INTERFACE
def get_edit_history() -> List[EditHistoryEntry]:
    """Edit history, most recent date first."""
    if _use_sqlite():
        try:
            with sqlite_db.get_conn() as conn:
                return _newest_first(sqlite_db.select_edit_history(conn))
        except sqlite3.DatabaseError:
            raise _db_failed("get_edit_history")
    with _mem_lock:
        metadata = _mem().metadata
        return _newest_first(list(metadata.edit_history)) if metadata else []


# --- Seeding ---

# PUBLIC_INTERFACE
def seed_data() -> SeedResult:
    """Replace all stored data with the bundled sample snapshot. Idempotent."""
    global _mem_matrix
    sample = json_provider.get_sample_matrix()
    if _use_sqlite():
        try:
            with sqlite_db.get_conn() as conn:
                sqlite_db.replace_matrix(conn, sample)
        except sqlite3.DatabaseError:
            raise _db_failed("seed_data")
    else:
        with _mem_lock:
            _mem_matrix = sample

    sub_count = sum(len(c.sub_categories) for c in sample.competency_categories)
    logger.info(
        "matrix.seeded",
        extra={"levels": len(sample.job_levels), "categories": len(sample.competency_categories)},
    )
    return SeedResult(
        success=True,
        message=(
            f"Seeded career ladder data: {len(sample.job_levels)} job levels, "
            f"{len(sample.competency_categories)} competency categories, "
            f"{sub_count} sub-categories, metadata and edit history"
        ),
    )
