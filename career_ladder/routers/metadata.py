"""Metadata and edit history endpoints."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, status

from career_ladder.models.domain import EditHistoryEntry, EditHistoryEntryCreate, Metadata, MetadataUpdate
from career_ladder.services import matrix_store

router = APIRouter(prefix="/metadata", tags=["metadata"])


# PUBLIC_INTERFACE
@router.get("/", response_model=Metadata, summary="Get metadata", description="Return goals, key principles and edit history (most recent first).")
def get_metadata():
    """Return metadata, creating defaults on first access."""
    return matrix_store.get_metadata()


# PUBLIC_INTERFACE
@router.patch("/", response_model=Metadata, summary="Update metadata", description="Replace only the provided metadata fields.")
def update_metadata(payload: MetadataUpdate):
    """Partially update metadata."""
    return matrix_store.update_metadata(payload)


# PUBLIC_INTERFACE
@router.get("/edit-history", response_model=List[EditHistoryEntry], summary="Edit history", description="Return edit history entries ordered by date, most recent first.")
def edit_history():
    """Return the edit history."""
    return matrix_store.get_edit_history()


# PUBLIC_INTERFACE
@router.post("/edit-history", response_model=EditHistoryEntry, status_code=status.HTTP_201_CREATED, summary="Add edit history entry", description="Append an entry to the edit history.")
def add_edit_history_entry(payload: EditHistoryEntryCreate):
    """Append an edit history entry."""
    return matrix_store.add_edit_history_entry(payload)
