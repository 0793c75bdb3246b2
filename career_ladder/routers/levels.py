"""Job level endpoints."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, HTTPException, Path, status

from career_ladder.models.domain import JobLevel, JobLevelCreate, JobLevelUpdate
from career_ladder.services import matrix_store

router = APIRouter(prefix="/levels", tags=["levels"])


def _not_found(level_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Job level not found: {level_id}")


# PUBLIC_INTERFACE
@router.get("/", response_model=List[JobLevel], summary="List job levels", description="List job levels ordered by track, then name.")
def list_levels():
    """List all job levels."""
    return matrix_store.list_job_levels()


# PUBLIC_INTERFACE
@router.get("/{level_id}", response_model=JobLevel, summary="Get job level", description="Return a single job level by id.")
def get_level(level_id: str = Path(..., description="Job level id (e.g., L3)")):
    """Return a job level or 404."""
    level = matrix_store.get_job_level(level_id)
    if level is None:
        raise _not_found(level_id)
    return level


# PUBLIC_INTERFACE
@router.post("/", response_model=JobLevel, status_code=status.HTTP_201_CREATED, summary="Create job level", description="Create a job level with a caller-supplied unique id.")
def create_level(payload: JobLevelCreate):
    """Create a job level.

    Returns:
        201 with the created level.
        409 if the id already exists.
    """
    return matrix_store.create_job_level(payload)


# PUBLIC_INTERFACE
@router.patch("/{level_id}", response_model=JobLevel, summary="Update job level", description="Partially update a job level. Omitted fields are untouched; explicit null clears nullable fields.")
def update_level(payload: JobLevelUpdate, level_id: str = Path(..., description="Job level id")):
    """Apply a partial update."""
    level = matrix_store.update_job_level(level_id, payload)
    if level is None:
        raise _not_found(level_id)
    return level


# PUBLIC_INTERFACE
@router.delete("/{level_id}", summary="Delete job level", description="Delete a job level and its descriptions in every sub-category.")
def delete_level(level_id: str = Path(..., description="Job level id")):
    """Delete a job level."""
    if not matrix_store.delete_job_level(level_id):
        raise _not_found(level_id)
    return {"deleted": True, "id": level_id}
