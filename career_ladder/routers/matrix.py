"""Matrix browse, search and compare endpoints."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query

from career_ladder.models.domain import CompareRequest, EngineeringJobMatrix, FilterCriteria, Track
from career_ladder.services import matrix_store
from career_ladder.services.comparison import compare_levels
from career_ladder.services.matrix_filter import filter_matrix

router = APIRouter(prefix="/matrix", tags=["matrix"])


# PUBLIC_INTERFACE
@router.get("/", response_model=EngineeringJobMatrix, summary="Full matrix", description="Return all job levels, competency categories and metadata.")
def full_matrix():
    """Return the unfiltered matrix."""
    return matrix_store.load_matrix()


# PUBLIC_INTERFACE
@router.get("/search", response_model=EngineeringJobMatrix, summary="Search matrix", description="Filter the matrix. List parameters may be repeated (e.g., ?tracks=IC&tracks=TL).")
def search(
    query: Optional[str] = Query(None, description="Case-insensitive substring"),
    tracks: Optional[List[Track]] = Query(None, description="Tracks to include"),
    level_ids: Optional[List[str]] = Query(None, description="Level ids to include"),
    category_ids: Optional[List[str]] = Query(None, description="Category ids to include"),
    sub_category_ids: Optional[List[str]] = Query(None, description="Sub-category ids to include"),
):
    """Filter the current snapshot with query-string criteria."""
    criteria = FilterCriteria(
        query=query,
        tracks=tracks,
        level_ids=level_ids,
        category_ids=category_ids,
        sub_category_ids=sub_category_ids,
    )
    return filter_matrix(matrix_store.load_matrix(), criteria)


# PUBLIC_INTERFACE
@router.post("/search", response_model=EngineeringJobMatrix, summary="Search matrix (body)", description="Filter the matrix with a JSON criteria body.")
def search_body(criteria: FilterCriteria):
    """Filter the current snapshot with body criteria."""
    return filter_matrix(matrix_store.load_matrix(), criteria)


# PUBLIC_INTERFACE
@router.post("/compare", response_model=EngineeringJobMatrix, summary="Compare job levels", description="Return 2-4 job levels side by side with the full competency tree.")
def compare(payload: CompareRequest):
    """Compare levels; 404 lists every unknown id."""
    return compare_levels(matrix_store.load_matrix(), payload.level_ids)
