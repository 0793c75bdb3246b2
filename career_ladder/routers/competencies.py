"""Competencies endpoints."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, HTTPException, Path, status

from career_ladder.models.domain import (
    CompetencyCategory,
    CompetencyCategoryCreate,
    CompetencySubCategory,
    CompetencySubCategoryCreate,
)
from career_ladder.services import matrix_store

router = APIRouter(prefix="/competencies", tags=["competencies"])


# PUBLIC_INTERFACE
@router.get("/", response_model=List[CompetencyCategory], summary="List competency categories", description="Return categories with their sub-categories, both ordered by name.")
def list_categories():
    """Return all competency categories."""
    return matrix_store.list_competency_categories()


# PUBLIC_INTERFACE
@router.post("/", response_model=CompetencyCategory, status_code=status.HTTP_201_CREATED, summary="Create competency category", description="Create an empty competency category.")
def create_category(payload: CompetencyCategoryCreate):
    """Create a category (409 on duplicate id)."""
    return matrix_store.create_competency_category(payload)


# PUBLIC_INTERFACE
@router.post("/sub-categories", response_model=CompetencySubCategory, status_code=status.HTTP_201_CREATED, summary="Create competency sub-category", description="Create a sub-category under an existing category.")
def create_sub_category(payload: CompetencySubCategoryCreate):
    """Create a sub-category (404 unknown category, 409 duplicate id)."""
    return matrix_store.create_competency_sub_category(payload)


# PUBLIC_INTERFACE
@router.get("/{category_id}", response_model=CompetencyCategory, summary="Get competency category", description="Return a single category with its sub-categories.")
def get_category(category_id: str = Path(..., description="Category id (e.g., technical)")):
    """Return a category or 404."""
    category = matrix_store.get_competency_category(category_id)
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Competency category not found: {category_id}")
    return category
