"""Administrative endpoints."""
from __future__ import annotations

from fastapi import APIRouter

from career_ladder.models.domain import SeedResult
from career_ladder.services import matrix_store

router = APIRouter(prefix="/admin", tags=["admin"])


# PUBLIC_INTERFACE
@router.post("/seed", response_model=SeedResult, summary="Seed data", description="Replace all stored data with the bundled sample career ladder.")
def seed():
    """Seed the store from the bundled snapshot."""
    return matrix_store.seed_data()
