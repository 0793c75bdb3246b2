"""
Pytest configuration to ensure the application package is importable.

This adjusts sys.path so `from career_ladder.api.main import app` works when
tests run from the repository root without an installed package.
"""
import sys
from pathlib import Path

import pytest

# Compute the repository root that contains the 'career_ladder' directory
REPO_ROOT = Path(__file__).resolve().parents[1]

repo_root_str = str(REPO_ROOT)
if repo_root_str not in sys.path:
    sys.path.insert(0, repo_root_str)

from career_ladder.core.config import reset_settings_cache  # noqa: E402
from career_ladder.models.domain import (  # noqa: E402
    CompetencyCategory,
    CompetencySubCategory,
    EditHistoryEntry,
    EngineeringJobMatrix,
    JobLevel,
    Metadata,
)
from career_ladder.services import matrix_store  # noqa: E402


@pytest.fixture
def memory_store(monkeypatch):
    """In-memory provider seeded from the bundled sample snapshot."""
    monkeypatch.setenv("DATA_PROVIDER", "json")
    monkeypatch.delenv("DB_PATH", raising=False)
    monkeypatch.delenv("DATA_DIR", raising=False)
    reset_settings_cache()
    matrix_store.reset_store()
    yield
    reset_settings_cache()
    matrix_store.reset_store()


@pytest.fixture
def sqlite_store(monkeypatch, tmp_path):
    """SQLite provider backed by a fresh temp database."""
    db_path = tmp_path / "test.db"
    monkeypatch.setenv("DATA_PROVIDER", "sqlite")
    monkeypatch.setenv("DB_PATH", str(db_path))
    monkeypatch.delenv("DATA_DIR", raising=False)
    reset_settings_cache()
    matrix_store.reset_store()
    yield db_path
    reset_settings_cache()
    matrix_store.reset_store()


@pytest.fixture
def small_matrix() -> EngineeringJobMatrix:
    """Three levels and one category, enough for the filter rules."""
    return EngineeringJobMatrix(
        job_levels=[
            JobLevel(id="L1", name="Engineer I", track="IC", summary_description="Learns the codebase", trajectory_info="1-2 years"),
            JobLevel(id="L2", name="Engineer II", track="IC", summary_description="Ships features", trajectory_info=None, ownership_summary="Owns features"),
            JobLevel(id="TL1", name="Tech Lead", track="TL", summary_description="Guides a team", trajectory_info=None, scope_of_influence_summary="Single team"),
        ],
        competency_categories=[
            CompetencyCategory(
                id="technical",
                name="Technical Skills",
                sub_categories=[
                    CompetencySubCategory(id="coding", name="Coding", category_id="technical", descriptions_by_level={"L1": "basic", "L2": "adv"}),
                    CompetencySubCategory(id="design", name="System Design", category_id="technical", descriptions_by_level={"L2": "small components", "TL1": "team systems"}),
                ],
            ),
            CompetencyCategory(
                id="leadership",
                name="Leadership",
                sub_categories=[
                    CompetencySubCategory(id="mentoring", name="Mentoring", category_id="leadership", descriptions_by_level={"TL1": "mentors the team"}),
                ],
            ),
            CompetencyCategory(id="empty", name="Empty Category", sub_categories=[]),
        ],
        metadata=Metadata(
            last_updated="2024-01-01",
            goals=["clarity"],
            key_principles=["fairness"],
            edit_history=[EditHistoryEntry(date="2024-01-01", description="created")],
        ),
    )
