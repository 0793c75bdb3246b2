"""Domain DTOs for job levels, competencies, metadata and the aggregate matrix."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class Track(str, Enum):
    """Career track. Declaration order is the canonical sort order."""
    IC = "IC"
    TL = "TL"
    EM = "EM"
    DIRECTOR = "Director"


TRACK_ORDER: Dict[Track, int] = {t: i for i, t in enumerate(Track)}


class JobLevel(BaseModel):
    """A single rung in a track's ladder."""
    id: str = Field(..., min_length=1, description="Stable level identifier (e.g., L3, TL1)")
    name: str = Field(..., description="Display name")
    track: Track = Field(..., description="Career track")
    summary_description: str = Field(..., description="Summary of the level")
    trajectory_info: Optional[str] = Field(
        ..., description="Progression expectations; null for terminal levels"
    )
    scope_of_influence_summary: Optional[str] = Field(None, description="Scope of influence")
    ownership_summary: Optional[str] = Field(None, description="Ownership expectations")


class CompetencySubCategory(BaseModel):
    """A skill axis with one description per applicable job level."""
    id: str = Field(..., min_length=1, description="Sub-category identifier")
    name: str = Field(..., description="Display name")
    category_id: Optional[str] = Field(None, description="Owning category id")
    descriptions_by_level: Dict[str, str] = Field(
        default_factory=dict, description="Job level id -> description"
    )


class CompetencyCategory(BaseModel):
    """Top-level grouping of sub-categories."""
    id: str = Field(..., min_length=1, description="Category identifier")
    name: str = Field(..., description="Display name")
    sub_categories: List[CompetencySubCategory] = Field(default_factory=list)


class EditHistoryEntry(BaseModel):
    """Append-only change log entry."""
    date: str = Field(..., description="Date of the change (e.g., 2024-01-31)")
    description: str = Field(..., description="What changed")


class Metadata(BaseModel):
    """Singleton framework metadata."""
    last_updated: str = Field(..., description="Last updated marker")
    goals: List[str] = Field(default_factory=list)
    key_principles: List[str] = Field(default_factory=list)
    edit_history: List[EditHistoryEntry] = Field(default_factory=list)

    @classmethod
    def default(cls) -> "Metadata":
        """Defaults used when no metadata has been stored yet."""
        return cls(last_updated=datetime.now(timezone.utc).isoformat())


class EngineeringJobMatrix(BaseModel):
    """Aggregate snapshot consumed and produced by the filter and comparison engines."""
    job_levels: List[JobLevel] = Field(default_factory=list)
    competency_categories: List[CompetencyCategory] = Field(default_factory=list)
    metadata: Optional[Metadata] = Field(None)


# --- Inputs ---

class JobLevelCreate(JobLevel):
    """Create payload; the caller supplies the unique id."""
    pass


_REQUIRED_ON_UPDATE = ("name", "track", "summary_description")


class JobLevelUpdate(BaseModel):
    """Partial update. Only fields present in the payload are applied.

    An explicit null clears trajectory_info, scope_of_influence_summary or
    ownership_summary. Use ``model_dump(exclude_unset=True)`` to get the
    changes.
    """
    name: Optional[str] = None
    track: Optional[Track] = None
    summary_description: Optional[str] = None
    trajectory_info: Optional[str] = None
    scope_of_influence_summary: Optional[str] = None
    ownership_summary: Optional[str] = None

    @model_validator(mode="after")
    def _reject_null_required(self) -> "JobLevelUpdate":
        for name in _REQUIRED_ON_UPDATE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> Dict[str, object]:
        return self.model_dump(exclude_unset=True)


class CompetencyCategoryCreate(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


class CompetencySubCategoryCreate(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)
    descriptions_by_level: Dict[str, str] = Field(default_factory=dict)


class MetadataUpdate(BaseModel):
    """Partial metadata update; omitted fields are left untouched."""
    last_updated: Optional[str] = None
    goals: Optional[List[str]] = None
    key_principles: Optional[List[str]] = None

    @model_validator(mode="after")
    def _reject_null(self) -> "MetadataUpdate":
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> Dict[str, object]:
        return self.model_dump(exclude_unset=True)


class EditHistoryEntryCreate(EditHistoryEntry):
    pass


class FilterCriteria(BaseModel):
    """Search parameters. Absent or empty fields do not filter."""
    query: Optional[str] = Field(None, description="Case-insensitive substring")
    tracks: Optional[List[Track]] = None
    level_ids: Optional[List[str]] = None
    category_ids: Optional[List[str]] = None
    sub_category_ids: Optional[List[str]] = None

    def is_empty(self) -> bool:
        return not (
            self.query
            or self.tracks
            or self.level_ids
            or self.category_ids
            or self.sub_category_ids
        )


class CompareRequest(BaseModel):
    """Comparison request: 2 to 4 distinct level ids."""
    level_ids: List[str] = Field(..., min_length=2, max_length=4)

    @field_validator("level_ids")
    @classmethod
    def _unique(cls, v: List[str]) -> List[str]:
        if len(set(v)) != len(v):
            raise ValueError("level_ids must be unique")
        return v


class SeedResult(BaseModel):
    success: bool
    message: str
