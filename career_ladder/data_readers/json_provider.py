"""JSON data provider for bundled matrix snapshots in the data/ directory.

Caches files in-memory to minimize I/O and validates them into
EngineeringJobMatrix models on every access so callers never share mutable
state through the cache.

Controls:
- Validate input filename to prevent path traversal.
- Handle errors with structured exceptions (no stack leaks).
"""
from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

from fastapi import HTTPException
from pydantic import ValidationError

from career_ladder.core.config import get_settings
from career_ladder.models.domain import EngineeringJobMatrix


DATA_EXT = ".json"


def _data_dir() -> Path:
    settings = get_settings()
    return Path(settings.data_dir).resolve()


def _validate_filename(name: str) -> str:
    if "/" in name or "\\" in name or ".." in name:
        raise HTTPException(status_code=400, detail="Invalid dataset name")
    if not name.endswith(DATA_EXT):
        raise HTTPException(status_code=400, detail="Dataset must be a .json file")
    return name


@lru_cache(maxsize=32)
def load_dataset(name: str) -> Dict[str, Any]:
    """Load a JSON dataset by filename from the configured data directory."""
    fname = _validate_filename(name)
    path = _data_dir() / fname
    if not path.exists():
        raise HTTPException(status_code=404, detail=f"Dataset not found: {fname}")
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError:
        raise HTTPException(status_code=500, detail=f"Dataset parse error: {fname}")


# PUBLIC_INTERFACE
def get_sample_matrix() -> EngineeringJobMatrix:
    """Return a fresh copy of the bundled sample matrix snapshot."""
    fname = get_settings().sample_matrix_file
    data = load_dataset(fname)
    try:
        matrix = EngineeringJobMatrix.model_validate(data)
    except ValidationError:
        raise HTTPException(status_code=500, detail=f"Dataset shape error: {fname}")
    # Fill sub-category back-references the file may omit
    for category in matrix.competency_categories:
        for sub in category.sub_categories:
            if sub.category_id is None:
                sub.category_id = category.id
    return matrix


# PUBLIC_INTERFACE
def clear_cache() -> None:
    """Drop cached dataset files (tests switch DATA_DIR between cases)."""
    load_dataset.cache_clear()
