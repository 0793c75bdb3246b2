"""Side-by-side comparison of job levels.

The full competency tree is returned unpruned so callers can also inspect
descriptions for levels outside the comparison set.
"""
from __future__ import annotations

import logging
from typing import List, Sequence

from career_ladder.models.domain import EngineeringJobMatrix, JobLevel, Metadata

logger = logging.getLogger(__name__)


class LevelsNotFoundError(Exception):
    """Raised when one or more requested level ids are absent from the snapshot."""

    def __init__(self, missing_ids: Sequence[str]):
        self.missing_ids: List[str] = list(missing_ids)
        super().__init__(f"Job levels not found: {', '.join(self.missing_ids)}")


# PUBLIC_INTERFACE
def compare_levels(matrix: EngineeringJobMatrix, level_ids: Sequence[str]) -> EngineeringJobMatrix:
    """Return a matrix restricted to the requested levels.

    Count validation (2 to 4 ids) belongs to the caller. Levels are returned
    in the order requested.

    Raises:
        LevelsNotFoundError: naming every requested id missing from the snapshot.
    """
    by_id = {level.id: level for level in matrix.job_levels}

    missing: list[str] = []
    for level_id in level_ids:
        if level_id not in by_id and level_id not in missing:
            missing.append(level_id)
    if missing:
        raise LevelsNotFoundError(missing)

    selected: list[JobLevel] = []
    seen: set[str] = set()
    for level_id in level_ids:
        if level_id in seen:
            continue
        seen.add(level_id)
        selected.append(by_id[level_id])

    metadata = matrix.metadata if matrix.metadata is not None else Metadata.default()
    logger.debug("matrix.compare", extra={"level_ids": [level.id for level in selected]})
    return EngineeringJobMatrix(
        job_levels=selected,
        competency_categories=list(matrix.competency_categories),
        metadata=metadata,
    )
