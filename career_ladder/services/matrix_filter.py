"""Matrix filter engine.

Derives a filtered view of an EngineeringJobMatrix from FilterCriteria.

Job levels and the competency tree are filtered independently from the same
criteria:
- Levels: AND across tracks, level_ids and query; membership within a dimension.
- Categories: category_ids, then sub_category_ids pruning, then query.

The input snapshot is never mutated. Result lists are new; untouched models
are shared with the input. Metadata always passes through.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from career_ladder.models.domain import (
    CompetencyCategory,
    CompetencySubCategory,
    EngineeringJobMatrix,
    FilterCriteria,
    JobLevel,
)

logger = logging.getLogger(__name__)


def _contains(text: Optional[str], needle: str) -> bool:
    return text is not None and needle in text.lower()


def _level_matches_query(level: JobLevel, needle: str) -> bool:
    return any(
        _contains(value, needle)
        for value in (
            level.name,
            level.summary_description,
            level.trajectory_info,
            level.scope_of_influence_summary,
            level.ownership_summary,
        )
    )


def _sub_category_matches_query(sub: CompetencySubCategory, needle: str) -> bool:
    if _contains(sub.name, needle):
        return True
    return any(_contains(desc, needle) for desc in sub.descriptions_by_level.values())


def filter_job_levels(levels: Iterable[JobLevel], criteria: FilterCriteria) -> List[JobLevel]:
    """Return the levels satisfying every supplied level dimension, in input order."""
    tracks = set(criteria.tracks) if criteria.tracks else None
    level_ids = set(criteria.level_ids) if criteria.level_ids else None
    needle = criteria.query.lower() if criteria.query else None

    out: list[JobLevel] = []
    for level in levels:
        if tracks is not None and level.track not in tracks:
            continue
        if level_ids is not None and level.id not in level_ids:
            continue
        if needle is not None and not _level_matches_query(level, needle):
            continue
        out.append(level)
    return out


def filter_competency_categories(
    categories: Iterable[CompetencyCategory], criteria: FilterCriteria
) -> List[CompetencyCategory]:
    """Return the pruned category tree, in input order.

    A category whose name matches the query keeps all of its (id-filtered)
    sub-categories. A category left with no sub-categories by an explicit
    sub_category_ids filter is dropped.
    """
    category_ids = set(criteria.category_ids) if criteria.category_ids else None
    sub_ids = set(criteria.sub_category_ids) if criteria.sub_category_ids else None
    needle = criteria.query.lower() if criteria.query else None

    out: list[CompetencyCategory] = []
    for category in categories:
        if category_ids is not None and category.id not in category_ids:
            continue

        subs = list(category.sub_categories)
        if sub_ids is not None:
            subs = [s for s in subs if s.id in sub_ids]
            if not subs:
                continue

        if needle is not None and not _contains(category.name, needle):
            subs = [s for s in subs if _sub_category_matches_query(s, needle)]
            if not subs:
                continue

        if len(subs) == len(category.sub_categories):
            out.append(category)
        else:
            out.append(category.model_copy(update={"sub_categories": subs}))
    return out


# PUBLIC_INTERFACE
def filter_matrix(matrix: EngineeringJobMatrix, criteria: FilterCriteria) -> EngineeringJobMatrix:
    """Apply criteria to a matrix snapshot.

    Args:
        matrix: Snapshot to filter. Not modified.
        criteria: Filter parameters; absent/empty fields do not filter.

    Returns:
        The input matrix itself when no criteria are supplied, otherwise a new
        matrix with filtered job_levels and competency_categories and the same
        metadata. Never raises for unknown ids; they simply match nothing.
    """
    if criteria.is_empty():
        return matrix

    levels = filter_job_levels(matrix.job_levels, criteria)
    categories = filter_competency_categories(matrix.competency_categories, criteria)
    logger.debug(
        "matrix.filter",
        extra={"levels": len(levels), "categories": len(categories)},
    )
    return EngineeringJobMatrix(
        job_levels=levels,
        competency_categories=categories,
        metadata=matrix.metadata,
    )
