import pytest

from career_ladder.models.domain import (
    CompetencyCategory,
    CompetencySubCategory,
    EngineeringJobMatrix,
    FilterCriteria,
    JobLevel,
    Metadata,
)
from career_ladder.services.matrix_filter import filter_matrix


def _level_ids(matrix):
    return [lvl.id for lvl in matrix.job_levels]


def _category_tree(matrix):
    return [(c.id, [s.id for s in c.sub_categories]) for c in matrix.competency_categories]


def test_no_criteria_returns_input_unchanged(small_matrix):
    assert filter_matrix(small_matrix, FilterCriteria()) is small_matrix
    empty_lists = FilterCriteria(query="", tracks=[], level_ids=[], category_ids=[], sub_category_ids=[])
    assert filter_matrix(small_matrix, empty_lists) == small_matrix


def test_track_filter_keeps_exactly_matching_tracks(small_matrix):
    result = filter_matrix(small_matrix, FilterCriteria(tracks=["IC"]))
    assert _level_ids(result) == ["L1", "L2"]
    assert all(lvl.track == "IC" for lvl in result.job_levels)


def test_tracks_and_query_are_combined_with_and(small_matrix):
    result = filter_matrix(small_matrix, FilterCriteria(tracks=["IC"], query="II"))
    assert _level_ids(result) == ["L2"]


def test_level_ids_or_within_dimension(small_matrix):
    result = filter_matrix(small_matrix, FilterCriteria(level_ids=["TL1", "L1"]))
    # input order is preserved, not criteria order
    assert _level_ids(result) == ["L1", "TL1"]


def test_query_is_case_insensitive(small_matrix):
    result = filter_matrix(small_matrix, FilterCriteria(query="ENGINEER"))
    assert _level_ids(result) == ["L1", "L2"]


@pytest.mark.parametrize(
    "query, expected",
    [
        ("years", ["L1"]),            # trajectory_info; null trajectories are skipped
        ("owns features", ["L2"]),    # ownership_summary
        ("single team", ["TL1"]),     # scope_of_influence_summary
        ("ships", ["L2"]),            # summary_description
    ],
)
def test_query_searches_every_level_text_field(small_matrix, query, expected):
    assert _level_ids(filter_matrix(small_matrix, FilterCriteria(query=query))) == expected


def test_sub_category_ids_prune_within_category(small_matrix):
    result = filter_matrix(small_matrix, FilterCriteria(sub_category_ids=["coding"]))
    assert len(result.competency_categories) == 1
    subs = result.competency_categories[0].sub_categories
    assert [s.id for s in subs] == ["coding"]


def test_category_dropped_when_sub_category_filter_selects_nothing(small_matrix):
    result = filter_matrix(small_matrix, FilterCriteria(sub_category_ids=["mentoring"]))
    assert _category_tree(result) == [("leadership", ["mentoring"])]
    result = filter_matrix(small_matrix, FilterCriteria(sub_category_ids=["unknown"]))
    assert result.competency_categories == []


def test_empty_category_survives_category_id_filter(small_matrix):
    result = filter_matrix(small_matrix, FilterCriteria(category_ids=["empty", "technical"]))
    assert _category_tree(result) == [("technical", ["coding", "design"]), ("empty", [])]


def test_query_matches_sub_category_names_and_description_values(small_matrix):
    result = filter_matrix(small_matrix, FilterCriteria(query="team"))
    assert _level_ids(result) == ["TL1"]
    assert _category_tree(result) == [("technical", ["design"]), ("leadership", ["mentoring"])]


def test_query_does_not_match_description_keys(small_matrix):
    result = filter_matrix(small_matrix, FilterCriteria(query="TL1"))
    assert result.competency_categories == []


def test_category_name_match_keeps_all_its_sub_categories(small_matrix):
    result = filter_matrix(small_matrix, FilterCriteria(query="technical"))
    assert _category_tree(result) == [("technical", ["coding", "design"])]


def test_level_filter_never_prunes_description_maps(small_matrix):
    result = filter_matrix(small_matrix, FilterCriteria(level_ids=["L1"]))
    coding = result.competency_categories[0].sub_categories[0]
    assert coding.descriptions_by_level == {"L1": "basic", "L2": "adv"}


def test_unknown_ids_match_nothing(small_matrix):
    result = filter_matrix(
        small_matrix,
        FilterCriteria(level_ids=["nope"], category_ids=["nope"]),
    )
    assert result.job_levels == []
    assert result.competency_categories == []
    assert result.metadata == small_matrix.metadata


def test_input_snapshot_is_not_mutated(small_matrix):
    before = small_matrix.model_copy(deep=True)
    filter_matrix(small_matrix, FilterCriteria(query="adv", sub_category_ids=["coding"], tracks=["TL"]))
    assert small_matrix == before


@pytest.mark.parametrize(
    "criteria",
    [
        FilterCriteria(query="team"),
        FilterCriteria(tracks=["IC"], query="II"),
        FilterCriteria(sub_category_ids=["coding", "mentoring"]),
        FilterCriteria(category_ids=["technical"], query="design"),
        FilterCriteria(query="technical", sub_category_ids=["design"]),
    ],
)
def test_filter_is_idempotent(small_matrix, criteria):
    once = filter_matrix(small_matrix, criteria)
    assert filter_matrix(once, criteria) == once


@pytest.mark.parametrize(
    "criteria",
    [FilterCriteria(), FilterCriteria(query="zzz"), FilterCriteria(tracks=["EM"]), FilterCriteria(sub_category_ids=["coding"])],
)
def test_metadata_passes_through(small_matrix, criteria):
    result = filter_matrix(small_matrix, criteria)
    assert result.metadata.edit_history == small_matrix.metadata.edit_history
    assert result.metadata == small_matrix.metadata


def test_description_match_scenario():
    matrix = EngineeringJobMatrix(
        job_levels=[
            JobLevel(id="L1", name="Engineer I", track="IC", summary_description="Entry level", trajectory_info=None),
            JobLevel(id="L2", name="Engineer II", track="IC", summary_description="Advanced engineer", trajectory_info=None),
            JobLevel(id="TL1", name="Tech Lead", track="TL", summary_description="Leads a team", trajectory_info=None),
        ],
        competency_categories=[
            CompetencyCategory(
                id="technical",
                name="Technical",
                sub_categories=[
                    CompetencySubCategory(id="coding", name="Coding", descriptions_by_level={"L1": "basic", "L2": "adv"}),
                ],
            )
        ],
        metadata=Metadata(last_updated="2024-01-01"),
    )
    result = filter_matrix(matrix, FilterCriteria(query="adv"))
    assert _level_ids(result) == ["L2"]
    assert _category_tree(result) == [("technical", ["coding"])]
