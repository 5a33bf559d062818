"""Tests for dashboard filtering, sorting, KPIs and pipeline reporting."""

import pytest

from bocage.models import DerivedStatus
from bocage.report import (
    ProspectFilter,
    SortState,
    build_pipeline_report,
    compute_kpis,
    distinct_values,
    filter_prospects,
    goal_progress,
    pipeline_counts,
    prospect_history,
    recent_activity,
    sort_prospects,
)

from conftest import make_enriched, make_interaction


@pytest.fixture
def prospects():
    return [
        make_enriched(1, name="GAEC du Bocage", external_reference="T00001", relevance_score=90,
                      estimated_area=120.0, certifications="HVE", department="22", zone="Nord"),
        make_enriched(2, name="EARL des Haies", external_reference="T00002", relevance_score=40,
                      estimated_area=None, certifications="0", department="29", zone="Sud"),
        make_enriched(3, name="Ferme Le Gall", external_reference="A-778", relevance_score=70,
                      estimated_area=35.5, certifications=None, department="22", zone="Sud"),
    ]


class TestFilter:
    """All set filters AND together."""

    def test_min_score_then_sort(self, prospects):
        result = sort_prospects(
            filter_prospects(prospects, ProspectFilter(min_score=50)),
            SortState("relevance_score"),
        )
        assert [p.relevance_score for p in result] == [90, 70]

    def test_min_score_inclusive(self, prospects):
        result = filter_prospects(prospects, ProspectFilter(min_score=70))
        assert [p.id for p in result] == [1, 3]

    def test_no_filter_keeps_all(self, prospects):
        assert filter_prospects(prospects) == prospects
        assert filter_prospects(prospects, ProspectFilter()) == prospects

    def test_search_name_case_insensitive(self, prospects):
        result = filter_prospects(prospects, ProspectFilter(search="bocage"))
        assert [p.id for p in result] == [1]

    def test_search_reference(self, prospects):
        result = filter_prospects(prospects, ProspectFilter(search="a-77"))
        assert [p.id for p in result] == [3]

    def test_department_and_zone(self, prospects):
        result = filter_prospects(prospects, ProspectFilter(department="22", zone="Sud"))
        assert [p.id for p in result] == [3]

    def test_certified_only(self, prospects):
        result = filter_prospects(prospects, ProspectFilter(certified_only=True))
        assert [p.id for p in result] == [1]

    def test_distinct_values(self, prospects):
        assert distinct_values(prospects, "department") == ["22", "29"]
        assert distinct_values(prospects, "zone") == ["Nord", "Sud"]

    def test_distinct_values_rejects_other_fields(self, prospects):
        with pytest.raises(ValueError):
            distinct_values(prospects, "phone")


class TestSort:
    """Stable sort, missing values last in both directions."""

    def test_default_is_score_descending(self, prospects):
        assert [p.id for p in sort_prospects(prospects)] == [1, 3, 2]

    def test_ascending(self, prospects):
        result = sort_prospects(prospects, SortState("relevance_score", ascending=True))
        assert [p.id for p in result] == [2, 3, 1]

    def test_nulls_last_descending(self, prospects):
        result = sort_prospects(prospects, SortState("estimated_area"))
        assert [p.id for p in result] == [1, 3, 2]

    def test_nulls_last_ascending(self, prospects):
        result = sort_prospects(prospects, SortState("estimated_area", ascending=True))
        assert [p.id for p in result] == [3, 1, 2]

    def test_stable(self):
        tied = [make_enriched(i, relevance_score=60) for i in (5, 3, 9)]
        assert [p.id for p in sort_prospects(tied)] == [5, 3, 9]
        assert [p.id for p in sort_prospects(tied, SortState(ascending=True))] == [5, 3, 9]

    def test_toggle_same_key_flips(self):
        state = SortState("name")
        assert state.toggle("name") == SortState("name", ascending=True)
        assert state.toggle("name").toggle("name") == SortState("name", ascending=False)

    def test_toggle_new_key_descending(self):
        state = SortState("name", ascending=True)
        assert state.toggle("zone") == SortState("zone", ascending=False)

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            SortState("phone")


class TestKpis:
    """KPIs over the filtered set."""

    def test_empty(self):
        kpis = compute_kpis([])
        assert kpis.count == 0
        assert kpis.total_area == 0
        assert kpis.certified_pct == 0
        assert kpis.mean_score == 0

    def test_values(self, prospects):
        kpis = compute_kpis(prospects)
        assert kpis.count == 3
        assert kpis.total_area == 155.5
        assert kpis.certified_pct == 33
        assert kpis.mean_score == 67

    def test_mean_rounds_half_up(self):
        kpis = compute_kpis([make_enriched(1, relevance_score=50), make_enriched(2, relevance_score=51)])
        assert kpis.mean_score == 51

    def test_certified_pct(self):
        kpis = compute_kpis([make_enriched(1, certifications="Bio"), make_enriched(2, certifications="")])
        assert kpis.certified_pct == 50


class TestPipeline:
    """Counts over the full set and the goal gauge."""

    def test_counts_every_status(self):
        prospects = [
            make_enriched(1, status=DerivedStatus.RECRUITED),
            make_enriched(2, status=DerivedStatus.RECRUITED),
            make_enriched(3, status=DerivedStatus.CALLED),
            make_enriched(4),
        ]
        counts = pipeline_counts(prospects)

        assert set(counts) == set(DerivedStatus)
        assert counts[DerivedStatus.RECRUITED] == 2
        assert counts[DerivedStatus.CALLED] == 1
        assert counts[DerivedStatus.WAITING] == 1
        assert counts[DerivedStatus.REFUSED] == 0

    @pytest.mark.parametrize("recruited,goal,expected", [
        (0, 40, 0),
        (10, 40, 25),
        (1, 3, 33),
        (40, 40, 100),
        (55, 40, 100),
        (5, 0, 0),
    ])
    def test_goal_progress(self, recruited, goal, expected):
        assert goal_progress(recruited, goal) == expected

    def test_report(self):
        prospects = [make_enriched(i, status=DerivedStatus.RECRUITED) for i in range(4)]
        prospects.append(make_enriched(9))
        report = build_pipeline_report(prospects, goal=40)

        assert report.recruited == 4
        assert report.progress == 10
        assert report.share(DerivedStatus.WAITING) == pytest.approx(0.2)
        assert report.to_dict()["counts"]["recruited"] == 4

    def test_empty_report(self):
        report = build_pipeline_report([], goal=40)
        assert report.recruited == 0
        assert report.share(DerivedStatus.WAITING) == 0.0


class TestActivity:
    """Recent activity feed and per-prospect history."""

    def test_recent_activity_joins_prospect(self, prospects):
        interactions = [
            make_interaction(3, prospect_id=1, minutes=20),
            make_interaction(2, prospect_id=99, minutes=10),
            make_interaction(1, prospect_id=3, minutes=0),
        ]
        entries = recent_activity(interactions, prospects, limit=2)

        assert [e.interaction.id for e in entries] == [3, 2]
        assert entries[0].prospect.name == "GAEC du Bocage"
        assert entries[1].prospect is None

    def test_prospect_history(self):
        interactions = [
            make_interaction(1, prospect_id=1, minutes=0),
            make_interaction(2, prospect_id=2, minutes=5),
            make_interaction(3, prospect_id=1, minutes=10),
        ]
        assert [i.id for i in prospect_history(interactions, 1)] == [3, 1]
