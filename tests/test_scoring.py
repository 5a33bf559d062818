"""Tests for the relevance score breakdown."""

import pytest

from bocage.config import ScoringConfig
from bocage.scoring import decompose_score, get_score_breakdown, score_tier

from conftest import make_prospect


class TestDecomposeScore:
    """Fixed, ordered criteria."""

    def test_all_criteria_met(self):
        prospect = make_prospect(
            estimated_area=80.0,
            certifications="HVE",
            tonnage=150.0,
            loyalty_years=5,
        )
        criteria = decompose_score(prospect)

        assert [c.label for c in criteria] == [
            "SAU > 0 ha",
            "SAU > 50 ha",
            "Certifié HVE/Bio",
            "Tonnage > 100t",
            "Fidélité >= 3 ans",
        ]
        assert [c.points_awarded for c in criteria] == [30, 20, 15, 10, 10]

    def test_nothing_met(self):
        criteria = decompose_score(make_prospect(certifications="0.0"))
        assert all(not c.met for c in criteria)
        assert sum(c.points_awarded for c in criteria) == 0
        assert [c.points_max for c in criteria] == [30, 20, 15, 10, 10]

    def test_thresholds_are_strict_except_loyalty(self):
        prospect = make_prospect(estimated_area=50.0, tonnage=100.0, loyalty_years=3)
        met = [c.met for c in decompose_score(prospect)]
        assert met == [True, False, False, False, True]

    def test_custom_weights(self):
        config = ScoringConfig(area_present_weight=40, large_area_ha=20)
        criteria = decompose_score(make_prospect(estimated_area=30.0), config)

        assert criteria[0].points_awarded == 40
        assert criteria[1].label == "SAU > 20 ha"
        assert criteria[1].met is True

    def test_deterministic(self):
        prospect = make_prospect(estimated_area=60.0, certifications="Bio")
        assert decompose_score(prospect) == decompose_score(prospect)


class TestScoreBreakdown:
    """The gap to the stored score is reported, never treated as an error."""

    def test_stored_score_higher(self):
        prospect = make_prospect(relevance_score=85, estimated_area=80.0, certifications="HVE")
        breakdown = get_score_breakdown(prospect)

        assert breakdown.total == 65
        assert breakdown.maximum == 85
        assert breakdown.delta == 20
        assert breakdown.has_discrepancy
        assert breakdown.discrepancy_label == "+20 pts from other signals"

    def test_documented_points_higher(self):
        prospect = make_prospect(relevance_score=10, estimated_area=80.0)
        breakdown = get_score_breakdown(prospect)

        assert breakdown.delta == -40
        assert breakdown.discrepancy_label == "40 pts above stored score"

    def test_no_discrepancy(self):
        breakdown = get_score_breakdown(make_prospect(relevance_score=30, estimated_area=5.0))
        assert not breakdown.has_discrepancy
        assert breakdown.discrepancy_label is None

    def test_to_dict(self):
        data = get_score_breakdown(make_prospect(relevance_score=0)).to_dict()
        assert len(data["criteria"]) == 5
        assert data["discrepancy"] is None


class TestScoreTier:
    """Badge colouring thresholds."""

    @pytest.mark.parametrize("score,tier", [
        (100, "high"),
        (70, "high"),
        (69, "medium"),
        (50, "medium"),
        (49, "low"),
        (0, "low"),
    ])
    def test_tiers(self, score, tier):
        assert score_tier(score) == tier
