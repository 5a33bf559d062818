"""Relevance score breakdown - why does this farm rank where it does?"""

from dataclasses import dataclass
from typing import Optional

from ..config import ScoringConfig
from ..models import Prospect, ScoreCriterion


def decompose_score(
    prospect: Prospect,
    config: Optional[ScoringConfig] = None,
) -> list[ScoreCriterion]:
    """
    Break a prospect's relevance into the documented weighted criteria.

    The criteria are always returned in the same order, met or not, so the
    audit view can show what is missing as well as what counts.

    Args:
        prospect: The prospect to analyse
        config: Scoring configuration (uses defaults if not provided)

    Returns:
        Ordered list of criteria
    """
    config = config or ScoringConfig()

    area = prospect.estimated_area or 0
    tonnage = prospect.tonnage or 0
    loyalty = prospect.loyalty_years or 0

    return [
        ScoreCriterion(
            label="SAU > 0 ha",
            points_max=config.area_present_weight,
            met=area > 0,
        ),
        ScoreCriterion(
            label=f"SAU > {config.large_area_ha:g} ha",
            points_max=config.large_area_weight,
            met=area > config.large_area_ha,
        ),
        ScoreCriterion(
            label="Certifié HVE/Bio",
            points_max=config.certified_weight,
            met=prospect.certified,
        ),
        ScoreCriterion(
            label=f"Tonnage > {config.tonnage_min:g}t",
            points_max=config.tonnage_weight,
            met=tonnage > config.tonnage_min,
        ),
        ScoreCriterion(
            label=f"Fidélité >= {config.loyalty_min_years} ans",
            points_max=config.loyalty_weight,
            met=loyalty >= config.loyalty_min_years,
        ),
    ]


@dataclass(frozen=True)
class ScoreBreakdown:
    """Criteria plus the gap between their sum and the stored score."""

    criteria: list[ScoreCriterion]
    relevance_score: int

    @property
    def total(self) -> int:
        return sum(c.points_awarded for c in self.criteria)

    @property
    def maximum(self) -> int:
        return sum(c.points_max for c in self.criteria)

    @property
    def delta(self) -> int:
        """Stored score minus documented points. Positive means other signals."""
        return self.relevance_score - self.total

    @property
    def has_discrepancy(self) -> bool:
        return self.delta != 0

    @property
    def discrepancy_label(self) -> Optional[str]:
        if self.delta > 0:
            return f"+{self.delta} pts from other signals"
        if self.delta < 0:
            return f"{-self.delta} pts above stored score"
        return None

    def to_dict(self) -> dict:
        return {
            "criteria": [
                {
                    "label": c.label,
                    "points_awarded": c.points_awarded,
                    "points_max": c.points_max,
                    "met": c.met,
                }
                for c in self.criteria
            ],
            "total": self.total,
            "maximum": self.maximum,
            "relevance_score": self.relevance_score,
            "delta": self.delta,
            "discrepancy": self.discrepancy_label,
        }


def get_score_breakdown(
    prospect: Prospect,
    config: Optional[ScoringConfig] = None,
) -> ScoreBreakdown:
    """Decompose the score and keep the stored value alongside for audit."""
    return ScoreBreakdown(
        criteria=decompose_score(prospect, config),
        relevance_score=prospect.relevance_score,
    )


def score_tier(score: int, config: Optional[ScoringConfig] = None) -> str:
    """Badge tier for a relevance score: "high", "medium" or "low"."""
    config = config or ScoringConfig()
    if score >= config.high_score:
        return "high"
    if score >= config.medium_score:
        return "medium"
    return "low"
