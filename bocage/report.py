"""Filtering, sorting and aggregation over the prospect snapshot."""

import math
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from .models import DerivedStatus, EnrichedProspect, Interaction, is_certified
from .status import sort_by_recency


SORT_KEYS = ("relevance_score", "estimated_area", "name", "department", "zone")
DEFAULT_SORT_KEY = "relevance_score"

# Fields offered as filter pickers
FILTER_FIELDS = ("department", "zone")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ============================================================================
# Filtering
# ============================================================================

@dataclass
class ProspectFilter:
    """Dashboard filters. Unset values do not filter; all set values AND together."""

    search: str = ""
    department: Optional[str] = None
    zone: Optional[str] = None
    certified_only: bool = False
    min_score: int = 0

    def matches(self, prospect: EnrichedProspect) -> bool:
        term = self.search.strip().lower()
        if term:
            in_name = term in (prospect.name or "").lower()
            in_reference = term in (prospect.external_reference or "").lower()
            if not (in_name or in_reference):
                return False
        if self.department and prospect.department != self.department:
            return False
        if self.zone and prospect.zone != self.zone:
            return False
        if self.certified_only and not is_certified(prospect.certifications):
            return False
        if prospect.relevance_score < self.min_score:
            return False
        return True


def filter_prospects(
    prospects: Iterable[EnrichedProspect],
    prospect_filter: Optional[ProspectFilter] = None,
) -> list[EnrichedProspect]:
    """Keep the prospects matching every set filter, in input order."""
    if prospect_filter is None:
        return list(prospects)
    return [p for p in prospects if prospect_filter.matches(p)]


def distinct_values(prospects: Iterable[EnrichedProspect], field_name: str) -> list[str]:
    """Sorted distinct non-empty values of a field, for filter pickers."""
    if field_name not in FILTER_FIELDS:
        raise ValueError(f"Cannot list values of {field_name!r}")
    return sorted({getattr(p, field_name) for p in prospects if getattr(p, field_name)})


# ============================================================================
# Sorting
# ============================================================================

@dataclass(frozen=True)
class SortState:
    """Current sort column and direction."""

    key: str = DEFAULT_SORT_KEY
    ascending: bool = False

    def __post_init__(self):
        if self.key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key {self.key!r} (expected one of {', '.join(SORT_KEYS)})")

    def toggle(self, key: str) -> "SortState":
        """Re-selecting the current key flips direction; a new key starts descending."""
        if key == self.key:
            return SortState(key=key, ascending=not self.ascending)
        return SortState(key=key, ascending=False)


def sort_prospects(
    prospects: Iterable[EnrichedProspect],
    sort_state: Optional[SortState] = None,
) -> list[EnrichedProspect]:
    """
    Stable sort on one field. Missing values go last whichever the direction.
    """
    sort_state = sort_state or SortState()
    present = []
    missing = []
    for prospect in prospects:
        if getattr(prospect, sort_state.key) is None:
            missing.append(prospect)
        else:
            present.append(prospect)

    present.sort(key=lambda p: getattr(p, sort_state.key), reverse=not sort_state.ascending)
    return present + missing


# ============================================================================
# KPIs
# ============================================================================

@dataclass(frozen=True)
class Kpis:
    """Headline numbers for the filtered set."""

    count: int = 0
    total_area: float = 0.0
    certified_pct: int = 0
    mean_score: int = 0

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "total_area": self.total_area,
            "certified_pct": self.certified_pct,
            "mean_score": self.mean_score,
        }


def compute_kpis(prospects: Sequence[EnrichedProspect]) -> Kpis:
    """Count, total area, certified share and mean score. Empty input gives zeros."""
    count = len(prospects)
    if not count:
        return Kpis()

    total_area = sum(p.estimated_area or 0 for p in prospects)
    certified = sum(1 for p in prospects if is_certified(p.certifications))
    score_sum = sum(p.relevance_score for p in prospects)

    return Kpis(
        count=count,
        total_area=total_area,
        certified_pct=_round_half_up(certified / count * 100),
        mean_score=_round_half_up(score_sum / count),
    )


# ============================================================================
# Pipeline
# ============================================================================

def pipeline_counts(prospects: Iterable[EnrichedProspect]) -> dict[DerivedStatus, int]:
    """Number of prospects per status; every status is present."""
    counts = {status: 0 for status in DerivedStatus}
    for prospect in prospects:
        counts[prospect.status] += 1
    return counts


def goal_progress(recruited: int, goal: int) -> int:
    """Recruited against the campaign goal, as a percentage clamped to [0, 100]."""
    if goal <= 0:
        return 0
    return max(0, min(100, _round_half_up(recruited / goal * 100)))


@dataclass(frozen=True)
class PipelineReport:
    """Campaign progress over the full, unfiltered snapshot."""

    counts: dict = field(default_factory=dict)
    total: int = 0
    goal: int = 0

    @property
    def recruited(self) -> int:
        return self.counts.get(DerivedStatus.RECRUITED, 0)

    @property
    def progress(self) -> int:
        return goal_progress(self.recruited, self.goal)

    def share(self, status: DerivedStatus) -> float:
        """Fraction of prospects in a status, for the stacked bar."""
        if not self.total:
            return 0.0
        return self.counts.get(status, 0) / self.total

    def to_dict(self) -> dict:
        return {
            "counts": {status.value: n for status, n in self.counts.items()},
            "total": self.total,
            "goal": self.goal,
            "recruited": self.recruited,
            "progress": self.progress,
        }


def build_pipeline_report(prospects: Sequence[EnrichedProspect], goal: int) -> PipelineReport:
    return PipelineReport(counts=pipeline_counts(prospects), total=len(prospects), goal=goal)


# ============================================================================
# Activity
# ============================================================================

@dataclass(frozen=True)
class ActivityEntry:
    interaction: Interaction
    prospect: Optional[EnrichedProspect]


def recent_activity(
    interactions: Sequence[Interaction],
    prospects: Iterable[EnrichedProspect],
    limit: int = 20,
) -> list[ActivityEntry]:
    """
    Most recent interactions joined with their prospect.

    The interaction list is taken as already newest first, the order the
    snapshot keeps it in.
    """
    by_id = {p.id: p for p in prospects}
    return [
        ActivityEntry(interaction=i, prospect=by_id.get(i.prospect_id))
        for i in interactions[:limit]
    ]


def prospect_history(interactions: Iterable[Interaction], prospect_id: int) -> list[Interaction]:
    """One prospect's interactions, newest first."""
    return sort_by_recency(i for i in interactions if i.prospect_id == prospect_id)
