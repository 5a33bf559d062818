"""Derive a prospect's pipeline status from its interaction history."""

from collections import defaultdict
from typing import Iterable, Optional

from .models import DerivedStatus, Interaction


def recency_key(interaction: Interaction) -> tuple:
    """
    Sort key for "most recent first": created_at desc, then id desc.

    Use with ``sorted(..., key=recency_key, reverse=True)``; the id breaks
    ties when two interactions share a timestamp.
    """
    return (interaction.created_at, interaction.id)


def sort_by_recency(interactions: Iterable[Interaction]) -> list[Interaction]:
    """Return interactions newest first."""
    return sorted(interactions, key=recency_key, reverse=True)


def latest_interaction(interactions: Iterable[Interaction]) -> Optional[Interaction]:
    """The most recent interaction, or None for an empty history."""
    return max(interactions, key=recency_key, default=None)


def derive_status(interactions: Iterable[Interaction]) -> DerivedStatus:
    """
    Current status of a prospect given its interactions, in any order.

    The status is the kind of the most recent interaction, or WAITING when
    there is none.
    """
    latest = latest_interaction(interactions)
    if latest is None:
        return DerivedStatus.WAITING
    return DerivedStatus.from_kind(latest.kind)


def derive_status_for(prospect_id: int, interactions: Iterable[Interaction]) -> DerivedStatus:
    """Derive the status of one prospect from a mixed interaction list."""
    return derive_status(i for i in interactions if i.prospect_id == prospect_id)


def group_by_prospect(interactions: Iterable[Interaction]) -> dict[int, list[Interaction]]:
    """Group interactions by prospect id, each group newest first."""
    groups: dict[int, list[Interaction]] = defaultdict(list)
    for interaction in interactions:
        groups[interaction.prospect_id].append(interaction)
    return {prospect_id: sort_by_recency(group) for prospect_id, group in groups.items()}
