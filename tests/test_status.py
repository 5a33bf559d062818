"""Tests for status derivation from interaction history."""

import itertools

from bocage.models import DerivedStatus, InteractionKind
from bocage.status import (
    derive_status,
    derive_status_for,
    group_by_prospect,
    latest_interaction,
    sort_by_recency,
)

from conftest import make_interaction


class TestDeriveStatus:
    """The status is the kind of the most recent interaction."""

    def test_empty_history_is_waiting(self):
        assert derive_status([]) == DerivedStatus.WAITING

    def test_single_interaction(self):
        history = [make_interaction(1, kind=InteractionKind.CALLBACK)]
        assert derive_status(history) == DerivedStatus.CALLBACK

    def test_most_recent_wins(self):
        history = [
            make_interaction(1, kind=InteractionKind.CALLED, minutes=0),
            make_interaction(2, kind=InteractionKind.RECRUITED, minutes=60),
            make_interaction(3, kind=InteractionKind.INTERESTED, minutes=30),
        ]
        assert derive_status(history) == DerivedStatus.RECRUITED

    def test_order_insensitive(self):
        """Every permutation of the same set gives the same status."""
        history = [
            make_interaction(1, kind=InteractionKind.CALLED, minutes=0),
            make_interaction(2, kind=InteractionKind.REFUSED, minutes=5),
            make_interaction(3, kind=InteractionKind.INTERESTED, minutes=10),
        ]
        results = {derive_status(list(p)) for p in itertools.permutations(history)}
        assert results == {DerivedStatus.INTERESTED}

    def test_timestamp_tie_broken_by_id(self):
        """Equal timestamps: the higher id is more recent."""
        history = [
            make_interaction(8, kind=InteractionKind.RECRUITED, minutes=0),
            make_interaction(7, kind=InteractionKind.REFUSED, minutes=0),
        ]
        assert derive_status(history) == DerivedStatus.RECRUITED
        assert derive_status(reversed(history)) == DerivedStatus.RECRUITED

    def test_accepts_generator(self):
        history = (make_interaction(i, minutes=i) for i in range(3))
        assert derive_status(history) == DerivedStatus.CALLED

    def test_derive_for_one_prospect(self):
        history = [
            make_interaction(1, prospect_id=1, kind=InteractionKind.RECRUITED, minutes=50),
            make_interaction(2, prospect_id=2, kind=InteractionKind.REFUSED, minutes=10),
        ]
        assert derive_status_for(2, history) == DerivedStatus.REFUSED
        assert derive_status_for(3, history) == DerivedStatus.WAITING


class TestRecencyOrdering:
    """Newest first, id breaking ties."""

    def test_sort_by_recency(self):
        history = [
            make_interaction(1, minutes=10),
            make_interaction(3, minutes=0),
            make_interaction(2, minutes=10),
        ]
        assert [i.id for i in sort_by_recency(history)] == [2, 1, 3]

    def test_latest_of_empty_is_none(self):
        assert latest_interaction([]) is None

    def test_group_by_prospect(self):
        history = [
            make_interaction(1, prospect_id=1, minutes=0),
            make_interaction(2, prospect_id=2, minutes=5),
            make_interaction(3, prospect_id=1, minutes=20),
        ]
        groups = group_by_prospect(history)

        assert set(groups) == {1, 2}
        assert [i.id for i in groups[1]] == [3, 1]
        assert [i.id for i in groups[2]] == [2]
