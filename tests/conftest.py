"""Shared fixtures: model factories and an in-memory backend."""

import asyncio
from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from bocage.backend.client import BackendError
from bocage.models import EnrichedProspect, Interaction, InteractionKind, Prospect

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)

BASE_TIME = datetime(2024, 9, 2, 9, 0, tzinfo=timezone.utc)


def make_prospect(id=1, **overrides) -> Prospect:
    values = {
        "id": id,
        "external_reference": f"T{id:05d}",
        "name": f"EARL Ferme {id}",
        "relevance_score": 50,
        "department": "22",
        "zone": "Nord",
    }
    values.update(overrides)
    return Prospect(**values)


def make_enriched(id=1, status=None, **overrides) -> EnrichedProspect:
    prospect = make_prospect(id, **overrides)
    if status is None:
        return EnrichedProspect.from_prospect(prospect)
    return EnrichedProspect.from_prospect(prospect, status=status)


def make_interaction(id, prospect_id=1, kind=InteractionKind.CALLED, minutes=0, **overrides) -> Interaction:
    values = {
        "id": id,
        "prospect_id": prospect_id,
        "kind": kind,
        "created_at": BASE_TIME + timedelta(minutes=minutes),
    }
    values.update(overrides)
    return Interaction(**values)


async def settle():
    """Let pending tasks run until they block."""
    for _ in range(10):
        await asyncio.sleep(0)


class FakeBackend:
    """
    In-memory stand-in for BackendClient.

    Reads return the stored rows in backend order; inserts are stored, so a
    reload after an insert sees them.
    """

    def __init__(self, prospects=(), interactions=()):
        self.prospects = list(prospects)
        self.interactions = list(interactions)
        self.fail_prospects = None
        self.fail_interactions = None
        self.fail_insert = None
        self.inserted = []
        self.closed = False
        self._ids = count(1000)

    async def fetch_prospects(self, limit=500):
        if self.fail_prospects:
            raise self.fail_prospects
        ordered = sorted(self.prospects, key=lambda p: p.relevance_score, reverse=True)
        return ordered[:limit]

    async def fetch_interactions(self, limit=1000):
        if self.fail_interactions:
            raise self.fail_interactions
        ordered = sorted(self.interactions, key=lambda i: (i.created_at, i.id), reverse=True)
        return ordered[:limit]

    async def insert_interaction(self, prospect_id, kind, notes, created_by):
        if self.fail_insert:
            raise self.fail_insert
        interaction = Interaction(
            id=next(self._ids),
            prospect_id=prospect_id,
            kind=kind,
            created_at=datetime.now(timezone.utc),
            notes=notes,
            created_by=created_by,
        )
        self.interactions.append(interaction)
        self.inserted.append(interaction)
        return interaction

    async def close(self):
        self.closed = True


class SlowInsertBackend(FakeBackend):
    """FakeBackend whose insert stores the row, then waits for ``respond``."""

    def __init__(self, prospects=(), interactions=()):
        super().__init__(prospects, interactions)
        self.respond = asyncio.Event()

    async def insert_interaction(self, prospect_id, kind, notes, created_by):
        interaction = await super().insert_interaction(prospect_id, kind, notes, created_by)
        await self.respond.wait()
        return interaction


class GatedBackend:
    """
    Backend whose reads block until released, one scripted result per load.

    ``script()`` queues the result of the next load; ``release(n)`` lets
    load ``n`` (0-based, in start order) return.
    """

    def __init__(self):
        self._loads = []
        self._prospect_calls = 0
        self._interaction_calls = 0

    def script(self, prospects=(), interactions=(), error=None):
        self._loads.append({
            "gate": asyncio.Event(),
            "prospects": list(prospects),
            "interactions": list(interactions),
            "error": error,
        })

    def release(self, n):
        self._loads[n]["gate"].set()

    @property
    def started(self):
        return self._prospect_calls

    async def fetch_prospects(self, limit=500):
        load = self._loads[self._prospect_calls]
        self._prospect_calls += 1
        await load["gate"].wait()
        if load["error"]:
            raise load["error"]
        return load["prospects"]

    async def fetch_interactions(self, limit=1000):
        load = self._loads[self._interaction_calls]
        self._interaction_calls += 1
        await load["gate"].wait()
        return load["interactions"]

    async def close(self):
        pass


@pytest.fixture
def backend():
    """Backend with three farms and a short call history."""
    prospects = [
        make_prospect(1, name="GAEC du Bocage", relevance_score=90, estimated_area=120.0, certifications="HVE"),
        make_prospect(2, name="EARL des Haies", relevance_score=40, estimated_area=30.0, certifications="0"),
        make_prospect(3, name="Ferme Le Gall", relevance_score=70, department="29", zone="Sud"),
    ]
    interactions = [
        make_interaction(10, prospect_id=1, kind=InteractionKind.CALLED, minutes=0),
        make_interaction(11, prospect_id=1, kind=InteractionKind.INTERESTED, minutes=30),
        make_interaction(12, prospect_id=2, kind=InteractionKind.REFUSED, minutes=10),
    ]
    return FakeBackend(prospects, interactions)


@pytest.fixture
def backend_error():
    return BackendError("connection reset")
