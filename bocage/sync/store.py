"""
Session-lifetime holder of the prospect snapshot.

The snapshot is immutable and replaced wholesale: a successful load swaps in
a new one, a mutation patch swaps in a patched copy. Only the fetch and
mutation coordinators write here, always from the event loop, and every
write carries the writer's cancellation token so a superseded load can
never overwrite newer data.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, Optional

from ..constants import MESSAGES
from ..models import DerivedStatus, EnrichedProspect, Interaction, Prospect
from ..status import group_by_prospect, recency_key, sort_by_recency
from .cancellation import CancellationToken

logger = logging.getLogger(__name__)

Listener = Callable[["ReactiveStore"], None]


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time copy of all prospects and interactions."""

    prospects: tuple = ()
    interactions: tuple = ()  # newest first
    loaded_at: datetime = field(default_factory=datetime.now)
    _index: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_index", {p.id: p for p in self.prospects})

    def get_prospect(self, prospect_id: int) -> Optional[EnrichedProspect]:
        return self._index.get(prospect_id)

    def history(self, prospect_id: int) -> list[Interaction]:
        """One prospect's interactions, newest first."""
        return sort_by_recency(i for i in self.interactions if i.prospect_id == prospect_id)

    def with_interaction(self, interaction: Interaction) -> "Snapshot":
        """
        Copy with a new interaction prepended and its prospect's status updated.

        The prospect's new head is whichever of its previous head and the new
        interaction ranks first under the recency key. An interaction already
        in the snapshot (a load committed after the insert) leaves it as is.
        """
        if any(i.id == interaction.id for i in self.interactions):
            logger.debug("Interaction %s already in snapshot", interaction.id)
            return self

        prospects = self.prospects
        current = self.get_prospect(interaction.prospect_id)
        if current is not None:
            head = interaction
            if current.last_interaction is not None and recency_key(current.last_interaction) > recency_key(interaction):
                head = current.last_interaction
            updated = EnrichedProspect.from_prospect(
                current,
                status=DerivedStatus.from_kind(head.kind),
                last_interaction=head,
            )
            prospects = tuple(updated if p.id == current.id else p for p in self.prospects)
        else:
            logger.debug("Interaction %s for prospect %s not in snapshot", interaction.id, interaction.prospect_id)

        return Snapshot(
            prospects=prospects,
            interactions=(interaction,) + self.interactions,
            loaded_at=self.loaded_at,
        )


def build_snapshot(
    prospects: Iterable[Prospect],
    interactions: Iterable[Interaction],
) -> Snapshot:
    """Enrich each prospect with the status derived from its interactions."""
    ordered = sort_by_recency(interactions)
    groups = group_by_prospect(ordered)

    enriched = []
    for prospect in prospects:
        history = groups.get(prospect.id)
        head = history[0] if history else None
        enriched.append(EnrichedProspect.from_prospect(
            prospect,
            status=DerivedStatus.from_kind(head.kind) if head else DerivedStatus.WAITING,
            last_interaction=head,
        ))

    return Snapshot(prospects=tuple(enriched), interactions=tuple(ordered))


class ReactiveStore:
    """Holds the current snapshot plus load state, and notifies subscribers."""

    def __init__(self):
        self._snapshot: Optional[Snapshot] = None
        self._loading = False
        self._errors: list = []
        self._warnings: list = []
        self._listeners: list[Listener] = []
        self.version = 0

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> Optional[Snapshot]:
        return self._snapshot

    @property
    def prospects(self) -> list[EnrichedProspect]:
        return list(self._snapshot.prospects) if self._snapshot else []

    @property
    def interactions(self) -> list[Interaction]:
        return list(self._snapshot.interactions) if self._snapshot else []

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def errors(self) -> list:
        return list(self._errors)

    @property
    def error(self) -> Optional[str]:
        """Display message for the first load error, if any."""
        if not self._errors:
            return None
        first = self._errors[0]
        return MESSAGES[f"fetch_{first.scope}"].format(message=first.message)

    @property
    def warnings(self) -> list:
        return list(self._warnings)

    def get_prospect(self, prospect_id: int) -> Optional[EnrichedProspect]:
        return self._snapshot.get_prospect(prospect_id) if self._snapshot else None

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------

    def set_loading(self, token: CancellationToken) -> bool:
        """Show the loading indicator for a live, non-silent load."""
        if token.cancelled:
            return False
        self._loading = True
        self._errors = []
        self._notify()
        return True

    def commit_load(self, snapshot: Snapshot, warnings: list, token: CancellationToken) -> bool:
        """Replace the snapshot with a load's result. Refused once the token is cancelled."""
        if token.cancelled:
            logger.debug("Discarding snapshot from superseded load")
            return False
        self._snapshot = snapshot
        self._warnings = list(warnings)
        self._errors = []
        self._loading = False
        self._notify()
        return True

    def fail_load(self, errors: list, token: CancellationToken) -> bool:
        """Record a failed load. The snapshot is left as it was."""
        if token.cancelled:
            return False
        self._errors = list(errors)
        self._loading = False
        self._notify()
        return True

    def dismiss_error(self) -> None:
        if self._errors:
            self._errors = []
            self._notify()

    def apply(self, update: Callable[[Snapshot], Snapshot]) -> bool:
        """
        Patch the current snapshot. The update runs against whatever snapshot
        is current at write time; without a snapshot nothing happens.
        """
        if self._snapshot is None:
            return False
        updated = update(self._snapshot)
        if updated is not self._snapshot:
            self._snapshot = updated
            self._notify()
        return True

    def clear(self) -> None:
        """Forget everything, e.g. on sign-out."""
        self._snapshot = None
        self._loading = False
        self._errors = []
        self._warnings = []
        self._notify()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(store)`` after every change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        self.version += 1
        for listener in list(self._listeners):
            listener(self)
