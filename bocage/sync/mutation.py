"""Append interactions and reconcile the local snapshot."""

import logging
from typing import Optional, Protocol, Union

from ..backend.client import BackendError
from ..constants import MESSAGES
from ..errors import MutationError, OutreachError, Unauthenticated
from ..models import Interaction, InteractionKind
from .fetch import FetchCoordinator
from .store import ReactiveStore

logger = logging.getLogger(__name__)


class ReconcileStrategy(Protocol):
    """Makes a stored interaction visible in the snapshot."""

    name: str

    async def reconcile(self, store: ReactiveStore, interaction: Interaction) -> None:
        ...


class PatchStrategy:
    """
    Patch the snapshot in place with the inserted row.

    If a load is in flight it may have read the tables before the insert, so
    it is superseded by a silent reload.
    """

    name = "patch"

    def __init__(self, fetcher: Optional[FetchCoordinator] = None):
        self.fetcher = fetcher

    async def reconcile(self, store: ReactiveStore, interaction: Interaction) -> None:
        if not store.apply(lambda snapshot: snapshot.with_interaction(interaction)):
            logger.debug("No snapshot loaded, interaction %s not patched in", interaction.id)

        if self.fetcher is not None and self.fetcher.in_flight:
            logger.debug("Superseding in-flight load after insert")
            await self.fetcher.load(silent=True)


class RevalidateStrategy:
    """
    Patch the snapshot, then reload it silently from the backend.

    A failed reload keeps the patch; the interaction was stored either way.
    """

    name = "revalidate"

    def __init__(self, fetcher: FetchCoordinator):
        self.fetcher = fetcher

    async def reconcile(self, store: ReactiveStore, interaction: Interaction) -> None:
        store.apply(lambda snapshot: snapshot.with_interaction(interaction))

        result = await self.fetcher.load(silent=True)
        if result.errors:
            logger.warning(
                "Revalidation after insert failed: %s",
                "; ".join(str(e) for e in result.errors),
            )


def make_strategy(name: str, fetcher: FetchCoordinator) -> ReconcileStrategy:
    if name == PatchStrategy.name:
        return PatchStrategy(fetcher)
    if name == RevalidateStrategy.name:
        return RevalidateStrategy(fetcher)
    raise ValueError(f"Unknown reconcile strategy: {name}")


class MutationCoordinator:
    """Records interactions for the signed-in actor."""

    def __init__(self, client, store: ReactiveStore, identity, strategy: ReconcileStrategy):
        self.client = client
        self.store = store
        self.identity = identity
        self.strategy = strategy

    async def append_interaction(
        self,
        prospect_id: int,
        kind: Union[InteractionKind, str],
        notes: Optional[str] = None,
    ) -> Optional[OutreachError]:
        """
        Append one interaction to a prospect's history.

        Args:
            prospect_id: Prospect the interaction belongs to
            kind: Interaction kind (enum or value)
            notes: Optional free text

        Returns:
            None on success, otherwise Unauthenticated or MutationError.
            On error the snapshot is exactly as before the call.
        """
        actor = await self.identity.current_actor()
        if not actor:
            logger.warning("Refusing to record interaction: no signed-in actor")
            return Unauthenticated(MESSAGES["session_expired"])

        try:
            kind = InteractionKind.parse(kind)
        except ValueError:
            return MutationError(f"Unknown interaction kind: {kind}")

        try:
            interaction = await self.client.insert_interaction(
                prospect_id,
                kind,
                notes or None,
                actor,
            )
        except BackendError as e:
            logger.error("Failed to record %s for prospect %s: %s", kind.value, prospect_id, e)
            return MutationError(MESSAGES["mutation_failed"].format(message=e))

        await self.strategy.reconcile(self.store, interaction)
        return None
