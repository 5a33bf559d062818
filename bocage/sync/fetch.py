"""Load the prospect snapshot from the backend, racing concurrent loads."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from ..errors import INTERACTIONS, PROSPECTS, FetchError, Truncated
from .cancellation import CancellationSource, CancellationToken
from .store import ReactiveStore, Snapshot, build_snapshot

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Outcome of one load. Errors are returned, never raised."""

    snapshot: Optional[Snapshot] = None
    errors: list = field(default_factory=list)
    warnings: list = field(default_factory=list)
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.snapshot is not None and not self.errors and not self.cancelled

    def error_for(self, scope: str) -> Optional[FetchError]:
        """The error of one read, to offer a targeted retry."""
        return next((e for e in self.errors if e.scope == scope), None)


class FetchCoordinator:
    """
    Fetches prospects and interactions concurrently into the store.

    Starting a load cancels the token of any load still in flight; a load
    whose token was cancelled writes nothing. The last load started wins.
    """

    def __init__(
        self,
        client,
        store: ReactiveStore,
        prospect_limit: int = 500,
        interaction_limit: int = 1000,
        source: Optional[CancellationSource] = None,
    ):
        self.client = client
        self.store = store
        self.prospect_limit = prospect_limit
        self.interaction_limit = interaction_limit
        self._source = source or CancellationSource()
        self._live: Optional[CancellationToken] = None

    @property
    def in_flight(self) -> bool:
        """True while a load that can still write is running."""
        return self._live is not None and not self._live.cancelled

    async def load(self, silent: bool = False) -> LoadResult:
        """
        Load a fresh snapshot.

        Args:
            silent: Leave the loading indicator alone (revalidation)

        Returns:
            LoadResult with the new snapshot, or the per-read errors
        """
        token = self._source.renew()
        self._live = token
        try:
            return await self._load(token, silent)
        finally:
            if self._live is token:
                self._live = None

    async def _load(self, token: CancellationToken, silent: bool) -> LoadResult:
        if not silent:
            self.store.set_loading(token)

        prospects, interactions = await asyncio.gather(
            self.client.fetch_prospects(self.prospect_limit),
            self.client.fetch_interactions(self.interaction_limit),
            return_exceptions=True,
        )

        if token.cancelled:
            logger.debug("Load superseded, discarding results")
            return LoadResult(cancelled=True)

        errors = []
        for scope, result in ((PROSPECTS, prospects), (INTERACTIONS, interactions)):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, Exception):
                logger.error("Failed to fetch %s: %s", scope, result)
                errors.append(FetchError(scope, str(result)))

        if errors:
            if not self.store.fail_load(errors, token):
                return LoadResult(cancelled=True)
            return LoadResult(errors=errors)

        warnings = []
        if len(prospects) >= self.prospect_limit:
            warnings.append(Truncated(PROSPECTS, self.prospect_limit))
        if len(interactions) >= self.interaction_limit:
            warnings.append(Truncated(INTERACTIONS, self.interaction_limit))
        for warning in warnings:
            logger.warning("%s", warning)

        snapshot = build_snapshot(prospects, interactions)

        if not self.store.commit_load(snapshot, warnings, token):
            return LoadResult(cancelled=True)

        logger.info(
            "Loaded %d prospects and %d interactions",
            len(snapshot.prospects),
            len(snapshot.interactions),
        )
        return LoadResult(snapshot=snapshot, warnings=warnings)

    def cancel(self) -> None:
        """Invalidate the load in flight, if any."""
        self._source.cancel()
