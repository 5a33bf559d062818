"""
Programmatic API for the outreach tracker.

Usage:
    from bocage import OutreachSession, load_config

    async with await OutreachSession.open(load_config()) as session:
        await session.refresh()
        for p in session.prospects[:10]:
            print(p.name, p.status.value)
        await session.add_interaction(42, "called", "Rappeler mardi")
"""

import logging
from typing import Optional

from .backend.auth import SupabaseAuth
from .backend.client import AuthenticationError, BackendClient
from .config import Settings
from .errors import OutreachError
from .models import EnrichedProspect, Interaction
from .sync.fetch import FetchCoordinator, LoadResult
from .sync.mutation import MutationCoordinator, ReconcileStrategy, make_strategy
from .sync.store import ReactiveStore

logger = logging.getLogger(__name__)


class OutreachSession:
    """
    Everything one signed-in session holds: the store and its two writers.

    The store lives as long as the session; closing the session cancels any
    load still in flight.
    """

    def __init__(
        self,
        client,
        identity,
        settings: Optional[Settings] = None,
        strategy: Optional[ReconcileStrategy] = None,
        auth: Optional[SupabaseAuth] = None,
    ):
        self.settings = settings or Settings()
        self.client = client
        self.identity = identity
        self.auth = auth
        self.store = ReactiveStore()
        self.fetcher = FetchCoordinator(
            client,
            self.store,
            prospect_limit=self.settings.prospect_limit,
            interaction_limit=self.settings.interaction_limit,
        )
        self.mutations = MutationCoordinator(
            client,
            self.store,
            identity,
            strategy or make_strategy(self.settings.reconcile, self.fetcher),
        )

    @classmethod
    async def open(
        cls,
        settings: Settings,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> "OutreachSession":
        """
        Connect to the backend, signing in when credentials are available.

        Without credentials the session can read but every write returns
        Unauthenticated.
        """
        if not settings.backend_configured:
            raise AuthenticationError(
                "Backend not configured. "
                "Set SUPABASE_URL and SUPABASE_ANON_KEY environment variables."
            )

        auth = SupabaseAuth(
            settings.supabase_url,
            settings.supabase_anon_key,
            timeout=settings.request_timeout,
        )
        email = email or settings.email
        password = password or settings.password
        if email and password:
            try:
                await auth.sign_in(email, password)
            except Exception:
                await auth.close()
                raise
        else:
            logger.info("No sign-in credentials, session is read-only")

        client = BackendClient(
            settings.supabase_url,
            settings.supabase_anon_key,
            timeout=settings.request_timeout,
            token_provider=auth.access_token,
        )
        return cls(client, auth, settings=settings, auth=auth)

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    @property
    def prospects(self) -> list[EnrichedProspect]:
        return self.store.prospects

    @property
    def interactions(self) -> list[Interaction]:
        return self.store.interactions

    @property
    def loading(self) -> bool:
        return self.store.loading

    @property
    def error(self) -> Optional[str]:
        return self.store.error

    def get_prospect(self, prospect_id: int) -> Optional[EnrichedProspect]:
        return self.store.get_prospect(prospect_id)

    def history(self, prospect_id: int) -> list[Interaction]:
        snapshot = self.store.snapshot
        return snapshot.history(prospect_id) if snapshot else []

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------

    async def refresh(self, silent: bool = False) -> LoadResult:
        return await self.fetcher.load(silent=silent)

    async def add_interaction(self, prospect_id: int, kind, notes: Optional[str] = None) -> Optional[OutreachError]:
        return await self.mutations.append_interaction(prospect_id, kind, notes)

    async def sign_out(self) -> None:
        """End the session: cancel loads, drop the snapshot, sign out."""
        self.fetcher.cancel()
        self.store.clear()
        if self.auth is not None:
            await self.auth.sign_out()

    async def close(self) -> None:
        self.fetcher.cancel()
        await self.client.close()
        if self.auth is not None:
            await self.auth.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
