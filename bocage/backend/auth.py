"""Identity collaborator: who is signed in, and sign-in/sign-out."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

import httpx

from .client import AuthenticationError, BackendError

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    """Anything that can tell the current actor's email, or None."""

    async def current_actor(self) -> Optional[str]:
        ...


class StaticIdentity:
    """Fixed identity, for scripts and tests. ``None`` means signed out."""

    def __init__(self, email: Optional[str] = None):
        self.email = email

    async def current_actor(self) -> Optional[str]:
        return self.email


@dataclass
class AuthSession:
    """A signed-in session."""
    access_token: str
    email: str
    expires_at: datetime

    @property
    def expired(self) -> bool:
        return datetime.now(timezone.utc) >= self.expires_at


class SupabaseAuth:
    """
    Password sign-in against the backend's auth endpoint.

    Usage:
        auth = SupabaseAuth(url, anon_key)
        await auth.sign_in("demo@bois-bocage.fr", "secret")
        email = await auth.current_actor()
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.session: Optional[AuthSession] = None
        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/auth/v1",
            timeout=timeout,
            transport=transport,
            headers={"apikey": api_key},
        )

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password. Raises AuthenticationError on refusal."""
        try:
            response = await self._client.post(
                "/token",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
            )
        except httpx.HTTPError as e:
            raise BackendError(f"Sign-in request failed: {e}") from e

        if response.status_code in (400, 401, 403):
            raise AuthenticationError("Invalid email or password")
        if response.status_code >= 400:
            raise BackendError(f"Sign-in failed: {response.status_code}")

        data = response.json()
        user = data.get("user") or {}
        self.session = AuthSession(
            access_token=data["access_token"],
            email=user.get("email") or email,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=int(data.get("expires_in", 3600))),
        )
        logger.info("Signed in as %s", self.session.email)
        return self.session

    async def sign_out(self) -> None:
        """Sign out. The local session is dropped even if the call fails."""
        session, self.session = self.session, None
        if session is None:
            return
        try:
            response = await self._client.post(
                "/logout",
                headers={"Authorization": f"Bearer {session.access_token}"},
            )
            if response.status_code >= 400:
                logger.error("Sign out failed: %s", response.status_code)
        except httpx.HTTPError as e:
            logger.error("Sign out failed: %s", e)

    def access_token(self) -> Optional[str]:
        """Current access token, or None when signed out or expired."""
        if self.session is None or self.session.expired:
            return None
        return self.session.access_token

    async def current_actor(self) -> Optional[str]:
        if self.session is None or self.session.expired:
            return None
        return self.session.email

    async def close(self):
        await self._client.aclose()
