"""Backend store and identity collaborators."""

from .client import BackendClient, BackendError, AuthenticationError, RateLimitError
from .auth import IdentityProvider, StaticIdentity, SupabaseAuth, AuthSession

__all__ = [
    "BackendClient",
    "BackendError",
    "AuthenticationError",
    "RateLimitError",
    "IdentityProvider",
    "StaticIdentity",
    "SupabaseAuth",
    "AuthSession",
]
