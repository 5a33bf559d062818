"""
Error values returned by the sync coordinators.

The coordinators never raise these past their boundary: a load or a mutation
returns them so the caller can render a targeted retry. They subclass
Exception so they can still carry a message and be logged like one.
"""

from typing import Optional

from .constants import MESSAGES

PROSPECTS = "prospects"
INTERACTIONS = "interactions"


class OutreachError(Exception):
    """Base class for outreach errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message

    def __eq__(self, other):
        return type(self) is type(other) and self.args == other.args

    def __hash__(self):
        return hash((type(self), self.args))


class FetchError(OutreachError):
    """A snapshot read failed."""

    def __init__(self, scope: str, message: str):
        if scope not in (PROSPECTS, INTERACTIONS):
            raise ValueError(f"Unknown fetch scope: {scope}")
        super().__init__(message)
        self.args = (scope, message)
        self.scope = scope

    def __str__(self):
        return f"{self.scope}: {self.message}"


class Unauthenticated(OutreachError):
    """No live actor identity; the write was not attempted."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or MESSAGES["session_expired"])


class MutationError(OutreachError):
    """Appending an interaction failed; the snapshot is unchanged."""


class Truncated(OutreachError):
    """A read returned as many rows as its cap. A warning, not a failure."""

    def __init__(self, which: str, limit: int):
        super().__init__(MESSAGES["truncated"].format(which=which, limit=limit))
        self.args = (which, limit)
        self.which = which
        self.limit = limit
