"""Cooperative cancellation tokens for snapshot loads."""

from typing import Optional


class CancellationToken:
    """Handed to one load. Once cancelled, the load must not write anything."""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def __repr__(self):
        return f"<CancellationToken {'cancelled' if self._cancelled else 'live'}>"


class CancellationSource:
    """
    Owns the single live token. ``renew()`` cancels the previous token and
    issues a new one, so the last load started is the only one that can write.
    """

    def __init__(self):
        self._current: Optional[CancellationToken] = None

    @property
    def current(self) -> Optional[CancellationToken]:
        return self._current

    def renew(self) -> CancellationToken:
        if self._current is not None:
            self._current.cancel()
        self._current = CancellationToken()
        return self._current

    def is_current(self, token: CancellationToken) -> bool:
        return token is self._current and not token.cancelled

    def cancel(self) -> None:
        if self._current is not None:
            self._current.cancel()
