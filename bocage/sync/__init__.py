"""Client-held snapshot: store, loads and mutations."""

from .cancellation import CancellationSource, CancellationToken
from .store import ReactiveStore, Snapshot, build_snapshot
from .fetch import FetchCoordinator, LoadResult
from .mutation import (
    MutationCoordinator,
    PatchStrategy,
    ReconcileStrategy,
    RevalidateStrategy,
    make_strategy,
)

__all__ = [
    "CancellationSource",
    "CancellationToken",
    "ReactiveStore",
    "Snapshot",
    "build_snapshot",
    "FetchCoordinator",
    "LoadResult",
    "MutationCoordinator",
    "PatchStrategy",
    "ReconcileStrategy",
    "RevalidateStrategy",
    "make_strategy",
]
