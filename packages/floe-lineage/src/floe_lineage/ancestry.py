"""Ancestor walks over a snapshot parent chain.

Every query here is built on one primitive, AncestorWalk: a lazy cursor that
starts at a snapshot, follows parent links toward the root, and stops at the
root or at the first parent that can no longer be resolved (expired).

Functions take a lookup callable (snapshot ID to snapshot or None) rather
than a table, so they run the same against PyIceberg metadata and against
an in-memory fixture. Use TableLineage for head-relative forms.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from floe_lineage.config import WalkEnd
from floe_lineage.errors import IncompleteHistoryError, NotAnAncestorError, SnapshotNotFoundError
from floe_lineage.observability import get_logger

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

    from floe_lineage.resolver import SnapshotLike, SnapshotLookup

__all__ = [
    "AncestorWalk",
    "Ancestors",
    "ancestors_of",
    "ancestor_ids",
    "ancestors_between",
    "ancestor_ids_between",
    "is_ancestor_of",
    "is_parent_ancestor_of",
    "oldest_ancestor_of",
    "oldest_ancestor_after",
    "snapshot_after",
    "snapshot_id_as_of_time",
]


class AncestorWalk(Iterator["SnapshotLike"]):
    """Single-pass cursor over the ancestors of a snapshot, newest first.

    The walk resolves one snapshot per next() call. Once it ends it stays
    ended: further next() calls raise StopIteration without touching the
    lookup again.

    Attributes:
        start_id: Snapshot the walk started from.
        end: Why the walk ended, None while it can still yield.

    Example:
        >>> walk = AncestorWalk(3, resolver.snapshot_by_id)
        >>> [s.snapshot_id for s in walk]
        [3, 2, 1]
        >>> walk.end
        <WalkEnd.ROOT: 'root'>
        >>> next(walk, None) is None
        True
    """

    def __init__(
        self,
        snapshot_id: int | None,
        lookup: SnapshotLookup,
        *,
        stop_id: int | None = None,
        limit: int | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        """Initialize AncestorWalk.

        Args:
            snapshot_id: Snapshot to start from (yielded first). None walks nothing.
            lookup: Resolves a snapshot ID, returning None when not retained.
            stop_id: Snapshot at which to stop, exclusive.
            limit: Maximum number of snapshots to yield.
            logger: Optional structlog logger for custom logging.
        """
        self.start_id = snapshot_id
        self.end: WalkEnd | None = None
        self._next_id = snapshot_id
        self._lookup = lookup
        self._stop_id = stop_id
        self._limit = limit
        self._logger = logger or get_logger()
        self._count = 0
        self._last: SnapshotLike | None = None

    @property
    def count(self) -> int:
        """Return the number of snapshots yielded so far."""
        return self._count

    @property
    def last(self) -> SnapshotLike | None:
        """Return the most recently yielded snapshot."""
        return self._last

    def __iter__(self) -> AncestorWalk:
        return self

    def __next__(self) -> SnapshotLike:
        if self.end is not None:
            raise StopIteration

        if self._next_id is None:
            self._finish(WalkEnd.ROOT if self._last is not None else WalkEnd.HISTORY_BOUNDARY)
            raise StopIteration
        if self._stop_id is not None and self._next_id == self._stop_id:
            self._finish(WalkEnd.STOP_ID)
            raise StopIteration
        if self._limit is not None and self._count >= self._limit:
            self._finish(WalkEnd.LIMIT)
            raise StopIteration

        snapshot = self._lookup(self._next_id)
        if snapshot is None:
            self._finish(WalkEnd.HISTORY_BOUNDARY)
            raise StopIteration

        self._next_id = snapshot.parent_snapshot_id
        self._last = snapshot
        self._count += 1
        return snapshot

    def _finish(self, end: WalkEnd) -> None:
        self.end = end
        self._logger.debug(
            "ancestor_walk_ended",
            start_id=self.start_id,
            end=end.value,
            yielded=self._count,
            unresolved_id=self._next_id if end is WalkEnd.HISTORY_BOUNDARY else None,
        )


class Ancestors(Iterable["SnapshotLike"]):
    """Re-iterable view of a snapshot's ancestors.

    Each iter() starts a fresh AncestorWalk, so the view can be looped over
    more than once and every loop sees the lookup's current answers.

    Example:
        >>> ancestors = ancestors_of(3, resolver.snapshot_by_id)
        >>> ancestors.ids()
        [3, 2, 1]
    """

    def __init__(
        self,
        snapshot_id: int | None,
        lookup: SnapshotLookup,
        *,
        stop_id: int | None = None,
        limit: int | None = None,
    ) -> None:
        self._snapshot_id = snapshot_id
        self._lookup = lookup
        self._stop_id = stop_id
        self._limit = limit

    def __iter__(self) -> AncestorWalk:
        return AncestorWalk(
            self._snapshot_id,
            self._lookup,
            stop_id=self._stop_id,
            limit=self._limit,
        )

    def ids(self) -> list[int]:
        """Walk once and return the snapshot IDs in walk order."""
        return [snapshot.snapshot_id for snapshot in self]

    def __repr__(self) -> str:
        return (
            f"Ancestors(snapshot_id={self._snapshot_id}, stop_id={self._stop_id}, "
            f"limit={self._limit})"
        )


def ancestors_of(
    snapshot_id: int | None,
    lookup: SnapshotLookup,
    *,
    limit: int | None = None,
) -> Ancestors:
    """Return the ancestors of a snapshot, starting with the snapshot itself.

    The result is empty if snapshot_id is None or cannot be resolved, and
    stops early at the first expired parent.

    Args:
        snapshot_id: Snapshot to start from.
        lookup: Resolves a snapshot ID, returning None when not retained.
        limit: Maximum number of snapshots to yield per walk.

    Returns:
        Lazy, re-iterable Ancestors view.
    """
    return Ancestors(snapshot_id, lookup, limit=limit)


def ancestor_ids(
    snapshot_id: int | None,
    lookup: SnapshotLookup,
    *,
    limit: int | None = None,
) -> list[int]:
    """Return the IDs of ancestors_of(snapshot_id), newest first."""
    return ancestors_of(snapshot_id, lookup, limit=limit).ids()


def ancestors_between(
    latest_id: int | None,
    oldest_id: int | None,
    lookup: SnapshotLookup,
    *,
    limit: int | None = None,
) -> Ancestors:
    """Return ancestors of latest_id down to, but excluding, oldest_id.

    oldest_id is only a stopping point: if it is not on the chain the walk
    runs to the root or the history boundary instead. None means no stopping
    point. latest_id == oldest_id gives an empty result.

    Args:
        latest_id: Newest snapshot, included.
        oldest_id: Snapshot to stop at, excluded.
        lookup: Resolves a snapshot ID, returning None when not retained.
        limit: Maximum number of snapshots to yield per walk.

    Returns:
        Lazy, re-iterable Ancestors view.

    Example:
        >>> ancestors_between(3, 1, resolver.snapshot_by_id).ids()
        [3, 2]
    """
    return Ancestors(latest_id, lookup, stop_id=oldest_id, limit=limit)


def ancestor_ids_between(
    latest_id: int | None,
    oldest_id: int | None,
    lookup: SnapshotLookup,
    *,
    limit: int | None = None,
) -> list[int]:
    """Return the IDs of ancestors_between(latest_id, oldest_id), newest first."""
    return ancestors_between(latest_id, oldest_id, lookup, limit=limit).ids()


def is_ancestor_of(
    snapshot_id: int | None,
    ancestor_id: int,
    lookup: SnapshotLookup,
) -> bool:
    """Return True if ancestor_id is a retained ancestor of snapshot_id.

    A snapshot is its own ancestor. The ancestor itself must still resolve:
    an expired ancestor is never reached by the walk, so this returns False
    for it. Use is_parent_ancestor_of to detect expired ancestors.
    """
    return any(snapshot.snapshot_id == ancestor_id for snapshot in ancestors_of(snapshot_id, lookup))


def is_parent_ancestor_of(
    snapshot_id: int | None,
    ancestor_id: int,
    lookup: SnapshotLookup,
) -> bool:
    """Return True if a retained ancestor of snapshot_id has ancestor_id as parent.

    Compares parent links instead of resolved IDs, so an expired ancestor
    still counts as long as a retained snapshot references it. A snapshot is
    not its own parent-ancestor.
    """
    return any(
        snapshot.parent_snapshot_id == ancestor_id
        for snapshot in ancestors_of(snapshot_id, lookup)
    )


def oldest_ancestor_of(
    snapshot_id: int | None,
    lookup: SnapshotLookup,
) -> SnapshotLike | None:
    """Return the oldest retained ancestor of snapshot_id.

    This is the table's root only while the root has not been expired.

    Returns:
        Last snapshot of the walk, or None if snapshot_id cannot be resolved.
    """
    oldest = None
    for snapshot in ancestors_of(snapshot_id, lookup):
        oldest = snapshot
    return oldest


def oldest_ancestor_after(
    snapshot_id: int | None,
    timestamp_ms: int,
    lookup: SnapshotLookup,
    *,
    limit: int | None = None,
) -> SnapshotLike | None:
    """Return the oldest ancestor committed at or after timestamp_ms.

    Timestamps never decrease from parent to child, so the walk stops at the
    first ancestor older than the threshold.

    Args:
        snapshot_id: Snapshot to start from, usually a branch head.
        timestamp_ms: Threshold in milliseconds since epoch, inclusive.
        lookup: Resolves a snapshot ID, returning None when not retained.
        limit: Maximum number of snapshots to walk.

    Returns:
        The oldest qualifying snapshot, or None if no ancestor qualifies.

    Raises:
        IncompleteHistoryError: If every retained ancestor qualifies but the
            walk ended before the root, so an older qualifying snapshot may
            have been expired.
    """
    walk = AncestorWalk(snapshot_id, lookup, limit=limit)
    candidate: SnapshotLike | None = None
    for snapshot in walk:
        if snapshot.timestamp_ms < timestamp_ms:
            return candidate
        candidate = snapshot

    if candidate is None or walk.end is WalkEnd.ROOT:
        return candidate

    assert walk.end is not None  # Type narrowing for mypy
    raise IncompleteHistoryError(
        timestamp_ms,
        candidate.snapshot_id,
        message=(
            f"Cannot find snapshot older than {timestamp_ms}: "
            f"walk ended at {candidate.snapshot_id} ({walk.end.value})"
        ),
    )


def snapshot_after(
    head_id: int | None,
    snapshot_id: int,
    lookup: SnapshotLookup,
) -> SnapshotLike:
    """Return the child of snapshot_id on the chain ending at head_id.

    Args:
        head_id: Head of the chain to search, usually a branch head.
        snapshot_id: Parent whose child is wanted.
        lookup: Resolves a snapshot ID, returning None when not retained.

    Returns:
        The retained snapshot whose parent is snapshot_id.

    Raises:
        SnapshotNotFoundError: If snapshot_id cannot be resolved.
        NotAnAncestorError: If no snapshot on the chain has snapshot_id as parent.
    """
    if lookup(snapshot_id) is None:
        raise SnapshotNotFoundError(snapshot_id, message=f"Invalid parent snapshot id: {snapshot_id}")

    for snapshot in ancestors_of(head_id, lookup):
        if snapshot.parent_snapshot_id == snapshot_id:
            return snapshot

    raise NotAnAncestorError(
        snapshot_id,
        head_id,
        message=f"Cannot find snapshot after {snapshot_id}: not an ancestor of {head_id}",
    )


def snapshot_id_as_of_time(
    head_id: int | None,
    timestamp_ms: int,
    lookup: SnapshotLookup,
) -> int:
    """Return the ID of the newest ancestor committed at or before timestamp_ms.

    Raises:
        SnapshotNotFoundError: If no retained ancestor is that old.
    """
    for snapshot in ancestors_of(head_id, lookup):
        if snapshot.timestamp_ms <= timestamp_ms:
            return snapshot.snapshot_id

    raise SnapshotNotFoundError(message=f"Cannot find a snapshot older than {timestamp_ms}")
