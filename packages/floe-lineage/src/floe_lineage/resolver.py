"""Snapshot resolvers: the read-only view lineage queries run against.

A resolver maps a snapshot ID to its record, or None when the snapshot is
not retained, and maps a reference name to its head snapshot ID. Lineage
queries only ever read through this interface.

This module provides:
- SnapshotLike: Structural type of a snapshot node
- SnapshotLookup: Callable form of snapshot resolution
- SnapshotResolver: Protocol consumed by TableLineage
- InMemorySnapshotResolver: Immutable mapping-backed resolver
- IcebergSnapshotResolver: Resolver over PyIceberg table metadata
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Protocol, TypeAlias, runtime_checkable

from pyiceberg.table import Table

if TYPE_CHECKING:
    from pyiceberg.table.metadata import TableMetadata


@runtime_checkable
class SnapshotLike(Protocol):
    """Any snapshot record with an ID, a parent link and a commit time.

    Both SnapshotRecord and pyiceberg.table.snapshots.Snapshot match.
    """

    @property
    def snapshot_id(self) -> int: ...

    @property
    def parent_snapshot_id(self) -> int | None: ...

    @property
    def timestamp_ms(self) -> int: ...


SnapshotLookup: TypeAlias = Callable[[int], SnapshotLike | None]


class SnapshotResolver(Protocol):
    """Read-only access to a frozen view of a table's snapshots and refs."""

    def snapshot_by_id(self, snapshot_id: int) -> SnapshotLike | None:
        """Return the retained snapshot with this ID, or None."""
        ...

    def head_of(self, ref_name: str) -> int | None:
        """Return the head snapshot ID of a reference, or None."""
        ...


class InMemorySnapshotResolver:
    """Resolver over an in-memory mapping of snapshots and references.

    Instances are never mutated. Use without() to model expiration.

    Example:
        >>> resolver = InMemorySnapshotResolver(
        ...     [SnapshotRecord(snapshot_id=1, timestamp_ms=1000),
        ...      SnapshotRecord(snapshot_id=2, parent_snapshot_id=1, timestamp_ms=2000)],
        ...     refs={"main": 2},
        ... )
        >>> resolver.head_of("main")
        2
        >>> resolver.without(1).snapshot_by_id(1) is None
        True
    """

    def __init__(
        self,
        snapshots: Iterable[SnapshotLike] = (),
        refs: Mapping[str, int] | None = None,
    ) -> None:
        """Initialize InMemorySnapshotResolver.

        Args:
            snapshots: Retained snapshots.
            refs: Reference name to head snapshot ID.

        Raises:
            ValueError: If two snapshots share an ID.
        """
        by_id: dict[int, SnapshotLike] = {}
        for snapshot in snapshots:
            if snapshot.snapshot_id in by_id:
                msg = f"Duplicate snapshot id: {snapshot.snapshot_id}"
                raise ValueError(msg)
            by_id[snapshot.snapshot_id] = snapshot
        self._snapshots = by_id
        self._refs = dict(refs or {})

    @property
    def snapshot_ids(self) -> frozenset[int]:
        """Return the IDs of all retained snapshots."""
        return frozenset(self._snapshots)

    @property
    def refs(self) -> dict[str, int]:
        """Return a copy of the reference mapping."""
        return dict(self._refs)

    def snapshot_by_id(self, snapshot_id: int) -> SnapshotLike | None:
        return self._snapshots.get(snapshot_id)

    def head_of(self, ref_name: str) -> int | None:
        return self._refs.get(ref_name)

    def without(self, *snapshot_ids: int) -> InMemorySnapshotResolver:
        """Return a copy with the given snapshots expired.

        Parent links on retained snapshots are left as they are, and
        references are kept, matching what expiration does to table metadata.
        """
        expired = set(snapshot_ids)
        return InMemorySnapshotResolver(
            (s for sid, s in self._snapshots.items() if sid not in expired),
            refs=self._refs,
        )

    def __len__(self) -> int:
        return len(self._snapshots)

    def __repr__(self) -> str:
        return f"InMemorySnapshotResolver(snapshots={len(self)}, refs={sorted(self._refs)})"


class IcebergSnapshotResolver:
    """Resolver over a PyIceberg table or its metadata.

    The metadata is captured when the resolver is built, so every query
    against one resolver sees the same frozen state. Build a new resolver
    after refreshing the table to see new commits.

    Example:
        >>> table = catalog.load_table("bronze.customers")
        >>> resolver = IcebergSnapshotResolver(table)
        >>> resolver.head_of("main")
        3051729675574597004
    """

    def __init__(self, source: Table | TableMetadata) -> None:
        """Initialize IcebergSnapshotResolver.

        Args:
            source: PyIceberg Table or TableMetadata.
        """
        self._metadata = source.metadata if isinstance(source, Table) else source

    @property
    def metadata(self) -> TableMetadata:
        """Return the captured table metadata."""
        return self._metadata

    def snapshot_by_id(self, snapshot_id: int) -> SnapshotLike | None:
        return self._metadata.snapshot_by_id(snapshot_id)

    def head_of(self, ref_name: str) -> int | None:
        ref = self._metadata.refs.get(ref_name)
        if ref is None:
            return None
        return ref.snapshot_id
