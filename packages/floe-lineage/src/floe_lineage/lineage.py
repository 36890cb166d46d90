"""TableLineage: Ancestry queries bound to one table's snapshot history.

This module provides the TableLineage class, which binds the functions in
floe_lineage.ancestry to a SnapshotResolver and adds branch-head forms of
each query, plus load_table_lineage for tables held in a PyIceberg catalog.

TableLineage never writes to the table. Every query reads through the
resolver it was built with.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pyiceberg.exceptions import NoSuchTableError as PyIcebergTableNotFoundError

from floe_lineage import ancestry
from floe_lineage.config import LineageConfig
from floe_lineage.errors import TableNotFoundError
from floe_lineage.observability import get_logger, get_tracer, lineage_operation
from floe_lineage.resolver import IcebergSnapshotResolver

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

    from opentelemetry.trace import Span, Tracer
    from pyiceberg.catalog import Catalog
    from structlog.stdlib import BoundLogger

    from floe_lineage.ancestry import Ancestors
    from floe_lineage.resolver import SnapshotLike, SnapshotResolver


class TableLineage:
    """Answer ancestry questions about a table's snapshots.

    Queries that take no snapshot ID start from the head of a branch: the
    configured default branch unless one is passed explicitly. A branch
    without a head behaves like an empty history.

    Attributes:
        resolver: Snapshot resolver the queries read through.
        config: Lineage configuration.

    Example:
        >>> from floe_lineage import IcebergSnapshotResolver, TableLineage
        >>>
        >>> lineage = TableLineage(IcebergSnapshotResolver(table))
        >>> lineage.current_ancestor_ids()
        [3, 2, 1]
        >>> lineage.is_ancestor_of(3, 1)
        True
    """

    def __init__(
        self,
        resolver: SnapshotResolver,
        config: LineageConfig | None = None,
        *,
        tracer: Tracer | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        """Initialize TableLineage.

        Args:
            resolver: Snapshot resolver for the table.
            config: Optional lineage configuration.
            tracer: Optional OpenTelemetry tracer for custom tracing.
            logger: Optional structlog logger for custom logging.
        """
        self._resolver = resolver
        self._config = config or LineageConfig()
        self._tracer = tracer or get_tracer()
        self._logger = logger or get_logger()

    @property
    def resolver(self) -> SnapshotResolver:
        """Return the underlying snapshot resolver."""
        return self._resolver

    @property
    def config(self) -> LineageConfig:
        """Return the lineage configuration."""
        return self._config

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def snapshot(self, snapshot_id: int) -> SnapshotLike | None:
        """Return a retained snapshot by ID, or None if expired or unknown."""
        return self._resolver.snapshot_by_id(snapshot_id)

    def head_id(self, *, branch: str | None = None) -> int | None:
        """Return the head snapshot ID of a branch, or None if it has none."""
        return self._resolver.head_of(self._branch(branch))

    def latest_snapshot(self, *, branch: str | None = None) -> SnapshotLike | None:
        """Return the head snapshot of a branch.

        Returns:
            The resolved head, or None if the branch does not exist or its
            head cannot be resolved.
        """
        head_id = self.head_id(branch=branch)
        if head_id is None:
            return None
        return self.snapshot(head_id)

    # -------------------------------------------------------------------------
    # Walks
    # -------------------------------------------------------------------------

    def ancestors_of(self, snapshot_id: int) -> Ancestors:
        """Return the retained ancestors of a snapshot, newest first.

        Example:
            >>> for snap in lineage.ancestors_of(3):
            ...     print(snap.snapshot_id, snap.timestamp_ms)
        """
        self._logger.debug("ancestors_requested", snapshot_id=snapshot_id)
        return ancestry.ancestors_of(snapshot_id, self._lookup, limit=self._config.walk_limit)

    def current_ancestors(self, *, branch: str | None = None) -> Ancestors:
        """Return the retained ancestors of a branch head, newest first."""
        branch_name = self._branch(branch)
        head_id = self._resolver.head_of(branch_name)
        self._logger.debug("ancestors_requested", snapshot_id=head_id, branch=branch_name)
        return ancestry.ancestors_of(head_id, self._lookup, limit=self._config.walk_limit)

    def current_ancestor_ids(self, *, branch: str | None = None) -> list[int]:
        """Return the IDs of current_ancestors(), newest first."""
        branch_name = self._branch(branch)
        with self._operation("current_ancestor_ids", branch=branch_name) as s:
            ids = self.current_ancestors(branch=branch_name).ids()
            s.set_attribute("lineage.result_count", len(ids))
            return ids

    def ancestors_between(self, latest_id: int, oldest_id: int | None) -> Ancestors:
        """Return ancestors of latest_id down to, but excluding, oldest_id.

        If oldest_id is not an ancestor of latest_id the full retained chain
        of latest_id is returned. That is not treated as an error.
        """
        self._logger.debug("ancestors_requested", snapshot_id=latest_id, stop_id=oldest_id)
        return ancestry.ancestors_between(
            latest_id,
            oldest_id,
            self._lookup,
            limit=self._config.walk_limit,
        )

    def snapshot_ids_between(self, from_id: int, to_id: int) -> list[int]:
        """Return snapshot IDs from to_id back to, but excluding, from_id.

        Args:
            from_id: Older boundary, excluded.
            to_id: Newer boundary, included.

        Returns:
            IDs newest first. The full retained chain of to_id if from_id
            is not on it.

        Example:
            >>> lineage.snapshot_ids_between(1, 3)
            [3, 2]
        """
        with self._operation("snapshot_ids_between", snapshot_id=to_id, ancestor_id=from_id) as s:
            ids = ancestry.ancestor_ids_between(
                to_id,
                from_id,
                self._lookup,
                limit=self._config.walk_limit,
            )
            s.set_attribute("lineage.result_count", len(ids))
            return ids

    # -------------------------------------------------------------------------
    # Predicates
    # -------------------------------------------------------------------------

    def is_ancestor_of(self, snapshot_id: int, ancestor_id: int) -> bool:
        """Return True if ancestor_id is a retained ancestor of snapshot_id.

        Expired ancestors are not found. See is_parent_ancestor_of.
        """
        with self._operation("is_ancestor_of", snapshot_id=snapshot_id, ancestor_id=ancestor_id) as s:
            result = ancestry.is_ancestor_of(snapshot_id, ancestor_id, self._lookup)
            s.set_attribute("lineage.result", result)
            return result

    def is_current_ancestor(self, ancestor_id: int, *, branch: str | None = None) -> bool:
        """Return True if ancestor_id is a retained ancestor of a branch head."""
        branch_name = self._branch(branch)
        with self._operation("is_current_ancestor", ancestor_id=ancestor_id, branch=branch_name) as s:
            head_id = self._resolver.head_of(branch_name)
            result = head_id is not None and ancestry.is_ancestor_of(
                head_id, ancestor_id, self._lookup
            )
            s.set_attribute("lineage.result", result)
            return result

    def is_parent_ancestor_of(self, snapshot_id: int, ancestor_id: int) -> bool:
        """Return True if a retained ancestor of snapshot_id has ancestor_id as parent.

        Unlike is_ancestor_of, ancestor_id may already be expired.
        """
        with self._operation(
            "is_parent_ancestor_of", snapshot_id=snapshot_id, ancestor_id=ancestor_id
        ) as s:
            result = ancestry.is_parent_ancestor_of(snapshot_id, ancestor_id, self._lookup)
            s.set_attribute("lineage.result", result)
            return result

    # -------------------------------------------------------------------------
    # Oldest ancestor
    # -------------------------------------------------------------------------

    def oldest_ancestor_of(self, snapshot_id: int) -> SnapshotLike | None:
        """Return the oldest retained ancestor of a snapshot."""
        with self._operation("oldest_ancestor_of", snapshot_id=snapshot_id):
            return ancestry.oldest_ancestor_of(snapshot_id, self._lookup)

    def oldest_ancestor(self, *, branch: str | None = None) -> SnapshotLike | None:
        """Return the oldest retained ancestor of a branch head.

        Returns:
            The oldest retained snapshot, or None if the branch has no head.
        """
        branch_name = self._branch(branch)
        with self._operation("oldest_ancestor", branch=branch_name):
            head_id = self._resolver.head_of(branch_name)
            return ancestry.oldest_ancestor_of(head_id, self._lookup)

    def oldest_ancestor_after(
        self,
        timestamp_ms: int,
        *,
        branch: str | None = None,
    ) -> SnapshotLike | None:
        """Return the oldest ancestor of a branch head committed at or after timestamp_ms.

        Args:
            timestamp_ms: Threshold in milliseconds since epoch, inclusive.
            branch: Branch to start from (default branch if None).

        Returns:
            The oldest qualifying snapshot, or None if none qualifies.

        Raises:
            IncompleteHistoryError: If the answer may have been expired.

        Example:
            >>> snap = lineage.oldest_ancestor_after(1702857600000)
            >>> if snap is None:
            ...     print("Nothing committed since then")
        """
        branch_name = self._branch(branch)
        with self._operation("oldest_ancestor_after", branch=branch_name, timestamp_ms=timestamp_ms):
            head_id = self._resolver.head_of(branch_name)
            return ancestry.oldest_ancestor_after(
                head_id,
                timestamp_ms,
                self._lookup,
                limit=self._config.walk_limit,
            )

    # -------------------------------------------------------------------------
    # Positional lookups
    # -------------------------------------------------------------------------

    def snapshot_after(self, snapshot_id: int, *, branch: str | None = None) -> SnapshotLike:
        """Return the snapshot committed directly on top of snapshot_id.

        Raises:
            SnapshotNotFoundError: If snapshot_id cannot be resolved.
            NotAnAncestorError: If snapshot_id has no child on the branch.
        """
        branch_name = self._branch(branch)
        with self._operation("snapshot_after", snapshot_id=snapshot_id, branch=branch_name):
            head_id = self._resolver.head_of(branch_name)
            return ancestry.snapshot_after(head_id, snapshot_id, self._lookup)

    def snapshot_id_as_of_time(self, timestamp_ms: int, *, branch: str | None = None) -> int:
        """Return the ID of the branch's snapshot that was current at timestamp_ms.

        Raises:
            SnapshotNotFoundError: If no retained ancestor is that old.
        """
        branch_name = self._branch(branch)
        with self._operation("snapshot_id_as_of_time", branch=branch_name, timestamp_ms=timestamp_ms):
            head_id = self._resolver.head_of(branch_name)
            return ancestry.snapshot_id_as_of_time(head_id, timestamp_ms, self._lookup)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _lookup(self, snapshot_id: int) -> SnapshotLike | None:
        return self._resolver.snapshot_by_id(snapshot_id)

    def _branch(self, branch: str | None) -> str:
        return branch or self._config.default_branch

    def _operation(
        self,
        operation: str,
        *,
        snapshot_id: int | None = None,
        ancestor_id: int | None = None,
        branch: str | None = None,
        timestamp_ms: int | None = None,
    ) -> AbstractContextManager[Span]:
        return lineage_operation(
            operation,
            snapshot_id=snapshot_id,
            ancestor_id=ancestor_id,
            branch=branch,
            timestamp_ms=timestamp_ms,
            tracer=self._tracer,
            logger=self._logger,
        )


def load_table_lineage(
    catalog: Catalog,
    identifier: str | tuple[str, ...],
    config: LineageConfig | None = None,
) -> TableLineage:
    """Load a table from a PyIceberg catalog and bind a TableLineage to it.

    The table's metadata is read once. Queries on the returned object do not
    see commits made after this call.

    Args:
        catalog: PyIceberg catalog to load from.
        identifier: Table identifier ("namespace.table" or tuple form).
        config: Optional lineage configuration.

    Returns:
        TableLineage over the table's current metadata.

    Raises:
        TableNotFoundError: If the table does not exist.

    Example:
        >>> lineage = load_table_lineage(catalog, "bronze.customers")
        >>> lineage.oldest_ancestor()
    """
    table_str = identifier if isinstance(identifier, str) else ".".join(identifier)
    logger = get_logger()
    try:
        table = catalog.load_table(identifier)
    except PyIcebergTableNotFoundError as exc:
        raise TableNotFoundError(table_str) from exc

    logger.debug("table_lineage_loaded", table=table_str)
    return TableLineage(IcebergSnapshotResolver(table), config)
