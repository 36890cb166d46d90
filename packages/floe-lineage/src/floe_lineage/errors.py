"""Custom exceptions for floe-lineage.

This module defines the exception hierarchy:
- FloeLineageError (base)
- SnapshotNotFoundError
- NotAnAncestorError
- IncompleteHistoryError
- TableNotFoundError

Expired or unknown snapshots are not errors by themselves: walks and
predicates degrade to empty results. These exceptions are reserved for
queries that must name a single snapshot and cannot.
"""

from __future__ import annotations

__all__ = [
    "FloeLineageError",
    "SnapshotNotFoundError",
    "NotAnAncestorError",
    "IncompleteHistoryError",
    "TableNotFoundError",
]


class FloeLineageError(Exception):
    """Base exception for all floe lineage queries.

    Attributes:
        message: Human-readable error description.
        details: Optional additional context about the error.

    Example:
        >>> try:
        ...     lineage.snapshot_after(12345)
        ... except FloeLineageError as e:
        ...     print(f"Lineage error: {e}")
    """

    def __init__(self, message: str, *, details: dict[str, str] | None = None) -> None:
        """Initialize FloeLineageError.

        Args:
            message: Human-readable error description.
            details: Optional additional context about the error.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details if present."""
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class SnapshotNotFoundError(FloeLineageError):
    """No retained snapshot satisfies the query.

    Raised when:
    - A query needs a specific snapshot that has been expired or never existed
    - A time-based lookup finds no retained ancestor old enough

    Example:
        >>> try:
        ...     lineage.snapshot_id_as_of_time(1_600_000_000_000)
        ... except SnapshotNotFoundError as e:
        ...     print(f"Nothing that old: {e}")
    """

    def __init__(
        self,
        snapshot_id: int | None = None,
        message: str | None = None,
    ) -> None:
        """Initialize SnapshotNotFoundError.

        Args:
            snapshot_id: The snapshot ID that could not be resolved, if any.
            message: Optional custom error message.
        """
        msg = message or f"Snapshot not found: {snapshot_id}"
        details: dict[str, str] = {}
        if snapshot_id is not None:
            details["snapshot_id"] = str(snapshot_id)
        super().__init__(msg, details=details)
        self.snapshot_id = snapshot_id


class NotAnAncestorError(FloeLineageError):
    """Snapshot is not on the retained chain of a branch head.

    Example:
        >>> try:
        ...     lineage.snapshot_after(branch_only_snapshot_id)
        ... except NotAnAncestorError as e:
        ...     print(f"{e.snapshot_id} is not behind {e.head_id}")
    """

    def __init__(
        self,
        snapshot_id: int,
        head_id: int | None,
        message: str | None = None,
    ) -> None:
        """Initialize NotAnAncestorError.

        Args:
            snapshot_id: The snapshot that was expected on the chain.
            head_id: The head snapshot the chain was walked from.
            message: Optional custom error message.
        """
        msg = message or f"Snapshot {snapshot_id} is not an ancestor of {head_id}"
        details = {"snapshot_id": str(snapshot_id)}
        if head_id is not None:
            details["head_id"] = str(head_id)
        super().__init__(msg, details=details)
        self.snapshot_id = snapshot_id
        self.head_id = head_id


class IncompleteHistoryError(FloeLineageError):
    """Expired history makes a time-threshold answer undecidable.

    Raised by oldest_ancestor_after when every retained ancestor is newer
    than the threshold but the chain stops at an expired parent rather than
    the table's root, so the correct answer may no longer be resolvable.

    Example:
        >>> try:
        ...     lineage.oldest_ancestor_after(ts)
        ... except IncompleteHistoryError as e:
        ...     print(f"History before {e.oldest_snapshot_id} is expired")
    """

    def __init__(
        self,
        timestamp_ms: int,
        oldest_snapshot_id: int,
        message: str | None = None,
    ) -> None:
        """Initialize IncompleteHistoryError.

        Args:
            timestamp_ms: The requested threshold in milliseconds since epoch.
            oldest_snapshot_id: Oldest retained snapshot reached by the walk.
            message: Optional custom error message.
        """
        msg = message or f"Cannot find snapshot older than {timestamp_ms}: history is expired"
        super().__init__(
            msg,
            details={
                "timestamp_ms": str(timestamp_ms),
                "oldest_snapshot_id": str(oldest_snapshot_id),
            },
        )
        self.timestamp_ms = timestamp_ms
        self.oldest_snapshot_id = oldest_snapshot_id


class TableNotFoundError(FloeLineageError):
    """Table not found in the catalog.

    Example:
        >>> try:
        ...     load_table_lineage(catalog, "bronze.nonexistent")
        ... except TableNotFoundError as e:
        ...     print(f"Table not found: {e.table}")
    """

    def __init__(
        self,
        table: str,
        message: str | None = None,
    ) -> None:
        """Initialize TableNotFoundError.

        Args:
            table: The table identifier that was not found.
            message: Optional custom error message.
        """
        msg = message or f"Table not found: {table}"
        super().__init__(msg, details={"table": table})
        self.table = table
