"""Pydantic configuration models for floe-lineage.

This module provides:
- WalkEnd: Enum for the reason an ancestor walk stopped
- SnapshotRecord: Snapshot node model (id, parent link, commit time)
- LineageConfig: Table-bound lineage query configuration
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing_extensions import Self

DEFAULT_BRANCH = "main"


class WalkEnd(str, Enum):
    """Reason an ancestor walk stopped.

    - ROOT: The last snapshot yielded has no parent
    - HISTORY_BOUNDARY: The next parent could not be resolved (expired)
    - STOP_ID: The next snapshot was the requested stopping point
    - LIMIT: The configured walk limit was reached
    """

    ROOT = "root"
    HISTORY_BOUNDARY = "history_boundary"
    STOP_ID = "stop_id"
    LIMIT = "limit"


class SnapshotRecord(BaseModel):
    """A node of a table's snapshot history.

    Only the fields lineage queries need are modelled. Any object exposing
    the same three attributes (e.g. pyiceberg's Snapshot) can be used in
    its place.

    Attributes:
        snapshot_id: Unique snapshot identifier.
        parent_snapshot_id: Parent snapshot identifier, None for the root.
        timestamp_ms: Commit timestamp in milliseconds since epoch.

    Example:
        >>> snap = SnapshotRecord(
        ...     snapshot_id=2,
        ...     parent_snapshot_id=1,
        ...     timestamp_ms=1702857600000,
        ... )
        >>> snap.timestamp
        datetime.datetime(2023, 12, 18, 0, 0, tzinfo=datetime.timezone.utc)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    snapshot_id: int = Field(
        ...,
        description="Unique snapshot identifier",
    )
    parent_snapshot_id: int | None = Field(
        default=None,
        description="Parent snapshot identifier (None for the root)",
    )
    timestamp_ms: int = Field(
        ...,
        ge=0,
        description="Commit timestamp in milliseconds since epoch",
    )

    @model_validator(mode="after")
    def validate_not_own_parent(self) -> Self:
        """Validate that a snapshot does not point at itself."""
        if self.parent_snapshot_id == self.snapshot_id:
            msg = f"Snapshot {self.snapshot_id} cannot be its own parent"
            raise ValueError(msg)
        return self

    @property
    def timestamp(self) -> datetime:
        """Return snapshot commit time as datetime.

        Returns:
            datetime in UTC timezone.
        """
        return datetime.fromtimestamp(self.timestamp_ms / 1000, tz=timezone.utc)

    @property
    def is_root(self) -> bool:
        """Return True if this snapshot has no parent."""
        return self.parent_snapshot_id is None


class LineageConfig(BaseModel):
    """Configuration for TableLineage.

    Attributes:
        default_branch: Reference used by queries that take no snapshot ID
            (default "main").
        walk_limit: Maximum snapshots a single walk may yield (default
            unbounded).

    Example:
        >>> config = LineageConfig(default_branch="audit", walk_limit=10_000)
        >>> config.default_branch
        'audit'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    default_branch: str = Field(
        default=DEFAULT_BRANCH,
        min_length=1,
        description="Reference used by queries without an explicit snapshot",
    )
    walk_limit: int | None = Field(
        default=None,
        ge=1,
        description="Maximum number of snapshots yielded by one walk",
    )

    @field_validator("default_branch")
    @classmethod
    def validate_branch_name(cls, v: str) -> str:
        """Validate that the branch name is not blank."""
        if not v.strip():
            msg = "default_branch cannot be blank"
            raise ValueError(msg)
        return v
