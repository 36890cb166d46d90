"""floe-lineage: Snapshot ancestry queries for Apache Iceberg tables.

This package provides:
- Lazy ancestor walks that stop cleanly at expired history
- Ancestor and parent-ancestor predicates
- Oldest-ancestor, range and point-in-time queries
- A resolver over PyIceberg table metadata and an in-memory resolver

Example (PyIceberg catalog):
    >>> from floe_lineage import load_table_lineage
    >>>
    >>> lineage = load_table_lineage(catalog, "bronze.customers")
    >>> lineage.current_ancestor_ids()
    [3, 2, 1]

Example (plain lookup function):
    >>> from floe_lineage import ancestors_between
    >>>
    >>> ancestors_between(3, 1, table.snapshot_by_id).ids()
    [3, 2]
"""

from __future__ import annotations

__version__ = "0.1.0"

# Public API exports
__all__ = [
    # Facade and factory
    "TableLineage",
    "load_table_lineage",
    # Walk primitive and queries
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
    # Resolvers
    "SnapshotLike",
    "SnapshotResolver",
    "InMemorySnapshotResolver",
    "IcebergSnapshotResolver",
    # Configuration models
    "LineageConfig",
    "SnapshotRecord",
    "WalkEnd",
    # Exceptions
    "FloeLineageError",
    "SnapshotNotFoundError",
    "NotAnAncestorError",
    "IncompleteHistoryError",
    "TableNotFoundError",
]

# Lazy imports keep PyIceberg and OpenTelemetry out of plain `import floe_lineage`


def __getattr__(name: str) -> object:
    """Lazy import of public API members."""
    if name in ("TableLineage", "load_table_lineage"):
        from floe_lineage import lineage as lineage_module

        return getattr(lineage_module, name)
    if name in (
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
    ):
        from floe_lineage import ancestry as ancestry_module

        return getattr(ancestry_module, name)
    if name in (
        "SnapshotLike",
        "SnapshotResolver",
        "InMemorySnapshotResolver",
        "IcebergSnapshotResolver",
    ):
        from floe_lineage import resolver as resolver_module

        return getattr(resolver_module, name)
    if name in ("LineageConfig", "SnapshotRecord", "WalkEnd"):
        from floe_lineage import config as config_module

        return getattr(config_module, name)
    if name in (
        "FloeLineageError",
        "SnapshotNotFoundError",
        "NotAnAncestorError",
        "IncompleteHistoryError",
        "TableNotFoundError",
    ):
        from floe_lineage import errors as errors_module

        return getattr(errors_module, name)
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
