"""Shared pytest fixtures for floe-lineage tests.

The history fixture mirrors a table that went through these commits:

    R  (root, main)
    M1 -> M2            appended on main
    Br1                 appended on branch "b1", created at R
    F0 -> F1 -> F2      appended on branch "fork", created at R

after which F0 was expired. F1 still records F0 as its parent.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from dataclasses import dataclass

import pytest
import structlog

from floe_lineage.config import SnapshotRecord
from floe_lineage.resolver import InMemorySnapshotResolver


@dataclass(frozen=True)
class ScenarioIds:
    """Snapshot IDs of the shared history fixture."""

    root: int = 1
    main_1: int = 2
    main_2: int = 3
    branch_1: int = 4
    fork_0: int = 5
    fork_1: int = 6
    fork_2: int = 7

    root_timestamp_ms: int = 1_000


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,  # Important for test isolation
    )


@pytest.fixture
def scenario() -> ScenarioIds:
    """Return the snapshot IDs of the shared history."""
    return ScenarioIds()


@pytest.fixture
def full_history(scenario: ScenarioIds) -> InMemorySnapshotResolver:
    """Create a resolver over the history before any expiration."""
    ids = scenario
    base = ids.root_timestamp_ms
    snapshots = [
        SnapshotRecord(snapshot_id=ids.root, timestamp_ms=base),
        SnapshotRecord(snapshot_id=ids.main_1, parent_snapshot_id=ids.root, timestamp_ms=base + 1_000),
        SnapshotRecord(snapshot_id=ids.main_2, parent_snapshot_id=ids.main_1, timestamp_ms=base + 2_000),
        SnapshotRecord(snapshot_id=ids.branch_1, parent_snapshot_id=ids.root, timestamp_ms=base + 3_000),
        SnapshotRecord(snapshot_id=ids.fork_0, parent_snapshot_id=ids.root, timestamp_ms=base + 4_000),
        SnapshotRecord(snapshot_id=ids.fork_1, parent_snapshot_id=ids.fork_0, timestamp_ms=base + 5_000),
        SnapshotRecord(snapshot_id=ids.fork_2, parent_snapshot_id=ids.fork_1, timestamp_ms=base + 6_000),
    ]
    refs = {"main": ids.main_2, "b1": ids.branch_1, "fork": ids.fork_2}
    return InMemorySnapshotResolver(snapshots, refs=refs)


@pytest.fixture
def resolver(
    full_history: InMemorySnapshotResolver, scenario: ScenarioIds
) -> InMemorySnapshotResolver:
    """Create a resolver over the history with F0 expired."""
    return full_history.without(scenario.fork_0)


class CountingLookup:
    """Lookup wrapper that records every snapshot ID it is asked for."""

    def __init__(self, resolver: InMemorySnapshotResolver) -> None:
        self._resolver = resolver
        self.calls: list[int] = []

    def __call__(self, snapshot_id: int) -> SnapshotRecord | None:
        self.calls.append(snapshot_id)
        return self._resolver.snapshot_by_id(snapshot_id)  # type: ignore[return-value]


@pytest.fixture
def counting_lookup(resolver: InMemorySnapshotResolver) -> CountingLookup:
    """Create a lookup that counts resolver calls."""
    return CountingLookup(resolver)


@pytest.fixture
def span_exporter() -> Iterator[tuple[object, object]]:
    """Create an in-memory OpenTelemetry exporter and tracer provider."""
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import SimpleSpanProcessor
    from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))

    yield exporter, provider

    exporter.shutdown()
    provider.shutdown()
