"""Pytest fixtures and configuration."""

import logging
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import Mock

import pytest

from chatsink.objects.table_definition import (
    ColumnSpec,
    MaterializedViewQuery,
    Partitioning,
    TableDefinition,
    Topology,
)
from tests.fake_table_store import FakeTableStore


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: fast tests without network access")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def events_definition() -> TableDefinition:
    """Partitioned, clustered base table."""
    return TableDefinition(
        name="events",
        columns=[
            ColumnSpec(name="pageId", type="STRING", max_length=36, mode="REQUIRED"),
            ColumnSpec(name="action", type="STRING"),
            ColumnSpec(name="date", type="DATE", mode="REQUIRED"),
        ],
        partitioning=Partitioning(unit="DAY", field="date"),
        clustering=["pageId"],
    )


@pytest.fixture
def sessions_definition() -> TableDefinition:
    """Second base table."""
    return TableDefinition(
        name="sessions",
        columns=[
            ColumnSpec(name="sessionId", type="STRING", mode="REQUIRED"),
            ColumnSpec(name="date", type="DATE", mode="REQUIRED"),
        ],
    )


@pytest.fixture
def daily_view_definition() -> TableDefinition:
    """Materialized view reading from ``events``."""
    return TableDefinition(
        name="daily_events",
        materialized_view=MaterializedViewQuery(
            query="SELECT date, COUNT(*) AS cnt FROM `p.d.events` GROUP BY date",
            source_table="events",
        ),
    )


@pytest.fixture
def topology(
    events_definition: TableDefinition,
    sessions_definition: TableDefinition,
    daily_view_definition: TableDefinition,
) -> Topology:
    return Topology(tables=[events_definition, sessions_definition, daily_view_definition])


@pytest.fixture
def fake_store() -> FakeTableStore:
    """Empty in-memory table store."""
    return FakeTableStore()


@pytest.fixture
def synced_store(topology: Topology) -> FakeTableStore:
    """Table store that already holds every table of ``topology``."""
    return FakeTableStore({t.name: t.to_metadata() for t in topology.tables})


@pytest.fixture
def mock_log() -> Mock:
    """Logger double for counting log calls."""
    return Mock(spec=logging.Logger)
