"""Fixtures shared by the CLI command tests."""

from typing import Any, Dict

import pytest

from chatsink.objects.app_config import AppConfig
from chatsink.objects.table_definition import Topology
from tests.fake_table_store import FakeTableStore


def make_ctx_obj(store: FakeTableStore, topology: Topology, throw_exceptions: bool = False) -> Dict[str, Any]:
    return {
        "CONFIG": AppConfig(
            bq_project_id="test-project",
            bq_dataset="test_dataset",
            throw_exceptions=throw_exceptions,
        ),
        "CREDENTIALS": None,
        "TOPOLOGY": topology,
        "TABLE_STORE": store,
    }


@pytest.fixture
def ctx_obj(fake_store: FakeTableStore, topology: Topology) -> Dict[str, Any]:
    return make_ctx_obj(fake_store, topology)


@pytest.fixture
def synced_ctx_obj(synced_store: FakeTableStore, topology: Topology) -> Dict[str, Any]:
    return make_ctx_obj(synced_store, topology)
