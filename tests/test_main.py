"""Tests for the CLI entry point."""

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from chatsink.analytics.topology import chatbot_topology
from chatsink.exceptions import ConfigurationError
from chatsink.main import cli, load_credentials
from tests.fake_table_store import FakeTableStore

CLEAN_ENV = {
    "CS_BQ_PROJECT_ID": None,
    "CS_BQ_DATASET": None,
    "CS_CREDENTIALS_FILE": None,
    "CS_TOPOLOGY_CONFIG": None,
    "CS_THROW_EXCEPTIONS": None,
}


def test_missing_dataset_is_usage_error() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--project-id", "p", "list-tables"], obj={}, env=CLEAN_ENV)

    assert result.exit_code == 2
    assert "CS_BQ_DATASET must be set" in result.output


@patch("chatsink.commands.list_tables.BigQueryTableStore")
def test_list_tables_from_environment(mock_store_class: Any) -> None:
    """Test that project and dataset are read from CS_* variables."""
    mock_store_class.return_value = FakeTableStore({"events": {}}, dataset_id="bot_analytics")
    env = dict(CLEAN_ENV, CS_BQ_PROJECT_ID="my-project", CS_BQ_DATASET="bot_analytics")

    runner = CliRunner()
    result = runner.invoke(cli, ["list-tables"], obj={}, env=env)

    assert result.exit_code == 0
    mock_store_class.assert_called_once_with(
        project_id="my-project", dataset_id="bot_analytics", credentials=None
    )


@patch("chatsink.commands.list_tables.BigQueryTableStore")
def test_chained_commands_use_topology_file(mock_store_class: Any, temp_dir: Path) -> None:
    """Test check-topology and sync-topology chained against a TOML topology."""
    store = FakeTableStore()
    mock_store_class.return_value = store
    topology_file = temp_dir / "topology.toml"
    topology_file.write_text(
        '[[table]]\nname = "events"\ncolumns = [{ name = "pageId", type = "STRING" }]\n'
    )

    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "--project-id",
            "p",
            "--dataset",
            "d",
            "--topology-config",
            str(topology_file),
            "check-topology",
            "sync-topology",
            "--force",
        ],
        obj={},
        env=CLEAN_ENV,
    )

    assert result.exit_code == 0
    assert list(store.tables) == ["events"]
    assert mock_store_class.call_count == 1


def test_invalid_topology_file_is_usage_error(temp_dir: Path) -> None:
    topology_file = temp_dir / "topology.toml"
    topology_file.write_text('[[table]]\nname = "events"\n')

    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["--project-id", "p", "--dataset", "d", "--topology-config", str(topology_file), "list-tables"],
        obj={},
        env=CLEAN_ENV,
    )

    assert result.exit_code == 2


def test_load_credentials(temp_dir: Path) -> None:
    credentials_file = temp_dir / "sa.json"
    credentials_file.write_text(json.dumps({"type": "service_account", "project_id": "p"}))

    assert load_credentials(credentials_file) == {"type": "service_account", "project_id": "p"}
    assert load_credentials(None) is None


def test_load_credentials_invalid_json(temp_dir: Path) -> None:
    credentials_file = temp_dir / "sa.json"
    credentials_file.write_text("not json")

    with pytest.raises(ConfigurationError):
        load_credentials(credentials_file)


def test_builtin_topology_is_default() -> None:
    assert chatbot_topology().names == ["events", "conversations", "sessions"]
