"""chatsink CLI application entry point.

This module provides the Click CLI used to inspect and maintain the analytics
dataset: list its tables, show what reconciliation would change, and apply the
declared topology. It handles configuration loading, validation and logging
setup.

The CLI supports command chaining (e.g. `chatsink check-topology sync-topology`).
"""
import importlib.metadata
import json
from pathlib import Path
from typing import Any, Dict, Optional

import click
from dotenv import find_dotenv, load_dotenv

from chatsink.analytics.topology import chatbot_topology
from chatsink.commands.check_topology import check_topology
from chatsink.commands.list_tables import list_tables
from chatsink.commands.sync_topology import sync_topology
from chatsink.exceptions import ConfigurationError
from chatsink.logging_config import setup_logging
from chatsink.objects.app_config import AppConfig
from chatsink.objects.table_definition import Topology


def load_credentials(credentials_file: Optional[Path]) -> Optional[Dict[str, Any]]:
    """Read a service account JSON file.

    Returns:
        Parsed service account info, or None to use application default credentials

    Raises:
        ConfigurationError: If the file cannot be read or is not valid JSON
    """
    if credentials_file is None:
        return None
    try:
        with open(credentials_file, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Unable to read credentials file {credentials_file}: {e}") from e


@click.group(chain=True)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging (DEBUG level)",
)
@click.option(
    "--log-file",
    type=click.Path(),
    help="Write logs to file",
)
@click.option(
    "--project-id",
    type=str,
    help="Google Cloud project ID",
    envvar="CS_BQ_PROJECT_ID",
)
@click.option(
    "--dataset",
    type=str,
    help="BigQuery dataset holding the analytics tables",
    envvar="CS_BQ_DATASET",
)
@click.option(
    "--credentials-file",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True),
    help="Service account JSON (application default credentials if omitted)",
    envvar="CS_CREDENTIALS_FILE",
)
@click.option(
    "--topology-config",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True),
    help="TOML file with [[table]] definitions (built-in chatbot topology if omitted)",
    envvar="CS_TOPOLOGY_CONFIG",
)
@click.option(
    "--throw-exceptions",
    is_flag=True,
    default=False,
    help="Fail on schema update errors instead of logging them",
    envvar="CS_THROW_EXCEPTIONS",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    log_file: Optional[str],
    project_id: Optional[str],
    dataset: Optional[str],
    credentials_file: Optional[str],
    topology_config: Optional[str],
    throw_exceptions: bool,
) -> None:
    """chatsink CLI group for maintaining the analytics dataset topology.

    Raises:
        click.UsageError: If required parameters are missing or invalid
    """
    logger = setup_logging(verbose=verbose, log_file=log_file)
    ctx.ensure_object(dict)
    ctx.obj["logger"] = logger

    if not project_id:
        raise click.UsageError("CS_BQ_PROJECT_ID must be set")
    if not dataset:
        raise click.UsageError("CS_BQ_DATASET must be set")

    app_config = AppConfig(
        bq_project_id=project_id,
        bq_dataset=dataset,
        credentials_file=credentials_file,
        topology_config=topology_config,
        throw_exceptions=throw_exceptions,
    )

    try:
        credentials = load_credentials(app_config.credentials_file)
        if app_config.topology_config:
            logger.info(f"topology_config: {app_config.topology_config}")
            topology = Topology.from_toml(app_config.topology_config)
        else:
            topology = chatbot_topology()
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    ctx.obj["CONFIG"] = app_config
    ctx.obj["CREDENTIALS"] = credentials
    ctx.obj["TOPOLOGY"] = topology


cli.add_command(list_tables)
cli.add_command(check_topology)
cli.add_command(sync_topology)


def start_cli() -> click.Group:
    """Load ``.env`` (if any), print the banner and run the CLI group."""
    env_file = find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(env_file)

    click.secho("chatsink", fg="magenta", bold=True)
    click.echo(f"Version: {importlib.metadata.version('chatsink')}")
    if env_file:
        click.secho(f"Configuration loaded from: {env_file}")
    click.echo(nl=True)

    return cli(obj={})  # type: ignore


if __name__ == "__main__":
    start_cli()
