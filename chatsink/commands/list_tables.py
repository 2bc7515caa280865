"""List dataset tables command."""

from typing import List

import click
from google.api_core import exceptions as google_api_exceptions

from chatsink.bucket.bigquery_store import BigQueryTableStore
from chatsink.bucket.table_store import TableStore
from chatsink.console import error, newline, success, table, warning
from chatsink.objects.app_config import AppConfig
from chatsink.objects.remote_table import RemoteTableState


def get_table_store(ctx: click.Context) -> TableStore:
    """Return the table store cached in the context, creating it on first use."""
    store = ctx.obj.get("TABLE_STORE")
    if not store:
        app_config: AppConfig = ctx.obj["CONFIG"]
        store = BigQueryTableStore(
            project_id=app_config.bq_project_id,
            dataset_id=app_config.bq_dataset,
            credentials=ctx.obj.get("CREDENTIALS"),
        )
        ctx.obj["TABLE_STORE"] = store
    return store


@click.command(name="list-tables")
@click.pass_context
def list_tables(ctx: click.Context) -> List[RemoteTableState]:
    """List tables and views in the analytics dataset.

    Returns:
        List of RemoteTableState objects
    """
    store = get_table_store(ctx)

    try:
        tables = store.list_tables()
    except google_api_exceptions.GoogleAPIError as e:
        error(f"Unable to list tables in '{store.dataset_id}': {e}")
        ctx.abort()

    if not tables:
        newline()
        warning("No tables found in dataset.")
        return []

    newline()
    success(f"Found {len(tables)} tables in dataset '{store.dataset_id}':")
    newline()
    table(
        data=[[t.table_id, t.table_type or "Unknown"] for t in tables],
        headers=["Table Name", "Type"],
        title=f"Tables in {store.dataset_id}",
    )
    newline()

    return tables
