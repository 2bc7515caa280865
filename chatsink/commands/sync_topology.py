"""Apply the declared topology command."""

from typing import Optional

import click
from google.api_core import exceptions as google_api_exceptions

from chatsink.bucket.reconciler import TopologyReconciler
from chatsink.commands.check_topology import pending_changes, show_plan
from chatsink.commands.list_tables import get_table_store, list_tables
from chatsink.console import confirm, error, newline, success, table, warning
from chatsink.exceptions import ChatsinkError
from chatsink.objects.app_config import AppConfig
from chatsink.objects.reconciliation import OutcomeStatus, ReconciliationReport
from chatsink.objects.storage_options import FailurePolicy
from chatsink.objects.table_definition import Topology


@click.command(name="sync-topology")
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Skip confirmation prompt",
)
@click.pass_context
def sync_topology(ctx: click.Context, force: bool) -> Optional[ReconciliationReport]:
    """Create and update tables so the dataset matches the declared topology.

    Workflow:
    1. List existing tables and plan the changes
    2. Show the plan
    3. Prompt for confirmation (unless --force)
    4. Reconcile and show the outcome of each definition
    """
    app_config: AppConfig = ctx.obj["CONFIG"]
    topology: Topology = ctx.obj["TOPOLOGY"]

    remote = ctx.invoke(list_tables)
    reconciler = TopologyReconciler(
        get_table_store(ctx),
        policy=FailurePolicy.from_flag(app_config.throw_exceptions),
    )

    try:
        plans = reconciler.plan(topology, remote)
    except google_api_exceptions.GoogleAPIError as e:
        error(f"Unable to read table metadata: {e}")
        ctx.abort()

    changes = pending_changes(plans)
    if not changes:
        success("Dataset already matches the declared topology.")
        return None

    show_plan(plans, "Planned Changes")
    newline()

    if not force:
        confirm(f"Apply changes to {len(changes)} tables?", default=False, abort=True)
        newline()

    try:
        report = reconciler.reconcile(topology, remote)
    except ChatsinkError as e:
        error(f"Topology sync failed: {e}")
        ctx.exit(1)

    table(
        data=[[o.name, o.status.value, str(o.error or "")] for o in report.outcomes],
        headers=["Table", "Outcome", "Error"],
        title="Topology Sync",
    )
    newline()

    deferred = report.by_status(OutcomeStatus.DEFERRED)
    if not report.succeeded:
        warning(f"{len(report.failed)} tables failed to update. Check logs.")
    elif deferred:
        warning(f"Deferred {len(deferred)} views until their source tables exist. Run again.")
    else:
        success("Topology is up to date!")

    return report
