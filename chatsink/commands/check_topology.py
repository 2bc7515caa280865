"""Dry-run topology check command."""

from typing import List

import click
from google.api_core import exceptions as google_api_exceptions

from chatsink.bucket.reconciler import TopologyReconciler
from chatsink.commands.list_tables import get_table_store, list_tables
from chatsink.console import error, newline, success, table, warning
from chatsink.objects.reconciliation import EntryPlan, PlannedAction
from chatsink.objects.table_definition import Topology

ACTION_DESCRIPTIONS = {
    PlannedAction.CREATE: "Create",
    PlannedAction.UPDATE: "Update metadata",
    PlannedAction.RECREATE: "Drop and recreate view",
    PlannedAction.SKIP: "Up to date",
    PlannedAction.DEFER: "Deferred (source table missing)",
}


def show_plan(plans: List[EntryPlan], title: str) -> None:
    table(
        data=[[p.name, ACTION_DESCRIPTIONS[p.action]] for p in plans],
        headers=["Table", "Action"],
        title=title,
    )


def pending_changes(plans: List[EntryPlan]) -> List[EntryPlan]:
    return [p for p in plans if p.action not in (PlannedAction.SKIP, PlannedAction.DEFER)]


@click.command(name="check-topology")
@click.pass_context
def check_topology(ctx: click.Context) -> List[EntryPlan]:
    """Show what sync-topology would change, without changing anything.

    Workflow:
    1. List existing tables in the dataset
    2. Read metadata of every declared table that exists
    3. Show the action planned for each definition
    """
    topology: Topology = ctx.obj["TOPOLOGY"]
    remote = ctx.invoke(list_tables)
    reconciler = TopologyReconciler(get_table_store(ctx))

    try:
        plans = reconciler.plan(topology, remote)
    except google_api_exceptions.GoogleAPIError as e:
        error(f"Unable to read table metadata: {e}")
        ctx.abort()

    show_plan(plans, "Topology Check")
    newline()

    changes = pending_changes(plans)
    if changes:
        warning(f"{len(changes)} of {len(plans)} tables need changes.")
    else:
        success("Dataset matches the declared topology.")

    return plans
