"""Topology reconciliation.

This module provides the TopologyReconciler class, which brings a remote
dataset in line with a declared Topology. For every definition it decides
whether to create, update, recreate, skip or defer, applies that decision, and
aggregates failures according to a FailurePolicy.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import AbstractSet, Callable, List, Optional, Sequence, TypeVar, Union

from chatsink.bucket.metadata_diff import is_subset, merge_metadata
from chatsink.bucket.table_store import TableStore
from chatsink.exceptions import MissingTableCreationError, SchemaUpdateError
from chatsink.logging_config import get_logger
from chatsink.objects.reconciliation import (
    EntryPlan,
    OutcomeStatus,
    PlannedAction,
    ReconciliationOutcome,
    ReconciliationReport,
)
from chatsink.objects.remote_table import RemoteTableState
from chatsink.objects.storage_options import FailurePolicy
from chatsink.objects.table_definition import TableDefinition, Topology

logger = get_logger(__name__)

T = TypeVar("T")

TopologyLike = Union[Topology, Sequence[TableDefinition]]


class TopologyReconciler:
    """Creates and updates tables so the remote dataset matches a topology.

    Definitions are reconciled concurrently. The only ordering between them is
    that a materialized view waits for its source table: if the source is not in
    the remote listing, the view is deferred and picked up by a later pass.

    Attributes:
        store: Remote table store
        policy: Whether recoverable failures are raised or only logged
        max_workers: Upper bound on concurrent definitions
    """

    def __init__(
        self,
        store: TableStore,
        policy: FailurePolicy = FailurePolicy.LENIENT,
        max_workers: int = 8,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.store = store
        self.policy = policy
        self.max_workers = max_workers
        self._log = log or logger

    def sync(self, topology: TopologyLike) -> ReconciliationReport:
        """List the remote dataset once, then reconcile against it.

        Raises:
            MissingTableCreationError: If a missing table could not be created
            SchemaUpdateError: If an update failed and the policy is STRICT
        """
        start = time.monotonic()
        remote = self.store.list_tables()
        report = self.reconcile(topology, remote)
        report.elapsed_seconds = time.monotonic() - start
        self._log.debug(f"BigQueryStorage: topology\t{report.elapsed_seconds * 1000:.0f}ms")
        return report

    def reconcile(
        self, topology: TopologyLike, remote: Sequence[RemoteTableState]
    ) -> ReconciliationReport:
        """Reconcile every definition against an already fetched listing.

        All definitions are attempted before anything is raised; the first
        raisable failure in topology order wins.

        Args:
            topology: Desired definitions
            remote: Result of ``TableStore.list_tables``

        Returns:
            Report with one outcome per definition, in topology order
        """
        definitions = Topology.coerce(topology).tables
        remote_names = {table.table_id for table in remote}

        outcomes = self._map(lambda d: self._upsert(d, remote_names), definitions)

        for outcome in outcomes:
            if outcome.status != OutcomeStatus.FAILED:
                continue
            always_fatal = isinstance(outcome.error, MissingTableCreationError)
            if self.policy.should_raise(always_fatal=always_fatal) and outcome.error:
                raise outcome.error

        return ReconciliationReport(outcomes=outcomes)

    def plan(
        self, topology: TopologyLike, remote: Sequence[RemoteTableState]
    ) -> List[EntryPlan]:
        """Decide what reconciliation would do, without mutating anything.

        Reads remote metadata for existing tables; errors propagate.
        """
        definitions = Topology.coerce(topology).tables
        remote_names = {table.table_id for table in remote}
        return self._map(lambda d: self.plan_entry(d, remote_names), definitions)

    def plan_entry(self, definition: TableDefinition, remote_names: AbstractSet[str]) -> EntryPlan:
        name = definition.name
        desired = definition.to_metadata()

        if definition.is_view and definition.source_table not in remote_names:
            return EntryPlan(name=name, action=PlannedAction.DEFER)

        if name not in remote_names:
            return EntryPlan(name=name, action=PlannedAction.CREATE, metadata=desired)

        current = self.store.get_metadata(name)

        if is_subset(current, desired):
            return EntryPlan(name=name, action=PlannedAction.SKIP)

        # Views cannot be altered in place
        if definition.is_view:
            return EntryPlan(name=name, action=PlannedAction.RECREATE, metadata=desired)

        return EntryPlan(
            name=name,
            action=PlannedAction.UPDATE,
            metadata=merge_metadata(current, desired),
        )

    def _map(self, func: Callable[[TableDefinition], T], definitions: List[TableDefinition]) -> List[T]:
        if not definitions:
            return []
        workers = max(1, min(self.max_workers, len(definitions)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="chatsink-topology") as pool:
            return list(pool.map(func, definitions))

    def _upsert(self, definition: TableDefinition, remote_names: AbstractSet[str]) -> ReconciliationOutcome:
        name = definition.name
        exists = name in remote_names

        try:
            entry = self.plan_entry(definition, remote_names)
        except Exception as e:
            return self._failed(name, PlannedAction.UPDATE, e, exists)

        if entry.action == PlannedAction.DEFER:
            self._log.info(
                f'BigQueryStorage: view "{name}" will be inserted later, because '
                f'the source table "{definition.source_table}" doesn\'t exist.'
            )
            return ReconciliationOutcome(name=name, status=OutcomeStatus.DEFERRED, action=entry.action)

        if entry.action == PlannedAction.SKIP:
            self._log.info(f"BigQueryStorage: table {name} is up to date")
            return ReconciliationOutcome(name=name, status=OutcomeStatus.UNCHANGED, action=entry.action)

        try:
            self._apply(entry)
        except Exception as e:
            return self._failed(name, entry.action, e, exists)

        status = OutcomeStatus.CREATED if entry.action == PlannedAction.CREATE else OutcomeStatus.UPDATED
        return ReconciliationOutcome(name=name, status=status, action=entry.action)

    def _apply(self, entry: EntryPlan) -> None:
        name = entry.name
        metadata = entry.metadata or {}

        if entry.action == PlannedAction.CREATE:
            self._log.info(f"BigQueryStorage: creating table {name}...")
            self.store.create_table(name, metadata)
            self._log.info(f"BigQueryStorage: table {name} created")

        elif entry.action == PlannedAction.RECREATE:
            self._log.info(f"BigQueryStorage: removing view {name}...")
            self.store.delete_table(name, ignore_not_found=True)
            self._log.info(f"BigQueryStorage: creating view {name} again...")
            self.store.create_table(name, metadata)
            self._log.info(f"BigQueryStorage: view {name} updated")

        elif entry.action == PlannedAction.UPDATE:
            self._log.info(f"BigQueryStorage: updating table {name}...")
            self.store.set_metadata(name, metadata)
            self._log.info(f"BigQueryStorage: table {name} updated")

    def _failed(
        self, name: str, action: PlannedAction, cause: Exception, exists: bool
    ) -> ReconciliationOutcome:
        self._log.error(f"BigQueryStorage: failed to update topology ({name}): {cause}", exc_info=cause)

        error: Exception
        if exists:
            error = SchemaUpdateError(name, f"Failed to {action.value} table '{name}': {cause}")
        else:
            error = MissingTableCreationError(name, f"Failed to create table '{name}': {cause}")
        error.__cause__ = cause

        return ReconciliationOutcome(name=name, status=OutcomeStatus.FAILED, action=action, error=error)
