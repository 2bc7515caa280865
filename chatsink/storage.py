"""Analytics storage facade.

This module provides BaseAnalyticsStorage, which wires a table store, the
topology reconciler, the schema gate and the insert gateway together from one
constructor call. Subclasses add the row builders for a concrete event shape.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from chatsink.bucket.bigquery_store import BigQueryTableStore
from chatsink.bucket.insert_gateway import InsertGateway
from chatsink.bucket.reconciler import TopologyReconciler
from chatsink.bucket.schema_gate import SchemaGate
from chatsink.bucket.table_store import TableStore
from chatsink.logging_config import get_logger
from chatsink.objects.reconciliation import ReconciliationReport
from chatsink.objects.storage_options import StorageOptions
from chatsink.objects.table_definition import TableDefinition, Topology

TopologyInput = Union[Topology, List[TableDefinition], List[Dict[str, Any]]]


class BaseAnalyticsStorage:
    """Topology-aware analytics sink backed by a remote table store.

    The topology is reconciled lazily: on the first ``ready()``/``insert()``
    call, or eagerly with ``pre_heat()``. Writers wait for that single
    reconciliation and then share the cached store handle.

    Without ``StorageOptions.logger`` messages go to the ``chatsink.storage``
    logger, which has no handler of its own. Call
    ``chatsink.logging_config.setup_logging()`` to print them (INFO and above)
    to standard output, or pass a configured logger.

    Example:
        >>> storage = BaseAnalyticsStorage(
        ...     credentials=None,
        ...     project_id="my-project",
        ...     dataset="bot_analytics",
        ...     topology=[TableDefinition(name="events", columns=[...])],
        ...     options=StorageOptions(throw_exceptions=True),
        ... )
        >>> storage.pre_heat()
        >>> storage.insert("events", [{"pageId": "p1", ...}])
    """

    def __init__(
        self,
        credentials: Optional[Mapping[str, Any]],
        project_id: str,
        dataset: str,
        topology: TopologyInput,
        options: Optional[StorageOptions] = None,
        store: Optional[TableStore] = None,
    ) -> None:
        """Build the sink without touching the network.

        Args:
            credentials: Service account info, or None for application default credentials
            project_id: GCP project ID
            dataset: BigQuery dataset name
            topology: Desired tables and views
            options: Logging, failure policy and passive schema settings
            store: Table store to use instead of a BigQueryTableStore

        Raises:
            ConfigurationError: If the topology is invalid
        """
        self.options = options or StorageOptions()
        self._log = self.options.logger or get_logger("storage")
        self.topology = Topology.coerce(topology)

        self.store = store or BigQueryTableStore(project_id, dataset, credentials)
        policy = self.options.failure_policy

        self.reconciler = TopologyReconciler(
            self.store, policy=policy, max_workers=self.options.max_workers, log=self._log
        )
        self.gate = SchemaGate(
            self.store,
            self.update_topology,
            passive_schema=self.options.passive_schema,
            log=self._log,
        )
        self.gateway = InsertGateway(
            self.gate, policy=policy, max_workers=self.options.max_workers, log=self._log
        )

        self.has_extended_events = True
        self.supports_arrays = True
        self.use_descriptive_categories = False
        self.use_extended_scalars = True
        self.parallel_session_insert = True

    def update_topology(self) -> ReconciliationReport:
        """Run one full reconciliation pass, bypassing the gate."""
        return self.reconciler.sync(self.topology)

    def pre_heat(self) -> None:
        self.gate.pre_heat()

    def ready(self) -> TableStore:
        """Return the store, reconciling the topology first if needed."""
        return self.gate.ready()

    db = ready

    def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> None:
        self.gateway.insert(table, rows)

    def insert_many(self, batches: Mapping[str, Sequence[Mapping[str, Any]]]) -> None:
        self.gateway.insert_many(batches)
