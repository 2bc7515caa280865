"""chatsink: chatbot analytics sink with declarative BigQuery topology."""

from chatsink.analytics.bigquery_storage import BigQueryStorage
from chatsink.exceptions import (
    ChatsinkError,
    ConfigurationError,
    InsertError,
    MissingTableCreationError,
    RowInsertError,
    SchemaUpdateError,
    TopologyReconciliationError,
)
from chatsink.objects.storage_options import FailurePolicy, StorageOptions
from chatsink.objects.table_definition import (
    ColumnSpec,
    MaterializedViewQuery,
    Partitioning,
    TableDefinition,
    Topology,
)
from chatsink.storage import BaseAnalyticsStorage

__all__ = [
    "BaseAnalyticsStorage",
    "BigQueryStorage",
    "StorageOptions",
    "FailurePolicy",
    "ColumnSpec",
    "Partitioning",
    "MaterializedViewQuery",
    "TableDefinition",
    "Topology",
    "ChatsinkError",
    "ConfigurationError",
    "MissingTableCreationError",
    "SchemaUpdateError",
    "TopologyReconciliationError",
    "InsertError",
    "RowInsertError",
]
