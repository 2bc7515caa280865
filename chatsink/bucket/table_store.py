"""Abstract remote table store interface.

This module defines the TableStore abstract base class: the capability object
the reconciler, the schema gate and the insert gateway talk to. Every method is
a network call that may raise; implementations must not swallow failures,
because callers classify them (missing table, schema update, insert).
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Sequence

from chatsink.objects.remote_table import RemoteTableState


class TableStore(ABC):
    """Abstract interface for a column-oriented remote table store.

    Metadata is exchanged as REST resource dicts (``schema``,
    ``timePartitioning``, ``clustering``, ``materializedView``, ...).

    Example implementations:
        - BigQueryTableStore: Google BigQuery
    """

    @abstractmethod
    def list_tables(self) -> List[RemoteTableState]:
        """List all tables and views in the dataset."""
        pass

    @abstractmethod
    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists in the dataset."""
        pass

    @abstractmethod
    def get_metadata(self, table_name: str) -> Dict[str, Any]:
        """Fetch the full metadata resource of a table.

        Args:
            table_name: Name of table to describe

        Returns:
            Metadata dict as reported by the store
        """
        pass

    @abstractmethod
    def create_table(self, table_name: str, metadata: Mapping[str, Any]) -> None:
        """Create a table or materialized view from a metadata resource."""
        pass

    @abstractmethod
    def set_metadata(self, table_name: str, metadata: Mapping[str, Any]) -> None:
        """Replace the updatable metadata of an existing table."""
        pass

    @abstractmethod
    def delete_table(self, table_name: str, ignore_not_found: bool = True) -> None:
        """Delete a table or view.

        Args:
            table_name: Name of table to delete
            ignore_not_found: Treat an already missing table as success
        """
        pass

    @abstractmethod
    def insert_rows(self, table_name: str, rows: Sequence[Mapping[str, Any]]) -> None:
        """Insert a batch of rows in a single request, preserving their order.

        Raises:
            RowInsertError: If the store accepted the request but rejected rows
        """
        pass

    @property
    @abstractmethod
    def dataset_id(self) -> str:
        """Get the dataset name."""
        pass
