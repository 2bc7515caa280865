"""Google BigQuery table store.

This module provides the BigQueryTableStore class, the TableStore
implementation used in production. The BigQuery client is created lazily on
first use so constructing the store never touches the network.
"""

import copy
import threading
from typing import Any, Dict, List, Mapping, Optional, Sequence

from google.api_core import exceptions as google_api_exceptions
from google.cloud import bigquery
from google.oauth2 import service_account

from chatsink.bucket.table_store import TableStore
from chatsink.exceptions import RowInsertError
from chatsink.logging_config import get_logger
from chatsink.objects.remote_table import RemoteTableState

logger = get_logger(__name__)

# Output-only resource keys, never sent back on update
READ_ONLY_KEYS = frozenset(
    {
        "kind",
        "etag",
        "id",
        "selfLink",
        "tableReference",
        "creationTime",
        "lastModifiedTime",
        "location",
        "type",
        "numBytes",
        "numLongTermBytes",
        "numRows",
        "numPhysicalBytes",
        "numTotalLogicalBytes",
        "numActiveLogicalBytes",
        "numLongTermLogicalBytes",
        "numTotalPhysicalBytes",
        "numActivePhysicalBytes",
        "numLongTermPhysicalBytes",
        "numTimeTravelPhysicalBytes",
        "streamingBuffer",
        "materializedViewStatus",
    }
)


class BigQueryTableStore(TableStore):
    """Google BigQuery implementation of TableStore.

    Attributes:
        project_id: GCP project ID
        _dataset_id: BigQuery dataset name (private, accessed via property)
        _credentials: Service account info dict, or None for application default credentials
    """

    def __init__(
        self,
        project_id: str,
        dataset_id: str,
        credentials: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Prepare a store for one dataset without connecting.

        Args:
            project_id: GCP project ID
            dataset_id: BigQuery dataset name
            credentials: Parsed service account JSON. When None, the client uses
                application default credentials
                (run 'gcloud auth application-default login').
        """
        self.project_id = project_id
        self._dataset_id = dataset_id
        self._credentials = dict(credentials) if credentials else None
        self._client: Optional[bigquery.Client] = None
        self._client_lock = threading.Lock()

    @property
    def client(self) -> bigquery.Client:
        """BigQuery client, created once on first access."""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = self._create_client()
        return self._client

    def _create_client(self) -> bigquery.Client:
        if self._credentials:
            credentials = service_account.Credentials.from_service_account_info(
                self._credentials
            )
            logger.debug(f"Connecting to BigQuery as {credentials.service_account_email}")
            return bigquery.Client(project=self.project_id, credentials=credentials)
        return bigquery.Client(project=self.project_id)

    def _table_ref(self, table_name: str) -> str:
        return f"{self.project_id}.{self._dataset_id}.{table_name}"

    def _resource(self, table_name: str, metadata: Mapping[str, Any]) -> Dict[str, Any]:
        resource = copy.deepcopy(dict(metadata))
        resource["tableReference"] = {
            "projectId": self.project_id,
            "datasetId": self._dataset_id,
            "tableId": table_name,
        }
        return resource

    def list_tables(self) -> List[RemoteTableState]:
        dataset_ref = f"{self.project_id}.{self._dataset_id}"
        tables = [
            RemoteTableState(table_id=item.table_id, table_type=item.table_type)
            for item in self.client.list_tables(dataset_ref)
        ]
        logger.debug(f"Found {len(tables)} tables in {self._dataset_id}")
        return tables

    def table_exists(self, table_name: str) -> bool:
        try:
            self.client.get_table(self._table_ref(table_name))
            return True
        except google_api_exceptions.NotFound:
            return False

    def get_metadata(self, table_name: str) -> Dict[str, Any]:
        return self.client.get_table(self._table_ref(table_name)).to_api_repr()

    def create_table(self, table_name: str, metadata: Mapping[str, Any]) -> None:
        table = bigquery.Table.from_api_repr(self._resource(table_name, metadata))
        created = self.client.create_table(table)
        logger.debug(f"Created table: {created.full_table_id}")

    def set_metadata(self, table_name: str, metadata: Mapping[str, Any]) -> None:
        """Update an existing table.

        Only non output-only keys of ``metadata`` are sent. When ``metadata``
        carries the ``etag`` read earlier, the update is conditional on it.
        """
        table = bigquery.Table.from_api_repr(self._resource(table_name, metadata))
        fields = [key for key in metadata if key not in READ_ONLY_KEYS]
        self.client.update_table(table, fields)

    def delete_table(self, table_name: str, ignore_not_found: bool = True) -> None:
        self.client.delete_table(self._table_ref(table_name), not_found_ok=ignore_not_found)
        logger.debug(f"Deleted table: {self._table_ref(table_name)}")

    def insert_rows(self, table_name: str, rows: Sequence[Mapping[str, Any]]) -> None:
        errors = self.client.insert_rows_json(self._table_ref(table_name), list(rows))
        if errors:
            raise RowInsertError(table_name, list(errors))

    @property
    def dataset_id(self) -> str:
        """Get the BigQuery dataset name.

        Example:
            >>> store.dataset_id
            'bot_analytics'
        """
        return self._dataset_id
