"""Batch insert gateway.

This module provides the InsertGateway class, the write path of the sink. It
drops empty batches, waits for the schema gate, sends each batch as a single
insert request, and logs (or raises, under the STRICT policy) failures.
"""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional, Sequence

from chatsink.bucket.schema_gate import SchemaGate
from chatsink.exceptions import InsertError, RowInsertError
from chatsink.logging_config import get_logger
from chatsink.objects.storage_options import FailurePolicy

logger = get_logger(__name__)

Row = Mapping[str, Any]


class InsertGateway:
    """Writes row batches to tables guarded by a SchemaGate.

    Row-level rejections (the request went through but some rows were
    refused) and whole-request failures are both logged with whatever detail
    the store returned. Neither is raised under the LENIENT policy, so
    analytics never breaks the request that produced the rows.
    """

    def __init__(
        self,
        gate: SchemaGate,
        policy: FailurePolicy = FailurePolicy.LENIENT,
        max_workers: int = 8,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.gate = gate
        self.policy = policy
        self.max_workers = max_workers
        self._log = log or logger

    def insert(self, table: str, rows: Sequence[Row]) -> None:
        """Insert rows into one table in a single request.

        Args:
            table: Target table name
            rows: Flat records; order is preserved

        Raises:
            InsertError: Only under the STRICT policy
        """
        if not rows:
            return

        try:
            store = self.gate.ready()
            store.insert_rows(table, list(rows))

        except RowInsertError as e:
            self._log.error(f'BigQueryStorage: insert to "{table}" failed: {e} details={e.details}')
            if self.policy.should_raise():
                raise

        except Exception as e:
            details: List[Dict[str, Any]] = list(getattr(e, "errors", None) or [])
            self._log.error(
                f'BigQueryStorage: insert to "{table}" failed: {e} details={details or None}',
                exc_info=e,
            )
            if self.policy.should_raise():
                raise InsertError(table, f'Insert to "{table}" failed: {e}', details=details) from e

    def insert_many(self, batches: Mapping[str, Sequence[Row]]) -> None:
        """Insert batches for several tables concurrently.

        Each table is written independently; a failing table never prevents
        the others from being written. Under the STRICT policy the first
        failure, in ``batches`` order, is raised after all inserts settle.
        """
        non_empty = {table: rows for table, rows in batches.items() if rows}
        if not non_empty:
            return

        start = time.monotonic()
        workers = max(1, min(self.max_workers, len(non_empty)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="chatsink-insert") as pool:
            futures: Dict[str, Future] = {
                table: pool.submit(self.insert, table, rows) for table, rows in non_empty.items()
            }

        self._log.debug(f"BigQueryStorage: inserts\t{(time.monotonic() - start) * 1000:.0f}ms")

        for future in futures.values():
            error = future.exception()
            if error is not None:
                raise error
