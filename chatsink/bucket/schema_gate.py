"""Single-flight schema gate.

This module provides the SchemaGate class, which makes sure topology
reconciliation runs at most once at a time per process and that every writer
waits for it before touching the store.
"""

import logging
import threading
from concurrent.futures import Future
from enum import Enum
from typing import Any, Callable, Optional

from chatsink.bucket.table_store import TableStore
from chatsink.exceptions import TopologyReconciliationError
from chatsink.logging_config import get_logger

logger = get_logger(__name__)


class GateState(str, Enum):
    UNSTARTED = "unstarted"
    IN_PROGRESS = "in_progress"
    READY = "ready"


class SchemaGate:
    """Guards the store handle behind one shared reconciliation.

    State machine::

        UNSTARTED -> IN_PROGRESS -> READY
                         |
                         +-> (failure) -> UNSTARTED

    The first ``ready()`` caller that finds the gate UNSTARTED runs the
    reconciliation in its own thread; concurrent callers wait on the same
    pending future and share its outcome. A failure resets the gate so the
    next call retries from scratch.

    Attributes:
        passive_schema: Skip reconciliation entirely and trust the remote schema
    """

    def __init__(
        self,
        store: TableStore,
        reconcile: Callable[[], Any],
        passive_schema: bool = False,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._store = store
        self._reconcile = reconcile
        self.passive_schema = passive_schema
        self._log = log or logger

        self._lock = threading.Lock()
        self._state = GateState.UNSTARTED
        self._pending: Optional[Future] = None
        self._last_result: Any = None

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def last_result(self) -> Any:
        """Return value of the last successful reconciliation."""
        return self._last_result

    def ready(self) -> TableStore:
        """Return the store once the topology has been reconciled.

        Raises:
            TopologyReconciliationError: If the shared reconciliation failed
        """
        if self.passive_schema or self._state is GateState.READY:
            return self._store

        with self._lock:
            if self._state is GateState.READY:
                return self._store
            pending = self._pending
            owner = pending is None
            if pending is None:
                pending = Future()
                self._pending = pending
                self._state = GateState.IN_PROGRESS

        if owner:
            self._run(pending)

        pending.result()
        return self._store

    def pre_heat(self) -> None:
        """Warm the connection before the first write."""
        self.ready()

    def reset(self) -> None:
        """Make the next ``ready()`` call reconcile again."""
        with self._lock:
            if self._state is GateState.READY:
                self._state = GateState.UNSTARTED

    def _fail(self, pending: Future, error: BaseException) -> None:
        with self._lock:
            self._state = GateState.UNSTARTED
            self._pending = None
        pending.set_exception(error)

    def _run(self, pending: Future) -> None:
        try:
            result = self._reconcile()
        except Exception as e:
            self._log.error(f"BigQueryStorage: failed to create/update topology: {e}", exc_info=e)
            error = TopologyReconciliationError(f"Topology reconciliation failed: {e}")
            error.__cause__ = e
            self._fail(pending, error)
            return
        except BaseException as e:
            # Interrupted: waiters get the same exception, the owner re-raises it
            self._fail(pending, e)
            raise

        with self._lock:
            self._last_result = result
            self._state = GateState.READY
            self._pending = None
        pending.set_result(result)
