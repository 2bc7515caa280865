"""Custom exceptions for chatsink."""

from typing import Any, Dict, List, Optional


class ChatsinkError(Exception):
    """Base exception class for chatsink-specific errors."""

    pass


class ConfigurationError(ChatsinkError):
    """Raised when a topology or CLI configuration is invalid."""

    pass


class MissingTableCreationError(ChatsinkError):
    """Raised when a table or view that does not exist yet cannot be created.

    Always fatal: writers have nothing to write to.
    """

    def __init__(self, table: str, message: Optional[str] = None) -> None:
        self.table = table
        super().__init__(message or f"Failed to create table '{table}'")


class SchemaUpdateError(ChatsinkError):
    """Raised when updating an existing table (or recreating a view) fails."""

    def __init__(self, table: str, message: Optional[str] = None) -> None:
        self.table = table
        super().__init__(message or f"Failed to update table '{table}'")


class TopologyReconciliationError(ChatsinkError):
    """Raised to every caller waiting on a failed shared reconciliation."""

    pass


class InsertError(ChatsinkError):
    """Raised when a batch insert fails.

    Attributes:
        table: Target table name
        details: Flattened per-row error descriptors (empty for transport failures)
    """

    def __init__(
        self,
        table: str,
        message: Optional[str] = None,
        details: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        self.table = table
        self.details = details or []
        super().__init__(message or f'Insert to "{table}" failed')


class RowInsertError(InsertError):
    """Raised when the store accepted the request but rejected individual rows.

    Attributes:
        row_errors: Raw per-row descriptors, e.g.
            ``[{"index": 0, "errors": [{"reason": "invalid", "message": "..."}]}]``
    """

    def __init__(self, table: str, row_errors: List[Dict[str, Any]]) -> None:
        self.row_errors = row_errors
        details = [err for row in row_errors for err in (row.get("errors") or [])]
        super().__init__(
            table,
            f'Insert to "{table}" rejected {len(row_errors)} row(s)',
            details=details,
        )
