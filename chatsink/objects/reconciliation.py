"""Reconciliation outcome models.

Each topology entry produces exactly one ReconciliationOutcome; the outcomes of
one pass are collected, in topology order, into a ReconciliationReport.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class OutcomeStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    DEFERRED = "deferred"
    FAILED = "failed"


class PlannedAction(str, Enum):
    """What reconciliation would do for one definition."""

    CREATE = "create"
    UPDATE = "update"
    RECREATE = "recreate"
    SKIP = "skip"
    DEFER = "defer"


class EntryPlan(BaseModel):
    """Decision for one definition, before any mutating call.

    Attributes:
        name: Definition name
        action: Planned action
        metadata: Metadata to send (full desired metadata for create/recreate,
            remote metadata merged with desired for update, None otherwise)
    """

    name: str
    action: PlannedAction
    metadata: Optional[Dict[str, Any]] = None


class ReconciliationOutcome(BaseModel):
    """Result of reconciling one definition.

    Attributes:
        name: Definition name
        status: created, updated, unchanged, deferred or failed
        action: Action that was attempted
        error: Exception raised by the store when status is failed
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    status: OutcomeStatus
    action: PlannedAction
    error: Optional[Exception] = None


class ReconciliationReport(BaseModel):
    """Aggregated result of one reconciliation pass.

    Attributes:
        outcomes: Per-definition outcomes in topology order
        elapsed_seconds: Wall time of the pass
    """

    outcomes: List[ReconciliationOutcome] = Field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def failed(self) -> List[ReconciliationOutcome]:
        """Failures that were logged but not raised (lenient policy only)."""
        return [o for o in self.outcomes if o.status == OutcomeStatus.FAILED]

    @property
    def succeeded(self) -> bool:
        """True when no entry failed; deferred views do not count as failures."""
        return not self.failed

    def by_status(self, status: OutcomeStatus) -> List[str]:
        return [o.name for o in self.outcomes if o.status == status]

    def status_of(self, name: str) -> Optional[OutcomeStatus]:
        return next((o.status for o in self.outcomes if o.name == name), None)
